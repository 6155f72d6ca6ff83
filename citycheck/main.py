"""Command-line entry point.

Usage:
    citycheck [--database-url URL] [--format text|json] [--log-level LEVEL]

Findings are printed to stdout, logs to stderr. The exit status is 0 when
both record streams were read to the end and 1 when the run was aborted
(invalid configuration, unreachable database, malformed city boundary).
"""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from citycheck.config import Settings, get_settings
from citycheck.database import check_connection, create_db_engine, session_scope
from citycheck.exceptions import ParseError, SourceError
from citycheck.logging_config import get_logger, log_execution_time, set_run_id, setup_logging
from citycheck.reconcile import Reconciler
from citycheck.registry import RegionRegistry
from citycheck.schemas import RunSummary
from citycheck.sinks import ConsoleSink, DiagnosticSink
from citycheck.sources import iter_region_rows, iter_user_rows

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="citycheck",
        description="Report users whose location pointers fall outside their assigned city.",
    )
    parser.add_argument("--database-url", help="SQLAlchemy database URL (overrides DATABASE_URL)")
    parser.add_argument(
        "--format", dest="output_format", choices=("text", "json"), help="Findings output format"
    )
    parser.add_argument("--log-level", help="Log level (overrides LOG_LEVEL)")
    return parser.parse_args(argv)


def load_settings(args: argparse.Namespace) -> Settings:
    """Load settings from the environment, applying command-line overrides."""
    overrides = {
        key: value
        for key, value in (
            ("database_url", args.database_url),
            ("output_format", args.output_format),
            ("log_level", args.log_level),
        )
        if value is not None
    }
    return Settings(**overrides) if overrides else get_settings()


@log_execution_time("registry_build")
def build_registry(session) -> RegionRegistry:
    return RegionRegistry.build(iter_region_rows(session))


def run(settings: Settings, sink: Optional[DiagnosticSink] = None) -> RunSummary:
    """Run one reconciliation pass.

    Raises:
        SQLAlchemyError: If the database cannot be reached or a query fails
        ParseError: If a city boundary is malformed
        SourceError: If a city row is incomplete
    """
    if sink is None:
        sink = ConsoleSink(output_format=settings.output_format)

    engine = create_db_engine(settings)
    try:
        check_connection(engine)
        logger.info("database_connected", backend=engine.url.get_backend_name())

        with session_scope(engine) as session:
            registry = build_registry(session)
            reconciler = Reconciler(registry, sink)
            return reconciler.run(iter_user_rows(session, batch_size=settings.user_batch_size))
    finally:
        engine.dispose()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)

    try:
        settings = load_settings(args)
    except ValidationError as e:
        setup_logging(log_level=args.log_level)
        logger.error(
            "configuration_invalid",
            errors=e.errors(include_url=False, include_input=False),
        )
        return EXIT_FAILURE

    setup_logging(settings)
    set_run_id()
    logger.info("run_starting", env=settings.app_env)

    try:
        summary = run(settings)
    except SQLAlchemyError as e:
        logger.error("database_error", error=str(e))
        return EXIT_FAILURE
    except (ParseError, SourceError) as e:
        logger.error("registry_invalid", error=str(e))
        return EXIT_FAILURE

    logger.info("run_finished", findings=summary.total_findings)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
