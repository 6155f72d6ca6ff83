"""Structured logging configuration with structlog.

Log events go to stderr so that stdout carries nothing but findings.
Output is colored console text on an interactive development terminal
and JSON everywhere else. Every event carries the current run ID.
"""

from __future__ import annotations

import contextvars
import logging
import sys
import time
from functools import wraps
from typing import TYPE_CHECKING, Any, Callable, Optional, TypeVar
from uuid import uuid4

import structlog
from structlog.types import Processor

if TYPE_CHECKING:
    from citycheck.config import Settings

# Context variable for run ID propagation
run_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "run_id", default=None
)


def get_run_id() -> Optional[str]:
    """Get current run ID from context."""
    return run_id_var.get()


def set_run_id(run_id: Optional[str] = None) -> str:
    """Set run ID in context, generating one if not provided."""
    if run_id is None:
        run_id = uuid4().hex[:12]
    run_id_var.set(run_id)
    return run_id


def add_run_id(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Add run ID to log event."""
    run_id = get_run_id()
    if run_id:
        event_dict["run_id"] = run_id
    return event_dict


def _app_context(app_name: str, app_env: str) -> Processor:
    def add_app_context(
        logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        """Add application context to log event."""
        event_dict["app"] = app_name
        event_dict["env"] = app_env
        return event_dict

    return add_app_context


def setup_logging(
    settings: Optional[Settings] = None,
    *,
    log_level: Optional[str] = None,
    stream: Any = None,
) -> None:
    """Configure structured logging for a run.

    Args:
        settings: Loaded settings; defaults are used when they could not be loaded
        log_level: Overrides ``settings.log_level``
        stream: Destination stream, stderr by default
    """
    app_name = settings.app_name if settings else "citycheck"
    app_env = settings.app_env if settings else "development"
    level = (log_level or (settings.log_level if settings else "INFO")).upper()
    stream = stream if stream is not None else sys.stderr

    use_json = app_env != "development" or not stream.isatty()

    shared_processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_run_id,
        _app_context(app_name, app_env),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if use_json:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        shared_processors.append(structlog.dev.set_exc_info)
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Tests swap processors with structlog.testing.capture_logs
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level, logging.INFO))

    # Suppress noisy loggers
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger by name."""
    return structlog.get_logger(name)


F = TypeVar("F", bound=Callable[..., Any])


def log_execution_time(operation: str) -> Callable[[F], F]:
    """Decorator to log function execution time.

    Args:
        operation: Name of the operation being timed

    Usage:
        @log_execution_time("registry_build")
        def build_registry():
            ...
    """

    def decorator(func: F) -> F:
        logger = get_logger(func.__module__)

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            start_time = time.perf_counter()
            try:
                result = func(*args, **kwargs)
                elapsed_ms = (time.perf_counter() - start_time) * 1000
                logger.info(
                    f"{operation}_completed",
                    operation=operation,
                    duration_ms=round(elapsed_ms, 2),
                )
                return result
            except Exception as e:
                elapsed_ms = (time.perf_counter() - start_time) * 1000
                logger.error(
                    f"{operation}_failed",
                    operation=operation,
                    duration_ms=round(elapsed_ms, 2),
                    error=str(e),
                )
                raise

        return wrapper  # type: ignore[return-value]

    return decorator
