"""Reconciliation engine.

Checks every location pointer of every active user against the city the
user is assigned to. A pointer inside its assigned city is fine and
produces nothing. A pointer outside it is looked up across all cities and
reported either as lying in another city or as lying in no known city.
A user assigned to a city that is not active is reported once and their
pointers are not examined.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Union

from pydantic import ValidationError

from citycheck.exceptions import ConfigError
from citycheck.extraction import LocationKind, NamedPoint, extract_point, parse_config
from citycheck.logging_config import get_logger, log_execution_time
from citycheck.registry import Region, RegionRegistry
from citycheck.schemas import Finding, FindingType, RunSummary, UserRecord
from citycheck.sinks import DiagnosticSink

logger = get_logger(__name__)

UserInput = Union[UserRecord, Mapping[str, Any]]


class Reconciler:
    """Runs the per-user, per-pointer decision tree against a registry.

    The registry is never modified, so running the same input twice yields
    the same findings.
    """

    def __init__(
        self,
        registry: RegionRegistry,
        sink: DiagnosticSink,
        kinds: Iterable[LocationKind] = tuple(LocationKind),
    ):
        self.registry = registry
        self.sink = sink
        self.kinds = tuple(kinds)

    def _emit(self, finding: Finding, summary: Optional[RunSummary]) -> None:
        self.sink.emit(finding)
        if summary is not None:
            summary.record(finding)

    def check_point(
        self, user: UserRecord, assigned: Region, point: NamedPoint
    ) -> Optional[Finding]:
        """Classify one pointer; return a finding, or None if it is where it belongs."""
        if assigned.contains(point.coords):
            return None

        found = self.registry.find_any_containing(point.coords)
        if found is not None:
            return Finding(
                type=FindingType.OTHER_REGION,
                user_id=user.user_id,
                username=user.username,
                assigned_region_id=assigned.id,
                assigned_region_name=assigned.name,
                location=point.label,
                point=point.coords,
                found_region_id=found.id,
                found_region_name=found.name,
            )
        return Finding(
            type=FindingType.NO_REGION,
            user_id=user.user_id,
            username=user.username,
            assigned_region_id=assigned.id,
            assigned_region_name=assigned.name,
            location=point.label,
            point=point.coords,
        )

    def reconcile_user(
        self, user: UserRecord, summary: Optional[RunSummary] = None
    ) -> list[Finding]:
        """Reconcile one user and emit their findings to the sink.

        Raises:
            ConfigError: If the user's configuration document cannot be decoded
        """
        findings: list[Finding] = []

        if user.assigned_region_id not in self.registry:
            finding = Finding(
                type=FindingType.DISABLED_REGION,
                user_id=user.user_id,
                username=user.username,
                assigned_region_id=user.assigned_region_id,
            )
            self._emit(finding, summary)
            return [finding]

        if user.raw_config is None:
            raise ConfigError("config is missing")
        document = parse_config(user.raw_config)
        assigned = self.registry[user.assigned_region_id]

        for kind in self.kinds:
            point = extract_point(document, kind, user_id=user.user_id)
            if point is None:
                continue
            if summary is not None:
                summary.points_checked += 1

            finding = self.check_point(user, assigned, point)
            if finding is not None:
                self._emit(finding, summary)
                findings.append(finding)

        return findings

    @log_execution_time("reconciliation")
    def run(self, users: Iterable[UserInput]) -> RunSummary:
        """Reconcile every user in ``users``.

        Items are either :class:`UserRecord` instances or raw row mappings;
        rows that fail validation and users whose configuration cannot be
        decoded are logged and skipped.
        """
        summary = RunSummary(regions=len(self.registry))

        for item in users:
            summary.users_seen += 1
            try:
                user = item if isinstance(item, UserRecord) else UserRecord.model_validate(item)
            except ValidationError as e:
                summary.users_skipped += 1
                logger.error(
                    "user_row_invalid",
                    user_id=item.get("user_id") if isinstance(item, Mapping) else None,
                    errors=e.errors(include_url=False, include_input=False),
                )
                continue

            try:
                self.reconcile_user(user, summary)
            except ConfigError as e:
                summary.users_skipped += 1
                logger.error("user_config_invalid", user_id=user.user_id, error=str(e))

        logger.info(
            "reconciliation_summary",
            regions=summary.regions,
            users_seen=summary.users_seen,
            users_skipped=summary.users_skipped,
            points_checked=summary.points_checked,
            findings={k.value: v for k, v in summary.findings.items()},
        )
        return summary
