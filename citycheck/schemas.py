"""Pydantic schemas for reconciliation findings and run summaries."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from citycheck.extraction import LocationKind


class FindingType(str, Enum):
    """Kinds of mismatch the reconciliation can report."""

    DISABLED_REGION = "disabled_region"  # assigned city is not active
    OTHER_REGION = "other_region"        # pointer lies in another city
    NO_REGION = "no_region"              # pointer lies outside every city


class UserRecord(BaseModel):
    """One active user joined with their bot configuration."""

    model_config = ConfigDict(frozen=True)

    user_id: int
    username: str
    assigned_region_id: int
    raw_config: Optional[str] = None


class Finding(BaseModel):
    """A single reconciliation finding."""

    model_config = ConfigDict(frozen=True)

    type: FindingType
    user_id: int
    username: str
    assigned_region_id: int
    assigned_region_name: Optional[str] = None
    location: Optional[LocationKind] = None
    point: Optional[tuple[float, float]] = None
    found_region_id: Optional[int] = None
    found_region_name: Optional[str] = None

    def message(self) -> str:
        """Render the finding as a human-readable line."""
        user = f"User @{self.username} ({self.user_id})"
        assigned = f"{self.assigned_region_name} ({self.assigned_region_id})"

        if self.type == FindingType.DISABLED_REGION:
            return f"{user} is assigned to disabled city {self.assigned_region_id}"

        kind = self.location.display_name if self.location else "unknown"
        if self.type == FindingType.OTHER_REGION:
            return (
                f"{user} has {kind} pointer in {self.found_region_name} "
                f"({self.found_region_id}) instead of {assigned}"
            )
        return f"{user} has {kind} pointer out of any known city (assigned to {assigned})"


class RunSummary(BaseModel):
    """Counters for one reconciliation pass."""

    regions: int = 0
    users_seen: int = 0
    users_skipped: int = 0
    points_checked: int = 0
    findings: dict[FindingType, int] = Field(
        default_factory=lambda: {finding_type: 0 for finding_type in FindingType}
    )

    def record(self, finding: Finding) -> None:
        self.findings[finding.type] = self.findings.get(finding.type, 0) + 1

    @property
    def total_findings(self) -> int:
        return sum(self.findings.values())
