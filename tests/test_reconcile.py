"""Tests for the reconciliation engine."""

from __future__ import annotations

import pytest
from helpers import make_config
from structlog.testing import capture_logs

from citycheck.exceptions import ConfigError
from citycheck.extraction import LocationKind
from citycheck.reconcile import Reconciler
from citycheck.registry import RegionRegistry
from citycheck.schemas import FindingType, UserRecord
from citycheck.sinks import MemorySink


def user(config: str | None, region_id: int = 1, user_id: int = 100, username: str = "ash") -> UserRecord:
    return UserRecord(
        user_id=user_id,
        username=username,
        assigned_region_id=region_id,
        raw_config=config,
    )


class TestReconcileUser:
    """Tests for the per-user decision tree."""

    def test_point_inside_assigned_region_is_silent(self, registry: RegionRegistry, sink: MemorySink):
        findings = Reconciler(registry, sink).reconcile_user(user(make_config(home=[5, 5])))

        assert findings == []
        assert sink.findings == []

    def test_point_in_other_region_names_it(self, registry: RegionRegistry, sink: MemorySink):
        """A home in B while assigned to A is reported as found in B."""
        Reconciler(registry, sink).reconcile_user(user(make_config(home=[25, 5])))

        assert len(sink.findings) == 1
        finding = sink.findings[0]
        assert finding.type == FindingType.OTHER_REGION
        assert finding.location == LocationKind.HOME
        assert finding.found_region_id == 2
        assert finding.found_region_name == "Beta"
        assert finding.assigned_region_id == 1
        assert finding.assigned_region_name == "Alpha"
        assert finding.point == (25.0, 5.0)
        assert sink.messages() == [
            "User @ash (100) has home pointer in Beta (2) instead of Alpha (1)"
        ]

    def test_point_outside_every_region(self, registry: RegionRegistry, sink: MemorySink):
        Reconciler(registry, sink).reconcile_user(user(make_config(raid=["50", "50"])))

        assert len(sink.findings) == 1
        finding = sink.findings[0]
        assert finding.type == FindingType.NO_REGION
        assert finding.location == LocationKind.RAID
        assert finding.found_region_id is None
        assert "raid pointer out of any known city" in finding.message()
        assert "@ash (100)" in finding.message()

    def test_empty_coordinates_produce_no_report(self, registry: RegionRegistry, sink: MemorySink):
        config = make_config(home=["", ""], pokemon=["", ""], raid=["", ""], invasion=["", ""])

        Reconciler(registry, sink).reconcile_user(user(config))

        assert sink.findings == []

    def test_each_path_is_classified_independently(self, registry: RegionRegistry, sink: MemorySink):
        config = make_config(
            home=[5, 5],          # inside Alpha
            pokemon=[25, 5],      # Beta
            raid=[105, 103],      # Gamma
            invasion=[-50, -50],  # nowhere
        )

        Reconciler(registry, sink).reconcile_user(user(config))

        assert [(f.location, f.type) for f in sink.findings] == [
            (LocationKind.POKEMON_POINTER, FindingType.OTHER_REGION),
            (LocationKind.RAID, FindingType.OTHER_REGION),
            (LocationKind.INVASION, FindingType.NO_REGION),
        ]
        assert "pokémon pointer in Beta (2)" in sink.messages()[0]
        assert "raid pointer in Gamma (3)" in sink.messages()[1]

    def test_disabled_region_reported_once(self, registry: RegionRegistry, sink: MemorySink):
        """An unknown assigned region yields one report and no location reports."""
        config = make_config(home=[25, 5], pokemon=[50, 50], raid=[5, 5], invasion=[105, 103])

        findings = Reconciler(registry, sink).reconcile_user(user(config, region_id=99))

        assert len(findings) == 1
        assert len(sink.findings) == 1
        finding = sink.findings[0]
        assert finding.type == FindingType.DISABLED_REGION
        assert finding.assigned_region_id == 99
        assert finding.location is None
        assert finding.message() == "User @ash (100) is assigned to disabled city 99"

    def test_disabled_region_checked_before_config(self, registry: RegionRegistry, sink: MemorySink):
        Reconciler(registry, sink).reconcile_user(user(None, region_id=99))

        assert [f.type for f in sink.findings] == [FindingType.DISABLED_REGION]

    def test_malformed_config_raises(self, registry: RegionRegistry, sink: MemorySink):
        with pytest.raises(ConfigError):
            Reconciler(registry, sink).reconcile_user(user("{broken"))

    def test_missing_config_raises(self, registry: RegionRegistry, sink: MemorySink):
        with pytest.raises(ConfigError, match="missing"):
            Reconciler(registry, sink).reconcile_user(user(None))

    def test_restricted_kinds(self, registry: RegionRegistry, sink: MemorySink):
        config = make_config(home=[25, 5], pokemon=[25, 5])

        Reconciler(registry, sink, kinds=[LocationKind.POKEMON_POINTER]).reconcile_user(user(config))

        assert [f.location for f in sink.findings] == [LocationKind.POKEMON_POINTER]


class TestRun:
    """Tests for a full pass over a user stream."""

    def test_summary_counts(self, registry: RegionRegistry, sink: MemorySink):
        users = [
            user(make_config(home=[5, 5], pokemon=[25, 5]), user_id=1),
            user(make_config(home=[50, 50]), user_id=2),
            user(make_config(home=[1, 1]), region_id=77, user_id=3),
            user("{broken", user_id=4),
        ]

        with capture_logs():
            summary = Reconciler(registry, sink).run(users)

        assert summary.regions == 3
        assert summary.users_seen == 4
        assert summary.users_skipped == 1
        assert summary.points_checked == 3
        assert summary.findings[FindingType.OTHER_REGION] == 1
        assert summary.findings[FindingType.NO_REGION] == 1
        assert summary.findings[FindingType.DISABLED_REGION] == 1
        assert summary.total_findings == 3 == len(sink.findings)

    def test_malformed_config_skips_only_that_user(self, registry: RegionRegistry, sink: MemorySink):
        users = [
            user("{broken", user_id=1),
            user(make_config(home=[25, 5]), user_id=2),
        ]

        with capture_logs() as logs:
            Reconciler(registry, sink).run(users)

        assert [f.user_id for f in sink.findings] == [2]
        config_errors = [entry for entry in logs if entry["event"] == "user_config_invalid"]
        assert len(config_errors) == 1
        assert config_errors[0]["user_id"] == 1

    def test_deeply_nested_config_skips_only_that_user(
        self, registry: RegionRegistry, sink: MemorySink
    ):
        nested = '{"locs":{"h":[25,5]},"x":' + "[" * 100000 + "]" * 100000 + "}"
        users = [
            user(nested, user_id=1),
            user(make_config(home=[25, 5]), user_id=2),
        ]

        with capture_logs() as logs:
            summary = Reconciler(registry, sink).run(users)

        assert [f.user_id for f in sink.findings] == [2]
        assert summary.users_skipped == 1
        config_errors = [entry for entry in logs if entry["event"] == "user_config_invalid"]
        assert [entry["user_id"] for entry in config_errors] == [1]

    def test_oversized_integer_fails_only_its_pointer(
        self, registry: RegionRegistry, sink: MemorySink
    ):
        """An integer too long to convert drops one pointer, not the whole user."""
        huge = "1" * 5000
        config = '{"locs":{"h":[' + huge + ',5],"p":[25,5]}}'

        with capture_logs() as logs:
            summary = Reconciler(registry, sink).run([user(config)])

        assert [f.location for f in sink.findings] == [LocationKind.POKEMON_POINTER]
        assert summary.users_skipped == 0
        invalid = [entry for entry in logs if entry["event"] == "location_value_invalid"]
        assert [(entry["location"], entry["axis"]) for entry in invalid] == [("home", "x")]

    def test_raw_rows_are_validated(self, registry: RegionRegistry, sink: MemorySink):
        rows = [
            {"user_id": None, "username": "ghost", "assigned_region_id": 1, "raw_config": "{}"},
            {"user_id": 5, "username": None, "assigned_region_id": 1, "raw_config": "{}"},
            {
                "user_id": 6,
                "username": "misty",
                "assigned_region_id": 1,
                "raw_config": make_config(invasion=[25, 5]),
            },
        ]

        with capture_logs() as logs:
            summary = Reconciler(registry, sink).run(rows)

        assert summary.users_seen == 3
        assert summary.users_skipped == 2
        assert [f.username for f in sink.findings] == ["misty"]
        invalid = [entry for entry in logs if entry["event"] == "user_row_invalid"]
        assert [entry["user_id"] for entry in invalid] == [None, 5]

    def test_rerun_yields_same_findings(self, registry: RegionRegistry):
        """Reconciliation over unchanged input is idempotent."""
        users = [
            user(make_config(home=[25, 5], raid=[50, 50]), user_id=1),
            user(make_config(pokemon=[5, 5]), region_id=2, user_id=2),
            user(make_config(), region_id=42, user_id=3),
        ]
        first, second = MemorySink(), MemorySink()

        with capture_logs():
            Reconciler(registry, first).run(users)
            Reconciler(registry, second).run(users)

        assert first.findings == second.findings
        assert len(first.findings) == 4

    def test_summary_is_logged(self, registry: RegionRegistry, sink: MemorySink):
        with capture_logs() as logs:
            Reconciler(registry, sink).run([user(make_config(home=[50, 50]))])

        events = [entry["event"] for entry in logs]
        assert "reconciliation_summary" in events
        assert "reconciliation_completed" in events
