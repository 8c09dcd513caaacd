"""
Repository contract tests to verify that all implementations comply with
their protocol contracts.

These tests ensure that all repository implementations (in-memory, local,
mock) behave consistently and follow the same interface contracts.
"""

import json
from abc import ABC, abstractmethod
from datetime import date, timedelta
from pathlib import Path

import pytest

from planner.domain import (
    CalendarEvent,
    PlannerSettings,
    RecurrenceFrequency,
    RecurrenceRule,
    TimeBlock,
)
from planner.repositories import (
    CalendarSnapshotRepository,
    PlannerConfigurationRepository,
)
from planner.repos import (
    InMemorySnapshotRepository,
    LocalPlannerConfigurationRepository,
    LocalSnapshotRepository,
    MockPlannerConfigurationRepository,
    MockSnapshotRepository,
)
from planner.tests.factories import MONDAY, at, minimal_event, minimal_time_block

WINDOW = (at(0), at(0) + timedelta(days=1))


def sample_events() -> list:
    return [
        minimal_event(event_id="inside", start_time=at(10), end_time=at(11)),
        minimal_event(
            event_id="next-week",
            start_time=at(10, day=date(2024, 1, 8)),
            end_time=at(11, day=date(2024, 1, 8)),
        ),
        minimal_event(
            event_id="weekly",
            start_time=at(9, day=date(2023, 12, 4)),
            end_time=at(9, 30, day=date(2023, 12, 4)),
            recurrence_rule=RecurrenceRule(frequency=RecurrenceFrequency.WEEKLY),
        ),
    ]


def sample_blocks() -> list:
    return [
        minimal_time_block(time_block_id="today"),
        minimal_time_block(
            time_block_id="tomorrow",
            start_time=at(14, day=date(2024, 1, 2)),
            end_time=at(15, day=date(2024, 1, 2)),
        ),
    ]


def write_snapshot(path: Path, events: list, blocks: list) -> Path:
    path.write_text(
        json.dumps(
            {
                "events": [e.model_dump(mode="json") for e in events],
                "time_blocks": [b.model_dump(mode="json") for b in blocks],
            }
        )
    )
    return path


class CalendarSnapshotRepositoryContractTestMixin(ABC):
    """
    Contract test mixin for CalendarSnapshotRepository implementations.

    Subclasses must implement create_repository() to return a repository
    instance for testing.
    """

    @abstractmethod
    def create_repository(self, tmp_path: Path) -> CalendarSnapshotRepository:
        """Create a repository instance for testing."""
        pass

    def test_satisfies_protocol(self, tmp_path: Path) -> None:
        repo = self.create_repository(tmp_path)

        assert isinstance(repo, CalendarSnapshotRepository)

    def test_load_events_returns_list(self, tmp_path: Path) -> None:
        """Contract: load_events must return a list of CalendarEvent."""
        repo = self.create_repository(tmp_path)

        result = repo.load_events(*WINDOW)

        assert isinstance(result, list)
        for event in result:
            assert isinstance(event, CalendarEvent)

    def test_load_events_covers_window(self, tmp_path: Path) -> None:
        """Contract: every non-recurring event returned touches the window."""
        repo = self.create_repository(tmp_path)

        for event in repo.load_events(*WINDOW):
            if not event.is_recurring:
                assert event.start_time < WINDOW[1]
                assert event.end_time > WINDOW[0]

    def test_load_time_blocks_returns_list(self, tmp_path: Path) -> None:
        """Contract: load_time_blocks must return a list of TimeBlock."""
        repo = self.create_repository(tmp_path)

        result = repo.load_time_blocks(*WINDOW)

        assert isinstance(result, list)
        for block in result:
            assert isinstance(block, TimeBlock)
            assert block.start_time < WINDOW[1]
            assert block.end_time > WINDOW[0]


class SampleSnapshotContractTestMixin(CalendarSnapshotRepositoryContractTestMixin):
    """Extra contract checks for repositories holding the sample snapshot."""

    def test_recurring_masters_returned_before_window(self, tmp_path: Path) -> None:
        repo = self.create_repository(tmp_path)

        ids = [e.event_id for e in repo.load_events(*WINDOW)]

        assert ids == ["inside", "weekly"]

    def test_time_blocks_filtered_by_window(self, tmp_path: Path) -> None:
        repo = self.create_repository(tmp_path)

        ids = [b.time_block_id for b in repo.load_time_blocks(*WINDOW)]

        assert ids == ["today"]


class PlannerConfigurationRepositoryContractTestMixin(ABC):
    """
    Contract test mixin for PlannerConfigurationRepository implementations.
    """

    @abstractmethod
    def create_repository(self, tmp_path: Path) -> PlannerConfigurationRepository:
        """Create a repository instance for testing."""
        pass

    def test_satisfies_protocol(self, tmp_path: Path) -> None:
        repo = self.create_repository(tmp_path)

        assert isinstance(repo, PlannerConfigurationRepository)

    def test_get_settings_returns_settings(self, tmp_path: Path) -> None:
        """Contract: get_settings must return PlannerSettings."""
        repo = self.create_repository(tmp_path)

        result = repo.get_settings()

        assert isinstance(result, PlannerSettings)
        assert result.max_suggestions >= 1


# Concrete test classes for each implementation


class TestInMemorySnapshotRepositoryContract(SampleSnapshotContractTestMixin):
    def create_repository(self, tmp_path: Path) -> CalendarSnapshotRepository:
        return InMemorySnapshotRepository(sample_events(), sample_blocks())


class TestLocalSnapshotRepositoryContract(SampleSnapshotContractTestMixin):
    def create_repository(self, tmp_path: Path) -> CalendarSnapshotRepository:
        path = write_snapshot(
            tmp_path / "snapshot.json", sample_events(), sample_blocks()
        )
        return LocalSnapshotRepository(str(path))


class TestMockSnapshotRepositoryContract(
    CalendarSnapshotRepositoryContractTestMixin
):
    def create_repository(self, tmp_path: Path) -> CalendarSnapshotRepository:
        return MockSnapshotRepository(day=MONDAY)


class TestMockPlannerConfigurationRepositoryContract(
    PlannerConfigurationRepositoryContractTestMixin
):
    def create_repository(self, tmp_path: Path) -> PlannerConfigurationRepository:
        return MockPlannerConfigurationRepository()


class TestLocalPlannerConfigurationRepositoryContract(
    PlannerConfigurationRepositoryContractTestMixin
):
    def create_repository(self, tmp_path: Path) -> PlannerConfigurationRepository:
        return LocalPlannerConfigurationRepository(str(tmp_path / "planner.yaml"))


class TestRepositoryErrorHandling:
    """Test error handling behavior across repository implementations."""

    def test_local_snapshot_missing_file_returns_empty(self, tmp_path: Path) -> None:
        repo = LocalSnapshotRepository(str(tmp_path / "missing.json"))

        assert repo.load_events(*WINDOW) == []
        assert repo.load_time_blocks(*WINDOW) == []

    def test_local_snapshot_bad_json_returns_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "snapshot.json"
        path.write_text("{not json")

        assert LocalSnapshotRepository(str(path)).load_events(*WINDOW) == []

    def test_local_snapshot_skips_invalid_records(self, tmp_path: Path) -> None:
        path = write_snapshot(tmp_path / "snapshot.json", sample_events(), [])
        data = json.loads(path.read_text())
        data["events"].append(
            {
                "event_id": "broken",
                "title": "Backwards",
                "start_time": "2024-01-01T11:00:00Z",
                "end_time": "2024-01-01T10:00:00Z",
            }
        )
        data["events"].append({"event_id": "no-title"})
        path.write_text(json.dumps(data))

        events = LocalSnapshotRepository(str(path)).load_events(*WINDOW)

        assert [e.event_id for e in events] == ["inside", "weekly"]

    def test_local_snapshot_non_object_returns_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "snapshot.json"
        path.write_text("[]")

        assert LocalSnapshotRepository(str(path)).load_time_blocks(*WINDOW) == []

    @pytest.mark.parametrize("events", [None, "nope", {"a": 1}])
    def test_local_snapshot_events_not_a_list(self, tmp_path: Path, events) -> None:
        path = tmp_path / "snapshot.json"
        path.write_text(json.dumps({"events": events}))

        assert LocalSnapshotRepository(str(path)).load_events(*WINDOW) == []
