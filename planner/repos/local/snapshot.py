"""
Local file-based implementation of the CalendarSnapshotRepository protocol.
Reads a calendar snapshot from a single JSON file.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, List, Type, TypeVar

from pydantic import BaseModel, ValidationError

from planner.domain import CalendarEvent, TimeBlock
from planner.errors import SchedulingError
from planner.repositories import CalendarSnapshotRepository
from planner.timeutils import overlaps

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class LocalSnapshotRepository(CalendarSnapshotRepository):
    """
    A source repository backed by a JSON snapshot file of the form::

        {"events": [...], "time_blocks": [...]}

    Records that fail validation are logged and skipped so one bad entry
    does not hide the rest of the calendar.
    """

    def __init__(self, snapshot_path: str):
        self.snapshot_path = Path(snapshot_path).expanduser()
        logger.debug(
            f"Initialized LocalSnapshotRepository with path: "
            f"{self.snapshot_path}"
        )

    def _read(self) -> dict:
        if not self.snapshot_path.exists():
            logger.warning(f"Snapshot file not found: {self.snapshot_path}")
            return {}
        try:
            with open(self.snapshot_path, "r") as f:
                data = json.load(f)
        except (IOError, json.JSONDecodeError):
            logger.warning(
                f"Could not read or parse snapshot file: {self.snapshot_path}",
                exc_info=True,
            )
            return {}
        if not isinstance(data, dict):
            logger.error(
                f"Snapshot file must contain a JSON object: "
                f"{self.snapshot_path}"
            )
            return {}
        return data

    def _parse(self, records: Any, model: Type[M], key: str) -> List[M]:
        if not isinstance(records, list):
            logger.error(
                f"'{key}' must be a list in snapshot file: {self.snapshot_path}"
            )
            return []
        parsed = []
        for index, record in enumerate(records):
            try:
                parsed.append(model.model_validate(record))
            except (ValidationError, SchedulingError):
                logger.warning(
                    f"Skipping invalid record {key}[{index}] in "
                    f"{self.snapshot_path}",
                    exc_info=True,
                )
        return parsed

    def load_events(self, start: datetime, end: datetime) -> List[CalendarEvent]:
        events = self._parse(
            self._read().get("events", []), CalendarEvent, "events"
        )
        selected = [
            e
            for e in events
            if e.is_recurring or overlaps(e.start_time, e.end_time, start, end)
        ]
        logger.info(
            f"Loaded {len(selected)} events from {self.snapshot_path}"
        )
        return selected

    def load_time_blocks(
        self, start: datetime, end: datetime
    ) -> List[TimeBlock]:
        blocks = self._parse(
            self._read().get("time_blocks", []), TimeBlock, "time_blocks"
        )
        return [
            b for b in blocks if overlaps(b.start_time, b.end_time, start, end)
        ]
