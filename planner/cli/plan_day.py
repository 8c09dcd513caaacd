#!/usr/bin/env python3
"""
CLI for planning a single day.

This script runs the whole planning pipeline for one day:
1. Loads the calendar snapshot and planner settings
2. Expands recurring events and detects conflicts
3. Computes free time, statistics and insights
4. Optionally suggests slots for a new event

Without --snapshot it plans a built-in demo day, which is handy for seeing
every conflict type in action.
"""

import json
import logging
import os
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional, Tuple

import click

from planner.domain import (
    OptimizationGoal,
    QuickEventData,
    SchedulingSuggestion,
    SmartSchedulingOptions,
)
from planner.errors import SchedulingError
from planner.repos.local import (
    LocalPlannerConfigurationRepository,
    LocalSnapshotRepository,
)
from planner.repos.mock import (
    MockPlannerConfigurationRepository,
    MockSnapshotRepository,
)
from planner.repositories import (
    CalendarSnapshotRepository,
    PlannerConfigurationRepository,
)
from planner.timeutils import get_zone, start_of_day
from planner.usecase import (
    AnalyzeWindowUseCase,
    PlanningReport,
    SuggestScheduleUseCase,
)

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    """Configure logging based on environment variables"""
    log_level = os.environ.get("LOG_LEVEL", "WARNING").upper()
    numeric_level = getattr(logging, log_level, None)
    if not isinstance(numeric_level, int):
        click.echo(
            f"Invalid log level: {log_level}, defaulting to WARNING", err=True
        )
        numeric_level = logging.WARNING

    log_format = os.environ.get(
        "LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    logging.basicConfig(
        level=numeric_level,
        format=log_format,
        force=True,
    )
    logger.debug(
        "Logging configured",
        extra={"log_level": log_level, "numeric_level": numeric_level},
    )


def _repositories(
    day: date, snapshot: Optional[str], config: Optional[str]
) -> Tuple[CalendarSnapshotRepository, PlannerConfigurationRepository]:
    snapshot_repo: CalendarSnapshotRepository
    config_repo: PlannerConfigurationRepository
    if snapshot:
        snapshot_repo = LocalSnapshotRepository(snapshot)
    else:
        snapshot_repo = MockSnapshotRepository(day)

    if config or snapshot:
        config_repo = LocalPlannerConfigurationRepository(config)
    else:
        config_repo = MockPlannerConfigurationRepository()
    return snapshot_repo, config_repo


def _hhmm(value: datetime, tz) -> str:
    return value.astimezone(tz).strftime("%H:%M")


def _echo_report(
    report: PlanningReport,
    suggestions: Optional[List[SchedulingSuggestion]],
    title: Optional[str],
    duration: int,
    time_zone: str,
) -> None:
    tz = get_zone(time_zone)
    local_day = report.window_start.astimezone(tz)
    heading = f"Plan for {local_day:%A %Y-%m-%d} ({time_zone})"
    click.echo(heading)
    click.echo("=" * len(heading))
    click.echo()

    click.echo(f"Events ({len(report.events)}):")
    for event in report.events:
        marker = " !" if event.conflicts else ""
        click.echo(
            f"  {_hhmm(event.start_time, tz)}-{_hhmm(event.end_time, tz)}  "
            f"{event.title} [{event.type.value}, {event.priority.value}, "
            f"{event.status.value}]{marker}"
        )
    click.echo()

    click.echo(f"Time blocks ({len(report.time_blocks)}):")
    for block in report.time_blocks:
        locked = ", locked" if block.is_locked else ""
        click.echo(
            f"  {_hhmm(block.start_time, tz)}-{_hhmm(block.end_time, tz)}  "
            f"{block.title} [{block.type.value}, priority "
            f"{block.priority}{locked}]"
        )
    click.echo()

    click.echo(f"Conflicts ({len(report.conflicts)}):")
    for conflict in report.conflicts:
        click.echo(
            f"  [{conflict.severity.value}] {conflict.type.value}: "
            f"{conflict.description}"
        )
        if conflict.suggested_resolution:
            click.echo(f"      -> {conflict.suggested_resolution}")
    click.echo()

    click.echo(f"Free slots ({len(report.free_slots)}):")
    for slot in report.free_slots:
        click.echo(
            f"  {_hhmm(slot.start, tz)}-{_hhmm(slot.end, tz)}  "
            f"({slot.duration_minutes:.0f} min)"
        )
    click.echo()

    stats = report.stats
    click.echo(
        f"Utilization: {stats.utilization_rate:.0f}%  "
        f"Meetings: {stats.meeting_time:.0f} min  "
        f"Focus: {stats.focus_time:.0f} min  "
        f"Productivity: {stats.productivity_score}/10"
    )
    for insight in report.insights:
        click.echo(f"  [{insight.severity.value}] {insight.message}")

    if suggestions is None:
        return
    click.echo()
    click.echo(f"Suggestions for '{title}' ({duration} min):")
    if not suggestions:
        click.echo("  No free slot fits within the search horizon.")
    for i, suggestion in enumerate(suggestions, 1):
        click.echo(
            f"  {i}. {suggestion.start_time.astimezone(tz):%a %H:%M}-"
            f"{_hhmm(suggestion.end_time, tz)}  confidence "
            f"{suggestion.confidence}  energy {suggestion.energy_match}/10"
        )
        click.echo(f"     {suggestion.reasoning}")


@click.command()
@click.option(
    "--date",
    "day",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Day to plan (YYYY-MM-DD). Defaults to today.",
)
@click.option(
    "--snapshot",
    type=click.Path(dir_okay=False),
    default=None,
    help="JSON calendar snapshot. Uses demo data when omitted.",
)
@click.option(
    "--config",
    type=click.Path(dir_okay=False),
    default=None,
    help="YAML planner settings (defaults to $PLANNER_CONFIG).",
)
@click.option("--title", default=None, help="Suggest slots for a new event.")
@click.option(
    "--duration",
    type=click.IntRange(min=1),
    default=60,
    show_default=True,
    help="Length of the new event in minutes.",
)
@click.option(
    "--optimize-for",
    type=click.Choice([g.value for g in OptimizationGoal]),
    default=OptimizationGoal.BALANCE.value,
    show_default=True,
    help="What the suggestions should favour.",
)
@click.option(
    "--json", "as_json", is_flag=True, help="Print the plan as JSON."
)
def main(
    day: Optional[datetime],
    snapshot: Optional[str],
    config: Optional[str],
    title: Optional[str],
    duration: int,
    optimize_for: str,
    as_json: bool,
) -> None:
    """Plan a day: conflicts, free time and slot suggestions."""
    setup_logging()
    plan_day = day.date() if day else datetime.now(timezone.utc).date()
    snapshot_repo, config_repo = _repositories(plan_day, snapshot, config)
    time_zone = config_repo.get_settings().working_hours.time_zone

    window_start = start_of_day(plan_day, get_zone(time_zone))
    window_end = window_start + timedelta(days=1)
    try:
        report = AnalyzeWindowUseCase(snapshot_repo, config_repo).execute(
            window_start, window_end
        )
        suggestions = None
        if title:
            suggestions = SuggestScheduleUseCase(
                snapshot_repo, config_repo
            ).execute(
                QuickEventData(title=title, date=plan_day, duration=duration),
                SmartSchedulingOptions(
                    optimize_for=OptimizationGoal(optimize_for)
                ),
            )
    except SchedulingError as e:
        raise click.UsageError(str(e))

    if as_json:
        payload = {"report": report.model_dump(mode="json")}
        if suggestions is not None:
            payload["suggestions"] = [
                s.model_dump(mode="json") for s in suggestions
            ]
        click.echo(json.dumps(payload, indent=2))
        return

    _echo_report(report, suggestions, title, duration, time_zone)


if __name__ == "__main__":
    main()
