"""
Tests for the time arithmetic helpers.
"""

import logging
from datetime import date, datetime, time, timedelta, timezone

import pytest
from hypothesis import given, strategies as st
from hypothesis.strategies import composite

from planner.errors import InvalidInterval, UnboundedExpansionWindow
from planner.timeutils import (
    clip_interval,
    contains,
    duration_minutes,
    ensure_aware,
    ensure_window,
    generate_slots,
    get_zone,
    local_days,
    merge_intervals,
    overlaps,
    parse_hhmm,
    subtract_intervals,
    weekday_index,
)
from planner.tests.factories import at


@composite
def interval_strategy(draw):
    """Generate valid half-open intervals within one week."""
    start = draw(
        st.datetimes(
            min_value=datetime(2024, 1, 1),
            max_value=datetime(2024, 1, 7),
            timezones=st.just(timezone.utc),
        )
    )
    minutes = draw(st.integers(min_value=1, max_value=24 * 60))
    return start, start + timedelta(minutes=minutes)


class TestOverlaps:
    @given(interval_strategy(), interval_strategy())
    def test_overlap_is_symmetric(self, a, b) -> None:
        assert overlaps(*a, *b) == overlaps(*b, *a)

    @given(interval_strategy(), st.integers(min_value=1, max_value=600))
    def test_touching_intervals_do_not_overlap(self, a, minutes) -> None:
        b = (a[1], a[1] + timedelta(minutes=minutes))
        assert not overlaps(*a, *b)
        assert not overlaps(*b, *a)

    @given(interval_strategy())
    def test_interval_overlaps_itself(self, a) -> None:
        assert overlaps(*a, *a)

    def test_partial_overlap(self) -> None:
        assert overlaps(at(9), at(10), at(9, 30), at(10, 30))

    def test_contains(self) -> None:
        assert contains((at(9), at(17)), (at(10), at(11)))
        assert contains((at(9), at(17)), (at(9), at(17)))
        assert not contains((at(9), at(17)), (at(16), at(18)))


class TestDuration:
    def test_duration_in_minutes(self) -> None:
        assert duration_minutes(at(9), at(10, 30)) == 90

    def test_fractional_minutes(self) -> None:
        assert duration_minutes(at(9), at(9) + timedelta(seconds=30)) == 0.5

    @pytest.mark.parametrize("end_hour", [9, 8])
    def test_empty_or_reversed_interval_raises(self, end_hour: int) -> None:
        with pytest.raises(InvalidInterval):
            duration_minutes(at(9), at(end_hour))


class TestGenerateSlots:
    def test_slots_cover_window_on_step_grid(self) -> None:
        slots = list(generate_slots(at(9), at(11), 30))
        assert slots == [at(9), at(9, 30), at(10), at(10, 30)]

    def test_last_slot_is_before_window_end(self) -> None:
        slots = list(generate_slots(at(9), at(10, 10), 30))
        assert slots[-1] == at(10)

    def test_restartable(self) -> None:
        first = list(generate_slots(at(9), at(12), 45))
        second = list(generate_slots(at(9), at(12), 45))
        assert first == second

    def test_empty_window_raises_eagerly(self) -> None:
        with pytest.raises(InvalidInterval):
            generate_slots(at(10), at(9), 30)

    def test_non_positive_step_raises_eagerly(self) -> None:
        with pytest.raises(ValueError):
            generate_slots(at(9), at(10), 0)


class TestIntervalSets:
    def test_merge_coalesces_overlapping_and_touching(self) -> None:
        merged = merge_intervals(
            [(at(11), at(12)), (at(9), at(10)), (at(10), at(10, 30)),
             (at(11, 30), at(13))]
        )
        assert merged == [(at(9), at(10, 30)), (at(11), at(13))]

    def test_merge_keeps_contained_interval_inside(self) -> None:
        assert merge_intervals([(at(9), at(12)), (at(10), at(11))]) == [
            (at(9), at(12))
        ]

    def test_subtract_returns_gaps(self) -> None:
        remaining = subtract_intervals(
            (at(9), at(17)), [(at(10), at(11)), (at(16), at(18))]
        )
        assert remaining == [(at(9), at(10)), (at(11), at(16))]

    def test_subtract_nothing_returns_base(self) -> None:
        assert subtract_intervals((at(9), at(17)), []) == [(at(9), at(17))]

    def test_subtract_everything_returns_empty(self) -> None:
        assert subtract_intervals((at(9), at(17)), [(at(8), at(18))]) == []

    def test_clip(self) -> None:
        assert clip_interval((at(8), at(10)), (at(9), at(17))) == (
            at(9),
            at(10),
        )
        assert clip_interval((at(7), at(8)), (at(9), at(17))) is None


class TestParsing:
    @pytest.mark.parametrize(
        "value,expected",
        [("09:00", time(9, 0)), ("23:59", time(23, 59)), ("00:00", time(0))],
    )
    def test_parse_hhmm(self, value: str, expected: time) -> None:
        assert parse_hhmm(value) == expected

    @pytest.mark.parametrize("value", ["9:00", "24:00", "12:60", "noon", ""])
    def test_parse_hhmm_rejects_bad_input(self, value: str) -> None:
        with pytest.raises(ValueError):
            parse_hhmm(value)

    def test_weekday_index_starts_on_sunday(self) -> None:
        assert weekday_index(date(2023, 12, 31)) == 0  # Sunday
        assert weekday_index(date(2024, 1, 1)) == 1  # Monday
        assert weekday_index(date(2024, 1, 6)) == 6  # Saturday

    def test_unknown_zone(self) -> None:
        with pytest.raises(ValueError, match="Unknown time zone"):
            get_zone("Mars/Olympus_Mons")


class TestWindows:
    def test_naive_datetime_becomes_utc_with_warning(self, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="planner.timeutils"):
            value = ensure_aware(datetime(2024, 1, 1, 9))
        assert value.tzinfo == timezone.utc
        assert "naive datetime" in caplog.text

    def test_aware_datetime_untouched(self) -> None:
        assert ensure_aware(at(9)) == at(9)

    def test_window_too_wide(self) -> None:
        with pytest.raises(UnboundedExpansionWindow):
            ensure_window(at(0), at(0) + timedelta(days=3), timedelta(days=2))

    def test_empty_window(self) -> None:
        with pytest.raises(InvalidInterval):
            ensure_window(at(10), at(10))

    def test_local_days_respects_zone(self) -> None:
        tz = get_zone("America/New_York")
        # 2024-01-01 00:00 UTC is still Dec 31 in New York
        days = list(local_days(at(0), at(12), tz))
        assert days == [date(2023, 12, 31), date(2024, 1, 1)]

    def test_local_days_excludes_exclusive_end(self) -> None:
        tz = get_zone("UTC")
        days = list(local_days(at(0), at(0) + timedelta(days=1), tz))
        assert days == [date(2024, 1, 1)]
