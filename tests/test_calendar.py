"""Tests for WorkerCalendar slot finding."""

from datetime import date, datetime, time, timedelta

import pytest

from diyplan.scheduler import PlanningMode, SiteConstraints, TimeRange, WorkerCalendar
from diyplan.scheduler.calendar import duration_to_minutes
from diyplan.workers import AvailabilityException, BlackoutPeriod, TimeWindow
from tests.conftest import MONDAY, MONDAY_9AM, make_worker


def at(day_offset: int, hour: int, minute: int = 0) -> datetime:
    """Datetime relative to Monday 2025-01-06."""
    return MONDAY + timedelta(days=day_offset, hours=hour, minutes=minute)


class TestDetailedMode:
    """Minute-level slots."""

    def test_slot_at_start_of_window(self) -> None:
        calendar = WorkerCalendar(make_worker())
        assert calendar.next_available_slot(MONDAY_9AM, 2) == TimeRange(at(0, 9), at(0, 11))

    def test_not_before_rounds_up_to_the_minute(self) -> None:
        calendar = WorkerCalendar(make_worker())
        slot = calendar.next_available_slot(at(0, 10, 17) + timedelta(seconds=30), 1)
        assert slot == TimeRange(at(0, 10, 18), at(0, 11, 18))

    def test_before_working_hours_moves_to_window_start(self) -> None:
        calendar = WorkerCalendar(make_worker())
        assert calendar.next_available_slot(at(0, 6), 1) == TimeRange(at(0, 9), at(0, 10))

    def test_long_task_spans_days(self) -> None:
        """Work continues in the next window; off-hours in between don't count."""
        calendar = WorkerCalendar(make_worker())
        assert calendar.next_available_slot(MONDAY_9AM, 10) == TimeRange(at(0, 9), at(1, 11))

    def test_friday_task_continues_after_weekend(self) -> None:
        calendar = WorkerCalendar(make_worker())
        slot = calendar.next_available_slot(at(4, 16), 2)
        assert slot == TimeRange(at(4, 16), at(7, 10))

    def test_booked_slot_is_skipped(self) -> None:
        calendar = WorkerCalendar(make_worker())
        calendar.reserve(TimeRange(at(0, 9), at(0, 12)))

        assert calendar.next_available_slot(MONDAY_9AM, 2) == TimeRange(at(0, 12), at(0, 14))
        assert calendar.bookings == [TimeRange(at(0, 9), at(0, 12))]

    def test_blackout_pushes_slot_past_it(self) -> None:
        worker = make_worker(
            blackouts=[BlackoutPeriod(start=at(0, 10), end=at(0, 12))],
        )
        calendar = WorkerCalendar(worker)
        assert calendar.next_available_slot(MONDAY_9AM, 2) == TimeRange(at(0, 12), at(0, 14))

    def test_global_blackout_with_bare_dates_covers_whole_days(self) -> None:
        holiday = BlackoutPeriod(start=date(2025, 1, 6), end=date(2025, 1, 7))
        calendar = WorkerCalendar(make_worker(), global_blackouts=[holiday])

        assert calendar.next_available_slot(MONDAY_9AM, 1) == TimeRange(at(2, 9), at(2, 10))

    def test_exception_replaces_weekly_windows(self) -> None:
        worker = make_worker(
            exceptions=[
                AvailabilityException(day=date(2025, 1, 6)),
                AvailabilityException(
                    day=date(2025, 1, 11), windows=[TimeWindow(start=time(8), end=time(10))]
                ),
            ],
        )
        calendar = WorkerCalendar(worker)

        # Monday is a day off, Saturday gets extra hours
        assert calendar.next_available_slot(MONDAY_9AM, 1) == TimeRange(at(1, 9), at(1, 10))
        assert calendar.next_available_slot(at(5, 0), 1) == TimeRange(at(5, 8), at(5, 9))

    def test_min_contiguous_hours_skips_short_windows(self) -> None:
        calendar = WorkerCalendar(make_worker(windows=((9, 11), (13, 17))))

        split = calendar.next_available_slot(MONDAY_9AM, 3)
        whole = calendar.next_available_slot(MONDAY_9AM, 3, min_contiguous_hours=3)

        assert split == TimeRange(at(0, 9), at(0, 14))
        assert whole == TimeRange(at(0, 13), at(0, 16))

    def test_no_availability_returns_none(self) -> None:
        calendar = WorkerCalendar(make_worker(days=[]), horizon_days=14)
        assert calendar.next_available_slot(MONDAY_9AM, 1) is None

    def test_horizon_limits_search(self) -> None:
        calendar = WorkerCalendar(make_worker(), horizon_days=2)
        # Two working days hold 16 hours at most
        assert calendar.next_available_slot(MONDAY_9AM, 20) is None
        assert calendar.next_available_slot(MONDAY_9AM, 16) is not None

    def test_until_caps_search(self) -> None:
        calendar = WorkerCalendar(make_worker())
        assert calendar.next_available_slot(MONDAY_9AM, 4, until=at(0, 12)) is None
        assert calendar.next_available_slot(MONDAY_9AM, 3, until=at(0, 12)) == TimeRange(
            at(0, 9), at(0, 12)
        )

    def test_copy_is_independent(self) -> None:
        calendar = WorkerCalendar(make_worker())
        clone = calendar.copy()
        clone.reserve(TimeRange(at(0, 9), at(0, 17)))

        assert calendar.next_available_slot(MONDAY_9AM, 1) == TimeRange(at(0, 9), at(0, 10))
        assert clone.next_available_slot(MONDAY_9AM, 1) == TimeRange(at(1, 9), at(1, 10))


class TestDayModes:
    """Day-granular modes: a day's work starts at its first window."""

    def test_standard_resumes_where_earlier_work_ends(self) -> None:
        calendar = WorkerCalendar(make_worker(), mode=PlanningMode.STANDARD)
        slot = calendar.next_available_slot(at(0, 10), 2)
        assert slot == TimeRange(at(0, 10), at(0, 12))

    def test_standard_fills_the_rest_of_a_booked_day(self) -> None:
        calendar = WorkerCalendar(make_worker(), mode=PlanningMode.STANDARD)
        for hour in (9, 10, 11):
            slot = calendar.next_available_slot(MONDAY_9AM, 1)
            assert slot == TimeRange(at(0, hour), at(0, hour + 1))
            calendar.reserve(slot)

    def test_standard_skips_to_next_day_when_rest_of_day_is_too_short(self) -> None:
        calendar = WorkerCalendar(
            make_worker(windows=((9, 12), (13, 17))), mode=PlanningMode.STANDARD
        )
        calendar.reserve(TimeRange(at(0, 9), at(0, 10)))

        slot = calendar.next_available_slot(MONDAY_9AM, 3, min_contiguous_hours=3)
        assert slot == TimeRange(at(1, 9), at(1, 12))

        # Detailed mode uses the later window on the same day instead
        detailed = WorkerCalendar(make_worker(windows=((9, 12), (13, 17))))
        detailed.reserve(TimeRange(at(0, 9), at(0, 10)))
        assert detailed.next_available_slot(MONDAY_9AM, 3, min_contiguous_hours=3) == TimeRange(
            at(0, 13), at(0, 16)
        )

    def test_standard_uses_first_long_enough_window_of_a_day(self) -> None:
        calendar = WorkerCalendar(
            make_worker(windows=((9, 11), (13, 17))), mode=PlanningMode.STANDARD
        )
        slot = calendar.next_available_slot(MONDAY_9AM, 3, min_contiguous_hours=3)
        assert slot == TimeRange(at(0, 13), at(0, 16))

    def test_standard_ends_exactly(self) -> None:
        calendar = WorkerCalendar(make_worker(), mode=PlanningMode.STANDARD)
        assert calendar.next_available_slot(MONDAY_9AM, 2) == TimeRange(at(0, 9), at(0, 11))

    def test_quick_starts_next_working_day(self) -> None:
        calendar = WorkerCalendar(make_worker(), mode=PlanningMode.QUICK)
        slot = calendar.next_available_slot(at(0, 10), 2)
        assert slot == TimeRange(at(1, 9), at(1, 17))

    def test_booked_day_moves_to_next_day(self) -> None:
        calendar = WorkerCalendar(make_worker(), mode=PlanningMode.QUICK)
        calendar.reserve(TimeRange(at(0, 9), at(0, 17)))
        assert calendar.next_available_slot(MONDAY_9AM, 2) == TimeRange(at(1, 9), at(1, 17))


class TestSiteConstraints:
    """Site rules applied on top of worker availability."""

    def test_night_hours_are_clipped_by_default(self) -> None:
        calendar = WorkerCalendar(make_worker(windows=((5, 23),)))
        assert calendar.working_windows(date(2025, 1, 6)) == [(at(0, 7), at(0, 22))]

    def test_night_work_allowed(self) -> None:
        calendar = WorkerCalendar(
            make_worker(windows=((5, 23),)), site=SiteConstraints(allow_night_work=True)
        )
        assert calendar.working_windows(date(2025, 1, 6)) == [(at(0, 5), at(0, 23))]

    def test_weekends_only(self) -> None:
        calendar = WorkerCalendar(
            make_worker(days=range(7)), site=SiteConstraints(weekends_only=True)
        )
        assert calendar.next_available_slot(MONDAY_9AM, 1) == TimeRange(at(5, 9), at(5, 10))

    def test_noise_curfew_cuts_the_day_short(self) -> None:
        calendar = WorkerCalendar(make_worker())
        slot = calendar.next_available_slot(MONDAY_9AM, 4, latest_end=time(12))
        assert slot == TimeRange(at(0, 9), at(1, 10))

    def test_overlapping_windows_count_once(self) -> None:
        calendar = WorkerCalendar(make_worker(windows=((9, 13), (12, 17))))
        assert calendar.working_windows(date(2025, 1, 6)) == [(at(0, 9), at(0, 17))]


@pytest.mark.parametrize(
    ("hours", "minutes"),
    [(1.0, 60), (0.5, 30), (1 / 3, 20), (0.01, 1), (2.345, 141)],
)
def test_duration_to_minutes_rounds_up(hours: float, minutes: int) -> None:
    assert duration_to_minutes(hours) == timedelta(minutes=minutes)
