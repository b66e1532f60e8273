"""Worker calendar: availability windows, blackouts and bookings."""

import bisect
import math
from collections.abc import Iterator
from datetime import date, datetime, time, timedelta

from diyplan.logger import get_logger
from diyplan.workers import BlackoutPeriod, WorkerDefinition

from .config import PlanningMode, SiteConstraints
from .core import TimeRange

logger = get_logger()

ONE_MINUTE = timedelta(minutes=1)
SATURDAY = 5


def duration_to_minutes(hours: float) -> timedelta:
    """Convert a duration in hours to whole minutes, rounding up."""
    return timedelta(minutes=math.ceil(round(hours * 60, 6)))


class WorkerCalendar:
    """Tracks when one worker can take on work during a single scheduling run.

    Blackouts and booked tasks are kept together in ``busy_periods``, a list of
    half-open (start, end) intervals that is always sorted by start and never
    overlapping. This enables O(log n) lookups with binary search.

    Each run builds its own calendars, so nothing is shared between runs.
    """

    def __init__(  # noqa: PLR0913 - Keyword-only parameters reduce API complexity
        self,
        worker: WorkerDefinition,
        *,
        mode: PlanningMode = PlanningMode.DETAILED,
        site: SiteConstraints | None = None,
        horizon_days: int = 180,
        global_blackouts: list[BlackoutPeriod] | None = None,
    ) -> None:
        """Initialize from a worker definition.

        Args:
            worker: Worker whose availability and blackouts to use
            mode: Planning granularity used when snapping slots
            site: Job-site rules (night work, weekends only, noise curfew)
            horizon_days: Look-ahead limit for slot searches
            global_blackouts: Project-wide blackouts that apply to every worker
        """
        self.worker = worker
        self.mode = mode
        self.site = site or SiteConstraints()
        self.horizon = timedelta(days=horizon_days)
        self.busy_periods: list[tuple[datetime, datetime]] = self._merge_periods(
            worker.get_blackouts(global_blackouts)
        )
        self.bookings: list[TimeRange] = []
        self._window_cache: dict[tuple[date, time | None], list[tuple[datetime, datetime]]] = {}

    @property
    def worker_id(self) -> str:
        return self.worker.id

    @staticmethod
    def _merge_periods(
        periods: list[tuple[datetime, datetime]],
    ) -> list[tuple[datetime, datetime]]:
        """Merge overlapping or touching periods into a sorted, non-overlapping list."""
        if not periods:
            return []

        sorted_periods = sorted(periods)
        merged: list[tuple[datetime, datetime]] = [sorted_periods[0]]
        for start, end in sorted_periods[1:]:
            last_start, last_end = merged[-1]
            if start <= last_end:
                merged[-1] = (last_start, max(last_end, end))
            else:
                merged.append((start, end))
        return merged

    def copy(self) -> "WorkerCalendar":
        """Create an independent copy with the same blackouts and bookings."""
        new_calendar = WorkerCalendar(
            self.worker,
            mode=self.mode,
            site=self.site,
            horizon_days=self.horizon.days,
        )
        new_calendar.busy_periods = list(self.busy_periods)
        new_calendar.bookings = list(self.bookings)
        # Windows depend only on the worker and site rules
        new_calendar._window_cache = dict(self._window_cache)
        return new_calendar

    def add_busy_period(self, start: datetime, end: datetime) -> None:
        """Add a busy period, merging with existing periods if they overlap or touch."""
        idx = bisect.bisect_left(self.busy_periods, start, key=lambda p: p[0])

        if idx > 0:
            prev_start, prev_end = self.busy_periods[idx - 1]
            if prev_end >= start:
                start = prev_start
                end = max(prev_end, end)
                idx -= 1
                del self.busy_periods[idx]

        while idx < len(self.busy_periods):
            next_start, next_end = self.busy_periods[idx]
            if next_start <= end:
                end = max(end, next_end)
                del self.busy_periods[idx]
            else:
                break

        self.busy_periods.insert(idx, (start, end))

    def reserve(self, slot: TimeRange) -> None:
        """Book a slot for a confirmed task."""
        self.bookings.append(slot)
        self.add_busy_period(slot.start, slot.end)
        logger.debug(f"        {self.worker_id}: booked {slot.start} - {slot.end}")

    def find_busy_overlap(
        self, start: datetime, end: datetime
    ) -> tuple[datetime, datetime] | None:
        """Find the first busy period intersecting [start, end), if any."""
        idx = bisect.bisect_right(self.busy_periods, start, key=lambda p: p[1])
        if idx < len(self.busy_periods):
            busy_start, busy_end = self.busy_periods[idx]
            if busy_start < end:
                return (busy_start, busy_end)
        return None

    def working_windows(
        self, day: date, latest_end: time | None = None
    ) -> list[tuple[datetime, datetime]]:
        """Get the working windows of a calendar date after applying site rules.

        Args:
            day: Calendar date
            latest_end: Optional time of day the work must stop by (noise curfew)

        Returns:
            Sorted list of (start, end) datetimes
        """
        cache_key = (day, latest_end)
        if cache_key in self._window_cache:
            return self._window_cache[cache_key]

        windows: list[tuple[datetime, datetime]] = []
        if not (self.site.weekends_only and day.weekday() < SATURDAY):
            for start, end in self.worker.windows_for(day):
                if not self.site.allow_night_work:
                    start = max(start, self.site.day_start)
                    end = min(end, self.site.day_end)
                if latest_end is not None:
                    end = min(end, latest_end)
                if end > start:
                    windows.append((datetime.combine(day, start), datetime.combine(day, end)))

        # Overlapping or touching windows count once
        windows = self._merge_periods(windows)
        self._window_cache[cache_key] = windows
        return windows

    def _iter_windows(
        self, start: datetime, limit: datetime, latest_end: time | None
    ) -> Iterator[tuple[datetime, datetime]]:
        """Yield working windows ending after ``start``, up to ``limit``."""
        day = start.date()
        while day <= limit.date():
            for window_start, window_end in self.working_windows(day, latest_end):
                if window_end > start and window_start < limit:
                    yield (window_start, min(window_end, limit))
            day += timedelta(days=1)

    def _snap_start(
        self, moment: datetime, limit: datetime, latest_end: time | None, *, resume: bool = False
    ) -> datetime | None:
        """Find the earliest allowed start at or after ``moment``.

        Detailed mode starts at any working minute. Standard mode starts at the
        beginning of a working day, or with ``resume`` where earlier work on that
        day (a booking, a blackout or a predecessor) left off. Quick mode only
        starts at the beginning of a working day.
        """
        if self.mode == PlanningMode.DETAILED or (resume and self.mode == PlanningMode.STANDARD):
            for window_start, window_end in self._iter_windows(moment, limit, latest_end):
                candidate = _ceil_minute(max(window_start, moment))
                if candidate < window_end:
                    return candidate
            return None

        day = moment.date()
        while day <= limit.date():
            windows = self.working_windows(day, latest_end)
            if windows and moment <= windows[0][0] < limit:
                return windows[0][0]
            day += timedelta(days=1)
        return None

    def _consume(  # noqa: PLR0913 - Internal helper mirrors next_available_slot
        self,
        start: datetime,
        work: timedelta,
        limit: datetime,
        latest_end: time | None,
        min_contiguous: timedelta,
    ) -> tuple[datetime, datetime] | None:
        """Walk working windows from ``start`` until ``work`` is used up.

        Working pieces shorter than ``min_contiguous`` (or the remaining work, if
        smaller) are skipped.

        Returns:
            (first working instant used, end) or None if the limit is reached
        """
        remaining = work
        first_used: datetime | None = None

        for window_start, window_end in self._iter_windows(start, limit, latest_end):
            piece_start = max(window_start, start)
            piece = window_end - piece_start
            if piece <= timedelta(0) or piece < min(min_contiguous, remaining):
                continue

            if first_used is None:
                first_used = piece_start
            if piece >= remaining:
                end = piece_start + remaining
                if self.mode == PlanningMode.QUICK:
                    end = self._end_of_working_day(end, latest_end)
                return (first_used, end)
            remaining -= piece

        return None

    def _starts_working_day(
        self, start: datetime, candidate: datetime, latest_end: time | None
    ) -> bool:
        """Whether ``start`` is the first usable piece of the candidate's working day.

        True when ``candidate`` is the first window of its day and only windows
        too short for the task were skipped on that same day.
        """
        windows = self.working_windows(candidate.date(), latest_end)
        return bool(windows) and candidate == windows[0][0] and start.date() == candidate.date()

    def _end_of_working_day(self, moment: datetime, latest_end: time | None) -> datetime:
        """Round up to the end of the last working window on the same day."""
        windows = self.working_windows(moment.date(), latest_end)
        return max([moment, *(end for _, end in windows)])

    def next_available_slot(
        self,
        not_before: datetime,
        duration_hours: float,
        *,
        min_contiguous_hours: float = 0.0,
        latest_end: time | None = None,
        until: datetime | None = None,
    ) -> TimeRange | None:
        """Find the earliest slot that fits a task of the given duration.

        The slot spans consecutive working windows (off-hours in between are
        fine) and must not intersect any blackout or booking.

        Args:
            not_before: Earliest allowed start
            duration_hours: Working hours the task needs
            min_contiguous_hours: Shortest working block the task may use
            latest_end: Optional time of day work must stop by
            until: Optional moment the slot must end by, on top of the horizon

        Returns:
            TimeRange of the slot, or None if nothing fits within the horizon
        """
        limit = not_before + self.horizon
        if until is not None:
            limit = min(limit, until)
        work = duration_to_minutes(duration_hours)
        min_contiguous = duration_to_minutes(min_contiguous_hours)

        candidate = self._snap_start(not_before, limit, latest_end, resume=True)
        while candidate is not None and candidate < limit:
            consumed = self._consume(candidate, work, limit, latest_end, min_contiguous)
            if consumed is None:
                break
            start, end = consumed

            if (
                self.mode != PlanningMode.DETAILED
                and start != candidate
                and not self._starts_working_day(start, candidate, latest_end)
            ):
                # Work can't continue where it left off; try the next day
                next_day = datetime.combine(candidate.date() + timedelta(days=1), time.min)
                candidate = self._snap_start(next_day, limit, latest_end)
                continue

            blocker = self.find_busy_overlap(start, end)
            if blocker is None:
                return TimeRange(start, end)

            logger.debug(
                f"        {self.worker_id}: {start} - {end} blocked by "
                f"{blocker[0]} - {blocker[1]}"
            )
            candidate = self._snap_start(blocker[1], limit, latest_end, resume=True)

        logger.debug(
            f"        {self.worker_id}: no {duration_hours}h slot before {limit}"
        )
        return None


def _ceil_minute(moment: datetime) -> datetime:
    if moment.second or moment.microsecond:
        return moment.replace(second=0, microsecond=0) + ONE_MINUTE
    return moment
