"""
Calendar partitioning of intervals into day or week buckets.

Rules:
- Buckets are gapless: every period between the first and the last one is
  emitted, empty or not.
- Weeks start on Sunday.
- An interval overlapping several periods is listed, unmodified, in each of
  them. Clipping to the period is done by whoever sums minutes.
- Open intervals end at `now`, for overlap purposes only.
"""

from __future__ import annotations

import enum
import logging
from datetime import date, datetime, timedelta
from typing import Iterable, Iterator, List, Optional, Tuple

from .parser import Interval
from .timecodec import Clock

logger = logging.getLogger(__name__)


class Period(enum.Enum):
    DAY = 1
    WEEK = 7

    @property
    def span(self) -> timedelta:
        return timedelta(days=self.value)


# ---------------------------
# Minute arithmetic
# ---------------------------

def end_of(interval: Interval, now: datetime) -> datetime:
    if interval.stop is None:
        return now
    return interval.stop.instant


def minutes_between(interval: Interval, lo: datetime, hi: datetime, now: datetime) -> int:
    """Whole minutes of `interval` that fall inside [lo, hi)."""
    a = max(interval.start.instant, lo)
    b = min(end_of(interval, now), hi)
    if b <= a:
        return 0
    return int((b - a).total_seconds() // 60)


def interval_minutes(interval: Interval, now: datetime) -> int:
    seconds = (end_of(interval, now) - interval.start.instant).total_seconds()
    return max(int(seconds // 60), 0)


def total_minutes(intervals: Iterable[Interval], lo: datetime, hi: datetime, now: datetime) -> int:
    return sum(minutes_between(i, lo, hi, now) for i in intervals)


def overlaps(interval: Interval, lo: datetime, hi: datetime, now: datetime) -> bool:
    start = interval.start.instant
    end = max(end_of(interval, now), start)
    # zero-length intervals belong to the period they sit in
    return start < hi and (end > lo or start >= lo)


# ---------------------------
# Period bounds
# ---------------------------

def period_start(day: date, period: Period) -> date:
    if period is Period.WEEK:
        return day - timedelta(days=(day.weekday() + 1) % 7)
    return day


def period_bounds(start: date, period: Period, clock: Clock) -> Tuple[datetime, datetime]:
    return clock.midnight(start), clock.midnight(start + period.span)


def local_date(instant: datetime, clock: Clock) -> date:
    return clock.to_local(instant).date()


def today_range(now: datetime, clock: Clock) -> Tuple[datetime, datetime]:
    start = clock.midnight(local_date(now, clock))
    return start, now


def week_range(now: datetime, clock: Clock) -> Tuple[datetime, datetime]:
    start = clock.midnight(period_start(local_date(now, clock), Period.WEEK))
    return start, now


# ---------------------------
# Partitioning
# ---------------------------

def partition(
    intervals: Iterable[Interval],
    period: Period,
    now: datetime,
    clock: Clock,
    first: Optional[date] = None,
    last: Optional[date] = None,
) -> Iterator[Tuple[date, List[Interval]]]:
    """Yield (period_start, intervals overlapping that period) in order.

    Without `first`, iteration starts at the period holding the first
    interval; without `last`, it ends once every interval has been passed.
    Intervals are expected in file order; one that starts before the current
    period when it is reached only counts where it still overlaps.
    """
    source = iter(intervals)
    upcoming = next(source, None)
    if first is None:
        if upcoming is None:
            return
        first = local_date(upcoming.start.instant, clock)
    current = period_start(first, period)
    logger.debug("partitioning by %s from %s", period.name.lower(), current)

    pending: List[Interval] = []
    while True:
        if last is not None:
            if current > last:
                return
        elif upcoming is None and not pending:
            return

        lo, hi = period_bounds(current, period, clock)
        while upcoming is not None and upcoming.start.instant < hi:
            pending.append(upcoming)
            upcoming = next(source, None)

        yield current, [i for i in pending if overlaps(i, lo, hi, now)]

        pending = [i for i in pending if end_of(i, now) > hi]
        current += period.span
