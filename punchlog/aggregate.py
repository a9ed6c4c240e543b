"""
Weekly totals and distribution statistics.

For each week bucket:
- fewer than 2 intervals: total minutes over the 7-day window only;
- otherwise the week is split into days, every interval is clipped to each
  day it touches (one "segment" per interval per day), and
  min/mean/max/stddev plus one sparkline symbol per segment are computed.

Integer arithmetic throughout: mean is total // segments, stddev is
isqrt(sum((x - mean) ** 2) // (segments - 1)).
"""

from __future__ import annotations

import dataclasses as dc
import math
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Sequence, Tuple, TypeVar

from .parser import Interval
from .periods import Period, minutes_between, partition, period_bounds
from .timecodec import Clock

T = TypeVar("T")

DEFAULT_SPARKS = ["▁", "▂", "▃", "▄", "▅", "▆", "▇"]

# upper bound for a single segment: one week of minutes
_WEEK_MINUTES = 7 * 24 * 60


@dc.dataclass(frozen=True)
class Analysis:
    min: int
    mean: int
    max: int
    stddev: int
    sparks: List[List[str]]


@dc.dataclass(frozen=True)
class PeriodSummary:
    start: date
    minutes: int
    segments: int
    analysis: Optional[Analysis] = None


def spark_for(minutes: int, max_minutes: int, sparks: Sequence[T]) -> T:
    if max_minutes <= 0:
        return sparks[-1]
    i = minutes * len(sparks) // max_minutes
    if i >= len(sparks):
        return sparks[-1]
    return sparks[i]


def day_segments(
    week_start: date,
    intervals: List[Interval],
    now: datetime,
    clock: Clock,
) -> List[List[int]]:
    """Minutes per interval per day of the week; days without activity are dropped."""
    last = week_start + timedelta(days=6)
    out: List[List[int]] = []
    for day, entries in partition(intervals, Period.DAY, now, clock, first=week_start, last=last):
        if not entries:
            continue
        lo, hi = period_bounds(day, Period.DAY, clock)
        out.append([minutes_between(i, lo, hi, now) for i in entries])
    return out


def summarize_week(
    week_start: date,
    intervals: List[Interval],
    sparks: Sequence[str],
    now: datetime,
    clock: Clock,
) -> PeriodSummary:
    if len(intervals) < 2:
        lo, hi = period_bounds(week_start, Period.WEEK, clock)
        minutes = sum(minutes_between(i, lo, hi, now) for i in intervals)
        return PeriodSummary(week_start, minutes, len(intervals))

    by_day = day_segments(week_start, intervals, now, clock)
    values = [m for day in by_day for m in day]
    segments = len(values)
    total = sum(values)
    if segments < 2:
        return PeriodSummary(week_start, total, segments)

    mean = total // segments
    lowest, highest, sumsq = _WEEK_MINUTES, 0, 0
    for m in values:
        lowest = min(lowest, m)
        highest = max(highest, m)
        sumsq += (m - mean) ** 2
    stddev = math.isqrt(sumsq // (segments - 1))
    analysis = Analysis(
        min=lowest,
        mean=mean,
        max=highest,
        stddev=stddev,
        sparks=[[spark_for(m, highest, sparks) for m in day] for day in by_day],
    )
    return PeriodSummary(week_start, total, segments, analysis)


def aggregate(
    partitioned: Iterable[Tuple[date, List[Interval]]],
    sparks: Sequence[str],
    now: datetime,
    clock: Clock,
) -> List[PeriodSummary]:
    """Summaries for week buckets produced by `partition(..., Period.WEEK, ...)`."""
    return [summarize_week(start, entries, sparks, now, clock) for start, entries in partitioned]


def weekly_summaries(
    intervals: Iterable[Interval],
    now: datetime,
    clock: Clock,
    sparks: Sequence[str] = DEFAULT_SPARKS,
) -> List[PeriodSummary]:
    return aggregate(partition(intervals, Period.WEEK, now, clock), sparks, now, clock)
