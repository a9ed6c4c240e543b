"""
Plain-text reports built on the partitioner and the aggregator.

- status: WORKING / NOT working
- since: minutes worked today or since the start of the week
- all: one line per week with segment statistics and sparklines
- days: per-day minutes per week, with month and year roll-ups
- pto: worked vs. paid-time-off minutes per week, yearly PTO totals
- short: count and share of short intervals per week
- punchcard: per-week grid of sparks, one per slice of each day
"""

from __future__ import annotations

import math
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .aggregate import PeriodSummary, weekly_summaries
from .parser import Interval
from .periods import Period, interval_minutes, minutes_between, partition, period_bounds, total_minutes
from .timecodec import Clock

DATE_FORMAT = "%Y-%m-%d"
SIX_DAYS = timedelta(days=6)


def _df(day: date) -> str:
    return day.strftime(DATE_FORMAT)


# ---------------------------
# Status and running totals
# ---------------------------

def status_line(working: bool, week_minutes: Optional[int] = None) -> str:
    text = "WORKING" if working else "NOT working"
    if week_minutes is not None:
        text += f" ({week_minutes})"
    return text


def since_line(minutes: int, period_description: str) -> str:
    if minutes == 0:
        return f"You have not worked {period_description}."
    return f"You have worked for {minutes} minutes {period_description}."


def minutes_in_range(intervals: Iterable[Interval], rng: Tuple[datetime, datetime], now: datetime) -> int:
    return total_minutes(intervals, rng[0], rng[1], now)


# ---------------------------
# all
# ---------------------------

def all_line(summary: PeriodSummary) -> str:
    line = f"{_df(summary.start)} - {_df(summary.start + SIX_DAYS)}   {summary.minutes:4d} min"
    a = summary.analysis
    if a is None:
        return line
    spark = "  ".join("".join(str(s) for s in day) for day in a.sparks)
    return (
        f"{line} {summary.segments:4d} segments  "
        f"min/avg/max/stddev={a.min:3d}/{a.mean:3d}/{a.max:3d}/{a.stddev:3d}  {spark}"
    )


def all_report(intervals: Iterable[Interval], sparks: Sequence[str], now: datetime, clock: Clock) -> str:
    return "".join(all_line(s) + "\n" for s in weekly_summaries(intervals, now, clock, sparks))


# ---------------------------
# days
# ---------------------------

def week_day_minutes(week_start: date, intervals: List[Interval], now: datetime, clock: Clock) -> List[int]:
    minutes = [0] * 7
    last = week_start + SIX_DAYS
    for day, entries in partition(intervals, Period.DAY, now, clock, first=week_start, last=last):
        lo, hi = period_bounds(day, Period.DAY, clock)
        minutes[(day - week_start).days] = sum(minutes_between(i, lo, hi, now) for i in entries)
    return minutes


def days_row(label: str, minutes: Sequence[int]) -> str:
    cells = "".join(f"| {m:5d} " if m > 0 else "|       " for m in minutes)
    return f"{label:<23} |{cells}|| {sum(minutes):6d}"


def _accum(total: List[int], minutes: Sequence[int]) -> None:
    for i, m in enumerate(minutes):
        total[i] += m


def days_report(intervals: Iterable[Interval], now: datetime, clock: Clock) -> str:
    lines: List[str] = []
    year: Optional[int] = None
    month: Optional[int] = None
    year_tot = [0] * 7
    month_tot = [0] * 7

    for week_start, entries in partition(intervals, Period.WEEK, now, clock):
        if year is not None and (week_start.year, week_start.month) != (year, month):
            lines.append(days_row(f"{year:04d}-{month:02d}", month_tot))
            month_tot = [0] * 7
            if week_start.year != year:
                lines.append(days_row(f"{year:04d}", year_tot))
                year_tot = [0] * 7
        year, month = week_start.year, week_start.month

        minutes = week_day_minutes(week_start, entries, now, clock)
        lines.append(days_row(f"{_df(week_start)} - {_df(week_start + SIX_DAYS)}", minutes))
        _accum(month_tot, minutes)
        _accum(year_tot, minutes)

    if year is not None:
        lines.append(days_row(f"{year:04d}-{month:02d}", month_tot))
        lines.append(days_row(f"{year:04d}", year_tot))
    return "".join(line + "\n" for line in lines)


# ---------------------------
# pto
# ---------------------------

def pto_report(intervals: Iterable[Interval], full_week: int, now: datetime, clock: Clock) -> str:
    lines: List[str] = []
    years: Dict[int, int] = defaultdict(int)
    for week_start, entries in partition(intervals, Period.WEEK, now, clock):
        lo, hi = period_bounds(week_start, Period.WEEK, clock)
        worked = total_minutes(entries, lo, hi, now)
        pto = max(0, full_week - worked)
        lines.append(f"{_df(week_start)} work={worked:4d} pto={pto:4d}")
        years[week_start.year] += pto

    if years:
        lines.append("")
        for y in sorted(years):
            lines.append(f"{y} total_pto={years[y]:5d} days={years[y] // 60 // 8:3d}")
    return "".join(line + "\n" for line in lines)


# ---------------------------
# short
# ---------------------------

def short_graph(short_minutes: int, all_minutes: int, step: int = 100) -> str:
    """One character per `step` minutes: '.' for short intervals, '|' for the rest."""
    all_bars = 1 + (all_minutes - 1) // step
    short_bars = 1 + (short_minutes - 1) // step
    return "." * short_bars + "|" * (all_bars - short_bars)


def short_report(
    intervals: Iterable[Interval],
    limit: int,
    now: datetime,
    clock: Clock,
    step: int = 100,
) -> str:
    """Per week, how many intervals lasted `limit` minutes or less and their share of the time."""
    lines: List[str] = []
    worked = [i for i in intervals if interval_minutes(i, now) > 0]
    for week_start, entries in partition(worked, Period.WEEK, now, clock):
        lengths = [interval_minutes(i, now) for i in entries]
        short = [m for m in lengths if m <= limit]
        short_minutes, all_minutes = sum(short), sum(lengths)
        lines.append(
            f"{_df(week_start)} - {_df(week_start + SIX_DAYS)}   {len(short):3d}/{len(lengths):3d}  "
            f"({short_minutes:5d}/{all_minutes:5d} minutes)  {short_graph(short_minutes, all_minutes, step)}"
        )
    return "".join(line + "\n" for line in lines)


# ---------------------------
# punchcard
# ---------------------------

def punch_symbol(minutes: int, bucket_minutes: float, sparks: Sequence[str], zero: str) -> str:
    # sparks[0] fills both the lowest and the second-lowest slot
    if minutes == 0:
        return zero
    symbols = [sparks[0], *sparks]
    top = len(symbols) - 1
    return symbols[min(math.floor(top * minutes / bucket_minutes + 0.5), top)]


def punch_card_report(
    intervals: Iterable[Interval],
    sparks: Sequence[str],
    now: datetime,
    clock: Clock,
    per_day: int = 24,
    zero: str = " ",
) -> str:
    """One line per week, one symbol per 1/`per_day` of each day, days between '|'."""
    lines: List[str] = []
    for week_start, entries in partition(intervals, Period.WEEK, now, clock):
        total = 0
        days: List[str] = []
        for offset in range(7):
            lo, hi = period_bounds(week_start + timedelta(days=offset), Period.DAY, clock)
            width = (hi - lo) / per_day
            bucket_minutes = width.total_seconds() / 60
            cells: List[str] = []
            for n in range(per_day):
                end = hi if n == per_day - 1 else lo + width * (n + 1)
                minutes = total_minutes(entries, lo + width * n, end, now)
                total += minutes
                cells.append(punch_symbol(minutes, bucket_minutes, sparks, zero))
            days.append("".join(cells))
        header = f"{_df(week_start)} - {_df(week_start + SIX_DAYS)}   {total:4d} min"
        lines.append(f"{header}|{'|'.join(days)}|")
    return "".join(line + "\n" for line in lines)


# ---------------------------
# Legend
# ---------------------------

def legend(kind: str) -> Optional[str]:
    if kind == "week":
        return " ".join(f"{d * 8}h={d * 8 * 60}m" for d in range(1, 6))
    if kind == "day":
        return f"8h={8 * 60}m"
    return None
