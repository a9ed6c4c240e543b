"""
pandas views of the log for export and charts.

- daily_frame: one row per calendar day (gapless), minutes clipped to the day
- weekly_totals: minutes per week, weeks starting on Sunday
- write_csv: week_start,minutes rows
"""

from __future__ import annotations

from datetime import datetime
from typing import IO, Iterable, Union

import pandas as pd

from .parser import Interval
from .periods import Period, minutes_between, partition, period_bounds, period_start
from .timecodec import Clock

WEEKDAYS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
DAILY_COLUMNS = ["date", "week_start", "weekday", "minutes", "segments"]


def daily_frame(intervals: Iterable[Interval], now: datetime, clock: Clock) -> pd.DataFrame:
    rows = []
    for day, entries in partition(intervals, Period.DAY, now, clock):
        lo, hi = period_bounds(day, Period.DAY, clock)
        rows.append(
            {
                "date": day.isoformat(),
                "week_start": period_start(day, Period.WEEK).isoformat(),
                "weekday": WEEKDAYS[(day.weekday() + 1) % 7],
                "minutes": sum(minutes_between(i, lo, hi, now) for i in entries),
                "segments": len(entries),
            }
        )
    return pd.DataFrame(rows, columns=DAILY_COLUMNS)


def weekly_totals(df: pd.DataFrame) -> pd.DataFrame:
    if df.empty:
        return pd.DataFrame(columns=["week_start", "minutes"])
    g = df.groupby("week_start", sort=True)["minutes"].sum().astype(int).reset_index()
    return g[["week_start", "minutes"]]


def write_csv(df: pd.DataFrame, out: Union[str, IO[str]], header: bool = False) -> None:
    weekly_totals(df).to_csv(out, index=False, header=header)
