"""Stacked bar chart of daily hours per week, rendered with the Agg backend."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402

from .frame import WEEKDAYS  # noqa: E402


def plot_weekly_hours(df: pd.DataFrame, out_path: Union[str, Path], weeks: Optional[int] = None) -> Optional[str]:
    """Save one stacked bar per week (one colour per weekday) and return the path.

    `df` is a daily frame (see frame.daily_frame). Only the last `weeks`
    weeks are drawn when given. Returns None when there is nothing to plot.
    """
    if df.empty:
        return None

    pivot = df.pivot_table(index="week_start", columns="weekday", values="minutes", aggfunc="sum").fillna(0)
    for d in WEEKDAYS:
        if d not in pivot.columns:
            pivot[d] = 0
    pivot = pivot[WEEKDAYS].sort_index()
    if weeks is not None and weeks > 0:
        pivot = pivot.tail(weeks)
    pivot_hours = pivot / 60.0

    fig, ax = plt.subplots(figsize=(max(6, 0.4 * len(pivot_hours.index) + 2), 4.5))
    x_vals = list(range(len(pivot_hours.index)))
    bottom = [0.0] * len(x_vals)
    for d in WEEKDAYS:
        vals = pivot_hours[d].values
        ax.bar(x_vals, vals, bottom=bottom, label=d)
        bottom = [b + v for b, v in zip(bottom, vals)]

    ax.set_xticks(x_vals)
    ax.set_xticklabels(list(pivot_hours.index), rotation=60, ha="right", fontsize=8)
    ax.set_ylabel("Hours")
    ax.set_title(f"Weeks {pivot_hours.index[0]} to {pivot_hours.index[-1]}")
    ax.legend(ncol=7, fontsize=8, loc="upper center", bbox_to_anchor=(0.5, -0.3))
    ax.grid(axis="y", linestyle=":", alpha=0.4)
    plt.tight_layout()

    out_path = Path(out_path)
    fig.savefig(out_path, dpi=150)
    plt.close(fig)
    return str(out_path)
