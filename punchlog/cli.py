#!/usr/bin/env python3
"""
Command-line front end for the work log.

Commands: start, stop, status, today, week, all, days, pto, short,
punchcard, csv, chart, check, path. The log location comes from T_DATA_FILE
(see config.Settings) or --file.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import Settings
from .errors import LogError
from .parser import intervals_of
from .periods import today_range, week_range
from .reports import (
    all_report,
    days_report,
    legend,
    minutes_in_range,
    pto_report,
    punch_card_report,
    short_report,
    since_line,
    status_line,
)
from .store import LogStore
from .timecodec import Clock, FixedClock, SystemClock, parse_time
from .validate import quality_report, validate

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="punchlog", description="Track hours worked in a plain-text log.")
    parser.add_argument("--file", help="log file (default: $T_DATA_FILE or ~/.t.csv)")
    parser.add_argument("--now", help="pretend the current time is 'YYYY-MM-DD HH:MM[ +HHMM]'")
    parser.add_argument("--debug", action="store_true", help="debug logging on stderr")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("start", help="start working")
    sub.add_parser("stop", help="stop working")
    p = sub.add_parser("status", help="WORKING or NOT working")
    p.add_argument("--with-week", action="store_true", help="append minutes worked this week")
    sub.add_parser("today", help="minutes worked today")
    sub.add_parser("week", help="minutes worked since Sunday")
    sub.add_parser("all", help="weekly totals with statistics")
    sub.add_parser("days", help="minutes per day, per week")
    p = sub.add_parser("pto", help="worked vs. PTO minutes per week")
    p.add_argument("full_week", nargs="?", type=int, help="minutes in a full week")
    p = sub.add_parser("short", help="short intervals per week")
    p.add_argument("limit", nargs="?", type=int, default=15, help="longest interval counted as short, in minutes")
    p = sub.add_parser("punchcard", help="when in the week the work happened")
    p.add_argument("--per-day", type=int, default=24, help="slices per day")
    p = sub.add_parser("csv", help="weekly totals as CSV")
    p.add_argument("--out", help="output file (default: stdout)")
    p.add_argument("--header", action="store_true")
    p = sub.add_parser("chart", help="PNG chart of daily hours per week")
    p.add_argument("--out", default="weeks.png")
    p.add_argument("--weeks", type=int, default=None, help="only the last N weeks")
    p = sub.add_parser("check", help="list every problem in the log")
    p.add_argument("--report", help="also write a JSON quality report here")
    sub.add_parser("path", help="print the log file path")

    return parser.parse_args(argv)


def make_clock(now: Optional[str]) -> Clock:
    if not now:
        return SystemClock()
    ts = parse_time(now, SystemClock())
    return FixedClock(ts.instant, ts.offset)


# ---------------- Commands ----------------

def cmd_start(store: LogStore) -> None:
    running = store.start_new_entry()
    if running is None:
        print("Starting work.")
    else:
        print(f"You already started working, {running} minutes ago!")


def cmd_stop(store: LogStore) -> None:
    result = store.stop_current_entry()
    if result is None:
        print("You haven't started working yet!")
        return
    just_closed, minutes = result
    if just_closed:
        print(f"You just worked for {minutes} minutes.")
    else:
        print(f"You haven't started working yet! (last stopped {minutes} minutes ago)")


def cmd_status(store: LogStore, with_week: bool) -> None:
    _, last = store.last_interval()
    working = last is not None and last.record.is_open
    week_minutes = None
    if with_week:
        now = store.clock.now()
        week_minutes = minutes_in_range(intervals_of(store.read_all()), week_range(now, store.clock), now)
    print(status_line(working, week_minutes))


def cmd_since(store: LogStore, command: str) -> str:
    now = store.clock.now()
    intervals = intervals_of(store.read_all())
    if command == "today":
        rng = today_range(now, store.clock)
        description = "today"
        kind = "day"
    else:
        rng = week_range(now, store.clock)
        description = f"since {rng[0].strftime(DATE_FORMAT)}"
        kind = "week"
    print(since_line(minutes_in_range(intervals, rng, now), description))
    return kind


def cmd_check(store: LogStore, report: Optional[str]) -> int:
    problems = validate(store.read_all_located())
    for p in problems:
        print(p)
    if report:
        Path(report).write_text(json.dumps(quality_report(problems), indent=2), encoding="utf-8")
    if not problems:
        print("No problems found.")
        return 0
    return 1


def run(args: argparse.Namespace, settings: Settings) -> int:
    path = Path(args.file) if args.file else settings.data_file
    store = LogStore(path, make_clock(args.now), settings.tail_records)
    clock = store.clock
    kind = None

    if args.command == "path":
        print(path)
    elif args.command == "start":
        cmd_start(store)
    elif args.command == "stop":
        cmd_stop(store)
    elif args.command == "status":
        cmd_status(store, args.with_week)
    elif args.command in ("today", "week"):
        kind = cmd_since(store, args.command)
    elif args.command == "check":
        return cmd_check(store, args.report)
    else:
        now = clock.now()
        intervals = intervals_of(store.read_all())
        kind = "week"
        if args.command == "all":
            sys.stdout.write(all_report(intervals, settings.sparks, now, clock))
        elif args.command == "days":
            sys.stdout.write(days_report(intervals, now, clock))
        elif args.command == "pto":
            full_week = args.full_week if args.full_week and args.full_week > 0 else settings.full_week
            sys.stdout.write(pto_report(intervals, full_week, now, clock))
        elif args.command == "short":
            sys.stdout.write(short_report(intervals, args.limit, now, clock))
        elif args.command == "punchcard":
            per_day = args.per_day if args.per_day > 0 else 24
            sys.stdout.write(punch_card_report(intervals, settings.sparks, now, clock, per_day))
        elif args.command == "csv":
            from .frame import daily_frame, write_csv

            df = daily_frame(intervals, now, clock)
            write_csv(df, args.out or sys.stdout, header=args.header)
            kind = None
        elif args.command == "chart":
            from .chart import plot_weekly_hours
            from .frame import daily_frame

            saved = plot_weekly_hours(daily_frame(intervals, now, clock), args.out, args.weeks)
            if saved:
                print(f"Saved chart to {saved}")
            else:
                print("No intervals to chart.")
            kind = None

    text = legend(kind) if kind else None
    if text:
        print(text)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    settings = Settings.from_env()
    logging.basicConfig(
        level=logging.DEBUG if (args.debug or settings.debug) else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return run(args, settings)
    except LogError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        logger.debug("I/O failure", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
