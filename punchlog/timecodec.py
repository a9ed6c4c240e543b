"""
Timestamp codec: one `YYYY-MM-DD HH:MM[ +HHMM]` token.

A timestamp without an offset field is "implied": its offset comes from the
clock passed in by the caller and it is written back without one. Explicit
offsets are always written signed and zero-padded.

The tokenizer is a transition table over a small State enum rather than a
hand-written descent, so the record parser can enter it at a known state
with already-confirmed fields in the accumulator.
"""

from __future__ import annotations

import dataclasses as dc
import enum
from datetime import date, datetime, timedelta, timezone
from typing import Dict, Optional, Tuple, Union

from .errors import ParseError


# ---------------------------
# Clocks
# ---------------------------

class SystemClock:
    """Local time zone of the running process, DST-aware per wall time."""

    def now(self) -> datetime:
        return datetime.now().astimezone()

    def offset_at(self, wall: datetime) -> int:
        # naive datetimes are interpreted as local time by astimezone()
        return int(wall.astimezone().utcoffset().total_seconds() // 60)

    def to_local(self, instant: datetime) -> datetime:
        return instant.astimezone()

    def midnight(self, day: date) -> datetime:
        wall = datetime(day.year, day.month, day.day)
        return wall.replace(tzinfo=_tz(self.offset_at(wall)))


@dc.dataclass(frozen=True)
class FixedClock:
    """A clock stuck at `current` in a fixed UTC offset (minutes east)."""

    current: datetime
    offset: int = 0

    def __post_init__(self):
        if self.current.tzinfo is None:
            object.__setattr__(self, "current", self.current.replace(tzinfo=_tz(self.offset)))

    def now(self) -> datetime:
        return self.current

    def offset_at(self, wall: datetime) -> int:
        return self.offset

    def to_local(self, instant: datetime) -> datetime:
        return instant.astimezone(_tz(self.offset))

    def midnight(self, day: date) -> datetime:
        return datetime(day.year, day.month, day.day, tzinfo=_tz(self.offset))


Clock = Union[SystemClock, FixedClock]


def _tz(offset: int) -> timezone:
    return timezone(timedelta(minutes=offset))


# ---------------------------
# Timestamp
# ---------------------------

@dc.dataclass(frozen=True)
class Timestamp:
    year: int
    month: int
    day: int
    hour: int
    minute: int
    offset: int = 0  # minutes east of UTC
    implied: bool = True

    @property
    def wall(self) -> datetime:
        return datetime(self.year, self.month, self.day, self.hour, self.minute)

    @property
    def instant(self) -> datetime:
        return self.wall.replace(tzinfo=_tz(self.offset))

    @classmethod
    def from_datetime(cls, dt: datetime) -> "Timestamp":
        """Explicit-offset timestamp for an aware datetime, truncated to the minute."""
        offset = int(dt.utcoffset().total_seconds() // 60)
        return cls(dt.year, dt.month, dt.day, dt.hour, dt.minute, offset, implied=False)

    def __str__(self) -> str:
        return format_timestamp(self)


def make_timestamp(
    year: int,
    month: int,
    day: int,
    hour: int,
    minute: int,
    offset: Optional[int],
    clock: Clock,
) -> Timestamp:
    """Build a Timestamp, asking the clock for the offset when none was written.

    Raises ValueError for dates and times that do not exist on the calendar.
    """
    wall = datetime(year, month, day, hour, minute)
    if offset is None:
        return Timestamp(year, month, day, hour, minute, clock.offset_at(wall), implied=True)
    return Timestamp(year, month, day, hour, minute, offset, implied=False)


def format_timestamp(ts: Timestamp) -> str:
    text = f"{ts.year:04d}-{ts.month:02d}-{ts.day:02d} {ts.hour:02d}:{ts.minute:02d}"
    if ts.implied:
        return text
    sign = "-" if ts.offset < 0 else "+"
    hours, minutes = divmod(abs(ts.offset), 60)
    return f"{text} {sign}{hours:02d}{minutes:02d}"


# ---------------------------
# Byte cursor
# ---------------------------

NEWLINE = ord("\n")
CR = ord("\r")
SPACE = ord(" ")
COMMA = ord(",")


class Cursor:
    """Forward-only view over a byte buffer that tracks line and column."""

    def __init__(self, data: bytes, pos: int = 0, line: int = 1, col: int = 0):
        self.data = data
        self.pos = pos
        self.line = line
        self.col = col

    def peek(self) -> Optional[int]:
        if self.pos >= len(self.data):
            return None
        return self.data[self.pos]

    def next(self) -> Optional[int]:
        if self.pos >= len(self.data):
            return None
        b = self.data[self.pos]
        self.pos += 1
        if b == NEWLINE:
            self.line += 1
            self.col = 0
        else:
            self.col += 1
        return b

    def error(self, message: str) -> ParseError:
        return ParseError(self.line, self.col, message)


def describe(b: Optional[int]) -> str:
    if b is None:
        return "EOF"
    if b == NEWLINE:
        return "'\\n'"
    return repr(chr(b))


# ---------------------------
# Transition table
# ---------------------------

class State(enum.Enum):
    YEAR = "year"
    YEAR_DASH = "year-dash"
    MONTH = "month"
    MONTH_DASH = "month-dash"
    DAY = "day"
    DAY_SPACE = "day-space"
    HOUR = "hour"
    HOUR_COLON = "hour-colon"
    MINUTE = "minute"
    AFTER_MINUTE = "after-minute"
    OFFSET_SIGN = "offset-sign"
    OFFSET_HOUR = "offset-hour"
    OFFSET_MINUTE = "offset-minute"
    AFTER_OFFSET = "after-offset"
    LINE_END = "line-end"
    # terminal
    COMMA = "comma"
    END = "end"


class Terminator(enum.Enum):
    COMMA = "comma"  # a stop field follows
    END = "end"  # newline or EOF


@dc.dataclass(frozen=True)
class _Digits:
    width: int
    then: State


@dc.dataclass(frozen=True)
class _Literal:
    edges: Dict[Optional[int], State]  # None is EOF
    expected: str


_TABLE: Dict[State, Union[_Digits, _Literal]] = {
    State.YEAR: _Digits(4, State.YEAR_DASH),
    State.YEAR_DASH: _Literal({ord("-"): State.MONTH}, "'-'"),
    State.MONTH: _Digits(2, State.MONTH_DASH),
    State.MONTH_DASH: _Literal({ord("-"): State.DAY}, "'-'"),
    State.DAY: _Digits(2, State.DAY_SPACE),
    State.DAY_SPACE: _Literal({SPACE: State.HOUR}, "' '"),
    State.HOUR: _Digits(2, State.HOUR_COLON),
    State.HOUR_COLON: _Literal({ord(":"): State.MINUTE}, "':'"),
    State.MINUTE: _Digits(2, State.AFTER_MINUTE),
    State.AFTER_MINUTE: _Literal(
        {NEWLINE: State.END, None: State.END, CR: State.LINE_END, COMMA: State.COMMA, SPACE: State.OFFSET_SIGN},
        "newline, comma, or space",
    ),
    State.OFFSET_SIGN: _Literal({ord("+"): State.OFFSET_HOUR, ord("-"): State.OFFSET_HOUR}, "'+' or '-'"),
    State.OFFSET_HOUR: _Digits(2, State.OFFSET_MINUTE),
    State.OFFSET_MINUTE: _Digits(2, State.AFTER_OFFSET),
    State.AFTER_OFFSET: _Literal(
        {NEWLINE: State.END, None: State.END, CR: State.LINE_END, COMMA: State.COMMA},
        "newline or comma",
    ),
    State.LINE_END: _Literal({NEWLINE: State.END, None: State.END}, "newline after carriage return"),
}

_TERMINATORS = {State.COMMA: Terminator.COMMA, State.END: Terminator.END}


def _read_digits(cursor: Cursor, width: int) -> int:
    value = 0
    for _ in range(width):
        b = cursor.next()
        if b is None or not 0x30 <= b <= 0x39:
            raise cursor.error(f"expected a digit but got {describe(b)}")
        value = value * 10 + (b - 0x30)
    return value


def parse_timestamp(
    cursor: Cursor,
    clock: Clock,
    state: State = State.YEAR,
    acc: Optional[Dict[State, int]] = None,
) -> Tuple[Timestamp, Terminator]:
    """Consume one timestamp token from `cursor`.

    `state` and `acc` allow entering the table part-way through a token whose
    leading fields were already read. Returns the timestamp and whether the
    token ended at a comma or at newline/EOF.
    """
    acc = dict(acc or {})
    line, col = cursor.line, cursor.col
    while state not in _TERMINATORS:
        rule = _TABLE[state]
        if isinstance(rule, _Digits):
            acc[state] = _read_digits(cursor, rule.width)
            state = rule.then
            continue
        b = cursor.next()
        nxt = rule.edges.get(b)
        if nxt is None:
            raise cursor.error(f"expected {rule.expected} but got {describe(b)}")
        if b is not None:
            acc[state] = b
        state = nxt

    offset = None
    if State.OFFSET_HOUR in acc:
        if acc[State.OFFSET_HOUR] > 23 or acc[State.OFFSET_MINUTE] > 59:
            raise ParseError(
                line,
                col + 1,
                f"invalid UTC offset: {acc[State.OFFSET_HOUR]:02d}{acc[State.OFFSET_MINUTE]:02d}",
            )
        sign = -1 if acc[State.OFFSET_SIGN] == ord("-") else 1
        offset = sign * (acc[State.OFFSET_HOUR] * 60 + acc[State.OFFSET_MINUTE])
    try:
        ts = make_timestamp(
            acc[State.YEAR],
            acc[State.MONTH],
            acc[State.DAY],
            acc[State.HOUR],
            acc[State.MINUTE],
            offset,
            clock,
        )
    except ValueError as exc:
        raise ParseError(line, col + 1, f"invalid date or time: {exc}") from exc
    return ts, _TERMINATORS[state]


def parse_time(text: str, clock: Clock) -> Timestamp:
    """Parse a complete single-timestamp string such as a command-line value."""
    cursor = Cursor(text.strip().encode("utf-8"))
    ts, term = parse_timestamp(cursor, clock)
    if term is not Terminator.END or cursor.peek() is not None:
        raise cursor.error("expected a single timestamp")
    return ts
