"""
Record parser for the work log.

One record per line:

    # free text                          -> Annotation
    2013-09-04 10:45                     -> open Interval
    2013-09-04 10:45,                    -> open Interval
    2013-09-04 10:45,2013-09-04 11:04    -> closed Interval
    2013-09-04 10:45 -0400, 2013-09-04 11:04 -0400

Blank lines are ignored and CRLF line ends are accepted. Each call to
`LogParser.parse_record` consumes exactly one record and leaves the cursor on
the next record boundary, so a reader can start from any line start (see
LogStore tail reads).
"""

from __future__ import annotations

import dataclasses as dc
from typing import Iterable, Iterator, List, Optional, Tuple, Union

from .timecodec import (
    COMMA,
    CR,
    NEWLINE,
    SPACE,
    Clock,
    Cursor,
    Terminator,
    Timestamp,
    describe,
    format_timestamp,
    parse_timestamp,
)


# ---------------------------
# Records
# ---------------------------

@dc.dataclass(frozen=True)
class Interval:
    start: Timestamp
    stop: Optional[Timestamp] = None

    @property
    def is_open(self) -> bool:
        return self.stop is None


@dc.dataclass(frozen=True)
class Annotation:
    text: str


Record = Union[Interval, Annotation]


@dc.dataclass(frozen=True)
class Located:
    """A record and the byte range [offset, end) it occupies, newline included."""

    record: Record
    offset: int
    end: int
    line: int


HASH = ord("#")
_BLANK = {SPACE, NEWLINE, ord("\t"), CR}


# ---------------------------
# Parser
# ---------------------------

class LogParser:
    def __init__(self, data: bytes, clock: Clock, offset: int = 0, line: int = 1):
        self.cursor = Cursor(data, offset, line)
        self.clock = clock

    @property
    def position(self) -> int:
        return self.cursor.pos

    def parse_record(self) -> Optional[Located]:
        """Parse the next record, or return None at a clean EOF."""
        cursor = self.cursor
        b = cursor.peek()
        while b is not None and b in _BLANK:
            cursor.next()
            b = cursor.peek()
        if b is None:
            return None

        offset, line = cursor.pos, cursor.line
        if b == HASH:
            record = self._annotation()
        else:
            record = self._interval()
        return Located(record, offset, cursor.pos, line)

    def __iter__(self) -> Iterator[Located]:
        while True:
            located = self.parse_record()
            if located is None:
                return
            yield located

    def _annotation(self) -> Annotation:
        cursor = self.cursor
        cursor.next()  # '#'
        start = cursor.pos
        nl = cursor.data.find(b"\n", start)
        stop = len(cursor.data) if nl < 0 else nl
        raw = cursor.data[start:stop]
        cursor.pos = stop
        cursor.col += stop - start
        if nl >= 0:
            cursor.next()
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise cursor.error(f"annotation is not valid UTF-8: {exc}") from exc
        return Annotation(text.rstrip("\r"))

    def _interval(self) -> Interval:
        cursor = self.cursor
        start, term = parse_timestamp(cursor, self.clock)
        if term is Terminator.END:
            return Interval(start)

        while cursor.peek() == SPACE:
            cursor.next()
        b = cursor.peek()
        if b == CR:
            cursor.next()
            b = cursor.peek()
            if b is not None and b != NEWLINE:
                cursor.next()
                raise cursor.error(f"expected newline after carriage return but got {describe(b)}")
        if b is None or b == NEWLINE:
            # "start," with nothing after it is still open
            cursor.next()
            return Interval(start)
        if not 0x30 <= b <= 0x39:
            cursor.next()
            raise cursor.error(f"expected a stop time after ',' but got {describe(b)}")

        stop, term = parse_timestamp(cursor, self.clock)
        if term is Terminator.COMMA:
            raise cursor.error("expected end of line after the stop time but got ','")
        return Interval(start, stop)


def parse_record(
    data: bytes,
    pos: int,
    clock: Clock,
    line: int = 1,
) -> Tuple[Optional[Located], int]:
    """Parse exactly one record starting at `pos`; return it and the new position."""
    parser = LogParser(data, clock, pos, line)
    located = parser.parse_record()
    return located, parser.position


def iter_records(data: bytes, clock: Clock, offset: int = 0) -> Iterator[Located]:
    return iter(LogParser(data, clock, offset))


def parse_log(data: Union[bytes, str], clock: Clock) -> List[Record]:
    """Parse a whole log. Any ParseError aborts; there is no partial result."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return [located.record for located in iter_records(data, clock)]


def intervals_of(records: Iterable[Record]) -> List[Interval]:
    return [r for r in records if isinstance(r, Interval)]


# ---------------------------
# Formatting
# ---------------------------

def format_record(record: Record) -> str:
    if isinstance(record, Annotation):
        return f"#{record.text}\n"
    if record.stop is None:
        return f"{format_timestamp(record.start)}\n"
    return f"{format_timestamp(record.start)},{format_timestamp(record.stop)}\n"


def format_log(records: Iterable[Record]) -> str:
    return "".join(format_record(r) for r in records)
