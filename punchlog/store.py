"""
File access for the work log.

The file is the only source of truth: every call re-reads what it needs.
Reads come in two flavours:
- read_all: parse the whole file;
- read_tail: seek near the end, drop the partial line at the seek point and
  parse from there, widening the window until enough records are found.

The only mutations are appending a new open interval and rewriting the last
(open) interval in place with a stop time. Both touch the end of the file
only. No locking: one writer at a time is assumed.
"""

from __future__ import annotations

import dataclasses as dc
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple, Union

from .errors import ParseError, ValidationError
from .parser import Interval, Located, Record, format_record, iter_records
from .periods import interval_minutes
from .timecodec import Clock, SystemClock, Timestamp
from .validate import check_last_interval

logger = logging.getLogger(__name__)

# Typical "2013-09-08 10:45 -0100,2013-09-08 11:45 -0100\n" line is 46 bytes.
AVG_LINE_LEN = 48
TAIL_RECORDS = 100


class LogStore:
    def __init__(
        self,
        path: Union[str, Path],
        clock: Optional[Clock] = None,
        tail_records: int = TAIL_RECORDS,
    ):
        self.path = Path(path)
        self.clock = clock if clock is not None else SystemClock()
        self.tail_records = max(tail_records, 1)

    # ---------- Reads ----------

    def read_all(self) -> List[Record]:
        return [located.record for located in self.read_all_located()]

    def read_all_located(self) -> List[Located]:
        try:
            data = self.path.read_bytes()
        except FileNotFoundError:
            return []
        return list(iter_records(data, self.clock))

    def read_tail(self, n: int) -> List[Record]:
        entries, _ = self.tail_located(n)
        return [located.record for located in entries]

    def tail_located(self, n: int) -> Tuple[List[Located], bool]:
        """Records near the end of the file and whether the read started past byte 0.

        At least min(n, total records) are returned. Offsets are absolute;
        line numbers count from the seek point when the read is partial.
        """
        try:
            f = self.path.open("rb")
        except FileNotFoundError:
            return [], False

        with f:
            size = f.seek(0, os.SEEK_END)
            window = max(n, 1) * AVG_LINE_LEN
            while True:
                seek = max(0, size - window)
                # start one byte early to see whether seek is already a line start
                base = max(seek - 1, 0)
                f.seek(base)
                chunk = f.read()
                start = 0
                if seek > 0:
                    nl = chunk.find(b"\n")
                    start = len(chunk) if nl < 0 else nl + 1

                try:
                    entries = list(iter_records(chunk, self.clock, start))
                except ParseError:
                    if seek == 0:
                        raise
                    # report the error with whole-file line numbers
                    self.read_all_located()
                    raise

                logger.debug(
                    "tail read of %s: seek=%d size=%d records=%d wanted=%d",
                    self.path, seek, size, len(entries), n,
                )
                if len(entries) >= n or seek == 0:
                    shifted = [
                        dc.replace(e, offset=e.offset + base, end=e.end + base) for e in entries
                    ]
                    return shifted, seek > 0
                window *= 2

    def last_interval(self) -> Tuple[List[Located], Optional[Located]]:
        """Tail records and the last interval among them.

        Raises ValidationError when the last interval is open but followed by
        an annotation.
        """
        n = self.tail_records
        while True:
            entries, partial = self.tail_located(n)
            if not partial or any(isinstance(e.record, Interval) for e in entries):
                break
            n *= 2
        try:
            return entries, check_last_interval(entries)
        except ValidationError:
            if partial:
                check_last_interval(self.read_all_located())
            raise

    # ---------- Mutations ----------

    def start_new_entry(self) -> Optional[int]:
        """Open a new interval at "now".

        Returns None when a new interval was written, or the minutes the
        already-open interval has been running (nothing is written then).
        """
        now = self.clock.now()
        entries, last = self.last_interval()
        if last is not None and last.record.is_open:
            return interval_minutes(last.record, now)

        at = entries[-1].end if entries else 0
        payload = format_record(Interval(Timestamp.from_datetime(now)))
        self._write_at(at, payload.encode("utf-8"), ensure_newline=True)
        logger.debug("opened interval at byte %d of %s", at, self.path)
        return None

    def stop_current_entry(self) -> Optional[Tuple[bool, int]]:
        """Close the open interval at "now".

        Returns None when the log has no interval, (False, minutes since the
        last stop) when nothing is open, or (True, minutes worked) after
        closing it.
        """
        now = self.clock.now()
        _, last = self.last_interval()
        if last is None:
            return None

        interval = last.record
        if interval.stop is not None:
            return False, _minutes_since(interval.stop.instant, now)

        closed = Interval(interval.start, Timestamp.from_datetime(now))
        minutes = interval_minutes(closed, now)
        self._write_at(last.offset, format_record(closed).encode("utf-8"))
        logger.debug("closed interval at byte %d of %s", last.offset, self.path)
        return True, minutes

    def _write_at(self, at: int, payload: bytes, ensure_newline: bool = False) -> None:
        """Write `payload` at byte `at` and cut the file there."""
        mode = "r+b" if self.path.exists() else "w+b"
        with self.path.open(mode) as f:
            if ensure_newline and at > 0:
                f.seek(at - 1)
                if f.read(1) != b"\n":
                    payload = b"\n" + payload
            f.seek(at)
            f.write(payload)
            f.truncate()


def _minutes_since(instant: datetime, now: datetime) -> int:
    return int((now - instant).total_seconds() // 60)


def open_log(
    path: Union[str, Path],
    clock: Optional[Clock] = None,
    tail_records: int = TAIL_RECORDS,
) -> LogStore:
    return LogStore(path, clock, tail_records)
