"""
Validation pass over a parsed log.

Non-destructive: every problem is collected and the scan continues, so one
run lists all of them. Checks:
- an interval's stop precedes its start;
- an interval starts before the previous interval's stop;
- an open interval is not the last interval of the log;
- an open interval is followed by an annotation (closing it in place would
  overwrite the annotation).
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from .errors import ValidationError
from .parser import Annotation, Interval, Located
from .timecodec import format_timestamp


def validate(entries: Iterable[Located]) -> List[ValidationError]:
    problems: List[ValidationError] = []
    previous: Optional[Located] = None
    open_entry: Optional[Located] = None
    annotated_after_open = False

    for located in entries:
        record = located.record
        if isinstance(record, Annotation):
            if open_entry is not None and not annotated_after_open:
                annotated_after_open = True
                problems.append(
                    ValidationError(
                        located.line,
                        f"annotation follows the open interval started on line {open_entry.line}",
                    )
                )
            continue

        if open_entry is not None:
            problems.append(
                ValidationError(
                    open_entry.line,
                    f"interval started {format_timestamp(open_entry.record.start)} is open "
                    f"but is not the last interval",
                )
            )
            open_entry = None
            annotated_after_open = False

        if record.stop is not None and record.stop.instant < record.start.instant:
            problems.append(
                ValidationError(
                    located.line,
                    f"stop {format_timestamp(record.stop)} precedes start {format_timestamp(record.start)}",
                )
            )

        if previous is not None:
            prev = previous.record
            if prev.stop is not None and record.start.instant < prev.stop.instant:
                problems.append(
                    ValidationError(
                        located.line,
                        f"start {format_timestamp(record.start)} precedes the previous stop "
                        f"{format_timestamp(prev.stop)} (line {previous.line})",
                    )
                )

        if record.stop is None:
            open_entry = located
        previous = located

    return problems


def check_last_interval(entries: List[Located]) -> Optional[Located]:
    """Return the last interval of `entries`, raising if it cannot be closed in place."""
    last: Optional[Located] = None
    trailing_annotation: Optional[Located] = None
    for located in entries:
        if isinstance(located.record, Interval):
            last = located
            trailing_annotation = None
        elif trailing_annotation is None:
            trailing_annotation = located
    if last is not None and last.record.is_open and trailing_annotation is not None:
        raise ValidationError(
            trailing_annotation.line,
            f"annotation follows the open interval started on line {last.line}",
        )
    return last


def quality_report(problems: List[ValidationError]) -> dict:
    return {
        "problem_count": len(problems),
        "problems": [p.as_dict() for p in problems],
    }
