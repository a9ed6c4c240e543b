"""Plain-text work-hours log: parser, file store, calendar buckets and statistics."""

from .aggregate import Analysis, PeriodSummary, aggregate, spark_for, weekly_summaries
from .errors import LogError, ParseError, ValidationError
from .parser import (
    Annotation,
    Interval,
    Located,
    LogParser,
    Record,
    format_log,
    format_record,
    intervals_of,
    parse_log,
    parse_record,
)
from .periods import Period, interval_minutes, minutes_between, partition
from .store import LogStore, open_log
from .timecodec import FixedClock, SystemClock, Timestamp, format_timestamp, parse_time
from .validate import validate

__version__ = "0.1.0"
