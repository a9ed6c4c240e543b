import unittest
from datetime import datetime, timedelta, timezone

from punchlog.errors import ParseError
from punchlog.timecodec import (
    Cursor,
    FixedClock,
    State,
    Terminator,
    Timestamp,
    format_timestamp,
    parse_time,
    parse_timestamp,
)

UTC = FixedClock(datetime(2020, 1, 1))


def _parse(text: str, clock=UTC):
    return parse_timestamp(Cursor(text.encode('utf-8')), clock)


class TestTimestampParsing(unittest.TestCase):
    def test_implied_offset_comes_from_clock(self) -> None:
        clock = FixedClock(datetime(2020, 1, 1), offset=120)
        ts, term = _parse('2020-01-02 12:34\n', clock)
        self.assertEqual(ts, Timestamp(2020, 1, 2, 12, 34, 120, implied=True))
        self.assertIs(term, Terminator.END)
        self.assertEqual(ts.instant.utcoffset(), timedelta(hours=2))

    def test_negative_offset(self) -> None:
        ts, term = _parse('2020-01-02 12:34 -1001\n')
        self.assertEqual(ts.offset, -601)
        self.assertFalse(ts.implied)
        self.assertIs(term, Terminator.END)

    def test_positive_offset_then_comma(self) -> None:
        ts, term = _parse('2020-01-02 12:34 +1001,2020')
        self.assertEqual(ts.offset, 601)
        self.assertIs(term, Terminator.COMMA)

    def test_eof_ends_token(self) -> None:
        ts, term = _parse('2013-09-05 11:39')
        self.assertEqual((ts.hour, ts.minute), (11, 39))
        self.assertIs(term, Terminator.END)

    def test_resume_inside_table(self) -> None:
        cursor = Cursor(b'2013-09-04 10:45\n', pos=4, col=4)
        ts, _ = parse_timestamp(cursor, UTC, State.YEAR_DASH, {State.YEAR: 2013})
        self.assertEqual(ts, Timestamp(2013, 9, 4, 10, 45, 0, implied=True))

    def test_non_digit_reports_line_and_column(self) -> None:
        with self.assertRaises(ParseError) as ctx:
            _parse('2020-0x-02 12:34\n')
        self.assertEqual(ctx.exception.line, 1)
        self.assertEqual(ctx.exception.col, 7)
        self.assertIn('digit', ctx.exception.message)

    def test_bad_terminator(self) -> None:
        with self.assertRaises(ParseError) as ctx:
            _parse('2020-01-02 12:34x')
        self.assertIn('newline, comma, or space', str(ctx.exception))

    def test_bad_offset_sign(self) -> None:
        with self.assertRaises(ParseError) as ctx:
            _parse('2020-01-02 12:34 0400\n')
        self.assertIn("'+' or '-'", ctx.exception.message)

    def test_offset_must_end_line(self) -> None:
        with self.assertRaises(ParseError):
            _parse('2020-01-02 12:34 +0400 \n')

    def test_impossible_date(self) -> None:
        with self.assertRaises(ParseError) as ctx:
            _parse('2020-13-02 12:34\n')
        self.assertIn('invalid date', ctx.exception.message)

    def test_offset_out_of_range(self) -> None:
        for text in ('2013-09-04 10:45 +2400\n', '2013-09-04 10:45 -9999\n', '2013-09-04 10:45 +0160\n'):
            with self.assertRaises(ParseError) as ctx:
                _parse(text)
            self.assertIn('invalid UTC offset', ctx.exception.message)
            self.assertEqual(ctx.exception.line, 1)

    def test_largest_offsets(self) -> None:
        self.assertEqual(_parse('2013-09-04 10:45 +2359\n')[0].offset, 1439)
        self.assertEqual(_parse('2013-09-04 10:45 -2359\n')[0].offset, -1439)

    def test_crlf_line_end(self) -> None:
        ts, term = _parse('2013-09-04 10:45\r\n')
        self.assertEqual(ts.minute, 45)
        self.assertIs(term, Terminator.END)
        ts, term = _parse('2013-09-04 10:45 -0400\r\n')
        self.assertEqual(ts.offset, -240)
        with self.assertRaises(ParseError) as ctx:
            _parse('2013-09-04 10:45\rx')
        self.assertIn('carriage return', ctx.exception.message)

    def test_parse_time_rejects_trailing_fields(self) -> None:
        self.assertEqual(parse_time(' 2013-09-08 13:45 -0100 ', UTC).offset, -60)
        with self.assertRaises(ParseError):
            parse_time('2013-09-08 13:45,2013-09-08 14:00', UTC)


class TestTimestampFormatting(unittest.TestCase):
    def test_implied_has_no_offset(self) -> None:
        self.assertEqual(format_timestamp(Timestamp(2013, 8, 1, 10, 45, 300, implied=True)), '2013-08-01 10:45')

    def test_explicit_offset_is_signed_and_padded(self) -> None:
        self.assertEqual(format_timestamp(Timestamp(2020, 1, 2, 3, 4, -601, implied=False)), '2020-01-02 03:04 -1001')
        self.assertEqual(format_timestamp(Timestamp(2020, 1, 2, 3, 4, 0, implied=False)), '2020-01-02 03:04 +0000')
        self.assertEqual(str(Timestamp(2020, 1, 2, 3, 4, 45, implied=False)), '2020-01-02 03:04 +0045')

    def test_round_trip(self) -> None:
        clock = FixedClock(datetime(2020, 1, 1), offset=-240)
        for ts in [
            Timestamp(2013, 8, 1, 10, 45, -240, implied=True),
            Timestamp(2013, 8, 1, 23, 59, -240, implied=False),
            Timestamp(1999, 12, 31, 0, 0, 330, implied=False),
            Timestamp(2024, 2, 29, 12, 0, -1, implied=False),
        ]:
            parsed, _ = _parse(format_timestamp(ts), clock)
            self.assertEqual(parsed, ts)

    def test_from_datetime_truncates_to_minute(self) -> None:
        dt = datetime(2013, 9, 8, 13, 45, 56, tzinfo=timezone(timedelta(hours=-1)))
        ts = Timestamp.from_datetime(dt)
        self.assertEqual(format_timestamp(ts), '2013-09-08 13:45 -0100')
        self.assertFalse(ts.implied)


class TestClocks(unittest.TestCase):
    def test_fixed_clock_attaches_offset(self) -> None:
        clock = FixedClock(datetime(2013, 9, 8, 13, 45), offset=-60)
        self.assertEqual(clock.now().utcoffset(), timedelta(hours=-1))
        self.assertEqual(clock.midnight(clock.now().date()).isoformat(), '2013-09-08T00:00:00-01:00')

    def test_fixed_clock_local_conversion(self) -> None:
        clock = FixedClock(datetime(2013, 9, 8), offset=600)
        instant = datetime(2013, 9, 7, 20, 0, tzinfo=timezone.utc)
        self.assertEqual(clock.to_local(instant).date().isoformat(), '2013-09-08')


if __name__ == '__main__':
    unittest.main()
