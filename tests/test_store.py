import tempfile
import unittest
from datetime import datetime
from pathlib import Path

from punchlog.errors import ParseError, ValidationError
from punchlog.parser import Annotation, Interval
from punchlog.store import LogStore, open_log
from punchlog.timecodec import FixedClock

# 2013-09-08 13:45:56 -0100
CLOCK = FixedClock(datetime(2013, 9, 8, 13, 45, 56), offset=-60)


class StoreTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.path = Path(self._tmp.name) / 't.csv'

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def store(self, content=None, **kwargs) -> LogStore:
        if content is not None:
            self.path.write_bytes(content.encode('utf-8'))
        return LogStore(self.path, CLOCK, **kwargs)

    def content(self) -> str:
        return self.path.read_text(encoding='utf-8')


class TestStart(StoreTestCase):
    def test_missing_file_is_created(self) -> None:
        self.assertIsNone(self.store().start_new_entry())
        self.assertEqual(self.content(), '2013-09-08 13:45 -0100\n')

    def test_appends_after_closed_interval(self) -> None:
        store = self.store('2013-09-08 10:00,2013-09-08 11:00\n')
        self.assertIsNone(store.start_new_entry())
        self.assertEqual(self.content(), '2013-09-08 10:00,2013-09-08 11:00\n2013-09-08 13:45 -0100\n')

    def test_adds_missing_newline(self) -> None:
        store = self.store('2013-09-08 10:00,2013-09-08 11:00')
        store.start_new_entry()
        self.assertEqual(self.content(), '2013-09-08 10:00,2013-09-08 11:00\n2013-09-08 13:45 -0100\n')

    def test_trailing_blank_lines_are_replaced(self) -> None:
        store = self.store('2013-09-08 10:00,2013-09-08 11:00\n\n\n')
        store.start_new_entry()
        self.assertEqual(self.content(), '2013-09-08 10:00,2013-09-08 11:00\n2013-09-08 13:45 -0100\n')

    def test_keeps_trailing_annotation(self) -> None:
        store = self.store('2013-09-08 10:00,2013-09-08 11:00\n# done for the morning\n')
        store.start_new_entry()
        self.assertEqual(
            self.content(),
            '2013-09-08 10:00,2013-09-08 11:00\n# done for the morning\n2013-09-08 13:45 -0100\n',
        )

    def test_already_running(self) -> None:
        before = '2013-09-08 11:55 -0100,\n'
        store = self.store(before)
        self.assertEqual(store.start_new_entry(), 110)
        self.assertEqual(self.content(), before)


class TestStop(StoreTestCase):
    def test_closes_open_interval_in_place(self) -> None:
        store = self.store('2013-09-08 10:00,2013-09-08 11:00\n2013-09-08 11:55 -0100,\n')
        self.assertEqual(store.stop_current_entry(), (True, 110))
        self.assertEqual(
            self.content(),
            '2013-09-08 10:00,2013-09-08 11:00\n2013-09-08 11:55 -0100,2013-09-08 13:45 -0100\n',
        )

    def test_implied_start_stays_implied(self) -> None:
        store = self.store('2013-09-08 11:55')
        self.assertEqual(store.stop_current_entry(), (True, 110))
        self.assertEqual(self.content(), '2013-09-08 11:55,2013-09-08 13:45 -0100\n')

    def test_nothing_open(self) -> None:
        before = '2013-09-08 10:00,2013-09-08 12:15\n'
        store = self.store(before)
        self.assertEqual(store.stop_current_entry(), (False, 90))
        self.assertEqual(self.content(), before)

    def test_empty_log(self) -> None:
        self.assertIsNone(self.store('').stop_current_entry())
        self.assertIsNone(self.store('# only a note\n').stop_current_entry())

    def test_annotation_after_open_interval(self) -> None:
        before = '2013-09-08 11:55\n# lunch\n'
        store = self.store(before)
        with self.assertRaises(ValidationError) as ctx:
            store.stop_current_entry()
        self.assertEqual(ctx.exception.line, 2)
        with self.assertRaises(ValidationError):
            store.start_new_entry()
        self.assertEqual(self.content(), before)

    def test_bad_offset_leaves_file_alone(self) -> None:
        before = '2013-09-08 10:00 +2400\n'
        store = self.store(before)
        with self.assertRaises(ParseError):
            store.stop_current_entry()
        self.assertEqual(self.content(), before)

    def test_closes_crlf_line(self) -> None:
        store = self.store('2013-09-08 10:00,2013-09-08 11:00\r\n2013-09-08 11:55 -0100\r\n')
        self.assertEqual(store.stop_current_entry(), (True, 110))
        self.assertEqual(
            self.path.read_bytes(),
            b'2013-09-08 10:00,2013-09-08 11:00\r\n2013-09-08 11:55 -0100,2013-09-08 13:45 -0100\n',
        )

    def test_start_then_stop(self) -> None:
        store = self.store('# week 36\n')
        store.start_new_entry()
        self.assertEqual(store.stop_current_entry(), (True, 0))
        self.assertEqual(self.content(), '# week 36\n2013-09-08 13:45 -0100,2013-09-08 13:45 -0100\n')


class TestReads(StoreTestCase):
    LINES = [f'2013-0{m}-1{d} 10:00,2013-0{m}-1{d} 11:00\n' for m in range(1, 10) for d in range(10)]

    def test_read_all(self) -> None:
        records = self.store('# a\n2013-09-08 10:00\n').read_all()
        self.assertEqual(len(records), 2)
        self.assertIsInstance(records[0], Annotation)
        self.assertIsInstance(records[1], Interval)
        self.assertEqual(LogStore(Path(self._tmp.name) / 'missing').read_all(), [])

    def test_tail_matches_full_read(self) -> None:
        store = self.store(''.join(self.LINES))
        everything = store.read_all()
        for n in (1, 3, 10, 89, 90, 500):
            tail = store.read_tail(n)
            self.assertGreaterEqual(len(tail), min(n, len(everything)))
            self.assertEqual(tail, everything[-len(tail):])

    def test_tail_offsets_are_absolute(self) -> None:
        store = self.store(''.join(self.LINES))
        entries, partial = store.tail_located(2)
        self.assertTrue(partial)
        size = self.path.stat().st_size
        self.assertEqual(entries[-1].end, size)
        self.assertEqual(entries[-1].offset, size - len(self.LINES[-1]))

    def test_tail_grows_for_long_lines(self) -> None:
        note = '#' + 'x' * 500 + '\n'
        store = self.store('2013-09-08 10:00\n' + note * 3)
        self.assertEqual(len(store.read_tail(4)), 4)

    def test_last_interval_behind_many_notes(self) -> None:
        store = self.store('2013-09-08 11:55 -0100,2013-09-08 12:00 -0100\n' + '# n\n' * 50, tail_records=2)
        _, last = store.last_interval()
        self.assertEqual(last.line, 1)
        self.assertFalse(last.record.is_open)

    def test_parse_error_reports_file_line(self) -> None:
        store = self.store(''.join(self.LINES[:-1]) + '2013-09-19 1x:00\n')
        with self.assertRaises(ParseError) as ctx:
            store.read_tail(1)
        self.assertEqual(ctx.exception.line, len(self.LINES))

    def test_open_log(self) -> None:
        store = open_log(self.path, CLOCK, tail_records=5)
        self.assertEqual(store.tail_records, 5)
        self.assertIs(store.clock, CLOCK)


if __name__ == '__main__':
    unittest.main()
