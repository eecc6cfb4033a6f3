import os
import sys
import tempfile

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, os.pardir))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from fx_replay.data.csv_data import CSVDataLoader, detect_delimiter, parse_delimited_text

import unittest


class TestDetectDelimiter(unittest.TestCase):
    def test_priority_order(self) -> None:
        self.assertEqual(detect_delimiter("Date;Time;Open"), ";")
        self.assertEqual(detect_delimiter("Date\tTime\tOpen"), "\t")
        self.assertEqual(detect_delimiter("Date,Time,Open"), ",")
        self.assertEqual(detect_delimiter("Close"), ",")

    def test_semicolon_wins_over_tab(self) -> None:
        self.assertEqual(detect_delimiter("Date;Time\tOpen"), ";")

    def test_semicolon_in_comma_file_is_misread(self) -> None:
        # Known limitation of the heuristic: a stray semicolon decides.
        table = parse_delimited_text("Date,Note;x,Close\n2024.01.01,a,1.5\n")
        self.assertEqual(table.delimiter, ";")
        self.assertEqual(table.header, ["Date,Note", "x,Close"])


class TestParseDelimitedText(unittest.TestCase):
    def test_blank_lines_and_cells_are_trimmed(self) -> None:
        content = "Date ; Close \r\n\r\n 2024.01.01 ; 1.5 \n   \n2024.01.02;1.6\n"
        table = parse_delimited_text(content)
        self.assertEqual(table.header, ["Date", "Close"])
        self.assertEqual(table.rows, [["2024.01.01", "1.5"], ["2024.01.02", "1.6"]])
        self.assertEqual(table.total_rows, 2)
        self.assertEqual(table.delimiter, ";")

    def test_empty_payload(self) -> None:
        table = parse_delimited_text("\n  \n")
        self.assertEqual(table.header, [])
        self.assertEqual(table.rows, [])
        self.assertEqual(table.total_rows, 0)
        self.assertEqual(table.delimiter, ",")

    def test_row_cap_keeps_tail_and_reports_total(self) -> None:
        lines = ["close"] + [str(i) for i in range(30)]
        table = parse_delimited_text("\n".join(lines), max_rows=25)
        self.assertEqual(table.total_rows, 30)
        self.assertEqual(len(table.rows), 25)
        self.assertEqual(table.rows[0], ["5"])
        self.assertEqual(table.rows[-1], ["29"])
        # preview is taken from the retained rows
        self.assertEqual(len(table.preview), 20)
        self.assertEqual(table.preview[0], ["5"])


class TestCSVDataLoader(unittest.TestCase):
    def test_load_tab_separated_file_with_bom(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "usdjpy.csv")
            with open(path, "w", encoding="utf-8-sig") as fh:
                fh.write("Date\tTime\tOpen\tHigh\tLow\tClose\n2024.01.02\t00:00\t1\t2\t0.5\t1.5\n")
            table = CSVDataLoader(path).load()
        self.assertEqual(table.delimiter, "\t")
        self.assertEqual(table.header[0], "Date")
        self.assertEqual(table.rows, [["2024.01.02", "00:00", "1", "2", "0.5", "1.5"]])

    def test_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            CSVDataLoader("/nonexistent/file.csv").load()


if __name__ == '__main__':
    unittest.main()
