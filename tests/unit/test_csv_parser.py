"""Unit tests for the streaming CSV reader."""
import pytest

from catalog_import.errors.exceptions import ParserError
from catalog_import.parsers.csv_parser import CsvRowReader


class TestCsvRowReader:
    """Test CsvRowReader.iter_rows()."""

    def test_yields_rows_with_line_numbers(self, tmp_path):
        """Verify rows are numbered from 2, after the header line."""
        path = tmp_path / "products.csv"
        path.write_text("Category,Name\nA,x\nB,y\nC,z\n", encoding="utf-8")

        rows = list(CsvRowReader(str(path), chunk_size=2).iter_rows())

        assert [number for number, _ in rows] == [2, 3, 4]
        assert rows[2][1] == {"Category": "C", "Name": "z"}

    def test_headers_trimmed_and_bom_removed(self, tmp_path):
        path = tmp_path / "products.csv"
        path.write_text("\ufeff Main Category , Category \nA,B\n", encoding="utf-8")

        rows = list(CsvRowReader(str(path)).iter_rows())

        assert rows == [(2, {"Main Category": "A", "Category": "B"})]

    def test_cells_are_kept_as_strings(self, tmp_path):
        """Verify numbers and NA-like values are not coerced."""
        path = tmp_path / "products.csv"
        path.write_text("Stock Qty,Remarks,Empty\n007,NA,\n", encoding="utf-8")

        (_, row), = list(CsvRowReader(str(path)).iter_rows())

        assert row == {"Stock Qty": "007", "Remarks": "NA", "Empty": ""}

    def test_long_lines_are_skipped_and_counted(self, tmp_path):
        """Verify malformed lines are skipped without aborting the file."""
        path = tmp_path / "products.csv"
        path.write_text("A,B\n1,2\n1,2,3,4\n5,6\n", encoding="utf-8")
        reader = CsvRowReader(str(path))

        rows = [row for _, row in reader.iter_rows()]

        assert rows == [{"A": "1", "B": "2"}, {"A": "5", "B": "6"}]
        assert reader.skipped_lines == 1

    def test_early_long_line_does_not_shift_columns(self, tmp_path):
        """Verify a line twice the header width is skipped instead of becoming an index."""
        path = tmp_path / "products.csv"
        path.write_text("Main Category,Category\nA,X\nA,X,1,2\nA,Y\n", encoding="utf-8")
        reader = CsvRowReader(str(path))

        rows = list(reader.iter_rows())

        assert [row for _, row in rows] == [
            {"Main Category": "A", "Category": "X"},
            {"Main Category": "A", "Category": "Y"},
        ]
        assert reader.skipped_lines == 1

    def test_long_first_data_line_is_skipped(self, tmp_path):
        path = tmp_path / "products.csv"
        path.write_text("A,B\n1,2,3\n4,5\n", encoding="utf-8")
        reader = CsvRowReader(str(path))

        rows = [row for _, row in reader.iter_rows()]

        assert rows == [{"A": "4", "B": "5"}]
        assert reader.skipped_lines == 1

    def test_short_lines_are_padded(self, tmp_path):
        path = tmp_path / "products.csv"
        path.write_text("A,B,C\n1\n", encoding="utf-8")

        (_, row), = list(CsvRowReader(str(path)).iter_rows())

        assert row["A"] == "1"
        assert not isinstance(row["C"], str)

    def test_header_only_file_yields_nothing(self, tmp_path):
        path = tmp_path / "products.csv"
        path.write_text("Main Category,Category\n", encoding="utf-8")

        assert list(CsvRowReader(str(path)).iter_rows()) == []

    def test_latin1_fallback(self, tmp_path):
        path = tmp_path / "products.csv"
        path.write_bytes("Name,Temp\nR1,25\xb0C\n".encode("latin-1"))

        rows = [row for _, row in CsvRowReader(str(path)).iter_rows()]

        assert rows == [{"Name": "R1", "Temp": "25°C"}]

    def test_custom_delimiter(self, tmp_path):
        path = tmp_path / "products.csv"
        path.write_text("A;B\n1;2\n", encoding="utf-8")

        rows = [row for _, row in CsvRowReader(str(path), delimiter=";").iter_rows()]

        assert rows == [{"A": "1", "B": "2"}]

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(ParserError) as exc_info:
            list(CsvRowReader(str(tmp_path / "missing.csv")).iter_rows())

        assert "not found" in str(exc_info.value)

    def test_empty_file_raises(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("", encoding="utf-8")

        with pytest.raises(ParserError):
            list(CsvRowReader(str(path)).iter_rows())
