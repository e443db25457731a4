"""Streaming CSV reader for product spreadsheets."""
import pandas as pd
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple
import structlog

from catalog_import.errors.exceptions import ParserError

logger = structlog.get_logger(__name__)

# Receives the first surplus field of a line longer than the header
OVERFLOW_COLUMN = "__overflow__"


class CsvRowReader:
    """Reads a CSV file in chunks and yields one dict per data row.

    Every cell is kept as a raw string (no NA coercion) so that the
    normalizer decides what counts as empty. Headers are trimmed. Lines
    with more fields than the header are logged and skipped; short lines
    are padded with missing values.
    """

    def __init__(
        self,
        file_path: str,
        chunk_size: int = 5000,
        encoding: str = "utf-8",
        delimiter: str = ",",
    ):
        self.file_path = Path(file_path)
        self.chunk_size = chunk_size
        self.encoding = encoding
        self.delimiter = delimiter
        self.skipped_lines = 0
        self._log = logger.bind(file_path=str(self.file_path))

    def _on_bad_line(self, fields: List[str]) -> None:
        self.skipped_lines += 1
        self._log.warning(
            "csv_row_skipped",
            reason="field_count_mismatch",
            field_count=len(fields),
            preview=fields[:3],
        )
        return None


    def _read_header(self, encoding: str) -> List[str]:
        header = pd.read_csv(
            self.file_path,
            sep=self.delimiter,
            encoding=encoding,
            header=0,
            nrows=0,
            index_col=False,
            dtype=str,
            engine="python",
        )
        return self._clean_headers(header.columns)

    def _read_chunks(self, encoding: str, columns: List[str]):
        # Columns are named explicitly with one trailing overflow column and
        # index_col=False, so pandas never turns leading fields into an index.
        return pd.read_csv(
            self.file_path,
            sep=self.delimiter,
            encoding=encoding,
            header=None,
            skiprows=1,
            names=columns + [OVERFLOW_COLUMN],
            index_col=False,
            dtype=str,
            keep_default_na=False,
            na_filter=False,
            skip_blank_lines=True,
            engine="python",
            on_bad_lines=self._on_bad_line,
            chunksize=self.chunk_size,
        )

    @staticmethod
    def _clean_headers(columns) -> List[str]:
        return [str(column).replace("\ufeff", "").strip() for column in columns]

    def iter_rows(self) -> Iterator[Tuple[int, Dict[str, Any]]]:
        """Yield (row_number, row) pairs; row_number counts the header as line 1.

        Raises:
            ParserError: If the file is missing, empty or cannot be decoded
        """
        if not self.file_path.exists():
            raise ParserError(f"CSV file not found: {self.file_path}")

        yielded = 0
        encoding: Optional[str] = self.encoding
        while True:
            columns: Optional[List[str]] = None
            position = 0
            self.skipped_lines = 0
            try:
                columns = self._read_header(encoding)
                for chunk in self._read_chunks(encoding, columns):
                    for row in chunk.to_dict(orient="records"):
                        position += 1
                        overflow = row.pop(OVERFLOW_COLUMN, None)
                        if isinstance(overflow, str):
                            self._on_bad_line([str(value) for value in row.values()] + [overflow])
                            continue
                        yielded += 1
                        yield position + 1, row
                break
            except UnicodeDecodeError as e:
                if yielded or encoding == "latin-1":
                    raise ParserError(f"CSV decoding failed after {yielded} rows: {e}") from e
                # Try with latin-1 encoding as fallback
                self._log.warning("utf8_decode_failed_trying_latin1", error=str(e))
                encoding = "latin-1"
            except pd.errors.EmptyDataError:
                if columns is None:
                    raise ParserError("CSV file is empty or contains no data")
                # header only
                break
            except pd.errors.ParserError as e:
                raise ParserError(f"CSV parsing error: {e}") from e
            except ValueError as e:
                raise ParserError(f"CSV header is invalid: {e}") from e
            except OSError as e:
                raise ParserError(f"CSV file could not be read: {e}") from e

        self._log.info(
            "csv_read_completed",
            rows=yielded,
            skipped_lines=self.skipped_lines,
            encoding=encoding,
        )
