"""CSV row extractor streaming the file line by line in bounded chunks."""

import csv
import io
import logging
from typing import Iterator, List, Optional, Tuple

import pandas as pd

from .base import RowExtractor, record_to_raw_row
from ..models.core import ParserConfig, RawRow
from ..utils.error_handler import ExtractionError


logger = logging.getLogger(__name__)


class CSVExtractor(RowExtractor):
    """Extractor for CSV files; the first row supplies the column labels"""

    def __init__(self, config: ParserConfig):
        super().__init__(config)
        self.supported_extensions = ['csv']

    def get_supported_extensions(self) -> List[str]:
        """Return list of supported file extensions"""
        return self.supported_extensions

    def extract(self, file_bytes: bytes) -> Iterator[RawRow]:
        """Yield one RawRow per data line.

        Each physical line is tokenised on its own, so a broken line never
        takes its neighbours with it. Lines with too few fields come through
        with the trailing labels missing; lines with too many are cut to the
        header width. An unterminated quote runs to the end of its line.
        """
        if not file_bytes or not file_bytes.strip():
            logger.warning("CSV input is empty")
            return

        lines = self._iter_lines(file_bytes)
        headers = self._headers_from(lines)
        if not headers:
            logger.warning("CSV input has no header row")
            return

        width = len(headers)
        rows = 0
        chunk: List[List[Optional[str]]] = []
        for line_number, line in lines:
            values = self.tokenise(line)
            if len(values) != width:
                logger.debug(f"CSV line {line_number} has {len(values)} fields, expected {width}")
            values = values[:width]
            chunk.append(values + [None] * (width - len(values)))

            if len(chunk) >= self.config.csv_chunk_size:
                for row in self._chunk_rows(chunk, headers):
                    rows += 1
                    yield row
                chunk = []

        for row in self._chunk_rows(chunk, headers):
            rows += 1
            yield row

        logger.info(f"Read {rows} rows from CSV input with columns {headers}")

    @staticmethod
    def tokenise(line: str) -> List[str]:
        """Split one physical line into fields"""
        try:
            return next(csv.reader([line], skipinitialspace=True), [])
        except csv.Error as e:
            logger.debug(f"Reading line with quoting disabled: {e}")
            return next(csv.reader([line], skipinitialspace=True, quoting=csv.QUOTE_NONE), [])

    def _iter_lines(self, file_bytes: bytes) -> Iterator[Tuple[int, str]]:
        """Decoded non-blank lines with their 1-based line numbers"""
        try:
            stream = io.TextIOWrapper(
                io.BytesIO(file_bytes),
                encoding=self.config.csv_encoding,
                errors='replace',
                newline=''
            )
        except LookupError as e:
            raise ExtractionError(f"Unknown CSV encoding: {self.config.csv_encoding}") from e

        with stream:
            for line_number, line in enumerate(stream, start=1):
                line = line.rstrip('\r\n')
                if line.strip():
                    yield line_number, line

    def _headers_from(self, lines: Iterator[Tuple[int, str]]) -> List[str]:
        first = next(lines, None)
        if first is None:
            return []

        headers: List[str] = []
        for position, label in enumerate(self.tokenise(first[1])):
            label = label.strip() or f"Unnamed: {position}"
            # Repeated labels get a numeric suffix
            candidate, copies = label, 0
            while candidate in headers:
                copies += 1
                candidate = f"{label}.{copies}"
            headers.append(candidate)
        return headers

    @staticmethod
    def _chunk_rows(chunk: List[List[Optional[str]]], headers: List[str]) -> Iterator[RawRow]:
        if not chunk:
            return
        frame = pd.DataFrame(chunk, columns=headers, dtype=object)
        for record in frame.to_dict(orient='records'):
            yield record_to_raw_row(record)
