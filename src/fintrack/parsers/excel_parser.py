"""Spreadsheet row extractor for .xlsx and .xls workbooks."""

import io
import logging
from typing import Iterator, List

import pandas as pd

from .base import RowExtractor, record_to_raw_row
from ..models.core import ParserConfig, RawRow
from ..utils.error_handler import ExtractionError


logger = logging.getLogger(__name__)

XLSX_SIGNATURE = b'PK\x03\x04'
XLS_SIGNATURE = b'\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1'


class SpreadsheetExtractor(RowExtractor):
    """Reads the first sheet of a workbook, using its first row as labels.

    The whole sheet is loaded at once; workbooks are not streamable.
    """

    def __init__(self, config: ParserConfig):
        super().__init__(config)
        self.supported_extensions = ['xlsx', 'xls']

    def get_supported_extensions(self) -> List[str]:
        """Return list of supported file extensions"""
        return self.supported_extensions

    def detect_engine(self, file_bytes: bytes) -> str:
        """Pick the pandas engine from the workbook's binary signature"""
        if file_bytes.startswith(XLSX_SIGNATURE):
            return 'openpyxl'
        if file_bytes.startswith(XLS_SIGNATURE):
            return 'xlrd'
        raise ExtractionError("File content is not an Excel workbook")

    def extract(self, file_bytes: bytes) -> Iterator[RawRow]:
        if not file_bytes:
            logger.warning("Spreadsheet input is empty")
            return

        engine = self.detect_engine(file_bytes)
        try:
            df = pd.read_excel(
                io.BytesIO(file_bytes),
                sheet_name=0,
                dtype=object,
                na_filter=False,
                engine=engine,
            )
        except Exception as e:
            raise ExtractionError(f"Unable to read workbook: {e}") from e

        if df.empty:
            logger.warning("First sheet of workbook has no data rows")
            return

        logger.info(f"Loaded {len(df)} rows from first sheet using {engine}")

        for record in df.to_dict(orient='records'):
            row = record_to_raw_row(record)
            if not any(row.values()):
                continue
            yield row
