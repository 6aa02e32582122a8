"""Tests for spreadsheet row extraction."""

import io
from decimal import Decimal

import pandas as pd
import pytest

from fintrack.models.core import ParserConfig
from fintrack.parsers.excel_parser import SpreadsheetExtractor, XLS_SIGNATURE
from fintrack.parsers.normalizer import FieldNormalizer
from fintrack.utils.error_handler import ExtractionError


def make_workbook(frames):
    """Build an .xlsx in memory; ``frames`` maps sheet name to DataFrame"""
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
        for sheet_name, frame in frames.items():
            frame.to_excel(writer, sheet_name=sheet_name, index=False)
    return buffer.getvalue()


class TestSpreadsheetExtractor:
    """Test cases for SpreadsheetExtractor"""

    def setup_method(self):
        self.extractor = SpreadsheetExtractor(ParserConfig())

    def test_supported_extensions(self):
        assert self.extractor.get_supported_extensions() == ['xlsx', 'xls']

    def test_detect_engine(self):
        assert self.extractor.detect_engine(b'PK\x03\x04rest') == 'openpyxl'
        assert self.extractor.detect_engine(XLS_SIGNATURE + b'rest') == 'xlrd'

        with pytest.raises(ExtractionError):
            self.extractor.detect_engine(b'Date,Amount\n')

    def test_first_sheet_rows(self):
        workbook = make_workbook({
            'Transactions': pd.DataFrame({
                'Date': ['2024-01-05', '2024-01-06'],
                'Description': ['Grocery Store', 'Payroll'],
                'Amount': ['-54.20', '2000.00'],
            }),
            'Summary': pd.DataFrame({'Total': ['1945.80']}),
        })

        rows = list(self.extractor.extract(workbook))

        assert rows == [
            {'Date': '2024-01-05', 'Description': 'Grocery Store', 'Amount': '-54.20'},
            {'Date': '2024-01-06', 'Description': 'Payroll', 'Amount': '2000.00'},
        ]

    def test_native_cell_types_normalize(self):
        """Numeric and datetime cells come through as text the normalizer accepts"""
        workbook = make_workbook({
            'Sheet1': pd.DataFrame({
                'Date': [pd.Timestamp('2024-02-10')],
                'Description': ['Electric bill'],
                'Amount': [-120.5],
            })
        })

        rows = list(self.extractor.extract(workbook))
        transaction = FieldNormalizer().normalize(rows[0])

        assert transaction.date.isoformat() == '2024-02-10'
        assert transaction.amount == Decimal('120.50')

    def test_blank_rows_are_skipped(self):
        workbook = make_workbook({
            'Sheet1': pd.DataFrame({
                'Date': ['2024-01-05', None, '2024-01-07'],
                'Amount': ['1.00', None, '3.00'],
            })
        })

        rows = list(self.extractor.extract(workbook))

        assert [row['Amount'] for row in rows] == ['1.00', '3.00']

    def test_empty_input(self):
        assert list(self.extractor.extract(b'')) == []

    def test_not_a_workbook(self):
        with pytest.raises(ExtractionError):
            list(self.extractor.extract(b'%PDF-1.4 not a spreadsheet'))

    def test_corrupt_workbook(self):
        with pytest.raises(ExtractionError):
            list(self.extractor.extract(b'PK\x03\x04' + b'\x00' * 64))
