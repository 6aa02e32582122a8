"""Row extractors and field normalization for statement files"""

from .base import RowExtractor
from .scalars import AmountParser, DateParser
from .normalizer import FieldNormalizer, canonicalize_label
from .csv_parser import CSVExtractor
from .excel_parser import SpreadsheetExtractor
from .pdf_parser import PDFExtractor

__all__ = [
    'RowExtractor',
    'AmountParser',
    'DateParser',
    'FieldNormalizer',
    'canonicalize_label',
    'CSVExtractor',
    'SpreadsheetExtractor',
    'PDFExtractor'
]
