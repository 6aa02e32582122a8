"""Format detection and extractor selection for uploaded statements."""

import logging
import mimetypes
import os
from typing import Dict, List, Optional, Type, Any

from ..models.core import ParserConfig
from ..parsers.base import RowExtractor
from .error_handler import UnsupportedFormatError


logger = logging.getLogger(__name__)


class FormatDispatcher:
    """Chooses the row extractor for a file from its extension or MIME type"""

    MIME_TYPE_MAP = {
        'text/csv': 'csv',
        'application/csv': 'csv',
        'text/comma-separated-values': 'csv',
        'application/vnd.ms-excel': 'xls',
        'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet': 'xlsx',
        'application/pdf': 'pdf',
    }

    FORMAT_DESCRIPTIONS = [
        {
            'type': 'CSV',
            'extensions': ['.csv'],
            'description': 'Comma-separated values file',
            'example': 'bank_statement.csv'
        },
        {
            'type': 'Excel',
            'extensions': ['.xlsx', '.xls'],
            'description': 'Microsoft Excel spreadsheet (first sheet only)',
            'example': 'bank_statement.xlsx'
        },
        {
            'type': 'PDF',
            'extensions': ['.pdf'],
            'description': 'Text-based PDF statement, one transaction per line',
            'example': 'bank_statement.pdf'
        },
    ]

    def __init__(self, config: Optional[ParserConfig] = None):
        self.config = config or ParserConfig()
        self._extractor_classes: Dict[str, Type[RowExtractor]] = {}
        self._register_default_extractors()

    def _register_default_extractors(self):
        # Import extractors here to avoid circular imports
        from ..parsers.csv_parser import CSVExtractor
        from ..parsers.excel_parser import SpreadsheetExtractor
        from ..parsers.pdf_parser import PDFExtractor

        for extractor_class in (CSVExtractor, SpreadsheetExtractor, PDFExtractor):
            for extension in extractor_class(self.config).get_supported_extensions():
                self._extractor_classes[extension] = extractor_class

    def register_extractor(self, file_extension: str, extractor_class: Type[RowExtractor]):
        """Register an extractor class for an extension"""
        self._extractor_classes[self._clean_extension(file_extension)] = extractor_class

    def supported_extensions(self) -> List[str]:
        return sorted(self._extractor_classes)

    def supported_formats(self) -> List[Dict[str, Any]]:
        """Describe the accepted upload formats"""
        return [dict(entry) for entry in self.FORMAT_DESCRIPTIONS]

    def dispatch(self, file_extension: Optional[str]) -> RowExtractor:
        """Return a fresh extractor for the extension.

        Raises:
            UnsupportedFormatError: for any extension without an extractor
        """
        extension = self._clean_extension(file_extension)
        extractor_class = self._extractor_classes.get(extension)
        if extractor_class is None:
            raise UnsupportedFormatError(extension, self._extractor_classes)

        logger.debug(f"Dispatching '{extension}' to {extractor_class.__name__}")
        return extractor_class(self.config)

    def resolve_extension(self, filename: Optional[str] = None,
                          mime_type: Optional[str] = None) -> str:
        """Work out the file extension from the upload's name and declared type.

        The filename's extension wins when there is one. The MIME type may
        also be a bare extension such as ``csv``.
        """
        if filename:
            _, ext = os.path.splitext(filename)
            if ext:
                return self._clean_extension(ext)

        if mime_type:
            declared = mime_type.split(';')[0].strip().lower()
            if declared in self.MIME_TYPE_MAP:
                return self.MIME_TYPE_MAP[declared]
            if '/' not in declared:
                return self._clean_extension(declared)
            guessed = mimetypes.guess_extension(declared)
            if guessed:
                return self._clean_extension(guessed)

        raise UnsupportedFormatError(
            mime_type or filename or '', self._extractor_classes
        )

    @staticmethod
    def _clean_extension(file_extension: Optional[str]) -> str:
        return (file_extension or '').strip().lower().lstrip('.')
