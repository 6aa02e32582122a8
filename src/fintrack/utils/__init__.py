"""Utility functions and helpers"""

from .error_handler import (
    ErrorHandler, ErrorCategory, ErrorSeverity, ErrorDetail,
    IngestionError, UnsupportedFormatError, ExtractionError,
    handle_row_error, setup_logging
)
from .format_dispatcher import FormatDispatcher
from .csv_writer import CSVWriter
from .config_manager import ConfigManager

__all__ = [
    'ErrorHandler',
    'ErrorCategory',
    'ErrorSeverity',
    'ErrorDetail',
    'IngestionError',
    'UnsupportedFormatError',
    'ExtractionError',
    'handle_row_error',
    'setup_logging',
    'FormatDispatcher',
    'CSVWriter',
    'ConfigManager'
]
