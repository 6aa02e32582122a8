"""Error taxonomy, structured logging and error reporting for ingestion runs."""

import json
import logging
import sys
import traceback
from dataclasses import dataclass, asdict
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Any, Iterable

from ..models.core import ParseError


class IngestionError(Exception):
    """Base class for whole-file ingestion failures"""


class UnsupportedFormatError(IngestionError):
    """Raised when no extractor exists for the declared file format"""

    def __init__(self, file_format: str, supported: Optional[Iterable[str]] = None):
        self.file_format = file_format
        self.supported = sorted(supported) if supported else []
        message = f"Unsupported file format: {file_format or 'unknown'}"
        if self.supported:
            message += f" (supported: {', '.join(self.supported)})"
        super().__init__(message)


class ExtractionError(IngestionError):
    """Raised when the file container itself cannot be read"""


class ErrorSeverity(Enum):
    """Error severity levels"""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories for classification"""
    FILE_FORMAT = "file_format"
    EXTRACTION = "extraction"
    DATA_PARSING = "data_parsing"
    CATEGORIZATION = "categorization"
    CONFIGURATION = "configuration"
    SYSTEM = "system"


@dataclass
class ErrorDetail:
    """Detailed error information"""
    timestamp: str
    severity: str
    category: str
    error_code: str
    message: str
    source: Optional[str] = None
    row_index: Optional[int] = None
    field_name: Optional[str] = None
    raw_value: Optional[Any] = None
    stack_trace: Optional[str] = None
    context: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return asdict(self)


class JSONFormatter(logging.Formatter):
    """Render log records as one JSON object per line"""

    def format(self, record):
        log_entry = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        # Add extra fields if present
        if hasattr(record, 'error_code'):
            log_entry['error_code'] = record.error_code
        if hasattr(record, 'source'):
            log_entry['source'] = record.source
        if hasattr(record, 'category'):
            log_entry['category'] = record.category
        if hasattr(record, 'context'):
            log_entry['context'] = record.context

        return json.dumps(log_entry, default=str)


def setup_logging(verbose: bool = False, json_logs: bool = False) -> logging.Logger:
    """Configure the package logger for command line use

    Args:
        verbose: Emit debug records (skipped PDF lines, per-row details)
        json_logs: Use the JSON line formatter instead of the plain one

    Returns:
        The configured ``fintrack`` logger
    """
    logger = logging.getLogger('fintrack')
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    if json_logs:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
    logger.addHandler(handler)
    logger.propagate = False
    return logger


class ErrorHandler:
    """Collects and summarizes errors produced while ingesting files"""

    def __init__(self, logger_name: str = 'fintrack.errors'):
        self.errors: List[ErrorDetail] = []
        self.warnings: List[ErrorDetail] = []
        self.logger = logging.getLogger(logger_name)

        self.error_codes = {
            # File format errors
            "UNSUPPORTED_FORMAT": "F101",

            # Extraction errors
            "EXTRACTION_FAILED": "E001",
            "EMPTY_RESULT": "E002",

            # Row parsing errors
            "DATE_PARSE_ERROR": "D001",
            "AMOUNT_PARSE_ERROR": "D002",
            "DESCRIPTION_MISSING": "D003",
            "DATA_TYPE_MISMATCH": "D005",

            # Configuration errors
            "INVALID_CONFIG_VALUE": "C004",
            "CONFIG_TEMPLATE_ERROR": "C005",

            "UNEXPECTED_ERROR": "S999"
        }

    def log_error(self,
                  message: str,
                  error_type: str,
                  category: ErrorCategory = ErrorCategory.SYSTEM,
                  source: Optional[str] = None,
                  row_index: Optional[int] = None,
                  field_name: Optional[str] = None,
                  raw_value: Optional[Any] = None,
                  exception: Optional[Exception] = None,
                  context: Optional[Dict[str, Any]] = None) -> ErrorDetail:
        """Log an error with detailed information"""

        error_code = self.error_codes.get(error_type, "S999")
        stack_trace = None

        if exception:
            stack_trace = ''.join(traceback.format_exception(
                type(exception), exception, exception.__traceback__
            ))

        error_detail = ErrorDetail(
            timestamp=datetime.now().isoformat(),
            severity=ErrorSeverity.ERROR.value,
            category=category.value,
            error_code=error_code,
            message=message,
            source=source,
            row_index=row_index,
            field_name=field_name,
            raw_value=raw_value,
            stack_trace=stack_trace,
            context=context or {}
        )

        self.errors.append(error_detail)

        self.logger.error(
            message,
            extra={
                'error_code': error_code,
                'category': category.value,
                'source': source,
                'context': context or {}
            }
        )

        return error_detail

    def log_warning(self,
                    message: str,
                    warning_type: str,
                    category: ErrorCategory = ErrorCategory.SYSTEM,
                    source: Optional[str] = None,
                    row_index: Optional[int] = None,
                    field_name: Optional[str] = None,
                    raw_value: Optional[Any] = None,
                    context: Optional[Dict[str, Any]] = None) -> ErrorDetail:
        """Log a warning with detailed information"""

        warning_code = self.error_codes.get(warning_type, "W999")

        warning_detail = ErrorDetail(
            timestamp=datetime.now().isoformat(),
            severity=ErrorSeverity.WARNING.value,
            category=category.value,
            error_code=warning_code,
            message=message,
            source=source,
            row_index=row_index,
            field_name=field_name,
            raw_value=raw_value,
            context=context or {}
        )

        self.warnings.append(warning_detail)

        self.logger.warning(
            message,
            extra={
                'error_code': warning_code,
                'category': category.value,
                'source': source,
                'context': context or {}
            }
        )

        return warning_detail

    def record_parse_errors(self, errors: Iterable[ParseError],
                            source: Optional[str] = None) -> List[ErrorDetail]:
        """Record per-row parse failures as warnings; the run itself continued"""
        return [handle_row_error(self, error, source) for error in errors]

    def record_ingestion_error(self, error: Exception,
                               source: Optional[str] = None) -> ErrorDetail:
        """Record a fatal whole-file failure"""
        if isinstance(error, UnsupportedFormatError):
            return self.log_error(
                str(error), "UNSUPPORTED_FORMAT", ErrorCategory.FILE_FORMAT,
                source=source, raw_value=error.file_format
            )
        if isinstance(error, ExtractionError):
            return self.log_error(
                str(error), "EXTRACTION_FAILED", ErrorCategory.EXTRACTION,
                source=source, exception=error
            )
        return self.log_error(
            f"Unexpected error: {error}", "UNEXPECTED_ERROR", ErrorCategory.SYSTEM,
            source=source, exception=error
        )

    def get_error_summary(self) -> Dict[str, Any]:
        """Get summary of all errors and warnings"""
        errors_by_category: Dict[str, int] = {}
        warnings_by_category: Dict[str, int] = {}

        for error in self.errors:
            errors_by_category[error.category] = errors_by_category.get(error.category, 0) + 1

        for warning in self.warnings:
            warnings_by_category[warning.category] = warnings_by_category.get(warning.category, 0) + 1

        return {
            'total_errors': len(self.errors),
            'total_warnings': len(self.warnings),
            'errors_by_category': errors_by_category,
            'warnings_by_category': warnings_by_category,
            'most_common_issues': self._get_most_common_issues(),
            'sources_with_issues': len(set(
                e.source for e in self.errors + self.warnings if e.source
            )),
        }

    def _get_most_common_issues(self, limit: int = 5) -> List[Dict[str, Any]]:
        """Most frequent error codes across errors and warnings"""
        counts: Dict[str, Dict[str, Any]] = {}

        for issue in self.errors + self.warnings:
            entry = counts.setdefault(issue.error_code, {
                'error_code': issue.error_code,
                'category': issue.category,
                'example': issue.message,
                'count': 0,
            })
            entry['count'] += 1

        return sorted(counts.values(), key=lambda x: x['count'], reverse=True)[:limit]

    def generate_error_report(self, output_file: str) -> str:
        """Write a JSON report of every recorded error and warning"""
        report = {
            'report_timestamp': datetime.now().isoformat(),
            'summary': self.get_error_summary(),
            'all_errors': [error.to_dict() for error in self.errors],
            'all_warnings': [warning.to_dict() for warning in self.warnings]
        }

        with open(output_file, 'w', encoding='utf-8') as f:
            json.dump(report, f, indent=2, default=str)

        self.logger.info(f"Error report generated: {output_file}")
        return output_file

    def clear_errors(self):
        """Clear all accumulated errors and warnings"""
        self.errors.clear()
        self.warnings.clear()

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def has_warnings(self) -> bool:
        return len(self.warnings) > 0


def handle_row_error(error_handler: ErrorHandler,
                     error: ParseError,
                     source: Optional[str] = None) -> ErrorDetail:
    """Classify a row-level parse failure by the field that failed"""
    reason = error.reason.lower()
    if 'amount' in reason:
        error_type, field_name = "AMOUNT_PARSE_ERROR", 'amount'
    elif 'date' in reason:
        error_type, field_name = "DATE_PARSE_ERROR", 'date'
    elif 'description' in reason:
        error_type, field_name = "DESCRIPTION_MISSING", 'description'
    else:
        error_type, field_name = "DATA_TYPE_MISMATCH", None

    return error_handler.log_warning(
        f"Row {error.row_index}: {error.reason}",
        error_type,
        ErrorCategory.DATA_PARSING,
        source=source,
        row_index=error.row_index,
        field_name=field_name,
        raw_value=dict(error.raw_row),
    )
