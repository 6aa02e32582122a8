"""Statement ingestion pipeline.

Runs uploaded file bytes through format dispatch, row extraction, field
normalization and, when asked, categorization. Rows that cannot be normalized
are collected as ParseError records; only whole-file failures raise.
"""

import logging
from typing import List, Optional, Tuple, Union

from .categorization.matcher import CategoryMatcher
from .categorization.rules import RuleTable
from .models.core import (
    IngestionResult, NormalizedTransaction, ParseError, ParserConfig, TransactionType
)
from .parsers.normalizer import FieldNormalizer
from .utils.format_dispatcher import FormatDispatcher


logger = logging.getLogger(__name__)


class IngestionPipeline:
    """Dispatcher -> extractor -> normalizer -> optional matcher.

    Holds no per-upload state, so one instance can serve any number of
    uploads.
    """

    def __init__(self,
                 config: Optional[ParserConfig] = None,
                 dispatcher: Optional[FormatDispatcher] = None,
                 normalizer: Optional[FieldNormalizer] = None,
                 matcher: Optional[CategoryMatcher] = None):
        self.config = config or ParserConfig()
        self.dispatcher = dispatcher or FormatDispatcher(self.config)
        self.normalizer = normalizer or FieldNormalizer(self.config)
        self.matcher = matcher or self._build_matcher(self.config)

    @staticmethod
    def _build_matcher(config: ParserConfig) -> CategoryMatcher:
        rules = None
        if config.category_rules:
            rules = RuleTable.from_entries(config.category_rules)
        return CategoryMatcher(rules=rules, default_categories=config.default_categories)

    def run(self, file_bytes: bytes,
            mime_type: Optional[str] = None,
            filename: Optional[str] = None,
            categorize: Optional[bool] = None) -> IngestionResult:
        """Ingest one uploaded file.

        Args:
            file_bytes: Raw file contents
            mime_type: Declared MIME type, or a bare extension such as ``csv``
            filename: Original file name; its extension wins over the MIME type
            categorize: Assign categories; defaults to ``config.categorize``

        Returns:
            IngestionResult with transactions in source order and row errors

        Raises:
            UnsupportedFormatError: when no extractor handles the format
            ExtractionError: when the file container cannot be read at all
        """
        if categorize is None:
            categorize = self.config.categorize

        extension = self.dispatcher.resolve_extension(filename=filename, mime_type=mime_type)
        extractor = self.dispatcher.dispatch(extension)
        source = filename or f"<{extension} upload>"
        logger.info(f"Ingesting {source} as {extension}")

        transactions: List[NormalizedTransaction] = []
        errors: List[ParseError] = []
        rows_read = 0

        for row_index, raw_row in enumerate(extractor.extract(file_bytes)):
            rows_read += 1
            outcome = self.normalizer.normalize(raw_row, row_index)
            if isinstance(outcome, ParseError):
                logger.warning(f"{source} row {row_index}: {outcome.reason}")
                errors.append(outcome)
                continue

            if categorize:
                outcome.category_id = self.matcher.categorize_transaction(outcome)
            transactions.append(outcome)

        result = IngestionResult(
            transactions=transactions,
            errors=errors,
            source_format=extension,
            rows_read=rows_read,
        )

        if result.is_empty:
            logger.warning(f"No transactions found in {source} ({rows_read} rows read)")
        else:
            logger.info(
                f"Normalized {len(transactions)} transactions from {source} "
                f"({len(errors)} rows rejected)"
            )
        return result


_default_pipeline: Optional[IngestionPipeline] = None


def get_default_pipeline() -> IngestionPipeline:
    """Shared pipeline built from the default configuration"""
    global _default_pipeline
    if _default_pipeline is None:
        _default_pipeline = IngestionPipeline()
    return _default_pipeline


def normalize(file_bytes: bytes, mime_type: Optional[str],
              filename: Optional[str] = None,
              categorize: bool = False) -> Tuple[List[NormalizedTransaction], List[ParseError]]:
    """Turn an uploaded statement into ``(transactions, errors)``"""
    result = get_default_pipeline().run(
        file_bytes, mime_type=mime_type, filename=filename, categorize=categorize
    )
    return result.transactions, result.errors


def categorize(description: str, amount,
               transaction_type: Union[TransactionType, str]) -> Optional[str]:
    """Category id for one transaction using the default rule table"""
    return get_default_pipeline().matcher.categorize(description, amount, transaction_type)
