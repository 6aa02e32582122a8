"""Data models and structures"""

from .core import (
    CategoryRule,
    IngestionResult,
    MatchResult,
    NormalizedTransaction,
    ParseError,
    ParserConfig,
    RawRow,
    TransactionType,
)

__all__ = [
    'CategoryRule',
    'IngestionResult',
    'MatchResult',
    'NormalizedTransaction',
    'ParseError',
    'ParserConfig',
    'RawRow',
    'TransactionType',
]
