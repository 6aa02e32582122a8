"""Core data models for statement ingestion and categorization."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, Dict, Any, Optional, Tuple


# A raw row is whatever label -> value mapping the source file gave us.
RawRow = Dict[str, str]


class TransactionType(Enum):
    """Direction of a transaction"""
    INCOME = "income"
    EXPENSE = "expense"

    @classmethod
    def from_value(cls, value: Any) -> "TransactionType":
        """Accept an enum member or a case-insensitive name/value string."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for member in cls:
            if text in (member.value, member.name.lower()):
                return member
        raise ValueError(f"Unknown transaction type: {value!r}")


@dataclass
class NormalizedTransaction:
    """Canonical transaction record produced from a single raw row.

    Attributes:
        date: Calendar date of the transaction (day precision)
        description: Non-empty free-text description
        amount: Absolute magnitude, never negative
        type: Income or Expense; the only carrier of sign information
        account: Account identifier when the source provides one
        reference: Bank reference / transaction id when present
        category_id: Category assigned by the matcher, if categorization ran
    """
    date: date
    description: str
    amount: Decimal
    type: TransactionType
    account: Optional[str] = None
    reference: Optional[str] = None
    category_id: Optional[str] = None

    def __post_init__(self):
        if self.amount < 0:
            raise ValueError("Transaction amount must be an absolute magnitude")
        if not self.description or not self.description.strip():
            raise ValueError("Transaction description cannot be empty")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON/CSV friendly dictionary"""
        return {
            'date': self.date.isoformat(),
            'description': self.description,
            'amount': str(self.amount),
            'type': self.type.value,
            'account': self.account,
            'reference': self.reference,
            'category_id': self.category_id,
        }


@dataclass
class ParseError:
    """A raw row that could not be normalized"""
    row_index: int
    raw_row: RawRow
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'row_index': self.row_index,
            'raw_row': dict(self.raw_row),
            'reason': self.reason,
        }


@dataclass(frozen=True)
class CategoryRule:
    """Keyword rule for one category.

    Attributes:
        category_id: Category name, used as its identifier
        keywords: Lower-cased keywords in table order
        type: Transaction type the rule applies to
    """
    category_id: str
    keywords: Tuple[str, ...]
    type: TransactionType


@dataclass(frozen=True)
class MatchResult:
    """Winning rule for a transaction"""
    category_id: str
    score: int


@dataclass
class IngestionResult:
    """Outcome of running one uploaded file through the pipeline"""
    transactions: List[NormalizedTransaction]
    errors: List[ParseError]
    source_format: str
    rows_read: int = 0

    @property
    def is_empty(self) -> bool:
        """True when the file produced no usable transactions"""
        return not self.transactions

    def summary(self) -> Dict[str, Any]:
        """Counts and totals per transaction type"""
        income = [t for t in self.transactions if t.type is TransactionType.INCOME]
        expenses = [t for t in self.transactions if t.type is TransactionType.EXPENSE]
        return {
            'total_transactions': len(self.transactions),
            'income_transactions': len(income),
            'expense_transactions': len(expenses),
            'total_income': sum((t.amount for t in income), Decimal('0')),
            'total_expenses': sum((t.amount for t in expenses), Decimal('0')),
            'rows_read': self.rows_read,
            'errors': len(self.errors),
        }


@dataclass
class ParserConfig:
    """Configuration for ingestion and categorization behavior"""
    date_formats: Optional[List[str]] = None
    csv_chunk_size: int = 500
    csv_encoding: str = "utf-8-sig"
    pdf_min_line_length: int = 10
    categorize: bool = False
    default_categories: Optional[Dict[str, Optional[str]]] = None
    category_rules: Optional[List[Dict[str, Any]]] = None
    correction_log_path: str = "corrections.jsonl"

    def __post_init__(self):
        if self.date_formats is None:
            self.date_formats = [
                "%Y-%m-%d", "%m/%d/%Y", "%d/%m/%Y", "%d-%m-%Y",
                "%Y-%m-%d %H:%M:%S", "%Y/%m/%d", "%m/%d/%y", "%d/%m/%y"
            ]
        if self.default_categories is None:
            self.default_categories = {
                TransactionType.EXPENSE.value: "Other",
                TransactionType.INCOME.value: "Income",
            }
