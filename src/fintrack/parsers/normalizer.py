"""Maps raw rows with arbitrary column labels onto the canonical transaction."""

import logging
import re
from decimal import Decimal
from typing import Dict, Optional, Tuple, Union

from .scalars import AmountParser, DateParser
from ..models.core import (
    NormalizedTransaction, ParseError, ParserConfig, RawRow, TransactionType
)


logger = logging.getLogger(__name__)


def canonicalize_label(label: str) -> str:
    """Lower-case a column label and drop everything that is not a letter or digit"""
    return re.sub(r'[^a-z0-9]', '', str(label).lower())


class RowNormalizationError(ValueError):
    """Raised internally when a required field cannot be extracted"""


class FieldNormalizer:
    """Converts a RawRow into a NormalizedTransaction or a ParseError"""

    # Canonical labels, in priority order
    AMOUNT_FIELDS = (
        'amount', 'amt', 'value', 'sum', 'total',
        'debit', 'credit', 'transaction', 'transactionamount',
        'withdrawals', 'deposits', 'withdrawal', 'deposit',
        'moneyout', 'moneyin', 'payment', 'charge'
    )
    AMOUNT_LABEL_HINTS = ('amount', 'sum', 'total')

    DESCRIPTION_FIELDS = (
        'description', 'desc', 'memo', 'details', 'note', 'notes',
        'reference', 'ref', 'payee', 'merchant', 'vendor',
        'transactiondescription', 'narrative', 'narration', 'particulars'
    )

    DATE_FIELDS = (
        'date', 'transactiondate', 'txndate', 'trandate', 'transdate',
        'postdate', 'postingdate', 'posteddate', 'valuedate', 'bookingdate',
        'datetime', 'timestamp', 'created', 'processed'
    )

    TYPE_FIELDS = ('type', 'transactiontype', 'txntype', 'debitcredit', 'drcr')
    INCOME_TYPE_KEYWORDS = ('credit', 'deposit', 'income')
    EXPENSE_TYPE_KEYWORDS = ('debit', 'withdrawal', 'expense')

    DEBIT_FIELDS = ('debit', 'debitamount', 'withdrawal', 'withdrawals', 'moneyout')
    CREDIT_FIELDS = ('credit', 'creditamount', 'deposit', 'deposits', 'moneyin')

    ACCOUNT_FIELDS = ('account', 'accountnumber', 'acct', 'accountid', 'accountno')
    REFERENCE_FIELDS = (
        'reference', 'transactionid', 'id', 'refnumber', 'referencenumber',
        'checknumber', 'chequenumber'
    )

    NUMERIC_LOOKING = re.compile(r'^\s*[-+(]?\s*[\$£€¥₹]?\s*\d')

    def __init__(self, config: Optional[ParserConfig] = None):
        self.config = config or ParserConfig()
        self.amount_parser = AmountParser()
        self.date_parser = DateParser(self.config)

    def normalize(self, raw_row: RawRow, row_index: int = 0) -> Union[NormalizedTransaction, ParseError]:
        """Normalize one row; failures come back as a ParseError, never raised"""
        fields = self.canonicalize(raw_row)

        try:
            amount = self._extract_amount(fields)
            description = self._extract_description(fields)
            transaction_date = self._extract_date(fields)
        except RowNormalizationError as e:
            logger.debug(f"Row {row_index} rejected: {e}")
            return ParseError(row_index=row_index, raw_row=dict(raw_row), reason=str(e))

        transaction_type = self.determine_type(fields, amount)

        return NormalizedTransaction(
            date=transaction_date,
            description=description,
            amount=abs(amount),
            type=transaction_type,
            account=self._first_value(fields, self.ACCOUNT_FIELDS),
            reference=self._first_value(fields, self.REFERENCE_FIELDS),
        )

    def canonicalize(self, raw_row: RawRow) -> Dict[str, str]:
        """Re-key a row by canonical label; the first label wins on collisions"""
        fields: Dict[str, str] = {}
        for label, value in raw_row.items():
            if value is None:
                continue
            key = canonicalize_label(label)
            if key and key not in fields:
                fields[key] = str(value).strip()
        return fields

    def _extract_amount(self, fields: Dict[str, str]) -> Decimal:
        """First parseable amount in priority order.

        A zero in one half of a debit/credit pair gives way to the other half
        when that one is populated.
        """
        pair_fields = self.DEBIT_FIELDS + self.CREDIT_FIELDS
        for field in self.AMOUNT_FIELDS:
            parsed = self.amount_parser.parse(fields.get(field))
            if parsed is None:
                continue
            if parsed == 0 and field in pair_fields and self._is_populated(fields, pair_fields):
                continue
            return parsed

        for key, value in fields.items():
            if any(hint in key for hint in self.AMOUNT_LABEL_HINTS):
                parsed = self.amount_parser.parse(value)
                if parsed is not None:
                    return parsed

        raise RowNormalizationError("Could not parse amount from row")

    def _extract_description(self, fields: Dict[str, str]) -> str:
        description = self._first_value(fields, self.DESCRIPTION_FIELDS)
        if description is None:
            # Fall back to the first textual value in the row
            for value in fields.values():
                if value and not self.NUMERIC_LOOKING.match(value):
                    description = value
                    break

        if description is None:
            raise RowNormalizationError("Could not parse description from row")
        return ' '.join(description.split())

    def _extract_date(self, fields: Dict[str, str]):
        for field in self.DATE_FIELDS:
            parsed = self.date_parser.parse(fields.get(field))
            if parsed is not None:
                return parsed
        raise RowNormalizationError("Could not parse date from row")

    def determine_type(self, fields: Dict[str, str], amount: Decimal) -> TransactionType:
        """Decide income vs expense: explicit type column, then debit/credit columns, then sign"""
        for field in self.TYPE_FIELDS:
            value = fields.get(field, '').lower()
            if not value:
                continue
            if any(keyword in value for keyword in self.INCOME_TYPE_KEYWORDS):
                return TransactionType.INCOME
            if any(keyword in value for keyword in self.EXPENSE_TYPE_KEYWORDS):
                return TransactionType.EXPENSE

        if self._is_populated(fields, self.DEBIT_FIELDS):
            return TransactionType.EXPENSE
        if self._is_populated(fields, self.CREDIT_FIELDS):
            return TransactionType.INCOME

        return TransactionType.EXPENSE if amount < 0 else TransactionType.INCOME

    def _is_populated(self, fields: Dict[str, str], names: Tuple[str, ...]) -> bool:
        for name in names:
            parsed = self.amount_parser.parse(fields.get(name))
            if parsed is not None and parsed != 0:
                return True
        return False

    @staticmethod
    def _first_value(fields: Dict[str, str], names: Tuple[str, ...]) -> Optional[str]:
        for name in names:
            value = fields.get(name)
            if value:
                return value
        return None
