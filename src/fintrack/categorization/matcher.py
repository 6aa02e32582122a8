"""Rule-based category matching over transaction descriptions.

Each rule of the transaction's type is scored against the lower-cased
description:

- +10 for every keyword found as a whole word (bounded by whitespace or the
  ends of the string)
- +5 for every keyword found only inside a longer word
- +2 amount-band bonus for expenses, when a rule that already matched carries
  a keyword tied to the amount's magnitude (rent over 1000, coffee under 50)

The strictly highest score wins and ties keep the earlier rule, so results
depend only on the inputs and the table order.
"""

import logging
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple, Union

from .rules import DEFAULT_RULE_TABLE, RuleTable
from ..models.core import CategoryRule, MatchResult, NormalizedTransaction, TransactionType


logger = logging.getLogger(__name__)

WHOLE_WORD_SCORE = 10
SUBSTRING_SCORE = 5

Number = Union[Decimal, int, float]


@dataclass(frozen=True)
class AmountBand:
    """Bonus for rules carrying one of ``keywords`` when the amount is in range"""
    keywords: FrozenSet[str]
    bonus: int = 2
    above: Optional[Decimal] = None
    below: Optional[Decimal] = None

    def applies(self, amount: Optional[Decimal]) -> bool:
        if amount is None or not amount.is_finite():
            return False
        if self.above is not None and not amount > self.above:
            return False
        if self.below is not None and not amount < self.below:
            return False
        return True


DEFAULT_AMOUNT_BANDS: Tuple[AmountBand, ...] = (
    AmountBand(keywords=frozenset({'rent', 'mortgage', 'car'}), above=Decimal('1000')),
    AmountBand(keywords=frozenset({'coffee', 'food', 'snack'}), below=Decimal('50')),
)

DEFAULT_CATEGORIES: Dict[TransactionType, Optional[str]] = {
    TransactionType.EXPENSE: 'Other',
    TransactionType.INCOME: 'Income',
}


class CategoryMatcher:
    """Pure keyword scorer over an immutable rule table"""

    def __init__(self,
                 rules: Optional[RuleTable] = None,
                 default_categories: Optional[Mapping[Union[TransactionType, str], Optional[str]]] = None,
                 amount_bands: Iterable[AmountBand] = DEFAULT_AMOUNT_BANDS):
        self.rules = rules if rules is not None else DEFAULT_RULE_TABLE
        self.amount_bands = tuple(amount_bands)

        if default_categories is None:
            default_categories = DEFAULT_CATEGORIES
        self.default_categories: Dict[TransactionType, Optional[str]] = {
            TransactionType.from_value(key): value
            for key, value in default_categories.items()
        }

        self._patterns = {
            rule.category_id: tuple(
                (keyword, self._whole_word_pattern(keyword)) for keyword in rule.keywords
            )
            for rule in self.rules
        }

    @staticmethod
    def _whole_word_pattern(keyword: str) -> "re.Pattern":
        return re.compile(r'(?<!\S)' + re.escape(keyword) + r'(?!\S)')

    def categorize(self, description: str, amount: Number,
                   transaction_type: Union[TransactionType, str]) -> Optional[str]:
        """Category id for the transaction, the type's default, or None"""
        transaction_type = TransactionType.from_value(transaction_type)
        match = self.best_match(description, amount, transaction_type)
        if match is not None:
            return match.category_id

        default = self.default_categories.get(transaction_type)
        logger.debug(f"No rule matched '{description}', using default {default!r}")
        return default

    def best_match(self, description: str, amount: Number,
                   transaction_type: Union[TransactionType, str]) -> Optional[MatchResult]:
        """Highest scoring rule, or None when every candidate scores zero"""
        best: Optional[MatchResult] = None
        for category_id, score in self.score_all(description, amount, transaction_type):
            if score > 0 and (best is None or score > best.score):
                best = MatchResult(category_id=category_id, score=score)
        return best

    def score_all(self, description: str, amount: Number,
                  transaction_type: Union[TransactionType, str]) -> List[Tuple[str, int]]:
        """Score of every candidate rule, in table order"""
        transaction_type = TransactionType.from_value(transaction_type)
        text = ' '.join((description or '').lower().split())
        magnitude = self._magnitude(amount)

        return [
            (rule.category_id, self.score_rule(rule, text, magnitude, transaction_type))
            for rule in self.rules.for_type(transaction_type)
        ]

    @staticmethod
    def _magnitude(amount: Number) -> Optional[Decimal]:
        """Absolute amount, None when it is not a finite number"""
        try:
            magnitude = abs(Decimal(str(amount)))
        except InvalidOperation:
            return None
        return magnitude if magnitude.is_finite() else None

    def score_rule(self, rule: CategoryRule, text: str, amount: Optional[Decimal],
                   transaction_type: TransactionType) -> int:
        score = 0
        for keyword, pattern in self._patterns[rule.category_id]:
            if keyword not in text:
                continue
            score += WHOLE_WORD_SCORE if pattern.search(text) else SUBSTRING_SCORE

        if score and transaction_type is TransactionType.EXPENSE:
            keywords = set(rule.keywords)
            for band in self.amount_bands:
                if band.applies(amount) and keywords & band.keywords:
                    score += band.bonus

        return score

    def categorize_transaction(self, transaction: NormalizedTransaction) -> Optional[str]:
        return self.categorize(transaction.description, transaction.amount, transaction.type)

    def categorize_many(self, transactions: Iterable[NormalizedTransaction]) -> List[Tuple[Optional[str], float]]:
        """Category and a rough confidence for each transaction.

        Confidence is 0.8 whenever a category comes back, type defaults
        included, and 0.0 when nothing could be assigned.
        """
        results = []
        for transaction in transactions:
            category_id = self.categorize_transaction(transaction)
            results.append((category_id, 0.8 if category_id else 0.0))
        return results
