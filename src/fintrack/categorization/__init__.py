"""Rule-based transaction categorization"""

from .corrections import CorrectionLog
from .matcher import AmountBand, CategoryMatcher, DEFAULT_AMOUNT_BANDS
from .rules import DEFAULT_CATEGORY_RULES, DEFAULT_RULE_TABLE, RuleTable, build_rule

__all__ = [
    'AmountBand',
    'CategoryMatcher',
    'CorrectionLog',
    'DEFAULT_AMOUNT_BANDS',
    'DEFAULT_CATEGORY_RULES',
    'DEFAULT_RULE_TABLE',
    'RuleTable',
    'build_rule',
]
