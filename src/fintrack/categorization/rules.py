"""Immutable category rule table."""

from typing import Any, Dict, Iterable, Iterator, List, Mapping, Tuple

from ..models.core import CategoryRule, TransactionType


# Table order is the tie-break order; keep it stable.
DEFAULT_CATEGORY_RULES: List[Dict[str, Any]] = [
    {
        'category_id': 'Food & Dining',
        'type': 'expense',
        'keywords': [
            'restaurant', 'cafe', 'coffee', 'starbucks', 'mcdonalds', 'subway', 'pizza',
            'grocery', 'supermarket', 'walmart', 'target', 'safeway', 'kroger',
            'food', 'dining', 'lunch', 'dinner', 'breakfast', 'takeout', 'delivery',
            'uber eats', 'doordash', 'grubhub', 'postmates', 'snack'
        ],
    },
    {
        'category_id': 'Transportation',
        'type': 'expense',
        'keywords': [
            'gas', 'fuel', 'shell', 'exxon', 'chevron', 'bp', 'mobil',
            'uber', 'lyft', 'taxi', 'bus', 'train', 'metro', 'parking',
            'car payment', 'auto', 'dmv', 'registration',
            'mechanic', 'repair', 'oil change', 'tire'
        ],
    },
    {
        'category_id': 'Shopping',
        'type': 'expense',
        'keywords': [
            'amazon', 'ebay', 'shopping', 'mall', 'store', 'retail',
            'clothing', 'clothes', 'shoes', 'fashion', 'electronics',
            'best buy', 'apple store', 'costco', 'home depot', 'lowes'
        ],
    },
    {
        'category_id': 'Entertainment',
        'type': 'expense',
        'keywords': [
            'netflix', 'spotify', 'hulu', 'disney', 'amazon prime',
            'movie', 'cinema', 'theater', 'concert', 'game', 'gaming',
            'steam', 'playstation', 'xbox', 'entertainment',
            'bar', 'club', 'pub', 'drinks'
        ],
    },
    {
        'category_id': 'Bills & Utilities',
        'type': 'expense',
        'keywords': [
            'electric', 'electricity', 'utility', 'water', 'sewer',
            'internet', 'comcast', 'verizon', 'att', 'phone', 'cell',
            'rent', 'mortgage', 'loan', 'credit card',
            'insurance', 'bill', 'subscription'
        ],
    },
    {
        'category_id': 'Healthcare',
        'type': 'expense',
        'keywords': [
            'doctor', 'medical', 'hospital', 'pharmacy', 'cvs', 'walgreens',
            'dentist', 'dental', 'health', 'medicine', 'prescription',
            'clinic', 'urgent care'
        ],
    },
    {
        'category_id': 'Salary',
        'type': 'income',
        'keywords': [
            'salary', 'payroll', 'wage', 'wages', 'paycheck', 'direct deposit',
            'employer', 'pay'
        ],
    },
    {
        'category_id': 'Income',
        'type': 'income',
        'keywords': [
            'income', 'deposit', 'freelance', 'consulting', 'bonus', 'commission',
            'refund', 'cashback', 'interest', 'dividend'
        ],
    },
]


class RuleTable:
    """Ordered, read-only collection of category rules"""

    def __init__(self, rules: Iterable[CategoryRule]):
        self._rules: Tuple[CategoryRule, ...] = tuple(rules)
        seen = set()
        for rule in self._rules:
            if rule.category_id in seen:
                raise ValueError(f"Duplicate category rule: {rule.category_id}")
            seen.add(rule.category_id)

    @classmethod
    def from_entries(cls, entries: Iterable[Mapping[str, Any]]) -> "RuleTable":
        """Build a table from ``{category_id, type, keywords}`` mappings"""
        return cls(build_rule(entry) for entry in entries)

    def for_type(self, transaction_type: TransactionType) -> Tuple[CategoryRule, ...]:
        """Rules restricted to one transaction type, table order preserved"""
        return tuple(rule for rule in self._rules if rule.type is transaction_type)

    def to_entries(self) -> List[Dict[str, Any]]:
        return [
            {
                'category_id': rule.category_id,
                'type': rule.type.value,
                'keywords': list(rule.keywords),
            }
            for rule in self._rules
        ]

    def __iter__(self) -> Iterator[CategoryRule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)


def build_rule(entry: Mapping[str, Any]) -> CategoryRule:
    """Validate one configuration entry and turn it into a CategoryRule"""
    category_id = entry.get('category_id') or entry.get('name')
    if not category_id or not str(category_id).strip():
        raise ValueError(f"Category rule is missing its category_id: {entry}")

    keywords = entry.get('keywords')
    if not isinstance(keywords, (list, tuple)) or not keywords:
        raise ValueError(f"Category rule {category_id} needs a non-empty keyword list")

    cleaned: List[str] = []
    for keyword in keywords:
        text = ' '.join(str(keyword).lower().split())
        if text and text not in cleaned:
            cleaned.append(text)

    return CategoryRule(
        category_id=str(category_id).strip(),
        keywords=tuple(cleaned),
        type=TransactionType.from_value(entry.get('type', '')),
    )


DEFAULT_RULE_TABLE = RuleTable.from_entries(DEFAULT_CATEGORY_RULES)
