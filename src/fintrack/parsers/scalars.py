"""Locale-tolerant amount and date parsing."""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import List, Optional

from dateutil import parser as date_parser

from ..models.core import ParserConfig


CURRENCY_PATTERN = re.compile(r'[\$£€¥₹\s]|\b(?:USD|EUR|GBP|INR|CAD|AUD)\b', re.IGNORECASE)
EUROPEAN_PATTERN = re.compile(r'^\d{1,3}(\.\d{3})*,\d{1,2}$')
US_PATTERN = re.compile(r'^\d{1,3}(,\d{3})*(\.\d+)?$')
NUMBER_PATTERN = re.compile(r'^\d+(\.\d+)?$|^\.\d+$')

# Two distinct defaults; dateutil fills whatever the text leaves out from these
FALLBACK_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


class AmountParser:
    """Parses monetary strings such as ``$1,234.56``, ``(25.00)`` or ``1.234,56``"""

    def parse(self, value: Optional[str]) -> Optional[Decimal]:
        """Return the signed amount, or None if the value is not a number"""
        if value is None:
            return None

        text = str(value).strip()
        if not text:
            return None

        cleaned = CURRENCY_PATTERN.sub('', text)

        # Sign markers come off before separators are interpreted
        is_negative = False
        if cleaned.startswith('(') and cleaned.endswith(')'):
            cleaned = cleaned[1:-1]
            is_negative = True
        if cleaned.startswith('-'):
            cleaned = cleaned[1:]
            is_negative = not is_negative
        elif cleaned.startswith('+'):
            cleaned = cleaned[1:]
        elif cleaned.endswith('-'):
            # Trailing minus, e.g. "25.00-"
            cleaned = cleaned[:-1]
            is_negative = True

        cleaned = self._strip_separators(cleaned)
        if cleaned is None or not NUMBER_PATTERN.match(cleaned):
            return None

        try:
            amount = Decimal(cleaned)
        except InvalidOperation:
            return None

        if is_negative:
            amount = -amount
        return amount.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)

    def _strip_separators(self, cleaned: str) -> Optional[str]:
        if not cleaned:
            return None
        # European format: 1.234,56 -> 1234.56
        if EUROPEAN_PATTERN.match(cleaned):
            return cleaned.replace('.', '').replace(',', '.')
        # US format with commas: 1,234.56 -> 1234.56
        if US_PATTERN.match(cleaned):
            return cleaned.replace(',', '')
        if ',' in cleaned and '.' not in cleaned:
            # A lone comma followed by one or two digits is a decimal separator
            if re.match(r'^\d+,\d{1,2}$', cleaned):
                return cleaned.replace(',', '.')
            return cleaned.replace(',', '')
        if ',' in cleaned and '.' in cleaned and cleaned.rfind(',') < cleaned.rfind('.'):
            return cleaned.replace(',', '')
        return cleaned


class DateParser:
    """Parses dates using an ordered, first-match list of formats"""

    def __init__(self, config: Optional[ParserConfig] = None, formats: Optional[List[str]] = None):
        config = config or ParserConfig()
        self.formats = list(formats if formats is not None else config.date_formats)

    def parse(self, value: Optional[str]) -> Optional[date]:
        """Return the calendar date, or None when no format fits"""
        if value is None:
            return None

        text = str(value).strip()
        if not text:
            return None

        for fmt in self.formats:
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                continue

        # ISO timestamps such as "2023-12-31T00:00:00Z"
        iso_match = re.match(r'^(\d{4}-\d{2}-\d{2})[T ]', text)
        if iso_match:
            try:
                return datetime.strptime(iso_match.group(1), "%Y-%m-%d").date()
            except ValueError:
                pass

        return self._fallback_parse(text)

    def _fallback_parse(self, text: str) -> Optional[date]:
        # Without digits there is no date to find
        if not re.search(r'\d', text):
            return None
        cleaned = re.sub(r'(\d+)(st|nd|rd|th)\b', r'\1', text)
        try:
            first = date_parser.parse(cleaned, default=FALLBACK_DEFAULTS[0]).date()
            second = date_parser.parse(cleaned, default=FALLBACK_DEFAULTS[1]).date()
        except (ValueError, OverflowError):
            return None
        # A part missing from the text would come from the defaults
        if first != second:
            return None
        return first

    def to_iso(self, value: Optional[str]) -> Optional[str]:
        """Normalize a date string to YYYY-MM-DD"""
        parsed = self.parse(value)
        return parsed.isoformat() if parsed else None
