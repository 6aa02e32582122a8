"""Append-only log of user category corrections.

The matcher never reads this log. It only records what users changed so a
future learning step can be built from it without touching the rule table.
"""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterator, Union

from ..models.core import TransactionType


logger = logging.getLogger(__name__)


class CorrectionLog:
    """JSON-lines file of ``(description, amount, type) -> category`` corrections"""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def record(self, description: str, amount: Union[Decimal, float, int],
               transaction_type: Union[TransactionType, str],
               category_id: str) -> Dict[str, Any]:
        """Append one correction and return the stored entry"""
        entry = {
            'recorded_at': datetime.now(timezone.utc).isoformat(),
            'description': description,
            'amount': str(abs(Decimal(str(amount)))),
            'type': TransactionType.from_value(transaction_type).value,
            'category_id': category_id,
        }

        if self.path.parent and not self.path.parent.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.path, 'a', encoding='utf-8') as f:
            f.write(json.dumps(entry) + '\n')

        logger.info(f"Recorded correction: '{description}' -> {category_id}")
        return entry

    def entries(self) -> Iterator[Dict[str, Any]]:
        """Read back every recorded correction, oldest first"""
        if not self.path.exists():
            return
        with open(self.path, 'r', encoding='utf-8') as f:
            for line_number, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    yield json.loads(line)
                except json.JSONDecodeError:
                    logger.warning(f"Skipping unreadable correction on line {line_number} of {self.path}")
