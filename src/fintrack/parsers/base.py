"""Abstract base class and shared helpers for row extractors."""

import math
from abc import ABC, abstractmethod
from typing import Any, Iterator, List, Optional

from ..models.core import ParserConfig, RawRow


class RowExtractor(ABC):
    """Turns file bytes into a lazy, single-pass sequence of raw rows"""

    def __init__(self, config: ParserConfig):
        self.config = config

    @abstractmethod
    def extract(self, file_bytes: bytes) -> Iterator[RawRow]:
        """Yield one RawRow per source record.

        Raises:
            ExtractionError: if the container itself cannot be read
        """
        pass

    @abstractmethod
    def get_supported_extensions(self) -> List[str]:
        """Return list of supported file extensions"""
        pass

    def supports(self, file_extension: str) -> bool:
        return file_extension.lower().lstrip('.') in self.get_supported_extensions()


def cell_to_str(value: Any) -> Optional[str]:
    """Convert a pandas cell to a stripped string, None when the cell is missing"""
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    return str(value).strip()


def record_to_raw_row(record: dict) -> RawRow:
    """Build a RawRow from a pandas record, leaving missing cells out"""
    row: RawRow = {}
    for label, value in record.items():
        text = cell_to_str(value)
        if text is not None:
            row[str(label).strip()] = text
    return row
