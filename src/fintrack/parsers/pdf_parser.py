"""PDF row extractor scanning statement text line by line."""

import io
import logging
import re
from typing import Iterator, List, Optional, Tuple

import pdfplumber

from .base import RowExtractor
from ..models.core import ParserConfig, RawRow
from ..utils.error_handler import ExtractionError


logger = logging.getLogger(__name__)


class PDFExtractor(RowExtractor):
    """Best-effort extractor for text-based PDF statements.

    Only lines carrying both a date and a currency amount become rows.
    Everything else (headers, footers, wrapped descriptions) is skipped
    without being reported, so transactions laid out differently are
    silently missed.
    """

    DATE_PATTERN = re.compile(
        r'(?<!\d)(\d{4}-\d{1,2}-\d{1,2}|\d{1,2}/\d{1,2}/\d{4}|\d{1,2}-\d{1,2}-\d{4})(?!\d)'
    )
    # Cents are required so reference numbers and years are not taken as amounts
    AMOUNT_PATTERN = re.compile(
        r'(?<![\w.,])\(?[-+]?[\$£€¥₹]?\s?(?:\d{1,3}(?:,\d{3})+|\d+)\.\d{2}\)?(?![\d,])'
    )

    def __init__(self, config: ParserConfig):
        super().__init__(config)
        self.supported_extensions = ['pdf']

    def get_supported_extensions(self) -> List[str]:
        """Return list of supported file extensions"""
        return self.supported_extensions

    def extract(self, file_bytes: bytes) -> Iterator[RawRow]:
        try:
            pdf = pdfplumber.open(io.BytesIO(file_bytes))
        except Exception as e:
            raise ExtractionError(f"Unable to open PDF: {e}") from e

        with pdf:
            logger.info(f"Processing PDF with {len(pdf.pages)} pages")
            rows = 0

            for page_num, page in enumerate(pdf.pages, 1):
                try:
                    text = page.extract_text() or ""
                except Exception as e:
                    raise ExtractionError(f"Unable to read text from page {page_num}: {e}") from e

                if not text.strip():
                    logger.debug(f"Page {page_num} has no extractable text")
                    continue

                for line in text.splitlines():
                    row = self.parse_line(line)
                    if row is None:
                        continue
                    rows += 1
                    yield row

            logger.info(f"Found {rows} transaction lines in PDF")

    def parse_line(self, line: str) -> Optional[RawRow]:
        """Split one text line into date, amount and description"""
        line = line.strip()
        if len(line) < self.config.pdf_min_line_length:
            return None

        date_match = self.DATE_PATTERN.search(line)
        if not date_match:
            logger.debug(f"Skipping line without date: {line}")
            return None

        # Blank out the date so its digits cannot be read as an amount
        date_span = date_match.span()
        masked = line[:date_span[0]] + ' ' * (date_span[1] - date_span[0]) + line[date_span[1]:]
        amount_match = self.AMOUNT_PATTERN.search(masked)
        if not amount_match:
            logger.debug(f"Skipping line without amount: {line}")
            return None

        description = self._remove_spans(line, [date_span, amount_match.span()])

        return {
            'date': date_match.group(0),
            'amount': re.sub(r'\s', '', amount_match.group(0)),
            'description': description,
        }

    @staticmethod
    def _remove_spans(line: str, spans: List[Tuple[int, int]]) -> str:
        """Cut the matched spans out by position and tidy what is left"""
        pieces = []
        cursor = 0
        for start, end in sorted(spans):
            pieces.append(line[cursor:start])
            cursor = end
        pieces.append(line[cursor:])
        remainder = ' '.join(' '.join(pieces).split())
        return remainder.lstrip('+- ').strip()
