"""CSV output writer for normalized transactions and rejected rows."""

import os
import csv
import json
import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, List, Optional

from ..models.core import NormalizedTransaction, ParseError, TransactionType


logger = logging.getLogger(__name__)


class CSVWriter:
    """Writes ingestion output in the standard column layout"""

    # Standard CSV column headers in the unified format
    STANDARD_HEADERS = [
        'date',
        'description',
        'amount',
        'type',
        'account',
        'reference',
        'category_id'
    ]

    ERROR_HEADERS = ['row_index', 'reason', 'raw_row']

    def write_transactions(self, transactions: List[NormalizedTransaction], output_path: str) -> bool:
        """
        Write transactions to CSV file with standardized format

        Args:
            transactions: Normalized transactions, written in the given order
            output_path: Path where CSV file should be written

        Returns:
            True if successful, False otherwise
        """
        if not transactions:
            return False

        rows = (self._transaction_to_dict(transaction) for transaction in transactions)
        return self._write_rows(output_path, self.STANDARD_HEADERS, rows)

    def write_errors(self, errors: List[ParseError], output_path: str) -> bool:
        """Write rejected rows with their reasons; the raw row is kept as JSON"""
        if not errors:
            return False

        rows = (
            {
                'row_index': error.row_index,
                'reason': error.reason,
                'raw_row': json.dumps(error.raw_row, ensure_ascii=False),
            }
            for error in errors
        )
        return self._write_rows(output_path, self.ERROR_HEADERS, rows)

    def _write_rows(self, output_path: str, headers: List[str], rows: Iterable[Dict]) -> bool:
        try:
            output_dir = os.path.dirname(output_path)
            if output_dir:
                os.makedirs(output_dir, exist_ok=True)

            with open(output_path, 'w', newline='', encoding='utf-8') as csvfile:
                writer = csv.DictWriter(csvfile, fieldnames=headers)
                writer.writeheader()
                for row in rows:
                    writer.writerow(row)

            logger.info(f"Wrote {output_path}")
            return True

        except (OSError, csv.Error) as e:
            logger.error(f"Failed to write {output_path}: {e}")
            return False

    def create_unique_filename(self, base_path: str) -> str:
        """
        Create unique filename if file already exists

        Args:
            base_path: Base file path

        Returns:
            Unique file path (may have suffix added)
        """
        if not os.path.exists(base_path):
            return base_path

        path_without_ext, ext = os.path.splitext(base_path)

        counter = 1
        while counter <= 999:
            new_path = f"{path_without_ext}_{counter:03d}{ext}"
            if not os.path.exists(new_path):
                return new_path
            counter += 1

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return f"{path_without_ext}_{timestamp}{ext}"

    def validate_csv_output(self, csv_path: str) -> List[str]:
        """
        Validate generated CSV file for data integrity

        Args:
            csv_path: Path to CSV file to validate

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not os.path.exists(csv_path):
            errors.append(f"CSV file does not exist: {csv_path}")
            return errors

        valid_types = {member.value for member in TransactionType}

        try:
            with open(csv_path, 'r', encoding='utf-8') as csvfile:
                reader = csv.DictReader(csvfile)

                if reader.fieldnames != self.STANDARD_HEADERS:
                    errors.append(f"Invalid headers. Expected: {self.STANDARD_HEADERS}, Got: {reader.fieldnames}")

                row_count = 0
                for row_num, row in enumerate(reader, start=2):  # Start at 2 (after header)
                    row_count += 1

                    for required in ('date', 'amount', 'description', 'type'):
                        if not row.get(required):
                            errors.append(f"Row {row_num}: Missing {required}")

                    if row.get('date'):
                        try:
                            datetime.strptime(row['date'], '%Y-%m-%d')
                        except ValueError:
                            errors.append(f"Row {row_num}: Invalid date format: {row['date']}")

                    if row.get('amount'):
                        amount = self._parse_decimal(row['amount'])
                        if amount is None:
                            errors.append(f"Row {row_num}: Invalid amount format: {row['amount']}")
                        elif amount < 0:
                            errors.append(f"Row {row_num}: Negative amount: {row['amount']}")

                    if row.get('type') and row['type'] not in valid_types:
                        errors.append(f"Row {row_num}: Invalid type: {row['type']}")

                if row_count == 0:
                    errors.append("CSV file contains no data rows")

        except (csv.Error, UnicodeDecodeError) as e:
            errors.append(f"Error reading CSV file: {str(e)}")

        return errors

    @staticmethod
    def _parse_decimal(value: str) -> Optional[Decimal]:
        try:
            return Decimal(value)
        except InvalidOperation:
            return None

    def _transaction_to_dict(self, transaction: NormalizedTransaction) -> Dict[str, str]:
        """Convert a NormalizedTransaction to a dictionary for CSV writing"""
        return {
            'date': transaction.date.strftime('%Y-%m-%d'),
            'description': transaction.description,
            'amount': str(transaction.amount),
            'type': transaction.type.value,
            'account': transaction.account or '',
            'reference': transaction.reference or '',
            'category_id': transaction.category_id or '',
        }
