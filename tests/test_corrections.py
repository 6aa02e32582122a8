"""Tests for the correction log."""

import json
import os
import shutil
import tempfile
import unittest
from decimal import Decimal

from fintrack.categorization.corrections import CorrectionLog
from fintrack.models.core import TransactionType


class TestCorrectionLog(unittest.TestCase):
    """Test cases for CorrectionLog"""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.log_path = os.path.join(self.temp_dir, 'nested', 'corrections.jsonl')
        self.log = CorrectionLog(self.log_path)

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_entries_empty_when_no_file(self):
        self.assertEqual(list(self.log.entries()), [])

    def test_record_appends_json_lines(self):
        self.log.record("Corner Deli", Decimal("-8.75"), TransactionType.EXPENSE, "Food & Dining")
        self.log.record("Side gig", 300, "income", "Income")

        with open(self.log_path, encoding='utf-8') as f:
            lines = f.read().splitlines()
        self.assertEqual(len(lines), 2)

        first = json.loads(lines[0])
        self.assertEqual(first['description'], "Corner Deli")
        self.assertEqual(first['amount'], "8.75")
        self.assertEqual(first['type'], "expense")
        self.assertEqual(first['category_id'], "Food & Dining")
        self.assertIn('recorded_at', first)

    def test_entries_read_back_in_order(self):
        self.log.record("One", 1, "expense", "Other")
        self.log.record("Two", 2, "income", "Income")

        entries = list(self.log.entries())

        self.assertEqual([entry['description'] for entry in entries], ["One", "Two"])

    def test_unreadable_lines_are_skipped(self):
        self.log.record("One", 1, "expense", "Other")
        with open(self.log_path, 'a', encoding='utf-8') as f:
            f.write("{not json\n\n")
        self.log.record("Two", 2, "expense", "Other")

        self.assertEqual(len(list(self.log.entries())), 2)

    def test_invalid_type_rejected(self):
        with self.assertRaises(ValueError):
            self.log.record("One", 1, "transfer", "Other")
        self.assertFalse(os.path.exists(self.log_path))
