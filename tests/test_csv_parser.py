"""Tests for CSV row extraction."""

import pytest

from fintrack.models.core import ParserConfig
from fintrack.parsers.csv_parser import CSVExtractor
from fintrack.utils.error_handler import ExtractionError


class TestCSVExtractor:
    """Test cases for CSV extractor"""

    def setup_method(self):
        """Set up test fixtures"""
        self.config = ParserConfig()
        self.extractor = CSVExtractor(self.config)

    def test_supported_extensions(self):
        """Test that CSV extractor supports correct extensions"""
        assert self.extractor.get_supported_extensions() == ['csv']
        assert self.extractor.supports('.CSV')
        assert not self.extractor.supports('pdf')

    def test_labels_are_stripped(self):
        rows = list(self.extractor.extract(b"Date, Amount ,Description\n2024-01-01,1.00,x\n"))
        assert list(rows[0]) == ['Date', 'Amount', 'Description']

    def test_parse_simple_csv(self):
        """Test extracting a simple CSV file"""
        csv_content = (
            b"Date,Amount,Description,Account\n"
            b"2024-01-01,100.50,Test Transaction,1234\n"
            b"2024-01-02,-25.00,Another Transaction,1234\n"
        )

        rows = list(self.extractor.extract(csv_content))

        assert len(rows) == 2
        assert rows[0] == {
            'Date': '2024-01-01',
            'Amount': '100.50',
            'Description': 'Test Transaction',
            'Account': '1234',
        }
        assert rows[1]['Amount'] == '-25.00'

    def test_values_stay_text(self):
        """Leading zeros and amounts are not coerced to numbers"""
        rows = list(self.extractor.extract(b"Date,Amount,Account\n2024-01-01,1.10,0042\n"))

        assert rows[0]['Amount'] == '1.10'
        assert rows[0]['Account'] == '0042'

    def test_quoted_fields(self):
        csv_content = b'Date,Description,Amount\n2024-01-01,"Smith, John","1,234.56"\n'

        rows = list(self.extractor.extract(csv_content))

        assert rows[0]['Description'] == 'Smith, John'
        assert rows[0]['Amount'] == '1,234.56'

    def test_byte_order_mark_is_dropped(self):
        csv_content = b"\xef\xbb\xbfDate,Amount\n2024-01-01,5.00\n"

        rows = list(self.extractor.extract(csv_content))

        assert 'Date' in rows[0]

    def test_short_row_keeps_going(self):
        csv_content = (
            b"Date,Description,Amount\n"
            b"2024-01-01,Coffee\n"
            b"2024-01-02,Lunch,-12.00\n"
        )

        rows = list(self.extractor.extract(csv_content))

        assert len(rows) == 2
        assert not rows[0].get('Amount')
        assert rows[1]['Amount'] == '-12.00'

    def test_rows_are_streamed_in_chunks(self):
        extractor = CSVExtractor(ParserConfig(csv_chunk_size=2))
        lines = ["Date,Description,Amount"]
        lines += [f"2024-01-{day:02d},Item {day},-{day}.00" for day in range(1, 8)]

        rows = list(extractor.extract("\n".join(lines).encode('utf-8')))

        assert [row['Description'] for row in rows] == [f"Item {day}" for day in range(1, 8)]

    def test_extract_is_lazy(self):
        csv_content = b"Date,Amount\n2024-01-01,1.00\n2024-01-02,2.00\n"

        iterator = self.extractor.extract(csv_content)
        first = next(iterator)

        assert first['Amount'] == '1.00'

    def test_empty_input(self):
        assert list(self.extractor.extract(b"")) == []
        assert list(self.extractor.extract(b"  \n\n")) == []

    def test_header_only(self):
        assert list(self.extractor.extract(b"Date,Amount,Description\n")) == []

    def test_undecodable_bytes_are_replaced(self):
        csv_content = b"Date,Description,Amount\n2024-01-01,Caf\xe9,-3.00\n"

        rows = list(self.extractor.extract(csv_content))

        assert rows[0]['Description'].startswith('Caf')
        assert rows[0]['Amount'] == '-3.00'


    def test_long_row_is_cut_to_header_width(self):
        csv_content = (
            b"Date,Description,Amount\n"
            b"2024-01-01,Coffee,-3.00,extra,more\n"
            b"2024-01-02,Lunch,-12.00\n"
        )

        rows = list(self.extractor.extract(csv_content))

        assert rows[0] == {'Date': '2024-01-01', 'Description': 'Coffee', 'Amount': '-3.00'}
        assert rows[1]['Description'] == 'Lunch'

    def test_stray_quote_stays_on_its_line(self):
        csv_content = (
            b'Date,Description,Amount\n'
            b'2024-01-01,"Coffee,-3.00\n'
            b'2024-01-02,Lunch,-12.00\n'
            b'2024-01-03,Tea,-2.00\n'
        )

        rows = list(self.extractor.extract(csv_content))

        assert len(rows) == 3
        assert rows[0]['Date'] == '2024-01-01'
        assert 'Coffee' in rows[0]['Description']
        assert rows[1] == {'Date': '2024-01-02', 'Description': 'Lunch', 'Amount': '-12.00'}
        assert rows[2]['Description'] == 'Tea'

    def test_stray_quote_in_header(self):
        rows = list(self.extractor.extract(b'Date,"Description,Amount\n2024-01-01,Coffee,-3.00\n'))

        assert rows[0]['Date'] == '2024-01-01'
        assert len(rows[0]) == 2

    def test_tokenise(self):
        assert CSVExtractor.tokenise('a, "b, c",d') == ['a', 'b, c', 'd']
        assert CSVExtractor.tokenise('a,"b') == ['a', 'b']

    def test_repeated_and_blank_labels(self):
        rows = list(self.extractor.extract(b"Amount,Amount,\n1.00,2.00,x\n"))

        assert rows[0] == {'Amount': '1.00', 'Amount.1': '2.00', 'Unnamed: 2': 'x'}

    def test_unknown_encoding(self):
        extractor = CSVExtractor(ParserConfig(csv_encoding='no-such-codec'))

        with pytest.raises(ExtractionError):
            list(extractor.extract(b"Date,Amount\n2024-01-01,1.00\n"))
