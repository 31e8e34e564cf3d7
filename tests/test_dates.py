"""
Tests for calendar date parsing and dd/mm/yyyy display helpers.
"""
from datetime import date, datetime

import pytest

from kidchart.models.dates import (
    date_to_string_ddmmyyyy, format_date_ddmmyyyy, parse_date_ddmmyyyy,
    parse_iso_date, today_ddmmyyyy,
)
from kidchart.models.exceptions import InvalidDateError


class TestParseIsoDate:

    def test_string(self):
        assert parse_iso_date('2024-01-15') == date(2024, 1, 15)

    def test_datetime_keeps_day(self):
        assert parse_iso_date(datetime(2024, 1, 15, 18, 30)) == date(2024, 1, 15)

    @pytest.mark.parametrize("bad", ['', '15/01/2024', '2024-13-01', None, 20240115])
    def test_rejects_garbage(self, bad):
        with pytest.raises(InvalidDateError):
            parse_iso_date(bad)

    def test_invalid_date_is_value_error(self):
        with pytest.raises(ValueError):
            parse_iso_date('2024-02-30')


class TestFormatDateDDMMYYYY:

    def test_converts(self):
        assert format_date_ddmmyyyy('2024-01-15') == '15/01/2024'
        assert format_date_ddmmyyyy('2024-12-25') == '25/12/2024'

    def test_empty(self):
        assert format_date_ddmmyyyy('') == ''

    def test_pads(self):
        assert format_date_ddmmyyyy('2024-01-05') == '05/01/2024'
        assert format_date_ddmmyyyy('2024-03-01') == '01/03/2024'


class TestParseDateDDMMYYYY:

    def test_converts(self):
        assert parse_date_ddmmyyyy('15/01/2024') == '2024-01-15'
        assert parse_date_ddmmyyyy('25/12/2024') == '2024-12-25'

    def test_single_digits(self):
        assert parse_date_ddmmyyyy('5/3/2024') == '2024-03-05'

    def test_empty(self):
        assert parse_date_ddmmyyyy('') is None

    @pytest.mark.parametrize("text", ['invalid', '2024-01-15', 'aa/bb/cccc'])
    def test_invalid_format(self, text):
        assert parse_date_ddmmyyyy(text) is None

    @pytest.mark.parametrize("text", ['32/01/2024', '15/13/2024', '15/01/1800', '31/02/2024'])
    def test_invalid_dates(self, text):
        assert parse_date_ddmmyyyy(text) is None


class TestDateToString:

    def test_converts(self):
        assert date_to_string_ddmmyyyy(date(2024, 1, 15)) == '15/01/2024'
        assert date_to_string_ddmmyyyy(date(2024, 3, 5)) == '05/03/2024'

    def test_today(self):
        assert today_ddmmyyyy() == date_to_string_ddmmyyyy(date.today())
