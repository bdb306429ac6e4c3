from __future__ import annotations

import datetime as dt
import math

import pandas as pd
import pytest

from bondgen.models.schedule import DateFormat
from bondgen.parsing.fields import format_number, is_blank, parse_date, parse_principal, parse_rate
from bondgen.services.principal_words import MAX_AMOUNT


class TestParseDate:
    def test_year_only(self):
        r = parse_date(2025)
        assert r.success
        assert r.value == "2025"
        assert r.format is DateFormat.YEAR_ONLY

    def test_year_only_float(self):
        assert parse_date(2030.0).format is DateFormat.YEAR_ONLY

    def test_year_only_string(self):
        r = parse_date(" 2026 ")
        assert r.success
        assert r.value == "2026"
        assert r.format is DateFormat.YEAR_ONLY

    def test_four_digit_string_outside_year_range(self):
        assert parse_date("1850").format is not DateFormat.YEAR_ONLY

    def test_excel_serial_1900(self):
        r = parse_date(44927)
        assert r.success
        assert r.value == "2023-01-01"
        assert r.format is DateFormat.EXCEL_NUMBER

    def test_excel_serial_with_time_fraction(self):
        assert parse_date(44927.75).value == "2023-01-01"

    def test_excel_serial_falls_back_to_1904(self):
        # 1900 系だと 1949 年、1904 系なら 1953 年
        r = parse_date(18000)
        assert r.success
        assert r.value.startswith("1953-")

    def test_excel_serial_implausible_both_ways_keeps_1900(self):
        r = parse_date(100)
        assert r.value == "1900-04-09"

    def test_datetime_cell(self):
        r = parse_date(dt.datetime(2030, 6, 1, 0, 0))
        assert r.value == "2030-06-01"
        assert r.format is DateFormat.DATETIME_CELL
        assert parse_date(pd.Timestamp("2031-12-01")).value == "2031-12-01"
        assert parse_date(dt.date(2032, 1, 15)).value == "2032-01-15"

    def test_iso_string(self):
        r = parse_date("2030-06-01")
        assert r.value == "2030-06-01"
        assert r.format is DateFormat.ISO_STRING

    def test_us_date_string(self):
        r = parse_date("6/1/2030")
        assert r.value == "2030-06-01"
        assert r.format is DateFormat.US_DATE

    def test_long_date_string(self):
        assert parse_date("June 1, 2030").value == "2030-06-01"

    @pytest.mark.parametrize("value", ["__/__/____", "June __, 2030", "_"])
    def test_placeholder(self, value):
        r = parse_date(value)
        assert not r.success
        assert r.error == f'Date contains placeholders: "{value}"'

    @pytest.mark.parametrize("value", [None, "", "   ", float("nan"), 0])
    def test_blank(self, value):
        r = parse_date(value)
        assert not r.success
        assert r.error == "Date value is empty or null"

    def test_unparseable_string(self):
        r = parse_date("sometime next year")
        assert not r.success
        assert r.error == 'Could not parse date string: "sometime next year"'
        assert r.format is DateFormat.UNKNOWN

    def test_raw_value_kept(self):
        assert parse_date(44927).raw_value == 44927


class TestParsePrincipal:
    def test_int(self):
        r = parse_principal(5000000)
        assert r.success and r.value == 5000000 and not r.warnings

    def test_whole_float(self):
        r = parse_principal(1250000.0)
        assert r.value == 1250000 and isinstance(r.value, int)

    def test_string_with_dollar_and_commas(self):
        assert parse_principal("$1,250,000").value == 1250000

    def test_string_with_decimal_point_warns(self):
        r = parse_principal("$5,000.00")
        assert r.success
        assert r.value == 5000
        assert r.warnings == ("Principal amount had decimal point but was whole number",)

    def test_fractional_number(self):
        r = parse_principal(1000.5)
        assert not r.success
        assert r.error == "Principal amount must be a whole number (no decimals). Got: 1000.5"

    def test_fractional_string(self):
        r = parse_principal("1,000.50")
        assert not r.success
        assert "must be a whole number" in r.error

    @pytest.mark.parametrize("value", [0, -5, "-100"])
    def test_not_positive(self, value):
        r = parse_principal(value)
        assert not r.success
        assert "must be greater than zero" in r.error

    def test_placeholder(self):
        r = parse_principal("$___,___")
        assert not r.success
        assert r.error.startswith("Principal amount contains placeholders")

    def test_blank(self):
        assert parse_principal(None).error == "Principal amount is empty or null"

    def test_not_a_number(self):
        r = parse_principal("one million")
        assert r.error == 'Could not parse principal amount: "one million"'

    @pytest.mark.parametrize("value", [math.inf, "Infinity", "NaN"])
    def test_non_finite(self, value):
        assert not parse_principal(value).success

    def test_maximum(self):
        assert parse_principal(MAX_AMOUNT).success
        r = parse_principal(MAX_AMOUNT + 1)
        assert not r.success
        assert r.error == "Principal amount exceeds maximum supported value: 1000000000000000"
        assert not parse_principal("$1,000,000,000,000,000").success


class TestParseRate:
    def test_number(self):
        r = parse_rate(4.25)
        assert r.success and r.value == 4.25

    def test_integral_rate_is_int(self):
        r = parse_rate(5.0)
        assert r.value == 5 and isinstance(r.value, int)

    def test_percent_string(self):
        assert parse_rate("4.5%").value == 4.5
        assert parse_rate(" 3 % ").value == 3

    def test_zero_allowed(self):
        r = parse_rate(0)
        assert r.success and r.value == 0

    def test_negative(self):
        r = parse_rate(-1)
        assert not r.success
        assert r.error == "Coupon rate cannot be negative. Got: -1"

    def test_very_high_rate_warns(self):
        r = parse_rate(425)
        assert r.success
        assert r.warnings == ("Coupon rate is very high (425%). Is this correct?",)

    def test_placeholder(self):
        assert parse_rate("__%").error.startswith("Coupon rate contains placeholders")

    def test_unparseable(self):
        assert parse_rate("five").error == 'Could not parse coupon rate: "five"'

    def test_blank(self):
        assert parse_rate("").error == "Coupon rate is empty or null"


def test_format_number():
    assert format_number(5.0) == "5"
    assert format_number(4.25) == "4.25"
    assert format_number(12) == "12"


def test_is_blank():
    assert is_blank(None)
    assert is_blank(" ")
    assert is_blank(float("nan"))
    assert not is_blank(0)
    assert not is_blank("x")
