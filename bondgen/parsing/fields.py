from __future__ import annotations

import datetime as dt
import math
import re
from decimal import Decimal, InvalidOperation
from typing import Any

import pandas as pd

from bondgen.models.schedule import DateFormat, ParsedField
from bondgen.services.principal_words import MAX_AMOUNT

"""Atomic cell parsers: date, principal amount, coupon rate.

Each parser takes one raw cell value and returns a ParsedField. None of them
raise: a bad cell is data for the reviewer, not a crash.
"""

__all__ = [
    "YEAR_MIN",
    "YEAR_MAX",
    "parse_date",
    "parse_principal",
    "parse_rate",
    "is_blank",
    "format_number",
]

# 1900..2100 の整数は「年」とみなす (シリアル値ではない)
YEAR_MIN = 1900
YEAR_MAX = 2100
PLAUSIBLE_YEAR_MIN = 1950
PLAUSIBLE_YEAR_MAX = 2100

EXCEL_EPOCH_1900 = dt.datetime(1899, 12, 30)
EPOCH_1904_OFFSET_DAYS = 1462
RATE_WARNING_THRESHOLD = 100

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_YEAR_RE = re.compile(r"^\d{4}$")


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def _has_placeholder(text: str) -> bool:
    # "__" も "_" に含まれる
    return "_" in text


def format_number(value: int | float | Decimal) -> str:
    """Render a number the way a person typed it: 5 not 5.0."""
    if isinstance(value, Decimal):
        value = float(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _serial_to_date(serial: float, offset_days: int = 0) -> dt.date:
    return (EXCEL_EPOCH_1900 + dt.timedelta(days=serial + offset_days)).date()


def _parse_numeric_date(value: int | float) -> ParsedField:
    if not math.isfinite(value):
        return ParsedField.fail(value, f"Failed to parse Excel date number: {value}", format=DateFormat.EXCEL_NUMBER)

    if float(value).is_integer() and YEAR_MIN <= value <= YEAR_MAX:
        return ParsedField.ok(str(int(value)), value, format=DateFormat.YEAR_ONLY)

    try:
        date_1900 = _serial_to_date(value)
        date_1904 = _serial_to_date(value, EPOCH_1904_OFFSET_DAYS)
    except (OverflowError, ValueError) as e:
        return ParsedField.fail(
            value,
            f"Failed to parse Excel date number: {format_number(value)} ({e})",
            format=DateFormat.EXCEL_NUMBER,
        )

    # 1900 系が不自然な年なら 1904 系を試す。両方不自然なら 1900 系のまま
    chosen = date_1900
    if not PLAUSIBLE_YEAR_MIN <= date_1900.year <= PLAUSIBLE_YEAR_MAX:
        if PLAUSIBLE_YEAR_MIN <= date_1904.year <= PLAUSIBLE_YEAR_MAX:
            chosen = date_1904
    return ParsedField.ok(chosen.isoformat(), value, format=DateFormat.EXCEL_NUMBER)


def _parse_date_string(value: Any) -> ParsedField:
    text = str(value).strip()
    if _has_placeholder(text):
        return ParsedField.fail(value, f'Date contains placeholders: "{text}"')

    # CSV 由来のセルは文字列のまま届く
    if _YEAR_RE.match(text) and YEAR_MIN <= int(text) <= YEAR_MAX:
        return ParsedField.ok(text, value, format=DateFormat.YEAR_ONLY)

    try:
        parsed = pd.to_datetime(text)
    except (ValueError, TypeError, OverflowError):
        parsed = None
    if parsed is None or pd.isna(parsed):
        return ParsedField.fail(value, f'Could not parse date string: "{text}"', format=DateFormat.UNKNOWN)

    fmt = DateFormat.ISO_STRING if _ISO_DATE_RE.match(text) else DateFormat.US_DATE
    return ParsedField.ok(parsed.strftime("%Y-%m-%d"), value, format=fmt)


def parse_date(value: Any) -> ParsedField:
    """Parse a date cell.

    - integers 1900..2100, and four-digit strings in that range, are bare
      years (``year_only``, value "2025")
    - other numbers are spreadsheet serials, decoded under both the 1900 and
      1904 epochs; the 1900 reading is kept unless its year falls outside
      1950..2100 and the 1904 reading does not
    - date/datetime cells (what openpyxl returns for date-formatted cells)
    - strings: placeholders ("_", "__") fail, everything else goes through
      general date parsing and is reduced to YYYY-MM-DD

    Returns:
        ParsedField with an ISO date (or a bare year) in ``value``
    """
    if is_blank(value) or (_is_number(value) and value == 0):
        return ParsedField.fail(value, "Date value is empty or null")

    if isinstance(value, (dt.datetime, dt.date)):
        # pd.Timestamp は datetime のサブクラス
        day = value.date() if isinstance(value, dt.datetime) else value
        return ParsedField.ok(day.isoformat(), value, format=DateFormat.DATETIME_CELL)

    if _is_number(value):
        return _parse_numeric_date(value)

    if isinstance(value, str):
        return _parse_date_string(value)

    return ParsedField.fail(value, f"Unexpected date type: {type(value).__name__}")


def _parse_decimal(text: str) -> Decimal | None:
    try:
        number = Decimal(text)
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def parse_principal(value: Any) -> ParsedField:
    """Parse a principal amount cell into a positive whole-dollar int.

    Strings may carry ``$`` and thousands separators. A string with a decimal
    point that still resolves to a whole number ("5000.00") is accepted with a
    warning. Amounts that cannot be written out in words (above ``MAX_AMOUNT``)
    fail.
    """
    if is_blank(value):
        return ParsedField.fail(value, "Principal amount is empty or null")

    if _is_number(value):
        if isinstance(value, float) and (not math.isfinite(value) or not value.is_integer()):
            return ParsedField.fail(
                value, f"Principal amount must be a whole number (no decimals). Got: {format_number(value)}"
            )
        amount = int(value)
        if amount <= 0:
            return ParsedField.fail(value, f"Principal amount must be greater than zero. Got: {amount}")
        if amount > MAX_AMOUNT:
            return ParsedField.fail(value, f"Principal amount exceeds maximum supported value: {amount}")
        return ParsedField.ok(amount, value)

    if not isinstance(value, str):
        return ParsedField.fail(value, f"Unexpected principal amount type: {type(value).__name__}")

    text = value.strip()
    cleaned = text.replace("$", "").replace(",", "").strip()
    if _has_placeholder(cleaned):
        return ParsedField.fail(value, f'Principal amount contains placeholders: "{text}"')

    number = _parse_decimal(cleaned)
    if number is None:
        return ParsedField.fail(value, f'Could not parse principal amount: "{text}"')
    if number != number.to_integral_value():
        return ParsedField.fail(
            value,
            f'Principal amount must be a whole number (no decimals). Got: "{text}" = {format_number(number)}',
        )
    amount = int(number)
    if amount <= 0:
        return ParsedField.fail(value, f'Principal amount must be greater than zero. Got: "{text}" = {amount}')
    if amount > MAX_AMOUNT:
        return ParsedField.fail(value, f'Principal amount exceeds maximum supported value: "{text}" = {amount}')

    warnings: tuple[str, ...] = ()
    if "." in text:
        warnings = ("Principal amount had decimal point but was whole number",)
    return ParsedField.ok(amount, value, warnings=warnings)


def _rate_value(number: float) -> int | float:
    return int(number) if number.is_integer() else number


def parse_rate(value: Any) -> ParsedField:
    """Parse a coupon rate cell (percent, ``%`` suffix optional).

    Zero is allowed. Negative values fail; values above 100 pass with a
    warning because some sheets express rates differently.
    """
    if is_blank(value):
        return ParsedField.fail(value, "Coupon rate is empty or null")

    if _is_number(value):
        number = float(value)
        if not math.isfinite(number):
            return ParsedField.fail(value, f"Could not parse coupon rate: {value}")
        if number < 0:
            return ParsedField.fail(value, f"Coupon rate cannot be negative. Got: {format_number(number)}")
        warnings: tuple[str, ...] = ()
        if number > RATE_WARNING_THRESHOLD:
            warnings = (f"Coupon rate is very high ({format_number(number)}%). Is this correct?",)
        return ParsedField.ok(_rate_value(number), value, warnings=warnings)

    if not isinstance(value, str):
        return ParsedField.fail(value, f"Unexpected coupon rate type: {type(value).__name__}")

    text = value.strip()
    cleaned = text.replace("%", "").strip()
    if _has_placeholder(cleaned):
        return ParsedField.fail(value, f'Coupon rate contains placeholders: "{text}"')

    parsed = _parse_decimal(cleaned)
    if parsed is None:
        return ParsedField.fail(value, f'Could not parse coupon rate: "{text}"')
    number = float(parsed)
    if number < 0:
        return ParsedField.fail(value, f'Coupon rate cannot be negative. Got: "{text}" = {format_number(number)}')

    warnings = ()
    if number > RATE_WARNING_THRESHOLD:
        warnings = (f"Coupon rate is very high ({format_number(number)}%). Is this correct?",)
    return ParsedField.ok(_rate_value(number), value, warnings=warnings)
