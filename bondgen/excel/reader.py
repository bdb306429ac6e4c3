from __future__ import annotations

import csv
import io
import logging
import math
from typing import Any

import numpy as np
import pandas as pd

from bondgen.models.result import ErrorCode, ServiceResult, failure, success

"""Spreadsheet reading and CSV normalization.

Schedules arrive as .xlsx, .xls or .csv. Workbooks are read with pandas
(``header=None``, the header row is located later by keyword) into a plain grid
of Python values. CSV uploads are first rewritten as a one-sheet .xlsx so the
schedule parsers only ever see workbooks.
"""

__all__ = [
    "WorkbookReadError",
    "CSV_DELIMITERS",
    "read_sheet_rows",
    "detect_delimiter",
    "validate_csv_structure",
    "convert_csv_to_spreadsheet",
]

logger = logging.getLogger(__name__)

CSV_DELIMITERS = (",", ";", "\t")
DELIMITER_SAMPLE_LINES = 5
MIN_CSV_COLUMNS = 3
CSV_SHEET_NAME = "Sheet1"

RawRow = list[Any]


class WorkbookReadError(Exception):
    """Raised when a workbook cannot be opened or has no sheets."""


def _clean_cell(value: Any) -> Any:
    """numpy / pandas scalars -> plain Python; NaN, NaT and blank strings -> None."""
    if value is None:
        return None
    if value is pd.NaT:
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, np.bool_):
        return bool(value)
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, np.floating):
        value = float(value)
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _trim_row(values: tuple[Any, ...]) -> RawRow:
    row = [_clean_cell(v) for v in values]
    while row and row[-1] is None:
        row.pop()
    return row


def read_sheet_rows(content: bytes) -> list[RawRow]:
    """Read the first sheet of a workbook into a grid.

    Args:
        content: Raw .xlsx / .xls bytes

    Returns:
        One list per sheet row, trailing blank cells trimmed

    Raises:
        WorkbookReadError: unreadable workbook or no sheets
    """
    try:
        xls = pd.ExcelFile(io.BytesIO(content))
    except Exception as e:  # 形式判定・展開エラーはエンジンごとに型が異なる
        raise WorkbookReadError(f"Could not read spreadsheet: {e}") from e

    if not xls.sheet_names:
        raise WorkbookReadError("Spreadsheet has no sheets")

    sheet = xls.sheet_names[0]
    try:
        # "NA" などの文字列を欠損扱いしない (空セルだけが None)
        df = xls.parse(sheet, header=None, keep_default_na=False, na_values=[""])
    except Exception as e:
        raise WorkbookReadError(f"Could not read sheet '{sheet}': {e}") from e

    rows = [_trim_row(r) for r in df.itertuples(index=False, name=None)]
    logger.debug("read sheet '%s': %d rows", sheet, len(rows))
    return rows


def _decode(content: bytes) -> str:
    # Excel の CSV 出力は BOM 付きのことがある
    return content.decode("utf-8-sig", errors="replace")


def detect_delimiter(text: str) -> str:
    """Pick the delimiter with the most occurrences across the first 5 lines.

    Ties go to the earlier candidate (comma first).
    """
    lines = text.split("\n")[:DELIMITER_SAMPLE_LINES]
    best = CSV_DELIMITERS[0]
    best_count = -1
    for delimiter in CSV_DELIMITERS:
        count = sum(line.count(delimiter) for line in lines)
        if count > best_count:
            best, best_count = delimiter, count
    return best


def validate_csv_structure(content: bytes) -> ServiceResult[None]:
    """Check a CSV has a header, at least one data line and 3+ columns."""
    text = _decode(content)
    lines = [line for line in text.split("\n") if line.strip()]

    if len(lines) < 2:
        return failure(
            ErrorCode.VALIDATION_ERROR,
            "CSV file must have at least a header row and one data row",
        )

    delimiter = detect_delimiter(text)
    header_cols = len(lines[0].split(delimiter))
    if header_cols < MIN_CSV_COLUMNS:
        return failure(
            ErrorCode.VALIDATION_ERROR,
            f"CSV file must have at least {MIN_CSV_COLUMNS} columns (found {header_cols})",
            {"delimiter": delimiter, "columns": header_cols},
        )
    return success(None)


def convert_csv_to_spreadsheet(content: bytes) -> ServiceResult[bytes]:
    """Rewrite CSV bytes as a single-sheet .xlsx workbook.

    The delimiter is detected among comma, semicolon and tab. Every cell is
    kept as text (all-digit CUSIPs keep their leading zeros; the field parsers
    read numbers out of strings). Rows shorter than the widest row are padded
    with blanks, and literal strings such as ``NA`` are not turned into blanks.

    Returns:
        .xlsx bytes, or CONVERSION_ERROR when the text cannot be tabulated.
    """
    text = _decode(content)
    if not text.strip():
        return failure(ErrorCode.CONVERSION_ERROR, "CSV file appears to be empty")

    delimiter = detect_delimiter(text)
    logger.debug("CSV delimiter detected: %r", delimiter)

    try:
        # csv.reader は列数の揃わない行もそのまま返す
        rows = list(csv.reader(io.StringIO(text), delimiter=delimiter))
        width = max(len(row) for row in rows)
        padded = [[cell if cell.strip() else None for cell in row] + [None] * (width - len(row)) for row in rows]
        df = pd.DataFrame(padded, dtype=object)
        buf = io.BytesIO()
        with pd.ExcelWriter(buf, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name=CSV_SHEET_NAME, header=False, index=False)
    except (csv.Error, ValueError) as e:
        logger.warning("CSV conversion failed: %s", e)
        return failure(
            ErrorCode.CONVERSION_ERROR,
            f"Failed to convert CSV file: {e}",
            {"delimiter": delimiter},
        )

    data = buf.getvalue()
    logger.debug("CSV converted to xlsx (%d bytes)", len(data))
    return success(data)
