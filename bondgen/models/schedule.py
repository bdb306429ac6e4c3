from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

"""Schedule models: parsed fields, parsed rows and whole-sheet results.

A schedule keeps every data row it saw (``parsed_rows``) so a reviewer can fix
problems row by row, and separately the rows that are ready for assembly
(``rows``, status ``valid`` only).
"""

__all__ = [
    "RowStatus",
    "DateFormat",
    "ParsedField",
    "compute_status",
    "MaturityScheduleRow",
    "CusipScheduleRow",
    "MaturityRow",
    "CusipRow",
    "ScheduleSummary",
    "ScheduleDiagnostics",
    "MaturitySchedule",
    "CusipSchedule",
]


class RowStatus(str, Enum):
    VALID = "valid"
    WARNING = "warning"
    ERROR = "error"
    SKIPPED = "skipped"


class DateFormat(str, Enum):
    """How a date cell was recognized."""

    EXCEL_NUMBER = "excel_number"
    YEAR_ONLY = "year_only"
    ISO_STRING = "iso_string"
    US_DATE = "us_date"
    DATETIME_CELL = "datetime_cell"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ParsedField:
    """Outcome of converting one raw cell.

    Attributes:
        success: True when ``value`` holds a usable typed value
        value: Parsed value (ISO date string, int principal, numeric rate, CUSIP)
        raw_value: Cell value as read from the sheet
        error: Failure reason (None on success)
        warnings: Non-fatal notes about the conversion
        format: Date sub-format (date parser only)
    """
    success: bool
    value: str | int | float | None = None
    raw_value: Any = None
    error: str | None = None
    warnings: tuple[str, ...] = ()
    format: DateFormat | None = None

    @classmethod
    def ok(
        cls,
        value: str | int | float,
        raw_value: Any,
        *,
        warnings: tuple[str, ...] = (),
        format: DateFormat | None = None,
    ) -> ParsedField:
        return cls(success=True, value=value, raw_value=raw_value, warnings=warnings, format=format)

    @classmethod
    def fail(cls, raw_value: Any, error: str, *, format: DateFormat | None = None) -> ParsedField:
        return cls(success=False, raw_value=raw_value, error=error, format=format)


def compute_status(errors: tuple[str, ...] | list[str], warnings: tuple[str, ...] | list[str]) -> RowStatus:
    if errors:
        return RowStatus.ERROR
    if warnings:
        return RowStatus.WARNING
    return RowStatus.VALID


@dataclass(frozen=True)
class MaturityScheduleRow:
    """One data row of the maturity schedule, valid or not."""
    row_number: int  # 1-based sheet row
    status: RowStatus
    maturity_date: str | None = None
    principal_amount: int | None = None
    coupon_rate: float | None = None
    series: str | None = None
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    raw: tuple[Any, ...] = ()
    cells: dict[str, Any] = field(default_factory=dict)  # field -> raw cell, for re-validation


@dataclass(frozen=True)
class CusipScheduleRow:
    """One data row of the CUSIP schedule, valid or not."""
    row_number: int
    status: RowStatus
    cusip: str | None = None
    maturity_date: str | None = None
    series: str | None = None
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    raw: tuple[Any, ...] = ()
    cells: dict[str, Any] = field(default_factory=dict)  # field -> raw cell, for re-validation


@dataclass(frozen=True)
class MaturityRow:
    """Clean maturity row ready for assembly."""
    maturity_date: str
    principal_amount: int
    coupon_rate: float
    series: str | None = None
    row_number: int = 0


@dataclass(frozen=True)
class CusipRow:
    """Clean CUSIP row ready for assembly."""
    cusip: str
    maturity_date: str
    series: str | None = None
    row_number: int = 0


@dataclass(frozen=True)
class ScheduleSummary:
    total: int = 0
    valid: int = 0
    warnings: int = 0
    errors: int = 0
    skipped: int = 0

    @classmethod
    def from_rows(cls, rows: tuple[MaturityScheduleRow, ...] | tuple[CusipScheduleRow, ...]) -> ScheduleSummary:
        counts = {status: 0 for status in RowStatus}
        for row in rows:
            counts[row.status] += 1
        return cls(
            total=len(rows) - counts[RowStatus.SKIPPED],
            valid=counts[RowStatus.VALID],
            warnings=counts[RowStatus.WARNING],
            errors=counts[RowStatus.ERROR],
            skipped=counts[RowStatus.SKIPPED],
        )


@dataclass(frozen=True)
class ScheduleDiagnostics:
    """Where the header was found and how columns were mapped."""
    header_row_index: int
    column_mapping: dict[str, int] = field(default_factory=dict)
    missing_columns: tuple[str, ...] = ()
    available_columns: tuple[str, ...] = ()
    split_cusip: bool = False  # CUSIP given as issuer / issue / check columns


@dataclass(frozen=True)
class MaturitySchedule:
    parsed_rows: tuple[MaturityScheduleRow, ...]
    rows: tuple[MaturityRow, ...]
    summary: ScheduleSummary
    diagnostics: ScheduleDiagnostics
    dated_date: str | None = None
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class CusipSchedule:
    parsed_rows: tuple[CusipScheduleRow, ...]
    rows: tuple[CusipRow, ...]
    summary: ScheduleSummary
    diagnostics: ScheduleDiagnostics
    warnings: tuple[str, ...] = ()
