from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from bondgen.excel.header import MATURITY_KEYWORDS, detect_header_row, map_columns
from bondgen.excel.reader import WorkbookReadError, read_sheet_rows
from bondgen.models.result import ErrorCode, ServiceResult, failure, success
from bondgen.models.schedule import (
    DateFormat,
    MaturityRow,
    MaturitySchedule,
    MaturityScheduleRow,
    RowStatus,
    ScheduleDiagnostics,
    ScheduleSummary,
    compute_status,
)

from .fields import is_blank, parse_date, parse_principal, parse_rate
from .rows import cell_at, is_blank_row, is_section_header, series_text

"""Maturity schedule parser.

Reads the first sheet, finds the header, maps columns and parses every data
row. Bad rows are kept with their errors instead of aborting the sheet; only
an unreadable file, a missing header or missing required columns fail hard.
"""

__all__ = [
    "REQUIRED_FIELDS",
    "OPTIONAL_FIELDS",
    "parse_maturity_schedule",
    "parse_maturity_rows",
    "revalidate_maturity_row",
    "apply_maturity_edit",
]

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("maturity_date", "principal_amount", "coupon_rate")
OPTIONAL_FIELDS = ("dated_date", "series")

NO_DATED_DATE_WARNING = "Dated date column not found - user will need to enter manually"


def _build_row(row_number: int, cells: Mapping[str, Any], raw: tuple[Any, ...]) -> MaturityScheduleRow:
    errors: list[str] = []
    warnings: list[str] = []

    maturity = parse_date(cells.get("maturity_date"))
    if not maturity.success:
        errors.append(f"Maturity Date: {maturity.error}")
    elif maturity.format is DateFormat.YEAR_ONLY:
        # 年だけでは証書に書けない
        warnings.append(f"Maturity Date: only a year was given ({maturity.value}); enter the full date")

    principal = parse_principal(cells.get("principal_amount"))
    if not principal.success:
        errors.append(f"Principal Amount: {principal.error}")
    warnings.extend(principal.warnings)

    rate = parse_rate(cells.get("coupon_rate"))
    if not rate.success:
        errors.append(f"Coupon Rate: {rate.error}")
    warnings.extend(rate.warnings)

    return MaturityScheduleRow(
        row_number=row_number,
        status=compute_status(errors, warnings),
        maturity_date=maturity.value if maturity.success else None,  # type: ignore[arg-type]
        principal_amount=principal.value if principal.success else None,  # type: ignore[arg-type]
        coupon_rate=rate.value if rate.success else None,  # type: ignore[arg-type]
        series=series_text(cells.get("series")),
        errors=tuple(errors),
        warnings=tuple(warnings),
        raw=raw,
        cells=dict(cells),
    )


def _clean_row(row: MaturityScheduleRow) -> MaturityRow | None:
    if row.status is not RowStatus.VALID:
        return None
    return MaturityRow(
        maturity_date=row.maturity_date,  # type: ignore[arg-type]
        principal_amount=row.principal_amount,  # type: ignore[arg-type]
        coupon_rate=row.coupon_rate,  # type: ignore[arg-type]
        series=row.series,
        row_number=row.row_number,
    )


def parse_maturity_rows(
    grid: Sequence[Sequence[Any]],
    start: int,
    mapping: Mapping[str, int],
) -> list[MaturityScheduleRow]:
    """Parse data rows from ``start`` to the end of the grid.

    Blank rows are ignored; section-header rows are kept as ``skipped``.
    """
    parsed: list[MaturityScheduleRow] = []
    for i in range(start, len(grid)):
        row = grid[i]
        row_number = i + 1
        if is_blank_row(row):
            continue
        if is_section_header(row):
            logger.debug("row %d: section header %r skipped", row_number, row[1])
            parsed.append(MaturityScheduleRow(row_number=row_number, status=RowStatus.SKIPPED, raw=tuple(row)))
            continue

        cells = {f: cell_at(row, mapping.get(f)) for f in (*REQUIRED_FIELDS, "series")}
        result = _build_row(row_number, cells, tuple(row))
        if result.errors:
            logger.debug("row %d: %s", row_number, "; ".join(result.errors))
        parsed.append(result)
    return parsed


def _read_dated_date(grid: Sequence[Sequence[Any]], start: int, index: int | None) -> tuple[str | None, list[str]]:
    if index is None:
        return None, [NO_DATED_DATE_WARNING]
    first = grid[start] if start < len(grid) else []
    value = cell_at(first, index)
    if is_blank(value):
        return None, []
    parsed = parse_date(value)
    if parsed.success and parsed.format is not DateFormat.YEAR_ONLY:
        return parsed.value, []  # type: ignore[return-value]
    reason = parsed.error or f"only a year was given ({parsed.value})"
    return None, [f"Dated date column found but value couldn't be parsed: {reason}"]


def _assemble_schedule(
    parsed_rows: Sequence[MaturityScheduleRow],
    diagnostics: ScheduleDiagnostics,
    dated_date: str | None,
    warnings: Sequence[str],
) -> MaturitySchedule:
    rows = tuple(parsed_rows)
    clean = tuple(r for r in (_clean_row(p) for p in rows) if r is not None)
    return MaturitySchedule(
        parsed_rows=rows,
        rows=clean,
        summary=ScheduleSummary.from_rows(rows),
        diagnostics=diagnostics,
        dated_date=dated_date,
        warnings=tuple(warnings),
    )


def parse_maturity_schedule(content: bytes) -> ServiceResult[MaturitySchedule]:
    """Parse a maturity schedule workbook.

    Args:
        content: .xlsx / .xls bytes (convert CSV first)

    Returns:
        MaturitySchedule with every row and the valid subset, or PARSING_ERROR
        when the file cannot be read, has fewer than 2 rows, has no header row
        or lacks a required column.
    """
    try:
        grid = read_sheet_rows(content)
    except WorkbookReadError as e:
        return failure(ErrorCode.PARSING_ERROR, str(e))

    if len(grid) < 2:
        return failure(
            ErrorCode.PARSING_ERROR,
            "Excel file has no data rows (need at least header + 1 data row)",
        )

    header = detect_header_row(grid, MATURITY_KEYWORDS)
    if not header.ok:
        details = dict(header.error.details or {})  # type: ignore[union-attr]
        details["hint"] = "Expected columns: Maturity Date, Principal Amount, Coupon Rate"
        return failure(ErrorCode.PARSING_ERROR, header.error.message, details)  # type: ignore[union-attr]
    match = header.unwrap()

    columns = map_columns(match.headers, REQUIRED_FIELDS, OPTIONAL_FIELDS)
    if not columns.ok:
        return columns  # type: ignore[return-value]
    mapping = columns.unwrap()

    start = match.index + 1
    dated_date, warnings = _read_dated_date(grid, start, mapping.get("dated_date"))
    parsed = parse_maturity_rows(grid, start, mapping.indices)

    diagnostics = ScheduleDiagnostics(
        header_row_index=match.index,
        column_mapping=dict(mapping.indices),
        missing_columns=mapping.missing_optional,
        available_columns=match.headers,
    )
    schedule = _assemble_schedule(parsed, diagnostics, dated_date, warnings)
    logger.info(
        "maturity schedule: rows=%d valid=%d warnings=%d errors=%d",
        schedule.summary.total, schedule.summary.valid, schedule.summary.warnings, schedule.summary.errors,
    )
    return success(schedule)


def revalidate_maturity_row(row: MaturityScheduleRow, edits: Mapping[str, Any]) -> MaturityScheduleRow:
    """Re-run the field parsers over a row after a reviewer edited it.

    Args:
        row: Row as previously parsed
        edits: New raw values keyed by field (maturity_date, principal_amount,
            coupon_rate, series); fields not given keep their original cell

    Returns:
        A new row with recomputed values, messages and status
    """
    if row.status is RowStatus.SKIPPED:
        raise ValueError(f"row {row.row_number} is a section header and has no data")
    unknown = set(edits) - {*REQUIRED_FIELDS, "series"}
    if unknown:
        raise ValueError(f"unknown maturity fields: {sorted(unknown)}")
    cells = {**row.cells, **edits}
    return _build_row(row.row_number, cells, row.raw)


def apply_maturity_edit(schedule: MaturitySchedule, row_number: int, edits: Mapping[str, Any]) -> MaturitySchedule:
    """Return a new schedule with one row re-validated and counts refreshed."""
    rows = list(schedule.parsed_rows)
    for i, current in enumerate(rows):
        if current.row_number == row_number:
            rows[i] = revalidate_maturity_row(current, edits)
            break
    else:
        raise ValueError(f"row {row_number} not found in maturity schedule")
    return _assemble_schedule(rows, schedule.diagnostics, schedule.dated_date, schedule.warnings)
