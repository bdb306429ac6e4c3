from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from bondgen.excel.header import CUSIP_KEYWORDS, ColumnMapping, detect_header_row, map_columns
from bondgen.excel.reader import WorkbookReadError, read_sheet_rows
from bondgen.models.result import ErrorCode, ServiceResult, failure, success
from bondgen.models.schedule import (
    CusipRow,
    CusipSchedule,
    CusipScheduleRow,
    RowStatus,
    ScheduleDiagnostics,
    ScheduleSummary,
    compute_status,
)

from .cusip import assemble_cusip_from_parts, validate_cusip
from .fields import parse_date
from .rows import cell_at, is_blank_row, is_section_header, series_text

"""CUSIP schedule parser.

Accepts either one CUSIP column or the split issuer / issue / check digit
layout, always together with a maturity date column.
"""

__all__ = [
    "SINGLE_COLUMN_FIELDS",
    "SPLIT_COLUMN_FIELDS",
    "parse_cusip_schedule",
    "revalidate_cusip_row",
    "apply_cusip_edit",
]

logger = logging.getLogger(__name__)

SINGLE_COLUMN_FIELDS = ("cusip", "maturity_date")
SPLIT_COLUMN_FIELDS = ("cusip_issuer", "cusip_issue", "cusip_check", "maturity_date")
OPTIONAL_FIELDS = ("series",)
_EDITABLE = {"cusip", "cusip_issuer", "cusip_issue", "cusip_check", "maturity_date", "series"}


def _build_row(row_number: int, cells: Mapping[str, Any], raw: tuple[Any, ...]) -> CusipScheduleRow:
    errors: list[str] = []
    warnings: list[str] = []

    if "cusip" in cells:
        cusip = validate_cusip(cells.get("cusip"))
    else:
        cusip = assemble_cusip_from_parts(
            cells.get("cusip_issuer"), cells.get("cusip_issue"), cells.get("cusip_check")
        )
    if not cusip.success:
        errors.append(f"CUSIP: {cusip.error}")

    maturity = parse_date(cells.get("maturity_date"))
    if not maturity.success:
        errors.append(f"Maturity Date: {maturity.error}")
    warnings.extend(maturity.warnings)

    return CusipScheduleRow(
        row_number=row_number,
        status=compute_status(errors, warnings),
        cusip=cusip.value if cusip.success else None,  # type: ignore[arg-type]
        maturity_date=maturity.value if maturity.success else None,  # type: ignore[arg-type]
        series=series_text(cells.get("series")),
        errors=tuple(errors),
        warnings=tuple(warnings),
        raw=raw,
        cells=dict(cells),
    )


def _clean_row(row: CusipScheduleRow) -> CusipRow | None:
    if row.status is not RowStatus.VALID:
        return None
    return CusipRow(
        cusip=row.cusip,  # type: ignore[arg-type]
        maturity_date=row.maturity_date,  # type: ignore[arg-type]
        series=row.series,
        row_number=row.row_number,
    )


def _assemble_schedule(
    parsed_rows: Sequence[CusipScheduleRow],
    diagnostics: ScheduleDiagnostics,
    warnings: Sequence[str],
) -> CusipSchedule:
    rows = tuple(parsed_rows)
    clean = tuple(r for r in (_clean_row(p) for p in rows) if r is not None)
    return CusipSchedule(
        parsed_rows=rows,
        rows=clean,
        summary=ScheduleSummary.from_rows(rows),
        diagnostics=diagnostics,
        warnings=tuple(warnings),
    )


def _choose_mapping(headers: Sequence[str]) -> ServiceResult[tuple[ColumnMapping, bool]]:
    single = map_columns(headers, SINGLE_COLUMN_FIELDS, OPTIONAL_FIELDS)
    if single.ok:
        logger.debug("CUSIP schedule uses single-column format")
        return success((single.unwrap(), False))

    split = map_columns(headers, SPLIT_COLUMN_FIELDS, OPTIONAL_FIELDS)
    if split.ok:
        logger.debug("CUSIP schedule uses split-column format (issuer + issue + check)")
        return success((split.unwrap(), True))

    return failure(
        ErrorCode.PARSING_ERROR,
        "Missing required CUSIP columns",
        {
            "single_column": {
                "missing_fields": single.error.details["missing_fields"],  # type: ignore[union-attr,index]
                "hint": "Need: CUSIP, Maturity Date",
            },
            "split_column": {
                "missing_fields": split.error.details["missing_fields"],  # type: ignore[union-attr,index]
                "hint": "Need: Issuer Number, Issue Number, Check Digit, Maturity Date",
            },
            "available_columns": [h for h in headers if h],
        },
    )


def parse_cusip_schedule(content: bytes) -> ServiceResult[CusipSchedule]:
    """Parse a CUSIP schedule workbook.

    Args:
        content: .xlsx / .xls bytes (convert CSV first)

    Returns:
        CusipSchedule with every row and the valid subset, or PARSING_ERROR
        for unreadable files, missing header row or missing CUSIP columns.
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

    header = detect_header_row(grid, CUSIP_KEYWORDS)
    if not header.ok:
        details = dict(header.error.details or {})  # type: ignore[union-attr]
        details["hint"] = "Expected columns: CUSIP (or Issuer/Issue/Check), Maturity Date"
        return failure(ErrorCode.PARSING_ERROR, header.error.message, details)  # type: ignore[union-attr]
    match = header.unwrap()

    chosen = _choose_mapping(match.headers)
    if not chosen.ok:
        return chosen  # type: ignore[return-value]
    mapping, split = chosen.unwrap()

    cusip_fields = SPLIT_COLUMN_FIELDS[:3] if split else ("cusip",)
    parsed: list[CusipScheduleRow] = []
    for i in range(match.index + 1, len(grid)):
        row = grid[i]
        row_number = i + 1
        if is_blank_row(row):
            continue
        if is_section_header(row):
            parsed.append(CusipScheduleRow(row_number=row_number, status=RowStatus.SKIPPED, raw=tuple(row)))
            continue
        cells = {f: cell_at(row, mapping.get(f)) for f in (*cusip_fields, "maturity_date", "series")}
        result = _build_row(row_number, cells, tuple(row))
        if result.errors:
            logger.debug("row %d: %s", row_number, "; ".join(result.errors))
        parsed.append(result)

    diagnostics = ScheduleDiagnostics(
        header_row_index=match.index,
        column_mapping=dict(mapping.indices),
        missing_columns=mapping.missing_optional,
        available_columns=match.headers,
        split_cusip=split,
    )
    schedule = _assemble_schedule(parsed, diagnostics, ())
    logger.info(
        "CUSIP schedule: rows=%d valid=%d errors=%d format=%s",
        schedule.summary.total, schedule.summary.valid, schedule.summary.errors,
        "split-column" if split else "single-column",
    )
    return success(schedule)


def revalidate_cusip_row(row: CusipScheduleRow, edits: Mapping[str, Any]) -> CusipScheduleRow:
    """Re-run CUSIP and date parsing over an edited row.

    Editing ``cusip`` on a split-format row replaces the three parts with the
    full code.
    """
    if row.status is RowStatus.SKIPPED:
        raise ValueError(f"row {row.row_number} is a section header and has no data")
    unknown = set(edits) - _EDITABLE
    if unknown:
        raise ValueError(f"unknown CUSIP fields: {sorted(unknown)}")
    cells = {**row.cells, **edits}
    if "cusip" in edits:
        for part in SPLIT_COLUMN_FIELDS[:3]:
            cells.pop(part, None)
    return _build_row(row.row_number, cells, row.raw)


def apply_cusip_edit(schedule: CusipSchedule, row_number: int, edits: Mapping[str, Any]) -> CusipSchedule:
    """Return a new schedule with one row re-validated and counts refreshed."""
    rows = list(schedule.parsed_rows)
    for i, current in enumerate(rows):
        if current.row_number == row_number:
            rows[i] = revalidate_cusip_row(current, edits)
            break
    else:
        raise ValueError(f"row {row_number} not found in CUSIP schedule")
    return _assemble_schedule(rows, schedule.diagnostics, schedule.warnings)
