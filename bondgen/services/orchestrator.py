from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import PurePath

from ..docx.container import DOCUMENT_PART
from ..docx.filler import fill_all_templates
from ..docx.tags import extract_template_tags
from ..excel.reader import convert_csv_to_spreadsheet, validate_csv_structure
from ..logging.error_log import ErrorLogBuffer
from ..models.bond import NumberingConfig, SupplementaryInfo
from ..models.processing_result import GenerationResult
from ..models.result import ErrorCode, ServiceResult, failure, success
from ..models.schedule import CusipSchedule, MaturitySchedule, RowStatus
from ..parsing.cusip_schedule import parse_cusip_schedule
from ..parsing.maturity import parse_maturity_schedule
from .archive import assemble_archive
from .assembler import preview_assembly
from .progress import ProgressTracker

"""Generation orchestration.

Runs one request end to end: schedules (CSV converted first) -> template tags
-> bond assembly -> filling -> archive. Every step returns a ServiceResult and
the first failure ends the run. Exceptions that escape a step are turned into
INTERNAL_ERROR here and nowhere else.

Every non-valid schedule row and every failure is also written to the
diagnostics log buffer when one is supplied.
"""

__all__ = [
    "GenerationRequest",
    "as_workbook",
    "generate_bond_package",
]

logger = logging.getLogger(__name__)

WORKBOOK_SHEET = "first sheet"  # スケジュールは常に先頭シートを読む


@dataclass(frozen=True)
class GenerationRequest:
    """Inputs of one generation run.

    Attributes:
        template: Tagged .docx template bytes
        maturity_schedule: Maturity schedule (.xlsx / .xls / .csv) bytes
        cusip_schedule: CUSIP schedule bytes
        template_name / maturity_name / cusip_name: File names, used for CSV
            detection and in diagnostics
        dated_date: Overrides the dated date read from the maturity schedule
        info: Issuer / title / project / interest date text
        numbering: Starting number and custom prefix
        allow_partial_schedules: Generate from the valid rows even when some
            rows have errors or warnings
    """
    template: bytes
    maturity_schedule: bytes
    cusip_schedule: bytes
    template_name: str = "template.docx"
    maturity_name: str = "maturity.xlsx"
    cusip_name: str = "cusip.xlsx"
    dated_date: str | None = None
    info: SupplementaryInfo = field(default_factory=SupplementaryInfo)
    numbering: NumberingConfig = field(default_factory=NumberingConfig)
    allow_partial_schedules: bool = False


def _is_csv(name: str) -> bool:
    return PurePath(name).suffix.lower() == ".csv"


def _record_failure(
    error_log: ErrorLogBuffer | None,
    file: str,
    sheet: str,
    result: ServiceResult,
) -> ServiceResult:
    if error_log is not None and result.error is not None:
        error_log.record(file, sheet, -1, result.error.code.value, result.error.message)
    return result


def as_workbook(content: bytes, name: str) -> ServiceResult[bytes]:
    """Workbook bytes for a schedule; CSV files (by extension) are validated and converted."""
    if not _is_csv(name):
        return success(content)
    checked = validate_csv_structure(content)
    if not checked.ok:
        return checked  # type: ignore[return-value]
    logger.info("converting %s from CSV", name)
    return convert_csv_to_spreadsheet(content)


def _record_rows(
    error_log: ErrorLogBuffer | None,
    file: str,
    schedule: MaturitySchedule | CusipSchedule,
) -> list[int]:
    """Log every row that is not valid; returns their row numbers."""
    flagged: list[int] = []
    for row in schedule.parsed_rows:
        if row.status in (RowStatus.VALID, RowStatus.SKIPPED):
            continue
        flagged.append(row.row_number)
        for message in row.errors:
            logger.warning("%s row %d: %s", file, row.row_number, message)
            if error_log is not None:
                error_log.record(file, WORKBOOK_SHEET, row.row_number, "ROW_ERROR", message)
        for message in row.warnings:
            logger.warning("%s row %d: %s", file, row.row_number, message)
            if error_log is not None:
                error_log.record(file, WORKBOOK_SHEET, row.row_number, "ROW_WARNING", message)
    for message in schedule.warnings:
        logger.warning("%s: %s", file, message)
    return flagged


def _run(request: GenerationRequest, error_log: ErrorLogBuffer | None) -> ServiceResult[GenerationResult]:
    start = time.perf_counter()

    # 1) テンプレート
    tags = extract_template_tags(request.template)
    if not tags.ok:
        return _record_failure(error_log, request.template_name, DOCUMENT_PART, tags)
    tag_map = tags.unwrap()

    # 2) スケジュール
    maturity_book = as_workbook(request.maturity_schedule, request.maturity_name)
    if not maturity_book.ok:
        return _record_failure(error_log, request.maturity_name, WORKBOOK_SHEET, maturity_book)
    parsed_maturity = parse_maturity_schedule(maturity_book.unwrap())
    if not parsed_maturity.ok:
        return _record_failure(error_log, request.maturity_name, WORKBOOK_SHEET, parsed_maturity)
    maturity = parsed_maturity.unwrap()

    cusip_book = as_workbook(request.cusip_schedule, request.cusip_name)
    if not cusip_book.ok:
        return _record_failure(error_log, request.cusip_name, WORKBOOK_SHEET, cusip_book)
    parsed_cusip = parse_cusip_schedule(cusip_book.unwrap())
    if not parsed_cusip.ok:
        return _record_failure(error_log, request.cusip_name, WORKBOOK_SHEET, parsed_cusip)
    cusip = parsed_cusip.unwrap()

    bad_maturity = _record_rows(error_log, request.maturity_name, maturity)
    bad_cusip = _record_rows(error_log, request.cusip_name, cusip)
    if (bad_maturity or bad_cusip) and not request.allow_partial_schedules:
        # 位置で突き合わせるため、1 行でも欠けると後続の組が全部ずれる
        return _record_failure(error_log, request.maturity_name, WORKBOOK_SHEET, failure(
            ErrorCode.VALIDATION_ERROR,
            f"Schedules have rows that are not valid (maturity: {len(bad_maturity)}, CUSIP: {len(bad_cusip)})",
            {"maturity_rows": bad_maturity, "cusip_rows": bad_cusip},
        ))

    dated_date = request.dated_date or maturity.dated_date
    if not dated_date:
        return _record_failure(error_log, request.maturity_name, WORKBOOK_SHEET, failure(
            ErrorCode.VALIDATION_ERROR,
            "No dated date: add a Dated Date column to the maturity schedule or set dated_date",
        ))
    if not maturity.rows:
        return _record_failure(error_log, request.maturity_name, WORKBOOK_SHEET, failure(
            ErrorCode.VALIDATION_ERROR,
            "Maturity schedule has no valid rows",
        ))

    # 3) 組み立て
    try:
        preview = preview_assembly(maturity.rows, cusip.rows, dated_date, request.numbering)
    except ValueError as e:
        return _record_failure(error_log, request.maturity_name, WORKBOOK_SHEET, failure(
            ErrorCode.VALIDATION_ERROR, f"Could not assemble bonds: {e}",
        ))
    for message in preview.warnings:
        logger.warning(message)
    if not preview.ok:
        return _record_failure(error_log, request.cusip_name, WORKBOOK_SHEET, failure(
            ErrorCode.VALIDATION_ERROR,
            f"{preview.unmatched_maturity} maturity row(s) have no matching CUSIP row",
            {"errors": list(preview.errors)},
        ))

    # 4) 差し込み
    with ProgressTracker(len(preview.bonds)) as tracker:
        tracker.set_postfix(template=tag_map.template_id)
        filled = fill_all_templates(
            request.template,
            preview.bonds,
            request.info,
            on_filled=lambda bond: tracker.finish_bond(bond.bond_number),
        )
    if not filled.ok:
        return _record_failure(error_log, request.template_name, DOCUMENT_PART, filled)

    # 5) ZIP
    archive = assemble_archive(filled.unwrap())
    if not archive.ok:
        return _record_failure(error_log, request.template_name, DOCUMENT_PART, archive)

    return success(GenerationResult(
        archive=archive.unwrap(),
        bonds=preview.bonds,
        tag_map=tag_map,
        maturity_summary=maturity.summary,
        cusip_summary=cusip.summary,
        elapsed_seconds=time.perf_counter() - start,
        warnings=(*maturity.warnings, *cusip.warnings, *preview.warnings),
    ))


def generate_bond_package(
    request: GenerationRequest,
    error_log: ErrorLogBuffer | None = None,
) -> ServiceResult[GenerationResult]:
    """Generate the certificate archive for one request.

    Args:
        request: Template, schedules and job options
        error_log: Optional buffer receiving diagnostics records

    Returns:
        GenerationResult with the archive bytes, or the first failure. Any
        unexpected exception becomes INTERNAL_ERROR.
    """
    try:
        result = _run(request, error_log)
    except Exception as e:
        logger.exception("unexpected error during generation")
        return _record_failure(error_log, request.template_name, "", failure(
            ErrorCode.INTERNAL_ERROR,
            "Unexpected error while generating bonds",
            {"error": str(e), "type": type(e).__name__},
        ))
    if result.ok:
        logger.info("generated %d bonds", result.unwrap().bond_count)
    else:
        logger.error("generation failed: %s", result.error)
    return result
