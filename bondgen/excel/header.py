from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from bondgen.models.result import ErrorCode, ServiceResult, failure, success

"""Header row detection and column mapping for raw spreadsheet grids.

Issuers lay out their schedules differently: a title block above the table,
"Par Amount" instead of "Principal", headers split over two lines. The header
row is found by keyword hits and each canonical field is looked up through an
alias list against normalized header text.
"""

__all__ = [
    "HEADER_SCAN_LIMIT",
    "COLUMN_ALIASES",
    "MATURITY_KEYWORDS",
    "CUSIP_KEYWORDS",
    "HeaderMatch",
    "ColumnMapping",
    "normalize_header",
    "detect_header_row",
    "map_columns",
]

logger = logging.getLogger(__name__)

HEADER_SCAN_LIMIT = 10
MIN_KEYWORD_HITS = 2
SAMPLE_CELL_CHARS = 50

MATURITY_KEYWORDS = ("maturity", "principal", "amount", "rate")
CUSIP_KEYWORDS = ("cusip", "maturity", "date")

# 先にマッチしたエイリアスを優先
COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "maturity_date": ("maturity date", "maturity", "date", "mat date", "mat. date"),
    "principal_amount": ("principal amount", "principal", "amount", "par amount", "par", "face amount"),
    "coupon_rate": ("coupon rate", "coupon", "rate", "interest rate", "interest", "int rate"),
    "dated_date": ("dated date", "dated", "issue date", "dated as of"),
    "series": ("series", "series name", "bond series"),
    "cusip": ("cusip", "cusip no", "cusip number", "cusip #"),
    "cusip_issuer": ("issuer number", "issuer num", "issuer", "cusip issuer"),
    "cusip_issue": ("issue number", "issue num", "issue", "cusip issue"),
    "cusip_check": ("check digit", "issue check digit", "check", "cusip check"),
}

_LINE_BREAK_RE = re.compile(r"[\r\n]+")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class HeaderMatch:
    index: int  # 0-based row index in the grid
    headers: tuple[str, ...]
    scanned_rows: int


@dataclass(frozen=True)
class ColumnMapping:
    """Canonical field -> 0-based column index.

    Attributes:
        indices: Mapped fields (required and any optional ones found)
        missing_optional: Optional fields with no matching header
        normalized_headers: Header text after normalization, in column order
    """
    indices: dict[str, int]
    missing_optional: tuple[str, ...] = ()
    normalized_headers: tuple[str, ...] = ()

    def get(self, field: str) -> int | None:
        return self.indices.get(field)


def _cell_text(cell: Any) -> str:
    return "" if cell is None else str(cell)


def normalize_header(header: Any) -> str:
    """Lowercase, line breaks to spaces, collapse whitespace, trim."""
    text = _LINE_BREAK_RE.sub(" ", _cell_text(header).lower())
    return _WHITESPACE_RE.sub(" ", text).strip()


def detect_header_row(rows: Sequence[Sequence[Any]], required_keywords: Sequence[str]) -> ServiceResult[HeaderMatch]:
    """Find the header row among the first rows of a grid.

    A row is the header when at least two keywords appear (case-insensitive
    substring) in its concatenated cell text. The first such row wins.

    Args:
        rows: Raw grid (trailing blank cells already trimmed)
        required_keywords: Keywords that indicate the header row

    Returns:
        HeaderMatch on success; PARSING_ERROR with ``sample_rows`` diagnostics
        (index, first cell text, cell count) when nothing matched.
    """
    keywords = [k.lower() for k in required_keywords]
    scan_limit = min(HEADER_SCAN_LIMIT, len(rows))
    samples: list[dict[str, Any]] = []

    for i in range(scan_limit):
        row = rows[i]
        if not row:
            samples.append({"index": i, "first_cell": "(empty)", "cell_count": 0})
            continue

        samples.append({
            "index": i,
            "first_cell": _cell_text(row[0])[:SAMPLE_CELL_CHARS],
            "cell_count": len(row),
        })

        row_text = " ".join(_cell_text(c).lower() for c in row)
        hits = [k for k in keywords if k in row_text]
        if len(hits) >= MIN_KEYWORD_HITS:
            logger.debug("header row detected at index %d (keywords=%s)", i, hits)
            return success(HeaderMatch(
                index=i,
                headers=tuple(_cell_text(c) for c in row),
                scanned_rows=i + 1,
            ))

    logger.debug("no header row in first %d rows", scan_limit)
    return failure(
        ErrorCode.PARSING_ERROR,
        f"Could not find header row with keywords: {', '.join(required_keywords)}",
        {"scanned_rows": scan_limit, "sample_rows": samples},
    )


def map_columns(
    headers: Sequence[Any],
    required_fields: Sequence[str],
    optional_fields: Sequence[str] = (),
) -> ServiceResult[ColumnMapping]:
    """Map canonical fields to column indices through the alias table.

    Each field tries its aliases in order; an alias matches a header when the
    normalized texts are equal. The first matching alias wins.

    Returns:
        ColumnMapping on success. PARSING_ERROR listing the missing fields and
        the aliases tried when any required field has no column.
    """
    normalized = tuple(normalize_header(h) for h in headers)
    indices: dict[str, int] = {}
    attempted: list[dict[str, Any]] = []

    for field in (*required_fields, *optional_fields):
        aliases = COLUMN_ALIASES.get(field, (field,))
        found = next(
            (normalized.index(alias) for alias in aliases if alias in normalized),
            None,
        )
        attempted.append({"field": field, "aliases": list(aliases), "index": found})
        if found is not None:
            indices[field] = found

    missing_required = [f for f in required_fields if f not in indices]
    missing_optional = tuple(f for f in optional_fields if f not in indices)

    if missing_required:
        return failure(
            ErrorCode.PARSING_ERROR,
            f"Missing required columns: {', '.join(missing_required)}",
            {
                "missing_fields": missing_required,
                "attempted_mappings": [a for a in attempted if a["field"] in missing_required],
                "available_columns": [h for h in normalized if h],
            },
        )

    return success(ColumnMapping(
        indices=indices,
        missing_optional=missing_optional,
        normalized_headers=normalized,
    ))
