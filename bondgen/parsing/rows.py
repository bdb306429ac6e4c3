from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from .fields import is_blank

"""Row-level helpers shared by the schedule parsers."""

__all__ = [
    "is_blank_row",
    "is_section_header",
    "cell_at",
    "series_text",
]


def is_blank_row(row: Sequence[Any]) -> bool:
    return not row or all(is_blank(c) for c in row)


def is_section_header(row: Sequence[Any]) -> bool:
    """Rows like ``["", "Series 2024A:"]`` label a block, they carry no data."""
    return len(row) == 2 and isinstance(row[1], str) and ":" in row[1]


def cell_at(row: Sequence[Any], index: int | None) -> Any:
    if index is None or index >= len(row):
        return None
    return row[index]


def series_text(value: Any) -> str | None:
    if is_blank(value):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()
