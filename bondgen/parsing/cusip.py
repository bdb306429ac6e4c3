from __future__ import annotations

import re
from typing import Any

from bondgen.models.schedule import ParsedField

from .fields import format_number, is_blank

"""CUSIP validation and assembly from split columns."""

__all__ = [
    "CUSIP_LENGTH",
    "validate_cusip",
    "assemble_cusip_from_parts",
]

CUSIP_LENGTH = 9
_CUSIP_RE = re.compile(r"^[A-Z0-9]{9}$")
_WHITESPACE_RE = re.compile(r"\s+")

# (label, width) for issuer id / issue number / check digit
_PARTS = (("Issuer Number", 6), ("Issue Number", 2), ("Check Digit", 1))


def _normalize(value: Any) -> str:
    if is_blank(value):
        return ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = format_number(value)
    return _WHITESPACE_RE.sub("", str(value)).upper()


def validate_cusip(value: Any) -> ParsedField:
    """Normalize (strip whitespace, uppercase) and require 9 alphanumerics."""
    if is_blank(value):
        return ParsedField.fail(value, "CUSIP is empty or null")

    cusip = _normalize(value)
    if len(cusip) != CUSIP_LENGTH:
        return ParsedField.fail(value, f'CUSIP must be {CUSIP_LENGTH} characters (got {len(cusip)}: "{cusip}")')
    if not _CUSIP_RE.match(cusip):
        return ParsedField.fail(value, "CUSIP must contain only letters and numbers")
    return ParsedField.ok(cusip, value)


def _part_text(value: Any, width: int) -> str:
    text = _normalize(value)
    # 数値セルは先頭ゼロが落ちる (01 -> 1)
    if text and isinstance(value, (int, float)) and not isinstance(value, bool) and text.isdigit():
        text = text.zfill(width)
    return text


def assemble_cusip_from_parts(issuer: Any, issue: Any, check: Any) -> ParsedField:
    """Build a CUSIP from issuer id (6), issue number (2) and check digit (1).

    Each part is presence- and length-checked before the concatenation is
    validated as a whole; a joined CUSIP gives exactly what ``validate_cusip``
    gives for the same nine characters.
    """
    raw = (issuer, issue, check)
    texts = [_part_text(v, width) for v, (_, width) in zip(raw, _PARTS)]

    missing = [label for text, (label, _) in zip(texts, _PARTS) if not text]
    if missing:
        return ParsedField.fail(raw, f"Missing CUSIP parts: {', '.join(missing)}")

    for text, (label, width) in zip(texts, _PARTS):
        if len(text) != width:
            noun = "character" if width == 1 else "characters"
            return ParsedField.fail(raw, f"{label} must be {width} {noun} (got {len(text)})")

    # 結合後の文字列を単独の CUSIP セルと同じ結果にする
    return validate_cusip("".join(texts))
