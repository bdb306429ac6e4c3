from __future__ import annotations

import io
import logging
import re
import zipfile
from collections.abc import Sequence

from bondgen.models.bond import BondFile
from bondgen.models.result import ErrorCode, ServiceResult, failure, success

"""Deterministic ZIP packaging of filled bond documents.

Entries are sorted by bond number and written with a fixed timestamp and fixed
attributes, so the same set of filled documents always produces the same
archive bytes.
"""

__all__ = [
    "FIXED_DATE_TIME",
    "sanitize_for_filename",
    "archive_filename",
    "assemble_archive",
]

logger = logging.getLogger(__name__)

# ZIP の最小日時 (1980-01-01 00:00:00)
FIXED_DATE_TIME = (1980, 1, 1, 0, 0, 0)
ENTRY_ATTRIBUTES = 0o644 << 16
MAX_NAME_PART = 50

_NON_ALNUM_RE = re.compile(r"[^A-Za-z0-9]")


def sanitize_for_filename(text: str) -> str:
    """Alphanumerics only, at most 50 characters."""
    return _NON_ALNUM_RE.sub("", text)[:MAX_NAME_PART]


def archive_filename(bond_file: BondFile) -> str:
    """``{Issuer}_{Series}_{YYYYMMDD}_{BondNumber}.docx``,
    e.g. ``CityOfAustin_2024A_20250601_2024A-001.docx``."""
    bond = bond_file.bond
    issuer = sanitize_for_filename(bond_file.issuer_name or "") or "Bond"
    series = sanitize_for_filename(bond.series or "") or "Series"
    maturity = bond.maturity_date.replace("-", "")
    return f"{issuer}_{series}_{maturity}_{bond.bond_number}.docx"


def _entry(name: str) -> zipfile.ZipInfo:
    info = zipfile.ZipInfo(name, date_time=FIXED_DATE_TIME)
    info.compress_type = zipfile.ZIP_DEFLATED
    info.external_attr = ENTRY_ATTRIBUTES
    info.create_system = 3  # unix 固定 (実行 OS に依存させない)
    return info


def assemble_archive(bond_files: Sequence[BondFile]) -> ServiceResult[bytes]:
    """Package filled documents into one ZIP.

    Returns:
        ZIP bytes; NO_BONDS for an empty list; ZIP_ERROR for empty documents,
        clashing entry names or any failure while writing. Nothing partial is
        ever returned.
    """
    if not bond_files:
        return failure(ErrorCode.NO_BONDS, "No bonds to assemble into ZIP")

    ordered = sorted(bond_files, key=lambda f: f.bond.bond_number)

    names: dict[str, str] = {}
    for bond_file in ordered:
        number = bond_file.bond.bond_number
        if not bond_file.content:
            return failure(ErrorCode.ZIP_ERROR, f"Bond {number} has an empty document", {"bond_number": number})
        name = archive_filename(bond_file)
        if name in names:
            return failure(
                ErrorCode.ZIP_ERROR,
                f"Duplicate archive entry {name}",
                {"bond_numbers": [names[name], number]},
            )
        names[name] = number

    buf = io.BytesIO()
    try:
        with zipfile.ZipFile(buf, "w") as zf:
            for bond_file, name in zip(ordered, names):
                zf.writestr(_entry(name), bond_file.content)
    except (OSError, ValueError, zipfile.LargeZipFile) as e:
        logger.error("ZIP assembly failed: %s", e)
        return failure(
            ErrorCode.ZIP_ERROR,
            "Failed to create ZIP file",
            {"bond_count": len(bond_files), "error": str(e)},
        )

    data = buf.getvalue()
    logger.info("archive: %d documents, %d bytes", len(ordered), len(data))
    return success(data)
