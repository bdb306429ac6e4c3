from __future__ import annotations

import datetime as dt
import logging
import re
from collections.abc import Callable, Sequence
from xml.sax.saxutils import escape

from bondgen.models.bond import AssembledBond, BondFile, SupplementaryInfo
from bondgen.models.result import ErrorCode, ServiceResult, failure, success
from bondgen.models.template import TAG_PATTERN
from bondgen.parsing.fields import format_number

from .container import DOCUMENT_PART, ContainerError, DocumentContainer, DocxContainer, MissingPartError

"""Template filling: replace every ``{{TAG}}`` in the body with bond values.

Values are formatted for print (``June 1, 2030``, ``1,250,000``, ``4.25%``)
and XML-escaped before they go into the markup. Tags with no value, including
optional ones the caller did not supply, become empty strings.
"""

__all__ = [
    "format_long_date",
    "format_interest_dates",
    "build_replacements",
    "replace_tags",
    "fill_template",
    "fill_all_templates",
]

logger = logging.getLogger(__name__)

# locale に依存しないよう固定
MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

_TAG_RE = re.compile(TAG_PATTERN)

ContainerFactory = Callable[[bytes], DocumentContainer]


def _to_date(value: str) -> dt.date | None:
    try:
        return dt.date.fromisoformat(value[:10])
    except ValueError:
        return None


def format_long_date(iso_date: str | None) -> str:
    """``2030-06-01`` -> ``June 1, 2030``; unparseable values are returned as is."""
    if not iso_date:
        return ""
    day = _to_date(iso_date)
    if day is None:
        return iso_date
    return f"{MONTHS[day.month - 1]} {day.day}, {day.year}"


def format_interest_dates(first: str | None, second: str | None) -> str:
    """``June 1 and December 1``; empty unless both dates parse."""
    if not first or not second:
        return ""
    a, b = _to_date(first), _to_date(second)
    if a is None or b is None:
        return ""
    return f"{MONTHS[a.month - 1]} {a.day} and {MONTHS[b.month - 1]} {b.day}"


def build_replacements(bond: AssembledBond, info: SupplementaryInfo | None = None) -> dict[str, str]:
    """Tag name -> display text for one bond."""
    info = info or SupplementaryInfo()
    return {
        "BOND_NUMBER": bond.bond_number,
        "SERIES": bond.series or "",
        "MATURITY_DATE": format_long_date(bond.maturity_date),
        "DATED_DATE": format_long_date(bond.dated_date),
        "PRINCIPAL_AMOUNT_NUM": f"{bond.principal_amount:,}",
        "PRINCIPAL_AMOUNT_WORDS": bond.principal_words,
        "INTEREST_RATE": f"{format_number(bond.coupon_rate)}%",
        "CUSIP_NO": bond.cusip,
        "ISSUER_NAME": info.issuer_name or "",
        "BOND_TITLE": info.bond_title or "",
        "PROJECT_NAME": info.project_name or "",
        "INTEREST_DATES": format_interest_dates(info.first_interest_date, info.second_interest_date),
    }


def replace_tags(document_xml: str, replacements: dict[str, str]) -> str:
    """Replace every tag occurrence; tags missing from the table become ''."""
    return _TAG_RE.sub(lambda m: escape(replacements.get(m.group(1), "")), document_xml)


def _open(content: bytes, factory: ContainerFactory) -> tuple[DocumentContainer | None, str, ServiceResult[bytes] | None]:
    try:
        container = factory(content)
        return container, container.read_text(DOCUMENT_PART), None
    except MissingPartError:
        return None, "", failure(ErrorCode.INVALID_TEMPLATE, f"Invalid template: missing {DOCUMENT_PART}")
    except ContainerError as e:
        return None, "", failure(ErrorCode.INVALID_TEMPLATE, "Invalid template: not a readable document", {"error": str(e)})


def _fill_opened(
    container: DocumentContainer,
    document_xml: str,
    bond: AssembledBond,
    info: SupplementaryInfo | None,
) -> ServiceResult[bytes]:
    try:
        filled_xml = replace_tags(document_xml, build_replacements(bond, info))
        return success(container.replace_text(filled_xml, DOCUMENT_PART))
    except Exception as e:  # 置換・再パック中のあらゆる失敗を FILL_ERROR に
        logger.debug("fill failed for %s", bond.bond_number, exc_info=True)
        return failure(
            ErrorCode.FILL_ERROR,
            f"Failed to fill template for bond {bond.bond_number}",
            {"bond_number": bond.bond_number, "error": str(e)},
        )


def fill_template(
    content: bytes,
    bond: AssembledBond,
    info: SupplementaryInfo | None = None,
    *,
    container_factory: ContainerFactory = DocxContainer,
) -> ServiceResult[bytes]:
    """Fill one copy of the template for ``bond``.

    Returns:
        Filled document bytes; INVALID_TEMPLATE when the package or its body
        part cannot be read; FILL_ERROR (with the bond number) when
        replacement or repacking fails.
    """
    container, document_xml, error = _open(content, container_factory)
    if error is not None:
        return error
    return _fill_opened(container, document_xml, bond, info)  # type: ignore[arg-type]


def fill_all_templates(
    content: bytes,
    bonds: Sequence[AssembledBond],
    info: SupplementaryInfo | None = None,
    *,
    container_factory: ContainerFactory = DocxContainer,
    on_filled: Callable[[AssembledBond], None] | None = None,
) -> ServiceResult[list[BondFile]]:
    """Fill the template for every bond, in input order, all or nothing.

    The first failure stops the batch. Its details carry the failed bond
    number and how many bonds had already been filled; no files are returned.

    Args:
        content: Template bytes
        bonds: Bonds to fill, in output order
        info: Optional issuer / title / project / interest date text
        container_factory: Document container implementation
        on_filled: Called after each successful bond (progress display)
    """
    container, document_xml, error = _open(content, container_factory)
    if error is not None:
        return error  # type: ignore[return-value]

    info = info or SupplementaryInfo()
    files: list[BondFile] = []
    for bond in bonds:
        result = _fill_opened(container, document_xml, bond, info)  # type: ignore[arg-type]
        if not result.ok:
            logger.error("fill stopped at %s after %d of %d bonds", bond.bond_number, len(files), len(bonds))
            return failure(
                result.error.code,  # type: ignore[union-attr]
                f"Failed to fill template for bond {bond.bond_number}: {result.error.message}",  # type: ignore[union-attr]
                {
                    "failed_bond": bond.bond_number,
                    "successful_bonds": len(files),
                    "total_bonds": len(bonds),
                    "error": (result.error.details or {}).get("error"),  # type: ignore[union-attr]
                },
            )
        files.append(BondFile(
            bond=bond,
            content=result.unwrap(),
            issuer_name=info.issuer_name,
            bond_title=info.bond_title,
        ))
        if on_filled is not None:
            on_filled(bond)

    logger.info("filled %d bond documents", len(files))
    return success(files)
