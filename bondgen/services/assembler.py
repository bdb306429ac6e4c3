from __future__ import annotations

import logging
from collections.abc import Sequence

from bondgen.models.bond import AssembledBond, AssemblyPreview, NumberingConfig
from bondgen.models.schedule import CusipRow, MaturityRow

from .numbering import format_bond_number
from .principal_words import principal_to_words

"""Bond assembly: one certificate per maturity row.

Maturity rows are paired with CUSIP rows by position (first with first, second
with second...). Matching by maturity date across files is intentionally not
done; mismatching dates are only reported as warnings.
"""

__all__ = [
    "preview_assembly",
    "assemble_bonds",
]

logger = logging.getLogger(__name__)


def _dates_agree(maturity_date: str, cusip_date: str) -> bool:
    # CUSIP 側が年のみの場合は年だけ比較
    if len(cusip_date) == 4:
        return maturity_date[:4] == cusip_date
    return maturity_date == cusip_date


def preview_assembly(
    maturity_rows: Sequence[MaturityRow],
    cusip_rows: Sequence[CusipRow],
    dated_date: str,
    numbering: NumberingConfig | None = None,
) -> AssemblyPreview:
    """Pair rows, number bonds and report merge problems.

    Args:
        maturity_rows: Valid maturity rows in sheet order
        cusip_rows: Valid CUSIP rows in sheet order
        dated_date: Issue date (YYYY-MM-DD) printed on every certificate
        numbering: Starting number and optional custom prefix

    Returns:
        AssemblyPreview whose ``errors`` list maturity rows left without a CUSIP
        and whose ``warnings`` list surplus CUSIP rows and date mismatches.

    Raises:
        ValueError: when a bond would violate AssembledBond invariants
            (for example a dated date that is not YYYY-MM-DD)
    """
    numbering = numbering or NumberingConfig()
    errors: list[str] = []
    warnings: list[str] = []
    bonds: list[AssembledBond] = []

    pairs = min(len(maturity_rows), len(cusip_rows))
    for i in range(pairs):
        maturity = maturity_rows[i]
        cusip = cusip_rows[i]
        series = maturity.series or cusip.series
        bond_number = format_bond_number(
            numbering.starting_number + i,
            series=series,
            custom_prefix=numbering.custom_prefix,
        )
        if not _dates_agree(maturity.maturity_date, cusip.maturity_date):
            warnings.append(
                f"Bond {bond_number}: maturity date {maturity.maturity_date} (row {maturity.row_number}) "
                f"does not match CUSIP row {cusip.row_number} ({cusip.maturity_date})"
            )
        bonds.append(AssembledBond(
            bond_number=bond_number,
            series=series,
            maturity_date=maturity.maturity_date,
            principal_amount=maturity.principal_amount,
            coupon_rate=maturity.coupon_rate,
            cusip=cusip.cusip,
            dated_date=dated_date,
            principal_words=principal_to_words(maturity.principal_amount),
        ))

    for maturity in maturity_rows[pairs:]:
        errors.append(
            f"Maturity row {maturity.row_number} ({maturity.maturity_date}) has no matching CUSIP row"
        )
    for cusip in cusip_rows[pairs:]:
        warnings.append(f"CUSIP row {cusip.row_number} ({cusip.cusip}) has no matching maturity row")

    logger.debug("assembled %d bonds (%d merge errors, %d warnings)", len(bonds), len(errors), len(warnings))
    return AssemblyPreview(
        bonds=tuple(bonds),
        errors=tuple(errors),
        warnings=tuple(warnings),
        matched=pairs,
        unmatched_maturity=len(maturity_rows) - pairs,
        unmatched_cusip=len(cusip_rows) - pairs,
    )


def assemble_bonds(
    maturity_rows: Sequence[MaturityRow],
    cusip_rows: Sequence[CusipRow],
    dated_date: str,
    numbering: NumberingConfig | None = None,
) -> list[AssembledBond]:
    """Return the bonds built from positionally paired rows.

    Use :func:`preview_assembly` to also see unmatched rows.
    """
    return list(preview_assembly(maturity_rows, cusip_rows, dated_date, numbering).bonds)
