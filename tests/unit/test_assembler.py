from __future__ import annotations

import pytest

from bondgen.models.bond import NumberingConfig
from bondgen.models.schedule import CusipRow, MaturityRow
from bondgen.services.assembler import assemble_bonds, preview_assembly

MATURITIES = [
    MaturityRow("2026-06-01", 1000000, 5, row_number=3),
    MaturityRow("2027-06-01", 1250000, 4.5, row_number=4),
    MaturityRow("2028-06-01", 21, 4.25, row_number=5),
]
CUSIPS = [
    CusipRow("052414AA1", "2026-06-01", row_number=2),
    CusipRow("052414AB9", "2027-06-01", row_number=3),
    CusipRow("052414AC7", "2028", row_number=4),
]


def test_assemble_bonds_positional():
    bonds = assemble_bonds(MATURITIES, CUSIPS, "2025-01-15")
    assert [b.bond_number for b in bonds] == ["BOND-001", "BOND-002", "BOND-003"]
    assert [b.cusip for b in bonds] == ["052414AA1", "052414AB9", "052414AC7"]
    assert bonds[0].principal_words == "ONE MILLION DOLLARS"
    assert bonds[2].principal_words == "TWENTY-ONE DOLLARS"
    assert all(b.dated_date == "2025-01-15" for b in bonds)
    assert bonds[1].coupon_rate == 4.5


def test_numbering_options():
    bonds = assemble_bonds(MATURITIES, CUSIPS, "2025-01-15", NumberingConfig(starting_number=10, custom_prefix="GO"))
    assert [b.bond_number for b in bonds] == ["GO-010", "GO-011", "GO-012"]


def test_series_prefix_from_either_schedule():
    maturities = [MaturityRow("2026-06-01", 1000, 5, series="2025A")]
    cusips = [CusipRow("052414AA1", "2026-06-01", series="IGNORED")]
    bond = assemble_bonds(maturities, cusips, "2025-01-15")[0]
    assert bond.series == "2025A"
    assert bond.bond_number == "2025A-001"

    bond = assemble_bonds([MaturityRow("2026-06-01", 1000, 5)], [CusipRow("052414AA1", "2026-06-01", "2025B")], "2025-01-15")[0]
    assert bond.bond_number == "2025B-001"


def test_preview_reports_unmatched_maturity_rows():
    preview = preview_assembly(MATURITIES, CUSIPS[:2], "2025-01-15")
    assert not preview.ok
    assert len(preview.bonds) == 2
    assert preview.errors == ("Maturity row 5 (2028-06-01) has no matching CUSIP row",)
    assert preview.matched == 2
    assert preview.unmatched_maturity == 1


def test_preview_warns_on_surplus_cusips_and_date_mismatch():
    extra = [*CUSIPS, CusipRow("052414AD5", "2029-06-01", row_number=5)]
    swapped = [extra[1], extra[0], *extra[2:]]
    preview = preview_assembly(MATURITIES, swapped, "2025-01-15")
    assert preview.ok
    assert preview.unmatched_cusip == 1
    assert any("CUSIP row 5 (052414AD5) has no matching maturity row" in w for w in preview.warnings)
    mismatches = [w for w in preview.warnings if "does not match" in w]
    assert len(mismatches) == 2


def test_year_only_cusip_date_matches_by_year():
    preview = preview_assembly(MATURITIES[2:], CUSIPS[2:], "2025-01-15")
    assert preview.warnings == ()


def test_invalid_dated_date_raises():
    with pytest.raises(ValueError):
        assemble_bonds(MATURITIES, CUSIPS, "2025")


def test_empty_input():
    assert assemble_bonds([], [], "2025-01-15") == []
