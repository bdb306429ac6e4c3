from __future__ import annotations

import pytest

from bondgen.models.schedule import RowStatus
from bondgen.parsing.cusip_schedule import apply_cusip_edit, parse_cusip_schedule, revalidate_cusip_row
from bondgen.parsing.maturity import apply_maturity_edit, parse_maturity_schedule, revalidate_maturity_row


@pytest.fixture()
def maturity_with_error(make_workbook):
    rows = [
        ["Maturity Date", "Principal Amount", "Coupon Rate"],
        ["2026-06-01", 1000, 5],
        ["2027-06-01", "$___", 5],
        [None, "Series 2025B:"],
    ]
    return parse_maturity_schedule(make_workbook(rows)).unwrap()


def test_revalidate_fixes_row(maturity_with_error):
    bad = maturity_with_error.parsed_rows[1]
    assert bad.status is RowStatus.ERROR

    fixed = revalidate_maturity_row(bad, {"principal_amount": "2,500"})
    assert fixed.status is RowStatus.VALID
    assert fixed.principal_amount == 2500
    assert fixed.maturity_date == "2027-06-01"
    assert fixed.errors == ()
    # 元の行は変わらない
    assert bad.status is RowStatus.ERROR


def test_revalidate_can_introduce_errors(maturity_with_error):
    good = maturity_with_error.parsed_rows[0]
    broken = revalidate_maturity_row(good, {"coupon_rate": -2})
    assert broken.status is RowStatus.ERROR
    assert broken.errors == ("Coupon Rate: Coupon rate cannot be negative. Got: -2",)


def test_revalidate_rejects_unknown_field_and_skipped_rows(maturity_with_error):
    with pytest.raises(ValueError):
        revalidate_maturity_row(maturity_with_error.parsed_rows[0], {"cusip": "x"})
    with pytest.raises(ValueError):
        revalidate_maturity_row(maturity_with_error.parsed_rows[2], {"coupon_rate": 5})


def test_apply_maturity_edit_refreshes_summary(maturity_with_error):
    assert maturity_with_error.summary.errors == 1
    updated = apply_maturity_edit(maturity_with_error, 3, {"principal_amount": 1500})
    assert updated.summary.errors == 0
    assert updated.summary.valid == 2
    assert [r.principal_amount for r in updated.rows] == [1000, 1500]
    assert updated.diagnostics == maturity_with_error.diagnostics

    with pytest.raises(ValueError):
        apply_maturity_edit(maturity_with_error, 99, {"principal_amount": 1})


def test_revalidate_cusip_row_replaces_split_parts(make_workbook):
    rows = [
        ["Issuer Number", "Issue Number", "Check Digit", "Maturity Date"],
        ["052414", "A", "1", "2026-06-01"],
    ]
    schedule = parse_cusip_schedule(make_workbook(rows)).unwrap()
    bad = schedule.parsed_rows[0]
    assert bad.status is RowStatus.ERROR
    assert bad.errors == ("CUSIP: Issue Number must be 2 characters (got 1)",)

    fixed = revalidate_cusip_row(bad, {"cusip": "052414aa1"})
    assert fixed.status is RowStatus.VALID
    assert fixed.cusip == "052414AA1"

    updated = apply_cusip_edit(schedule, 2, {"cusip_issue": "AA"})
    assert updated.rows[0].cusip == "052414AA1"
    assert updated.summary.valid == 1
