from __future__ import annotations

import pytest

from bondgen.models.bond import AssembledBond, NumberingConfig
from bondgen.models.result import ErrorCode, ServiceResult, failure, success
from bondgen.models.schedule import RowStatus, ScheduleSummary, compute_status

VALID = dict(
    bond_number="BOND-001",
    maturity_date="2026-06-01",
    principal_amount=1000,
    coupon_rate=5,
    cusip="052414AA1",
    dated_date="2025-01-15",
    principal_words="ONE THOUSAND DOLLARS",
)


def test_assembled_bond_valid():
    bond = AssembledBond(**VALID)
    assert bond.series is None


@pytest.mark.parametrize(
    "field,value",
    [
        ("bond_number", ""),
        ("principal_amount", 0),
        ("principal_amount", 1000.0),
        ("principal_amount", True),
        ("cusip", "052414aa1"),
        ("cusip", "SHORT"),
        ("coupon_rate", -0.5),
        ("maturity_date", "2026"),
        ("dated_date", "06/01/2025"),
    ],
)
def test_assembled_bond_invariants(field, value):
    with pytest.raises(ValueError):
        AssembledBond(**{**VALID, field: value})


def test_numbering_config_validation():
    assert NumberingConfig().starting_number == 1
    with pytest.raises(ValueError):
        NumberingConfig(starting_number=0)
    with pytest.raises(ValueError):
        NumberingConfig(starting_number="1")  # type: ignore[arg-type]


def test_service_result():
    ok: ServiceResult[int] = success(3)
    assert ok.ok and ok.unwrap() == 3

    bad = failure(ErrorCode.NO_BONDS, "nothing", {"n": 0})
    assert not bad.ok
    assert str(bad.error) == "NO_BONDS: nothing"
    with pytest.raises(ValueError, match="NO_BONDS"):
        bad.unwrap()


def test_compute_status():
    assert compute_status([], []) is RowStatus.VALID
    assert compute_status([], ["w"]) is RowStatus.WARNING
    assert compute_status(["e"], ["w"]) is RowStatus.ERROR


def test_schedule_summary_empty():
    assert ScheduleSummary.from_rows(()) == ScheduleSummary()
