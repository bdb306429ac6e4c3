from __future__ import annotations

import re
from dataclasses import dataclass

"""Bond-level models: one certificate's data, its filled document and the
options that shape numbering and optional template text.
"""

__all__ = [
    "AssembledBond",
    "BondFile",
    "NumberingConfig",
    "SupplementaryInfo",
    "AssemblyPreview",
]

_CUSIP_RE = re.compile(r"^[A-Z0-9]{9}$")
_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class AssembledBond:
    """Data for one certificate.

    Raises:
        ValueError: when principal is not a positive integer, the CUSIP is not
            9 uppercase alphanumerics, the rate is negative or a date is not ISO.
    """
    bond_number: str
    maturity_date: str  # YYYY-MM-DD
    principal_amount: int
    coupon_rate: float
    cusip: str
    dated_date: str  # YYYY-MM-DD
    principal_words: str
    series: str | None = None

    def __post_init__(self) -> None:
        if not self.bond_number:
            raise ValueError("bond_number must not be empty")
        if isinstance(self.principal_amount, bool) or not isinstance(self.principal_amount, int):
            raise ValueError(f"principal_amount must be an integer: {self.principal_amount!r}")
        if self.principal_amount <= 0:
            raise ValueError(f"principal_amount must be greater than zero: {self.principal_amount}")
        if not _CUSIP_RE.match(self.cusip):
            raise ValueError(f"cusip must be 9 alphanumeric characters: {self.cusip!r}")
        if self.coupon_rate < 0:
            raise ValueError(f"coupon_rate cannot be negative: {self.coupon_rate}")
        for name in ("maturity_date", "dated_date"):
            if not _ISO_DATE_RE.match(getattr(self, name)):
                raise ValueError(f"{name} must be YYYY-MM-DD: {getattr(self, name)!r}")


@dataclass(frozen=True)
class BondFile:
    """Filled document bytes for one bond plus naming-only metadata."""
    bond: AssembledBond
    content: bytes
    issuer_name: str | None = None
    bond_title: str | None = None


@dataclass(frozen=True)
class NumberingConfig:
    starting_number: int = 1
    custom_prefix: str | None = None

    def __post_init__(self) -> None:
        if isinstance(self.starting_number, bool) or not isinstance(self.starting_number, int):
            raise ValueError(f"starting_number must be an integer: {self.starting_number!r}")
        if self.starting_number < 1:
            raise ValueError(f"starting_number must be 1 or greater: {self.starting_number}")


@dataclass(frozen=True)
class SupplementaryInfo:
    """Optional text for the optional template tags."""
    issuer_name: str | None = None
    bond_title: str | None = None
    project_name: str | None = None
    first_interest_date: str | None = None
    second_interest_date: str | None = None


@dataclass(frozen=True)
class AssemblyPreview:
    """Assembly outcome with the merge problems found while pairing rows."""
    bonds: tuple[AssembledBond, ...]
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    matched: int = 0
    unmatched_maturity: int = 0
    unmatched_cusip: int = 0

    @property
    def ok(self) -> bool:
        return not self.errors
