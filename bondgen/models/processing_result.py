from __future__ import annotations

from dataclasses import dataclass

from .bond import AssembledBond
from .schedule import ScheduleSummary
from .template import TagMap

"""Aggregated outcome of one generation run, used for the SUMMARY line."""

__all__ = [
    "GenerationResult",
]


@dataclass(frozen=True)
class GenerationResult:
    archive: bytes  # ZIP バイト列
    bonds: tuple[AssembledBond, ...]
    tag_map: TagMap
    maturity_summary: ScheduleSummary
    cusip_summary: ScheduleSummary
    elapsed_seconds: float
    warnings: tuple[str, ...] = ()

    @property
    def bond_count(self) -> int:
        return len(self.bonds)
