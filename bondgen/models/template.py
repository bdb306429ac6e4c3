from __future__ import annotations

from dataclasses import dataclass

"""Template tag vocabulary and the tag map extracted from one template.

The vocabulary is the wire contract for every template: tags outside it are
rejected, required tags must appear exactly once.
"""

__all__ = [
    "REQUIRED_TAGS",
    "OPTIONAL_TAGS",
    "ALL_TAGS",
    "TAG_PATTERN",
    "TagPosition",
    "TagMap",
]

REQUIRED_TAGS: tuple[str, ...] = (
    "BOND_NUMBER",
    "DATED_DATE",
    "INTEREST_RATE",
    "MATURITY_DATE",
    "CUSIP_NO",
    "PRINCIPAL_AMOUNT_NUM",
    "PRINCIPAL_AMOUNT_WORDS",
)

OPTIONAL_TAGS: tuple[str, ...] = (
    "SERIES",
    "ISSUER_NAME",
    "PROJECT_NAME",
    "BOND_TITLE",
    "INTEREST_DATES",
)

ALL_TAGS: frozenset[str] = frozenset(REQUIRED_TAGS + OPTIONAL_TAGS)

TAG_PATTERN = r"\{\{([A-Z_]+)\}\}"


@dataclass(frozen=True)
class TagPosition:
    tag: str
    position: int  # offset inside document.xml text


@dataclass(frozen=True)
class TagMap:
    """Tags found in one template plus its content fingerprint.

    Attributes:
        tags: One entry per occurrence, in document order
        template_id: Short id (first 16 hex chars of the hash)
        template_hash: SHA-256 hex digest of the raw template bytes
    """
    tags: tuple[TagPosition, ...]
    template_id: str
    template_hash: str

    @property
    def tag_names(self) -> tuple[str, ...]:
        # 出現順・重複なし
        return tuple(dict.fromkeys(t.tag for t in self.tags))

    @property
    def first_positions(self) -> dict[str, int]:
        """Tag name -> offset of its first occurrence."""
        positions: dict[str, int] = {}
        for t in self.tags:
            positions.setdefault(t.tag, t.position)
        return positions

    def has(self, tag: str) -> bool:
        return tag in self.tag_names
