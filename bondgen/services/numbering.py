from __future__ import annotations

import logging
import re

"""Bond number formatting: ``{prefix}-{NNN}``."""

__all__ = [
    "DEFAULT_PREFIX",
    "sanitize_prefix",
    "format_bond_number",
]

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "BOND"
SEQUENCE_WIDTH = 3
_PREFIX_STRIP_RE = re.compile(r"[^A-Za-z0-9-]")


def sanitize_prefix(prefix: str | None) -> str:
    """Keep letters, digits and hyphens only."""
    if not prefix:
        return ""
    return _PREFIX_STRIP_RE.sub("", prefix)


def format_bond_number(sequence: int, series: str | None = None, custom_prefix: str | None = None) -> str:
    """Format one bond number.

    The custom prefix wins when it survives sanitizing; otherwise the series,
    then ``BOND``. The sequence is zero-padded to 3 digits (wider numbers are
    kept as they are).

    >>> format_bond_number(7, series="2024A")
    '2024A-007'
    >>> format_bond_number(12)
    'BOND-012'
    """
    padded = str(sequence).zfill(SEQUENCE_WIDTH)

    prefix = sanitize_prefix(custom_prefix)
    if custom_prefix and not prefix:
        logger.warning("custom prefix %r is empty after sanitizing; using fallback", custom_prefix)
    if not prefix:
        prefix = sanitize_prefix(series) or DEFAULT_PREFIX
    return f"{prefix}-{padded}"
