from __future__ import annotations

from ..models.processing_result import GenerationResult

"""SUMMARY line rendering.

Format::

    SUMMARY bonds=N maturity_rows=V/T cusip_rows=V/T template=<id> archive_bytes=B elapsed_sec=S
"""

__all__ = [
    "format_elapsed",
    "render_summary_line",
]


def format_elapsed(seconds: float) -> str:
    """Integers without a decimal point, tiny values without scientific notation."""
    if seconds == 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return str(round(seconds, 3))


def render_summary_line(result: GenerationResult) -> str:
    """Render the SUMMARY line for one generation run.

    ``maturity_rows`` / ``cusip_rows`` are valid rows over total data rows
    (skipped section headers are not counted).

    Examples:
        >>> from bondgen.models import ScheduleSummary, TagMap
        >>> s = ScheduleSummary(total=3, valid=3, warnings=0, errors=0, skipped=0)
        >>> r = GenerationResult(
        ...     archive=b"PK", bonds=(), tag_map=TagMap((), "0123456789abcdef", "0" * 64),
        ...     maturity_summary=s, cusip_summary=s, elapsed_seconds=2.0,
        ... )
        >>> render_summary_line(r)
        'SUMMARY bonds=0 maturity_rows=3/3 cusip_rows=3/3 template=0123456789abcdef archive_bytes=2 elapsed_sec=2'
    """
    m = result.maturity_summary
    c = result.cusip_summary
    return (
        f"SUMMARY bonds={result.bond_count} "
        f"maturity_rows={m.valid}/{m.total} "
        f"cusip_rows={c.valid}/{c.total} "
        f"template={result.tag_map.template_id} "
        f"archive_bytes={len(result.archive)} "
        f"elapsed_sec={format_elapsed(result.elapsed_seconds)}"
    )
