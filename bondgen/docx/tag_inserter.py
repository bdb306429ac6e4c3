from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from xml.sax.saxutils import escape

from bondgen.models.result import ErrorCode, ServiceResult, failure, success
from bondgen.models.template import ALL_TAGS

from .container import DOCUMENT_PART, ContainerError, DocxContainer, MissingPartError

"""Turn an untagged bond form into a template.

The person preparing the template selects text in the form (a blank line,
"$______", a sample CUSIP...) and assigns a tag to each selection. Each
selection is replaced by ``{{TAG}}`` inside the document body.
"""

__all__ = [
    "TagAssignment",
    "normalize_selection",
    "apply_tag_assignments",
]

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class TagAssignment:
    """Replace the ``occurrence``-th (0-based) appearance of ``text`` with ``tag``."""
    text: str
    tag: str
    occurrence: int = 0


def normalize_selection(text: str) -> str:
    """Non-breaking spaces to spaces, collapse whitespace, trim."""
    return _WHITESPACE_RE.sub(" ", text.replace(" ", " ")).strip()


def _pattern(text: str) -> re.Pattern[str]:
    # 選択テキストは XML 上ではエスケープ済み。空白の違いは許容する
    parts = [re.escape(escape(p)) for p in text.split(" ")]
    return re.compile(r"\s+".join(parts))


def apply_tag_assignments(content: bytes, assignments: Sequence[TagAssignment]) -> ServiceResult[bytes]:
    """Insert ``{{TAG}}`` placeholders for the given selections.

    Occurrence indexes refer to the document before any replacement. A
    selection that cannot be found (already tagged, edited since) is skipped
    and logged. Overlapping selections keep the earlier one.

    Returns:
        New template bytes; VALIDATION_ERROR for tags outside the vocabulary;
        INVALID_TEMPLATE for unreadable packages; REPLACEMENT_ERROR when the
        package cannot be rewritten.
    """
    unknown = sorted({a.tag for a in assignments if a.tag not in ALL_TAGS})
    if unknown:
        return failure(
            ErrorCode.VALIDATION_ERROR,
            f"Unknown tags in assignments: {', '.join(unknown)}",
            {"invalid_tags": unknown},
        )

    try:
        container = DocxContainer(content)
        xml = container.read_text(DOCUMENT_PART)
    except MissingPartError:
        return failure(ErrorCode.INVALID_TEMPLATE, f"Invalid DOCX file: missing {DOCUMENT_PART}")
    except ContainerError as e:
        return failure(ErrorCode.INVALID_TEMPLATE, "Failed to read DOCX file", {"error": str(e)})

    spans: list[tuple[int, int, str]] = []
    skipped: list[str] = []
    for assignment in assignments:
        text = normalize_selection(assignment.text)
        if not text:
            continue
        matches = list(_pattern(text).finditer(xml))
        if assignment.occurrence >= len(matches):
            logger.warning("selection %r (#%d) not found; skipped", text[:50], assignment.occurrence)
            skipped.append(text)
            continue
        m = matches[assignment.occurrence]
        if any(m.start() < end and start < m.end() for start, end, _ in spans):
            logger.warning("selection %r overlaps an earlier one; skipped", text[:50])
            skipped.append(text)
            continue
        spans.append((m.start(), m.end(), assignment.tag))

    # 後ろから置換してオフセットを保つ
    for start, end, tag in sorted(spans, reverse=True):
        xml = f"{xml[:start]}{{{{{tag}}}}}{xml[end:]}"

    try:
        data = container.replace_text(xml, DOCUMENT_PART)
    except (ContainerError, ValueError, OSError) as e:
        return failure(ErrorCode.REPLACEMENT_ERROR, "Failed to replace blanks with tags", {"error": str(e)})

    logger.info("inserted %d tags (%d selections skipped)", len(spans), len(skipped))
    return success(data)
