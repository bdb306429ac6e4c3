from __future__ import annotations

import hashlib
import logging
import re
from collections import Counter

from bondgen.models.result import ErrorCode, ServiceResult, failure, success
from bondgen.models.template import ALL_TAGS, OPTIONAL_TAGS, REQUIRED_TAGS, TAG_PATTERN, TagMap, TagPosition

from .container import DOCUMENT_PART, ContainerError, DocxContainer, MissingPartError

"""Template tag extraction and validation.

A template is accepted only when every ``{{TAG}}`` in its body belongs to the
tag vocabulary, every required tag is present and no required tag appears more
than once. Checks run in that order and the first failing check is reported.
"""

__all__ = [
    "TEMPLATE_ID_LENGTH",
    "template_hash",
    "find_tags",
    "extract_template_tags",
    "validate_tag_map",
]

logger = logging.getLogger(__name__)

TEMPLATE_ID_LENGTH = 16
_TAG_RE = re.compile(TAG_PATTERN)


def _tag_list(tags: list[str] | tuple[str, ...]) -> str:
    return ", ".join(f"{{{{{t}}}}}" for t in tags)


def template_hash(content: bytes) -> str:
    """SHA-256 hex digest of the raw template bytes."""
    return hashlib.sha256(content).hexdigest()


def find_tags(document_xml: str) -> list[TagPosition]:
    """Every ``{{TAG}}`` occurrence in document order (vocabulary not checked)."""
    return [TagPosition(tag=m.group(1), position=m.start()) for m in _TAG_RE.finditer(document_xml)]


def _check_tags(found: list[TagPosition]) -> ServiceResult[None]:
    invalid = list(dict.fromkeys(t.tag for t in found if t.tag not in ALL_TAGS))
    if invalid:
        return failure(
            ErrorCode.INVALID_TAG,
            f"Unknown tags found: {_tag_list(invalid)}",
            {"invalid_tags": invalid, "valid_tags": [*REQUIRED_TAGS, *OPTIONAL_TAGS]},
        )

    counts = Counter(t.tag for t in found)
    missing = [t for t in REQUIRED_TAGS if counts[t] == 0]
    if missing:
        return failure(
            ErrorCode.MISSING_REQUIRED_TAGS,
            f"Missing required tags: {_tag_list(missing)}",
            {"missing_tags": missing, "found_tags": list(dict.fromkeys(t.tag for t in found))},
        )

    duplicates = [t for t in REQUIRED_TAGS if counts[t] > 1]
    if duplicates:
        listed = ", ".join(f"{{{{{t}}}}} ({counts[t]} times)" for t in duplicates)
        return failure(
            ErrorCode.DUPLICATE_REQUIRED_TAGS,
            f"Required tags appear more than once: {listed}",
            {"duplicates": duplicates, "counts": {t: counts[t] for t in duplicates}},
        )
    return success(None)


def extract_template_tags(content: bytes) -> ServiceResult[TagMap]:
    """Extract and validate the tags of a .docx template.

    Args:
        content: Raw template bytes

    Returns:
        TagMap with every tag occurrence and the template fingerprint, or one of
        INVALID_TEMPLATE / INVALID_TAG / MISSING_REQUIRED_TAGS /
        DUPLICATE_REQUIRED_TAGS.
    """
    try:
        document_xml = DocxContainer(content).read_text(DOCUMENT_PART)
    except MissingPartError:
        return failure(ErrorCode.INVALID_TEMPLATE, f"Invalid DOCX file: missing {DOCUMENT_PART}")
    except ContainerError as e:
        return failure(ErrorCode.INVALID_TEMPLATE, "Failed to read DOCX file", {"error": str(e)})

    found = find_tags(document_xml)
    checked = _check_tags(found)
    if not checked.ok:
        logger.debug("template rejected: %s", checked.error)
        return checked  # type: ignore[return-value]

    digest = template_hash(content)
    tag_map = TagMap(tags=tuple(found), template_id=digest[:TEMPLATE_ID_LENGTH], template_hash=digest)
    logger.info("template %s: %d tags (%d distinct)", tag_map.template_id, len(found), len(tag_map.tag_names))
    return success(tag_map)


def validate_tag_map(tag_map: TagMap) -> ServiceResult[None]:
    """Re-check a stored tag map before it is used for filling."""
    missing = [t for t in REQUIRED_TAGS if not tag_map.has(t)]
    if missing:
        return failure(
            ErrorCode.VALIDATION_ERROR,
            f"Missing required tags: {_tag_list(missing)}",
            {"missing_tags": missing},
        )
    unknown = [t for t in tag_map.tag_names if t not in ALL_TAGS]
    if unknown:
        return failure(
            ErrorCode.VALIDATION_ERROR,
            f"Unknown tags found: {_tag_list(unknown)}",
            {"invalid_tags": unknown},
        )
    return success(None)
