from __future__ import annotations

import io
import zipfile
from typing import Protocol

"""Document container access: read one named part, write it back, repack.

Tag extraction and filling only need "give me the text of the body part" and
"give me a package with this part replaced". ``DocxContainer`` does that for
OOXML (.docx) packages; anything else implementing ``DocumentContainer`` can
be passed to the filler instead.
"""

__all__ = [
    "DOCUMENT_PART",
    "ContainerError",
    "MissingPartError",
    "DocumentContainer",
    "DocxContainer",
]

DOCUMENT_PART = "word/document.xml"


class ContainerError(Exception):
    """Raised when the bytes are not a readable package."""


class MissingPartError(ContainerError):
    """Raised when the package has no such part."""


class DocumentContainer(Protocol):
    def read_text(self, part: str = DOCUMENT_PART) -> str: ...

    def replace_text(self, text: str, part: str = DOCUMENT_PART) -> bytes: ...


def _copy_info(info: zipfile.ZipInfo) -> zipfile.ZipInfo:
    # writestr は ZipInfo を書き換えるので毎回コピーする
    new = zipfile.ZipInfo(info.filename, date_time=info.date_time)
    new.compress_type = info.compress_type
    new.external_attr = info.external_attr
    new.create_system = info.create_system
    return new


class DocxContainer:
    """Read/replace parts of a .docx (ZIP) package held in memory.

    Repacking keeps every entry's name, order, timestamp and compression from
    the source package, so the same template and the same replacement text
    always produce the same bytes.
    """

    def __init__(self, content: bytes) -> None:
        try:
            with zipfile.ZipFile(io.BytesIO(content)) as zf:
                self._entries = [(info, zf.read(info)) for info in zf.infolist()]
        except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, EOFError) as e:
            raise ContainerError(f"not a readable document package: {e}") from e

    @property
    def part_names(self) -> list[str]:
        return [info.filename for info, _ in self._entries]

    def read_bytes(self, part: str = DOCUMENT_PART) -> bytes:
        for info, data in self._entries:
            if info.filename == part:
                return data
        raise MissingPartError(f"{part} not found in document package")

    def read_text(self, part: str = DOCUMENT_PART) -> str:
        try:
            return self.read_bytes(part).decode("utf-8")
        except UnicodeDecodeError as e:
            raise ContainerError(f"{part} is not UTF-8 text: {e}") from e

    def replace_text(self, text: str, part: str = DOCUMENT_PART) -> bytes:
        """Return new package bytes with ``part`` replaced by ``text``."""
        if part not in self.part_names:
            raise MissingPartError(f"{part} not found in document package")
        payload = text.encode("utf-8")
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w") as out:
            for info, data in self._entries:
                out.writestr(_copy_info(info), payload if info.filename == part else data)
        return buf.getvalue()
