from __future__ import annotations

import io
import zipfile

import pytest

from bondgen.docx.container import ContainerError, DocxContainer, MissingPartError


def test_read_and_replace(template_bytes):
    container = DocxContainer(template_bytes)
    assert container.part_names == ["[Content_Types].xml", "word/document.xml"]
    assert "{{BOND_NUMBER}}" in container.read_text()

    repacked = container.replace_text("<w:document/>")
    assert DocxContainer(repacked).read_text() == "<w:document/>"
    # 元のコンテナは変わらない
    assert "{{BOND_NUMBER}}" in container.read_text()


def test_repack_keeps_entry_metadata(template_bytes):
    repacked = DocxContainer(template_bytes).replace_text("<x/>")
    with zipfile.ZipFile(io.BytesIO(template_bytes)) as a, zipfile.ZipFile(io.BytesIO(repacked)) as b:
        for before, after in zip(a.infolist(), b.infolist()):
            assert before.filename == after.filename
            assert before.date_time == after.date_time
            assert before.compress_type == after.compress_type


def test_repeated_replace_is_stable(template_bytes):
    container = DocxContainer(template_bytes)
    assert container.replace_text("<a/>") == container.replace_text("<a/>")


def test_errors(make_docx):
    with pytest.raises(ContainerError):
        DocxContainer(b"not a zip")
    container = DocxContainer(make_docx(with_document=False))
    with pytest.raises(MissingPartError):
        container.read_text()
    with pytest.raises(MissingPartError):
        container.replace_text("<a/>")
