# Shared pytest fixtures
from __future__ import annotations

import io
import tempfile
import zipfile
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from bondgen.logging.init import reset_logging

CONTENT_TYPES_XML = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
    '<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">'
    '<Default Extension="xml" ContentType="application/xml"/>'
    '<Override PartName="/word/document.xml" '
    'ContentType="application/vnd.openxmlformats-officedocument.wordprocessingml.document.main+xml"/>'
    "</Types>"
)

DOCUMENT_HEAD = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
    '<w:document xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main"><w:body>'
)
DOCUMENT_TAIL = "</w:body></w:document>"

TEMPLATE_LINES = (
    "{{ISSUER_NAME}}",
    "{{BOND_TITLE}}, Series {{SERIES}}",
    "No. {{BOND_NUMBER}}  CUSIP {{CUSIP_NO}}",
    "Dated Date: {{DATED_DATE}}  Maturity Date: {{MATURITY_DATE}}",
    "Interest Rate: {{INTEREST_RATE}} payable {{INTEREST_DATES}}",
    "Principal Amount: ${{PRINCIPAL_AMOUNT_NUM}}",
    "{{PRINCIPAL_AMOUNT_WORDS}}",
    "Project: {{PROJECT_NAME}}",
)

MATURITY_GRID: list[list[Any]] = [
    ["Debt Service Schedule"],
    ["Maturity Date", "Principal Amount", "Coupon Rate", "Dated Date"],
    ["2026-06-01", 1000000, 5, "2025-01-15"],
    ["2027-06-01", 1250000, 4.5],
    ["2028-06-01", 500000, 4.25],
]

CUSIP_GRID: list[list[Any]] = [
    ["CUSIP", "Maturity Date"],
    ["052414AA1", "2026-06-01"],
    ["052414AB9", "2027-06-01"],
    ["052414AC7", "2028-06-01"],
]


def document_xml(lines: Sequence[str]) -> str:
    body = "".join(f"<w:p><w:r><w:t>{line}</w:t></w:r></w:p>" for line in lines)
    return f"{DOCUMENT_HEAD}{body}{DOCUMENT_TAIL}"


def docx_bytes(xml: str | None, *, with_document: bool = True) -> bytes:
    """Minimal .docx package with fixed entry timestamps."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, data in (("[Content_Types].xml", CONTENT_TYPES_XML), ("word/document.xml", xml)):
            if name == "word/document.xml" and not with_document:
                continue
            info = zipfile.ZipInfo(name, date_time=(2024, 1, 1, 0, 0, 0))
            info.compress_type = zipfile.ZIP_DEFLATED
            zf.writestr(info, data or "")
    return buf.getvalue()


def workbook_bytes(rows: Sequence[Sequence[Any]], sheet_name: str = "Schedule") -> bytes:
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        pd.DataFrame([list(r) for r in rows]).to_excel(writer, sheet_name=sheet_name, index=False, header=False)
    return buf.getvalue()


@pytest.fixture(autouse=True)
def _fresh_logging():
    # ハンドラは生成時の sys.stdout を掴むので、capsys の差し替え後に作り直す
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("BONDGEN_CONFIG", raising=False)
        yield p


@pytest.fixture()
def make_docx() -> Callable[..., bytes]:
    """Build a .docx whose body has one paragraph per line."""
    def _make(lines: Sequence[str] = TEMPLATE_LINES, *, with_document: bool = True) -> bytes:
        return docx_bytes(document_xml(lines), with_document=with_document)
    return _make


@pytest.fixture()
def template_bytes(make_docx) -> bytes:
    return make_docx()


@pytest.fixture()
def make_workbook() -> Callable[..., bytes]:
    return workbook_bytes


@pytest.fixture()
def maturity_grid() -> list[list[Any]]:
    return [list(r) for r in MATURITY_GRID]


@pytest.fixture()
def cusip_grid() -> list[list[Any]]:
    return [list(r) for r in CUSIP_GRID]


@pytest.fixture()
def maturity_xlsx() -> bytes:
    return workbook_bytes(MATURITY_GRID)


@pytest.fixture()
def cusip_xlsx() -> bytes:
    return workbook_bytes(CUSIP_GRID)


@pytest.fixture()
def sample_config_yaml() -> str:
    return """template: ./data/bond_form.docx
maturity_schedule: ./data/maturity_schedule.xlsx
cusip_schedule: ./data/cusip_schedule.xlsx
output: ./out/bonds.zip
issuer_name: City of Austin
bond_title: General Obligation Bonds
project_name: Water Treatment Plant
interest_dates:
  first: "2025-06-01"
  second: "2025-12-01"
numbering:
  starting_number: 1
  custom_prefix: 2025A
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "generate.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def job_inputs(temp_workdir: Path, template_bytes: bytes, maturity_xlsx: bytes, cusip_xlsx: bytes) -> Path:
    """Write the template and both schedules where sample_config_yaml expects them."""
    data = temp_workdir / "data"
    (data / "bond_form.docx").write_bytes(template_bytes)
    (data / "maturity_schedule.xlsx").write_bytes(maturity_xlsx)
    (data / "cusip_schedule.xlsx").write_bytes(cusip_xlsx)
    return data
