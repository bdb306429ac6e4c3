from __future__ import annotations

import datetime as dt
import io

import pandas as pd
import pytest

from bondgen.excel.reader import (
    WorkbookReadError,
    convert_csv_to_spreadsheet,
    detect_delimiter,
    read_sheet_rows,
    validate_csv_structure,
)
from bondgen.models.result import ErrorCode


def test_read_sheet_rows_cleans_cells(make_workbook):
    content = make_workbook([
        ["Title"],
        ["Maturity Date", "Principal", "Rate"],
        [dt.datetime(2026, 6, 1), 1000000, 4.5],
        ["  ", None, None],
    ])
    rows = read_sheet_rows(content)
    assert rows[0] == ["Title"]
    assert rows[1] == ["Maturity Date", "Principal", "Rate"]
    assert rows[2][0] == dt.datetime(2026, 6, 1)
    assert rows[2][1] == 1000000
    assert rows[2][2] == 4.5
    # 空白だけのセルと末尾の空セルは落ちる
    assert rows[3:] in ([], [[]])


def test_read_sheet_rows_first_sheet_only():
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as w:
        pd.DataFrame([["first"]]).to_excel(w, sheet_name="A", index=False, header=False)
        pd.DataFrame([["second"]]).to_excel(w, sheet_name="B", index=False, header=False)
    assert read_sheet_rows(buf.getvalue()) == [["first"]]


def test_read_sheet_rows_rejects_garbage():
    with pytest.raises(WorkbookReadError):
        read_sheet_rows(b"this is not a workbook")


@pytest.mark.parametrize(
    "text,expected",
    [
        ("a,b,c\n1,2,3\n", ","),
        ("a;b;c\n1;2;3\n", ";"),
        ("a\tb\tc\n1\t2\t3\n", "\t"),
        ("a,b;c\n", ","),  # 同数なら , を優先
    ],
)
def test_detect_delimiter(text, expected):
    assert detect_delimiter(text) == expected


def test_validate_csv_structure():
    assert validate_csv_structure(b"Maturity,Principal,Rate\n2026-06-01,1000,5\n").ok

    only_header = validate_csv_structure(b"Maturity,Principal,Rate\n")
    assert only_header.error.code is ErrorCode.VALIDATION_ERROR

    narrow = validate_csv_structure(b"CUSIP,Maturity\n052414AA1,2026-06-01\n")
    assert narrow.error.code is ErrorCode.VALIDATION_ERROR
    assert narrow.error.details["columns"] == 2


def test_convert_csv_to_spreadsheet_semicolon_roundtrip():
    csv = "Maturity Date;Principal Amount;Coupon Rate\n2026-06-01;1000000;5\n".encode("utf-8-sig")
    res = convert_csv_to_spreadsheet(csv)
    assert res.ok
    rows = read_sheet_rows(res.unwrap())
    assert rows[0] == ["Maturity Date", "Principal Amount", "Coupon Rate"]
    assert [str(c) for c in rows[1]] == ["2026-06-01", "1000000", "5"]


def test_convert_csv_keeps_na_text():
    res = convert_csv_to_spreadsheet(b"Series,Maturity,CUSIP\nNA,2026-06-01,052414AA1\n")
    rows = read_sheet_rows(res.unwrap())
    assert rows[1][0] == "NA"


def test_convert_csv_empty():
    res = convert_csv_to_spreadsheet(b"   \n")
    assert not res.ok
    assert res.error.code is ErrorCode.CONVERSION_ERROR


def test_convert_csv_pads_uneven_rows():
    res = convert_csv_to_spreadsheet(
        b"Maturity,Principal,Rate\n2026-06-01,1000000,4\n2027-06-01,2000000,4.5,callable\n"
    )
    assert res.ok
    rows = read_sheet_rows(res.unwrap())
    assert rows[0] == ["Maturity", "Principal", "Rate"]
    assert rows[1] == ["2026-06-01", "1000000", "4"]
    assert rows[2] == ["2027-06-01", "2000000", "4.5", "callable"]


def test_convert_csv_keeps_leading_zeros():
    res = convert_csv_to_spreadsheet(b"CUSIP,Maturity,Series\n012345678,2026-06-01,A\n")
    rows = read_sheet_rows(res.unwrap())
    assert rows[1][0] == "012345678"
