from __future__ import annotations

from bondgen.models.result import ErrorCode
from bondgen.models.schedule import RowStatus
from bondgen.parsing.cusip_schedule import parse_cusip_schedule


def test_single_column_format(cusip_xlsx):
    schedule = parse_cusip_schedule(cusip_xlsx).unwrap()
    assert schedule.diagnostics.split_cusip is False
    assert schedule.diagnostics.header_row_index == 0
    assert [r.cusip for r in schedule.rows] == ["052414AA1", "052414AB9", "052414AC7"]
    assert [r.maturity_date for r in schedule.rows] == ["2026-06-01", "2027-06-01", "2028-06-01"]
    assert schedule.summary.valid == 3


def test_split_column_format(make_workbook):
    rows = [
        ["Issuer Number", "Issue Number", "Check Digit", "Maturity Date"],
        ["052414", "AA", "1", "2026-06-01"],
        [52414, 1, 7, "2027-06-01"],
    ]
    schedule = parse_cusip_schedule(make_workbook(rows)).unwrap()
    assert schedule.diagnostics.split_cusip is True
    assert [r.cusip for r in schedule.rows] == ["052414AA1", "052414017"]


def test_year_only_maturity_is_valid(make_workbook):
    schedule = parse_cusip_schedule(make_workbook([["CUSIP", "Maturity"], ["052414AA1", 2026]])).unwrap()
    assert schedule.rows[0].maturity_date == "2026"
    assert schedule.parsed_rows[0].status is RowStatus.VALID


def test_bad_cusip_row(make_workbook):
    rows = [["CUSIP", "Maturity Date"], ["052414AA1", "2026-06-01"], ["12345", "2027-06-01"]]
    schedule = parse_cusip_schedule(make_workbook(rows)).unwrap()
    bad = schedule.parsed_rows[1]
    assert bad.status is RowStatus.ERROR
    assert bad.errors == ('CUSIP: CUSIP must be 9 characters (got 5: "12345")',)
    assert bad.row_number == 3
    assert schedule.summary.errors == 1
    assert len(schedule.rows) == 1


def test_series_from_cusip_sheet(make_workbook):
    rows = [["CUSIP", "Maturity Date", "Series"], ["052414AA1", "2026-06-01", "2025B"]]
    schedule = parse_cusip_schedule(make_workbook(rows)).unwrap()
    assert schedule.rows[0].series == "2025B"


def test_missing_columns_reports_both_layouts(make_workbook):
    res = parse_cusip_schedule(make_workbook([["CUSIP", "Date of Sale"], ["052414AA1", "2026-06-01"]]))
    assert not res.ok
    assert res.error.code is ErrorCode.PARSING_ERROR
    assert res.error.message == "Missing required CUSIP columns"
    assert res.error.details["single_column"]["missing_fields"] == ["maturity_date"]
    assert "cusip_issuer" in res.error.details["split_column"]["missing_fields"]


def test_no_header(make_workbook):
    res = parse_cusip_schedule(make_workbook([["foo"], ["bar"]]))
    assert res.error.code is ErrorCode.PARSING_ERROR
    assert "Could not find header row" in res.error.message
