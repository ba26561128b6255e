from __future__ import annotations

from pathlib import Path

import pytest

from assignment_importer.tabular.reader import (
    ParseError,
    UnsupportedFileError,
    detect_format,
    parse_table,
    read_upload,
)


@pytest.mark.parametrize(
    "filename,content_type,expected",
    [
        ("assignments.csv", None, "csv"),
        ("ASSIGNMENTS.CSV", None, "csv"),
        ("upload.bin", "text/csv; charset=utf-8", "csv"),
        ("assignments.xlsx", None, "spreadsheet"),
        ("legacy.xls", None, "spreadsheet"),
        ("upload", "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", "spreadsheet"),
    ],
)
def test_detect_format(filename, content_type, expected):
    assert detect_format(filename, content_type) == expected


def test_detect_format_rejects_other_types():
    with pytest.raises(UnsupportedFileError) as e:
        detect_format("notes.pdf", "application/pdf")
    assert str(e.value) == "Please upload a CSV or Excel file (.csv, .xlsx, .xls)"
    # UnsupportedFileError is a ParseError so callers can treat both as fatal
    assert isinstance(e.value, ParseError)


def test_parse_csv_rows_keep_header_keys_and_string_values():
    content = b"Project Name,Mentor Email\nAlpha,m@x.io\n,\nBeta,n@x.io\n"
    rows = parse_table(content, "csv")
    assert rows == [
        {"Project Name": "Alpha", "Mentor Email": "m@x.io"},
        {"Project Name": "Beta", "Mentor Email": "n@x.io"},
    ]


def test_parse_csv_strips_utf8_bom():
    content = "﻿Project Name,Mentee Email\nAlpha,s@x.io\n".encode()
    rows = parse_table(content, "csv")
    assert list(rows[0].keys()) == ["Project Name", "Mentee Email"]


def test_parse_csv_keeps_na_like_strings():
    rows = parse_table(b"Project Name,Project Details\nNA,None\n", "csv")
    assert rows == [{"Project Name": "NA", "Project Details": "None"}]


def test_parse_csv_short_row_yields_blank_cells():
    rows = parse_table(b"a,b,c\n1,2,3\n4\n", "csv")
    assert rows[1] == {"a": "4", "b": "", "c": ""}


def test_parse_csv_duplicate_header_first_wins():
    rows = parse_table(b"Name,Name,Other\nfirst,second,x\n", "csv")
    assert rows == [{"Name": "first", "Other": "x"}]


def test_parse_csv_blank_header_cells_ignored():
    rows = parse_table(b"Project Name,,Mentor Email\nAlpha,junk,m@x.io\n", "csv")
    assert rows == [{"Project Name": "Alpha", "Mentor Email": "m@x.io"}]


@pytest.mark.parametrize("content", [b"", b"   \n\n"])
def test_parse_csv_empty_file(content):
    with pytest.raises(ParseError) as e:
        parse_table(content, "csv")
    assert str(e.value) == "CSV file is empty or invalid"


def test_parse_csv_header_only():
    with pytest.raises(ParseError) as e:
        parse_table(b"Project Name,Mentor Email\n", "csv")
    assert "no data rows" in str(e.value)


def test_parse_csv_not_utf8():
    with pytest.raises(ParseError) as e:
        parse_table(b"Project Name\n\xff\xfe\xfa\n", "csv")
    assert str(e.value).startswith("CSV parsing error")


def test_parse_spreadsheet_first_sheet(make_xlsx):
    content = make_xlsx([
        ["Project Name", "Mentor Email", "Year", "Score"],
        ["Alpha", "m@x.io", 2024, 1.5],
        [None, None, None, None],
        ["Beta", "n@x.io", 2025, None],
    ])
    rows = parse_table(content, "spreadsheet")
    assert rows == [
        {"Project Name": "Alpha", "Mentor Email": "m@x.io", "Year": "2024", "Score": "1.5"},
        {"Project Name": "Beta", "Mentor Email": "n@x.io", "Year": "2025", "Score": ""},
    ]


def test_parse_spreadsheet_corrupt_content():
    with pytest.raises(ParseError) as e:
        parse_table(b"this is not a workbook", "spreadsheet")
    assert str(e.value).startswith("Failed to parse Excel file:")


def test_parse_spreadsheet_empty_content():
    with pytest.raises(ParseError):
        parse_table(b"", "spreadsheet")


def test_parse_table_unknown_format():
    with pytest.raises(UnsupportedFileError):
        parse_table(b"a\n1\n", "json")  # type: ignore[arg-type]


def test_read_upload_from_disk(tmp_path: Path, make_csv):
    path = tmp_path / "assignments.csv"
    path.write_bytes(make_csv([["Alpha", "Dr. M", "m@x.io", "S", "s@x.io"]]))
    rows = read_upload(path)
    assert len(rows) == 1
    assert rows[0]["Mentee Email"] == "s@x.io"


def test_read_upload_missing_file(tmp_path: Path):
    with pytest.raises(ParseError) as e:
        read_upload(tmp_path / "missing.csv")
    assert "cannot read" in str(e.value)
