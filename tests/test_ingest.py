from datetime import datetime

import pytest

from backend.ingest import (
    EmptyFileError,
    SpreadsheetParseError,
    UnsupportedFileType,
    infer_column_type,
    infer_schema,
    parse_upload,
    rows_to_records,
)


@pytest.mark.parametrize(
    "values",
    [
        ["1", "2.5", " 3 "],
        [1, 2.0, 3],
        ["$1,200", "3", "-4.5"],
        ["1", None, "", "2"],
    ],
)
def test_infer_number_columns(values):
    assert infer_column_type(values) == "number"


@pytest.mark.parametrize(
    "values",
    [
        ["2024-01-01", "2024/02/03"],
        ["Jan 5, 2024", "2024-03-01T10:15:00"],
        ["12/15/2023", None],
    ],
)
def test_infer_date_columns(values):
    assert infer_column_type(values) == "date"


@pytest.mark.parametrize(
    "values",
    [
        [],
        [None, "", "   "],
        ["1", "x"],
        ["north", "south"],
        ["Mon", "Tue"],
        [True, False],
        ["2024-01-01", "5"],
        ["NaN", "inf"],
    ],
)
def test_infer_text_columns(values):
    assert infer_column_type(values) == "text"


def test_infer_schema_only_samples_leading_rows():
    headers = ["amount"]
    rows = [["1"], ["2"], ["not a number"]]

    assert infer_schema(headers, rows, sample_size=2)[0].type == "number"
    assert infer_schema(headers, rows, sample_size=3)[0].type == "text"


def test_infer_schema_keeps_column_positions(sales_csv):
    headers, rows = parse_upload("sales.csv", "text/csv", sales_csv)
    columns = infer_schema(headers, rows)

    assert [(c.name, c.type, c.index) for c in columns] == [
        ("Date", "date", 0),
        ("Region", "text", 1),
        ("Revenue", "number", 2),
        ("Units", "number", 3),
    ]


def test_parse_csv_normalizes_blank_cells(sales_csv):
    headers, rows = parse_upload("sales.csv", "text/csv", sales_csv)

    assert headers == ["Date", "Region", "Revenue", "Units"]
    assert len(rows) == 5
    assert rows[0] == ["2024-01-02", "North", "100", "1"]
    assert rows[4][1] is None


def test_parse_csv_by_extension_without_content_type():
    headers, rows = parse_upload("data.CSV", None, b"a,b\n1,2\n")
    assert headers == ["a", "b"]
    assert rows == [["1", "2"]]


def test_parse_csv_drops_byte_order_mark():
    headers, _ = parse_upload("bom.csv", "text/csv", "\ufeffName,Total\nA,1\n".encode("utf-8"))
    assert headers == ["Name", "Total"]


def test_parse_csv_names_blank_and_duplicate_headers():
    headers, _ = parse_upload("x.csv", "text/csv", b",b,b,a,b\n1,2,3,4,5\n")
    assert headers == ["Column 1", "b", "b (2)", "a", "b (3)"]


def test_parse_csv_skips_blank_lines():
    _, rows = parse_upload("x.csv", "text/csv", b"a,b\n\n1,2\n\n3,4\n")
    assert rows == [["1", "2"], ["3", "4"]]


def test_parse_csv_header_only_has_no_rows():
    headers, rows = parse_upload("x.csv", "text/csv", b"a,b\n")
    assert headers == ["a", "b"]
    assert rows == []


@pytest.mark.parametrize("content", [b"", b"\n\n", b",,\n,,\n"])
def test_parse_empty_csv(content):
    with pytest.raises(EmptyFileError, match="File appears to be empty"):
        parse_upload("empty.csv", "text/csv", content)


def test_parse_csv_drops_cells_beyond_header():
    _, rows = parse_upload("wide.csv", "text/csv", b"a,b\n1,2\n3,4,5,6\n")
    assert rows == [["1", "2"], ["3", "4"]]


def test_parse_csv_with_trailing_commas():
    headers, rows = parse_upload("export.csv", "text/csv", b"a,b\n1,2,\n3,4,\n")
    assert headers == ["a", "b"]
    assert rows == [["1", "2"], ["3", "4"]]


def test_parse_csv_pads_short_rows():
    _, rows = parse_upload("short.csv", "text/csv", b"a,b,c\n1\n2,3\n")
    assert rows == [["1", None, None], ["2", "3", None]]


def test_parse_malformed_csv():
    with pytest.raises(SpreadsheetParseError, match="CSV parsing failed"):
        parse_upload("bad.csv", "text/csv", b'"a,b\n1,2\n')


def test_parse_unsupported_type():
    with pytest.raises(UnsupportedFileType):
        parse_upload("notes.txt", "text/plain", b"hello")


def test_parse_corrupt_workbook():
    with pytest.raises(SpreadsheetParseError):
        parse_upload("bad.xlsx", None, b"definitely not a workbook")


def test_parse_excel_first_sheet(make_xlsx):
    content = make_xlsx(
        [
            ["Product", "Amount", "When"],
            ["Widget", 10, datetime(2024, 1, 5)],
            ["Gadget", 12.5, datetime(2024, 1, 6)],
        ]
    )

    headers, rows = parse_upload("book.xlsx", None, content)

    assert headers == ["Product", "Amount", "When"]
    assert rows[0][0] == "Widget"
    assert rows[0][1] == 10
    assert rows[1][1] == 12.5
    assert rows[0][2].startswith("2024-01-05")

    types = [c.type for c in infer_schema(headers, rows)]
    assert types == ["text", "number", "date"]


def test_rows_to_records_pads_and_keeps_zero():
    records = rows_to_records(["a", "b", "c"], [[0, "x"], [1, None, "z", "extra"]])
    assert records == [
        {"a": 0, "b": "x", "c": None},
        {"a": 1, "b": None, "c": "z"},
    ]
