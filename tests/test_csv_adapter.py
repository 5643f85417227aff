import pytest

from fin_analyzer import ParseError, normalize, parse_csv
from fin_analyzer.csv_adapter import cast_cell


@pytest.mark.parametrize(
    ("cell", "expected"),
    [
        (" 12 ", 12),
        ("-3.5", -3.5),
        (".5", 0.5),
        ("+7", 7),
        ("", None),
        ("   ", None),
        ("abc", "abc"),
        ("1,234", "1,234"),
        ("2024-02-01", "2024-02-01"),
        ("2024/03/05", "2024-03-05"),
        ("02/02/2024", "2024-02-02"),
        ("13/45/2024", "13/45/2024"),
    ],
)
def test_cast_cell(cell, expected):
    out = cast_cell(cell)
    assert out == expected
    assert type(out) is type(expected)


def test_rows_become_records_keyed_by_header():
    text = "type,amount,date,vendor\ninvoice,500,2024-02-01,\n,50.5,02/02/2024,Acme\n"

    assert parse_csv(text) == [
        {"type": "invoice", "amount": 500, "date": "2024-02-01", "vendor": None},
        {"type": None, "amount": 50.5, "date": "2024-02-02", "vendor": "Acme"},
    ]


def test_quoted_fields_keep_commas_and_newlines():
    text = 'vendor,note,amount\n"Acme, Inc.","line1\nline2","1,234"\n'

    assert parse_csv(text) == [{"vendor": "Acme, Inc.", "note": "line1\nline2", "amount": "1,234"}]


def test_blank_rows_are_skipped_and_header_is_trimmed():
    text = "\n amount , date \n\n10,2024-01-01\n,\n"
    assert parse_csv(text) == [{"amount": 10, "date": "2024-01-01"}]


def test_header_only_yields_no_records():
    assert parse_csv("amount,date\n") == []


def test_byte_order_mark_is_stripped():
    text = "\ufeffamount,date\n5,2024-01-01\n"

    assert parse_csv(text) == [{"amount": 5, "date": "2024-01-01"}]
    assert parse_csv(text.encode("utf-8")) == [{"amount": 5, "date": "2024-01-01"}]


def test_column_count_mismatch_is_rejected():
    with pytest.raises(ParseError, match="invalid record length on line 2"):
        parse_csv("a,b\n1,2,3\n")


def test_empty_header_name_is_rejected():
    with pytest.raises(ParseError, match="empty column name"):
        parse_csv("a,,c\n1,2,3\n")


def test_malformed_quoting_is_rejected():
    with pytest.raises(ParseError, match="Invalid CSV format"):
        parse_csv('a,b\n"x"y,1\n')


@pytest.mark.parametrize("text", ["", "\n\n", b""])
def test_missing_header_is_rejected(text):
    with pytest.raises(ParseError, match="no header row"):
        parse_csv(text)


def test_non_utf8_bytes_are_rejected():
    with pytest.raises(ParseError, match="not UTF-8"):
        parse_csv(b"amount\n\xff\xfe\n")


def test_csv_rows_flow_through_the_normalizer():
    text = (
        "type,amount,date,vendor,account,balance\n"
        "invoice,500,2024-02-01,,,\n"
        ",50,2024-02-02,Acme,,\n"
        "balance,,2024-02-03,,Checking,1200\n"
    )

    data = normalize(parse_csv(text), source="ledger.csv")

    assert [dict(r) for r in data.invoices] == [{"type": "invoice", "amount": 500, "date": "2024-02-01"}]
    # Header names are shared by every row, so untagged rows see the "account"
    # and "balance" columns even when empty.
    assert [dict(r) for r in data.balances] == [
        {"amount": 50, "date": "2024-02-02", "vendor": "Acme"},
        {"type": "balance", "date": "2024-02-03", "account": "Checking", "balance": 1200},
    ]
    assert data.metadata.source == "ledger.csv"
    assert data.metadata.record_count == 3


@pytest.mark.parametrize("cell", ["١٢٣", "-٣.٥", "１２"])
def test_non_ascii_digits_are_not_numbers(cell):
    assert cast_cell(cell) == cell
