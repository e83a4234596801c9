from datetime import date
from decimal import Decimal

import pytest

from portfolio_tracker.csv_parser import CSVParseError, export_csv, parse_csv_content, parse_csv_file
from portfolio_tracker.models import ActionType


def test_parse_basic_csv():
    content = (
        "id,symbol,action,quantity,price,date\n"
        "a1,aapl,BUY,10,150.25,2024-01-02\n"
        "a2,AAPL,sell,4,160,01/15/2024\n"
    )
    transactions = parse_csv_content(content)

    assert [t.id for t in transactions] == ["a1", "a2"]
    assert transactions[0].symbol == "AAPL"
    assert transactions[0].price == Decimal("150.25")
    assert transactions[1].action == ActionType.SELL
    assert transactions[1].date == date(2024, 1, 15)


def test_semicolon_delimiter_bom_and_generated_ids():
    content = "\ufeffSymbol;Action;Quantity;Price;Date\nMSFT;buy;2;400;2024-03-01 10:30:00\n"
    transactions = parse_csv_content(content)
    assert transactions[0].id == "row-2"
    assert transactions[0].date == date(2024, 3, 1)


def test_missing_columns():
    with pytest.raises(CSVParseError, match="Missing required columns"):
        parse_csv_content("symbol,action\nAAPL,buy\n")


@pytest.mark.parametrize("row", [
    "AAPL,hold,1,1,2024-01-01",
    "AAPL,buy,abc,1,2024-01-01",
    "AAPL,buy,1,1,yesterday",
    "AAPL,buy,-1,1,2024-01-01",
])
def test_invalid_rows_report_row_number(row):
    with pytest.raises(CSVParseError) as exc:
        parse_csv_content(f"symbol,action,quantity,price,date\nAAPL,buy,1,1,2024-01-01\n{row}\n")
    assert exc.value.row_number == 3


def test_parse_file_and_export(tmp_path):
    path = tmp_path / "ledger.csv"
    path.write_text("id,symbol,action,quantity,price,date\nx,NVDA,buy,3,\"1,200.50\",2024-02-01\n", encoding="utf-8")

    transactions = parse_csv_file(path)
    assert transactions[0].price == Decimal("1200.50")

    exported = export_csv(transactions)
    assert exported.splitlines() == [
        "id,symbol,action,quantity,price,date",
        "x,NVDA,buy,3,1200.50,2024-02-01",
    ]
    assert parse_csv_content(exported) == transactions


def test_missing_file(tmp_path):
    with pytest.raises(CSVParseError, match="File not found"):
        parse_csv_file(tmp_path / "nope.csv")
