"""CSV import and export for transaction ledgers."""

import csv
import io
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Iterable, Optional

from pydantic import ValidationError

from .models import ActionType, Transaction

FIELDNAMES = ["id", "symbol", "action", "quantity", "price", "date"]
REQUIRED_FIELDS = {"symbol", "action", "quantity", "price", "date"}


class CSVParseError(Exception):
    """Exception raised for CSV parsing errors."""
    def __init__(self, message: str, row_number: Optional[int] = None):
        self.row_number = row_number
        super().__init__(f"Row {row_number}: {message}" if row_number else message)


def parse_decimal(value: str) -> Decimal:
    """Parse a string to Decimal, tolerating thousands separators and ``$``."""
    cleaned = (value or "").strip().replace(",", "").replace("$", "")
    if not cleaned:
        raise ValueError("Missing numeric value")
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        raise ValueError(f"Invalid decimal value: {value}")


def parse_date(value: str):
    """Parse a date string in various formats."""
    formats = ["%Y-%m-%d", "%m/%d/%Y", "%Y/%m/%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S"]
    value = (value or "").strip()
    for fmt in formats:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Invalid date format: {value}")


def parse_action(value: str) -> ActionType:
    """Parse action type from string."""
    value = (value or "").strip().lower()
    try:
        return ActionType(value)
    except ValueError:
        valid_actions = ", ".join(a.value for a in ActionType)
        raise ValueError(f"Invalid action '{value}'. Valid actions: {valid_actions}")


def parse_csv_content(content: str) -> list[Transaction]:
    """Parse CSV content from a string.

    Args:
        content: CSV content as string

    Returns:
        List of Transaction objects

    Raises:
        CSVParseError: On missing columns or an invalid row
    """
    content = content.lstrip("\ufeff")

    # Try to detect delimiter
    try:
        dialect = csv.Sniffer().sniff(content[:4096], delimiters=",;\t")
    except csv.Error:
        dialect = csv.excel

    reader = csv.DictReader(io.StringIO(content), dialect=dialect)

    # Normalize field names
    if reader.fieldnames:
        reader.fieldnames = [name.lower().strip() for name in reader.fieldnames]

    if not reader.fieldnames or not REQUIRED_FIELDS.issubset(set(reader.fieldnames)):
        missing = REQUIRED_FIELDS - set(reader.fieldnames or [])
        raise CSVParseError(f"Missing required columns: {sorted(missing)}")

    transactions = []
    for row_num, row in enumerate(reader, start=2):  # Start at 2 (header is row 1)
        try:
            transaction = Transaction(
                id=(row.get("id") or "").strip() or f"row-{row_num}",
                symbol=(row.get("symbol") or "").strip(),
                action=parse_action(row.get("action")),
                quantity=parse_decimal(row.get("quantity")),
                price=parse_decimal(row.get("price")),
                date=parse_date(row.get("date")),
            )
            transactions.append(transaction)
        except ValidationError as e:
            errors = "; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors())
            raise CSVParseError(errors, row_num)
        except ValueError as e:
            raise CSVParseError(str(e), row_num)

    return transactions


def parse_csv_file(file_path: Path) -> list[Transaction]:
    """Parse a CSV file and return a list of transactions.

    Raises:
        CSVParseError: If the file cannot be read or parsed
    """
    if not file_path.exists():
        raise CSVParseError(f"File not found: {file_path}")

    try:
        content = file_path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError:
        raise CSVParseError("File encoding error. Please use UTF-8 encoding.")

    try:
        return parse_csv_content(content)
    except csv.Error as e:
        raise CSVParseError(f"CSV format error: {e}")


def export_csv(transactions: Iterable[Transaction]) -> str:
    """Serialize transactions with the same columns the parser reads."""
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=FIELDNAMES, lineterminator="\n")
    writer.writeheader()
    for txn in transactions:
        writer.writerow({
            "id": txn.id,
            "symbol": txn.symbol,
            "action": txn.action.value,
            "quantity": str(txn.quantity),
            "price": str(txn.price),
            "date": txn.date.isoformat(),
        })
    return output.getvalue()
