"""
Per-collection CSV export and import.

Columns are positional, with the header row the browser app wrote:

    EGGS       Date,Collected,Sold,Price,TotalSale
    CUSTOMERS  Name,Phone
    LEDGER     Date,Customer,Type,Description,Amount,Quantity,PricePerUnit
    EXPENSES   Date,Payee,PayeeType,TransactionType,Category,Description,Amount

Export resolves ids to names. Import resolves names back to ids
(case-insensitive, trimmed) and gives every row a fresh id.

Import rules:
- fewer than two rows (header + data) rejects the file
- rows with at most one cell are skipped
- bad or empty numeric cells become 0; empty ledger quantity/price stay absent
- ledger rows whose customer cannot be found are dropped
- expense rows whose payee cannot be found are kept without a payee
- an invalid date or type anywhere rejects the whole file
"""

import csv
import io
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Iterable, Optional, Sequence, Union

import structlog
from pydantic import ValidationError

from eggfarm.models import (
    Customer,
    EggLog,
    Expense,
    FarmData,
    FarmRecord,
    LedgerEntry,
    Payee,
)
from eggfarm.reconciliation import customer_name, payee_name, payee_type
from eggfarm.transfer.backup import ImportFailedError


logger = structlog.get_logger(__name__)


class CsvKind(str, Enum):
    """Which collection a CSV file holds."""
    EGGS = "EGGS"
    CUSTOMERS = "CUSTOMERS"
    LEDGER = "LEDGER"
    EXPENSES = "EXPENSES"


HEADERS = {
    CsvKind.EGGS: ["Date", "Collected", "Sold", "Price", "TotalSale"],
    CsvKind.CUSTOMERS: ["Name", "Phone"],
    CsvKind.LEDGER: ["Date", "Customer", "Type", "Description", "Amount", "Quantity", "PricePerUnit"],
    CsvKind.EXPENSES: ["Date", "Payee", "PayeeType", "TransactionType", "Category", "Description", "Amount"],
}

EXPORT_FILENAMES = {
    CsvKind.EGGS: "egg_logs_export.csv",
    CsvKind.CUSTOMERS: "customers_export.csv",
    CsvKind.LEDGER: "ledger_export.csv",
    CsvKind.EXPENSES: "expenses_export.csv",
}


# =============================================================================
# EXPORT
# =============================================================================

def _amount(value: Optional[Decimal]) -> str:
    if value is None:
        return "0"
    if value == value.to_integral_value():
        return str(int(value))
    return str(value)


def _export_rows(kind: CsvKind, data: FarmData) -> list[list]:
    if kind == CsvKind.EGGS:
        return [
            [log.date.isoformat(), log.collected_count, log.sold_count,
             _amount(log.sale_price), _amount(log.total_sale)]
            for log in data.egg_logs
        ]
    if kind == CsvKind.CUSTOMERS:
        return [[customer.name, customer.phone] for customer in data.customers]
    if kind == CsvKind.LEDGER:
        return [
            [entry.date.isoformat(), customer_name(entry.customer_id, data.customers),
             entry.type.value, entry.description, _amount(entry.amount),
             entry.quantity or 0, _amount(entry.price_per_unit)]
            for entry in data.ledger
        ]
    return [
        [expense.date.isoformat(), payee_name(expense.payee_id, data.payees),
         payee_type(expense.payee_id, data.payees), expense.type.value,
         expense.category, expense.description, _amount(expense.amount)]
        for expense in data.expenses
    ]


def export_csv(kind: CsvKind, data: FarmData) -> str:
    """Render one collection as CSV text (header row first)."""
    kind = CsvKind(kind)
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(HEADERS[kind])
    writer.writerows(_export_rows(kind, data))
    return buffer.getvalue()


# =============================================================================
# IMPORT
# =============================================================================

def _to_int(cell: str) -> int:
    try:
        return int(Decimal(cell.strip()))
    except (InvalidOperation, ValueError, OverflowError):
        return 0


def _to_decimal(cell: str) -> Decimal:
    try:
        value = Decimal(cell.strip())
    except InvalidOperation:
        return Decimal("0")
    return value if value.is_finite() else Decimal("0")


def _cell(row: Sequence[str], index: int) -> str:
    return row[index] if index < len(row) else ""


def _normalize(name: str) -> str:
    return name.strip().lower()


def _match(name: str, records: Iterable) -> Optional[str]:
    wanted = _normalize(name)
    for record in records:
        if _normalize(record.name) == wanted:
            return record.id
    return None


def parse_csv(text: Union[str, bytes]) -> list[list[str]]:
    """Split CSV text into rows; rejects files without a data row."""
    if isinstance(text, bytes):
        try:
            text = text.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ImportFailedError(f"CSV file is not UTF-8: {e}")
    try:
        rows = list(csv.reader(io.StringIO(text.strip())))
    except csv.Error as e:
        raise ImportFailedError(f"Failed to parse CSV: {e}")
    if len(rows) < 2:
        raise ImportFailedError("File appears empty or invalid")
    return rows


def _build_record(
    kind: CsvKind,
    row: Sequence[str],
    customers: Sequence[Customer],
    payees: Sequence[Payee],
) -> Optional[FarmRecord]:
    if kind == CsvKind.EGGS:
        return EggLog(
            date=_cell(row, 0).strip(),
            collected_count=_to_int(_cell(row, 1)),
            sold_count=_to_int(_cell(row, 2)),
            sale_price=_to_decimal(_cell(row, 3)),
            total_sale=_to_decimal(_cell(row, 4)),
        )

    if kind == CsvKind.CUSTOMERS:
        return Customer(name=_cell(row, 0).strip(), phone=_cell(row, 1).strip())

    if kind == CsvKind.LEDGER:
        customer_id = _match(_cell(row, 1), customers)
        if customer_id is None:
            return None
        quantity = _cell(row, 5).strip()
        price = _cell(row, 6).strip()
        return LedgerEntry(
            date=_cell(row, 0).strip(),
            customer_id=customer_id,
            type=_cell(row, 2).strip().upper(),
            description=_cell(row, 3),
            amount=_to_decimal(_cell(row, 4)),
            quantity=_to_int(quantity) if quantity else None,
            price_per_unit=_to_decimal(price) if price else None,
        )

    return Expense(
        date=_cell(row, 0).strip(),
        payee_id=_match(_cell(row, 1), payees),
        type=_cell(row, 3).strip().upper(),
        category=_cell(row, 4).strip(),
        description=_cell(row, 5),
        amount=_to_decimal(_cell(row, 6)),
    )


def import_csv(
    kind: CsvKind,
    text: Union[str, bytes],
    customers: Sequence[Customer] = (),
    payees: Sequence[Payee] = (),
) -> list[FarmRecord]:
    """
    Parse a CSV file into new records of one collection.

    `customers` and `payees` are used to resolve names on ledger and
    expense rows. Nothing is written here; the caller replaces the
    collection with the result.

    Raises:
        ImportFailedError: If the file or any kept row is invalid
    """
    kind = CsvKind(kind)
    rows = parse_csv(text)

    records = []
    skipped = 0
    errors = []
    for line_number, row in enumerate(rows[1:], start=2):
        if len(row) <= 1:
            continue
        try:
            record = _build_record(kind, row, customers, payees)
        except ValidationError as e:
            errors.extend(
                f"line {line_number}: {'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in e.errors()
            )
            continue
        if record is None:
            skipped += 1
            continue
        records.append(record)

    if errors:
        logger.warning("csv_import_rejected", kind=kind.value, errors=len(errors))
        raise ImportFailedError(
            "Failed to parse CSV. Please ensure formatting is correct.",
            details=errors,
        )

    if skipped:
        logger.info("csv_rows_skipped", kind=kind.value, skipped=skipped)
    return records
