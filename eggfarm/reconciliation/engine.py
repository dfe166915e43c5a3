"""
Reconciliation Engine

Pure functions that derive every balance and aggregate from full
collection snapshots.

DESIGN DECISION: Nothing here is cached or persisted. Each call recomputes
from the raw entries, which is fine for a single farm (a few thousand rows
over years). The functions take plain sequences so they can be called on a
FarmData snapshot, on test fixtures, or on a parsed backup alike.

Sign conventions:
- customer: DEBIT adds, CREDIT subtracts (positive = customer owes the farm)
- payee: INVOICE adds, PAYMENT subtracts (positive = farm owes the payee)
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from eggfarm.models import (
    GENERAL_PAYEE,
    NO_PAYEE_TYPE,
    UNKNOWN_CUSTOMER,
    ActivityRecord,
    BalanceSheet,
    Customer,
    CustomerStatement,
    DailyActivity,
    DailySummary,
    EggLog,
    Expense,
    ExpenseLine,
    ExpenseType,
    Flow,
    InventorySnapshot,
    LedgerEntry,
    LedgerEntryType,
    LedgerLine,
    OutstandingBalance,
    OutstandingReport,
    Payee,
    PayeeStatement,
    TrendPoint,
)


ZERO = Decimal("0")
CENTS = Decimal("0.01")

CUSTOMER_PARTY = "CUSTOMER"
PAYEE_PARTY = "PAYEE"

# Labels of the per-day activity view
UNKNOWN_CUSTOMER_PARTY = "Unknown Customer"
CASH_PARTY = "General / Cash"


# =============================================================================
# LOOKUPS
# =============================================================================

def _find(records: Iterable, record_id: Optional[str]):
    if not record_id:
        return None
    for record in records:
        if record.id == record_id:
            return record
    return None


def customer_name(customer_id: Optional[str], customers: Iterable[Customer]) -> str:
    """Name of a customer, or "Unknown" for a dangling id."""
    customer = _find(customers, customer_id)
    return customer.name if customer else UNKNOWN_CUSTOMER


def payee_name(payee_id: Optional[str], payees: Iterable[Payee]) -> str:
    """Name of a payee, or "General" when there is none."""
    payee = _find(payees, payee_id)
    return payee.name if payee else GENERAL_PAYEE


def payee_type(payee_id: Optional[str], payees: Iterable[Payee]) -> str:
    payee = _find(payees, payee_id)
    return payee.type if payee else NO_PAYEE_TYPE


def _ledger_delta(entry: LedgerEntry) -> Decimal:
    return entry.amount if entry.type == LedgerEntryType.DEBIT else -entry.amount


def _expense_delta(expense: Expense) -> Decimal:
    return -expense.amount if expense.type == ExpenseType.PAYMENT else expense.amount


# =============================================================================
# STATEMENTS
# =============================================================================

def customer_statement(
    customer_id: str,
    ledger: Iterable[LedgerEntry],
    customers: Iterable[Customer] = (),
) -> CustomerStatement:
    """
    Running balance of one customer.

    Entries are sorted by date with a stable sort, so entries of the same
    day keep the order they were recorded in.
    """
    entries = sorted(
        (entry for entry in ledger if entry.customer_id == customer_id),
        key=lambda entry: entry.date,
    )

    balance = ZERO
    lines = []
    for entry in entries:
        balance += _ledger_delta(entry)
        lines.append(LedgerLine(entry=entry, balance=balance))

    customer = _find(customers, customer_id)
    return CustomerStatement(
        customer_id=customer_id,
        customer_name=customer.name if customer else UNKNOWN_CUSTOMER,
        customer=customer,
        lines=lines,
        balance=balance,
    )


def payee_statement(
    payee_id: str,
    expenses: Iterable[Expense],
    payees: Iterable[Payee] = (),
) -> PayeeStatement:
    """Running balance of one payee (INVOICE adds, PAYMENT subtracts)."""
    booked = sorted(
        (expense for expense in expenses if expense.payee_id == payee_id),
        key=lambda expense: expense.date,
    )

    balance = ZERO
    lines = []
    for expense in booked:
        balance += _expense_delta(expense)
        lines.append(ExpenseLine(expense=expense, balance=balance))

    payee = _find(payees, payee_id)
    return PayeeStatement(
        payee_id=payee_id,
        payee_name=payee.name if payee else GENERAL_PAYEE,
        payee=payee,
        lines=lines,
        balance=balance,
    )


# =============================================================================
# OUTSTANDING BALANCES
# =============================================================================

def outstanding_report(
    customers: Sequence[Customer],
    ledger: Sequence[LedgerEntry],
    payees: Sequence[Payee],
    expenses: Sequence[Expense],
) -> OutstandingReport:
    """
    Every customer and payee with a non-zero balance.

    Balances that round to zero at two decimals are left out. Rows are
    sorted by the size of the balance, largest first; equal sizes keep
    stored order (customers before payees).
    """
    customer_entries = defaultdict(list)
    for entry in ledger:
        customer_entries[entry.customer_id].append(entry)

    payee_expenses = defaultdict(list)
    for expense in expenses:
        if expense.payee_id:
            payee_expenses[expense.payee_id].append(expense)

    balances = []
    receivables = ZERO
    payables = ZERO

    for customer in customers:
        entries = customer_entries.get(customer.id, [])
        balance = sum((_ledger_delta(entry) for entry in entries), ZERO)
        if balance.quantize(CENTS) == 0:
            continue
        if balance > 0:
            receivables += balance
        else:
            payables += -balance
        balances.append(OutstandingBalance(
            party_id=customer.id,
            name=customer.name,
            phone=customer.phone or None,
            party=CUSTOMER_PARTY,
            kind=CUSTOMER_PARTY,
            balance=balance,
            last_active=max((entry.date for entry in entries), default=None),
        ))

    for payee in payees:
        booked = payee_expenses.get(payee.id, [])
        balance = sum((_expense_delta(expense) for expense in booked), ZERO)
        if balance.quantize(CENTS) == 0:
            continue
        if balance > 0:
            payables += balance
        balances.append(OutstandingBalance(
            party_id=payee.id,
            name=payee.name,
            phone=payee.phone or None,
            party=PAYEE_PARTY,
            kind=payee.type,
            balance=balance,
            last_active=max((expense.date for expense in booked), default=None),
        ))

    balances.sort(key=lambda row: abs(row.balance), reverse=True)

    return OutstandingReport(
        balances=balances,
        total_receivables=receivables,
        total_payables=payables,
    )


# =============================================================================
# BALANCE SHEET
# =============================================================================

def _all_dates(
    egg_logs: Iterable[EggLog],
    ledger: Iterable[LedgerEntry],
    expenses: Iterable[Expense],
) -> set[date]:
    dates = {log.date for log in egg_logs}
    dates.update(entry.date for entry in ledger)
    dates.update(expense.date for expense in expenses)
    return dates


def _daily_summaries(
    egg_logs: Sequence[EggLog],
    ledger: Sequence[LedgerEntry],
    expenses: Sequence[Expense],
) -> dict[date, DailySummary]:
    general = defaultdict(lambda: ZERO)
    for log in egg_logs:
        # Linked logs are already counted through their DEBIT entry
        if not log.is_linked:
            general[log.date] += log.total_sale

    ledger_sales = defaultdict(lambda: ZERO)
    for entry in ledger:
        if entry.type == LedgerEntryType.DEBIT:
            ledger_sales[entry.date] += entry.amount

    spent = defaultdict(lambda: ZERO)
    for expense in expenses:
        if expense.is_operating_cost:
            spent[expense.date] += expense.amount

    summaries = {}
    for day in _all_dates(egg_logs, ledger, expenses):
        total_sale = general[day] + ledger_sales[day]
        summaries[day] = DailySummary(
            date=day,
            general_sales=general[day],
            ledger_sales=ledger_sales[day],
            total_sale=total_sale,
            expense=spent[day],
            balance=total_sale - spent[day],
        )
    return summaries


def balance_sheet(
    egg_logs: Sequence[EggLog],
    ledger: Sequence[LedgerEntry],
    expenses: Sequence[Expense],
) -> BalanceSheet:
    """Per-day sales and expenses, newest day first, with grand totals."""
    summaries = _daily_summaries(egg_logs, ledger, expenses)
    days = [summaries[day] for day in sorted(summaries, reverse=True)]

    general_sales = sum((day.general_sales for day in days), ZERO)
    ledger_sales = sum((day.ledger_sales for day in days), ZERO)
    total_expenses = sum((day.expense for day in days), ZERO)
    total_sales = general_sales + ledger_sales

    return BalanceSheet(
        days=days,
        general_sales=general_sales,
        ledger_sales=ledger_sales,
        total_sales=total_sales,
        total_expenses=total_expenses,
        net_balance=total_sales - total_expenses,
    )


# =============================================================================
# INVENTORY
# =============================================================================

def current_inventory(egg_logs: Iterable[EggLog]) -> int:
    """Eggs in stock: everything collected minus everything sold."""
    return sum(log.collected_count - log.sold_count for log in egg_logs)


def inventory_on(egg_logs: Iterable[EggLog], day: date) -> InventorySnapshot:
    """Opening stock before `day`, the day's movement, and closing stock."""
    opening = 0
    collected = 0
    sold = 0
    for log in egg_logs:
        if log.date < day:
            opening += log.collected_count - log.sold_count
        elif log.date == day:
            collected += log.collected_count
            sold += log.sold_count
    return InventorySnapshot(
        date=day,
        opening=opening,
        collected=collected,
        sold=sold,
        closing=opening + collected - sold,
    )


# =============================================================================
# DASHBOARD
# =============================================================================

def daily_activity(
    day: date,
    egg_logs: Sequence[EggLog],
    ledger: Sequence[LedgerEntry],
    expenses: Sequence[Expense],
    customers: Sequence[Customer] = (),
    payees: Sequence[Payee] = (),
) -> DailyActivity:
    """
    Everything recorded on one day, as a single list.

    Manual egg logs count as cash in. Linked egg logs are shown for
    production only (amount 0): their money is on the ledger line.
    Ledger lines count as money in; expenses and payments as money out.
    """
    records = []

    for log in egg_logs:
        if log.date != day:
            continue
        if not log.is_linked:
            records.append(ActivityRecord(
                record_id=f"egg-{log.id}",
                source="EGG_LOG",
                category="Production & Cash Sale",
                party="General",
                description=(
                    f"Collected: {log.collected_count}, "
                    f"Sold: {log.sold_count} @ {log.sale_price}"
                ),
                amount=log.total_sale,
                flow=Flow.IN,
            ))
        else:
            records.append(ActivityRecord(
                record_id=f"egg-{log.id}",
                source="EGG_COLLECTION",
                category="Production",
                party="Farm",
                description=f"Collected: {log.collected_count} eggs",
                amount=ZERO,
                flow=Flow.NEUTRAL,
            ))

    for entry in ledger:
        if entry.date != day:
            continue
        is_sale = entry.type == LedgerEntryType.DEBIT
        customer = _find(customers, entry.customer_id)
        records.append(ActivityRecord(
            record_id=f"ledger-{entry.id}",
            source="CREDIT_SALE" if is_sale else "PAYMENT_RECEIVED",
            category="Customer Sale" if is_sale else "Payment Received",
            party=customer.name if customer else UNKNOWN_CUSTOMER_PARTY,
            description=entry.description,
            amount=entry.amount,
            flow=Flow.IN,
        ))

    for expense in expenses:
        if expense.date != day:
            continue
        is_payment = expense.type == ExpenseType.PAYMENT
        payee = _find(payees, expense.payee_id)
        records.append(ActivityRecord(
            record_id=f"exp-{expense.id}",
            source="PAYMENT_SENT" if is_payment else "EXPENSE",
            category="Payment Sent" if is_payment else "Expense",
            party=payee.name if payee else CASH_PARTY,
            description=f"{expense.category} - {expense.description}",
            amount=expense.amount,
            flow=Flow.OUT,
        ))

    return DailyActivity(
        date=day,
        records=records,
        total_in=sum((r.amount for r in records if r.flow == Flow.IN), ZERO),
        total_out=sum((r.amount for r in records if r.flow == Flow.OUT), ZERO),
        inventory=inventory_on(egg_logs, day),
    )


def production_trend(
    egg_logs: Sequence[EggLog],
    ledger: Sequence[LedgerEntry],
    expenses: Sequence[Expense],
    limit: int = 30,
) -> list[TrendPoint]:
    """Collected eggs, sales and expenses per date, oldest first, last `limit` dates."""
    collected = defaultdict(int)
    for log in egg_logs:
        collected[log.date] += log.collected_count

    summaries = _daily_summaries(egg_logs, ledger, expenses)
    points = [
        TrendPoint(
            date=day,
            collected=collected[day],
            sales=summaries[day].total_sale,
            expense=summaries[day].expense,
        )
        for day in sorted(summaries)
    ]
    return points[-limit:] if limit > 0 else []
