"""
Derived Report Models

Everything in this module is COMPUTED, never persisted. The reconciliation
engine builds these from full collection snapshots on every read.

Balances are signed Decimals:
- customer balance > 0: the customer owes the farm
- customer balance < 0: the farm holds an advance / owes the customer
- payee balance > 0: the farm owes the payee
- payee balance < 0: the payee was overpaid
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field

from eggfarm.models.records import (
    Customer,
    Expense,
    LedgerEntry,
    NOT_AVAILABLE,
    Payee,
)


ZERO = Decimal("0")


class Flow(str, Enum):
    """Cash direction of a record in the daily activity view."""
    IN = "IN"
    OUT = "OUT"
    NEUTRAL = "NEUTRAL"


# =============================================================================
# STATEMENTS (running balances)
# =============================================================================

class LedgerLine(BaseModel):
    """A customer ledger entry with the balance as of that entry."""

    entry: LedgerEntry
    balance: Decimal


class ExpenseLine(BaseModel):
    """A payee expense with the balance as of that expense."""

    expense: Expense
    balance: Decimal


class CustomerStatement(BaseModel):
    """All ledger entries of one customer, oldest first, with running balance."""

    customer_id: str
    customer_name: str
    customer: Optional[Customer] = None
    lines: list[LedgerLine] = Field(default_factory=list)
    balance: Decimal = ZERO

    @property
    def owes_farm(self) -> bool:
        return self.balance > 0


class PayeeStatement(BaseModel):
    """All expenses booked against one payee, oldest first, with running balance."""

    payee_id: str
    payee_name: str
    payee: Optional[Payee] = None
    lines: list[ExpenseLine] = Field(default_factory=list)
    balance: Decimal = ZERO

    @property
    def farm_owes(self) -> bool:
        return self.balance > 0


# =============================================================================
# OUTSTANDING BALANCES
# =============================================================================

class OutstandingBalance(BaseModel):
    """Net non-zero balance between the farm and one customer or payee."""

    party_id: str
    name: str
    phone: Optional[str] = None
    party: Literal["CUSTOMER", "PAYEE"]
    kind: str = Field(
        ...,
        description="Display tag: CUSTOMER, or the payee's type tag (VENDOR, EMPLOYEE, ...)"
    )
    balance: Decimal
    last_active: Optional[date] = None

    @property
    def is_customer(self) -> bool:
        return self.party == "CUSTOMER"

    @property
    def amount(self) -> Decimal:
        """Magnitude of the balance, for display."""
        return abs(self.balance)

    @property
    def status(self) -> str:
        if self.is_customer:
            return "Owes You" if self.balance > 0 else "Advance"
        return "You Owe" if self.balance > 0 else "Overpaid"

    @property
    def last_active_label(self) -> str:
        return self.last_active.isoformat() if self.last_active else NOT_AVAILABLE


class OutstandingReport(BaseModel):
    """Receivables and payables across every customer and payee."""

    balances: list[OutstandingBalance] = Field(default_factory=list)
    total_receivables: Decimal = ZERO
    total_payables: Decimal = ZERO

    @property
    def net_position(self) -> Decimal:
        return self.total_receivables - self.total_payables


# =============================================================================
# BALANCE SHEET
# =============================================================================

class DailySummary(BaseModel):
    """
    Sales and expenses of one day.

    general_sales only counts egg logs WITHOUT a ledger link; linked logs
    are already represented by their DEBIT entry in ledger_sales.
    """

    date: date
    general_sales: Decimal = ZERO
    ledger_sales: Decimal = ZERO
    total_sale: Decimal = ZERO
    expense: Decimal = ZERO
    balance: Decimal = ZERO


class BalanceSheet(BaseModel):
    """Per-day breakdown (newest first) plus grand totals."""

    days: list[DailySummary] = Field(default_factory=list)
    general_sales: Decimal = ZERO
    ledger_sales: Decimal = ZERO
    total_sales: Decimal = ZERO
    total_expenses: Decimal = ZERO
    net_balance: Decimal = ZERO


# =============================================================================
# INVENTORY & DASHBOARD
# =============================================================================

class InventorySnapshot(BaseModel):
    """Egg stock around one day."""

    date: date
    opening: int = 0
    collected: int = 0
    sold: int = 0
    closing: int = 0


class ActivityRecord(BaseModel):
    """One line of the per-day activity view."""

    record_id: str
    source: str = Field(
        ...,
        description="EGG_LOG, EGG_COLLECTION, CREDIT_SALE, PAYMENT_RECEIVED, EXPENSE or PAYMENT_SENT"
    )
    category: str
    party: str
    description: str
    amount: Decimal = ZERO
    flow: Flow


class DailyActivity(BaseModel):
    """Everything that happened on one day."""

    date: date
    records: list[ActivityRecord] = Field(default_factory=list)
    total_in: Decimal = ZERO
    total_out: Decimal = ZERO
    inventory: InventorySnapshot


class TrendPoint(BaseModel):
    """One date of the production trend series."""

    date: date
    collected: int = 0
    sales: Decimal = ZERO
    expense: Decimal = ZERO
