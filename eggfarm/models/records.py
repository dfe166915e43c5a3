"""
Core Data Models for Egg Farm Ledger

These models define the strict schemas for every record the farm keeps.
They are designed to:
1. Enforce non-negative amounts and counts at the field level
2. Serialize to the same camelCase JSON the browser app wrote,
   so its backups restore unchanged
3. Treat references between records as soft (ids, not ownership)

DESIGN DECISION: Direction of money is encoded ONLY by the `type`
discriminator (DEBIT/CREDIT, INVOICE/PAYMENT). Amounts are never negative.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
)
from pydantic.alias_generators import to_camel


# =============================================================================
# CONSTANTS
# =============================================================================

EXPENSE_CATEGORIES = [
    "Feed",
    "Medicine",
    "Maintenance",
    "Salaries",
    "Utilities",
    "Transport",
    "Other",
]

PAYMENT_CATEGORY = "Payment"
DEFAULT_EXPENSE_CATEGORY = "Other"
DEFAULT_PAYEE_TYPES = ["VENDOR", "EMPLOYEE"]

# Placeholders for dangling references
UNKNOWN_CUSTOMER = "Unknown"
GENERAL_PAYEE = "General"
NO_PAYEE_TYPE = "-"
NOT_AVAILABLE = "N/A"


def new_id() -> str:
    """
    Generate a record identifier.

    uuid4 keeps ids unique even when several records are created
    within the same millisecond (a linked egg log and its ledger entry).
    """
    return uuid4().hex


def _money_to_json(value: Decimal) -> int | float:
    """Write whole amounts as JSON integers, the rest as floats."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


Money = Annotated[
    Decimal,
    Field(ge=0),
    PlainSerializer(_money_to_json, when_used="json"),
]

Count = Annotated[int, Field(ge=0)]


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class LedgerEntryType(str, Enum):
    """
    Direction of a customer ledger entry.

    DEBIT increases what the customer owes (a sale).
    CREDIT decreases it (a payment received).
    """
    DEBIT = "DEBIT"
    CREDIT = "CREDIT"


class ExpenseType(str, Enum):
    """
    Direction of an expense entry.

    INVOICE increases what the farm owes the payee (a bill / cost).
    PAYMENT decreases it (settling a payable, not a new cost).
    """
    INVOICE = "INVOICE"
    PAYMENT = "PAYMENT"


class Theme(str, Enum):
    """Display mode for the front end."""
    LIGHT = "LIGHT"
    DARK = "DARK"
    FUN = "FUN"


# =============================================================================
# RECORDS
# =============================================================================

class FarmRecord(BaseModel):
    """
    Base for every persisted record.

    Attributes are snake_case in Python; the stored form uses camelCase
    aliases (`collectedCount`, `ledgerId`, ...).
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    id: str = Field(
        default_factory=new_id,
        min_length=1,
        description="Unique record identifier"
    )

    def to_storage(self) -> dict:
        """Plain JSON-ready dict in the persisted (camelCase) shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class EggLog(FarmRecord):
    """
    One production or sale record.

    Created manually (collection or cash sale) or generated from a DEBIT
    ledger entry. Generated logs carry `ledger_id` and have
    collected_count == 0; their sold_count/total_sale mirror the entry.
    """

    ledger_id: Optional[str] = Field(
        default=None,
        description="Ledger entry that generated this log, if any"
    )
    date: date
    collected_count: Count = 0
    sold_count: Count = 0
    sale_price: Money = Decimal("0")
    total_sale: Money = Decimal("0")

    @property
    def is_linked(self) -> bool:
        """True for logs generated from a ledger sale."""
        return bool(self.ledger_id)


class Customer(FarmRecord):
    """A customer buying eggs on account."""

    name: str = Field(
        ...,
        min_length=1,
        description="Customer name"
    )
    phone: str = ""


class LedgerEntry(FarmRecord):
    """
    A dated financial movement against a customer.

    `amount` is authoritative. It usually equals quantity * price_per_unit,
    but a mismatch is accepted as entered.
    """

    customer_id: str = Field(
        ...,
        description="Customer reference (not ownership)"
    )
    date: date
    description: str = ""
    type: LedgerEntryType
    amount: Money
    quantity: Optional[Count] = None
    price_per_unit: Optional[Money] = None

    @property
    def creates_egg_log(self) -> bool:
        """DEBIT sales with a positive quantity are mirrored into the egg log."""
        return self.type == LedgerEntryType.DEBIT and bool(self.quantity)


class Payee(FarmRecord):
    """A vendor, employee, or any other account the farm pays."""

    name: str = Field(
        ...,
        min_length=1,
        description="Payee name"
    )
    type: str = Field(
        ...,
        min_length=1,
        description="Free-form tag, e.g. VENDOR or EMPLOYEE"
    )
    phone: Optional[str] = None

    @field_validator('type')
    @classmethod
    def uppercase_type(cls, v: str) -> str:
        return v.strip().upper()


class Expense(FarmRecord):
    """
    A dated financial movement against an optional payee.

    Expenses without a payee are general cash costs.
    """

    date: date
    category: str = Field(
        ...,
        description="Suggested from EXPENSE_CATEGORIES, not enforced"
    )
    description: str = ""
    amount: Money
    payee_id: Optional[str] = Field(
        default=None,
        description="Payee reference (not ownership)"
    )
    type: ExpenseType = ExpenseType.INVOICE

    @property
    def is_operating_cost(self) -> bool:
        """PAYMENT entries settle a payable and are not a new cost."""
        return self.type != ExpenseType.PAYMENT


class FarmSettings(BaseModel):
    """
    Farm profile and display preferences (singleton).

    Created with defaults on first use, then updated in place.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    farm_name: str = "Nova Farms"
    phone: str = ""
    location: str = ""
    theme: Theme = Theme.LIGHT

    def to_storage(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class FarmData(BaseModel):
    """
    One consistent view of all five collections.

    Its aliased form is exactly the `data` object of a full backup:
    {"eggLogs": [...], "customers": [...], "ledger": [...],
     "expenses": [...], "payees": [...]}
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    egg_logs: list[EggLog] = Field(default_factory=list)
    customers: list[Customer] = Field(default_factory=list)
    ledger: list[LedgerEntry] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)
    payees: list[Payee] = Field(default_factory=list)

    def to_storage(self) -> dict:
        return {
            "eggLogs": [log.to_storage() for log in self.egg_logs],
            "customers": [customer.to_storage() for customer in self.customers],
            "ledger": [entry.to_storage() for entry in self.ledger],
            "expenses": [expense.to_storage() for expense in self.expenses],
            "payees": [payee.to_storage() for payee in self.payees],
        }
