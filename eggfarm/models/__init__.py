"""
Data Models Package

This package contains all Pydantic models used in Egg Farm Ledger.
`records` holds what is persisted; `reports` holds what is derived.
"""

from eggfarm.models.records import (
    DEFAULT_EXPENSE_CATEGORY,
    DEFAULT_PAYEE_TYPES,
    EXPENSE_CATEGORIES,
    GENERAL_PAYEE,
    NO_PAYEE_TYPE,
    NOT_AVAILABLE,
    PAYMENT_CATEGORY,
    UNKNOWN_CUSTOMER,
    Customer,
    EggLog,
    Expense,
    ExpenseType,
    FarmData,
    FarmRecord,
    FarmSettings,
    LedgerEntry,
    LedgerEntryType,
    Payee,
    Theme,
    new_id,
)
from eggfarm.models.reports import (
    ActivityRecord,
    BalanceSheet,
    CustomerStatement,
    DailyActivity,
    DailySummary,
    ExpenseLine,
    Flow,
    InventorySnapshot,
    LedgerLine,
    OutstandingBalance,
    OutstandingReport,
    PayeeStatement,
    TrendPoint,
)

__all__ = [
    # Constants
    "DEFAULT_EXPENSE_CATEGORY",
    "DEFAULT_PAYEE_TYPES",
    "EXPENSE_CATEGORIES",
    "GENERAL_PAYEE",
    "NO_PAYEE_TYPE",
    "NOT_AVAILABLE",
    "PAYMENT_CATEGORY",
    "UNKNOWN_CUSTOMER",
    # Records
    "Customer",
    "EggLog",
    "Expense",
    "ExpenseType",
    "FarmData",
    "FarmRecord",
    "FarmSettings",
    "LedgerEntry",
    "LedgerEntryType",
    "Payee",
    "Theme",
    "new_id",
    # Reports
    "ActivityRecord",
    "BalanceSheet",
    "CustomerStatement",
    "DailyActivity",
    "DailySummary",
    "ExpenseLine",
    "Flow",
    "InventorySnapshot",
    "LedgerLine",
    "OutstandingBalance",
    "OutstandingReport",
    "PayeeStatement",
    "TrendPoint",
]
