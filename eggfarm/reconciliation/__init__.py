"""Reconciliation engine: balances and aggregates derived on read."""

from eggfarm.reconciliation.engine import (
    balance_sheet,
    current_inventory,
    customer_name,
    customer_statement,
    daily_activity,
    inventory_on,
    outstanding_report,
    payee_name,
    payee_statement,
    payee_type,
    production_trend,
)

__all__ = [
    "balance_sheet",
    "current_inventory",
    "customer_name",
    "customer_statement",
    "daily_activity",
    "inventory_on",
    "outstanding_report",
    "payee_name",
    "payee_statement",
    "payee_type",
    "production_trend",
]
