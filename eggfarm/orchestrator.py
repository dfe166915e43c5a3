"""
Main Orchestrator for Egg Farm Ledger

This module ties together all the components and defines every user
action on the farm's books:
1. Recording (egg logs, customers, ledger entries, payees, expenses)
2. Reporting (statements, outstanding balances, balance sheet, dashboard)
3. Transfer (full JSON backup and per-collection CSV)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Derived figures are never stored, only recomputed by the engine
- A ledger entry and its linked egg log are written together or not at all
- A failed write leaves the store as it was before the action

Each action runs under the store lock, so a store shared by several
Streamlit sessions never interleaves two read-modify-write sequences.
"""

from datetime import date
from decimal import Decimal
from typing import Optional, Union

import structlog

from eggfarm.config import Settings, get_settings
from eggfarm.links import LinkManager
from eggfarm.logs import configure_logging
from eggfarm.models import (
    DEFAULT_EXPENSE_CATEGORY,
    PAYMENT_CATEGORY,
    BalanceSheet,
    Customer,
    CustomerStatement,
    DailyActivity,
    EggLog,
    Expense,
    ExpenseType,
    FarmData,
    FarmSettings,
    InventorySnapshot,
    LedgerEntry,
    LedgerEntryType,
    OutstandingReport,
    Payee,
    PayeeStatement,
    TrendPoint,
)
from eggfarm import reconciliation
from eggfarm.services.storage import StorageError, create_storage
from eggfarm.store import Collection, EntityStore
from eggfarm.transfer import (
    CsvKind,
    dump_backup,
    export_csv,
    import_csv,
    parse_backup,
)


logger = structlog.get_logger(__name__)

Number = Union[Decimal, int, float, str]


def _decimal(value: Optional[Number]) -> Optional[Decimal]:
    if value is None:
        return None
    return value if isinstance(value, Decimal) else Decimal(str(value))


def _number_label(value: Number) -> str:
    value = _decimal(value)
    if value == value.to_integral_value():
        return str(int(value))
    return str(value.normalize())


class FarmBook:
    """
    Single entry point for every action on the farm's books.

    The UI calls these methods and nothing else; it never touches the
    store or the storage backend directly.
    """

    def __init__(
        self,
        store: EntityStore,
        links: Optional[LinkManager] = None,
    ):
        self._store = store
        self._links = links or LinkManager(store)

    @property
    def store(self) -> EntityStore:
        return self._store

    # =========================================================================
    # EGG LOGS
    # =========================================================================

    def record_collection(self, day: date, collected_count: int) -> EggLog:
        """Record eggs collected on `day`. Zero is rejected."""
        if not collected_count:
            raise ValueError("Collected count must be greater than zero")
        log = EggLog(date=day, collected_count=collected_count)
        self._store.egg_logs.append(log)
        logger.info("egg_collection_recorded", egg_log_id=log.id, date=str(day),
                    collected=log.collected_count)
        return log

    def record_cash_sale(
        self,
        day: date,
        sold_count: int,
        sale_price: Number,
        total_sale: Optional[Number] = None,
    ) -> EggLog:
        """
        Record eggs sold for cash (no customer account).

        total_sale defaults to sold_count * sale_price.
        """
        if not sold_count:
            raise ValueError("Sold count must be greater than zero")
        price = _decimal(sale_price)
        total = _decimal(total_sale)
        if total is None:
            total = price * sold_count
        log = EggLog(date=day, sold_count=sold_count, sale_price=price, total_sale=total)
        self._store.egg_logs.append(log)
        logger.info("cash_sale_recorded", egg_log_id=log.id, date=str(day),
                    sold=log.sold_count, total_sale=str(log.total_sale))
        return log

    def remove_egg_log(self, egg_log_id: str) -> Optional[EggLog]:
        removed = self._store.egg_logs.remove_by_id(egg_log_id)
        if removed and removed.is_linked:
            logger.warning("linked_egg_log_removed_directly", egg_log_id=egg_log_id,
                           ledger_id=removed.ledger_id)
        elif removed:
            logger.info("egg_log_removed", egg_log_id=egg_log_id)
        return removed

    # =========================================================================
    # CUSTOMERS & LEDGER
    # =========================================================================

    def add_customer(self, name: str, phone: str = "") -> Customer:
        customer = Customer(name=name.strip(), phone=phone.strip())
        self._store.customers.append(customer)
        logger.info("customer_added", customer_id=customer.id)
        return customer

    def remove_customer(self, customer_id: str) -> Optional[Customer]:
        """Remove a customer. Their ledger entries stay (shown as "Unknown")."""
        removed = self._store.customers.remove_by_id(customer_id)
        if removed:
            logger.info("customer_removed", customer_id=customer_id)
        return removed

    def add_ledger_entry(
        self,
        customer_id: str,
        day: date,
        type: Union[LedgerEntryType, str],
        amount: Optional[Number] = None,
        quantity: Optional[int] = None,
        price_per_unit: Optional[Number] = None,
        description: str = "",
    ) -> LedgerEntry:
        """
        Record a sale (DEBIT) or a payment received (CREDIT).

        amount defaults to quantity * price_per_unit. A DEBIT with a
        quantity also creates the linked egg log; if that write fails the
        ledger entry is taken back out.

        Raises:
            ValueError: If no amount is given and none can be computed
            StorageError: If the ledger or egg log cannot be written
        """
        entry_type = LedgerEntryType(type)
        price = _decimal(price_per_unit)
        value = _decimal(amount)
        if value is None:
            if quantity is None or price is None:
                raise ValueError("Amount is required unless quantity and price are given")
            value = price * quantity

        if entry_type == LedgerEntryType.DEBIT and quantity and price is not None and not description:
            description = f"{quantity} Eggs @ {_number_label(price)}"

        entry = LedgerEntry(
            customer_id=customer_id,
            date=day,
            type=entry_type,
            amount=value,
            quantity=quantity,
            price_per_unit=price,
            description=description,
        )

        with self._store.lock:
            self._store.ledger.append(entry)
            try:
                self._links.on_ledger_entry_added(entry)
            except StorageError:
                logger.error("linked_egg_log_failed", ledger_id=entry.id)
                self._undo_ledger_append(entry.id)
                raise

        logger.info("ledger_entry_added", ledger_id=entry.id, customer_id=customer_id,
                    type=entry.type.value, amount=str(entry.amount))
        return entry

    def _undo_ledger_append(self, ledger_id: str) -> None:
        try:
            self._store.ledger.remove_by_id(ledger_id)
        except StorageError as e:
            logger.error("ledger_rollback_failed", ledger_id=ledger_id, error=str(e))

    def remove_ledger_entry(self, ledger_id: str) -> Optional[LedgerEntry]:
        """
        Remove a ledger entry and the egg log linked to it.

        Both steps happen under the store lock. If the egg logs cannot be
        written, the ledger is put back to what it was.
        """
        with self._store.lock:
            previous = self._store.ledger.list()
            removed = self._store.ledger.remove_by_id(ledger_id)
            if removed is None:
                return None
            try:
                logs = self._links.on_ledger_entry_removed(ledger_id)
            except StorageError:
                logger.error("linked_egg_log_removal_failed", ledger_id=ledger_id)
                self._restore(self._store.ledger, previous)
                raise

        logger.info("ledger_entry_removed", ledger_id=ledger_id, linked_logs_removed=len(logs))
        return removed

    def _restore(self, collection: Collection, items: list) -> None:
        try:
            collection.replace_all(items)
        except StorageError as e:
            logger.error("collection_restore_failed", key=collection.key, error=str(e))

    # =========================================================================
    # PAYEES & EXPENSES
    # =========================================================================

    def add_payee(self, name: str, type: str, phone: Optional[str] = None) -> Payee:
        payee = Payee(name=name.strip(), type=type, phone=(phone or "").strip() or None)
        self._store.payees.append(payee)
        logger.info("payee_added", payee_id=payee.id, type=payee.type)
        return payee

    def remove_payee(self, payee_id: str) -> Optional[Payee]:
        """Remove a payee. Their expenses stay (shown under "General")."""
        removed = self._store.payees.remove_by_id(payee_id)
        if removed:
            logger.info("payee_removed", payee_id=payee_id)
        return removed

    def add_expense(
        self,
        day: date,
        amount: Number,
        type: Union[ExpenseType, str] = ExpenseType.INVOICE,
        category: Optional[str] = None,
        description: str = "",
        payee_id: Optional[str] = None,
    ) -> Expense:
        """
        Record a cost (INVOICE) or a payment made to a payee (PAYMENT).

        Without a category, payments are filed under "Payment" and
        invoices under "Other".
        """
        expense_type = ExpenseType(type)
        if not category:
            category = (
                PAYMENT_CATEGORY if expense_type == ExpenseType.PAYMENT
                else DEFAULT_EXPENSE_CATEGORY
            )
        expense = Expense(
            date=day,
            amount=_decimal(amount),
            type=expense_type,
            category=category,
            description=description,
            payee_id=payee_id or None,
        )
        self._store.expenses.append(expense)
        logger.info("expense_added", expense_id=expense.id, type=expense.type.value,
                    amount=str(expense.amount), payee_id=expense.payee_id)
        return expense

    def remove_expense(self, expense_id: str) -> Optional[Expense]:
        removed = self._store.expenses.remove_by_id(expense_id)
        if removed:
            logger.info("expense_removed", expense_id=expense_id)
        return removed

    # =========================================================================
    # SETTINGS
    # =========================================================================

    def settings(self) -> FarmSettings:
        return self._store.settings.get()

    def update_settings(self, **changes) -> FarmSettings:
        updated = self._store.settings.update(**changes)
        logger.info("settings_updated", fields=sorted(changes))
        return updated

    # =========================================================================
    # REPORTS
    # =========================================================================

    def snapshot(self) -> FarmData:
        return self._store.snapshot()

    def customer_statement(self, customer_id: str) -> CustomerStatement:
        with self._store.lock:
            ledger = self._store.ledger.list()
            customers = self._store.customers.list()
        return reconciliation.customer_statement(customer_id, ledger, customers)

    def payee_statement(self, payee_id: str) -> PayeeStatement:
        with self._store.lock:
            expenses = self._store.expenses.list()
            payees = self._store.payees.list()
        return reconciliation.payee_statement(payee_id, expenses, payees)

    def outstanding(self) -> OutstandingReport:
        data = self.snapshot()
        return reconciliation.outstanding_report(
            data.customers, data.ledger, data.payees, data.expenses
        )

    def balance_sheet(self) -> BalanceSheet:
        data = self.snapshot()
        return reconciliation.balance_sheet(data.egg_logs, data.ledger, data.expenses)

    def current_inventory(self) -> int:
        return reconciliation.current_inventory(self._store.egg_logs.list())

    def inventory_on(self, day: date) -> InventorySnapshot:
        return reconciliation.inventory_on(self._store.egg_logs.list(), day)

    def daily_activity(self, day: date) -> DailyActivity:
        data = self.snapshot()
        return reconciliation.daily_activity(
            day, data.egg_logs, data.ledger, data.expenses, data.customers, data.payees
        )

    def production_trend(self, limit: int = 30) -> list[TrendPoint]:
        data = self.snapshot()
        return reconciliation.production_trend(
            data.egg_logs, data.ledger, data.expenses, limit=limit
        )

    # =========================================================================
    # TRANSFER
    # =========================================================================

    def export_backup(self) -> str:
        return dump_backup(self.snapshot())

    def restore_backup(self, text: Union[str, bytes]) -> FarmData:
        """
        Replace all five collections with a backup.

        The backup is fully validated first (ImportFailedError leaves the
        store untouched). If a collection write fails part way, the rows
        stored before the restore are written back as they were, including
        collections that could not be parsed.
        """
        data = parse_backup(text)
        with self._store.lock:
            previous = self._store.raw_rows()
            try:
                self._store.replace(data)
            except StorageError:
                logger.error("backup_restore_failed")
                try:
                    self._store.restore_rows(previous)
                except StorageError as e:
                    logger.error("backup_rollback_failed", error=str(e))
                raise

        logger.info(
            "backup_restored",
            egg_logs=len(data.egg_logs),
            customers=len(data.customers),
            ledger=len(data.ledger),
            expenses=len(data.expenses),
            payees=len(data.payees),
        )
        return data

    def export_csv(self, kind: Union[CsvKind, str]) -> str:
        return export_csv(CsvKind(kind), self.snapshot())

    def _collection_for(self, kind: CsvKind) -> Collection:
        return {
            CsvKind.EGGS: self._store.egg_logs,
            CsvKind.CUSTOMERS: self._store.customers,
            CsvKind.LEDGER: self._store.ledger,
            CsvKind.EXPENSES: self._store.expenses,
        }[kind]

    def import_csv(self, kind: Union[CsvKind, str], text: Union[str, bytes]) -> int:
        """
        Replace one collection with the rows of a CSV file.

        Returns the number of records imported.

        Raises:
            ImportFailedError: If the file is rejected (nothing is written)
        """
        kind = CsvKind(kind)
        with self._store.lock:
            records = import_csv(
                kind,
                text,
                customers=self._store.customers.list(),
                payees=self._store.payees.list(),
            )
            self._collection_for(kind).replace_all(records)

        logger.info("csv_imported", kind=kind.value, records=len(records))
        return len(records)


def create_app_components(settings: Optional[Settings] = None) -> FarmBook:
    """
    Factory function to create all application components.

    Configures logging, builds the storage backend selected in the
    settings, and wires the store, link manager and FarmBook together.

    Returns:
        The FarmBook the UI works against
    """
    settings = settings or get_settings()
    configure_logging(settings.app)

    backend = create_storage(settings.storage)
    store = EntityStore(backend)
    book = FarmBook(store, LinkManager(store))

    logger.info("app_components_created", backend=type(backend).__name__)
    return book
