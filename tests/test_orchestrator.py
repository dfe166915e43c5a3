"""
Tests for the FarmBook facade

Integration tests over an in-memory backend, including the rollback
paths when one of two writes fails.
"""

import json
from datetime import date
from decimal import Decimal

import pytest

from eggfarm.config import Settings
from eggfarm.models import ExpenseType, LedgerEntryType, Theme
from eggfarm.orchestrator import FarmBook, create_app_components
from eggfarm.services.storage import (
    CUSTOMERS_KEY,
    EGG_LOGS_KEY,
    LEDGER_KEY,
    InMemoryStorage,
    StorageError,
)
from eggfarm.store import EntityStore
from eggfarm.transfer import CsvKind, ImportFailedError


D1 = date(2024, 1, 1)
D2 = date(2024, 1, 2)


class FlakyStorage(InMemoryStorage):
    """In-memory backend whose writes to chosen keys fail."""

    def __init__(self):
        super().__init__()
        self.fail_keys = set()

    def set_collection(self, key, rows):
        if key in self.fail_keys:
            raise StorageError(f"write to {key} failed")
        super().set_collection(key, rows)


@pytest.fixture
def flaky():
    return FlakyStorage()


@pytest.fixture
def flaky_book(flaky):
    return FarmBook(EntityStore(flaky))


class TestEggLogs:
    """Tests for manual egg log actions."""

    def test_record_collection(self, book):
        """Test a manual collection entry."""
        log = book.record_collection(D1, 50)
        assert log.collected_count == 50
        assert not log.is_linked
        assert book.current_inventory() == 50

    def test_zero_collection_rejected(self, book):
        """Test that an empty collection is refused and nothing is written."""
        with pytest.raises(ValueError):
            book.record_collection(D1, 0)
        assert book.snapshot().egg_logs == []

    def test_cash_sale_total_defaults(self, book):
        """Test total_sale = sold x price."""
        log = book.record_cash_sale(D1, 12, "25")
        assert log.total_sale == Decimal("300")

    def test_remove_egg_log(self, book):
        """Test removing a manual log."""
        log = book.record_collection(D1, 50)
        assert book.remove_egg_log(log.id).id == log.id
        assert book.remove_egg_log(log.id) is None


class TestLedger:
    """Tests for ledger actions and their egg-log link."""

    @pytest.fixture
    def customer(self, book):
        return book.add_customer("Ali", "0300 1234567")

    def test_debit_with_quantity_creates_linked_log(self, book, customer):
        """Test that a credit sale is mirrored into the egg log."""
        entry = book.add_ledger_entry(customer.id, D1, LedgerEntryType.DEBIT,
                                      quantity=20, price_per_unit=50)
        assert entry.amount == Decimal("1000")
        assert entry.description == "20 Eggs @ 50"
        [log] = book.snapshot().egg_logs
        assert log.ledger_id == entry.id
        assert log.total_sale == Decimal("1000")

    def test_explicit_amount_wins(self, book, customer):
        """Test that a given amount is kept even if it disagrees."""
        entry = book.add_ledger_entry(customer.id, D1, "DEBIT", amount=900,
                                      quantity=20, price_per_unit=50, description="discount")
        assert entry.amount == Decimal("900")
        assert entry.description == "discount"
        assert book.snapshot().egg_logs[0].total_sale == Decimal("900")

    def test_credit_creates_no_log(self, book, customer):
        """Test that payments received leave egg logs alone."""
        book.add_ledger_entry(customer.id, D1, "CREDIT", amount=200)
        assert book.snapshot().egg_logs == []

    def test_missing_amount_rejected(self, book, customer):
        """Test that an entry without any amount is refused."""
        with pytest.raises(ValueError):
            book.add_ledger_entry(customer.id, D1, "CREDIT")
        assert book.snapshot().ledger == []

    def test_remove_debit_cascades(self, book, customer):
        """Test that deleting a sale removes exactly its egg log."""
        manual = book.record_collection(D1, 50)
        first = book.add_ledger_entry(customer.id, D1, "DEBIT", quantity=5, price_per_unit=10)
        book.add_ledger_entry(customer.id, D2, "DEBIT", quantity=7, price_per_unit=10)

        book.remove_ledger_entry(first.id)

        logs = book.snapshot().egg_logs
        assert manual.id in {log.id for log in logs}
        assert first.id not in {log.ledger_id for log in logs}
        assert len(logs) == 2

    def test_remove_credit_removes_no_logs(self, book, customer):
        """Test that deleting a payment leaves egg logs alone."""
        book.add_ledger_entry(customer.id, D1, "DEBIT", quantity=5, price_per_unit=10)
        credit = book.add_ledger_entry(customer.id, D2, "CREDIT", amount=50)
        book.remove_ledger_entry(credit.id)
        assert len(book.snapshot().egg_logs) == 1

    def test_remove_unknown_entry(self, book):
        """Test that removing a missing entry is a no-op."""
        assert book.remove_ledger_entry("missing") is None

    def test_statement_through_facade(self, book, customer):
        """Test the running balance of one customer."""
        book.add_ledger_entry(customer.id, D1, "DEBIT", amount=500)
        book.add_ledger_entry(customer.id, D2, "CREDIT", amount=200)
        statement = book.customer_statement(customer.id)
        assert statement.balance == Decimal("300")
        assert statement.customer_name == "Ali"

    def test_removed_customer_keeps_entries(self, book, customer):
        """Test that customer removal does not cascade."""
        book.add_ledger_entry(customer.id, D1, "DEBIT", amount=500)
        book.remove_customer(customer.id)
        assert len(book.snapshot().ledger) == 1
        assert book.customer_statement(customer.id).customer_name == "Unknown"


class TestRollback:
    """Tests for the two-write transactions."""

    def test_failed_linked_log_rolls_back_entry(self, flaky_book, flaky):
        """Test that a sale is not kept without its egg log."""
        customer = flaky_book.add_customer("Ali")
        flaky.fail_keys.add(EGG_LOGS_KEY)
        with pytest.raises(StorageError):
            flaky_book.add_ledger_entry(customer.id, D1, "DEBIT", quantity=5, price_per_unit=10)
        assert flaky.get_collection(LEDGER_KEY) == []

    def test_failed_cascade_restores_ledger(self, flaky_book, flaky):
        """Test that a sale is put back when its egg log cannot be removed."""
        customer = flaky_book.add_customer("Ali")
        entry = flaky_book.add_ledger_entry(customer.id, D1, "DEBIT", quantity=5, price_per_unit=10)
        before = flaky.get_collection(LEDGER_KEY)

        flaky.fail_keys.add(EGG_LOGS_KEY)
        with pytest.raises(StorageError):
            flaky_book.remove_ledger_entry(entry.id)

        assert flaky.get_collection(LEDGER_KEY) == before
        assert len(flaky.get_collection(EGG_LOGS_KEY)) == 1

    def test_failed_restore_puts_data_back(self, flaky_book, flaky):
        """Test that a restore failing part way is undone."""
        flaky_book.add_customer("Ali")
        backup = json.dumps({"eggLogs": [], "customers": [], "ledger": [{"bad": True}]})
        with pytest.raises(ImportFailedError):
            flaky_book.restore_backup(backup)

        good = json.dumps({"eggLogs": [], "customers": [], "ledger": []})
        flaky.fail_keys.add(LEDGER_KEY)
        with pytest.raises(StorageError):
            flaky_book.restore_backup(good)
        flaky.fail_keys.clear()
        assert [c["name"] for c in flaky.get_collection(CUSTOMERS_KEY)] == ["Ali"]

    def test_failed_restore_keeps_unparsable_rows(self, flaky_book, flaky):
        """Test that rows which fail validation survive a restore that is undone."""
        stored = [{"id": "c1", "phone": "123"}, {"id": "c2", "name": "Sara"}]
        flaky.set_collection(CUSTOMERS_KEY, stored)
        assert flaky_book.snapshot().customers == []

        good = json.dumps({"eggLogs": [], "customers": [{"id": "c9", "name": "New"}], "ledger": []})
        flaky.fail_keys.add(LEDGER_KEY)
        with pytest.raises(StorageError):
            flaky_book.restore_backup(good)
        flaky.fail_keys.clear()

        assert flaky.get_collection(CUSTOMERS_KEY) == stored


class TestExpenses:
    """Tests for payee and expense actions."""

    def test_payment_category_default(self, book):
        """Test default categories by type."""
        payee = book.add_payee("Feed Co", "vendor")
        payment = book.add_expense(D1, 100, type=ExpenseType.PAYMENT, payee_id=payee.id)
        invoice = book.add_expense(D1, 300, payee_id=payee.id)
        assert payee.type == "VENDOR"
        assert payment.category == "Payment"
        assert invoice.category == "Other"

    def test_payee_balance(self, book):
        """Test the payable for one payee."""
        payee = book.add_payee("Feed Co", "VENDOR")
        book.add_expense(D1, 1000, category="Feed", payee_id=payee.id)
        book.add_expense(D2, 400, type="PAYMENT", payee_id=payee.id)
        assert book.payee_statement(payee.id).balance == Decimal("600")
        report = book.outstanding()
        assert report.total_payables == Decimal("600")

    def test_remove_payee_and_expense(self, book):
        """Test removals."""
        payee = book.add_payee("Feed Co", "VENDOR")
        expense = book.add_expense(D1, 100, payee_id=payee.id)
        assert book.remove_payee(payee.id).name == "Feed Co"
        assert book.remove_expense(expense.id).id == expense.id
        assert book.snapshot().expenses == []


class TestSettingsAndTransfer:
    """Tests for settings, backup and CSV through the facade."""

    def test_update_settings(self, book):
        """Test settings changes persist."""
        book.update_settings(farm_name="Green Hills", theme="FUN")
        settings = book.settings()
        assert settings.farm_name == "Green Hills"
        assert settings.theme == Theme.FUN

    def test_backup_round_trip(self, book):
        """Test export then restore into a fresh book."""
        customer = book.add_customer("Ali")
        book.record_collection(D1, 50)
        book.add_ledger_entry(customer.id, D1, "DEBIT", quantity=20, price_per_unit="12.5")
        book.add_expense(D2, "99.99", category="Feed")

        other = FarmBook(EntityStore(InMemoryStorage()))
        other.restore_backup(book.export_backup())

        assert other.snapshot() == book.snapshot()

    def test_csv_import_replaces_collection(self, book):
        """Test that a CSV import replaces the target collection."""
        book.add_customer("Old")
        count = book.import_csv(CsvKind.CUSTOMERS, "Name,Phone\nAli,1\nSara,2\n")
        assert count == 2
        assert [c.name for c in book.snapshot().customers] == ["Ali", "Sara"]

    def test_rejected_csv_writes_nothing(self, book):
        """Test that a bad CSV leaves the collection untouched."""
        book.add_customer("Ali")
        with pytest.raises(ImportFailedError):
            book.import_csv("CUSTOMERS", "Name,Phone\n")
        assert [c.name for c in book.snapshot().customers] == ["Ali"]

    def test_export_csv(self, book):
        """Test CSV export through the facade."""
        book.add_customer("Ali", "123")
        assert book.export_csv("CUSTOMERS").splitlines() == ["Name,Phone", "Ali,123"]

    def test_dashboard(self, book):
        """Test the per-day view and trend through the facade."""
        book.record_collection(D1, 50)
        book.record_cash_sale(D1, 10, 30)
        activity = book.daily_activity(D1)
        assert activity.total_in == Decimal("300")
        assert activity.inventory.closing == 40
        assert book.inventory_on(D2).opening == 40
        assert [point.collected for point in book.production_trend()] == [50]


class TestCreateAppComponents:
    """Tests for the application factory."""

    def test_builds_book_over_configured_backend(self, monkeypatch):
        """Test wiring with the in-memory backend."""
        monkeypatch.setenv("EGGFARM_STORAGE_BACKEND", "memory")
        monkeypatch.setenv("LOG_JSON", "false")

        book = create_app_components(Settings())
        assert isinstance(book.store.backend, InMemoryStorage)
        book.add_customer("Ali")
        assert len(book.snapshot().customers) == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
