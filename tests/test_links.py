"""Tests for the ledger to egg-log link manager."""

from datetime import date
from decimal import Decimal

import pytest

from eggfarm.links import build_linked_log
from eggfarm.models import EggLog, LedgerEntry, LedgerEntryType


def debit(entry_id="L1", quantity=20, price=Decimal("50"), amount=Decimal("1000")):
    return LedgerEntry(
        id=entry_id,
        customer_id="c1",
        date=date(2024, 1, 1),
        type=LedgerEntryType.DEBIT,
        amount=amount,
        quantity=quantity,
        price_per_unit=price,
    )


class TestBuildLinkedLog:
    """Tests for deriving the egg log of a ledger entry."""

    def test_debit_with_quantity(self):
        """Test the generated log mirrors the entry."""
        log = build_linked_log(debit())
        assert log.ledger_id == "L1"
        assert log.date == date(2024, 1, 1)
        assert log.collected_count == 0
        assert log.sold_count == 20
        assert log.sale_price == Decimal("50")
        assert log.total_sale == Decimal("1000")

    def test_total_sale_follows_amount_not_price(self):
        """Test that amount is authoritative for the linked log."""
        log = build_linked_log(debit(amount=Decimal("900")))
        assert log.total_sale == Decimal("900")

    def test_missing_price_counts_as_zero(self):
        """Test that an absent price gives a zero sale price."""
        log = build_linked_log(debit(price=None))
        assert log.sale_price == Decimal("0")

    def test_credit_gives_nothing(self):
        """Test that payments never create egg logs."""
        entry = LedgerEntry(customer_id="c1", date=date(2024, 1, 1), type="CREDIT",
                            amount=200, quantity=5)
        assert build_linked_log(entry) is None

    def test_zero_or_missing_quantity_gives_nothing(self):
        """Test that money-only sales create no egg log."""
        assert build_linked_log(debit(quantity=0)) is None
        assert build_linked_log(debit(quantity=None)) is None


class TestLinkManager:
    """Tests for keeping egg logs in step with the ledger."""

    def test_added_entry_creates_one_log(self, store, links):
        """Test the linked log is persisted."""
        entry = debit()
        log = links.on_ledger_entry_added(entry)
        assert store.egg_logs.list() == [log]

    def test_second_add_does_not_duplicate(self, store, links):
        """Test that at most one log links to a ledger id."""
        entry = debit()
        first = links.on_ledger_entry_added(entry)
        second = links.on_ledger_entry_added(entry)
        assert second.id == first.id
        assert len(links.find_linked_logs("L1")) == 1

    def test_removed_entry_removes_only_its_log(self, store, links):
        """Test that only the matching log is removed."""
        links.on_ledger_entry_added(debit("L1"))
        links.on_ledger_entry_added(debit("L2"))
        manual = EggLog(date=date(2024, 1, 1), collected_count=50)
        store.egg_logs.append(manual)

        removed = links.on_ledger_entry_removed("L1")

        assert [log.ledger_id for log in removed] == ["L1"]
        remaining = store.egg_logs.list()
        assert {log.ledger_id for log in remaining} == {"L2", None}

    def test_remove_without_link_is_noop(self, store, links):
        """Test that removing an unlinked id is not an error."""
        store.egg_logs.append(EggLog(date=date(2024, 1, 1), collected_count=50))
        assert links.on_ledger_entry_removed("missing") == []
        assert len(store.egg_logs.list()) == 1

    def test_remove_clears_duplicate_links(self, store, links):
        """Test that duplicated links from restored data are all removed."""
        for _ in range(2):
            store.egg_logs.append(EggLog(ledger_id="L1", date=date(2024, 1, 1), sold_count=20))
        removed = links.on_ledger_entry_removed("L1")
        assert len(removed) == 2
        assert store.egg_logs.list() == []

    def test_orphaned_logs(self, store, links):
        """Test detection of linked logs whose entry is gone."""
        entry = debit()
        store.ledger.append(entry)
        links.on_ledger_entry_added(entry)
        orphan = EggLog(ledger_id="gone", date=date(2024, 1, 2), sold_count=3)
        store.egg_logs.append(orphan)
        assert links.orphaned_logs() == [orphan]

    @pytest.mark.parametrize("count", [1, 3, 7])
    def test_linked_log_count_matches_debits(self, store, links, count):
        """Test one linked log per DEBIT-with-quantity entry."""
        entries = [debit(f"L{i}", amount=Decimal(100 + i)) for i in range(count)]
        for entry in entries:
            links.on_ledger_entry_added(entry)
        logs = [log for log in store.egg_logs.list() if log.is_linked]
        assert len(logs) == count
        totals = {log.ledger_id: log.total_sale for log in logs}
        assert totals == {entry.id: entry.amount for entry in entries}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
