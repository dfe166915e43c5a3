"""
Cross-Entity Link Manager

A DEBIT ledger entry with a quantity is a credit sale of eggs. It shows up
in two places: the customer's ledger (money) and the egg log (stock). The
egg-log side is a generated record carrying the entry's id in `ledger_id`.

INVARIANT: at most one egg log per ledger id, and no egg log whose ledger
entry is gone. This module is the only writer of linked logs.
"""

from decimal import Decimal
from typing import Optional

import structlog

from eggfarm.models import EggLog, LedgerEntry
from eggfarm.store import EntityStore


logger = structlog.get_logger(__name__)


def build_linked_log(entry: LedgerEntry) -> Optional[EggLog]:
    """
    The egg log a ledger entry implies, or None.

    Only DEBIT entries with a positive quantity produce one. The log mirrors
    the entry: same date, sold_count = quantity, total_sale = amount.
    """
    if not entry.creates_egg_log:
        return None
    return EggLog(
        ledger_id=entry.id,
        date=entry.date,
        collected_count=0,
        sold_count=entry.quantity,
        sale_price=entry.price_per_unit or Decimal("0"),
        total_sale=entry.amount,
    )


class LinkManager:
    """Keeps generated egg logs in step with the customer ledger."""

    def __init__(self, store: EntityStore):
        self._store = store

    def build_linked_log(self, entry: LedgerEntry) -> Optional[EggLog]:
        return build_linked_log(entry)

    def find_linked_logs(self, ledger_id: str) -> list[EggLog]:
        return [log for log in self._store.egg_logs.list() if log.ledger_id == ledger_id]

    def on_ledger_entry_added(self, entry: LedgerEntry) -> Optional[EggLog]:
        """
        Create the linked egg log for a newly added entry.

        Returns the linked log (the existing one if the entry was already
        linked), or None when the entry is not an egg sale.

        Raises:
            StorageError: If the egg log collection cannot be written
        """
        log = build_linked_log(entry)
        if log is None:
            return None

        with self._store.lock:
            existing = self.find_linked_logs(entry.id)
            if existing:
                logger.warning(
                    "linked_egg_log_exists",
                    ledger_id=entry.id,
                    egg_log_id=existing[0].id,
                )
                return existing[0]
            self._store.egg_logs.append(log)

        logger.info(
            "linked_egg_log_created",
            ledger_id=entry.id,
            egg_log_id=log.id,
            sold_count=log.sold_count,
        )
        return log

    def on_ledger_entry_removed(self, ledger_id: str) -> list[EggLog]:
        """
        Remove every egg log linked to `ledger_id`.

        A no-op returning [] when nothing is linked.
        """
        removed = self._store.egg_logs.remove_where(
            lambda log: log.ledger_id == ledger_id
        )
        if removed:
            logger.info(
                "linked_egg_logs_removed",
                ledger_id=ledger_id,
                count=len(removed),
            )
        return removed

    def orphaned_logs(self) -> list[EggLog]:
        """Linked egg logs whose ledger entry no longer exists."""
        with self._store.lock:
            ledger_ids = {entry.id for entry in self._store.ledger.list()}
            logs = self._store.egg_logs.list()
        return [log for log in logs if log.is_linked and log.ledger_id not in ledger_ids]
