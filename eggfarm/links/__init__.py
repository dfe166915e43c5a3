"""Ledger to egg-log link management."""

from eggfarm.links.manager import LinkManager, build_linked_log

__all__ = [
    "LinkManager",
    "build_linked_log",
]
