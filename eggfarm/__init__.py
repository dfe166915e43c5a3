"""
Egg Farm Ledger - Source Package

Bookkeeping for a small poultry farm: egg production, customer ledgers,
payee expenses, and the balances derived from them.

DESIGN PRINCIPLES:
1. Raw entries are the only persisted truth
2. Every balance is recomputed from scratch on read
3. Dangling references degrade to placeholders, never to crashes
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Egg Farm Ledger Team"
