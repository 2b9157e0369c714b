"""
Walletbook - Source Package

An offline-first personal ledger for one user managing their own wallets,
transactions and recurring bills.

DESIGN PRINCIPLES:
1. Balances are derived, never typed in by hand
2. Every transaction edit is revert-then-apply
3. Recurring rules catch up deterministically and never double-generate
4. Failed commands change nothing
5. Storage and remote mirror are swappable
"""

__version__ = "1.0.0"
__author__ = "Walletbook Team"
