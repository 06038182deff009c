"""
Contribution Ledger - Source Package

A personal ledger of named monetary contributions, kept locally and shown
newest first with a running total.

DESIGN PRINCIPLES:
1. The store is the only owner of the collection
2. Every change is persisted as a full snapshot
3. Storage failures are logged, never fatal
4. Every change is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Contribution Ledger Team"
