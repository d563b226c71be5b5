"""Entities organized by business concept.

Each entity package holds its domain model (entity.py), its persistence
model (table.py) and its data access layer (repository.py).
"""

from .core.account import Account, AccountRepository, AccountTable, AccountView

__all__ = ["Account", "AccountView", "AccountTable", "AccountRepository"]
