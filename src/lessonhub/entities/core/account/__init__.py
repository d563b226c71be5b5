"""Account entity module.

- Account / AccountView: domain entity and its public projection
- AccountTable: database persistence model
- AccountRepository: data access layer
"""

from .entity import PLACEHOLDER_DISPLAY_NAME, Account, AccountView, Role
from .repository import AccountRepository
from .table import AccountTable

__all__ = [
    "Account",
    "AccountView",
    "AccountTable",
    "AccountRepository",
    "PLACEHOLDER_DISPLAY_NAME",
    "Role",
]
