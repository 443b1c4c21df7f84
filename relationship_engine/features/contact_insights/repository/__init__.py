"""
Repository subpackage for contact insights.
"""

from .contact_repository import ContactNotFoundError, ContactRepository
from .history_repository import ContactHistoryRepository, load_contact_history

__all__ = [
    "ContactHistoryRepository",
    "ContactNotFoundError",
    "ContactRepository",
    "load_contact_history",
]
