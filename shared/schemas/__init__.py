"""RTX Shared Schemas"""

from .profile import ColumnProfile, ColumnSpec, MissingFieldPolicy, load_profile
from .ticket import (
    AttachmentContent,
    AttachmentRef,
    CustomField,
    ExtractedFragment,
    HistoryItem,
    HistoryPage,
    Queue,
    Reference,
    Ticket,
    TicketBundle,
    Transaction,
    TransactionType,
    User,
)

__all__ = [
    # Ticket schemas
    "AttachmentContent",
    "AttachmentRef",
    "CustomField",
    "ExtractedFragment",
    "HistoryItem",
    "HistoryPage",
    "Queue",
    "Reference",
    "Ticket",
    "TicketBundle",
    "Transaction",
    "TransactionType",
    "User",
    # Profile schemas
    "ColumnProfile",
    "ColumnSpec",
    "MissingFieldPolicy",
    "load_profile",
]
