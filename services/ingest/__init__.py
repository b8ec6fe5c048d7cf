"""
RTX Ingest Service
Reads tickets and their history from the RT REST 2.0 API

Components:
- client.py: RT REST 2.0 client (httpx, basic auth)
- history.py: paginated transaction history aggregation
"""

from .client import RTClient
from .history import fetch_ticket_history

__all__ = ["RTClient", "fetch_ticket_history"]
