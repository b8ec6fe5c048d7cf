"""
RTX error taxonomy

- FetchError: a single HTTP/network failure talking to RT
- AuthenticationError: RT rejected the credentials, every later call would fail too
- FieldNotFoundError: a ticket has no custom field with the requested name
"""

from typing import Optional


class ExportError(Exception):
    """Base class for export failures"""


class FetchError(ExportError):
    """A resource could not be fetched from RT"""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{message} ({url})")
        self.url = url
        self.status_code = status_code


class AuthenticationError(ExportError):
    """RT answered 401/403"""

    def __init__(self, url: str, status_code: int):
        super().__init__(f"RT rejected the credentials (HTTP {status_code}) for {url}")
        self.url = url
        self.status_code = status_code


class FieldNotFoundError(ExportError, LookupError):
    """Custom field lookup miss"""

    def __init__(self, field_name: str, ticket_id: Optional[str] = None):
        where = f" on ticket {ticket_id}" if ticket_id else ""
        super().__init__(f"Custom field '{field_name}' not found{where}")
        self.field_name = field_name
        self.ticket_id = ticket_id
