"""
Export context
Per-run state shared by every ticket pipeline: the error channel and counters
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, TextIO

import structlog

logger = structlog.get_logger()


@dataclass(frozen=True)
class ErrorEntry:
    """One recoverable failure, tagged with what it concerned"""
    message: str
    ticket_id: Optional[str] = None
    transaction_id: Optional[str] = None
    attachment: Optional[str] = None
    at: datetime = field(default_factory=datetime.utcnow)

    def format(self) -> str:
        parts = [self.at.strftime("%Y-%m-%dT%H:%M:%SZ")]
        if self.ticket_id is not None:
            parts.append(f"ticket={self.ticket_id}")
        if self.transaction_id is not None:
            parts.append(f"transaction={self.transaction_id}")
        if self.attachment is not None:
            parts.append(f"attachment={self.attachment}")
        message = " ".join(self.message.split())
        parts.append(message)
        return " ".join(parts)


class ExportContext:
    """
    State for one export run.

    Replaces module-level accumulators: each ticket pipeline receives the
    context, records its failures here and returns its record instead of
    appending to shared lists.

    Args:
        error_stream: Optional text stream receiving one line per failure as
            it happens (the error log). Never the CSV output stream.
    """

    def __init__(self, error_stream: Optional[TextIO] = None):
        self.errors: list[ErrorEntry] = []
        self.error_stream = error_stream
        self.exported = 0
        self.skipped = 0

    def record_error(
        self,
        message: str,
        ticket_id: Optional[str] = None,
        transaction_id: Optional[str] = None,
        attachment: Optional[str] = None,
    ) -> ErrorEntry:
        """Log a recoverable failure on the error channel"""
        entry = ErrorEntry(
            message=message,
            ticket_id=None if ticket_id is None else str(ticket_id),
            transaction_id=None if transaction_id is None else str(transaction_id),
            attachment=attachment,
        )
        self.errors.append(entry)
        logger.warning(
            "Export error",
            ticket_id=entry.ticket_id,
            transaction_id=entry.transaction_id,
            attachment=entry.attachment,
            error=message,
        )
        if self.error_stream is not None:
            self.error_stream.write(entry.format() + "\n")
            self.error_stream.flush()
        return entry

    def errors_for(self, ticket_id: str) -> list[ErrorEntry]:
        return [e for e in self.errors if e.ticket_id == str(ticket_id)]

    @property
    def error_count(self) -> int:
        return len(self.errors)
