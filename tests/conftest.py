"""
pytest configuration and shared fixtures
"""
import base64
import sys
from pathlib import Path

import pytest
import structlog

# Add repository root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from services.export.context import ExportContext
from shared.errors import AuthenticationError, FetchError
from shared.schemas.ticket import (
    AttachmentContent,
    HistoryPage,
    Queue,
    Ticket,
    Transaction,
    User,
)

RT_URL = "https://rt.example.com/REST/2.0"


def encode(text: str) -> str:
    """Base64 with line breaks, the way RT serves attachment bodies"""
    return base64.encodebytes(text.encode("utf-8")).decode("ascii")


def ticket_payload(ticket_id, **overrides) -> dict:
    payload = {
        "id": ticket_id,
        "EffectiveId": {"id": str(ticket_id), "type": "ticket", "_url": f"{RT_URL}/ticket/{ticket_id}"},
        "Creator": {"id": "alice", "type": "user", "_url": f"{RT_URL}/user/alice"},
        "Queue": {"id": "3", "type": "queue", "_url": f"{RT_URL}/queue/3"},
        "Owner": {"id": "bob", "type": "user", "_url": f"{RT_URL}/user/bob"},
        "Subject": 'Printer "on fire"',
        "Status": "resolved",
        "SLA": "4 hours",
        "Created": "2023-01-15T09:30:00Z",
        "Started": "2023-01-15T10:00:00Z",
        "Told": "2023-06-01T09:00:00Z",
        "Resolved": "2023-06-01T10:00:00Z",
        "CustomFields": [
            {"id": 1, "name": "Outcome", "values": ["Fixed"]},
            {"id": 2, "name": "Security Incident", "values": ["No"]},
            {"id": 3, "name": "TicketType", "values": ["Incident", "Hardware"]},
        ],
    }
    payload.update(overrides)
    return payload


def attachment_payload(text: str, content_type: str = "text/html", creator: str = "alice",
                       created: str = "2023-01-15T09:30:00Z") -> dict:
    return {
        "Headers": f"MIME-Version: 1.0\nContent-Type: {content_type}; charset=\"UTF-8\"\nX-Mailer: MIME-tools",
        "Content": encode(text),
        "Creator": {"id": creator, "type": "user"},
        "Created": created,
    }


def transaction_payload(transaction_id, type_tag: str, attachment_urls=()) -> dict:
    links = [{"ref": "self", "type": "transaction", "id": transaction_id,
              "_url": f"{RT_URL}/transaction/{transaction_id}"}]
    links.extend({"ref": "attachment", "_url": url} for url in attachment_urls)
    return {"id": transaction_id, "Type": type_tag, "_hyperlinks": links}


class FakeRTClient:
    """
    In-memory stand-in for RTClient keyed by resource path.

    Paths listed in `failures` raise FetchError, those in `auth_failures`
    raise AuthenticationError, unknown paths raise FetchError (404).
    """

    def __init__(self):
        self.resources: dict[str, dict] = {}
        self.failures: set[str] = set()
        self.auth_failures: set[str] = set()
        self.calls: list[str] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return None

    def _get(self, key: str, model):
        self.calls.append(key)
        if key in self.auth_failures:
            raise AuthenticationError(key, 401)
        if key in self.failures or key not in self.resources:
            raise FetchError(key, "HTTP 404", status_code=404)
        return model.model_validate(self.resources[key])

    async def get_ticket(self, ticket_id):
        return self._get(f"ticket/{ticket_id}", Ticket)

    async def get_user(self, user_id):
        return self._get(f"user/{user_id}", User)

    async def get_queue(self, queue_id):
        return self._get(f"queue/{queue_id}", Queue)

    async def get_history_page(self, ticket_id, page=1, per_page=None):
        return self._get(f"ticket/{ticket_id}/history?page={page}", HistoryPage)

    async def get_transaction(self, transaction_id):
        return self._get(f"transaction/{transaction_id}", Transaction)

    async def get_attachment(self, url):
        return self._get(url, AttachmentContent)

    def add_history(self, ticket_id, transactions: list[dict], per_page: int = 2):
        """Register transactions and split their listing into pages"""
        pages = [transactions[i:i + per_page] for i in range(0, len(transactions), per_page)] or [[]]
        for number, chunk in enumerate(pages, start=1):
            self.resources[f"ticket/{ticket_id}/history?page={number}"] = {
                "page": number,
                "pages": len(pages),
                "per_page": per_page,
                "total": len(transactions),
                "count": len(chunk),
                "items": [
                    {"id": t["id"], "type": "transaction", "_url": f"{RT_URL}/transaction/{t['id']}"}
                    for t in chunk
                ],
            }
        for transaction in transactions:
            self.resources[f"transaction/{transaction['id']}"] = transaction

    def add_ticket(self, ticket_id, **overrides):
        """
        A complete ticket: a creation message, a reply quoting it, an
        internal comment, a PDF and a status change spread over 3 pages.
        """
        base = ticket_id * 100
        urls = {name: f"{RT_URL}/attachment/{base + n}" for n, name in enumerate(
            ["create", "pdf", "reply", "comment"], start=1)}

        self.resources[f"ticket/{ticket_id}"] = ticket_payload(ticket_id, **overrides)
        self.resources["user/alice"] = {
            "id": 22, "Name": "alice", "RealName": "Alice Smith",
            "EmailAddress": "alice@example.com", "Organization": "Acme, Inc.",
        }
        self.resources["queue/3"] = {"id": 3, "Name": "General", "Description": "Catch-all"}

        self.resources[urls["create"]] = attachment_payload(
            "<html><body><p>My printer is <strong>on fire</strong>.</p></body></html>")
        self.resources[urls["pdf"]] = attachment_payload("%PDF-1.4", content_type="application/pdf")
        self.resources[urls["reply"]] = attachment_payload(
            "<p>Please unplug it.</p><blockquote>My printer is on fire.</blockquote>",
            creator="bob", created="2023-01-15T10:00:00Z")
        self.resources[urls["comment"]] = attachment_payload(
            "Customer says \"urgent\".<br />Escalating.", content_type="text/plain",
            creator="bob", created="2023-01-16T08:00:00Z")

        self.add_history(ticket_id, [
            transaction_payload(base + 1, "Create", [urls["create"], urls["pdf"]]),
            transaction_payload(base + 2, "Correspond", [urls["reply"]]),
            transaction_payload(base + 3, "Comment", [urls["comment"]]),
            transaction_payload(base + 4, "Status"),
            transaction_payload(base + 5, "Correspond"),
        ])
        return urls


@pytest.fixture
def fake_client():
    """Fake RT client with no resources"""
    return FakeRTClient()


@pytest.fixture
def context():
    """Fresh export context without an error stream"""
    return ExportContext()


@pytest.fixture(autouse=True)
def reset_logging():
    """The CLI reconfigures structlog; restore defaults after each test"""
    yield
    structlog.reset_defaults()
