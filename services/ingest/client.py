"""
RT REST 2.0 Client
Read-only access to tickets, users, queues, history and attachments
"""

from typing import Any, Optional, Type, TypeVar, Union

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from shared.errors import AuthenticationError, FetchError
from shared.schemas.ticket import (
    AttachmentContent,
    HistoryPage,
    Queue,
    Ticket,
    Transaction,
    User,
)

logger = structlog.get_logger()

AUTH_FAILURE_CODES = (401, 403)

ModelT = TypeVar("ModelT", bound=BaseModel)


class RTClient:
    """
    Async client for the RT REST 2.0 API using HTTP basic auth.

    Every request is bounded by `timeout`; a hung server fails the one fetch
    instead of blocking the ticket forever.

    Usage:
        async with RTClient("https://rt.example.com", "user", "secret") as client:
            ticket = await client.get_ticket(123)
    """

    def __init__(
        self,
        host: str,
        username: str,
        password: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.host = host.rstrip("/")
        self.base_url = f"{self.host}/REST/2.0"
        self.username = username
        self.timeout = timeout
        self._auth = httpx.BasicAuth(username, password)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "RTClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    async def connect(self):
        """Open the underlying HTTP connection pool"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url + "/",
                auth=self._auth,
                timeout=self.timeout,
                transport=self._transport,
                headers={"Accept": "application/json"},
            )

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None

    async def get_json(self, path_or_url: str, params: Optional[dict] = None) -> Any:
        """
        GET a resource and return its decoded JSON body.

        `path_or_url` is either relative to /REST/2.0 (e.g. "ticket/12") or an
        absolute URL taken from a `_url` hyperlink.

        Raises:
            AuthenticationError: RT answered 401/403
            FetchError: any other HTTP, network, timeout or JSON failure
        """
        await self.connect()
        url = path_or_url.lstrip("/") if "://" not in path_or_url else path_or_url

        try:
            response = await self._client.get(url, params=params)
        except httpx.HTTPError as e:
            raise FetchError(path_or_url, f"Request failed: {e}") from e

        if response.status_code in AUTH_FAILURE_CODES:
            raise AuthenticationError(str(response.request.url), response.status_code)

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FetchError(
                str(response.request.url),
                f"HTTP {response.status_code}",
                status_code=response.status_code,
            ) from e

        try:
            return response.json()
        except ValueError as e:
            raise FetchError(str(response.request.url), "Response is not JSON") from e

    @staticmethod
    def _parse(model: Type[ModelT], data: Any, url: str) -> ModelT:
        """Validate a payload; an unexpected shape counts as a failed fetch"""
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise FetchError(url, f"Unexpected {model.__name__} payload: {e.error_count()} errors") from e

    async def get_ticket(self, ticket_id: Union[int, str]) -> Ticket:
        path = f"ticket/{ticket_id}"
        return self._parse(Ticket, await self.get_json(path), path)

    async def get_user(self, user_id: str) -> User:
        path = f"user/{user_id}"
        return self._parse(User, await self.get_json(path), path)

    async def get_queue(self, queue_id: str) -> Queue:
        path = f"queue/{queue_id}"
        return self._parse(Queue, await self.get_json(path), path)

    async def get_history_page(
        self,
        ticket_id: Union[int, str],
        page: int = 1,
        per_page: Optional[int] = None,
    ) -> HistoryPage:
        """One page of a ticket's transaction listing"""
        params = {"page": page}
        if per_page:
            params["per_page"] = per_page
        path = f"ticket/{ticket_id}/history"
        return self._parse(HistoryPage, await self.get_json(path, params=params), path)

    async def get_transaction(self, transaction_id: str) -> Transaction:
        path = f"transaction/{transaction_id}"
        return self._parse(Transaction, await self.get_json(path), path)

    async def get_attachment(self, url: str) -> AttachmentContent:
        return self._parse(AttachmentContent, await self.get_json(url), url)

    async def check_health(self) -> bool:
        """
        Check that RT is reachable and accepts the credentials.

        Raises:
            AuthenticationError: credentials rejected
        """
        try:
            info = await self.get_json("rt")
        except FetchError as e:
            logger.warning("RT health check failed", host=self.host, error=str(e))
            return False
        logger.info("Connected to RT", host=self.host, version=info.get("Version"))
        return True
