"""
Ticket history aggregation
Walks /ticket/{id}/history page by page and fetches every transaction
"""

from typing import Optional, Union

import structlog

from shared.errors import FetchError
from shared.schemas.ticket import HistoryPage, Transaction

from .client import RTClient

logger = structlog.get_logger()


async def fetch_ticket_history(
    client: RTClient,
    ticket_id: Union[int, str],
    context,
    per_page: Optional[int] = None,
) -> list[Transaction]:
    """
    Fetch all transactions of a ticket in server order.

    Pages are read strictly in order starting at 1; page 1 declares how many
    pages exist. A transaction that cannot be fetched is recorded on the
    context's error channel and left out. A page that cannot be fetched
    raises.

    Args:
        client: RT client (anything with get_history_page/get_transaction)
        ticket_id: Ticket whose history to read
        context: ExportContext receiving recoverable failures
        per_page: Optional page size passed to RT

    Returns:
        Transactions from every page, in page order

    Raises:
        FetchError: a history page could not be fetched
        AuthenticationError: RT rejected the credentials
    """
    transactions: list[Transaction] = []

    first_page = await client.get_history_page(ticket_id, page=1, per_page=per_page)
    logger.debug(
        "Fetched history page",
        ticket_id=ticket_id,
        page=1,
        pages=first_page.pages,
        total=first_page.total,
    )
    transactions.extend(await _fetch_page_transactions(client, ticket_id, first_page, context))

    for page_number in range(2, first_page.pages + 1):
        page = await client.get_history_page(ticket_id, page=page_number, per_page=per_page)
        logger.debug("Fetched history page", ticket_id=ticket_id, page=page_number)
        transactions.extend(await _fetch_page_transactions(client, ticket_id, page, context))

    logger.info(
        "Fetched ticket history",
        ticket_id=ticket_id,
        transactions=len(transactions),
        declared=first_page.total,
    )
    return transactions


async def _fetch_page_transactions(
    client: RTClient,
    ticket_id: Union[int, str],
    page: HistoryPage,
    context,
) -> list[Transaction]:
    """Fetch the transactions listed on one history page, skipping failures"""
    fetched = []
    for item in page.items:
        try:
            fetched.append(await client.get_transaction(item.id))
        except FetchError as e:
            context.record_error(
                f"Failed to fetch transaction: {e}",
                ticket_id=ticket_id,
                transaction_id=item.id,
            )
    return fetched
