"""
Ticket export pipeline
Fetch -> aggregate history -> extract text -> assemble record, per ticket
"""

import asyncio
from typing import Iterable, Optional, Union

import structlog

from services.ingest.history import fetch_ticket_history
from services.normalize.assembler import OutputRecord, RecordAssembler
from services.normalize.extractor import extract_fragments
from shared.errors import FetchError, FieldNotFoundError
from shared.schemas.ticket import TicketBundle, TransactionType

from .context import ExportContext
from .writer import CsvSink

logger = structlog.get_logger()


def ticket_range(top_ticket_id: int, count: int) -> list[int]:
    """`count` ticket ids counting down from `top_ticket_id` (ids stay >= 1)"""
    return [tid for tid in range(top_ticket_id, top_ticket_id - count, -1) if tid > 0]


async def fetch_ticket_bundle(
    client,
    ticket_id: Union[int, str],
    context: ExportContext,
    per_page: Optional[int] = None,
) -> TicketBundle:
    """
    Fetch everything one record needs. Fetches run one after another.

    Raises:
        FetchError: ticket, user, queue or a history page could not be fetched
        AuthenticationError: RT rejected the credentials
    """
    ticket = await client.get_ticket(ticket_id)
    user = await client.get_user(ticket.creator.id)
    queue = await client.get_queue(ticket.queue.id)
    transactions = await fetch_ticket_history(client, ticket_id, context, per_page=per_page)

    fragments = {}
    for transaction_type in (TransactionType.CREATE, TransactionType.CORRESPOND, TransactionType.COMMENT):
        fragments[transaction_type] = await extract_fragments(
            client, transactions, transaction_type, context, ticket_id=str(ticket_id)
        )

    return TicketBundle(
        ticket=ticket,
        user=user,
        queue=queue,
        created=fragments[TransactionType.CREATE],
        correspondence=fragments[TransactionType.CORRESPOND],
        comments=fragments[TransactionType.COMMENT],
    )


async def export_ticket(
    client,
    ticket_id: Union[int, str],
    assembler: RecordAssembler,
    context: ExportContext,
    per_page: Optional[int] = None,
) -> Optional[OutputRecord]:
    """
    Build the record for one ticket.

    Failures confined to this ticket are recorded on the error channel and
    give None. AuthenticationError propagates.
    """
    try:
        bundle = await fetch_ticket_bundle(client, ticket_id, context, per_page=per_page)
        record = assembler.assemble(bundle, context)
    except (FetchError, FieldNotFoundError) as e:
        context.record_error(f"Skipped ticket: {e}", ticket_id=ticket_id)
        context.skipped += 1
        return None

    context.exported += 1
    logger.info("Exported ticket", ticket_id=ticket_id)
    return record


async def export_tickets(
    client,
    ticket_ids: Iterable[Union[int, str]],
    assembler: RecordAssembler,
    context: ExportContext,
    sink: CsvSink,
    concurrency: int = 1,
    per_page: Optional[int] = None,
) -> int:
    """
    Export tickets into `sink`, returning the number of rows written.

    With concurrency 1 tickets are processed one at a time and rows follow
    `ticket_ids` order. With more, up to `concurrency` ticket pipelines run
    at once and rows are written in completion order. Either way a row is
    written only once its record is complete, from this coroutine alone.

    Raises:
        AuthenticationError: RT rejected the credentials; running pipelines
            are cancelled
    """
    ticket_ids = list(ticket_ids)
    written = 0
    logger.info("Starting export", tickets=len(ticket_ids), concurrency=concurrency)

    if concurrency <= 1:
        for ticket_id in ticket_ids:
            record = await export_ticket(client, ticket_id, assembler, context, per_page=per_page)
            if record is not None:
                sink.write_record(record)
                written += 1
        return written

    semaphore = asyncio.Semaphore(concurrency)

    async def bounded(ticket_id):
        async with semaphore:
            return await export_ticket(client, ticket_id, assembler, context, per_page=per_page)

    tasks = [asyncio.ensure_future(bounded(ticket_id)) for ticket_id in ticket_ids]
    try:
        for next_done in asyncio.as_completed(tasks):
            record = await next_done
            if record is not None:
                sink.write_record(record)
                written += 1
    finally:
        pending = [t for t in tasks if not t.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    return written
