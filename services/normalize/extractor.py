"""
Transaction classification and attachment text extraction
"""

import base64
import re
from typing import Optional, Union

import structlog

from shared.errors import FetchError
from shared.schemas.ticket import (
    AttachmentContent,
    ExtractedFragment,
    Transaction,
    TransactionType,
)

logger = structlog.get_logger()

ATTACHMENT_REF = "attachment"
TEXT_CONTENT_TYPES = ("content-type: text/html", "content-type: text/plain")
CHARSET_PATTERN = re.compile(r'charset="?([\w.:-]+)"?', re.IGNORECASE)
DEFAULT_CHARSET = "utf-8"
BASE64_WHITESPACE = re.compile(r"[ \t\n\r\f\v]+")


def filter_transactions(
    transactions: list[Transaction],
    transaction_type: Union[TransactionType, str],
) -> list[Transaction]:
    """Transactions of one type, in their original order"""
    type_tag = getattr(transaction_type, "value", transaction_type)
    return [t for t in transactions if t.type == type_tag]


def is_text_content(headers: str) -> bool:
    """True when the attachment's header block declares text/html or text/plain"""
    lowered = (headers or "").lower()
    return any(marker in lowered for marker in TEXT_CONTENT_TYPES)


def _charset(headers: str) -> str:
    for line in (headers or "").splitlines():
        if line.lower().startswith("content-type:"):
            match = CHARSET_PATTERN.search(line)
            if match:
                return match.group(1)
    return DEFAULT_CHARSET


def decode_attachment(attachment: AttachmentContent) -> ExtractedFragment:
    """
    Decode an attachment body into a fragment.

    RT wraps the base64 body across lines; ASCII whitespace (line breaks
    included, CRLF or LF) is removed before decoding.

    Raises:
        ValueError: body is not valid base64 (binascii.Error) or the bytes
            do not match the declared charset (UnicodeDecodeError)
        LookupError: unknown charset
    """
    raw = base64.b64decode(BASE64_WHITESPACE.sub("", attachment.content), validate=True)
    content = raw.decode(_charset(attachment.headers))
    return ExtractedFragment(
        created=attachment.created,
        creator=attachment.creator.id if attachment.creator else None,
        content=content,
    )


async def extract_fragments(
    client,
    transactions: list[Transaction],
    transaction_type: Union[TransactionType, str],
    context,
    ticket_id: Optional[str] = None,
) -> list[ExtractedFragment]:
    """
    Collect the text of every text/html or text/plain attachment on the
    transactions of one type.

    Attachments that fail to fetch or decode are recorded on the context's
    error channel and skipped; their siblings are still extracted.

    Args:
        client: RT client (anything with get_attachment)
        transactions: Aggregated ticket history
        transaction_type: Create, Correspond or Comment
        context: ExportContext receiving recoverable failures
        ticket_id: Used to tag error entries

    Returns:
        Fragments in transaction order, then attachment order

    Raises:
        AuthenticationError: RT rejected the credentials
    """
    fragments = []

    for transaction in filter_transactions(transactions, transaction_type):
        for link in transaction.hyperlinks:
            if link.ref != ATTACHMENT_REF or not link.url:
                continue

            try:
                attachment = await client.get_attachment(link.url)
            except FetchError as e:
                context.record_error(
                    f"Failed to fetch attachment: {e}",
                    ticket_id=ticket_id,
                    transaction_id=transaction.id,
                    attachment=link.url,
                )
                continue

            if not is_text_content(attachment.headers):
                logger.debug("Skipping non-text attachment", url=link.url)
                continue

            try:
                fragments.append(decode_attachment(attachment))
            except (ValueError, LookupError) as e:
                context.record_error(
                    f"Failed to decode attachment: {e}",
                    ticket_id=ticket_id,
                    transaction_id=transaction.id,
                    attachment=link.url,
                )

    logger.debug(
        "Extracted fragments",
        ticket_id=ticket_id,
        type=getattr(transaction_type, "value", transaction_type),
        count=len(fragments),
    )
    return fragments
