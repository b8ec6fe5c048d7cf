"""
Record Assembler
Turns a fetched ticket bundle into one flat, CSV-safe output record
"""

import re
from datetime import tzinfo
from typing import Any, Optional, Union

import structlog
from dateutil import parser as date_parser
from dateutil import tz

from shared.errors import FieldNotFoundError
from shared.schemas.profile import ColumnProfile, ColumnSpec, MissingFieldPolicy
from shared.schemas.ticket import ExtractedFragment, TicketBundle

from .fields import TranslationTable, lookup_custom_field
from .sanitizer import sanitize_description, strip_inline_tags

logger = structlog.get_logger()

OutputRecord = dict[str, Union[str, int, float, None]]

DISPLAY_TIMEZONE = tz.gettz("Europe/London")
DATE_FORMAT = "%d/%m/%Y %H:%M:%S"

NEWLINE_PATTERN = re.compile(r"\r\n|\r|\n")

# Logical fields a column may read; free-text ones are quoted in the output
TEXT_FIELDS = frozenset({
    "subject",
    "description",
    "comments",
    "correspondence",
    "customer_name",
    "customer_group",
    "queue",
})
DATE_FIELDS = frozenset({"created", "resolved", "started", "told", "due"})
LOGICAL_FIELDS = TEXT_FIELDS | DATE_FIELDS | frozenset({
    "id",
    "effective_id",
    "status",
    "sla",
    "priority",
    "owner",
    "customer",
    "customer_email",
})


def convert_date(value: Optional[str], timezone: Optional[tzinfo] = None) -> Optional[str]:
    """
    Render an ISO-8601 timestamp as DD/MM/YYYY HH:MM:SS in UK local time.

    Naive timestamps are taken as UTC. Missing or unparseable input gives None.
    """
    if not value:
        return None
    try:
        parsed = date_parser.isoparse(value)
    except (ValueError, OverflowError):
        logger.warning("Unparseable timestamp", value=value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz.UTC)
    return parsed.astimezone(timezone or DISPLAY_TIMEZONE).strftime(DATE_FORMAT)


def quote_text(value: Optional[str]) -> str:
    """Backslash-escape double quotes and wrap the value in a quote pair"""
    text = "" if value is None else str(value)
    return '"' + text.replace('"', '\\"') + '"'


class RecordAssembler:
    """
    Builds OutputRecords for a column profile.

    The profile decides the column order, where each value comes from, the
    literal defaults and translation tables, and whether inline HTML is kept
    in the description.
    """

    def __init__(self, profile: ColumnProfile, timezone: Optional[tzinfo] = None):
        unknown = [
            c.source for c in profile.columns
            if c.source and not c.custom_field and c.source not in LOGICAL_FIELDS
        ]
        if unknown:
            raise ValueError(f"Profile '{profile.name}' reads unknown fields: {', '.join(unknown)}")

        self.profile = profile
        self.timezone = timezone or DISPLAY_TIMEZONE
        self.tables = {
            name: TranslationTable(name, mapping)
            for name, mapping in profile.translations.items()
        }

    @property
    def header(self) -> list[str]:
        return self.profile.header

    def assemble(self, bundle: TicketBundle, context=None) -> OutputRecord:
        """
        Build the record for one ticket.

        A missing custom field on a column that tolerates it leaves the cell
        empty and is recorded on `context` (an ExportContext) when given.

        Raises:
            FieldNotFoundError: a required custom field is missing
        """
        fields = self.logical_fields(bundle)
        record: OutputRecord = {}
        for column in self.profile.columns:
            record[column.name] = self._resolve(column, fields, bundle, context)
        return record

    def logical_fields(self, bundle: TicketBundle) -> dict[str, Any]:
        """Every named value a column can source, before quoting"""
        ticket, user, queue = bundle.ticket, bundle.user, bundle.queue
        strip_inline = self.profile.strip_inline_description

        return {
            "id": ticket.id,
            "effective_id": ticket.effective_id.id,
            "subject": ticket.subject,
            "status": ticket.status,
            "sla": ticket.sla,
            "priority": ticket.priority,
            "queue": queue.name,
            "owner": ticket.owner.id if ticket.owner else None,
            "customer": ticket.creator.id,
            "customer_name": user.real_name or user.name,
            "customer_email": user.email,
            "customer_group": user.organization,
            "created": self._date(ticket.created),
            "resolved": self._date(ticket.resolved),
            "started": self._date(ticket.started),
            "told": self._date(ticket.told),
            "due": self._date(ticket.due),
            "description": self._digest(
                bundle.created + bundle.correspondence,
                lambda text: sanitize_description(text, strip_inline=strip_inline),
            ),
            "correspondence": self._digest(
                bundle.correspondence,
                lambda text: sanitize_description(text, strip_inline=strip_inline),
            ),
            "comments": self._digest(bundle.comments, strip_inline_tags),
        }

    def _date(self, value: Optional[str]) -> Optional[str]:
        return convert_date(value, self.timezone)

    def _digest(self, fragments: list[ExtractedFragment], clean) -> str:
        """Clean each fragment, render it through the template and join"""
        parts = []
        for fragment in fragments:
            content = clean(fragment.content)
            if not content or not content.strip():
                continue
            parts.append(self.profile.fragment_template.format(
                created=self._date(fragment.created) or "",
                creator=fragment.creator or "",
                content=content.strip(),
            ))
        return self.profile.fragment_separator.join(parts)

    def _resolve(self, column: ColumnSpec, fields: dict[str, Any], bundle: TicketBundle, context=None):
        if column.source is None:
            return quote_text(column.default) if column.quote else column.default

        custom_field = column.custom_field
        if custom_field:
            try:
                values = lookup_custom_field(
                    bundle.ticket.custom_fields, custom_field, ticket_id=bundle.ticket.id
                )
            except FieldNotFoundError as e:
                if self._is_required(column):
                    raise
                self._report_missing(e, column, context)
                values = None
            value = ", ".join(values) if values is not None else None
            is_text = True
        else:
            value = fields[column.source]
            is_text = column.source in TEXT_FIELDS

        if column.translate:
            value = self.tables[column.translate].translate(value)

        if value is None or value == "":
            value = column.default
        if value is None:
            return None

        quote = column.quote if column.quote is not None else is_text
        if quote:
            text = str(value)
            if self.profile.flatten_newlines:
                text = NEWLINE_PATTERN.sub("\\\\n", text)
            return quote_text(text)
        return value

    def _report_missing(self, error: FieldNotFoundError, column: ColumnSpec, context=None):
        logger.warning(
            "Missing custom field",
            ticket_id=error.ticket_id,
            field=error.field_name,
            column=column.name,
        )
        if context is not None:
            context.record_error(
                f"{error}, column '{column.name}' left empty",
                ticket_id=error.ticket_id,
            )

    def _is_required(self, column: ColumnSpec) -> bool:
        if column.required is not None:
            return column.required
        return self.profile.missing_fields == MissingFieldPolicy.SKIP
