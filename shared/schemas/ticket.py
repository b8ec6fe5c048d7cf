"""
RT Ticket Export - Ticket Schemas

Models for the RT REST 2.0 resources read during an export. Field names
follow RT's JSON (aliases) so payloads validate as received.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class TransactionType(str, Enum):
    """Transaction type tags the exporter cares about"""
    CREATE = "Create"
    CORRESPOND = "Correspond"
    COMMENT = "Comment"


class RTModel(BaseModel):
    """Base for fetched RT resources (read-only snapshots)"""

    class Config:
        populate_by_name = True
        frozen = True
        coerce_numbers_to_str = True
        extra = "ignore"


class Reference(RTModel):
    """Link object RT uses for users, queues and tickets"""
    id: str
    type: Optional[str] = None
    url: Optional[str] = Field(None, alias="_url")


class CustomField(RTModel):
    """Named custom field with its ordered values"""
    id: Optional[str] = None
    name: str
    values: list[str] = Field(default_factory=list)


class Ticket(RTModel):
    """Ticket snapshot as returned by /ticket/{id}"""
    id: str
    effective_id: Reference = Field(alias="EffectiveId")
    creator: Reference = Field(alias="Creator")
    queue: Reference = Field(alias="Queue")
    owner: Optional[Reference] = Field(None, alias="Owner")
    subject: str = Field("", alias="Subject")
    status: Optional[str] = Field(None, alias="Status")
    sla: Optional[str] = Field(None, alias="SLA")
    priority: Optional[str] = Field(None, alias="Priority")
    resolved: Optional[str] = Field(None, alias="Resolved")
    created: Optional[str] = Field(None, alias="Created")
    started: Optional[str] = Field(None, alias="Started")
    told: Optional[str] = Field(None, alias="Told")
    due: Optional[str] = Field(None, alias="Due")
    custom_fields: list[CustomField] = Field(default_factory=list, alias="CustomFields")


class User(RTModel):
    """Ticket creator"""
    id: Optional[str] = None
    name: Optional[str] = Field(None, alias="Name")
    real_name: Optional[str] = Field(None, alias="RealName")
    email: Optional[str] = Field(None, alias="EmailAddress")
    organization: Optional[str] = Field(None, alias="Organization")


class Queue(RTModel):
    id: Optional[str] = None
    name: str = Field("", alias="Name")
    description: Optional[str] = Field(None, alias="Description")


class HistoryItem(RTModel):
    id: str
    type: Optional[str] = None
    url: Optional[str] = Field(None, alias="_url")


class HistoryPage(RTModel):
    """One page of /ticket/{id}/history"""
    page: int = 1
    pages: int = 1
    total: int = 0
    count: int = 0
    per_page: Optional[int] = None
    items: list[HistoryItem] = Field(default_factory=list)


class AttachmentRef(RTModel):
    ref: str
    url: Optional[str] = Field(None, alias="_url")
    id: Optional[str] = None
    type: Optional[str] = None


class Transaction(RTModel):
    """Single event in a ticket's history"""
    id: str
    type: str = Field(alias="Type")
    created: Optional[str] = Field(None, alias="Created")
    hyperlinks: list[AttachmentRef] = Field(default_factory=list, alias="_hyperlinks")


class AttachmentContent(RTModel):
    """Attachment body; Content is base64 with embedded line breaks"""
    id: Optional[str] = None
    headers: str = Field("", alias="Headers")
    content: str = Field("", alias="Content")
    content_type: Optional[str] = Field(None, alias="ContentType")
    creator: Optional[Reference] = Field(None, alias="Creator")
    created: Optional[str] = Field(None, alias="Created")


class ExtractedFragment(BaseModel):
    """Decoded text of one qualifying attachment"""
    created: Optional[str] = None
    creator: Optional[str] = None
    content: str = ""

    class Config:
        frozen = True


class TicketBundle(BaseModel):
    """Everything the record assembler needs for one ticket"""
    ticket: Ticket
    user: User
    queue: Queue
    created: list[ExtractedFragment] = Field(default_factory=list)
    correspondence: list[ExtractedFragment] = Field(default_factory=list)
    comments: list[ExtractedFragment] = Field(default_factory=list)
