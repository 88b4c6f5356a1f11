"""Ticket, history and approval schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from helpdesk.db.enums import (
    DEFAULT_TICKET_PRIORITY,
    DEFAULT_TICKET_SOURCE,
    TicketPriority,
    TicketSource,
    TicketStatus,
    TicketUpdateType,
)
from helpdesk.schemas.common import ClientSummary, NonEmptyStr, TicketIdStr, UserSummary
from helpdesk.schemas.service_tag import ServiceTagSummary


class TicketRead(BaseModel):
    id: str
    title: str
    description: str
    status: TicketStatus
    priority: TicketPriority
    source: TicketSource
    client_id: UUID
    client: ClientSummary | None = None
    reported_by: UUID | None = None
    reporter: UserSummary | None = None
    assigned_to: UUID | None = None
    assignee: UserSummary | None = None
    approved_by: UUID | None = None
    approved_at: datetime | None = None
    rejected_by: UUID | None = None
    rejected_at: datetime | None = None
    rejection_reason: str | None = None
    photo_url: list[str] | None = None
    time_open: datetime | None = None
    time_closed: datetime | None = None
    is_public_submission: bool = False
    client_was_new: bool = False
    contact_name: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    service_tags: list[ServiceTagSummary] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TicketCreate(BaseModel):
    title: NonEmptyStr
    description: NonEmptyStr
    client_id: UUID
    priority: TicketPriority = DEFAULT_TICKET_PRIORITY
    source: TicketSource = DEFAULT_TICKET_SOURCE
    service_tag_ids: list[UUID] = Field(default_factory=list)
    assigned_to: UUID | None = None
    photo_url: list[str] | None = None


class TicketUpdateRequest(BaseModel):
    """
    Partial update. Only fields present in the body are applied; an explicit
    `"assigned_to": null` unassigns.
    """
    title: NonEmptyStr | None = None
    description: NonEmptyStr | None = None
    status: TicketStatus | None = None
    priority: TicketPriority | None = None
    source: TicketSource | None = None
    photo_url: list[str] | None = None
    assigned_to: UUID | None = None
    service_tag_ids: list[UUID] | None = None


class TicketStatusUpdate(BaseModel):
    status: TicketStatus


class TicketAssignmentUpdate(BaseModel):
    assigned_to: UUID | None = None


class TicketServiceTagAttach(BaseModel):
    service_tag_id: UUID


class TicketHistoryEntry(BaseModel):
    id: int
    ticket_id: TicketIdStr
    user_id: UUID | None = None
    user_name: str | None = None
    message: str
    update_type: TicketUpdateType
    created_at: datetime


class TicketApprovalRequest(BaseModel):
    approved: bool
    rejection_reason: str | None = Field(default=None, max_length=2000)


class TicketApprovalResult(BaseModel):
    success: bool = True
    ticket_id: str
    status: TicketStatus
    approved: bool
    message: str


class PendingApprovalTicket(BaseModel):
    ticket_id: str
    title: str
    description: str
    priority: TicketPriority
    source: TicketSource
    company_name: str
    contact_name: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    service_tags: list[str] = Field(default_factory=list)
    client_was_new: bool
    is_public_submission: bool
    created_at: datetime
