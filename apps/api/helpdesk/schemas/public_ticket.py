"""Public intake schemas."""

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, EmailStr, Field, field_validator

from helpdesk.db.enums import (
    DEFAULT_TICKET_PRIORITY,
    DEFAULT_TICKET_SOURCE,
    TicketPriority,
    TicketSource,
    TicketStatus,
)
from helpdesk.schemas.common import NonEmptyStr


class PublicTicketImage(BaseModel):
    filename: NonEmptyStr
    data: NonEmptyStr


class PublicTicketRequest(BaseModel):
    title: Annotated[NonEmptyStr, Field(max_length=255)]
    description: NonEmptyStr
    company_name: Annotated[NonEmptyStr, Field(max_length=255)]
    service_tag_names: list[Annotated[NonEmptyStr, Field(max_length=255)]] = Field(min_length=1)
    contact_name: Annotated[NonEmptyStr, Field(max_length=255)]
    contact_email: EmailStr
    contact_phone: Annotated[NonEmptyStr, Field(max_length=64)]
    priority: TicketPriority = DEFAULT_TICKET_PRIORITY
    source: TicketSource = DEFAULT_TICKET_SOURCE
    photo_url: list[str] | None = None
    images: list[PublicTicketImage] = Field(default_factory=list, max_length=10)

    @field_validator("photo_url", mode="before")
    @classmethod
    def _wrap_single_url(cls, value):
        if isinstance(value, str):
            return [value] if value.strip() else None
        return value


class PublicServiceTagResult(BaseModel):
    id: str
    tag: str
    was_new: bool


class PublicTicketResult(BaseModel):
    ticket_id: str
    status: TicketStatus
    company_name: str
    client_was_new: bool
    service_tags: list[PublicServiceTagResult]
    message: str
    created_at: datetime | None = None


class PublicTicketResponse(BaseModel):
    success: Literal[True] = True
    data: PublicTicketResult
