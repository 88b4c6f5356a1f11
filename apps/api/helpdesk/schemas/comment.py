"""Comment schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from helpdesk.db.enums import Role
from helpdesk.schemas.common import NonEmptyStr, TicketIdStr


class CommentRead(BaseModel):
    id: UUID
    ticket_id: str
    user_id: UUID | None = None
    user_name: str
    user_role: Role
    content: str
    photo_urls: list[str] | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class CommentFile(BaseModel):
    """Base64 file payload (data URL or bare base64 with content_type)."""
    filename: NonEmptyStr
    data: NonEmptyStr
    content_type: str | None = None


class CommentCreate(BaseModel):
    ticket_id: TicketIdStr
    content: NonEmptyStr
    photo_urls: list[str] | None = None
    files: list[CommentFile] = Field(default_factory=list, max_length=10)
