"""Shared schema fragments."""

from typing import Annotated
from uuid import UUID

from fastapi import Path
from pydantic import BaseModel, StringConstraints

TICKET_ID_PATTERN = r"^TK-\d{6}$"

TicketIdStr = Annotated[str, StringConstraints(pattern=TICKET_ID_PATTERN)]
TicketIdPath = Annotated[str, Path(pattern=TICKET_ID_PATTERN)]
NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class ClientSummary(BaseModel):
    id: UUID
    name: str
    company_name: str

    model_config = {"from_attributes": True}


class UserSummary(BaseModel):
    id: UUID
    name: str
    email: str

    model_config = {"from_attributes": True}


class MessageResponse(BaseModel):
    success: bool = True
    message: str
