"""Service tag schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from helpdesk.schemas.common import ClientSummary, NonEmptyStr


class ServiceTagSummary(BaseModel):
    id: UUID
    tag: str
    hardware_type: str
    location: str

    model_config = {"from_attributes": True}


class ServiceTagRead(BaseModel):
    id: UUID
    tag: str
    description: str
    hardware_type: str
    location: str
    client_id: UUID
    client: ClientSummary | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ServiceTagCreate(BaseModel):
    tag: NonEmptyStr
    description: NonEmptyStr
    hardware_type: NonEmptyStr
    location: NonEmptyStr
    client_id: UUID


class ServiceTagUpdate(BaseModel):
    tag: NonEmptyStr | None = None
    description: NonEmptyStr | None = None
    hardware_type: NonEmptyStr | None = None
    location: NonEmptyStr | None = None
