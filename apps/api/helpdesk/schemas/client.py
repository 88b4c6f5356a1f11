"""Client schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr

from helpdesk.schemas.common import NonEmptyStr


class ClientRead(BaseModel):
    id: UUID
    name: str
    company_name: str
    email: str
    phone: str
    address: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ClientListItem(ClientRead):
    service_tags_count: int = 0
    tickets_count: int = 0


class ClientCreate(BaseModel):
    name: NonEmptyStr
    company_name: NonEmptyStr
    email: EmailStr
    phone: NonEmptyStr
    address: str | None = None


class ClientUpdate(BaseModel):
    name: NonEmptyStr | None = None
    company_name: NonEmptyStr | None = None
    email: EmailStr | None = None
    phone: NonEmptyStr | None = None
    address: str | None = None
