"""User management schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, model_validator

from helpdesk.db.enums import Role
from helpdesk.schemas.common import NonEmptyStr


class UserRead(BaseModel):
    id: UUID
    name: str
    email: str
    role: Role
    client_id: UUID | None = None
    is_disabled: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AssignableUser(BaseModel):
    id: UUID
    name: str
    email: str
    role: Role

    model_config = {"from_attributes": True}


class UserCreate(BaseModel):
    """Password is generated when omitted; client_id only applies to clients."""
    email: EmailStr
    name: NonEmptyStr
    role: Role
    client_id: UUID | None = None
    password: str | None = Field(default=None, min_length=8, max_length=128)

    @model_validator(mode="after")
    def _client_binding(self):
        if self.role == Role.CLIENT and self.client_id is None:
            raise ValueError("client_id is required for users with role 'client'")
        if self.role != Role.CLIENT:
            self.client_id = None
        return self


class UserUpdate(BaseModel):
    name: NonEmptyStr | None = None
    email: EmailStr | None = None
    # Accepted only to reject role changes explicitly
    role: Role | None = None


class UserStatusUpdate(BaseModel):
    is_disabled: bool


class UserCreateResponse(BaseModel):
    user: UserRead
    welcome_email_queued: bool
