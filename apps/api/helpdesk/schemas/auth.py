"""Authentication-related Pydantic schemas."""

from uuid import UUID

from pydantic import BaseModel

from helpdesk.db.enums import Role


class TokenPayload(BaseModel):
    """Decoded JWT payload structure."""
    sub: UUID  # user_id
    role: str


class UserSession(BaseModel):
    """
    Session context for authenticated requests.

    Returned by the get_current_session dependency. Role is re-read from the
    mirrored user row on every request, never trusted from the token.
    """
    user_id: UUID
    role: Role
    client_id: UUID | None = None
    email: str
    name: str


class SessionResponse(BaseModel):
    """Response schema for GET /auth/session."""
    authenticated: bool
    user_id: UUID | None = None
    role: Role | None = None
    client_id: UUID | None = None
    email: str | None = None
    name: str | None = None


class DevLoginRequest(BaseModel):
    email: str


class DevLoginResponse(BaseModel):
    token: str
    user_id: UUID
    role: Role
