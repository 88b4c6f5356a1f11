"""Session endpoints."""

from fastapi import APIRouter, Depends

from helpdesk.core.deps import get_optional_session
from helpdesk.schemas.auth import SessionResponse, UserSession

router = APIRouter()


@router.get("/session", response_model=SessionResponse)
def get_session(session: UserSession | None = Depends(get_optional_session)) -> SessionResponse:
    """Resolved session for the caller, or `authenticated: false`."""
    if session is None:
        return SessionResponse(authenticated=False)
    return SessionResponse(
        authenticated=True,
        user_id=session.user_id,
        role=session.role,
        client_id=session.client_id,
        email=session.email,
        name=session.name,
    )
