"""FastAPI dependencies for authentication, authorization, and database access."""

from typing import Generator
from uuid import UUID

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from helpdesk.core.permissions import Action, authorize
from helpdesk.core.security import decode_session_token
from helpdesk.db.session import SessionLocal


# Cookie and header names
COOKIE_NAME = "helpdesk_session"
CSRF_HEADER = "X-Requested-With"
CSRF_HEADER_VALUE = "XMLHttpRequest"


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _read_token(request: Request) -> str | None:
    """Session token from the cookie, else from `Authorization: Bearer`."""
    token = request.cookies.get(COOKIE_NAME)
    if token:
        return token
    auth_header = request.headers.get("Authorization", "")
    scheme, _, value = auth_header.partition(" ")
    if scheme.lower() == "bearer" and value:
        return value.strip()
    return None


def get_current_user(request: Request, db: Session = Depends(get_db)):
    """
    Get authenticated user from the session token.

    Validates:
    - Token exists
    - JWT is valid and not expired
    - User exists and is not disabled

    Raises:
        HTTPException 401: Authentication failed
    """
    # Import here to avoid circular imports
    from helpdesk.db.models import User

    token = _read_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        payload = decode_session_token(token)
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid session")

    try:
        user_id = UUID(str(payload.get("sub")))
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid session")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    if user.is_disabled:
        raise HTTPException(status_code=401, detail="Account disabled")

    return user


def get_current_session(request: Request, db: Session = Depends(get_db)):
    """
    Get session context: user_id, role, client_id.

    This is the PRIMARY auth dependency for most endpoints.

    Raises:
        HTTPException 401: Not authenticated
        HTTPException 403: Unknown role
    """
    from helpdesk.db.enums import Role
    from helpdesk.schemas.auth import UserSession

    user = get_current_user(request, db)

    # Validate role is a known enum value - return 403 not 500
    role_value = user.role.value if hasattr(user.role, "value") else str(user.role)
    if not Role.has_value(role_value):
        raise HTTPException(
            status_code=403,
            detail=f"Unknown role '{role_value}'. Contact administrator.",
        )

    return UserSession(
        user_id=user.id,
        role=Role(role_value),
        client_id=user.client_id,
        email=user.email,
        name=user.name,
    )


def get_optional_session(request: Request, db: Session = Depends(get_db)):
    """Like get_current_session, but returns None for anonymous callers."""
    if not _read_token(request):
        return None
    try:
        return get_current_session(request, db)
    except HTTPException as exc:
        if exc.status_code == 401:
            return None
        raise


def require_action(action: Action):
    """
    Dependency factory for the role/action rule table.

    Usage:
        @router.post("", dependencies=[Depends(require_action(Action.CLIENTS_CREATE))])
    """
    def dependency(request: Request, db: Session = Depends(get_db)):
        session = get_current_session(request, db)
        decision = authorize(session.role, action)
        if not decision.allowed:
            raise HTTPException(status_code=403, detail=decision.reason)
        return session
    return dependency


def require_csrf_header(request: Request) -> None:
    """
    Verify CSRF header on cookie-authenticated mutations.

    Bearer-token callers are not exposed to CSRF and skip the check.

    Raises:
        HTTPException 403: Missing or invalid CSRF header
    """
    if not request.cookies.get(COOKIE_NAME):
        return
    if request.headers.get(CSRF_HEADER) != CSRF_HEADER_VALUE:
        raise HTTPException(
            status_code=403,
            detail=f"Missing CSRF header. Include '{CSRF_HEADER}: {CSRF_HEADER_VALUE}'",
        )
