"""Dev-only endpoints. Mounted only when ENV=dev."""

from fastapi import APIRouter, Depends, Header, HTTPException, Response
from sqlalchemy import func
from sqlalchemy.orm import Session

from helpdesk.core.config import settings
from helpdesk.core.deps import COOKIE_NAME, get_db
from helpdesk.core.security import create_session_token
from helpdesk.db.models import User
from helpdesk.schemas.auth import DevLoginRequest, DevLoginResponse

router = APIRouter()


def verify_dev_secret(x_dev_secret: str = Header(...)):
    if x_dev_secret != settings.DEV_SECRET:
        raise HTTPException(status_code=403, detail="Invalid dev secret")


@router.post("/login", response_model=DevLoginResponse, dependencies=[Depends(verify_dev_secret)])
def dev_login(
    body: DevLoginRequest,
    response: Response,
    db: Session = Depends(get_db),
) -> DevLoginResponse:
    """Mint a session for an existing user and set the session cookie."""
    user = db.query(User).filter(func.lower(User.email) == body.email.lower()).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if user.is_disabled:
        raise HTTPException(status_code=403, detail="Account disabled")
    token = create_session_token(user.id, user.role.value)
    response.set_cookie(
        COOKIE_NAME,
        token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        max_age=settings.JWT_EXPIRES_HOURS * 3600,
    )
    return DevLoginResponse(token=token, user_id=user.id, role=user.role)
