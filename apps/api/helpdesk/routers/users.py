"""User management endpoints."""

from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from helpdesk.core.deps import get_current_session, get_db, require_action, require_csrf_header
from helpdesk.core.permissions import Action
from helpdesk.db.enums import Role
from helpdesk.schemas.auth import UserSession
from helpdesk.schemas.common import MessageResponse
from helpdesk.schemas.user import (
    AssignableUser,
    UserCreate,
    UserCreateResponse,
    UserRead,
    UserStatusUpdate,
    UserUpdate,
)
from helpdesk.services import email_service, user_service

router = APIRouter()


@router.get("/me", response_model=UserRead)
def get_me(
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
) -> UserRead:
    return UserRead.model_validate(user_service.get_user(db, session.user_id))


@router.get("", response_model=list[UserRead])
def list_users(
    role: Role | None = None,
    db: Session = Depends(get_db),
    session: UserSession = Depends(require_action(Action.USERS_VIEW)),
) -> list[UserRead]:
    return [UserRead.model_validate(u) for u in user_service.list_users(db, role=role)]


@router.get("/assignable", response_model=list[AssignableUser])
def list_assignable(
    db: Session = Depends(get_db),
    session: UserSession = Depends(require_action(Action.USERS_VIEW)),
) -> list[AssignableUser]:
    return [AssignableUser.model_validate(u) for u in user_service.list_assignable(db)]


@router.get("/{user_id}", response_model=UserRead)
def get_user(
    user_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(require_action(Action.USERS_VIEW)),
) -> UserRead:
    return UserRead.model_validate(user_service.get_user(db, user_id))


@router.post(
    "",
    response_model=UserCreateResponse,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
async def create_user(
    body: UserCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    session: UserSession = Depends(require_action(Action.USERS_CREATE)),
) -> UserCreateResponse:
    """Create a user; the welcome email is sent after the response."""
    user, password = await user_service.create_user(db, session=session, data=body)
    client_name = user.client.name if user.client else None
    background_tasks.add_task(
        email_service.send_welcome_email_task,
        to=user.email,
        password=password,
        client_name=client_name or user.name,
    )
    return UserCreateResponse(user=UserRead.model_validate(user), welcome_email_queued=True)


@router.patch("/{user_id}", response_model=UserRead, dependencies=[Depends(require_csrf_header)])
async def update_user(
    user_id: UUID,
    body: UserUpdate,
    db: Session = Depends(get_db),
    session: UserSession = Depends(require_action(Action.USERS_UPDATE)),
) -> UserRead:
    user = await user_service.update_user(
        db, session=session, user_id=user_id, changes=body.model_dump(exclude_unset=True)
    )
    return UserRead.model_validate(user)


@router.patch("/{user_id}/status", response_model=UserRead, dependencies=[Depends(require_csrf_header)])
async def set_user_status(
    user_id: UUID,
    body: UserStatusUpdate,
    db: Session = Depends(get_db),
    session: UserSession = Depends(require_action(Action.USERS_DISABLE)),
) -> UserRead:
    user = await user_service.set_disabled(
        db, session=session, user_id=user_id, is_disabled=body.is_disabled
    )
    return UserRead.model_validate(user)


@router.delete("/{user_id}", response_model=MessageResponse, dependencies=[Depends(require_csrf_header)])
async def delete_user(
    user_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(require_action(Action.USERS_DELETE)),
) -> MessageResponse:
    await user_service.delete_user(db, session=session, user_id=user_id)
    return MessageResponse(message="User deleted")
