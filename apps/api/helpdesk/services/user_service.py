"""User management: identity provider account plus mirrored user row."""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from helpdesk.core.permissions import can_manage_target
from helpdesk.core.security import generate_password
from helpdesk.core.structured_logging import build_log_context
from helpdesk.db.enums import ROLES_ASSIGNABLE, Role
from helpdesk.db.models import Client, Ticket, User
from helpdesk.schemas.auth import UserSession
from helpdesk.schemas.user import UserCreate
from helpdesk.services import identity_service
from helpdesk.services.identity_service import IdentityProviderError

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: UUID) -> User:
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def list_users(db: Session, *, role: Role | None = None) -> list[User]:
    query = db.query(User)
    if role is not None:
        query = query.filter(User.role == role)
    return query.order_by(User.created_at.desc()).all()


def list_assignable(db: Session) -> list[User]:
    """Enabled users that tickets can be assigned to."""
    return (
        db.query(User)
        .filter(User.role.in_(list(ROLES_ASSIGNABLE)), User.is_disabled.is_(False))
        .order_by(User.name.asc())
        .all()
    )


def _guard_target(session: UserSession, target_role: Role) -> None:
    decision = can_manage_target(session.role, target_role)
    if not decision.allowed:
        raise HTTPException(status_code=403, detail=decision.reason)


def _ensure_email_free(db: Session, email: str, *, exclude_id: UUID | None = None) -> None:
    existing = db.query(User).filter(func.lower(User.email) == email.lower()).first()
    if existing and existing.id != exclude_id:
        raise HTTPException(status_code=400, detail="A user with this email already exists")


async def create_user(db: Session, *, session: UserSession, data: UserCreate) -> tuple[User, str]:
    """
    Create the identity account, then the mirrored row.

    Returns (user, password) so the caller can send the welcome email.
    If the row cannot be written, the identity account is removed again.
    """
    _guard_target(session, data.role)
    if data.role == Role.CLIENT:
        if db.get(Client, data.client_id) is None:
            raise HTTPException(status_code=400, detail="Client not found")
    email = str(data.email)
    _ensure_email_free(db, email)
    password = data.password or generate_password()

    try:
        identity_id = await identity_service.create_user(
            email=email, password=password, name=data.name, role=data.role.value
        )
    except IdentityProviderError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    user = User(
        id=identity_id,
        email=email,
        name=data.name,
        role=data.role,
        client_id=data.client_id if data.role == Role.CLIENT else None,
    )
    try:
        db.add(user)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("User row insert failed, removing identity account")
        try:
            await identity_service.delete_user(identity_id)
        except IdentityProviderError:
            logger.exception("Failed to remove orphaned identity account %s", identity_id)
        raise HTTPException(status_code=500, detail="Failed to create user") from exc

    db.refresh(user)
    logger.info(
        "User created",
        extra={**build_log_context(user_id=str(session.user_id)), "target_user_id": str(user.id)},
    )
    return user, password


async def update_user(
    db: Session,
    *,
    session: UserSession,
    user_id: UUID,
    changes: dict[str, Any],
) -> User:
    """Update name/email. Role is immutable after creation."""
    user = get_user(db, user_id)
    _guard_target(session, user.role)
    if changes.get("role") is not None and changes["role"] != user.role:
        raise HTTPException(status_code=403, detail="User role cannot be changed")

    name = changes.get("name")
    email = str(changes["email"]) if changes.get("email") is not None else None
    if email is not None and email.lower() == user.email.lower():
        email = None
    if email is not None:
        _ensure_email_free(db, email, exclude_id=user.id)
    if name == user.name:
        name = None
    if name is None and email is None:
        return user

    try:
        await identity_service.update_user(user.id, email=email, name=name)
    except IdentityProviderError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    if name is not None:
        user.name = name
    if email is not None:
        user.email = email
    db.commit()
    db.refresh(user)
    return user


async def set_disabled(db: Session, *, session: UserSession, user_id: UUID, is_disabled: bool) -> User:
    user = get_user(db, user_id)
    _guard_target(session, user.role)
    if user.id == session.user_id and is_disabled:
        raise HTTPException(status_code=400, detail="You cannot disable your own account")
    if user.is_disabled == is_disabled:
        return user

    try:
        await identity_service.set_disabled(user.id, is_disabled)
    except IdentityProviderError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    user.is_disabled = is_disabled
    db.commit()
    db.refresh(user)
    logger.info(
        "User %s", "disabled" if is_disabled else "enabled",
        extra={**build_log_context(user_id=str(session.user_id)), "target_user_id": str(user.id)},
    )
    return user


def count_assigned_tickets(db: Session, user_id: UUID) -> int:
    return db.query(func.count(Ticket.id)).filter(Ticket.assigned_to == user_id).scalar() or 0


async def delete_user(db: Session, *, session: UserSession, user_id: UUID) -> None:
    """Refused while the user still has assigned tickets."""
    user = get_user(db, user_id)
    _guard_target(session, user.role)
    if user.id == session.user_id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    assigned = count_assigned_tickets(db, user.id)
    if assigned:
        raise HTTPException(
            status_code=400,
            detail=f"Cannot delete user with {assigned} assigned ticket(s). Reassign them first.",
        )

    try:
        await identity_service.delete_user(user.id)
    except IdentityProviderError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    db.delete(user)
    db.commit()
    logger.info(
        "User deleted",
        extra={**build_log_context(user_id=str(session.user_id)), "target_user_id": str(user_id)},
    )
