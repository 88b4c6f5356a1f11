"""Service tag (client hardware/asset) service."""

from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException
from sqlalchemy.orm import Session, joinedload

from helpdesk.core.permissions import can_access_client
from helpdesk.db.models import ServiceTag, TicketServiceTag
from helpdesk.schemas.auth import UserSession
from helpdesk.schemas.service_tag import ServiceTagCreate, ServiceTagUpdate
from helpdesk.services import client_service

# Defaults for tags created on the fly by public intake
PLACEHOLDER_DESCRIPTION = "Created from a public ticket submission"
PLACEHOLDER_HARDWARE_TYPE = "Unknown"
PLACEHOLDER_LOCATION = "Unknown"


def get_service_tag(db: Session, service_tag_id: UUID) -> ServiceTag:
    tag = db.get(ServiceTag, service_tag_id)
    if not tag:
        raise HTTPException(status_code=404, detail="Service tag not found")
    return tag


def find_by_tag(db: Session, *, client_id: UUID, tag: str) -> ServiceTag | None:
    return (
        db.query(ServiceTag)
        .filter(ServiceTag.client_id == client_id, ServiceTag.tag == tag)
        .first()
    )


def _ensure_unique(db: Session, *, client_id: UUID, tag: str, exclude_id: UUID | None = None) -> None:
    existing = find_by_tag(db, client_id=client_id, tag=tag)
    if existing and existing.id != exclude_id:
        raise HTTPException(
            status_code=400,
            detail=f"Service tag '{tag}' already exists for this client",
        )


def list_service_tags(db: Session) -> list[ServiceTag]:
    return (
        db.query(ServiceTag)
        .options(joinedload(ServiceTag.client))
        .order_by(ServiceTag.created_at.desc())
        .all()
    )


def list_for_client(db: Session, client_id: UUID) -> list[ServiceTag]:
    return (
        db.query(ServiceTag)
        .filter(ServiceTag.client_id == client_id)
        .order_by(ServiceTag.tag.asc())
        .all()
    )


def list_for_ticket(db: Session, ticket_id: str) -> list[ServiceTag]:
    return (
        db.query(ServiceTag)
        .join(TicketServiceTag, TicketServiceTag.service_tag_id == ServiceTag.id)
        .filter(TicketServiceTag.ticket_id == ticket_id)
        .order_by(TicketServiceTag.created_at.asc())
        .all()
    )


def create_service_tag(db: Session, *, data: ServiceTagCreate) -> ServiceTag:
    client_service.get_client(db, data.client_id)
    _ensure_unique(db, client_id=data.client_id, tag=data.tag)
    tag = ServiceTag(
        tag=data.tag,
        description=data.description,
        hardware_type=data.hardware_type,
        location=data.location,
        client_id=data.client_id,
    )
    db.add(tag)
    db.commit()
    db.refresh(tag)
    return tag


def update_service_tag(db: Session, *, service_tag_id: UUID, data: ServiceTagUpdate) -> ServiceTag:
    tag = get_service_tag(db, service_tag_id)
    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
    if "tag" in changes and changes["tag"] != tag.tag:
        _ensure_unique(db, client_id=tag.client_id, tag=changes["tag"], exclude_id=tag.id)
    for field, value in changes.items():
        setattr(tag, field, value)
    db.commit()
    db.refresh(tag)
    return tag


def delete_service_tag(db: Session, *, service_tag_id: UUID) -> None:
    """Refused while the tag is linked to any ticket."""
    tag = get_service_tag(db, service_tag_id)
    linked = (
        db.query(TicketServiceTag.id)
        .filter(TicketServiceTag.service_tag_id == tag.id)
        .first()
    )
    if linked:
        raise HTTPException(
            status_code=400,
            detail="Cannot delete a service tag that is linked to tickets",
        )
    db.delete(tag)
    db.commit()


def resolve_or_create(db: Session, *, client_id: UUID, tag: str) -> tuple[ServiceTag, bool]:
    """
    Find a tag by name inside a client or create it with placeholder details.

    Flushes but does not commit. Returns (tag, was_new).
    """
    existing = find_by_tag(db, client_id=client_id, tag=tag)
    if existing:
        return existing, False
    created = ServiceTag(
        tag=tag,
        description=PLACEHOLDER_DESCRIPTION,
        hardware_type=PLACEHOLDER_HARDWARE_TYPE,
        location=PLACEHOLDER_LOCATION,
        client_id=client_id,
    )
    db.add(created)
    db.flush()
    return created, True


def get_service_tag_for_session(db: Session, *, session: UserSession, service_tag_id: UUID) -> ServiceTag:
    tag = get_service_tag(db, service_tag_id)
    if not can_access_client(session.role, session.client_id, tag.client_id):
        raise HTTPException(status_code=403, detail="Not authorized to access this service tag")
    return tag
