"""Ticket service: ids, CRUD, assignment, service tag links and history."""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from fastapi import HTTPException
from sqlalchemy.orm import Session, selectinload

from helpdesk.core.permissions import Action, authorize, can_access_client, is_staff
from helpdesk.core.structured_logging import build_log_context
from helpdesk.core.ticket_states import InvalidTransition, check_status_change, closes_ticket
from helpdesk.db.enums import (
    DEFAULT_TICKET_STATUS,
    ROLES_ASSIGNABLE,
    TicketStatus,
    TicketUpdateType,
)
from helpdesk.db.models import (
    Counter,
    ServiceTag,
    Ticket,
    TicketServiceTag,
    TicketUpdate,
    User,
)
from helpdesk.db.models._types import utcnow
from helpdesk.schemas.auth import UserSession
from helpdesk.schemas.ticket import TicketCreate
from helpdesk.services import client_service

logger = logging.getLogger(__name__)

TICKET_COUNTER = "ticket"
TICKET_ID_PREFIX = "TK-"

EDITABLE_FIELDS = ("title", "description", "priority", "source", "photo_url")


# =============================================================================
# Ids and history
# =============================================================================

def format_ticket_id(number: int) -> str:
    return f"{TICKET_ID_PREFIX}{number:06d}"


def generate_ticket_id(db: Session) -> str:
    """Next sequential ticket id from the counters table (flushes, no commit)."""
    counter = (
        db.query(Counter)
        .filter(Counter.name == TICKET_COUNTER)
        .with_for_update()
        .first()
    )
    if counter is None:
        counter = Counter(name=TICKET_COUNTER, current_value=0)
        db.add(counter)
    counter.current_value += 1
    db.flush()
    return format_ticket_id(counter.current_value)


def record_update(
    db: Session,
    *,
    ticket_id: str,
    user_id: UUID | None,
    message: str,
    update_type: TicketUpdateType,
) -> TicketUpdate:
    """Append a history entry to the current transaction."""
    entry = TicketUpdate(
        ticket_id=ticket_id,
        user_id=user_id,
        message=message,
        update_type=update_type,
    )
    db.add(entry)
    return entry


def get_history(db: Session, ticket_id: str) -> list[dict[str, Any]]:
    """History entries oldest first, with the author's current name."""
    rows = (
        db.query(TicketUpdate, User.name)
        .outerjoin(User, User.id == TicketUpdate.user_id)
        .filter(TicketUpdate.ticket_id == ticket_id)
        .order_by(TicketUpdate.id.asc())
        .all()
    )
    return [
        {
            "id": entry.id,
            "ticket_id": entry.ticket_id,
            "user_id": entry.user_id,
            "user_name": user_name,
            "message": entry.message,
            "update_type": entry.update_type,
            "created_at": entry.created_at,
        }
        for entry, user_name in rows
    ]


# =============================================================================
# Reads
# =============================================================================

def _ticket_query(db: Session):
    return db.query(Ticket).options(
        selectinload(Ticket.client),
        selectinload(Ticket.assignee),
        selectinload(Ticket.reporter),
        selectinload(Ticket.service_tag_links).selectinload(TicketServiceTag.service_tag),
    )


def get_ticket(db: Session, ticket_id: str) -> Ticket:
    ticket = _ticket_query(db).filter(Ticket.id == ticket_id).first()
    if not ticket:
        raise HTTPException(status_code=404, detail=f"Ticket {ticket_id} not found")
    return ticket


def ensure_can_view(session: UserSession, ticket: Ticket) -> None:
    """Client users may only read tickets of their own client."""
    if not can_access_client(session.role, session.client_id, ticket.client_id):
        raise HTTPException(status_code=403, detail="Not authorized to access this ticket")


def get_ticket_for_session(db: Session, *, session: UserSession, ticket_id: str) -> Ticket:
    ticket = get_ticket(db, ticket_id)
    ensure_can_view(session, ticket)
    return ticket


def list_tickets(
    db: Session,
    *,
    status: TicketStatus | None = None,
    priority: str | None = None,
    assigned_to: UUID | None = None,
    client_id: UUID | None = None,
) -> list[Ticket]:
    query = _ticket_query(db)
    if status is not None:
        query = query.filter(Ticket.status == status)
    if priority is not None:
        query = query.filter(Ticket.priority == priority)
    if assigned_to is not None:
        query = query.filter(Ticket.assigned_to == assigned_to)
    if client_id is not None:
        query = query.filter(Ticket.client_id == client_id)
    return query.order_by(Ticket.created_at.desc()).all()


def list_for_service_tag(db: Session, service_tag_id: UUID) -> list[Ticket]:
    return (
        _ticket_query(db)
        .join(TicketServiceTag, TicketServiceTag.ticket_id == Ticket.id)
        .filter(TicketServiceTag.service_tag_id == service_tag_id)
        .order_by(Ticket.created_at.desc())
        .all()
    )


# =============================================================================
# Validation helpers
# =============================================================================

def _validate_assignee(db: Session, user_id: UUID) -> User:
    """Assignee must exist, be enabled and hold a staff role."""
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=400, detail="Assignee not found")
    if user.is_disabled:
        raise HTTPException(status_code=400, detail="Cannot assign a ticket to a disabled user")
    if user.role not in ROLES_ASSIGNABLE:
        raise HTTPException(
            status_code=400,
            detail=f"Users with role '{user.role.value}' cannot be assigned tickets",
        )
    return user


def _load_service_tags(db: Session, *, client_id: UUID, service_tag_ids: list[UUID]) -> list[ServiceTag]:
    """Resolve tag ids, requiring each to exist and belong to the ticket's client."""
    unique_ids = list(dict.fromkeys(service_tag_ids))
    if not unique_ids:
        return []
    tags = db.query(ServiceTag).filter(ServiceTag.id.in_(unique_ids)).all()
    by_id = {tag.id: tag for tag in tags}
    missing = [str(tag_id) for tag_id in unique_ids if tag_id not in by_id]
    if missing:
        raise HTTPException(status_code=400, detail=f"Service tag not found: {', '.join(missing)}")
    foreign = [by_id[tag_id].tag for tag_id in unique_ids if by_id[tag_id].client_id != client_id]
    if foreign:
        raise HTTPException(
            status_code=400,
            detail=f"Service tags do not belong to the ticket's client: {', '.join(foreign)}",
        )
    return [by_id[tag_id] for tag_id in unique_ids]


def _require(session: UserSession, action: Action) -> None:
    decision = authorize(session.role, action)
    if not decision.allowed:
        raise HTTPException(status_code=403, detail=decision.reason)


# =============================================================================
# Writes
# =============================================================================

def create_ticket(db: Session, *, session: UserSession, data: TicketCreate) -> Ticket:
    """Direct creation by an authenticated user: status open, reporter = caller."""
    if not is_staff(session.role) and data.client_id != session.client_id:
        raise HTTPException(status_code=403, detail="Clients can only create tickets for their own company")
    if data.assigned_to is not None:
        _require(session, Action.TICKETS_ASSIGN)
    client = client_service.get_client(db, data.client_id)
    tags = _load_service_tags(db, client_id=client.id, service_tag_ids=data.service_tag_ids)
    assignee = _validate_assignee(db, data.assigned_to) if data.assigned_to else None

    now = utcnow()
    ticket = Ticket(
        id=generate_ticket_id(db),
        title=data.title,
        description=data.description,
        status=DEFAULT_TICKET_STATUS,
        priority=data.priority,
        source=data.source,
        client_id=client.id,
        reported_by=session.user_id,
        assigned_to=assignee.id if assignee else None,
        photo_url=data.photo_url or None,
        time_open=now,
    )
    db.add(ticket)
    db.flush()
    for tag in tags:
        db.add(TicketServiceTag(ticket_id=ticket.id, service_tag_id=tag.id))
    record_update(
        db,
        ticket_id=ticket.id,
        user_id=session.user_id,
        message="Ticket created",
        update_type=TicketUpdateType.OTHER,
    )
    if assignee:
        record_update(
            db,
            ticket_id=ticket.id,
            user_id=session.user_id,
            message=f"Assigned to {assignee.name}",
            update_type=TicketUpdateType.ASSIGNED_CHANGE,
        )
    db.commit()
    logger.info(
        "Ticket created",
        extra=build_log_context(user_id=str(session.user_id), ticket_id=ticket.id),
    )
    return get_ticket(db, ticket.id)


def update_ticket(
    db: Session,
    *,
    session: UserSession,
    ticket_id: str,
    changes: dict[str, Any],
) -> Ticket:
    """
    Apply a partial update.

    `changes` holds only the fields the caller sent; `assigned_to: None`
    unassigns and `service_tag_ids` replaces the linked set. Each effective
    change appends a categorized history entry.
    """
    ticket = get_ticket(db, ticket_id)
    now = utcnow()
    entries: list[tuple[str, TicketUpdateType]] = []

    if changes.get("status") is not None:
        target = TicketStatus(changes["status"])
        try:
            check_status_change(ticket.status, target)
        except InvalidTransition as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        if target != ticket.status:
            previous = ticket.status
            ticket.status = target
            if closes_ticket(target):
                if not closes_ticket(previous) or ticket.time_closed is None:
                    ticket.time_closed = now
            else:
                ticket.time_closed = None
            entries.append(
                (f"Status changed from {previous.value} to {target.value}", TicketUpdateType.STATUS_CHANGE)
            )

    if "assigned_to" in changes:
        _require(session, Action.TICKETS_ASSIGN)
        assignee_id = changes["assigned_to"]
        if assignee_id != ticket.assigned_to:
            if assignee_id is None:
                ticket.assigned_to = None
                entries.append(("Ticket unassigned", TicketUpdateType.ASSIGNED_CHANGE))
            else:
                assignee = _validate_assignee(db, assignee_id)
                ticket.assigned_to = assignee.id
                entries.append((f"Assigned to {assignee.name}", TicketUpdateType.ASSIGNED_CHANGE))

    changed_fields = []
    for field in EDITABLE_FIELDS:
        if field not in changes:
            continue
        value = changes[field]
        if value is None and field != "photo_url":
            continue
        if getattr(ticket, field) != value:
            setattr(ticket, field, value)
            changed_fields.append(field)
    if changed_fields:
        entries.append((f"Updated {', '.join(changed_fields)}", TicketUpdateType.OTHER))

    if changes.get("service_tag_ids") is not None:
        _require(session, Action.TICKETS_MANAGE_TAGS)
        tags = _load_service_tags(db, client_id=ticket.client_id, service_tag_ids=changes["service_tag_ids"])
        wanted = {tag.id for tag in tags}
        current = {link.service_tag_id: link for link in ticket.service_tag_links}
        removed = [link for tag_id, link in current.items() if tag_id not in wanted]
        added = [tag for tag in tags if tag.id not in current]
        for link in removed:
            ticket.service_tag_links.remove(link)
        for tag in added:
            ticket.service_tag_links.append(TicketServiceTag(service_tag_id=tag.id))
        if removed or added:
            entries.append(("Service tags updated", TicketUpdateType.OTHER))

    if not entries:
        return ticket

    ticket.updated_at = now
    for message, update_type in entries:
        record_update(
            db,
            ticket_id=ticket.id,
            user_id=session.user_id,
            message=message,
            update_type=update_type,
        )
    db.commit()
    logger.info(
        "Ticket updated",
        extra=build_log_context(user_id=str(session.user_id), ticket_id=ticket.id),
    )
    return get_ticket(db, ticket.id)


def add_service_tag(db: Session, *, session: UserSession, ticket_id: str, service_tag_id: UUID) -> Ticket:
    """Idempotent: attaching an already linked tag is a successful no-op."""
    ticket = get_ticket(db, ticket_id)
    tag = _load_service_tags(db, client_id=ticket.client_id, service_tag_ids=[service_tag_id])[0]
    if any(link.service_tag_id == tag.id for link in ticket.service_tag_links):
        return ticket
    ticket.service_tag_links.append(TicketServiceTag(service_tag_id=tag.id))
    ticket.updated_at = utcnow()
    record_update(
        db,
        ticket_id=ticket.id,
        user_id=session.user_id,
        message=f"Service tag {tag.tag} added",
        update_type=TicketUpdateType.OTHER,
    )
    db.commit()
    return get_ticket(db, ticket.id)


def remove_service_tag(db: Session, *, session: UserSession, ticket_id: str, service_tag_id: UUID) -> Ticket:
    """Detach exactly one pair; absent pairs are a no-op."""
    ticket = get_ticket(db, ticket_id)
    link = next(
        (link for link in ticket.service_tag_links if link.service_tag_id == service_tag_id),
        None,
    )
    if link is None:
        return ticket
    tag_name = link.service_tag.tag
    ticket.service_tag_links.remove(link)
    ticket.updated_at = utcnow()
    record_update(
        db,
        ticket_id=ticket.id,
        user_id=session.user_id,
        message=f"Service tag {tag_name} removed",
        update_type=TicketUpdateType.OTHER,
    )
    db.commit()
    return get_ticket(db, ticket.id)


def delete_ticket(db: Session, *, session: UserSession, ticket_id: str) -> None:
    ticket = get_ticket(db, ticket_id)
    db.delete(ticket)
    db.commit()
    logger.info(
        "Ticket deleted",
        extra=build_log_context(user_id=str(session.user_id), ticket_id=ticket_id),
    )
