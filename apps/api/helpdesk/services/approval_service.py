"""Approval workflow for publicly submitted tickets."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import HTTPException
from sqlalchemy.orm import Session, selectinload

from helpdesk.core.structured_logging import build_log_context
from helpdesk.db.enums import TicketStatus, TicketUpdateType
from helpdesk.db.models import Ticket, TicketServiceTag
from helpdesk.db.models._types import utcnow
from helpdesk.schemas.auth import UserSession
from helpdesk.services.ticket_service import get_ticket, record_update

logger = logging.getLogger(__name__)


def is_eligible(ticket: Ticket) -> bool:
    """Pending approval and not already rejected."""
    return ticket.status == TicketStatus.PENDING_APPROVAL and ticket.rejected_at is None


def list_pending(db: Session) -> list[dict[str, Any]]:
    """Tickets awaiting a decision, oldest first."""
    tickets = (
        db.query(Ticket)
        .options(
            selectinload(Ticket.client),
            selectinload(Ticket.service_tag_links).selectinload(TicketServiceTag.service_tag),
        )
        .filter(
            Ticket.status == TicketStatus.PENDING_APPROVAL,
            Ticket.rejected_at.is_(None),
        )
        .order_by(Ticket.created_at.asc())
        .all()
    )
    return [
        {
            "ticket_id": ticket.id,
            "title": ticket.title,
            "description": ticket.description,
            "priority": ticket.priority,
            "source": ticket.source,
            "company_name": ticket.client.company_name,
            "contact_name": ticket.contact_name,
            "contact_email": ticket.contact_email,
            "contact_phone": ticket.contact_phone,
            "service_tags": [tag.tag for tag in ticket.service_tags],
            "client_was_new": ticket.client_was_new,
            "is_public_submission": ticket.is_public_submission,
            "created_at": ticket.created_at,
        }
        for ticket in tickets
    ]


def decide(
    db: Session,
    *,
    session: UserSession,
    ticket_id: str,
    approved: bool,
    rejection_reason: str | None = None,
) -> Ticket:
    """
    Approve (pending_approval -> open) or reject a pending ticket.

    Rejection keeps the status at pending_approval and records who rejected it
    and why; a rejected ticket is no longer eligible for a decision.

    Raises:
        HTTPException 400: Ticket not eligible for approval
    """
    ticket = get_ticket(db, ticket_id)
    if not is_eligible(ticket):
        raise HTTPException(
            status_code=400,
            detail=f"Ticket {ticket.id} is not eligible for approval",
        )

    now = utcnow()
    if approved:
        ticket.status = TicketStatus.OPEN
        ticket.approved_by = session.user_id
        ticket.approved_at = now
        ticket.time_open = now
        message = "Ticket approved"
    else:
        reason = (rejection_reason or "").strip() or None
        ticket.rejected_by = session.user_id
        ticket.rejected_at = now
        ticket.rejection_reason = reason
        message = f"Ticket rejected: {reason}" if reason else "Ticket rejected"

    ticket.updated_at = now
    record_update(
        db,
        ticket_id=ticket.id,
        user_id=session.user_id,
        message=message,
        update_type=TicketUpdateType.APPROVAL,
    )
    db.commit()
    logger.info(
        "Ticket approval decision recorded",
        extra={
            **build_log_context(user_id=str(session.user_id), ticket_id=ticket.id),
            "approved": approved,
        },
    )
    return get_ticket(db, ticket.id)
