"""Ticket endpoints: CRUD, assignment, service tags, history and approval."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from helpdesk.core.deps import get_current_session, get_db, require_action, require_csrf_header
from helpdesk.core.permissions import Action
from helpdesk.db.enums import TicketPriority, TicketStatus
from helpdesk.schemas.auth import UserSession
from helpdesk.schemas.common import MessageResponse, TicketIdPath
from helpdesk.schemas.ticket import (
    PendingApprovalTicket,
    TicketApprovalRequest,
    TicketApprovalResult,
    TicketAssignmentUpdate,
    TicketCreate,
    TicketHistoryEntry,
    TicketRead,
    TicketServiceTagAttach,
    TicketStatusUpdate,
    TicketUpdateRequest,
)
from helpdesk.services import approval_service, client_service, service_tag_service, ticket_service

router = APIRouter()


def _read_all(tickets) -> list[TicketRead]:
    return [TicketRead.model_validate(t) for t in tickets]


@router.get("", response_model=list[TicketRead])
def list_tickets(
    status: TicketStatus | None = None,
    priority: TicketPriority | None = None,
    assigned_to: UUID | None = None,
    db: Session = Depends(get_db),
    session: UserSession = Depends(require_action(Action.TICKETS_VIEW_ALL)),
) -> list[TicketRead]:
    """All tickets, newest first."""
    return _read_all(
        ticket_service.list_tickets(db, status=status, priority=priority, assigned_to=assigned_to)
    )


@router.get("/pending-approval", response_model=list[PendingApprovalTicket])
def list_pending_approval(
    db: Session = Depends(get_db),
    session: UserSession = Depends(require_action(Action.TICKETS_APPROVE)),
) -> list[PendingApprovalTicket]:
    return [PendingApprovalTicket(**row) for row in approval_service.list_pending(db)]


@router.get("/by-client/{client_id}", response_model=list[TicketRead])
def list_by_client(
    client_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
) -> list[TicketRead]:
    """Staff, or a client user reading their own company's tickets."""
    client_service.get_client_for_session(db, session=session, client_id=client_id)
    return _read_all(ticket_service.list_tickets(db, client_id=client_id))


@router.get("/by-service-tag/{service_tag_id}", response_model=list[TicketRead])
def list_by_service_tag(
    service_tag_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
) -> list[TicketRead]:
    service_tag_service.get_service_tag_for_session(db, session=session, service_tag_id=service_tag_id)
    return _read_all(ticket_service.list_for_service_tag(db, service_tag_id))


@router.get("/{ticket_id}", response_model=TicketRead)
def get_ticket(
    ticket_id: TicketIdPath,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
) -> TicketRead:
    ticket = ticket_service.get_ticket_for_session(db, session=session, ticket_id=ticket_id)
    return TicketRead.model_validate(ticket)


@router.get("/{ticket_id}/history", response_model=list[TicketHistoryEntry])
def get_history(
    ticket_id: TicketIdPath,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
) -> list[TicketHistoryEntry]:
    ticket_service.get_ticket_for_session(db, session=session, ticket_id=ticket_id)
    return [TicketHistoryEntry(**row) for row in ticket_service.get_history(db, ticket_id)]


@router.post("", response_model=TicketRead, status_code=201, dependencies=[Depends(require_csrf_header)])
def create_ticket(
    body: TicketCreate,
    db: Session = Depends(get_db),
    session: UserSession = Depends(require_action(Action.TICKETS_CREATE)),
) -> TicketRead:
    return TicketRead.model_validate(ticket_service.create_ticket(db, session=session, data=body))


@router.patch("/{ticket_id}", response_model=TicketRead, dependencies=[Depends(require_csrf_header)])
def update_ticket(
    ticket_id: TicketIdPath,
    body: TicketUpdateRequest,
    db: Session = Depends(get_db),
    session: UserSession = Depends(require_action(Action.TICKETS_UPDATE)),
) -> TicketRead:
    """Partial update; only fields present in the body are applied."""
    ticket = ticket_service.update_ticket(
        db,
        session=session,
        ticket_id=ticket_id,
        changes=body.model_dump(exclude_unset=True),
    )
    return TicketRead.model_validate(ticket)


@router.patch("/{ticket_id}/status", response_model=TicketRead, dependencies=[Depends(require_csrf_header)])
def update_status(
    ticket_id: TicketIdPath,
    body: TicketStatusUpdate,
    db: Session = Depends(get_db),
    session: UserSession = Depends(require_action(Action.TICKETS_UPDATE)),
) -> TicketRead:
    ticket = ticket_service.update_ticket(
        db, session=session, ticket_id=ticket_id, changes={"status": body.status}
    )
    return TicketRead.model_validate(ticket)


@router.patch("/{ticket_id}/assignment", response_model=TicketRead, dependencies=[Depends(require_csrf_header)])
def update_assignment(
    ticket_id: TicketIdPath,
    body: TicketAssignmentUpdate,
    db: Session = Depends(get_db),
    session: UserSession = Depends(require_action(Action.TICKETS_ASSIGN)),
) -> TicketRead:
    """Assign to a staff user, or unassign with `assigned_to: null`."""
    ticket = ticket_service.update_ticket(
        db, session=session, ticket_id=ticket_id, changes={"assigned_to": body.assigned_to}
    )
    return TicketRead.model_validate(ticket)


@router.post("/{ticket_id}/service-tags", response_model=TicketRead, dependencies=[Depends(require_csrf_header)])
def add_service_tag(
    ticket_id: TicketIdPath,
    body: TicketServiceTagAttach,
    db: Session = Depends(get_db),
    session: UserSession = Depends(require_action(Action.TICKETS_MANAGE_TAGS)),
) -> TicketRead:
    ticket = ticket_service.add_service_tag(
        db, session=session, ticket_id=ticket_id, service_tag_id=body.service_tag_id
    )
    return TicketRead.model_validate(ticket)


@router.delete(
    "/{ticket_id}/service-tags/{service_tag_id}",
    response_model=TicketRead,
    dependencies=[Depends(require_csrf_header)],
)
def remove_service_tag(
    ticket_id: TicketIdPath,
    service_tag_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(require_action(Action.TICKETS_MANAGE_TAGS)),
) -> TicketRead:
    ticket = ticket_service.remove_service_tag(
        db, session=session, ticket_id=ticket_id, service_tag_id=service_tag_id
    )
    return TicketRead.model_validate(ticket)


@router.post("/{ticket_id}/approve", response_model=TicketApprovalResult, dependencies=[Depends(require_csrf_header)])
def approve_ticket(
    ticket_id: TicketIdPath,
    body: TicketApprovalRequest,
    db: Session = Depends(get_db),
    session: UserSession = Depends(require_action(Action.TICKETS_APPROVE)),
) -> TicketApprovalResult:
    """Approve (-> open) or reject a ticket awaiting approval."""
    ticket = approval_service.decide(
        db,
        session=session,
        ticket_id=ticket_id,
        approved=body.approved,
        rejection_reason=body.rejection_reason,
    )
    return TicketApprovalResult(
        ticket_id=ticket.id,
        status=ticket.status,
        approved=body.approved,
        message=f"Ticket {ticket.id} {'approved' if body.approved else 'rejected'}",
    )


@router.delete("/{ticket_id}", response_model=MessageResponse, dependencies=[Depends(require_csrf_header)])
def delete_ticket(
    ticket_id: TicketIdPath,
    db: Session = Depends(get_db),
    session: UserSession = Depends(require_action(Action.TICKETS_DELETE)),
) -> MessageResponse:
    ticket_service.delete_ticket(db, session=session, ticket_id=ticket_id)
    return MessageResponse(message=f"Ticket {ticket_id} deleted")
