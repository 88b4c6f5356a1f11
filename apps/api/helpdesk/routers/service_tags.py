"""Service tag endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from helpdesk.core.deps import get_current_session, get_db, require_action, require_csrf_header
from helpdesk.core.permissions import Action
from helpdesk.schemas.auth import UserSession
from helpdesk.schemas.common import MessageResponse, TicketIdPath
from helpdesk.schemas.service_tag import ServiceTagCreate, ServiceTagRead, ServiceTagUpdate
from helpdesk.services import client_service, service_tag_service, ticket_service

router = APIRouter()


@router.get("", response_model=list[ServiceTagRead])
def list_service_tags(
    db: Session = Depends(get_db),
    session: UserSession = Depends(require_action(Action.SERVICE_TAGS_VIEW_ALL)),
) -> list[ServiceTagRead]:
    return [ServiceTagRead.model_validate(t) for t in service_tag_service.list_service_tags(db)]


@router.get("/by-client/{client_id}", response_model=list[ServiceTagRead])
def list_by_client(
    client_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
) -> list[ServiceTagRead]:
    client_service.get_client_for_session(db, session=session, client_id=client_id)
    return [ServiceTagRead.model_validate(t) for t in service_tag_service.list_for_client(db, client_id)]


@router.get("/by-ticket/{ticket_id}", response_model=list[ServiceTagRead])
def list_by_ticket(
    ticket_id: TicketIdPath,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
) -> list[ServiceTagRead]:
    ticket_service.get_ticket_for_session(db, session=session, ticket_id=ticket_id)
    return [ServiceTagRead.model_validate(t) for t in service_tag_service.list_for_ticket(db, ticket_id)]


@router.get("/{service_tag_id}", response_model=ServiceTagRead)
def get_service_tag(
    service_tag_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
) -> ServiceTagRead:
    tag = service_tag_service.get_service_tag_for_session(db, session=session, service_tag_id=service_tag_id)
    return ServiceTagRead.model_validate(tag)


@router.post("", response_model=ServiceTagRead, status_code=201, dependencies=[Depends(require_csrf_header)])
def create_service_tag(
    body: ServiceTagCreate,
    db: Session = Depends(get_db),
    session: UserSession = Depends(require_action(Action.SERVICE_TAGS_CREATE)),
) -> ServiceTagRead:
    return ServiceTagRead.model_validate(service_tag_service.create_service_tag(db, data=body))


@router.patch("/{service_tag_id}", response_model=ServiceTagRead, dependencies=[Depends(require_csrf_header)])
def update_service_tag(
    service_tag_id: UUID,
    body: ServiceTagUpdate,
    db: Session = Depends(get_db),
    session: UserSession = Depends(require_action(Action.SERVICE_TAGS_UPDATE)),
) -> ServiceTagRead:
    tag = service_tag_service.update_service_tag(db, service_tag_id=service_tag_id, data=body)
    return ServiceTagRead.model_validate(tag)


@router.delete("/{service_tag_id}", response_model=MessageResponse, dependencies=[Depends(require_csrf_header)])
def delete_service_tag(
    service_tag_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(require_action(Action.SERVICE_TAGS_DELETE)),
) -> MessageResponse:
    service_tag_service.delete_service_tag(db, service_tag_id=service_tag_id)
    return MessageResponse(message="Service tag deleted")
