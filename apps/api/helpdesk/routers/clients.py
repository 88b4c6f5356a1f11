"""Client endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from helpdesk.core.deps import get_current_session, get_db, require_action, require_csrf_header
from helpdesk.core.permissions import Action
from helpdesk.schemas.auth import UserSession
from helpdesk.schemas.client import ClientCreate, ClientListItem, ClientRead, ClientUpdate
from helpdesk.schemas.common import MessageResponse
from helpdesk.services import client_service

router = APIRouter()


@router.get("", response_model=list[ClientListItem])
def list_clients(
    db: Session = Depends(get_db),
    session: UserSession = Depends(require_action(Action.CLIENTS_VIEW_ALL)),
) -> list[ClientListItem]:
    """All clients with service tag and ticket counts."""
    return [
        ClientListItem(
            **ClientRead.model_validate(client).model_dump(),
            service_tags_count=tags,
            tickets_count=tickets,
        )
        for client, tags, tickets in client_service.list_clients(db)
    ]


@router.get("/{client_id}", response_model=ClientRead)
def get_client(
    client_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
) -> ClientRead:
    client = client_service.get_client_for_session(db, session=session, client_id=client_id)
    return ClientRead.model_validate(client)


@router.post("", response_model=ClientRead, status_code=201, dependencies=[Depends(require_csrf_header)])
def create_client(
    body: ClientCreate,
    db: Session = Depends(get_db),
    session: UserSession = Depends(require_action(Action.CLIENTS_CREATE)),
) -> ClientRead:
    return ClientRead.model_validate(client_service.create_client(db, data=body))


@router.patch("/{client_id}", response_model=ClientRead, dependencies=[Depends(require_csrf_header)])
def update_client(
    client_id: UUID,
    body: ClientUpdate,
    db: Session = Depends(get_db),
    session: UserSession = Depends(require_action(Action.CLIENTS_UPDATE)),
) -> ClientRead:
    return ClientRead.model_validate(client_service.update_client(db, client_id=client_id, data=body))


@router.delete("/{client_id}", response_model=MessageResponse, dependencies=[Depends(require_csrf_header)])
def delete_client(
    client_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(require_action(Action.CLIENTS_DELETE)),
) -> MessageResponse:
    client_service.delete_client(db, client_id=client_id)
    return MessageResponse(message="Client deleted")
