"""Ticket comment endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from helpdesk.core.deps import get_db, require_action, require_csrf_header
from helpdesk.core.permissions import Action
from helpdesk.schemas.auth import UserSession
from helpdesk.schemas.comment import CommentCreate, CommentRead
from helpdesk.schemas.common import MessageResponse, TicketIdPath
from helpdesk.services import comment_service

router = APIRouter()


@router.get("/by-ticket/{ticket_id}", response_model=list[CommentRead])
def list_comments(
    ticket_id: TicketIdPath,
    db: Session = Depends(get_db),
    session: UserSession = Depends(require_action(Action.COMMENTS_VIEW)),
) -> list[CommentRead]:
    comments = comment_service.list_comments(db, session=session, ticket_id=ticket_id)
    return [CommentRead.model_validate(c) for c in comments]


@router.post("", response_model=CommentRead, status_code=201, dependencies=[Depends(require_csrf_header)])
async def add_comment(
    body: CommentCreate,
    db: Session = Depends(get_db),
    session: UserSession = Depends(require_action(Action.COMMENTS_CREATE)),
) -> CommentRead:
    """Add a comment; attached files are uploaded before the row is written."""
    comment = await comment_service.add_comment(db, session=session, data=body)
    return CommentRead.model_validate(comment)


@router.delete("/{comment_id}", response_model=MessageResponse, dependencies=[Depends(require_csrf_header)])
def delete_comment(
    comment_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(require_action(Action.COMMENTS_VIEW)),
) -> MessageResponse:
    comment_service.delete_comment(db, session=session, comment_id=comment_id)
    return MessageResponse(message="Comment deleted")
