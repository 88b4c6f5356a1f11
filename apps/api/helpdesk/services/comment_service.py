"""Ticket comments with file attachments."""

from __future__ import annotations

import asyncio
import logging
from uuid import UUID

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from helpdesk.core.permissions import is_admin
from helpdesk.core.structured_logging import build_log_context
from helpdesk.db.enums import TicketUpdateType
from helpdesk.db.models import TicketComment
from helpdesk.db.models._types import utcnow
from helpdesk.schemas.auth import UserSession
from helpdesk.schemas.comment import CommentCreate, CommentFile
from helpdesk.services import storage_service, ticket_service
from helpdesk.services.storage_service import StorageError

logger = logging.getLogger(__name__)


def list_comments(db: Session, *, session: UserSession, ticket_id: str) -> list[TicketComment]:
    """Non-deleted comments, oldest first."""
    ticket_service.get_ticket_for_session(db, session=session, ticket_id=ticket_id)
    return (
        db.query(TicketComment)
        .filter(TicketComment.ticket_id == ticket_id, TicketComment.is_deleted.is_(False))
        .order_by(TicketComment.created_at.asc())
        .all()
    )


async def _upload_files(ticket_id: str, files: list[CommentFile]) -> list[str]:
    """
    Upload all files concurrently and return their URLs in input order.

    Any failure removes the objects that did upload and raises 500.
    """
    decoded = []
    for file in files:
        try:
            raw, mime = storage_service.decode_data_url(file.data, content_type=file.content_type)
        except StorageError as exc:
            raise HTTPException(status_code=400, detail=f"Invalid file '{file.filename}': {exc}") from exc
        key = storage_service.comment_attachment_key(ticket_id, file.filename, mime)
        decoded.append((key, raw, mime))

    results = await asyncio.gather(
        *(storage_service.store_bytes_async(key, raw, mime) for key, raw, mime in decoded),
        return_exceptions=True,
    )
    failures = [r for r in results if isinstance(r, BaseException)]
    if failures:
        stored = [key for (key, _, _), r in zip(decoded, results) if not isinstance(r, BaseException)]
        await storage_service.delete_objects(stored)
        logger.error(
            "Comment attachment upload failed",
            exc_info=failures[0],
            extra=build_log_context(ticket_id=ticket_id),
        )
        raise HTTPException(status_code=500, detail="Failed to upload attachments")
    return list(results)


async def add_comment(db: Session, *, session: UserSession, data: CommentCreate) -> TicketComment:
    """Upload attachments, then insert the comment and its history entry together."""
    ticket = ticket_service.get_ticket_for_session(db, session=session, ticket_id=data.ticket_id)
    uploaded = await _upload_files(ticket.id, data.files) if data.files else []
    photo_urls = list(data.photo_urls or []) + uploaded

    comment = TicketComment(
        ticket_id=ticket.id,
        user_id=session.user_id,
        user_name=session.name,
        user_role=session.role,
        content=data.content,
        photo_urls=photo_urls or None,
    )
    try:
        db.add(comment)
        ticket_service.record_update(
            db,
            ticket_id=ticket.id,
            user_id=session.user_id,
            message=f"Comment added by {session.name}",
            update_type=TicketUpdateType.COMMENT_ADDED,
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Comment insert failed", extra=build_log_context(ticket_id=ticket.id))
        keys = [key for key in (_key_from_url(url) for url in uploaded) if key]
        await storage_service.delete_objects(keys)
        raise HTTPException(status_code=500, detail="Failed to add comment") from exc
    db.refresh(comment)
    return comment


def _key_from_url(url: str) -> str | None:
    marker = "tickets/"
    index = url.find(marker)
    return url[index:] if index >= 0 else None


def delete_comment(db: Session, *, session: UserSession, comment_id: UUID) -> None:
    """Soft delete by the author or an admin/superadmin."""
    comment = db.get(TicketComment, comment_id)
    if not comment or comment.is_deleted:
        raise HTTPException(status_code=404, detail="Comment not found")
    ticket_service.get_ticket_for_session(db, session=session, ticket_id=comment.ticket_id)
    if comment.user_id != session.user_id and not is_admin(session.role):
        raise HTTPException(status_code=403, detail="You can only delete your own comments")
    comment.is_deleted = True
    comment.deleted_at = utcnow()
    comment.deleted_by = session.user_id
    db.commit()
