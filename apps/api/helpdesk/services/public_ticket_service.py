"""Anonymous ticket intake.

Submissions resolve (or create) the client by exact company name and each
service tag by name inside that client, then land in pending_approval. The
caller's identity is never read.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from helpdesk.core.config import settings
from helpdesk.core.structured_logging import build_log_context
from helpdesk.db.enums import DEFAULT_PUBLIC_TICKET_STATUS, TicketUpdateType
from helpdesk.db.models import Client, Ticket, TicketServiceTag
from helpdesk.schemas.public_ticket import PublicTicketRequest
from helpdesk.services import client_service, service_tag_service, storage_service
from helpdesk.services.storage_service import StorageError
from helpdesk.services.ticket_service import generate_ticket_id, record_update

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Ticket submitted successfully and is pending approval"


class PublicIntakeError(Exception):
    """Failure rendered as `{success: false, error, message, details?}`."""

    def __init__(self, status_code: int, error: str, message: str, details: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.error = error
        self.message = message
        self.details = details

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"success": False, "error": self.error, "message": self.message}
        if self.details is not None and (self.status_code < 500 or settings.is_dev):
            body["details"] = self.details
        return body


@dataclass
class _DecodedImage:
    filename: str
    data: bytes
    mime: str
    key: str = field(default="")


def _decode_images(data: PublicTicketRequest) -> list[_DecodedImage]:
    """Decode every image before any side effect; image MIME types only."""
    decoded: list[_DecodedImage] = []
    errors: list[dict[str, str]] = []
    for index, image in enumerate(data.images):
        try:
            raw, mime = storage_service.decode_data_url(image.data)
        except StorageError as exc:
            errors.append({"field": f"images.{index}.data", "message": str(exc)})
            continue
        if not mime.startswith("image/"):
            errors.append({"field": f"images.{index}.data", "message": f"Unsupported file type '{mime}'"})
            continue
        decoded.append(_DecodedImage(filename=image.filename, data=raw, mime=mime))
    if errors:
        raise PublicIntakeError(400, "Validation error", "Invalid image upload", errors)
    return decoded


def _distinct(names: list[str]) -> list[str]:
    return list(dict.fromkeys(names))


async def submit(db: Session, *, data: PublicTicketRequest) -> dict[str, Any]:
    """
    Create a pending_approval ticket from an anonymous submission.

    All database writes share one transaction. On failure the transaction is
    rolled back and already uploaded images are removed.

    Raises:
        PublicIntakeError: 400 for invalid images, 500 for storage/database failures
    """
    images = _decode_images(data)

    uploaded_keys: list[str] = []
    photo_urls = list(data.photo_url or [])
    try:
        for image in images:
            image.key = storage_service.ticket_image_key(image.filename, image.mime)
            url = await storage_service.store_bytes_async(image.key, image.data, image.mime)
            uploaded_keys.append(image.key)
            photo_urls.append(url)
    except Exception as exc:
        logger.exception("Public ticket image upload failed")
        await storage_service.delete_objects(uploaded_keys)
        raise PublicIntakeError(500, "Upload failed", "Failed to upload images", str(exc)) from exc

    try:
        client = client_service.get_client_by_company_name(db, data.company_name)
        client_was_new = client is None
        if client is None:
            client = Client(
                name=data.contact_name,
                company_name=data.company_name,
                email=str(data.contact_email),
                phone=data.contact_phone,
            )
            db.add(client)
            db.flush()

        tag_results = []
        tags = []
        for name in _distinct(data.service_tag_names):
            tag, was_new = service_tag_service.resolve_or_create(db, client_id=client.id, tag=name)
            tags.append(tag)
            tag_results.append({"id": str(tag.id), "tag": tag.tag, "was_new": was_new})

        ticket = Ticket(
            id=generate_ticket_id(db),
            title=data.title,
            description=data.description,
            status=DEFAULT_PUBLIC_TICKET_STATUS,
            priority=data.priority,
            source=data.source,
            client_id=client.id,
            reported_by=None,
            photo_url=photo_urls or None,
            is_public_submission=True,
            client_was_new=client_was_new,
            contact_name=data.contact_name,
            contact_email=str(data.contact_email),
            contact_phone=data.contact_phone,
        )
        db.add(ticket)
        db.flush()
        for tag in tags:
            db.add(TicketServiceTag(ticket_id=ticket.id, service_tag_id=tag.id))
        record_update(
            db,
            ticket_id=ticket.id,
            user_id=None,
            message=f"Ticket submitted via public form by {data.contact_name}",
            update_type=TicketUpdateType.OTHER,
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Public ticket creation failed")
        await storage_service.delete_objects(uploaded_keys)
        raise PublicIntakeError(500, "Database error", "Failed to create ticket", str(exc)) from exc

    logger.info(
        "Public ticket submitted",
        extra=build_log_context(ticket_id=ticket.id, client_id=str(client.id)),
    )
    return {
        "ticket_id": ticket.id,
        "status": ticket.status,
        "company_name": client.company_name,
        "client_was_new": client_was_new,
        "service_tags": tag_results,
        "message": SUCCESS_MESSAGE,
        "created_at": ticket.created_at,
    }
