"""Anonymous ticket intake endpoint (POST /api/public-tickets)."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from helpdesk.core.deps import get_db
from helpdesk.core.rate_limit import limiter, public_limit
from helpdesk.schemas.public_ticket import PublicTicketRequest, PublicTicketResponse, PublicTicketResult
from helpdesk.services import public_ticket_service
from helpdesk.services.public_ticket_service import PublicIntakeError

router = APIRouter()

PUBLIC_TICKETS_PATH = "/api/public-tickets"

REQUIRED_FIELDS = [
    "title",
    "description",
    "company_name",
    "service_tag_names",
    "contact_name",
    "contact_email",
    "contact_phone",
]
OPTIONAL_FIELDS = ["priority", "source", "photo_url", "images"]


def _failure(status_code: int, error: str, message: str, details=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=PublicIntakeError(status_code, error, message, details).to_body(),
    )


def _field_errors(exc: ValidationError) -> list[dict[str, str]]:
    return [
        {"field": ".".join(str(part) for part in err["loc"]) or "body", "message": err["msg"]}
        for err in exc.errors()
    ]


@router.post(PUBLIC_TICKETS_PATH, status_code=201, response_model=PublicTicketResponse)
@limiter.limit(public_limit)
async def submit_public_ticket(request: Request, db: Session = Depends(get_db)):
    """
    Submit a ticket without an account.

    The ticket starts in pending_approval; an admin must approve it before it
    is worked. Caller identity is never read.
    """
    content_type = request.headers.get("content-type", "")
    if "application/json" not in content_type.lower():
        return _failure(400, "Invalid content type", "Content-Type must be application/json")

    try:
        payload = await request.json()
    except ValueError:
        return _failure(400, "Invalid JSON", "Request body must be valid JSON")

    try:
        data = PublicTicketRequest.model_validate(payload)
    except ValidationError as exc:
        return _failure(400, "Validation error", "Invalid ticket data", _field_errors(exc))

    try:
        result = await public_ticket_service.submit(db, data=data)
    except PublicIntakeError as exc:
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    return PublicTicketResponse(data=PublicTicketResult(**result))


@router.get(PUBLIC_TICKETS_PATH)
async def public_ticket_usage():
    """Usage hint; only POST is supported."""
    return JSONResponse(
        status_code=405,
        headers={"Allow": "POST, OPTIONS"},
        content={
            "success": False,
            "error": "Method not allowed",
            "message": "Use POST with a JSON body to submit a ticket",
            "usage": {
                "method": "POST",
                "content_type": "application/json",
                "required": REQUIRED_FIELDS,
                "optional": OPTIONAL_FIELDS,
            },
        },
    )
