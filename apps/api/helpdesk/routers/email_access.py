"""Internal email endpoints: account access emails and raw SMTP relay."""

import logging

from fastapi import APIRouter, Header, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from helpdesk.core.config import settings
from helpdesk.core.rate_limit import limiter, public_limit
from helpdesk.schemas.email_access import EmailAccessRequest, SmtpEmailRequest
from helpdesk.services import email_service

logger = logging.getLogger(__name__)

router = APIRouter()

EMAIL_ACCESS_PATH = "/api/email-access"
EMAIL_SMTP_PATH = "/api/email-smtp"


def _failure(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


def _secret_ok(x_internal_secret: str | None) -> bool:
    return not settings.INTERNAL_SECRET or x_internal_secret == settings.INTERNAL_SECRET


def _field_failed(exc: ValidationError, field: str) -> bool:
    return any(err["loc"] and err["loc"][0] == field for err in exc.errors())


@router.post(EMAIL_ACCESS_PATH)
@limiter.limit(public_limit)
async def send_email_access(
    request: Request,
    x_internal_secret: str | None = Header(default=None),
):
    """Send login credentials; the X-Internal-Secret header is checked when configured."""
    if not _secret_ok(x_internal_secret):
        return _failure(403, "Invalid internal secret")

    try:
        payload = await request.json()
    except ValueError:
        return _failure(400, "Invalid request body")
    try:
        data = EmailAccessRequest.model_validate(payload)
    except ValidationError as e:
        if _field_failed(e, "email"):
            return _failure(400, "Invalid email format")
        return _failure(400, "Invalid request body")

    if not data.email or not data.password:
        return _failure(400, "Email and password are required")

    success, error = await email_service.send_access_email(
        to=data.email,
        email=data.email,
        password=data.password,
        login_url=data.login_url,
        company_name=data.company_name,
        client_name=data.client_name,
    )
    if not success:
        logger.warning("Email access request failed: %s", error)
        return _failure(500, error or "Failed to send email")
    return {"success": True}


@router.post(EMAIL_SMTP_PATH)
@limiter.limit(public_limit)
async def send_email_smtp(
    request: Request,
    x_internal_secret: str | None = Header(default=None),
):
    """Relay one HTML email through the configured SMTP server."""
    if not _secret_ok(x_internal_secret):
        return _failure(403, "Invalid internal secret")

    try:
        payload = await request.json()
    except ValueError:
        return _failure(400, "Invalid request body")
    try:
        data = SmtpEmailRequest.model_validate(payload)
    except ValidationError as e:
        if _field_failed(e, "to"):
            return _failure(400, "Invalid email format")
        return _failure(400, "Invalid request body")

    if not data.to or not data.subject or not data.html:
        return _failure(400, "Missing required fields. Required: to (email), subject, html")

    result = await email_service.send_smtp_email(
        to=data.to,
        subject=data.subject,
        html=data.html,
        from_address=data.from_address,
    )
    if not result.success:
        logger.warning("SMTP email request failed: %s", result.error)
        return _failure(500, result.error or "Failed to send email")
    return {
        "success": True,
        "message": "Email sent successfully",
        "data": {
            "message_id": result.message_id,
            "accepted": result.accepted,
            "rejected": result.rejected,
        },
    }
