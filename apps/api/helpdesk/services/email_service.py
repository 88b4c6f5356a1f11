"""Transactional email: Resend API or SMTP (account access / welcome emails)."""

from __future__ import annotations

import asyncio
import html
import logging
import re
import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
from email.utils import make_msgid

import httpx

from helpdesk.core.config import settings
from helpdesk.services.http_service import DEFAULT_RETRY_STATUSES, request_with_retries

logger = logging.getLogger(__name__)

RESEND_SEND_URL = "https://api.resend.com/emails"
RESEND_MAX_ATTEMPTS = 3
RESEND_RETRY_BASE_DELAY = 0.5
RESEND_RETRY_MAX_DELAY = 4.0
RESEND_TIMEOUT_SECONDS = 20.0
SMTP_TIMEOUT_SECONDS = 20.0


def _html_to_text(content: str) -> str:
    """Plain-text alternative of an HTML body."""
    text = re.sub(r"<(script|style)[^>]*>.*?</\1>", "", content, flags=re.DOTALL | re.I)
    text = re.sub(r"<br\s*/?>|</p>|</h\d>|</li>", "\n", text, flags=re.I)
    text = re.sub(r"<[^>]+>", "", text)
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"\n\s*\n+", "\n\n", text)
    return html.unescape(text).strip()


def default_login_url() -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/login"


def access_email_subject(company_name: str | None = None) -> str:
    return f"Your {company_name or settings.COMPANY_NAME} Account Access"


def build_access_email_html(
    *,
    email: str,
    password: str,
    login_url: str,
    company_name: str,
    client_name: str | None = None,
) -> str:
    greeting = f"Hello {html.escape(client_name)}," if client_name else "Hello,"
    return f"""
<html>
  <body style="font-family: Arial, sans-serif; color: #1f2937;">
    <h2>Welcome to {html.escape(company_name)}</h2>
    <p>{greeting}</p>
    <p>An account has been created for you. Use the credentials below to sign in.</p>
    <ul>
      <li><strong>Email:</strong> {html.escape(email)}</li>
      <li><strong>Password:</strong> {html.escape(password)}</li>
    </ul>
    <p><a href="{html.escape(login_url, quote=True)}">Sign in</a></p>
    <p>Please change your password after your first login.</p>
  </body>
</html>
""".strip()


async def send_access_email(
    *,
    to: str,
    email: str,
    password: str,
    login_url: str | None = None,
    company_name: str | None = None,
    client_name: str | None = None,
) -> tuple[bool, str | None]:
    """
    Send the account access email through EMAIL_PROVIDER.

    Returns:
        (success, error_message)
    """
    company = company_name or settings.COMPANY_NAME
    body = build_access_email_html(
        email=email,
        password=password,
        login_url=login_url or default_login_url(),
        company_name=company,
        client_name=client_name,
    )
    if settings.EMAIL_PROVIDER.lower() == "smtp":
        result = await send_smtp_email(to=to, subject=access_email_subject(company), html=body)
        return result.success, result.error

    if not settings.RESEND_API_KEY:
        return False, "Email provider is not configured"

    payload: dict[str, object] = {
        "from": settings.EMAIL_FROM,
        "to": [to],
        "subject": access_email_subject(company),
        "html": body,
        "text": _html_to_text(body),
    }
    headers = {
        "Authorization": f"Bearer {settings.RESEND_API_KEY}",
        "Content-Type": "application/json",
    }

    try:
        async with httpx.AsyncClient(timeout=RESEND_TIMEOUT_SECONDS) as client:

            async def request_fn() -> httpx.Response:
                return await client.post(RESEND_SEND_URL, headers=headers, json=payload)

            response = await request_with_retries(
                request_fn,
                max_attempts=RESEND_MAX_ATTEMPTS,
                base_delay=RESEND_RETRY_BASE_DELAY,
                max_delay=RESEND_RETRY_MAX_DELAY,
                retry_statuses=DEFAULT_RETRY_STATUSES,
            )
    except httpx.TimeoutException:
        logger.warning("Resend timeout sending access email")
        return False, "Connection timeout"
    except httpx.HTTPError as e:
        logger.exception("Resend connection error sending access email")
        return False, f"Connection error: {e.__class__.__name__}"

    if 200 <= response.status_code < 300:
        logger.info("Access email sent, message_id=%s", response.json().get("id"))
        return True, None

    error_detail = None
    try:
        data = response.json()
        if isinstance(data, dict):
            error_detail = data.get("message") or data.get("error")
    except ValueError:
        pass

    error_msg = f"Resend API error: {response.status_code}"
    if error_detail:
        error_msg = f"{error_msg} ({error_detail})"
    logger.warning(error_msg)
    return False, error_msg


# =============================================================================
# SMTP transport
# =============================================================================

@dataclass
class SmtpResult:
    success: bool
    error: str | None = None
    message_id: str | None = None
    accepted: list[str] = field(default_factory=list)
    rejected: list[str] = field(default_factory=list)


def smtp_configured() -> bool:
    return bool(settings.SMTP_HOST and settings.SMTP_USER and settings.SMTP_PASSWORD)


def smtp_sender(from_address: str | None = None) -> str | None:
    return from_address or settings.SMTP_FROM_EMAIL or settings.SMTP_USER or None


def build_smtp_message(*, sender: str, to: str, subject: str, html_body: str) -> EmailMessage:
    message = EmailMessage()
    message["From"] = sender
    message["To"] = to
    message["Subject"] = subject
    message["Message-ID"] = make_msgid()
    message.set_content(_html_to_text(html_body))
    message.add_alternative(html_body, subtype="html")
    return message


def _deliver_smtp(message: EmailMessage) -> dict:
    """Blocking send; returns the recipients the server refused."""
    if settings.SMTP_SECURE:
        with smtplib.SMTP_SSL(settings.SMTP_HOST, settings.SMTP_PORT, timeout=SMTP_TIMEOUT_SECONDS) as smtp:
            smtp.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
            return smtp.send_message(message)
    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=SMTP_TIMEOUT_SECONDS) as smtp:
        smtp.ehlo()
        if smtp.has_extn("starttls"):
            smtp.starttls()
            smtp.ehlo()
        smtp.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
        return smtp.send_message(message)


async def send_smtp_email(
    *,
    to: str,
    subject: str,
    html: str,
    from_address: str | None = None,
) -> SmtpResult:
    """Send one HTML message over SMTP. Failures are returned, not raised."""
    if not smtp_configured():
        return SmtpResult(
            False,
            "SMTP configuration is incomplete. Set SMTP_HOST, SMTP_USER and SMTP_PASSWORD.",
        )
    sender = smtp_sender(from_address)
    if not sender:
        return SmtpResult(False, "No sender email configured. Set SMTP_FROM_EMAIL or SMTP_USER.")

    message = build_smtp_message(sender=sender, to=to, subject=subject, html_body=html)
    try:
        refused = await asyncio.to_thread(_deliver_smtp, message)
    except (smtplib.SMTPException, OSError) as e:
        logger.warning("SMTP send failed: %s", e.__class__.__name__, exc_info=e)
        return SmtpResult(False, str(e) or e.__class__.__name__)

    rejected = sorted(refused)
    accepted = [to] if to not in refused else []
    logger.info("SMTP email sent, message_id=%s", message["Message-ID"])
    return SmtpResult(
        True,
        message_id=message["Message-ID"],
        accepted=accepted,
        rejected=rejected,
    )


async def send_welcome_email_task(
    *,
    to: str,
    password: str,
    client_name: str | None = None,
) -> None:
    """Background task after user creation; failures are only logged."""
    try:
        success, error = await send_access_email(
            to=to, email=to, password=password, client_name=client_name
        )
    except Exception:
        logger.exception("Welcome email failed")
        return
    if not success:
        logger.warning("Welcome email not sent: %s", error)
