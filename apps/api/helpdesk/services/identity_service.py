"""Identity provider seam for user accounts.

IDENTITY_PROVIDER selects the backend:
- "local": ids minted here, credentials never leave the process (dev/tests)
- "supabase": GoTrue admin API (create, ban/unban, update, delete)
"""

from __future__ import annotations

import logging
import uuid

import httpx

from helpdesk.core.config import settings
from helpdesk.services.http_service import request_with_retries

logger = logging.getLogger(__name__)

IDENTITY_TIMEOUT_SECONDS = 15.0
# Effectively permanent; cleared with "none"
BAN_DURATION = "87600h"


class IdentityProviderError(Exception):
    """Identity provider rejected the call or could not be reached."""


def _backend() -> str:
    return (settings.IDENTITY_PROVIDER or "local").lower()


def _admin_url(path: str = "") -> str:
    if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY:
        raise IdentityProviderError("Identity provider is not configured")
    return f"{settings.SUPABASE_URL.rstrip('/')}/auth/v1/admin/users{path}"


def _headers() -> dict[str, str]:
    key = settings.SUPABASE_SERVICE_ROLE_KEY
    return {
        "apikey": key,
        "Authorization": f"Bearer {key}",
        "Content-Type": "application/json",
    }


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return f"Identity provider error: {response.status_code}"
    if isinstance(data, dict):
        detail = data.get("msg") or data.get("message") or data.get("error_description") or data.get("error")
        if detail:
            return str(detail)
    return f"Identity provider error: {response.status_code}"


async def _call(method: str, url: str, payload: dict | None = None) -> httpx.Response:
    try:
        async with httpx.AsyncClient(timeout=IDENTITY_TIMEOUT_SECONDS) as client:

            async def request_fn() -> httpx.Response:
                return await client.request(method, url, headers=_headers(), json=payload)

            response = await request_with_retries(request_fn)
    except httpx.HTTPError as exc:
        logger.warning("Identity provider unreachable", exc_info=exc)
        raise IdentityProviderError(f"Identity provider unreachable: {exc.__class__.__name__}") from exc
    if response.status_code >= 400:
        raise IdentityProviderError(_error_message(response))
    return response


async def create_user(*, email: str, password: str, name: str, role: str) -> uuid.UUID:
    """Create the identity record and return its id."""
    if _backend() != "supabase":
        return uuid.uuid4()
    response = await _call(
        "POST",
        _admin_url(),
        {
            "email": email,
            "password": password,
            "email_confirm": True,
            "user_metadata": {"name": name, "role": role},
        },
    )
    data = response.json()
    user_id = data.get("id") or (data.get("user") or {}).get("id")
    if not user_id:
        raise IdentityProviderError("Identity provider returned no user id")
    return uuid.UUID(str(user_id))


async def update_user(user_id: uuid.UUID, *, email: str | None = None, name: str | None = None) -> None:
    if _backend() != "supabase":
        return
    payload: dict = {}
    if email is not None:
        payload["email"] = email
    if name is not None:
        payload["user_metadata"] = {"name": name}
    if payload:
        await _call("PUT", _admin_url(f"/{user_id}"), payload)


async def set_disabled(user_id: uuid.UUID, disabled: bool) -> None:
    """Ban or unban the identity so it can no longer sign in."""
    if _backend() != "supabase":
        return
    await _call(
        "PUT",
        _admin_url(f"/{user_id}"),
        {"ban_duration": BAN_DURATION if disabled else "none"},
    )


async def delete_user(user_id: uuid.UUID) -> None:
    if _backend() != "supabase":
        return
    await _call("DELETE", _admin_url(f"/{user_id}"))
