"""Tests for session tokens and generated passwords."""

import string
import uuid

import jwt
import pytest

from helpdesk.core.config import settings
from helpdesk.core.security import (
    PASSWORD_SYMBOLS,
    create_session_token,
    decode_session_token,
    generate_password,
)


def test_session_token_round_trip():
    user_id = uuid.uuid4()
    payload = decode_session_token(create_session_token(user_id, "admin"))
    assert payload["sub"] == str(user_id)
    assert payload["role"] == "admin"


def test_previous_secret_still_accepted_during_rotation(monkeypatch):
    token = create_session_token(uuid.uuid4(), "technician")
    monkeypatch.setattr(settings, "JWT_SECRET_PREVIOUS", settings.JWT_SECRET)
    monkeypatch.setattr(settings, "JWT_SECRET", "rotated-secret")
    assert decode_session_token(token)["role"] == "technician"


def test_token_signed_with_unknown_secret_is_rejected():
    forged = jwt.encode({"sub": str(uuid.uuid4()), "role": "superadmin"}, "nope", algorithm="HS256")
    with pytest.raises(jwt.InvalidTokenError):
        decode_session_token(forged)


def test_generated_password_has_every_character_class():
    password = generate_password(16)
    assert len(password) == 16
    assert any(c in string.ascii_lowercase for c in password)
    assert any(c in string.ascii_uppercase for c in password)
    assert any(c in string.digits for c in password)
    assert any(c in PASSWORD_SYMBOLS for c in password)


def test_generated_password_rejects_short_length():
    with pytest.raises(ValueError):
        generate_password(4)
