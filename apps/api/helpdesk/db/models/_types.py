"""Column helpers shared by the ORM models."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Enum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def enum_type(enum_cls, *, name: str) -> Enum:
    """Store str-enums by value in a portable VARCHAR column."""
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        length=32,
        validate_strings=True,
        values_callable=lambda members: [member.value for member in members],
    )
