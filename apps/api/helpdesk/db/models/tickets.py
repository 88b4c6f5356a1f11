"""Ticket, history, comment and join-table ORM models."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from helpdesk.db.base import Base
from helpdesk.db.enums import (
    DEFAULT_TICKET_PRIORITY,
    DEFAULT_TICKET_SOURCE,
    DEFAULT_TICKET_STATUS,
    Role,
    TicketPriority,
    TicketSource,
    TicketStatus,
    TicketUpdateType,
)
from helpdesk.db.models._types import enum_type, utcnow

if TYPE_CHECKING:
    from helpdesk.db.models.auth import User
    from helpdesk.db.models.clients import Client, ServiceTag


class Counter(Base):
    """Named monotonically increasing counter (ticket numbers)."""

    __tablename__ = "counters"

    name: Mapped[str] = mapped_column(String(64), primary_key=True)
    current_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow, nullable=False)


class Ticket(Base):
    """Support ticket. Ids are human readable: TK-000001."""

    __tablename__ = "tickets"
    __table_args__ = (
        Index("idx_tickets_status", "status"),
        Index("idx_tickets_client_created", "client_id", "created_at"),
        Index("idx_tickets_assigned_to", "assigned_to"),
    )

    id: Mapped[str] = mapped_column(String(16), primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[TicketStatus] = mapped_column(
        enum_type(TicketStatus, name="ticket_status"),
        default=DEFAULT_TICKET_STATUS,
        nullable=False,
    )
    priority: Mapped[TicketPriority] = mapped_column(
        enum_type(TicketPriority, name="ticket_priority"),
        default=DEFAULT_TICKET_PRIORITY,
        nullable=False,
    )
    source: Mapped[TicketSource] = mapped_column(
        enum_type(TicketSource, name="ticket_source"),
        default=DEFAULT_TICKET_SOURCE,
        nullable=False,
    )
    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False
    )
    # Null for public submissions
    reported_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    assigned_to: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=True
    )
    approved_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    rejected_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    rejected_at: Mapped[datetime | None] = mapped_column(nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    photo_url: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    time_open: Mapped[datetime | None] = mapped_column(nullable=True)
    time_closed: Mapped[datetime | None] = mapped_column(nullable=True)

    # Public intake
    is_public_submission: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    client_was_new: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    contact_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_phone: Mapped[str | None] = mapped_column(String(64), nullable=True)

    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow, nullable=False)

    client: Mapped["Client"] = relationship(back_populates="tickets")
    reporter: Mapped["User | None"] = relationship(foreign_keys=[reported_by])
    assignee: Mapped["User | None"] = relationship(foreign_keys=[assigned_to])
    approver: Mapped["User | None"] = relationship(foreign_keys=[approved_by])
    service_tag_links: Mapped[list["TicketServiceTag"]] = relationship(
        back_populates="ticket",
        cascade="all, delete-orphan",
        order_by="TicketServiceTag.created_at",
    )
    updates: Mapped[list["TicketUpdate"]] = relationship(
        back_populates="ticket", cascade="all, delete-orphan"
    )
    comments: Mapped[list["TicketComment"]] = relationship(
        back_populates="ticket", cascade="all, delete-orphan"
    )

    @property
    def service_tags(self) -> list["ServiceTag"]:
        return [link.service_tag for link in self.service_tag_links]


class TicketServiceTag(Base):
    """Many-to-many link between tickets and service tags."""

    __tablename__ = "ticket_service_tags"
    __table_args__ = (
        UniqueConstraint("ticket_id", "service_tag_id", name="uq_ticket_service_tag"),
        Index("idx_ticket_service_tags_tag", "service_tag_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    ticket_id: Mapped[str] = mapped_column(
        String(16), ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False
    )
    service_tag_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("service_tags.id", ondelete="RESTRICT"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    ticket: Mapped["Ticket"] = relationship(back_populates="service_tag_links")
    service_tag: Mapped["ServiceTag"] = relationship(back_populates="ticket_links")


class TicketUpdate(Base):
    """Immutable history entry for a ticket."""

    __tablename__ = "ticket_updates"
    __table_args__ = (Index("idx_ticket_updates_ticket_created", "ticket_id", "created_at"),)

    # Integer key keeps insertion order for entries written in one transaction
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ticket_id: Mapped[str] = mapped_column(
        String(16), ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    update_type: Mapped[TicketUpdateType] = mapped_column(
        enum_type(TicketUpdateType, name="ticket_update_type"),
        default=TicketUpdateType.OTHER,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    ticket: Mapped["Ticket"] = relationship(back_populates="updates")
    user: Mapped["User | None"] = relationship()


class TicketComment(Base):
    """Append-only ticket comment. Author name/role are snapshots."""

    __tablename__ = "ticket_comments"
    __table_args__ = (Index("idx_ticket_comments_ticket_created", "ticket_id", "created_at"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    ticket_id: Mapped[str] = mapped_column(
        String(16), ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    user_name: Mapped[str] = mapped_column(String(255), nullable=False)
    user_role: Mapped[Role] = mapped_column(enum_type(Role, name="user_role"), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    photo_urls: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(nullable=True)
    deleted_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow, nullable=False)

    ticket: Mapped["Ticket"] = relationship(back_populates="comments")
