"""SQLAlchemy ORM models."""

from helpdesk.db.models.auth import User
from helpdesk.db.models.clients import Client, ServiceTag
from helpdesk.db.models.tickets import (
    Counter,
    Ticket,
    TicketComment,
    TicketServiceTag,
    TicketUpdate,
)

__all__ = [
    "Client",
    "Counter",
    "ServiceTag",
    "Ticket",
    "TicketComment",
    "TicketServiceTag",
    "TicketUpdate",
    "User",
]
