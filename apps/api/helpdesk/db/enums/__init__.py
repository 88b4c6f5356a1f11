"""Enum definitions for application constants."""

from helpdesk.db.enums.auth import Role
from helpdesk.db.enums.defaults import (
    DEFAULT_PUBLIC_TICKET_STATUS,
    DEFAULT_TICKET_PRIORITY,
    DEFAULT_TICKET_SOURCE,
    DEFAULT_TICKET_STATUS,
)
from helpdesk.db.enums.permissions import (
    ROLES_ADMIN,
    ROLES_ANY,
    ROLES_ASSIGNABLE,
    ROLES_STAFF,
)
from helpdesk.db.enums.tickets import (
    TicketPriority,
    TicketSource,
    TicketStatus,
    TicketUpdateType,
)

__all__ = [
    "DEFAULT_PUBLIC_TICKET_STATUS",
    "DEFAULT_TICKET_PRIORITY",
    "DEFAULT_TICKET_SOURCE",
    "DEFAULT_TICKET_STATUS",
    "ROLES_ADMIN",
    "ROLES_ANY",
    "ROLES_ASSIGNABLE",
    "ROLES_STAFF",
    "Role",
    "TicketPriority",
    "TicketSource",
    "TicketStatus",
    "TicketUpdateType",
]
