"""Ticket enums."""

from enum import Enum


class TicketStatus(str, Enum):
    """Ticket lifecycle status."""

    PENDING_APPROVAL = "pending_approval"
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class TicketPriority(str, Enum):
    """Ticket priority level."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TicketSource(str, Enum):
    """Channel the ticket was reported through."""

    EMAIL = "email"
    PHONE = "phone"
    WEB = "web"
    IN_PERSON = "in_person"


class TicketUpdateType(str, Enum):
    """Category of a ticket history entry, recorded when the entry is written."""

    STATUS_CHANGE = "status_change"
    COMMENT_ADDED = "comment_added"
    ASSIGNED_CHANGE = "assigned_change"
    APPROVAL = "approval"
    OTHER = "other"
