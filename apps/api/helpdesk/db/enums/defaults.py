"""Default enum values for new records."""

from helpdesk.db.enums.tickets import TicketPriority, TicketSource, TicketStatus

DEFAULT_TICKET_STATUS = TicketStatus.OPEN
DEFAULT_PUBLIC_TICKET_STATUS = TicketStatus.PENDING_APPROVAL
DEFAULT_TICKET_PRIORITY = TicketPriority.MEDIUM
DEFAULT_TICKET_SOURCE = TicketSource.WEB
