"""Ticket status transition rules."""

from helpdesk.core.config import settings
from helpdesk.db.enums import TicketStatus


CLOSED_STATUSES = frozenset({TicketStatus.RESOLVED, TicketStatus.CLOSED})

# Forward-only moves, used when ENFORCE_FORWARD_TRANSITIONS is on.
# pending_approval is left only through the approval workflow.
FORWARD_TRANSITIONS: dict[TicketStatus, frozenset[TicketStatus]] = {
    TicketStatus.PENDING_APPROVAL: frozenset(),
    TicketStatus.OPEN: frozenset({TicketStatus.IN_PROGRESS, TicketStatus.RESOLVED}),
    TicketStatus.IN_PROGRESS: frozenset({TicketStatus.OPEN, TicketStatus.RESOLVED}),
    TicketStatus.RESOLVED: frozenset({TicketStatus.CLOSED}),
    TicketStatus.CLOSED: frozenset(),
}


class InvalidTransition(ValueError):
    """Raised when a status write is not permitted."""


def check_status_change(
    current: TicketStatus,
    target: TicketStatus,
    *,
    enforce_forward: bool | None = None,
) -> None:
    """
    Validate a status write made through the update operation.

    Raises InvalidTransition with a user-presentable message.
    Writing the current status is always a no-op and allowed.
    """
    if current == target:
        return
    if target == TicketStatus.PENDING_APPROVAL:
        raise InvalidTransition("Tickets cannot be moved back to pending_approval")
    if current == TicketStatus.PENDING_APPROVAL:
        raise InvalidTransition(
            "Tickets pending approval can only be opened through the approval workflow"
        )

    if enforce_forward is None:
        enforce_forward = settings.ENFORCE_FORWARD_TRANSITIONS
    if enforce_forward and target not in FORWARD_TRANSITIONS[current]:
        raise InvalidTransition(
            f"Cannot change status from {current.value} to {target.value}"
        )


def closes_ticket(status: TicketStatus) -> bool:
    """Entering one of these stamps time_closed; leaving clears it."""
    return status in CLOSED_STATUSES
