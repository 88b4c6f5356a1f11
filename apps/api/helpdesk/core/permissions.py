"""Role/action rule table and authorization helpers.

Every procedure names one `Action`; `authorize` is the single lookup used by
routers (through `require_action`) and by services for target rules.
Client-role users are additionally scoped to their own client's records.
"""

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from helpdesk.db.enums import ROLES_ADMIN, ROLES_ANY, ROLES_STAFF, Role


class Action(str, Enum):
    """Procedures subject to role checks."""

    USERS_VIEW = "users.view"
    USERS_CREATE = "users.create"
    USERS_UPDATE = "users.update"
    USERS_DISABLE = "users.disable"
    USERS_DELETE = "users.delete"

    CLIENTS_VIEW_ALL = "clients.view_all"
    CLIENTS_CREATE = "clients.create"
    CLIENTS_UPDATE = "clients.update"
    CLIENTS_DELETE = "clients.delete"

    SERVICE_TAGS_VIEW_ALL = "service_tags.view_all"
    SERVICE_TAGS_CREATE = "service_tags.create"
    SERVICE_TAGS_UPDATE = "service_tags.update"
    SERVICE_TAGS_DELETE = "service_tags.delete"

    TICKETS_VIEW_ALL = "tickets.view_all"
    TICKETS_CREATE = "tickets.create"
    TICKETS_UPDATE = "tickets.update"
    TICKETS_ASSIGN = "tickets.assign"
    TICKETS_MANAGE_TAGS = "tickets.manage_tags"
    TICKETS_DELETE = "tickets.delete"
    TICKETS_APPROVE = "tickets.approve"

    COMMENTS_VIEW = "comments.view"
    COMMENTS_CREATE = "comments.create"


ACTION_ROLES: dict[Action, frozenset[Role]] = {
    Action.USERS_VIEW: ROLES_STAFF,
    Action.USERS_CREATE: ROLES_ADMIN,
    Action.USERS_UPDATE: ROLES_ADMIN,
    Action.USERS_DISABLE: ROLES_ADMIN,
    Action.USERS_DELETE: ROLES_ADMIN,
    Action.CLIENTS_VIEW_ALL: ROLES_STAFF,
    Action.CLIENTS_CREATE: ROLES_ADMIN,
    Action.CLIENTS_UPDATE: ROLES_ADMIN,
    Action.CLIENTS_DELETE: ROLES_ADMIN,
    Action.SERVICE_TAGS_VIEW_ALL: ROLES_STAFF,
    Action.SERVICE_TAGS_CREATE: ROLES_STAFF,
    Action.SERVICE_TAGS_UPDATE: ROLES_STAFF,
    Action.SERVICE_TAGS_DELETE: ROLES_STAFF,
    Action.TICKETS_VIEW_ALL: ROLES_STAFF,
    Action.TICKETS_CREATE: ROLES_ANY,
    Action.TICKETS_UPDATE: ROLES_STAFF,
    Action.TICKETS_ASSIGN: ROLES_STAFF,
    Action.TICKETS_MANAGE_TAGS: ROLES_STAFF,
    Action.TICKETS_DELETE: ROLES_ADMIN,
    Action.TICKETS_APPROVE: ROLES_ADMIN,
    Action.COMMENTS_VIEW: ROLES_ANY,
    Action.COMMENTS_CREATE: ROLES_ANY,
}


@dataclass(frozen=True)
class AuthorizationDecision:
    allowed: bool
    reason: str | None = None


def authorize(role: Role | str, action: Action | str) -> AuthorizationDecision:
    """Pure lookup: may `role` perform `action`?"""
    try:
        role = Role(role)
    except ValueError:
        return AuthorizationDecision(False, f"Unknown role '{role}'")
    try:
        action = Action(action)
    except ValueError:
        return AuthorizationDecision(False, f"Unknown action '{action}'")
    if role in ACTION_ROLES[action]:
        return AuthorizationDecision(True)
    return AuthorizationDecision(
        False, f"Role '{role.value}' not authorized for {action.value}"
    )


def is_staff(role: Role) -> bool:
    return role in ROLES_STAFF


def is_admin(role: Role) -> bool:
    return role in ROLES_ADMIN


def can_manage_target(actor_role: Role, target_role: Role) -> AuthorizationDecision:
    """Only a superadmin may create, modify, disable or delete a superadmin."""
    if target_role == Role.SUPERADMIN and actor_role != Role.SUPERADMIN:
        return AuthorizationDecision(
            False, "Only a superadmin can manage superadmin accounts"
        )
    return AuthorizationDecision(True)


def can_access_client(role: Role, session_client_id: UUID | None, client_id: UUID) -> bool:
    """Staff see every client; client users only their own."""
    if is_staff(role):
        return True
    return session_client_id is not None and session_client_id == client_id
