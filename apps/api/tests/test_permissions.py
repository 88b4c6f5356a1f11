"""Tests for the role/action rule table."""

import uuid

import pytest

from helpdesk.core.permissions import (
    ACTION_ROLES,
    Action,
    authorize,
    can_access_client,
    can_manage_target,
)
from helpdesk.db.enums import Role

STAFF = [Role.SUPERADMIN, Role.ADMIN, Role.TECHNICIAN]
ADMINS = [Role.SUPERADMIN, Role.ADMIN]


def test_every_action_has_a_rule():
    assert set(ACTION_ROLES) == set(Action)


@pytest.mark.parametrize(
    "action",
    [Action.USERS_CREATE, Action.USERS_DELETE, Action.CLIENTS_CREATE, Action.CLIENTS_DELETE],
)
def test_user_and_client_management_is_admin_only(action):
    for role in Role:
        decision = authorize(role, action)
        assert decision.allowed is (role in ADMINS)
        if not decision.allowed:
            assert role.value in decision.reason


@pytest.mark.parametrize(
    "action",
    [Action.USERS_VIEW, Action.TICKETS_VIEW_ALL, Action.CLIENTS_VIEW_ALL],
)
def test_list_reads_require_staff(action):
    for role in Role:
        assert authorize(role, action).allowed is (role in STAFF)


def test_approval_and_ticket_delete_are_admin_only():
    assert authorize(Role.TECHNICIAN, Action.TICKETS_APPROVE).allowed is False
    assert authorize(Role.TECHNICIAN, Action.TICKETS_DELETE).allowed is False
    assert authorize(Role.ADMIN, Action.TICKETS_APPROVE).allowed is True
    assert authorize(Role.SUPERADMIN, Action.TICKETS_DELETE).allowed is True


def test_every_role_can_create_tickets_and_comment():
    for role in Role:
        assert authorize(role, Action.TICKETS_CREATE).allowed
        assert authorize(role, Action.COMMENTS_CREATE).allowed


def test_authorize_accepts_string_values():
    assert authorize("technician", "service_tags.create").allowed is True


def test_authorize_denies_unknown_role_and_action():
    assert authorize("guest", Action.TICKETS_CREATE).allowed is False
    assert authorize(Role.ADMIN, "tickets.explode").allowed is False


def test_only_superadmin_manages_superadmins():
    assert can_manage_target(Role.ADMIN, Role.SUPERADMIN).allowed is False
    assert can_manage_target(Role.SUPERADMIN, Role.SUPERADMIN).allowed is True
    assert can_manage_target(Role.ADMIN, Role.TECHNICIAN).allowed is True


def test_client_scope():
    own = uuid.uuid4()
    other = uuid.uuid4()
    assert can_access_client(Role.CLIENT, own, own) is True
    assert can_access_client(Role.CLIENT, own, other) is False
    assert can_access_client(Role.CLIENT, None, other) is False
    assert can_access_client(Role.TECHNICIAN, None, other) is True
