"""API tests for user management."""

from uuid import UUID

import pytest
from sqlalchemy.exc import OperationalError

from helpdesk.db.enums import Role
from helpdesk.db.models import User


@pytest.fixture
def sent_emails(monkeypatch):
    from helpdesk.services import email_service

    calls = []

    async def fake_send(**kwargs):
        calls.append(kwargs)
        return True, None

    monkeypatch.setattr(email_service, "send_access_email", fake_send)
    return calls


@pytest.mark.asyncio
async def test_admin_creates_client_user_and_queues_welcome_email(api, db, admin, acme, sent_emails):
    async with api(admin) as c:
        response = await c.post(
            "/users",
            json={"email": "new.client@acme.com", "name": "Nina New", "role": "client", "client_id": str(acme.id)},
        )

    assert response.status_code == 201
    body = response.json()
    assert body["welcome_email_queued"] is True
    assert body["user"]["role"] == "client"
    assert body["user"]["client_id"] == str(acme.id)

    user = db.get(User, UUID(body["user"]["id"]))
    assert user is not None and user.email == "new.client@acme.com"

    assert len(sent_emails) == 1
    sent = sent_emails[0]
    assert sent["to"] == "new.client@acme.com"
    assert sent["client_name"] == acme.name
    assert len(sent["password"]) >= 8


@pytest.mark.asyncio
async def test_client_role_requires_client_id(api, db, admin, sent_emails):
    async with api(admin) as c:
        response = await c.post("/users", json={"email": "x@acme.com", "name": "X", "role": "client"})
    assert response.status_code == 400
    assert db.query(User).filter(User.email == "x@acme.com").count() == 0
    assert sent_emails == []


@pytest.mark.asyncio
async def test_client_id_ignored_for_staff_roles(api, db, admin, acme, sent_emails):
    async with api(admin) as c:
        response = await c.post(
            "/users",
            json={"email": "tech@acme.com", "name": "Terry", "role": "technician", "client_id": str(acme.id)},
        )
    assert response.status_code == 201
    assert response.json()["user"]["client_id"] is None


@pytest.mark.asyncio
async def test_unknown_client_is_rejected(api, db, admin, sent_emails):
    async with api(admin) as c:
        response = await c.post(
            "/users",
            json={
                "email": "ghost@acme.com",
                "name": "Ghost",
                "role": "client",
                "client_id": "00000000-0000-0000-0000-000000000000",
            },
        )
    assert response.status_code == 400
    assert response.json()["detail"] == "Client not found"


@pytest.mark.asyncio
async def test_duplicate_email_is_rejected(api, db, admin, technician, sent_emails):
    async with api(admin) as c:
        response = await c.post(
            "/users", json={"email": technician.email.upper(), "name": "Dup", "role": "technician"}
        )
    assert response.status_code == 400
    assert response.json()["detail"] == "A user with this email already exists"


@pytest.mark.asyncio
async def test_only_superadmin_creates_superadmin(api, db, admin, superadmin, sent_emails):
    payload = {"email": "boss@corp.com", "name": "Boss", "role": "superadmin"}
    async with api(admin) as c:
        denied = await c.post("/users", json=payload)
    async with api(superadmin) as c:
        allowed = await c.post("/users", json=payload)
    assert denied.status_code == 403
    assert allowed.status_code == 201


@pytest.mark.asyncio
async def test_technician_can_list_but_not_create(api, db, technician, sent_emails):
    async with api(technician) as c:
        listing = await c.get("/users")
        created = await c.post("/users", json={"email": "t2@corp.com", "name": "T2", "role": "technician"})
    assert listing.status_code == 200
    assert created.status_code == 403


@pytest.mark.asyncio
async def test_client_cannot_list_users(api, client_user):
    async with api(client_user) as c:
        response = await c.get("/users")
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_me_returns_own_profile(api, client_user):
    async with api(client_user) as c:
        response = await c.get("/users/me")
    assert response.status_code == 200
    assert response.json()["id"] == str(client_user.id)


@pytest.mark.asyncio
async def test_identity_failure_is_bad_request(api, db, admin, monkeypatch, sent_emails):
    from helpdesk.services import identity_service
    from helpdesk.services.identity_service import IdentityProviderError

    async def reject(**kwargs):
        raise IdentityProviderError("Email address already registered")

    monkeypatch.setattr(identity_service, "create_user", reject)

    async with api(admin) as c:
        response = await c.post("/users", json={"email": "dup@corp.com", "name": "Dup", "role": "admin"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Email address already registered"
    assert db.query(User).filter(User.email == "dup@corp.com").count() == 0
    assert sent_emails == []


@pytest.mark.asyncio
async def test_db_failure_removes_identity_account(api, db, admin, monkeypatch, sent_emails):
    from helpdesk.services import identity_service

    removed = []

    async def record_delete(user_id):
        removed.append(user_id)

    def failing_commit():
        raise OperationalError("INSERT INTO users", {}, Exception("disk full"))

    monkeypatch.setattr(identity_service, "delete_user", record_delete)
    monkeypatch.setattr(db, "commit", failing_commit)

    async with api(admin) as c:
        response = await c.post("/users", json={"email": "fail@corp.com", "name": "Fail", "role": "technician"})

    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to create user"
    assert len(removed) == 1
    assert sent_emails == []


@pytest.mark.asyncio
async def test_role_cannot_be_changed(api, technician, admin):
    async with api(admin) as c:
        response = await c.patch(f"/users/{technician.id}", json={"role": "admin"})
    assert response.status_code == 403
    assert response.json()["detail"] == "User role cannot be changed"


@pytest.mark.asyncio
async def test_update_name_and_email(api, db, technician, admin):
    async with api(admin) as c:
        response = await c.patch(
            f"/users/{technician.id}", json={"name": "Tomas Tech", "email": "tomas@corp.com"}
        )
    assert response.status_code == 200
    db.refresh(technician)
    assert technician.name == "Tomas Tech"
    assert technician.email == "tomas@corp.com"


@pytest.mark.asyncio
async def test_admin_cannot_manage_superadmin(api, admin, superadmin):
    async with api(admin) as c:
        patched = await c.patch(f"/users/{superadmin.id}", json={"name": "Nope"})
        disabled = await c.patch(f"/users/{superadmin.id}/status", json={"is_disabled": True})
        deleted = await c.delete(f"/users/{superadmin.id}")
    assert patched.status_code == 403
    assert disabled.status_code == 403
    assert deleted.status_code == 403


@pytest.mark.asyncio
async def test_disable_blocks_login_and_enable_restores(api, db, admin, technician):
    async with api(admin) as c:
        response = await c.patch(f"/users/{technician.id}/status", json={"is_disabled": True})
    assert response.status_code == 200
    assert response.json()["is_disabled"] is True

    async with api(technician) as c:
        blocked = await c.get("/users/me")
    assert blocked.status_code == 401

    async with api(admin) as c:
        await c.patch(f"/users/{technician.id}/status", json={"is_disabled": False})
    async with api(technician) as c:
        restored = await c.get("/users/me")
    assert restored.status_code == 200


@pytest.mark.asyncio
async def test_cannot_disable_or_delete_self(api, admin):
    async with api(admin) as c:
        disabled = await c.patch(f"/users/{admin.id}/status", json={"is_disabled": True})
        deleted = await c.delete(f"/users/{admin.id}")
    assert disabled.status_code == 400
    assert deleted.status_code == 400


@pytest.mark.asyncio
async def test_delete_refused_while_tickets_assigned(api, db, admin, technician, acme):
    async with api(admin) as c:
        ticket = await c.post(
            "/tickets",
            json={
                "title": "Network down",
                "description": "No connectivity",
                "client_id": str(acme.id),
                "assigned_to": str(technician.id),
            },
        )
        refused = await c.delete(f"/users/{technician.id}")
        await c.patch(f"/tickets/{ticket.json()['id']}/assignment", json={"assigned_to": None})
        allowed = await c.delete(f"/users/{technician.id}")

    assert refused.status_code == 400
    assert refused.json()["detail"] == "Cannot delete user with 1 assigned ticket(s). Reassign them first."
    assert allowed.status_code == 200
    db.expire_all()
    assert db.get(User, technician.id) is None


@pytest.mark.asyncio
async def test_assignable_excludes_clients_and_disabled(api, admin, technician, client_user, make_user):
    make_user(Role.TECHNICIAN, is_disabled=True, name="Dora Disabled")
    async with api(admin) as c:
        response = await c.get("/users/assignable")
    names = [u["name"] for u in response.json()]
    assert names == sorted(names)
    assert "Tom Tech" in names and "Ada Admin" in names
    assert "Carl Client" not in names
    assert "Dora Disabled" not in names
