"""API tests for ticket CRUD, assignment and service tag links."""

import re

import pytest

from helpdesk.db.enums import Role, TicketStatus
from helpdesk.db.models import Ticket, TicketServiceTag, TicketUpdate


async def _create(c, client, **overrides):
    payload = {"title": "No network", "description": "Switch down", "client_id": str(client.id)}
    payload.update(overrides)
    return await c.post("/tickets", json=payload)


@pytest.mark.asyncio
async def test_create_ticket_defaults(api, db, technician, acme, make_service_tag):
    tag = make_service_tag(acme, "SW-1")

    async with api(technician) as c:
        response = await _create(c, acme, service_tag_ids=[str(tag.id)])

    assert response.status_code == 201
    body = response.json()
    assert re.fullmatch(r"TK-\d{6}", body["id"])
    assert body["status"] == "open"
    assert body["priority"] == "medium"
    assert body["source"] == "web"
    assert body["reported_by"] == str(technician.id)
    assert body["time_open"] is not None
    assert body["client"]["company_name"] == "Acme Corp"
    assert [t["tag"] for t in body["service_tags"]] == ["SW-1"]


@pytest.mark.asyncio
async def test_ticket_ids_are_sequential(api, db, admin, acme):
    async with api(admin) as c:
        first = await _create(c, acme)
        second = await _create(c, acme)
    assert first.json()["id"] == "TK-000001"
    assert second.json()["id"] == "TK-000002"


@pytest.mark.asyncio
async def test_client_user_files_only_for_own_company(api, db, client_user, acme, make_client_company):
    other = make_client_company("Initech")

    async with api(client_user) as c:
        own = await _create(c, acme)
        foreign = await _create(c, other)

    assert own.status_code == 201
    assert foreign.status_code == 403


@pytest.mark.asyncio
async def test_service_tag_from_other_client_is_rejected(api, db, admin, acme, make_client_company, make_service_tag):
    foreign_tag = make_service_tag(make_client_company("Initech"), "X-1")

    async with api(admin) as c:
        response = await _create(c, acme, service_tag_ids=[str(foreign_tag.id)])

    assert response.status_code == 400
    assert db.query(Ticket).count() == 0


@pytest.mark.asyncio
async def test_client_reads_are_scoped(api, db, admin, client_user, acme, make_client_company):
    other = make_client_company("Initech")
    async with api(admin) as c:
        own_id = (await _create(c, acme)).json()["id"]
        foreign_id = (await _create(c, other)).json()["id"]

    async with api(client_user) as c:
        own = await c.get(f"/tickets/{own_id}")
        foreign = await c.get(f"/tickets/{foreign_id}")
        by_client = await c.get(f"/tickets/by-client/{acme.id}")
        by_other_client = await c.get(f"/tickets/by-client/{other.id}")
        listing = await c.get("/tickets")

    assert own.status_code == 200
    assert foreign.status_code == 403
    assert [t["id"] for t in by_client.json()] == [own_id]
    assert by_other_client.status_code == 403
    assert listing.status_code == 403


@pytest.mark.asyncio
async def test_missing_ticket_is_not_found(api, db, admin):
    async with api(admin) as c:
        response = await c.get("/tickets/TK-999999")
    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_client_cannot_update_tickets(api, db, admin, client_user, acme):
    async with api(admin) as c:
        ticket_id = (await _create(c, acme)).json()["id"]
    async with api(client_user) as c:
        response = await c.patch(f"/tickets/{ticket_id}", json={"title": "Hacked"})
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_status_write_to_pending_approval_is_rejected(api, db, admin, acme):
    async with api(admin) as c:
        ticket_id = (await _create(c, acme)).json()["id"]
        response = await c.patch(f"/tickets/{ticket_id}", json={"status": "pending_approval"})
    assert response.status_code == 400
    assert db.get(Ticket, ticket_id).status == TicketStatus.OPEN


@pytest.mark.asyncio
async def test_closing_stamps_and_reopening_clears_time_closed(api, db, admin, acme):
    async with api(admin) as c:
        ticket_id = (await _create(c, acme)).json()["id"]
        closed = await c.patch(f"/tickets/{ticket_id}", json={"status": "closed"})
        reopened = await c.patch(f"/tickets/{ticket_id}", json={"status": "open"})

    assert closed.json()["time_closed"] is not None
    assert reopened.status_code == 200
    assert reopened.json()["time_closed"] is None


@pytest.mark.asyncio
async def test_forward_only_mode_blocks_reopen(api, db, admin, acme, monkeypatch):
    from helpdesk.core.config import settings

    monkeypatch.setattr(settings, "ENFORCE_FORWARD_TRANSITIONS", True)
    async with api(admin) as c:
        ticket_id = (await _create(c, acme)).json()["id"]
        await c.patch(f"/tickets/{ticket_id}/status", json={"status": "resolved"})
        await c.patch(f"/tickets/{ticket_id}/status", json={"status": "closed"})
        response = await c.patch(f"/tickets/{ticket_id}/status", json={"status": "open"})
    assert response.status_code == 400
    assert db.get(Ticket, ticket_id).status == TicketStatus.CLOSED


@pytest.mark.asyncio
async def test_partial_update_touches_only_sent_fields(api, db, admin, technician, acme):
    async with api(admin) as c:
        ticket_id = (await _create(c, acme, assigned_to=str(technician.id))).json()["id"]
        response = await c.patch(f"/tickets/{ticket_id}", json={"priority": "high"})

    body = response.json()
    assert body["priority"] == "high"
    assert body["title"] == "No network"
    assert body["assigned_to"] == str(technician.id)


@pytest.mark.asyncio
async def test_assignee_rules(api, db, admin, technician, client_user, acme, make_user):
    disabled_tech = make_user(Role.TECHNICIAN, is_disabled=True)

    async with api(admin) as c:
        ticket_id = (await _create(c, acme)).json()["id"]
        to_client = await c.patch(f"/tickets/{ticket_id}/assignment", json={"assigned_to": str(client_user.id)})
        to_disabled = await c.patch(f"/tickets/{ticket_id}/assignment", json={"assigned_to": str(disabled_tech.id)})
        to_tech = await c.patch(f"/tickets/{ticket_id}/assignment", json={"assigned_to": str(technician.id)})
        unassigned = await c.patch(f"/tickets/{ticket_id}", json={"assigned_to": None})

    assert to_client.status_code == 400
    assert to_disabled.status_code == 400
    assert to_tech.json()["assignee"]["name"] == "Tom Tech"
    assert unassigned.json()["assigned_to"] is None


@pytest.mark.asyncio
async def test_attach_is_idempotent_and_detach_is_noop_when_absent(api, db, technician, acme, make_service_tag):
    tag = make_service_tag(acme, "SRV-9")

    async with api(technician) as c:
        ticket_id = (await _create(c, acme)).json()["id"]
        first = await c.post(f"/tickets/{ticket_id}/service-tags", json={"service_tag_id": str(tag.id)})
        second = await c.post(f"/tickets/{ticket_id}/service-tags", json={"service_tag_id": str(tag.id)})
        removed = await c.delete(f"/tickets/{ticket_id}/service-tags/{tag.id}")
        removed_again = await c.delete(f"/tickets/{ticket_id}/service-tags/{tag.id}")

    assert first.status_code == 200
    assert second.status_code == 200
    assert len(second.json()["service_tags"]) == 1
    assert removed.json()["service_tags"] == []
    assert removed_again.status_code == 200
    assert db.query(TicketServiceTag).count() == 0


@pytest.mark.asyncio
async def test_replace_service_tags_through_update(api, db, admin, acme, make_service_tag):
    a = make_service_tag(acme, "A-1")
    b = make_service_tag(acme, "B-1")

    async with api(admin) as c:
        ticket_id = (await _create(c, acme, service_tag_ids=[str(a.id)])).json()["id"]
        response = await c.patch(f"/tickets/{ticket_id}", json={"service_tag_ids": [str(b.id)]})
        by_tag = await c.get(f"/tickets/by-service-tag/{b.id}")

    assert [t["tag"] for t in response.json()["service_tags"]] == ["B-1"]
    assert [t["id"] for t in by_tag.json()] == [ticket_id]


@pytest.mark.asyncio
async def test_delete_ticket_requires_admin(api, db, admin, technician, acme):
    async with api(admin) as c:
        ticket_id = (await _create(c, acme)).json()["id"]

    async with api(technician) as c:
        denied = await c.delete(f"/tickets/{ticket_id}")
    async with api(admin) as c:
        deleted = await c.delete(f"/tickets/{ticket_id}")

    assert denied.status_code == 403
    assert deleted.status_code == 200
    db.expire_all()
    assert db.get(Ticket, ticket_id) is None
    assert db.query(TicketUpdate).count() == 0


@pytest.mark.asyncio
async def test_history_categories_are_explicit(api, db, admin, technician, acme):
    async with api(admin) as c:
        ticket_id = (await _create(c, acme)).json()["id"]
        await c.patch(
            f"/tickets/{ticket_id}",
            json={"status": "in_progress", "assigned_to": str(technician.id), "title": "Status of switch"},
        )
        history = (await c.get(f"/tickets/{ticket_id}/history")).json()

    assert [(e["update_type"], e["message"]) for e in history] == [
        ("other", "Ticket created"),
        ("status_change", "Status changed from open to in_progress"),
        ("assigned_change", "Assigned to Tom Tech"),
        ("other", "Updated title"),
    ]
    assert history[0]["user_name"] == "Ada Admin"


@pytest.mark.asyncio
async def test_technician_may_assign_but_client_may_not(api, technician, client_user, acme):
    async with api(technician) as c:
        ticket_id = (await _create(c, acme)).json()["id"]
        by_tech = await c.patch(f"/tickets/{ticket_id}/assignment", json={"assigned_to": str(technician.id)})
    async with api(client_user) as c:
        by_client = await c.patch(f"/tickets/{ticket_id}/assignment", json={"assigned_to": None})

    assert by_tech.status_code == 200
    assert by_tech.json()["assigned_to"] == str(technician.id)
    assert by_client.status_code == 403
