"""API tests for the public ticket approval workflow."""

import pytest

from api_helpers import create_public_ticket
from helpdesk.db.enums import TicketStatus, TicketUpdateType
from helpdesk.db.models import Ticket, TicketUpdate


async def _submit(api) -> str:
    async with api() as c:
        response = await create_public_ticket(c)
    return response.json()["data"]["ticket_id"]


@pytest.mark.asyncio
async def test_admin_approves_pending_ticket(api, db, admin):
    ticket_id = await _submit(api)

    async with api(admin) as c:
        response = await c.post(f"/tickets/{ticket_id}/approve", json={"approved": True})

    assert response.status_code == 200
    assert response.json()["status"] == "open"
    ticket = db.get(Ticket, ticket_id)
    assert ticket.status == TicketStatus.OPEN
    assert ticket.approved_by == admin.id
    assert ticket.approved_at is not None
    assert ticket.time_open is not None
    entry = (
        db.query(TicketUpdate)
        .filter(TicketUpdate.ticket_id == ticket_id, TicketUpdate.update_type == TicketUpdateType.APPROVAL)
        .one()
    )
    assert entry.user_id == admin.id


@pytest.mark.asyncio
async def test_second_decision_is_not_eligible(api, db, admin):
    ticket_id = await _submit(api)

    async with api(admin) as c:
        await c.post(f"/tickets/{ticket_id}/approve", json={"approved": True})
        response = await c.post(f"/tickets/{ticket_id}/approve", json={"approved": False})

    assert response.status_code == 400
    assert response.json()["detail"] == f"Ticket {ticket_id} is not eligible for approval"
    assert db.get(Ticket, ticket_id).status == TicketStatus.OPEN


@pytest.mark.asyncio
async def test_rejection_keeps_status_and_records_reason(api, db, superadmin):
    ticket_id = await _submit(api)

    async with api(superadmin) as c:
        response = await c.post(
            f"/tickets/{ticket_id}/approve",
            json={"approved": False, "rejection_reason": "Spam"},
        )
        again = await c.post(f"/tickets/{ticket_id}/approve", json={"approved": True})
        pending = await c.get("/tickets/pending-approval")

    assert response.status_code == 200
    assert response.json()["status"] == "pending_approval"
    ticket = db.get(Ticket, ticket_id)
    assert ticket.status == TicketStatus.PENDING_APPROVAL
    assert ticket.rejected_by == superadmin.id
    assert ticket.rejection_reason == "Spam"
    assert ticket.approved_by is None
    assert again.status_code == 400
    assert pending.json() == []


@pytest.mark.asyncio
async def test_technician_cannot_approve(api, db, technician):
    ticket_id = await _submit(api)

    async with api(technician) as c:
        response = await c.post(f"/tickets/{ticket_id}/approve", json={"approved": True})

    assert response.status_code == 403
    assert db.get(Ticket, ticket_id).status == TicketStatus.PENDING_APPROVAL


@pytest.mark.asyncio
async def test_approving_open_ticket_fails_and_leaves_status(api, db, admin, acme):
    async with api(admin) as c:
        created = await c.post(
            "/tickets",
            json={"title": "Broken screen", "description": "Cracked", "client_id": str(acme.id)},
        )
        ticket_id = created.json()["id"]
        response = await c.post(f"/tickets/{ticket_id}/approve", json={"approved": True})

    assert response.status_code == 400
    assert response.json()["code"] == "BAD_REQUEST"
    assert db.get(Ticket, ticket_id).status == TicketStatus.OPEN


@pytest.mark.asyncio
async def test_pending_list_shows_intake_details(api, db, admin):
    ticket_id = await _submit(api)

    async with api(admin) as c:
        response = await c.get("/tickets/pending-approval")

    assert response.status_code == 200
    [row] = response.json()
    assert row["ticket_id"] == ticket_id
    assert row["company_name"] == "Globex"
    assert row["service_tags"] == ["PRN-42"]
    assert row["client_was_new"] is True
    assert row["is_public_submission"] is True


@pytest.mark.asyncio
async def test_pending_ticket_cannot_be_opened_through_update(api, db, admin):
    ticket_id = await _submit(api)

    async with api(admin) as c:
        response = await c.patch(f"/tickets/{ticket_id}/status", json={"status": "open"})

    assert response.status_code == 400
    assert db.get(Ticket, ticket_id).status == TicketStatus.PENDING_APPROVAL


@pytest.mark.asyncio
async def test_intake_to_resolution_flow(api, db, admin, technician):
    ticket_id = await _submit(api)

    async with api(admin) as c:
        await c.post(f"/tickets/{ticket_id}/approve", json={"approved": True})
        assigned = await c.patch(f"/tickets/{ticket_id}/assignment", json={"assigned_to": str(technician.id)})
    assert assigned.json()["assigned_to"] == str(technician.id)

    async with api(technician) as c:
        await c.patch(f"/tickets/{ticket_id}/status", json={"status": "in_progress"})
        resolved = await c.patch(f"/tickets/{ticket_id}/status", json={"status": "resolved"})
        history = await c.get(f"/tickets/{ticket_id}/history")

    assert resolved.json()["status"] == "resolved"
    assert resolved.json()["time_closed"] is not None
    types = [entry["update_type"] for entry in history.json()]
    assert types == ["other", "approval", "assigned_change", "status_change", "status_change"]
