"""API tests for ticket comments and attachments."""

import os
from uuid import UUID

import pytest

from helpdesk.db.enums import TicketUpdateType
from helpdesk.db.models import TicketComment, TicketUpdate

PNG_DATA_URL = "data:image/png;base64,iVBORw0KGgo="


@pytest.fixture
async def ticket_id(api, db, admin, acme):
    async with api(admin) as c:
        response = await c.post(
            "/tickets",
            json={"title": "Slow laptop", "description": "Takes ages", "client_id": str(acme.id)},
        )
    return response.json()["id"]


@pytest.mark.asyncio
async def test_client_comments_on_own_ticket_with_files(api, db, client_user, ticket_id, upload_dir):
    async with api(client_user) as c:
        response = await c.post(
            "/comments",
            json={
                "ticket_id": ticket_id,
                "content": "Still slow",
                "files": [
                    {"filename": "screen.png", "data": PNG_DATA_URL},
                    {"filename": "log.txt", "data": "aGVsbG8=", "content_type": "text/plain"},
                ],
            },
        )

    assert response.status_code == 201
    body = response.json()
    assert body["user_name"] == "Carl Client"
    assert body["user_role"] == "client"
    assert len(body["photo_urls"]) == 2
    for url in body["photo_urls"]:
        assert f"/uploads/tickets/{ticket_id}/comments/" in url
        key = url.split("/uploads/", 1)[1]
        assert os.path.exists(os.path.join(upload_dir, key))
    assert body["photo_urls"][0].endswith(".png")
    assert body["photo_urls"][1].endswith(".txt")

    entry = (
        db.query(TicketUpdate)
        .filter(TicketUpdate.ticket_id == ticket_id, TicketUpdate.update_type == TicketUpdateType.COMMENT_ADDED)
        .one()
    )
    assert entry.user_id == client_user.id


@pytest.mark.asyncio
async def test_empty_content_is_rejected(api, db, admin, ticket_id):
    async with api(admin) as c:
        response = await c.post("/comments", json={"ticket_id": ticket_id, "content": "   "})
    assert response.status_code == 400
    assert db.query(TicketComment).count() == 0


@pytest.mark.asyncio
async def test_upload_failure_aborts_and_cleans_up(api, db, admin, ticket_id, monkeypatch):
    from helpdesk.services import storage_service

    stored: list[str] = []
    deleted: list[str] = []

    async def flaky_store(key, data, content_type):
        if key.endswith(".txt"):
            raise OSError("bucket unavailable")
        stored.append(key)
        return f"https://files.example/{key}"

    async def record_delete(keys):
        deleted.extend(keys)

    monkeypatch.setattr(storage_service, "store_bytes_async", flaky_store)
    monkeypatch.setattr(storage_service, "delete_objects", record_delete)

    async with api(admin) as c:
        response = await c.post(
            "/comments",
            json={
                "ticket_id": ticket_id,
                "content": "See attachments",
                "files": [
                    {"filename": "a.png", "data": PNG_DATA_URL},
                    {"filename": "b.txt", "data": "aGVsbG8=", "content_type": "text/plain"},
                ],
            },
        )

    assert response.status_code == 500
    assert response.json()["code"] == "INTERNAL_SERVER_ERROR"
    assert deleted == stored and len(stored) == 1
    assert db.query(TicketComment).count() == 0
    assert (
        db.query(TicketUpdate)
        .filter(TicketUpdate.update_type == TicketUpdateType.COMMENT_ADDED)
        .count()
        == 0
    )


@pytest.mark.asyncio
async def test_client_cannot_comment_on_other_company(api, db, admin, make_user, make_client_company, ticket_id):
    from helpdesk.db.enums import Role

    outsider = make_user(Role.CLIENT, client=make_client_company("Initech"))
    async with api(outsider) as c:
        response = await c.post("/comments", json={"ticket_id": ticket_id, "content": "Hi"})
        listing = await c.get(f"/comments/by-ticket/{ticket_id}")
    assert response.status_code == 403
    assert listing.status_code == 403


@pytest.mark.asyncio
async def test_soft_delete_rules(api, db, admin, technician, client_user, ticket_id):
    async with api(client_user) as c:
        comment_id = (await c.post("/comments", json={"ticket_id": ticket_id, "content": "First"})).json()["id"]
        await c.post("/comments", json={"ticket_id": ticket_id, "content": "Second"})

    async with api(technician) as c:
        denied = await c.delete(f"/comments/{comment_id}")
    async with api(client_user) as c:
        allowed = await c.delete(f"/comments/{comment_id}")
        again = await c.delete(f"/comments/{comment_id}")
        listing = await c.get(f"/comments/by-ticket/{ticket_id}")

    assert denied.status_code == 403
    assert allowed.status_code == 200
    assert again.status_code == 404
    assert [c["content"] for c in listing.json()] == ["Second"]
    db.expire_all()
    row = db.get(TicketComment, UUID(comment_id))
    assert row.is_deleted is True
    assert row.deleted_by == client_user.id


@pytest.mark.asyncio
async def test_admin_can_delete_any_comment(api, db, admin, client_user, ticket_id):
    async with api(client_user) as c:
        comment_id = (await c.post("/comments", json={"ticket_id": ticket_id, "content": "Oops"})).json()["id"]
    async with api(admin) as c:
        response = await c.delete(f"/comments/{comment_id}")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_comments_listed_oldest_first(api, db, admin, ticket_id):
    async with api(admin) as c:
        for text in ("one", "two", "three"):
            await c.post("/comments", json={"ticket_id": ticket_id, "content": text})
        response = await c.get(f"/comments/by-ticket/{ticket_id}")
    assert [c["content"] for c in response.json()] == ["one", "two", "three"]
