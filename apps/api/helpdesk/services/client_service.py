"""Client (customer company) service."""

from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from helpdesk.core.permissions import can_access_client
from helpdesk.db.models import Client, ServiceTag, Ticket, User
from helpdesk.schemas.auth import UserSession
from helpdesk.schemas.client import ClientCreate, ClientUpdate


def get_client(db: Session, client_id: UUID) -> Client:
    client = db.get(Client, client_id)
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")
    return client


def get_client_for_session(db: Session, *, session: UserSession, client_id: UUID) -> Client:
    """Client lookup scoped to the caller: client users only see their own."""
    if not can_access_client(session.role, session.client_id, client_id):
        raise HTTPException(status_code=403, detail="Not authorized to access this client")
    return get_client(db, client_id)


def get_client_by_company_name(db: Session, company_name: str) -> Client | None:
    """Exact, case-sensitive match on company_name (oldest wins)."""
    return (
        db.query(Client)
        .filter(Client.company_name == company_name)
        .order_by(Client.created_at.asc())
        .first()
    )


def list_clients(db: Session) -> list[tuple[Client, int, int]]:
    """All clients with their service tag and ticket counts, newest first."""
    tag_counts = (
        db.query(ServiceTag.client_id, func.count(ServiceTag.id).label("n"))
        .group_by(ServiceTag.client_id)
        .subquery()
    )
    ticket_counts = (
        db.query(Ticket.client_id, func.count(Ticket.id).label("n"))
        .group_by(Ticket.client_id)
        .subquery()
    )
    rows = (
        db.query(
            Client,
            func.coalesce(tag_counts.c.n, 0),
            func.coalesce(ticket_counts.c.n, 0),
        )
        .outerjoin(tag_counts, tag_counts.c.client_id == Client.id)
        .outerjoin(ticket_counts, ticket_counts.c.client_id == Client.id)
        .order_by(Client.created_at.desc())
        .all()
    )
    return [(client, int(tags), int(tickets)) for client, tags, tickets in rows]


def create_client(db: Session, *, data: ClientCreate) -> Client:
    client = Client(
        name=data.name,
        company_name=data.company_name,
        email=str(data.email),
        phone=data.phone,
        address=data.address,
    )
    db.add(client)
    db.commit()
    db.refresh(client)
    return client


def update_client(db: Session, *, client_id: UUID, data: ClientUpdate) -> Client:
    client = get_client(db, client_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is None and field != "address":
            continue
        setattr(client, field, str(value) if field == "email" else value)
    db.commit()
    db.refresh(client)
    return client


def delete_client(db: Session, *, client_id: UUID) -> None:
    """Refused while the client still owns service tags, tickets or users."""
    client = get_client(db, client_id)
    if db.query(ServiceTag.id).filter(ServiceTag.client_id == client.id).first():
        raise HTTPException(
            status_code=400,
            detail="Cannot delete a client that has service tags. Delete its service tags first.",
        )
    if db.query(Ticket.id).filter(Ticket.client_id == client.id).first():
        raise HTTPException(
            status_code=400,
            detail="Cannot delete a client that has tickets.",
        )
    if db.query(User.id).filter(User.client_id == client.id).first():
        raise HTTPException(
            status_code=400,
            detail="Cannot delete a client that has users",
        )
    db.delete(client)
    db.commit()
