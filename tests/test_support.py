"""
tests.test_support

Support tickets, the public contact form and requester naming.
"""

from __future__ import annotations

import pytest

from onedosh_api.db.models import User
from onedosh_api.services.support import parse_ticket_number, requester_name
from tests.helpers import signup


def test_requester_name_fallbacks() -> None:
    user = User(first_name="Ada", last_name="Lovelace", email="ada@example.com")
    assert requester_name(user=user, name="  Countess ", email=None) == "Countess"
    assert requester_name(user=user, name=None, email=None) == "Ada Lovelace"

    blank = User(first_name=" ", last_name="", email="ghost@example.com")
    assert requester_name(user=blank, name="", email=None) == "ghost"
    assert requester_name(user=None, name=None, email="visitor@example.com") == "visitor"
    assert requester_name(user=None, name=None, email=None) == "User"


def test_parse_ticket_number() -> None:
    assert parse_ticket_number(4242) == 4242
    assert parse_ticket_number("17") == 17
    assert parse_ticket_number("ZD-1") is None
    assert parse_ticket_number(None) is None


@pytest.mark.asyncio
async def test_authenticated_ticket(client, providers) -> None:
    _, headers = await signup(client, "alice")
    r = await client.post(
        "/v1/support/tickets",
        json={"subject": "Card declined", "description": "My card was declined", "priority": "high"},
        headers=headers,
    )
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["ticket_number"] == 4242
    assert body["channel"] == "ticket"
    assert body["status"] == "open"

    _, _, sent = providers.calls_to("/api/v2/tickets.json")[0]
    ticket = sent["ticket"]
    assert ticket["priority"] == "high"
    assert ticket["requester"] == {"name": "Alice Tester", "email": "alice@example.com"}
    assert "Channel: ticket" in ticket["comment"]["body"]

    tickets = (await client.get("/v1/support/tickets", headers=headers)).json()
    assert [t["subject"] for t in tickets] == ["Card declined"]


@pytest.mark.asyncio
async def test_public_contact_form(client, providers) -> None:
    providers.ticket = {"id": "abc-1", "status": "pending"}
    r = await client.post(
        "/v1/support/contact",
        json={"subject": "Hello", "description": "Question about fees"},
    )
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["channel"] == "contact"
    assert body["status"] == "pending"
    # Non-numeric desk ids get a generated 9-digit number.
    assert 100_000_000 <= body["ticket_number"] <= 999_999_999

    _, _, sent = providers.calls_to("/api/v2/tickets.json")[0]
    assert sent["ticket"]["requester"] == {"name": "User", "email": "Not provided"}


@pytest.mark.asyncio
async def test_duplicate_desk_number_is_replaced(client, providers) -> None:
    first = await client.post(
        "/v1/support/contact",
        json={"subject": "One", "description": "x", "email": "visitor@example.com"},
    )
    second = await client.post(
        "/v1/support/contact",
        json={"subject": "Two", "description": "y", "email": "visitor@example.com"},
    )
    assert first.json()["ticket_number"] == 4242
    assert second.json()["ticket_number"] != 4242

    _, _, sent = providers.calls_to("/api/v2/tickets.json")[0]
    assert sent["ticket"]["requester"]["name"] == "visitor"


@pytest.mark.asyncio
async def test_ticket_validation_and_desk_outage(client, providers) -> None:
    _, headers = await signup(client, "alice")

    r = await client.post(
        "/v1/support/tickets",
        json={"subject": "x", "description": "y", "priority": "whenever"},
        headers=headers,
    )
    assert r.status_code == 400

    r = await client.post("/v1/support/contact", json={"subject": "x", "description": "y", "email": "nope"})
    assert r.status_code == 400

    providers.fail_paths.add("/api/v2/tickets.json")
    r = await client.post("/v1/support/tickets", json={"subject": "x", "description": "y"}, headers=headers)
    assert r.status_code == 502
    assert (await client.get("/v1/support/tickets", headers=headers)).json() == []
