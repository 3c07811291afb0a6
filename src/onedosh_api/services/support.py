"""
onedosh_api.services.support

Support ticket service.

Responsibilities:
- Open tickets with the support desk for signed-in users and public contact forms.
- Keep a local copy keyed by the desk's ticket number.
"""

from __future__ import annotations

import secrets
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from onedosh_api.db.models import SupportTicket, SupportTicketChannel, SupportTicketStatus, User
from onedosh_api.db.repositories.support import SupportTicketRepo
from onedosh_api.observability.logging import get_logger
from onedosh_api.providers.support import STATUS_MAP, SupportProviderClient

log = get_logger(__name__)

EMAIL_NOT_PROVIDED = "Not provided"


def requester_name(*, user: User | None, name: str | None, email: str | None) -> str:
    if name and name.strip():
        return name.strip()
    if user is not None:
        full = " ".join(p for p in (user.first_name, user.last_name) if p and p.strip())
        if full:
            return full
    address = email or (user.email if user is not None else None)
    if address and "@" in address:
        local = address.split("@", 1)[0]
        if local:
            return local
    return "User"


def parse_ticket_number(raw: Any) -> int | None:
    try:
        return int(str(raw))
    except (TypeError, ValueError):
        return None


class SupportService:
    def __init__(self, *, session: AsyncSession, client: SupportProviderClient) -> None:
        self._session = session
        self._client = client
        self._tickets = SupportTicketRepo(session)

    async def _generate_ticket_number(self) -> int:
        while True:
            number = 100_000_000 + secrets.randbelow(900_000_000)
            if not await self._tickets.ticket_number_taken(number):
                return number

    async def create_ticket(
        self,
        *,
        subject: str,
        description: str,
        channel: SupportTicketChannel,
        user: User | None = None,
        name: str | None = None,
        email: str | None = None,
        priority: str = "normal",
    ) -> SupportTicket:
        final_email = email or (user.email if user is not None else None) or EMAIL_NOT_PROVIDED
        display = requester_name(user=user, name=name, email=email)

        content = "\n".join(
            [
                description,
                "",
                f"Name: {display}",
                f"Email: {final_email}",
                f"Channel: {channel.value}",
            ]
        )
        remote = await self._client.create_ticket(
            subject=subject,
            body=content,
            requester_name=display,
            requester_email=final_email,
            priority=priority,
        )

        number = parse_ticket_number(remote.get("id"))
        if number is None or await self._tickets.ticket_number_taken(number):
            number = await self._generate_ticket_number()

        status = SupportTicketStatus(STATUS_MAP.get(str(remote.get("status", "new")).lower(), "open"))
        row = await self._tickets.add(
            SupportTicket(
                user_id=user.id if user is not None else None,
                ticket_number=number,
                subject=subject,
                description=description,
                content=content,
                channel=channel,
                status=status,
                provider_ticket_id=str(remote["id"]) if remote.get("id") is not None else None,
            )
        )
        await self._session.commit()
        log.info("support_ticket_created", ticket_number=number, channel=channel.value)
        return row

    async def list_for_user(self, *, user: User) -> list[SupportTicket]:
        return await self._tickets.list_for_user(user.id)
