from __future__ import annotations

import uuid

from sqlalchemy import desc, exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from onedosh_api.db.models import SupportTicket


class SupportTicketRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, row: SupportTicket) -> SupportTicket:
        self._session.add(row)
        await self._session.flush()
        return row

    async def ticket_number_taken(self, number: int) -> bool:
        stmt = select(exists().where(SupportTicket.ticket_number == number))
        return bool((await self._session.execute(stmt)).scalar())

    async def list_for_user(self, user_id: uuid.UUID, *, limit: int = 50) -> list[SupportTicket]:
        stmt = (
            select(SupportTicket)
            .where(SupportTicket.user_id == user_id)
            .order_by(desc(SupportTicket.created_at))
            .limit(limit)
        )
        return list((await self._session.execute(stmt)).scalars().all())
