"""
onedosh_api.db.repositories.dosh_points

Repositories for dosh point events, accounts and the points ledger.
"""

from __future__ import annotations

import uuid

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from onedosh_api.db.models import DoshPointsAccount, DoshPointsEvent, DoshPointsTransaction


class DoshPointsEventRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_code(self, code: str) -> DoshPointsEvent | None:
        stmt = select(DoshPointsEvent).where(DoshPointsEvent.code == code)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list(self) -> list[DoshPointsEvent]:
        stmt = select(DoshPointsEvent).order_by(DoshPointsEvent.code)
        return list((await self._session.execute(stmt)).scalars().all())


class DoshPointsAccountRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_for_user(self, user_id: uuid.UUID, *, for_update: bool = False) -> DoshPointsAccount | None:
        stmt = select(DoshPointsAccount).where(DoshPointsAccount.user_id == user_id)
        if for_update:
            stmt = stmt.with_for_update()
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def find_or_create(self, user_id: uuid.UUID) -> DoshPointsAccount:
        account = await self.get_for_user(user_id, for_update=True)
        if account is None:
            account = DoshPointsAccount(user_id=user_id, balance=0)
            self._session.add(account)
            await self._session.flush()
        return account


class DoshPointsTransactionRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_existing(
        self,
        *,
        user_id: uuid.UUID,
        event_code: str,
        source_reference: str | None = None,
    ) -> DoshPointsTransaction | None:
        stmt = select(DoshPointsTransaction).where(
            DoshPointsTransaction.user_id == user_id,
            DoshPointsTransaction.event_code == event_code,
        )
        if source_reference is not None:
            stmt = stmt.where(DoshPointsTransaction.source_reference == source_reference)
        return (await self._session.execute(stmt.limit(1))).scalar_one_or_none()

    async def add(self, row: DoshPointsTransaction) -> DoshPointsTransaction:
        self._session.add(row)
        await self._session.flush()
        return row

    async def history(
        self, user_id: uuid.UUID, *, page: int, limit: int
    ) -> tuple[list[DoshPointsTransaction], int]:
        where = (DoshPointsTransaction.user_id == user_id, DoshPointsTransaction.amount > 0)
        total = (
            await self._session.execute(select(func.count(DoshPointsTransaction.id)).where(*where))
        ).scalar_one()
        stmt = (
            select(DoshPointsTransaction)
            .where(*where)
            .order_by(desc(DoshPointsTransaction.created_at))
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list((await self._session.execute(stmt)).scalars().all()), int(total)
