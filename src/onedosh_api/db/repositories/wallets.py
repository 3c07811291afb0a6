from __future__ import annotations

import uuid

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from onedosh_api.db.models import FiatWallet, FiatWalletTransaction, Transaction


class FiatWalletRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, user_id: uuid.UUID, asset: str) -> FiatWallet:
        wallet = FiatWallet(user_id=user_id, asset=asset, balance=0)
        self._session.add(wallet)
        await self._session.flush()
        return wallet

    async def get(self, wallet_id: uuid.UUID, *, for_update: bool = False) -> FiatWallet | None:
        return await self._session.get(FiatWallet, wallet_id, with_for_update=for_update)

    async def get_by_user_asset(
        self, user_id: uuid.UUID, asset: str, *, for_update: bool = False
    ) -> FiatWallet | None:
        stmt = select(FiatWallet).where(FiatWallet.user_id == user_id, FiatWallet.asset == asset)
        if for_update:
            stmt = stmt.with_for_update()
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_for_user(self, user_id: uuid.UUID) -> list[FiatWallet]:
        stmt = select(FiatWallet).where(FiatWallet.user_id == user_id).order_by(FiatWallet.asset)
        return list((await self._session.execute(stmt)).scalars().all())


class TransactionRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, tx: Transaction) -> Transaction:
        self._session.add(tx)
        await self._session.flush()
        return tx


class FiatWalletTransactionRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, row: FiatWalletTransaction) -> FiatWalletTransaction:
        self._session.add(row)
        await self._session.flush()
        return row

    async def get_by_idempotency_key(self, key: str) -> FiatWalletTransaction | None:
        stmt = select(FiatWalletTransaction).where(FiatWalletTransaction.idempotency_key == key)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_for_wallet(
        self, wallet_id: uuid.UUID, *, offset: int, limit: int
    ) -> tuple[list[FiatWalletTransaction], int]:
        where = FiatWalletTransaction.fiat_wallet_id == wallet_id
        total = (
            await self._session.execute(select(func.count(FiatWalletTransaction.id)).where(where))
        ).scalar_one()
        stmt = (
            select(FiatWalletTransaction)
            .where(where)
            .order_by(desc(FiatWalletTransaction.created_at))
            .offset(offset)
            .limit(limit)
        )
        return list((await self._session.execute(stmt)).scalars().all()), int(total)
