from __future__ import annotations

import uuid

from sqlalchemy import desc, exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from onedosh_api.db.models import (
    Card,
    CardStatus,
    CardTransaction,
    CardTransactionStatus,
    CardUser,
)


class CardUserRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_for_user(self, user_id: uuid.UUID) -> CardUser | None:
        stmt = select(CardUser).where(CardUser.user_id == user_id)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def add(self, row: CardUser) -> CardUser:
        self._session.add(row)
        await self._session.flush()
        return row


class CardRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, card: Card) -> Card:
        self._session.add(card)
        await self._session.flush()
        return card

    async def get(self, card_id: uuid.UUID, *, for_update: bool = False) -> Card | None:
        return await self._session.get(Card, card_id, with_for_update=for_update)

    async def list_for_user(self, user_id: uuid.UUID) -> list[Card]:
        stmt = select(Card).where(Card.user_id == user_id).order_by(desc(Card.created_at))
        return list((await self._session.execute(stmt)).scalars().all())

    async def has_open_card(self, user_id: uuid.UUID) -> bool:
        stmt = select(
            exists().where(
                Card.user_id == user_id,
                Card.status.in_(
                    [CardStatus.pending, CardStatus.active, CardStatus.inactive, CardStatus.blocked]
                ),
            )
        )
        return bool((await self._session.execute(stmt)).scalar())

    async def canceled_with_balance(self, user_id: uuid.UUID) -> list[Card]:
        stmt = (
            select(Card)
            .where(Card.user_id == user_id, Card.status == CardStatus.canceled, Card.balance > 0)
            .order_by(Card.created_at)
            .with_for_update()
        )
        return list((await self._session.execute(stmt)).scalars().all())


class CardTransactionRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, row: CardTransaction) -> CardTransaction:
        self._session.add(row)
        await self._session.flush()
        return row

    async def has_pending(self, card_id: uuid.UUID) -> bool:
        stmt = select(
            exists().where(
                CardTransaction.card_id == card_id,
                CardTransaction.status == CardTransactionStatus.pending,
            )
        )
        return bool((await self._session.execute(stmt)).scalar())

    async def list_for_card(self, card_id: uuid.UUID, *, limit: int = 50) -> list[CardTransaction]:
        stmt = (
            select(CardTransaction)
            .where(CardTransaction.card_id == card_id)
            .order_by(desc(CardTransaction.created_at))
            .limit(limit)
        )
        return list((await self._session.execute(stmt)).scalars().all())
