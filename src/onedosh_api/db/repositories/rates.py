from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from onedosh_api.db.models import ExchangeRate, RateConfig


class RateConfigRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_provider(self, provider: str) -> RateConfig | None:
        stmt = select(RateConfig).where(RateConfig.provider == provider)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def add(self, row: RateConfig) -> RateConfig:
        self._session.add(row)
        await self._session.flush()
        return row


class ExchangeRateRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, rate_id: uuid.UUID) -> ExchangeRate | None:
        stmt = select(ExchangeRate).where(ExchangeRate.id == rate_id, ExchangeRate.deleted_at.is_(None))
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def find_identical(
        self,
        *,
        provider: str,
        buying_currency_code: str,
        selling_currency_code: str,
        rate: int,
    ) -> ExchangeRate | None:
        stmt = (
            select(ExchangeRate)
            .where(
                ExchangeRate.provider == provider,
                ExchangeRate.buying_currency_code == buying_currency_code,
                ExchangeRate.selling_currency_code == selling_currency_code,
                ExchangeRate.rate == rate,
                ExchangeRate.deleted_at.is_(None),
            )
            .limit(1)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def add(self, row: ExchangeRate) -> ExchangeRate:
        self._session.add(row)
        await self._session.flush()
        return row
