"""
onedosh_api.db.repositories.kyc

Repositories for tier configuration and KYC verification rows.
"""

from __future__ import annotations

import uuid

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from onedosh_api.db.models import KycVerification, TierConfig, UserTier


class TierConfigRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_active(self, *, country_code: str, level: int) -> TierConfig | None:
        stmt = select(TierConfig).where(
            TierConfig.country_code == country_code.upper(),
            TierConfig.level == level,
            TierConfig.is_active.is_(True),
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list(self, *, country_code: str | None = None) -> list[TierConfig]:
        stmt = select(TierConfig).order_by(TierConfig.country_code, TierConfig.level)
        if country_code:
            stmt = stmt.where(TierConfig.country_code == country_code.upper())
        return list((await self._session.execute(stmt)).scalars().all())

    async def add(self, row: TierConfig) -> TierConfig:
        self._session.add(row)
        await self._session.flush()
        return row


class UserTierRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_for_user(self, user_id: uuid.UUID) -> UserTier | None:
        stmt = select(UserTier).where(UserTier.user_id == user_id)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def upsert(self, *, user_id: uuid.UUID, tier: TierConfig) -> UserTier:
        row = await self.get_for_user(user_id)
        if row is None:
            row = UserTier(user_id=user_id, tier_config_id=tier.id, level=tier.level)
            self._session.add(row)
        elif tier.level >= row.level:
            # Tiers never move down through KYC approval.
            row.tier_config_id = tier.id
            row.level = tier.level
        await self._session.flush()
        return row


class KycRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, kyc_id: uuid.UUID, *, for_update: bool = False) -> KycVerification | None:
        stmt = select(KycVerification).where(
            KycVerification.id == kyc_id, KycVerification.deleted_at.is_(None)
        )
        if for_update:
            stmt = stmt.with_for_update()
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def latest_for_user(self, user_id: uuid.UUID) -> KycVerification | None:
        stmt = (
            select(KycVerification)
            .where(KycVerification.user_id == user_id, KycVerification.deleted_at.is_(None))
            .order_by(desc(KycVerification.created_at))
            .limit(1)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def add(self, row: KycVerification) -> KycVerification:
        self._session.add(row)
        await self._session.flush()
        return row
