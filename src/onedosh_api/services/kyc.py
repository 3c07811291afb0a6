"""
onedosh_api.services.kyc

KYC verification and tier service.

Responsibilities:
- Start/restart a verification against an active tier configuration.
- Apply reviewer decisions with a restricted state machine.
- On approval, move the user's tier up and grant the `active-user` role.
"""

from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from onedosh_api.db.base import utcnow
from onedosh_api.db.models import KycStatus, KycVerification, TierConfig, User
from onedosh_api.db.repositories.kyc import KycRepo, TierConfigRepo, UserTierRepo
from onedosh_api.db.repositories.users import UserRepo
from onedosh_api.db.seeds import ACTIVE_USER
from onedosh_api.errors import BadRequestError, ConflictError, DoshPointsError, NotFoundError
from onedosh_api.observability.logging import get_logger
from onedosh_api.services.dosh_points import DoshPointsService
from onedosh_api.settings import Settings

log = get_logger(__name__)

KYC_APPROVED_EVENT = "KYC_APPROVED"

REVIEWABLE = frozenset({KycStatus.pending, KycStatus.in_review})
DECISIONS = frozenset({KycStatus.in_review, KycStatus.approved, KycStatus.rejected, KycStatus.resubmission_requested})


class KycService:
    def __init__(self, *, session: AsyncSession, settings: Settings) -> None:
        self._session = session
        self._settings = settings
        self._tiers = TierConfigRepo(session)
        self._user_tiers = UserTierRepo(session)
        self._kyc = KycRepo(session)

    def _provider_ref(self) -> str:
        return f"KYC-{uuid.uuid4().hex[:24]}"

    def _reset(self, row: KycVerification, tier: TierConfig | None = None) -> None:
        if tier is not None:
            row.tier_config_id = tier.id
        row.status = KycStatus.pending
        row.attempt += 1
        row.error_message = None
        row.reviewed_by = None
        row.reviewed_at = None
        row.provider_ref = self._provider_ref()

    async def initiate(self, *, user: User, level: int, country_code: str | None = None) -> KycVerification:
        country = (country_code or user.country_code or "").upper()
        if not country:
            raise BadRequestError("country_code is required")

        tier = await self._tiers.get_active(country_code=country, level=level)
        if tier is None:
            raise NotFoundError(f"No active tier configuration for level {level} in {country}")

        latest = await self._kyc.latest_for_user(user.id)
        if latest is not None and latest.status == KycStatus.approved:
            current = await self._user_tiers.get_for_user(user.id)
            if current is not None and current.level >= level:
                raise ConflictError("KYC already approved for this tier")
            latest = None

        if latest is None:
            row = await self._kyc.add(
                KycVerification(
                    user_id=user.id,
                    tier_config_id=tier.id,
                    provider=self._settings.kyc_provider_name,
                    provider_ref=self._provider_ref(),
                    status=KycStatus.pending,
                    attempt=1,
                    details={"country_code": country, "level": level},
                )
            )
        else:
            row = latest
            self._reset(row, tier)

        await self._session.commit()
        log.info("kyc_initiated", user_id=str(user.id), kyc_id=str(row.id), level=level)
        return row

    async def restart(self, *, user: User) -> KycVerification:
        row = await self._kyc.latest_for_user(user.id)
        if row is None:
            raise NotFoundError("No KYC verification found")
        if row.status == KycStatus.approved:
            raise BadRequestError("KYC already approved; restart is not allowed")
        self._reset(row)
        await self._session.commit()
        log.info("kyc_restarted", user_id=str(user.id), kyc_id=str(row.id), attempt=row.attempt)
        return row

    async def latest(self, *, user: User) -> KycVerification | None:
        return await self._kyc.latest_for_user(user.id)

    async def review(
        self,
        *,
        kyc_id: uuid.UUID,
        decision: KycStatus,
        reviewer: str,
        reason: str | None = None,
    ) -> KycVerification:
        if decision not in DECISIONS:
            raise BadRequestError(f"Invalid review decision {decision.value}")

        row = await self._kyc.get(kyc_id, for_update=True)
        if row is None:
            raise NotFoundError("KYC verification not found")
        if row.status not in REVIEWABLE:
            raise BadRequestError(f"Cannot review a verification in status {row.status.value}")

        row.status = decision
        row.reviewed_by = reviewer
        row.reviewed_at = utcnow()
        if decision in (KycStatus.rejected, KycStatus.resubmission_requested):
            row.error_message = reason

        if decision == KycStatus.approved:
            await self._approve(row)

        await self._session.commit()
        log.info("kyc_reviewed", kyc_id=str(row.id), decision=decision.value, reviewer=reviewer)
        return row

    async def _approve(self, row: KycVerification) -> None:
        users = UserRepo(self._session)
        user = await users.get(row.user_id)
        if user is None:
            raise NotFoundError("User not found")

        if row.tier_config is not None:
            await self._user_tiers.upsert(user_id=user.id, tier=row.tier_config)
        await users.add_role(user, ACTIVE_USER)

        try:
            await DoshPointsService(session=self._session).apply_credit(
                user_id=user.id,
                event_code=KYC_APPROVED_EVENT,
                source_reference=str(row.id),
            )
        except DoshPointsError as e:
            log.warning("kyc_bonus_skipped", user_id=str(user.id), reason=e.type)

    async def list_tiers(self, *, country_code: str | None = None) -> list[TierConfig]:
        return await self._tiers.list(country_code=country_code)

    async def create_tier(self, **fields) -> TierConfig:
        fields["country_code"] = fields["country_code"].upper()
        row = await self._tiers.add(TierConfig(**fields))
        await self._session.commit()
        return row
