"""
onedosh_api.services.dosh_points

Dosh points (rewards) service.

Responsibilities:
- Credit points for an event exactly once per (user, event, source).
- Enforce one-time-per-user events and event activity windows.
- Expose account balance and earning history.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from onedosh_api.db.base import utcnow
from onedosh_api.db.models import (
    DoshPointsAccount,
    DoshPointsEvent,
    DoshPointsTransaction,
    DoshPointsTransactionStatus,
    DoshPointsTransactionType,
)
from onedosh_api.db.repositories.dosh_points import (
    DoshPointsAccountRepo,
    DoshPointsEventRepo,
    DoshPointsTransactionRepo,
)
from onedosh_api.errors import DoshPointsError, DoshPointsErrorType
from onedosh_api.observability.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class CreditResult:
    transaction: DoshPointsTransaction
    is_duplicate: bool


def idempotency_key(user_id: uuid.UUID, event_code: str, source_reference: str) -> str:
    return f"{user_id}_{event_code}_{source_reference}"


class DoshPointsService:
    def __init__(self, *, session: AsyncSession) -> None:
        self._session = session
        self._events = DoshPointsEventRepo(session)
        self._accounts = DoshPointsAccountRepo(session)
        self._ledger = DoshPointsTransactionRepo(session)

    async def _active_event(self, event_code: str) -> DoshPointsEvent:
        event = await self._events.get_by_code(event_code)
        if event is None:
            raise DoshPointsError(DoshPointsErrorType.event_not_found, event_code)

        now = utcnow()
        in_window = (event.start_date is None or event.start_date <= now) and (
            event.end_date is None or event.end_date >= now
        )
        if not event.is_active or not in_window:
            raise DoshPointsError(DoshPointsErrorType.event_inactive, event_code)
        return event

    async def apply_credit(
        self,
        *,
        user_id: uuid.UUID,
        event_code: str,
        source_reference: str,
        amount: int | None = None,
        description: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> CreditResult:
        """
        Write the ledger row and bump the account balance without committing.

        Callers that already own a unit of work (registration, KYC approval) use this
        directly; `credit_points` wraps it with a commit.
        """

        event = await self._active_event(event_code)

        if event.is_one_time_per_user:
            existing = await self._ledger.find_existing(user_id=user_id, event_code=event.code)
            if existing is not None and existing.source_reference != source_reference:
                raise DoshPointsError(DoshPointsErrorType.already_earned, event.code)
        else:
            existing = await self._ledger.find_existing(
                user_id=user_id, event_code=event.code, source_reference=source_reference
            )
        if existing is not None:
            return CreditResult(transaction=existing, is_duplicate=True)

        account = await self._accounts.find_or_create(user_id)
        points = event.default_points if amount is None else amount
        before = account.balance
        after = before + points

        row = await self._ledger.add(
            DoshPointsTransaction(
                dosh_points_account_id=account.id,
                user_id=user_id,
                event_code=event.code,
                transaction_type=DoshPointsTransactionType.credit,
                amount=points,
                balance_before=before,
                balance_after=after,
                source_reference=source_reference,
                description=description or event.description,
                details=details or {},
                status=DoshPointsTransactionStatus.completed,
                idempotency_key=idempotency_key(user_id, event.code, source_reference),
                processed_at=utcnow(),
            )
        )
        account.balance = after
        await self._session.flush()

        log.info(
            "dosh_points_credited",
            user_id=str(user_id),
            event_code=event.code,
            amount=points,
            balance_after=after,
        )
        return CreditResult(transaction=row, is_duplicate=False)

    async def credit_points(self, **kwargs: Any) -> CreditResult:
        try:
            result = await self.apply_credit(**kwargs)
            await self._session.commit()
        except Exception:
            await self._session.rollback()
            raise
        return result

    async def get_account(self, user_id: uuid.UUID) -> DoshPointsAccount:
        account = await self._accounts.find_or_create(user_id)
        await self._session.commit()
        return account

    async def history(
        self, user_id: uuid.UUID, *, page: int = 1, limit: int = 10
    ) -> tuple[list[DoshPointsTransaction], int]:
        page = max(page, 1)
        limit = max(1, min(limit, 100))
        return await self._ledger.history(user_id, page=page, limit=limit)

    async def list_events(self) -> list[DoshPointsEvent]:
        return await self._events.list()
