"""
onedosh_api.services.wallets

Fiat wallet service (transaction + persistence owner).

Responsibilities:
- Lazily provision one wallet per (user, supported currency).
- Apply balance changes as a `Transaction` + `FiatWalletTransaction` pair with
  before/after balances, refusing to go below zero.
- User-to-user transfers and admin credits.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from onedosh_api.db.base import utcnow
from onedosh_api.db.models import (
    FiatWallet,
    FiatWalletTransaction,
    Transaction,
    TransactionStatus,
    TransactionType,
    User,
    WalletStatus,
)
from onedosh_api.db.repositories.users import UserRepo
from onedosh_api.db.repositories.wallets import (
    FiatWalletRepo,
    FiatWalletTransactionRepo,
    TransactionRepo,
)
from onedosh_api.errors import BadRequestError, DoshPointsError, InsufficientBalanceError, NotFoundError
from onedosh_api.observability.logging import get_logger
from onedosh_api.services.dosh_points import DoshPointsService
from onedosh_api.settings import Settings

log = get_logger(__name__)

WALLET_TRANSFER_EVENT = "WALLET_TRANSFER"


def new_reference(prefix: str = "TXN") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:20].upper()}"


@dataclass(frozen=True, slots=True)
class TransferResult:
    reference: str
    debit: FiatWalletTransaction
    credit: FiatWalletTransaction


class WalletService:
    def __init__(self, *, session: AsyncSession, settings: Settings) -> None:
        self._session = session
        self._settings = settings
        self._wallets = FiatWalletRepo(session)
        self._transactions = TransactionRepo(session)
        self._ledger = FiatWalletTransactionRepo(session)

    def _asset(self, asset: str) -> str:
        code = asset.strip().upper()
        if code not in self._settings.supported_currencies:
            raise BadRequestError(f"Unsupported currency {code}", data={"asset": code})
        return code

    async def ensure_wallets(self, user_id: uuid.UUID) -> list[FiatWallet]:
        wallets = {w.asset: w for w in await self._wallets.list_for_user(user_id)}
        for asset in self._settings.supported_currencies:
            if asset not in wallets:
                wallets[asset] = await self._wallets.create(user_id=user_id, asset=asset)
        return [wallets[a] for a in sorted(wallets)]

    async def list_wallets(self, user_id: uuid.UUID) -> list[FiatWallet]:
        wallets = await self.ensure_wallets(user_id)
        await self._session.commit()
        return wallets

    async def get_wallet(self, user_id: uuid.UUID, asset: str, *, for_update: bool = False) -> FiatWallet:
        code = self._asset(asset)
        wallet = await self._wallets.get_by_user_asset(user_id, code, for_update=for_update)
        if wallet is None:
            wallet = await self._wallets.create(user_id=user_id, asset=code)
        return wallet

    async def apply_balance_change(
        self,
        *,
        wallet: FiatWallet,
        amount: int,
        transaction_type: TransactionType,
        description: str | None = None,
        reference: str | None = None,
        idempotency_key: str | None = None,
        provider: str | None = None,
        provider_reference: str | None = None,
        source: str | None = None,
        destination: str | None = None,
    ) -> FiatWalletTransaction:
        """
        Move `amount` (signed, smallest unit) in or out of `wallet` without committing.
        """

        if idempotency_key:
            existing = await self._ledger.get_by_idempotency_key(idempotency_key)
            if existing is not None:
                return existing

        if wallet.status != WalletStatus.active:
            raise BadRequestError("Wallet is not active", data={"wallet_id": str(wallet.id)})

        before = wallet.balance
        after = before + amount
        if after < 0:
            raise InsufficientBalanceError()

        now = utcnow()
        tx = await self._transactions.add(
            Transaction(
                user_id=wallet.user_id,
                reference=reference or new_reference(),
                asset=wallet.asset,
                amount=amount,
                balance_before=before,
                balance_after=after,
                transaction_type=transaction_type,
                status=TransactionStatus.completed,
                description=description,
                details={},
                completed_at=now,
            )
        )
        row = await self._ledger.add(
            FiatWalletTransaction(
                fiat_wallet_id=wallet.id,
                transaction_id=tx.id,
                user_id=wallet.user_id,
                transaction_type=transaction_type,
                amount=amount,
                balance_before=before,
                balance_after=after,
                currency=wallet.asset,
                status=TransactionStatus.completed,
                description=description,
                provider=provider,
                provider_reference=provider_reference,
                source=source,
                destination=destination,
                idempotency_key=idempotency_key,
                processed_at=now,
                completed_at=now,
            )
        )
        wallet.balance = after
        await self._session.flush()
        log.info(
            "wallet_balance_updated",
            wallet_id=str(wallet.id),
            transaction_type=transaction_type.value,
            amount=amount,
            balance_after=after,
        )
        return row

    async def update_balance(
        self,
        *,
        wallet_id: uuid.UUID,
        amount: int,
        transaction_type: TransactionType,
        description: str | None = None,
        idempotency_key: str | None = None,
    ) -> FiatWalletTransaction:
        try:
            wallet = await self._wallets.get(wallet_id, for_update=True)
            if wallet is None:
                raise NotFoundError("Wallet not found")
            row = await self.apply_balance_change(
                wallet=wallet,
                amount=amount,
                transaction_type=transaction_type,
                description=description,
                idempotency_key=idempotency_key,
            )
            await self._session.commit()
        except Exception:
            await self._session.rollback()
            raise
        return row

    async def transfer(
        self,
        *,
        sender: User,
        recipient: str,
        asset: str,
        amount: int,
        description: str | None = None,
    ) -> TransferResult:
        receiver = await UserRepo(self._session).get_by_login(recipient)
        if receiver is None or receiver.is_deactivated:
            raise NotFoundError("Recipient not found")
        if receiver.id == sender.id:
            raise BadRequestError("Cannot transfer to yourself")

        code = self._asset(asset)
        reference = new_reference("TRF")
        try:
            # Lock both wallets in a stable order.
            pair = sorted([sender.id, receiver.id], key=str)
            locked = {uid: await self.get_wallet(uid, code, for_update=True) for uid in pair}

            debit = await self.apply_balance_change(
                wallet=locked[sender.id],
                amount=-amount,
                transaction_type=TransactionType.transfer_out,
                description=description,
                reference=f"{reference}-D",
                destination=receiver.username,
            )
            credit = await self.apply_balance_change(
                wallet=locked[receiver.id],
                amount=amount,
                transaction_type=TransactionType.transfer_in,
                description=description,
                reference=f"{reference}-C",
                source=sender.username,
            )

            try:
                await DoshPointsService(session=self._session).apply_credit(
                    user_id=sender.id,
                    event_code=WALLET_TRANSFER_EVENT,
                    source_reference=reference,
                )
            except DoshPointsError as e:
                log.info("transfer_bonus_skipped", user_id=str(sender.id), reason=e.type)

            await self._session.commit()
        except Exception:
            await self._session.rollback()
            raise

        log.info("wallet_transfer", reference=reference, asset=code, amount=amount)
        return TransferResult(reference=reference, debit=debit, credit=credit)

    async def admin_credit(
        self,
        *,
        user_id: uuid.UUID,
        asset: str,
        amount: int,
        description: str | None = None,
        idempotency_key: str | None = None,
    ) -> FiatWalletTransaction:
        if await UserRepo(self._session).get(user_id) is None:
            raise NotFoundError("User not found")
        try:
            wallet = await self.get_wallet(user_id, asset, for_update=True)
            row = await self.apply_balance_change(
                wallet=wallet,
                amount=amount,
                transaction_type=TransactionType.deposit,
                description=description or "Admin credit",
                idempotency_key=idempotency_key,
                source="admin",
            )
            await self._session.commit()
        except Exception:
            await self._session.rollback()
            raise
        return row

    async def history(
        self, *, user_id: uuid.UUID, asset: str, page: int = 1, limit: int = 20
    ) -> tuple[list[FiatWalletTransaction], int]:
        wallet = await self.get_wallet(user_id, asset)
        await self._session.commit()
        page = max(page, 1)
        limit = max(1, min(limit, 100))
        return await self._ledger.list_for_wallet(wallet.id, offset=(page - 1) * limit, limit=limit)


# --- Module Notes -----------------------------------------------------------
# `amount` is a signed delta on both ledger tables; `transaction_type` names the direction.
