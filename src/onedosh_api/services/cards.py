"""
onedosh_api.services.cards

Card issuing service (transaction + persistence owner).

Responsibilities:
- Register card holders (KYC gated) and issue virtual cards through the issuer;
  a reissued card takes over the balance left on canceled cards.
- Freeze/unfreeze, cancel and admin block/unblock with status guards.
- Fund cards from the user's USD wallet.
"""

from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from onedosh_api.db.models import (
    Card,
    CardStatus,
    CardTransaction,
    CardTransactionStatus,
    CardTransactionType,
    CardType,
    CardUser,
    CardUserStatus,
    KycStatus,
    TransactionType,
    User,
)
from onedosh_api.db.repositories.cards import CardRepo, CardTransactionRepo, CardUserRepo
from onedosh_api.db.repositories.kyc import KycRepo
from onedosh_api.errors import BadRequestError, ConflictError, DoshPointsError, NotFoundError
from onedosh_api.observability.logging import get_logger
from onedosh_api.providers.cards import CardProviderClient, ProviderCardStatus
from onedosh_api.services.dosh_points import DoshPointsService
from onedosh_api.services.wallets import WalletService
from onedosh_api.settings import Settings

log = get_logger(__name__)

CARD_CURRENCY = "USD"
FIRST_CARD_FUNDING_EVENT = "FIRST_CARD_FUNDING"


class CardService:
    def __init__(self, *, session: AsyncSession, settings: Settings, client: CardProviderClient) -> None:
        self._session = session
        self._settings = settings
        self._client = client
        self._card_users = CardUserRepo(session)
        self._cards = CardRepo(session)
        self._card_txs = CardTransactionRepo(session)

    async def create_card_user(self, *, user: User) -> CardUser:
        kyc = await KycRepo(self._session).latest_for_user(user.id)
        if kyc is None or kyc.status != KycStatus.approved:
            raise BadRequestError("KYC must be approved before applying for a card")
        if await self._card_users.get_for_user(user.id) is not None:
            raise ConflictError("Card user already exists")

        res = await self._client.create_card_user(
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            country_code=user.country_code,
        )
        status = (
            CardUserStatus.approved
            if str(res.get("applicationStatus", "")).lower() == "approved"
            else CardUserStatus.pending
        )
        row = await self._card_users.add(
            CardUser(user_id=user.id, provider_ref=res.get("id"), status=status)
        )
        await self._session.commit()
        log.info("card_user_created", user_id=str(user.id), status=status.value)
        return row

    async def create_card(self, *, user: User, spending_limit: int | None = None) -> Card:
        card_user = await self._card_users.get_for_user(user.id)
        if card_user is None:
            raise BadRequestError("Card user not found; apply for a card account first")
        if card_user.status != CardUserStatus.approved:
            raise BadRequestError("Card account is not approved")
        if await self._cards.has_open_card(user.id):
            raise ConflictError("User already has an active card")

        res = await self._client.create_card(
            provider_user_id=card_user.provider_ref or "", limit=spending_limit
        )
        card = await self._cards.add(
            Card(
                user_id=user.id,
                card_user_id=card_user.id,
                provider_ref=res.get("id"),
                last_four_digits=res.get("last4"),
                card_type=CardType.virtual,
                status=CardStatus.active,
                is_freezed=False,
                balance=0,
                spending_limit=spending_limit,
            )
        )
        await self._carry_over_balances(user=user, card=card)
        await self._session.commit()
        log.info("card_created", user_id=str(user.id), card_id=str(card.id), balance=card.balance)
        return card

    async def _carry_over_balances(self, *, user: User, card: Card) -> None:
        # Money left on canceled cards moves to the reissued card.
        for old in await self._cards.canceled_with_balance(user.id):
            amount = old.balance
            await self._card_txs.add(
                CardTransaction(
                    card_id=old.id,
                    user_id=user.id,
                    amount=-amount,
                    fee=0,
                    currency=CARD_CURRENCY,
                    transaction_type=CardTransactionType.balance_transfer_out,
                    status=CardTransactionStatus.successful,
                    description=f"Balance moved to card {card.id}",
                )
            )
            await self._card_txs.add(
                CardTransaction(
                    card_id=card.id,
                    user_id=user.id,
                    amount=amount,
                    fee=0,
                    currency=CARD_CURRENCY,
                    transaction_type=CardTransactionType.balance_transfer_in,
                    status=CardTransactionStatus.successful,
                    description=f"Balance moved from card {old.id}",
                )
            )
            old.balance = 0
            card.balance += amount
            log.info("card_balance_carried_over", from_card=str(old.id), to_card=str(card.id), amount=amount)

    async def get_card(self, *, user: User, card_id: uuid.UUID, for_update: bool = False) -> Card:
        card = await self._cards.get(card_id, for_update=for_update)
        if card is None or card.user_id != user.id:
            raise NotFoundError("Card not found")
        return card

    async def list_cards(self, *, user: User) -> list[Card]:
        return await self._cards.list_for_user(user.id)

    async def set_frozen(self, *, user: User, card_id: uuid.UUID, freeze: bool) -> Card:
        card = await self.get_card(user=user, card_id=card_id, for_update=True)
        if card.status in (CardStatus.canceled, CardStatus.blocked):
            raise BadRequestError(f"Card is {card.status.value}")
        if freeze and card.is_freezed:
            raise BadRequestError("Card is already frozen")
        if not freeze and not card.is_freezed:
            raise BadRequestError("Card is not frozen")

        await self._client.update_card_status(
            provider_card_id=card.provider_ref or "",
            status=ProviderCardStatus.LOCKED if freeze else ProviderCardStatus.ACTIVE,
        )
        card.is_freezed = freeze
        card.status = CardStatus.inactive if freeze else CardStatus.active
        await self._session.commit()
        log.info("card_frozen" if freeze else "card_unfrozen", card_id=str(card.id))
        return card

    async def cancel(self, *, user: User, card_id: uuid.UUID) -> Card:
        card = await self.get_card(user=user, card_id=card_id, for_update=True)
        if card.status == CardStatus.canceled:
            raise BadRequestError("Card is already canceled")
        if await self._card_txs.has_pending(card.id):
            raise BadRequestError("Card has pending transactions")

        await self._client.update_card_status(
            provider_card_id=card.provider_ref or "", status=ProviderCardStatus.CANCELED
        )
        card.status = CardStatus.canceled
        card.is_freezed = True
        await self._session.commit()
        log.info("card_canceled", card_id=str(card.id))
        return card

    async def set_blocked(self, *, card_id: uuid.UUID, block: bool, actor: str) -> Card:
        card = await self._cards.get(card_id, for_update=True)
        if card is None:
            raise NotFoundError("Card not found")
        if card.status == CardStatus.canceled:
            raise BadRequestError("Canceled cards cannot be blocked or unblocked")
        if block and card.status == CardStatus.blocked:
            raise BadRequestError("Card is already blocked")
        if not block and card.status != CardStatus.blocked:
            raise BadRequestError("Card is not blocked")

        # `is_freezed` is the holder's own freeze; a block leaves it alone so unblock can restore it.
        locked = block or card.is_freezed
        await self._client.update_card_status(
            provider_card_id=card.provider_ref or "",
            status=ProviderCardStatus.LOCKED if locked else ProviderCardStatus.ACTIVE,
        )
        if block:
            card.status = CardStatus.blocked
        else:
            card.status = CardStatus.inactive if card.is_freezed else CardStatus.active
        await self._session.commit()
        log.info("card_blocked" if block else "card_unblocked", card_id=str(card.id), actor=actor)
        return card

    async def fund(self, *, user: User, card_id: uuid.UUID, amount: int) -> CardTransaction:
        try:
            card = await self.get_card(user=user, card_id=card_id, for_update=True)
            if card.status != CardStatus.active or card.is_freezed:
                raise BadRequestError("Card is not active")

            wallets = WalletService(session=self._session, settings=self._settings)
            wallet = await wallets.get_wallet(user.id, CARD_CURRENCY, for_update=True)
            debit = await wallets.apply_balance_change(
                wallet=wallet,
                amount=-amount,
                transaction_type=TransactionType.card_funding,
                description="Card funding",
                destination=f"card:{card.id}",
            )
            row = await self._card_txs.add(
                CardTransaction(
                    card_id=card.id,
                    user_id=user.id,
                    amount=amount,
                    fee=0,
                    currency=CARD_CURRENCY,
                    transaction_type=CardTransactionType.funding,
                    status=CardTransactionStatus.successful,
                    description="Card funding",
                    provider_ref=str(debit.transaction_id),
                )
            )
            card.balance += amount

            try:
                await DoshPointsService(session=self._session).apply_credit(
                    user_id=user.id,
                    event_code=FIRST_CARD_FUNDING_EVENT,
                    source_reference=str(card.id),
                )
            except DoshPointsError as e:
                log.info("card_funding_bonus_skipped", user_id=str(user.id), reason=e.type)

            await self._session.commit()
        except Exception:
            await self._session.rollback()
            raise

        log.info("card_funded", card_id=str(card.id), amount=amount)
        return row

    async def list_transactions(self, *, user: User, card_id: uuid.UUID) -> list[CardTransaction]:
        card = await self.get_card(user=user, card_id=card_id)
        return await self._card_txs.list_for_card(card.id)


# --- Module Notes -----------------------------------------------------------
# Issuer calls happen before the local commit; a failed issuer call leaves local rows untouched.
