"""
onedosh_api.db.repositories.users

Repositories for identity rows.

Responsibilities:
- Look up users by id/email/username/phone (ignoring soft-deleted rows).
- Manage role assignment, transaction PINs and verification tokens.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from onedosh_api.db.models import Role, TransactionPin, User, UserProfile, VerificationToken, VerificationType


class UserRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, roles: list[Role], **fields) -> User:
        user = User(roles=list(roles), **fields)
        user.profile = UserProfile()
        self._session.add(user)
        await self._session.flush()
        return user

    async def get(self, user_id: uuid.UUID) -> User | None:
        stmt = select(User).where(User.id == user_id, User.deleted_at.is_(None))
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == email.lower(), User.deleted_at.is_(None))
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get_by_login(self, identifier: str) -> User | None:
        # Login accepts either email or username; both are stored lowercased.
        ident = identifier.strip().lower()
        stmt = select(User).where(
            or_(User.email == ident, User.username == ident),
            User.deleted_at.is_(None),
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list(self, *, offset: int = 0, limit: int = 50) -> tuple[list[User], int]:
        base = select(User).where(User.deleted_at.is_(None))
        total = (await self._session.execute(select(func.count()).select_from(base.subquery()))).scalar_one()
        stmt = base.order_by(User.created_at.desc()).offset(offset).limit(limit)
        return list((await self._session.execute(stmt)).scalars().all()), int(total)

    async def roles_by_slugs(self, slugs: list[str]) -> list[Role]:
        stmt = select(Role).where(Role.slug.in_(slugs))
        return list((await self._session.execute(stmt)).scalars().all())

    async def add_role(self, user: User, slug: str) -> None:
        if slug in user.role_slugs:
            return
        for role in await self.roles_by_slugs([slug]):
            user.roles.append(role)
        await self._session.flush()


class TransactionPinRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_for_user(self, user_id: uuid.UUID, *, for_update: bool = False) -> TransactionPin | None:
        stmt = select(TransactionPin).where(TransactionPin.user_id == user_id)
        if for_update:
            stmt = stmt.with_for_update()
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def upsert(self, *, user_id: uuid.UUID, pin_hash: str) -> TransactionPin:
        row = await self.get_for_user(user_id, for_update=True)
        if row is None:
            row = TransactionPin(user_id=user_id)
            self._session.add(row)
        row.pin = pin_hash
        row.failed_attempts = 0
        row.locked_until = None
        await self._session.flush()
        return row


class VerificationTokenRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        user_id: uuid.UUID,
        token_hash: str,
        verification_type: VerificationType,
        expires_at: datetime,
    ) -> VerificationToken:
        row = VerificationToken(
            user_id=user_id,
            token_hash=token_hash,
            verification_type=verification_type,
            expires_at=expires_at,
            is_used=False,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def get_by_hash(self, token_hash: str) -> VerificationToken | None:
        stmt = select(VerificationToken).where(VerificationToken.token_hash == token_hash).with_for_update()
        return (await self._session.execute(stmt)).scalar_one_or_none()
