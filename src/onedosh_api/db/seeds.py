"""
onedosh_api.db.seeds

Reference data seeding.

Responsibilities:
- Insert default roles, permissions and dosh point events.
- Be safe to run repeatedly (rows are matched on their slug/code).
"""

from __future__ import annotations

import asyncio

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from onedosh_api.db.models import DoshPointsEvent, DoshPointsTransactionType, Permission, Role
from onedosh_api.observability.logging import configure_logging, get_logger
from onedosh_api.settings import get_settings

log = get_logger(__name__)

SUPER_ADMIN = "super-admin"
ADMIN = "admin"
USER = "user"
ACTIVE_USER = "active-user"

DEFAULT_ROLES: dict[str, tuple[str, str]] = {
    SUPER_ADMIN: ("Super Admin", "Full access to every resource"),
    ADMIN: ("Admin", "Back-office operator"),
    USER: ("User", "Registered customer"),
    ACTIVE_USER: ("Active User", "Customer with approved KYC"),
}

DEFAULT_PERMISSIONS: dict[str, str] = {
    "users:manage": "Manage Users",
    "wallets:fund": "Fund Wallets",
    "kyc:review": "Review KYC",
    "cards:manage": "Manage Cards",
    "rates:manage": "Manage Rates",
    "points:manage": "Manage Dosh Points",
}

ROLE_PERMISSIONS: dict[str, list[str]] = {
    ADMIN: list(DEFAULT_PERMISSIONS),
}

DEFAULT_DOSH_POINTS_EVENTS: list[dict] = [
    {
        "code": "REGISTRATION_BONUS",
        "name": "Registration bonus",
        "description": "Points awarded once after sign up",
        "default_points": 100,
        "is_one_time_per_user": True,
    },
    {
        "code": "KYC_APPROVED",
        "name": "KYC approved",
        "description": "Points awarded once after identity verification",
        "default_points": 200,
        "is_one_time_per_user": True,
    },
    {
        "code": "FIRST_CARD_FUNDING",
        "name": "First card funding",
        "description": "Points awarded once on the first card top-up",
        "default_points": 50,
        "is_one_time_per_user": True,
    },
    {
        "code": "WALLET_TRANSFER",
        "name": "Wallet transfer",
        "description": "Points awarded per completed transfer",
        "default_points": 5,
        "is_one_time_per_user": False,
    },
]


async def seed_reference_data(session: AsyncSession) -> None:
    perms: dict[str, Permission] = {
        p.slug: p for p in (await session.execute(select(Permission))).scalars().all()
    }
    for slug, name in DEFAULT_PERMISSIONS.items():
        if slug not in perms:
            perms[slug] = Permission(slug=slug, name=name)
            session.add(perms[slug])

    roles: dict[str, Role] = {r.slug: r for r in (await session.execute(select(Role))).scalars().all()}
    for slug, (name, desc) in DEFAULT_ROLES.items():
        if slug not in roles:
            roles[slug] = Role(slug=slug, name=name, desc=desc, permissions=[])
            session.add(roles[slug])

    for role_slug, perm_slugs in ROLE_PERMISSIONS.items():
        role = roles[role_slug]
        have = {p.slug for p in role.permissions}
        for slug in perm_slugs:
            if slug not in have:
                role.permissions.append(perms[slug])

    existing_codes = set((await session.execute(select(DoshPointsEvent.code))).scalars().all())
    for event in DEFAULT_DOSH_POINTS_EVENTS:
        if event["code"] not in existing_codes:
            session.add(DoshPointsEvent(transaction_type=DoshPointsTransactionType.credit, **event))

    await session.flush()
    log.info("reference_data_seeded", roles=len(roles), permissions=len(perms))


async def _main() -> None:
    from onedosh_api.db.session import create_engine, create_sessionmaker, session_scope

    settings = get_settings()
    configure_logging(service_name=settings.service_name, level=settings.log_level)
    engine = create_engine(settings)
    try:
        async with session_scope(create_sessionmaker(engine)) as session:
            await seed_reference_data(session)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(_main())
