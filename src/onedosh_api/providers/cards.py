"""
onedosh_api.providers.cards

Card issuing provider client.

Responsibilities:
- Register card holders and issue virtual cards.
- Push status changes (lock/unlock/cancel) to the issuer.
"""

from __future__ import annotations

import enum
from typing import Any

from onedosh_api.providers.base import ProviderClient


class ProviderCardStatus(enum.StrEnum):
    ACTIVE = "active"
    LOCKED = "locked"
    CANCELED = "canceled"


class CardProviderClient(ProviderClient):
    async def create_card_user(
        self,
        *,
        first_name: str,
        last_name: str,
        email: str,
        country_code: str | None,
    ) -> dict[str, Any]:
        return await self._request(
            "POST",
            "/issuing/users",
            json={
                "firstName": first_name,
                "lastName": last_name,
                "email": email,
                "countryCode": country_code,
            },
        )

    async def create_card(self, *, provider_user_id: str, limit: int | None = None) -> dict[str, Any]:
        body: dict[str, Any] = {"type": "virtual"}
        if limit is not None:
            body["limit"] = {"amount": limit, "frequency": "per30DayPeriod"}
        return await self._request("POST", f"/issuing/users/{provider_user_id}/cards", json=body)

    async def update_card_status(self, *, provider_card_id: str, status: ProviderCardStatus) -> dict[str, Any]:
        return await self._request(
            "PATCH",
            f"/issuing/cards/{provider_card_id}",
            json={"status": status.value},
        )


# --- Module Notes -----------------------------------------------------------
# Card ids and user ids returned by the issuer are stored as `provider_ref` columns.
