"""
onedosh_api.providers.support

Support desk (ticketing) provider client.
"""

from __future__ import annotations

from typing import Any

from onedosh_api.providers.base import ProviderClient

# Desk statuses folded onto the local ticket lifecycle.
STATUS_MAP = {
    "new": "open",
    "open": "open",
    "pending": "pending",
    "hold": "pending",
    "solved": "resolved",
    "closed": "closed",
}

PRIORITIES = ("low", "normal", "high", "urgent")


class SupportProviderClient(ProviderClient):
    async def create_ticket(
        self,
        *,
        subject: str,
        body: str,
        requester_name: str,
        requester_email: str,
        priority: str = "normal",
    ) -> dict[str, Any]:
        if priority not in PRIORITIES:
            priority = "normal"
        data = await self._request(
            "POST",
            "/api/v2/tickets.json",
            json={
                "ticket": {
                    "subject": subject,
                    "comment": {"body": body},
                    "requester": {"name": requester_name, "email": requester_email},
                    "priority": priority,
                }
            },
        )
        return data.get("ticket", {})
