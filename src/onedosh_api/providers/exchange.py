"""
onedosh_api.providers.exchange

Exchange rate provider client.
"""

from __future__ import annotations

from dataclasses import dataclass

from onedosh_api.providers.base import ProviderClient


@dataclass(frozen=True, slots=True)
class ProviderRate:
    code: str
    buy: float
    sell: float
    rate_ref: str | None = None


class ExchangeProviderClient(ProviderClient):
    async def get_rates(self) -> list[ProviderRate]:
        url = "/business/rates"
        data = await self._request("GET", url)
        try:
            return [
                ProviderRate(
                    code=str(item["code"]).upper(),
                    buy=float(item["buy"]),
                    sell=float(item["sell"]),
                    rate_ref=item.get("rateId"),
                )
                for item in data.get("rates") or []
            ]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise self.malformed(url, e) from e
