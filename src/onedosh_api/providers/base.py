"""
onedosh_api.providers.base

Shared plumbing for provider clients.

Responsibilities:
- Attach provider credentials to each call.
- Turn transport failures, non-2xx responses and unparseable bodies into `ProviderError`.
"""

from __future__ import annotations

from typing import Any

import httpx

from onedosh_api.errors import ProviderError
from onedosh_api.observability.logging import get_logger

log = get_logger(__name__)


class ProviderClient:
    def __init__(self, *, name: str, http: httpx.AsyncClient, api_key: str) -> None:
        self.name = name
        self._http = http
        self._api_key = api_key

    def _authz(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}

    async def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        try:
            r = await self._http.request(method, url, headers=self._authz(), **kwargs)
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            log.warning(
                "provider_http_error",
                provider=self.name,
                url=url,
                status_code=e.response.status_code,
            )
            raise ProviderError(self.name, f"request failed with status {e.response.status_code}") from e
        except httpx.HTTPError as e:
            log.warning("provider_unreachable", provider=self.name, url=url, error=str(e))
            raise ProviderError(self.name, "provider is unreachable") from e

        if not r.content:
            return {}
        try:
            data = r.json()
        except ValueError as e:
            raise self.malformed(url, e) from e
        if not isinstance(data, dict):
            raise self.malformed(url, TypeError(f"expected an object, got {type(data).__name__}"))
        return data

    def malformed(self, url: str, error: Exception) -> ProviderError:
        log.warning("provider_malformed_response", provider=self.name, url=url, error=str(error))
        return ProviderError(self.name, "malformed response")

    async def aclose(self) -> None:
        await self._http.aclose()
