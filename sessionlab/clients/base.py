"""Shared async HTTP plumbing for the remote API clients."""

from __future__ import annotations

from typing import Any

import httpx

from sessionlab.config import Settings
from sessionlab.errors import SessionLabError


class ApiClient:
    """Thin wrapper over httpx.AsyncClient bound to the remote API.

    Subclasses set ``error_class``; every transport or HTTP failure is
    re-raised as that error.
    """

    error_class: type[SessionLabError] = SessionLabError
    service_name = "API"

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings or Settings()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Platform": self.settings.platform,
        }
        if self.settings.api_token:
            headers["Authorization"] = f"Bearer {self.settings.api_token}"
        return headers

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.settings.api_url.rstrip("/"),
                headers=self._headers(),
                timeout=self.settings.timeout,
                transport=self._transport,
            )
        return self._client

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self.client.request(method, path, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as e:
            raise self.error_class(
                f"{self.service_name} timed out after {self.settings.timeout}s"
            ) from e
        except httpx.HTTPStatusError as e:
            raise self.error_class(
                f"{self.service_name} returned error: {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise self.error_class(
                f"Failed to communicate with {self.service_name}: {str(e)}"
            ) from e

    async def aclose(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
