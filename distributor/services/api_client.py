"""HTTP adapter for distributor API operations."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)


class HTTPAPIClient:
    """
    HTTP client adapter for API calls.

    Implements IAPIClient protocol.

    POST is sent exactly once and is never retried.
    """

    def __init__(self, base_url: str, timeout: float = 60, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._base_url = base_url
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args):
        if self._client:
            await self._client.aclose()
            self._client = None

    async def post(self, endpoint: str, json: Dict) -> Any:
        """
        POST a JSON body and return the response whatever its status code.

        The transfer service reports failures as JSON bodies with 4xx/5xx
        statuses, so status handling is left to the caller.

        Raises:
            RuntimeError: client used outside ``async with``
            httpx.RequestError: transport failure (connection, timeout, ...)
        """
        if not self._client:
            raise RuntimeError("HTTPAPIClient not initialized. Use 'async with' context.")

        response = await self._client.post(endpoint, json=json)
        logger.debug(f"POST {endpoint} -> {response.status_code}")
        return response
