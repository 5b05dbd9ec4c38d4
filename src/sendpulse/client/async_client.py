"""Asynchronous SendPulse API client -- mirrors :class:`~sendpulse.client.sync_client.SendpulseClient`.

:class:`AsyncSendpulseClient` wraps :class:`httpx.AsyncClient` and offers
the same behaviour as the blocking client (token caching, one refresh on
401, identical error mapping) for code running inside an event loop.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from sendpulse.auth.token_cache import AsyncTokenCache
from sendpulse.client.request import (
    build_request,
    check_response,
    describe,
    rejected_after_refresh,
    token_request,
)
from sendpulse.exceptions import TransportError
from sendpulse.models import TOKEN_PATH, ClientConfig, RequestDescriptor, TokenState
from sendpulse.output import get_output


class AsyncSendpulseClient:
    """Asynchronous client for the SendPulse REST API.

    Args:
        config: Credentials, timeout and base URL.
        http_client: Optional pre-built :class:`httpx.AsyncClient`. When
            omitted the client creates (and later closes) its own.

    Example::

        async with AsyncSendpulseClient(config) as client:
            body = await client.get("/addressbooks")
    """

    def __init__(
        self,
        config: ClientConfig,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._config = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=config.timeout,
            verify=config.verify_ssl,
            follow_redirects=True,
        )
        self._token_request = token_request(config)
        self._tokens = AsyncTokenCache(self._issue_token, f"{config.base_url}{TOKEN_PATH}")

    async def __aenter__(self) -> AsyncSendpulseClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @property
    def token_state(self) -> TokenState:
        return self._tokens.state

    async def token(self) -> str:
        return await self._tokens.get()

    def invalidate_token(self) -> None:
        self._tokens.clear()

    async def execute(
        self,
        path: str,
        method: str = "GET",
        params: Optional[dict[str, Any]] = None,
        use_token: bool = True,
    ) -> bytes:
        """Send one API request and return the raw body of the 200 reply.

        Behaves exactly like
        :meth:`~sendpulse.client.sync_client.SendpulseClient.execute`.
        """
        descriptor = describe(path, method, params, use_token)
        response = await self._send(descriptor)

        if response.status_code == 401 and use_token:
            get_output().debug(
                f"{descriptor.method.value} {descriptor.path} returned 401, refreshing token"
            )
            self._tokens.clear()
            response = await self._send(descriptor)
            if response.status_code == 401:
                self._tokens.clear()
                raise rejected_after_refresh(response, descriptor.path)

        return check_response(response, descriptor.path)

    async def get(self, path: str, params: Optional[dict[str, Any]] = None, use_token: bool = True) -> bytes:
        return await self.execute(path, "GET", params, use_token)

    async def post(self, path: str, params: Optional[dict[str, Any]] = None, use_token: bool = True) -> bytes:
        return await self.execute(path, "POST", params, use_token)

    async def put(self, path: str, params: Optional[dict[str, Any]] = None, use_token: bool = True) -> bytes:
        return await self.execute(path, "PUT", params, use_token)

    async def patch(self, path: str, params: Optional[dict[str, Any]] = None, use_token: bool = True) -> bytes:
        return await self.execute(path, "PATCH", params, use_token)

    async def delete(self, path: str, params: Optional[dict[str, Any]] = None, use_token: bool = True) -> bytes:
        return await self.execute(path, "DELETE", params, use_token)

    async def _send(self, descriptor: RequestDescriptor) -> httpx.Response:
        token = await self._tokens.get() if descriptor.use_token else None
        kwargs = build_request(descriptor, self._config.base_url, token, self._config.timeout)
        try:
            return await self._client.request(**kwargs)
        except httpx.RequestError as exc:
            raise TransportError(descriptor.path, str(exc) or type(exc).__name__) from exc

    async def _issue_token(self) -> bytes:
        get_output().debug(f"Requesting access token from {TOKEN_PATH}")
        response = await self._send(self._token_request)
        return check_response(response, TOKEN_PATH)
