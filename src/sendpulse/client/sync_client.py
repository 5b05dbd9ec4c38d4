"""Blocking SendPulse API client.

:class:`SendpulseClient` wraps :class:`httpx.Client` and layers on:

- **Token management** -- the OAuth2 client-credentials token is fetched
  on first use and cached in a :class:`~sendpulse.auth.TokenCache`.
- **One refresh on 401** -- an authenticated call answered with 401
  drops the cached token and is sent once more with a fresh one. A
  second 401 raises :class:`~sendpulse.exceptions.UnauthorizedError`.
- **Error mapping** -- transport failures become
  :class:`~sendpulse.exceptions.TransportError`, other non-200 replies
  :class:`~sendpulse.exceptions.APIError`.

One instance may be shared between threads.

See Also:
    :class:`~sendpulse.client.async_client.AsyncSendpulseClient` for the
    asyncio equivalent.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from sendpulse.auth.token_cache import TokenCache
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


class SendpulseClient:
    """Synchronous client for the SendPulse REST API.

    Args:
        config: Credentials, timeout and base URL.
        http_client: Optional pre-built :class:`httpx.Client`. When
            omitted the client creates (and later closes) its own.

    Example::

        with SendpulseClient(config) as client:
            body = client.get("/addressbooks")
    """

    def __init__(
        self,
        config: ClientConfig,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self._config = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(
            timeout=config.timeout,
            verify=config.verify_ssl,
            follow_redirects=True,
        )
        self._token_request = token_request(config)
        self._tokens = TokenCache(self._issue_token, f"{config.base_url}{TOKEN_PATH}")

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> SendpulseClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            self._client.close()

    # ------------------------------------------------------------------ #
    # Token access
    # ------------------------------------------------------------------ #

    @property
    def token_state(self) -> TokenState:
        return self._tokens.state

    def token(self) -> str:
        """Return the current access token, requesting one if none is cached."""
        return self._tokens.get()

    def invalidate_token(self) -> None:
        """Drop the cached access token; the next authenticated call fetches a new one."""
        self._tokens.clear()

    # ------------------------------------------------------------------ #
    # Requests
    # ------------------------------------------------------------------ #

    def execute(
        self,
        path: str,
        method: str = "GET",
        params: Optional[dict[str, Any]] = None,
        use_token: bool = True,
    ) -> bytes:
        """Send one API request and return the raw body of the 200 reply.

        Args:
            path: API path, e.g. ``/addressbooks``.
            method: HTTP method; case-insensitive.
            params: Parameters, sent on the query string for GET and as a
                form body otherwise.
            use_token: Attach ``Authorization: Bearer <token>``.

        Returns:
            The response body bytes, unparsed.

        Raises:
            TokenRequestError: The token could not be obtained.
            AuthResponseError: The token endpoint reply was unusable.
            UnauthorizedError: 401 again after refreshing the token.
            InvalidUsageError: Unsupported HTTP method.
            TransportError: Network failure or timeout.
            APIError: Any other non-200 status.
        """
        descriptor = describe(path, method, params, use_token)
        response = self._send(descriptor)

        if response.status_code == 401 and use_token:
            get_output().debug(
                f"{descriptor.method.value} {descriptor.path} returned 401, refreshing token"
            )
            self._tokens.clear()
            response = self._send(descriptor)
            if response.status_code == 401:
                self._tokens.clear()
                raise rejected_after_refresh(response, descriptor.path)

        return check_response(response, descriptor.path)

    def get(self, path: str, params: Optional[dict[str, Any]] = None, use_token: bool = True) -> bytes:
        return self.execute(path, "GET", params, use_token)

    def post(self, path: str, params: Optional[dict[str, Any]] = None, use_token: bool = True) -> bytes:
        return self.execute(path, "POST", params, use_token)

    def put(self, path: str, params: Optional[dict[str, Any]] = None, use_token: bool = True) -> bytes:
        return self.execute(path, "PUT", params, use_token)

    def patch(self, path: str, params: Optional[dict[str, Any]] = None, use_token: bool = True) -> bytes:
        return self.execute(path, "PATCH", params, use_token)

    def delete(self, path: str, params: Optional[dict[str, Any]] = None, use_token: bool = True) -> bytes:
        return self.execute(path, "DELETE", params, use_token)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _send(self, descriptor: RequestDescriptor) -> httpx.Response:
        token = self._tokens.get() if descriptor.use_token else None
        kwargs = build_request(descriptor, self._config.base_url, token, self._config.timeout)
        try:
            return self._client.request(**kwargs)
        except httpx.RequestError as exc:
            raise TransportError(descriptor.path, str(exc) or type(exc).__name__) from exc

    def _issue_token(self) -> bytes:
        get_output().debug(f"Requesting access token from {TOKEN_PATH}")
        response = self._send(self._token_request)
        return check_response(response, TOKEN_PATH)
