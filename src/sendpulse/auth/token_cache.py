"""Single bearer-token cache for the OAuth2 client-credentials grant.

The cache holds at most one access token. :meth:`TokenCache.get` returns
it when present and otherwise calls the token endpoint through the
*fetch* callable supplied by the owning client, parses the JSON reply
and stores ``access_token``. :meth:`~_TokenSlot.clear` drops the token,
which the clients do whenever the API answers 401.

The lock guards only the in-memory copy and is never held while a token
request is in flight, so two threads that find the cache empty may both
request a token. Issuance is idempotent on the server side; the last
writer wins.

See Also:
    :class:`~sendpulse.client.sync_client.SendpulseClient` and
    :class:`~sendpulse.client.async_client.AsyncSendpulseClient`, which
    own one cache each.
"""

from __future__ import annotations

import json
from collections.abc import Awaitable
from typing import Callable, Optional

from sendpulse.auth.rwlock import ReadWriteLock
from sendpulse.exceptions import AuthResponseError, SendpulseError, TokenRequestError
from sendpulse.models import TokenState


def parse_token_response(body: bytes, url: str) -> str:
    """Extract ``access_token`` from a token endpoint reply.

    Args:
        body: Raw response body of a successful (200) token request.
        url: Token endpoint URL, used for error context.

    Returns:
        The access token string.

    Raises:
        AuthResponseError: If *body* is not a JSON object or has no
            string ``access_token`` field.
    """
    text = body.decode("utf-8", errors="replace")
    try:
        data = json.loads(text)
    except ValueError as exc:
        raise AuthResponseError(200, url, text, str(exc)) from exc

    if not isinstance(data, dict) or "access_token" not in data:
        raise AuthResponseError(200, url, text, "'access_token' not found in response")

    token = data["access_token"]
    if not isinstance(token, str):
        raise AuthResponseError(200, url, text, "'access_token' is not a string")
    return token


class _TokenSlot:
    """Lock-protected storage shared by the sync and async caches."""

    def __init__(self, token_url: str) -> None:
        self.token_url = token_url
        self._lock = ReadWriteLock()
        self._state = TokenState.NO_TOKEN
        self._token: Optional[str] = None

    @property
    def state(self) -> TokenState:
        with self._lock.read_locked():
            return self._state

    def peek(self) -> Optional[str]:
        """Return the cached token, or ``None`` without contacting the server."""
        with self._lock.read_locked():
            if self._state is TokenState.HAS_TOKEN:
                return self._token
            return None

    def clear(self) -> None:
        """Forget the cached token. Safe to call when nothing is cached."""
        with self._lock.write_locked():
            self._state = TokenState.NO_TOKEN
            self._token = None

    def _store(self, token: str) -> None:
        with self._lock.write_locked():
            self._token = token
            self._state = TokenState.HAS_TOKEN

    def _request_failed(self, exc: SendpulseError) -> TokenRequestError:
        return TokenRequestError(
            exc.http_code,
            exc.url or self.token_url,
            exc.body,
            exc.message or "token request failed",
        )


class TokenCache(_TokenSlot):
    """Thread-safe token cache for blocking clients.

    Args:
        fetch: Performs the unauthenticated token request and returns the
            raw 200 response body; raises :class:`SendpulseError` otherwise.
        token_url: Token endpoint URL, used in error records.
    """

    def __init__(self, fetch: Callable[[], bytes], token_url: str) -> None:
        super().__init__(token_url)
        self._fetch = fetch

    def get(self) -> str:
        """Return the cached token, requesting a new one if the cache is empty.

        Raises:
            TokenRequestError: If the token request fails.
            AuthResponseError: If the reply has no usable ``access_token``.
        """
        token = self.peek()
        if token is not None:
            return token

        try:
            body = self._fetch()
        except SendpulseError as exc:
            raise self._request_failed(exc) from exc

        token = parse_token_response(body, self.token_url)
        self._store(token)
        return token


class AsyncTokenCache(_TokenSlot):
    """Token cache for :class:`~sendpulse.client.async_client.AsyncSendpulseClient`.

    Same contract as :class:`TokenCache`; *fetch* is a coroutine function.
    """

    def __init__(self, fetch: Callable[[], Awaitable[bytes]], token_url: str) -> None:
        super().__init__(token_url)
        self._fetch = fetch

    async def get(self) -> str:
        token = self.peek()
        if token is not None:
            return token

        try:
            body = await self._fetch()
        except SendpulseError as exc:
            raise self._request_failed(exc) from exc

        token = parse_token_response(body, self.token_url)
        self._store(token)
        return token
