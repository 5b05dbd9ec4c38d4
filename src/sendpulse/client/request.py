"""Request building and response checks shared by both clients.

Parameters are always form-encoded: on the query string for ``GET``, in
an ``application/x-www-form-urlencoded`` body for every other method.
Values are stringified the way the API expects them (``true``/``false``
for booleans, empty string for ``None``); list and tuple values become
repeated keys.
"""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from sendpulse.exceptions import APIError, InvalidUsageError, UnauthorizedError
from sendpulse.models import TOKEN_PATH, ClientConfig, HTTPMethod, RequestDescriptor

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_params(params: dict[str, Any]) -> list[tuple[str, str]]:
    """Flatten *params* into ``(name, value)`` pairs ready for form encoding."""
    pairs: list[tuple[str, str]] = []
    for name, value in params.items():
        if isinstance(value, (list, tuple)):
            pairs.extend((name, _stringify(item)) for item in value)
        else:
            pairs.append((name, _stringify(value)))
    return pairs


def build_request(
    descriptor: RequestDescriptor,
    base_url: str,
    token: Optional[str] = None,
    timeout: Optional[float] = None,
) -> dict[str, Any]:
    """Return keyword arguments for :meth:`httpx.Client.request`.

    Redirects are always followed, and *timeout* applies per request so it
    holds for an injected HTTP client as well.

    Args:
        descriptor: The call to encode.
        base_url: API origin the descriptor's path is appended to.
        token: Bearer token to attach, or ``None`` for an anonymous call.
        timeout: Seconds for connect, read, write and pool acquisition.
    """
    headers: dict[str, str] = {"Accept": "application/json"}
    if token is not None:
        headers["Authorization"] = f"Bearer {token}"

    pairs = encode_params(descriptor.params)
    kwargs: dict[str, Any] = {
        "method": descriptor.method.value,
        "url": f"{base_url}{descriptor.path}",
        "headers": headers,
        "follow_redirects": True,
    }
    if timeout is not None:
        kwargs["timeout"] = timeout
    if descriptor.sends_query:
        kwargs["params"] = pairs
    else:
        headers["Content-Type"] = FORM_CONTENT_TYPE
        kwargs["content"] = urlencode(pairs).encode("ascii")
    return kwargs


def describe(
    path: str,
    method: str,
    params: Optional[dict[str, Any]],
    use_token: bool,
) -> RequestDescriptor:
    """Validate call arguments into a :class:`RequestDescriptor`.

    Raises:
        InvalidUsageError: For an unsupported HTTP method or malformed arguments.
    """
    try:
        return RequestDescriptor(
            path=path, method=method, params=params or {}, use_token=use_token
        )
    except ValidationError as exc:
        raise InvalidUsageError(f"Invalid request {method} {path}: {exc}") from exc


def token_request(config: ClientConfig) -> RequestDescriptor:
    """Describe the client-credentials token request for *config*."""
    return RequestDescriptor(
        path=TOKEN_PATH,
        method=HTTPMethod.POST,
        params={
            "grant_type": "client_credentials",
            "client_id": config.user_id,
            "client_secret": config.secret,
        },
        use_token=False,
    )


def check_response(response: httpx.Response, path: str) -> bytes:
    """Return the raw body of a 200 response.

    Raises:
        APIError: For any other status, carrying the status, *path* and body.
    """
    if response.status_code != 200:
        raise APIError(response.status_code, path, response.text)
    return response.content


def rejected_after_refresh(response: httpx.Response, path: str) -> UnauthorizedError:
    """Build the error for a 401 that survived the one token refresh."""
    return UnauthorizedError(
        response.status_code,
        path,
        response.text,
        "request still unauthorized after refreshing the access token",
    )
