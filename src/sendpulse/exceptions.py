"""Exception hierarchy for sendpulse.

Every error surfaced to callers is a :class:`SendpulseError` carrying the
same four diagnostic fields: the HTTP status code, the request URL or
path, the raw response body and an optional explanatory message. Each
class also carries an ``exit_code`` from :mod:`sendpulse.exit_codes`,
which :func:`sendpulse.app.main` uses when the CLI exits on an error.

Subclass hierarchy::

    SendpulseError            (exit 1)
    +-- ConfigError           (exit 1)
    +-- InvalidUsageError     (exit 2)
    +-- TransportError        (exit 6, http_code 503)
    +-- AuthError             (exit 3)
    |   +-- TokenRequestError
    |   +-- AuthResponseError
    |   +-- UnauthorizedError
    +-- APIError              (exit 4 on 404, 5 on 5xx, 1 otherwise)
"""

from __future__ import annotations

from http import HTTPStatus

from sendpulse.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    exit_code_for_status,
)


class SendpulseError(Exception):
    """Base exception for all sendpulse errors.

    Args:
        http_code: HTTP status associated with the failure. ``0`` when the
            error never reached the network (configuration, usage).
        url: Request path or full URL the failure relates to.
        body: Raw response body text, empty when there was none.
        message: Optional human-readable explanation.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(
        self,
        http_code: int = 0,
        url: str = "",
        body: str = "",
        message: str = "",
    ) -> None:
        self.http_code = http_code
        self.url = url
        self.body = body
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        return (
            f"Http code: {self.http_code}, url: {self.url}, "
            f"body: {self.body}, message: {self.message}"
        )


class _LocalError(SendpulseError):
    """Error raised before any request was sent; renders as the bare message."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message)

    def __str__(self) -> str:
        return self.message


class ConfigError(_LocalError):
    """Raised for configuration problems (missing credentials, invalid JSON, bad sources)."""


class InvalidUsageError(_LocalError):
    """Raised for invalid CLI arguments."""

    exit_code = EXIT_INVALID_USAGE


class TransportError(SendpulseError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    The status is always reported as 503 Service Unavailable and the
    message holds the underlying transport error text.
    """

    exit_code = EXIT_CONNECTION_ERROR

    def __init__(self, url: str, message: str) -> None:
        super().__init__(int(HTTPStatus.SERVICE_UNAVAILABLE), url, "", message)


class AuthError(SendpulseError):
    """Base class for failures obtaining or using the bearer token."""

    exit_code = EXIT_AUTH_FAILURE


class TokenRequestError(AuthError):
    """Raised when the token-issuance call itself fails (transport or non-200)."""


class AuthResponseError(AuthError):
    """Raised when the token endpoint returns unparsable JSON or omits ``access_token``."""


class UnauthorizedError(AuthError):
    """Raised when an authenticated call is still rejected with 401 after one token refresh."""


class APIError(SendpulseError):
    """Raised for any non-200 response other than the handled 401."""

    @property  # type: ignore[override]
    def exit_code(self) -> int:
        return exit_code_for_status(self.http_code)
