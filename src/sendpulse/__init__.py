"""sendpulse -- a small client for the SendPulse REST API.

The client authenticates with the OAuth2 client-credentials grant, keeps
one access token in memory, and transparently refreshes it once when the
API answers 401.

Typical usage::

    from sendpulse import ClientConfig, SendpulseClient

    config = ClientConfig(user_id="...", secret="...", timeout=10)
    with SendpulseClient(config) as client:
        body = client.get("/addressbooks")

The package also ships a ``sendpulse`` command-line tool.

Modules:
    app: Typer application and CLI entry point.
    client: Blocking and asyncio HTTP clients.
    auth: Token cache and its reader/writer lock.
    models: Pydantic models shared across the package.
    config: XDG-aware settings and credential resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"

from sendpulse.client import AsyncSendpulseClient, SendpulseClient  # noqa: E402
from sendpulse.exceptions import (  # noqa: E402
    APIError,
    AuthError,
    AuthResponseError,
    SendpulseError,
    TransportError,
    UnauthorizedError,
)
from sendpulse.models import ClientConfig  # noqa: E402

__all__ = [
    "APIError",
    "AsyncSendpulseClient",
    "AuthError",
    "AuthResponseError",
    "ClientConfig",
    "SendpulseClient",
    "SendpulseError",
    "TransportError",
    "UnauthorizedError",
]
