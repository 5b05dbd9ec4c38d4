"""HTTP clients for the SendPulse API.

Classes:
    :class:`SendpulseClient` -- blocking client backed by :class:`httpx.Client`.
    :class:`AsyncSendpulseClient` -- non-blocking client backed by
    :class:`httpx.AsyncClient`.

Both take a :class:`~sendpulse.models.ClientConfig`, cache one OAuth2
access token, and retry an authenticated call once after a 401.

Example::

    from sendpulse.client import SendpulseClient

    with SendpulseClient(config) as client:
        body = client.get("/addressbooks")
"""

from sendpulse.client.async_client import AsyncSendpulseClient
from sendpulse.client.sync_client import SendpulseClient

__all__ = ["SendpulseClient", "AsyncSendpulseClient"]
