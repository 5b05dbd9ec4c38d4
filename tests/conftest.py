"""Shared test fixtures for sendpulse.

Provides a scripted fake of the SendPulse API (served through
:class:`httpx.MockTransport`), ready-made client configs, config-directory
isolation, and output-state management.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Callable, Union
from urllib.parse import parse_qs

import httpx
import pytest

from sendpulse.models import TOKEN_PATH, ClientConfig
from sendpulse.output import OutputFormat, OutputManager, reset_output, set_output

BASE_URL = "https://api.test.sendpulse.local"

Reply = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


class FakeSendpulseAPI:
    """Scripted stand-in for the SendPulse API.

    Token requests get ``{"access_token": "token-<n>"}`` unless replies are
    queued with :meth:`queue_token`. Other endpoints answer with replies
    registered via :meth:`route`; when several are queued for the same
    route they are used in order and the last one repeats.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.token_calls = 0
        self._token_replies: list[Reply] = []
        self._routes: dict[tuple[str, str], list[Reply]] = {}
        self._lock = threading.Lock()

    def queue_token(self, *replies: Reply) -> None:
        self._token_replies.extend(replies)

    def route(self, method: str, path: str, *replies: Reply) -> None:
        self._routes.setdefault((method.upper(), path), []).extend(replies)

    def calls_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request)
            if request.url.path == TOKEN_PATH:
                self.token_calls += 1
                reply = self._next(self._token_replies)
                if reply is None:
                    return httpx.Response(
                        200, json={"access_token": f"token-{self.token_calls}"}
                    )
            else:
                replies = self._routes.get((request.method, request.url.path))
                reply = self._next(replies) if replies else None
                if reply is None:
                    return httpx.Response(404, text='{"error":"not found"}')
        if callable(reply):
            return reply(request)
        # Fresh copy: a repeated reply must not share stream state between requests.
        return httpx.Response(reply.status_code, headers=reply.headers, content=reply.content)

    @staticmethod
    def _next(replies: list[Reply]) -> Any:
        if not replies:
            return None
        if len(replies) > 1:
            return replies.pop(0)
        return replies[0]

    @staticmethod
    def form(request: httpx.Request) -> dict[str, list[str]]:
        """Decode a form-encoded request body."""
        return parse_qs(request.content.decode("ascii"), keep_blank_values=True)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def async_transport(self) -> httpx.MockTransport:
        async def handler(request: httpx.Request) -> httpx.Response:
            await request.aread()
            return self.handler(request)

        return httpx.MockTransport(handler)


# ---------------------------------------------------------------------------
# Output state
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The manager caches sys.stdout/sys.stderr at creation time; CliRunner
    swaps those streams, so a stale manager would write to closed files.
    """
    yield
    reset_output()


@pytest.fixture
def quiet_output() -> OutputManager:
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True, no_color=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# API fakes and configs
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_api() -> FakeSendpulseAPI:
    return FakeSendpulseAPI()


@pytest.fixture
def client_config() -> ClientConfig:
    return ClientConfig(user_id="user-1", secret="secret-1", timeout=5, base_url=BASE_URL)


@pytest.fixture
def sync_client(fake_api: FakeSendpulseAPI, client_config: ClientConfig):
    from sendpulse.client import SendpulseClient

    http_client = httpx.Client(transport=fake_api.transport())
    client = SendpulseClient(client_config, http_client=http_client)
    yield client
    http_client.close()


# ---------------------------------------------------------------------------
# Config isolation
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point XDG directories at tmp_path and clear SENDPULSE_* variables.

    Also changes the working directory to tmp_path so no project-local
    ``sendpulse.json`` leaks in.
    """
    monkeypatch.setattr("sendpulse.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in [
        "SENDPULSE_USER_ID",
        "SENDPULSE_SECRET",
        "SENDPULSE_BASE_URL",
        "SENDPULSE_TIMEOUT",
    ]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path
