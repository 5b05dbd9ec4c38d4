"""Pydantic models shared across sendpulse modules.

**Configuration models** -- :class:`OutputConfig` and :class:`Settings`
are serialised as JSON in the user's config directory;
:class:`ClientConfig` is the resolved, in-memory configuration handed to
the HTTP clients (it holds the secret and is never written to disk).

**Request models** -- :class:`HTTPMethod`, :class:`RequestDescriptor` and
:class:`TokenState` describe one call and the token cache state.
"""

from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_BASE_URL = "https://api.sendpulse.com"
TOKEN_PATH = "/oauth/access_token"


# --- Configuration ---


class ClientConfig(BaseModel):
    """Effective configuration of a client instance.

    Example::

        ClientConfig(user_id="abc", secret="s3cret", timeout=10)
    """

    user_id: str
    secret: str
    timeout: int = Field(default=30, description="Request timeout in seconds")
    base_url: str = DEFAULT_BASE_URL
    verify_ssl: bool = True

    @field_validator("timeout")
    @classmethod
    def _positive_timeout(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("timeout must be a positive number of seconds")
        return value

    @field_validator("base_url")
    @classmethod
    def _strip_slash(cls, value: str) -> str:
        return value.rstrip("/")


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`Settings`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class Settings(BaseModel):
    """User-wide configuration persisted at ``~/.config/sendpulse/config.json``.

    Credentials are referenced by *source* (``env:VAR``, ``file:/path`` or
    ``prompt``) rather than stored inline; see
    :func:`~sendpulse.config.resolve_credential`.
    """

    model_config = ConfigDict(extra="allow")

    user_id_source: str = Field(
        default="env:SENDPULSE_USER_ID",
        description="Credential source for the API user id (client_id)",
    )
    secret_source: str = Field(
        default="env:SENDPULSE_SECRET",
        description="Credential source for the API secret (client_secret)",
    )
    timeout: int = Field(default=30, description="Request timeout in seconds")
    base_url: str = DEFAULT_BASE_URL
    verify_ssl: bool = True
    output: OutputConfig = Field(default_factory=OutputConfig)


# --- Requests ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods accepted by the request executor."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


class RequestDescriptor(BaseModel):
    """One API call: where, how, with what, and whether to authenticate.

    The method is normalised to upper case, so ``"get"`` and ``"GET"``
    describe the same request.
    """

    path: str
    method: HTTPMethod = HTTPMethod.GET
    params: dict[str, Any] = Field(default_factory=dict)
    use_token: bool = True

    @field_validator("path")
    @classmethod
    def _leading_slash(cls, value: str) -> str:
        if not value.startswith("/"):
            return f"/{value}"
        return value

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.upper()
        return value

    @property
    def sends_query(self) -> bool:
        """``True`` when parameters travel on the query string instead of the body."""
        return self.method == HTTPMethod.GET


class TokenState(str, enum.Enum):
    """Lifecycle of the cached bearer token."""

    NO_TOKEN = "no_token"
    HAS_TOKEN = "has_token"
