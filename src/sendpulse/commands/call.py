"""Call command -- send one request to the SendPulse API.

Example::

    sendpulse call GET /addressbooks -d limit=10
    sendpulse call POST /addressbooks -d bookName=Customers
    sendpulse call GET /status --no-auth
"""

from __future__ import annotations

from typing import Any, Optional

import typer

from sendpulse.commands import context_option
from sendpulse.exceptions import InvalidUsageError, SendpulseError
from sendpulse.output import api_error


def parse_data_options(items: list[str]) -> dict[str, Any]:
    """Turn ``key=value`` strings into a parameter mapping.

    A key given more than once collects its values into a list, which the
    client sends as repeated form fields.

    Raises:
        InvalidUsageError: If an item has no ``=`` or an empty key.
    """
    params: dict[str, Any] = {}
    for item in items:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise InvalidUsageError(f"Expected key=value, got: {item}")
        if key in params:
            existing = params[key]
            if isinstance(existing, list):
                existing.append(value)
            else:
                params[key] = [existing, value]
        else:
            params[key] = value
    return params


def call_command(
    ctx: typer.Context,
    method: str = typer.Argument(help="HTTP method (GET, POST, PUT, PATCH, DELETE)."),
    path: str = typer.Argument(help="API path, e.g. /addressbooks."),
    data: Optional[list[str]] = typer.Option(
        None, "--data", "-d", help="Request parameter as key=value. Repeatable."
    ),
    no_auth: bool = typer.Option(
        False, "--no-auth", help="Send the request without an access token."
    ),
) -> None:
    """Send a request and print the response body.

    GET parameters go on the query string; other methods send them as a
    form-encoded body. JSON responses are pretty-printed.
    """
    from sendpulse.client import SendpulseClient
    from sendpulse.client.response import format_api_body
    from sendpulse.config import load_client_config

    try:
        params = parse_data_options(data or [])
        config = load_client_config(
            cli_base_url=context_option(ctx, "base_url"),
            cli_timeout=context_option(ctx, "timeout"),
        )
        with SendpulseClient(config) as client:
            body = client.execute(path, method, params, use_token=not no_auth)
    except SendpulseError as exc:
        api_error(exc)
        raise typer.Exit(code=exc.exit_code) from None

    format_api_body(body)
