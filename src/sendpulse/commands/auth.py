"""Auth commands -- obtain and verify access tokens.

Typical workflow::

    export SENDPULSE_USER_ID=... SENDPULSE_SECRET=...
    sendpulse auth check     # verify credentials
    sendpulse auth token     # print a fresh token for use elsewhere
"""

from __future__ import annotations

import typer

from sendpulse.commands import context_option
from sendpulse.exceptions import SendpulseError
from sendpulse.output import api_error, print_data, success


auth_app = typer.Typer(no_args_is_help=True)


def _fetch_token(ctx: typer.Context) -> str:
    from sendpulse.client import SendpulseClient
    from sendpulse.config import load_client_config

    config = load_client_config(
        cli_base_url=context_option(ctx, "base_url"),
        cli_timeout=context_option(ctx, "timeout"),
    )
    with SendpulseClient(config) as client:
        return client.token()


@auth_app.command("token")
def auth_token(ctx: typer.Context) -> None:
    """Request an access token and print it to stdout."""
    try:
        token = _fetch_token(ctx)
    except SendpulseError as exc:
        api_error(exc)
        raise typer.Exit(code=exc.exit_code) from None
    print_data(token)


@auth_app.command("check")
def auth_check(ctx: typer.Context) -> None:
    """Verify that the configured credentials can obtain a token.

    The token itself is not printed.
    """
    try:
        _fetch_token(ctx)
    except SendpulseError as exc:
        api_error(exc)
        raise typer.Exit(code=exc.exit_code) from None
    success("Credentials accepted.")
