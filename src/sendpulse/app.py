"""Typer application and CLI entry point for sendpulse.

This module wires together the top-level Typer application and registers
the built-in sub-commands (``call``, ``auth``, ``config``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs a SIGINT handler, invokes the Typer app,
maps :class:`~sendpulse.exceptions.SendpulseError` to its exit code, and
writes a crash log for anything unexpected.

See Also:
    :mod:`sendpulse.config`: Settings resolution.
    :mod:`sendpulse.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from sendpulse import __version__
from sendpulse.commands.auth import auth_app
from sendpulse.commands.call import call_command
from sendpulse.commands.config import config_app
from sendpulse.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED


app = typer.Typer(
    name="sendpulse",
    help="Call the SendPulse REST API with OAuth2 client credentials.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("call")(call_command)
app.add_typer(auth_app, name="auth", help="Access token commands.")
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Eager ``--version`` handler."""
    if value:
        typer.echo(f"sendpulse {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="Override the API base URL."
    ),
    timeout: Optional[int] = typer.Option(
        None, "--timeout", help="Request timeout in seconds.", min=1
    ),
    json_output: bool = typer.Option(
        False, "--json", help="Print response bodies as JSON."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Print response bodies as plain text."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show token requests and 401 retries on stderr."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Do not ask before resetting the config."
    ),
    output_file: Optional[str] = typer.Option(
        None, "-o", "--output", help="Write the response body to this file."
    ),
) -> None:
    """Apply the global options before any sub-command runs.

    Installs the global :class:`~sendpulse.output.OutputManager` from CLI
    flags and stores the shared options in ``ctx.obj`` for sub-commands.
    """
    from sendpulse.config import load_settings
    from sendpulse.exceptions import ConfigError
    from sendpulse.output import OutputFormat, OutputManager, set_output

    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        try:
            fmt = OutputFormat(load_settings().output.format)
        except (ConfigError, ValueError):
            # A broken settings file is reported by the sub-command itself.
            fmt = OutputFormat.AUTO

    set_output(
        OutputManager(
            format=fmt,
            no_color=no_color,
            quiet=quiet,
            verbose=verbose,
            output_file=output_file,
        )
    )

    ctx.ensure_object(dict)
    ctx.obj["base_url"] = base_url
    ctx.obj["timeout"] = timeout
    ctx.obj["force"] = force


def _setup_signal_handlers() -> None:
    """Exit with code 130 on Ctrl-C instead of dumping a traceback."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write the current traceback to the data directory and return its path."""
    from sendpulse.config import get_data_dir

    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = get_data_dir() / f"crash-{timestamp}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    )
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``sendpulse`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except Exception as exc:
        from sendpulse.exceptions import SendpulseError
        from sendpulse.output import api_error, error

        if isinstance(exc, SendpulseError):
            api_error(exc)
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
