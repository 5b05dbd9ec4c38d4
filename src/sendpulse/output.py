"""Terminal output for the ``sendpulse`` command.

Response bodies go to stdout (or to the ``--output`` file); everything
else, error records included, goes to stderr. Colour follows the
`clig.dev <https://clig.dev/>`_ rules: Rich markup only when stdout is a
terminal, never with ``--no-color``, ``NO_COLOR`` or ``TERM=dumb``.

:func:`~sendpulse.app.main_callback` builds one :class:`OutputManager`
from the global flags and installs it with :func:`set_output`; library
code reaches it through :func:`get_output` so that the clients' debug
lines respect ``--verbose`` without taking an output argument.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax

from sendpulse.exceptions import SendpulseError


class OutputFormat(str, Enum):
    """How decoded response bodies are rendered.

    ``AUTO`` becomes ``RICH`` on a colour-capable terminal and ``PLAIN``
    otherwise.
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Renders response bodies and diagnostics.

    Args:
        format: Rendering for response bodies.
        no_color: Never emit colour or Rich markup.
        quiet: Drop ``info`` and ``success`` messages.
        verbose: Show ``debug`` messages (token requests, 401 retries).
        output_file: Write response bodies here instead of stdout.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
        output_file: Optional[str] = None,
    ) -> None:
        self._plain_text = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose
        self._output_file = output_file

        if format == OutputFormat.AUTO:
            use_rich = _is_tty() and not self._plain_text
            format = OutputFormat.RICH if use_rich else OutputFormat.PLAIN
        self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._plain_text,
            force_terminal=(format == OutputFormat.RICH),
        )
        self._stderr = Console(file=sys.stderr, no_color=self._plain_text, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    # ------------------------------------------------------------------ #
    # Response bodies (stdout)
    # ------------------------------------------------------------------ #

    def format_response(self, data: Any) -> None:
        """Render a decoded response body.

        Args:
            data: A JSON value (dict, list, scalar) or undecodable text.
        """
        if self._output_file:
            self._write_file(data)
        elif self._format == OutputFormat.JSON:
            self.print_data(_to_json(data))
        elif self._format == OutputFormat.PLAIN:
            for line in _plain_lines(data):
                self.print_data(line)
        elif isinstance(data, (dict, list)):
            self._stdout.print(Syntax(_to_json(data), "json", theme="monokai", word_wrap=True))
        else:
            self._stdout.print(escape(str(data)))

    def print_data(self, text: str) -> None:
        """Write one line of primary output, e.g. an access token."""
        if not self._output_file:
            print(text, file=sys.stdout, flush=True)
            return
        with open(self._output_file, "a", encoding="utf-8") as f:
            f.write(text if text.endswith("\n") else f"{text}\n")

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic(message, "{}")

    def success(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic(message, "[green]{}[/green]")

    def error(self, message: str) -> None:
        """Print an error line. Shown even with ``--quiet``."""
        self._diagnostic(message, "[bold red]Error:[/bold red] {}", prefix="Error: ")

    def api_error(self, exc: SendpulseError) -> None:
        """Print a failed request's error record.

        Without colour this is the exception's own ``str()``; on a terminal
        the status and path are highlighted and the body is dimmed.
        """
        if self._plain_text or not exc.http_code:
            self.error(str(exc))
            return
        self._stderr.print(
            f"[bold red]Error:[/bold red] Http code: [bold]{exc.http_code}[/bold], "
            f"url: [cyan]{escape(exc.url)}[/cyan], body: [dim]{escape(exc.body)}[/dim], "
            f"message: {escape(exc.message)}"
        )

    def debug(self, message: str) -> None:
        if self._verbose:
            self._diagnostic(message, "[dim]\\[debug] {}[/dim]", prefix="[debug] ")

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _diagnostic(self, message: str, markup: str, prefix: str = "") -> None:
        if self._plain_text:
            print(f"{prefix}{message}", file=sys.stderr, flush=True)
        else:
            self._stderr.print(markup.format(escape(message)))

    def _write_file(self, data: Any) -> None:
        assert self._output_file is not None
        content = _to_json(data) if isinstance(data, (dict, list)) else str(data)
        with open(self._output_file, "w", encoding="utf-8") as f:
            f.write(content if content.endswith("\n") else f"{content}\n")


def _to_json(data: Any) -> str:
    """Pretty-print *data*; text that already is JSON is re-indented, other text kept."""
    if isinstance(data, str):
        try:
            data = json.loads(data)
        except ValueError:
            return data
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def _plain_lines(data: Any) -> list[str]:
    """Tab-separated lines: ``key<TAB>value`` for objects, one row per list item."""
    if isinstance(data, dict):
        return [f"{key}\t{value}" for key, value in data.items()]
    if isinstance(data, list):
        return [
            "\t".join(str(v) for v in item.values()) if isinstance(item, dict) else str(item)
            for item in data
        ]
    return [str(data)]


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """True when ``NO_COLOR`` is set (any value) or ``TERM=dumb``."""
    return os.environ.get("NO_COLOR") is not None or os.environ.get("TERM") == "dumb"


_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one lazily."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager (tests swap stdout/stderr between runs)."""
    global _output
    _output = None


def format_response(data: Any) -> None:
    get_output().format_response(data)


def print_data(text: str) -> None:
    get_output().print_data(text)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def error(message: str) -> None:
    get_output().error(message)


def api_error(exc: SendpulseError) -> None:
    get_output().api_error(exc)