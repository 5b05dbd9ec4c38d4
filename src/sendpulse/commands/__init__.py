"""Built-in ``sendpulse`` sub-commands.

- :mod:`~sendpulse.commands.call` -- send an arbitrary API request.
- :mod:`~sendpulse.commands.auth` -- obtain and check access tokens.
- :mod:`~sendpulse.commands.config` -- view and edit the settings file.
"""

from __future__ import annotations

from typing import Any

import typer


def context_option(ctx: typer.Context, key: str, default: Any = None) -> Any:  # noqa: ANN401
    """Read a global option stored by :func:`~sendpulse.app.main_callback`."""
    if ctx.obj is None:
        return default
    return ctx.obj.get(key, default)
