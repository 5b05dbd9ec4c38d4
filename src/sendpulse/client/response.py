"""Response decoding bridge -- maps raw API bodies to the output system.

The clients return response bodies untouched. The CLI uses
:func:`decode_body` to turn them into JSON values where possible and
:func:`format_api_body` to render them through
:meth:`~sendpulse.output.OutputManager.format_response`.
"""

from __future__ import annotations

import json
from typing import Any

from sendpulse.output import get_output


def decode_body(body: bytes) -> Any:
    """Decode a response body.

    Returns the parsed JSON value when *body* is valid JSON, the decoded
    text otherwise, and ``None`` for an empty body.
    """
    if not body:
        return None

    text = body.decode("utf-8", errors="replace")
    try:
        return json.loads(text)
    except ValueError:
        return text


def format_api_body(body: bytes) -> None:
    """Render a response body to stdout via the global output manager."""
    data = decode_body(body)
    if data is not None:
        get_output().format_response(data)
