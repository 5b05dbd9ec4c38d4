"""Process exit codes for the ``sendpulse`` command.

Every :class:`~sendpulse.exceptions.SendpulseError` subclass carries one of
these codes, so a shell wrapper can branch on ``$?`` instead of parsing the
error record printed on stderr::

    sendpulse call GET /addressbooks/42 || case $? in
        3) echo "check SENDPULSE_USER_ID / SENDPULSE_SECRET" ;;
        4) echo "no such address book" ;;
    esac
"""

from __future__ import annotations

EXIT_SUCCESS = 0
EXIT_GENERIC_FAILURE = 1

EXIT_INVALID_USAGE = 2
"""Malformed ``-d key=value`` option, unknown HTTP method or bad config key."""

EXIT_AUTH_FAILURE = 3
"""No token could be issued, or the API rejected a freshly issued one."""

EXIT_NOT_FOUND = 4
EXIT_SERVER_ERROR = 5

EXIT_CONNECTION_ERROR = 6
"""The request never got an HTTP reply (timeout, DNS, refused connection)."""

EXIT_INTERRUPTED = 130


def exit_code_for_status(http_code: int) -> int:
    """Map the status of a rejected API call to an exit code."""
    if http_code == 404:
        return EXIT_NOT_FOUND
    if http_code >= 500:
        return EXIT_SERVER_ERROR
    return EXIT_GENERIC_FAILURE
