"""Bearer-token handling for sendpulse.

- :class:`TokenCache` / :class:`AsyncTokenCache` -- hold the single cached
  access token and request a new one from the token endpoint on demand.
- :class:`ReadWriteLock` -- the shared/exclusive lock guarding the cache.
- :func:`parse_token_response` -- extracts ``access_token`` from the
  token endpoint's JSON reply.
"""

from sendpulse.auth.rwlock import ReadWriteLock
from sendpulse.auth.token_cache import AsyncTokenCache, TokenCache, parse_token_response

__all__ = [
    "AsyncTokenCache",
    "ReadWriteLock",
    "TokenCache",
    "parse_token_response",
]
