"""Small helpers shared by the builders, the normalizer and the orchestrator."""

from __future__ import annotations

import re
import secrets
from collections.abc import Iterable, Sequence

from .constants import OAuthDefaults

_SEPARATOR_RE = re.compile(r"[_-](.)")


def camel(name: str) -> str:
    """Convert a separator-delimited key to its single-word camel form.

    Only `_` and `-` are treated as separators; a trailing separator is kept
    and keys without separators are returned unchanged.

    Example:
        >>> camel("access_token")
        'accessToken'
        >>> camel("x-custom-field")
        'xCustomField'
        >>> camel("scope")
        'scope'
    """
    return _SEPARATOR_RE.sub(lambda m: m.group(1).upper(), name)


def random_string(num_bytes: int = OAuthDefaults.RANDOM_STRING_BYTES) -> str:
    """Cryptographically random URL-safe string (no padding)."""
    return secrets.token_urlsafe(num_bytes)


def join_scopes(scopes: Sequence[str] | None) -> str | None:
    """Space-join scopes in order; None when there are none."""
    if not scopes:
        return None
    return " ".join(scopes)


def split_scopes(scope: str | Iterable[str] | None) -> tuple[str, ...]:
    """Split a server `scope` value into a tuple, preserving order.

    Servers return a space-delimited string; some JSON responses use a list.
    """
    if scope is None:
        return ()
    if isinstance(scope, str):
        return tuple(part for part in scope.split(" ") if part)
    return tuple(str(part) for part in scope)


__all__ = [
    "camel",
    "random_string",
    "join_scopes",
    "split_scopes",
]
