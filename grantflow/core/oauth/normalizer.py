"""Token response normalization.

Turns the bodies returned by token endpoints (JSON or form encoded) and the
parameters of implicit redirects into `TokenInfo`. Keys containing `_` or `-`
are camel-cased; nothing else about the keys is changed.
"""

from __future__ import annotations

import json
import logging
import math
import time
import urllib.parse
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from .constants import OAuthDefaults
from .exceptions import CodeError
from .models import TokenInfo
from .utils import camel, split_scopes

_logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def _now_ms(clock: Clock | None = None) -> int:
    return int((clock or time.time)() * 1000)


def camel_keys(data: Mapping[str, Any]) -> dict[str, Any]:
    """Copy of `data` with every separator-delimited key camel-cased."""
    return {camel(key): value for key, value in data.items()}


def process_code_response(body: str, mime: str = "") -> dict[str, Any]:
    """Parse a token endpoint body into a camel-cased mapping.

    Args:
        body: Raw response text
        mime: Response content type; JSON is used when it contains "json",
            form encoding otherwise

    Raises:
        ValueError: If a JSON body is not a JSON object
    """
    if "json" in mime.lower():
        info = json.loads(body)
        if not isinstance(info, dict):
            raise ValueError("Token response is not a JSON object.")
        return camel_keys(info)
    pairs = urllib.parse.parse_qsl(body, keep_blank_values=True)
    return camel_keys(dict(pairs))


def parse_expires_in(value: Any) -> int | None:
    """Parse `expires_in`; None when missing, zero or unparseable."""
    if value is None or isinstance(value, bool):
        return None
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(seconds) or seconds == 0:
        return None
    return int(seconds)


def compute_expires(expires_in: Any, clock: Clock | None = None) -> tuple[int, int, bool]:
    """Compute `(expires_in, expires_at, expires_assumed)`.

    A missing or unusable `expires_in` is assumed to be one hour and flagged.
    `expires_at` is epoch milliseconds at the time of the call plus the lifetime.
    """
    seconds = parse_expires_in(expires_in)
    assumed = seconds is None
    if seconds is None:
        seconds = OAuthDefaults.EXPIRES_IN_SECONDS
    return seconds, _now_ms(clock) + seconds * 1000, assumed


def compute_scopes(scope: Any, requested_scopes: Sequence[str] | None) -> tuple[str, ...]:
    """Granted scopes when the server sends them, else the requested ones, else empty."""
    if not scope and requested_scopes:
        return tuple(requested_scopes)
    return split_scopes(scope or None)


def _token_info(
    info: Mapping[str, Any],
    requested_scopes: Sequence[str] | None,
    clock: Clock | None,
    extra: dict[str, Any],
) -> TokenInfo:
    expires_in, expires_at, assumed = compute_expires(info.get("expiresIn"), clock)
    if assumed:
        _logger.debug("Token response has no usable expires_in, assuming %ss", expires_in)
    return TokenInfo(
        access_token=info.get("accessToken"),
        token_type=info.get("tokenType") or OAuthDefaults.TOKEN_TYPE,
        refresh_token=info.get("refreshToken"),
        id_token=info.get("idToken"),
        expires_in=expires_in,
        expires_at=expires_at,
        expires_assumed=assumed,
        scope=compute_scopes(info.get("scope"), requested_scopes),
        state=info.get("state"),
        extra=extra,
    )


def token_info_from_params(
    params: Mapping[str, str],
    requested_scopes: Sequence[str] | None = None,
    clock: Clock | None = None,
) -> TokenInfo:
    """Token carried directly by an implicit grant redirect."""
    return _token_info(camel_keys(params), requested_scopes, clock, extra={})


def map_code_response(
    info: Mapping[str, Any],
    requested_scopes: Sequence[str] | None = None,
    clock: Clock | None = None,
) -> TokenInfo:
    """Token from a parsed token endpoint response.

    Server specific fields are kept in `TokenInfo.extra`.

    Raises:
        CodeError: If the response is an OAuth 2.0 error object
    """
    if info.get("error"):
        raise CodeError(str(info["error"]), info.get("errorDescription"))
    known = TokenInfo.wire_keys()
    extra = {key: value for key, value in info.items() if key not in known}
    return _token_info(info, requested_scopes, clock, extra=extra)


__all__ = [
    "camel_keys",
    "compute_expires",
    "compute_scopes",
    "map_code_response",
    "parse_expires_in",
    "process_code_response",
    "token_info_from_params",
]
