"""Caller supplied parameters applied on top of the standard OAuth 2.0 ones.

Some authorization servers need extra query parameters, headers or body
fields. They are always applied after the standard parameters:
query and body entries are appended, headers replace standard headers
with the same (case-insensitive) name.
"""

from __future__ import annotations

import urllib.parse
from collections.abc import Iterable, Mapping

from .grants import FormBody
from .models import CustomData, CustomParameter


def apply_query(url: str, parameters: Iterable[CustomParameter] | None) -> str:
    """Append query parameters to `url`, keeping the existing query and fragment.

    Example:
        >>> apply_query("https://auth.example.com/authorize?a=1", [CustomParameter("b", "2")])
        'https://auth.example.com/authorize?a=1&b=2'
    """
    extra = [(param.name, param.value) for param in parameters or ()]
    return append_query_params(url, extra)


def append_query_params(url: str, params: Iterable[tuple[str, str]]) -> str:
    """Append already encoded-safe name/value pairs to the query of `url`."""
    params = list(params)
    if not params:
        return url
    parts = urllib.parse.urlsplit(url)
    query = urllib.parse.parse_qsl(parts.query, keep_blank_values=True)
    query.extend(params)
    return urllib.parse.urlunsplit(parts._replace(query=urllib.parse.urlencode(query)))


def apply_body(body: FormBody, custom_data: CustomData | None) -> FormBody:
    """Append `custom_data.token.body` entries to a token request body."""
    if custom_data is None or custom_data.token is None:
        return body
    for param in custom_data.token.body:
        body.append(param.name, param.value)
    return body


def apply_headers(headers: Mapping[str, str], custom_data: CustomData | None) -> dict[str, str]:
    """Merge `custom_data.token.headers` over `headers`; custom values win."""
    if custom_data is None or custom_data.token is None:
        return dict(headers)
    return merge_headers(headers, {param.name: param.value for param in custom_data.token.headers})


def merge_headers(headers: Mapping[str, str], overrides: Mapping[str, str]) -> dict[str, str]:
    """Merge `overrides` over `headers`, matching names case-insensitively."""
    merged = dict(headers)
    for name, value in overrides.items():
        for existing in [key for key in merged if key.lower() == name.lower()]:
            del merged[existing]
        merged[name] = value
    return merged


__all__ = [
    "append_query_params",
    "apply_body",
    "apply_headers",
    "apply_query",
    "merge_headers",
]
