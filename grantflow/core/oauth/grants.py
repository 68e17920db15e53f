"""Request bodies for the token endpoint.

Every grant type is described by one `GrantRule`: which configuration fields
the grant requires, how client credentials travel, which grant fields go into
the body and whether `scope` is sent. A single ordered builder, `FormBody`,
produces the `application/x-www-form-urlencoded` payload from a rule:

    grant_type, client_id/client_secret, grant fields, scope
"""

from __future__ import annotations

import base64
import urllib.parse
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from .constants import GrantType
from .models import AuthorizationConfig
from .utils import join_scopes


class FormBody:
    """Ordered key/value list encoded as a form body or query string.

    Example:
        >>> body = FormBody().set("grant_type", "password").set("username", "a b")
        >>> body.encode()
        'grant_type=password&username=a+b'
    """

    def __init__(self, items: Iterable[tuple[str, str]] = ()) -> None:
        self._items: list[tuple[str, str]] = list(items)

    def set(self, name: str, value: str) -> FormBody:
        """Replace the first `name` entry in place (dropping duplicates), or append."""
        items: list[tuple[str, str]] = []
        replaced = False
        for key, current in self._items:
            if key != name:
                items.append((key, current))
            elif not replaced:
                items.append((name, value))
                replaced = True
        if not replaced:
            items.append((name, value))
        self._items = items
        return self

    def set_if(self, name: str, value: str | None) -> FormBody:
        """Set `name` only when value is non-empty."""
        if value:
            self.set(name, value)
        return self

    def append(self, name: str, value: str) -> FormBody:
        """Append an entry even when `name` is already present."""
        self._items.append((name, value))
        return self

    def get(self, name: str) -> str | None:
        for key, value in self._items:
            if key == name:
                return value
        return None

    def items(self) -> list[tuple[str, str]]:
        return list(self._items)

    def encode(self) -> str:
        return urllib.parse.urlencode(self._items)

    def __contains__(self, name: object) -> bool:
        return any(key == name for key, _ in self._items)

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __str__(self) -> str:
        return self.encode()


# =============================================================================
# Grant rules
# =============================================================================

# How client_id/client_secret are put in the body
CREDENTIALS_ALWAYS = "always"  # both sent, empty secret when absent
CREDENTIALS_WHEN_SET = "when_set"  # each sent only when configured
CREDENTIALS_NEVER = "never"


@dataclass(frozen=True)
class BodyField:
    """A grant specific body parameter read from the configuration."""

    param: str
    attribute: str
    # Send an empty value instead of omitting the parameter
    send_empty: bool = False


@dataclass(frozen=True)
class GrantRule:
    """Dispatch table entry for a grant type."""

    requires: tuple[str, ...]
    credentials: str = CREDENTIALS_WHEN_SET
    fields: tuple[BodyField, ...] = ()
    scope: bool = True
    interactive: bool = False


GRANT_RULES: dict[str, GrantRule] = {
    GrantType.IMPLICIT: GrantRule(
        requires=("authorization_uri", "client_id", "redirect_uri"),
        credentials=CREDENTIALS_NEVER,
        scope=False,
        interactive=True,
    ),
    GrantType.AUTHORIZATION_CODE: GrantRule(
        requires=("authorization_uri", "access_token_uri", "client_id", "redirect_uri"),
        credentials=CREDENTIALS_ALWAYS,
        fields=(BodyField("redirect_uri", "redirect_uri"),),
        scope=False,
        interactive=True,
    ),
    GrantType.CLIENT_CREDENTIALS: GrantRule(
        requires=("access_token_uri", "client_id"),
    ),
    GrantType.PASSWORD: GrantRule(
        requires=("access_token_uri", "username", "password"),
        fields=(
            BodyField("username", "username", send_empty=True),
            BodyField("password", "password", send_empty=True),
        ),
    ),
    GrantType.DEVICE_CODE: GrantRule(
        requires=("access_token_uri", "device_code"),
        fields=(BodyField("device_code", "device_code", send_empty=True),),
        scope=False,
    ),
    GrantType.JWT_BEARER: GrantRule(
        requires=("access_token_uri", "assertion"),
        credentials=CREDENTIALS_NEVER,
        fields=(BodyField("assertion", "assertion", send_empty=True),),
    ),
}

CUSTOM_GRANT_RULE = GrantRule(
    requires=("access_token_uri",),
    fields=(
        BodyField("redirect_uri", "redirect_uri"),
        BodyField("username", "username"),
        BodyField("password", "password"),
    ),
)


def grant_rule(config: AuthorizationConfig) -> GrantRule:
    """Rule for the configured grant; unknown grants use the custom grant rule."""
    return GRANT_RULES.get(config.canonical_grant_type, CUSTOM_GRANT_RULE)


def missing_required_fields(config: AuthorizationConfig) -> list[str]:
    """Configuration fields the grant requires but that are empty."""
    return [name for name in grant_rule(config).requires if not getattr(config, name)]


# =============================================================================
# Builders
# =============================================================================


def _add_client_credentials(body: FormBody, config: AuthorizationConfig, rule: GrantRule) -> None:
    # Header and query delivery move credentials out of the body
    if rule.credentials == CREDENTIALS_NEVER or config.delivery_method != "body":
        return
    if rule.credentials == CREDENTIALS_ALWAYS:
        body.set("client_id", config.client_id or "")
        body.set("client_secret", config.client_secret or "")
        return
    body.set_if("client_id", config.client_id)
    body.set_if("client_secret", config.client_secret)


def build_body(
    config: AuthorizationConfig,
    rule: GrantRule,
    extra_fields: Iterable[tuple[str, str | None]] = (),
) -> FormBody:
    """Build the ordered body for `rule`.

    Args:
        config: Authorization configuration
        rule: Grant rule describing the body
        extra_fields: Runtime fields appended after the configured grant
            fields (e.g. the authorization `code`); None values are skipped
    """
    body = FormBody()
    body.set("grant_type", config.canonical_grant_type)
    _add_client_credentials(body, config, rule)
    for body_field in rule.fields:
        value = getattr(config, body_field.attribute)
        if value:
            body.set(body_field.param, value)
        elif body_field.send_empty:
            body.set(body_field.param, "")
    for name, value in extra_fields:
        if value is not None:
            body.set(name, value)
    if rule.scope:
        body.set_if("scope", join_scopes(config.scopes))
    return body


def code_request_body(
    config: AuthorizationConfig, code: str, code_verifier: str | None = None
) -> FormBody:
    """Body exchanging an authorization code for a token."""
    rule = GRANT_RULES[GrantType.AUTHORIZATION_CODE]
    verifier = code_verifier if config.pkce else None
    return build_body(config, rule, [("code", code), ("code_verifier", verifier)])


def client_credentials_body(config: AuthorizationConfig) -> FormBody:
    return build_body(config, GRANT_RULES[GrantType.CLIENT_CREDENTIALS])


def password_body(config: AuthorizationConfig) -> FormBody:
    return build_body(config, GRANT_RULES[GrantType.PASSWORD])


def device_code_body(config: AuthorizationConfig) -> FormBody:
    return build_body(config, GRANT_RULES[GrantType.DEVICE_CODE])


def jwt_body(config: AuthorizationConfig) -> FormBody:
    return build_body(config, GRANT_RULES[GrantType.JWT_BEARER])


def custom_grant_body(config: AuthorizationConfig) -> FormBody:
    """Body for any grant type not known to the orchestrator; `grant_type` is verbatim."""
    return build_body(config, CUSTOM_GRANT_RULE)


def token_request_body(config: AuthorizationConfig) -> FormBody:
    """Body for a non-interactive grant, dispatched on the grant type."""
    rule = grant_rule(config)
    if rule.interactive:
        raise ValueError(f"Grant type {config.grant_type!r} has no direct token request")
    return build_body(config, rule)


def basic_auth_header(config: AuthorizationConfig) -> str:
    """`Basic base64(client_id:client_secret)` for header delivery (RFC 6749 2.3.1)."""
    credentials = f"{config.client_id or ''}:{config.client_secret or ''}"
    encoded = base64.b64encode(credentials.encode("utf-8")).decode("ascii")
    return f"Basic {encoded}"


def credentials_headers(config: AuthorizationConfig) -> dict[str, str]:
    """Request headers carrying client credentials, if the delivery method asks for it."""
    if not config.uses_header_delivery or grant_rule(config).credentials == CREDENTIALS_NEVER:
        return {}
    return {config.delivery_name: basic_auth_header(config)}


def credentials_query(config: AuthorizationConfig) -> list[tuple[str, str]]:
    """Token URL query parameters carrying client credentials in `query` delivery."""
    rule = grant_rule(config)
    if config.delivery_method != "query" or rule.credentials == CREDENTIALS_NEVER:
        return []
    params: list[tuple[str, str]] = []
    if config.client_id or rule.credentials == CREDENTIALS_ALWAYS:
        params.append(("client_id", config.client_id or ""))
    if config.client_secret or rule.credentials == CREDENTIALS_ALWAYS:
        params.append(("client_secret", config.client_secret or ""))
    return params


__all__ = [
    "CUSTOM_GRANT_RULE",
    "GRANT_RULES",
    "BodyField",
    "FormBody",
    "GrantRule",
    "basic_auth_header",
    "build_body",
    "client_credentials_body",
    "code_request_body",
    "credentials_headers",
    "credentials_query",
    "custom_grant_body",
    "device_code_body",
    "grant_rule",
    "jwt_body",
    "missing_required_fields",
    "password_body",
    "token_request_body",
]
