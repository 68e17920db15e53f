"""Data model of an authorization attempt.

`AuthorizationConfig` is what the caller asks for, `TokenInfo` is what a
successful attempt produces. Both accept/emit the camelCase wire shape used
by API consoles (`clientId`, `accessToken`, ...) through `from_dict` and
`to_dict`.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from .constants import GrantType, OAuthDefaults, OAuthProtocol
from .exceptions import ValidationError
from .utils import camel
from .validation import (
    validate_choice,
    validate_dict_keys,
    validate_optional_string,
    validate_string,
    validate_type,
    validate_url,
)

# =============================================================================
# Custom data
# =============================================================================


@dataclass(frozen=True)
class CustomParameter:
    """A single name/value pair supplied by the caller. The value is always a string."""

    name: str
    value: str = ""

    @classmethod
    def from_value(cls, item: CustomParameter | Mapping[str, Any], context: str) -> CustomParameter:
        if isinstance(item, CustomParameter):
            return item
        validate_type(item, Mapping, context)
        name = validate_string(item.get("name"), f"{context}.name")
        value = item.get("value")
        return cls(name=name, value="" if value is None else str(value))


def _parameters(items: Sequence[Any] | None, context: str) -> tuple[CustomParameter, ...]:
    if not items:
        return ()
    validate_type(items, (list, tuple), context)
    return tuple(
        CustomParameter.from_value(item, f"{context}[{index}]") for index, item in enumerate(items)
    )


@dataclass(frozen=True)
class AuthCustomData:
    """Extra query parameters for the authorization URL."""

    parameters: tuple[CustomParameter, ...] = ()


@dataclass(frozen=True)
class TokenCustomData:
    """Extra query parameters, headers and body fields for the token request."""

    parameters: tuple[CustomParameter, ...] = ()
    headers: tuple[CustomParameter, ...] = ()
    body: tuple[CustomParameter, ...] = ()


@dataclass(frozen=True)
class CustomData:
    """Caller supplied parameters for auth-server quirks, keyed by phase."""

    auth: AuthCustomData | None = None
    token: TokenCustomData | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CustomData:
        """Build from `{"auth": {"parameters": [...]}, "token": {...}}`."""
        validate_dict_keys(dict(data), {"auth", "token"}, "custom_data")
        auth = None
        token = None
        if data.get("auth"):
            section = data["auth"]
            validate_dict_keys(dict(section), {"parameters"}, "custom_data.auth")
            auth = AuthCustomData(
                parameters=_parameters(section.get("parameters"), "custom_data.auth.parameters")
            )
        if data.get("token"):
            section = data["token"]
            validate_dict_keys(dict(section), {"parameters", "headers", "body"}, "custom_data.token")
            token = TokenCustomData(
                parameters=_parameters(section.get("parameters"), "custom_data.token.parameters"),
                headers=_parameters(section.get("headers"), "custom_data.token.headers"),
                body=_parameters(section.get("body"), "custom_data.token.body"),
            )
        return cls(auth=auth, token=token)


# =============================================================================
# Authorization configuration
# =============================================================================

_STRING_FIELDS = (
    "response_type",
    "client_id",
    "client_secret",
    "authorization_uri",
    "access_token_uri",
    "redirect_uri",
    "state",
    "username",
    "password",
    "assertion",
    "device_code",
    "login_hint",
)

_URL_FIELDS = ("authorization_uri", "access_token_uri", "redirect_uri")


@dataclass(frozen=True)
class AuthorizationConfig:
    """Caller supplied configuration for one authorization attempt.

    The dataclass is frozen: nothing can change once an attempt starts.

    Attributes:
        grant_type: implicit, authorization_code, client_credentials, password,
            device_code, jwt-bearer or any custom grant string
        response_type: Override of the `response_type` authorization parameter
        client_id: Client identifier registered with the server
        client_secret: Client secret; never put into an authorization URL
        authorization_uri: Interactive authorization endpoint
        access_token_uri: Token endpoint
        redirect_uri: Redirect URI registered with the server
        scopes: Requested scopes, serialized space-joined in order
        state: Request state; generated when not given
        pkce: Use PKCE (authorization_code only)
        username: Resource owner name (password grant)
        password: Resource owner password (password grant)
        assertion: JWT assertion (jwt-bearer grant)
        device_code: Device code (device_code grant)
        delivery_method: How client credentials are sent (header, query, body)
        delivery_name: Header carrying client credentials in header mode
        include_granted_scopes: Add `include_granted_scopes=true` (Google)
        login_hint: Add `login_hint` to the authorization URL (Google)
        custom_data: Extra parameters per phase and channel
    """

    grant_type: str
    response_type: str | None = None
    client_id: str | None = None
    client_secret: str | None = None
    authorization_uri: str | None = None
    access_token_uri: str | None = None
    redirect_uri: str | None = None
    scopes: tuple[str, ...] = ()
    state: str | None = None
    pkce: bool = False
    username: str | None = None
    password: str | None = field(default=None, repr=False)
    assertion: str | None = field(default=None, repr=False)
    device_code: str | None = None
    delivery_method: str = OAuthDefaults.DELIVERY_METHOD
    delivery_name: str = OAuthDefaults.DELIVERY_NAME
    include_granted_scopes: bool = False
    login_hint: str | None = None
    custom_data: CustomData | None = None

    def __post_init__(self) -> None:
        validate_string(self.grant_type, "grant_type")
        for name in _STRING_FIELDS:
            validate_optional_string(getattr(self, name), name)
        for name in _URL_FIELDS:
            value = getattr(self, name)
            if value:
                validate_url(value, name)

        validate_type(self.scopes, (list, tuple), "scopes")
        scopes = tuple(validate_string(scope, "scopes[]") for scope in self.scopes)
        # Frozen dataclass: normalize lists to tuples through object.__setattr__
        object.__setattr__(self, "scopes", scopes)

        validate_type(self.pkce, bool, "pkce")
        validate_type(self.include_granted_scopes, bool, "include_granted_scopes")
        validate_choice(self.delivery_method, "delivery_method", OAuthProtocol.DELIVERY_METHODS)
        validate_string(self.delivery_name, "delivery_name")

        if isinstance(self.custom_data, Mapping):
            object.__setattr__(self, "custom_data", CustomData.from_dict(self.custom_data))
        elif self.custom_data is not None:
            validate_type(self.custom_data, CustomData, "custom_data")

    @property
    def canonical_grant_type(self) -> str:
        """The grant type as sent in `grant_type` (short aliases expanded to URNs)."""
        return GrantType.canonical(self.grant_type)

    @property
    def uses_header_delivery(self) -> bool:
        return self.delivery_method == "header"

    @classmethod
    def field_names(cls) -> set[str]:
        return {f.name for f in dataclasses.fields(cls)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AuthorizationConfig:
        """Build a config from snake_case or camelCase keys.

        Example:
            >>> AuthorizationConfig.from_dict({"grantType": "client_credentials",
            ...     "accessTokenUri": "https://auth.example.com/token", "clientId": "cid"})
        """
        names = cls.field_names()
        aliases = {camel(name): name for name in names}
        aliases.update({name: name for name in names})
        validate_dict_keys(dict(data), set(aliases), "AuthorizationConfig")

        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            kwargs[aliases[key]] = value
        if "grant_type" not in kwargs:
            raise ValidationError("grant_type", None, "is required")
        return cls(**kwargs)


# =============================================================================
# Token info
# =============================================================================

# Attribute name -> camelCase wire key
_TOKEN_FIELDS = {
    "access_token": "accessToken",
    "token_type": "tokenType",
    "refresh_token": "refreshToken",
    "id_token": "idToken",
    "expires_in": "expiresIn",
    "expires_at": "expiresAt",
    "expires_assumed": "expiresAssumed",
    "scope": "scope",
    "state": "state",
}


@dataclass
class TokenInfo:
    """Canonical token produced by a successful attempt.

    Attributes:
        access_token: The access token
        token_type: Token type, `Bearer` when the server omits it
        refresh_token: Refresh token, if issued
        id_token: OpenID Connect ID token, if issued
        expires_in: Lifetime in seconds
        expires_at: Expiry as epoch milliseconds, computed at exchange time
        expires_assumed: True when `expires_in` was missing and defaulted
        scope: Granted scopes, or the requested ones when the server is silent
        state: The request state
        extra: Every other field returned by the server (camel-cased keys)
    """

    access_token: str | None
    token_type: str = OAuthDefaults.TOKEN_TYPE
    refresh_token: str | None = None
    id_token: str | None = None
    expires_in: int = OAuthDefaults.EXPIRES_IN_SECONDS
    expires_at: int = 0
    expires_assumed: bool = False
    scope: tuple[str, ...] = ()
    state: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase wire shape; server extras come first."""
        data: dict[str, Any] = dict(self.extra)
        for attribute, key in _TOKEN_FIELDS.items():
            value = getattr(self, attribute)
            data[key] = list(value) if attribute == "scope" else value
        return data

    @staticmethod
    def wire_keys() -> dict[str, str]:
        """camelCase wire key -> attribute name."""
        return {key: attribute for attribute, key in _TOKEN_FIELDS.items()}


__all__ = [
    "AuthCustomData",
    "AuthorizationConfig",
    "CustomData",
    "CustomParameter",
    "TokenCustomData",
    "TokenInfo",
]
