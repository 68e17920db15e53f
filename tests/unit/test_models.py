"""Tests for AuthorizationConfig, CustomData and TokenInfo."""

import dataclasses

import pytest

from grantflow.core.oauth import (
    AuthorizationConfig,
    CustomData,
    CustomParameter,
    GrantType,
    TokenInfo,
    ValidationError,
)


@pytest.mark.unit
class TestAuthorizationConfig:
    def test_is_frozen(self):
        config = AuthorizationConfig(grant_type="implicit")
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.client_id = "other"  # type: ignore[misc]

    def test_scopes_list_becomes_tuple(self):
        config = AuthorizationConfig(grant_type="implicit", scopes=["a", "b"])  # type: ignore[arg-type]
        assert config.scopes == ("a", "b")

    def test_rejects_non_http_urls(self):
        with pytest.raises(ValidationError) as exc_info:
            AuthorizationConfig(grant_type="implicit", authorization_uri="ftp://auth.example.com")
        assert exc_info.value.field == "authorization_uri"

    def test_rejects_relative_urls(self):
        with pytest.raises(ValidationError):
            AuthorizationConfig(grant_type="password", access_token_uri="/token")

    def test_rejects_unknown_delivery_method(self):
        with pytest.raises(ValidationError):
            AuthorizationConfig(grant_type="client_credentials", delivery_method="cookie")

    def test_rejects_empty_grant_type(self):
        with pytest.raises(ValidationError):
            AuthorizationConfig(grant_type="")

    def test_canonical_grant_type(self):
        assert AuthorizationConfig(grant_type="jwt-bearer").canonical_grant_type == (
            GrantType.JWT_BEARER
        )
        assert AuthorizationConfig(grant_type="password").canonical_grant_type == "password"

    def test_secrets_not_in_repr(self):
        config = AuthorizationConfig(grant_type="password", password="hunter2", assertion="jwt")
        assert "hunter2" not in repr(config)
        assert "jwt" not in repr(config)


@pytest.mark.unit
class TestAuthorizationConfigFromDict:
    def test_camel_case_keys(self):
        config = AuthorizationConfig.from_dict(
            {
                "grantType": "authorization_code",
                "clientId": "cid",
                "authorizationUri": "https://auth.example.com/authorize",
                "redirectUri": "http://localhost:1455/callback",
                "pkce": True,
                "deliveryMethod": "header",
            }
        )
        assert config.client_id == "cid"
        assert config.pkce is True
        assert config.uses_header_delivery

    def test_snake_case_keys(self):
        config = AuthorizationConfig.from_dict({"grant_type": "password", "username": "alice"})
        assert config.username == "alice"

    def test_unknown_keys_are_rejected(self):
        with pytest.raises(ValidationError, match="clientSecrett"):
            AuthorizationConfig.from_dict({"grantType": "password", "clientSecrett": "x"})

    def test_grant_type_is_required(self):
        with pytest.raises(ValidationError) as exc_info:
            AuthorizationConfig.from_dict({"clientId": "cid"})
        assert exc_info.value.field == "grant_type"

    def test_custom_data_mapping(self):
        config = AuthorizationConfig.from_dict(
            {
                "grantType": "client_credentials",
                "customData": {
                    "auth": {"parameters": [{"name": "prompt", "value": "login"}]},
                    "token": {"headers": [{"name": "x-api", "value": 1}]},
                },
            }
        )
        assert isinstance(config.custom_data, CustomData)
        assert config.custom_data.auth.parameters == (CustomParameter("prompt", "login"),)
        assert config.custom_data.token.headers == (CustomParameter("x-api", "1"),)

    def test_custom_data_rejects_unknown_sections(self):
        with pytest.raises(ValidationError):
            CustomData.from_dict({"refresh": {}})

    def test_custom_parameter_requires_name(self):
        with pytest.raises(ValidationError):
            CustomData.from_dict({"token": {"body": [{"value": "x"}]}})


@pytest.mark.unit
class TestTokenInfo:
    def test_to_dict_uses_wire_keys(self):
        token = TokenInfo(
            access_token="tok",
            expires_in=60,
            expires_at=123,
            scope=("a",),
            state="s",
            extra={"idpName": "corp"},
        )
        assert token.to_dict() == {
            "idpName": "corp",
            "accessToken": "tok",
            "tokenType": "Bearer",
            "refreshToken": None,
            "idToken": None,
            "expiresIn": 60,
            "expiresAt": 123,
            "expiresAssumed": False,
            "scope": ["a"],
            "state": "s",
        }

    def test_wire_keys(self):
        assert TokenInfo.wire_keys()["accessToken"] == "access_token"
