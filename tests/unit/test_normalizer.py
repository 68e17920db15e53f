"""Tests for token response parsing and normalization."""

import pytest

from grantflow.core.oauth import CodeError, map_code_response, process_code_response
from grantflow.core.oauth.normalizer import (
    compute_expires,
    compute_scopes,
    parse_expires_in,
    token_info_from_params,
)
from tests.fixtures.oauth_http import NOW_MS, fixed_clock


@pytest.mark.unit
class TestProcessCodeResponse:
    def test_json(self):
        info = process_code_response(
            '{"access_token": "a", "token_type": "bearer"}', "application/json; charset=utf-8"
        )
        assert info == {"accessToken": "a", "tokenType": "bearer"}

    def test_vendor_json_mime(self):
        info = process_code_response('{"access_token": "a"}', "application/vnd.api+json")
        assert info == {"accessToken": "a"}

    def test_form_encoded(self):
        info = process_code_response("access_token=a&expires_in=10&scope=", "text/plain")
        assert info == {"accessToken": "a", "expiresIn": "10", "scope": ""}

    def test_json_must_be_an_object(self):
        with pytest.raises(ValueError):
            process_code_response("[1, 2]", "application/json")


@pytest.mark.unit
class TestExpires:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (3599, 3599),
            ("120", 120),
            (60.9, 60),
            (None, None),
            (0, None),
            ("0", None),
            ("soon", None),
            (float("inf"), None),
            (True, None),
        ],
    )
    def test_parse_expires_in(self, value, expected):
        assert parse_expires_in(value) == expected

    def test_compute_expires(self):
        assert compute_expires(10, fixed_clock) == (10, NOW_MS + 10_000, False)

    def test_compute_expires_assumed(self):
        assert compute_expires(None, fixed_clock) == (3600, NOW_MS + 3_600_000, True)


@pytest.mark.unit
class TestScopes:
    def test_granted(self):
        assert compute_scopes("a b", ("c",)) == ("a", "b")

    def test_requested_fallback(self):
        assert compute_scopes("", ("c", "d")) == ("c", "d")
        assert compute_scopes(None, ("c",)) == ("c",)

    def test_empty(self):
        assert compute_scopes(None, ()) == ()


@pytest.mark.unit
class TestMapping:
    def test_map_code_response(self):
        token = map_code_response(
            {
                "accessToken": "a",
                "refreshToken": "r",
                "idToken": "i",
                "expiresIn": 5,
                "scope": ["x", "y"],
                "extExpiresIn": 10,
            },
            ("z",),
            fixed_clock,
        )
        assert token.access_token == "a"
        assert token.refresh_token == "r"
        assert token.id_token == "i"
        assert token.expires_at == NOW_MS + 5_000
        assert token.scope == ("x", "y")
        assert token.extra == {"extExpiresIn": 10}

    def test_map_code_response_error(self):
        with pytest.raises(CodeError) as exc_info:
            map_code_response({"error": "invalid_grant", "errorDescription": "expired"})
        assert exc_info.value.code == "invalid_grant"
        assert exc_info.value.description == "expired"

    def test_token_info_from_params(self):
        token = token_info_from_params(
            {"access_token": "a", "state": "s", "expires_in": "30"}, ("openid",), fixed_clock
        )
        assert token.access_token == "a"
        assert token.state == "s"
        assert token.expires_in == 30
        assert token.scope == ("openid",)
        assert token.extra == {}
