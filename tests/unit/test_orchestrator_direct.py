"""Tests for grants that go straight to the token endpoint."""

import base64

import httpx
import pytest

from grantflow.core.oauth import (
    AttemptState,
    AuthorizationError,
    GrantType,
    MockHttpClient,
    OAuth2Authorization,
    TokenInfo,
)
from grantflow.core.oauth.errors import SERVER_ERROR_MESSAGES
from tests.fixtures.oauth_http import (
    NOW_MS,
    TOKEN_URL,
    fixed_clock,
    form_params,
    make_config,
    query_params,
)


def run(config, **kwargs) -> TokenInfo:
    return OAuth2Authorization(config, clock=fixed_clock, **kwargs).authorize()


def failure(config, **kwargs) -> AuthorizationError:
    with pytest.raises(AuthorizationError) as exc_info:
        run(config, **kwargs)
    return exc_info.value


def respond(mock_token_endpoint, *args, **kwargs):
    return mock_token_endpoint.post(TOKEN_URL).mock(return_value=httpx.Response(*args, **kwargs))


@pytest.mark.unit
class TestClientCredentialsGrant:
    def test_body_delivery(self, token_route):
        auth = OAuth2Authorization(make_config("client_credentials"), clock=fixed_clock)
        token = auth.authorize()

        assert token.access_token == "access-123"
        assert token.state == auth.state
        assert form_params(token_route.calls.last.request.content) == [
            ("grant_type", "client_credentials"),
            ("client_id", "test-client"),
            ("client_secret", "test-secret"),
            ("scope", "openid email"),
        ]

    def test_header_delivery_moves_credentials_out_of_the_body(self, token_route):
        run(make_config("client_credentials", delivery_method="header"))

        request = token_route.calls.last.request
        expected = base64.b64encode(b"test-client:test-secret").decode()
        assert request.headers["authorization"] == f"Basic {expected}"
        body = dict(form_params(request.content))
        assert "client_id" not in body
        assert "client_secret" not in body
        assert body["grant_type"] == "client_credentials"

    def test_header_delivery_with_custom_header_name(self, token_route):
        run(
            make_config(
                "client_credentials", delivery_method="header", delivery_name="x-client-auth"
            )
        )

        request = token_route.calls.last.request
        assert request.headers["x-client-auth"].startswith("Basic ")
        assert "authorization" not in request.headers

    def test_query_delivery(self):
        client = MockHttpClient(json_response={"access_token": "tok"})
        run(make_config("client_credentials", delivery_method="query"), http_client=client)

        sent = client.requests[0]
        assert query_params(sent["url"]) == {
            "client_id": "test-client",
            "client_secret": "test-secret",
        }
        assert b"client_secret" not in sent["data"]

    def test_config_mapping_is_accepted(self, token_route):
        token = run(
            {
                "grantType": "client_credentials",
                "accessTokenUri": TOKEN_URL,
                "clientId": "test-client",
            }
        )
        assert token.access_token == "access-123"
        assert token.scope == ("openid", "email")


@pytest.mark.unit
class TestOtherGrants:
    def test_password(self, token_route):
        run(make_config("password", username="alice", password="s3cret"))

        assert form_params(token_route.calls.last.request.content) == [
            ("grant_type", "password"),
            ("client_id", "test-client"),
            ("client_secret", "test-secret"),
            ("username", "alice"),
            ("password", "s3cret"),
            ("scope", "openid email"),
        ]

    def test_device_code_alias_uses_urn(self, token_route):
        token = run(make_config("device_code", device_code="dev-123"))

        body = form_params(token_route.calls.last.request.content)
        assert body[0] == ("grant_type", GrantType.DEVICE_CODE)
        assert ("device_code", "dev-123") in body
        assert "scope" not in dict(body)
        assert token.access_token == "access-123"

    def test_jwt_bearer_sends_assertion_without_client_credentials(self, token_route):
        run(make_config("jwt-bearer", assertion="eyJhbGciOi"))

        body = dict(form_params(token_route.calls.last.request.content))
        assert body == {
            "grant_type": GrantType.JWT_BEARER,
            "assertion": "eyJhbGciOi",
            "scope": "openid email",
        }

    def test_custom_grant_is_sent_verbatim(self, token_route):
        run(make_config("urn:example:grant", username="alice"))

        body = form_params(token_route.calls.last.request.content)
        assert body[0] == ("grant_type", "urn:example:grant")
        assert ("username", "alice") in body
        assert ("redirect_uri", "http://localhost:1455/callback") in body
        assert "password" not in dict(body)


@pytest.mark.unit
class TestTokenNormalization:
    def test_form_encoded_response_keeps_extra_fields(self, mock_token_endpoint):
        respond(
            mock_token_endpoint,
            200,
            text="access_token=tok&expires_in=60&x_custom-field=1",
            headers={"content-type": "application/x-www-form-urlencoded"},
        )
        token = run(make_config("client_credentials"))

        assert token.access_token == "tok"
        assert token.expires_in == 60
        assert token.extra == {"xCustomField": "1"}
        assert token.to_dict()["xCustomField"] == "1"

    def test_missing_expires_in(self, mock_token_endpoint):
        respond(mock_token_endpoint, 200, json={"access_token": "tok"})
        token = run(make_config("client_credentials"))

        assert token.expires_in == 3600
        assert token.expires_assumed is True
        assert token.expires_at == NOW_MS + 3_600_000
        assert token.token_type == "Bearer"

    def test_no_scope_anywhere(self, mock_token_endpoint):
        respond(mock_token_endpoint, 200, json={"access_token": "tok"})
        assert run(make_config("client_credentials", scopes=())).scope == ()

    def test_granted_scope(self, token_route):
        assert run(make_config("client_credentials", scopes=("admin",))).scope == (
            "openid",
            "email",
        )

    def test_matching_state_is_accepted(self, mock_token_endpoint):
        respond(mock_token_endpoint, 200, json={"access_token": "tok", "state": "s1"})
        assert run(make_config("client_credentials", state="s1")).state == "s1"

    def test_mismatching_state_is_rejected(self, mock_token_endpoint):
        respond(mock_token_endpoint, 200, json={"access_token": "tok", "state": "other"})
        error = failure(make_config("client_credentials", state="s1"))

        assert error.code == "invalid_state"
        assert error.expected_state == "s1"
        assert error.received_state == "other"


@pytest.mark.unit
class TestTokenEndpointFailures:
    def test_error_object_in_success_response(self, mock_token_endpoint):
        respond(mock_token_endpoint, 200, json={"error": "invalid_client"})
        error = failure(make_config("client_credentials"))

        assert error.code == "invalid_client"
        assert error.message == SERVER_ERROR_MESSAGES["invalid_client"]
        assert error.state

    def test_error_description_wins(self, mock_token_endpoint):
        respond(
            mock_token_endpoint,
            200,
            json={"error": "invalid_client", "error_description": "Unknown client"},
        )
        error = failure(make_config("client_credentials"))

        assert error.code == "invalid_client"
        assert error.message == "Unknown client"

    def test_not_found(self, mock_token_endpoint):
        respond(mock_token_endpoint, 404, text="missing")
        error = failure(make_config("client_credentials"))

        assert error.code == "request_error"
        assert error.message == (
            "Couldn't connect to the server. Authorization URI is invalid. Received status 404."
        )

    def test_server_error(self, mock_token_endpoint):
        respond(mock_token_endpoint, 503, text="down")
        error = failure(make_config("client_credentials"))

        assert error.code == "request_error"
        assert "503" in error.message

    def test_empty_body(self, mock_token_endpoint):
        respond(mock_token_endpoint, 200, text="")
        error = failure(make_config("client_credentials"))

        assert error.message == "Couldn't connect to the server. Code response body is empty."

    def test_client_error_without_oauth_body(self, mock_token_endpoint):
        respond(mock_token_endpoint, 400, text="bad things")
        error = failure(make_config("client_credentials"))

        assert error.code == "request_error"
        assert error.message == "Couldn't connect to the server. Client error: bad things"

    def test_client_error_with_oauth_body(self, mock_token_endpoint):
        respond(mock_token_endpoint, 400, json={"error": "invalid_grant"})
        error = failure(make_config("client_credentials"))

        assert error.code == "request_error"
        assert error.message.startswith("Couldn't connect to the server. Client error: ")
        assert "invalid_grant" in error.message

    def test_transport_failure(self, mock_token_endpoint):
        mock_token_endpoint.post(TOKEN_URL).mock(side_effect=httpx.ConnectError("refused"))
        error = failure(make_config("client_credentials"))

        assert error.code == "request_error"
        assert error.message.startswith("Couldn't connect to the server. ")
        assert "refused" in error.message

    def test_undecodable_body(self, mock_token_endpoint):
        mock_token_endpoint.post(TOKEN_URL).mock(
            side_effect=httpx.DecodingError("Error -3 while decompressing data")
        )
        auth = OAuth2Authorization(make_config("client_credentials"), clock=fixed_clock)

        with pytest.raises(AuthorizationError) as exc_info:
            auth.authorize()

        assert exc_info.value.code == "request_error"
        assert exc_info.value.message.startswith("Couldn't connect to the server. ")
        assert auth.phase is AttemptState.RESOLVED_ERROR

    def test_malformed_json(self, mock_token_endpoint):
        respond(
            mock_token_endpoint,
            200,
            text="{not json",
            headers={"content-type": "application/json"},
        )
        assert failure(make_config("client_credentials")).code == "request_error"


@pytest.mark.unit
class TestCustomTokenParameters:
    def test_parameters_headers_and_body(self):
        client = MockHttpClient(json_response={"access_token": "tok"})
        config = make_config(
            "client_credentials",
            custom_data={
                "token": {
                    "parameters": [{"name": "audience", "value": "api"}],
                    "headers": [
                        {"name": "Cache-Control", "value": "max-age=0"},
                        {"name": "x-trace", "value": "1"},
                    ],
                    "body": [{"name": "resource", "value": "https://api.example.com"}],
                }
            },
        )

        run(config, http_client=client)

        sent = client.requests[0]
        assert query_params(sent["url"]) == {"audience": "api"}
        assert sent["headers"]["Cache-Control"] == "max-age=0"
        assert "cache-control" not in sent["headers"]
        assert sent["headers"]["x-trace"] == "1"
        assert form_params(sent["data"])[-1] == ("resource", "https://api.example.com")

    def test_custom_header_overrides_basic_credentials(self):
        client = MockHttpClient(json_response={"access_token": "tok"})
        config = make_config(
            "client_credentials",
            delivery_method="header",
            custom_data={"token": {"headers": [{"name": "Authorization", "value": "Custom x"}]}},
        )

        run(config, http_client=client)

        headers = client.requests[0]["headers"]
        assert headers == {
            "content-type": "application/x-www-form-urlencoded",
            "cache-control": "no-cache",
            "Authorization": "Custom x",
        }
