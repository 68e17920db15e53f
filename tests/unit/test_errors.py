"""Tests for the error taxonomy and exception hierarchy."""

import pytest

from grantflow.core.oauth import (
    AuthorizationError,
    CodeError,
    ConfigurationError,
    ErrorCode,
    HttpError,
    OAuthError,
    OAuthFlowError,
    PopupBlockedError,
    ValidationError,
    create_error_params,
    error_message,
)
from grantflow.core.oauth.errors import SERVER_ERROR_MESSAGES, UNKNOWN_ERROR_MESSAGE


@pytest.mark.unit
class TestErrorMessages:
    @pytest.mark.parametrize("code", sorted(SERVER_ERROR_MESSAGES))
    def test_known_codes(self, code):
        assert error_message(code) == SERVER_ERROR_MESSAGES[code]

    def test_unknown_code(self):
        assert error_message("temporarily_unavailable") == UNKNOWN_ERROR_MESSAGE

    def test_description_wins(self):
        assert error_message("invalid_client", "Bad secret") == "Bad secret"

    def test_create_error_params(self):
        assert create_error_params("invalid_scope") == (
            SERVER_ERROR_MESSAGES["invalid_scope"],
            "invalid_scope",
        )

    def test_orchestrator_codes_are_not_server_codes(self):
        codes = {value for name, value in vars(ErrorCode).items() if name.isupper()}
        assert codes == {
            "no_state",
            "invalid_state",
            "no_code",
            "no_response",
            "popup_blocked",
            "popup_error",
            "request_error",
            "invalid_config",
            "unknown_state",
        }
        assert not codes & set(SERVER_ERROR_MESSAGES)


@pytest.mark.unit
class TestExceptions:
    @pytest.mark.parametrize(
        "exc",
        [
            ValidationError("f", 1, "bad"),
            ConfigurationError("missing"),
            OAuthFlowError("reused"),
            PopupBlockedError("blocked"),
            CodeError("invalid_grant"),
            HttpError(0, "refused", "", "https://x"),
            AuthorizationError("m", "no_state", "s"),
        ],
    )
    def test_hierarchy(self, exc):
        assert isinstance(exc, OAuthError)

    def test_authorization_error_to_dict(self):
        error = AuthorizationError("Nope", "no_state", "s1")
        assert error.to_dict() == {
            "error": True,
            "message": "Nope",
            "code": "no_state",
            "state": "s1",
        }
        assert str(error) == "Nope"

    def test_code_error_message(self):
        assert str(CodeError("invalid_grant")) == "invalid_grant"
        assert str(CodeError("invalid_grant", "expired")) == "expired"

    def test_http_error_preview(self):
        error = HttpError(500, "Server Error", "x" * 300, "https://auth.example.com/token")
        assert "HTTP 500" in str(error)
        assert str(error).endswith("...")
