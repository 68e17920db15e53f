"""OAuth 2.0 error taxonomy.

Maps `error` codes returned by authorization servers (RFC 6749 sections
4.1.2.1 and 5.2) to user-presentable messages, and lists the codes the
orchestrator produces on its own.
"""

from __future__ import annotations

UNKNOWN_ERROR_MESSAGE = "Unknown error"

SERVER_ERROR_MESSAGES: dict[str, str] = {
    "interaction_required": "The request requires user interaction.",
    "invalid_request": "The request is missing a required parameter.",
    "invalid_client": "Client authentication failed.",
    "invalid_grant": (
        "The provided authorization grant or refresh token is invalid, expired, revoked, "
        "does not match the redirection URI used in the authorization request, "
        "or was issued to another client."
    ),
    "unauthorized_client": (
        "The authenticated client is not authorized to use this authorization grant type."
    ),
    "unsupported_grant_type": (
        "The authorization grant type is not supported by the authorization server."
    ),
    "invalid_scope": (
        "The requested scope is invalid, unknown, malformed, or exceeds the scope "
        "granted by the resource owner."
    ),
}


class ErrorCode:
    """Codes raised by the orchestrator itself, never by the server."""

    NO_STATE = "no_state"
    INVALID_STATE = "invalid_state"
    NO_CODE = "no_code"
    NO_RESPONSE = "no_response"
    POPUP_BLOCKED = "popup_blocked"
    POPUP_ERROR = "popup_error"
    INVALID_CONFIG = "invalid_config"
    REQUEST_ERROR = "request_error"
    # Reached only through a logic error in the dispatch
    UNKNOWN_STATE = "unknown_state"


def error_message(code: str | None, description: str | None = None) -> str:
    """Message for a server error; the server's description wins when present."""
    if description:
        return description
    if code is None:
        return UNKNOWN_ERROR_MESSAGE
    return SERVER_ERROR_MESSAGES.get(code, UNKNOWN_ERROR_MESSAGE)


def create_error_params(code: str | None, description: str | None = None) -> tuple[str, str]:
    """Build the `(message, code)` pair used to fail an attempt."""
    return error_message(code, description), code or ""


__all__ = [
    "SERVER_ERROR_MESSAGES",
    "UNKNOWN_ERROR_MESSAGE",
    "ErrorCode",
    "create_error_params",
    "error_message",
]
