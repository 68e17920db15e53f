"""
Centralized constants for the grantflow oauth package.

Constants are grouped by:
- Configurable defaults: Values users may want to override
- Protocol constants: Fixed by OAuth 2.0 / PKCE specifications
- Validation limits: Valid ranges for parameters
"""

from __future__ import annotations

# =============================================================================
# CONFIGURABLE DEFAULTS
# =============================================================================


class OAuthDefaults:
    """Default values for authorization attempts.

    Tokens without an `expires_in` value are assumed to last one hour.
    """

    EXPIRES_IN_SECONDS = 3600
    TOKEN_TYPE = "Bearer"

    DELIVERY_METHOD = "body"
    DELIVERY_NAME = "authorization"

    HTTP_REQUEST_TIMEOUT = 30  # seconds

    # Loopback redirect listener
    CALLBACK_HOST = "localhost"
    CALLBACK_PORT = 1455

    # Random `state` / code verifier length in bytes before encoding
    RANDOM_STRING_BYTES = 32


# =============================================================================
# PROTOCOL CONSTANTS (Fixed by Standards)
# =============================================================================


class GrantType:
    """Grant type identifiers understood by the orchestrator."""

    IMPLICIT = "implicit"
    AUTHORIZATION_CODE = "authorization_code"
    CLIENT_CREDENTIALS = "client_credentials"
    PASSWORD = "password"
    DEVICE_CODE = "urn:ietf:params:oauth:grant-type:device_code"
    JWT_BEARER = "urn:ietf:params:oauth:grant-type:jwt-bearer"

    # Short names accepted in configuration
    ALIASES = {
        "device_code": DEVICE_CODE,
        "jwt-bearer": JWT_BEARER,
    }

    INTERACTIVE = (IMPLICIT, AUTHORIZATION_CODE)

    @classmethod
    def canonical(cls, grant_type: str) -> str:
        """Map a configured grant type to the value sent on the wire."""
        return cls.ALIASES.get(grant_type, grant_type)


class OAuthProtocol:
    """Constants defined by OAuth 2.0 and related RFCs."""

    HTTP_NOT_FOUND = 404
    HTTP_CLIENT_ERROR = 400
    HTTP_SERVER_ERROR = 500

    FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

    # `response_type` derived from the grant type
    GRANT_RESPONSE_MAPPING = {
        GrantType.IMPLICIT: "token",
        GrantType.AUTHORIZATION_CODE: "code",
    }

    # At least one of these must be present for a redirect to be an OAuth response
    REDIRECT_RESPONSE_PARAMS = ("state", "error", "access_token", "code")

    DELIVERY_METHODS = ("header", "query", "body")


class PkceProtocol:
    """Constants defined by PKCE (RFC 7636) specification.

    Code verifier requirements (RFC 7636 Section 4.1):
    - Must be 43-128 characters
    - Using URL-safe characters (A-Z, a-z, 0-9, -, ., _, ~)
    """

    # 48 random bytes encode to 64 URL-safe characters
    CODE_VERIFIER_BYTES = 48

    CODE_CHALLENGE_METHOD = "S256"


# =============================================================================
# VALIDATION LIMITS
# =============================================================================


class ValidationLimits:
    """Limits on user-configurable parameters."""

    # Characters that would corrupt a form-encoded `state` round trip
    RESERVED_STATE_CHARACTERS = frozenset("&=#?+ \t\r\n")


__all__ = [
    "OAuthDefaults",
    "GrantType",
    "OAuthProtocol",
    "PkceProtocol",
    "ValidationLimits",
]
