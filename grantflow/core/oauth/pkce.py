"""
PKCE (Proof Key for Code Exchange) utilities.

PKCE is an extension to the Authorization Code flow to prevent
authorization code interception attacks. The verifier is kept by the
orchestrator for the lifetime of one attempt and sent with the code
exchange; only the challenge appears in the authorization URL.
"""

import base64
import hashlib
from dataclasses import dataclass

from .constants import PkceProtocol
from .utils import random_string


@dataclass(frozen=True)
class PkceCodes:
    """PKCE code verifier and challenge pair.

    Attributes:
        code_verifier: Cryptographically random string (43-128 chars)
        code_challenge: Base64url-encoded SHA256 hash of verifier
        code_challenge_method: Always "S256"
    """

    code_verifier: str
    code_challenge: str
    code_challenge_method: str = PkceProtocol.CODE_CHALLENGE_METHOD


def generate_code_challenge(code_verifier: str) -> str:
    """Derive the S256 code challenge for a verifier.

    Example:
        >>> generate_code_challenge("dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk")
        'E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM'
    """
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()

    # Base64url-encode the hash (remove padding)
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def generate_pkce() -> PkceCodes:
    """Generate a PKCE code verifier and S256 challenge.

    The verifier is 64 URL-safe characters produced by `secrets`, well
    within the 43-128 range required by RFC 7636.

    Returns:
        PkceCodes containing verifier and challenge
    """
    code_verifier = random_string(PkceProtocol.CODE_VERIFIER_BYTES)
    return PkceCodes(
        code_verifier=code_verifier,
        code_challenge=generate_code_challenge(code_verifier),
    )


__all__ = [
    "PkceCodes",
    "generate_code_challenge",
    "generate_pkce",
]
