"""GitHub App authentication.

Builds the self-signed JWT a GitHub App presents when it asks for an
installation access token. The private key is read from a PEM file on
disk (typically a mounted Secret volume) and never leaves this module.

GitHub App auth flow:
1. Generate a JWT signed with the App's private key
2. Exchange the JWT for a short-lived installation access token
3. Use the installation token for git and API calls scoped to that installation
"""

import logging
import time
from pathlib import Path
from typing import Optional

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from tokengetter.errors import KeyLoadError, SigningError

logger = logging.getLogger(__name__)

# Backdate iat so a runner clock slightly ahead of GitHub's is not rejected.
CLOCK_SKEW_SECONDS = 60

JWT_ALGORITHM = "RS256"


def load_private_key(path: str) -> rsa.RSAPrivateKey:
    """Load an unencrypted PEM-encoded RSA private key.

    Both PKCS#1 (``BEGIN RSA PRIVATE KEY``, what GitHub hands out) and
    PKCS#8 (``BEGIN PRIVATE KEY``) encodings are accepted.

    Raises:
        KeyLoadError: If the file is missing, unreadable, not valid PEM,
            encrypted, or holds a non-RSA key.
    """
    if not path:
        raise KeyLoadError("Private key path is empty")

    try:
        pem = Path(path).read_bytes()
    except OSError as exc:
        raise KeyLoadError(f"Cannot read private key {path}: {exc}") from exc

    try:
        key = serialization.load_pem_private_key(pem, password=None)
    except (ValueError, TypeError) as exc:
        raise KeyLoadError(f"Cannot parse private key {path}: {exc}") from exc

    if not isinstance(key, rsa.RSAPrivateKey):
        raise KeyLoadError(
            f"Private key {path} is {type(key).__name__}, expected an RSA key"
        )
    return key


def create_app_jwt(
    private_key_path: str,
    issuer: str,
    ttl_seconds: int,
    now: Optional[int] = None,
) -> str:
    """Create a JWT for authenticating as the GitHub App.

    Claims:
        iss: the App ID
        iat: now minus CLOCK_SKEW_SECONDS
        exp: now plus ttl_seconds

    GitHub rejects JWTs that expire more than 10 minutes out, so the
    default TTL of 600 seconds is also the practical maximum.

    Raises:
        KeyLoadError: See load_private_key().
        SigningError: If the key cannot produce an RS256 signature.
    """
    key = load_private_key(private_key_path)

    if now is None:
        now = int(time.time())
    payload = {
        "iat": now - CLOCK_SKEW_SECONDS,
        "exp": now + ttl_seconds,
        "iss": issuer,
    }

    try:
        signed = jwt.encode(payload, key, algorithm=JWT_ALGORITHM)
    except (jwt.PyJWTError, ValueError, TypeError) as exc:
        raise SigningError(f"Cannot sign GitHub App JWT: {exc}") from exc

    logger.debug("Signed GitHub App JWT for issuer %s (ttl=%ds)", issuer, ttl_seconds)
    return signed
