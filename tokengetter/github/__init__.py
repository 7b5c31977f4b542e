"""GitHub App authentication: JWT signing and installation token exchange.

Public API:
    load_private_key(path) -> RSAPrivateKey
    create_app_jwt(private_key_path, issuer, ttl_seconds) -> str
    exchange_installation_token(installation_id, app_jwt, ...) -> InstallationToken
"""

from tokengetter.github.auth import create_app_jwt, load_private_key
from tokengetter.github.client import exchange_installation_token

__all__ = ["create_app_jwt", "exchange_installation_token", "load_private_key"]
