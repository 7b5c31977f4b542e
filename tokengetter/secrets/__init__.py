"""Desired-state builders and the upsert flow for the two Secret variants.

Public API:
    build_opaque_secret(target, token) -> SecretRecord
    build_basic_auth_secret(target, token) -> SecretRecord
    upsert_secret(repository, desired) -> UpsertResult
    publish_token(repository, target, token) -> list[UpsertResult]
    rotate_token(identity, claim, target, repository, ...) -> RotationResult
"""

from tokengetter.secrets.builders import (
    GITCONFIG_TEMPLATE,
    TEKTON_GIT_ANNOTATION,
    build_basic_auth_secret,
    build_opaque_secret,
)
from tokengetter.secrets.service import (
    RotationResult,
    publish_token,
    rotate_token,
    upsert_secret,
)

__all__ = [
    "GITCONFIG_TEMPLATE",
    "TEKTON_GIT_ANNOTATION",
    "RotationResult",
    "build_basic_auth_secret",
    "build_opaque_secret",
    "publish_token",
    "rotate_token",
    "upsert_secret",
]
