"""Secret upsert orchestration.

A rotation run is linear:
  1. Sign the App JWT (github/auth.py)
  2. Exchange it for an installation token (github/client.py)
  3. Upsert the opaque Secret, then the basic-auth Secret

Each upsert reads the current Secret and decides create vs update from
what it finds; the write itself always replaces every field. The two
upserts are independent and not transactional: if the second one fails
the first stays written, and the next run brings both back in line.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional

import httpx

from tokengetter.core.config import DEFAULT_GITHUB_API_URL
from tokengetter.core.deadline import Deadline
from tokengetter.errors import SecretAlreadyExistsError, SecretNotFoundError
from tokengetter.github.auth import create_app_jwt
from tokengetter.github.client import exchange_installation_token
from tokengetter.kube.client import SecretRepository
from tokengetter.secrets.builders import build_basic_auth_secret, build_opaque_secret
from tokengetter.types import (
    AppIdentity,
    InstallationClaim,
    InstallationToken,
    SecretRecord,
    SecretTarget,
    UpsertAction,
    UpsertResult,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RotationResult:
    token: InstallationToken
    upserts: list[UpsertResult] = field(default_factory=list)

    def summary_lines(self) -> list[str]:
        lines = [upsert.describe() for upsert in self.upserts]
        if self.token.expires_at is not None:
            lines.append(f"Token expires at {self.token.expires_at.isoformat()}")
        return lines


def upsert_secret(
    repository: SecretRepository,
    desired: SecretRecord,
    now: Callable[[], datetime] = _utcnow,
) -> UpsertResult:
    """Create or fully replace a single Secret.

    An existing Secret with a data section is updated; anything else
    is created. If the write then meets the opposite state (created
    concurrently, deleted since the read, or present with no data) it
    is retried once with the other verb.

    Raises:
        SecretReadError: The read failed for a reason other than 404.
        SecretWriteError: The write failed, including the fallback.
    """
    current = repository.get(desired.name)

    if current is not None and current.has_data:
        try:
            repository.update(desired)
            action = UpsertAction.UPDATED
        except SecretNotFoundError:
            logger.warning(
                "Secret %s/%s disappeared before update, creating it",
                desired.namespace,
                desired.name,
            )
            repository.create(desired)
            action = UpsertAction.CREATED
    else:
        if current is None:
            logger.info(
                "Secret %s/%s not found, creating a new one",
                desired.namespace,
                desired.name,
            )
        try:
            repository.create(desired)
            action = UpsertAction.CREATED
        except SecretAlreadyExistsError:
            logger.warning(
                "Secret %s/%s already exists, updating it instead",
                desired.namespace,
                desired.name,
            )
            repository.update(desired)
            action = UpsertAction.UPDATED

    result = UpsertResult(
        name=desired.name,
        namespace=desired.namespace,
        action=action,
        at=now(),
    )
    logger.info("Secret %s/%s %s", result.namespace, result.name, action.value)
    return result


def publish_token(
    repository: SecretRepository,
    target: SecretTarget,
    token: InstallationToken,
    now: Callable[[], datetime] = _utcnow,
) -> list[UpsertResult]:
    """Write both Secret variants, opaque first, then basic-auth."""
    results: list[UpsertResult] = []
    for build in (build_opaque_secret, build_basic_auth_secret):
        desired = build(target, token.token)
        results.append(upsert_secret(repository, desired, now=now))
    return results


def rotate_token(
    identity: AppIdentity,
    claim: InstallationClaim,
    target: SecretTarget,
    repository: SecretRepository,
    deadline: Deadline,
    api_url: str = DEFAULT_GITHUB_API_URL,
    http_client: Optional[httpx.Client] = None,
    now: Callable[[], datetime] = _utcnow,
) -> RotationResult:
    """Run one full rotation: sign, exchange, publish.

    Any failure propagates unchanged; nothing is written to the cluster
    unless a string token was obtained.
    """
    app_jwt = create_app_jwt(
        identity.private_key_path,
        identity.app_id,
        claim.ttl_seconds,
    )

    token = exchange_installation_token(
        claim.installation_id,
        app_jwt,
        api_url=api_url,
        deadline=deadline,
        client=http_client,
    )

    upserts = publish_token(repository, target, token, now=now)
    return RotationResult(token=token, upserts=upserts)
