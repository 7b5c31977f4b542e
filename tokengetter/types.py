"""Types shared across the token exchange and secret publishing flow.

AppIdentity, InstallationClaim and SecretTarget are built once from the
command line. InstallationToken lives for a single run. SecretRecord is
the in-memory shape of a Kubernetes Secret, both as read back from the
cluster and as the desired state we write.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class SecretType(str, Enum):
    OPAQUE = "Opaque"
    BASIC_AUTH = "kubernetes.io/basic-auth"


class UpsertAction(str, Enum):
    CREATED = "created"
    UPDATED = "updated"


@dataclass(frozen=True)
class AppIdentity:
    """The GitHub App we authenticate as.

    app_id doubles as the JWT issuer claim.
    """

    app_id: str
    private_key_path: str


@dataclass(frozen=True)
class InstallationClaim:
    installation_id: int
    ttl_seconds: int = 600


@dataclass(frozen=True)
class SecretTarget:
    """Where the token lands in the cluster.

    secret_name is the base name: the basic-auth secret uses it as-is,
    the opaque secret appends OPAQUE_SUFFIX.
    """

    namespace: str
    secret_name: str
    username: str = "token"

    OPAQUE_SUFFIX = "-opaque"

    @property
    def opaque_name(self) -> str:
        return f"{self.secret_name}{self.OPAQUE_SUFFIX}"

    @property
    def basic_auth_name(self) -> str:
        return self.secret_name


@dataclass(frozen=True)
class InstallationToken:
    """Short-lived installation access token returned by GitHub.

    The token value is excluded from repr so it cannot leak through
    tracebacks or debug logging.
    """

    token: str = field(repr=False)
    expires_at: Optional[datetime] = None


@dataclass
class SecretRecord:
    """A Kubernetes Secret reduced to the fields we read and write.

    data holds decoded string values. A record read back from the
    cluster may carry data=None when the Secret exists without a
    data section.
    """

    name: str
    namespace: str
    secret_type: SecretType
    data: Optional[dict[str, str]] = field(default=None, repr=False)
    annotations: dict[str, str] = field(default_factory=dict)
    labels: dict[str, str] = field(default_factory=dict)
    resource_version: Optional[str] = None

    @property
    def has_data(self) -> bool:
        return self.data is not None


@dataclass(frozen=True)
class UpsertResult:
    name: str
    namespace: str
    action: UpsertAction
    at: datetime

    def describe(self) -> str:
        return f"Secret {self.namespace}/{self.name} {self.action.value} at {self.at.isoformat()}"
