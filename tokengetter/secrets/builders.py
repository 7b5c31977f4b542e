"""Desired state for the two Secret variants.

Both are pure functions of their inputs, so the same target and token
always produce the same record and re-running the upsert leaves the
cluster unchanged.

Tekton picks up any Secret annotated ``tekton.dev/git-0`` and mounts it
as git credentials for the matching host.
"""

from tokengetter.types import SecretRecord, SecretTarget, SecretType

GITHUB_HOST = "github.com"
GITHUB_URL = f"https://{GITHUB_HOST}"

TEKTON_GIT_ANNOTATION = "tekton.dev/git-0"

MANAGED_BY_LABEL = "app.kubernetes.io/managed-by"
MANAGED_BY = "tokengetter"

# Store helper reads .git-credentials; insteadOf turns ssh remotes into
# https so the token also works for git@github.com: URLs.
GITCONFIG_TEMPLATE = f"""
[credential "{GITHUB_URL}"]
helper = store
[url "{GITHUB_URL}/"]
insteadOf = git@{GITHUB_HOST}:
"""


def _common_metadata() -> tuple[dict[str, str], dict[str, str]]:
    annotations = {TEKTON_GIT_ANNOTATION: GITHUB_URL}
    labels = {MANAGED_BY_LABEL: MANAGED_BY}
    return annotations, labels


def git_credentials_line(username: str, token: str) -> str:
    """A single ``.git-credentials`` entry for github.com."""
    return f"https://{username}:{token}@{GITHUB_HOST}"


def build_opaque_secret(target: SecretTarget, token: str) -> SecretRecord:
    annotations, labels = _common_metadata()
    return SecretRecord(
        name=target.opaque_name,
        namespace=target.namespace,
        secret_type=SecretType.OPAQUE,
        data={"token": token},
        annotations=annotations,
        labels=labels,
    )


def build_basic_auth_secret(target: SecretTarget, token: str) -> SecretRecord:
    """Basic-auth Secret usable both by Tekton and as a mounted git config.

    ``username``/``password`` are what the basic-auth type requires;
    ``.git-credentials`` and ``.gitconfig`` let a workspace mount the
    Secret as a home directory and have plain ``git clone`` work.
    """
    annotations, labels = _common_metadata()
    return SecretRecord(
        name=target.basic_auth_name,
        namespace=target.namespace,
        secret_type=SecretType.BASIC_AUTH,
        data={
            "username": target.username,
            "password": token,
            ".git-credentials": git_credentials_line(target.username, token),
            ".gitconfig": GITCONFIG_TEMPLATE,
        },
        annotations=annotations,
        labels=labels,
    )
