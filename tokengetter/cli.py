"""Command-line entry point.

Usage (typically from a Kubernetes CronJob):

    tokengetter -a 12345 -i 67890 -k /etc/github-app/private-key.pem \\
        -n ci -s github-token

Flags carry the per-run inputs; TOKENGETTER_* environment variables
carry the ambient settings (see core/config.py). This module is the
only place errors are turned into exit codes.
"""

import argparse
import logging
import sys
from typing import Optional, Sequence

from pydantic import ValidationError

from tokengetter import __version__
from tokengetter.core.config import Settings, get_settings
from tokengetter.core.deadline import Deadline
from tokengetter.core.logging import configure_structlog
from tokengetter.errors import ConfigurationError, TokenGetterError
from tokengetter.kube.client import SecretRepository, load_core_api
from tokengetter.secrets.service import rotate_token
from tokengetter.types import AppIdentity, InstallationClaim, SecretTarget

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tokengetter",
        description=(
            "Mint a GitHub App installation token and store it in "
            "Kubernetes Secrets for in-cluster git clones."
        ),
    )
    parser.add_argument("-a", "--app-id", default="", help="Github app ID.")
    parser.add_argument(
        "-i",
        "--installation-id",
        type=int,
        default=0,
        help="Github app installation ID.",
    )
    parser.add_argument(
        "-k",
        "--private-key",
        default="",
        help="Path to github app private key file.",
    )
    parser.add_argument(
        "-n", "--namespace", default="default", help="K8S secret namespace."
    )
    parser.add_argument("-s", "--secret-name", default="", help="K8S secret name.")
    parser.add_argument(
        "-u", "--username", default="token", help="K8S token user name."
    )
    parser.add_argument(
        "-t",
        "--ttl",
        type=int,
        default=600,
        help="Key expiration time in seconds.",
    )
    parser.add_argument(
        "--kubeconfig",
        default=None,
        help="Use this kubeconfig instead of in-cluster credentials.",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        default=None,
        help="Emit JSON log lines.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    return parser


def validate_args(args: argparse.Namespace) -> None:
    """Reject inputs that would only fail later against a remote API.

    Raises:
        ConfigurationError: Listing every problem found.
    """
    problems: list[str] = []
    if not args.app_id:
        problems.append("app ID (-a) is required")
    if args.installation_id <= 0:
        problems.append("installation ID (-i) must be a positive integer")
    if not args.private_key:
        problems.append("private key path (-k) is required")
    if not args.namespace:
        problems.append("namespace (-n) must not be empty")
    if not args.secret_name:
        problems.append("secret name (-s) is required")
    if not args.username:
        problems.append("username (-u) must not be empty")
    if args.ttl <= 0:
        problems.append("TTL (-t) must be a positive number of seconds")

    if problems:
        raise ConfigurationError("Invalid arguments: " + "; ".join(problems))


def _load_settings() -> Settings:
    try:
        return get_settings()
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid TOKENGETTER_* settings: {exc}") from exc


def run(args: argparse.Namespace, settings: Settings, deadline: Deadline) -> list[str]:
    """Execute one rotation and return the confirmation lines."""
    validate_args(args)

    identity = AppIdentity(app_id=args.app_id, private_key_path=args.private_key)
    claim = InstallationClaim(
        installation_id=args.installation_id,
        ttl_seconds=args.ttl,
    )
    target = SecretTarget(
        namespace=args.namespace,
        secret_name=args.secret_name,
        username=args.username,
    )

    kubeconfig = args.kubeconfig if args.kubeconfig is not None else settings.kubeconfig
    repository = SecretRepository(
        load_core_api(kubeconfig),
        target.namespace,
        deadline=deadline,
    )

    result = rotate_token(
        identity,
        claim,
        target,
        repository,
        deadline,
        api_url=settings.github_api_url,
    )
    return result.summary_lines()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = _load_settings()
    except ConfigurationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code

    deadline = Deadline(settings.run_timeout_seconds)

    log_json = args.log_json if args.log_json is not None else settings.log_json
    configure_structlog(json=log_json, level=settings.log_level)

    try:
        lines = run(args, settings, deadline)
    except TokenGetterError as exc:
        logger.error("Token rotation failed (%s): %s", type(exc).__name__, exc)
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code

    for line in lines:
        print(line)
    return 0
