"""Shared fixtures for the tokengetter test suite.

RSA keys are generated once per session with cryptography and written
to per-test temp files. The Kubernetes API is replaced by FakeCoreV1Api;
GitHub by an httpx.MockTransport. Nothing leaves the process.
"""

import logging
from pathlib import Path

import pytest
import structlog
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from tests.fakes import FakeCoreV1Api
from tokengetter.core.deadline import Deadline
from tokengetter.kube.client import SecretRepository
from tokengetter.types import SecretTarget

NAMESPACE = "ci"


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def private_key_path(tmp_path: Path, rsa_key: rsa.RSAPrivateKey) -> str:
    """PKCS#1 PEM, the format GitHub hands out for App keys."""
    pem = rsa_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.TraditionalOpenSSL,
        serialization.NoEncryption(),
    )
    path = tmp_path / "app.pem"
    path.write_bytes(pem)
    return str(path)


@pytest.fixture
def public_key_pem(rsa_key: rsa.RSAPrivateKey) -> bytes:
    return rsa_key.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )


@pytest.fixture
def core_api() -> FakeCoreV1Api:
    return FakeCoreV1Api()


@pytest.fixture
def repository(core_api: FakeCoreV1Api) -> SecretRepository:
    return SecretRepository(core_api, NAMESPACE, deadline=Deadline(300))


@pytest.fixture
def target() -> SecretTarget:
    return SecretTarget(namespace=NAMESPACE, secret_name="github-token")


@pytest.fixture(autouse=True)
def _restore_logging():
    """Undo configure_structlog() so handlers never outlive a test's capsys."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()
