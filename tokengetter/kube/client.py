"""Thin CRUD wrapper around the Kubernetes Secret API.

SecretRepository is bound to one namespace and speaks SecretRecord,
not V1Secret, so the upsert logic never touches the generated client.
All API exceptions are translated into the run's error taxonomy here;
only "not found" on read is treated as a normal outcome.

The CoreV1Api instance is built once at startup (load_core_api) and
passed in, rather than kept in a module global.
"""

import base64
import binascii
import logging
from typing import Callable, Optional

import yaml
from kubernetes import client, config
from kubernetes.client.exceptions import ApiException
from kubernetes.config.config_exception import ConfigException
from urllib3.exceptions import HTTPError as Urllib3HTTPError

from tokengetter.core.deadline import Deadline
from tokengetter.errors import (
    ConfigurationError,
    SecretAlreadyExistsError,
    SecretNotFoundError,
    SecretReadError,
    SecretWriteError,
)
from tokengetter.types import SecretRecord, SecretType

logger = logging.getLogger(__name__)

# Identity recorded in managedFields for every write
FIELD_MANAGER = "tokenGetter"

HTTP_NOT_FOUND = 404
HTTP_CONFLICT = 409


def load_core_api(kubeconfig: str = "") -> client.CoreV1Api:
    """Build a CoreV1Api from in-cluster credentials or a kubeconfig file.

    In-cluster is the normal case: the run executes as a pod whose
    service account may read, create and update Secrets in the target
    namespace. A kubeconfig path is for running from a workstation.

    Raises:
        ConfigurationError: If neither source yields a usable config.
    """
    try:
        if kubeconfig:
            config.load_kube_config(config_file=kubeconfig)
            logger.info("Loaded Kubernetes config from %s", kubeconfig)
        else:
            config.load_incluster_config()
            logger.info("Loaded in-cluster Kubernetes config")
    except (ConfigException, OSError, yaml.YAMLError, TypeError, AttributeError) as exc:
        # A kubeconfig that is not a YAML mapping surfaces as TypeError or
        # AttributeError from the loader.
        source = kubeconfig or "in-cluster service account"
        raise ConfigurationError(
            f"Cannot load Kubernetes config from {source}: {exc}"
        ) from exc
    return client.CoreV1Api()


class SecretRepository:
    """Namespaced Secret store.

    Each call is bounded by the remaining run deadline when one is
    given; a deadline that is already spent raises before the request
    is sent.
    """

    def __init__(
        self,
        core_api: client.CoreV1Api,
        namespace: str,
        deadline: Optional[Deadline] = None,
    ) -> None:
        self.core_api = core_api
        self.namespace = namespace
        self.deadline = deadline

    def get(self, name: str) -> Optional[SecretRecord]:
        """Return the current Secret, or None if it does not exist.

        Raises:
            SecretReadError: For any failure other than 404.
        """
        try:
            secret = self.core_api.read_namespaced_secret(
                name,
                self.namespace,
                **self._request_kwargs(),
            )
        except ApiException as exc:
            if exc.status == HTTP_NOT_FOUND:
                logger.info("Secret %s/%s not found", self.namespace, name)
                return None
            raise SecretReadError(
                f"Cannot read secret {self.namespace}/{name}: {_describe(exc)}"
            ) from exc
        except Urllib3HTTPError as exc:
            raise SecretReadError(
                f"Cannot read secret {self.namespace}/{name}: {exc}"
            ) from exc

        return _to_record(secret)

    def create(self, record: SecretRecord) -> None:
        """Create a new Secret.

        Raises:
            SecretAlreadyExistsError: The name is already taken (409).
            SecretWriteError: Any other failure.
        """
        self._write(
            "create",
            record,
            lambda body, kwargs: self.core_api.create_namespaced_secret(
                self.namespace, body, **kwargs
            ),
        )

    def update(self, record: SecretRecord) -> None:
        """Replace an existing Secret in full.

        This is a PUT without resourceVersion: an unconditional
        overwrite, not a merge.

        Raises:
            SecretNotFoundError: The Secret no longer exists (404).
            SecretWriteError: Any other failure.
        """
        self._write(
            "update",
            record,
            lambda body, kwargs: self.core_api.replace_namespaced_secret(
                record.name, self.namespace, body, **kwargs
            ),
        )

    def _write(
        self,
        verb: str,
        record: SecretRecord,
        call: Callable[[client.V1Secret, dict], object],
    ) -> None:
        if record.namespace != self.namespace:
            raise SecretWriteError(
                f"Secret {record.name} targets namespace {record.namespace}, "
                f"repository is bound to {self.namespace}"
            )

        kwargs = {"field_manager": FIELD_MANAGER, **self._request_kwargs()}
        target = f"{self.namespace}/{record.name}"
        try:
            call(_to_v1_secret(record), kwargs)
        except ApiException as exc:
            if verb == "create" and exc.status == HTTP_CONFLICT:
                raise SecretAlreadyExistsError(
                    f"Cannot create secret {target}: already exists"
                ) from exc
            if verb == "update" and exc.status == HTTP_NOT_FOUND:
                raise SecretNotFoundError(
                    f"Cannot update secret {target}: not found"
                ) from exc
            raise SecretWriteError(
                f"Cannot {verb} secret {target}: {_describe(exc)}"
            ) from exc
        except Urllib3HTTPError as exc:
            raise SecretWriteError(f"Cannot {verb} secret {target}: {exc}") from exc

        logger.debug("Secret %s %sd", target, verb)

    def _request_kwargs(self) -> dict:
        if self.deadline is None:
            return {}
        return {"_request_timeout": self.deadline.remaining()}


def _describe(exc: ApiException) -> str:
    return f"HTTP {exc.status} {exc.reason}".strip()


def _to_v1_secret(record: SecretRecord) -> client.V1Secret:
    return client.V1Secret(
        api_version="v1",
        kind="Secret",
        metadata=client.V1ObjectMeta(
            name=record.name,
            namespace=record.namespace,
            annotations=dict(record.annotations) or None,
            labels=dict(record.labels) or None,
        ),
        string_data=dict(record.data) if record.data is not None else None,
        type=record.secret_type.value,
    )


def _to_record(secret: client.V1Secret) -> SecretRecord:
    metadata = secret.metadata
    try:
        secret_type = SecretType(secret.type)
    except ValueError:
        # Left for the upsert to overwrite; the type is replaced on update.
        secret_type = SecretType.OPAQUE
    return SecretRecord(
        name=metadata.name,
        namespace=metadata.namespace,
        secret_type=secret_type,
        data=_decode_data(secret.data),
        annotations=dict(metadata.annotations or {}),
        labels=dict(metadata.labels or {}),
        resource_version=metadata.resource_version,
    )


def _decode_data(data: Optional[dict[str, str]]) -> Optional[dict[str, str]]:
    """Decode the base64 values of a Secret's data section.

    Values that are not valid base64 UTF-8 are kept as-is; the data is
    only used to decide create vs update and is never merged.
    """
    if data is None:
        return None
    decoded: dict[str, str] = {}
    for key, value in data.items():
        try:
            decoded[key] = base64.b64decode(value, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError, TypeError):
            decoded[key] = value
    return decoded
