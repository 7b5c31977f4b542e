"""Kubernetes Secret access for a single namespace."""

from tokengetter.kube.client import FIELD_MANAGER, SecretRepository, load_core_api

__all__ = ["FIELD_MANAGER", "SecretRepository", "load_core_api"]
