"""Mint a GitHub App installation token and publish it as Kubernetes Secrets."""

__version__ = "0.1.0"
