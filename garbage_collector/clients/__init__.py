"""Collaborator interfaces and client implementations."""

from .protocols import (
    QueryIssuer,
    QueryIssuerError,
    RemediationClient,
    RemediationError,
    ResourceGroupEnumerator,
    SecretResolver,
    SessionClient,
    TemplateStore,
)
from .secrets_manager import SecretResolutionError, SecretsManagerSecretResolver

__all__ = [
    "QueryIssuer",
    "QueryIssuerError",
    "RemediationClient",
    "RemediationError",
    "ResourceGroupEnumerator",
    "SecretResolver",
    "SessionClient",
    "TemplateStore",
    "SecretResolutionError",
    "SecretsManagerSecretResolver",
]
