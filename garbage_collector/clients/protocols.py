# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Interfaces of the collaborators the garbage collector depends on.

Implementations live outside this package. The garbage collector owns
the query text, retry policy, merge rules and remediation payloads, and
relies on these contracts for transport only.
"""

from collections.abc import Iterable, Mapping
from typing import Any, Protocol, runtime_checkable

from ..models.sources import (
    ExperimentTemplate,
    RemediationResponse,
    ResourceGroupRecord,
    SessionRecord,
)


class QueryIssuerError(Exception):
    """Raised by a query issuer when a time-series query fails.

    ``failure_code`` carries the HTTP-style status reported by the
    store (408 timeout, 500 server error, 504 gateway timeout, ...).
    """

    def __init__(self, message: str, failure_code: int | None = None):
        super().__init__(message)
        self.failure_code = failure_code


class RemediationError(Exception):
    """Raised when a remediation experiment could not be launched."""

    def __init__(self, message: str, resource_id: str, status_code: int | None = None):
        super().__init__(message)
        self.resource_id = resource_id
        self.status_code = status_code


@runtime_checkable
class QueryIssuer(Protocol):
    """Issues queries against the time-series store."""

    async def issue(self, endpoint: str, database: str, query: str) -> list[Mapping[str, Any]]:
        ...


@runtime_checkable
class SessionClient(Protocol):
    """Client of the session-management service."""

    async def get_sessions_by_owner(self, owner_id: str) -> list[SessionRecord]:
        ...

    async def are_sessions_still_valid(self, session_ids: Iterable[str]) -> dict[str, bool]:
        ...


@runtime_checkable
class ResourceGroupEnumerator(Protocol):
    """Lists every resource group in one cloud subscription."""

    subscription_id: str

    async def get_all_resource_groups(self) -> list[ResourceGroupRecord]:
        ...


@runtime_checkable
class RemediationClient(Protocol):
    """Launches remediation experiments from a template."""

    async def launch_from_template(
        self,
        template: ExperimentTemplate,
        override_parameters: dict[str, str],
    ) -> RemediationResponse:
        ...


@runtime_checkable
class TemplateStore(Protocol):
    """Stores remediation experiment templates."""

    async def get_template(self, template_id: str, owner_team: str) -> ExperimentTemplate:
        ...


@runtime_checkable
class SecretResolver(Protocol):
    """Resolves secrets and principal ids used during setup."""

    async def resolve_secret(self, name: str) -> str:
        ...
