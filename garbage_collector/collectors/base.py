"""Two-phase collector contract."""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Optional

from ..clients.protocols import RemediationClient, TemplateStore
from ..models.leaked_resource import LeakedResource
from ..utils.telemetry import DEFAULT_BATCH_SIZE
from .remediation import dispatch_remediation


class EmptyLeakedResourcesError(ValueError):
    """Raised when cleanup is asked to process an empty resource map."""

    def __init__(self, collector_name: str):
        super().__init__(f"{collector_name}: no leaked resources were provided for cleanup")
        self.collector_name = collector_name


class GarbageCollector(ABC):
    """
    A collector for one family of leaked resources.

    ``discover_leaked_resources`` builds a fresh map of leaked resources
    keyed by id. ``cleanup_leaked_resources`` launches one remediation
    per eligible resource of such a map and returns the launched
    experiment id per resource.
    """

    def __init__(
        self,
        remediation_client: RemediationClient,
        template_store: TemplateStore,
        template_id: str,
        owner_team: str,
        logger: Optional[logging.Logger] = None,
        telemetry_batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        self.remediation_client = remediation_client
        self.template_store = template_store
        self.template_id = template_id
        self.owner_team = owner_team
        self.logger = logger or logging.getLogger(type(self).__module__)
        self.telemetry_batch_size = telemetry_batch_size

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    async def discover_leaked_resources(
        self,
        cancellation: Optional[asyncio.Event] = None,
    ) -> dict[str, LeakedResource]:
        """Find the resources currently leaked, keyed by resource id."""

    @abstractmethod
    def build_override_parameters(self, resource: LeakedResource) -> dict[str, str]:
        """Parameters that point the remediation template at one resource."""

    async def cleanup_leaked_resources(
        self,
        resources: Mapping[str, LeakedResource],
        cancellation: Optional[asyncio.Event] = None,
    ) -> dict[str, str]:
        """
        Remediate the eligible resources of a discovered map.

        Raises:
            EmptyLeakedResourcesError: If ``resources`` is empty
        """
        if not resources:
            raise EmptyLeakedResourcesError(self.name)

        return await dispatch_remediation(
            resources,
            collector_name=self.name,
            template_id=self.template_id,
            owner_team=self.owner_team,
            template_store=self.template_store,
            remediation_client=self.remediation_client,
            build_overrides=self.build_override_parameters,
            cancellation=cancellation,
            logger=self.logger,
            batch_size=self.telemetry_batch_size,
        )
