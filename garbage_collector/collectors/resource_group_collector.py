"""Collector for leaked cloud resource groups.

Every subscription is enumerated concurrently. Resource groups never
affect a physical node, so each stale group is eligible for cleanup.
"""

import asyncio
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Optional

from ..clients.protocols import RemediationClient, ResourceGroupEnumerator, TemplateStore
from ..config import Settings, settings as get_default_settings
from ..models.leaked_resource import LeakedResource
from ..models.sources import ResourceGroupRecord
from ..utils.telemetry import telemetry_scope
from .base import GarbageCollector
from .classification import parse_resource_groups, utcnow
from .remediation import is_cancelled

if TYPE_CHECKING:
    from ..container import CollectorServices

RESOURCE_GROUP_NAME_OVERRIDE = "resourceGroupName"
SUBSCRIPTION_ID_OVERRIDE = "subscriptionId"


class ResourceGroupCollector(GarbageCollector):
    """Discovers and remediates resource groups left behind by experiments."""

    def __init__(
        self,
        enumerators: Sequence[ResourceGroupEnumerator],
        remediation_client: RemediationClient,
        template_store: TemplateStore,
        settings: Optional[Settings] = None,
        logger: Optional[logging.Logger] = None,
    ):
        if not enumerators:
            raise ValueError("At least one resource group enumerator is required")

        self.settings = settings or get_default_settings()
        super().__init__(
            remediation_client=remediation_client,
            template_store=template_store,
            template_id=self.settings.resource_group_cleanup_template_id,
            owner_team=self.settings.remediation_owner_team,
            logger=logger,
            telemetry_batch_size=self.settings.telemetry_batch_size,
        )
        self.enumerators = list(enumerators)

    @classmethod
    def from_services(
        cls,
        services: "CollectorServices",
        settings: Optional[Settings] = None,
    ) -> "ResourceGroupCollector":
        return cls(
            enumerators=services.resource_group_enumerators,
            remediation_client=services.remediation_client,
            template_store=services.template_store,
            settings=settings or services.settings,
            logger=services.logger,
        )

    async def discover_leaked_resources(
        self,
        cancellation: Optional[asyncio.Event] = None,
    ) -> dict[str, LeakedResource]:
        if is_cancelled(cancellation):
            return {}

        async with telemetry_scope(
            self.logger,
            f"{self.name}.DiscoverLeakedResources",
            subscriptionsCount=len(self.enumerators),
        ) as ctx:
            groups = await self._enumerate_all()
            leaked: dict[str, LeakedResource] = {}

            for resource in parse_resource_groups(groups, utcnow()):
                if resource.id in leaked:
                    self.logger.warning(
                        f"{self.name}: duplicate resource group id {resource.id} "
                        f"in subscription {resource.subscription_id}, keeping the first"
                    )
                    continue
                leaked[resource.id] = resource

            ctx["resourceGroupsCount"] = len(groups)
            ctx["leakedResourcesCount"] = len(leaked)

        return leaked

    def build_override_parameters(self, resource: LeakedResource) -> dict[str, str]:
        return {
            RESOURCE_GROUP_NAME_OVERRIDE: resource.resource_name or resource.id,
            SUBSCRIPTION_ID_OVERRIDE: resource.subscription_id or "",
        }

    async def _enumerate_all(self) -> list[ResourceGroupRecord]:
        """Enumerate every subscription, skipping the ones that fail."""
        results = await asyncio.gather(
            *(enumerator.get_all_resource_groups() for enumerator in self.enumerators),
            return_exceptions=True,
        )

        groups: list[ResourceGroupRecord] = []
        for enumerator, result in zip(self.enumerators, results):
            subscription_id = getattr(enumerator, "subscription_id", "unknown")
            if isinstance(result, BaseException):
                self.logger.warning(
                    f"{self.name}: failed to enumerate subscription {subscription_id}: "
                    f"{type(result).__name__}: {result}",
                    extra={"collector": self.name, "error_type": type(result).__name__},
                )
                continue

            self.logger.debug(
                f"{self.name}: subscription {subscription_id} has {len(result)} resource groups"
            )
            groups.extend(result)

        return groups
