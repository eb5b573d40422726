# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Service container for dependency wiring and lifecycle management.

``CollectorServices`` bundles the external collaborators the collectors
depend on. ``ServiceContainer`` turns a bundle into a running garbage
collector: CloudWatch logging, the orchestrator, and the interval
scheduler that drives it.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Optional

from .clients.protocols import (
    QueryIssuer,
    RemediationClient,
    ResourceGroupEnumerator,
    SecretResolver,
    SessionClient,
    TemplateStore,
)
from .collectors.base import GarbageCollector
from .config import Settings, settings as get_default_settings
from .services.orchestrator import GarbageCollectionOrchestrator, MissingDependenciesError
from .services.scheduler_service import GarbageCollectionScheduler
from .utils.cloudwatch_logger import CloudWatchHandler, configure_cloudwatch_logging

logger = logging.getLogger(__name__)


@dataclass
class CollectorServices:
    """External collaborators shared by the collectors."""

    session_client: Optional[SessionClient] = None
    resource_group_enumerators: list[ResourceGroupEnumerator] = field(default_factory=list)
    query_issuer: Optional[QueryIssuer] = None
    remediation_client: Optional[RemediationClient] = None
    template_store: Optional[TemplateStore] = None
    secret_resolver: Optional[SecretResolver] = None
    logger: Optional[logging.Logger] = None
    settings: Optional[Settings] = None

    REQUIRED = (
        "session_client",
        "resource_group_enumerators",
        "query_issuer",
        "remediation_client",
        "template_store",
        "secret_resolver",
        "logger",
    )

    def missing_services(self) -> list[str]:
        """Names of required collaborators that are absent or empty."""
        missing = []
        for name in self.REQUIRED:
            value = getattr(self, name)
            if value is None or (name == "resource_group_enumerators" and not value):
                missing.append(name)
        return missing


class ServiceContainer:
    """
    Wires the garbage collector together and owns its lifecycle.

    Usage::

        container = ServiceContainer(services)
        await container.initialize()

        result = await container.orchestrator.run()

        await container.shutdown()
    """

    def __init__(
        self,
        services: CollectorServices,
        settings: Optional[Settings] = None,
        collectors: Optional[Sequence[GarbageCollector]] = None,
    ) -> None:
        """
        Create a ServiceContainer.

        Args:
            services: External collaborators
            settings: Application settings; defaults to ``services.settings``
                      and then to the environment via ``settings()``
            collectors: Collectors to run instead of the default ones
        """
        self._settings: Settings = settings or services.settings or get_default_settings()
        if services.settings is None:
            services.settings = self._settings
        if services.logger is None:
            services.logger = logging.getLogger("garbage_collector")

        self._services = services
        self._collectors = collectors
        self._initialized = False

        self._cloudwatch_handler: Optional[CloudWatchHandler] = None
        self._orchestrator: Optional[GarbageCollectionOrchestrator] = None
        self._scheduler: Optional[GarbageCollectionScheduler] = None

    async def initialize(self) -> None:
        """
        Build the orchestrator and start the scheduler.

        Raises:
            MissingDependenciesError: If required collaborators are missing
            ValueError: If a default collector is misconfigured
        """
        if self._initialized:
            logger.warning("ServiceContainer.initialize() called more than once")
            return

        s = self._settings
        logger.info("ServiceContainer: initializing garbage collector")

        self._cloudwatch_handler = configure_cloudwatch_logging(s)

        try:
            self._orchestrator = GarbageCollectionOrchestrator(
                self._services, collectors=self._collectors
            )
        except (MissingDependenciesError, ValueError) as e:
            logger.error(f"ServiceContainer: {e}")
            raise

        self._scheduler = GarbageCollectionScheduler(
            run_callback=self._orchestrator.run,
            interval_minutes=s.collection_interval_minutes,
            enabled=s.scheduler_enabled,
        )
        await self._scheduler.start()

        self._initialized = True
        logger.info("ServiceContainer: garbage collector initialized")

    async def shutdown(self) -> None:
        """Stop the scheduler and detach the CloudWatch handler."""
        if self._scheduler:
            await self._scheduler.stop()

        if self._cloudwatch_handler:
            logging.getLogger().removeHandler(self._cloudwatch_handler)
            self._cloudwatch_handler.close()
            self._cloudwatch_handler = None

        self._initialized = False
        logger.info("ServiceContainer: shutdown complete")

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def services(self) -> CollectorServices:
        return self._services

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def orchestrator(self) -> Optional[GarbageCollectionOrchestrator]:
        return self._orchestrator

    @property
    def scheduler(self) -> Optional[GarbageCollectionScheduler]:
        return self._scheduler
