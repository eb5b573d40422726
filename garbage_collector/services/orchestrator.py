# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""
Garbage collection orchestrator.

Runs every configured collector concurrently. Each collector pass
discovers leaked resources, logs them, and cleans them up when any were
found. A failing pass is recorded in its own result and never stops the
other passes.
"""

import asyncio
import logging
import time
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from ..collectors.base import GarbageCollector
from ..collectors.resource_group_collector import ResourceGroupCollector
from ..collectors.test_session_collector import TestSessionCollector
from ..models.leaked_resource import LeakedResource
from ..models.results import CollectorRunResult, GarbageCollectionResult
from ..utils.telemetry import (
    generate_correlation_id,
    get_correlation_id,
    log_batched,
    reset_correlation_id,
    set_correlation_id,
    telemetry_scope,
)

if TYPE_CHECKING:
    from ..container import CollectorServices


class MissingDependenciesError(Exception):
    """Raised when required collaborators were not provided."""

    def __init__(self, missing: Sequence[str]):
        self.missing = list(missing)
        super().__init__(
            f"Missing required garbage collector dependencies: {', '.join(self.missing)}"
        )


class GarbageCollectionOrchestrator:
    """
    Runs collectors and aggregates their results.

    Usage::

        orchestrator = GarbageCollectionOrchestrator(services)
        result = await orchestrator.run()
        print(result.total_leaked, result.total_cleaned)
    """

    def __init__(
        self,
        services: "CollectorServices",
        collectors: Optional[Sequence[GarbageCollector]] = None,
    ):
        """
        Create an orchestrator.

        Args:
            services: Collaborators used to build the default collectors
            collectors: Collectors to run; when omitted the resource
                        group and test session collectors are built once
                        from ``services``

        Raises:
            MissingDependenciesError: Listing every missing collaborator
            ValueError: If a default collector is misconfigured
        """
        missing = services.missing_services()
        if missing:
            raise MissingDependenciesError(missing)

        self.services = services
        self.logger: logging.Logger = services.logger
        if collectors is None:
            collectors = [
                ResourceGroupCollector.from_services(services),
                TestSessionCollector.from_services(services),
            ]
        self._collectors = list(collectors)

    def resolve_collectors(self) -> list[GarbageCollector]:
        return list(self._collectors)

    async def run(self, cancellation: Optional[asyncio.Event] = None) -> GarbageCollectionResult:
        """
        Run every collector pass once.

        Args:
            cancellation: When set, collectors skip remaining source and
                          remediation calls

        Returns:
            Aggregated result with one entry per collector, in order
        """
        # Keep the caller's correlation id when one is already active
        correlation_id = get_correlation_id() or generate_correlation_id()
        token = set_correlation_id(correlation_id)

        try:
            result = GarbageCollectionResult(correlation_id=correlation_id)
            collectors = self.resolve_collectors()

            async with telemetry_scope(
                self.logger,
                "GarbageCollectionOrchestrator.Run",
                collectors=[collector.name for collector in collectors],
            ) as ctx:
                outcomes = await asyncio.gather(
                    *(self._run_collector(collector, cancellation) for collector in collectors),
                    return_exceptions=True,
                )

                for collector, outcome in zip(collectors, outcomes):
                    if isinstance(outcome, BaseException):
                        self.logger.error(
                            f"Collector {collector.name} pass raised: {outcome}"
                        )
                        outcome = CollectorRunResult(
                            collector=collector.name,
                            success=False,
                            error_message=str(outcome),
                        )
                    result.collector_results.append(outcome)

                ctx["leakedResourcesCount"] = result.total_leaked
                ctx["cleanedResourcesCount"] = result.total_cleaned
                ctx["failedCollectors"] = result.failed_collectors

            result.finished_at = datetime.now(timezone.utc)
            return result
        finally:
            reset_correlation_id(token)

    async def _run_collector(
        self,
        collector: GarbageCollector,
        cancellation: Optional[asyncio.Event],
    ) -> CollectorRunResult:
        """Run one discover-then-cleanup pass, capturing any failure."""
        start = time.monotonic()
        name = collector.name
        leaked: dict[str, LeakedResource] = {}
        cleaned: dict[str, str] = {}
        cleanup_attempted = False
        batch_size = getattr(collector, "telemetry_batch_size", 20)

        try:
            async with telemetry_scope(self.logger, f"{name}.Run") as ctx:
                leaked = await collector.discover_leaked_resources(cancellation)
                ctx["leakedResourcesCount"] = len(leaked)
                log_batched(
                    self.logger,
                    f"{name}.LeakedResources",
                    leaked,
                    batch_size=batch_size,
                )

                if leaked:
                    cleanup_attempted = True
                    cleaned = await collector.cleanup_leaked_resources(leaked, cancellation)
                    ctx["cleanedResourcesCount"] = len(cleaned)
                    log_batched(
                        self.logger,
                        f"{name}.CleanedResources",
                        cleaned,
                        batch_size=batch_size,
                    )

            return CollectorRunResult(
                collector=name,
                success=True,
                leaked_resources=leaked,
                cleaned_resources=cleaned,
                cleanup_attempted=cleanup_attempted,
                duration_ms=int((time.monotonic() - start) * 1000),
            )

        except Exception as e:
            return CollectorRunResult(
                collector=name,
                success=False,
                leaked_resources=leaked,
                cleaned_resources=cleaned,
                cleanup_attempted=cleanup_attempted,
                error_message=f"{type(e).__name__}: {e}",
                duration_ms=int((time.monotonic() - start) * 1000),
            )
