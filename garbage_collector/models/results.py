"""Garbage collection run result models.

This module contains Pydantic models describing the outcome of a
garbage collection run: one result per collector pass plus the
aggregate returned by the orchestrator.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from .leaked_resource import LeakedResource


class CollectorRunResult(BaseModel):
    """Result from one collector's discover-then-cleanup pass.

    A failed pass keeps whatever it produced before the failure, so a
    discovery that succeeded is still reported when cleanup raised.
    """

    collector: str = Field(..., description="Name of the collector")
    success: bool = Field(..., description="Whether the pass completed without error")
    leaked_resources: dict[str, LeakedResource] = Field(
        default_factory=dict,
        description="Leaked resources discovered, keyed by resource id"
    )
    cleaned_resources: dict[str, str] = Field(
        default_factory=dict,
        description="Remediation experiment id per cleaned resource id"
    )
    cleanup_attempted: bool = Field(
        default=False,
        description="Whether the cleanup phase was invoked"
    )
    error_message: str | None = Field(
        default=None,
        description="Error message if the pass failed"
    )
    duration_ms: int = Field(
        default=0,
        ge=0,
        description="Pass duration in milliseconds"
    )

    @property
    def leaked_count(self) -> int:
        return len(self.leaked_resources)

    @property
    def cleaned_count(self) -> int:
        return len(self.cleaned_resources)


class GarbageCollectionResult(BaseModel):
    """Aggregated result of running every configured collector once."""

    correlation_id: str = Field(..., description="Correlation id shared by the run's telemetry")
    started_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the run started"
    )
    finished_at: datetime | None = Field(
        default=None,
        description="When the run finished"
    )
    collector_results: list[CollectorRunResult] = Field(
        default_factory=list,
        description="Per-collector results in configured order"
    )

    @property
    def total_leaked(self) -> int:
        return sum(result.leaked_count for result in self.collector_results)

    @property
    def total_cleaned(self) -> int:
        return sum(result.cleaned_count for result in self.collector_results)

    @property
    def failed_collectors(self) -> list[str]:
        return [result.collector for result in self.collector_results if not result.success]
