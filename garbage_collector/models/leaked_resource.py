"""Leaked resource data model."""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import ImpactType, LeakedResourceSource, ResourceType


def ensure_utc(value: datetime) -> datetime:
    """Treat naive timestamps as UTC and normalise aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class LeakedResource(BaseModel):
    """An allocation whose owning experiment ended without releasing it.

    Built fresh on every discovery pass. The ``id`` is the dedup key
    within a collector's result map.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Stable, source-specific identifier")
    resource_type: ResourceType = Field(..., description="Family of the leaked allocation")
    created_time: datetime = Field(..., description="When the allocation began (UTC)")
    days_leaked: int = Field(default=0, description="Whole days the allocation has existed")
    test_session_id: str | None = Field(None, description="Test session the resource belongs to")
    node_id: str | None = Field(None, description="Physical node associated with the session")
    experiment_id: str | None = Field(None, description="Experiment that created the resource")
    experiment_name: str | None = Field(None, description="Name of the experiment")
    cluster: str | None = Field(None, description="Cluster the session was allocated in")
    subscription_id: str | None = Field(None, description="Cloud subscription holding the resource")
    owner: str | None = Field(None, description="Principal that created the resource")
    resource_name: str | None = Field(
        None,
        description="Resource's own name, kept apart from the disambiguated id"
    )
    impact_type: ImpactType = Field(
        default=ImpactType.IMPACTFUL,
        description="Whether the resource still affects node health"
    )
    source: LeakedResourceSource = Field(..., description="System(s) of record that reported it")

    @field_validator("created_time")
    @classmethod
    def _normalise_created_time(cls, value: datetime) -> datetime:
        return ensure_utc(value)
