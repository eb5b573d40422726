"""Records returned by the garbage collector's data sources and sinks.

These models describe the shapes exchanged with the external
collaborators: the time-series query issuer, the session-management
service, the per-subscription resource group enumerators, the template
store and the remediation client.
"""

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .enums import SessionStatus
from .leaked_resource import ensure_utc


class SessionQueryRow(BaseModel):
    """A row returned by the session snapshot queries.

    Column names follow the projection in ``collectors.queries``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    created_time: datetime = Field(..., validation_alias="createdTime")
    session_id: str = Field(..., min_length=1, validation_alias="sessionId")
    node_id: str | None = Field(None, validation_alias="nodeId")
    days_leaked: int = Field(0, validation_alias="daysLeaked")
    experiment_id: str | None = Field(None, validation_alias="experimentId")
    experiment_name: str | None = Field(None, validation_alias="experimentName")
    impact_type: str | None = Field(None, validation_alias="impactType")
    created_by: str | None = Field(None, validation_alias="createdBy")
    cluster: str | None = Field(None, validation_alias="cluster")

    @field_validator("created_time")
    @classmethod
    def _normalise_created_time(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @field_validator("session_id", "node_id", "experiment_id", mode="before")
    @classmethod
    def _stringify_ids(cls, value: Any) -> Any:
        # Tables frequently hand back numeric or GUID-typed identifiers
        if value is None or isinstance(value, str):
            return value
        return str(value)


class SessionRecord(BaseModel):
    """A test session as reported by the session-management service."""

    id: str = Field(..., min_length=1, description="Session identifier")
    created_time: datetime = Field(..., description="When the session was created (UTC)")
    cluster: str | None = Field(None, description="Cluster hosting the session")
    status: SessionStatus = Field(..., description="Current lifecycle state")
    created_by: str | None = Field(None, description="Principal that created the session")

    @field_validator("created_time")
    @classmethod
    def _normalise_created_time(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @field_validator("status", mode="before")
    @classmethod
    def _normalise_status(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value


class ResourceGroupRecord(BaseModel):
    """A cloud resource group returned by a subscription enumerator."""

    name: str = Field(..., min_length=1, description="Resource group name")
    id: str = Field(..., description="Fully qualified resource group id")
    created_date: datetime = Field(..., description="When the group was created (UTC)")
    expiration_date: datetime | None = Field(None, description="Expiry stamped on the group")
    tags: dict[str, str] = Field(default_factory=dict, description="Tags on the group")
    subscription_id: str = Field(..., description="Subscription holding the group")

    @field_validator("created_date", "expiration_date")
    @classmethod
    def _normalise_dates(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value) if value is not None else None


class ExperimentTemplate(BaseModel):
    """A remediation experiment template held by the template store."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., description="Template identifier")
    owner_team: str | None = Field(None, description="Team that owns the template")
    definition: dict[str, Any] = Field(
        default_factory=dict,
        description="Opaque experiment definition submitted with overrides"
    )


class RemediationResponse(BaseModel):
    """Outcome of launching a remediation experiment."""

    success: bool = Field(..., description="Whether the launch was accepted")
    launched_id: str | None = Field(None, description="Id of the launched remediation experiment")
    status_code: int | None = Field(None, description="Status code reported by the remediation API")
    error_message: str | None = Field(None, description="Failure detail when not successful")
