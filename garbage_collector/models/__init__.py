"""Data models for the leaked resource garbage collector."""

from .enums import ImpactType, LeakedResourceSource, ResourceType, SessionStatus
from .leaked_resource import LeakedResource
from .sources import (
    ExperimentTemplate,
    RemediationResponse,
    ResourceGroupRecord,
    SessionQueryRow,
    SessionRecord,
)
from .results import CollectorRunResult, GarbageCollectionResult

__all__ = [
    "ImpactType",
    "LeakedResourceSource",
    "ResourceType",
    "SessionStatus",
    "LeakedResource",
    "ExperimentTemplate",
    "RemediationResponse",
    "ResourceGroupRecord",
    "SessionQueryRow",
    "SessionRecord",
    "CollectorRunResult",
    "GarbageCollectionResult",
]
