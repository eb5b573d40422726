"""Orchestration and scheduling of garbage collection runs."""

from .orchestrator import GarbageCollectionOrchestrator, MissingDependenciesError
from .scheduler_service import GarbageCollectionScheduler

__all__ = [
    "GarbageCollectionOrchestrator",
    "MissingDependenciesError",
    "GarbageCollectionScheduler",
]
