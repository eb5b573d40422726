"""Leaked resource collectors and their shared classification rules."""

from .base import EmptyLeakedResourcesError, GarbageCollector
from .classification import (
    LEAK_THRESHOLD,
    fold_mapped_sessions,
    is_eligible_for_cleanup,
    is_resource_leaked,
    merge_session_sources,
    parse_resource_groups,
    parse_session_query_rows,
    parse_sessions,
)
from .remediation import CleanupContext, dispatch_remediation
from .resource_group_collector import ResourceGroupCollector
from .test_session_collector import TestSessionCollector

__all__ = [
    "EmptyLeakedResourcesError",
    "GarbageCollector",
    "LEAK_THRESHOLD",
    "fold_mapped_sessions",
    "is_eligible_for_cleanup",
    "is_resource_leaked",
    "merge_session_sources",
    "parse_resource_groups",
    "parse_session_query_rows",
    "parse_sessions",
    "CleanupContext",
    "dispatch_remediation",
    "ResourceGroupCollector",
    "TestSessionCollector",
]
