# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""
Staleness, classification and merge rules for leaked resources.

Everything here is a pure function of its inputs and an explicit ``now``
so the rules can be exercised without any collaborator in place.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from pydantic import ValidationError

from ..models.enums import ImpactType, LeakedResourceSource, ResourceType
from ..models.leaked_resource import LeakedResource, ensure_utc
from ..models.sources import ResourceGroupRecord, SessionQueryRow, SessionRecord

logger = logging.getLogger(__name__)

# Allocations younger than this may still belong to a running experiment
LEAK_THRESHOLD = timedelta(hours=30)

# Correlation tags stamped on resource groups by the experiment platform
TEST_SESSION_ID_TAG = "testSessionId"
EXPERIMENT_ID_TAG = "experimentId"
EXPERIMENT_NAME_TAG = "experimentName"
NODE_ID_TAG = "nodeId"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_resource_leaked(
    resource: LeakedResource | datetime,
    now: Optional[datetime] = None,
) -> bool:
    """
    Check whether an allocation is old enough to count as leaked.

    A resource is leaked only when it was created strictly before
    ``now - LEAK_THRESHOLD``; anything created at or after that instant
    is still considered in use.

    Args:
        resource: A leaked resource or its creation time
        now: Reference time, defaults to the current UTC time

    Returns:
        True if the allocation is past the staleness threshold
    """
    created_time = resource.created_time if isinstance(resource, LeakedResource) else resource
    reference = ensure_utc(now) if now is not None else utcnow()
    return ensure_utc(created_time) < reference - LEAK_THRESHOLD


def is_eligible_for_cleanup(resource: LeakedResource, now: Optional[datetime] = None) -> bool:
    """Only non-impactful resources that are still stale are remediated."""
    return resource.impact_type is ImpactType.NONE and is_resource_leaked(resource, now)


def days_between(start: datetime, now: datetime) -> int:
    return max(0, (ensure_utc(now) - ensure_utc(start)).days)


def parse_session_query_rows(
    rows: Iterable[Mapping[str, Any]],
    now: Optional[datetime] = None,
) -> list[LeakedResource]:
    """
    Convert time-series rows into leaked test sessions.

    Rows that do not match the query projection are skipped with a
    warning. Rows newer than the staleness threshold are dropped. A
    missing or unrecognised impact type is treated as impactful.
    """
    reference = now or utcnow()
    leaked: list[LeakedResource] = []

    for raw in rows:
        try:
            row = SessionQueryRow.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Skipping malformed session row {dict(raw)!r}: {e}")
            continue

        if not is_resource_leaked(row.created_time, reference):
            continue

        leaked.append(
            LeakedResource(
                id=row.session_id,
                resource_type=ResourceType.TEST_SESSION,
                created_time=row.created_time,
                days_leaked=row.days_leaked,
                test_session_id=row.session_id,
                node_id=row.node_id or None,
                experiment_id=row.experiment_id or None,
                experiment_name=row.experiment_name or None,
                cluster=row.cluster or None,
                owner=row.created_by or None,
                impact_type=ImpactType.parse(row.impact_type),
                source=LeakedResourceSource.TIME_SERIES,
            )
        )

    return leaked


def parse_sessions(
    sessions: Iterable[SessionRecord],
    now: Optional[datetime] = None,
) -> list[LeakedResource]:
    """Convert confirmed live sessions into impactful leaked resources."""
    reference = now or utcnow()
    return [
        LeakedResource(
            id=session.id,
            resource_type=ResourceType.TEST_SESSION,
            created_time=session.created_time,
            days_leaked=days_between(session.created_time, reference),
            test_session_id=session.id,
            cluster=session.cluster,
            owner=session.created_by,
            impact_type=ImpactType.IMPACTFUL,
            source=LeakedResourceSource.SESSION_SERVICE,
        )
        for session in sessions
        if is_resource_leaked(session.created_time, reference)
    ]


def parse_resource_groups(
    groups: Iterable[ResourceGroupRecord],
    now: Optional[datetime] = None,
) -> list[LeakedResource]:
    """
    Convert enumerated resource groups into leaked resources.

    Resource groups never affect a node, so every one is classified
    ``NONE``. Names are unique only within a subscription: a name seen
    earlier in this pass is disambiguated by appending the subscription
    id. The real name is kept in ``resource_name`` for remediation.
    """
    reference = now or utcnow()
    seen_names: set[str] = set()
    leaked: list[LeakedResource] = []

    for group in groups:
        if not is_resource_leaked(group.created_date, reference):
            continue

        resource_id = group.name
        if group.name in seen_names:
            resource_id = f"{group.name}{group.subscription_id}"
        seen_names.add(group.name)

        age_start = group.expiration_date or group.created_date
        leaked.append(
            LeakedResource(
                id=resource_id,
                resource_type=ResourceType.RESOURCE_GROUP,
                created_time=group.created_date,
                days_leaked=days_between(age_start, reference),
                test_session_id=group.tags.get(TEST_SESSION_ID_TAG),
                node_id=group.tags.get(NODE_ID_TAG),
                experiment_id=group.tags.get(EXPERIMENT_ID_TAG),
                experiment_name=group.tags.get(EXPERIMENT_NAME_TAG),
                subscription_id=group.subscription_id,
                resource_name=group.name,
                impact_type=ImpactType.NONE,
                source=LeakedResourceSource.RESOURCE_MANAGER,
            )
        )

    return leaked


def merge_session_sources(
    *sources: Iterable[LeakedResource],
) -> dict[str, LeakedResource]:
    """
    Union leaked sessions reported by independent sources.

    The first occurrence of an id is kept. When the same id is reported
    by a different source, the entry is tagged with the combined source
    and carries the more severe impact of the two.
    """
    merged: dict[str, LeakedResource] = {}

    for source in sources:
        for resource in source:
            existing = merged.get(resource.id)
            if existing is None:
                merged[resource.id] = resource
                continue

            update: dict[str, Any] = {
                "impact_type": ImpactType.most_severe(existing.impact_type, resource.impact_type),
            }
            if existing.source is not resource.source:
                update["source"] = LeakedResourceSource.SESSION_SERVICE_AND_TIME_SERIES
            merged[resource.id] = existing.model_copy(update=update)

    return merged


def fold_mapped_sessions(
    merged: Mapping[str, LeakedResource],
    mapped: Iterable[LeakedResource],
    now: Optional[datetime] = None,
) -> dict[str, LeakedResource]:
    """
    Fold sessions mapped to a finished experiment into the merged map.

    A mapped session already present keeps its earlier creation time,
    source and cluster but takes the experiment and node metadata from
    the mapping. Its impact escalates to ``IMPACTFUL`` unless the
    mapping reports ``NONE``, and never drops below the existing
    entry's impact. Sessions only known to the mapping are added as-is.
    """
    reference = now or utcnow()
    result = dict(merged)

    for item in mapped:
        existing = result.get(item.id)
        if existing is None:
            result[item.id] = item
            continue

        reported = ImpactType.NONE if item.impact_type is ImpactType.NONE else ImpactType.IMPACTFUL
        result[item.id] = LeakedResource(
            id=item.id,
            resource_type=ResourceType.TEST_SESSION,
            created_time=existing.created_time,
            days_leaked=days_between(existing.created_time, reference),
            test_session_id=item.test_session_id or existing.test_session_id,
            node_id=item.node_id or existing.node_id,
            experiment_id=item.experiment_id,
            experiment_name=item.experiment_name,
            cluster=existing.cluster,
            subscription_id=item.subscription_id or existing.subscription_id,
            owner=item.owner or existing.owner,
            impact_type=ImpactType.most_severe(reported, existing.impact_type),
            source=existing.source,
        )

    return result
