"""
Property-based tests for leaked resource classification.

Properties covered:
- A resource is leaked iff it was created strictly before now - 30h.
- Merging sources never yields an impact below any reported impact.
- Merged maps hold exactly one entry per reported id.
"""

from datetime import datetime, timedelta, timezone

from hypothesis import given, settings, strategies as st

from garbage_collector.collectors.classification import (
    LEAK_THRESHOLD,
    fold_mapped_sessions,
    is_resource_leaked,
    merge_session_sources,
    parse_resource_groups,
)
from garbage_collector.models import (
    ImpactType,
    LeakedResource,
    LeakedResourceSource,
    ResourceGroupRecord,
    ResourceType,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# Strategies for generating test data
# =============================================================================

ages = st.timedeltas(min_value=timedelta(days=-30), max_value=timedelta(days=60))
session_ids = st.sampled_from([f"session-{i}" for i in range(8)])
impacts = st.sampled_from(list(ImpactType))


@st.composite
def leaked_sessions(draw, source):
    return LeakedResource(
        id=draw(session_ids),
        resource_type=ResourceType.TEST_SESSION,
        created_time=NOW - draw(st.timedeltas(min_value=LEAK_THRESHOLD, max_value=timedelta(days=30))),
        impact_type=draw(impacts),
        source=source,
    )


@st.composite
def resource_groups(draw):
    return ResourceGroupRecord(
        name=draw(st.sampled_from(["rg-a", "rg-b", "rg-c"])),
        id="/subscriptions/x/resourceGroups/y",
        created_date=NOW - draw(ages),
        subscription_id=draw(st.sampled_from(["sub-1", "sub-2", "sub-3"])),
    )


def _max_impact(resources, resource_id):
    reported = [r.impact_type for r in resources if r.id == resource_id]
    return max(reported, key=lambda impact: impact.severity)


# =============================================================================
# Properties
# =============================================================================


class TestStalenessProperty:
    """Staleness is a strict comparison against now - 30h."""

    @given(age=ages)
    @settings(max_examples=100)
    def test_leaked_iff_older_than_threshold(self, age):
        assert is_resource_leaked(NOW - age, NOW) is (age > LEAK_THRESHOLD)

    @given(groups=st.lists(resource_groups(), max_size=15))
    @settings(max_examples=100)
    def test_no_fresh_resource_group_is_reported(self, groups):
        for resource in parse_resource_groups(groups, NOW):
            assert resource.created_time < NOW - LEAK_THRESHOLD
            assert resource.impact_type == ImpactType.NONE


class TestMergeProperties:
    """Merging never downgrades impact and never duplicates ids."""

    @given(
        orphaned=st.lists(leaked_sessions(LeakedResourceSource.TIME_SERIES), max_size=10),
        live=st.lists(leaked_sessions(LeakedResourceSource.SESSION_SERVICE), max_size=10),
    )
    @settings(max_examples=100)
    def test_union_keeps_most_severe_impact(self, orphaned, live):
        merged = merge_session_sources(orphaned, live)
        reported = orphaned + live

        assert set(merged) == {r.id for r in reported}
        for resource_id, resource in merged.items():
            assert resource.impact_type == _max_impact(reported, resource_id)

    @given(
        orphaned=st.lists(leaked_sessions(LeakedResourceSource.TIME_SERIES), max_size=10),
        live=st.lists(leaked_sessions(LeakedResourceSource.SESSION_SERVICE), max_size=10),
        mapped=st.lists(leaked_sessions(LeakedResourceSource.TIME_SERIES), max_size=10),
    )
    @settings(max_examples=100)
    def test_fold_never_lowers_impact(self, orphaned, live, mapped):
        merged = merge_session_sources(orphaned, live)

        folded = fold_mapped_sessions(merged, mapped, NOW)

        assert set(folded) == set(merged) | {r.id for r in mapped}
        for resource_id, resource in merged.items():
            assert folded[resource_id].impact_type.severity >= resource.impact_type.severity
            assert folded[resource_id].created_time == resource.created_time
            assert folded[resource_id].source == resource.source

    @given(
        live=st.lists(leaked_sessions(LeakedResourceSource.SESSION_SERVICE), min_size=1, max_size=10),
        mapped=st.lists(leaked_sessions(LeakedResourceSource.TIME_SERIES), max_size=10),
    )
    @settings(max_examples=100)
    def test_impactful_live_session_stays_impactful(self, live, mapped):
        live = [r.model_copy(update={"impact_type": ImpactType.IMPACTFUL}) for r in live]

        folded = fold_mapped_sessions(merge_session_sources([], live), mapped, NOW)

        for resource in live:
            assert folded[resource.id].impact_type == ImpactType.IMPACTFUL


class TestDisambiguationProperty:
    """Resource group ids are unique across subscriptions for a pass."""

    @given(
        subscriptions=st.lists(
            st.sampled_from(["sub-1", "sub-2", "sub-3"]), min_size=1, max_size=3, unique=True
        )
    )
    @settings(max_examples=50)
    def test_same_name_in_distinct_subscriptions_yields_distinct_ids(self, subscriptions):
        groups = [
            ResourceGroupRecord(
                name="rg-shared",
                id=f"/subscriptions/{sub}/resourceGroups/rg-shared",
                created_date=NOW - timedelta(days=3),
                subscription_id=sub,
            )
            for sub in subscriptions
        ]

        ids = [r.id for r in parse_resource_groups(groups, NOW)]

        assert len(ids) == len(set(ids)) == len(subscriptions)
