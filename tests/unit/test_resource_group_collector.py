"""Unit tests for the resource group collector."""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from garbage_collector.collectors.resource_group_collector import ResourceGroupCollector
from garbage_collector.models import ImpactType, LeakedResourceSource


@pytest.fixture
def build_collector(gc_settings, mock_remediation_client, mock_template_store):
    def _build(enumerators):
        return ResourceGroupCollector(
            enumerators=enumerators,
            remediation_client=mock_remediation_client,
            template_store=mock_template_store,
            settings=gc_settings,
        )

    return _build


class TestConstruction:
    """Tests for collector construction."""

    def test_requires_an_enumerator(self, build_collector):
        with pytest.raises(ValueError):
            build_collector([])

    def test_from_services(self, collector_services):
        collector = ResourceGroupCollector.from_services(collector_services)

        assert collector.enumerators == collector_services.resource_group_enumerators
        assert collector.template_id == collector_services.settings.resource_group_cleanup_template_id
        assert collector.name == "ResourceGroupCollector"


class TestDiscoverLeakedResources:
    """Tests for resource group discovery."""

    @pytest.mark.asyncio
    async def test_only_stale_groups_are_leaked(
        self, build_collector, make_enumerator, make_resource_group
    ):
        groups = [
            make_resource_group("rg-5", age=timedelta(days=5)),
            make_resource_group("rg-10", age=timedelta(days=10)),
            make_resource_group("rg-15", age=timedelta(days=15)),
            make_resource_group("rg-future-1", age=timedelta(days=-1)),
            make_resource_group("rg-future-2", age=timedelta(days=-2)),
            make_resource_group("rg-fresh", age=timedelta(hours=4)),
        ]
        collector = build_collector([make_enumerator("sub-1", groups)])

        leaked = await collector.discover_leaked_resources()

        assert set(leaked) == {"rg-5", "rg-10", "rg-15"}
        assert all(r.impact_type == ImpactType.NONE for r in leaked.values())
        assert all(r.source == LeakedResourceSource.RESOURCE_MANAGER for r in leaked.values())

    @pytest.mark.asyncio
    async def test_subscriptions_are_enumerated_and_flattened(
        self, build_collector, make_enumerator, make_resource_group
    ):
        enumerators = [
            make_enumerator("sub-1", [make_resource_group("rg-a", subscription_id="sub-1")]),
            make_enumerator("sub-2", [make_resource_group("rg-b", subscription_id="sub-2")]),
        ]
        collector = build_collector(enumerators)

        leaked = await collector.discover_leaked_resources()

        assert set(leaked) == {"rg-a", "rg-b"}
        for enumerator in enumerators:
            enumerator.get_all_resource_groups.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_name_collision_across_subscriptions(
        self, build_collector, make_enumerator, make_resource_group
    ):
        enumerators = [
            make_enumerator("sub-1", [make_resource_group("rg-shared", subscription_id="sub-1")]),
            make_enumerator("sub-2", [make_resource_group("rg-shared", subscription_id="sub-2")]),
        ]
        collector = build_collector(enumerators)

        leaked = await collector.discover_leaked_resources()

        assert set(leaked) == {"rg-shared", "rg-sharedsub-2"}
        assert leaked["rg-sharedsub-2"].resource_name == "rg-shared"
        assert leaked["rg-sharedsub-2"].subscription_id == "sub-2"

    @pytest.mark.asyncio
    async def test_failing_subscription_is_skipped(
        self, build_collector, make_enumerator, make_resource_group
    ):
        enumerators = [
            make_enumerator("sub-1", error=ConnectionError("subscription unreachable")),
            make_enumerator("sub-2", [make_resource_group("rg-b", subscription_id="sub-2")]),
        ]
        collector = build_collector(enumerators)

        leaked = await collector.discover_leaked_resources()

        assert set(leaked) == {"rg-b"}

    @pytest.mark.asyncio
    async def test_no_groups_returns_empty_map(self, build_collector, make_enumerator):
        collector = build_collector([make_enumerator("sub-1", [])])

        assert await collector.discover_leaked_resources() == {}

    @pytest.mark.asyncio
    async def test_cancelled_discovery_makes_no_calls(self, build_collector, make_enumerator):
        enumerator = make_enumerator("sub-1", [])
        collector = build_collector([enumerator])
        cancellation = asyncio.Event()
        cancellation.set()

        assert await collector.discover_leaked_resources(cancellation) == {}
        enumerator.get_all_resource_groups.assert_not_awaited()


class TestOverrideParameters:
    """Tests for the cleanup override payload."""

    @pytest.mark.asyncio
    async def test_overrides_name_the_group_and_subscription(
        self, build_collector, make_enumerator, make_resource_group
    ):
        group = make_resource_group("rg-a", subscription_id="sub-9")
        collector = build_collector([make_enumerator("sub-9", [group])])

        leaked = await collector.discover_leaked_resources()

        assert collector.build_override_parameters(leaked["rg-a"]) == {
            "resourceGroupName": "rg-a",
            "subscriptionId": "sub-9",
        }
