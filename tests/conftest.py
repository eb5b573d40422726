"""Pytest configuration and shared fixtures."""

import itertools
import logging
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from garbage_collector.config import Settings
from garbage_collector.container import CollectorServices
from garbage_collector.models import (
    ExperimentTemplate,
    RemediationResponse,
    ResourceGroupRecord,
    SessionRecord,
)


@pytest.fixture
def anyio_backend():
    """Configure anyio backend for async tests."""
    return "asyncio"


# =============================================================================
# Environment and Configuration Fixtures
# =============================================================================

@pytest.fixture
def test_env(monkeypatch):
    """Set up test environment variables."""
    test_vars = {
        "AWS_REGION": "us-east-1",
        "LOG_LEVEL": "DEBUG",
        "ENVIRONMENT": "test",
        "GC_QUERY_ENDPOINT": "https://timeseries.example.net",
        "GC_QUERY_DATABASE": "fleet",
    }
    for key, value in test_vars.items():
        monkeypatch.setenv(key, value)
    return test_vars


@pytest.fixture
def gc_settings():
    """Settings with a query target, a fixed owner id and no retry delay."""
    return Settings(
        environment="test",
        query_endpoint="https://timeseries.example.net",
        query_database="fleet",
        session_owner_id="owner-principal",
        query_retry_base_delay_seconds=0.0,
        query_retry_max_delay_seconds=0.0,
        scheduler_enabled=False,
        cloudwatch_enabled=False,
    )


@pytest.fixture
def now():
    return datetime.now(timezone.utc)


@pytest.fixture
def gc_logger():
    return logging.getLogger("garbage_collector.tests")


# =============================================================================
# Collaborator Mocks
# =============================================================================

@pytest.fixture
def mock_query_issuer():
    """Query issuer returning no rows for any query."""
    issuer = MagicMock()
    issuer.issue = AsyncMock(return_value=[])
    return issuer


@pytest.fixture
def mock_session_client():
    """Session client reporting no sessions."""
    client = MagicMock()
    client.get_sessions_by_owner = AsyncMock(return_value=[])
    client.are_sessions_still_valid = AsyncMock(return_value={})
    return client


@pytest.fixture
def mock_remediation_client():
    """Remediation client that accepts every launch with a unique id."""
    counter = itertools.count(1)
    client = MagicMock()
    client.launch_from_template = AsyncMock(
        side_effect=lambda template, overrides: RemediationResponse(
            success=True,
            launched_id=f"remediation-{next(counter)}",
            status_code=200,
        )
    )
    return client


@pytest.fixture
def cleanup_template():
    return ExperimentTemplate(id="cleanup-template", owner_team="fleet-reliability")


@pytest.fixture
def mock_template_store(cleanup_template):
    store = MagicMock()
    store.get_template = AsyncMock(return_value=cleanup_template)
    return store


@pytest.fixture
def mock_secret_resolver():
    resolver = MagicMock()
    resolver.resolve_secret = AsyncMock(return_value="owner-from-secret")
    return resolver


@pytest.fixture
def make_enumerator():
    """Factory for resource group enumerators of one subscription."""

    def _make(subscription_id, groups=None, error=None):
        enumerator = MagicMock()
        enumerator.subscription_id = subscription_id
        if error is not None:
            enumerator.get_all_resource_groups = AsyncMock(side_effect=error)
        else:
            enumerator.get_all_resource_groups = AsyncMock(return_value=list(groups or []))
        return enumerator

    return _make


@pytest.fixture
def collector_services(
    mock_session_client,
    make_enumerator,
    mock_query_issuer,
    mock_remediation_client,
    mock_template_store,
    mock_secret_resolver,
    gc_logger,
    gc_settings,
):
    """A complete set of collaborators."""
    return CollectorServices(
        session_client=mock_session_client,
        resource_group_enumerators=[make_enumerator("sub-1")],
        query_issuer=mock_query_issuer,
        remediation_client=mock_remediation_client,
        template_store=mock_template_store,
        secret_resolver=mock_secret_resolver,
        logger=gc_logger,
        settings=gc_settings,
    )


# =============================================================================
# Test Data Fixtures
# =============================================================================

@pytest.fixture
def make_query_row(now):
    """Factory for time-series session rows created ``age`` before now."""

    def _make(session_id, age=timedelta(days=2), impact_type="None", **overrides):
        created = now - age
        row = {
            "createdTime": created.isoformat(),
            "sessionId": session_id,
            "nodeId": f"node-{session_id}",
            "daysLeaked": str(age.days),
            "experimentId": f"experiment-{session_id}",
            "experimentName": "Firmware rollout",
            "impactType": impact_type,
            "createdBy": "experiment-platform",
            "cluster": "cluster-a",
        }
        row.update(overrides)
        return row

    return _make


@pytest.fixture
def make_session(now):
    """Factory for session-service records created ``age`` before now."""

    def _make(session_id, age=timedelta(days=2), status="Created", cluster="cluster-a"):
        return SessionRecord(
            id=session_id,
            created_time=now - age,
            cluster=cluster,
            status=status,
            created_by="experiment-platform",
        )

    return _make


@pytest.fixture
def make_resource_group(now):
    """Factory for resource groups created ``age`` before now."""

    def _make(name, subscription_id="sub-1", age=timedelta(days=2), tags=None, expiration=None):
        return ResourceGroupRecord(
            name=name,
            id=f"/subscriptions/{subscription_id}/resourceGroups/{name}",
            created_date=now - age,
            expiration_date=expiration,
            tags=tags or {},
            subscription_id=subscription_id,
        )

    return _make


# =============================================================================
# Pytest Hooks for Test Reporting
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow running"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "property: marks tests as property-based tests"
    )


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "property" in str(item.fspath):
            item.add_marker(pytest.mark.property)


def pytest_sessionstart(session):
    """Print test session information."""
    print("\n" + "=" * 70)
    print("Leaked Resource Garbage Collector - Test Suite")
    print("=" * 70)


def pytest_sessionfinish(session, exitstatus):
    """Print test session summary."""
    print("\n" + "=" * 70)
    if exitstatus == 0:
        print("PASS: All tests passed!")
    else:
        print(f"FAIL: Tests failed with exit status: {exitstatus}")
    print("=" * 70)
