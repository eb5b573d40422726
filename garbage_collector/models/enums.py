"""Enumerations for leaked resource classification."""

from enum import Enum


class ResourceType(str, Enum):
    """Families of allocations the garbage collector reclaims."""

    TEST_SESSION = "test_session"
    RESOURCE_GROUP = "resource_group"


class ImpactType(str, Enum):
    """Whether a leaked resource still affects a physical node."""

    NONE = "none"
    IMPACTFUL = "impactful"

    @property
    def severity(self) -> int:
        return 1 if self is ImpactType.IMPACTFUL else 0

    @classmethod
    def most_severe(cls, first: "ImpactType", second: "ImpactType") -> "ImpactType":
        """Return the more severe of two impact classifications."""
        return first if first.severity >= second.severity else second

    @classmethod
    def parse(cls, value: object) -> "ImpactType":
        """
        Parse an impact value reported by a data source.

        Anything that is not a recognised impact type is treated as
        impactful, so unknown sessions are never auto-remediated.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower()
            for member in cls:
                if member.value == normalized:
                    return member
        return cls.IMPACTFUL


class LeakedResourceSource(str, Enum):
    """System of record that reported a leaked resource."""

    TIME_SERIES = "time_series"
    SESSION_SERVICE = "session_service"
    SESSION_SERVICE_AND_TIME_SERIES = "session_service_and_time_series"
    RESOURCE_MANAGER = "resource_manager"


class SessionStatus(str, Enum):
    """Lifecycle states reported by the session-management service."""

    CREATING = "creating"
    CREATED = "created"
    DELETING = "deleting"
    DELETED = "deleted"
    FAILED = "failed"
