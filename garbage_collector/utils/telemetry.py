# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Structured telemetry for garbage collection passes.

Provides correlation ids shared by every event of a run, timed
telemetry scopes, and batched logging of large resource maps so a
single log record never carries thousands of entries.
"""

import contextvars
import json
import logging
import time
import uuid
from collections.abc import AsyncIterator, Mapping, Sequence
from contextlib import asynccontextmanager
from typing import Any

from pydantic import BaseModel

# Context variable to store correlation ID per garbage collection run
_correlation_id_context: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)

DEFAULT_BATCH_SIZE = 20


def generate_correlation_id() -> str:
    """
    Generate a unique correlation ID using UUID4.

    Returns:
        A unique correlation ID string in UUID4 format
    """
    return str(uuid.uuid4())


def set_correlation_id(correlation_id: str) -> contextvars.Token:
    """
    Set the correlation ID in the current context.

    Args:
        correlation_id: The correlation ID to set

    Returns:
        Token that restores the previous value when passed to reset_correlation_id
    """
    return _correlation_id_context.set(correlation_id)


def reset_correlation_id(token: contextvars.Token) -> None:
    """Restore the correlation ID that was active before set_correlation_id."""
    _correlation_id_context.reset(token)


def get_correlation_id() -> str:
    """
    Get the correlation ID from the current context.

    Returns:
        The correlation ID if set, or an empty string if not set
    """
    return _correlation_id_context.get()


def get_correlation_id_for_logging() -> dict:
    """
    Get correlation ID as a dictionary for use in logging extra fields.

    Returns:
        Dictionary with correlation_id key, or empty dict if not set
    """
    correlation_id = get_correlation_id()
    if correlation_id:
        return {"correlation_id": correlation_id}
    return {}


def to_jsonable(value: Any) -> Any:
    """Convert models and containers into JSON-serialisable values."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, Mapping):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(v) for v in value]
    return value


def log_batched(
    logger: logging.Logger,
    event_name: str,
    items: Mapping[str, Any] | Sequence[Any],
    batch_size: int = DEFAULT_BATCH_SIZE,
    level: int = logging.INFO,
) -> int:
    """
    Log a resource map or list in fixed-size batches.

    Each batch is emitted as its own record carrying the batch index,
    the batch count and the total item count. An empty collection still
    emits one record so the count is always visible.

    Args:
        logger: Logger to emit on
        event_name: Telemetry event name, e.g. "TestSessionCollector.LeakedResources"
        items: Mapping (batched by key) or sequence to log
        batch_size: Maximum items per record
        level: Logging level

    Returns:
        Number of records emitted
    """
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")

    if isinstance(items, Mapping):
        entries: list[Any] = list(items.items())
    else:
        entries = list(items)

    total = len(entries)
    batches = [entries[i : i + batch_size] for i in range(0, total, batch_size)] or [[]]

    for index, batch in enumerate(batches):
        if isinstance(items, Mapping):
            payload = {str(key): to_jsonable(value) for key, value in batch}
        else:
            payload = [to_jsonable(value) for value in batch]

        logger.log(
            level,
            f"{event_name} (batch {index + 1}/{len(batches)}, total={total}): "
            f"{json.dumps(payload, default=str)}",
            extra={
                "event": event_name,
                "batch_index": index,
                "batch_count": len(batches),
                "total_count": total,
                **get_correlation_id_for_logging(),
            },
        )

    return len(batches)


@asynccontextmanager
async def telemetry_scope(
    logger: logging.Logger,
    event_name: str,
    **context: Any,
) -> AsyncIterator[dict[str, Any]]:
    """
    Time a unit of work and log its start, stop and failure.

    The yielded dictionary is the scope's telemetry context: callers
    may add entries (counts, ids) that are included in the stop record.
    Exceptions are logged with the context attached and re-raised.

    Usage::

        async with telemetry_scope(logger, "Collector.Discover") as ctx:
            resources = await collector.discover_leaked_resources()
            ctx["leakedResourcesCount"] = len(resources)
    """
    scope_context: dict[str, Any] = dict(context)
    start = time.monotonic()
    logger.debug(
        f"{event_name}.Start",
        extra={"event": f"{event_name}.Start", **get_correlation_id_for_logging()},
    )

    try:
        yield scope_context
    except Exception as e:
        duration_ms = int((time.monotonic() - start) * 1000)
        logger.error(
            f"{event_name}.Error after {duration_ms}ms: {type(e).__name__}: {e} "
            f"context={json.dumps(to_jsonable(scope_context), default=str)}",
            extra={
                "event": f"{event_name}.Error",
                "duration_ms": duration_ms,
                "error_type": type(e).__name__,
                **get_correlation_id_for_logging(),
            },
        )
        raise

    duration_ms = int((time.monotonic() - start) * 1000)
    logger.info(
        f"{event_name}.Stop ({duration_ms}ms) "
        f"context={json.dumps(to_jsonable(scope_context), default=str)}",
        extra={
            "event": f"{event_name}.Stop",
            "duration_ms": duration_ms,
            **get_correlation_id_for_logging(),
        },
    )
