# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Retry with exponential backoff for selected failures.

The policy is explicit: callers pass the predicate deciding which
errors are retryable together with the attempt budget and backoff
schedule. Errors the predicate rejects propagate on the first attempt.
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Default retry configuration
DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_BASE_DELAY_SECONDS = 2.0
DEFAULT_MAX_DELAY_SECONDS = 32.0


def calculate_backoff_delay(
    attempt: int,
    base_delay_seconds: float = DEFAULT_BASE_DELAY_SECONDS,
    max_delay_seconds: float = DEFAULT_MAX_DELAY_SECONDS,
    jitter: bool = True,
) -> float:
    """
    Calculate exponential backoff delay with jitter.

    Uses the formula: min(max_delay, base_delay * 2^attempt) + random_jitter

    Args:
        attempt: Current attempt number (0-indexed)
        base_delay_seconds: Delay before the first retry
        max_delay_seconds: Upper bound before jitter is added
        jitter: Add up to 25% random jitter

    Returns:
        Delay in seconds before next retry
    """
    delay = min(base_delay_seconds * (2 ** attempt), max_delay_seconds)
    if jitter and delay > 0:
        delay += random.uniform(0, delay * 0.25)
    return delay


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    is_retryable: Callable[[Exception], bool],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay_seconds: float = DEFAULT_BASE_DELAY_SECONDS,
    max_delay_seconds: float = DEFAULT_MAX_DELAY_SECONDS,
    jitter: bool = True,
    operation_name: str = "operation",
) -> T:
    """
    Run an async operation, retrying failures the predicate accepts.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt
        is_retryable: Returns True for errors worth another attempt
        max_attempts: Total attempts, including the first
        base_delay_seconds: Base delay for exponential backoff
        max_delay_seconds: Maximum delay between attempts
        jitter: Add random jitter to each delay
        operation_name: Name used in log messages

    Returns:
        The operation's result

    Raises:
        ValueError: If max_attempts is less than 1
        Exception: The last error once attempts are exhausted, or the
                   first non-retryable error
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for attempt in range(max_attempts):
        try:
            return await operation()
        except Exception as e:
            if not is_retryable(e):
                raise
            if attempt >= max_attempts - 1:
                logger.error(
                    f"{operation_name} failed after {max_attempts} attempts: {e}"
                )
                raise

            delay = calculate_backoff_delay(
                attempt, base_delay_seconds, max_delay_seconds, jitter
            )
            logger.warning(
                f"{operation_name} failed with transient error "
                f"(attempt {attempt + 1}/{max_attempts}): {e}. "
                f"Retrying in {delay:.2f}s"
            )
            await asyncio.sleep(delay)

    # Unreachable: the loop either returns or raises
    raise RuntimeError(f"{operation_name} exhausted retries without a result")
