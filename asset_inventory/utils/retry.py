# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Retry executor with exponential backoff for throttled AWS calls.

This module wraps a single remote call with bounded retries. Errors are
classified by message: throttling and rate-limit signatures are retried,
everything else is returned to the caller on the first failure.

The executor knows nothing about inventory types; it only sees a
zero-argument callable returning an awaitable.
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Default retry configuration
DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY_SECONDS = 0.1
DEFAULT_MAX_DELAY_SECONDS = 5.0

# Jitter added on top of each delay, as a fraction of that delay
MAX_JITTER_RATIO = 0.5

# Message fragments that mark an error as transient
TRANSIENT_ERROR_MARKERS = (
    "ThrottlingException",
    "Throttling",
    "Rate exceeded",
    "RequestLimitExceeded",
    "TooManyRequestsException",
)


class OperationCancelledError(Exception):
    """Raised when the cancellation signal fires during a call or a backoff wait."""

    def __init__(self, message: str = "operation cancelled"):
        super().__init__(message)


def is_retryable(error: BaseException | None) -> bool:
    """
    Check if an error is transient and should trigger a retry.

    Args:
        error: The exception to check

    Returns:
        True if the error message carries a throttling or rate-limit marker
    """
    if error is None:
        return False
    message = str(error)
    return any(marker in message for marker in TRANSIENT_ERROR_MARKERS)


class RetryExecutor:
    """
    Executes an async operation with retries and jittered exponential backoff.

    An operation is attempted up to ``max_retries + 1`` times. The wait
    before the next attempt starts at ``base_delay_seconds``, doubles after
    every attempt and never exceeds ``max_delay_seconds``; a random jitter
    of up to 50% of the delay is added so that regions retrying at the same
    time drift apart.
    """

    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay_seconds: float = DEFAULT_BASE_DELAY_SECONDS,
        max_delay_seconds: float = DEFAULT_MAX_DELAY_SECONDS,
    ):
        """
        Initialize retry configuration.

        Args:
            max_retries: Retries after the first attempt (default: 3)
            base_delay_seconds: Delay before the first retry (default: 0.1)
            max_delay_seconds: Cap for the delay between retries (default: 5.0)
        """
        if max_retries < 0:
            raise ValueError("max_retries must not be negative")
        self.max_retries = max_retries
        self.base_delay_seconds = base_delay_seconds
        self.max_delay_seconds = max_delay_seconds

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        cancel_event: asyncio.Event | None = None,
        description: str = "operation",
    ) -> T:
        """
        Run an operation, retrying transient failures.

        Args:
            operation: Zero-argument callable returning an awaitable
            cancel_event: Optional event that aborts the call or the wait when set
            description: Short label used in log messages

        Returns:
            The operation's result

        Raises:
            OperationCancelledError: If cancel_event fires before completion
            Exception: The last error from the operation, unchanged
        """
        delay = self.base_delay_seconds

        for attempt in range(self.max_retries + 1):
            if cancel_event is not None and cancel_event.is_set():
                raise OperationCancelledError(f"{description} cancelled")

            try:
                return await _await_unless_cancelled(operation(), cancel_event, description)
            except OperationCancelledError:
                raise
            except Exception as e:
                if not is_retryable(e) or attempt == self.max_retries:
                    raise

                wait = self.jittered_delay(delay)
                logger.warning(
                    f"{description} throttled "
                    f"(attempt {attempt + 1}/{self.max_retries + 1}): {e}. "
                    f"Retrying in {wait:.2f}s"
                )
                await _sleep_unless_cancelled(wait, cancel_event, description)
                delay = min(delay * 2, self.max_delay_seconds)

        # Unreachable: the last attempt either returns or raises
        raise RuntimeError("retry loop exited without a result")

    @staticmethod
    def jittered_delay(delay: float) -> float:
        """Return delay plus a random jitter of 0-50% of it."""
        return delay + random.uniform(0, delay * MAX_JITTER_RATIO)


async def _await_unless_cancelled(
    awaitable: Awaitable[T],
    cancel_event: asyncio.Event | None,
    description: str,
) -> T:
    """Await a call, abandoning it as soon as cancel_event is set."""
    if cancel_event is None:
        return await awaitable

    call = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(cancel_event.wait())
    try:
        done, _ = await asyncio.wait({call, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
        if not call.done():
            call.cancel()

    if call in done:
        return call.result()
    raise OperationCancelledError(f"{description} cancelled")


async def _sleep_unless_cancelled(
    seconds: float,
    cancel_event: asyncio.Event | None,
    description: str,
) -> None:
    """Sleep for the backoff interval, returning early with an error on cancel."""
    if cancel_event is None:
        await asyncio.sleep(seconds)
        return

    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=seconds)
    except asyncio.TimeoutError:
        return
    raise OperationCancelledError(f"{description} cancelled during backoff")
