"""
Deadlines for External Calls

Wraps awaitables in ``asyncio.wait_for`` and converts overruns into
``OperationTimeoutError``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from prorag.errors import OperationTimeoutError

T = TypeVar("T")


async def run_with_deadline(
    awaitable: Awaitable[T],
    timeout: float | None,
    *,
    operation: str,
) -> T:
    """
    Await with an optional deadline.

    Args:
        awaitable: Coroutine to run
        timeout: Seconds before giving up (None or <= 0 waits indefinitely)
        operation: Name used in the timeout error message

    Raises:
        OperationTimeoutError: If the deadline passes first
    """
    if not timeout or timeout <= 0:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as exc:
        raise OperationTimeoutError(operation, timeout) from exc
