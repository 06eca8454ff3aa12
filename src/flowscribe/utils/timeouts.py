"""
Bounded DOM reads.

Every read against the live page goes through these helpers so that one
slow or navigating page never stalls the whole recording session.
"""

import asyncio
import logging
from typing import Any, Awaitable, TypeVar

from flowscribe.exceptions import DomError, DomTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def with_timeout(
    coro: Awaitable[T],
    timeout_ms: int,
    error_message: str = "DOM read timed out",
) -> T:
    """
    Execute a coroutine with a timeout.
    
    Args:
        coro: Coroutine to execute
        timeout_ms: Timeout in milliseconds
        error_message: Message for the timeout error
        
    Returns:
        Coroutine result
        
    Raises:
        DomTimeoutError: if the timeout is exceeded
    """
    try:
        return await asyncio.wait_for(coro, timeout=timeout_ms / 1000)
    except asyncio.TimeoutError as e:
        raise DomTimeoutError(error_message, timeout_ms=timeout_ms) from e


async def read_or_default(
    coro: Awaitable[T],
    default: Any,
    timeout_ms: int,
    what: str = "value",
) -> Any:
    """
    Run a bounded read, returning ``default`` on timeout or DOM failure.
    
    Used where a missing value is acceptable (titles, breadcrumbs, captions).
    Errors that are not DOM related still propagate.
    """
    try:
        return await with_timeout(coro, timeout_ms, f"Reading {what} timed out")
    except DomError as e:
        logger.debug(f"Falling back to default {what}: {e}")
        return default
