"""
Per-element input debouncing.

Typing fires one input event per keystroke. The debouncer holds the latest
value per element and reports it once the element has been quiet for the
configured window. Each session owns its own debouncer; nothing here is
module-global.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional

from flowscribe.models.events import InteractionEvent

logger = logging.getLogger(__name__)

Emit = Callable[[InteractionEvent], Awaitable[None]]


@dataclass
class _Pending:
    event: InteractionEvent
    handle: asyncio.TimerHandle


class InputDebouncer:
    """
    Debounce input events keyed by a stable element identity.
    
    Example:
        >>> debouncer = InputDebouncer(emit, quiet_ms=800)
        >>> debouncer.push(event)   # restarts the timer for event.element.key
        >>> await debouncer.flush() # report everything pending right now
    """
    
    def __init__(self, emit: Emit, quiet_ms: int = 800):
        self._emit = emit
        self._quiet_s = quiet_ms / 1000
        self._pending: Dict[str, _Pending] = {}
        self._tasks: set[asyncio.Task] = set()
    
    @property
    def pending_keys(self) -> list[str]:
        return list(self._pending)
    
    def push(self, event: InteractionEvent) -> None:
        """
        Record the latest value for an element and restart its quiet window.
        
        Must be called from a running event loop.
        """
        if event.element is None:
            raise ValueError("Input events must carry an element reference")
        key = event.element.key
        previous = self._pending.pop(key, None)
        if previous:
            previous.handle.cancel()
        
        loop = asyncio.get_running_loop()
        handle = loop.call_later(self._quiet_s, self._fire, key)
        self._pending[key] = _Pending(event=event, handle=handle)
    
    def _fire(self, key: str) -> None:
        pending = self._pending.pop(key, None)
        if pending is None:
            return
        task = asyncio.ensure_future(self._emit(pending.event))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
    
    async def flush(self, key: Optional[str] = None) -> None:
        """
        Report pending values immediately, in the order they were first seen.
        
        Args:
            key: Only flush this element; None flushes all
        """
        keys = [key] if key is not None else list(self._pending)
        for k in keys:
            pending = self._pending.pop(k, None)
            if pending is None:
                continue
            pending.handle.cancel()
            await self._emit(pending.event)
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
    
    def cancel_all(self) -> None:
        """Drop every pending value without reporting it."""
        for pending in self._pending.values():
            pending.handle.cancel()
        self._pending.clear()
    
    def cancel(self, key: str) -> bool:
        """
        Drop the pending value of one element without reporting it.
        
        Returns:
            True if a value was pending
        """
        pending = self._pending.pop(key, None)
        if pending is None:
            return False
        pending.handle.cancel()
        return True
