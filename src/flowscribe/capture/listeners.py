"""
Event Capture - Browser listeners that feed the recording engine.

Listeners are installed at the browser-context level through an init
script, so they run in every frame of the page, including frames created
after attachment. Click, input and change handlers use the capture phase
and therefore see events before the application can stop propagation.
"""

import asyncio
import json
import logging
import time
from typing import Any, Callable, Optional, Set

from flowscribe.capture.debounce import InputDebouncer
from flowscribe.capture.scripts import BINDING_NAME, build_capture_script
from flowscribe.config.settings import CaptureSettings
from flowscribe.models.events import EventKind, InteractionEvent

logger = logging.getLogger(__name__)

Sink = Callable[[InteractionEvent], None]


class EventCapture:
    """
    Captures raw interactions from a Playwright page.
    
    Normalized events are handed to ``sink`` in arrival order, except that
    input events are held back per element until typing pauses.
    
    Example:
        >>> capture = EventCapture(queue.put_nowait)
        >>> await capture.attach(page)
        >>> ...
        >>> await capture.flush()
        >>> await capture.detach()
    """
    
    def __init__(self, sink: Sink, settings: Optional[CaptureSettings] = None):
        self._sink = sink
        self._settings = settings or CaptureSettings()
        self._page: Any = None
        self._attached = False
        self._debouncer = InputDebouncer(self._deliver, self._settings.input_debounce_ms)
        self._last_url = ""
        self._tasks: Set[asyncio.Task] = set()
    
    @property
    def attached(self) -> bool:
        return self._attached
    
    @property
    def debouncer(self) -> InputDebouncer:
        return self._debouncer
    
    async def attach(self, page: Any) -> None:
        """
        Install listeners on the page's browser context.
        
        Args:
            page: Playwright page to record
        """
        if self._attached:
            raise RuntimeError("Capture is already attached")
        
        self._page = page
        self._last_url = page.url
        depth = self._settings.click_ancestor_depth + self._settings.nav_pane_depth
        script = build_capture_script(depth)
        
        await page.context.expose_binding(BINDING_NAME, self._on_binding)
        await page.context.add_init_script(script=script)
        
        # Frames that already exist did not run the init script
        for frame in page.frames:
            try:
                await frame.evaluate(script)
            except Exception as e:
                logger.debug(f"Could not install listeners in frame {frame.url}: {e}")
        
        page.on("framenavigated", self._on_frame_navigated)
        self._attached = True
        logger.info(f"Event capture attached to {page.url}")
    
    async def flush(self) -> None:
        """Report pending input values now."""
        await self._debouncer.flush()
    
    async def detach(self) -> None:
        """
        Stop reporting events.
        
        The exposed binding cannot be removed from a live context, so it
        stays installed and silently drops everything from here on.
        """
        if not self._attached:
            return
        self._attached = False
        self._debouncer.cancel_all()
        if self._page is not None:
            try:
                self._page.remove_listener("framenavigated", self._on_frame_navigated)
            except Exception as e:
                logger.debug(f"Removing navigation listener failed: {e}")
        self._page = None
        logger.info("Event capture detached")
    
    async def _deliver(self, event: InteractionEvent) -> None:
        if self._attached:
            self._sink(event)
    
    async def _on_binding(self, source: Any, payload: str) -> None:
        """Receive one serialized event from any frame."""
        if not self._attached:
            return
        try:
            event = InteractionEvent.from_dict(json.loads(payload))
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Dropping malformed capture payload: {e}")
            return
        await self.handle_event(event)
    
    async def handle_event(self, event: InteractionEvent) -> None:
        """
        Route one normalized event.
        
        Inputs go through the debouncer. A change discards the pending input
        of its own element, then every event flushes the remaining input so
        a typed value is never reported after the click that followed it.
        """
        if not self._attached:
            return
        if event.kind == EventKind.INPUT:
            self._debouncer.push(event)
            return
        if event.kind == EventKind.CHANGE and event.element is not None:
            # the change carries the committed value of the same field
            if self._debouncer.cancel(event.element.key):
                logger.debug(f"Input on {event.element.key} replaced by its change event")
        await self._debouncer.flush()
        self._sink(event)
    
    def _on_frame_navigated(self, frame: Any) -> None:
        if not self._attached or self._page is None:
            return
        if frame.parent_frame is not None:
            return
        url = frame.url
        if url == self._last_url:
            return
        self._last_url = url
        task = asyncio.ensure_future(
            self.handle_event(
                InteractionEvent(kind=EventKind.NAVIGATE, timestamp=time.time(), url=url)
            )
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
