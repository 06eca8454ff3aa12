"""
Recording Engine - Turns captured interactions into recorded steps.

The engine owns one session at a time. Events reach it through a queue
drained by a single consumer task, so steps are appended in arrival order
without locking. Every DOM read is bounded; an event whose element
vanished or whose frame navigated away is skipped, never fatal.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Any, Callable, List, Optional

from flowscribe.capture.ancestry import WalkContext, in_nav_pane, walk_ancestors
from flowscribe.capture.listeners import EventCapture
from flowscribe.classification.page_classifier import PageClassifier
from flowscribe.config.settings import Settings
from flowscribe.exceptions import DomError, RecorderStateError, is_context_destroyed
from flowscribe.interfaces.dom import PageContext
from flowscribe.locators.extractor import LocatorExtractor
from flowscribe.models.events import ElementSnapshot, EventKind, InteractionEvent
from flowscribe.models.steps import LOOKUP_SUFFIX, RecordedStep, Session, SessionState, StepAction
from flowscribe.platforms.base import TargetPlatform
from flowscribe.platforms.registry import get_platform
from flowscribe.utils.identifiers import clean_label, make_safe_identifier

logger = logging.getLogger(__name__)

StepCallback = Callable[[RecordedStep], None]

MENU_LIKE_ROLES = frozenset({"menuitem", "treeitem"})
GENERIC_ROLES = frozenset({"generic", "presentation"})
CONTAINER_TAGS = frozenset({"div", "span"})

ROLE_SUFFIXES = {
    "button": "Button",
    "link": "Link",
    "textbox": "Input",
    "combobox": "Select",
    "treeitem": "Item",
    "menuitem": "MenuItem",
}
TAG_ROLES = {
    "button": "button",
    "a": "link",
    "input": "textbox",
    "textarea": "textbox",
    "select": "combobox",
}


class EngineState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    STOPPED = "stopped"


def effective_role(snapshot: ElementSnapshot) -> str:
    return snapshot.role or TAG_ROLES.get(snapshot.tag, "")


def click_label(snapshot: ElementSnapshot) -> str:
    """Label used in click descriptions: aria-label, title, placeholder, text, tag."""
    label = (
        snapshot.aria_label
        or snapshot.title
        or snapshot.placeholder
        or snapshot.visible_text
        or snapshot.tag
    )
    return clean_label(label)


def input_label(snapshot: ElementSnapshot) -> str:
    """Label of a form field: aria-label, associated label, placeholder, name."""
    return clean_label(
        snapshot.aria_label or snapshot.label_text or snapshot.placeholder or snapshot.name
    )


def click_skip_reason(
    snapshot: ElementSnapshot,
    platform: TargetPlatform,
    nav_pane: bool,
    max_label_length: int = 80,
) -> Optional[str]:
    """
    Decide whether a resolved click is worth recording.
    
    Rules are checked in a fixed order and the first one that fires
    decides. A kept click is then still dropped when its label is longer
    than ``max_label_length``.
    
    Returns:
        A short reason when the click should be skipped, else None
    """
    reason = _precedence_reason(snapshot, platform, nav_pane)
    if reason is not None:
        return reason
    if len(click_label(snapshot)) > max_label_length:
        return "label too long"
    return None


def _precedence_reason(
    snapshot: ElementSnapshot, platform: TargetPlatform, nav_pane: bool
) -> Optional[str]:
    if snapshot.tag == "body":
        return "body"
    if platform.is_expand_nav_control(snapshot):
        return None
    has_label = snapshot.has_any_label()
    if nav_pane and has_label:
        return None
    if snapshot.is_link_like and has_label:
        return None
    
    text = snapshot.visible_text
    menu_like = snapshot.role in MENU_LIKE_ROLES or snapshot.tag == "li" or len(text) < 50
    if 3 <= len(text) <= 100 and menu_like:
        return None
    
    if snapshot.is_interactive or snapshot.is_button:
        return None
    
    has_attr_label = bool(snapshot.aria_label or snapshot.title)
    generic = snapshot.role in GENERIC_ROLES or snapshot.tag in CONTAINER_TAGS
    if generic and has_attr_label:
        return None
    if not has_label:
        return "no label"
    if snapshot.tag in CONTAINER_TAGS and len(text) < 3 and not has_attr_label:
        return "container without meaningful text"
    return None


def _pascal(name: str) -> str:
    return name[0].upper() + name[1:] if name else name


class RecordingEngine:
    """
    Records one session from a live page.
    
    Example:
        >>> engine = RecordingEngine(settings)
        >>> await engine.start(PlaywrightPageContext(page), session, browser_page=page)
        >>> # user interacts with the page
        >>> steps = await engine.stop()
    """
    
    def __init__(
        self,
        settings: Optional[Settings] = None,
        platform: Optional[TargetPlatform] = None,
        page_registry: Any = None,
    ):
        """
        Initialize the engine.
        
        Args:
            settings: Application settings (defaults if omitted)
            platform: Target platform (from settings if omitted)
            page_registry: Optional PageRegistry that learns every page visited
        """
        self._settings = settings or Settings()
        self._platform = platform or get_platform(self._settings.recorder.platform)
        timeout_ms = self._settings.recorder.dom_timeout_ms
        self._extractor = LocatorExtractor(
            self._platform, timeout_ms, self._settings.capture.nav_pane_depth
        )
        self._classifier = PageClassifier(self._platform, timeout_ms)
        self._page_registry = page_registry
        
        self._state = EngineState.IDLE
        self._active = False
        self._page: Optional[PageContext] = None
        self._session: Optional[Session] = None
        self._capture: Optional[EventCapture] = None
        self._queue: "asyncio.Queue[InteractionEvent]" = asyncio.Queue()
        self._consumer: Optional[asyncio.Task] = None
        self._callbacks: List[StepCallback] = []
    
    @property
    def state(self) -> EngineState:
        return self._state
    
    @property
    def is_active(self) -> bool:
        return self._active
    
    @property
    def session(self) -> Optional[Session]:
        return self._session
    
    @property
    def platform(self) -> TargetPlatform:
        return self._platform
    
    @property
    def classifier(self) -> PageClassifier:
        return self._classifier
    
    def on_step(self, callback: StepCallback) -> None:
        """Register a callback invoked with every appended step."""
        self._callbacks.append(callback)
    
    # ==================== Lifecycle ====================
    
    async def start(self, page: PageContext, session: Session, browser_page: Any = None) -> None:
        """
        Start recording.
        
        Args:
            page: Page being recorded
            session: Fresh session that receives the steps
            browser_page: Playwright page to attach event capture to; when
                omitted, events must be fed through submit()
            
        Raises:
            RecorderStateError: if the engine was already started
        """
        if self._state != EngineState.IDLE:
            raise RecorderStateError(
                f"Cannot start a recording engine in state {self._state.value}",
                state=self._state.value,
            )
        
        self._page = page
        self._session = session
        session.state = SessionState.RECORDING
        
        identity = await self._classifier.extract_identity(page)
        if identity is not None:
            self._remember(identity)
        
        self._queue = asyncio.Queue()
        self._active = True
        self._state = EngineState.RECORDING
        self._consumer = asyncio.create_task(self._consume())
        
        if browser_page is not None:
            self._capture = EventCapture(self.submit, self._settings.capture)
            await self._capture.attach(browser_page)
        
        logger.info(f"Recording started: {session.flow_name} ({session.session_id})")
    
    async def stop(self) -> List[RecordedStep]:
        """
        Stop recording and freeze the session.
        
        Pending input is flushed and queued events are recorded first;
        anything arriving after that is discarded.

        Returns:
            The recorded steps
        """
        if self._state != EngineState.RECORDING:
            raise RecorderStateError(
                f"Cannot stop a recording engine in state {self._state.value}",
                state=self._state.value,
            )

        if self._capture is not None:
            await self._capture.flush()
        if self._consumer is not None:
            await self.drain()

        self._active = False
        if self._capture is not None:
            await self._capture.detach()
            self._capture = None

        if self._consumer is not None:
            self._consumer.cancel()
            try:
                await self._consumer
            except asyncio.CancelledError:
                pass
            self._consumer = None
        
        self._state = EngineState.STOPPED
        session = self._session
        session.freeze()
        logger.info(f"Recording stopped with {len(session.steps)} steps")
        return list(session.steps)
    
    def submit(self, event: InteractionEvent) -> None:
        """Queue one event; dropped unless the engine is recording."""
        if not self._active:
            logger.debug(f"Discarding {event.kind.value} event, engine inactive")
            return
        self._queue.put_nowait(event)
    
    async def drain(self) -> None:
        """Wait until every queued event has been handled."""
        await self._queue.join()
    
    async def _consume(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self.handle_event(event)
            except Exception as e:
                logger.error(f"Failed to record {event.kind.value} event: {e}", exc_info=True)
            finally:
                self._queue.task_done()
    
    # ==================== Dispatch ====================
    
    async def handle_event(self, event: InteractionEvent) -> Optional[RecordedStep]:
        """
        Turn one event into a step and append it.
        
        Returns:
            The appended step, or None if the event was skipped
        """
        if not self._active:
            return None
        try:
            if event.kind == EventKind.NAVIGATE:
                step = await self._navigation_step(event)
            elif event.kind == EventKind.CLICK:
                step = await self._click_step(event)
            else:
                step = await self._input_step(event)
        except DomError as e:
            if is_context_destroyed(e):
                logger.debug(f"{event.kind.value} target lost to navigation")
            else:
                logger.debug(f"Skipped {event.kind.value} event: {e}")
            return None
        
        if step is None:
            return None
        return self._append(step)
    
    def _append(self, step: RecordedStep) -> Optional[RecordedStep]:
        # stop() may have run while this event was being read
        if not self._active:
            return None
        self._session.append(step)
        for callback in self._callbacks:
            try:
                callback(step)
            except Exception as e:
                logger.warning(f"Step callback failed: {e}")
        return step
    
    def _remember(self, identity) -> None:
        self._session.remember_identity(identity)
        if self._page_registry is not None:
            self._page_registry.register(identity)
    
    def _step_context(self) -> dict:
        identity = self._session.current_identity
        if identity is None:
            return {}
        return {
            "page_url": identity.url,
            "menu_ref": identity.menu_ref,
            "company_ref": identity.company_ref,
            "page_type": identity.type,
        }
    
    async def _current_page_id(self) -> str:
        identity = self._session.current_identity
        if identity is not None:
            return identity.page_id
        classification = await self._classifier.classify(self._page)
        return classification.page_id
    
    async def _navigation_step(self, event: InteractionEvent) -> Optional[RecordedStep]:
        url = event.url or ""
        if not url or url.startswith("about:"):
            return None
        
        identity = await self._classifier.extract_identity(self._page)
        if identity is not None:
            self._remember(identity)
            page_id = identity.page_id
        else:
            page_id = self._classifier.classify_context(url).page_id
        
        return RecordedStep(
            page_id=page_id,
            action=StepAction.NAVIGATE,
            description=f"Navigate to {url}",
            order=self._session.next_order,
            timestamp=event.timestamp or time.time(),
            page_url=url,
            menu_ref=identity.menu_ref if identity else None,
            company_ref=identity.company_ref if identity else None,
            page_type=identity.type if identity else None,
        )
    
    async def _click_step(self, event: InteractionEvent) -> Optional[RecordedStep]:
        ref = event.element
        if ref is None:
            return None
        
        capture = self._settings.capture
        ctx = WalkContext(
            platform=self._platform,
            nav_pane_depth=capture.nav_pane_depth,
            client_x=event.client_x,
            spatial_fallback_px=capture.spatial_fallback_px,
            max_label_length=self._settings.recorder.max_label_length,
        )
        index, resolver = walk_ancestors(ref.chain, ctx, max_depth=capture.click_ancestor_depth)
        if resolver:
            logger.debug(f"Click re-targeted to ancestor {index} by {resolver}")
        
        snapshot = ref.chain[index]
        nav_pane = in_nav_pane(ref.chain, index, self._platform, capture.nav_pane_depth)
        reason = click_skip_reason(
            snapshot, self._platform, nav_pane, self._settings.recorder.max_label_length
        )
        if reason:
            logger.debug(f"Skipping click on <{snapshot.tag}>: {reason}")
            return None
        
        element = await self._page.resolve(ref, index)
        locator = await self._extractor.extract(element)
        page_id = await self._current_page_id()
        
        label = click_label(snapshot)
        base = make_safe_identifier(label)
        suffix = ROLE_SUFFIXES.get(effective_role(snapshot), "Element")
        return RecordedStep(
            page_id=page_id,
            action=StepAction.CLICK,
            description=f"Click {label}",
            order=self._session.next_order,
            timestamp=event.timestamp or time.time(),
            locator=locator,
            field_name=base + suffix,
            method_name="click" + _pascal(base),
            **self._step_context(),
        )
    
    async def _input_step(self, event: InteractionEvent) -> Optional[RecordedStep]:
        ref = event.element
        if ref is None:
            return None
        
        snapshot = ref.target
        label = input_label(snapshot)
        base = make_safe_identifier(label)
        if event.kind == EventKind.CHANGE and effective_role(snapshot) == "combobox":
            action, suffix, verb = StepAction.SELECT, "Select", "select"
        elif effective_role(snapshot) == "combobox" and snapshot.tag != "select":
            action, suffix, verb = StepAction.FILL, LOOKUP_SUFFIX, "fill"
        else:
            action, suffix, verb = StepAction.FILL, "Input", "fill"

        last = self._session.steps[-1] if self._session.steps else None
        if (
            last is not None
            and last.action == action
            and last.field_name == base + suffix
            and last.value == (event.value or "")
        ):
            # change after the debounced input of the same value
            return None

        element = await self._page.resolve(ref, 0)
        locator = await self._extractor.extract(element)
        page_id = await self._current_page_id()

        description = f"{'Select' if verb == 'select' else 'Fill'} {label or 'field'}"
        return RecordedStep(
            page_id=page_id,
            action=action,
            description=description,
            order=self._session.next_order,
            timestamp=event.timestamp or time.time(),
            locator=locator,
            value=event.value or "",
            field_name=base + suffix,
            method_name=verb + _pascal(base),
            **self._step_context(),
        )
