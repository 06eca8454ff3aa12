"""
Playwright DOM - Implementation of the DOM interfaces using Playwright.
"""

import logging
from typing import Any, List, Optional

from flowscribe.capture.scripts import AX_FALLBACK_JS, SNAPSHOT_JS
from flowscribe.exceptions import (
    ContextDestroyedError,
    DomError,
    ElementDetachedError,
    is_context_destroyed,
)
from flowscribe.interfaces.dom import AccessibleNode, DomElement, PageContext
from flowscribe.models.events import ElementRef, ElementSnapshot

logger = logging.getLogger(__name__)


def _translate(error: Exception, what: str) -> DomError:
    """Map a driver error onto the DomError hierarchy."""
    if is_context_destroyed(error):
        return ContextDestroyedError()
    return ElementDetachedError(f"{what} failed: {error}")


class PlaywrightElement(DomElement):
    """
    Playwright implementation of DomElement.
    
    Wraps an ElementHandle together with the page that owns it, because the
    accessibility snapshot is a page-level query.
    """
    
    def __init__(self, handle: Any, page: Any):
        self._handle = handle
        self._page = page
    
    @property
    def handle(self) -> Any:
        return self._handle
    
    async def ancestry(self, max_depth: int) -> List[ElementSnapshot]:
        try:
            raw = await self._handle.evaluate(SNAPSHOT_JS, max_depth)
        except Exception as e:
            raise _translate(e, "Snapshot") from e
        return [ElementSnapshot.from_dict(item) for item in raw or []]
    
    async def accessible_node(self) -> Optional[AccessibleNode]:
        accessibility = getattr(self._page, "accessibility", None)
        if accessibility is not None:
            try:
                node = await accessibility.snapshot(root=self._handle, interesting_only=True)
            except Exception as e:
                logger.debug(f"Accessibility snapshot failed, using DOM fallback: {e}")
                node = None
            if node and node.get("role"):
                return AccessibleNode(role=node["role"], name=node.get("name") or "")
        
        try:
            raw = await self._handle.evaluate(AX_FALLBACK_JS)
        except Exception as e:
            raise _translate(e, "Accessible role lookup") from e
        if not raw:
            return None
        return AccessibleNode(role=raw.get("role", ""), name=raw.get("name") or "")


class PlaywrightPageContext(PageContext):
    """
    Playwright implementation of PageContext.
    
    Example:
        >>> context = PlaywrightPageContext(page)
        >>> title = await context.title()
    """
    
    def __init__(self, page: Any):
        self._page = page
    
    @property
    def page(self) -> Any:
        return self._page
    
    def current_url(self) -> str:
        try:
            return self._page.url
        except Exception as e:
            if is_context_destroyed(e):
                raise ContextDestroyedError() from e
            raise
    
    async def title(self) -> str:
        try:
            return await self._page.title()
        except Exception as e:
            raise _translate(e, "Title read") from e
    
    async def wait_for_load(self) -> None:
        try:
            await self._page.wait_for_load_state("domcontentloaded")
        except Exception as e:
            raise _translate(e, "Load wait") from e
    
    async def texts(self, selectors: List[str], max_length: int = 0) -> List[str]:
        results: List[str] = []
        for selector in selectors:
            try:
                handles = await self._page.query_selector_all(selector)
                for handle in handles:
                    text = ((await handle.text_content()) or "").strip()
                    if text and (not max_length or len(text) <= max_length):
                        results.append(text)
            except Exception as e:
                raise _translate(e, f"Reading {selector}") from e
        return results
    
    async def first_text(self, selectors: List[str]) -> Optional[str]:
        for selector in selectors:
            try:
                handle = await self._page.query_selector(selector)
                text = ((await handle.text_content()) or "").strip() if handle else ""
            except Exception as e:
                raise _translate(e, f"Reading {selector}") from e
            if text:
                return text
        return None
    
    def _frame_for(self, frame_url: str) -> Any:
        if not frame_url:
            return self._page.main_frame
        for frame in self._page.frames:
            if frame.url == frame_url:
                return frame
        return self._page.main_frame
    
    async def resolve(self, ref: ElementRef, index: int = 0) -> Optional[DomElement]:
        if index >= len(ref.chain):
            return None
        path = ref.chain[index].path
        if not path:
            return None
        frame = self._frame_for(ref.frame_url)
        try:
            handle = await frame.query_selector(path)
        except Exception as e:
            raise _translate(e, f"Resolving {path}") from e
        if handle is None:
            logger.debug(f"Element no longer present: {path}")
            return None
        return PlaywrightElement(handle, self._page)
