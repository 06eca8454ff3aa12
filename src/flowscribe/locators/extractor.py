"""
Locator Extractor - Stable locators from live elements.

Strategies are tried in a fixed order and the first one that applies wins:

1. platform stable-control attribute
2. accessible role + name
3. label (aria-label, <label for>, wrapping label, title)
4. placeholder
5. short visible text
6. test-id attribute
7. CSS (#id, tag.class, tag), flagged as fragile

Extraction never raises. Anything that goes wrong while reading the DOM
yields a flagged ``body`` CSS locator, so one odd element can never abort
a recording session.
"""

import logging
from typing import Callable, List, Optional, Sequence, Tuple

from flowscribe.capture.ancestry import in_nav_pane
from flowscribe.exceptions import DomError
from flowscribe.interfaces.dom import AccessibleNode, DomElement
from flowscribe.models.events import ElementSnapshot
from flowscribe.models.locators import (
    BODY_FALLBACK,
    CssLocator,
    LabelLocator,
    Locator,
    PlaceholderLocator,
    PlatformAttributeLocator,
    RoleLocator,
    TestIdLocator,
    TextLocator,
)
from flowscribe.platforms.base import TargetPlatform
from flowscribe.utils.timeouts import with_timeout

logger = logging.getLogger(__name__)

MAX_TEXT_LENGTH = 80
MIN_NAV_TEXT_LENGTH = 3


class ExtractionInput:
    """Everything the strategies look at for one element."""
    
    def __init__(
        self,
        chain: Sequence[ElementSnapshot],
        platform: TargetPlatform,
        ax_node: Optional[AccessibleNode] = None,
        nav_pane_depth: int = 15,
    ):
        self.chain = chain
        self.target = chain[0]
        self.platform = platform
        self.ax_node = ax_node
        self.in_nav_pane = in_nav_pane(chain, 0, platform, nav_pane_depth)


Strategy = Callable[[ExtractionInput], Optional[Locator]]


def platform_attribute_strategy(data: ExtractionInput) -> Optional[Locator]:
    value = data.platform.stable_attribute_value(data.target)
    if not value:
        return None
    return PlatformAttributeLocator(name=data.platform.stable_attribute, value=value)


def role_strategy(data: ExtractionInput) -> Optional[Locator]:
    if not data.ax_node or not data.ax_node.role:
        return None
    target = data.target
    name = data.ax_node.name or target.aria_label or target.title or target.placeholder
    if not name:
        return None
    return RoleLocator(role=data.ax_node.role, name=name)


def label_strategy(data: ExtractionInput) -> Optional[Locator]:
    target = data.target
    text = target.aria_label or target.label_text or target.title
    return LabelLocator(text=text) if text else None


def placeholder_strategy(data: ExtractionInput) -> Optional[Locator]:
    text = data.target.placeholder
    return PlaceholderLocator(text=text) if text else None


def text_strategy(data: ExtractionInput) -> Optional[Locator]:
    """
    Short visible text.
    
    Interactive elements accept 1-80 characters. Inside the navigation
    pane non-interactive containers qualify too, with a 3 character minimum.
    """
    target = data.target
    if not (target.is_interactive or data.in_nav_pane):
        return None
    text = target.visible_text
    if not text or len(text) > MAX_TEXT_LENGTH:
        return None
    if data.in_nav_pane and len(text) >= MIN_NAV_TEXT_LENGTH:
        return TextLocator(text=text, exact=True)
    if target.is_interactive:
        return TextLocator(text=text, exact=True)
    return None


def data_test_id_strategy(data: ExtractionInput) -> Optional[Locator]:
    value = data.target.test_id
    return TestIdLocator(value=value) if value else None


def css_strategy(data: ExtractionInput) -> Optional[Locator]:
    target = data.target
    if target.element_id:
        return CssLocator(selector=f"#{target.element_id}")
    if not target.tag or target.tag == "body":
        return None
    if target.classes:
        return CssLocator(selector=f"{target.tag}.{target.classes[0]}")
    return CssLocator(selector=target.tag)


STRATEGIES: Tuple[Tuple[str, Strategy], ...] = (
    ("platformAttribute", platform_attribute_strategy),
    ("role", role_strategy),
    ("label", label_strategy),
    ("placeholder", placeholder_strategy),
    ("text", text_strategy),
    ("testId", data_test_id_strategy),
    ("css", css_strategy),
)


def choose_locator(data: ExtractionInput, strategies: Sequence[Tuple[str, Strategy]] = STRATEGIES) -> Locator:
    """Run the strategy waterfall over already-read element data."""
    for _, strategy in strategies:
        locator = strategy(data)
        if locator is not None:
            return locator
    return BODY_FALLBACK


class LocatorExtractor:
    """
    Extracts the most stable locator for a live element.
    
    Example:
        >>> extractor = LocatorExtractor(get_platform("d365"))
        >>> locator = await extractor.extract(element)
    """
    
    def __init__(
        self,
        platform: TargetPlatform,
        timeout_ms: int = 3000,
        nav_pane_depth: int = 15,
    ):
        self._platform = platform
        self._timeout_ms = timeout_ms
        self._nav_pane_depth = nav_pane_depth
    
    async def read(self, element: DomElement) -> Optional[ExtractionInput]:
        """
        Read the element data the strategies need.
        
        The accessibility query is skipped when the stable attribute is
        present, since nothing after it in the waterfall can win.
        """
        chain: List[ElementSnapshot] = await with_timeout(
            element.ancestry(self._nav_pane_depth), self._timeout_ms, "Element snapshot timed out"
        )
        if not chain:
            return None
        data = ExtractionInput(chain, self._platform, nav_pane_depth=self._nav_pane_depth)
        if platform_attribute_strategy(data) is None:
            try:
                data.ax_node = await with_timeout(
                    element.accessible_node(), self._timeout_ms, "Accessibility query timed out"
                )
            except DomError as e:
                logger.debug(f"No accessible node: {e}")
        return data
    
    async def extract(self, element: Optional[DomElement]) -> Locator:
        """
        Extract a locator for ``element``.
        
        Returns:
            The best locator; a flagged ``body`` CSS locator when the
            element is missing or cannot be read
        """
        if element is None:
            return BODY_FALLBACK
        try:
            data = await self.read(element)
        except DomError as e:
            logger.debug(f"Locator extraction fell back to body: {e}")
            return BODY_FALLBACK
        except Exception as e:
            logger.warning(f"Unexpected error extracting locator: {e}")
            return BODY_FALLBACK
        if data is None:
            return BODY_FALLBACK
        locator = choose_locator(data)
        if locator.flagged:
            logger.info(f"Fragile locator recorded: {locator.text}")
        return locator
