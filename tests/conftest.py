"""
Pytest configuration and fixtures.

The recorder never touches Playwright directly, so most tests run against
the in-memory FakeElement / FakePage implementations below.
"""

import time
from typing import Dict, List, Optional

import pytest

from flowscribe.config import Settings, CaptureSettings, RecorderSettings, GeneratorSettings
from flowscribe.exceptions import ContextDestroyedError
from flowscribe.interfaces.dom import AccessibleNode, DomElement, PageContext
from flowscribe.models.events import ElementRef, ElementSnapshot, EventKind, InteractionEvent
from flowscribe.models.locators import Locator, PlatformAttributeLocator
from flowscribe.models.pages import PageIdentity, PagePattern, PageType
from flowscribe.models.steps import RecordedStep, StepAction
from flowscribe.platforms import get_platform


D365_HOST = "https://usmf.operations.dynamics.com"
LIST_URL = f"{D365_HOST}/?cmp=USMF&mi=SalesTableListPage"
DETAILS_URL = f"{D365_HOST}/?cmp=USMF&mi=SalesTable"
LOGIN_URL = "https://login.microsoftonline.com/common/oauth2/authorize?client_id=abc"


# =============================================================================
# FAKE DOM
# =============================================================================

class FakeElement(DomElement):
    """DomElement over a fixed ancestor chain."""

    def __init__(
        self,
        chain: List[ElementSnapshot],
        ax_node: Optional[AccessibleNode] = None,
        error: Optional[Exception] = None,
    ):
        self.chain = chain
        self.ax_node = ax_node
        self.error = error
        self.ax_queries = 0

    async def ancestry(self, max_depth: int) -> List[ElementSnapshot]:
        if self.error:
            raise self.error
        return self.chain[:max_depth + 1]

    async def accessible_node(self) -> Optional[AccessibleNode]:
        self.ax_queries += 1
        return self.ax_node


class FakePage(PageContext):
    """PageContext with scripted URL, title and text lookups."""

    def __init__(
        self,
        url: str = LIST_URL,
        title: str = "All sales orders -- Finance and Operations",
        texts: Optional[Dict[str, List[str]]] = None,
        ax_nodes: Optional[Dict[str, AccessibleNode]] = None,
    ):
        self.url = url
        self.page_title = title
        self.text_map = texts or {}
        self.ax_nodes = ax_nodes or {}
        self.destroyed = False
        self.missing_paths: set = set()
        self.resolved: List[str] = []

    def current_url(self) -> str:
        if self.destroyed:
            raise ContextDestroyedError(url=self.url)
        return self.url

    async def title(self) -> str:
        if self.destroyed:
            raise ContextDestroyedError()
        return self.page_title

    async def wait_for_load(self) -> None:
        return None

    async def texts(self, selectors: List[str], max_length: int = 0) -> List[str]:
        results = []
        for selector in selectors:
            for text in self.text_map.get(selector, []):
                if not max_length or len(text) <= max_length:
                    results.append(text)
        return results

    async def first_text(self, selectors: List[str]) -> Optional[str]:
        for selector in selectors:
            for text in self.text_map.get(selector, []):
                if text:
                    return text
        return None

    async def resolve(self, ref: ElementRef, index: int = 0) -> Optional[DomElement]:
        path = ref.chain[index].path
        self.resolved.append(path)
        if path in self.missing_paths:
            return None
        return FakeElement(ref.chain[index:], self.ax_nodes.get(path))


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def platform():
    """The D365 target platform."""
    return get_platform("d365")


@pytest.fixture
def settings():
    """Provide test settings with short timeouts."""
    return Settings(
        capture=CaptureSettings(input_debounce_ms=50),
        recorder=RecorderSettings(dom_timeout_ms=500),
        generator=GeneratorSettings(output_dir="./generated-test"),
    )


@pytest.fixture
def snap():
    """Factory for ElementSnapshot."""
    def factory(tag: str = "div", **kwargs) -> ElementSnapshot:
        kwargs.setdefault("path", f"{tag}:nth-of-type({len(kwargs) + 1})")
        return ElementSnapshot(tag=tag, **kwargs)
    return factory


@pytest.fixture
def fake_page():
    """Factory for FakePage."""
    return FakePage


@pytest.fixture
def fake_element():
    """Factory for FakeElement."""
    return FakeElement


@pytest.fixture
def event():
    """Factory for InteractionEvent."""
    def factory(
        kind: EventKind,
        chain: Optional[List[ElementSnapshot]] = None,
        **kwargs,
    ) -> InteractionEvent:
        element = ElementRef(chain=chain) if chain else None
        return InteractionEvent(kind=kind, timestamp=time.time(), element=element, **kwargs)
    return factory


@pytest.fixture
def make_step():
    """Factory for RecordedStep with sensible defaults per action."""
    def factory(action: StepAction, order: int, page_id: str = "AllSalesOrdersListPage", **kwargs) -> RecordedStep:
        if action == StepAction.NAVIGATE:
            url = kwargs.pop("page_url", LIST_URL)
            kwargs.setdefault("description", f"Navigate to {url}")
            kwargs["page_url"] = url
        if action in (StepAction.CLICK, StepAction.FILL, StepAction.SELECT):
            kwargs.setdefault("locator", PlatformAttributeLocator("data-dyn-controlname", f"Control{order}"))
        kwargs.setdefault("description", f"{action.value} {order}")
        return RecordedStep(
            page_id=page_id,
            action=action,
            order=order,
            timestamp=1700000000.0 + order,
            **kwargs,
        )
    return factory


@pytest.fixture
def nav(make_step):
    def factory(order: int, url: str = LIST_URL, page_id: str = "AllSalesOrdersListPage", **kwargs):
        return make_step(StepAction.NAVIGATE, order, page_id=page_id, page_url=url, **kwargs)
    return factory


@pytest.fixture
def click(make_step):
    def factory(order: int, locator: Optional[Locator] = None, **kwargs):
        if locator is not None:
            kwargs["locator"] = locator
        return make_step(StepAction.CLICK, order, **kwargs)
    return factory


@pytest.fixture
def list_identity():
    return PageIdentity(
        page_id="AllSalesOrdersListPage",
        caption="All sales orders",
        type=PageType.LIST,
        url=LIST_URL,
        menu_ref="SalesTableListPage",
        company_ref="USMF",
        route_path="/?cmp=USMF&mi=SalesTableListPage",
        pattern=PagePattern.LIST_PAGE,
    )


@pytest.fixture
def details_identity():
    return PageIdentity(
        page_id="SalesOrderDetailsPage",
        caption="Sales order",
        type=PageType.DETAILS,
        url=DETAILS_URL,
        menu_ref="SalesTable",
        company_ref="USMF",
        route_path="/?cmp=USMF&mi=SalesTable",
        pattern=PagePattern.DETAILS_PAGE,
    )
