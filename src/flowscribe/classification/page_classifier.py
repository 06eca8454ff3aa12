"""
Page Classifier - Map the navigation context onto logical pages.

Classification is a deterministic fallback chain over data: the platform's
ordered page table, then the breadcrumb trail, then inference from the URL.
It never raises for an unrecognised page; the worst case is an Unknown
page marked as ignored for page-object generation.
"""

import logging
from typing import List, Optional
from urllib.parse import urlencode

from flowscribe.exceptions import is_context_destroyed
from flowscribe.interfaces.dom import PageContext
from flowscribe.models.pages import (
    PATTERN_TO_TYPE,
    PageClassification,
    PageIdentity,
    PagePattern,
)
from flowscribe.platforms.base import TargetPlatform
from flowscribe.utils.identifiers import to_pascal_case
from flowscribe.utils.timeouts import read_or_default

logger = logging.getLogger(__name__)

UNKNOWN_PAGE_ID = "UnknownPage"
MAX_BREADCRUMB_LENGTH = 50


def unknown_page(url: str = "") -> PageClassification:
    return PageClassification(
        page_id=UNKNOWN_PAGE_ID,
        page_name="Unknown Page",
        pattern=PagePattern.UNKNOWN,
        url=url,
        ignore_for_pom=True,
    )


def form_name_to_page_id(form_name: str) -> str:
    """
    Turn a menu item or form name into a page id.
    
    ``CustGroup`` becomes ``CustGroupPage`` and a trailing ``Table`` is
    replaced, so ``SalesTable`` becomes ``SalesPage``.
    """
    base = form_name[:-len("Table")] if form_name.endswith("Table") else form_name
    page_id = to_pascal_case(base)
    return page_id if page_id.endswith("Page") else page_id + "Page"


class PageClassifier:
    """
    Classifies pages of one target platform.
    
    Example:
        >>> classifier = PageClassifier(get_platform("d365"))
        >>> result = classifier.classify_context(
        ...     "https://x.operations.dynamics.com/?cmp=USMF&mi=SalesTableListPage",
        ...     "All sales orders -- Finance and Operations",
        ... )
        >>> result.page_id
        'AllSalesOrdersListPage'
    """
    
    def __init__(self, platform: TargetPlatform, timeout_ms: int = 3000):
        self._platform = platform
        self._timeout_ms = timeout_ms
    
    @property
    def platform(self) -> TargetPlatform:
        return self._platform
    
    # ==================== Pure classification ====================
    
    def classify_context(
        self,
        url: str,
        title: str = "",
        breadcrumbs: Optional[List[str]] = None,
    ) -> PageClassification:
        """
        Classify a navigation context without touching the browser.
        
        Args:
            url: Current URL
            title: Document title
            breadcrumbs: Breadcrumb trail
            
        Returns:
            The classification; never raises
        """
        platform = self._platform
        breadcrumbs = breadcrumbs or []
        
        if platform.is_identity_provider(url):
            return PageClassification(
                page_id="AuthPage",
                page_name="Authentication",
                url=url,
                title=title,
                ignore_for_pom=True,
            )
        
        if platform.is_redirect_title(title):
            return PageClassification(
                page_id="RedirectingPage",
                page_name="Redirecting",
                url=url,
                title=title,
                ignore_for_pom=True,
            )
        
        if platform.is_sign_in_title(title):
            return PageClassification(
                page_id="SignInPage",
                page_name="Sign In",
                url=url,
                title=title,
                ignore_for_pom=True,
            )
        
        rule = platform.match_page_rule(url, title)
        if rule is None and breadcrumbs:
            rule = platform.match_page_rule(" > ".join(breadcrumbs))
        if rule is not None:
            return PageClassification(
                page_id=rule.page_id,
                page_name=rule.page_name,
                pattern=rule.pattern,
                url=url,
                title=title,
                breadcrumbs=breadcrumbs,
            )
        
        page_id = self.infer_page_id(url, title)
        pattern, keyword_matched = platform.infer_pattern(url)
        confident = platform.is_app_url(url) or keyword_matched
        page_name = platform.strip_title_noise(title) or title or "Unknown Page"
        return PageClassification(
            page_id=page_id,
            page_name=page_name,
            pattern=pattern,
            url=url,
            title=title,
            breadcrumbs=breadcrumbs,
            ignore_for_pom=not confident or page_id == UNKNOWN_PAGE_ID,
        )
    
    def infer_page_id(self, url: str, title: str) -> str:
        """
        Derive a page id from the menu item, the form parameter or the title.
        """
        platform = self._platform
        menu_item = platform.query_param(url, platform.menu_param)
        if menu_item:
            return form_name_to_page_id(menu_item)
        form = platform.query_param(url, platform.form_param)
        if form:
            return form_name_to_page_id(form)
        stripped = platform.strip_title_noise(title)
        if stripped:
            return to_pascal_case(stripped) + "Page"
        return UNKNOWN_PAGE_ID
    
    # ==================== Live pages ====================
    
    async def classify(self, page: PageContext) -> PageClassification:
        """
        Classify the live page.
        
        A mid-navigation URL read returns an ignored Unknown page at once.
        Title and breadcrumb reads that fail or time out default to empty.
        """
        try:
            url = page.current_url()
        except Exception as e:
            if is_context_destroyed(e):
                return unknown_page()
            raise
        
        await read_or_default(page.wait_for_load(), None, self._timeout_ms, "load state")
        title = await read_or_default(page.title(), "", self._timeout_ms, "title")
        
        breadcrumbs = await self.read_breadcrumbs(page)
        return self.classify_context(url, title, breadcrumbs)
    
    async def read_breadcrumbs(self, page: PageContext) -> List[str]:
        """Breadcrumb trail, falling back to short navigation link texts."""
        selectors = list(self._platform.breadcrumb_selectors)
        crumbs = await read_or_default(page.texts(selectors), [], self._timeout_ms, "breadcrumbs")
        if crumbs:
            return crumbs
        return await read_or_default(
            page.texts(["nav a", '[role="navigation"] a'], MAX_BREADCRUMB_LENGTH),
            [],
            self._timeout_ms,
            "navigation links",
        )
    
    async def read_caption(self, page: PageContext) -> Optional[str]:
        """Form caption from the platform's caption selectors, else the page title."""
        caption = await read_or_default(
            page.first_text(list(self._platform.caption_selectors)), None, self._timeout_ms, "caption"
        )
        if caption:
            return caption
        title = await read_or_default(page.title(), "", self._timeout_ms, "title")
        if title and self._platform.strip_title_noise(title) == title.strip():
            return title.strip()
        return None
    
    async def extract_identity(self, page: PageContext) -> Optional[PageIdentity]:
        """
        Build the PageIdentity of the live page.
        
        Returns:
            The identity, or None when the page is ignored for generation
        """
        try:
            url = page.current_url()
        except Exception as e:
            if is_context_destroyed(e):
                return None
            raise
        
        platform = self._platform
        menu_ref = platform.query_param(url, platform.menu_param)
        company_ref = platform.query_param(url, platform.company_param)
        
        classification = await self.classify(page)
        if classification.ignore_for_pom:
            logger.debug(f"Ignoring page {classification.page_id} at {url}")
            return None
        
        caption = await self.read_caption(page)
        
        route_path = None
        if menu_ref or company_ref:
            params = {}
            if company_ref:
                params[platform.company_param] = company_ref
            if menu_ref:
                params[platform.menu_param] = menu_ref
            route_path = f"/?{urlencode(params)}"
        
        return PageIdentity(
            page_id=classification.page_id,
            caption=caption or classification.page_name,
            type=PATTERN_TO_TYPE[classification.pattern],
            url=url,
            menu_ref=menu_ref,
            company_ref=company_ref,
            route_path=route_path,
            pattern=classification.pattern,
        )
