"""
Target platform interface.

Everything the recorder knows about one application family lives behind
this interface: its stable control attribute, its identity-provider hosts,
its ordered page pattern table, and how its navigation pane and heavy
server round-trips look. Supporting a new application means supplying a
new table and a handful of predicates, not touching the pipeline.
"""

import re
from abc import ABC
from dataclasses import dataclass
from typing import ClassVar, List, Optional, Pattern, Tuple
from urllib.parse import parse_qs, urlparse

from flowscribe.models.events import ElementSnapshot
from flowscribe.models.pages import PagePattern
from flowscribe.utils.identifiers import strip_weird_glyphs


@dataclass(frozen=True)
class PageRule:
    """One row of the ordered page pattern table."""
    marker: str
    page_id: str
    page_name: str
    pattern: PagePattern


class TargetPlatform(ABC):
    """
    Capability interface for a target application family.
    
    Subclasses override the class-level tables; the predicates below are
    written against those tables and rarely need overriding.
    """
    
    name: ClassVar[str] = "base"
    
    # Locators
    stable_attribute: ClassVar[Optional[str]] = None
    
    # Auth and redirects
    identity_provider_hosts: ClassVar[Tuple[str, ...]] = ()
    redirect_url_markers: ClassVar[Tuple[str, ...]] = ()
    redirect_title_patterns: ClassVar[Tuple[Pattern[str], ...]] = ()
    sign_in_title_patterns: ClassVar[Tuple[Pattern[str], ...]] = ()
    sign_in_vendor_pattern: ClassVar[Optional[Pattern[str]]] = None
    ignored_page_ids: ClassVar[Tuple[str, ...]] = ("AuthPage", "RedirectingPage", "SignInPage")
    
    # Classification
    page_rules: ClassVar[Tuple[PageRule, ...]] = ()
    menu_param: ClassVar[str] = "mi"
    company_param: ClassVar[str] = "cmp"
    form_param: ClassVar[str] = "form"
    title_noise: ClassVar[Optional[Pattern[str]]] = None
    app_url_markers: ClassVar[Tuple[str, ...]] = ()
    caption_selectors: ClassVar[Tuple[str, ...]] = ("h1",)
    breadcrumb_selectors: ClassVar[Tuple[str, ...]] = ('[aria-label*="breadcrumb"]', ".breadcrumb")
    
    # Navigation pane
    nav_class_markers: ClassVar[Tuple[str, ...]] = ()
    nav_id_markers: ClassVar[Tuple[str, ...]] = ()
    nav_control_marker: ClassVar[Optional[str]] = None
    expand_nav_control_names: ClassVar[Tuple[str, ...]] = ()
    expand_nav_label_markers: ClassVar[Tuple[str, ...]] = ()
    
    # Heavy actions
    heavy_control_names: ClassVar[Tuple[str, ...]] = ()
    heavy_button_names: ClassVar[Tuple[str, ...]] = ()
    
    # Generated base page
    busy_selectors: ClassVar[Tuple[str, ...]] = ()
    shell_selectors: ClassVar[Tuple[str, ...]] = ()
    # iframe holding the page content; None when it lives in the top document
    content_frame_selector: ClassVar[Optional[str]] = None
    
    # ==================== URLs and titles ====================
    
    def host_of(self, url: str) -> str:
        try:
            return (urlparse(url).hostname or "").lower()
        except ValueError:
            return ""
    
    def is_identity_provider(self, url: str) -> bool:
        host = self.host_of(url)
        return bool(host) and any(idp in host for idp in self.identity_provider_hosts)
    
    def is_redirect_title(self, title: str) -> bool:
        return any(p.search(title) for p in self.redirect_title_patterns)
    
    def is_sign_in_title(self, title: str) -> bool:
        if any(p.search(title) for p in self.sign_in_title_patterns):
            return True
        return bool(
            self.sign_in_vendor_pattern
            and re.search(r"sign in", title, re.IGNORECASE)
            and self.sign_in_vendor_pattern.search(title)
        )
    
    def is_ignored_navigation(
        self,
        url: Optional[str],
        description: str = "",
        page_id: str = "",
    ) -> bool:
        """Auth, sign-in and redirect hops that never belong in a script."""
        if page_id in self.ignored_page_ids:
            return True
        if url:
            if self.is_identity_provider(url):
                return True
            lowered = url.lower()
            if any(marker in lowered for marker in self.redirect_url_markers):
                return True
        return "Redirecting" in (description or "")
    
    def is_app_url(self, url: str) -> bool:
        lowered = url.lower()
        return any(marker in lowered for marker in self.app_url_markers)
    
    def query_param(self, url: str, name: str) -> Optional[str]:
        try:
            values = parse_qs(urlparse(url).query).get(name)
        except ValueError:
            return None
        return values[0] if values and values[0] else None
    
    def strip_title_noise(self, title: str) -> str:
        if self.title_noise is None:
            return title.strip()
        cleaned = self.title_noise.sub("", title)
        return re.sub(r"\s+", " ", cleaned).strip(" -|")
    
    def match_page_rule(self, *texts: str) -> Optional[PageRule]:
        """
        Find the table row whose marker occurs in any of ``texts``.
        
        The most specific (longest) marker wins, so ``SalesTableListPage``
        is never mistaken for ``SalesTable``. Ties keep table order.
        """
        best: Optional[PageRule] = None
        for rule in self.page_rules:
            if any(rule.marker in text for text in texts if text):
                if best is None or len(rule.marker) > len(best.marker):
                    best = rule
        return best
    
    def infer_pattern(self, url: str) -> Tuple[PagePattern, bool]:
        """
        Infer a page pattern from URL keywords.
        
        Returns:
            The pattern and whether a keyword actually matched (False means
            the details-page default was used)
        """
        if "ListPage" in url or "List" in url:
            return PagePattern.LIST_PAGE, True
        if "Workspace" in url:
            return PagePattern.WORKSPACE, True
        if "Dialog" in url or "dialog" in url:
            return PagePattern.DIALOG, True
        if "Parameters" in url or "Setup" in url:
            return PagePattern.TABLE_OF_CONTENTS, True
        return PagePattern.DETAILS_PAGE, False
    
    # ==================== Elements ====================
    
    def stable_attribute_value(self, snapshot: ElementSnapshot) -> str:
        return snapshot.control_name if self.stable_attribute else ""
    
    def is_nav_container(self, snapshot: ElementSnapshot) -> bool:
        """A single element that marks the navigation pane."""
        if snapshot.role == "navigation":
            return True
        class_name = snapshot.class_name
        if any(marker in class_name for marker in self.nav_class_markers):
            return True
        if any(marker in snapshot.element_id for marker in self.nav_id_markers):
            return True
        return bool(
            self.nav_control_marker and self.nav_control_marker in snapshot.control_name
        )
    
    def is_expand_nav_control(self, snapshot: ElementSnapshot) -> bool:
        """The hamburger button that opens the navigation pane."""
        if snapshot.control_name and snapshot.control_name in self.expand_nav_control_names:
            return True
        aria = snapshot.aria_label.lower()
        title = snapshot.title.lower()
        if any(m in aria or m in title for m in self.expand_nav_label_markers):
            return True
        if snapshot.is_button:
            label = (snapshot.aria_label or snapshot.title).lower()
            return "navigation" in label and ("expand" in label or "menu" in label)
        return False
    
    def is_heavy_control(self, control_name: str) -> bool:
        """Whether a stable-attribute value names a server round-trip control."""
        lowered = control_name.lower()
        if not lowered:
            return False
        return any(
            lowered == c.lower() or c.lower() in lowered or lowered in c.lower()
            for c in self.heavy_control_names
        )
    
    def is_heavy_button(self, name: str) -> bool:
        normalized = strip_weird_glyphs(name or "").lower()
        if not normalized:
            return False
        return any(
            normalized == b.lower() or normalized.endswith(b.lower())
            for b in self.heavy_button_names
        )
    
    def page_ids(self) -> List[str]:
        return [rule.page_id for rule in self.page_rules]
