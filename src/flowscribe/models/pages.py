"""
Page classification and page identity models.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class PagePattern(str, Enum):
    """Coarse form patterns of the target application."""
    LIST_PAGE = "ListPage"
    DETAILS_PAGE = "DetailsPage"
    DIALOG = "Dialog"
    WORKSPACE = "Workspace"
    SIMPLE_LIST = "SimpleList"
    TABLE_OF_CONTENTS = "TableOfContents"
    UNKNOWN = "Unknown"


class PageType(str, Enum):
    LIST = "list"
    DETAILS = "details"
    DIALOG = "dialog"
    WORKSPACE = "workspace"
    UNKNOWN = "unknown"


PATTERN_TO_TYPE = {
    PagePattern.LIST_PAGE: PageType.LIST,
    PagePattern.SIMPLE_LIST: PageType.LIST,
    PagePattern.DETAILS_PAGE: PageType.DETAILS,
    PagePattern.DIALOG: PageType.DIALOG,
    PagePattern.WORKSPACE: PageType.WORKSPACE,
    PagePattern.TABLE_OF_CONTENTS: PageType.UNKNOWN,
    PagePattern.UNKNOWN: PageType.UNKNOWN,
}


@dataclass
class PageClassification:
    """
    Result of classifying the current navigation context.
    
    Attributes:
        page_id: Stable logical page slug
        page_name: Human-readable page name
        pattern: Coarse form pattern
        url: URL that was classified
        title: Document title at classification time
        breadcrumbs: Breadcrumb trail, outermost first
        ignore_for_pom: True for auth, redirect and unrecognised pages
    """
    page_id: str
    page_name: str
    pattern: PagePattern = PagePattern.UNKNOWN
    url: str = ""
    title: str = ""
    breadcrumbs: List[str] = field(default_factory=list)
    ignore_for_pom: bool = False
    
    @property
    def page_type(self) -> PageType:
        return PATTERN_TO_TYPE[self.pattern]


@dataclass
class PageIdentity:
    """
    Logical page a step belongs to.
    
    Two identities with the same ``page_id`` are the same page across
    sessions; the generator emits one page object per ``page_id``.
    """
    page_id: str
    caption: str
    type: PageType = PageType.UNKNOWN
    url: str = ""
    menu_ref: Optional[str] = None
    company_ref: Optional[str] = None
    route_path: Optional[str] = None
    pattern: PagePattern = PagePattern.UNKNOWN
    
    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "pageId": self.page_id,
            "caption": self.caption,
            "type": self.type.value,
            "pattern": self.pattern.value,
            "url": self.url,
        }
        if self.menu_ref:
            result["mi"] = self.menu_ref
        if self.company_ref:
            result["cmp"] = self.company_ref
        if self.route_path:
            result["routePath"] = self.route_path
        return result
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PageIdentity":
        return cls(
            page_id=data["pageId"],
            caption=data.get("caption") or data["pageId"],
            type=PageType(data.get("type", "unknown")),
            url=data.get("url", ""),
            menu_ref=data.get("mi"),
            company_ref=data.get("cmp"),
            route_path=data.get("routePath"),
            pattern=PagePattern(data.get("pattern", "Unknown")),
        )
