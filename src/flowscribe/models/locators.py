"""
Locator descriptors.

A locator is one of a closed set of strategies, each its own frozen
dataclass. Structural equality is plain dataclass equality, which the step
cleaner relies on when collapsing duplicate clicks.

Example:
    >>> loc = RoleLocator(role="button", name="OK")
    >>> locator_key(loc)
    'role:button|OK'
    >>> locator_from_dict(loc.to_dict()) == loc
    True
"""

from dataclasses import dataclass, asdict
from typing import Any, ClassVar, Dict, Type, Union


@dataclass(frozen=True)
class PlatformAttributeLocator:
    """Platform-specific stable control attribute, e.g. ``data-dyn-controlname``."""
    name: str
    value: str
    
    strategy: ClassVar[str] = "platformAttribute"
    flagged: ClassVar[bool] = False
    
    @property
    def text(self) -> str:
        return self.value
    
    def to_dict(self) -> Dict[str, Any]:
        return {"strategy": self.strategy, **asdict(self)}


@dataclass(frozen=True)
class RoleLocator:
    """Accessible role plus accessible name."""
    role: str
    name: str
    
    strategy: ClassVar[str] = "role"
    flagged: ClassVar[bool] = False
    
    @property
    def text(self) -> str:
        return f"{self.role}|{self.name}"
    
    def to_dict(self) -> Dict[str, Any]:
        return {"strategy": self.strategy, **asdict(self)}


@dataclass(frozen=True)
class LabelLocator:
    text: str
    
    strategy: ClassVar[str] = "label"
    flagged: ClassVar[bool] = False
    
    def to_dict(self) -> Dict[str, Any]:
        return {"strategy": self.strategy, **asdict(self)}


@dataclass(frozen=True)
class PlaceholderLocator:
    text: str
    
    strategy: ClassVar[str] = "placeholder"
    flagged: ClassVar[bool] = False
    
    def to_dict(self) -> Dict[str, Any]:
        return {"strategy": self.strategy, **asdict(self)}


@dataclass(frozen=True)
class TextLocator:
    """Short visible text. ``exact`` matches the whole string only."""
    text: str
    exact: bool = True
    
    strategy: ClassVar[str] = "text"
    flagged: ClassVar[bool] = False
    
    def to_dict(self) -> Dict[str, Any]:
        return {"strategy": self.strategy, **asdict(self)}


@dataclass(frozen=True)
class TestIdLocator:
    value: str
    
    strategy: ClassVar[str] = "testId"
    flagged: ClassVar[bool] = False
    __test__: ClassVar[bool] = False
    
    @property
    def text(self) -> str:
        return self.value
    
    def to_dict(self) -> Dict[str, Any]:
        return {"strategy": self.strategy, **asdict(self)}


@dataclass(frozen=True)
class CssLocator:
    """CSS fallback. Fragile, so flagged unless explicitly cleared."""
    selector: str
    flagged: bool = True
    
    strategy: ClassVar[str] = "css"
    
    @property
    def text(self) -> str:
        return self.selector
    
    def to_dict(self) -> Dict[str, Any]:
        return {"strategy": self.strategy, **asdict(self)}


@dataclass(frozen=True)
class XPathLocator:
    expression: str
    flagged: bool = True
    
    strategy: ClassVar[str] = "xpath"
    
    @property
    def text(self) -> str:
        return self.expression
    
    def to_dict(self) -> Dict[str, Any]:
        return {"strategy": self.strategy, **asdict(self)}


Locator = Union[
    PlatformAttributeLocator,
    RoleLocator,
    LabelLocator,
    PlaceholderLocator,
    TextLocator,
    TestIdLocator,
    CssLocator,
    XPathLocator,
]

LOCATOR_TYPES: Dict[str, Type] = {
    cls.strategy: cls
    for cls in (
        PlatformAttributeLocator,
        RoleLocator,
        LabelLocator,
        PlaceholderLocator,
        TextLocator,
        TestIdLocator,
        CssLocator,
        XPathLocator,
    )
}

BODY_FALLBACK = CssLocator(selector="body", flagged=True)


def locator_from_dict(data: Dict[str, Any]) -> Locator:
    """
    Rebuild a locator from its ``to_dict()`` form.
    
    Raises:
        ValueError: if the strategy is unknown
    """
    fields = dict(data)
    strategy = fields.pop("strategy", None)
    cls = LOCATOR_TYPES.get(strategy)
    if cls is None:
        raise ValueError(f"Unknown locator strategy: {strategy!r}")
    return cls(**fields)


def locator_key(locator: Locator) -> str:
    """Key used by the locator status registry: ``"{strategy}:{text}"``."""
    return f"{locator.strategy}:{locator.text}"


def is_body_fallback(locator: Locator | None) -> bool:
    return isinstance(locator, CssLocator) and locator.selector == "body"
