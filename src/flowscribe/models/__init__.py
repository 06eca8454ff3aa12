"""
Data models shared across the recording pipeline.
"""

from flowscribe.models.locators import (
    Locator,
    PlatformAttributeLocator,
    RoleLocator,
    LabelLocator,
    PlaceholderLocator,
    TextLocator,
    TestIdLocator,
    CssLocator,
    XPathLocator,
    BODY_FALLBACK,
    locator_from_dict,
    locator_key,
    is_body_fallback,
)
from flowscribe.models.events import (
    EventKind,
    ElementSnapshot,
    ElementRef,
    InteractionEvent,
)
from flowscribe.models.pages import (
    PagePattern,
    PageType,
    PageClassification,
    PageIdentity,
)
from flowscribe.models.steps import (
    StepAction,
    RecordedStep,
    Session,
    SessionState,
    steps_from_json,
    steps_to_json,
)

__all__ = [
    "Locator",
    "PlatformAttributeLocator",
    "RoleLocator",
    "LabelLocator",
    "PlaceholderLocator",
    "TextLocator",
    "TestIdLocator",
    "CssLocator",
    "XPathLocator",
    "BODY_FALLBACK",
    "locator_from_dict",
    "locator_key",
    "is_body_fallback",
    "EventKind",
    "ElementSnapshot",
    "ElementRef",
    "InteractionEvent",
    "PagePattern",
    "PageType",
    "PageClassification",
    "PageIdentity",
    "StepAction",
    "RecordedStep",
    "Session",
    "SessionState",
    "steps_from_json",
    "steps_to_json",
]
