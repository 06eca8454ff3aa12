"""
Interaction events and element snapshots.

The in-page capture script serializes the event target together with its
ancestor chain. Everything the recorder decides about a click (which
ancestor was really meant, whether it sits in the navigation pane, what to
call it) is decided in Python over that chain.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

INTERACTIVE_ROLES = frozenset(
    {"button", "link", "menuitem", "treeitem", "tab", "checkbox", "radio"}
)
INTERACTIVE_TAGS = frozenset({"button", "a"})
LINK_ROLES = frozenset({"link", "treeitem"})


class EventKind(str, Enum):
    """Raw signals the capture layer reports."""
    CLICK = "click"
    INPUT = "input"
    CHANGE = "change"
    NAVIGATE = "navigate"


@dataclass
class ElementSnapshot:
    """
    Read-only view of one DOM element.
    
    Attributes:
        tag: Lower-case tag name
        role: Explicit ``role`` attribute
        element_id: ``id`` attribute
        classes: Class list
        aria_label: ``aria-label`` attribute
        title: ``title`` attribute
        placeholder: ``placeholder`` attribute
        name: ``name`` attribute
        control_name: Platform stable-control attribute value
        test_id: ``data-test-id`` / ``data-testid`` / ``data-qa``
        direct_text: Text of direct text-node children only
        text: Trimmed textContent, only when short enough to be meaningful
        label_text: Text of an associated ``<label>``
        input_type: ``type`` attribute of inputs
        path: CSS path used to re-find the element in its frame
    """
    tag: str = ""
    role: str = ""
    element_id: str = ""
    classes: List[str] = field(default_factory=list)
    aria_label: str = ""
    title: str = ""
    placeholder: str = ""
    name: str = ""
    control_name: str = ""
    test_id: str = ""
    direct_text: str = ""
    text: str = ""
    label_text: str = ""
    input_type: str = ""
    path: str = ""
    
    @property
    def class_name(self) -> str:
        return " ".join(self.classes)
    
    @property
    def is_interactive(self) -> bool:
        return self.role in INTERACTIVE_ROLES or self.tag in INTERACTIVE_TAGS
    
    @property
    def is_link_like(self) -> bool:
        return self.tag == "a" or self.role in LINK_ROLES
    
    @property
    def is_button(self) -> bool:
        return self.tag == "button" or self.role == "button"
    
    @property
    def visible_text(self) -> str:
        """Direct text if any, else the bounded full text."""
        return self.direct_text or self.text
    
    @property
    def label(self) -> str:
        """Combined label: aria-label, then text, then title."""
        return self.aria_label or self.visible_text or self.title
    
    def has_any_label(self) -> bool:
        return bool(self.aria_label or self.visible_text or self.title)
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "tag": self.tag,
            "role": self.role,
            "id": self.element_id,
            "classes": list(self.classes),
            "ariaLabel": self.aria_label,
            "title": self.title,
            "placeholder": self.placeholder,
            "name": self.name,
            "controlName": self.control_name,
            "testId": self.test_id,
            "directText": self.direct_text,
            "text": self.text,
            "labelText": self.label_text,
            "inputType": self.input_type,
            "path": self.path,
        }
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ElementSnapshot":
        classes = data.get("classes") or []
        if isinstance(classes, str):
            classes = classes.split()
        return cls(
            tag=(data.get("tag") or "").lower(),
            role=data.get("role") or "",
            element_id=data.get("id") or "",
            classes=[c for c in classes if c],
            aria_label=(data.get("ariaLabel") or "").strip(),
            title=(data.get("title") or "").strip(),
            placeholder=(data.get("placeholder") or "").strip(),
            name=data.get("name") or "",
            control_name=data.get("controlName") or "",
            test_id=data.get("testId") or "",
            direct_text=(data.get("directText") or "").strip(),
            text=(data.get("text") or "").strip(),
            label_text=(data.get("labelText") or "").strip(),
            input_type=data.get("inputType") or "",
            path=data.get("path") or "",
        )


@dataclass
class ElementRef:
    """
    The event target plus its ancestors, target first.
    
    ``key`` identifies the element stably across events (frame URL plus
    CSS path), which the input debouncer uses instead of object identity.
    """
    chain: List[ElementSnapshot]
    frame_url: str = ""
    
    @property
    def target(self) -> ElementSnapshot:
        return self.chain[0]
    
    @property
    def key(self) -> str:
        return f"{self.frame_url}::{self.target.path}"
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "chain": [s.to_dict() for s in self.chain],
            "frameUrl": self.frame_url,
        }
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ElementRef":
        chain = [ElementSnapshot.from_dict(s) for s in data.get("chain", [])]
        if not chain:
            raise ValueError("Element reference has an empty ancestor chain")
        return cls(chain=chain, frame_url=data.get("frameUrl") or "")


@dataclass
class InteractionEvent:
    """
    One normalized browser signal, consumed once by the recording engine.
    
    Attributes:
        kind: click, input, change or navigate
        timestamp: Seconds since the epoch
        element: Target element and ancestors (absent for navigate)
        value: Input value for input/change
        url: Destination for navigate
        client_x: Horizontal click position, for the left-edge fallback
    """
    kind: EventKind
    timestamp: float
    element: Optional[ElementRef] = None
    value: Optional[str] = None
    url: Optional[str] = None
    client_x: Optional[float] = None
    
    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"kind": self.kind.value, "timestamp": self.timestamp}
        if self.element:
            result["element"] = self.element.to_dict()
        if self.value is not None:
            result["value"] = self.value
        if self.url:
            result["url"] = self.url
        if self.client_x is not None:
            result["clientX"] = self.client_x
        return result
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InteractionEvent":
        element = data.get("element")
        return cls(
            kind=EventKind(data["kind"]),
            timestamp=float(data.get("timestamp", 0)),
            element=ElementRef.from_dict(element) if element else None,
            value=data.get("value"),
            url=data.get("url"),
            client_x=data.get("clientX"),
        )
