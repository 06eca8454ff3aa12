"""
Recorded steps and recording sessions.
"""

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from flowscribe.exceptions import SessionFrozenError, StepValidationError
from flowscribe.models.locators import Locator, locator_from_dict
from flowscribe.models.pages import PageIdentity, PageType


class StepAction(str, Enum):
    """Actions a recorded step can carry."""
    CLICK = "click"
    FILL = "fill"
    SELECT = "select"
    NAVIGATE = "navigate"
    WAIT = "wait"
    ASSERT = "assert"
    COMMENT = "comment"


LOCATOR_REQUIRED = frozenset({StepAction.CLICK, StepAction.FILL, StepAction.SELECT})
LOCATOR_FORBIDDEN = frozenset({StepAction.NAVIGATE, StepAction.WAIT, StepAction.COMMENT})
USER_ACTIONS = frozenset(
    {StepAction.CLICK, StepAction.FILL, StepAction.SELECT, StepAction.ASSERT}
)

# field-name suffix of fills on type-ahead comboboxes, committed with Enter
LOOKUP_SUFFIX = "Lookup"

ASSERTIONS = frozenset({
    "toHaveText",
    "toContainText",
    "toBeVisible",
    "toHaveURL",
    "toHaveTitle",
    "toBeChecked",
    "toHaveValue",
    "toHaveAttribute",
})


@dataclass
class RecordedStep:
    """
    A single step of a recorded flow.
    
    Invariants (checked on construction):
        - click, fill and select carry a locator
        - navigate, wait and comment never do
        - assert carries a known assertion; page-level assertions
          (toHaveURL, toHaveTitle) need no locator
    """
    page_id: str
    action: StepAction
    description: str
    order: int
    timestamp: float
    locator: Optional[Locator] = None
    value: Optional[str] = None
    field_name: Optional[str] = None
    method_name: Optional[str] = None
    page_url: Optional[str] = None
    menu_ref: Optional[str] = None
    company_ref: Optional[str] = None
    page_type: Optional[PageType] = None
    assertion: Optional[str] = None
    expected: Optional[str] = None
    
    def __post_init__(self) -> None:
        self.action = StepAction(self.action)
        if self.action in LOCATOR_REQUIRED and self.locator is None:
            raise StepValidationError(
                f"{self.action.value} step requires a locator", order=self.order
            )
        if self.action in LOCATOR_FORBIDDEN and self.locator is not None:
            raise StepValidationError(
                f"{self.action.value} step must not carry a locator", order=self.order
            )
        if self.action == StepAction.ASSERT:
            if self.assertion not in ASSERTIONS:
                raise StepValidationError(
                    f"Unknown assertion: {self.assertion!r}", order=self.order
                )
            if self.locator is None and self.assertion not in ("toHaveURL", "toHaveTitle"):
                raise StepValidationError(
                    f"{self.assertion} needs a locator", order=self.order
                )
    
    @property
    def is_user_action(self) -> bool:
        return self.action in USER_ACTIONS
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase on-disk form."""
        result: Dict[str, Any] = {
            "pageId": self.page_id,
            "action": self.action.value,
            "description": self.description,
            "order": self.order,
            "timestamp": self.timestamp,
        }
        optional = {
            "locator": self.locator.to_dict() if self.locator else None,
            "value": self.value,
            "fieldName": self.field_name,
            "methodName": self.method_name,
            "pageUrl": self.page_url,
            "mi": self.menu_ref,
            "cmp": self.company_ref,
            "pageType": self.page_type.value if self.page_type else None,
            "assertion": self.assertion,
            "expected": self.expected,
        }
        result.update({k: v for k, v in optional.items() if v is not None})
        return result
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RecordedStep":
        """
        Create from dictionary.
        
        Raises:
            StepValidationError: for missing keys or broken invariants
        """
        try:
            locator = data.get("locator")
            page_type = data.get("pageType")
            return cls(
                page_id=data["pageId"],
                action=StepAction(data["action"]),
                description=data.get("description", ""),
                order=int(data["order"]),
                timestamp=float(data.get("timestamp", 0)),
                locator=locator_from_dict(locator) if locator else None,
                value=data.get("value"),
                field_name=data.get("fieldName"),
                method_name=data.get("methodName"),
                page_url=data.get("pageUrl"),
                menu_ref=data.get("mi"),
                company_ref=data.get("cmp"),
                page_type=PageType(page_type) if page_type else None,
                assertion=data.get("assertion"),
                expected=data.get("expected"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise StepValidationError(f"Malformed step: {e}", order=data.get("order")) from e


def steps_to_json(steps: List[RecordedStep], indent: int = 2) -> str:
    return json.dumps([s.to_dict() for s in steps], indent=indent)


def steps_from_json(text: str) -> List[RecordedStep]:
    data = json.loads(text)
    if isinstance(data, dict):
        data = data.get("steps", [])
    return [RecordedStep.from_dict(item) for item in data]


class SessionState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    STOPPED = "stopped"


@dataclass
class Session:
    """
    A recording session.
    
    Mutated only by the recording engine while recording; frozen on stop.
    
    Example:
        >>> session = Session(flow_name="create_sales_order")
        >>> session.freeze()
        >>> session.frozen
        True
    """
    flow_name: str
    target_url: str = ""
    module: Optional[str] = None
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    steps: List[RecordedStep] = field(default_factory=list)
    current_identity: Optional[PageIdentity] = None
    identities: Dict[str, PageIdentity] = field(default_factory=dict)
    started_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    finished_at: Optional[str] = None
    state: SessionState = SessionState.IDLE
    
    @property
    def frozen(self) -> bool:
        return self.state == SessionState.STOPPED
    
    @property
    def next_order(self) -> int:
        return self.steps[-1].order + 1 if self.steps else 1
    
    def append(self, step: RecordedStep) -> None:
        """
        Append a step, enforcing strictly increasing order.
        
        Raises:
            SessionFrozenError: if the session has been stopped
            StepValidationError: if the order does not increase
        """
        if self.frozen:
            raise SessionFrozenError(
                "Cannot append to a stopped session", {"session_id": self.session_id}
            )
        if self.steps and step.order <= self.steps[-1].order:
            raise StepValidationError(
                f"Step order {step.order} does not follow {self.steps[-1].order}",
                order=step.order,
            )
        self.steps.append(step)
    
    def remember_identity(self, identity: PageIdentity) -> None:
        self.current_identity = identity
        self.identities[identity.page_id] = identity
    
    def freeze(self) -> None:
        if not self.frozen:
            self.state = SessionState.STOPPED
            self.finished_at = datetime.now(timezone.utc).isoformat()
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "flowName": self.flow_name,
            "module": self.module,
            "targetUrl": self.target_url,
            "startedAt": self.started_at,
            "finishedAt": self.finished_at,
            "state": self.state.value,
            "pages": [i.to_dict() for i in self.identities.values()],
            "steps": [s.to_dict() for s in self.steps],
        }
    
    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Session":
        session = cls(
            flow_name=data.get("flowName", "recording"),
            target_url=data.get("targetUrl", ""),
            module=data.get("module"),
            session_id=data.get("sessionId") or uuid.uuid4().hex[:12],
            started_at=data.get("startedAt") or datetime.now(timezone.utc).isoformat(),
            finished_at=data.get("finishedAt"),
        )
        for item in data.get("pages", []):
            session.remember_identity(PageIdentity.from_dict(item))
        session.steps = [RecordedStep.from_dict(s) for s in data.get("steps", [])]
        session.state = SessionState(data.get("state", SessionState.STOPPED.value))
        return session
