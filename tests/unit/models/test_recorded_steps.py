"""
Tests for locator descriptors, recorded steps and sessions.
"""

import pytest

from flowscribe.exceptions import SessionFrozenError, StepValidationError
from flowscribe.models.events import ElementSnapshot, EventKind, InteractionEvent
from flowscribe.models.locators import (
    BODY_FALLBACK,
    CssLocator,
    PlatformAttributeLocator,
    RoleLocator,
    TextLocator,
    is_body_fallback,
    locator_from_dict,
    locator_key,
)
from flowscribe.models.pages import PageType
from flowscribe.models.steps import (
    RecordedStep,
    Session,
    SessionState,
    StepAction,
    steps_from_json,
    steps_to_json,
)


class TestLocators:
    """Tests for locator descriptors."""

    def test_structural_equality(self):
        """Test that equal fields mean equal locators."""
        assert RoleLocator("button", "OK") == RoleLocator("button", "OK")
        assert RoleLocator("button", "OK") != RoleLocator("link", "OK")

    def test_locator_key(self):
        """Test status registry keys."""
        assert locator_key(PlatformAttributeLocator("data-dyn-controlname", "SaveBtn")) == "platformAttribute:SaveBtn"
        assert locator_key(RoleLocator("button", "OK")) == "role:button|OK"
        assert locator_key(TextLocator("Sales orders")) == "text:Sales orders"

    def test_from_dict(self):
        """Test rebuilding from the on-disk form."""
        data = {"strategy": "css", "selector": "div.row", "flagged": True}
        assert locator_from_dict(data) == CssLocator("div.row")

    def test_unknown_strategy(self):
        """Test that unknown strategies are rejected."""
        with pytest.raises(ValueError, match="Unknown locator strategy"):
            locator_from_dict({"strategy": "magic", "value": "x"})

    def test_css_is_flagged(self):
        """Test that only fallbacks are flagged."""
        assert CssLocator("div").flagged
        assert not RoleLocator("button", "OK").flagged

    def test_body_fallback(self):
        assert is_body_fallback(BODY_FALLBACK)
        assert not is_body_fallback(CssLocator("#main"))
        assert not is_body_fallback(None)


class TestRecordedStep:
    """Tests for RecordedStep invariants."""

    def test_click_requires_locator(self):
        """Test that a click without a locator is rejected."""
        with pytest.raises(StepValidationError) as exc_info:
            RecordedStep("P", StepAction.CLICK, "Click", order=3, timestamp=0)
        assert exc_info.value.details == {"order": 3}

    def test_navigate_forbids_locator(self):
        """Test that a navigation carrying a locator is rejected."""
        with pytest.raises(StepValidationError):
            RecordedStep(
                "P", StepAction.NAVIGATE, "Navigate", order=1, timestamp=0,
                locator=CssLocator("body"),
            )

    def test_assert_needs_known_assertion(self):
        """Test assertion validation."""
        with pytest.raises(StepValidationError, match="Unknown assertion"):
            RecordedStep("P", StepAction.ASSERT, "Check", order=1, timestamp=0, assertion="toExist")

    def test_page_level_assertion_without_locator(self):
        """Test that URL assertions need no locator."""
        step = RecordedStep(
            "P", StepAction.ASSERT, "Check URL", order=1, timestamp=0,
            assertion="toHaveURL", expected="https://x",
        )
        assert step.locator is None

    def test_element_assertion_needs_locator(self):
        with pytest.raises(StepValidationError, match="needs a locator"):
            RecordedStep("P", StepAction.ASSERT, "Check", order=1, timestamp=0, assertion="toHaveText")

    def test_to_dict_uses_wire_names(self):
        """Test the camelCase on-disk form."""
        step = RecordedStep(
            "SalesOrderDetailsPage", StepAction.FILL, "Fill Customer account", order=4, timestamp=1.5,
            locator=PlatformAttributeLocator("data-dyn-controlname", "CustAccount"),
            value="US-001", field_name="customerAccountInput", method_name="fillCustomerAccount",
            menu_ref="SalesTable", company_ref="USMF", page_type=PageType.DETAILS,
        )
        data = step.to_dict()
        assert data["pageId"] == "SalesOrderDetailsPage"
        assert data["fieldName"] == "customerAccountInput"
        assert data["mi"] == "SalesTable"
        assert data["cmp"] == "USMF"
        assert data["pageType"] == "details"
        assert "assertion" not in data
        assert RecordedStep.from_dict(data) == step

    def test_from_dict_malformed(self):
        """Test that missing keys raise StepValidationError."""
        with pytest.raises(StepValidationError, match="Malformed step"):
            RecordedStep.from_dict({"action": "click", "order": 2})

    def test_steps_json_accepts_wrapper(self, nav, click):
        """Test reading both bare lists and {"steps": [...]}."""
        steps = [nav(1), click(2)]
        text = steps_to_json(steps)
        assert steps_from_json(text) == steps
        assert steps_from_json('{"steps": ' + text + "}") == steps


class TestSession:
    """Tests for Session."""

    def test_next_order(self, nav, click):
        """Test that orders start at 1 and follow the last step."""
        session = Session(flow_name="flow")
        assert session.next_order == 1
        session.append(nav(1))
        session.append(click(5))
        assert session.next_order == 6

    def test_append_rejects_non_increasing_order(self, nav, click):
        session = Session(flow_name="flow")
        session.append(nav(2))
        with pytest.raises(StepValidationError):
            session.append(click(2))

    def test_frozen_session(self, nav):
        """Test that a stopped session refuses new steps."""
        session = Session(flow_name="flow")
        session.freeze()
        assert session.frozen
        assert session.finished_at is not None
        with pytest.raises(SessionFrozenError):
            session.append(nav(1))

    def test_round_trip_keeps_identities(self, nav, list_identity):
        """Test that a saved session restores pages and state."""
        session = Session(flow_name="create_order", target_url=list_identity.url, module="sales")
        session.remember_identity(list_identity)
        session.append(nav(1))
        session.freeze()

        restored = Session.from_dict(session.to_dict())
        assert restored.flow_name == "create_order"
        assert restored.module == "sales"
        assert restored.identities["AllSalesOrdersListPage"] == list_identity
        assert restored.steps == session.steps
        assert restored.state == SessionState.STOPPED


class TestEvents:
    """Tests for capture payload parsing."""

    def test_snapshot_from_dict(self):
        """Test normalization of the serialized element."""
        snapshot = ElementSnapshot.from_dict({
            "tag": "BUTTON",
            "classes": "button dynamicsButton  ",
            "ariaLabel": "  New ",
            "controlName": "SystemDefinedNewButton",
        })
        assert snapshot.tag == "button"
        assert snapshot.classes == ["button", "dynamicsButton"]
        assert snapshot.aria_label == "New"
        assert snapshot.is_button
        assert snapshot.is_interactive

    def test_event_from_dict(self):
        event = InteractionEvent.from_dict({
            "kind": "click",
            "timestamp": 12,
            "element": {"chain": [{"tag": "span", "path": "span"}], "frameUrl": "about:blank"},
            "clientX": 40,
        })
        assert event.kind == EventKind.CLICK
        assert event.element.key == "about:blank::span"
        assert event.client_x == 40

    def test_empty_chain_rejected(self):
        with pytest.raises(ValueError):
            InteractionEvent.from_dict({"kind": "click", "timestamp": 0, "element": {"chain": []}})
