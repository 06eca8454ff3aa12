"""
Tests for StepCleaner.
"""

import pytest

from flowscribe.cleaning import StepCleaner, clean
from flowscribe.models.locators import PlatformAttributeLocator, RoleLocator
from flowscribe.models.steps import StepAction

TARGET_URL = "https://usmf.operations.dynamics.com/?cmp=USMF&mi=SalesTableListPage"
LOGIN_URL = "https://login.microsoftonline.com/common/oauth2/authorize?client_id=abc"
DIALOG_URL = "https://usmf.operations.dynamics.com/?cmp=USMF&mi=SalesCreateOrder"

NEW_BUTTON = PlatformAttributeLocator("data-dyn-controlname", "SystemDefinedNewButton")
OK_BUTTON = RoleLocator("button", "OK")


@pytest.fixture
def cleaner(platform):
    return StepCleaner(platform)


def orders(steps):
    return [s.order for s in steps]


class TestNavigationCleanup:
    """Tests for navigation filtering."""

    def test_sign_in_redirect_chain(self, cleaner, nav, click):
        """Test that a sign-in hop chain collapses to the target page and the click."""
        steps = [
            nav(1, LOGIN_URL, page_id="AuthPage"),
            nav(2, "https://usmf.operations.dynamics.com/", page_id="RedirectingPage"),
            nav(3, TARGET_URL),
            click(4, NEW_BUTTON),
            nav(5, DIALOG_URL, page_id="SalesCreateOrderPage"),
        ]
        cleaned = cleaner.clean(steps)
        assert orders(cleaned) == [3, 4]
        assert cleaned[0].page_url == TARGET_URL

    def test_intermediate_navigation(self, cleaner, nav, click):
        """Test that only the last of back-to-back navigations survives."""
        steps = [nav(1, TARGET_URL), nav(2, DIALOG_URL), click(3)]
        assert orders(cleaner.clean(steps)) == [2, 3]

    def test_intermediate_looks_past_waits_comments_and_ignored(self, cleaner, nav, make_step):
        steps = [
            nav(1, TARGET_URL),
            make_step(StepAction.WAIT, 2),
            nav(3, LOGIN_URL, page_id="AuthPage"),
            make_step(StepAction.COMMENT, 4, description="Open the order"),
            nav(5, DIALOG_URL),
            make_step(StepAction.FILL, 6, value="US-001"),
        ]
        assert orders(cleaner.clean(steps)) == [4, 5, 6]

    def test_ignored_navigation_does_not_make_previous_intermediate(self, cleaner, nav, click):
        steps = [nav(1, TARGET_URL), nav(2, LOGIN_URL), click(3)]
        assert orders(cleaner.clean(steps)) == [1, 3]

    def test_navigation_after_click_dropped(self, cleaner, nav, click, make_step):
        """Test that a click's own route change is not replayed."""
        steps = [nav(1), click(2), nav(3, DIALOG_URL), make_step(StepAction.FILL, 4, value="x")]
        assert orders(cleaner.clean(steps)) == [1, 2, 4]

    def test_navigation_after_fill_kept(self, cleaner, nav, make_step):
        steps = [nav(1), make_step(StepAction.FILL, 2, value="x"), nav(3, DIALOG_URL)]
        assert orders(cleaner.clean(steps)) == [1, 2, 3]

    def test_is_ignored_navigation_only_for_navigations(self, cleaner, click):
        assert not cleaner.is_ignored_navigation(click(1))


class TestClickCleanup:
    """Tests for duplicate clicks and waits."""

    def test_consecutive_duplicate_clicks(self, cleaner, nav, click):
        steps = [nav(1), click(2, NEW_BUTTON), click(3, NEW_BUTTON), click(4, OK_BUTTON), click(5, NEW_BUTTON)]
        assert orders(cleaner.clean(steps)) == [1, 2, 4, 5]

    def test_duplicate_after_other_action_kept(self, cleaner, click, make_step):
        steps = [click(1, NEW_BUTTON), make_step(StepAction.FILL, 2, value="a"), click(3, NEW_BUTTON)]
        assert orders(cleaner.clean(steps)) == [1, 2, 3]

    def test_comment_does_not_reset_last_click(self, cleaner, click, make_step):
        """Test that comments are kept but invisible to duplicate detection."""
        steps = [click(1, OK_BUTTON), make_step(StepAction.COMMENT, 2), click(3, OK_BUTTON)]
        cleaned = cleaner.clean(steps)
        assert orders(cleaned) == [1, 2]
        assert cleaned[1].action == StepAction.COMMENT

    def test_waits_dropped(self, cleaner, click, make_step):
        steps = [click(1), make_step(StepAction.WAIT, 2), make_step(StepAction.WAIT, 3)]
        assert orders(cleaner.clean(steps)) == [1]


class TestCleanerProperties:
    """Tests for purity and idempotence."""

    @pytest.fixture
    def recording(self, nav, click, make_step):
        return [
            nav(1, LOGIN_URL, page_id="AuthPage"),
            nav(2, TARGET_URL),
            nav(3, TARGET_URL),
            click(4, NEW_BUTTON),
            click(5, NEW_BUTTON),
            nav(6, DIALOG_URL),
            make_step(StepAction.WAIT, 7),
            make_step(StepAction.FILL, 8, value="US-001"),
            make_step(StepAction.COMMENT, 9),
            click(10, OK_BUTTON),
            nav(11, TARGET_URL),
        ]

    def test_idempotent(self, cleaner, recording):
        once = cleaner.clean(recording)
        assert orders(once) == [3, 4, 8, 9, 10]
        assert cleaner.clean(once) == once

    def test_input_not_modified(self, cleaner, recording):
        before = list(recording)
        cleaner.clean(recording)
        assert recording == before

    def test_module_function(self, recording, platform):
        assert clean(recording) == StepCleaner(platform).clean(recording)

    def test_empty(self, cleaner):
        assert cleaner.clean([]) == []
