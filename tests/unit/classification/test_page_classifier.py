"""
Tests for PageClassifier.
"""

import pytest

from flowscribe.classification import (
    UNKNOWN_PAGE_ID,
    PageClassifier,
    form_name_to_page_id,
)
from flowscribe.models.pages import PagePattern, PageType

LIST_URL = "https://usmf.operations.dynamics.com/?cmp=USMF&mi=SalesTableListPage"
DETAILS_URL = "https://usmf.operations.dynamics.com/?cmp=USMF&mi=SalesTable"
LOGIN_URL = "https://login.microsoftonline.com/common/oauth2/authorize?client_id=abc"


@pytest.fixture
def classifier(platform):
    return PageClassifier(platform, timeout_ms=200)


class TestClassifyContext:
    """Tests for offline classification."""

    def test_identity_provider(self, classifier):
        """Test that sign-in hops are ignored for page objects."""
        result = classifier.classify_context(LOGIN_URL, "Sign in to your account")
        assert result.page_id == "AuthPage"
        assert result.ignore_for_pom

    def test_redirect_title(self, classifier):
        result = classifier.classify_context(LIST_URL, "Redirecting...")
        assert result.page_id == "RedirectingPage"
        assert result.ignore_for_pom

    def test_sign_in_title(self, classifier):
        result = classifier.classify_context("https://usmf.operations.dynamics.com/", "Sign in to your account")
        assert result.page_id == "SignInPage"

    def test_list_page_from_table(self, classifier):
        """Test that the list page is not mistaken for the details page."""
        result = classifier.classify_context(LIST_URL, "All sales orders -- Finance and Operations")
        assert result.page_id == "AllSalesOrdersListPage"
        assert result.pattern == PagePattern.LIST_PAGE
        assert result.page_type == PageType.LIST
        assert not result.ignore_for_pom

    def test_details_page_from_table(self, classifier):
        result = classifier.classify_context(DETAILS_URL)
        assert result.page_id == "SalesOrderDetailsPage"
        assert result.pattern == PagePattern.DETAILS_PAGE

    def test_breadcrumbs(self, classifier):
        """Test the breadcrumb trail is consulted when URL and title miss."""
        result = classifier.classify_context(
            "https://usmf.operations.dynamics.com/?cmp=USMF",
            "Customer",
            ["Accounts receivable", "CustTable"],
        )
        assert result.page_id == "CustomerPage"
        assert result.breadcrumbs == ["Accounts receivable", "CustTable"]

    def test_inferred_from_menu_item(self, classifier):
        """Test inference for pages outside the table."""
        result = classifier.classify_context(
            "https://usmf.operations.dynamics.com/?cmp=USMF&mi=CustGroup",
            "Customer groups -- Finance and Operations",
        )
        assert result.page_id == "CustGroupPage"
        assert result.page_name == "Customer groups"
        assert result.pattern == PagePattern.DETAILS_PAGE
        assert not result.ignore_for_pom

    def test_inferred_list_pattern(self, classifier):
        result = classifier.classify_context("https://usmf.operations.dynamics.com/?mi=VendTableListPage")
        assert result.page_id == "VendTableListPage"
        assert result.pattern == PagePattern.LIST_PAGE

    def test_unrecognised_outside_app(self, classifier):
        """Test that foreign pages are never used for page objects."""
        result = classifier.classify_context("https://example.com/help", "Help center")
        assert result.page_id == "HelpCenterPage"
        assert result.ignore_for_pom

        unknown = classifier.classify_context("https://example.com/")
        assert unknown.page_id == UNKNOWN_PAGE_ID
        assert unknown.ignore_for_pom

    def test_form_name_to_page_id(self):
        assert form_name_to_page_id("SalesTable") == "SalesPage"
        assert form_name_to_page_id("CustGroup") == "CustGroupPage"
        assert form_name_to_page_id("VendorPage") == "VendorPage"


class TestLivePages:
    """Tests for classification against a live page."""

    @pytest.mark.asyncio
    async def test_classify_reads_breadcrumbs(self, classifier, fake_page):
        page = fake_page(
            url="https://usmf.operations.dynamics.com/?cmp=USMF",
            title="Items",
            texts={".breadcrumb": ["Product information management", "InventTable"]},
        )
        result = await classifier.classify(page)
        assert result.page_id == "ItemPage"

    @pytest.mark.asyncio
    async def test_breadcrumb_fallback_to_nav_links(self, classifier, fake_page):
        page = fake_page(
            url="https://usmf.operations.dynamics.com/",
            title="",
            texts={"nav a": ["Workspace", "x" * 60]},
        )
        assert await classifier.read_breadcrumbs(page) == ["Workspace"]

    @pytest.mark.asyncio
    async def test_destroyed_context(self, classifier, fake_page):
        """Test that a mid-navigation read yields an ignored unknown page."""
        page = fake_page()
        page.destroyed = True
        result = await classifier.classify(page)
        assert result.page_id == UNKNOWN_PAGE_ID
        assert result.ignore_for_pom
        assert await classifier.extract_identity(page) is None

    @pytest.mark.asyncio
    async def test_extract_identity(self, classifier, fake_page):
        """Test the full identity of a list page."""
        page = fake_page(texts={'div[aria-label*="Page title"]': ["All sales orders"]})
        identity = await classifier.extract_identity(page)

        assert identity.page_id == "AllSalesOrdersListPage"
        assert identity.caption == "All sales orders"
        assert identity.type == PageType.LIST
        assert identity.menu_ref == "SalesTableListPage"
        assert identity.company_ref == "USMF"
        assert identity.route_path == "/?cmp=USMF&mi=SalesTableListPage"
        assert identity.url == LIST_URL

    @pytest.mark.asyncio
    async def test_caption_falls_back_to_title(self, classifier, fake_page):
        """Test caption fallbacks: a clean title, else the page name."""
        clean = fake_page(url=DETAILS_URL, title="Sales order")
        assert (await classifier.extract_identity(clean)).caption == "Sales order"

        noisy = fake_page(url=DETAILS_URL, title="Sales order -- Finance and Operations")
        assert (await classifier.extract_identity(noisy)).caption == "Sales Order Details"

    @pytest.mark.asyncio
    async def test_ignored_page_has_no_identity(self, classifier, fake_page):
        page = fake_page(url=LOGIN_URL, title="Sign in to your account")
        assert await classifier.extract_identity(page) is None
