"""
Tests for compile_artifacts and compile_bundle.
"""

import json
import os

import pytest

from flowscribe.config import GeneratorSettings, Settings
from flowscribe.exceptions import CompilationError
from flowscribe.generation import compile_artifacts, compile_bundle
from flowscribe.models.locators import CssLocator, PlatformAttributeLocator
from flowscribe.models.steps import StepAction
from flowscribe.storage import LocatorState, LocatorStatusRegistry, PageRegistry

TIMESTAMP = "2026-01-05T10:00:00+00:00"
LOGIN_URL = "https://login.microsoftonline.com/common/oauth2/authorize?client_id=abc"
DETAILS = "SalesOrderDetailsPage"
NEW_BUTTON = PlatformAttributeLocator("data-dyn-controlname", "SystemDefinedNewButton")
ACCOUNT = PlatformAttributeLocator("data-dyn-controlname", "CustAccount")

EXPECTED_FILES = {
    "conftest.py",
    "pages/__init__.py",
    "pages/base_page.py",
    "pages/sales/__init__.py",
    "pages/sales/all_sales_orders_list_page.py",
    "pages/sales/sales_order_details_page.py",
    "tests/sales/specs/create_sales_order/test_create_sales_order.py",
    "tests/sales/specs/create_sales_order/create_sales_order.meta.json",
    "tests/sales/specs/create_sales_order/create_sales_order.meta.md",
    "tests/sales/data/create_sales_order_data.json",
}


@pytest.fixture
def recording(nav, make_step, list_identity):
    return [
        nav(1, LOGIN_URL, page_id="AuthPage"),
        nav(2, list_identity.url),
        make_step(StepAction.CLICK, 3, locator=NEW_BUTTON, field_name="newButton",
                  method_name="clickNew", description="Click New"),
        nav(4, "https://usmf.operations.dynamics.com/?cmp=USMF&mi=SalesTable", page_id=DETAILS),
        make_step(StepAction.FILL, 5, page_id=DETAILS, locator=ACCOUNT, value="US-001",
                  field_name="customerAccountInput", method_name="fillCustomerAccount",
                  description="Fill Customer account"),
        make_step(StepAction.CLICK, 6, page_id=DETAILS, locator=CssLocator("div.dyn-row"),
                  field_name="rowElement", method_name="clickRow", description="Click row"),
    ]


@pytest.fixture
def identities(list_identity, details_identity):
    return {i.page_id: i for i in (list_identity, details_identity)}


class TestCompileArtifacts:
    """Tests for the in-memory compilation."""

    def test_bundle_layout(self, recording, identities):
        artifacts = compile_artifacts(
            recording, identities, "Create sales order", module="sales", timestamp=TIMESTAMP
        )
        assert set(artifacts.files) == EXPECTED_FILES
        assert artifacts.spec_path == "tests/sales/specs/create_sales_order/test_create_sales_order.py"
        assert artifacts.data_path == "tests/sales/data/create_sales_order_data.json"
        assert [p.class_name for p in artifacts.pages] == ["AllSalesOrdersListPage", "SalesOrderDetailsPage"]
        assert artifacts.flagged_locators == ["css:div.dyn-row"]

    def test_deterministic(self, recording, identities):
        first = compile_artifacts(recording, identities, "create_sales_order", timestamp=TIMESTAMP)
        second = compile_artifacts(recording, identities, "create_sales_order", timestamp=TIMESTAMP)
        assert first.files == second.files

    def test_default_module_is_platform(self, recording, identities):
        artifacts = compile_artifacts(recording, identities, "create_sales_order", timestamp=TIMESTAMP)
        assert artifacts.module == "d365"
        assert "pages/d365/sales_order_details_page.py" in artifacts.files

    def test_meta_files(self, recording, identities):
        artifacts = compile_artifacts(
            recording, identities, "create_sales_order", module="sales", timestamp=TIMESTAMP
        )
        base = "tests/sales/specs/create_sales_order/create_sales_order"
        meta = json.loads(artifacts.files[f"{base}.meta.json"])
        assert meta["testName"] == "Create Sales Order"
        assert meta["tags"] == ["d365", "sales"]
        assert meta["createdAt"] == TIMESTAMP
        assert meta["parameters"] == ["customerAccount"]
        assert meta["flaggedLocators"] == ["css:div.dyn-row"]
        assert meta["pages"][1] == {
            "pageId": DETAILS,
            "className": "SalesOrderDetailsPage",
            "filePath": "pages/sales/sales_order_details_page.py",
        }

        markdown = artifacts.files[f"{base}.meta.md"]
        assert "1. Navigate to https://usmf.operations.dynamics.com/?cmp=USMF&mi=SalesTableListPage" in markdown
        assert "2. Click New" in markdown
        assert "- `customerAccount`: Customer account (recorded value: `US-001`)" in markdown
        assert "## Flagged Locators" in markdown

    def test_existing_files_are_merged(self, recording, identities):
        """Test that support files, data and createdAt survive regeneration."""
        existing = {
            "pages/base_page.py": "# customised\n",
            "tests/sales/data/create_sales_order_data.json": '[{"testCaseId": "smoke", "customerAccount": "US-009"}]',
            "tests/sales/specs/create_sales_order/create_sales_order.meta.json": '{"createdAt": "2025-12-01T00:00:00+00:00"}',
        }
        artifacts = compile_artifacts(
            recording, identities, "create_sales_order", module="sales",
            existing=existing.get, timestamp=TIMESTAMP,
        )
        files = artifacts.files
        assert files["pages/base_page.py"] == "# customised\n"
        assert json.loads(files["tests/sales/data/create_sales_order_data.json"]) == [
            {"testCaseId": "smoke", "customerAccount": "US-009"}
        ]
        meta = json.loads(files["tests/sales/specs/create_sales_order/create_sales_order.meta.json"])
        assert meta["createdAt"] == "2025-12-01T00:00:00+00:00"
        assert meta["updatedAt"] == TIMESTAMP

    def test_accepts_step_dicts(self, recording, identities):
        artifacts = compile_artifacts(
            [s.to_dict() for s in recording], identities, "create_sales_order", timestamp=TIMESTAMP
        )
        assert len(artifacts.pages) == 2

    def test_empty_flow_name(self, recording, identities):
        with pytest.raises(CompilationError, match="Flow name"):
            compile_artifacts(recording, identities, "  ")

    def test_nothing_left_after_cleaning(self, nav, identities):
        with pytest.raises(CompilationError, match="no steps"):
            compile_artifacts([nav(1, LOGIN_URL, page_id="AuthPage")], identities, "login_only")

    def test_custom_directories(self, recording, identities):
        settings = GeneratorSettings(pages_dir="e2e/pages", tests_dir="e2e/tests")
        artifacts = compile_artifacts(
            recording, identities, "create_sales_order", settings=settings, module="sales", timestamp=TIMESTAMP
        )
        assert "e2e/pages/sales/sales_order_details_page.py" in artifacts.files
        script = artifacts.files[artifacts.spec_path]
        assert "from e2e.pages.sales.sales_order_details_page import SalesOrderDetailsPage" in script


class TestCompileBundle:
    """Tests for compile_bundle with real files."""

    def test_writes_bundle_and_registries(self, tmp_path, recording, identities):
        result = compile_bundle(
            recording, identities, "create_sales_order", module="sales",
            output_dir=tmp_path, timestamp=TIMESTAMP,
        )

        assert result.success, result.error
        assert set(result.files) == EXPECTED_FILES
        for rel in EXPECTED_FILES:
            assert (tmp_path / rel).is_file()

        pages = PageRegistry.load(tmp_path / ".flowscribe" / "pages.json")
        assert pages.page_ids() == ["AllSalesOrdersListPage", DETAILS]
        assert pages.find_by_menu_ref("SalesTable")["className"] == "SalesOrderDetailsPage"

        statuses = LocatorStatusRegistry.load(tmp_path / ".flowscribe" / "locators.json")
        assert statuses.state("css:div.dyn-row") == LocatorState.WARNING

    def test_recompile_is_stable(self, tmp_path, recording, identities):
        """Test that compiling the same recording twice writes nothing new."""
        args = dict(module="sales", output_dir=tmp_path, timestamp=TIMESTAMP)
        compile_bundle(recording, identities, "create_sales_order", **args)
        again = compile_bundle(recording, identities, "create_sales_order", **args)
        assert again.success
        assert again.files == []

    def test_registry_supplies_known_pages(self, tmp_path, recording, identities):
        compile_bundle(recording, identities, "create_sales_order", output_dir=tmp_path, timestamp=TIMESTAMP)
        result = compile_bundle(recording, {}, "create_sales_order_2", output_dir=tmp_path, timestamp=TIMESTAMP)
        page = (tmp_path / "pages/d365/sales_order_details_page.py").read_text(encoding="utf-8")
        assert result.success
        assert 'MENU_REF = "SalesTable"' in page

    def test_failure_writes_nothing(self, tmp_path, recording, identities):
        """Test that an unreadable data fixture fails the whole compilation."""
        data = tmp_path / "tests/d365/data/create_sales_order_data.json"
        data.parent.mkdir(parents=True)
        data.write_text("{broken", encoding="utf-8")

        result = compile_bundle(recording, identities, "create_sales_order", output_dir=tmp_path)

        assert not result.success
        assert "not valid JSON" in result.error
        assert not (tmp_path / "pages").exists()
        assert result.to_dict() == {"success": False, "files": [], "error": result.error}

    def test_undecodable_existing_file(self, tmp_path, recording, identities):
        """Test that an existing file that is not UTF-8 fails the compilation."""
        data = tmp_path / "tests/d365/data/create_sales_order_data.json"
        data.parent.mkdir(parents=True)
        data.write_bytes(b"\xff\xfe[broken")

        result = compile_bundle(recording, identities, "create_sales_order", output_dir=tmp_path)

        assert not result.success
        assert "create_sales_order_data.json" in result.error
        assert not (tmp_path / "conftest.py").exists()

    def test_undecodable_registry(self, tmp_path, recording, identities):
        registry = tmp_path / ".flowscribe" / "pages.json"
        registry.parent.mkdir(parents=True)
        registry.write_bytes(b"\xff\xfe{}")

        result = compile_bundle(recording, identities, "create_sales_order", output_dir=tmp_path)

        assert not result.success
        assert "Invalid page registry" in result.error

    def test_registry_failure_rolls_back_bundle(self, tmp_path, monkeypatch, recording, identities):
        """Test that the bundle and the registries are written together or not at all."""
        real_replace = os.replace

        def replace(src, dst):
            if str(dst).endswith("pages.json"):
                raise PermissionError("read-only registry")
            return real_replace(src, dst)

        monkeypatch.setattr(os, "replace", replace)
        result = compile_bundle(
            recording, identities, "create_sales_order", module="sales",
            output_dir=tmp_path, timestamp=TIMESTAMP,
        )

        assert not result.success
        assert "read-only registry" in result.error
        for rel in EXPECTED_FILES:
            assert not (tmp_path / rel).exists()
        assert not (tmp_path / ".flowscribe" / "pages.json").exists()

    def test_malformed_steps(self, tmp_path):
        result = compile_bundle([{"action": "click"}], {}, "broken", output_dir=tmp_path)
        assert not result.success
        assert "Malformed step" in result.error

    def test_output_dir_from_settings(self, tmp_path, recording, identities):
        settings = Settings(generator=GeneratorSettings(output_dir=str(tmp_path / "out")))
        result = compile_bundle(recording, identities, "create_sales_order", settings=settings)
        assert result.success
        assert (tmp_path / "out" / "conftest.py").is_file()

    def test_content_frame_from_settings(self, tmp_path, recording, identities):
        settings = Settings(generator=GeneratorSettings(content_frame_selector="iframe.content"))
        result = compile_bundle(
            recording, identities, "create_sales_order", settings=settings, output_dir=tmp_path
        )
        base_page = (tmp_path / "pages" / "base_page.py").read_text(encoding="utf-8")
        assert result.success
        assert 'CONTENT_FRAME_SELECTOR = "iframe.content"' in base_page
