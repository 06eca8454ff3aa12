"""
Integration tests for the CLI commands.
"""

import json

import pytest
from typer.testing import CliRunner

from flowscribe.models.locators import PlatformAttributeLocator
from flowscribe.models.steps import StepAction, steps_to_json

LOGIN_URL = "https://login.microsoftonline.com/common/oauth2/authorize?client_id=abc"


@pytest.fixture
def runner():
    """Create a CLI runner."""
    return CliRunner()


@pytest.fixture
def app(tmp_path, monkeypatch):
    """The CLI app, run from an empty directory."""
    monkeypatch.chdir(tmp_path)
    from flowscribe.main import app
    return app


@pytest.fixture
def recording(nav, make_step):
    return [
        nav(1, LOGIN_URL, page_id="AuthPage"),
        nav(2),
        make_step(
            StepAction.CLICK, 3,
            locator=PlatformAttributeLocator("data-dyn-controlname", "SystemDefinedNewButton"),
            field_name="newButton", method_name="clickNew", description="Click New",
        ),
        make_step(
            StepAction.FILL, 4, page_id="SalesOrderDetailsPage",
            locator=PlatformAttributeLocator("data-dyn-controlname", "CustAccount"),
            value="US-001", field_name="customerAccountInput", method_name="fillCustomerAccount",
            description="Fill Customer account",
        ),
    ]


@pytest.fixture
def steps_file(tmp_path, recording):
    path = tmp_path / "create_sales_order.steps.json"
    path.write_text(steps_to_json(recording), encoding="utf-8")
    return path


class TestCLIHelp:
    """Test that every command is registered."""

    @pytest.mark.parametrize("command,text", [
        ("record", "Record a flow in a live browser"),
        ("clean", "cleans down to"),
        ("compile", "Compile recorded steps"),
        ("classify", "Classify a page offline"),
    ])
    def test_command_help(self, runner, app, command, text):
        result = runner.invoke(app, [command, "--help"])
        assert result.exit_code == 0
        assert text in result.stdout

    def test_record_options(self, runner, app):
        """Test record options exist."""
        result = runner.invoke(app, ["record", "--help"])
        assert "--flow" in result.stdout
        assert "--compile" in result.stdout

    def test_version(self, runner, app):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "flowscribe v0.1.0" in result.stdout


class TestCLIClassify:
    """Test the 'classify' CLI command."""

    def test_list_page(self, runner, app):
        result = runner.invoke(app, [
            "classify",
            "https://usmf.operations.dynamics.com/?cmp=USMF&mi=SalesTableListPage",
            "--title", "All sales orders",
        ])
        assert result.exit_code == 0
        assert "AllSalesOrdersListPage" in result.stdout
        assert "ListPage" in result.stdout

    def test_unknown_platform(self, runner, app):
        result = runner.invoke(app, ["classify", "https://example.com", "--platform", "sap"])
        assert result.exit_code == 1


class TestCLIClean:
    """Test the 'clean' CLI command."""

    def test_clean_to_file(self, runner, app, tmp_path, steps_file):
        out = tmp_path / "cleaned.json"
        result = runner.invoke(app, ["clean", str(steps_file), "--out", str(out)])

        assert result.exit_code == 0
        assert "3 of 4 steps kept" in result.stdout
        cleaned = json.loads(out.read_text(encoding="utf-8"))
        assert [s["order"] for s in cleaned] == [2, 3, 4]

    def test_missing_file(self, runner, app, tmp_path):
        result = runner.invoke(app, ["clean", str(tmp_path / "missing.json")])
        assert result.exit_code == 1
        assert "File not found" in result.stdout

    def test_invalid_json(self, runner, app, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("[{", encoding="utf-8")
        result = runner.invoke(app, ["clean", str(path)])
        assert result.exit_code == 1


class TestCLICompile:
    """Test the 'compile' CLI command."""

    def test_compile_steps_file(self, runner, app, tmp_path, steps_file):
        out = tmp_path / "bundle"
        result = runner.invoke(app, [
            "compile", str(steps_file), "--module", "sales", "--output-dir", str(out),
        ])

        assert result.exit_code == 0, result.stdout
        assert "Compiled create_sales_order" in result.stdout
        assert (out / "tests/sales/specs/create_sales_order/test_create_sales_order.py").is_file()
        assert (out / "pages/sales/sales_order_details_page.py").is_file()
        assert (out / ".flowscribe/pages.json").is_file()

    def test_compile_session_file(self, runner, app, tmp_path, recording, details_identity):
        """Test that flow name, module and pages come from a session file."""
        session = tmp_path / "order.session.json"
        session.write_text(json.dumps({
            "flowName": "enter_order",
            "module": "sales",
            "pages": [details_identity.to_dict()],
            "steps": [s.to_dict() for s in recording],
        }), encoding="utf-8")
        out = tmp_path / "bundle"

        result = runner.invoke(app, ["compile", str(session), "--output-dir", str(out)])

        assert result.exit_code == 0, result.stdout
        page = (out / "pages/sales/sales_order_details_page.py").read_text(encoding="utf-8")
        assert 'MENU_REF = "SalesTable"' in page
        assert (out / "tests/sales/data/enter_order_data.json").is_file()

    def test_compile_malformed_steps(self, runner, app, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text('[{"action": "click"}]', encoding="utf-8")
        result = runner.invoke(app, ["compile", str(path), "--output-dir", str(tmp_path / "out")])
        assert result.exit_code == 1
