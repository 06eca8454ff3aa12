"""
Script Generator - Data-driven pytest modules from cleaned steps.

The generated test is parametrized over the rows of its data fixture and
drives the page objects produced by the page-object generator. Heavy
actions are followed by ``wait_for_platform(page)``.
"""

import logging
from typing import Dict, List, Mapping, Optional, Sequence

from flowscribe.config.settings import GeneratorSettings
from flowscribe.generation.parameterizer import is_heavy_step, is_lookup_fill
from flowscribe.generation.pom_generator import INDENT, PageModel, locator_to_code, py_str
from flowscribe.models.steps import RecordedStep, StepAction
from flowscribe.platforms.base import TargetPlatform

logger = logging.getLogger(__name__)

WAIT_STATEMENT = "wait_for_platform(page)"
LOOKUP_CONFIRM_STATEMENT = 'page.keyboard.press("Enter")'

ASSERTION_METHODS = {
    "toHaveText": "to_have_text",
    "toContainText": "to_contain_text",
    "toBeVisible": "to_be_visible",
    "toHaveURL": "to_have_url",
    "toHaveTitle": "to_have_title",
    "toBeChecked": "to_be_checked",
    "toHaveValue": "to_have_value",
    "toHaveAttribute": "to_have_attribute",
}
NO_ARGUMENT_ASSERTIONS = ("toBeVisible", "toBeChecked")


def format_test_name(flow_name: str) -> str:
    """``create_sales_order`` becomes ``Create Sales Order``."""
    words = flow_name.replace("-", " ").replace("_", " ").split()
    return " ".join(w[0].upper() + w[1:] for w in words) or "Recorded Flow"


class ScriptGenerator:
    """
    Renders the test module of one flow.
    
    Example:
        >>> generator = ScriptGenerator(platform, settings.generator)
        >>> source = generator.render(steps, models, bindings, params, "create_order", "sales")
    """
    
    def __init__(self, platform: TargetPlatform, settings: Optional[GeneratorSettings] = None):
        self._platform = platform
        self._settings = settings or GeneratorSettings()
    
    def statements(
        self,
        steps: Sequence[RecordedStep],
        models: Mapping[str, PageModel],
        bindings: Mapping[int, str],
        parameters: Mapping[int, str],
    ) -> List[str]:
        """
        One statement per step, plus injected waits.
        
        Args:
            steps: Cleaned steps
            models: Page models by page id
            bindings: Page-object method name by step order
            parameters: Fixture column by step order
        """
        statements: List[str] = []
        for step in steps:
            model = models.get(step.page_id)
            statement = self._statement(step, model, bindings, parameters)
            if statement is None:
                continue
            if statement == WAIT_STATEMENT and statements and statements[-1] == WAIT_STATEMENT:
                continue
            statements.append(statement)
            if model is None and is_lookup_fill(step):
                statements.append(LOOKUP_CONFIRM_STATEMENT)
            if (
                self._settings.wait_after_heavy_actions
                and is_heavy_step(step, self._platform)
                and statements[-1] != WAIT_STATEMENT
            ):
                statements.append(WAIT_STATEMENT)
        return statements
    
    def _statement(
        self,
        step: RecordedStep,
        model: Optional[PageModel],
        bindings: Mapping[int, str],
        parameters: Mapping[int, str],
    ) -> Optional[str]:
        action = step.action
        
        if action == StepAction.COMMENT:
            return f"# {step.description}"
        if action == StepAction.WAIT:
            return WAIT_STATEMENT
        
        if action == StepAction.NAVIGATE:
            if model is not None and model.identity.menu_ref:
                company = (
                    step.company_ref
                    or model.identity.company_ref
                    or self._settings.default_company
                )
                return f"{model.class_name}.goto(page, cmp={py_str(company)})"
            return f"page.goto({py_str(step.page_url or '')})"
        
        root = f"{model.variable}.content_frame" if model is not None else "page"
        
        if action == StepAction.ASSERT:
            return self._assertion(step, root)
        
        argument = ""
        if action in (StepAction.FILL, StepAction.SELECT):
            param = parameters.get(step.order)
            argument = f"row[{py_str(param)}]" if param else py_str(step.value or "")
        
        method = bindings.get(step.order)
        if method is not None and model is not None:
            return f"{model.variable}.{method}({argument})"
        
        target = locator_to_code(step.locator, root)
        if action == StepAction.CLICK:
            return f"{target}.click()"
        if action == StepAction.FILL and (model is None or not is_lookup_fill(step)):
            return f"{target}.fill({argument})"
        if model is not None:
            return f"{model.variable}.choose({target}, {argument})"
        return f"{target}.select_option({argument})"
    
    def _assertion(self, step: RecordedStep, root: str) -> str:
        method = ASSERTION_METHODS[step.assertion]
        subject = "page" if step.locator is None else locator_to_code(step.locator, root)
        expected = step.expected or ""
        if step.assertion in NO_ARGUMENT_ASSERTIONS:
            args = ""
        elif step.assertion == "toHaveAttribute":
            name, _, value = expected.partition("=")
            args = f"{py_str(name)}, {py_str(value)}"
        else:
            args = py_str(expected)
        return f"expect({subject}).{method}({args})"
    
    def render(
        self,
        steps: Sequence[RecordedStep],
        models: Mapping[str, PageModel],
        bindings: Mapping[int, str],
        parameters: Mapping[int, str],
        flow_slug: str,
        module: str,
    ) -> str:
        """
        Render the complete test module.
        
        Returns:
            Python source of ``test_<flow_slug>.py``
        """
        statements = self.statements(steps, models, bindings, parameters)
        pages_package = self._settings.pages_dir.replace("/", ".")
        
        used_variables = set()
        page_models: Dict[str, PageModel] = {}
        for model in models.values():
            if any(f"{model.variable}." in s for s in statements):
                used_variables.add(model.variable)
                page_models[model.class_name] = model
            elif any(s.startswith(f"{model.class_name}.goto(") for s in statements):
                page_models[model.class_name] = model
        
        needs_wait = WAIT_STATEMENT in statements
        needs_expect = any(s.startswith("expect(") for s in statements)
        
        lines = [
            '"""',
            f"{format_test_name(flow_slug)} - data driven.",
            "",
            "Generated by flowscribe from a recorded session.",
            '"""',
            "",
            "import json",
            "from pathlib import Path",
            "",
            "import pytest",
            "from playwright.sync_api import Page" + (", expect" if needs_expect else ""),
            "",
        ]
        if needs_wait:
            lines.append(f"from {pages_package}.base_page import wait_for_platform")
        for class_name in sorted(page_models):
            model = page_models[class_name]
            lines.append(f"from {model.import_path(pages_package, module)} import {class_name}")
        
        lines.extend([
            "",
            f'DATA_FILE = Path(__file__).resolve().parents[2] / "data" / "{flow_slug}_data.json"',
            'ROWS = json.loads(DATA_FILE.read_text(encoding="utf-8"))',
            f"TEST_TIMEOUT_MS = {self._settings.test_timeout_s * 1000}",
            "",
            "",
            "@pytest.mark.parametrize(",
            f'{INDENT}"row", ROWS, ids=[str(row.get("testCaseId", index)) for index, row in enumerate(ROWS)]',
            ")",
            f"def test_{flow_slug}(page: Page, row: dict) -> None:",
            f"{INDENT}page.set_default_timeout(TEST_TIMEOUT_MS)",
        ])
        for class_name in sorted(page_models):
            model = page_models[class_name]
            if model.variable in used_variables:
                lines.append(f"{INDENT}{model.variable} = {class_name}(page)")
        lines.append("")
        lines.extend(f"{INDENT}{statement}" for statement in statements)
        
        logger.debug(f"Rendered {len(statements)} statements for {flow_slug}")
        return "\n".join(lines) + "\n"
