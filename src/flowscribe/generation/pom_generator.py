"""
Page Object Generator - One Python page-object module per recorded page.

Generated code targets the Playwright sync API. Every page class extends
a generated ``BasePage`` that knows how to find the content frame and how
to wait for the platform to settle.

Regeneration merges: members already present in an existing module are
left untouched and only new locators and actions are appended.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Set, Tuple

from flowscribe.classification.page_classifier import UNKNOWN_PAGE_ID
from flowscribe.generation.parameterizer import is_lookup_fill
from flowscribe.models.locators import (
    CssLocator,
    LabelLocator,
    Locator,
    PlaceholderLocator,
    PlatformAttributeLocator,
    RoleLocator,
    TestIdLocator,
    TextLocator,
    XPathLocator,
)
from flowscribe.models.pages import PageIdentity
from flowscribe.models.steps import RecordedStep, StepAction
from flowscribe.platforms.base import TargetPlatform
from flowscribe.utils.identifiers import make_page_class_name, to_pascal_case, to_snake_case

logger = logging.getLogger(__name__)

INDENT = "    "
BINDABLE_ACTIONS = (StepAction.CLICK, StepAction.FILL, StepAction.SELECT)
_DEF_NAME = re.compile(r"^\s+def (\w+)\(", re.MULTILINE)


def py_str(text: str) -> str:
    """Render a Python string literal."""
    return json.dumps(text, ensure_ascii=False)


def locator_to_code(locator: Locator, root: str = "self.content_frame") -> str:
    """
    Render a locator as a Playwright sync API expression.
    
    Args:
        locator: Locator descriptor
        root: Expression the locator hangs off (page, frame or page object)
    """
    if isinstance(locator, PlatformAttributeLocator):
        value = locator.value.replace("'", "\\'")
        selector = "[" + locator.name + "='" + value + "']"
        return f"{root}.locator({py_str(selector)})"
    if isinstance(locator, RoleLocator):
        return f"{root}.get_by_role({py_str(locator.role)}, name={py_str(locator.name)})"
    if isinstance(locator, LabelLocator):
        return f"{root}.get_by_label({py_str(locator.text)})"
    if isinstance(locator, PlaceholderLocator):
        return f"{root}.get_by_placeholder({py_str(locator.text)})"
    if isinstance(locator, TextLocator):
        exact = ", exact=True" if locator.exact else ""
        return f"{root}.get_by_text({py_str(locator.text)}{exact})"
    if isinstance(locator, TestIdLocator):
        return f"{root}.get_by_test_id({py_str(locator.value)})"
    if isinstance(locator, CssLocator):
        return f"{root}.locator({py_str(locator.selector)})"
    if isinstance(locator, XPathLocator):
        return f"{root}.locator({py_str('xpath=' + locator.expression)})"
    raise TypeError(f"Unsupported locator: {locator!r}")


def page_class_name(identity: PageIdentity) -> str:
    if identity.page_id and identity.page_id != UNKNOWN_PAGE_ID:
        return to_pascal_case(identity.page_id)
    return make_page_class_name(identity.caption, identity.pattern.value)


def page_module_name(class_name: str) -> str:
    name = to_snake_case(class_name)
    return name if name.endswith("_page") else name + "_page"


@dataclass
class PageModel:
    """
    Everything generated for one logical page.
    
    ``fields`` maps property names to locators and ``methods`` maps action
    method names to ``(action, field)`` pairs, both in first-seen order.
    ``lookups`` names the fields filled as type-ahead comboboxes.
    """
    identity: PageIdentity
    class_name: str
    module_name: str
    fields: Dict[str, Locator] = field(default_factory=dict)
    methods: Dict[str, Tuple[StepAction, str]] = field(default_factory=dict)
    lookups: Set[str] = field(default_factory=set)
    
    @property
    def variable(self) -> str:
        return to_snake_case(self.class_name)
    
    def import_path(self, pages_dir: str, module: str) -> str:
        return ".".join([pages_dir.replace("/", "."), module, self.module_name])
    
    def relative_path(self, pages_dir: str, module: str) -> str:
        return f"{pages_dir}/{module}/{self.module_name}.py"
    
    def bind(self, step: RecordedStep) -> str:
        """
        Attach a step's locator and action to this page.
        
        A field name already used for a different locator gets a numeric
        suffix, and so does its method.
        
        Returns:
            The action method name the script should call
        """
        base_field = to_snake_case(step.field_name)
        base_method = to_snake_case(step.method_name or f"{step.action.value} {step.field_name}")
        n = 1
        while True:
            suffix = "" if n == 1 else f"_{n}"
            field_name = base_field + suffix
            method = base_method + suffix
            known = self.fields.get(field_name)
            if known is None or known == step.locator:
                bound = self.methods.get(method)
                if bound is None or bound == (step.action, field_name):
                    self.fields[field_name] = step.locator
                    self.methods[method] = (step.action, field_name)
                    if is_lookup_fill(step):
                        self.lookups.add(field_name)
                    return method
            n += 1


def build_page_models(
    steps: Sequence[RecordedStep],
    identities: Mapping[str, PageIdentity],
) -> Tuple[Dict[str, PageModel], Dict[int, str]]:
    """
    Group steps by page and bind their actions to page members.
    
    Args:
        steps: Cleaned steps
        identities: Known page identities by page id
        
    Returns:
        (page models by page id in first-seen order, method name by step order)
    """
    models: Dict[str, PageModel] = {}
    bindings: Dict[int, str] = {}
    
    for step in steps:
        if step.action in (StepAction.COMMENT, StepAction.WAIT):
            continue
        model = models.get(step.page_id)
        if model is None:
            identity = identities.get(step.page_id) or PageIdentity(
                page_id=step.page_id,
                caption=step.page_id,
                url=step.page_url or "",
                menu_ref=step.menu_ref,
                company_ref=step.company_ref,
            )
            class_name = page_class_name(identity)
            model = PageModel(identity, class_name, page_module_name(class_name))
            models[step.page_id] = model
        if step.action in BINDABLE_ACTIONS and step.field_name and step.locator is not None:
            bindings[step.order] = model.bind(step)
    return models, bindings


class PomGenerator:
    """
    Renders page-object modules.
    
    Example:
        >>> generator = PomGenerator(platform, default_company="USMF")
        >>> source = generator.render_page(model)
    """
    
    def __init__(
        self,
        platform: TargetPlatform,
        default_company: str = "USMF",
        content_frame_selector: Optional[str] = None,
    ):
        self._platform = platform
        self._default_company = default_company
        self._content_frame_selector = content_frame_selector or platform.content_frame_selector
    
    # ==================== Support files ====================
    
    def render_base_page(self) -> str:
        busy = ",\n".join(f"{INDENT}{py_str(s)}" for s in self._platform.busy_selectors)
        shell = ",\n".join(f"{INDENT}{py_str(s)}" for s in self._platform.shell_selectors)
        frame = self._content_frame_selector
        frame_selector = py_str(frame) if frame else "None"
        return f'''"""
Base page object for generated tests.

Generated by flowscribe for the {self._platform.name} platform. Safe to edit:
regeneration never overwrites this file.
"""

from typing import Union

from playwright.sync_api import FrameLocator, Locator, Page
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

BUSY_SELECTORS = [
{busy}
]
SHELL_SELECTORS = [
{shell}
]
SETTLE_MS = 500


def wait_for_not_busy(page: Page, timeout_ms: int = 30000) -> None:
    """Wait for every busy indicator and blocking overlay to disappear."""
    for selector in BUSY_SELECTORS:
        busy = page.locator(selector)
        if busy.count() > 0:
            busy.first.wait_for(state="hidden", timeout=timeout_ms)


def wait_for_platform(page: Page, timeout_ms: int = 30000) -> None:
    """Wait for the application to settle after a server round-trip."""
    try:
        page.wait_for_load_state("networkidle", timeout=timeout_ms)
    except PlaywrightTimeoutError:
        pass
    wait_for_not_busy(page, timeout_ms)
    page.wait_for_timeout(SETTLE_MS)


def wait_for_shell(page: Page, timeout_ms: int = 60000) -> None:
    """Wait until the application shell has rendered."""
    if not SHELL_SELECTORS:
        return
    page.locator(", ".join(SHELL_SELECTORS)).first.wait_for(state="attached", timeout=timeout_ms)


class BasePage:
    """Common behaviour of generated page objects."""

    CONTENT_FRAME_SELECTOR = {frame_selector}

    def __init__(self, page: Page):
        self.page = page

    @property
    def content_frame(self) -> Union[Page, FrameLocator]:
        """Root for locators: the content iframe when the page uses one."""
        if self.CONTENT_FRAME_SELECTOR:
            return self.page.frame_locator(self.CONTENT_FRAME_SELECTOR)
        return self.page

    def wait_for_not_busy(self, timeout_ms: int = 30000) -> None:
        wait_for_not_busy(self.page, timeout_ms)

    def wait_for_platform(self, timeout_ms: int = 30000) -> None:
        wait_for_platform(self.page, timeout_ms)

    def choose(self, field: Locator, value: str) -> None:
        """Select a value in a native select or a type-ahead combobox."""
        if field.evaluate("el => el.tagName") == "SELECT":
            field.select_option(value)
        else:
            field.fill(value)
            field.press("Enter")
'''
    
    def render_package_init(self, description: str) -> str:
        return f'"""{description}"""\n'
    
    # ==================== Page modules ====================
    
    def render_page(self, model: PageModel, pages_package: str = "pages") -> str:
        """Render a complete page-object module."""
        identity = model.identity
        lines = [
            '"""',
            f"{identity.caption} page object.",
            "",
            "Generated by flowscribe. New locators and actions are appended on",
            "regeneration; existing members are never rewritten.",
            '"""',
            "",
            "from playwright.sync_api import Locator, Page",
            "",
            f"from {pages_package}.base_page import BasePage, wait_for_shell",
            "",
            "",
            f"class {model.class_name}(BasePage):",
            f"{INDENT}PAGE_ID = {py_str(identity.page_id)}",
            f"{INDENT}MENU_REF = {py_str(identity.menu_ref) if identity.menu_ref else None}",
            f"{INDENT}CAPTION = {py_str(identity.caption)}",
            f"{INDENT}PAGE_TYPE = {py_str(identity.type.value)}",
        ]
        if identity.menu_ref:
            lines.extend(self._route_methods(model))
        text = "\n".join(lines) + "\n"
        return text + "".join(self.render_members(model))
    
    def _route_methods(self, model: PageModel) -> List[str]:
        platform = self._platform
        company = self._default_company
        route = (
            f'f"/?{platform.company_param}={{cmp}}&{platform.menu_param}={{cls.MENU_REF}}"'
        )
        marker = f'f"{platform.menu_param}={{cls.MENU_REF}}"'
        return [
            "",
            f"{INDENT}@classmethod",
            f"{INDENT}def url(cls, cmp: str = {py_str(company)}) -> str:",
            f"{INDENT * 2}return {route}",
            "",
            f"{INDENT}@classmethod",
            f"{INDENT}def matches_url(cls, url: str) -> bool:",
            f"{INDENT * 2}return {marker}.lower() in url.lower()",
            "",
            f"{INDENT}@classmethod",
            f'{INDENT}def goto(cls, page: Page, cmp: str = {py_str(company)}) -> "{model.class_name}":',
            f"{INDENT * 2}page.goto(cls.url(cmp))",
            f"{INDENT * 2}wait_for_shell(page)",
            f"{INDENT * 2}instance = cls(page)",
            f"{INDENT * 2}instance.wait_for_platform()",
            f"{INDENT * 2}return instance",
        ]
    
    def render_members(self, model: PageModel, skip: Sequence[str] = ()) -> List[str]:
        """
        Render locator properties and action methods as text blocks.
        
        Args:
            model: Page model
            skip: Member names already present in an existing module
        """
        blocks: List[str] = []
        for name, locator in model.fields.items():
            if name in skip:
                continue
            blocks.append(
                "\n"
                f"{INDENT}@property\n"
                f"{INDENT}def {name}(self) -> Locator:\n"
                f"{INDENT * 2}return {locator_to_code(locator)}\n"
            )
        for name, (action, field_name) in model.methods.items():
            if name in skip:
                continue
            if action == StepAction.CLICK:
                signature, body = "(self)", f"self.{field_name}.click()"
            elif action == StepAction.FILL and field_name not in model.lookups:
                signature, body = "(self, value: str)", f"self.{field_name}.fill(value)"
            else:
                signature, body = "(self, value: str)", f"self.choose(self.{field_name}, value)"
            blocks.append(
                "\n"
                f"{INDENT}def {name}{signature} -> None:\n"
                f"{INDENT * 2}{body}\n"
            )
        return blocks
    
    def merge_page(self, existing: str, model: PageModel) -> str:
        """
        Append members missing from an existing page module.
        
        Returns:
            The merged source; identical to ``existing`` when nothing is new
        """
        present = set(_DEF_NAME.findall(existing))
        blocks = self.render_members(model, skip=present)
        if not blocks:
            return existing
        logger.debug(f"Appending {len(blocks)} members to {model.class_name}")
        return existing.rstrip("\n") + "\n" + "".join(blocks)
    
    def generate(
        self,
        model: PageModel,
        existing: Optional[str] = None,
        pages_package: str = "pages",
    ) -> str:
        if existing:
            return self.merge_page(existing, model)
        return self.render_page(model, pages_package)
