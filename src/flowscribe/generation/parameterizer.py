"""
Parameterizer / Wait Injector.

Two small analyses the generators run over cleaned steps:

- which steps trigger a server round-trip and need a stabilization wait
- which typed or selected values become data-fixture parameters
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from flowscribe.models.locators import PlatformAttributeLocator, RoleLocator
from flowscribe.models.steps import LOOKUP_SUFFIX, RecordedStep, StepAction
from flowscribe.platforms.base import TargetPlatform
from flowscribe.platforms.registry import get_platform
from flowscribe.utils.identifiers import make_safe_identifier

logger = logging.getLogger(__name__)

VERB_PREFIXES = ("fill", "select")
FIELD_SUFFIXES = ("Input", "Select", LOOKUP_SUFFIX)


def is_lookup_fill(step: RecordedStep) -> bool:
    """Whether a fill targets a type-ahead combobox whose value is committed with Enter."""
    if step.action != StepAction.FILL:
        return False
    if isinstance(step.locator, RoleLocator) and step.locator.role == "combobox":
        return True
    return (step.field_name or "").endswith(LOOKUP_SUFFIX)


def is_heavy_step(step: RecordedStep, platform: Optional[TargetPlatform] = None) -> bool:
    """
    Whether a step makes the application go back to the server.
    
    Heavy steps are clicks on save/new/delete/confirm style controls,
    tree-item activations, and value confirmations on comboboxes, both
    native selects and lookups filled then confirmed with Enter.
    """
    platform = platform or get_platform()
    locator = step.locator
    
    if step.action == StepAction.SELECT or is_lookup_fill(step):
        return True
    if step.action != StepAction.CLICK or locator is None:
        return False
    
    if isinstance(locator, PlatformAttributeLocator):
        return platform.is_heavy_control(locator.value)
    if isinstance(locator, RoleLocator):
        if locator.role == "treeitem":
            return True
        if locator.role == "button":
            return platform.is_heavy_button(locator.name)
        return False
    
    field_name = step.field_name or ""
    if field_name.endswith("Item") and not field_name.endswith("MenuItem"):
        return True
    if field_name.endswith("Button"):
        return platform.is_heavy_button(locator.text)
    return False


def heavy_positions(
    steps: Sequence[RecordedStep], platform: Optional[TargetPlatform] = None
) -> List[int]:
    """Indices of steps that must be followed by a stabilization wait."""
    platform = platform or get_platform()
    return [i for i, step in enumerate(steps) if is_heavy_step(step, platform)]


@dataclass
class ParameterCandidate:
    """
    A recorded value that becomes a data-fixture column.
    
    Attributes:
        step_order: Order of the fill/select step
        label: Human-readable field label
        original_value: Value typed during recording
        name: Column name used in the fixture and the script
    """
    step_order: int
    label: str
    original_value: str
    name: str
    
    def to_dict(self) -> Dict[str, object]:
        return {
            "stepOrder": self.step_order,
            "label": self.label,
            "originalValue": self.original_value,
            "name": self.name,
        }


def base_parameter_name(step: RecordedStep) -> str:
    """
    Parameter name for one fill/select step.
    
    ``fillCustomerAccount`` gives ``customerAccount``; steps without a
    method name fall back to the field name, then the description.
    """
    method = step.method_name or ""
    for verb in VERB_PREFIXES:
        if method.startswith(verb) and len(method) > len(verb):
            return make_safe_identifier(method[len(verb):])
    
    field_name = step.field_name or ""
    for suffix in FIELD_SUFFIXES:
        if field_name.endswith(suffix) and len(field_name) > len(suffix):
            return make_safe_identifier(field_name[:-len(suffix)])
    
    description = step.description
    for word in ("Fill ", "Select "):
        if description.startswith(word):
            description = description[len(word):]
    return make_safe_identifier(description)


def detect_parameters(steps: Sequence[RecordedStep]) -> List[ParameterCandidate]:
    """
    One candidate per fill/select step.
    
    The same field filled twice keeps one name; two different fields that
    map to the same name are told apart with numeric suffixes.
    """
    candidates: List[ParameterCandidate] = []
    names_by_field: Dict[Tuple[str, str], str] = {}
    taken: Dict[str, int] = {}
    
    for step in steps:
        if step.action not in (StepAction.FILL, StepAction.SELECT):
            continue
        base = base_parameter_name(step)
        field_key = (step.page_id, step.field_name or base)
        
        name = names_by_field.get(field_key)
        if name is None:
            count = taken.get(base, 0) + 1
            taken[base] = count
            name = base if count == 1 else f"{base}{count}"
            names_by_field[field_key] = name
        
        label = step.description.split(" ", 1)[1] if " " in step.description else base
        candidates.append(
            ParameterCandidate(
                step_order=step.order,
                label=label,
                original_value=step.value or "",
                name=name,
            )
        )
    
    logger.debug(f"Detected {len(candidates)} parameter candidates")
    return candidates


def parameter_names(steps: Sequence[RecordedStep]) -> List[str]:
    """Sorted distinct parameter names."""
    return sorted({c.name for c in detect_parameters(steps)})
