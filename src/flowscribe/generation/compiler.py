"""
Compiler - Cleaned steps in, a complete test bundle out.

``compile_artifacts`` is pure and deterministic: it renders every file in
memory, merging against whatever the ``existing`` reader returns for each
path. ``compile_bundle`` adds the side effects: it writes the bundle
through BundleWriter only after rendering succeeded, together with the
updated page and locator-status registries in one all-or-nothing write.

Bundle layout (relative to the output directory)::

    conftest.py
    pages/__init__.py
    pages/base_page.py
    pages/<module>/__init__.py
    pages/<module>/<page>_page.py
    tests/<module>/specs/<flow>/test_<flow>.py
    tests/<module>/specs/<flow>/<flow>.meta.json
    tests/<module>/specs/<flow>/<flow>.meta.md
    tests/<module>/data/<flow>_data.json
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from flowscribe.cleaning.step_cleaner import StepCleaner
from flowscribe.config.settings import GeneratorSettings, Settings
from flowscribe.exceptions import CompilationError, FlowscribeError
from flowscribe.generation.data_fixture import DataFixture
from flowscribe.generation.parameterizer import ParameterCandidate, detect_parameters
from flowscribe.generation.pom_generator import PageModel, PomGenerator, build_page_models
from flowscribe.generation.script_generator import ScriptGenerator, format_test_name
from flowscribe.models.locators import locator_key
from flowscribe.models.pages import PageIdentity
from flowscribe.models.steps import RecordedStep
from flowscribe.platforms.base import TargetPlatform
from flowscribe.platforms.registry import get_platform
from flowscribe.storage.bundle_writer import BundleWriter
from flowscribe.storage.locator_status import LocatorStatusRegistry
from flowscribe.storage.page_registry import PageRegistry
from flowscribe.utils.identifiers import to_snake_case

logger = logging.getLogger(__name__)

FileReader = Callable[[str], Optional[str]]
StepInput = Union[RecordedStep, Dict[str, Any]]

STATE_DIR = ".flowscribe"
PAGE_REGISTRY_FILE = "pages.json"
LOCATOR_STATUS_FILE = "locators.json"


def _no_files(relative: str) -> Optional[str]:
    return None


@dataclass
class CompiledArtifacts:
    """
    Everything one compilation produced, still in memory.
    
    Attributes:
        files: Relative path to content, in write order
        pages: Page models that received a module
        parameters: Detected parameter candidates
        flagged_locators: Keys of fragile locators used by the flow
        spec_path: Relative path of the test module
        module: Functional module the bundle was filed under
        data_path: Relative path of the data fixture
    """
    files: Dict[str, str] = field(default_factory=dict)
    pages: List[PageModel] = field(default_factory=list)
    parameters: List[ParameterCandidate] = field(default_factory=list)
    flagged_locators: List[str] = field(default_factory=list)
    spec_path: str = ""
    data_path: str = ""
    module: str = ""


@dataclass
class CompileResult:
    """Outcome of compile_bundle; failures carry an error instead of raising."""
    success: bool
    files: List[str] = field(default_factory=list)
    error: Optional[str] = None
    artifacts: Optional[CompiledArtifacts] = None
    
    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"success": self.success, "files": list(self.files)}
        if self.error:
            result["error"] = self.error
        return result


def coerce_steps(steps: Sequence[StepInput]) -> List[RecordedStep]:
    """
    Accept steps as objects or on-disk dicts.
    
    Raises:
        StepValidationError: for malformed dicts
    """
    return [s if isinstance(s, RecordedStep) else RecordedStep.from_dict(s) for s in steps]


def _meta_json(
    flow_name: str,
    flow_slug: str,
    module: str,
    platform: TargetPlatform,
    artifacts: CompiledArtifacts,
    timestamp: str,
    existing: Optional[str],
    pages_dir: str,
) -> str:
    created_at = timestamp
    if existing:
        try:
            created_at = json.loads(existing).get("createdAt") or timestamp
        except (json.JSONDecodeError, AttributeError):
            logger.warning(f"Ignoring unreadable meta file of {flow_slug}")
    tags = [platform.name] + ([module] if module != platform.name else [])
    meta = {
        "testName": format_test_name(flow_name),
        "flowName": flow_slug,
        "module": module,
        "tags": tags,
        "createdAt": created_at,
        "updatedAt": timestamp,
        "specPath": artifacts.spec_path,
        "dataPath": artifacts.data_path,
        "pages": [
            {
                "pageId": p.identity.page_id,
                "className": p.class_name,
                "filePath": p.relative_path(pages_dir, module),
            }
            for p in artifacts.pages
        ],
        "parameters": sorted({c.name for c in artifacts.parameters}),
        "flaggedLocators": artifacts.flagged_locators,
    }
    return json.dumps(meta, indent=2, ensure_ascii=False) + "\n"


def _meta_md(
    flow_name: str,
    module: str,
    steps: Sequence[RecordedStep],
    artifacts: CompiledArtifacts,
) -> str:
    lines = [
        f"# {format_test_name(flow_name)}",
        "",
        "## Test Intent",
        "",
        flow_name,
        "",
        f"**Module:** {module}",
        "",
        "## Steps",
        "",
    ]
    lines.extend(f"{i}. {step.description}" for i, step in enumerate(steps, start=1))
    lines.extend(["", "## Pages", ""])
    lines.extend(f"- `{p.class_name}` ({p.identity.caption})" for p in artifacts.pages)
    if artifacts.parameters:
        lines.extend(["", "## Parameters", ""])
        seen = set()
        for candidate in artifacts.parameters:
            if candidate.name in seen:
                continue
            seen.add(candidate.name)
            lines.append(
                f"- `{candidate.name}`: {candidate.label} (recorded value: `{candidate.original_value}`)"
            )
    if artifacts.flagged_locators:
        lines.extend(["", "## Flagged Locators", ""])
        lines.extend(f"- `{key}`" for key in artifacts.flagged_locators)
    return "\n".join(lines) + "\n"


def compile_artifacts(
    steps: Sequence[StepInput],
    identities: Mapping[str, PageIdentity],
    flow_name: str,
    settings: Optional[GeneratorSettings] = None,
    existing: Optional[FileReader] = None,
    module: Optional[str] = None,
    platform: Optional[TargetPlatform] = None,
    timestamp: Optional[str] = None,
) -> CompiledArtifacts:
    """
    Render a complete bundle in memory.
    
    Args:
        steps: Recorded steps; cleaned here, so raw recordings are fine
        identities: Page identities by page id
        flow_name: Name of the recorded flow
        settings: Generator settings
        existing: Returns the current content of a relative path, or None
        module: Functional module (defaults to the platform name)
        platform: Target platform (defaults to d365)
        timestamp: ISO timestamp for the meta file (defaults to now)
        
    Raises:
        CompilationError: for an empty flow or unusable existing files
        StepValidationError: for malformed step dicts
    """
    settings = settings or GeneratorSettings()
    platform = platform or get_platform()
    existing = existing or _no_files
    timestamp = timestamp or datetime.now(timezone.utc).isoformat()
    
    if not flow_name or not flow_name.strip():
        raise CompilationError("Flow name must not be empty")
    flow_slug = to_snake_case(flow_name)
    module = to_snake_case(module) if module else platform.name
    
    cleaned = StepCleaner(platform).clean(coerce_steps(steps))
    if not cleaned:
        raise CompilationError(f"Flow {flow_name!r} has no steps left to compile")
    
    models, bindings = build_page_models(cleaned, identities)
    candidates = detect_parameters(cleaned)
    parameters = {c.step_order: c.name for c in candidates}
    
    pom = PomGenerator(platform, settings.default_company, settings.content_frame_selector)
    pages_dir = settings.pages_dir.strip("/")
    tests_dir = settings.tests_dir.strip("/")
    pages_package = pages_dir.replace("/", ".")
    
    artifacts = CompiledArtifacts(parameters=candidates, module=module)
    artifacts.spec_path = f"{tests_dir}/{module}/specs/{flow_slug}/test_{flow_slug}.py"
    artifacts.data_path = f"{tests_dir}/{module}/data/{flow_slug}_data.json"
    meta_base = f"{tests_dir}/{module}/specs/{flow_slug}/{flow_slug}"
    files = artifacts.files
    
    support = {
        "conftest.py": '"""Root of the generated test project; puts page objects on sys.path."""\n',
        f"{pages_dir}/__init__.py": pom.render_package_init("Generated page objects."),
        f"{pages_dir}/base_page.py": pom.render_base_page(),
        f"{pages_dir}/{module}/__init__.py": pom.render_package_init(f"Page objects of the {module} module."),
    }
    for path, content in support.items():
        files[path] = existing(path) or content
    
    for model in models.values():
        path = model.relative_path(pages_dir, module)
        files[path] = pom.generate(model, existing(path), pages_package)
        artifacts.pages.append(model)
    
    scripts = ScriptGenerator(platform, settings)
    files[artifacts.spec_path] = scripts.render(
        cleaned, models, bindings, parameters, flow_slug, module
    )
    files[artifacts.data_path] = DataFixture().render(
        sorted(set(parameters.values())), existing(artifacts.data_path)
    )
    
    flagged = []
    for step in cleaned:
        if step.locator is not None and step.locator.flagged:
            key = locator_key(step.locator)
            if key not in flagged:
                flagged.append(key)
    artifacts.flagged_locators = flagged
    
    meta_path = f"{meta_base}.meta.json"
    files[meta_path] = _meta_json(
        flow_name, flow_slug, module, platform, artifacts, timestamp, existing(meta_path), pages_dir
    )
    files[f"{meta_base}.meta.md"] = _meta_md(flow_name, module, cleaned, artifacts)
    
    logger.info(
        f"Compiled {flow_slug}: {len(cleaned)} steps, {len(artifacts.pages)} pages, "
        f"{len(parameters)} parameters"
    )
    return artifacts


def compile_bundle(
    steps: Sequence[StepInput],
    identities: Mapping[str, PageIdentity],
    flow_name: str,
    settings: Optional[Settings] = None,
    module: Optional[str] = None,
    output_dir: Optional[Union[str, Path]] = None,
    timestamp: Optional[str] = None,
) -> CompileResult:
    """
    Compile a flow and write its bundle.
    
    Never raises for bad input or I/O trouble; the error is reported in
    the result and nothing is left half-written.
    
    Args:
        steps: Recorded steps (objects or on-disk dicts)
        identities: Page identities by page id
        flow_name: Name of the recorded flow
        settings: Application settings
        module: Functional module (defaults to the recorder setting)
        output_dir: Bundle root (defaults to the generator setting)
        timestamp: ISO timestamp for the meta file
    """
    settings = settings or Settings()
    root = Path(output_dir or settings.generator.output_dir)
    writer = BundleWriter(root)
    state_dir = root / STATE_DIR
    
    try:
        platform = get_platform(settings.recorder.platform)
        page_registry = PageRegistry.load(state_dir / PAGE_REGISTRY_FILE)
        known = {}
        for page_id in page_registry.page_ids():
            identity = page_registry.identity(page_id)
            if identity is not None:
                known[page_id] = identity
        known.update(identities)
        
        artifacts = compile_artifacts(
            steps,
            known,
            flow_name,
            settings=settings.generator,
            existing=writer.read,
            module=module or settings.recorder.module,
            platform=platform,
            timestamp=timestamp,
        )

        pages_dir = settings.generator.pages_dir.strip("/")
        for model in artifacts.pages:
            page_registry.register(
                model.identity,
                class_name=model.class_name,
                file_path=model.relative_path(pages_dir, artifacts.module),
            )
        statuses = LocatorStatusRegistry.load(state_dir / LOCATOR_STATUS_FILE)

        # registries go in the same all-or-nothing write as the bundle
        bundle = dict(artifacts.files)
        bundle[f"{STATE_DIR}/{PAGE_REGISTRY_FILE}"] = page_registry.to_json()
        if statuses.track_flagged(artifacts.flagged_locators):
            bundle[f"{STATE_DIR}/{LOCATOR_STATUS_FILE}"] = statuses.to_json()
        written = [rel for rel in writer.write_all(bundle) if rel in artifacts.files]
    except FlowscribeError as e:
        logger.error(f"Compilation of {flow_name!r} failed: {e}")
        return CompileResult(success=False, error=str(e))
    
    return CompileResult(success=True, files=written, artifacts=artifacts)
