"""
Code generation: page objects, pytest scripts and data fixtures.
"""

from flowscribe.generation.compiler import (
    CompileResult,
    CompiledArtifacts,
    compile_artifacts,
    compile_bundle,
)
from flowscribe.generation.data_fixture import DataFixture, merge_rows
from flowscribe.generation.parameterizer import (
    ParameterCandidate,
    detect_parameters,
    heavy_positions,
    is_heavy_step,
    is_lookup_fill,
    parameter_names,
)
from flowscribe.generation.pom_generator import (
    PageModel,
    PomGenerator,
    build_page_models,
    locator_to_code,
)
from flowscribe.generation.script_generator import ScriptGenerator

__all__ = [
    "CompileResult",
    "CompiledArtifacts",
    "compile_artifacts",
    "compile_bundle",
    "DataFixture",
    "merge_rows",
    "ParameterCandidate",
    "detect_parameters",
    "heavy_positions",
    "is_heavy_step",
    "is_lookup_fill",
    "parameter_names",
    "PageModel",
    "PomGenerator",
    "build_page_models",
    "locator_to_code",
    "ScriptGenerator",
]
