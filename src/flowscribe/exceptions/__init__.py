"""
Exceptions module - Custom exception hierarchy.

This module defines the exceptions raised throughout flowscribe, grouped
by the stage of the recording pipeline that raises them.
"""

from flowscribe.exceptions.base import (
    FlowscribeError,
    ConfigurationError,
    InitializationError,
)
from flowscribe.exceptions.dom import (
    DomError,
    ContextDestroyedError,
    ElementDetachedError,
    DomTimeoutError,
    is_context_destroyed,
)
from flowscribe.exceptions.recording import (
    RecorderError,
    RecorderStateError,
    SessionFrozenError,
    StepValidationError,
)
from flowscribe.exceptions.compilation import (
    CompilationError,
    ArtifactReadError,
    ArtifactWriteError,
)

__all__ = [
    # Base exceptions
    "FlowscribeError",
    "ConfigurationError",
    "InitializationError",
    # DOM exceptions
    "DomError",
    "ContextDestroyedError",
    "ElementDetachedError",
    "DomTimeoutError",
    "is_context_destroyed",
    # Recording exceptions
    "RecorderError",
    "RecorderStateError",
    "SessionFrozenError",
    "StepValidationError",
    # Compilation exceptions
    "CompilationError",
    "ArtifactReadError",
    "ArtifactWriteError",
]
