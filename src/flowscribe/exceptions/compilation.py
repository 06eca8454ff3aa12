"""
Compilation and artifact writing exceptions.
"""

from flowscribe.exceptions.base import FlowscribeError


class CompilationError(FlowscribeError):
    """
    Compiling steps into artifacts failed.
    
    Raised by the generators for malformed step data. The compiler turns it
    into an unsuccessful CompileResult rather than letting it escape.
    """
    pass


class ArtifactWriteError(CompilationError):
    """Writing a generated artifact to disk failed."""
    
    def __init__(self, message: str, path: str | None = None):
        super().__init__(message, {"path": path} if path else None)
        self.path = path


class ArtifactReadError(CompilationError):
    """An existing artifact could not be read for merging."""
    
    def __init__(self, message: str, path: str | None = None):
        super().__init__(message, {"path": path} if path else None)
        self.path = path
