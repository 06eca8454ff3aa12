"""
DOM read exceptions.

These are transient by nature: the recorder catches them where they occur
and skips the current event instead of aborting the session.
"""

from flowscribe.exceptions.base import FlowscribeError

CONTEXT_DESTROYED_MARKER = "Execution context was destroyed"


class DomError(FlowscribeError):
    """Base exception for failed reads against the live page."""
    pass


class ContextDestroyedError(DomError):
    """
    The page navigated while a read was in flight.
    
    Raised when the browser reports that the execution context was torn down
    mid-read (typical during single-page-app route changes).
    """
    
    def __init__(self, message: str = CONTEXT_DESTROYED_MARKER, url: str | None = None):
        super().__init__(message, {"url": url} if url else None)
        self.url = url


class ElementDetachedError(DomError):
    """The element was removed from the DOM before it could be read."""
    
    def __init__(self, message: str, selector: str | None = None):
        super().__init__(message, {"selector": selector} if selector else None)
        self.selector = selector


class DomTimeoutError(DomError):
    """A bounded DOM read did not complete in time."""
    
    def __init__(self, message: str, timeout_ms: int | None = None):
        super().__init__(message, {"timeout_ms": timeout_ms} if timeout_ms else None)
        self.timeout_ms = timeout_ms


def is_context_destroyed(error: BaseException) -> bool:
    """Check whether an arbitrary driver error means the context was destroyed."""
    if isinstance(error, ContextDestroyedError):
        return True
    return CONTEXT_DESTROYED_MARKER in str(error)
