"""
Recording session exceptions.
"""

from flowscribe.exceptions.base import FlowscribeError


class RecorderError(FlowscribeError):
    """Base exception for recording errors."""
    pass


class RecorderStateError(RecorderError):
    """
    Invalid recorder state transition.
    
    Raised when start() is called twice, when stop() is called on an engine
    that never started, or when a stopped engine is restarted.
    """
    
    def __init__(self, message: str, state: str | None = None):
        super().__init__(message, {"state": state} if state else None)
        self.state = state


class SessionFrozenError(RecorderError):
    """Raised when a step is appended to a session that has been stopped."""
    pass


class StepValidationError(RecorderError):
    """
    A recorded step violates its structural invariants.
    
    For example a click without a locator, or a navigation that carries one.
    """
    
    def __init__(self, message: str, order: int | None = None):
        super().__init__(message, {"order": order} if order is not None else None)
        self.order = order
