"""
Base exceptions for flowscribe.
"""


class FlowscribeError(Exception):
    """
    Base exception for all flowscribe errors.
    
    Every custom exception inherits from this class so callers can catch
    any recorder or compiler failure with a single except clause.
    
    Attributes:
        message: Human-readable error message
        details: Optional additional error details
    """
    
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
    
    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class ConfigurationError(FlowscribeError):
    """
    Error in configuration.
    
    Raised for invalid settings files, unknown target platforms
    or unusable output directories.
    """
    pass


class InitializationError(FlowscribeError):
    """Raised when a component fails to initialize."""
    pass
