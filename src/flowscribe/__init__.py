"""
flowscribe - Record ERP browser sessions and compile them into tests.

A recording passes through capture, locator extraction and page
classification while the user clicks through the application. The
resulting steps are cleaned, parameterized and compiled into Playwright
page objects, a data-driven pytest module and its data fixture.

Example:
    >>> from flowscribe import RecorderService
    >>> service = RecorderService()
    >>> await service.start("https://contoso.operations.dynamics.com/", flow_name="create_order")
    >>> steps = await service.stop()
    >>> result = service.compile(steps)
"""

__version__ = "0.1.0"

# Public API exports
from flowscribe.config.settings import Settings
from flowscribe.platforms.registry import PlatformRegistry
from flowscribe.service import PreviewUpdate, RecorderService

__all__ = [
    "RecorderService",
    "PreviewUpdate",
    "Settings",
    "PlatformRegistry",
    "__version__",
]
