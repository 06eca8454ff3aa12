"""
Browsers module - Driver adapters for the DOM interfaces.
"""

from flowscribe.browsers.launcher import PlaywrightLauncher
from flowscribe.browsers.playwright_dom import PlaywrightElement, PlaywrightPageContext

__all__ = [
    "PlaywrightLauncher",
    "PlaywrightElement",
    "PlaywrightPageContext",
]
