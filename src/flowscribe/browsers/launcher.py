"""
Browser Launcher - Starts the Playwright browser a recording runs in.
"""

import logging
from typing import Any, Optional

from flowscribe.config.settings import BrowserSettings
from flowscribe.exceptions import InitializationError

logger = logging.getLogger(__name__)


class PlaywrightLauncher:
    """
    Owns one Playwright browser and its recording context.
    
    Example:
        >>> launcher = PlaywrightLauncher(settings.browser)
        >>> context = await launcher.launch()
        >>> page = await context.new_page()
        >>> await launcher.close()
    """
    
    def __init__(self, settings: Optional[BrowserSettings] = None):
        self._settings = settings or BrowserSettings()
        self._playwright: Any = None
        self._browser: Any = None
        self._context: Any = None
    
    @property
    def context(self) -> Any:
        return self._context
    
    async def launch(self) -> Any:
        """
        Launch the browser and open a fresh context.
        
        Returns:
            The Playwright BrowserContext
            
        Raises:
            InitializationError: if the browser cannot be started
        """
        settings = self._settings
        try:
            from playwright.async_api import async_playwright
            
            self._playwright = await async_playwright().start()
            launchers = {
                "chromium": self._playwright.chromium,
                "firefox": self._playwright.firefox,
                "webkit": self._playwright.webkit,
            }
            launcher = launchers.get(settings.browser_type, self._playwright.chromium)
            
            options = {"headless": settings.headless}
            if settings.channel:
                options["channel"] = settings.channel
            self._browser = await launcher.launch(**options)
            
            context_options = {
                "viewport": {"width": settings.viewport_width, "height": settings.viewport_height},
            }
            if settings.storage_state_path:
                context_options["storage_state"] = settings.storage_state_path
            self._context = await self._browser.new_context(**context_options)
            self._context.set_default_timeout(settings.timeout_ms)
        except Exception as e:
            await self.close()
            raise InitializationError(f"Failed to launch browser: {e}") from e
        
        logger.info(f"Launched {settings.browser_type} browser (headless={settings.headless})")
        return self._context
    
    async def close(self) -> None:
        """Close the context, the browser and Playwright."""
        if self._context is not None:
            await self._context.close()
            self._context = None
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
        logger.info("Browser closed")
