"""
Settings - Pydantic models for type-safe configuration.

All recorder, capture and generator tunables live here so heuristics
that depend on magic numbers (debounce windows, ancestor depths, the
left-edge navigation threshold) can be adjusted without code changes.

Example:
    >>> from flowscribe.config import load_config
    >>> settings = load_config()
    >>> settings.capture.input_debounce_ms
    800
"""

from typing import Literal, Optional
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BrowserSettings(BaseModel):
    """
    Browser launched by the ``record`` command.
    
    Attributes:
        headless: Run browser in headless mode
        browser_type: Playwright browser engine
        channel: Optional branded channel (chrome, msedge)
        timeout_ms: Default timeout for browser operations
        viewport_width: Browser viewport width in pixels
        viewport_height: Browser viewport height in pixels
        storage_state_path: Saved authenticated session to reuse
    """
    headless: bool = False
    browser_type: Literal["chromium", "firefox", "webkit"] = "chromium"
    channel: Optional[str] = None
    timeout_ms: int = Field(default=30000, ge=1000, le=300000)
    viewport_width: int = Field(default=1600, ge=320, le=3840)
    viewport_height: int = Field(default=900, ge=240, le=2160)
    storage_state_path: Optional[str] = None


class CaptureSettings(BaseModel):
    """
    Event capture tunables.
    
    Attributes:
        input_debounce_ms: Quiet window before a typed value is reported
        click_ancestor_depth: How far a click may be re-targeted upwards
        nav_pane_depth: How far to look for a navigation-pane container
        spatial_fallback_px: Left-edge width treated as the navigation pane
            when class-based detection fails; None disables the fallback
        max_text_length: Upper bound for text captured from an element
    """
    input_debounce_ms: int = Field(default=800, ge=0, le=10000)
    click_ancestor_depth: int = Field(default=10, ge=1, le=50)
    nav_pane_depth: int = Field(default=15, ge=1, le=50)
    spatial_fallback_px: Optional[int] = Field(default=None, ge=1, le=2000)
    max_text_length: int = Field(default=100, ge=10, le=1000)


class RecorderSettings(BaseModel):
    """
    Recording engine settings.
    
    Attributes:
        platform: Registered target platform name
        module: Functional module the recording belongs to (e.g. sales)
        dom_timeout_ms: Bound for every DOM read during recording
        max_label_length: Clicks whose label is longer than this are skipped
    """
    platform: str = "d365"
    module: Optional[str] = None
    dom_timeout_ms: int = Field(default=3000, ge=100, le=60000)
    max_label_length: int = Field(default=80, ge=10, le=500)


class GeneratorSettings(BaseModel):
    """
    Code generation settings.
    
    Attributes:
        output_dir: Root of the generated test project
        pages_dir: Page object directory, relative to output_dir
        tests_dir: Test bundle directory, relative to output_dir
        default_company: Company used by generated goto() helpers
        wait_after_heavy_actions: Inject stabilization waits
        test_timeout_s: Per-test timeout written into generated scripts
        content_frame_selector: iframe generated page objects locate elements
            in (None uses the platform default)
    """
    output_dir: str = "./generated"
    pages_dir: str = "pages"
    tests_dir: str = "tests"
    default_company: str = "USMF"
    wait_after_heavy_actions: bool = True
    test_timeout_s: int = Field(default=120, ge=10, le=3600)
    content_frame_selector: Optional[str] = None


class LoggingSettings(BaseModel):
    """
    Logging configuration.
    
    Attributes:
        level: Log level
        format: Log format string
        file: Log file path (None for console only)
        json_format: Use JSON format for logs
    """
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = None
    json_format: bool = False


class Settings(BaseSettings):
    """
    Root settings container.
    
    Settings are loaded in this priority order (highest to lowest):
    1. Explicit values passed to constructor
    2. Environment variables (prefixed with FLOWSCRIBE__)
    3. Config file (YAML)
    4. Default values
    
    Example:
        >>> settings = Settings(capture=CaptureSettings(input_debounce_ms=500))
    """
    
    model_config = SettingsConfigDict(
        env_prefix="FLOWSCRIBE__",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )
    
    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    capture: CaptureSettings = Field(default_factory=CaptureSettings)
    recorder: RecorderSettings = Field(default_factory=RecorderSettings)
    generator: GeneratorSettings = Field(default_factory=GeneratorSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    
    debug: bool = False
    
    def merge_with(self, overrides: dict) -> "Settings":
        """
        Create a new Settings instance with overrides applied.
        
        Args:
            overrides: Dictionary of values to override
            
        Returns:
            New Settings instance with overrides applied
        """
        current = self.model_dump()
        
        def deep_merge(base: dict, updates: dict) -> dict:
            for key, value in updates.items():
                if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                    deep_merge(base[key], value)
                else:
                    base[key] = value
            return base
        
        return Settings(**deep_merge(current, overrides))
