"""
Recorder Service - The boundary a shell (CLI or UI) talks to.

Wraps a recording engine, its browser and the compiler behind four
calls: start, stop, compile and preview.
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Union

from flowscribe.browsers.launcher import PlaywrightLauncher
from flowscribe.browsers.playwright_dom import PlaywrightPageContext
from flowscribe.config import get_settings
from flowscribe.config.settings import Settings
from flowscribe.exceptions import RecorderStateError
from flowscribe.generation.compiler import STATE_DIR, PAGE_REGISTRY_FILE, CompileResult, compile_bundle
from flowscribe.generation.parameterizer import detect_parameters
from flowscribe.generation.pom_generator import build_page_models
from flowscribe.generation.script_generator import ScriptGenerator
from flowscribe.models.pages import PageIdentity
from flowscribe.models.steps import RecordedStep, Session
from flowscribe.platforms.registry import get_platform
from flowscribe.recorder.engine import RecordingEngine
from flowscribe.storage.page_registry import PageRegistry

logger = logging.getLogger(__name__)


@dataclass
class PreviewUpdate:
    """A freshly recorded step and the code it will compile to."""
    step: RecordedStep
    code: str


class RecorderService:
    """
    One recording at a time, from browser launch to compiled bundle.
    
    Example:
        >>> service = RecorderService()
        >>> await service.start("https://contoso.operations.dynamics.com/", flow_name="create_order")
        >>> async for update in service.preview():
        ...     print(update.code)
        >>> steps = await service.stop()
        >>> result = service.compile(steps)
    """
    
    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings or get_settings()
        self._platform = get_platform(self._settings.recorder.platform)
        self._engine: Optional[RecordingEngine] = None
        self._launcher: Optional[PlaywrightLauncher] = None
        self._page: Any = None
        self._session: Optional[Session] = None
        self._previews: List["asyncio.Queue[Optional[PreviewUpdate]]"] = []
    
    @property
    def session(self) -> Optional[Session]:
        return self._session
    
    @property
    def is_recording(self) -> bool:
        return self._engine is not None and self._engine.is_active
    
    def _page_registry(self) -> PageRegistry:
        root = Path(self._settings.generator.output_dir)
        return PageRegistry.load(root / STATE_DIR / PAGE_REGISTRY_FILE)
    
    async def start(
        self,
        target_url: str,
        context: Any = None,
        flow_name: str = "recording",
        module: Optional[str] = None,
    ) -> Session:
        """
        Open the target application and start recording.
        
        Args:
            target_url: Where the recording starts
            context: Existing Playwright BrowserContext; a browser is
                launched from the browser settings when omitted
            flow_name: Name of the flow being recorded
            module: Functional module (defaults to the recorder setting)
            
        Returns:
            The live session
        """
        if self.is_recording:
            raise RecorderStateError("A recording is already in progress", state="recording")
        
        if context is None:
            self._launcher = PlaywrightLauncher(self._settings.browser)
            context = await self._launcher.launch()
        
        self._page = await context.new_page()
        session = Session(
            flow_name=flow_name,
            target_url=target_url,
            module=module or self._settings.recorder.module,
        )
        engine = RecordingEngine(self._settings, self._platform, self._page_registry())
        engine.on_step(self._publish)
        
        await engine.start(PlaywrightPageContext(self._page), session, browser_page=self._page)
        self._engine = engine
        self._session = session
        
        # Navigating after attach records the entry navigation as the first step
        await self._page.goto(target_url)
        return session
    
    async def stop(self) -> List[RecordedStep]:
        """
        Stop recording and close a browser this service launched.
        
        Returns:
            The raw recorded steps
        """
        if self._engine is None:
            raise RecorderStateError("No recording in progress", state="idle")
        try:
            steps = await self._engine.stop()
        finally:
            self._engine = None
            for queue in self._previews:
                queue.put_nowait(None)
            if self._launcher is not None:
                await self._launcher.close()
                self._launcher = None
            self._page = None
        return steps
    
    def compile(
        self,
        steps: Optional[Sequence[Union[RecordedStep, Dict[str, Any]]]] = None,
        flow_name: Optional[str] = None,
        module: Optional[str] = None,
        identities: Optional[Dict[str, PageIdentity]] = None,
        output_dir: Optional[str] = None,
    ) -> CompileResult:
        """
        Compile steps (by default the last session's) into a bundle.
        
        Returns:
            CompileResult; failures are reported, not raised
        """
        session = self._session
        if steps is None:
            steps = session.steps if session else []
        if identities is None:
            identities = dict(session.identities) if session else {}
        flow_name = flow_name or (session.flow_name if session else "recording")
        module = module or (session.module if session else None)
        return compile_bundle(
            steps,
            identities,
            flow_name,
            settings=self._settings,
            module=module,
            output_dir=output_dir,
        )
    
    async def preview(self) -> AsyncIterator[PreviewUpdate]:
        """
        Stream steps as they are recorded, with their generated code.
        
        Ends when the recording stops.
        """
        if not self.is_recording:
            raise RecorderStateError("No recording in progress", state="idle")
        queue: "asyncio.Queue[Optional[PreviewUpdate]]" = asyncio.Queue()
        self._previews.append(queue)
        try:
            while True:
                update = await queue.get()
                if update is None:
                    return
                yield update
        finally:
            self._previews.remove(queue)
    
    def render_step(self, step: RecordedStep) -> str:
        """Code a single step compiles to, in isolation."""
        identities = self._session.identities if self._session else {}
        models, bindings = build_page_models([step], identities)
        parameters = {c.step_order: c.name for c in detect_parameters([step])}
        generator = ScriptGenerator(self._platform, self._settings.generator)
        return "\n".join(generator.statements([step], models, bindings, parameters))
    
    def _publish(self, step: RecordedStep) -> None:
        if not self._previews:
            return
        update = PreviewUpdate(step=step, code=self.render_step(step))
        for queue in self._previews:
            queue.put_nowait(update)
