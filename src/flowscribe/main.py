"""
flowscribe - CLI Entry Point.

Configuration Priority:
    1. CLI arguments (--module, --output-dir, etc.)
    2. Environment variables (FLOWSCRIBE__GENERATOR__OUTPUT_DIR, etc.)
    3. Config file (flowscribe.yaml)

Usage:
    flowscribe record https://contoso.operations.dynamics.com/ --flow create_sales_order
    flowscribe compile create_sales_order.session.json --flow create_sales_order
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from flowscribe import __version__
from flowscribe.cleaning import clean as clean_steps
from flowscribe.classification import PageClassifier
from flowscribe.config import load_config
from flowscribe.config.settings import Settings
from flowscribe.exceptions import FlowscribeError
from flowscribe.models.pages import PageIdentity
from flowscribe.models.steps import RecordedStep, Session, steps_to_json
from flowscribe.platforms import get_platform
from flowscribe.service import RecorderService
from flowscribe.utils.logging import setup_logging

# Create the CLI app
app = typer.Typer(
    name="flowscribe",
    help="Record ERP browser sessions and compile them into Playwright tests",
    add_completion=False,
)

console = Console()


def _settings(config: Optional[Path], verbose: bool, **overrides: Any) -> Settings:
    try:
        settings = load_config(config_path=config, **{k: v for k, v in overrides.items() if v})
    except FlowscribeError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1)
    level = "DEBUG" if verbose else settings.logging.level
    setup_logging(level, settings.logging.file, settings.logging.json_format, settings.logging.format)
    return settings


def _load_recording(path: Path) -> Tuple[List[RecordedStep], Dict[str, PageIdentity], Optional[Session]]:
    """Read a session file or a bare step list."""
    if not path.exists():
        console.print(f"[red]✗ File not found: {path}[/red]")
        raise typer.Exit(1)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        if isinstance(data, dict) and "flowName" in data:
            session = Session.from_dict(data)
            return session.steps, dict(session.identities), session
        items = data.get("steps", []) if isinstance(data, dict) else data
        return [RecordedStep.from_dict(item) for item in items], {}, None
    except (json.JSONDecodeError, FlowscribeError) as e:
        console.print(f"[red]✗ Cannot read {path}: {e}[/red]")
        raise typer.Exit(1)


def _steps_table(steps: List[RecordedStep], title: str) -> Table:
    table = Table(title=title)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Page", style="cyan")
    table.add_column("Action", style="magenta")
    table.add_column("Description")
    table.add_column("Locator", style="dim")
    for step in steps:
        locator = step.locator.text if step.locator else ""
        if step.locator is not None and step.locator.flagged:
            locator = f"[yellow]{locator}[/yellow]"
        table.add_row(str(step.order), step.page_id, step.action.value, step.description, locator)
    return table


@app.command()
def record(
    url: str = typer.Argument(..., help="URL the recording starts at"),
    flow: str = typer.Option(..., "--flow", "-f", help="Name of the recorded flow"),
    module: Optional[str] = typer.Option(None, "--module", "-m", help="Functional module (e.g. sales)"),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Session file (default: <flow>.session.json)"),
    compile_after: bool = typer.Option(False, "--compile", help="Compile the bundle after recording"),
    headless: bool = typer.Option(False, "--headless", help="Run the browser headless"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
):
    """
    Record a flow in a live browser.
    
    Interact with the application, then press Enter in this terminal to stop.
    """
    overrides: Dict[str, Any] = {}
    if headless:
        overrides["browser"] = {"headless": True}
    settings = _settings(config, verbose, **overrides)
    
    console.print(Panel.fit(
        f"[bold]Recording[/bold] {flow}\n[dim]{url}[/dim]\n\nPress [bold]Enter[/bold] to stop.",
        title="flowscribe",
    ))
    
    try:
        session = asyncio.run(_record_async(settings, url, flow, module))
    except FlowscribeError as e:
        console.print(f"\n[red]✗ Error: {e}[/red]")
        raise typer.Exit(1)
    
    target = out or Path(f"{flow}.session.json")
    target.write_text(session.to_json(), encoding="utf-8")
    console.print(_steps_table(session.steps, f"Recorded {len(session.steps)} steps"))
    console.print(f"[green]✓ Session saved to {target}[/green]")
    
    if compile_after:
        _compile_and_report(settings, session.steps, dict(session.identities), flow, module or session.module, None)


async def _record_async(settings: Settings, url: str, flow: str, module: Optional[str]) -> Session:
    service = RecorderService(settings)
    session = await service.start(url, flow_name=flow, module=module)
    
    async def show_preview():
        async for update in service.preview():
            console.print(f"[dim]{update.step.order:>3}[/dim] {update.code}")
    
    preview = asyncio.create_task(show_preview())
    try:
        await asyncio.to_thread(input)
    except (KeyboardInterrupt, EOFError):
        pass
    finally:
        await service.stop()
        await preview
    return session


@app.command()
def clean(
    steps_file: Path = typer.Argument(..., help="Session or steps JSON file"),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Write cleaned steps here"),
    platform: str = typer.Option("d365", "--platform", "-p", help="Target platform"),
):
    """Show (or save) the steps a recording cleans down to."""
    steps, _, _ = _load_recording(steps_file)
    try:
        cleaned = clean_steps(steps, get_platform(platform))
    except FlowscribeError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1)
    console.print(_steps_table(cleaned, f"{len(cleaned)} of {len(steps)} steps kept"))
    if out:
        out.write_text(steps_to_json(cleaned), encoding="utf-8")
        console.print(f"[green]✓ Cleaned steps saved to {out}[/green]")


def _compile_and_report(
    settings: Settings,
    steps: List[RecordedStep],
    identities: Dict[str, PageIdentity],
    flow: str,
    module: Optional[str],
    output_dir: Optional[Path],
) -> None:
    service = RecorderService(settings)
    result = service.compile(
        steps,
        flow_name=flow,
        module=module,
        identities=identities,
        output_dir=str(output_dir) if output_dir else None,
    )
    if not result.success:
        console.print(f"[red]✗ Compilation failed: {result.error}[/red]")
        raise typer.Exit(1)
    
    artifacts = result.artifacts
    console.print(f"[green]✓ Compiled {flow}[/green]")
    console.print(f"  Pages: {', '.join(p.class_name for p in artifacts.pages)}")
    console.print(f"  Parameters: {', '.join(sorted({c.name for c in artifacts.parameters})) or '-'}")
    if artifacts.flagged_locators:
        console.print(f"  [yellow]⚠ {len(artifacts.flagged_locators)} fragile locators[/yellow]")
    if result.files:
        for path in result.files:
            console.print(f"  - {path}")
    else:
        console.print("  [dim]Nothing changed[/dim]")


@app.command("compile")
def compile_command(
    steps_file: Path = typer.Argument(..., help="Session or steps JSON file"),
    flow: Optional[str] = typer.Option(None, "--flow", "-f", help="Flow name (default: from the session)"),
    module: Optional[str] = typer.Option(None, "--module", "-m", help="Functional module"),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", "-d", help="Bundle root"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
):
    """Compile recorded steps into page objects, a test and its data."""
    settings = _settings(config, verbose)
    steps, identities, session = _load_recording(steps_file)
    flow = flow or (session.flow_name if session else steps_file.stem.split(".")[0])
    module = module or (session.module if session else None)
    _compile_and_report(settings, steps, identities, flow, module, output_dir)


@app.command()
def classify(
    url: str = typer.Argument(..., help="URL to classify"),
    title: str = typer.Option("", "--title", "-t", help="Document title"),
    breadcrumb: Optional[List[str]] = typer.Option(None, "--breadcrumb", "-b", help="Breadcrumb entry (repeatable)"),
    platform: str = typer.Option("d365", "--platform", "-p", help="Target platform"),
):
    """Classify a page offline from its URL, title and breadcrumbs."""
    try:
        classifier = PageClassifier(get_platform(platform))
    except FlowscribeError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1)
    result = classifier.classify_context(url, title, breadcrumb or [])
    
    table = Table(show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Page id", result.page_id)
    table.add_row("Name", result.page_name)
    table.add_row("Pattern", result.pattern.value)
    table.add_row("Type", result.page_type.value)
    table.add_row("Ignored", "yes" if result.ignore_for_pom else "no")
    console.print(table)


@app.command()
def version():
    """Show version information."""
    console.print(f"[bold]flowscribe[/bold] v{__version__}")


if __name__ == "__main__":
    app()
