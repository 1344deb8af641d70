"""
PlainStep CLI

Command-line interface for running natural-language feature files.
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from plainstep import __version__
from plainstep.core.config import BrowserName, Settings, load_settings
from plainstep.core.context import RunContext
from plainstep.core.exceptions import PlainStepError
from plainstep.core.logging_config import configure_logging
from plainstep.core.models import RunStatus, TestReport
from plainstep.nlp.classifier import create_classifier
from plainstep.nlp.interpreter import StepInterpreter
from plainstep.nlp.test_data import TestDataStore
from plainstep.parser.feature_parser import FeatureParser, all_tags
from plainstep.resolver.registry import SelectorRegistry
from plainstep.runner.runner import FeatureRunner
from plainstep.tools.browser import BrowserTool
from plainstep.tools.recorder import ActionRecorder

app = typer.Typer(
    name="plainstep",
    help="Run plain-English Gherkin steps against a web application",
    add_completion=False,
)
registry_app = typer.Typer(help="Inspect or reset the learned selector registry")
app.add_typer(registry_app, name="registry")
console = Console()

STATUS_STYLES = {
    RunStatus.PASSED: "[green]PASS[/green]",
    RunStatus.FAILED: "[red]FAIL[/red]",
    RunStatus.SKIPPED: "[yellow]SKIP[/yellow]",
}


def _split_tags(tags: Optional[str]) -> list[str]:
    return [t.strip() for t in (tags or "").split(",") if t.strip()]


def _load(environment: Optional[str] = None, **overrides) -> Settings:
    try:
        return load_settings(environment, **{k: v for k, v in overrides.items() if v is not None})
    except PlainStepError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def version() -> None:
    """Show PlainStep version."""
    console.print(f"PlainStep v{__version__}")


@app.command()
def config(
    env: Optional[str] = typer.Option(None, "--env", "-e", help="Environment to load"),
) -> None:
    """Show current configuration (without sensitive data)."""
    settings = _load(env)
    console.print(
        Panel(
            f"""[bold]PlainStep Configuration[/bold]

Environment: {settings.environment}
Base URL: {settings.base_url}
Browser: {settings.browser.value} (headless={settings.headless})
Timeout: {settings.timeout_ms}ms
Retries: {settings.retries} (backoff {settings.retry_backoff_ms}ms)
Parallel: {settings.parallel} (max workers {settings.max_workers})
Report Dir: {settings.report_dir}
Registry Dir: {settings.registry_dir}
Test Data Dir: {settings.test_data_dir}
Log Level: {settings.log_level}

[dim]Intent Classifier:[/dim] {settings.intent_classifier.value}
  Anthropic: {"[green]configured[/green]" if settings.anthropic_api_key else "[red]not configured[/red]"}
  OpenAI: {"[green]configured[/green]" if settings.openai_api_key else "[red]not configured[/red]"}
""",
            title="[bold blue]PlainStep[/bold blue]",
        )
    )


@app.command()
def parse(
    step: str = typer.Argument(..., help='Step text, e.g. "When I click the Login button"'),
    env: Optional[str] = typer.Option(None, "--env", "-e", help="Environment for {placeholders}"),
) -> None:
    """Show how a step sentence is interpreted, without running it."""
    settings = _load(env)
    test_data = TestDataStore(settings.test_data_dir, settings.environment)
    interpreter = StepInterpreter(create_classifier(settings), resolve_placeholder=test_data.resolve)

    try:
        action = asyncio.run(interpreter.interpret(step))
    except PlainStepError as e:
        console.print(f"[red]{type(e).__name__}:[/red] {e.message}")
        raise typer.Exit(1)

    table = Table(show_header=False)
    for field, value in action.to_dict().items():
        table.add_row(f"[bold]{field}[/bold]", str(value) if value is not None else "[dim]-[/dim]")
    console.print(Panel(table, title="[bold blue]Action[/bold blue]"))


@app.command()
def features(
    feature_path: str = typer.Argument("features", help="Feature file or directory"),
) -> None:
    """List features, scenarios and the tags available for --tags."""
    parser = FeatureParser()
    try:
        if Path(feature_path).is_dir():
            parsed = parser.parse_directory(feature_path)
        else:
            parsed = [parser.parse_file(feature_path)]
    except PlainStepError as e:
        console.print(f"[red]{type(e).__name__}:[/red] {e.message}")
        raise typer.Exit(1)

    table = Table(title="Features")
    table.add_column("Feature")
    table.add_column("Scenario")
    table.add_column("Steps", justify="right")
    table.add_column("Tags")
    for feature in parsed:
        for scenario in feature.scenarios:
            tags = " ".join(feature.tags + scenario.tags)
            table.add_row(feature.name, scenario.name, str(len(scenario.steps)), tags or "[dim]-[/dim]")
    console.print(table)

    tags = all_tags(parsed)
    console.print(f"[bold]Tags:[/bold] {' '.join(tags) if tags else '[dim]none[/dim]'}")


@app.command()
def record(
    url: Optional[str] = typer.Argument(None, help="Page to open; defaults to BASE_URL"),
    env: Optional[str] = typer.Option(None, "--env", "-e", help="Environment to load"),
    browser: Optional[BrowserName] = typer.Option(None, "--browser", "-b", help="Browser engine"),
) -> None:
    """Open a browser and turn what you do into steps."""
    settings = _load(env, headless=False, browser=browser, enable_video=False, enable_tracing=False)
    target = url or settings.base_url

    console.print(
        Panel(
            f"[bold]Recording:[/bold] {target}\n"
            "Perform your actions in the browser, then close it to finish.",
            title="[bold red]PlainStep Recorder[/bold red]",
        )
    )

    recorder = ActionRecorder(on_step=lambda step: console.print(f"  [green]{step}[/green]"))
    try:
        steps = asyncio.run(recorder.record(BrowserTool(settings), target))
    except KeyboardInterrupt:
        steps = recorder.steps

    console.print(
        Panel(
            "\n".join(steps) if steps else "[dim]No steps recorded.[/dim]",
            title="[bold blue]Recorded Steps[/bold blue]",
        )
    )
    console.print("[dim]Copy the steps above into your .feature file.[/dim]")


@app.command()
def run(
    feature_path: str = typer.Argument("features", help="Feature file or directory"),
    env: Optional[str] = typer.Option(None, "--env", "-e", help="Environment to run against"),
    tags: Optional[str] = typer.Option(None, "--tags", help="Comma-separated tags to include"),
    exclude_tags: Optional[str] = typer.Option(None, "--exclude-tags", help="Comma-separated tags to exclude"),
    headed: bool = typer.Option(False, "--headed", help="Show the browser window"),
    browser: Optional[BrowserName] = typer.Option(None, "--browser", "-b", help="Browser engine"),
    retries: Optional[int] = typer.Option(None, "--retries", "-r", min=0, help="Retries per step"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", min=1, help="Parallel scenarios"),
    sequential: bool = typer.Option(False, "--sequential", help="Run scenarios one at a time"),
    report_dir: Optional[str] = typer.Option(None, "--report-dir", help="Where reports are written"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show tracebacks on errors"),
) -> None:
    """Run feature files."""
    settings = _load(
        env,
        headless=False if headed else None,
        browser=browser,
        retries=retries,
        max_workers=workers,
        parallel=False if sequential else None,
        report_dir=report_dir,
    )
    configure_logging(settings.log_dir, settings.log_level)

    console.print(
        Panel(
            f"[bold]Features:[/bold] {feature_path}\n"
            f"[bold]Environment:[/bold] {settings.environment}\n"
            f"[bold]Base URL:[/bold] {settings.base_url}",
            title="[bold blue]PlainStep Run[/bold blue]",
        )
    )

    try:
        runner = FeatureRunner(
            RunContext.build(settings),
            tags=_split_tags(tags),
            exclude_tags=_split_tags(exclude_tags),
        )
        if Path(feature_path).is_dir():
            report = asyncio.run(runner.run_features(feature_path))
        else:
            report = asyncio.run(runner.run_feature_file(feature_path))
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        if verbose:
            import traceback
            console.print(traceback.format_exc())
        raise typer.Exit(1)

    _print_report(report, runner.report_path)
    if report.summary.failed:
        raise typer.Exit(1)


def _print_report(report: TestReport, report_path: Path) -> None:
    lines = []
    for feature in report.features:
        lines.append(f"[bold]{feature.feature.name}[/bold]")
        for result in feature.scenarios:
            lines.append(f"  {STATUS_STYLES[result.status]} {result.scenario.name}")
            failed = [s for s in result.steps if s.error]
            if failed:
                lines.append(f"       [dim]{failed[0].step.full_text}: {failed[0].error.message}[/dim]")
            elif result.error:
                lines.append(f"       [dim]{result.error.message}[/dim]")

    summary = report.summary
    color = "green" if summary.failed == 0 else "red"
    console.print(
        Panel(
            f"""[bold]Total:[/bold] {summary.total} scenarios
[bold]Passed:[/bold] [{color}]{summary.passed}[/{color}]
[bold]Failed:[/bold] [{color}]{summary.failed}[/{color}]
[bold]Skipped:[/bold] {summary.skipped}
[bold]Duration:[/bold] {summary.duration_ms / 1000:.1f}s

[bold]Details:[/bold]
{chr(10).join(lines)}

[dim]Report: {report_path}[/dim]""",
            title=f"[bold {color}]Test Results[/bold {color}]",
        )
    )


@registry_app.command("list")
def registry_list(
    env: Optional[str] = typer.Option(None, "--env", "-e", help="Environment to load"),
) -> None:
    """List learned selectors per page."""
    settings = _load(env)
    registry = SelectorRegistry(settings.registry_dir)
    pages = registry.pages()

    if not pages:
        console.print("[dim]No learned selectors found.[/dim]")
        return

    table = Table(title="Selector Registry")
    table.add_column("Page")
    table.add_column("Element")
    table.add_column("Selector")
    for page in pages:
        for key, selector in sorted(registry.load(page).items()):
            table.add_row(page, key, selector)
    console.print(table)


@registry_app.command("clear")
def registry_clear(
    page: Optional[str] = typer.Option(None, "--page", "-p", help="Only clear this page"),
    env: Optional[str] = typer.Option(None, "--env", "-e", help="Environment to load"),
) -> None:
    """Forget learned selectors."""
    settings = _load(env)
    deleted = SelectorRegistry(settings.registry_dir).clear(page)
    console.print(f"Removed {deleted} registry file(s)")


if __name__ == "__main__":
    app()
