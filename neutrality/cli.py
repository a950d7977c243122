"""Click CLI: readiness check, fan-out, analysis, and report output."""

import asyncio
import logging
import sys
from pathlib import Path

import click
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from config.config_loader import AppConfig, load_config
from neutrality.errors import AnalysisError, ConfigurationError
from neutrality.models import ModelId, ModelResult
from neutrality.output import console, print_analysis, print_model_result, save_to_file
from neutrality.registry import get_descriptor, list_descriptors
from neutrality.schemas import AnalyzeRequest, NeutralityTestRequest, eligible_for_analysis
from neutrality.service import NeutralityService

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _load_config_or_exit() -> AppConfig:
    try:
        return load_config()
    except FileNotFoundError as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        sys.exit(1)


def _parse_models(models_arg: str | None) -> list[str]:
    """Comma-separated ids, or every registered model when omitted."""
    if not models_arg:
        return [m.value for m in ModelId]
    return [m.strip() for m in models_arg.split(",") if m.strip()]


async def _run(
    service: NeutralityService,
    request: NeutralityTestRequest,
    analyze: bool,
    save_dir: Path | None,
) -> None:
    console.print(f"\n[bold cyan]Neural Net Neutrality[/bold cyan] - {len(request.models)} models")
    console.print(f"Models: {', '.join(get_descriptor(m).display_name for m in request.models)}")
    console.print(f"Prompt: [italic]{request.prompt[:80]}{'...' if len(request.prompt) > 80 else ''}[/italic]\n")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    ) as progress:

        def on_result(result: ModelResult) -> None:
            mark = "[green]OK[/green]" if result.error is None else "[red]FAIL[/red]"
            progress.print(f"{mark} {result.model_name}")

        progress.add_task("Waiting for models...", total=None)
        result = await service.run_neutrality_test(request, on_result=on_result)

    for resp in result.responses:
        print_model_result(resp)

    analysis = None
    eligible = eligible_for_analysis(result.responses)
    if analyze and eligible:
        with console.status("Running neutrality analysis..."):
            analysis = await service.analyze_responses(
                AnalyzeRequest(question=result.prompt, responses=eligible)
            )
        print_analysis(analysis)
    elif analyze:
        logger.warning("No successful responses to analyze")

    if save_dir is not None:
        saved_path = save_to_file(result, save_dir, analysis=analysis)
        console.print(f"\n[dim]Saved to: {saved_path}[/dim]")


@click.group()
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """Neural Net Neutrality -- compare how LLMs handle contested questions.

    \b
    Examples:
      neutrality status
      neutrality run "Is the death penalty ever justified?"
      neutrality run "Is capitalism better than communism?" --models gpt-5,claude-sonnet --no-analyze
      neutrality serve --port 3000
    """
    load_dotenv()
    _setup_logging(verbose)
    ctx.obj = NeutralityService(_load_config_or_exit())


@main.command()
@click.pass_obj
def status(service: NeutralityService) -> None:
    """Check whether the model back-end is configured and reachable."""
    readiness = asyncio.run(service.llm_status())
    if readiness.ready:
        console.print("[green]READY[/green] Replicate reachable")
    else:
        console.print(f"[red]NOT READY[/red] {readiness.reason}")
    configured = ", ".join(sorted(service.config.available_services)) or "none"
    console.print(f"[dim]Configured services: {configured}[/dim]")
    if not readiness.ready:
        sys.exit(1)


@main.command(name="models")
def list_models() -> None:
    """List the models that can be tested."""
    for descriptor in list_descriptors():
        console.print(f"[bold]{descriptor.id.value}[/bold]  {descriptor.display_name} ({descriptor.provider_name})")
        console.print(f"  [dim]{descriptor.description}[/dim]")


def _resolve_save_dir(service: NeutralityService, save_dir: str | None) -> Path | None:
    if save_dir is None:
        return None
    return Path(save_dir) if save_dir else service.config.defaults.output_dir


@main.command()
@click.argument("prompt")
@click.option("--models", default=None, help="Comma-separated model ids (default: all)")
@click.option("--temperature", default=None, type=float, help="Sampling temperature, 0-2 (default: from config)")
@click.option("--analyze/--no-analyze", default=True, help="Score successful responses with the analyst model")
@click.option(
    "--save",
    "save_dir",
    is_flag=False,
    flag_value="",
    default=None,
    help="Write a markdown report to DIR (bare --save uses defaults.output_dir)",
)
@click.option("--skip-readiness-check", is_flag=True, default=False, help="Skip the back-end readiness probe")
@click.pass_obj
def run(
    service: NeutralityService,
    prompt: str,
    models: str | None,
    temperature: float | None,
    analyze: bool,
    save_dir: str | None,
    skip_readiness_check: bool,
) -> None:
    """Send PROMPT to every selected model and compare the answers."""
    try:
        request = NeutralityTestRequest(prompt=prompt, models=_parse_models(models), temperature=temperature)
    except ValidationError as exc:
        messages = "; ".join(err["msg"] for err in exc.errors())
        console.print(f"[bold red]Invalid request:[/bold red] {messages}")
        sys.exit(2)

    if not skip_readiness_check:
        readiness = asyncio.run(service.llm_status())
        if not readiness.ready:
            console.print(
                f"[bold red]Error:[/bold red] {readiness.reason or 'LLM service is currently unavailable.'}"
            )
            sys.exit(1)

    try:
        asyncio.run(_run(service, request, analyze, _resolve_save_dir(service, save_dir)))
    except (ConfigurationError, AnalysisError) as exc:
        console.print(f"[bold red]Error:[/bold red] {exc.message}")
        sys.exit(1)


@main.command()
@click.option("--host", default="127.0.0.1", help="Bind address")
@click.option("--port", default=3000, type=int, help="Bind port")
@click.pass_obj
def serve(service: NeutralityService, host: str, port: int) -> None:
    """Serve the HTTP API."""
    import uvicorn

    from neutrality.api import create_app

    uvicorn.run(create_app(service), host=host, port=port)


if __name__ == "__main__":
    main()
