"""Click CLI: loads config, gathers panel answers, runs the council, writes the report."""

import asyncio
import logging
import sys
from pathlib import Path

import click
import frontmatter
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from config.config_loader import AppConfig, load_config
from peer_council.council import CouncilStage, run_council
from peer_council.errors import CouncilError
from peer_council.healthcheck import run_health_checks
from peer_council.models import CouncilOptions
from peer_council.output import print_candidates, print_council, print_model_stats, print_synthesis, save_to_file
from peer_council.panel import gather_responses
from peer_council.performance import JsonFileRepository, PerformanceStore
from peer_council.providers.registry import ProviderRegistry, build_registry

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

_STAGE_DESCRIPTIONS = {
    CouncilStage.COLLECTING_RANKINGS: "Collecting peer rankings...",
    CouncilStage.AGGREGATING: "Aggregating rankings...",
    CouncilStage.SYNTHESIZING: "Chairman is synthesizing...",
}


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _read_question_file(path: Path) -> tuple[str, dict]:
    """Question body plus optional front matter (models, chairman)."""
    post = frontmatter.load(str(path))
    return post.content.strip(), dict(post.metadata)


def _determine_panel(config: AppConfig, models_arg: str | None, meta: dict) -> list[str]:
    """--models beats front matter beats the configured default panel."""
    if models_arg:
        return [m.strip() for m in models_arg.split(",") if m.strip()]
    if "models" in meta:
        models = meta["models"]
        if isinstance(models, str):
            return [m.strip() for m in models.split(",") if m.strip()]
        return [str(m) for m in models]
    return list(config.defaults.panel)


def _pick_chairman(preferred: str | None, registry: ProviderRegistry) -> str | None:
    """Use the preferred chairman when it is reachable, else let the council default it."""
    if preferred and preferred in registry:
        return preferred
    if preferred:
        logger.warning("Chairman '%s' unavailable, defaulting to the first panel model", preferred)
    return None


def _check_and_filter_models(registry: ProviderRegistry, panel: list[str]) -> ProviderRegistry:
    """Run health checks, print results, and ask what to do on failures.

    Exits if the user declines to continue or no models pass.
    """
    console.print("\n[bold]Checking models...[/bold]")
    results = asyncio.run(run_health_checks(registry, panel))

    failed = set()
    for model_id in panel:
        ok, err = results[model_id]
        if ok:
            console.print(f"  [green]OK  [/green] {model_id}")
        else:
            short_err = err.splitlines()[0][:120] if err else "unknown error"
            console.print(f"  [red]FAIL[/red] {model_id}: {short_err}")
            failed.add(model_id)

    if not failed:
        console.print()
        return registry

    if len(failed) == len(panel):
        console.print("\n[bold red]Error:[/bold red] No models passed the health check.")
        sys.exit(1)

    console.print(f"\n[yellow]{len(failed)} model(s) failed:[/yellow] {', '.join(sorted(failed))}")
    if not click.confirm("Continue with working models only?", default=True):
        sys.exit(0)

    console.print()
    return registry.without(failed)


async def _run_single(
    question: str,
    config: AppConfig,
    registry: ProviderRegistry,
    panel: list[str],
    chairman: str | None,
    options: CouncilOptions,
    performance: PerformanceStore,
    output_dir: Path,
    slug_override: str | None = None,
    task_type: str = "general",
) -> Path:
    """Gather answers, run the council, print and save. Returns the report path."""
    console.print(f"\n[bold cyan]LLM Council[/bold cyan] | {len(panel)} models")
    console.print(f"Panel: {', '.join(config.display_name(m) for m in panel)}")
    console.print(f"Chairman: {config.display_name(chairman) if chairman else 'first responder'}")
    console.print(f"Question: [italic]{question[:80]}{'...' if len(question) > 80 else ''}[/italic]\n")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Gathering panel answers...", total=None)
        responses = await gather_responses(
            question,
            panel,
            registry,
            names={m: config.display_name(m) for m in panel},
            template=config.prompts.answer,
            performance=performance,
            task_type=task_type,
        )
        progress.print(f"[green]OK[/green] {len(responses)}/{len(panel)} models answered")

        def on_stage(stage: CouncilStage) -> None:
            if stage in _STAGE_DESCRIPTIONS:
                progress.update(task, description=_STAGE_DESCRIPTIONS[stage])

        result = await run_council(
            question,
            responses,
            registry,
            chairman_model_id=chairman,
            options=options,
            performance=performance,
            prompts=config.prompts,
            on_stage=on_stage,
        )

    print_candidates(responses)
    print_council(result)
    print_synthesis(result)
    for warning in result.warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")

    saved_path = save_to_file(result, responses, output_dir, slug_override=slug_override)
    console.print(f"\n[dim]Saved to: {saved_path}[/dim]")
    return saved_path


@click.command()
@click.argument("question", required=False)
@click.option("--file", "question_file", type=click.Path(exists=True), help="Read question from .md file")
@click.option("--models", default=None, help="Comma-separated model ids, overrides the default panel")
@click.option("--chairman", default=None, help="Model id that synthesizes the final answer")
@click.option("--no-weighting", is_flag=True, help="Ignore historical performance when aggregating")
@click.option("--no-confidence", is_flag=True, help="Ignore stated confidence when aggregating")
@click.option("--output", "output_path", default=None, help="Output directory (default: from config)")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
@click.option("--skip-health-check", is_flag=True, default=False,
              help="Skip the API connectivity check at startup")
@click.option("--task-type", default="general", show_default=True,
              help="Category recorded with each answer in the performance history")
@click.option("--stats", "show_stats", is_flag=True, help="Show recorded model performance and exit")
def main(
    question: str | None,
    question_file: str | None,
    models: str | None,
    chairman: str | None,
    no_weighting: bool,
    no_confidence: bool,
    output_path: str | None,
    verbose: bool,
    skip_health_check: bool,
    task_type: str,
    show_stats: bool,
) -> None:
    """LLM Council -- peer-ranked, chairman-synthesized answers from several models.

    \b
    Examples:
      peer-council "Should we use REST or GraphQL?"
      peer-council "SQL or NoSQL?" --models openai/gpt-4o,anthropic/claude-sonnet-4
      peer-council --file question.md --chairman google/gemini-2.5-flash
      peer-council "Monorepo vs polyrepo?" --no-weighting
      peer-council --stats --task-type code
    """
    if sys.platform == "win32":
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8", errors="replace")
        if hasattr(sys.stderr, "reconfigure"):
            sys.stderr.reconfigure(encoding="utf-8", errors="replace")

    load_dotenv()
    _setup_logging(verbose)

    try:
        config = load_config()
    except FileNotFoundError as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        sys.exit(1)

    if show_stats:
        with JsonFileRepository(config.defaults.analytics_path) as repository:
            print_model_stats(PerformanceStore(repository), task_type)
        return

    meta: dict = {}
    slug_override: str | None = None
    if question_file:
        question_text, meta = _read_question_file(Path(question_file))
        slug_override = Path(question_file).stem
    elif question:
        question_text = question
    else:
        console.print("[bold red]Error:[/bold red] Provide a QUESTION argument or --file.")
        sys.exit(1)

    registry = build_registry(config)
    panel = [m for m in _determine_panel(config, models, meta) if m in registry]

    if len(panel) < 2:
        console.print(
            f"[bold red]Error:[/bold red] Need at least 2 available models in panel, got {len(panel)}. "
            "Check API keys in .env or adjust --models."
        )
        sys.exit(1)

    if not skip_health_check:
        registry = _check_and_filter_models(registry, panel)
        panel = [m for m in panel if m in registry]

    preferred_chairman = chairman or meta.get("chairman") or config.defaults.chairman
    options = CouncilOptions(
        use_weighted_aggregation=config.defaults.use_weighted_aggregation and not no_weighting,
        use_confidence_weighting=config.defaults.use_confidence_weighting and not no_confidence,
    )
    output_dir = Path(output_path) if output_path else config.defaults.output_dir

    with JsonFileRepository(config.defaults.analytics_path) as repository:
        try:
            asyncio.run(
                _run_single(
                    question=question_text,
                    config=config,
                    registry=registry,
                    panel=panel,
                    chairman=_pick_chairman(preferred_chairman, registry),
                    options=options,
                    performance=PerformanceStore(repository),
                    output_dir=output_dir,
                    slug_override=slug_override,
                    task_type=task_type,
                )
            )
        except CouncilError as exc:
            console.print(f"[bold red]Council error:[/bold red] {exc}")
            sys.exit(1)


if __name__ == "__main__":
    main()
