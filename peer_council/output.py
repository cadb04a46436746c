"""Rich console output and markdown file save for council results."""

import logging
import re
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from peer_council.models import CandidateResponse, CouncilResult, ModelRef, RawRanking
from peer_council.performance import PerformanceStore

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

_MAX_CRITERIA_SHOWN = 3


def _slug(text: str, max_len: int = 40) -> str:
    """Convert text to a filename-safe slug."""
    slug = re.sub(r"[^\w\s-]", "", text.lower())
    slug = re.sub(r"[\s_-]+", "-", slug).strip("-")
    return slug[:max_len]


def _response_preview(response: CandidateResponse, words: int = 50) -> str:
    """Return first N words of a response."""
    all_words = response.content.split()
    preview = " ".join(all_words[:words])
    if len(all_words) > words:
        preview += "..."
    return preview


def _format_order(ranking: RawRanking, label_to_model: dict[str, ModelRef]) -> str:
    """'1. GPT-4o (HIGH), 2. Claude (MEDIUM)' or 'Unable to parse'."""
    if not ranking.parsed_order:
        return "Unable to parse"
    parts = []
    for i, label in enumerate(ranking.parsed_order, start=1):
        ref = label_to_model.get(label)
        name = ref.model_name if ref else f"Response {label}"
        parts.append(f"{i}. {name} ({ranking.confidence_by_label.get(label, 'MEDIUM')})")
    return ", ".join(parts)


def _format_criteria(ranking: RawRanking) -> str:
    if not ranking.criteria:
        return ""
    shown = ", ".join(ranking.criteria[:_MAX_CRITERIA_SHOWN])
    return shown + ("..." if len(ranking.criteria) > _MAX_CRITERIA_SHOWN else "")


def print_candidates(responses: list[CandidateResponse]) -> None:
    """Print a brief preview of each candidate response."""
    console.print(Rule("[bold cyan]Candidate Responses[/bold cyan]"))
    for resp in responses:
        console.print(
            Panel(
                _response_preview(resp),
                title=f"[bold]{resp.model_name}[/bold] ({resp.model_id})",
                border_style="dim",
            )
        )


def print_council(result: CouncilResult) -> None:
    """Print peer rankings, the weighted aggregate, and disagreement analysis."""
    console.print(Rule("[bold cyan]Peer Rankings[/bold cyan]"))
    rankings_table = Table(show_header=True, header_style="bold")
    rankings_table.add_column("Ranker")
    rankings_table.add_column("Valid")
    rankings_table.add_column("Ranking (best -> worst)")
    rankings_table.add_column("Criteria", style="dim")
    for ranking in result.rankings:
        valid = "[green]yes[/green]" if ranking.is_valid else "[red]no[/red]"
        rankings_table.add_row(
            ranking.model_name,
            valid,
            _format_order(ranking, result.label_to_model),
            _format_criteria(ranking),
        )
    console.print(rankings_table)

    console.print(Rule("[bold cyan]Aggregate Scores (Weighted)[/bold cyan]"))
    aggregate_table = Table(show_header=True, header_style="bold")
    aggregate_table.add_column("#", justify="right")
    aggregate_table.add_column("Model")
    aggregate_table.add_column("Avg rank", justify="right")
    aggregate_table.add_column("Confidence", justify="right")
    aggregate_table.add_column("Votes", justify="right")
    for i, entry in enumerate(result.aggregate_rankings, start=1):
        aggregate_table.add_row(
            str(i),
            entry.model_name,
            f"{entry.weighted_average_rank:.2f}",
            f"{entry.average_confidence * 100:.0f}%",
            str(entry.votes_counted),
        )
    console.print(aggregate_table)

    analysis = result.disagreement_analysis
    console.print(Text(f"Consensus: {analysis.consensus * 100:.0f}%", style="bold"))
    if analysis.most_contested and analysis.most_contested in result.label_to_model:
        console.print(f"Most contested: {result.label_to_model[analysis.most_contested].model_name}")
    for d in analysis.disagreements:
        console.print(
            f"  [yellow]Disagreement[/yellow] {d.model_name}: ranked "
            f"{d.rank_min}-{d.rank_max} (std dev {d.std_dev:.2f})"
        )

    summary = result.validation_summary
    if summary.invalid_count:
        console.print(f"[yellow]{summary.invalid_count}/{summary.total_rankings} rankings invalid[/yellow]")
        for detail in summary.invalid_details:
            console.print(f"  [dim]{detail.model_name}: {detail.error}[/dim]")


def print_synthesis(result: CouncilResult) -> None:
    """Print the chairman's synthesis using Rich markdown."""
    console.print(Rule("[bold green]Council Synthesis[/bold green]"))
    console.print(
        Text(
            f"Chairman: {result.synthesis.model_name} | "
            f"Duration: {result.duration_sec:.1f}s | "
            f"Rankings: {result.validation_summary.valid_count}/{result.validation_summary.total_rankings} valid",
            style="dim",
        )
    )
    console.print(Markdown(result.synthesis.content))


def print_model_stats(store: PerformanceStore, task_type: str = "general", recent: int = 10) -> None:
    """Print per-model history, the best model for ``task_type`` and the latest interactions."""
    console.print(Rule("[bold cyan]Model Performance[/bold cyan]"))
    stats = sorted(store.all_stats(), key=lambda s: s.total_interactions, reverse=True)
    if not stats:
        console.print("[dim]No interactions recorded yet.[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Model")
    table.add_column("Calls", justify="right")
    table.add_column("Avg quality", justify="right")
    table.add_column("Error rate", justify="right")
    table.add_column("Avg time", justify="right")
    table.add_column("Tokens", justify="right")
    for s in stats:
        quality = f"{s.avg_quality_score:.0f}" if s.avg_quality_score is not None else "-"
        table.add_row(
            f"{s.model_name} ({s.model_id})",
            str(s.total_interactions),
            quality,
            f"{s.error_rate * 100:.0f}%",
            f"{s.avg_response_time:.1f}s",
            str(s.total_tokens),
        )
    console.print(table)

    best = store.best_model_for_task(task_type)
    console.print(f"Best for [bold]{task_type}[/bold]: {best or 'no data'}")

    console.print(Rule(f"[bold cyan]Last {recent} Interactions[/bold cyan]"))
    for record in store.recent_interactions(limit=recent):
        when = datetime.fromtimestamp(record["timestamp"]).strftime("%Y-%m-%d %H:%M:%S")
        status = f"[red]{escape(record['error'])}[/red]" if record["error"] else f"quality {record['quality_score']}"
        console.print(f"  {when}  {escape(record['model_name'])} ({record['task_type']}) {status}")


def save_to_file(
    result: CouncilResult,
    responses: list[CandidateResponse],
    output_dir: Path,
    slug_override: str | None = None,
) -> Path:
    """Save the full council report as a markdown file.

    Args:
        result: The completed CouncilResult.
        responses: The candidate responses the council ranked.
        output_dir: Directory to save the file in.
        slug_override: If provided, use this as the filename stem instead of
            deriving one from the question text.

    Returns:
        Path to the saved file.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    slug = slug_override if slug_override is not None else _slug(result.query)
    filepath = output_dir / f"{timestamp}_{slug}.md"

    analysis = result.disagreement_analysis
    summary = result.validation_summary

    lines: list[str] = [
        f"# LLM Council: {result.query[:80]}",
        "",
        f"**Date:** {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        f"**Panel:** {', '.join(r.model_name for r in responses)}",
        f"**Chairman:** {result.synthesis.model_name} ({result.synthesis.model_id})",
        f"**Duration:** {result.duration_sec:.1f}s",
        f"**Valid rankings:** {summary.valid_count}/{summary.total_rankings}",
        f"**Consensus:** {analysis.consensus * 100:.0f}%",
        "",
        "---",
        "",
        "## Candidate Responses",
        "",
    ]

    for resp in responses:
        lines += [f"### {resp.model_name} ({resp.model_id})", "", resp.content, ""]

    lines += ["## Peer Rankings", "", "| Ranker | Valid | Ranking | Criteria |", "|---|---|---|---|"]
    for ranking in result.rankings:
        lines.append(
            f"| {ranking.model_name} | {'yes' if ranking.is_valid else 'no'} | "
            f"{_format_order(ranking, result.label_to_model)} | {_format_criteria(ranking)} |"
        )
    lines.append("")

    lines += [
        "## Aggregate Scores (Weighted)",
        "",
        "| # | Model | Avg rank | Confidence | Votes |",
        "|---|---|---|---|---|",
    ]
    for i, entry in enumerate(result.aggregate_rankings, start=1):
        lines.append(
            f"| {i} | {entry.model_name} | {entry.weighted_average_rank:.2f} | "
            f"{entry.average_confidence * 100:.0f}% | {entry.votes_counted} |"
        )
    lines.append("")

    if analysis.disagreements:
        lines += ["## Disagreements", ""]
        for d in analysis.disagreements:
            lines.append(f"- **{d.model_name}**: ranked {d.rank_min}-{d.rank_max} (std dev {d.std_dev:.2f})")
        lines.append("")

    if result.warnings:
        lines += ["## Warnings", ""] + [f"- {w}" for w in result.warnings] + [""]

    lines += [
        f"## Synthesis (by {result.synthesis.model_name})",
        "",
        result.synthesis.content,
        "",
    ]

    filepath.write_text("\n".join(lines), encoding="utf-8")
    logger.info("Council report saved to: %s", filepath)
    return filepath
