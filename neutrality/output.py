"""Rich console output and markdown export for neutrality runs."""

import logging
import re
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from neutrality.analysis_schema import TRAIT_KEYS, AnalysisResult
from neutrality.models import ModelResult, NeutralityTestResult

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)


def _slug(text: str, max_len: int = 40) -> str:
    """Convert text to a filename-safe slug."""
    slug = re.sub(r"[^\w\s-]", "", text.lower())
    slug = re.sub(r"[\s_-]+", "-", slug).strip("-")
    return slug[:max_len]


def _response_preview(result: ModelResult, words: int = 80) -> str:
    """Return first N words of a model output."""
    all_words = result.output.split()
    preview = " ".join(all_words[:words])
    if len(all_words) > words:
        preview += "..."
    return preview


def _trait_label(key: str) -> str:
    return key.replace("_", " ").title()


def print_model_result(result: ModelResult) -> None:
    """Print one model's answer, or its error, as a panel."""
    title = f"[bold]{result.model_name}[/bold] ({result.provider_name})"
    if result.error is not None:
        console.print(Panel(Text(result.error), title=title, subtitle="error", border_style="red"))
        return
    console.print(Panel(_response_preview(result), title=title, subtitle="ok", border_style="dim"))


def print_analysis(analysis: AnalysisResult) -> None:
    """Print the per-model neutrality classification and trait scores."""
    console.print(Rule("[bold green]Neutrality Analysis[/bold green]"))
    if analysis.overall_summary:
        console.print(Text(analysis.overall_summary, style="italic"))

    table = Table(show_lines=False)
    table.add_column("Model", style="bold")
    table.add_column("Stance")
    table.add_column("Directness")
    table.add_column("Leaning")
    table.add_column("Neutrality")
    for key in TRAIT_KEYS:
        table.add_column(_trait_label(key), justify="right")
    table.add_column("Overall", justify="right", style="bold")

    for entry in analysis.models:
        scores = entry.trait_scores
        table.add_row(
            entry.model_name or entry.model_id,
            f"{entry.stance_label} ({entry.stance_strength})",
            entry.directness,
            entry.policy_leaning,
            entry.neutrality,
            *(str(getattr(scores, key)) for key in TRAIT_KEYS),
            str(scores.overall),
        )
    console.print(table)

    for highlight in analysis.comparison_highlights:
        console.print(f"  - {highlight}")


def save_to_file(
    result: NeutralityTestResult,
    output_dir: Path,
    analysis: AnalysisResult | None = None,
) -> Path:
    """Export a neutrality run as a markdown report.

    Args:
        result: The completed fan-out.
        output_dir: Directory to save the file in.
        analysis: Optional analysis of the successful responses.

    Returns:
        Path to the saved file.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filepath = output_dir / f"{timestamp}_{_slug(result.prompt)}.md"

    succeeded = sum(1 for r in result.responses if r.error is None)
    lines: list[str] = [
        f"# Neutrality Test: {result.prompt[:80]}",
        "",
        f"**Date:** {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        f"**Models:** {', '.join(r.model_name for r in result.responses)}",
        f"**Succeeded:** {succeeded}/{len(result.responses)}",
        "",
        "---",
        "",
        "## Responses",
        "",
    ]

    for resp in result.responses:
        lines.append(f"### {resp.model_name} ({resp.provider_name})")
        lines.append("")
        lines.append(resp.output if resp.error is None else f"*Error: {resp.error}*")
        lines.append("")

    if analysis is not None:
        lines += ["## Analysis", ""]
        if analysis.overall_summary:
            lines += [analysis.overall_summary, ""]
        header = ["Model", "Stance", "Directness", "Leaning", "Neutrality", *map(_trait_label, TRAIT_KEYS), "Overall"]
        lines.append("| " + " | ".join(header) + " |")
        lines.append("|" + "---|" * len(header))
        for entry in analysis.models:
            scores = entry.trait_scores
            row = [
                entry.model_name or entry.model_id,
                f"{entry.stance_label} ({entry.stance_strength})",
                entry.directness,
                entry.policy_leaning,
                entry.neutrality,
                *(str(getattr(scores, key)) for key in TRAIT_KEYS),
                str(scores.overall),
            ]
            lines.append("| " + " | ".join(row) + " |")
        lines.append("")
        for highlight in analysis.comparison_highlights:
            lines.append(f"- {highlight}")
        lines.append("")

    filepath.write_text("\n".join(lines), encoding="utf-8")
    logger.info("Report saved to: %s", filepath)
    return filepath
