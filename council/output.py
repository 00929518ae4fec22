"""Rich console output, result serialization and markdown transcript save."""

import logging
import random
import string
import time
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from council.models import CouncilResult, WorkerResponse

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

_BASE36 = string.digits + string.ascii_lowercase


def generate_query_id() -> str:
    """Return an id like 'council_1718000000000_k3j9x0abc'."""
    suffix = "".join(random.choices(_BASE36, k=9))
    return f"council_{int(time.time() * 1000)}_{suffix}"


def _response_preview(worker: WorkerResponse, words: int = 50) -> str:
    """Return first N words of a response."""
    all_words = worker.response.content.split()
    preview = " ".join(all_words[:words])
    if len(all_words) > words:
        preview += "..."
    return preview


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def result_to_dict(result: CouncilResult) -> dict:
    """Full result as plain data; critiques keep their camelCase JSON keys."""
    data = asdict(result)
    for mc in data["critiques"]:
        mc["critiques"] = [_json_default(c) for c in mc["critiques"]]
    return data


def public_summary(result: CouncilResult) -> dict:
    """Redacted view for unprivileged callers: no raw answers or critiques."""
    return {
        "final_response": result.final_response,
        "chairman_model": result.chairman_model,
        "total_latency_ms": result.total_latency_ms,
        "worker_count": len(result.worker_responses),
        "critique_count": len(result.critiques),
        "aggregated_critiques": [
            {
                "response_id": a.response_id,
                "provider_id": a.provider_id,
                "model_id": a.model_id,
                "average_rank": a.average_rank,
                "average_score": a.average_score,
                "votes": a.votes,
            }
            for a in result.aggregated_critiques
        ],
        "debug": asdict(result.debug) if result.debug else None,
    }


def print_worker_summary(result: CouncilResult) -> None:
    """Print a brief panel per worker answer."""
    console.print(Rule("[bold cyan]Worker Responses[/bold cyan]"))
    for worker in result.worker_responses:
        console.print(
            Panel(
                _response_preview(worker),
                title=f"[bold]{worker.provider_id}[/bold] ({worker.model_id})",
                subtitle=f"{worker.response.latency_ms:.0f}ms",
                border_style="dim",
            )
        )


def print_aggregated(result: CouncilResult) -> None:
    """Print the per-response ranking table, best average rank first."""
    table = Table(title="Peer Review", show_lines=False)
    table.add_column("Response")
    table.add_column("Provider")
    table.add_column("Model", style="dim")
    table.add_column("Avg rank", justify="right")
    table.add_column("Avg score", justify="right")
    table.add_column("Votes", justify="right")

    # Unreviewed responses (rank 0) go last
    ranked = sorted(
        result.aggregated_critiques,
        key=lambda a: (a.average_rank == 0, a.average_rank),
    )
    for agg in ranked:
        table.add_row(
            agg.response_id,
            agg.provider_id,
            agg.model_id,
            f"{agg.average_rank:.2f}" if agg.average_rank else "-",
            f"{agg.average_score:.1f}" if agg.average_rank else "-",
            str(agg.votes),
        )
    console.print(table)


def print_synthesis(result: CouncilResult) -> None:
    """Print the final answer using Rich markdown."""
    console.print(Rule("[bold green]Council Synthesis[/bold green]"))
    console.print(
        Text(
            f"Chairman: {result.chairman_model} | "
            f"Duration: {result.total_latency_ms / 1000:.1f}s | "
            f"Workers: {len(result.worker_responses)} | "
            f"Critics: {len(result.critiques)}",
            style="dim",
        )
    )
    if result.debug:
        d = result.debug
        console.print(
            Text(
                f"fan-out {d.fanout_ms:.0f}ms, anonymize {d.anonymize_ms:.0f}ms, "
                f"critique {d.critique_ms:.0f}ms, synthesis {d.synthesis_ms:.0f}ms",
                style="dim",
            )
        )
    console.print(Markdown(result.final_response))


def save_to_file(result: CouncilResult, question: str, output_dir: Path, query_id: str | None = None) -> Path:
    """Save the full council transcript as a markdown file.

    Args:
        result: The completed CouncilResult.
        question: The question the council answered.
        output_dir: Directory to save the file in.
        query_id: File stem; a new id is generated when omitted.

    Returns:
        Path to the saved file.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    query_id = query_id or generate_query_id()
    filepath = output_dir / f"{query_id}.md"

    workers_str = ", ".join(f"{w.provider_id} ({w.model_id})" for w in result.worker_responses)

    lines: list[str] = [
        f"# LLM Council: {question[:80]}",
        "",
        f"**Query:** {query_id}",
        f"**Date:** {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        f"**Workers:** {workers_str}",
        f"**Chairman:** {result.chairman_model}",
        f"**Duration:** {result.total_latency_ms / 1000:.1f}s",
        "",
        "---",
        "",
        "## Question",
        "",
        question,
        "",
        "## Worker Responses",
        "",
    ]

    for worker in result.worker_responses:
        usage = worker.response.usage
        lines.append(f"### {worker.provider_id.title()} ({worker.model_id})")
        lines.append("")
        lines.append(worker.response.content)
        lines.append("")
        lines.append(
            f"*Latency: {worker.response.latency_ms:.0f}ms"
            + (f" | Tokens: {usage.total_tokens}" if usage.total_tokens else "")
            + "*"
        )
        lines.append("")

    lines += [
        "## Peer Review",
        "",
        "| Response | Provider | Model | Avg rank | Avg score | Votes |",
        "| --- | --- | --- | --- | --- | --- |",
    ]
    for agg in result.aggregated_critiques:
        lines.append(
            f"| {agg.response_id} | {agg.provider_id} | {agg.model_id} "
            f"| {agg.average_rank:.2f} | {agg.average_score:.1f} | {agg.votes} |"
        )
    lines.append("")

    for agg in result.aggregated_critiques:
        if not agg.all_errors:
            continue
        lines.append(f"**Errors flagged in {agg.response_id} ({agg.provider_id}):**")
        lines.extend(f"- {err}" for err in agg.all_errors)
        lines.append("")

    lines += [
        f"## Synthesis (by {result.chairman_model})",
        "",
        result.final_response,
        "",
    ]

    filepath.write_text("\n".join(lines), encoding="utf-8")
    logger.info("Council transcript saved to: %s", filepath)
    return filepath
