"""Click CLI: loads config, builds the registry, runs council queries."""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import NoReturn

import click
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from config.config_loader import AppConfig, load_config
from council.errors import CouncilError
from council.events import PhaseEvent, log_event
from council.models import CouncilConfig, CouncilResult, GenerationRequest, Message
from council.orchestrator import Council
from council.output import (
    generate_query_id,
    print_aggregated,
    print_synthesis,
    print_worker_summary,
    public_summary,
    result_to_dict,
    save_to_file,
)
from council.providers.base import ProviderError
from council.registry import ProviderRegistry
from council.schemas import CouncilQuery

logger = logging.getLogger(__name__)

# Status output goes to stderr so --json output stays clean
console = Console(legacy_windows=False, stderr=True)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )


def _fail(message: str) -> NoReturn:
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")
    sys.exit(1)


def _split_csv(value: str | None) -> list[str] | None:
    if not value:
        return None
    return [v.strip() for v in value.split(",") if v.strip()]


def _build_query(
    question: str,
    system_prompt: str | None,
    workers: str | None,
    chairman: str | None,
    chairman_model: str | None,
    max_tokens: int | None,
    temperature: float | None,
    debug: bool | None,
) -> CouncilQuery:
    """Validate CLI input through the same schema any caller would use."""
    return CouncilQuery.model_validate(
        {
            "prompt": question,
            "systemPrompt": system_prompt,
            "config": {
                "workerProviders": _split_csv(workers),
                "chairmanProvider": chairman,
                "chairmanModel": chairman_model,
                "maxTokens": max_tokens,
                "temperature": temperature,
                "debug": debug,
            },
        }
    )


async def _run_query(
    registry: ProviderRegistry, config: CouncilConfig, query: CouncilQuery, show_progress: bool = True
) -> CouncilResult:
    if not show_progress:
        council = Council(registry, config, on_event=log_event)
        return await council.query(query.prompt, query.system_prompt)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Starting council...", total=None)

        def on_event(event: PhaseEvent) -> None:
            if event.kind == "start":
                progress.update(task, description=f"Running {event.phase}...")
            elif event.kind == "end":
                progress.print(f"[green]OK[/green] {event.phase} ({event.elapsed_ms:.0f}ms) {event.detail}")
            else:
                progress.print(f"[yellow]SKIP[/yellow] {event.phase} {event.provider_id}: {escape(event.detail[:120])}")

        council = Council(registry, config, on_event=on_event)
        return await council.query(query.prompt, query.system_prompt)


@click.group()
@click.option("--settings", "settings_path", type=click.Path(exists=True, path_type=Path), default=None,
              help="Path to settings.yaml (default: bundled config)")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
@click.pass_context
def main(ctx: click.Context, settings_path: Path | None, verbose: bool) -> None:
    """LLM Council -- multi-model answer, peer critique and synthesis.

    \b
    Examples:
      council ask "Explain CAP theorem" --workers openai,google,anthropic
      council ask --file question.md --chairman anthropic --details
      council single "Explain CAP theorem" --provider grok
      council providers
    """
    load_dotenv()
    _setup_logging(verbose)

    try:
        config = load_config(settings_path) if settings_path else load_config()
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[bold red]Config error:[/bold red] {escape(str(exc))}")
        sys.exit(1)

    ctx.obj = config


def _registry(config: AppConfig) -> ProviderRegistry:
    registry = ProviderRegistry(config.registry)
    if not registry.count:
        _fail("No providers available. Check API keys in .env.")
    return registry


@main.command()
@click.argument("question", required=False)
@click.option("--file", "question_file", type=click.Path(exists=True), help="Read question from a file")
@click.option("--system", "system_prompt", default=None, help="System prompt sent to every worker")
@click.option("--workers", default=None, help="Comma-separated worker providers (default: from config)")
@click.option("--chairman", default=None, help="Chairman provider (default: from config)")
@click.option("--chairman-model", default=None, help="Pin the chairman to a specific model")
@click.option("--max-tokens", type=int, default=None, help="Max tokens per call")
@click.option("--temperature", type=float, default=None, help="Generation temperature")
@click.option("--debug/--no-debug", default=None, help="Include per-phase timings")
@click.option("--details", is_flag=True, help="Show every worker answer, not just the summary")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.option("--output", "output_path", default=None, help="Transcript directory (default: from config)")
@click.option("--no-save", is_flag=True, help="Do not write a markdown transcript")
@click.pass_obj
def ask(
    config: AppConfig,
    question: str | None,
    question_file: str | None,
    system_prompt: str | None,
    workers: str | None,
    chairman: str | None,
    chairman_model: str | None,
    max_tokens: int | None,
    temperature: float | None,
    debug: bool | None,
    details: bool,
    as_json: bool,
    output_path: str | None,
    no_save: bool,
) -> None:
    """Ask the full council a QUESTION."""
    if question_file:
        question = Path(question_file).read_text(encoding="utf-8").strip()
    if not question:
        _fail("Provide a QUESTION argument or --file.")

    try:
        query = _build_query(question, system_prompt, workers, chairman, chairman_model,
                             max_tokens, temperature, debug)
    except ValidationError as exc:
        _fail(f"Invalid query: {exc}")

    registry = _registry(config)
    council_config = config.council.merge(query.config_overrides())

    console.print(f"\n[bold cyan]LLM Council[/bold cyan] -- workers: {', '.join(council_config.worker_providers)}")
    console.print(f"Chairman: {council_config.chairman_provider}")
    console.print(f"Question: [italic]{escape(question[:80])}{'...' if len(question) > 80 else ''}[/italic]\n")

    try:
        result = asyncio.run(_run_query(registry, council_config, query, show_progress=not as_json))
    except (CouncilError, ProviderError) as exc:
        _fail(str(exc))

    if as_json:
        payload = result_to_dict(result) if details else public_summary(result)
        click.echo(json.dumps(payload, indent=2))
    else:
        if details:
            print_worker_summary(result)
        print_aggregated(result)
        print_synthesis(result)

    if not no_save:
        output_dir = Path(output_path) if output_path else config.output_dir
        saved = save_to_file(result, question, output_dir, generate_query_id())
        console.print(f"\n[dim]Saved to: {saved}[/dim]")


@main.command()
@click.argument("question")
@click.option("--provider", "provider_id", required=True, help="Provider to query")
@click.option("--model", "model_id", default=None, help="Model (default: provider default)")
@click.option("--system", "system_prompt", default=None, help="System prompt")
@click.pass_obj
def single(config: AppConfig, question: str, provider_id: str, model_id: str | None,
           system_prompt: str | None) -> None:
    """Ask one provider directly, for comparison with the council."""
    provider = _registry(config).get_provider(provider_id)
    if provider is None:
        _fail(f"Provider {provider_id} not available")

    messages: list[Message] = []
    if system_prompt:
        messages.append(Message("system", system_prompt))
    messages.append(Message("user", question))

    try:
        response = asyncio.run(provider.generate(GenerationRequest(messages=tuple(messages)), model_id))
    except ProviderError as exc:
        _fail(str(exc))

    console.print(f"[bold]{response.provider_id}[/bold] ({response.model}) "
                  f"[dim]{response.latency_ms:.0f}ms, {response.usage.total_tokens} tokens[/dim]\n")
    click.echo(response.content)


@main.command()
@click.pass_obj
def providers(config: AppConfig) -> None:
    """List available providers and their default models."""
    registry = ProviderRegistry(config.registry)
    click.echo(f"Available providers: {registry.count}")
    for provider in registry.available_providers():
        click.echo(f"  {provider.name()} (default: {provider.default_model})")


if __name__ == "__main__":
    main()
