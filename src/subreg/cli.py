"""CLI entry point for subreg."""

from __future__ import annotations

import asyncio
import json
import logging
import os

import typer
from rich.console import Console
from rich.table import Table

from subreg.catalog import build_registry
from subreg.config import SubregConfig
from subreg.registry import Capsule, SearchRequest, SubagentRegistry

app = typer.Typer(
    name="subreg",
    help="Discover, inspect and run specialized subagents.",
    no_args_is_help=True,
)

console = Console()


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _load(config_file: str | None, verbose: bool) -> tuple[SubregConfig, SubagentRegistry]:
    setup_logging(verbose)
    config = SubregConfig.load(config_file)
    return config, build_registry(config)


def _capsule_table(capsules: list[Capsule], title: str) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="bold")
    table.add_column("Latency")
    table.add_column("Tags")
    table.add_column("Summary")
    for c in capsules:
        table.add_row(c.id, c.latency_class, ", ".join(c.tags), c.summary)
    return table


@app.command()
def search(
    query: str = typer.Argument(help="What the subagent should be able to do."),
    k: int = typer.Option(5, "--k", "-k", help="Maximum number of results."),
    tag: list[str] = typer.Option([], "--tag", "-t", help="Only subagents with this tag."),
    latency: str | None = typer.Option(
        None, "--latency", "-l", help="Latency class filter: inner, outer or both."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the raw JSON response."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    config_file: str | None = typer.Option(None, "--config", "-c", help="Config file path."),
) -> None:
    """Rank subagents against a natural-language query."""
    if latency is not None and latency not in ("inner", "outer", "both"):
        typer.echo(f"Error: invalid latency class: {latency}", err=True)
        raise typer.Exit(1)

    _, registry = _load(config_file, verbose)
    response = registry.search(
        SearchRequest(query=query, limit=k, tags=tag, latency_class=latency)  # type: ignore[arg-type]
    )
    if as_json:
        typer.echo(json.dumps(response.to_dict(), indent=2))
        return
    console.print(
        _capsule_table(response.capsules, f"{len(response.capsules)} of {response.total} matches")
    )


@app.command()
def show(
    subagent: str = typer.Argument(help="Subagent ID or alias."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    config_file: str | None = typer.Option(None, "--config", "-c", help="Config file path."),
) -> None:
    """Print the full manifest of one subagent."""
    _, registry = _load(config_file, verbose)
    spec = registry.get_manifest(subagent)
    if spec is None:
        typer.echo(f"Error: Subagent not found: {subagent}", err=True)
        raise typer.Exit(1)
    typer.echo(json.dumps(spec.to_dict(), indent=2))


@app.command(name="list")
def list_subagents(
    tag: list[str] = typer.Option([], "--tag", "-t", help="Only subagents with this tag."),
    page_size: int | None = typer.Option(
        None, "--page-size", help="Results per page (default: from config)."
    ),
    offset: int = typer.Option(0, "--offset", help="Pagination offset."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    config_file: str | None = typer.Option(None, "--config", "-c", help="Config file path."),
) -> None:
    """List registered subagents."""
    _, registry = _load(config_file, verbose)
    response = registry.list(tags=tag, page_size=page_size, offset=offset)
    title = f"{len(response.capsules)} of {response.total} subagents"
    if response.has_more:
        title += " (more available)"
    console.print(_capsule_table(response.capsules, title))


@app.command()
def run(
    subagent: str = typer.Argument(help="Subagent ID or alias."),
    goal: str = typer.Option(..., "--goal", "-g", help="Task for the subagent."),
    context: str | None = typer.Option(
        None, "--context", help="Extra context passed to the subagent."
    ),
    cwd: str | None = typer.Option(None, "--cwd", help="Working directory."),
    timeout: float | None = typer.Option(None, "--timeout", help="Timeout in seconds."),
    model: str | None = typer.Option(
        None, "--model", "-m", help="LLM model to use (default: from env/config)."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    config_file: str | None = typer.Option(None, "--config", "-c", help="Config file path."),
) -> None:
    """Run a subagent on a goal and print its result."""
    from subreg.runner import LiteLLMEngine, run_subagent

    config, registry = _load(config_file, verbose)
    if model:
        config.engine.model = model

    work_dir = os.path.abspath(cwd) if cwd else os.getcwd()
    typer.echo(f"Running subagent: {subagent}")
    typer.echo(f"Goal: {goal}")
    typer.echo(f"Working directory: {work_dir}")
    typer.echo(f"Model: {config.engine.model}")
    typer.echo("---")

    engine = LiteLLMEngine.from_config(config.engine)
    try:
        result = asyncio.run(
            run_subagent(
                registry,
                subagent,
                goal,
                engine,
                context=context,
                cwd=work_dir,
                timeout_s=timeout or config.engine.default_timeout_s,
                default_context_tokens=config.engine.default_context_tokens,
            )
        )
    except Exception as e:
        typer.echo(f"Error: {str(e) or type(e).__name__}", err=True)
        raise typer.Exit(1)

    typer.echo("---")
    typer.echo("Summary:")
    typer.echo(result.summary)
    if result.files_changed:
        typer.echo("\nFiles modified:")
        for path in result.files_changed:
            typer.echo(f"  - {path}")
    typer.echo(f"\nDuration: {result.duration_ms / 1000:.2f}s")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
