from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_enrich_results, render_metrics
from models.errors import ConfigError
from services.config import load_node_config
from storage.file_source import FileSource


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for interacting with the sideload enrichment service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


def read_points(path: Path) -> List[Dict[str, Any]]:
    """Read a JSON array of points or one JSON object per line."""
    text = path.read_text(encoding="utf-8").strip()
    if not text:
        raise typer.BadParameter(f"{path} contains no points.")
    try:
        if text.startswith("["):
            points = json.loads(text)
        else:
            points = [json.loads(line) for line in text.splitlines() if line.strip()]
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"{path} is not valid JSON: {exc}") from exc
    if not all(isinstance(point, dict) for point in points):
        raise typer.BadParameter(f"{path} must contain JSON objects.")
    return points


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Sideload API base URL (defaults to SIDELOAD_API_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Request timeout in seconds.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("enrich")
def enrich_command(
    ctx: typer.Context,
    file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="JSON or JSON-lines file of points."
    ),
) -> None:
    """Send points to the service and print the enriched result."""
    state = _get_state(ctx)
    points = read_points(file)
    typer.echo(f"Enriching {len(points)} point(s) via {state.config.base_url} ...")
    results = state.client.enrich(points)
    render_enrich_results(results)


@app.command("reload")
def reload_command(ctx: typer.Context) -> None:
    """Drop the service's document cache."""
    state = _get_state(ctx)
    dropped = state.client.reload()
    typer.secho(f"Cache reloaded. dropped={dropped}", fg=typer.colors.GREEN)


@app.command("metrics")
def metrics_command(ctx: typer.Context) -> None:
    """Show error counters and cache statistics."""
    state = _get_state(ctx)
    render_metrics(state.client.metrics())


@app.command("check-config")
def check_config_command(
    file: Path = typer.Argument(..., dir_okay=False, help="YAML node definition."),
) -> None:
    """Validate a node definition locally without contacting the service."""
    try:
        config = load_node_config(file)
        FileSource.from_uri(config.source_uri)
    except ConfigError as exc:
        typer.secho(f"Invalid configuration: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    typer.secho(f"Configuration OK. source={config.source_uri}", fg=typer.colors.GREEN)
    typer.echo("order:")
    for template in config.order:
        typer.echo(f"  - {template.raw}")
    for name, default in config.fields.items():
        typer.echo(f"field {name} (default {default!r})")
    for name, default in config.tags.items():
        typer.echo(f"tag {name} (default {default!r})")
