from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]], indent: str = "") -> None:
    for key, value in pairs:
        typer.echo(f"{indent}{key}: {value}")


def render_enrich_results(results: List[Dict[str, Any]]) -> None:
    for index, result in enumerate(results, start=1):
        point = result.get("point") or {}
        if index > 1:
            typer.echo()
        echo_heading(f"Point {index}: {point.get('measurement')} @ {point.get('time')}")

        tags = point.get("tags") or {}
        typer.echo("tags:")
        echo_key_values(sorted(tags.items()), indent="  ")
        fields = point.get("fields") or {}
        typer.echo("fields:")
        echo_key_values(sorted(fields.items()), indent="  ")

        errors = result.get("errors") or []
        if errors:
            typer.echo("errors:")
            for error in errors:
                typer.secho(f"  - [{error.get('kind')}] {error.get('message')}", fg=typer.colors.YELLOW)


def render_metrics(payload: Dict[str, Any]) -> None:
    echo_heading("Errors")
    errors = payload.get("errors") or {}
    if errors:
        echo_key_values(sorted(errors.items()), indent="  ")
    else:
        typer.echo("  No errors recorded.")

    typer.echo()
    echo_heading("Cache")
    cache = payload.get("cache") or {}
    if cache:
        echo_key_values(
            [
                ("entries", cache.get("entries")),
                ("hits", cache.get("hits")),
                ("misses", cache.get("misses")),
                ("reloads", cache.get("reloads")),
            ],
            indent="  ",
        )
    else:
        typer.echo("  No cache statistics available.")

    typer.echo()
    echo_key_values([("points_processed", payload.get("points_processed"))])
