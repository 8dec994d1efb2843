from __future__ import annotations

from typing import Any, Dict, List

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the sideload service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def enrich(self, points: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        try:
            response = self._client.post("/enrich", json={"points": points})
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        payload = response.json()
        results = payload.get("results")
        if not isinstance(results, list):
            raise typer.BadParameter("Unexpected response payload when enriching points.")
        return results

    def reload(self) -> int:
        try:
            response = self._client.post("/reload")
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        dropped = response.json().get("dropped")
        if not isinstance(dropped, int):
            raise typer.BadParameter("Unexpected response payload when reloading.")
        return dropped

    def metrics(self) -> Dict[str, Any]:
        try:
            response = self._client.get("/metrics")
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            if isinstance(data, dict):
                detail = data.get("detail")
            else:
                detail = exc.response.text.strip()
        except ValueError:
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
