from __future__ import annotations

import asyncio
import json
from datetime import date
from pathlib import Path
from typing import Any, Dict, Optional

import typer
import yaml

from spread_advisor.cli.display import DisplayManager
from spread_advisor.config import AdvisorConfig, load_config
from spread_advisor.context import build_context
from spread_advisor.coordinator import RecommendationCoordinator
from spread_advisor.health import get_provider_health
from spread_advisor.llm.manager import create_orchestrator
from spread_advisor.models import CustomerAttributes, HistoricalRecord, RecommendationContext
from spread_advisor.utils.errors import SpreadAdvisorError
from spread_advisor.utils.logging import setup_logging


app = typer.Typer(add_completion=False, help="Spread Advisor CLI")


def _load_settings(config_path: Optional[Path]) -> AdvisorConfig:
    config = load_config(str(config_path) if config_path else None)
    setup_logging(
        level=config.logging.level,
        log_file=config.logging.file,
        format_type=config.logging.format,
        enabled=config.logging.enabled,
    )
    return config


def load_request(path: Path, config: AdvisorConfig) -> RecommendationContext:
    """Read a YAML or JSON request file into a RecommendationContext."""
    try:
        data: Dict[str, Any] = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as e:
        raise SpreadAdvisorError(f"Could not parse request file {path}: {e}") from e
    if not isinstance(data, dict):
        raise SpreadAdvisorError(f"Request file {path} must contain a mapping")

    as_of = data.get("date") or date.today()
    if isinstance(as_of, str):
        as_of = date.fromisoformat(as_of)

    customer = CustomerAttributes(
        risk_level=float(data.get("risk_level", 1.0)),
        trading_volume=float(data.get("trading_volume", 0.0)),
    )
    records = [HistoricalRecord.from_dict(r) for r in data.get("records") or []]
    return build_context(
        customer_id=str(data.get("customer_id", "")),
        customer_name=str(data.get("customer_name", "")),
        currency=data.get("currency"),
        as_of=as_of,
        records=records,
        customer=customer,
        bounds=config.bounds,
    )


@app.command("recommend")
def recommend(
    request_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="YAML or JSON request file"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
):
    """Generate a spread recommendation for one customer and currency."""
    display = DisplayManager()
    try:
        config = _load_settings(config_path)
        context = load_request(request_file, config)
        result = asyncio.run(RecommendationCoordinator(config).generate(context))
    except (SpreadAdvisorError, ValueError) as e:
        display.show_error(str(e))
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        display.show_recommendation(result)


@app.command("providers")
def providers(
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
):
    """Show configured providers and their availability."""
    display = DisplayManager()
    try:
        config = _load_settings(config_path)
    except SpreadAdvisorError as e:
        display.show_error(str(e))
        raise typer.Exit(code=1)

    orchestrator = create_orchestrator(config)

    async def _collect():
        return await orchestrator.provider_status(), await get_provider_health(orchestrator)

    descriptors, health = asyncio.run(_collect())
    display.show_providers(descriptors, health)


if __name__ == "__main__":
    app()
