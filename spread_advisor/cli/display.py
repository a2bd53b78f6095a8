"""
Rich rendering for spread advisor CLI output
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.padding import Padding
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table

from spread_advisor.models import ProviderDescriptor, RecommendationResult


class DisplayManager:
    """Manages CLI display operations using Rich"""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(width=100)

    def show_recommendation(self, result: RecommendationResult) -> None:
        """Display the recommendation panel followed by the factor breakdown"""
        self._show_main_recommendation(result)
        self._show_factors(result)

    def _show_main_recommendation(self, result: RecommendationResult) -> None:
        if result.degraded:
            color = "red"
        elif result.provenance.used_ai_path:
            color = "green"
        else:
            color = "blue"

        content_lines = [
            f"[bold]Spread:[/bold]      [{color}]{result.recommended_spread}[/{color}]",
            f"[bold]Confidence:[/bold]  {self._format_confidence(result.confidence_score)}",
            f"[bold]Provider:[/bold]    {result.provenance.provider} ({result.provenance.model})",
            f"[bold]Valid until:[/bold] {result.validity.expires_at.isoformat(timespec='minutes')}",
            f"\n[bold]{escape(result.reasoning)}[/bold]",
        ]

        if result.risk_assessment:
            content_lines.append(f"\n[bold]Risk:[/bold] {escape(result.risk_assessment)}")
        if result.market_analysis:
            content_lines.append(f"[bold]Market:[/bold] {escape(result.market_analysis)}")

        if result.key_factors:
            content_lines.append("\n[bold]Key Factors:[/bold]")
            for factor in result.key_factors:
                content_lines.append(f"  • {escape(factor)}")

        if result.degraded or result.issues:
            content_lines.append("\n[bold yellow]Warnings:[/bold yellow]")
            if result.degraded:
                content_lines.append("  • Degraded result: default spread applied")
            for issue in result.issues:
                content_lines.append(f"  • {issue.value.replace('_', ' ')}")

        panel = Panel(
            "\n".join(content_lines),
            title=f"Spread Recommendation - {result.customer_id} {result.currency} {result.as_of.isoformat()}",
            border_style=color,
            padding=(1, 2),
        )
        self.console.print(Padding(panel, (1, 0, 0, 0)))

    def _show_factors(self, result: RecommendationResult) -> None:
        self.console.print(Rule("Factor Breakdown"))
        table = Table(box=box.SIMPLE, show_header=True)
        table.add_column("Factor", style="bold")
        table.add_column("Value", justify="right")
        factors = result.factors
        table.add_row("Volatility", str(factors.volatility))
        table.add_row("Volume", str(factors.volume))
        table.add_row("History", str(factors.history))
        table.add_row("Risk adjustment", str(factors.risk_adjustment))
        if factors.base_spread is not None:
            table.add_row("Base spread", str(factors.base_spread))
        self.console.print(table)

    def show_providers(self, descriptors: List[ProviderDescriptor], health: Optional[Dict[str, Any]] = None) -> None:
        table = Table(title="Recommendation Providers", box=box.ROUNDED)
        table.add_column("#", justify="right")
        table.add_column("Provider", style="bold")
        table.add_column("Model")
        table.add_column("Status")
        for i, d in enumerate(descriptors, 1):
            status = "[green]available[/green]" if d.available else "[red]unavailable[/red]"
            table.add_row(str(i), d.name, d.model, status)
        self.console.print(table)
        if health:
            self.console.print(f"[dim]Overall: {health['status']} at {health['timestamp']}[/dim]")

    def show_error(self, message: str) -> None:
        self.console.print(Panel(escape(message), title="Error", border_style="red"))

    @staticmethod
    def _format_confidence(confidence: Decimal) -> str:
        value = float(confidence)
        if value >= 0.7:
            return f"[green]{value:.0%}[/green]"
        if value >= 0.4:
            return f"[yellow]{value:.0%}[/yellow]"
        return f"[red]{value:.0%}[/red]"
