"""Rich console rendering of audit results."""

from typing import Dict, Optional
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from db_cost_audit.engine.models import FleetReport


class ReportView:
    """Renders fleet reports and run summaries to the console."""

    def __init__(self, console: Console):
        self.console = console

    def show_header(self, title: str) -> None:
        self.console.print(f"💰 [bold]{title}[/bold]")
        self.console.print("━" * 50)

    def show_report(self, report: FleetReport, limit: Optional[int] = 20) -> None:
        """Print the top of the ranked report and the fleet totals.

        Args:
            report: Report to render
            limit: Maximum rows to show; None shows every row
        """
        if not report.entries:
            self.console.print("[yellow]No resources found to analyze.[/yellow]")
            return

        table = Table(title=f"Cost analysis ({report.window_days}-day window)")
        table.add_column("Resource", style="cyan", no_wrap=True)
        table.add_column("Kind")
        table.add_column("Billing")
        table.add_column("Est. cost", justify="right")
        table.add_column("Utilization", justify="right")
        table.add_column("Savings", justify="right", style="green")
        table.add_column("Recommendation")

        entries = report.entries if limit is None else report.entries[:limit]
        for entry in entries:
            snapshot, estimate = entry.snapshot, entry.estimate
            if estimate is None:
                cost = utilization = savings = "-"
                recommendation = "[dim]not analyzed[/dim]"
            else:
                cost = f"${estimate.estimated_cost:,.2f}"
                utilization = f"{estimate.utilization_pct:.1f}%"
                savings = f"${estimate.potential_savings:,.2f} ({estimate.potential_savings_pct:.1f}%)"
                recommendation = estimate.recommendation
                if estimate.needs_optimization:
                    recommendation = f"⚠️  [yellow]{recommendation}[/yellow]"
            if not snapshot.metrics_available:
                utilization = f"{utilization} [dim](no metrics)[/dim]"
            table.add_row(
                snapshot.resource_id,
                snapshot.kind.value,
                snapshot.billing_mode,
                cost,
                utilization,
                savings,
                recommendation,
            )

        self.console.print(table)
        if limit is not None and len(report.entries) > limit:
            self.console.print(f"[dim]… {len(report.entries) - limit} more in the written report[/dim]")

        self.console.print(Panel(
            f"Resources analyzed: {len(report.entries) - len(report.skipped)} "
            f"(skipped {len(report.skipped)})\n"
            f"Needing optimization: {report.resources_needing_optimization}\n"
            f"Total estimated cost: ${report.total_estimated_cost:,.2f}\n"
            f"[bold green]TOTAL POTENTIAL SAVINGS: ${report.total_potential_savings:,.2f}[/bold green]",
            title="Summary",
            border_style="green",
            expand=False,
        ))

    def show_written(self, paths: Dict[str, Path]) -> None:
        for fmt, path in paths.items():
            self.console.print(f"✅ Saved {fmt.upper()} report to {path}")

    def show_audit_cost(self, metric_requests: int, cost: float) -> None:
        self.console.print(
            f"[dim]{metric_requests} CloudWatch metric requests made (≈ ${cost:.2f})[/dim]"
        )
