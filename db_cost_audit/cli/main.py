"""
Main CLI entry point for the database cost audit.

Provides the ``db-cost-audit`` command group.
"""

import functools
import logging
import sys
from pathlib import Path
from typing import Optional, Tuple

import click
from rich.console import Console
from rich.logging import RichHandler

from db_cost_audit import __version__
from db_cost_audit.auth.session import SessionFactory
from db_cost_audit.cli.display import ReportView
from db_cost_audit.core.config import AuditConfig, ConfigManager, SUPPORTED_RESOURCE_KINDS
from db_cost_audit.core.exceptions import (
    AuthenticationError,
    ConfigurationError,
    CostAuditError,
    MalformedInputError,
    OutputWriteError,
    ServiceError,
)
from db_cost_audit.engine.analyzer import analyze_fleet
from db_cost_audit.engine.metrics import MetricWindow
from db_cost_audit.engine.pricing import CapacityRates, estimate_cloudwatch_monthly_cost
from db_cost_audit.reporting.writer import ReportWriter
from db_cost_audit.services.orchestrator import FleetCollector
from db_cost_audit.state.snapshot_store import SnapshotStore


console = Console()
logger = logging.getLogger(__name__)

# Exit codes for different error types
EXIT_SUCCESS = 0
EXIT_GENERAL_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_AUTH_ERROR = 3
EXIT_SERVICE_ERROR = 4
EXIT_MALFORMED_INPUT = 5
EXIT_OUTPUT_ERROR = 6
EXIT_USER_CANCELLED = 130

FORMAT_CHOICES = {'json': ('json',), 'csv': ('csv',), 'both': ('json', 'csv')}


def handle_errors(func):
    """Map audit errors to console messages and exit codes."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            console.print("\n⚠️  [yellow]Operation cancelled by user[/yellow]")
            sys.exit(EXIT_USER_CANCELLED)
        except ConfigurationError as e:
            console.print(f"❌ [red]Configuration error: {e}[/red]")
            sys.exit(EXIT_CONFIG_ERROR)
        except AuthenticationError as e:
            console.print(f"❌ [red]Authentication error: {e}[/red]")
            sys.exit(EXIT_AUTH_ERROR)
        except ServiceError as e:
            console.print(f"❌ [red]Service error: {e}[/red]")
            sys.exit(EXIT_SERVICE_ERROR)
        except MalformedInputError as e:
            console.print(f"❌ [red]Cannot read input: {e}[/red]")
            sys.exit(EXIT_MALFORMED_INPUT)
        except OutputWriteError as e:
            console.print(f"❌ [red]Cannot write output: {e}[/red]")
            sys.exit(EXIT_OUTPUT_ERROR)
        except CostAuditError as e:
            console.print(f"❌ [red]{e}[/red]")
            sys.exit(EXIT_GENERAL_ERROR)
    return wrapper


def configure_logging(verbosity: int) -> None:
    """WARNING by default, INFO with -v, DEBUG with -vv."""
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    # botocore is chatty at DEBUG
    logging.getLogger('botocore').setLevel(max(level, logging.INFO))


def resolve_config(ctx: click.Context, **overrides) -> AuditConfig:
    """Stored configuration with non-None CLI overrides applied.

    Raises:
        ConfigurationError: If the merged configuration is invalid
    """
    config: AuditConfig = ctx.obj['config']
    updates = {key: value for key, value in overrides.items() if value is not None and value != ()}
    if not updates:
        return config
    if 'resource_kinds' in updates:
        updates['resource_kinds'] = list(updates['resource_kinds'])
    try:
        return AuditConfig(**{**config.model_dump(), **updates})
    except ValueError as e:
        raise ConfigurationError(f"Invalid option: {e}", details=str(e))


def collect_snapshots(config: AuditConfig):
    """Discover and snapshot every configured resource kind."""
    session = SessionFactory(config).get_session()
    collector = FleetCollector(session, config.region, max_workers=config.max_workers)
    window = MetricWindow.last(config.window_days)

    with console.status(f"🔍 Collecting {', '.join(config.resource_kinds)} resources in {config.region}..."):
        snapshots = collector.collect(config.resource_kinds, window)

    return snapshots, collector.metric_requests


def analyze_and_write(config: AuditConfig, snapshots, formats: Tuple[str, ...], limit: Optional[int]) -> None:
    rates = CapacityRates.with_overrides(
        read_unit_hour=config.read_unit_hour_rate,
        write_unit_hour=config.write_unit_hour_rate,
        storage_gb_month=config.storage_gb_month_rate,
    )
    report = analyze_fleet(snapshots, config.window_days, rates)

    view = ReportView(console)
    view.show_report(report, limit=limit)

    paths = ReportWriter(config.output_dir, config.report_name).write(report, formats)
    view.show_written(paths)


region_option = click.option("--region", help="AWS region to audit (defaults to configured region)")
days_option = click.option("--days", "window_days", type=int, help="Metric look-back window in days")
workers_option = click.option("--workers", "max_workers", type=int, help="Concurrent per-resource fetches")
kinds_option = click.option(
    "--kind", "resource_kinds",
    type=click.Choice(SUPPORTED_RESOURCE_KINDS),
    multiple=True,
    help="Resource kind to collect (repeatable; defaults to all)",
)
output_dir_option = click.option(
    "--output-dir", type=click.Path(file_okay=False, path_type=Path),
    help="Directory for snapshots and reports",
)
format_option = click.option(
    "--format", "report_format", type=click.Choice(sorted(FORMAT_CHOICES)), default="both",
    show_default=True, help="Report format",
)
limit_option = click.option("--limit", type=int, default=20, show_default=True, help="Rows to show on screen")


@click.group()
@click.option("-v", "--verbose", count=True, help="Increase log verbosity (-v, -vv)")
@click.option(
    "--config-dir", type=click.Path(file_okay=False, path_type=Path),
    help="Configuration directory (defaults to ~/.db-cost-audit)",
)
@click.version_option(version=__version__)
@click.pass_context
@handle_errors
def main(ctx: click.Context, verbose: int, config_dir: Optional[Path]) -> None:
    """
    💰 DB Cost Audit - spend versus usage for managed AWS databases

    Inventories DynamoDB tables and RDS instances, compares what they cost
    with what they use, and writes a ranked cost-optimization report.
    Read-only: nothing is ever changed.
    """
    configure_logging(verbose)
    config_manager = ConfigManager(config_dir)
    ctx.ensure_object(dict)
    ctx.obj['config_manager'] = config_manager
    ctx.obj['config'] = config_manager.load_config()


@main.command()
@region_option
@days_option
@workers_option
@kinds_option
@output_dir_option
@click.option("--report-name", help="Report file name without extension")
@click.option("--role-arn", "iam_role_arn", help="IAM role to assume for the audit")
@click.option("--profile", "profile_name", help="AWS shared-credentials profile")
@click.pass_context
@handle_errors
def configure(ctx: click.Context, **options) -> None:
    """Save default settings for future runs."""
    config = resolve_config(ctx, **options)
    config_manager: ConfigManager = ctx.obj['config_manager']
    config_manager.save_config(config)
    console.print(f"✅ [green]Configuration saved to {config_manager.get_config_path()}[/green]")
    console.print_json(config.model_dump_json(exclude={'created_at'}))


@main.command()
@region_option
@days_option
@workers_option
@kinds_option
@click.option(
    "--output", "output_path", type=click.Path(dir_okay=False, path_type=Path),
    help="Snapshot file to write (defaults to <output-dir>/snapshots.json)",
)
@output_dir_option
@click.pass_context
@handle_errors
def collect(ctx: click.Context, output_path: Optional[Path], **options) -> None:
    """Fetch resource configuration and metrics, and save snapshots."""
    config = resolve_config(ctx, **options)
    snapshots, metric_requests = collect_snapshots(config)

    path = SnapshotStore().save(snapshots, output_path or config.snapshots_path, config.window_days)
    console.print(f"✅ Saved {len(snapshots)} snapshots to {path}")
    ReportView(console).show_audit_cost(
        metric_requests, estimate_cloudwatch_monthly_cost(0, metric_requests)
    )


@main.command()
@click.argument("snapshots_path", type=click.Path(dir_okay=False, path_type=Path))
@days_option
@output_dir_option
@format_option
@limit_option
@click.pass_context
@handle_errors
def analyze(
    ctx: click.Context,
    snapshots_path: Path,
    report_format: str,
    limit: int,
    **options,
) -> None:
    """Analyze a saved snapshot file and write the ranked report.

    Costs are computed over the window the snapshots were collected with;
    --days overrides it.
    """
    collection = SnapshotStore().load(snapshots_path)
    if options['window_days'] is None:
        options['window_days'] = collection.window_days
    elif collection.window_days is not None and options['window_days'] != collection.window_days:
        logger.warning(
            f"Analyzing with a {options['window_days']}-day window, but the snapshots "
            f"were collected over {collection.window_days} days"
        )
    config = resolve_config(ctx, **options)

    ReportView(console).show_header(f"Analyzing {len(collection)} resources from {snapshots_path}")
    analyze_and_write(config, collection.snapshots, FORMAT_CHOICES[report_format], limit)


@main.command()
@region_option
@days_option
@workers_option
@kinds_option
@output_dir_option
@format_option
@limit_option
@click.pass_context
@handle_errors
def audit(ctx: click.Context, report_format: str, limit: int, **options) -> None:
    """Collect, analyze and report in one run."""
    config = resolve_config(ctx, **options)
    view = ReportView(console)
    view.show_header(f"Auditing database spend in {config.region}")

    snapshots, metric_requests = collect_snapshots(config)
    SnapshotStore().save(snapshots, config.snapshots_path, config.window_days)

    analyze_and_write(config, snapshots, FORMAT_CHOICES[report_format], limit)
    view.show_audit_cost(metric_requests, estimate_cloudwatch_monthly_cost(0, metric_requests))


if __name__ == "__main__":
    main()
