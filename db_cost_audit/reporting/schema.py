"""
Column schema for report records.

Every report format derives its fields from REPORT_COLUMNS, in order.
"""
from typing import Any, Callable, Dict, List, NamedTuple, Optional

from ..engine.models import AnalyzedResource
from ..engine.pricing import BYTES_PER_GB


def _text(value: Any) -> str:
    return '' if value is None else str(value)


def _decimal(value: Optional[float]) -> str:
    return '' if value is None else f"{value:.2f}"


def _integer(value: Optional[int]) -> str:
    return '' if value is None else str(int(value))


def _flag(value: Optional[bool]) -> str:
    if value is None:
        return ''
    return 'true' if value else 'false'


class ReportColumn(NamedTuple):
    """One report field: its name, how to read it, how to render it in CSV."""
    name: str
    extract: Callable[[AnalyzedResource], Any]
    to_csv: Callable[[Any], str]


def _estimate_field(attribute: str) -> Callable[[AnalyzedResource], Any]:
    def extract(entry: AnalyzedResource) -> Any:
        if entry.estimate is None:
            return None
        return getattr(entry.estimate, attribute)
    return extract


REPORT_COLUMNS = (
    ReportColumn('resourceId', lambda e: e.snapshot.resource_id, _text),
    ReportColumn('resourceKind', lambda e: e.snapshot.kind.value, _text),
    ReportColumn('billingMode', lambda e: e.snapshot.billing_mode, _text),
    ReportColumn('instanceClass', lambda e: e.snapshot.instance_class, _text),
    ReportColumn('engine', lambda e: e.snapshot.engine, _text),
    ReportColumn('itemCount', lambda e: e.snapshot.item_count, _integer),
    ReportColumn('storageGB', lambda e: round(e.snapshot.storage_bytes / BYTES_PER_GB, 2), _decimal),
    ReportColumn('readCapacityUnits', lambda e: e.snapshot.read_capacity_units, _integer),
    ReportColumn('writeCapacityUnits', lambda e: e.snapshot.write_capacity_units, _integer),
    ReportColumn('avgConsumedRead', lambda e: round(e.snapshot.avg_consumed_read, 2), _decimal),
    ReportColumn('avgConsumedWrite', lambda e: round(e.snapshot.avg_consumed_write, 2), _decimal),
    ReportColumn('cpuUtilization', lambda e: round(e.snapshot.cpu_utilization, 2), _decimal),
    ReportColumn('freeStorageGB', lambda e: round(e.snapshot.free_storage_bytes / BYTES_PER_GB, 2), _decimal),
    ReportColumn('connections', lambda e: round(e.snapshot.connection_count, 2), _decimal),
    ReportColumn('metricsAvailable', lambda e: e.snapshot.metrics_available, _flag),
    ReportColumn('estimatedCost', _estimate_field('estimated_cost'), _decimal),
    ReportColumn('currentCost', _estimate_field('current_cost'), _decimal),
    ReportColumn('actualCost', _estimate_field('actual_cost'), _decimal),
    ReportColumn('utilizationPct', _estimate_field('utilization_pct'), _decimal),
    ReportColumn('potentialSavings', _estimate_field('potential_savings'), _decimal),
    ReportColumn('potentialSavingsPct', _estimate_field('potential_savings_pct'), _decimal),
    ReportColumn('recommendation', _estimate_field('recommendation'), _text),
    ReportColumn('needsOptimization', _estimate_field('needs_optimization'), _flag),
)

FIELD_NAMES: List[str] = [column.name for column in REPORT_COLUMNS]


def to_record(entry: AnalyzedResource) -> Dict[str, Any]:
    """JSON-ready record for one analyzed resource."""
    return {column.name: column.extract(entry) for column in REPORT_COLUMNS}


def to_csv_row(entry: AnalyzedResource) -> List[str]:
    """CSV row for one analyzed resource, aligned with FIELD_NAMES."""
    return [column.to_csv(column.extract(entry)) for column in REPORT_COLUMNS]
