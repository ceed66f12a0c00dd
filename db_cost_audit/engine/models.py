"""
Data models for database cost analysis.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class ResourceKind(str, Enum):
    """Kinds of managed database resources the audit understands."""
    KEY_VALUE_TABLE = 'dynamodb-table'
    RELATIONAL_INSTANCE = 'rds-instance'


BILLING_PROVISIONED = 'PROVISIONED'
BILLING_PAY_PER_REQUEST = 'PAY_PER_REQUEST'
BILLING_SERVERLESS = 'SERVERLESS'
BILLING_UNKNOWN = 'UNKNOWN'


@dataclass(frozen=True)
class ResourceSnapshot:
    """Configuration and observed consumption of one database resource.

    For relational instances the consumed read/write fields carry average
    read/write IOPS over the look-back window.
    """
    resource_id: str
    kind: ResourceKind
    billing_mode: str = BILLING_UNKNOWN
    read_capacity_units: int = 0
    write_capacity_units: int = 0
    storage_bytes: int = 0
    item_count: int = 0
    avg_consumed_read: float = 0.0
    avg_consumed_write: float = 0.0
    cpu_utilization: float = 0.0       # percent, relational only
    free_storage_bytes: float = 0.0    # relational only
    connection_count: float = 0.0      # relational only
    metrics_available: bool = False
    description_available: bool = True
    arn: Optional[str] = None
    instance_class: Optional[str] = None
    engine: Optional[str] = None
    storage_type: Optional[str] = None
    allocated_storage_gb: float = 0.0
    replica_count: int = 0
    multi_az: bool = False

    @classmethod
    def unavailable(cls, resource_id: str, kind: ResourceKind) -> 'ResourceSnapshot':
        """Zeroed record for a resource whose description could not be fetched."""
        return cls(
            resource_id=resource_id,
            kind=kind,
            metrics_available=False,
            description_available=False,
        )

    @property
    def is_provisioned(self) -> bool:
        return self.billing_mode == BILLING_PROVISIONED


@dataclass(frozen=True)
class CostEstimate:
    """Cost and utilization estimate computed once per resource per run."""
    estimated_cost: float
    current_cost: float
    actual_cost: float
    utilization_pct: float
    potential_savings: float
    potential_savings_pct: float
    recommendation: str
    needs_optimization: bool

    @classmethod
    def empty(cls) -> 'CostEstimate':
        """Zeroed estimate for resources with no usable description."""
        return cls(
            estimated_cost=0.0,
            current_cost=0.0,
            actual_cost=0.0,
            utilization_pct=0.0,
            potential_savings=0.0,
            potential_savings_pct=0.0,
            recommendation='',
            needs_optimization=False,
        )


@dataclass(frozen=True)
class AnalyzedResource:
    """A snapshot paired with its estimate.

    ``estimate`` is None for resources the estimator does not apply to
    (e.g. on-demand tables), which pass through unmodified.
    """
    snapshot: ResourceSnapshot
    estimate: Optional[CostEstimate] = None

    @property
    def potential_savings(self) -> float:
        return self.estimate.potential_savings if self.estimate else 0.0

    @property
    def estimated_cost(self) -> float:
        return self.estimate.estimated_cost if self.estimate else 0.0


@dataclass(frozen=True)
class FleetReport:
    """Ranked analysis results for one audit run."""
    entries: Tuple[AnalyzedResource, ...]
    total_potential_savings: float
    total_estimated_cost: float
    window_days: int
    resources_needing_optimization: int = 0
    skipped: Tuple[str, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.entries)
