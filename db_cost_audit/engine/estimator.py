"""
Per-resource cost, utilization and recommendation estimates.
"""
from typing import Optional

from .models import CostEstimate, ResourceKind, ResourceSnapshot
from .pricing import (
    BYTES_PER_GB,
    DEFAULT_CAPACITY_RATES,
    CapacityRates,
    estimate_instance_monthly_cost,
    estimate_provisioned_capacity_cost,
)
from ..core.exceptions import ValidationError


NEGLIGIBLE_COST = 1e-4
LOW_UTILIZATION_PCT = 50.0
LOW_CPU_PCT = 10.0
HIGH_CPU_PCT = 80.0
LOW_FREE_STORAGE_BYTES = 10 * BYTES_PER_GB

RECOMMEND_ON_DEMAND = "Consider switching to PAY_PER_REQUEST (utilization too low)"
RECOMMEND_STAY_PROVISIONED = "OK to stay PROVISIONED"
RECOMMEND_DOWNSIZE = "Consider downsizing or using Aurora Serverless"
RECOMMEND_UPGRADE = "Consider upgrading instance class"
RECOMMEND_MORE_STORAGE = "Low storage: increase allocated storage"
RECOMMEND_CONFIGURATION_OK = "Configuration OK"


def table_utilization(
    avg_consumed_read: float,
    avg_consumed_write: float,
    provisioned_read: float,
    provisioned_write: float,
) -> float:
    """Mean of read and write utilization, as a percentage.

    Zero provisioned capacity on either side yields 0.0.
    """
    if provisioned_read <= 0 or provisioned_write <= 0:
        return 0.0
    return ((avg_consumed_read / provisioned_read + avg_consumed_write / provisioned_write) / 2) * 100


def savings(current_cost: float, actual_cost: float) -> float:
    """Potential savings, floored at zero."""
    return max(0.0, current_cost - actual_cost)


def savings_percent(potential_savings: float, current_cost: float) -> float:
    if current_cost > 0:
        return 100 * potential_savings / current_cost
    return 0.0


def _suppress_noise(cost: float) -> float:
    return 0.0 if cost < NEGLIGIBLE_COST else cost


def estimate_table(
    snapshot: ResourceSnapshot,
    window_days: int,
    rates: CapacityRates = DEFAULT_CAPACITY_RATES,
) -> Optional[CostEstimate]:
    """Estimate a key-value table billed in provisioned mode.

    Args:
        snapshot: Table snapshot
        window_days: Look-back window the consumption averages cover
        rates: Capacity rates

    Returns:
        CostEstimate, an empty estimate if the table could not be described,
        or None for tables not billed in provisioned mode
    """
    if not snapshot.description_available:
        return CostEstimate.empty()
    if not snapshot.is_provisioned:
        return None

    hours = 24 * window_days
    read_units = snapshot.read_capacity_units
    write_units = snapshot.write_capacity_units

    current_cost = (read_units * rates.read_unit_hour + write_units * rates.write_unit_hour) * hours
    actual_cost = (
        snapshot.avg_consumed_read * rates.read_unit_hour
        + snapshot.avg_consumed_write * rates.write_unit_hour
    ) * hours
    utilization = table_utilization(
        snapshot.avg_consumed_read, snapshot.avg_consumed_write, read_units, write_units
    )

    current_cost = _suppress_noise(current_cost)
    actual_cost = _suppress_noise(actual_cost)

    potential_savings = savings(current_cost, actual_cost)
    percent = savings_percent(potential_savings, current_cost)

    if utilization < LOW_UTILIZATION_PCT:
        recommendation = RECOMMEND_ON_DEMAND
        needs_optimization = True
    else:
        recommendation = RECOMMEND_STAY_PROVISIONED
        needs_optimization = False

    estimated_cost = estimate_provisioned_capacity_cost(
        read_units,
        write_units,
        snapshot.storage_bytes,
        hours,
        read_rate=rates.read_unit_hour,
        write_rate=rates.write_unit_hour,
        storage_rate=rates.storage_gb_month,
    )

    return CostEstimate(
        estimated_cost=round(estimated_cost, 2),
        current_cost=round(current_cost, 2),
        actual_cost=round(actual_cost, 2),
        utilization_pct=round(utilization, 2),
        potential_savings=round(potential_savings, 2),
        potential_savings_pct=round(percent, 1),
        recommendation=recommendation,
        needs_optimization=needs_optimization,
    )


def recommend_instance(cpu_utilization: float, free_storage_bytes: float) -> str:
    """First matching rule wins."""
    if cpu_utilization < LOW_CPU_PCT:
        return RECOMMEND_DOWNSIZE
    if cpu_utilization > HIGH_CPU_PCT:
        return RECOMMEND_UPGRADE
    if free_storage_bytes < LOW_FREE_STORAGE_BYTES:
        return RECOMMEND_MORE_STORAGE
    return RECOMMEND_CONFIGURATION_OK


def instance_needs_optimization(cpu_utilization: float) -> bool:
    # Low free storage alone does not flag the instance
    return cpu_utilization < LOW_CPU_PCT or cpu_utilization > HIGH_CPU_PCT


def estimate_instance(snapshot: ResourceSnapshot) -> CostEstimate:
    """Estimate a relational instance from its configuration and metrics."""
    if not snapshot.description_available:
        return CostEstimate.empty()

    monthly_cost = estimate_instance_monthly_cost(
        instance_class=snapshot.instance_class or '',
        engine=snapshot.engine or '',
        storage_type=snapshot.storage_type or '',
        storage_gb=snapshot.allocated_storage_gb,
        read_iops=snapshot.avg_consumed_read,
        write_iops=snapshot.avg_consumed_write,
        replica_count=snapshot.replica_count,
        is_multi_az=snapshot.multi_az,
        connection_count=snapshot.connection_count,
    )
    monthly_cost = round(_suppress_noise(monthly_cost), 2)

    return CostEstimate(
        estimated_cost=monthly_cost,
        current_cost=monthly_cost,
        actual_cost=monthly_cost,
        utilization_pct=round(snapshot.cpu_utilization, 2),
        potential_savings=0.0,
        potential_savings_pct=0.0,
        recommendation=recommend_instance(snapshot.cpu_utilization, snapshot.free_storage_bytes),
        needs_optimization=instance_needs_optimization(snapshot.cpu_utilization),
    )


def estimate(
    snapshot: ResourceSnapshot,
    window_days: int,
    rates: CapacityRates = DEFAULT_CAPACITY_RATES,
) -> Optional[CostEstimate]:
    """Dispatch to the estimator for the snapshot's resource kind.

    Raises:
        ValidationError: If the window is shorter than a day or the kind is unknown
    """
    if window_days < 1:
        raise ValidationError(f"Look-back window must be at least one day, got {window_days}")

    if snapshot.kind == ResourceKind.KEY_VALUE_TABLE:
        return estimate_table(snapshot, window_days, rates)
    if snapshot.kind == ResourceKind.RELATIONAL_INSTANCE:
        return estimate_instance(snapshot)
    raise ValidationError(f"Unsupported resource kind: {snapshot.kind}")
