"""
Fixed-rate pricing for managed database resources.

Rates approximate us-east-1 list prices. A rate argument of None means
"use the default rate"; an explicit 0.0 is honored as a free rate.
"""
from dataclasses import dataclass
from typing import Optional, Tuple


DEFAULT_READ_UNIT_HOUR_RATE = 0.00013     # $ per read capacity unit-hour
DEFAULT_WRITE_UNIT_HOUR_RATE = 0.00065    # $ per write capacity unit-hour
DEFAULT_STORAGE_GB_MONTH_RATE = 0.25      # $ per GB-month

HOURS_PER_MONTH = 720
BYTES_PER_GB = 1024 ** 3

# Hourly on-demand compute by instance class, matched by substring in order
INSTANCE_HOURLY_RATES: Tuple[Tuple[str, float], ...] = (
    ('t3.micro', 0.017),
    ('r6g.large', 0.188),
    ('r6g.xlarge', 0.376),
    ('r6g.2xlarge', 0.752),
    ('r6g.4xlarge', 1.504),
)
DEFAULT_INSTANCE_HOURLY_RATE = 0.10

SERVERLESS_CLASS_MARKER = 'serverless'
SERVERLESS_UNIT_HOUR_RATE = 0.12
SERVERLESS_MIN_UNITS = 2.0
SERVERLESS_CONNECTIONS_PER_UNIT = 500.0

AURORA_ENGINES = frozenset({'aurora-mysql', 'aurora-postgresql'})
AURORA_STORAGE_GB_MONTH_RATE = 0.10
INSTANCE_STORAGE_GB_MONTH_RATE = 0.25

PROVISIONED_IOPS_STORAGE_TYPES = frozenset({'io1', 'io2'})
IOPS_MONTH_RATE = 0.10

OVERHEAD_MULTIPLIER = 1.25

CLOUDWATCH_METRIC_MONTH_RATE = 0.30
CLOUDWATCH_RATE_PER_1000_REQUESTS = 0.01


@dataclass(frozen=True)
class CapacityRates:
    """Per-unit rates for provisioned-capacity tables."""
    read_unit_hour: float = DEFAULT_READ_UNIT_HOUR_RATE
    write_unit_hour: float = DEFAULT_WRITE_UNIT_HOUR_RATE
    storage_gb_month: float = DEFAULT_STORAGE_GB_MONTH_RATE

    @classmethod
    def with_overrides(
        cls,
        read_unit_hour: Optional[float] = None,
        write_unit_hour: Optional[float] = None,
        storage_gb_month: Optional[float] = None,
    ) -> 'CapacityRates':
        """Build rates, keeping the default wherever an override is None."""
        return cls(
            read_unit_hour=_rate_or_default(read_unit_hour, DEFAULT_READ_UNIT_HOUR_RATE),
            write_unit_hour=_rate_or_default(write_unit_hour, DEFAULT_WRITE_UNIT_HOUR_RATE),
            storage_gb_month=_rate_or_default(storage_gb_month, DEFAULT_STORAGE_GB_MONTH_RATE),
        )


DEFAULT_CAPACITY_RATES = CapacityRates()


def _rate_or_default(rate: Optional[float], default: float) -> float:
    return default if rate is None else rate


def estimate_provisioned_capacity_cost(
    read_units: float,
    write_units: float,
    storage_bytes: int,
    hours: float,
    read_rate: Optional[float] = None,
    write_rate: Optional[float] = None,
    storage_rate: Optional[float] = None,
) -> float:
    """Estimate the cost of provisioned capacity plus storage over ``hours``.

    Args:
        read_units: Provisioned read capacity units
        write_units: Provisioned write capacity units
        storage_bytes: Stored data size in bytes
        hours: Length of the billing window in hours
        read_rate: $ per read unit-hour, None for the default
        write_rate: $ per write unit-hour, None for the default
        storage_rate: $ per GB-month, None for the default

    Returns:
        Estimated cost in USD (unrounded)
    """
    read_rate = _rate_or_default(read_rate, DEFAULT_READ_UNIT_HOUR_RATE)
    write_rate = _rate_or_default(write_rate, DEFAULT_WRITE_UNIT_HOUR_RATE)
    storage_rate = _rate_or_default(storage_rate, DEFAULT_STORAGE_GB_MONTH_RATE)

    storage_gb = storage_bytes / BYTES_PER_GB

    read_cost = read_units * read_rate * hours
    write_cost = write_units * write_rate * hours
    # Monthly storage price prorated to a 30-day month
    storage_cost = storage_gb * storage_rate * (hours / (24 * 30))

    return read_cost + write_cost + storage_cost


def instance_hourly_rate(instance_class: str) -> float:
    """Look up the hourly compute rate for an instance class."""
    for marker, rate in INSTANCE_HOURLY_RATES:
        if marker in instance_class:
            return rate
    return DEFAULT_INSTANCE_HOURLY_RATE


def estimate_instance_monthly_cost(
    instance_class: str,
    engine: str,
    storage_type: str,
    storage_gb: float,
    read_iops: float,
    write_iops: float,
    replica_count: int,
    is_multi_az: bool,
    connection_count: float,
) -> float:
    """Estimate the monthly cost of a relational database instance.

    Compute is billed per replica, so a replica count of zero prices compute
    at $0. Serverless classes are priced from a capacity-unit estimate driven
    by connections.

    Returns:
        Estimated monthly cost in USD (unrounded)
    """
    instance_class = instance_class or ''

    if SERVERLESS_CLASS_MARKER in instance_class:
        units = max(SERVERLESS_MIN_UNITS, connection_count / SERVERLESS_CONNECTIONS_PER_UNIT)
        return units * SERVERLESS_UNIT_HOUR_RATE * HOURS_PER_MONTH

    compute_cost = instance_hourly_rate(instance_class) * HOURS_PER_MONTH * replica_count

    if engine in AURORA_ENGINES:
        storage_rate = AURORA_STORAGE_GB_MONTH_RATE
    else:
        storage_rate = INSTANCE_STORAGE_GB_MONTH_RATE
    storage_cost = storage_gb * storage_rate
    if is_multi_az:
        storage_cost *= 2

    iops_cost = 0.0
    if storage_type in PROVISIONED_IOPS_STORAGE_TYPES:
        iops_cost = (read_iops + write_iops) * IOPS_MONTH_RATE

    return (compute_cost + storage_cost + iops_cost) * OVERHEAD_MULTIPLIER


def estimate_cloudwatch_monthly_cost(metrics_count: int, api_requests: int) -> float:
    """Estimate CloudWatch spend for metrics stored and API requests made.

    Returns:
        Cost in USD rounded to cents
    """
    metrics_cost = metrics_count * CLOUDWATCH_METRIC_MONTH_RATE
    api_cost = (api_requests / 1000.0) * CLOUDWATCH_RATE_PER_1000_REQUESTS
    return round(metrics_cost + api_cost, 2)
