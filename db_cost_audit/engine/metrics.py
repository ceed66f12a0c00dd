"""
Reduction of hourly CloudWatch datapoints into a single window average.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, Optional

from ..core.exceptions import NoDataError, ValidationError


PERIOD_SECONDS = 3600  # one bucket per hour
AVERAGE_STATISTIC = 'Average'


@dataclass(frozen=True)
class MetricWindow:
    """Look-back window over which metrics are averaged."""
    start: datetime
    end: datetime

    @classmethod
    def last(cls, days: int, now: Optional[datetime] = None) -> 'MetricWindow':
        """Window covering the ``days`` days before ``now`` (UTC)."""
        if days < 1:
            raise ValidationError(f"Look-back window must be at least one day, got {days}")
        end = now or datetime.now(timezone.utc)
        return cls(start=end - timedelta(days=days), end=end)

    @property
    def hours(self) -> float:
        return (self.end - self.start).total_seconds() / 3600


def average_datapoints(
    datapoints: Iterable[Dict[str, Any]],
    metric_name: str,
    resource_id: str = None,
    statistic: str = AVERAGE_STATISTIC,
) -> float:
    """Arithmetic mean of per-bucket averages.

    Args:
        datapoints: CloudWatch datapoint dicts, one per hourly bucket
        metric_name: Metric the datapoints belong to (for error context)
        resource_id: Resource the datapoints belong to (for error context)
        statistic: Datapoint key holding the bucket value

    Returns:
        Mean of the bucket values

    Raises:
        NoDataError: If there are no datapoints; the average is undefined
    """
    values = [dp[statistic] for dp in datapoints if dp.get(statistic) is not None]
    if not values:
        raise NoDataError(metric_name, resource_id)
    return sum(values) / len(values)
