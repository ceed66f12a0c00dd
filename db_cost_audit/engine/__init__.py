"""Cost and utilization estimation engine."""

from .models import (
    ResourceKind,
    ResourceSnapshot,
    CostEstimate,
    AnalyzedResource,
    FleetReport,
)
from .pricing import CapacityRates, DEFAULT_CAPACITY_RATES
from .estimator import estimate
from .analyzer import analyze_fleet

__all__ = [
    'ResourceKind',
    'ResourceSnapshot',
    'CostEstimate',
    'AnalyzedResource',
    'FleetReport',
    'CapacityRates',
    'DEFAULT_CAPACITY_RATES',
    'estimate',
    'analyze_fleet',
]
