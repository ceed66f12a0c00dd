"""
Fleet-wide analysis: estimate every resource, total the savings, rank.
"""
import logging
from typing import Iterable, List, Optional

from .estimator import estimate
from .models import AnalyzedResource, FleetReport, ResourceSnapshot
from .pricing import DEFAULT_CAPACITY_RATES, CapacityRates


logger = logging.getLogger(__name__)


def analyze_fleet(
    snapshots: Iterable[ResourceSnapshot],
    window_days: int,
    rates: Optional[CapacityRates] = None,
) -> FleetReport:
    """Estimate every snapshot and rank by potential savings.

    Resources the estimator does not apply to are kept in the report with no
    estimate. Ordering is a stable sort on potential savings, descending, so
    ties keep their input order.

    Args:
        snapshots: Snapshots to analyze, in discovery order
        window_days: Look-back window the consumption averages cover
        rates: Capacity rate overrides, defaults when None

    Returns:
        FleetReport with ranked entries and fleet totals
    """
    rates = rates or DEFAULT_CAPACITY_RATES

    entries: List[AnalyzedResource] = []
    skipped: List[str] = []
    total_savings = 0.0
    total_cost = 0.0
    needing_optimization = 0

    for snapshot in snapshots:
        result = estimate(snapshot, window_days, rates)
        if result is None:
            skipped.append(snapshot.resource_id)
        else:
            total_savings += result.potential_savings
            total_cost += result.estimated_cost
            if result.needs_optimization:
                needing_optimization += 1
        entries.append(AnalyzedResource(snapshot=snapshot, estimate=result))

    # sorted() is stable
    ranked = sorted(entries, key=lambda entry: entry.potential_savings, reverse=True)

    logger.debug(
        f"Analyzed {len(ranked)} resources ({len(skipped)} skipped): "
        f"${total_savings:.2f} potential savings"
    )

    return FleetReport(
        entries=tuple(ranked),
        total_potential_savings=round(total_savings, 2),
        total_estimated_cost=round(total_cost, 2),
        window_days=window_days,
        resources_needing_optimization=needing_optimization,
        skipped=tuple(skipped),
    )
