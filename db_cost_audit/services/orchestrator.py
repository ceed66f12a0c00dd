"""
Fleet collector coordinating concurrent snapshot collection across services.
"""
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
import logging
from typing import Dict, List, Optional, Tuple

import boto3

from .base import BaseCollector
from .dynamodb import DynamoDBCollector
from .rds import RDSCollector
from ..core.exceptions import ServiceError
from ..engine.metrics import MetricWindow
from ..engine.models import ResourceSnapshot


logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 10


class FleetCollector:
    """Collects snapshots for every resource of the requested kinds."""

    def __init__(self, session: boto3.Session, region: str, max_workers: int = DEFAULT_MAX_WORKERS):
        """Initialize the fleet collector.

        Args:
            session: Authenticated boto3 session
            region: AWS region to collect from
            max_workers: Upper bound on concurrent per-resource fetches
        """
        self.session = session
        self.region = region
        self.max_workers = max_workers

        self.collector_classes = {
            'dynamodb': DynamoDBCollector,
            'rds': RDSCollector,
        }

        self._collector_cache: Dict[str, BaseCollector] = {}

    def get_collector(self, service_type: str) -> BaseCollector:
        """Get or create a collector instance.

        Raises:
            ServiceError: If service type is not supported
        """
        if service_type not in self._collector_cache:
            if service_type not in self.collector_classes:
                raise ServiceError(f"Unsupported service type: {service_type}")
            collector_class = self.collector_classes[service_type]
            self._collector_cache[service_type] = collector_class(self.session, self.region)

        return self._collector_cache[service_type]

    @property
    def metric_requests(self) -> int:
        """Metric API requests made so far across all collectors."""
        return sum(collector.metric_requests for collector in self._collector_cache.values())

    def discover(self, service_types: List[str]) -> List[Tuple[str, str]]:
        """List resource identifiers for each service type.

        Returns:
            (service_type, resource_id) pairs in discovery order

        Raises:
            ServiceError: If discovery fails for every requested service
        """
        discovered = []
        discovery_errors = []

        for service_type in service_types:
            try:
                resource_ids = self.get_collector(service_type).list_resource_ids()
            except ServiceError as e:
                discovery_errors.append(f"Discovery failed for {service_type} in {self.region}: {e}")
                continue
            logger.info(f"Discovered {len(resource_ids)} {service_type} resources in {self.region}")
            discovered.extend((service_type, resource_id) for resource_id in resource_ids)

        if discovery_errors:
            logger.warning(f"Discovery errors: {len(discovery_errors)} services failed")
            for error in discovery_errors:
                logger.warning(f"  - {error}")
            if len(discovery_errors) == len(service_types):
                raise ServiceError("Discovery failed for all services", details="; ".join(discovery_errors))

        return discovered

    def collect(self, service_types: List[str], window: MetricWindow) -> List[ResourceSnapshot]:
        """Discover and snapshot every resource of the given service types.

        Each resource is fetched in its own task on a bounded pool. Results
        are gathered by this thread only and returned in discovery order. A
        failed task yields a zeroed snapshot and never stops its siblings.

        Args:
            service_types: Service types to collect ('dynamodb', 'rds')
            window: Metric look-back window

        Returns:
            One snapshot per discovered resource
        """
        discovered = self.discover(service_types)
        start_time = datetime.now()

        snapshots: List[Optional[ResourceSnapshot]] = [None] * len(discovered)
        failures = 0

        # Sessions are not thread-safe; build every client before fanning out
        for service_type in {service_type for service_type, _ in discovered}:
            collector = self.get_collector(service_type)
            collector.client
            collector.cloudwatch

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_index = {}
            for index, (service_type, resource_id) in enumerate(discovered):
                collector = self.get_collector(service_type)
                future = executor.submit(collector.collect_snapshot, resource_id, window)
                future_to_index[future] = index

            for future in as_completed(future_to_index):
                index = future_to_index[future]
                service_type, resource_id = discovered[index]
                try:
                    snapshots[index] = future.result()
                    logger.debug(f"Collected {service_type} {resource_id}")
                except Exception as e:
                    failures += 1
                    logger.error(f"Unexpected error collecting {service_type} {resource_id}: {e}")
                    snapshots[index] = ResourceSnapshot.unavailable(
                        resource_id, self.get_collector(service_type).resource_kind
                    )

        duration = (datetime.now() - start_time).total_seconds()
        logger.info(
            f"Collection complete: {len(snapshots)} resources in {duration:.1f}s, "
            f"{failures} failed, {self.metric_requests} metric requests"
        )
        return snapshots
