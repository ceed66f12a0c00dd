"""
Base collector interface for AWS database services.
"""
from abc import ABC, abstractmethod
import logging
import threading
from datetime import datetime
from typing import Any, Dict, List, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..core.exceptions import NoDataError, ResourceNotFoundError, ServiceError
from ..engine.metrics import AVERAGE_STATISTIC, PERIOD_SECONDS, MetricWindow, average_datapoints
from ..engine.models import ResourceKind, ResourceSnapshot


logger = logging.getLogger(__name__)


class BaseCollector(ABC):
    """Abstract base class for per-service snapshot collectors."""

    def __init__(self, session: boto3.Session, region: str):
        """Initialize the collector with AWS session and region.

        Args:
            session: Authenticated boto3 session
            region: AWS region to operate in
        """
        self.session = session
        self.region = region
        self._client = None
        self._cloudwatch = None
        self._request_lock = threading.Lock()
        self.metric_requests = 0

    @property
    def client(self):
        """Lazy-loaded AWS service client."""
        if self._client is None:
            self._client = self.session.client(self.service_name, region_name=self.region)
        return self._client

    @property
    def cloudwatch(self):
        """Lazy-loaded CloudWatch client."""
        if self._cloudwatch is None:
            self._cloudwatch = self.session.client('cloudwatch', region_name=self.region)
        return self._cloudwatch

    @property
    @abstractmethod
    def service_name(self) -> str:
        """AWS service name (e.g., 'dynamodb', 'rds')."""
        pass

    @property
    @abstractmethod
    def resource_kind(self) -> ResourceKind:
        """Kind of resource this collector produces."""
        pass

    @property
    @abstractmethod
    def metric_namespace(self) -> str:
        """CloudWatch namespace of the service's metrics."""
        pass

    @property
    @abstractmethod
    def metric_dimension(self) -> str:
        """CloudWatch dimension name identifying one resource."""
        pass

    @abstractmethod
    def list_resource_ids(self) -> List[str]:
        """List identifiers of all resources of this kind in the region.

        Raises:
            ServiceError: If listing fails
        """
        pass

    @abstractmethod
    def describe_resource(self, resource_id: str) -> Dict[str, Any]:
        """Fetch the raw description of one resource.

        Raises:
            ResourceNotFoundError: If the description cannot be retrieved
        """
        pass

    @abstractmethod
    def build_snapshot(self, resource_id: str, description: Dict[str, Any], window: MetricWindow) -> ResourceSnapshot:
        """Combine a description with window metrics into a snapshot."""
        pass

    def collect_snapshot(self, resource_id: str, window: MetricWindow) -> ResourceSnapshot:
        """Describe a resource and fetch its metrics.

        A resource that cannot be described degrades to a zeroed snapshot.

        Args:
            resource_id: Resource to collect
            window: Metric look-back window

        Returns:
            Snapshot of the resource
        """
        try:
            description = self.describe_resource(resource_id)
        except ResourceNotFoundError as e:
            logger.warning(f"Error describing {self.service_name} resource {resource_id}: {e}")
            return ResourceSnapshot.unavailable(resource_id, self.resource_kind)

        return self.build_snapshot(resource_id, description, window)

    def fetch_average_metric(
        self,
        resource_id: str,
        metric_name: str,
        start: datetime,
        end: datetime,
    ) -> Tuple[float, bool]:
        """Hourly-bucketed average of a metric over a window.

        Args:
            resource_id: Value of the resource's metric dimension
            metric_name: CloudWatch metric name
            start: Window start
            end: Window end

        Returns:
            Tuple of (average, ok); ok is False and average 0.0 when the
            lookup failed or returned no datapoints
        """
        with self._request_lock:
            self.metric_requests += 1

        try:
            response = self.cloudwatch.get_metric_statistics(
                Namespace=self.metric_namespace,
                MetricName=metric_name,
                Dimensions=[{'Name': self.metric_dimension, 'Value': resource_id}],
                StartTime=start,
                EndTime=end,
                Period=PERIOD_SECONDS,
                Statistics=[AVERAGE_STATISTIC],
            )
            return average_datapoints(response.get('Datapoints', []), metric_name, resource_id), True
        except NoDataError as e:
            logger.info(str(e))
            return 0.0, False
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"GetMetricStatistics for {metric_name} on {resource_id} failed: {e}")
            return 0.0, False

    def _handle_aws_error(self, error: Exception, operation: str, resource_id: str = None) -> None:
        """Handle AWS API errors and convert to ServiceError.

        Args:
            error: The original AWS error
            operation: Operation that failed
            resource_id: ID of resource being operated on (if applicable)

        Raises:
            ServiceError: Wrapped error with context
        """
        resource_context = f" for resource {resource_id}" if resource_id else ""
        error_message = f"AWS {self.service_name} {operation} failed{resource_context}: {str(error)}"
        raise ServiceError(error_message, details=str(error))
