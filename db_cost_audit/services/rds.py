"""
RDS collector for database instances.
"""
import logging
from typing import Any, Dict, List

from botocore.exceptions import BotoCoreError, ClientError

from .base import BaseCollector
from ..core.exceptions import ResourceNotFoundError
from ..engine.metrics import MetricWindow
from ..engine.models import (
    BILLING_PROVISIONED,
    BILLING_SERVERLESS,
    ResourceKind,
    ResourceSnapshot,
)
from ..engine.pricing import BYTES_PER_GB, SERVERLESS_CLASS_MARKER


logger = logging.getLogger(__name__)

CPU_METRIC = 'CPUUtilization'
FREE_STORAGE_METRIC = 'FreeStorageSpace'
CONNECTIONS_METRIC = 'DatabaseConnections'
READ_IOPS_METRIC = 'ReadIOPS'
WRITE_IOPS_METRIC = 'WriteIOPS'


class RDSCollector(BaseCollector):
    """Collector for RDS DB instances."""

    @property
    def service_name(self) -> str:
        return 'rds'

    @property
    def resource_kind(self) -> ResourceKind:
        return ResourceKind.RELATIONAL_INSTANCE

    @property
    def metric_namespace(self) -> str:
        return 'AWS/RDS'

    @property
    def metric_dimension(self) -> str:
        return 'DBInstanceIdentifier'

    def list_resource_ids(self) -> List[str]:
        """List all RDS instance identifiers in the region.

        Raises:
            ServiceError: If listing fails
        """
        try:
            instance_ids = []
            paginator = self.client.get_paginator('describe_db_instances')
            for page in paginator.paginate():
                for instance in page['DBInstances']:
                    # Skip instances that are being deleted
                    if instance.get('DBInstanceStatus') == 'deleting':
                        continue
                    instance_ids.append(instance['DBInstanceIdentifier'])
            return instance_ids
        except (ClientError, BotoCoreError) as e:
            self._handle_aws_error(e, 'instance listing')

    def describe_resource(self, resource_id: str) -> Dict[str, Any]:
        try:
            instances = self.client.describe_db_instances(DBInstanceIdentifier=resource_id)['DBInstances']
        except (ClientError, BotoCoreError) as e:
            raise ResourceNotFoundError(f"Cannot describe RDS instance {resource_id}: {e}", details=str(e))

        if not instances:
            raise ResourceNotFoundError(f"RDS instance {resource_id} not found")
        return instances[0]

    def build_snapshot(self, resource_id: str, description: Dict[str, Any], window: MetricWindow) -> ResourceSnapshot:
        """Snapshot an instance with its five window metrics.

        Failed lookups degrade to zero; metrics_available records whether
        all five returned data.
        """
        results = {
            metric: self.fetch_average_metric(resource_id, metric, window.start, window.end)
            for metric in (
                CPU_METRIC,
                FREE_STORAGE_METRIC,
                CONNECTIONS_METRIC,
                READ_IOPS_METRIC,
                WRITE_IOPS_METRIC,
            )
        }
        values = {metric: value for metric, (value, _) in results.items()}
        metrics_available = all(ok for _, ok in results.values())

        instance_class = description.get('DBInstanceClass', '')
        billing_mode = BILLING_SERVERLESS if SERVERLESS_CLASS_MARKER in instance_class else BILLING_PROVISIONED

        return ResourceSnapshot(
            resource_id=resource_id,
            kind=self.resource_kind,
            billing_mode=billing_mode,
            storage_bytes=int(description.get('AllocatedStorage', 0) * BYTES_PER_GB),
            avg_consumed_read=values[READ_IOPS_METRIC],
            avg_consumed_write=values[WRITE_IOPS_METRIC],
            cpu_utilization=values[CPU_METRIC],
            free_storage_bytes=values[FREE_STORAGE_METRIC],
            connection_count=values[CONNECTIONS_METRIC],
            metrics_available=metrics_available,
            arn=description.get('DBInstanceArn'),
            instance_class=instance_class,
            engine=description.get('Engine'),
            storage_type=description.get('StorageType'),
            allocated_storage_gb=float(description.get('AllocatedStorage', 0)),
            replica_count=len(description.get('ReadReplicaDBInstanceIdentifiers', [])),
            multi_az=bool(description.get('MultiAZ', False)),
        )
