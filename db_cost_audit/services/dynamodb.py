"""
DynamoDB collector for provisioned and on-demand tables.
"""
import logging
from typing import Any, Dict, List

from botocore.exceptions import BotoCoreError, ClientError

from .base import BaseCollector
from ..core.exceptions import ResourceNotFoundError
from ..engine.metrics import MetricWindow
from ..engine.models import BILLING_PROVISIONED, ResourceKind, ResourceSnapshot


logger = logging.getLogger(__name__)

CONSUMED_READ_METRIC = 'ConsumedReadCapacityUnits'
CONSUMED_WRITE_METRIC = 'ConsumedWriteCapacityUnits'


class DynamoDBCollector(BaseCollector):
    """Collector for DynamoDB tables."""

    @property
    def service_name(self) -> str:
        return 'dynamodb'

    @property
    def resource_kind(self) -> ResourceKind:
        return ResourceKind.KEY_VALUE_TABLE

    @property
    def metric_namespace(self) -> str:
        return 'AWS/DynamoDB'

    @property
    def metric_dimension(self) -> str:
        return 'TableName'

    def list_resource_ids(self) -> List[str]:
        """List all DynamoDB table names in the region.

        Raises:
            ServiceError: If listing fails
        """
        try:
            table_names = []
            paginator = self.client.get_paginator('list_tables')
            for page in paginator.paginate():
                table_names.extend(page.get('TableNames', []))
                logger.debug(f"Got {len(table_names)} tables so far in {self.region}")
            if not table_names:
                logger.info(f"No DynamoDB tables found in {self.region}")
            return table_names
        except (ClientError, BotoCoreError) as e:
            self._handle_aws_error(e, 'table listing')

    def describe_resource(self, resource_id: str) -> Dict[str, Any]:
        try:
            return self.client.describe_table(TableName=resource_id)['Table']
        except (ClientError, BotoCoreError) as e:
            raise ResourceNotFoundError(f"Cannot describe table {resource_id}: {e}", details=str(e))

    def build_snapshot(self, resource_id: str, description: Dict[str, Any], window: MetricWindow) -> ResourceSnapshot:
        """Snapshot a table with its consumed capacity over the window."""
        billing_mode = description.get('BillingModeSummary', {}).get('BillingMode', BILLING_PROVISIONED)

        read_capacity = write_capacity = 0
        throughput = description.get('ProvisionedThroughput')
        if billing_mode == BILLING_PROVISIONED and throughput:
            read_capacity = throughput.get('ReadCapacityUnits', 0)
            write_capacity = throughput.get('WriteCapacityUnits', 0)

        avg_read, read_ok = self.fetch_average_metric(
            resource_id, CONSUMED_READ_METRIC, window.start, window.end
        )
        avg_write, write_ok = self.fetch_average_metric(
            resource_id, CONSUMED_WRITE_METRIC, window.start, window.end
        )

        return ResourceSnapshot(
            resource_id=resource_id,
            kind=self.resource_kind,
            billing_mode=billing_mode,
            read_capacity_units=read_capacity,
            write_capacity_units=write_capacity,
            storage_bytes=description.get('TableSizeBytes', 0),
            item_count=description.get('ItemCount', 0),
            avg_consumed_read=avg_read,
            avg_consumed_write=avg_write,
            metrics_available=read_ok and write_ok,
            arn=description.get('TableArn'),
        )
