"""Tests for concurrent fleet collection."""

import threading
import time
from unittest.mock import Mock

import boto3
import pytest

from db_cost_audit.core.exceptions import ServiceError
from db_cost_audit.engine.metrics import MetricWindow
from db_cost_audit.engine.models import ResourceKind, ResourceSnapshot
from db_cost_audit.services.dynamodb import DynamoDBCollector
from db_cost_audit.services.orchestrator import FleetCollector
from db_cost_audit.services.rds import RDSCollector


REGION = 'us-east-1'
WINDOW = MetricWindow.last(14)


def stub_collector(kind, resource_ids, delays=None, failing=()):
    """Collector stand-in whose snapshots complete after per-resource delays."""
    collector = Mock()
    collector.resource_kind = kind
    collector.metric_requests = 0
    collector.list_resource_ids.return_value = list(resource_ids)
    delays = delays or {}

    def collect_snapshot(resource_id, window):
        time.sleep(delays.get(resource_id, 0))
        if resource_id in failing:
            raise RuntimeError(f"boom: {resource_id}")
        return ResourceSnapshot(resource_id=resource_id, kind=kind, metrics_available=True)

    collector.collect_snapshot.side_effect = collect_snapshot
    return collector


@pytest.fixture
def fleet_collector():
    return FleetCollector(Mock(), REGION, max_workers=4)


class TestFleetCollector:
    """Tests for FleetCollector."""

    def test_get_collector_caches_instances(self, fleet_collector):
        first = fleet_collector.get_collector('dynamodb')

        assert isinstance(first, DynamoDBCollector)
        assert fleet_collector.get_collector('dynamodb') is first
        assert isinstance(fleet_collector.get_collector('rds'), RDSCollector)

    def test_unsupported_service(self, fleet_collector):
        with pytest.raises(ServiceError):
            fleet_collector.get_collector('ec2')

    def test_results_in_discovery_order(self, fleet_collector):
        """Later resources finishing first does not reorder the output."""
        fleet_collector._collector_cache['dynamodb'] = stub_collector(
            ResourceKind.KEY_VALUE_TABLE, ['t1', 't2', 't3'], delays={'t1': 0.2, 't2': 0.1}
        )
        fleet_collector._collector_cache['rds'] = stub_collector(
            ResourceKind.RELATIONAL_INSTANCE, ['db1'], delays={'db1': 0.05}
        )

        snapshots = fleet_collector.collect(['dynamodb', 'rds'], WINDOW)

        assert [s.resource_id for s in snapshots] == ['t1', 't2', 't3', 'db1']

    def test_failed_task_is_isolated(self, fleet_collector):
        fleet_collector._collector_cache['dynamodb'] = stub_collector(
            ResourceKind.KEY_VALUE_TABLE, ['ok-1', 'broken', 'ok-2'], failing={'broken'}
        )

        snapshots = fleet_collector.collect(['dynamodb'], WINDOW)

        assert [s.resource_id for s in snapshots] == ['ok-1', 'broken', 'ok-2']
        assert snapshots[0].metrics_available is True
        assert snapshots[1].description_available is False
        assert snapshots[1].kind == ResourceKind.KEY_VALUE_TABLE
        assert snapshots[2].metrics_available is True

    def test_concurrency_is_bounded(self):
        fleet_collector = FleetCollector(Mock(), REGION, max_workers=2)
        active = 0
        peak = 0
        lock = threading.Lock()

        def collect_snapshot(resource_id, window):
            nonlocal active, peak
            with lock:
                active += 1
                peak = max(peak, active)
            time.sleep(0.02)
            with lock:
                active -= 1
            return ResourceSnapshot(resource_id=resource_id, kind=ResourceKind.KEY_VALUE_TABLE)

        collector = stub_collector(ResourceKind.KEY_VALUE_TABLE, [f't{i}' for i in range(8)])
        collector.collect_snapshot.side_effect = collect_snapshot
        fleet_collector._collector_cache['dynamodb'] = collector

        assert len(fleet_collector.collect(['dynamodb'], WINDOW)) == 8
        assert peak <= 2

    def test_partial_discovery_failure_continues(self, fleet_collector):
        fleet_collector._collector_cache['dynamodb'] = stub_collector(ResourceKind.KEY_VALUE_TABLE, ['t1'])
        broken = stub_collector(ResourceKind.RELATIONAL_INSTANCE, [])
        broken.list_resource_ids.side_effect = ServiceError("AWS rds instance listing failed")
        fleet_collector._collector_cache['rds'] = broken

        snapshots = fleet_collector.collect(['dynamodb', 'rds'], WINDOW)

        assert [s.resource_id for s in snapshots] == ['t1']

    def test_total_discovery_failure_raises(self, fleet_collector):
        broken = stub_collector(ResourceKind.KEY_VALUE_TABLE, [])
        broken.list_resource_ids.side_effect = ServiceError("AWS dynamodb table listing failed")
        fleet_collector._collector_cache['dynamodb'] = broken

        with pytest.raises(ServiceError):
            fleet_collector.collect(['dynamodb'], WINDOW)

    def test_empty_fleet(self, fleet_collector):
        fleet_collector._collector_cache['dynamodb'] = stub_collector(ResourceKind.KEY_VALUE_TABLE, [])
        assert fleet_collector.collect(['dynamodb'], WINDOW) == []

    def test_metric_requests_summed(self, fleet_collector):
        fleet_collector._collector_cache['dynamodb'] = stub_collector(ResourceKind.KEY_VALUE_TABLE, [])
        fleet_collector._collector_cache['rds'] = stub_collector(ResourceKind.RELATIONAL_INSTANCE, [])
        fleet_collector._collector_cache['dynamodb'].metric_requests = 4
        fleet_collector._collector_cache['rds'].metric_requests = 10

        assert fleet_collector.metric_requests == 14


class TestFleetCollectorWithMoto:
    """End-to-end collection against moto."""

    def test_tables_without_metrics(self, mock_aws_services):
        client = boto3.client('dynamodb', region_name=REGION)
        for name in ('orders', 'sessions'):
            client.create_table(
                TableName=name,
                KeySchema=[{'AttributeName': 'pk', 'KeyType': 'HASH'}],
                AttributeDefinitions=[{'AttributeName': 'pk', 'AttributeType': 'S'}],
                ProvisionedThroughput={'ReadCapacityUnits': 5, 'WriteCapacityUnits': 5},
            )

        fleet_collector = FleetCollector(boto3.Session(), REGION, max_workers=2)
        snapshots = fleet_collector.collect(['dynamodb'], WINDOW)

        assert sorted(s.resource_id for s in snapshots) == ['orders', 'sessions']
        for snapshot in snapshots:
            assert snapshot.read_capacity_units == 5
            assert snapshot.avg_consumed_read == 0.0
            assert snapshot.metrics_available is False
        assert fleet_collector.metric_requests == 4
