"""
Pytest configuration and shared fixtures for the cost audit tests.
"""

import os

import pytest
from hypothesis import strategies as st
from moto import mock_aws

from db_cost_audit.engine.models import (
    BILLING_PAY_PER_REQUEST,
    BILLING_PROVISIONED,
    ResourceKind,
    ResourceSnapshot,
)
from db_cost_audit.engine.pricing import BYTES_PER_GB


# Fake credentials so no test can reach a real account
for _name in ("AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY", "AWS_SECURITY_TOKEN", "AWS_SESSION_TOKEN"):
    os.environ[_name] = "testing"
os.environ["AWS_DEFAULT_REGION"] = "us-east-1"


@pytest.fixture
def mock_aws_services():
    """Mock all AWS services used by the application."""
    with mock_aws():
        yield


def make_table(resource_id="orders", **overrides) -> ResourceSnapshot:
    """Provisioned table snapshot with sensible defaults."""
    fields = dict(
        resource_id=resource_id,
        kind=ResourceKind.KEY_VALUE_TABLE,
        billing_mode=BILLING_PROVISIONED,
        read_capacity_units=100,
        write_capacity_units=50,
        storage_bytes=0,
        item_count=1000,
        avg_consumed_read=10.0,
        avg_consumed_write=5.0,
        metrics_available=True,
    )
    fields.update(overrides)
    return ResourceSnapshot(**fields)


def make_instance(resource_id="orders-db", **overrides) -> ResourceSnapshot:
    """RDS instance snapshot with sensible defaults."""
    fields = dict(
        resource_id=resource_id,
        kind=ResourceKind.RELATIONAL_INSTANCE,
        billing_mode=BILLING_PROVISIONED,
        instance_class="db.t3.micro",
        engine="mysql",
        storage_type="gp2",
        allocated_storage_gb=20.0,
        storage_bytes=20 * BYTES_PER_GB,
        cpu_utilization=35.0,
        free_storage_bytes=15.0 * BYTES_PER_GB,
        connection_count=12.0,
        avg_consumed_read=4.0,
        avg_consumed_write=2.0,
        metrics_available=True,
    )
    fields.update(overrides)
    return ResourceSnapshot(**fields)


@pytest.fixture
def provisioned_table():
    return make_table()


@pytest.fixture
def on_demand_table():
    return make_table(
        "sessions",
        billing_mode=BILLING_PAY_PER_REQUEST,
        read_capacity_units=0,
        write_capacity_units=0,
    )


@pytest.fixture
def rds_instance():
    return make_instance()


@pytest.fixture
def sample_fleet(provisioned_table, on_demand_table, rds_instance):
    """Mixed fleet in discovery order."""
    return [
        make_table("idle", read_capacity_units=500, write_capacity_units=200,
                   avg_consumed_read=1.0, avg_consumed_write=1.0),
        provisioned_table,
        on_demand_table,
        make_table("busy", avg_consumed_read=90.0, avg_consumed_write=45.0),
        rds_instance,
    ]


# Hypothesis strategies shared across test modules
capacity_units = st.integers(min_value=0, max_value=40000)
consumption = st.floats(min_value=0, max_value=40000, allow_nan=False, allow_infinity=False)


@st.composite
def table_snapshots(draw, resource_id=None):
    """Generate provisioned table snapshots, zero capacities included."""
    return make_table(
        resource_id or draw(st.text(alphabet="abcdefghijklmnopqrstuvwxyz-_.0123456789", min_size=3, max_size=30)),
        read_capacity_units=draw(capacity_units),
        write_capacity_units=draw(capacity_units),
        storage_bytes=draw(st.integers(min_value=0, max_value=500 * BYTES_PER_GB)),
        avg_consumed_read=draw(consumption),
        avg_consumed_write=draw(consumption),
        metrics_available=draw(st.booleans()),
    )


@st.composite
def fleets(draw):
    """Generate fleets of uniquely named table snapshots."""
    size = draw(st.integers(min_value=0, max_value=12))
    return [draw(table_snapshots(resource_id=f"table-{i}")) for i in range(size)]
