"""Tests for the fixed-rate pricing model."""

import pytest
from hypothesis import given, strategies as st

from db_cost_audit.engine.pricing import (
    BYTES_PER_GB,
    DEFAULT_INSTANCE_HOURLY_RATE,
    CapacityRates,
    estimate_cloudwatch_monthly_cost,
    estimate_instance_monthly_cost,
    estimate_provisioned_capacity_cost,
    instance_hourly_rate,
)


class TestProvisionedCapacityCost:
    """Tests for provisioned table capacity pricing."""

    def test_default_rates_over_fourteen_days(self):
        """100 read and 50 write units for 336 hours at default rates."""
        cost = estimate_provisioned_capacity_cost(100, 50, 0, 336)
        assert cost == pytest.approx((100 * 0.00013 + 50 * 0.00065) * 336)
        assert round(cost, 2) == 15.29

    def test_storage_is_prorated_to_a_thirty_day_month(self):
        """One GB for a full 720-hour month costs the monthly rate."""
        assert estimate_provisioned_capacity_cost(0, 0, BYTES_PER_GB, 720) == pytest.approx(0.25)
        assert estimate_provisioned_capacity_cost(0, 0, BYTES_PER_GB, 360) == pytest.approx(0.125)

    def test_none_rate_uses_default(self):
        explicit = estimate_provisioned_capacity_cost(
            10, 10, BYTES_PER_GB, 24, read_rate=0.00013, write_rate=0.00065, storage_rate=0.25
        )
        defaulted = estimate_provisioned_capacity_cost(10, 10, BYTES_PER_GB, 24)
        assert explicit == pytest.approx(defaulted)

    def test_explicit_zero_rate_is_honored(self):
        """A zero rate means free, not 'use the default'."""
        cost = estimate_provisioned_capacity_cost(100, 50, 0, 10, read_rate=0.0)
        assert cost == pytest.approx(50 * 0.00065 * 10)

        free = estimate_provisioned_capacity_cost(
            100, 50, BYTES_PER_GB, 10, read_rate=0.0, write_rate=0.0, storage_rate=0.0
        )
        assert free == 0.0

    def test_rate_overrides(self):
        rates = CapacityRates.with_overrides(read_unit_hour=0.0, storage_gb_month=1.0)
        assert rates.read_unit_hour == 0.0
        assert rates.write_unit_hour == 0.00065
        assert rates.storage_gb_month == 1.0

    @given(
        read=st.integers(min_value=0, max_value=100000),
        write=st.integers(min_value=0, max_value=100000),
        hours=st.integers(min_value=0, max_value=24 * 90),
    )
    def test_cost_is_never_negative(self, read, write, hours):
        assert estimate_provisioned_capacity_cost(read, write, 0, hours) >= 0


class TestInstanceMonthlyCost:
    """Tests for relational instance pricing."""

    def test_known_class_single_az(self):
        """db.t3.micro on mysql with 20 GB of general purpose storage and one replica."""
        cost = estimate_instance_monthly_cost(
            "db.t3.micro", "mysql", "gp2", 20, 0, 0, 1, False, 5
        )
        # (0.017 * 720 * 1 + 20 * 0.25) * 1.25
        assert cost == pytest.approx((12.24 + 5.0) * 1.25)

    def test_compute_scales_with_replica_count(self):
        cost = estimate_instance_monthly_cost("db.t3.micro", "mysql", "gp2", 0, 0, 0, 1, False, 0)
        assert cost == pytest.approx(0.017 * 720 * 1 * 1.25)

    def test_no_replicas_prices_storage_only(self):
        """Compute is billed per replica; zero replicas leaves storage and overhead."""
        cost = estimate_instance_monthly_cost("db.t3.micro", "mysql", "gp2", 20, 0, 0, 0, False, 5)
        assert cost == pytest.approx(20 * 0.25 * 1.25)

    def test_aurora_storage_rate_doubled_for_multi_az(self):
        cost = estimate_instance_monthly_cost(
            "db.r6g.large", "aurora-mysql", "aurora", 100, 0, 0, 1, True, 5
        )
        assert cost == pytest.approx((0.188 * 720 + 100 * 0.10 * 2) * 1.25)

    def test_provisioned_iops_surcharge(self):
        base = estimate_instance_monthly_cost("db.t3.micro", "postgres", "gp2", 0, 100, 50, 0, False, 0)
        with_iops = estimate_instance_monthly_cost("db.t3.micro", "postgres", "io1", 0, 100, 50, 0, False, 0)
        assert with_iops - base == pytest.approx(150 * 0.10 * 1.25)

    def test_read_replicas_multiply_compute(self):
        one = estimate_instance_monthly_cost("db.r6g.xlarge", "mysql", "gp2", 0, 0, 0, 1, False, 0)
        two = estimate_instance_monthly_cost("db.r6g.xlarge", "mysql", "gp2", 0, 0, 0, 2, False, 0)
        assert one == pytest.approx(0.376 * 720 * 1.25)
        assert two == pytest.approx(one * 2)

    def test_unknown_class_uses_default_rate(self):
        assert instance_hourly_rate("db.m5.large") == DEFAULT_INSTANCE_HOURLY_RATE
        cost = estimate_instance_monthly_cost("db.m5.large", "mysql", "gp2", 0, 0, 0, 1, False, 0)
        assert cost == pytest.approx(0.10 * 720 * 1.25)

    @pytest.mark.parametrize("instance_class,rate", [
        ("db.r6g.large", 0.188),
        ("db.r6g.xlarge", 0.376),
        ("db.r6g.2xlarge", 0.752),
        ("db.r6g.4xlarge", 1.504),
        ("db.t3.micro", 0.017),
    ])
    def test_class_table_matches_exact_sizes(self, instance_class, rate):
        assert instance_hourly_rate(instance_class) == rate

    def test_serverless_minimum_capacity(self):
        """Few connections still bill the two-unit minimum, without overhead."""
        cost = estimate_instance_monthly_cost("db.serverless", "aurora-postgresql", "aurora", 500, 0, 0, 3, True, 100)
        assert cost == pytest.approx(2 * 0.12 * 720)

    def test_serverless_scales_with_connections(self):
        cost = estimate_instance_monthly_cost("db.serverless", "aurora-mysql", "aurora", 0, 0, 0, 0, False, 2000)
        assert cost == pytest.approx(4 * 0.12 * 720)


class TestCloudWatchCost:
    """Tests for the CloudWatch request cost estimate."""

    def test_metrics_and_requests(self):
        assert estimate_cloudwatch_monthly_cost(10, 5000) == 3.05

    def test_requests_only_rounded_to_cents(self):
        assert estimate_cloudwatch_monthly_cost(0, 140) == 0.0
        assert estimate_cloudwatch_monthly_cost(0, 1000) == 0.01
