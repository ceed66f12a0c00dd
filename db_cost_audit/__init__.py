"""
DB Cost Audit - Cost and utilization audit for managed AWS databases.

Inventories DynamoDB tables and RDS instances, averages their recent
CloudWatch metrics, estimates what they cost against what they use, and
writes a ranked cost-optimization report. Read-only: it recommends, it never
changes resources.
"""

__version__ = "1.0.0"

from db_cost_audit.core.exceptions import CostAuditError

__all__ = ["CostAuditError"]
