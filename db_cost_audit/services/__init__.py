"""AWS snapshot collection package."""

from .base import BaseCollector
from .dynamodb import DynamoDBCollector
from .rds import RDSCollector
from .orchestrator import FleetCollector

__all__ = [
    'BaseCollector',
    'DynamoDBCollector',
    'RDSCollector',
    'FleetCollector',
]
