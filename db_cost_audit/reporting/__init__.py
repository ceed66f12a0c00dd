"""Report schema and emission."""

from .schema import REPORT_COLUMNS, FIELD_NAMES
from .writer import ReportWriter

__all__ = ['REPORT_COLUMNS', 'FIELD_NAMES', 'ReportWriter']
