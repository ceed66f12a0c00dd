"""
Core exception classes for the database cost audit.
"""


class CostAuditError(Exception):
    """Base exception for all cost audit errors."""

    def __init__(self, message: str, details: str = None):
        super().__init__(message)
        self.message = message
        self.details = details


class AuthenticationError(CostAuditError):
    """Raised when AWS authentication fails."""
    pass


class ConfigurationError(CostAuditError):
    """Raised when configuration is invalid or missing."""
    pass


class ServiceError(CostAuditError):
    """Raised when AWS service operations fail."""
    pass


class DataUnavailableError(CostAuditError):
    """Raised when a metric or resource description cannot be fetched."""
    pass


class NoDataError(DataUnavailableError):
    """Raised when a metric window contains no datapoints."""

    def __init__(self, metric_name: str, resource_id: str = None):
        context = f" for {resource_id}" if resource_id else ""
        super().__init__(f"No datapoints for {metric_name}{context}")
        self.metric_name = metric_name
        self.resource_id = resource_id


class ResourceNotFoundError(DataUnavailableError):
    """Raised when a resource description cannot be retrieved."""
    pass


class MalformedInputError(CostAuditError):
    """Raised when a persisted snapshot collection cannot be parsed."""
    pass


class OutputWriteError(CostAuditError):
    """Raised when a report file cannot be written."""
    pass


class ValidationError(CostAuditError):
    """Raised when input validation fails."""
    pass
