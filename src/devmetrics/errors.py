"""Custom exception types for the development metrics analyzer."""


class DevMetricsError(Exception):
    """Base exception for all recoverable analyzer errors."""


class ConfigurationError(DevMetricsError):
    """Raised when runtime configuration values are missing or invalid."""


class AuthenticationError(DevMetricsError):
    """Raised when API credentials are unavailable or rejected by a remote source."""


class ApiError(DevMetricsError):
    """Raised when an API request fails or returns an unexpected response."""


class StatsNotReadyError(ApiError):
    """Raised when a remote source is still computing a lazily-built aggregate."""
