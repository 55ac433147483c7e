"""
Localizer Exceptions

Error taxonomy shared by discovery, the cluster backend and the expose executor.
"""


class LocalizerError(Exception):
    """Base exception for localizer errors."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class BackendError(LocalizerError):
    """Raised when the cluster backend fails to answer a list request."""


class ResourceExpiredError(BackendError):
    """Raised when a continuation token no longer maps to a valid scan position."""


class DiscoveryError(LocalizerError):
    """Raised when a discovery scan is aborted by a backend failure."""


class ExposeError(LocalizerError):
    """Base exception for expose and stop operations."""


class ServiceNotFoundError(ExposeError):
    """Raised when the requested service is not present in the cluster."""

    def __init__(self, namespace: str, service: str):
        super().__init__(f"service {namespace}/{service} was not found")
        self.namespace = namespace
        self.service = service


class PortMapError(ExposeError):
    """Raised when a port map entry cannot be parsed or does not match the service."""
