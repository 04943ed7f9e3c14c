"""
Exceptions raised while planning and running a bulk delete.
"""


class BulkDeleteError(Exception):
    """Base class for bulk delete failures."""


class ConfigurationError(BulkDeleteError, ValueError):
    """Raised when the run configuration is invalid."""


class InvalidTagError(ConfigurationError):
    """Raised when a raw tag string is not in 'key=value' format."""

    def __init__(self, tag: str):
        super().__init__(f"invalid tag: {tag}")
        self.tag = tag


class GatewayError(BulkDeleteError):
    """Raised when the AWS session or client cannot be created."""


class RunCancelled(BulkDeleteError):
    """Raised when the caller cancels a run before a gateway call."""


class ApplyCancelled(BulkDeleteError):
    """Raised when the user does not approve the deletion plan."""
