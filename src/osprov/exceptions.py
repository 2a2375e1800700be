"""Driver exception hierarchy.

Everything the orchestration host sees from a failed create/destroy is an
``ActionFailed``; SDK and transport errors are wrapped into it with the
original exception chained as ``__cause__``.
"""

from typing import Any, Optional


class OsprovError(Exception):
    """Base exception for all driver errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error for the host's JSON response."""
        result: dict[str, Any] = {"error": self.message, "type": self.__class__.__name__}
        if self.details:
            result["details"] = self.details
        return result


class ConfigurationError(OsprovError):
    """Raised when driver configuration is missing or invalid."""


class ActionFailed(OsprovError):
    """Raised when a driver action cannot be completed."""


class ResourceNotFoundError(ActionFailed):
    """Raised when an image or flavor reference matches nothing."""


class NoFloatingIPError(ActionFailed):
    """Raised when a floating IP pool has no free address."""


class AddressNotFoundError(ActionFailed):
    """Raised when a server exposes no usable IP address."""


class SSHBootstrapError(ActionFailed):
    """Raised when SSH access cannot be bootstrapped on a server."""
