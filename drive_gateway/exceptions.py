# exceptions.py
from typing import Optional


class GatewayError(Exception):
    """Base class for every error raised by a storage gateway operation."""
    pass


class ValidationError(GatewayError):
    """Caller input violates a precondition. Raised before any provider call."""
    pass


class ProviderError(GatewayError):
    """
    The remote provider call failed (network, auth, quota, not found, bad request).
    The message is operation-scoped; the provider's own error is chained as __cause__.
    """

    def __init__(
        self, message: str, status: Optional[int] = None, not_found: bool = False
    ):
        super().__init__(message)
        self.status = status
        self.not_found = not_found
