"""
Error taxonomy for Users Service.

Store failures propagate to the caller. Cache failures are raised by the
cache client and absorbed by the coordinator.
"""

from typing import Any, Dict, Optional

from shared.errors import AccessLayerException, NotFoundError


class UserNotFoundError(NotFoundError):
    """No user row exists for the requested id."""

    def __init__(self, user_id: int):
        super().__init__("User not found", {"user_id": user_id}, code="USER_NOT_FOUND")
        self.user_id = user_id


class StoreError(AccessLayerException):
    """Durable store I/O failure.

    The client-facing message is fixed; the driver error is kept in
    ``reason`` and on ``__cause__`` for logs.
    """

    status_code = 500

    def __init__(self, operation: str, reason: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("STORE_ERROR", "Internal Server Error", details)
        self.operation = operation
        self.reason = reason

    def __str__(self) -> str:
        return f"store {self.operation} failed: {self.reason}"


class CacheUnavailableError(AccessLayerException):
    """Cache store I/O failure or timeout."""

    status_code = 503

    def __init__(self, operation: str, reason: str):
        super().__init__("CACHE_UNAVAILABLE", f"cache {operation} failed: {reason}")
        self.operation = operation
        self.reason = reason
