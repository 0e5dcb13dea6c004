"""Domain error codes for the ticket lifecycle and record management.

Only genuine failures live here. Expected outcomes such as an already used
ticket or a refund on a used ticket are reported through result values by
ticket_service, never raised.
"""

from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    STORAGE_ERROR = "STORAGE_ERROR"
    STORAGE_TIMEOUT = "STORAGE_TIMEOUT"


class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode = ErrorCode.STORAGE_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class InvalidArgumentError(DomainError):
    """Raised for missing or malformed ids and counts."""

    code = ErrorCode.INVALID_ARGUMENT


class NotFoundError(DomainError):
    """Raised when an event or booking does not exist."""

    code = ErrorCode.NOT_FOUND

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity.capitalize()} not found")
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(DomainError):
    """Raised when a concurrent write changed the row between read and write."""

    code = ErrorCode.CONFLICT

    def __init__(self, message: str = "Record was modified concurrently, retry") -> None:
        super().__init__(message)


class CapacityExceededError(DomainError):
    """Raised when a booking would push an event past its capacity."""

    code = ErrorCode.CAPACITY_EXCEEDED

    def __init__(self, event_id: str, requested: int) -> None:
        super().__init__("Not enough places left for this event")
        self.event_id = event_id
        self.requested = requested


class StorageError(DomainError):
    """Raised when the database rejects or fails a round-trip."""

    code = ErrorCode.STORAGE_ERROR

    def __init__(self, message: str = "Storage unavailable") -> None:
        super().__init__(message)


class StorageTimeoutError(StorageError):
    """Raised when a database round-trip exceeds STORE_TIMEOUT_SECONDS."""

    code = ErrorCode.STORAGE_TIMEOUT

    def __init__(self, message: str = "Storage timed out") -> None:
        super().__init__(message)
