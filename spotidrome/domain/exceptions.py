"""Domain exceptions shared by the matching, export and update flows."""


class SpotidromeError(Exception):
    """Base class for all spotidrome errors."""


class OperationCancelledError(SpotidromeError):
    """Raised when a caller cancels a running match, export or update."""

    def __init__(self, operation: str = "operation") -> None:
        self.operation = operation
        super().__init__(f"{operation} was cancelled")


class DestinationError(SpotidromeError):
    """Failure reported by (or while talking to) the destination server."""

    def __init__(self, message: str, code: int | None = None) -> None:
        self.code = code
        super().__init__(message)


class DestinationAuthError(DestinationError):
    """Credentials rejected or server unreachable at handshake. Always fatal."""


class DestinationRequestError(DestinationError):
    """A single request failed. Recoverable at batch level."""
