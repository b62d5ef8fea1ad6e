"""Cooperative cancellation for long-running matching and export runs.

A token is created by the caller and passed down the call chain. Loops
sample it at their boundaries (per track, per batch); in-flight requests
are never interrupted.
"""

from attrs import define, field

from spotidrome.domain.exceptions import OperationCancelledError


@define(slots=True)
class CancellationToken:
    """Flag set once by the caller and checked by the running operation."""

    _cancelled: bool = field(default=False)
    reason: str | None = None

    def cancel(self, reason: str | None = None) -> None:
        self._cancelled = True
        self.reason = reason

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self, operation: str = "operation") -> None:
        """Raise OperationCancelledError if cancellation was requested."""
        if self._cancelled:
            raise OperationCancelledError(operation)


def check_cancellation(token: CancellationToken | None, operation: str) -> None:
    """Raise if ``token`` is set. A missing token never cancels."""
    if token is not None:
        token.raise_if_cancelled(operation)
