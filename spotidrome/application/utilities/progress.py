"""
Run progress reporting for matching, export and update operations.

Each run owns a single RunProgress accumulator and reports through a
caller-supplied callback. Callbacks may be plain functions or coroutine
functions; both are supported.

Clean Architecture compliant - no external dependencies.
"""

from collections.abc import Awaitable, Callable
from enum import Enum
import inspect

from attrs import define, field


class RunPhase(str, Enum):
    """Tagged phases of a run."""

    PREPARING = "preparing"
    MATCHING = "matching"
    EXPORTING = "exporting"
    COMPLETED = "completed"
    FAILED = "failed"


@define(frozen=True, slots=True)
class ProgressEvent:
    """Immutable progress snapshot handed to callbacks."""

    phase: RunPhase
    current: int = 0
    total: int = 0
    current_track: str | None = None
    message: str | None = None

    @property
    def percent(self) -> float:
        """Calculate progress percentage (0-100)."""
        if self.total <= 0:
            return 100.0 if self.phase is RunPhase.COMPLETED else 0.0
        return min(100.0, round(self.current / self.total * 100, 1))


ProgressCallback = Callable[[ProgressEvent], Awaitable[None] | None]


async def emit_progress(
    callback: ProgressCallback | None, event: ProgressEvent
) -> None:
    """Deliver an event to an optional sync or async callback."""
    if callback is None:
        return
    outcome = callback(event)
    if inspect.isawaitable(outcome):
        await outcome


@define(slots=True)
class RunProgress:
    """Mutable progress accumulator owned by one run.

    Every phase change and counter update goes through this object so the
    emitted events stay consistent with each other.
    """

    total: int
    callback: ProgressCallback | None = None
    phase: RunPhase = RunPhase.PREPARING
    current: int = 0
    history: list[ProgressEvent] = field(factory=list)

    async def enter(self, phase: RunPhase, message: str | None = None) -> None:
        self.phase = phase
        await self._emit(message=message)

    async def advance(
        self,
        step: int = 1,
        current_track: str | None = None,
        message: str | None = None,
    ) -> None:
        self.current = min(self.total, self.current + step)
        await self._emit(current_track=current_track, message=message)

    async def complete(self, message: str | None = None) -> None:
        self.phase = RunPhase.COMPLETED
        self.current = self.total
        await self._emit(message=message)

    async def fail(self, message: str | None = None) -> None:
        self.phase = RunPhase.FAILED
        await self._emit(message=message)

    @property
    def last_event(self) -> ProgressEvent | None:
        return self.history[-1] if self.history else None

    async def _emit(
        self, current_track: str | None = None, message: str | None = None
    ) -> None:
        event = ProgressEvent(
            phase=self.phase,
            current=self.current,
            total=self.total,
            current_track=current_track,
            message=message,
        )
        self.history.append(event)
        await emit_progress(self.callback, event)
