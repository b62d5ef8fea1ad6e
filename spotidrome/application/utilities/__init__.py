"""Shared utilities for application use cases."""

from .batching import DEFAULT_BATCH_SIZE, batch_count, chunked
from .cancellation import CancellationToken, check_cancellation
from .progress import (
    ProgressCallback,
    ProgressEvent,
    RunPhase,
    RunProgress,
    emit_progress,
)
from .results import ResultFactory, RunTally

__all__ = [
    "DEFAULT_BATCH_SIZE",
    "CancellationToken",
    "ProgressCallback",
    "ProgressEvent",
    "ResultFactory",
    "RunPhase",
    "RunProgress",
    "RunTally",
    "batch_count",
    "check_cancellation",
    "chunked",
    "emit_progress",
]
