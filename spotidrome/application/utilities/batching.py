"""Batch helpers shared by the export and update use cases."""

from collections.abc import Iterator, Sequence
from typing import TypeVar

T = TypeVar("T")

DEFAULT_BATCH_SIZE = 50


def chunked(items: Sequence[T], batch_size: int = DEFAULT_BATCH_SIZE) -> Iterator[list[T]]:
    """Yield consecutive slices of at most ``batch_size`` items.

    Raises:
        ValueError: If batch_size is not positive
    """
    if batch_size <= 0:
        raise ValueError(f"Batch size must be positive, got {batch_size}")
    for start in range(0, len(items), batch_size):
        yield list(items[start : start + batch_size])


def batch_count(total: int, batch_size: int = DEFAULT_BATCH_SIZE) -> int:
    return -(-total // batch_size) if total else 0
