"""Async helpers for CLI commands to eliminate duplication."""

import asyncio
from collections.abc import Awaitable, Callable
import contextlib
from functools import wraps
import signal
from typing import Any

from spotidrome.application.utilities.cancellation import CancellationToken
from spotidrome.infrastructure.cli.ui import command_error_handler


async def _run_cancellable(
    func: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any
) -> Any:
    token = CancellationToken()
    loop = asyncio.get_running_loop()
    # First Ctrl+C requests a cooperative stop at the next track or batch
    with contextlib.suppress(NotImplementedError):
        loop.add_signal_handler(signal.SIGINT, token.cancel, "interrupted by user")
    try:
        return await func(*args, cancel_token=token, **kwargs)
    finally:
        with contextlib.suppress(NotImplementedError):
            loop.remove_signal_handler(signal.SIGINT)


def interactive_async_operation() -> Callable[
    [Callable[..., Awaitable[Any]]], Callable[..., Any]
]:
    """Decorator for async operations that report their own progress.

    The wrapped coroutine function receives a ``cancel_token`` keyword that is
    cancelled on SIGINT, and runs under ``command_error_handler``.
    """

    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Any]:
        @command_error_handler
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            return asyncio.run(_run_cancellable(func, *args, **kwargs))

        return wrapper

    return decorator
