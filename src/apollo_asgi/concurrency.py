"""Calling user hooks that may be sync or async."""

from __future__ import annotations

import functools
import inspect
from collections.abc import Callable
from typing import Any

import anyio


async def call_maybe_async(func: Callable[..., Any], *args: Any) -> Any:
    """Call ``func`` and return its result, awaiting it if needed.

    Coroutine functions are awaited directly. Plain callables run in a
    worker thread so a blocking probe or resolver does not stall the
    event loop; if they hand back an awaitable, it is awaited too.
    """
    if inspect.iscoroutinefunction(func):
        return await func(*args)
    result = await anyio.to_thread.run_sync(functools.partial(func, *args))
    if inspect.isawaitable(result):
        result = await result
    return result
