"""
Drive awaitables returned by user callbacks from synchronous SDK code.

Handlers, plugin hooks and wallet adapters may be ``async``. When no event
loop is running in this thread the awaitable runs on a fresh loop. Inside a
running loop (an async web server, async shutdown code) ``asyncio.run`` is
not allowed, so the awaitable runs on a fresh loop in a worker thread and
the caller blocks until it finishes.
"""
import asyncio
import inspect
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Awaitable


async def _await(awaitable: Awaitable[Any]) -> Any:
    return await awaitable


def resolve_awaitable(result: Any) -> Any:
    """Return ``result``, or what it resolves to if it is awaitable."""
    if not inspect.isawaitable(result):
        return result

    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(_await(result))

    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="tetto-await") as pool:
        return pool.submit(asyncio.run, _await(result)).result()
