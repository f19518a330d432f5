"""
Bridge from sync service code to the event loop that owns the WebSocket
connections.

Services run in FastAPI worker threads (sync endpoints), in the CLI and in
tests. A push only reaches a client when it runs on the loop the client's
socket was accepted on.
"""

from __future__ import annotations

import asyncio
from typing import Coroutine, TypeVar

import anyio

T = TypeVar("T")


def _on_event_loop_thread() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


def run_async(coro: Coroutine[object, object, T], *, timeout: float | None = None) -> T:
    """
    Await ``coro`` from sync code and return its result.

    - From an AnyIO worker thread (sync endpoints) it runs on the application
      loop through ``anyio.from_thread.run``.
    - With no loop at all (CLI, cron, plain tests) a private loop is started
      with ``anyio.run``; no socket lives there, so pushes reach nobody.
    - On the loop's own thread it cannot block: the coroutine is closed and
      RuntimeError is raised. Async callers must ``await`` instead.

    Raises:
        TimeoutError: ``timeout`` seconds elapsed
    """
    if _on_event_loop_thread():
        coro.close()
        raise RuntimeError("run_async called from async context; use await instead")

    started = False

    async def _runner() -> T:
        nonlocal started
        started = True
        with anyio.fail_after(timeout):
            return await coro

    try:
        return anyio.from_thread.run(_runner)
    except RuntimeError:
        # Raised by the coroutine itself, not by a missing worker-thread portal
        if started:
            raise
    return anyio.run(_runner)
