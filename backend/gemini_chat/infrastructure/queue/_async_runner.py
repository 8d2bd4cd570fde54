import asyncio
from typing import Any

_TASK_LOOP: asyncio.AbstractEventLoop | None = None


def run_async(coro: Any) -> Any:
    """Run coroutine on a persistent per-process event loop.

    RQ workers execute many jobs in one process. The async engine's pooled
    connections are bound to the loop that opened them, so every job must run
    on the same loop instead of a fresh one from asyncio.run().
    """
    global _TASK_LOOP
    if _TASK_LOOP is None or _TASK_LOOP.is_closed():
        _TASK_LOOP = asyncio.new_event_loop()
        asyncio.set_event_loop(_TASK_LOOP)
    return _TASK_LOOP.run_until_complete(coro)


def close_loop() -> None:
    global _TASK_LOOP
    if _TASK_LOOP is not None and not _TASK_LOOP.is_closed():
        _TASK_LOOP.close()
    _TASK_LOOP = None
