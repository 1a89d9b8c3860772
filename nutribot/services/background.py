import asyncio
from typing import Awaitable

from nutribot.logging_config import get_logger

logger = get_logger("background")

# Strong references so fire-and-forget tasks are not garbage collected mid-flight.
_background_tasks: set[asyncio.Task] = set()


def _on_done(task: asyncio.Task) -> None:
    _background_tasks.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning(
            "Background task failed",
            extra={"context": {"task": task.get_name(), "error": str(exc)}},
        )


def spawn(coro: Awaitable, *, name: str) -> asyncio.Task:
    """Run a best-effort coroutine without awaiting it; failures are logged and dropped."""
    task = asyncio.ensure_future(coro)
    task.set_name(name)
    _background_tasks.add(task)
    task.add_done_callback(_on_done)
    return task


def pending_count() -> int:
    return len(_background_tasks)
