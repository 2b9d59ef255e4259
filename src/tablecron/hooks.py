"""Lifecycle hooks invoked by the scheduler."""

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger("tablecron.hooks")


def identity(job: Any) -> Any:
    """Default ``on_new_job`` handler."""
    return job


def log_error(err: BaseException) -> None:
    """Default ``on_error`` handler."""
    logger.error(f"Scheduler error: {err}", exc_info=err)


async def call_hook(hook: Callable | None, *args) -> Any:
    """Call a sync or async hook and await its result if needed."""
    if hook is None:
        return None

    result = hook(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


@dataclass
class SchedulerHooks:
    """User callbacks driven by the tick loop.

    Every hook may be a plain function or return an awaitable.

    Args:
        on_new_job: Called with the pre-lock snapshot of each claimed job
        on_start: Called once when the scheduler starts
        on_stop: Called once the scheduler has stopped and drained
        on_idle: Called when the loop finds no due job after having had one
        on_error: Called with any exception raised while claiming,
            processing or rescheduling a job
    """
    on_new_job: Callable[[Any], Any] = identity
    on_start: Callable[[], Any] | None = None
    on_stop: Callable[[], Any] | None = None
    on_idle: Callable[[], Any] | None = None
    on_error: Callable[[BaseException], Any] = log_error
