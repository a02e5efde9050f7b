"""
Explicit marker for calls whose failure must not fail the caller.

Usage counter increments and progress-listener callbacks must never fail a
render, and neither may the rollback write after a render already failed.
Those calls go through here so the intent is visible at the call site and
every failure is logged.
"""

import inspect
from typing import Any, Callable, Optional

from slidereel.infra.config.logging_config import get_logger

log = get_logger("best_effort")


async def best_effort(action: str, fn: Callable[..., Any], *args, **kwargs) -> Optional[Any]:
    """Call ``fn`` (sync or async); log and return None if it raises."""
    try:
        result = fn(*args, **kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result
    except Exception as exc:
        log.warning(
            "best_effort.failed",
            action=action,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return None
