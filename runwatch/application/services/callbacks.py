"""
Caller hook invocation shared by both watchers.

Dependencies: asyncio
System role: Isolates watcher state from failures in caller callbacks
"""

import asyncio
from typing import Callable


def current_task() -> asyncio.Task | None:
    """Return the running task, or None outside a running loop."""
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


def callback_name(callback: Callable[..., None]) -> str:
    return getattr(callback, "__qualname__", None) or type(callback).__name__


def invoke_callback(callback: Callable[..., None] | None, *args) -> Exception | None:
    """
    Call a caller hook.

    Args:
        callback: Hook to call, may be None
        *args: Positional arguments for the hook

    Returns:
        Exception | None: What the hook raised, for the watcher to report
    """
    if callback is None:
        return None
    try:
        callback(*args)
    except Exception as e:
        return e
    return None
