"""Watcher services."""

from .poll_watcher import PollWatcher
from .push_watcher import PushWatcher
from .user_action import StatusBackend, confirm_pending_action

__all__ = [
    "PollWatcher",
    "PushWatcher",
    "StatusBackend",
    "confirm_pending_action",
]
