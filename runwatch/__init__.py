"""
runwatch: status synchronization client for automated application runs.

Observes a server-owned application run either by polling its status
endpoint or by listening on a push WebSocket, and reports transitions,
completion, human-action pauses and failures to the caller.
"""

from runwatch.application.services import PollWatcher, PushWatcher
from runwatch.boundary.api import ApplicationClient
from runwatch.models import (
    ApplicationStatus,
    ConnectionState,
    PollState,
    StatusRecord,
    WatcherCallbacks,
)

__all__ = [
    "ApplicationClient",
    "ApplicationStatus",
    "ConnectionState",
    "PollState",
    "PollWatcher",
    "PushWatcher",
    "StatusRecord",
    "WatcherCallbacks",
]
