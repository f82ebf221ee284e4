"""Domain models for application runs and watcher state."""

from .application_run import (
    ApplicationEvent,
    ApplicationLogEntry,
    ApplicationStatus,
    ApplicationStep,
    StartApplicationRequest,
    StartApplicationResponse,
    StatusRecord,
    UserActionRequest,
)
from .watcher import ConnectionState, PollState, WatcherCallbacks

__all__ = [
    "ApplicationEvent",
    "ApplicationLogEntry",
    "ApplicationStatus",
    "ApplicationStep",
    "ConnectionState",
    "PollState",
    "StartApplicationRequest",
    "StartApplicationResponse",
    "StatusRecord",
    "UserActionRequest",
    "WatcherCallbacks",
]
