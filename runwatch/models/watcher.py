"""
Watcher state and callback schemas.

Dependencies: dataclasses
System role: Observable state shared by both watcher strategies
"""

import enum
from dataclasses import dataclass
from typing import Callable

from runwatch.models.application_run import StatusRecord


class PollState(str, enum.Enum):
    """
    Poll watcher session states.

    IDLE: Observing, no request in flight (next fetch may be scheduled)
    FETCHING: A status request is in flight
    WAITING_FOR_USER: Paused until resume() confirms the human action
    STOPPED: Not observing (never started, stopped, terminal, failed or timed out)
    """

    IDLE = "idle"
    FETCHING = "fetching"
    WAITING_FOR_USER = "waiting_for_user"
    STOPPED = "stopped"


class ConnectionState(str, enum.Enum):
    """Push socket lifecycle; errors are tracked separately."""

    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


@dataclass
class WatcherCallbacks:
    """
    Caller hooks invoked on the event loop.

    Attributes:
        on_status_update: Called with each record whose status differs from the previous one
        on_error: Called with every surfaced RunWatchException
        on_complete: Called once when a terminal status is observed
        on_connect: Push only, called when the socket opens
        on_disconnect: Push only, called when the socket closes
    """

    on_status_update: Callable[[StatusRecord], None] | None = None
    on_error: Callable[[Exception], None] | None = None
    on_complete: Callable[[StatusRecord], None] | None = None
    on_connect: Callable[[], None] | None = None
    on_disconnect: Callable[[], None] | None = None
