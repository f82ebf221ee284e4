"""
Process-wide authentication broadcast.

Lets independent components (HTTP clients, push watchers, UI glue) learn about
sign-in, sign-out and token refresh without holding references to each other.

Dependencies: logging (stdlib)
System role: Publish/subscribe facility for authentication state
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

logger = logging.getLogger(__name__)


class AuthEventType(str, enum.Enum):
    """Authentication events carried by the broadcast."""

    SIGN_IN = "SIGN_IN"
    SIGN_OUT = "SIGN_OUT"
    SIGN_UP = "SIGN_UP"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"


@dataclass(frozen=True)
class AuthEvent:
    """Broadcast message; `user` accompanies sign-in/up, `token` a refresh."""

    type: AuthEventType
    user: dict[str, Any] | None = field(default=None)
    token: str | None = None


AuthListener = Callable[[AuthEvent], None]


class AuthBroadcast:
    """
    Publish/subscribe channel for authentication events.

    Publishing is a no-op until initialize() has been called and after close().
    Listener failures are logged and do not stop delivery to other listeners.
    """

    def __init__(self) -> None:
        self._listeners: list[AuthListener] = []
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        """Open the channel. Safe to call repeatedly."""
        if self._initialized:
            return
        self._initialized = True
        logger.debug("Auth broadcast initialized")

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        """
        Register a listener.

        Args:
            listener: Callable receiving every published AuthEvent

        Returns:
            Callable[[], None]: Unsubscribe function (idempotent)
        """
        if listener not in self._listeners:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, event: AuthEvent) -> None:
        """Deliver an event to every current listener."""
        if not self._initialized:
            return
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(
                    "Auth broadcast listener failed",
                    extra={"event_type": event.type.value},
                )

    def broadcast_sign_in(self, user: dict[str, Any]) -> None:
        self.publish(AuthEvent(type=AuthEventType.SIGN_IN, user=user))

    def broadcast_sign_up(self, user: dict[str, Any]) -> None:
        self.publish(AuthEvent(type=AuthEventType.SIGN_UP, user=user))

    def broadcast_sign_out(self) -> None:
        self.publish(AuthEvent(type=AuthEventType.SIGN_OUT))

    def broadcast_token_refresh(self, token: str) -> None:
        self.publish(AuthEvent(type=AuthEventType.TOKEN_REFRESHED, token=token))

    def close(self) -> None:
        """Close the channel and drop all listeners."""
        self._initialized = False
        self._listeners.clear()


# Process-wide instance
auth_broadcast = AuthBroadcast()
