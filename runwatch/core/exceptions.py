"""
Exception hierarchy for runwatch.

Provides layered exception structure for status synchronization errors.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized error taxonomy surfaced to watcher callers
"""

from typing import Any


class RunWatchException(Exception):
    """Base exception for all runwatch errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class TransportError(RunWatchException):
    """Raised when a request fails or the push connection is lost."""

    def __init__(
        self,
        message: str,
        run_id: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize transport error.

        Args:
            message: Error message
            run_id: Run the request or connection belonged to
            status_code: HTTP status code, when the server answered
            details: Additional context
        """
        details = details or {}
        if run_id:
            details["run_id"] = run_id
        if status_code is not None:
            details["status_code"] = status_code
        self.status_code = status_code
        super().__init__(message, details)


class ConnectionLostError(TransportError):
    """Raised when the push connection closes abnormally."""

    def __init__(
        self,
        close_code: int,
        reason: str | None = None,
        run_id: str | None = None,
    ) -> None:
        """
        Initialize connection lost error.

        Args:
            close_code: WebSocket close code (1006 for abnormal closure)
            reason: Close reason sent by the server, if any
            run_id: Run the connection belonged to
        """
        self.close_code = close_code
        message = reason or f"Connection closed with code {close_code}"
        if close_code == 1006:
            message = "Connection closed abnormally. Network or server issue."
        super().__init__(message, run_id=run_id, details={"close_code": close_code})


class ReconnectExhaustedError(TransportError):
    """Raised when the reconnect budget is spent."""

    def __init__(self, attempts: int, run_id: str | None = None) -> None:
        self.attempts = attempts
        super().__init__(
            "Failed to reconnect after multiple attempts",
            run_id=run_id,
            details={"attempts": attempts},
        )


class ProtocolError(RunWatchException):
    """Raised when a response body or pushed frame is malformed."""

    def __init__(
        self,
        message: str,
        run_id: str | None = None,
        payload_preview: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize protocol error.

        Args:
            message: Error message
            run_id: Run the payload belonged to
            payload_preview: Leading characters of the offending payload
            details: Additional context
        """
        details = details or {}
        if run_id:
            details["run_id"] = run_id
        if payload_preview is not None:
            details["payload_preview"] = payload_preview[:100]
        super().__init__(message, details)


class AuthorizationError(RunWatchException):
    """Raised when the backend rejects the credential. Never auto-recovered."""

    def __init__(
        self,
        message: str = "Authentication failed. Token may have expired.",
        run_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if run_id:
            details["run_id"] = run_id
        super().__init__(message, details)


class WatchTimeoutError(RunWatchException):
    """Raised when a run does not settle within the observation budget."""

    def __init__(self, run_id: str, timeout_seconds: float) -> None:
        """
        Initialize timeout error.

        Args:
            run_id: Run being observed
            timeout_seconds: Budget that elapsed
        """
        self.timeout_seconds = timeout_seconds
        super().__init__(
            "Application timeout: The application process took too long",
            {"run_id": run_id, "timeout_seconds": timeout_seconds},
        )


class CallbackError(RunWatchException):
    """Raised when a caller-supplied watcher callback fails."""

    def __init__(self, run_id: str | None, callback: str, cause: Exception) -> None:
        """
        Initialize callback error.

        Args:
            run_id: Run being observed
            callback: Name of the hook that raised
            cause: Exception raised by the hook
        """
        details: dict[str, Any] = {"callback": callback, "cause": type(cause).__name__}
        if run_id:
            details["run_id"] = run_id
        super().__init__(f"Status callback failed: {cause}", details)


class ConfirmationError(RunWatchException):
    """Raised when confirming a completed user action fails."""

    def __init__(
        self,
        run_id: str,
        action_type: str,
        cause: Exception | None = None,
    ) -> None:
        """
        Initialize confirmation error.

        Args:
            run_id: Run waiting for the action
            action_type: Action descriptor that was being confirmed
            cause: Underlying failure
        """
        details: dict[str, Any] = {"run_id": run_id, "action_type": action_type}
        if cause is not None:
            details["cause"] = type(cause).__name__
        message = "Failed to resume application"
        if cause is not None and str(cause):
            message = f"{message}: {getattr(cause, 'message', str(cause))}"
        super().__init__(message, details)
