"""
Test suite for the runwatch exception hierarchy.

System role: Verification of error messages and context
"""

from runwatch.core.exceptions import (
    AuthorizationError,
    CallbackError,
    ConfirmationError,
    ConnectionLostError,
    ReconnectExhaustedError,
    RunWatchException,
    TransportError,
    WatchTimeoutError,
)


class TestExceptions:
    """Test suite for exception messages and details."""

    def test_str_includes_details(self) -> None:
        """Test details are rendered after the message."""
        error = RunWatchException("Something failed", {"run_id": "abc-1"})
        assert str(error) == "Something failed | Details: {'run_id': 'abc-1'}"
        assert str(RunWatchException("Plain")) == "Plain"

    def test_transport_error_context(self) -> None:
        """Test run id and status code are recorded."""
        error = TransportError("Request failed", run_id="abc-1", status_code=503)
        assert error.status_code == 503
        assert error.details == {"run_id": "abc-1", "status_code": 503}

    def test_connection_lost_abnormal_message(self) -> None:
        """Test close code 1006 gets the network/server message."""
        error = ConnectionLostError(1006, run_id="abc-2")
        assert error.message == "Connection closed abnormally. Network or server issue."
        assert error.close_code == 1006
        assert isinstance(error, TransportError)

    def test_connection_lost_uses_reason(self) -> None:
        """Test other close codes use the server's reason."""
        error = ConnectionLostError(1011, "Internal error")
        assert error.message == "Internal error"

    def test_reconnect_exhausted(self) -> None:
        """Test the exhausted message and attempt count."""
        error = ReconnectExhaustedError(5, run_id="abc-2")
        assert error.message == "Failed to reconnect after multiple attempts"
        assert error.details["attempts"] == 5

    def test_authorization_default_message(self) -> None:
        """Test the default credential rejection message."""
        assert AuthorizationError().message == "Authentication failed. Token may have expired."

    def test_timeout_message(self) -> None:
        """Test the timeout message and budget."""
        error = WatchTimeoutError("abc-1", 1800)
        assert error.message == "Application timeout: The application process took too long"
        assert error.timeout_seconds == 1800

    def test_callback_error_names_hook_and_cause(self) -> None:
        """Test the failing hook and cause type are recorded."""
        error = CallbackError("abc-1", "on_status_update", ValueError("bad record"))
        assert error.message == "Status callback failed: bad record"
        assert error.details == {"callback": "on_status_update", "cause": "ValueError", "run_id": "abc-1"}

    def test_confirmation_error_without_cause(self) -> None:
        """Test the bare confirmation failure message."""
        error = ConfirmationError("abc-1", "consent")
        assert error.message == "Failed to resume application"
        assert error.details == {"run_id": "abc-1", "action_type": "consent"}
