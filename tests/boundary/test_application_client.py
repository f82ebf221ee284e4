"""
Test suite for ApplicationClient.

Uses httpx.MockTransport to exercise request shaping and error mapping
without a network.

System role: Verification of the REST boundary
"""

import json

import httpx
import pytest

from runwatch.boundary.api.application_client import ApplicationClient
from runwatch.configs.api import ApiSettings
from runwatch.core.exceptions import AuthorizationError, ProtocolError, TransportError
from runwatch.models.application_run import ApplicationStatus, StartApplicationRequest

BASE_URL = "https://api.example.com/api/v1"


def _client(handler) -> ApplicationClient:
    return ApplicationClient(BASE_URL, token="tok", transport=httpx.MockTransport(handler))


class TestGetApplicationStatus:
    """Test suite for status fetches."""

    @pytest.mark.asyncio
    async def test_fetches_and_parses_record(self) -> None:
        """Test GET /applications/{id}/status with bearer auth."""
        # Arrange
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "id": "abc-1",
                    "status": "running",
                    "progress": 40,
                    "current_step": "filling_form",
                    "unexpected_field": "ignored",
                },
            )

        # Act
        async with _client(handler) as client:
            record = await client.get_application_status("abc-1")

        # Assert
        assert seen[0].method == "GET"
        assert seen[0].url.path == "/api/v1/applications/abc-1/status"
        assert seen[0].headers["Authorization"] == "Bearer tok"
        assert record.status is ApplicationStatus.RUNNING
        assert record.progress == 40
        assert record.requires_user_action is False

    @pytest.mark.asyncio
    async def test_run_id_is_percent_encoded_in_path(self) -> None:
        """Test reserved characters in the run id stay inside one path segment."""
        # Arrange
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"id": "abc/1", "status": "running"})

        # Act
        async with _client(handler) as client:
            await client.get_application_status("abc/1")
            await client.cancel_application("abc/1")

        # Assert
        assert seen[0].url.raw_path == b"/api/v1/applications/abc%2F1/status"
        assert seen[1].url.raw_path == b"/api/v1/applications/abc%2F1/cancel"

    @pytest.mark.asyncio
    async def test_unknown_status_kept_as_string(self) -> None:
        """Test unrecognized status values survive parsing."""
        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"id": "abc-1", "status": "queued_for_review"})

        # Act
        async with _client(handler) as client:
            record = await client.get_application_status("abc-1")

        # Assert
        assert record.status == "queued_for_review"
        assert record.status_value == "queued_for_review"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [401, 403])
    async def test_auth_rejection_maps_to_authorization_error(self, status_code: int) -> None:
        """Test 401/403 raise AuthorizationError."""
        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status_code, json={"detail": "Token expired"})

        # Act & Assert
        async with _client(handler) as client:
            with pytest.raises(AuthorizationError) as exc_info:
                await client.get_application_status("abc-1")

        assert exc_info.value.message == "Token expired"
        assert exc_info.value.details["status_code"] == status_code

    @pytest.mark.asyncio
    async def test_server_error_maps_to_transport_error(self) -> None:
        """Test non-auth error statuses raise TransportError with the backend detail."""
        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={"detail": "worker crashed"})

        # Act & Assert
        async with _client(handler) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.get_application_status("abc-1")

        assert exc_info.value.status_code == 500
        assert exc_info.value.details["detail"] == "worker crashed"
        assert exc_info.value.details["run_id"] == "abc-1"

    @pytest.mark.asyncio
    async def test_network_failure_maps_to_transport_error(self) -> None:
        """Test connection errors raise TransportError."""
        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        # Act & Assert
        async with _client(handler) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.get_application_status("abc-1")

        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_non_json_body_maps_to_protocol_error(self) -> None:
        """Test an HTML body raises ProtocolError."""
        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>gateway</html>")

        # Act & Assert
        async with _client(handler) as client:
            with pytest.raises(ProtocolError):
                await client.get_application_status("abc-1")

    @pytest.mark.asyncio
    async def test_invalid_record_maps_to_protocol_error(self) -> None:
        """Test a record without an id raises ProtocolError."""
        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"status": "running"})

        # Act & Assert
        async with _client(handler) as client:
            with pytest.raises(ProtocolError) as exc_info:
                await client.get_application_status("abc-1")

        assert exc_info.value.message == "Invalid StatusRecord payload"


class TestOtherEndpoints:
    """Test suite for confirmation and run management calls."""

    @pytest.mark.asyncio
    async def test_confirm_user_action_posts_body(self) -> None:
        """Test POST /applications/{id}/user-action-complete body shape."""
        # Arrange
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"id": "abc-1", "status": "running"})

        # Act
        async with _client(handler) as client:
            record = await client.confirm_user_action("abc-1", "captcha_verification", {"confirmed": True})

        # Assert
        assert seen[0].method == "POST"
        assert seen[0].url.path == "/api/v1/applications/abc-1/user-action-complete"
        assert json.loads(seen[0].content) == {
            "action_type": "captcha_verification",
            "action_data": {"confirmed": True},
        }
        assert record.status_value == "running"

    @pytest.mark.asyncio
    async def test_confirm_user_action_empty_body(self) -> None:
        """Test an empty response returns None."""
        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(204)

        # Act
        async with _client(handler) as client:
            record = await client.confirm_user_action("abc-1")

        # Assert
        assert record is None

    @pytest.mark.asyncio
    async def test_start_application(self) -> None:
        """Test POST /applications/auto-apply."""
        # Arrange
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={"application_id": "abc-3", "status": "pending", "current_step": "initializing"},
            )

        # Act
        async with _client(handler) as client:
            response = await client.start_application(StartApplicationRequest(job_id="job-9", user_consent=True))

        # Assert
        assert seen[0].url.path == "/api/v1/applications/auto-apply"
        assert json.loads(seen[0].content) == {"job_id": "job-9", "user_consent": True}
        assert response.application_id == "abc-3"
        assert response.status is ApplicationStatus.PENDING

    @pytest.mark.asyncio
    async def test_cancel_and_timeline(self) -> None:
        """Test cancel, logs and events endpoints."""
        # Arrange
        paths: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            if request.url.path.endswith("/logs"):
                return httpx.Response(200, json=[
                    {"id": "log-1", "message": "Opened form", "timestamp": "2026-01-05T10:00:00Z"},
                ])
            if request.url.path.endswith("/events"):
                return httpx.Response(200, json=[
                    {
                        "id": "evt-1",
                        "application_run_id": "abc-1",
                        "event_type": "STARTED",
                        "timestamp": "2026-01-05T10:00:00Z",
                    },
                ])
            return httpx.Response(200, json={"message": "cancelled"})

        # Act
        async with _client(handler) as client:
            await client.cancel_application("abc-1")
            logs = await client.get_application_logs("abc-1")
            events = await client.get_application_events("abc-1")

        # Assert
        assert paths == [
            "/api/v1/applications/abc-1/cancel",
            "/api/v1/applications/abc-1/logs",
            "/api/v1/applications/abc-1/events",
        ]
        assert logs[0].message == "Opened form"
        assert events[0].event_type == "STARTED"

    @pytest.mark.asyncio
    async def test_from_settings_and_token_swap(self) -> None:
        """Test client built from settings uses the updated token."""
        # Arrange
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"id": "abc-1", "status": "running"})

        settings = ApiSettings(base_url=BASE_URL, timeout_seconds=5)
        client = ApplicationClient.from_settings(settings, token="old", transport=httpx.MockTransport(handler))

        # Act
        client.set_token("new")
        await client.get_application_status("abc-1")
        await client.aclose()

        # Assert
        assert seen[0].headers["Authorization"] == "Bearer new"
