"""
REST client for the application-run backend.

Wraps httpx.AsyncClient and maps transport, HTTP and payload failures onto the
runwatch exception hierarchy so watchers only ever handle RunWatchException.

Dependencies: httpx, pydantic
System role: Status fetch and user-action confirmation for watchers
"""

import logging
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from runwatch.configs.api import ApiSettings
from runwatch.core.exceptions import AuthorizationError, ProtocolError, TransportError
from runwatch.models.application_run import (
    ApplicationEvent,
    ApplicationLogEntry,
    StartApplicationRequest,
    StartApplicationResponse,
    StatusRecord,
    UserActionRequest,
)

logger = logging.getLogger(__name__)

DEFAULT_ACTION_TYPE = "user_confirmation"


def _run_path(run_id: str, action: str) -> str:
    """Path of a per-run endpoint; the run id is percent-encoded as one segment."""
    return f"/applications/{quote(run_id, safe='')}/{action}"


def _error_detail(response: httpx.Response) -> Any:
    """Extract the backend's `detail` field from an error response, if any."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or None
    if isinstance(body, dict):
        return body.get("detail", body)
    return body


class ApplicationClient:
    """Async client for application-run endpoints."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the REST client.

        Args:
            base_url: Versioned API root, e.g. http://localhost:8000/api/v1
            token: Bearer token sent in the Authorization header
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._base_url = base_url
        self._http = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: ApiSettings,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "ApplicationClient":
        """Build a client from ApiSettings."""
        return cls(
            base_url=settings.base_url,
            token=token,
            timeout=settings.timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "ApplicationClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        await self._http.aclose()

    def set_token(self, token: str | None) -> None:
        """Replace the bearer token used for subsequent requests."""
        if token:
            self._http.headers["Authorization"] = f"Bearer {token}"
        else:
            self._http.headers.pop("Authorization", None)

    async def _request(
        self,
        method: str,
        path: str,
        run_id: str | None = None,
        **kwargs,
    ) -> Any:
        """
        Perform a request and decode its JSON body.

        Returns:
            Any: Decoded JSON, or None for an empty body

        Raises:
            AuthorizationError: Backend answered 401 or 403
            TransportError: Network failure or any other non-2xx status
            ProtocolError: Body is not valid JSON
        """
        try:
            response = await self._http.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            detail = _error_detail(e.response)
            logger.warning(
                "Backend request failed",
                extra={"method": method, "path": path, "status_code": status_code},
            )
            if status_code in (401, 403):
                raise AuthorizationError(
                    str(detail) if isinstance(detail, str) else "Not authorized",
                    run_id=run_id,
                    details={"status_code": status_code},
                ) from e
            raise TransportError(
                f"Request {method} {path} failed with status {status_code}",
                run_id=run_id,
                status_code=status_code,
                details={"detail": detail},
            ) from e
        except httpx.RequestError as e:
            logger.warning(
                "Backend request error",
                extra={"method": method, "path": path, "error_msg": str(e)},
            )
            raise TransportError(
                f"Request {method} {path} failed: {type(e).__name__}",
                run_id=run_id,
            ) from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ProtocolError(
                "Backend returned a non-JSON body",
                run_id=run_id,
                payload_preview=response.text,
            ) from e

    @staticmethod
    def _parse(model: type[BaseModel], data: Any, run_id: str | None = None) -> Any:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise ProtocolError(
                f"Invalid {model.__name__} payload",
                run_id=run_id,
                details={"errors": e.error_count()},
            ) from e

    async def get_application_status(self, run_id: str) -> StatusRecord:
        """
        Fetch the current status of a run.

        Endpoint: GET /applications/{run_id}/status

        Args:
            run_id: Application run identifier

        Returns:
            StatusRecord: Fresh snapshot of the run
        """
        data = await self._request("GET", _run_path(run_id, "status"), run_id=run_id)
        return self._parse(StatusRecord, data, run_id)

    async def confirm_user_action(
        self,
        run_id: str,
        action_type: str = DEFAULT_ACTION_TYPE,
        action_data: dict[str, Any] | None = None,
    ) -> StatusRecord | None:
        """
        Tell the backend the human completed the pending action.

        Endpoint: POST /applications/{run_id}/user-action-complete

        Args:
            run_id: Application run identifier
            action_type: Descriptor from StatusRecord.user_action_required
            action_data: Action payload passed through unchanged

        Returns:
            StatusRecord | None: Updated record when the backend returns one
        """
        body = UserActionRequest(action_type=action_type, action_data=action_data or {})
        data = await self._request(
            "POST",
            _run_path(run_id, "user-action-complete"),
            run_id=run_id,
            json=body.model_dump(),
        )
        if not data:
            return None
        return self._parse(StatusRecord, data, run_id)

    async def start_application(self, request: StartApplicationRequest) -> StartApplicationResponse:
        """Start a run. Endpoint: POST /applications/auto-apply"""
        data = await self._request(
            "POST",
            "/applications/auto-apply",
            json=request.model_dump(exclude_none=True),
        )
        return self._parse(StartApplicationResponse, data)

    async def cancel_application(self, run_id: str) -> None:
        """Cancel a run. Endpoint: POST /applications/{run_id}/cancel"""
        await self._request("POST", _run_path(run_id, "cancel"), run_id=run_id)

    async def get_application_logs(self, run_id: str) -> list[ApplicationLogEntry]:
        """Fetch the run timeline. Endpoint: GET /applications/{run_id}/logs"""
        data = await self._request("GET", _run_path(run_id, "logs"), run_id=run_id)
        return [self._parse(ApplicationLogEntry, item, run_id) for item in data or []]

    async def get_application_events(self, run_id: str) -> list[ApplicationEvent]:
        """Fetch lifecycle events. Endpoint: GET /applications/{run_id}/events"""
        data = await self._request("GET", _run_path(run_id, "events"), run_id=run_id)
        return [self._parse(ApplicationEvent, item, run_id) for item in data or []]
