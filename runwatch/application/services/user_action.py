"""
User action confirmation.

Shared by both watchers: acknowledges a completed human action (CAPTCHA,
consent, missing input) so the backend can unblock a waiting run.

Dependencies: runwatch.core, runwatch.models
System role: Resume path for runs paused in waiting_for_user
"""

from typing import Any, Protocol

from runwatch.boundary.api.application_client import DEFAULT_ACTION_TYPE
from runwatch.core.exceptions import ConfirmationError, RunWatchException
from runwatch.models.application_run import StatusRecord


class StatusBackend(Protocol):
    """Backend operations the watchers depend on (ApplicationClient satisfies it)."""

    async def get_application_status(self, run_id: str) -> StatusRecord: ...

    async def confirm_user_action(
        self,
        run_id: str,
        action_type: str = DEFAULT_ACTION_TYPE,
        action_data: dict[str, Any] | None = None,
    ) -> StatusRecord | None: ...


async def confirm_pending_action(
    backend: StatusBackend,
    run_id: str,
    record: StatusRecord,
    action_data: dict[str, Any] | None = None,
) -> StatusRecord | None:
    """
    Confirm the action a waiting record asked for.

    The action descriptor is taken from the waiting record and passed back
    unchanged; the payload always carries ``confirmed: True``.

    Args:
        backend: Client exposing confirm_user_action
        run_id: Application run identifier
        record: The waiting_for_user record being answered
        action_data: Extra payload merged into the confirmation

    Returns:
        StatusRecord | None: Whatever the backend returned

    Raises:
        ConfirmationError: The confirmation call failed
    """
    action_type = record.user_action_required or DEFAULT_ACTION_TYPE
    payload: dict[str, Any] = {"confirmed": True, **(action_data or {})}
    try:
        return await backend.confirm_user_action(run_id, action_type, payload)
    except RunWatchException as e:
        raise ConfirmationError(run_id, action_type, cause=e) from e
