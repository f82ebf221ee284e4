"""
Poll watcher.

Observes an application run by repeatedly fetching its status.

Rules:
    - Never overlap requests
    - Never poll after a terminal state
    - Interval depends on the last observed status
    - Hard timeout per observation session
    - No retry after a failed fetch
    - waiting_for_user stops polling until resume() is called

Dependencies: asyncio, runwatch.core, runwatch.configs
System role: Request/response status synchronization
"""

import asyncio
import logging
import time
from typing import Any, Callable

from runwatch.application.services.callbacks import callback_name, current_task, invoke_callback
from runwatch.application.services.user_action import StatusBackend, confirm_pending_action
from runwatch.configs.watchers import PollSettings
from runwatch.core.exceptions import (
    CallbackError,
    ConfirmationError,
    RunWatchException,
    WatchTimeoutError,
)
from runwatch.core.status_classifier import (
    StatusClass,
    classify_status,
    is_waiting_for_user,
    poll_interval_for,
)
from runwatch.core.status_tracker import StatusTracker
from runwatch.models.application_run import StatusRecord
from runwatch.models.watcher import PollState, WatcherCallbacks
from runwatch.observability.log_utils import log_exception_with_context, log_with_context

logger = logging.getLogger(__name__)

_SETTLED_STATES = (PollState.STOPPED, PollState.WAITING_FOR_USER)


class PollWatcher:
    """
    Status watcher driven by periodic fetches.

    One instance observes one run at a time and may be started and stopped
    repeatedly. All work happens on the running event loop.
    """

    def __init__(
        self,
        client: StatusBackend,
        settings: PollSettings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize poll watcher.

        Args:
            client: Backend exposing get_application_status/confirm_user_action
            settings: Cadence and timeout policy (defaults from environment)
            clock: Monotonic clock used for timeout accounting
        """
        self._client = client
        self._settings = settings or PollSettings()
        self._clock = clock
        self._callbacks = WatcherCallbacks()
        self._run_id: str | None = None
        self._timeout = self._settings.timeout_seconds
        self._tracker = StatusTracker()
        self._state = PollState.STOPPED
        self._error: RunWatchException | None = None
        self._is_loading = False
        self._started_at = 0.0
        self._session = 0
        self._loop: asyncio.AbstractEventLoop | None = None
        self._poll_handle: asyncio.TimerHandle | None = None
        self._deadline_handle: asyncio.TimerHandle | None = None
        self._fetch_task: asyncio.Task | None = None
        self._settled = asyncio.Event()
        self._settled.set()

    @property
    def run_id(self) -> str | None:
        return self._run_id

    @property
    def state(self) -> PollState:
        return self._state

    @property
    def status(self) -> StatusRecord | None:
        """Latest observed record, kept after the watcher stops."""
        return self._tracker.current

    @property
    def previous_status(self) -> StatusRecord | None:
        return self._tracker.previous

    @property
    def error(self) -> RunWatchException | None:
        """Last surfaced error, cleared by the next successful fetch."""
        return self._error

    @property
    def is_loading(self) -> bool:
        """True until the first fetch of a session settles."""
        return self._is_loading

    @property
    def is_polling(self) -> bool:
        return self._state in (PollState.IDLE, PollState.FETCHING)

    @property
    def is_waiting_for_user(self) -> bool:
        record = self._tracker.current
        return record is not None and is_waiting_for_user(record.status)

    def start(
        self,
        run_id: str,
        callbacks: WatcherCallbacks | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        """
        Begin observing a run. Must be called from a running event loop.

        A previous session is stopped first and its transition history dropped.

        Args:
            run_id: Application run identifier
            callbacks: Caller hooks (status update, error, complete)
            timeout_seconds: Session budget, defaults to PollSettings.timeout_seconds

        Raises:
            ValueError: If run_id is empty
        """
        if not run_id:
            raise ValueError("run_id is required to start polling")

        self.stop()
        self._loop = asyncio.get_running_loop()
        self._run_id = run_id
        self._callbacks = callbacks or WatcherCallbacks()
        self._timeout = timeout_seconds if timeout_seconds is not None else self._settings.timeout_seconds
        self._tracker.reset()
        self._error = None
        self._is_loading = True

        logger.info(
            "Starting status polling",
            extra={"run_id": run_id, "timeout_seconds": self._timeout},
        )
        self._begin_session()
        self._spawn_fetch()

    async def fetch_once(self) -> StatusRecord | None:
        """
        Fetch the run status once and apply the scheduling rules.

        No-op while another fetch is in flight or the watcher is not polling.
        Stops with WatchTimeoutError instead of fetching once the budget is spent.

        Returns:
            StatusRecord | None: The fetched record, or None if nothing was applied
        """
        if self._state is PollState.FETCHING:
            logger.debug("Fetch skipped: request already in flight", extra={"run_id": self._run_id})
            return None
        if self._state is not PollState.IDLE:
            return None

        run_id = self._run_id
        if self._clock() - self._started_at >= self._timeout:
            logger.warning("Status polling timeout reached", extra={"run_id": run_id})
            self._fail(WatchTimeoutError(run_id, self._timeout))
            return None

        self._cancel_poll_timer()
        session = self._session
        self._set_state(PollState.FETCHING)
        try:
            record = await self._client.get_application_status(run_id)
        except RunWatchException as e:
            if session == self._session:
                self._is_loading = False
                self._fail(e)
            return None

        # Stopped or restarted while the request was in flight
        if session != self._session:
            return None

        self._set_state(PollState.IDLE)
        try:
            self._observe(record)
        except CallbackError as e:
            self._fail(e)
        return record

    def refresh(self) -> None:
        """Fetch now, out of band. Ignored while fetching or when not polling."""
        if self._state is PollState.FETCHING:
            logger.debug("Refresh ignored: request already in flight", extra={"run_id": self._run_id})
            return
        if self._state is not PollState.IDLE:
            return
        self._cancel_poll_timer()
        self._spawn_fetch()

    async def resume(self, action_data: dict[str, Any] | None = None) -> bool:
        """
        Confirm the pending user action and restart polling.

        Does nothing unless the last observed record is waiting_for_user and
        the watcher is not already polling. On success the timeout budget
        starts over.

        Args:
            action_data: Extra payload for the confirmation call

        Returns:
            bool: True if polling was restarted
        """
        record = self._tracker.current
        if self._run_id is None or record is None or not is_waiting_for_user(record.status):
            logger.info("Resume ignored: run is not waiting for a user action", extra={"run_id": self._run_id})
            return False
        if self.is_polling:
            logger.info("Resume ignored: polling already active", extra={"run_id": self._run_id})
            return False

        try:
            await confirm_pending_action(self._client, self._run_id, record, action_data)
        except ConfirmationError as e:
            self._error = e
            log_exception_with_context(logger, "Error confirming user action", e, run_id=self._run_id)
            self._notify_error(e)
            return False

        log_with_context(
            logger,
            logging.INFO,
            "User action confirmed, resuming status polling",
            run_id=self._run_id,
            action=record.user_action_required,
        )
        self._halt(PollState.STOPPED)
        self._loop = asyncio.get_running_loop()
        self._error = None
        self._begin_session()
        self._spawn_fetch()
        return True

    def stop(self) -> None:
        """Stop polling. Idempotent; cancels every timer and the in-flight fetch."""
        if self._state is not PollState.STOPPED:
            logger.info("Stopping status polling", extra={"run_id": self._run_id})
        self._halt(PollState.STOPPED)

    async def wait_stopped(self) -> None:
        """Wait until the watcher stops or pauses for a user action."""
        await self._settled.wait()

    def _begin_session(self) -> None:
        self._started_at = self._clock()
        self._set_state(PollState.IDLE)
        self._deadline_handle = self._loop.call_later(self._timeout, self._on_deadline)

    def _spawn_fetch(self) -> None:
        self._poll_handle = None
        if self._state is not PollState.IDLE:
            return
        if self._fetch_task is not None and not self._fetch_task.done():
            return
        self._fetch_task = self._loop.create_task(self.fetch_once())

    def _observe(self, record: StatusRecord) -> None:
        self._is_loading = False
        self._error = None

        # Callbacks fire on transitions only, not on every poll
        if self._tracker.observe(record):
            log_with_context(
                logger,
                logging.INFO,
                "Run status changed",
                run_id=record.id,
                status=record.status_value,
                current_step=record.current_step,
                progress=record.progress,
            )
            self._emit(self._callbacks.on_status_update, record)

        status_class = classify_status(record.status)
        if status_class is StatusClass.TERMINAL:
            logger.info("Run reached terminal state", extra={"run_id": record.id, "status": record.status_value})
            self._halt(PollState.STOPPED)
            self._emit(self._callbacks.on_complete, record)
            return

        if status_class is StatusClass.WAITING:
            log_with_context(
                logger,
                logging.INFO,
                "Run waiting for user action, polling paused",
                run_id=record.id,
                action=record.user_action_required,
                action_url=record.user_action_url,
            )
            self._halt(PollState.WAITING_FOR_USER)
            return

        # A callback may have stopped the watcher
        if self._state is not PollState.IDLE:
            return
        interval = poll_interval_for(record.status, self._settings.active_interval_seconds)
        if interval is None:
            self._halt(PollState.STOPPED)
            return
        self._poll_handle = self._loop.call_later(interval, self._spawn_fetch)

    def _on_deadline(self) -> None:
        self._deadline_handle = None
        if self.is_polling:
            logger.warning("Status polling timeout reached", extra={"run_id": self._run_id})
            self._fail(WatchTimeoutError(self._run_id, self._timeout))

    def _fail(self, error: RunWatchException) -> None:
        # No retry: every failure ends the session
        self._error = error
        log_exception_with_context(logger, "Status polling stopped on error", error, run_id=self._run_id)
        self._halt(PollState.STOPPED)
        self._notify_error(error)

    def _halt(self, state: PollState) -> None:
        self._cancel_poll_timer()
        if self._deadline_handle is not None:
            self._deadline_handle.cancel()
            self._deadline_handle = None
        task = self._fetch_task
        self._fetch_task = None
        if task is not None and not task.done() and task is not current_task():
            task.cancel()
        self._session += 1
        self._set_state(state)

    def _cancel_poll_timer(self) -> None:
        if self._poll_handle is not None:
            self._poll_handle.cancel()
            self._poll_handle = None

    def _set_state(self, state: PollState) -> None:
        self._state = state
        if state in _SETTLED_STATES:
            self._settled.set()
        else:
            self._settled.clear()

    def _emit(self, callback: Callable[..., None] | None, *args) -> None:
        """Run a status hook; a failing hook ends the session via CallbackError."""
        error = invoke_callback(callback, *args)
        if error is not None:
            raise CallbackError(self._run_id, callback_name(callback), error) from error

    def _notify_error(self, error: RunWatchException) -> None:
        failure = invoke_callback(self._callbacks.on_error, error)
        if failure is not None:
            log_exception_with_context(
                logger,
                "on_error callback failed",
                failure,
                run_id=self._run_id,
                reported_error=type(error).__name__,
            )
