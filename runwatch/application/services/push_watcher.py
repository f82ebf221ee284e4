"""
Push watcher.

Receives application run status frames over a persistent WebSocket.

Follows the backend socket contract:
    - Endpoint: WS {base}/applications/{run_id}/ws?token={token}
    - "ping" every heartbeat interval, "pong" acknowledgments ignored
    - Close 1008: credential rejected, never reconnect
    - Close 1000: normal, error cleared
    - Anything else: connection lost, reconnect with exponential backoff

Dependencies: asyncio, websockets, runwatch.boundary.ws, runwatch.core
System role: Push-based status synchronization
"""

import asyncio
import logging
from functools import partial
from typing import Any, Awaitable, Callable, Coroutine

from pydantic import ValidationError
from websockets.exceptions import ConnectionClosed

from runwatch.application.services.callbacks import callback_name, current_task, invoke_callback
from runwatch.application.services.user_action import StatusBackend, confirm_pending_action
from runwatch.boundary.ws.status_socket import (
    ABNORMAL_CLOSE_CODE,
    AUTH_REJECTED_CLOSE_CODE,
    NORMAL_CLOSE_CODE,
    PING_MESSAGE,
    PONG_MESSAGE,
    StatusSocket,
    build_status_socket_url,
    open_status_socket,
)
from runwatch.configs.api import ApiSettings
from runwatch.configs.watchers import PushSettings
from runwatch.core.auth_broadcast import AuthBroadcast, AuthEvent, AuthEventType
from runwatch.core.backoff import reconnect_delay
from runwatch.core.exceptions import (
    AuthorizationError,
    CallbackError,
    ConfirmationError,
    ConnectionLostError,
    ProtocolError,
    ReconnectExhaustedError,
    RunWatchException,
    TransportError,
)
from runwatch.core.status_classifier import is_terminal, is_waiting_for_user
from runwatch.core.status_tracker import StatusTracker
from runwatch.models.application_run import StatusRecord
from runwatch.models.watcher import ConnectionState, WatcherCallbacks
from runwatch.observability.log_utils import (
    log_exception_with_context,
    log_with_context,
    redact_token,
)

logger = logging.getLogger(__name__)

Connector = Callable[[str], Awaitable[StatusSocket]]


class PushWatcher:
    """
    Status watcher driven by frames pushed over a WebSocket.

    Holds at most one logical connection. Connection errors are stored in
    `error` independently of `connection_state`.
    """

    def __init__(
        self,
        run_id: str,
        token: str,
        callbacks: WatcherCallbacks | None = None,
        settings: PushSettings | None = None,
        api_settings: ApiSettings | None = None,
        connector: Connector | None = None,
        client: StatusBackend | None = None,
    ) -> None:
        """
        Initialize push watcher.

        Args:
            run_id: Application run identifier
            token: Bearer token embedded in the socket URL
            callbacks: Caller hooks (status, error, complete, connect, disconnect)
            settings: Heartbeat and reconnect policy (defaults from environment)
            api_settings: Backend location used to build the socket URL
            connector: Coroutine function opening a socket for a URL
            client: Backend client, only needed for resume()
        """
        self._run_id = run_id
        self._token = token
        self._callbacks = callbacks or WatcherCallbacks()
        self._settings = settings or PushSettings()
        self._api_settings = api_settings or ApiSettings()
        self._connector = connector or partial(
            open_status_socket,
            open_timeout=self._settings.open_timeout_seconds,
        )
        self._client = client
        self._tracker = StatusTracker()
        self._state = ConnectionState.DISCONNECTED
        self._error: RunWatchException | None = None
        self._socket: StatusSocket | None = None
        self._connection_task: asyncio.Task | None = None
        self._heartbeat_task: asyncio.Task | None = None
        self._reconnect_handle: asyncio.TimerHandle | None = None
        self._reconnect_attempts = 0
        self._next_reconnect_delay: float | None = None
        self._manual_close = False
        self._completed = False
        self._generation = 0
        self._background: set[asyncio.Task] = set()

    @property
    def run_id(self) -> str:
        return self._run_id

    @property
    def status(self) -> StatusRecord | None:
        return self._tracker.current

    @property
    def previous_status(self) -> StatusRecord | None:
        return self._tracker.previous

    @property
    def error(self) -> RunWatchException | None:
        return self._error

    @property
    def connection_state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def is_waiting_for_user(self) -> bool:
        record = self._tracker.current
        return record is not None and is_waiting_for_user(record.status)

    @property
    def reconnect_attempts(self) -> int:
        return self._reconnect_attempts

    @property
    def next_reconnect_delay(self) -> float | None:
        """Delay of the most recently scheduled reconnect, None after a successful open."""
        return self._next_reconnect_delay

    def update_token(self, token: str) -> None:
        """Use a fresh credential for the next connection attempt."""
        self._token = token

    def connect(self) -> None:
        """
        Open the push socket. Must be called from a running event loop.

        No-op while connecting or connected, or without a run id and token.
        """
        if not self._can_open():
            return
        self._manual_close = False
        self._completed = False
        self._open()

    async def disconnect(self) -> None:
        """
        Close the socket with a normal closure and suppress auto-reconnect.

        Timers, heartbeat and the reader are cancelled before the close
        handshake is awaited.
        """
        self._manual_close = True
        self._cancel_reconnect()
        self._stop_heartbeat()
        self._generation += 1

        socket, task = self._socket, self._connection_task
        self._socket = None
        self._connection_task = None
        was_active = self._state is not ConnectionState.DISCONNECTED
        self._state = ConnectionState.DISCONNECTED

        if task is not None and not task.done() and task is not current_task():
            task.cancel()
        if socket is not None:
            await socket.close(NORMAL_CLOSE_CODE, "Manual disconnect")

        if was_active:
            logger.info("Push socket disconnected manually", extra={"run_id": self._run_id})
            self._emit(self._callbacks.on_disconnect)

    async def reconnect(self) -> None:
        """Drop the current connection and connect again with a fresh attempt budget."""
        await self.disconnect()
        self._reconnect_attempts = 0
        self._next_reconnect_delay = None
        self._manual_close = False
        self._completed = False
        self._reconnect_handle = asyncio.get_running_loop().call_later(
            self._settings.manual_reconnect_delay_seconds,
            self._open,
        )

    async def resume(self, action_data: dict[str, Any] | None = None) -> bool:
        """
        Confirm the pending user action. The socket keeps delivering frames.

        Args:
            action_data: Extra payload for the confirmation call

        Returns:
            bool: True if the backend accepted the confirmation

        Raises:
            RuntimeError: If the watcher was built without a client
        """
        if self._client is None:
            raise RuntimeError("PushWatcher.resume requires a backend client")
        record = self._tracker.current
        if record is None or not is_waiting_for_user(record.status):
            logger.info("Resume ignored: run is not waiting for a user action", extra={"run_id": self._run_id})
            return False
        try:
            await confirm_pending_action(self._client, self._run_id, record, action_data)
        except ConfirmationError as e:
            self._report(e)
            return False
        return True

    def bind_auth_broadcast(self, broadcast: AuthBroadcast) -> Callable[[], None]:
        """
        Follow process-wide auth events.

        TOKEN_REFRESHED swaps the credential and reconnects when the socket is
        down (and was not closed manually). SIGN_OUT disconnects.

        Returns:
            Callable[[], None]: Unsubscribe function
        """

        def _on_auth_event(event: AuthEvent) -> None:
            if event.type is AuthEventType.TOKEN_REFRESHED and event.token:
                self.update_token(event.token)
                if self._state is ConnectionState.DISCONNECTED and not self._manual_close:
                    self._spawn(self.reconnect())
            elif event.type is AuthEventType.SIGN_OUT:
                self._spawn(self.disconnect())

        return broadcast.subscribe(_on_auth_event)

    def _can_open(self) -> bool:
        if not self._run_id or not self._token:
            logger.warning("Cannot connect: missing run id or token", extra={"run_id": self._run_id})
            return False
        if self._state is not ConnectionState.DISCONNECTED:
            logger.debug("Push socket already active", extra={"run_id": self._run_id, "state": self._state.value})
            return False
        return True

    def _open(self) -> None:
        self._reconnect_handle = None
        if self._manual_close or not self._can_open():
            return

        self._state = ConnectionState.CONNECTING
        self._error = None
        self._generation += 1
        url = build_status_socket_url(
            self._run_id,
            self._token,
            self._api_settings.base_url,
            self._api_settings.ws_base_url,
        )
        logger.info(
            "Connecting push socket",
            extra={"run_id": self._run_id, "url": redact_token(url), "attempt": self._reconnect_attempts},
        )
        self._connection_task = asyncio.get_running_loop().create_task(
            self._run_connection(url, self._generation)
        )

    async def _run_connection(self, url: str, generation: int) -> None:
        try:
            socket = await self._connector(url)
        except AuthorizationError as e:
            self._handle_close(generation, AUTH_REJECTED_CLOSE_CODE, e.message)
            return
        except TransportError:
            self._handle_close(generation, ABNORMAL_CLOSE_CODE, None)
            return

        if generation != self._generation:
            await socket.close(NORMAL_CLOSE_CODE, "Manual disconnect")
            return

        self._socket = socket
        self._handle_open(socket)
        try:
            async for message in socket:
                self._handle_message(message)
        except ConnectionClosed:
            pass
        finally:
            if generation == self._generation:
                self._stop_heartbeat()
                self._socket = None

        self._handle_close(generation, socket.close_code or ABNORMAL_CLOSE_CODE, socket.close_reason)

    def _handle_open(self, socket: StatusSocket) -> None:
        self._state = ConnectionState.CONNECTED
        self._reconnect_attempts = 0
        self._next_reconnect_delay = None
        logger.info("Push socket connected", extra={"run_id": self._run_id})
        self._heartbeat_task = asyncio.get_running_loop().create_task(self._heartbeat(socket))
        self._emit(self._callbacks.on_connect)

    async def _heartbeat(self, socket: StatusSocket) -> None:
        while True:
            await asyncio.sleep(self._settings.heartbeat_interval_seconds)
            try:
                await socket.send(PING_MESSAGE)
            except ConnectionClosed:
                return

    def _handle_message(self, message: str | bytes) -> None:
        if isinstance(message, bytes):
            try:
                message = message.decode("utf-8")
            except UnicodeDecodeError:
                self._report(ProtocolError("Frame is not valid UTF-8", run_id=self._run_id))
                return
        if message == PONG_MESSAGE:
            return

        try:
            record = StatusRecord.model_validate_json(message)
        except ValidationError as e:
            # Malformed frames are reported but keep the connection open
            self._report(ProtocolError(
                "Invalid message format",
                run_id=self._run_id,
                payload_preview=message,
                details={"errors": e.error_count()},
            ))
            return

        changed = self._tracker.observe(record)
        logger.debug(
            "Push status frame received",
            extra={"run_id": record.id, "status": record.status_value, "changed": changed},
        )
        if changed:
            log_with_context(
                logger,
                logging.INFO,
                "Run status changed",
                run_id=record.id,
                status=record.status_value,
                current_step=record.current_step,
                progress=record.progress,
                requires_user_action=record.requires_user_action,
            )
            self._emit(self._callbacks.on_status_update, record)

        if changed and is_waiting_for_user(record.status) and record.requires_user_action:
            log_with_context(
                logger,
                logging.INFO,
                "User action required",
                run_id=record.id,
                action=record.user_action_required,
                action_url=record.user_action_url,
            )

        # The server closes the socket after a terminal frame; the client does not.
        # A terminal frame ends the session even when it repeats the last status.
        if is_terminal(record.status):
            first_in_session = not self._completed
            self._completed = True
            if changed or first_in_session:
                self._emit(self._callbacks.on_complete, record)

    def _handle_close(self, generation: int, code: int, reason: str | None) -> None:
        if generation != self._generation:
            return
        self._stop_heartbeat()
        self._socket = None
        self._connection_task = None
        self._state = ConnectionState.DISCONNECTED
        logger.info(
            "Push socket closed",
            extra={"run_id": self._run_id, "close_code": code, "close_reason": reason or ""},
        )

        if code == AUTH_REJECTED_CLOSE_CODE:
            if reason:
                self._report(AuthorizationError(reason, run_id=self._run_id))
            else:
                self._report(AuthorizationError(run_id=self._run_id))
            self._emit(self._callbacks.on_disconnect)
            return

        if code == NORMAL_CLOSE_CODE:
            self._error = None
        else:
            self._report(ConnectionLostError(code, reason, run_id=self._run_id))
        self._emit(self._callbacks.on_disconnect)
        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        if self._manual_close or not self._settings.auto_reconnect:
            return
        if self._completed:
            logger.info("Run finished, not reconnecting", extra={"run_id": self._run_id})
            return
        if self._reconnect_attempts >= self._settings.max_reconnect_attempts:
            self._report(ReconnectExhaustedError(self._reconnect_attempts, run_id=self._run_id))
            return

        self._reconnect_attempts += 1
        delay = reconnect_delay(
            self._reconnect_attempts,
            self._settings.reconnect_base_delay_seconds,
            self._settings.reconnect_max_delay_seconds,
        )
        self._next_reconnect_delay = delay
        logger.info(
            "Scheduling push socket reconnect",
            extra={
                "run_id": self._run_id,
                "delay_seconds": delay,
                "attempt": self._reconnect_attempts,
                "max_attempts": self._settings.max_reconnect_attempts,
            },
        )
        self._reconnect_handle = asyncio.get_running_loop().call_later(delay, self._open)

    def _report(self, error: RunWatchException) -> None:
        self._error = error
        log_exception_with_context(logger, "Push watcher error", error, run_id=self._run_id)
        failure = invoke_callback(self._callbacks.on_error, error)
        if failure is not None:
            log_exception_with_context(
                logger,
                "on_error callback failed",
                failure,
                run_id=self._run_id,
                reported_error=type(error).__name__,
            )

    def _cancel_reconnect(self) -> None:
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None

    def _stop_heartbeat(self) -> None:
        task = self._heartbeat_task
        self._heartbeat_task = None
        if task is not None and not task.done():
            task.cancel()

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    def _emit(self, callback: Callable[..., None] | None, *args) -> None:
        """Run a caller hook; a failure is reported and the connection kept."""
        error = invoke_callback(callback, *args)
        if error is not None:
            self._report(CallbackError(self._run_id, callback_name(callback), error))
