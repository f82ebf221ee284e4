"""
Push socket for application run status frames.

Builds the socket address (the bearer token travels in the query string) and
opens the connection with the websockets asyncio client, translating handshake
failures into runwatch exceptions.

Protocol:
    Endpoint: WS {base_path}/applications/{run_id}/ws?token={token}
    Server sends: UTF-8 JSON StatusRecord frames, "pong"
    Client sends: "ping" every heartbeat interval
    Close codes: 1000 normal, 1006 abnormal, 1008 auth rejected

Dependencies: websockets
System role: Push transport for the push watcher
"""

import asyncio
import logging
from typing import AsyncIterator, Protocol
from urllib.parse import quote, urlsplit, urlunsplit

from websockets.asyncio.client import connect
from websockets.exceptions import InvalidHandshake, InvalidStatus, InvalidURI

from runwatch.core.exceptions import AuthorizationError, TransportError
from runwatch.observability.log_utils import redact_token

logger = logging.getLogger(__name__)

NORMAL_CLOSE_CODE = 1000
ABNORMAL_CLOSE_CODE = 1006
AUTH_REJECTED_CLOSE_CODE = 1008
PING_MESSAGE = "ping"
PONG_MESSAGE = "pong"


class StatusSocket(Protocol):
    """The part of a websockets ClientConnection the push watcher relies on."""

    close_code: int | None
    close_reason: str | None

    async def send(self, message: str) -> None: ...

    async def close(self, code: int = NORMAL_CLOSE_CODE, reason: str = "") -> None: ...

    def __aiter__(self) -> AsyncIterator[str | bytes]: ...


def build_status_socket_url(
    run_id: str,
    token: str,
    base_url: str,
    ws_base_url: str | None = None,
) -> str:
    """
    Build the push socket address for a run.

    The scheme follows the API base: https -> wss, http -> ws. An explicit
    ws_base_url is used as-is.

    Args:
        run_id: Application run identifier
        token: Bearer token, URL-encoded into the query string
        base_url: REST API root, e.g. https://api.example.com/api/v1
        ws_base_url: Optional socket root overriding base_url

    Returns:
        str: ws:// or wss:// URL
    """
    parts = urlsplit(ws_base_url or base_url)
    scheme = parts.scheme
    if scheme == "https":
        scheme = "wss"
    elif scheme == "http":
        scheme = "ws"
    path = f"{parts.path.rstrip('/')}/applications/{quote(run_id, safe='')}/ws"
    query = f"token={quote(token, safe='')}"
    return urlunsplit((scheme, parts.netloc, path, query, ""))


async def open_status_socket(url: str, open_timeout: float = 10.0) -> StatusSocket:
    """
    Open the push socket.

    Protocol-level keepalive pings are disabled; the watcher sends its own
    "ping" text frames.

    Args:
        url: Address from build_status_socket_url
        open_timeout: Handshake timeout in seconds

    Returns:
        StatusSocket: Open connection

    Raises:
        AuthorizationError: Handshake rejected with HTTP 401 or 403
        TransportError: Any other failure to open the connection
    """
    try:
        return await connect(url, ping_interval=None, open_timeout=open_timeout)
    except InvalidStatus as e:
        status_code = e.response.status_code
        logger.warning(
            "Push socket handshake rejected",
            extra={"url": redact_token(url), "status_code": status_code},
        )
        if status_code in (401, 403):
            raise AuthorizationError(details={"status_code": status_code}) from e
        raise TransportError(
            "Push socket handshake rejected",
            status_code=status_code,
        ) from e
    except (InvalidURI, InvalidHandshake, OSError, asyncio.TimeoutError) as e:
        logger.warning(
            "Push socket failed to open",
            extra={"url": redact_token(url), "error_type": type(e).__name__},
        )
        raise TransportError(f"Failed to connect: {type(e).__name__}") from e
