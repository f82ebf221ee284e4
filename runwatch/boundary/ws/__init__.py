"""
Push socket boundary modules.

Exports: build_status_socket_url, open_status_socket, StatusSocket
"""

from .status_socket import (
    AUTH_REJECTED_CLOSE_CODE,
    ABNORMAL_CLOSE_CODE,
    NORMAL_CLOSE_CODE,
    PING_MESSAGE,
    PONG_MESSAGE,
    StatusSocket,
    build_status_socket_url,
    open_status_socket,
)

__all__ = [
    "ABNORMAL_CLOSE_CODE",
    "AUTH_REJECTED_CLOSE_CODE",
    "NORMAL_CLOSE_CODE",
    "PING_MESSAGE",
    "PONG_MESSAGE",
    "StatusSocket",
    "build_status_socket_url",
    "open_status_socket",
]
