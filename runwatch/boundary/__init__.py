"""
Boundary layer for external system integrations.

Handles all interactions with the application-run backend: REST calls and the
push WebSocket.
"""
