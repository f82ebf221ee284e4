"""
Application layer.

Watcher services that turn backend observations into caller-visible state.
"""
