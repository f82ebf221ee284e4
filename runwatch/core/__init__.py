"""
Core status synchronization logic.

Pure decision logic shared by both watchers: status classification,
transition tracking, reconnect backoff, and the error hierarchy.
"""
