"""
Backend REST boundary modules.

Exports: ApplicationClient
"""

from .application_client import ApplicationClient

__all__ = ["ApplicationClient"]
