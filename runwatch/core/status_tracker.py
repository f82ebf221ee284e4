"""
Transition tracking for observed status records.

Dependencies: runwatch.models
System role: Current/previous record retention for change-only callbacks
"""

from runwatch.core.status_classifier import status_value
from runwatch.models.application_run import StatusRecord


class StatusTracker:
    """Keeps the current and previous record and reports status transitions."""

    def __init__(self) -> None:
        self.current: StatusRecord | None = None
        self.previous: StatusRecord | None = None

    def observe(self, record: StatusRecord) -> bool:
        """
        Record a new observation.

        Args:
            record: Freshly observed status record

        Returns:
            bool: True if this is the first observation or the status value changed
        """
        changed = self.current is None or status_value(self.current.status) != status_value(record.status)
        self.previous = self.current
        self.current = record
        return changed

    def reset(self) -> None:
        """Forget both records so the next observation counts as a transition."""
        self.current = None
        self.previous = None
