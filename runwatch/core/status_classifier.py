"""
Status classification.

Maps a status value to the scheduling decision both watchers apply:
keep observing, pause for a human, or stop for good.

Dependencies: runwatch.models
System role: Terminal/waiting classifier
"""

import enum

from runwatch.models.application_run import ApplicationStatus


class StatusClass(str, enum.Enum):
    """Scheduling class of a status value."""

    ACTIVE = "active"
    WAITING = "waiting"
    TERMINAL = "terminal"


ACTIVE_STATUSES = frozenset({
    ApplicationStatus.PENDING.value,
    ApplicationStatus.PREPARING_MATERIALS.value,
    ApplicationStatus.RUNNING.value,
})
WAITING_STATUSES = frozenset({ApplicationStatus.WAITING_FOR_USER.value})
TERMINAL_STATUSES = frozenset({
    ApplicationStatus.SUBMITTED.value,
    ApplicationStatus.FAILED.value,
    ApplicationStatus.ABORTED.value,
})


def status_value(status: ApplicationStatus | str) -> str:
    """Return the plain string form of a status."""
    if isinstance(status, ApplicationStatus):
        return status.value
    return str(status)


def classify_status(status: ApplicationStatus | str) -> StatusClass:
    """
    Classify a status value.

    Unknown values are treated as active so the watcher keeps observing.

    Args:
        status: Known ApplicationStatus or raw status string

    Returns:
        StatusClass: ACTIVE, WAITING or TERMINAL
    """
    value = status_value(status)
    if value in TERMINAL_STATUSES:
        return StatusClass.TERMINAL
    if value in WAITING_STATUSES:
        return StatusClass.WAITING
    return StatusClass.ACTIVE


def is_terminal(status: ApplicationStatus | str) -> bool:
    return classify_status(status) is StatusClass.TERMINAL


def is_waiting_for_user(status: ApplicationStatus | str) -> bool:
    return classify_status(status) is StatusClass.WAITING


def poll_interval_for(
    status: ApplicationStatus | str | None,
    active_interval: float = 2.0,
) -> float | None:
    """
    Delay before the next poll for a status.

    Args:
        status: Last observed status, or None before the first observation
        active_interval: Delay used for active (and unknown) statuses

    Returns:
        float | None: Seconds until the next fetch, None when polling must stop
    """
    if status is None:
        return active_interval
    if classify_status(status) is StatusClass.ACTIVE:
        return active_interval
    return None
