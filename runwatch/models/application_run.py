"""
Application run domain models and schemas.

Request/response schemas for the application-run backend, including the
StatusRecord both watchers produce.

Dependencies: pydantic
System role: Application run API contracts
"""

import enum
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ApplicationStatus(str, enum.Enum):
    """
    Server-side application run states.

    PENDING: Run accepted, awaiting a worker
    PREPARING_MATERIALS: Resume and cover letter being prepared
    RUNNING: Browser automation in progress
    WAITING_FOR_USER: Paused on a CAPTCHA, consent or missing input
    SUBMITTED: Application submitted successfully
    FAILED: Run failed; see error_reason
    ABORTED: Run cancelled
    """

    PENDING = "pending"
    PREPARING_MATERIALS = "preparing_materials"
    RUNNING = "running"
    WAITING_FOR_USER = "waiting_for_user"
    SUBMITTED = "submitted"
    FAILED = "failed"
    ABORTED = "aborted"


class ApplicationStep(str, enum.Enum):
    """Automation step the run is currently executing."""

    INITIALIZING = "initializing"
    FILLING_FORM = "filling_form"
    UPLOADING_RESUME = "uploading_resume"
    ANSWERING_QUESTIONS = "answering_questions"
    VERIFICATION_REQUIRED = "verification_required"
    SUBMITTING = "submitting"
    COMPLETED = "completed"


class ApplicationLogEntry(BaseModel):
    """Single timeline entry recorded by the automation worker."""

    model_config = ConfigDict(frozen=True)

    id: str
    message: str
    timestamp: datetime
    application_run_id: str | None = None
    step_name: str | None = None
    step_type: str | None = None
    screenshot_url: str | None = None
    step_metadata: dict[str, Any] | None = None
    level: str | None = None
    step: str | None = None


class StatusRecord(BaseModel):
    """
    Latest known server-side truth about one application run.

    Fields are copied verbatim from the backend payload. Records are frozen;
    every observation produces a new instance.

    Attributes:
        id: Run identifier, the correlation key for every request and frame
        status: Known ApplicationStatus, or the raw string for unknown values
        progress: Progress as reported by the backend
        current_step: Step being executed (known ApplicationStep or raw string)
        steps_completed: Steps finished so far
        total_steps: Steps planned for the run
        requires_user_action: True only while waiting for a human
        user_action_required: Opaque action descriptor sent back on resume
        user_action_url: Where the human should complete the action
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    status: ApplicationStatus | str = Field(union_mode="left_to_right")
    progress: float | None = None
    progress_percentage: float | None = None
    current_step: ApplicationStep | str | None = Field(default=None, union_mode="left_to_right")
    steps_completed: int | None = None
    total_steps: int | None = None
    requires_user_action: bool = False
    user_action_required: str | None = None
    user_action_message: str | None = None
    user_action_url: str | None = None
    job_id: str | None = None
    user_id: str | None = None
    ingested_job_id: str | None = None
    error_reason: str | None = None
    error_message: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    log_entries: list[ApplicationLogEntry] | None = None

    @property
    def status_value(self) -> str:
        """Status as a plain string, whether or not it is a known value."""
        if isinstance(self.status, ApplicationStatus):
            return self.status.value
        return str(self.status)


class ApplicationEvent(BaseModel):
    """Lifecycle event emitted for a run (STARTED, PAUSED, COMPLETED, ...)."""

    model_config = ConfigDict(frozen=True)

    id: str
    application_run_id: str
    event_type: str
    timestamp: datetime
    event_data: dict[str, Any] | None = None


class StartApplicationRequest(BaseModel):
    """Request schema for starting an automated application run."""

    job_id: str
    user_consent: bool
    resume_id: str | None = None
    cover_letter_id: str | None = None
    consent_text: str | None = None
    external_url: str | None = None


class StartApplicationResponse(BaseModel):
    """Response schema returned when a run is started."""

    application_id: str
    status: ApplicationStatus | str = Field(union_mode="left_to_right")
    current_step: ApplicationStep | str | None = Field(default=None, union_mode="left_to_right")
    requires_user_action: bool = False


class UserActionRequest(BaseModel):
    """Body of the user-action confirmation call."""

    action_type: str = Field(default="user_confirmation")
    action_data: dict[str, Any] = Field(default_factory=dict)
