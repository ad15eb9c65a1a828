"""Job lifecycle rules for the transcription pipeline.

The backend owns every transition; the gateway and its clients only observe
them. These rules let observers recognise the closed tag set, tell terminal
jobs apart, and flag snapshots that move a job somewhere it cannot go.
"""

from typing import Any

from scribe_gateway.schemas.job import JobStatus, parse_status

PIPELINE_ORDER: tuple[JobStatus, ...] = (
    JobStatus.SUBMITTED,
    JobStatus.UPLOADING,
    JobStatus.TRIMMING,
    JobStatus.WAITING,
    JobStatus.TRANSCRIBING,
    JobStatus.WAITING_FOR_PROOFREADING,
    JobStatus.PROOFREADING,
    JobStatus.CONVERTING,
    JobStatus.COMPLETED,
)

_TERMINAL_STATES: frozenset[JobStatus] = frozenset({JobStatus.COMPLETED, JobStatus.ERROR})

_STATUS_LABELS: dict[JobStatus, str] = {
    JobStatus.SUBMITTED: "Submitted",
    JobStatus.UPLOADING: "Uploading",
    JobStatus.TRIMMING: "Trimming audio",
    JobStatus.WAITING: "Waiting",
    JobStatus.TRANSCRIBING: "Transcribing",
    JobStatus.WAITING_FOR_PROOFREADING: "Waiting for proofreading",
    JobStatus.PROOFREADING: "Proofreading",
    JobStatus.CONVERTING: "Converting",
    JobStatus.COMPLETED: "Completed",
    JobStatus.ERROR: "Error",
}


class InvalidTransition(ValueError):
    """Raised when a status change breaks the lifecycle rules."""

    def __init__(self, current: JobStatus, attempted: JobStatus, message: str) -> None:
        self.current_status = current
        self.attempted_status = attempted
        self.allowed_next_statuses = allowed_next_statuses(current)
        super().__init__(message)


def is_terminal(status: JobStatus | str) -> bool:
    return isinstance(status, JobStatus) and status in _TERMINAL_STATES


def allowed_next_statuses(status: JobStatus) -> list[JobStatus]:
    """Return the statuses a job may move to next, in pipeline order."""
    if status in _TERMINAL_STATES:
        return []
    position = PIPELINE_ORDER.index(status)
    return [PIPELINE_ORDER[position + 1], JobStatus.ERROR]


def ensure_transition(old_status: JobStatus, new_status: JobStatus) -> None:
    """Validate a single step according to lifecycle rules."""
    if old_status in _TERMINAL_STATES:
        raise InvalidTransition(old_status, new_status, "Terminal state cannot be mutated")
    if new_status not in allowed_next_statuses(old_status):
        raise InvalidTransition(old_status, new_status, "Invalid status transition")


def is_forward_progress(old_status: JobStatus | str, new_status: JobStatus | str) -> bool:
    """Tell whether two observed snapshots are consistent with the lifecycle.

    Pollers see snapshots, not individual steps, so several stages may be
    skipped between two observations. Unknown tags are never judged.
    """
    if not isinstance(old_status, JobStatus) or not isinstance(new_status, JobStatus):
        return True
    if old_status == new_status:
        return True
    if old_status in _TERMINAL_STATES:
        return False
    if new_status is JobStatus.ERROR:
        return True
    return PIPELINE_ORDER.index(new_status) > PIPELINE_ORDER.index(old_status)


def display_status(raw: Any) -> str:
    """Human label for a status; unrecognised values are shown as sent."""
    status = parse_status(raw)
    if isinstance(status, JobStatus):
        return _STATUS_LABELS[status]
    return status


__all__ = [
    "InvalidTransition",
    "PIPELINE_ORDER",
    "allowed_next_statuses",
    "display_status",
    "ensure_transition",
    "is_forward_progress",
    "is_terminal",
    "parse_status",
]
