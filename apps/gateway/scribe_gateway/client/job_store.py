"""Client-side job status store."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
import logging

from scribe_gateway.core.logging_safety import safe_log_identifier
from scribe_gateway.domain.job_lifecycle import is_forward_progress, is_terminal
from scribe_gateway.schemas.job import Job

logger = logging.getLogger(__name__)


class JobStatusStore:
    """Latest known jobs of one principal, replaced wholesale on every refresh.

    There is no merging: a job missing from a snapshot (deleted by an admin,
    for instance) disappears from the store with that snapshot.
    """

    def __init__(self, owner_id: str) -> None:
        self.owner_id = owner_id
        self._jobs: dict[str, Job] = {}
        self.version = 0
        self.last_refreshed_at: datetime | None = None

    def replace(self, snapshot: Iterable[Job]) -> None:
        incoming = {job.id: job for job in snapshot}
        for job_id, job in incoming.items():
            previous = self._jobs.get(job_id)
            if previous is not None and not is_forward_progress(previous.status, job.status):
                logger.warning(
                    "store.status_regressed job_id=%s previous=%s current=%s",
                    safe_log_identifier(job_id, prefix="jid"),
                    previous.status_value,
                    job.status_value,
                )

        self._jobs = incoming
        self.version += 1
        self.last_refreshed_at = datetime.now(UTC)
        logger.debug(
            "store.replaced owner_id=%s version=%s jobs=%s",
            safe_log_identifier(self.owner_id, prefix="pid"),
            self.version,
            len(incoming),
        )

    def jobs(self) -> list[Job]:
        """Jobs newest first, the order views render them in."""
        return sorted(self._jobs.values(), key=lambda job: job.created_at, reverse=True)

    def active_jobs(self) -> list[Job]:
        return [job for job in self.jobs() if not is_terminal(job.status)]

    def get(self, job_id: str) -> Job | None:
        return self._jobs.get(job_id)

    def snapshot(self) -> dict[str, Job]:
        return dict(self._jobs)

    def clear(self) -> None:
        self._jobs = {}
        self.version += 1

    def __len__(self) -> int:
        return len(self._jobs)

    def __contains__(self, job_id: object) -> bool:
        return job_id in self._jobs
