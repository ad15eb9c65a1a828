"""In-memory backend state behind the stub backend used in tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from itertools import count
from secrets import token_urlsafe
import threading
from typing import Any

from scribe_gateway.domain.job_lifecycle import PIPELINE_ORDER, ensure_transition
from scribe_gateway.schemas.job import JobStatus
from scribe_gateway.schemas.prompt import PromptFamily


@dataclass(slots=True)
class UserRecord:
    id: str
    username: str
    password: str
    is_admin: bool
    created_at: datetime


@dataclass(slots=True)
class PromptRecord:
    id: str
    family: PromptFamily
    version: str
    body: str
    created_at: datetime


@dataclass(slots=True)
class JobRecord:
    id: str
    owner_id: str
    username: str
    status: JobStatus
    created_at: datetime
    updated_at: datetime
    drive_link: str | None = None
    filename: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    txt_path: str | None = None
    md_path: str | None = None
    document_path: str | None = None
    error_message: str | None = None


@dataclass(slots=True)
class ErrorLogRecord:
    id: str
    created_at: datetime
    error_message: str
    user_id: str | None = None
    transcription_id: str | None = None
    stack_trace: str | None = None


@dataclass(slots=True)
class InMemoryBackendStore:
    """Deterministic stand-in for the transcription backend's persistence.

    Prompt activation keeps a single active id per family, so readers always see
    exactly the previous or the new active record.
    """

    users: dict[str, UserRecord] = field(default_factory=dict)
    tokens: dict[str, str] = field(default_factory=dict)
    prompts: dict[PromptFamily, dict[str, PromptRecord]] = field(
        default_factory=lambda: {family: {} for family in PromptFamily}
    )
    active_prompt_ids: dict[PromptFamily, str | None] = field(
        default_factory=lambda: {family: None for family in PromptFamily}
    )
    jobs: dict[str, JobRecord] = field(default_factory=dict)
    error_logs: list[ErrorLogRecord] = field(default_factory=list)
    files: dict[tuple[str, str], bytes] = field(default_factory=dict)
    request_log: list[tuple[str, str]] = field(default_factory=list)
    _ids: Any = field(default_factory=lambda: count(1))
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def _next_id(self) -> str:
        return str(next(self._ids))

    # Users and sessions

    def create_user(self, username: str, password: str, *, is_admin: bool = False) -> UserRecord:
        with self._lock:
            if any(user.username == username for user in self.users.values()):
                raise ValueError("Username already exists")
            user = UserRecord(
                id=self._next_id(),
                username=username,
                password=password,
                is_admin=is_admin,
                created_at=datetime.now(UTC),
            )
            self.users[user.id] = user
            return user

    def delete_user(self, user_id: str) -> bool:
        with self._lock:
            user = self.users.pop(user_id, None)
            if user is None:
                return False
            for token in [token for token, owner in self.tokens.items() if owner == user_id]:
                del self.tokens[token]
            return True

    def authenticate(self, username: str, password: str) -> tuple[str, UserRecord] | None:
        for user in self.users.values():
            if user.username == username and user.password == password:
                token = token_urlsafe(24)
                self.tokens[token] = user.id
                return token, user
        return None

    def user_for_token(self, token: str) -> UserRecord | None:
        user_id = self.tokens.get(token)
        return self.users.get(user_id) if user_id is not None else None

    # Prompt families

    def create_prompt(self, family: PromptFamily, version: str, body: str) -> PromptRecord:
        with self._lock:
            record = PromptRecord(
                id=self._next_id(),
                family=family,
                version=version,
                body=body,
                created_at=datetime.now(UTC),
            )
            self.prompts[family][record.id] = record
            return record

    def list_prompts(self, family: PromptFamily) -> list[PromptRecord]:
        return sorted(self.prompts[family].values(), key=lambda record: record.created_at)

    def get_active_prompt(self, family: PromptFamily) -> PromptRecord | None:
        active_id = self.active_prompt_ids[family]
        return self.prompts[family].get(active_id) if active_id is not None else None

    def set_active_prompt(self, family: PromptFamily, prompt_id: str) -> bool:
        with self._lock:
            if prompt_id not in self.prompts[family]:
                return False
            self.active_prompt_ids[family] = prompt_id
            return True

    def prompt_payload(self, record: PromptRecord) -> dict[str, Any]:
        return {
            "id": record.id,
            "version": record.version,
            "prompt": record.body,
            "created_at": record.created_at.isoformat(),
            "is_active": self.active_prompt_ids[record.family] == record.id,
        }

    # Jobs

    def create_job(
        self,
        owner: UserRecord,
        *,
        drive_link: str | None = None,
        filename: str | None = None,
        start_time: str | None = None,
        end_time: str | None = None,
    ) -> JobRecord:
        with self._lock:
            now = datetime.now(UTC)
            job = JobRecord(
                id=self._next_id(),
                owner_id=owner.id,
                username=owner.username,
                status=JobStatus.SUBMITTED,
                created_at=now,
                updated_at=now,
                drive_link=drive_link,
                filename=filename,
                start_time=start_time,
                end_time=end_time,
            )
            self.jobs[job.id] = job
            return job

    def transition_job_status(self, job_id: str, new_status: JobStatus) -> JobRecord:
        """Apply one lifecycle step; completing or failing a job goes through ``complete_job``/``fail_job``."""
        with self._lock:
            job = self.jobs[job_id]
            ensure_transition(job.status, new_status)
            job.status = new_status
            job.updated_at = datetime.now(UTC)
            return job

    def advance_job(self, job_id: str, target: JobStatus) -> JobRecord:
        """Step a job through every intermediate stage up to ``target``."""
        job = self.jobs[job_id]
        while job.status != target:
            next_status = PIPELINE_ORDER[PIPELINE_ORDER.index(job.status) + 1]
            if next_status is JobStatus.COMPLETED:
                raise ValueError("use complete_job to finish a job")
            self.transition_job_status(job_id, next_status)
        return job

    def complete_job(self, job_id: str, *, text: str) -> JobRecord:
        self.advance_job(job_id, JobStatus.CONVERTING)
        job = self.transition_job_status(job_id, JobStatus.COMPLETED)
        with self._lock:
            job.txt_path = f"transcription_{job.id}.txt"
            job.md_path = f"transcription_{job.id}.md"
            job.document_path = f"transcription_{job.id}.docx"
            self.files[(job.username, job.txt_path)] = text.encode("utf-8")
            self.files[(job.username, job.md_path)] = f"# Transcription {job.id}\n\n{text}\n".encode("utf-8")
            # Minimal zip container header; enough for byte-level download checks.
            self.files[(job.username, job.document_path)] = b"PK\x03\x04" + text.encode("utf-8")
        return job

    def fail_job(self, job_id: str, *, message: str, stack_trace: str | None = None) -> JobRecord:
        job = self.transition_job_status(job_id, JobStatus.ERROR)
        with self._lock:
            job.error_message = message
            self.error_logs.append(
                ErrorLogRecord(
                    id=self._next_id(),
                    created_at=datetime.now(UTC),
                    error_message=message,
                    user_id=job.owner_id,
                    transcription_id=job.id,
                    stack_trace=stack_trace,
                )
            )
        return job

    def delete_job(self, job_id: str) -> bool:
        with self._lock:
            job = self.jobs.pop(job_id, None)
            if job is None:
                return False
            for path in (job.txt_path, job.md_path, job.document_path):
                if path:
                    self.files.pop((job.username, path), None)
            return True

    def list_jobs(self, owner_id: str | None = None) -> list[JobRecord]:
        jobs = [job for job in self.jobs.values() if owner_id is None or job.owner_id == owner_id]
        jobs.sort(key=lambda job: job.created_at)
        return jobs

    @staticmethod
    def job_payload(job: JobRecord) -> dict[str, Any]:
        return {
            "id": job.id,
            "user_id": job.owner_id,
            "username": job.username,
            "created_at": job.created_at.isoformat(),
            "updated_at": job.updated_at.isoformat(),
            "status": job.status.value,
            "drive_link": job.drive_link,
            "filename": job.filename,
            "txt_path": job.txt_path,
            "md_path": job.md_path,
            "document_path": job.document_path,
            "error_message": job.error_message,
        }

    def stats(self) -> dict[str, int]:
        return {
            "total_users": len(self.users),
            "total_transcriptions": len(self.jobs),
            "total_errors": len(self.error_logs),
        }
