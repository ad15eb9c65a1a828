"""Client session: login, background job polling, and logout."""

from __future__ import annotations

from enum import Enum
import logging

from scribe_gateway.client.http import GatewayCallError, GatewayClient, SessionExpiryInterceptor
from scribe_gateway.client.job_store import JobStatusStore
from scribe_gateway.client.polling import DEFAULT_POLL_INTERVAL_SECONDS, PollingScheduler
from scribe_gateway.core.logging_safety import safe_log_identifier
from scribe_gateway.schemas.auth import LoginResponse
from scribe_gateway.schemas.job import SubmitJobResponse

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    LOGGED_OUT = "logged_out"
    ACTIVE = "active"
    EXPIRED = "expired"


class ClientSession:
    """Owns the job store and polling scheduler of one signed-in principal.

    The store exists only while the session is active and is discarded on
    logout or when any call comes back with 401.
    """

    def __init__(self, client: GatewayClient, *, poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS) -> None:
        self._client = client
        self._poll_interval = poll_interval
        self._client.add_interceptor(SessionExpiryInterceptor(self._on_session_expired))
        self.state = SessionState.LOGGED_OUT
        self.identity: LoginResponse | None = None
        self.store: JobStatusStore | None = None
        self.scheduler: PollingScheduler | None = None

    @property
    def active(self) -> bool:
        return self.state is SessionState.ACTIVE

    async def login(self, username: str, password: str) -> LoginResponse:
        if self.active:
            await self.logout()
        identity = await self._client.login(username, password)
        self._client.token = identity.access_token
        self.identity = identity
        self.store = JobStatusStore(owner_id=identity.user_id)
        self.state = SessionState.ACTIVE
        scheduler = PollingScheduler(self.refresh, interval=self._poll_interval)
        self.scheduler = scheduler
        await scheduler.tick()
        if self.scheduler is not scheduler:
            # The first refresh came back with 401.
            raise GatewayCallError("Session expired", 401)
        scheduler.start(immediate=False)
        logger.info("session.started principal_id=%s", safe_log_identifier(identity.user_id, prefix="pid"))
        return identity

    async def refresh(self) -> None:
        store = self.store
        if store is None:
            return
        jobs = await self._client.list_transcriptions()
        # The session may have ended while the request was in flight.
        if self.store is store:
            store.replace(jobs)

    def _require_active(self) -> None:
        if not self.active:
            raise GatewayCallError("Not authenticated", 401)

    async def submit(
        self,
        *,
        drive_link: str | None = None,
        audio: tuple[str, bytes] | None = None,
        start_time: str | None = None,
        end_time: str | None = None,
    ) -> SubmitJobResponse:
        self._require_active()
        result = await self._client.submit_transcription(
            drive_link=drive_link,
            audio=audio,
            start_time=start_time,
            end_time=end_time,
        )
        if self.scheduler is not None:
            await self.scheduler.tick()
        return result

    async def delete_job(self, job_id: str) -> None:
        self._require_active()
        await self._client.delete_transcription(job_id)
        if self.scheduler is not None:
            await self.scheduler.tick()

    async def logout(self) -> None:
        await self._end(SessionState.LOGGED_OUT)

    async def _on_session_expired(self) -> None:
        if self.active:
            await self._end(SessionState.EXPIRED)

    async def _end(self, state: SessionState) -> None:
        scheduler, self.scheduler = self.scheduler, None
        self.store = None
        self.identity = None
        self._client.token = None
        self.state = state
        if scheduler is not None:
            await scheduler.stop()
        logger.info("session.ended state=%s", state.value)
