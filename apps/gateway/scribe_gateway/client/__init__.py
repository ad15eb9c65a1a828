"""Gateway client: HTTP pipeline, job status store and polling."""

from .http import GatewayCallError, GatewayClient, SessionExpiryInterceptor
from .job_store import JobStatusStore
from .polling import DEFAULT_POLL_INTERVAL_SECONDS, PollingScheduler
from .session import ClientSession, SessionState

__all__ = [
    "ClientSession",
    "DEFAULT_POLL_INTERVAL_SECONDS",
    "GatewayCallError",
    "GatewayClient",
    "JobStatusStore",
    "PollingScheduler",
    "SessionExpiryInterceptor",
    "SessionState",
]
