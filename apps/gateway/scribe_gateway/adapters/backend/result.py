"""Tagged results returned by the backend client."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from scribe_gateway.errors import BackendRejected, TransportFailure

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T
    status_code: int = 200


@dataclass(frozen=True, slots=True)
class Err:
    """A failed backend call.

    ``transport`` is true when the backend never produced a usable answer
    (unreachable, timed out, unreadable body); otherwise the backend rejected
    the call and ``status_code`` is its own status.
    """

    message: str
    status_code: int
    transport: bool = False

    def to_exception(self) -> BackendRejected | TransportFailure:
        if self.transport:
            return TransportFailure(self.message, status_code=self.status_code)
        return BackendRejected(self.message, status_code=self.status_code)


BackendResult = Ok[Any] | Err


def unwrap(result: Ok[T] | Err) -> T:
    """Return the success value or raise the matching gateway error."""
    if isinstance(result, Err):
        raise result.to_exception()
    return result.value


__all__ = ["BackendResult", "Err", "Ok", "unwrap"]
