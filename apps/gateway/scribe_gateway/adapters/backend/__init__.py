"""Backend service adapter."""

from .client import BackendClient, BackendStream, path_segment
from .result import BackendResult, Err, Ok, unwrap

__all__ = ["BackendClient", "BackendResult", "BackendStream", "Err", "Ok", "path_segment", "unwrap"]
