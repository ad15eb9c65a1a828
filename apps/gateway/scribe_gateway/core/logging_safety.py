"""Utilities for safe structured logging fields."""

from __future__ import annotations

import hashlib
from typing import Any

_STATIC_PATH_SEGMENTS = frozenset(
    {
        "login",
        "admin",
        "users",
        "settings",
        "transcriptions",
        "stats",
        "logs",
        "process",
        "download",
        "user-files",
        "txt",
        "md",
        "word",
    }
)


def safe_log_identifier(value: Any, *, prefix: str) -> str:
    """Return a deterministic non-reversible token for log correlation fields."""
    text = str(value or "").strip()
    if not text:
        return f"{prefix}-missing"

    digest = hashlib.sha256(text.encode("utf-8")).hexdigest()[:12]
    return f"{prefix}-{digest}"


def safe_backend_path(path: str) -> str:
    """Replace ids, usernames and filenames in a backend path with ``:param``."""
    segments = []
    for segment in path.split("?", 1)[0].strip("/").split("/"):
        if segment in _STATIC_PATH_SEGMENTS or segment.endswith(("-prompts", "-prompt")):
            segments.append(segment)
        elif segment:
            segments.append(":param")
    return "/" + "/".join(segments)
