"""Canonical cache-key encoding.

One encoder for every query shape: parameters are sorted by name, `None` values are
dropped, and values are normalized so the same logical query always produces the
same key regardless of argument order or letter case in text filters.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from urllib.parse import quote


JOBS_LIST = "jobs:list"
JOBS_DETAIL = "jobs:detail"
APPLICANTS_LIST = "applicants:list"


def _normalize(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, str):
        return value.strip().lower()
    return str(value)


def build_cache_key(namespace: str, **params: Any) -> str:
    parts: list[str] = []
    for name in sorted(params):
        value = params[name]
        if value is None:
            continue
        normalized = _normalize(value)
        if normalized == "":
            continue
        parts.append(f"{name}={quote(normalized, safe='')}")
    if not parts:
        return namespace
    return f"{namespace}:{'&'.join(parts)}"


def versioned_key(namespace: str, generation: int, **params: Any) -> str:
    """Key for `params` inside `namespace` at `generation`."""
    return build_cache_key(namespace, **params) + f"#{generation}"


def job_detail_namespace(job_id: int) -> str:
    # Each job is its own namespace so its detail entry is invalidated by generation too.
    return build_cache_key(JOBS_DETAIL, id=job_id)
