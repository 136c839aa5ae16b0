"""Structured exception hierarchy for svcmap.

All svcmap domain exceptions extend ``SvcMapError``. The topology builder
catches the per-field lookup errors (time arithmetic, alarm queries) and
logs them; everything else propagates to the caller.
"""

from __future__ import annotations

from typing import Any


class SvcMapError(Exception):
    """Base exception for all svcmap domain errors."""

    error_type: str = "urn:svcmap:error"
    title: str = "svcmap Error"

    def __init__(
        self,
        detail: str = "",
        *,
        extra: dict[str, Any] | None = None,
    ) -> None:
        self.detail = detail or self.title
        self.extra = extra or {}
        super().__init__(self.detail)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "type": self.error_type,
            "title": self.title,
            "detail": self.detail,
        }
        if self.extra:
            body.update(self.extra)
        return body


class TimeBucketError(SvcMapError):
    error_type = "urn:svcmap:error:time-bucket"
    title = "Invalid Time Bucket"


class AlarmQueryError(SvcMapError):
    error_type = "urn:svcmap:error:alarm-query"
    title = "Alarm Query Failed"


class SnapshotError(SvcMapError):
    error_type = "urn:svcmap:error:snapshot"
    title = "Invalid Snapshot"
