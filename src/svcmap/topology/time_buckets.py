"""Time bucket arithmetic.

A time bucket is a timestamp packed into digits at the granularity of its
step, e.g. ``20180130121530`` at second step or ``201801301215`` at minute
step.
"""

from __future__ import annotations

from datetime import datetime

import structlog

from svcmap.exceptions import TimeBucketError
from svcmap.topology.models import Step
from svcmap.topology.services import ApplicationCacheService, DateBetweenService

logger = structlog.get_logger()

_FORMATS: dict[Step, str] = {
    Step.MONTH: "%Y%m",
    Step.DAY: "%Y%m%d",
    Step.HOUR: "%Y%m%d%H",
    Step.MINUTE: "%Y%m%d%H%M",
    Step.SECOND: "%Y%m%d%H%M%S",
}

_DIGITS: dict[Step, int] = {
    Step.MONTH: 6,
    Step.DAY: 8,
    Step.HOUR: 10,
    Step.MINUTE: 12,
    Step.SECOND: 14,
}


def parse_time_bucket(time_bucket: int, step: Step = Step.SECOND) -> datetime:
    """Parse a time bucket into a naive datetime."""
    text = str(time_bucket)
    if len(text) != _DIGITS[step]:
        raise TimeBucketError(
            f"Time bucket {time_bucket} does not match {step} granularity",
            extra={"time_bucket": time_bucket, "step": str(step)},
        )
    try:
        return datetime.strptime(text, _FORMATS[step])
    except ValueError as e:
        raise TimeBucketError(
            f"Unparseable time bucket {time_bucket}: {e}",
            extra={"time_bucket": time_bucket, "step": str(step)},
        ) from e


def to_time_bucket(value: datetime, step: Step = Step.SECOND) -> int:
    return int(value.strftime(_FORMATS[step]))


class TimeBucketDateBetweenService(DateBetweenService):
    """Minutes between two second time buckets.

    When the application cache knows when an application registered, the
    window start is moved up to that moment so young applications are not
    diluted by minutes in which they did not exist yet. The result is never
    below one minute.
    """

    def __init__(self, application_cache: ApplicationCacheService | None = None) -> None:
        self._application_cache = application_cache

    def minutes_between(
        self,
        application_id: int,
        start_second_time_bucket: int,
        end_second_time_bucket: int,
    ) -> int:
        start = parse_time_bucket(start_second_time_bucket)
        end = parse_time_bucket(end_second_time_bucket)

        register_time = self._register_time(application_id)
        if register_time is not None and register_time > start:
            start = register_time

        minutes = int((end - start).total_seconds() // 60)
        return max(minutes, 1)

    def _register_time(self, application_id: int) -> datetime | None:
        if self._application_cache is None:
            return None
        application = self._application_cache.get_application_by_id(application_id)
        if application is None or application.register_time_bucket is None:
            return None
        return parse_time_bucket(application.register_time_bucket)
