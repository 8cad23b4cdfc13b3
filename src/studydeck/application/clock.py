"""Wall-clock source shared by the scheduler and the accumulator."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
