from datetime import datetime, timezone, timedelta
from typing import Callable, Optional

# A clock returns the current instant as a timezone-aware UTC datetime.
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_db_time(dt: Optional[datetime]) -> Optional[datetime]:
    """Normalize a datetime for storage in a DATETIME column.

    Columns hold naive UTC values (MySQL DATETIME and SQLite both drop the
    offset), so aware values are converted to UTC and stripped. Naive values
    are assumed to already be UTC.
    """
    if dt is None:
        return None
    if getattr(dt, 'tzinfo', None) is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def from_db_time(dt: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to a naive value read back from the database."""
    if dt is None:
        return None
    if getattr(dt, 'tzinfo', None) is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_epoch_seconds(dt: datetime) -> int:
    return int(from_db_time(dt).timestamp())


def add_seconds(dt: datetime, seconds: int) -> datetime:
    return dt + timedelta(seconds=seconds)


class FrozenClock:
    """Settable clock for tests and scripts that need a fixed ``now``."""

    def __init__(self, now: Optional[datetime] = None):
        self.now = from_db_time(now) if now is not None else utc_now()

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int) -> datetime:
        self.now = add_seconds(self.now, seconds)
        return self.now
