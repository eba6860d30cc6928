from datetime import datetime, timezone
from threading import Lock
from typing import Optional
from src.core.time.time_source import TimeSource

class SystemTimeSource(TimeSource):
    """
    Production time source using system clock.
    Returns UTC-aware datetimes that never go backwards, even if the
    wall clock is adjusted between calls.
    """
    def __init__(self):
        self._last: Optional[datetime] = None
        self._lock = Lock()

    def now(self) -> datetime:
        current = datetime.now(timezone.utc)
        with self._lock:
            if self._last is not None and current < self._last:
                return self._last
            self._last = current
            return current
