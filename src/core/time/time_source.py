from abc import ABC, abstractmethod
from datetime import datetime

class TimeSource(ABC):
    """
    Abstract source of time.
    Ensures all time in the system is UTC-aware and controllable.
    """
    @abstractmethod
    def now(self) -> datetime:
        pass

    def now_millis(self) -> int:
        """Milliseconds since the epoch, as stamped on ledger records."""
        return int(self.now().timestamp() * 1000)
