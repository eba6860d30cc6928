from threading import Lock
from typing import List
from src.ledger.events.event_log import EventLog
from src.ledger.events.ledger_event import LedgerEvent

class InMemoryEventLog(EventLog):
    def __init__(self):
        self._events: List[LedgerEvent] = []
        self._lock = Lock()

    def record(self, event: LedgerEvent) -> None:
        with self._lock:
            self._events.append(event)

    def get_history(self) -> List[LedgerEvent]:
        with self._lock:
            return list(self._events)

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
