from abc import ABC, abstractmethod
from typing import List, Type
from src.ledger.events.ledger_event import LedgerEvent

class EventLog(ABC):
    """
    Append-only log of ledger events.
    Audit/read only: the engine never consults it for its own decisions.
    """
    @abstractmethod
    def record(self, event: LedgerEvent) -> None:
        pass

    @abstractmethod
    def get_history(self) -> List[LedgerEvent]:
        pass

    def of_type(self, event_type: Type) -> List[LedgerEvent]:
        return [e for e in self.get_history() if isinstance(e, event_type)]
