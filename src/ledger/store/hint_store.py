from dataclasses import replace
from threading import Lock
from typing import Dict, List, Optional

from src.ledger.domain.hint_request import HintRequest


class HintStore:
    """
    In-memory store for hint requests, indexed by requester.
    """

    def __init__(self):
        self._hints: Dict[int, HintRequest] = {}
        self._by_requester: Dict[str, List[int]] = {}
        self._next_id = 1
        self._lock = Lock()

    def allocate_id(self) -> int:
        with self._lock:
            hint_id = self._next_id
            self._next_id += 1
            return hint_id

    @property
    def total(self) -> int:
        with self._lock:
            return self._next_id - 1

    def add(self, hint: HintRequest) -> None:
        with self._lock:
            self._hints[hint.id] = hint
            self._by_requester.setdefault(hint.requester, []).append(hint.id)

    def get(self, hint_id: int) -> Optional[HintRequest]:
        with self._lock:
            return self._hints.get(hint_id)

    def update(self, hint_id: int, **changes) -> HintRequest:
        with self._lock:
            updated = replace(self._hints[hint_id], **changes)
            self._hints[hint_id] = updated
            return updated

    def ids_by_requester(self, requester: str) -> List[int]:
        with self._lock:
            return list(self._by_requester.get(requester, []))

    def open_ids_by_requester(self, requester: str) -> List[int]:
        with self._lock:
            return [
                hint_id for hint_id in self._by_requester.get(requester, [])
                if self._hints[hint_id].open
            ]

    def open_ids(self) -> List[int]:
        with self._lock:
            return [hint_id for hint_id, hint in self._hints.items() if hint.open]
