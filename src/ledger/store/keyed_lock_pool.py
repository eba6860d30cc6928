from contextlib import ExitStack, contextmanager
from threading import Lock, RLock
from typing import Dict, Hashable, Iterator, Tuple

LockKey = Tuple[str, Hashable]


class KeyedLockPool:
    """
    Lazily created re-entrant lock per key.
    Keys are (namespace, id) tuples. `hold` acquires several keys in one
    global order so compound operations cannot deadlock each other.
    """

    def __init__(self):
        self._locks: Dict[LockKey, RLock] = {}
        self._guard = Lock()

    def _lock_for(self, key: LockKey) -> RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, *keys: LockKey) -> Iterator[None]:
        ordered = sorted(set(keys), key=lambda k: (k[0], str(type(k[1])), k[1]))
        with ExitStack() as stack:
            for key in ordered:
                stack.enter_context(self._lock_for(key))
            yield

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


def account_key(account: str) -> LockKey:
    return ("account", account)


def snippet_key(snippet_id: int) -> LockKey:
    return ("snippet", snippet_id)


def hint_key(hint_id: int) -> LockKey:
    return ("hint", hint_id)


def language_key(language_id: str) -> LockKey:
    return ("language", language_id)
