from collections import deque
from dataclasses import replace
from threading import Lock
from typing import Deque, Dict, List, Optional

from src.ledger.domain.snippet import Snippet


class SnippetStore:
    """
    In-memory store for snippets and the indexes derived from them:
    per-author active ids, content-hash lookup, language registry and the
    bounded recent queue.

    Single map operations are safe on their own. Read-check-write sequences
    must be wrapped by the caller in the matching keyed lock.
    """

    def __init__(self, recent_capacity: int):
        self._snippets: Dict[int, Snippet] = {}
        self._active_by_author: Dict[str, List[int]] = {}
        self._by_content_hash: Dict[str, List[int]] = {}
        self._languages: Dict[str, int] = {}
        self._recent: Deque[int] = deque(maxlen=recent_capacity)
        self._next_id = 1
        self._lock = Lock()
        self._recent_lock = Lock()

    # --- ids & records ---

    def allocate_id(self) -> int:
        with self._lock:
            snippet_id = self._next_id
            self._next_id += 1
            return snippet_id

    @property
    def total(self) -> int:
        with self._lock:
            return self._next_id - 1

    def add(self, snippet: Snippet) -> None:
        with self._lock:
            self._snippets[snippet.id] = snippet
            self._active_by_author.setdefault(snippet.author, []).append(snippet.id)
            self._by_content_hash.setdefault(snippet.content_hash, []).append(snippet.id)

    def get(self, snippet_id: int) -> Optional[Snippet]:
        with self._lock:
            return self._snippets.get(snippet_id)

    def put(self, snippet: Snippet) -> None:
        """Swap in a changed version of an existing snippet."""
        with self._lock:
            previous = self._snippets[snippet.id]
            self._snippets[snippet.id] = snippet
            if previous.content_hash != snippet.content_hash:
                self._unindex_hash(previous.content_hash, snippet.id)
                self._by_content_hash.setdefault(snippet.content_hash, []).append(snippet.id)
            if snippet.deleted and not previous.deleted:
                ids = self._active_by_author.get(snippet.author, [])
                if snippet.id in ids:
                    ids.remove(snippet.id)

    def update(self, snippet_id: int, **changes) -> Snippet:
        with self._lock:
            current = self._snippets[snippet_id]
        updated = replace(current, **changes)
        self.put(updated)
        return updated

    def _unindex_hash(self, content_hash: str, snippet_id: int) -> None:
        ids = self._by_content_hash.get(content_hash)
        if not ids:
            return
        if snippet_id in ids:
            ids.remove(snippet_id)
        if not ids:
            del self._by_content_hash[content_hash]

    def active_ids_by_author(self, author: str) -> List[int]:
        with self._lock:
            return list(self._active_by_author.get(author, []))

    def active_count_by_author(self, author: str) -> int:
        with self._lock:
            return len(self._active_by_author.get(author, []))

    def ids_by_content_hash(self, content_hash: str) -> List[int]:
        with self._lock:
            return list(self._by_content_hash.get(content_hash, []))

    # --- languages ---

    def register_language(self, language_id: str) -> bool:
        with self._lock:
            if language_id in self._languages:
                return False
            self._languages[language_id] = 0
            return True

    def is_language_registered(self, language_id: str) -> bool:
        with self._lock:
            return language_id in self._languages

    def adjust_language_count(self, language_id: str, delta: int) -> int:
        with self._lock:
            count = max(0, self._languages.get(language_id, 0) + delta)
            self._languages[language_id] = count
            return count

    def language_count(self, language_id: str) -> int:
        with self._lock:
            return self._languages.get(language_id, 0)

    def registered_languages(self) -> List[str]:
        with self._lock:
            return list(self._languages.keys())

    # --- recent queue ---

    def push_recent(self, snippet_id: int) -> None:
        # Newest at the front; the deque's maxlen drops the oldest from the tail.
        with self._recent_lock:
            self._recent.appendleft(snippet_id)

    def recent_ids(self) -> List[int]:
        with self._recent_lock:
            return list(self._recent)
