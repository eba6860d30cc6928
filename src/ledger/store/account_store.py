from threading import Lock
from typing import Dict, Set


class AccountStore:
    """
    Per-account aggregates: withdrawable tips, reputation, badges and the
    voter sets. Callers hold the account/snippet keyed lock around
    read-modify-write sequences.
    """

    def __init__(self):
        self._balances: Dict[str, int] = {}
        self._reputation: Dict[str, int] = {}
        self._badges: Dict[str, int] = {}
        self._upvoted: Dict[str, Set[int]] = {}
        self._downvoted: Dict[str, Set[int]] = {}
        self._lock = Lock()

    # --- tips ---

    def balance(self, account: str) -> int:
        with self._lock:
            return self._balances.get(account, 0)

    def credit(self, account: str, amount: int) -> int:
        with self._lock:
            balance = self._balances.get(account, 0) + amount
            self._balances[account] = balance
            return balance

    def drain(self, account: str) -> int:
        """Zero the balance and return what it held."""
        with self._lock:
            return self._balances.pop(account, 0)

    # --- reputation ---

    def reputation(self, account: str) -> int:
        with self._lock:
            return self._reputation.get(account, 0)

    def set_reputation(self, account: str, value: int) -> None:
        with self._lock:
            self._reputation[account] = value

    # --- badges ---

    def badges(self, account: str) -> int:
        with self._lock:
            return self._badges.get(account, 0)

    def set_badge_bit(self, account: str, slot: int) -> int:
        with self._lock:
            bits = self._badges.get(account, 0) | (1 << slot)
            self._badges[account] = bits
            return bits

    # --- votes ---

    def has_upvoted(self, voter: str, snippet_id: int) -> bool:
        with self._lock:
            return snippet_id in self._upvoted.get(voter, ())

    def has_downvoted(self, voter: str, snippet_id: int) -> bool:
        with self._lock:
            return snippet_id in self._downvoted.get(voter, ())

    def record_upvote(self, voter: str, snippet_id: int) -> bool:
        """Record an upvote; returns True if it replaced a downvote."""
        with self._lock:
            replaced = snippet_id in self._downvoted.get(voter, ())
            if replaced:
                self._downvoted[voter].discard(snippet_id)
            self._upvoted.setdefault(voter, set()).add(snippet_id)
            return replaced

    def record_downvote(self, voter: str, snippet_id: int) -> bool:
        """Record a downvote; returns True if it replaced an upvote."""
        with self._lock:
            replaced = snippet_id in self._upvoted.get(voter, ())
            if replaced:
                self._upvoted[voter].discard(snippet_id)
            self._downvoted.setdefault(voter, set()).add(snippet_id)
            return replaced
