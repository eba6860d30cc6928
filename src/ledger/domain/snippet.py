from dataclasses import dataclass, field
from typing import Tuple

@dataclass(frozen=True)
class Snippet:
    """
    Immutable view of a stored code snippet.
    Content is never kept, only its digest. The store swaps in a new
    instance on every change.
    """
    id: int
    author: str
    content_hash: str
    language_id: str
    created_at: int  # ms since epoch
    updated_at: int
    tip_balance: int = 0
    reputation: int = 0
    deleted: bool = False
    tags: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def active(self) -> bool:
        return not self.deleted
