from dataclasses import dataclass
from typing import Optional

NO_SNIPPET = 0

@dataclass(frozen=True)
class HintRequest:
    """
    A request for a hint on a topic, optionally tied to a snippet.
    Once fulfilled the record never changes again.
    """
    id: int
    requester: str
    topic_hash: str
    snippet_id: int  # NO_SNIPPET when not linked
    created_at: int
    fulfilled: bool = False
    fulfiller: Optional[str] = None
    fulfilled_at: int = 0

    @property
    def open(self) -> bool:
        return not self.fulfilled
