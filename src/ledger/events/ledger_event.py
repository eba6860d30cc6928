from dataclasses import dataclass
from typing import ClassVar, Union

# One immutable record per mutating ledger operation.
# `at` is the engine clock in ms since epoch.


@dataclass(frozen=True)
class SnippetSubmitted:
    event_type: ClassVar[str] = "SNIPPET_SUBMITTED"
    snippet_id: int
    author: str
    content_hash: str
    language_id: str
    at: int


@dataclass(frozen=True)
class SnippetUpdated:
    event_type: ClassVar[str] = "SNIPPET_UPDATED"
    snippet_id: int
    author: str
    content_hash: str
    at: int


@dataclass(frozen=True)
class SnippetDeleted:
    event_type: ClassVar[str] = "SNIPPET_DELETED"
    snippet_id: int
    author: str
    at: int


@dataclass(frozen=True)
class SnippetTipped:
    event_type: ClassVar[str] = "SNIPPET_TIPPED"
    snippet_id: int
    tipper: str
    author: str
    amount: int
    to_author: int
    fee: int
    at: int


@dataclass(frozen=True)
class TipsWithdrawn:
    event_type: ClassVar[str] = "TIPS_WITHDRAWN"
    author: str
    amount: int
    at: int


@dataclass(frozen=True)
class TreasuryFeesWithdrawn:
    event_type: ClassVar[str] = "TREASURY_FEES_WITHDRAWN"
    treasury: str
    amount: int
    at: int


@dataclass(frozen=True)
class HintRequested:
    event_type: ClassVar[str] = "HINT_REQUESTED"
    hint_id: int
    requester: str
    topic_hash: str
    snippet_id: int
    at: int


@dataclass(frozen=True)
class HintFulfilled:
    event_type: ClassVar[str] = "HINT_FULFILLED"
    hint_id: int
    fulfiller: str
    at: int


@dataclass(frozen=True)
class LanguageRegistered:
    event_type: ClassVar[str] = "LANGUAGE_REGISTERED"
    language_id: str
    curator: str
    at: int


@dataclass(frozen=True)
class ReputationUpvote:
    event_type: ClassVar[str] = "REPUTATION_UPVOTE"
    snippet_id: int
    voter: str
    new_score: int
    at: int


@dataclass(frozen=True)
class ReputationDownvote:
    event_type: ClassVar[str] = "REPUTATION_DOWNVOTE"
    snippet_id: int
    voter: str
    new_score: int
    at: int


@dataclass(frozen=True)
class PauseToggled:
    event_type: ClassVar[str] = "PAUSE_TOGGLED"
    paused: bool
    curator: str
    at: int


@dataclass(frozen=True)
class BadgeAwarded:
    event_type: ClassVar[str] = "BADGE_AWARDED"
    account: str
    slot: int
    badges: int  # bitset after the award
    at: int


@dataclass(frozen=True)
class SnippetTagged:
    event_type: ClassVar[str] = "SNIPPET_TAGGED"
    snippet_id: int
    tag_hash: str
    at: int


LedgerEvent = Union[
    SnippetSubmitted,
    SnippetUpdated,
    SnippetDeleted,
    SnippetTipped,
    TipsWithdrawn,
    TreasuryFeesWithdrawn,
    HintRequested,
    HintFulfilled,
    LanguageRegistered,
    ReputationUpvote,
    ReputationDownvote,
    PauseToggled,
    BadgeAwarded,
    SnippetTagged,
]
