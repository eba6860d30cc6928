from contextlib import contextmanager
from threading import Condition, Lock
from typing import List, Optional, Sequence, Union

from src.config.settings import LedgerSettings, settings as default_settings
from src.core.hashing.content_digester import ContentDigester, Sha256ContentDigester
from src.core.time.system_time_source import SystemTimeSource
from src.core.time.time_source import TimeSource
from src.ledger.domain.exceptions import LedgerError, LedgerErrorKind
from src.ledger.domain.hint_request import NO_SNIPPET, HintRequest
from src.ledger.domain.ledger_config import LedgerConfig
from src.ledger.domain.ledger_stats import LedgerStats, TipReceipt
from src.ledger.domain.snippet import Snippet
from src.ledger.events.event_log import EventLog
from src.ledger.events.in_memory_event_log import InMemoryEventLog
from src.ledger.events.ledger_event import (
    BadgeAwarded,
    HintFulfilled,
    HintRequested,
    LanguageRegistered,
    LedgerEvent,
    PauseToggled,
    ReputationDownvote,
    ReputationUpvote,
    SnippetDeleted,
    SnippetSubmitted,
    SnippetTagged,
    SnippetTipped,
    SnippetUpdated,
    TipsWithdrawn,
    TreasuryFeesWithdrawn,
)
from src.ledger.logging.structured_ledger_logger import StructuredLedgerLogger
from src.ledger.store.account_store import AccountStore
from src.ledger.store.hint_store import HintStore
from src.ledger.store.keyed_lock_pool import (
    KeyedLockPool,
    account_key,
    hint_key,
    language_key,
    snippet_key,
)
from src.ledger.store.snippet_store import SnippetStore

BUILTIN_LANGUAGES = ("python", "javascript", "solidity", "rust")

REPUTATION_UP_DELTA = 1
REPUTATION_DOWN_DELTA = 1

Payload = Union[str, bytes]


def _as_bytes(value: Payload) -> bytes:
    if isinstance(value, bytes):
        return value
    return value.encode("utf-8")


class SnippetLedgerEngine:
    """
    In-memory ledger of code snippets, tips, hint requests, reputation and badges.

    Every mutating operation validates first, then mutates under the keyed
    locks of the records it touches and appends one event to the event log
    before releasing them, so per-record event order matches mutation order.
    Reads never raise domain errors; unknown keys give empty/zero defaults.
    """

    def __init__(
            self,
            curator: Optional[str] = None,
            treasury: Optional[str] = None,
            fulfiller: Optional[str] = None,
            *,
            settings: Optional[LedgerSettings] = None,
            time_source: Optional[TimeSource] = None,
            digester: Optional[ContentDigester] = None,
            event_log: Optional[EventLog] = None,
            logger: Optional[StructuredLedgerLogger] = None,
    ):
        settings = settings or default_settings
        self.time_source = time_source or SystemTimeSource()
        self.digester = digester or Sha256ContentDigester()
        self.event_log = event_log or InMemoryEventLog()
        self.logger = logger or StructuredLedgerLogger()

        self._config = LedgerConfig.from_settings(
            settings,
            curator=self._require_identity("curator", curator, settings.CURATOR),
            treasury=self._require_identity("treasury", treasury, settings.TREASURY),
            fulfiller=self._require_identity("fulfiller", fulfiller, settings.FULFILLER),
        )

        self._snippets = SnippetStore(recent_capacity=self._config.recent_queue_size)
        self._hints = HintStore()
        self._accounts = AccountStore()
        self._locks = KeyedLockPool()

        self._paused = False
        self._pause_gate = Condition()
        self._in_flight = 0
        self._toggling = False

        self._counters_lock = Lock()
        self._total_tips_received = 0
        self._total_tips_withdrawn = 0
        self._total_treasury_fees = 0
        self._total_treasury_withdrawn = 0

        for name in BUILTIN_LANGUAGES:
            self._snippets.register_language(self.language_id_for(name))

    # --- helpers ---

    def _require_identity(self, role: str, provided: Optional[str], fallback: str) -> str:
        identity = fallback if provided is None else provided
        if not identity or not identity.strip():
            error = LedgerError(LedgerErrorKind.ZERO_ADDRESS, role)
            self.logger.rejected("construct", error, role=role)
            raise error
        return identity

    def _rejection(self, operation: str, kind: LedgerErrorKind, **fields) -> LedgerError:
        error = LedgerError(kind)
        self.logger.rejected(operation, error, **fields)
        return error

    def _record(self, event: LedgerEvent) -> None:
        self.event_log.record(event)
        self.logger.event(event)

    def _now(self) -> int:
        return self.time_source.now_millis()

    @staticmethod
    def _same_role(caller: Optional[str], role: str) -> bool:
        return bool(caller) and caller.lower() == role.lower()

    def _require_curator(self, operation: str, caller: str) -> None:
        if not self._same_role(caller, self._config.curator):
            raise self._rejection(operation, LedgerErrorKind.CURATOR_ONLY, caller=caller)

    @contextmanager
    def _unpaused(self, operation: str):
        # Pause-gated mutations run inside this; set_paused drains them first.
        with self._pause_gate:
            self._pause_gate.wait_for(lambda: not self._toggling)
            if self._paused:
                raise self._rejection(operation, LedgerErrorKind.PAUSED)
            self._in_flight += 1
        try:
            yield
        finally:
            with self._pause_gate:
                self._in_flight -= 1
                if self._in_flight == 0:
                    self._pause_gate.notify_all()

    def _existing_snippet(self, operation: str, snippet_id: int) -> Snippet:
        snippet = self._snippets.get(snippet_id)
        if snippet is None:
            raise self._rejection(operation, LedgerErrorKind.INVALID_SNIPPET_ID, snippet_id=snippet_id)
        return snippet

    def _live_snippet(self, operation: str, snippet_id: int) -> Snippet:
        snippet = self._existing_snippet(operation, snippet_id)
        if snippet.deleted:
            raise self._rejection(operation, LedgerErrorKind.SNIPPET_DELETED, snippet_id=snippet_id)
        return snippet

    def _recompute_reputation(self, author: str) -> int:
        # Caller holds the author's account lock.
        total = 0
        for snippet_id in self._snippets.active_ids_by_author(author):
            snippet = self._snippets.get(snippet_id)
            if snippet is not None and snippet.active:
                total += snippet.reputation
        self._accounts.set_reputation(author, total)
        return total

    def language_id_for(self, name: str) -> str:
        return self.digester.digest_text(name)

    # --- snippets ---

    def submit_snippet(self, author: str, content: Payload, language_id: str, title: Optional[Payload] = None) -> int:
        op = "submit_snippet"
        with self._unpaused(op):
            body = _as_bytes(content)
            if len(body) > self._config.max_snippet_bytes:
                raise self._rejection(op, LedgerErrorKind.SNIPPET_TOO_LONG, author=author, size=len(body))
            if title is not None and len(_as_bytes(title)) > self._config.max_title_bytes:
                raise self._rejection(op, LedgerErrorKind.TITLE_TOO_LONG, author=author)
            if not self._snippets.is_language_registered(language_id):
                raise self._rejection(op, LedgerErrorKind.LANGUAGE_NOT_REGISTERED, language_id=language_id)

            with self._locks.hold(account_key(author), language_key(language_id)):
                if self._snippets.active_count_by_author(author) >= self._config.max_snippets_per_author:
                    raise self._rejection(op, LedgerErrorKind.AUTHOR_SNIPPET_CAP, author=author)
                now = self._now()
                snippet = Snippet(
                    id=self._snippets.allocate_id(),
                    author=author,
                    content_hash=self.digester.digest(body),
                    language_id=language_id,
                    created_at=now,
                    updated_at=now,
                )
                self._snippets.add(snippet)
                self._snippets.adjust_language_count(language_id, 1)
                self._snippets.push_recent(snippet.id)
                self._record(SnippetSubmitted(
                    snippet_id=snippet.id,
                    author=author,
                    content_hash=snippet.content_hash,
                    language_id=language_id,
                    at=now,
                ))
        return snippet.id

    def update_snippet(self, snippet_id: int, author: str, new_content: Payload) -> Snippet:
        op = "update_snippet"
        with self._unpaused(op), self._locks.hold(snippet_key(snippet_id)):
            snippet = self._live_snippet(op, snippet_id)
            if snippet.author != author:
                raise self._rejection(op, LedgerErrorKind.NOT_AUTHOR, snippet_id=snippet_id, caller=author)
            body = _as_bytes(new_content)
            if len(body) > self._config.max_snippet_bytes:
                raise self._rejection(op, LedgerErrorKind.SNIPPET_TOO_LONG, snippet_id=snippet_id, size=len(body))
            updated = self._snippets.update(
                snippet_id,
                content_hash=self.digester.digest(body),
                updated_at=self._now(),
            )
            self._record(SnippetUpdated(
                snippet_id=snippet_id,
                author=author,
                content_hash=updated.content_hash,
                at=updated.updated_at,
            ))
        return updated

    def delete_snippet(self, snippet_id: int, author: str) -> None:
        op = "delete_snippet"
        snippet = self._existing_snippet(op, snippet_id)
        with self._locks.hold(
                snippet_key(snippet_id),
                account_key(snippet.author),
                language_key(snippet.language_id),
        ):
            snippet = self._live_snippet(op, snippet_id)
            if snippet.author != author:
                raise self._rejection(op, LedgerErrorKind.NOT_AUTHOR, snippet_id=snippet_id, caller=author)
            self._snippets.update(snippet_id, deleted=True)
            self._snippets.adjust_language_count(snippet.language_id, -1)
            self._recompute_reputation(snippet.author)
            self._record(SnippetDeleted(snippet_id=snippet_id, author=author, at=self._now()))

    def add_snippet_tag(self, snippet_id: int, tag_hash: str, author: str) -> bool:
        op = "add_snippet_tag"
        with self._locks.hold(snippet_key(snippet_id)):
            snippet = self._live_snippet(op, snippet_id)
            if snippet.author != author:
                raise self._rejection(op, LedgerErrorKind.NOT_AUTHOR, snippet_id=snippet_id, caller=author)
            if len(snippet.tags) >= self._config.max_tags_per_snippet or tag_hash in snippet.tags:
                return False
            self._snippets.update(snippet_id, tags=snippet.tags + (tag_hash,))
            self._record(SnippetTagged(snippet_id=snippet_id, tag_hash=tag_hash, at=self._now()))
        return True

    def submit_snippet_batch(
            self,
            author: str,
            contents: Sequence[Payload],
            language_id: str,
            titles: Optional[Sequence[Optional[Payload]]] = None,
    ) -> List[int]:
        """
        Submit up to `max_submit_batch` snippets in order.
        Not atomic: stops at the first failing entry and returns the ids
        created before it.
        """
        op = "submit_snippet_batch"
        if titles is not None and len(titles) != len(contents):
            raise self._rejection(op, LedgerErrorKind.INVALID_BATCH, author=author)
        if len(contents) > self._config.max_submit_batch:
            raise self._rejection(op, LedgerErrorKind.INVALID_BATCH, author=author, size=len(contents))

        created: List[int] = []
        for index, content in enumerate(contents):
            title = titles[index] if titles is not None else None
            try:
                created.append(self.submit_snippet(author, content, language_id, title))
            except LedgerError as e:
                self.logger.emit(
                    "SUBMIT_BATCH_STOPPED",
                    author=author,
                    index=index,
                    kind=e.kind.name,
                    submitted=len(created),
                )
                break
        return created

    # --- tips ---

    def tip_snippet(self, snippet_id: int, tipper: str, amount: int) -> TipReceipt:
        op = "tip_snippet"
        with self._unpaused(op):
            if amount < self._config.min_tip:
                raise self._rejection(op, LedgerErrorKind.TIP_TOO_SMALL, snippet_id=snippet_id, amount=amount)
            snippet = self._existing_snippet(op, snippet_id)

            with self._locks.hold(snippet_key(snippet_id), account_key(snippet.author)):
                snippet = self._live_snippet(op, snippet_id)
                fee = amount * self._config.treasury_fee_bps // self._config.bps_denominator
                to_author = amount - fee
                self._snippets.update(snippet_id, tip_balance=snippet.tip_balance + to_author)
                self._accounts.credit(snippet.author, to_author)
                with self._counters_lock:
                    self._total_tips_received += amount
                    self._total_treasury_fees += fee
                self._record(SnippetTipped(
                    snippet_id=snippet_id,
                    tipper=tipper,
                    author=snippet.author,
                    amount=amount,
                    to_author=to_author,
                    fee=fee,
                    at=self._now(),
                ))
        return TipReceipt(snippet_id=snippet_id, amount=amount, fee=fee, to_author=to_author)

    def tip_snippet_batch(self, tipper: str, snippet_ids: Sequence[int], amounts: Sequence[int]) -> List[TipReceipt]:
        """
        Apply up to `max_tip_batch` tips in order.
        The first failing tip is raised; tips applied before it stay applied.
        """
        op = "tip_snippet_batch"
        if len(snippet_ids) != len(amounts) or len(snippet_ids) > self._config.max_tip_batch:
            raise self._rejection(op, LedgerErrorKind.INVALID_BATCH, tipper=tipper, size=len(snippet_ids))
        return [
            self.tip_snippet(snippet_id, tipper, amount)
            for snippet_id, amount in zip(snippet_ids, amounts)
        ]

    def withdraw_tips(self, author: str) -> int:
        op = "withdraw_tips"
        with self._locks.hold(account_key(author)):
            if self._accounts.balance(author) <= 0:
                raise self._rejection(op, LedgerErrorKind.INSUFFICIENT_BALANCE, author=author)
            amount = self._accounts.drain(author)
            with self._counters_lock:
                self._total_tips_withdrawn += amount
            self._record(TipsWithdrawn(author=author, amount=amount, at=self._now()))
        return amount

    def withdraw_treasury_fees(self, treasury: str) -> int:
        op = "withdraw_treasury_fees"
        if not self._same_role(treasury, self._config.treasury):
            raise self._rejection(op, LedgerErrorKind.TREASURY_ONLY, caller=treasury)
        with self._counters_lock:
            amount = self._total_treasury_fees - self._total_treasury_withdrawn
            if amount <= 0:
                raise self._rejection(op, LedgerErrorKind.INSUFFICIENT_BALANCE, caller=treasury)
            self._total_treasury_withdrawn += amount
            self._record(TreasuryFeesWithdrawn(treasury=treasury, amount=amount, at=self._now()))
        return amount

    # --- hints ---

    def request_hint(self, requester: str, topic_hash: str, snippet_id: int = NO_SNIPPET) -> int:
        op = "request_hint"
        with self._unpaused(op), self._locks.hold(account_key(requester)):
            if len(self._hints.open_ids_by_requester(requester)) >= self._config.max_open_hints_per_user:
                raise self._rejection(op, LedgerErrorKind.HINT_REQUEST_CAP, requester=requester)
            if snippet_id != NO_SNIPPET:
                self._live_snippet(op, snippet_id)
            hint = HintRequest(
                id=self._hints.allocate_id(),
                requester=requester,
                topic_hash=topic_hash,
                snippet_id=snippet_id,
                created_at=self._now(),
            )
            self._hints.add(hint)
            self._record(HintRequested(
                hint_id=hint.id,
                requester=requester,
                topic_hash=topic_hash,
                snippet_id=snippet_id,
                at=hint.created_at,
            ))
        return hint.id

    def fulfill_hint(self, hint_id: int, fulfiller: str) -> HintRequest:
        op = "fulfill_hint"
        if not self._same_role(fulfiller, self._config.fulfiller):
            raise self._rejection(op, LedgerErrorKind.FULFILLER_ONLY, caller=fulfiller)
        with self._unpaused(op), self._locks.hold(hint_key(hint_id)):
            hint = self._hints.get(hint_id)
            if hint is None:
                raise self._rejection(op, LedgerErrorKind.INVALID_HINT_ID, hint_id=hint_id)
            if hint.fulfilled:
                raise self._rejection(op, LedgerErrorKind.HINT_ALREADY_FULFILLED, hint_id=hint_id)
            hint = self._hints.update(hint_id, fulfilled=True, fulfiller=fulfiller, fulfilled_at=self._now())
            self._record(HintFulfilled(hint_id=hint_id, fulfiller=fulfiller, at=hint.fulfilled_at))
        return hint

    # --- reputation ---

    def upvote_snippet(self, snippet_id: int, voter: str) -> int:
        return self._vote("upvote_snippet", snippet_id, voter, upvote=True)

    def downvote_snippet(self, snippet_id: int, voter: str) -> int:
        return self._vote("downvote_snippet", snippet_id, voter, upvote=False)

    def _vote(self, op: str, snippet_id: int, voter: str, upvote: bool) -> int:
        with self._unpaused(op):
            snippet = self._existing_snippet(op, snippet_id)

            with self._locks.hold(snippet_key(snippet_id), account_key(snippet.author)):
                snippet = self._live_snippet(op, snippet_id)
                if voter == snippet.author:
                    raise self._rejection(op, LedgerErrorKind.CANNOT_VOTE_OWN, snippet_id=snippet_id)
                if upvote and self._accounts.has_upvoted(voter, snippet_id):
                    raise self._rejection(op, LedgerErrorKind.ALREADY_UPVOTED, snippet_id=snippet_id, voter=voter)
                if not upvote and self._accounts.has_downvoted(voter, snippet_id):
                    raise self._rejection(op, LedgerErrorKind.ALREADY_DOWNVOTED, snippet_id=snippet_id, voter=voter)

                score = snippet.reputation
                if upvote:
                    if self._accounts.record_upvote(voter, snippet_id):
                        score += REPUTATION_DOWN_DELTA
                    score += REPUTATION_UP_DELTA
                else:
                    if self._accounts.record_downvote(voter, snippet_id):
                        score = max(0, score - REPUTATION_UP_DELTA)
                    score = max(0, score - REPUTATION_DOWN_DELTA)
                self._snippets.update(snippet_id, reputation=score)
                self._recompute_reputation(snippet.author)

                event_type = ReputationUpvote if upvote else ReputationDownvote
                self._record(event_type(snippet_id=snippet_id, voter=voter, new_score=score, at=self._now()))
        return score

    # --- curation ---

    def register_language(self, language_id: str, curator: str) -> None:
        op = "register_language"
        self._require_curator(op, curator)
        with self._locks.hold(language_key(language_id)):
            if not self._snippets.register_language(language_id):
                raise self._rejection(op, LedgerErrorKind.LANGUAGE_ALREADY_REGISTERED, language_id=language_id)
            self._record(LanguageRegistered(language_id=language_id, curator=curator, at=self._now()))

    def set_paused(self, paused: bool, curator: str) -> None:
        """
        Toggle the pause flag. Returns only after every gated mutation that
        was already running has finished, so nothing gated lands afterwards.
        """
        self._require_curator("set_paused", curator)
        with self._pause_gate:
            self._pause_gate.wait_for(lambda: not self._toggling)
            self._toggling = True
            try:
                self._pause_gate.wait_for(lambda: self._in_flight == 0)
                self._paused = bool(paused)
                self._record(PauseToggled(paused=bool(paused), curator=curator, at=self._now()))
            finally:
                self._toggling = False
                self._pause_gate.notify_all()

    def award_badge(self, account: str, slot: int, curator: str) -> bool:
        self._require_curator("award_badge", curator)
        if not 0 <= slot < self._config.badge_slots:
            return False
        with self._locks.hold(account_key(account)):
            bits = self._accounts.set_badge_bit(account, slot)
            self._record(BadgeAwarded(account=account, slot=slot, badges=bits, at=self._now()))
        return True

    # --- reads ---

    def is_paused(self) -> bool:
        with self._pause_gate:
            return self._paused


    @property
    def config(self) -> LedgerConfig:
        return self._config

    def get_snippet(self, snippet_id: int) -> Optional[Snippet]:
        return self._snippets.get(snippet_id)

    def get_hint(self, hint_id: int) -> Optional[HintRequest]:
        return self._hints.get(hint_id)

    def content_hash_of(self, snippet_id: int) -> str:
        snippet = self._snippets.get(snippet_id)
        return snippet.content_hash if snippet else ""

    def snippet_ids_by_content_hash(self, content_hash: str) -> List[int]:
        return self._snippets.ids_by_content_hash(content_hash)

    def snippet_ids_by_author(self, author: str) -> List[int]:
        return self._snippets.active_ids_by_author(author)

    def recent_snippet_ids(self) -> List[int]:
        return self._snippets.recent_ids()

    def tags_of(self, snippet_id: int) -> List[str]:
        snippet = self._snippets.get(snippet_id)
        return list(snippet.tags) if snippet else []

    def tip_balance_of(self, author: str) -> int:
        return self._accounts.balance(author)

    def reputation_of(self, author: str) -> int:
        return self._accounts.reputation(author)

    def snippet_reputation(self, snippet_id: int) -> int:
        snippet = self._snippets.get(snippet_id)
        return snippet.reputation if snippet else 0

    def badges_of(self, account: str) -> int:
        return self._accounts.badges(account)

    def has_badge(self, account: str, slot: int) -> bool:
        if not 0 <= slot < self._config.badge_slots:
            return False
        return bool(self._accounts.badges(account) & (1 << slot))

    def has_upvoted(self, voter: str, snippet_id: int) -> bool:
        return self._accounts.has_upvoted(voter, snippet_id)

    def has_downvoted(self, voter: str, snippet_id: int) -> bool:
        return self._accounts.has_downvoted(voter, snippet_id)

    def is_language_registered(self, language_id: str) -> bool:
        return self._snippets.is_language_registered(language_id)

    def snippet_count_by_language(self, language_id: str) -> int:
        return self._snippets.language_count(language_id)

    def hint_ids_by_requester(self, requester: str) -> List[int]:
        return self._hints.ids_by_requester(requester)

    def open_hint_ids(self, requester: Optional[str] = None) -> List[int]:
        if requester is None:
            return self._hints.open_ids()
        return self._hints.open_ids_by_requester(requester)

    def open_hint_count(self, requester: str) -> int:
        return len(self._hints.open_ids_by_requester(requester))

    def stats(self) -> LedgerStats:
        with self._counters_lock:
            return LedgerStats(
                total_tips_received=self._total_tips_received,
                total_tips_withdrawn=self._total_tips_withdrawn,
                total_treasury_fees=self._total_treasury_fees,
                total_treasury_withdrawn=self._total_treasury_withdrawn,
                total_snippets=self._snippets.total,
                total_hint_requests=self._hints.total,
                paused=self.is_paused(),
            )

    def events(self) -> List[LedgerEvent]:
        return self.event_log.get_history()
