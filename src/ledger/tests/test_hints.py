import hashlib
from datetime import datetime, timedelta, timezone

import pytest

from src.core.time.frozen_time_source import FrozenTimeSource
from src.ledger.domain.exceptions import LedgerError, LedgerErrorKind
from src.ledger.events.ledger_event import HintFulfilled, HintRequested
from src.ledger.services.ledger_engine import SnippetLedgerEngine

CURATOR = "0xCurator"
TREASURY = "0xTreasury"
FULFILLER = "0xFulfiller"
ALICE = "0xA11CE"
BOB = "0xB0B"

TOPIC = hashlib.sha256(b"closures").hexdigest()


@pytest.fixture
def time_source():
    return FrozenTimeSource(datetime(2024, 1, 1, tzinfo=timezone.utc))


@pytest.fixture
def engine(time_source):
    return SnippetLedgerEngine(CURATOR, TREASURY, FULFILLER, time_source=time_source)


def test_request_hint_without_snippet(engine, time_source):
    hint_id = engine.request_hint(BOB, TOPIC)

    hint = engine.get_hint(hint_id)
    assert hint_id == 1
    assert hint.requester == BOB
    assert hint.topic_hash == TOPIC
    assert hint.snippet_id == 0
    assert hint.created_at == int(time_source.now().timestamp() * 1000)
    assert not hint.fulfilled
    assert hint.fulfiller is None
    assert engine.open_hint_ids(BOB) == [1]
    assert engine.stats().total_hint_requests == 1
    assert isinstance(engine.events()[-1], HintRequested)


def test_request_hint_linked_to_snippet(engine):
    snippet_id = engine.submit_snippet(ALICE, "code", engine.language_id_for("rust"))
    hint_id = engine.request_hint(BOB, TOPIC, snippet_id)
    assert engine.get_hint(hint_id).snippet_id == snippet_id


def test_request_hint_rejects_bad_snippet_link(engine):
    with pytest.raises(LedgerError) as exc:
        engine.request_hint(BOB, TOPIC, 3)
    assert exc.value.kind is LedgerErrorKind.INVALID_SNIPPET_ID

    snippet_id = engine.submit_snippet(ALICE, "code", engine.language_id_for("rust"))
    engine.delete_snippet(snippet_id, ALICE)
    with pytest.raises(LedgerError) as exc:
        engine.request_hint(BOB, TOPIC, snippet_id)
    assert exc.value.kind is LedgerErrorKind.SNIPPET_DELETED
    assert engine.stats().total_hint_requests == 0


def test_open_hint_cap_is_per_requester(engine):
    for _ in range(24):
        engine.request_hint(BOB, TOPIC)

    with pytest.raises(LedgerError) as exc:
        engine.request_hint(BOB, TOPIC)
    assert exc.value.kind is LedgerErrorKind.HINT_REQUEST_CAP

    assert engine.request_hint(ALICE, TOPIC) == 25

    engine.fulfill_hint(1, FULFILLER)
    assert engine.open_hint_count(BOB) == 23
    assert engine.request_hint(BOB, TOPIC) == 26
    assert len(engine.hint_ids_by_requester(BOB)) == 25


def test_fulfill_is_terminal(engine, time_source):
    hint_id = engine.request_hint(BOB, TOPIC)
    time_source.advance(timedelta(minutes=1))

    hint = engine.fulfill_hint(hint_id, FULFILLER)
    assert hint.fulfilled
    assert hint.fulfiller == FULFILLER
    assert hint.fulfilled_at == hint.created_at + 60000
    assert isinstance(engine.events()[-1], HintFulfilled)
    assert engine.open_hint_ids() == []

    with pytest.raises(LedgerError) as exc:
        engine.fulfill_hint(hint_id, FULFILLER)
    assert exc.value.kind is LedgerErrorKind.HINT_ALREADY_FULFILLED
    assert engine.get_hint(hint_id) == hint


def test_fulfill_requires_fulfiller(engine):
    hint_id = engine.request_hint(BOB, TOPIC)

    with pytest.raises(LedgerError) as exc:
        engine.fulfill_hint(hint_id, CURATOR)
    assert exc.value.kind is LedgerErrorKind.FULFILLER_ONLY

    # Role identities compare case-insensitively
    assert engine.fulfill_hint(hint_id, FULFILLER.lower()).fulfilled


def test_fulfill_unknown_hint(engine):
    with pytest.raises(LedgerError) as exc:
        engine.fulfill_hint(9, FULFILLER)
    assert exc.value.kind is LedgerErrorKind.INVALID_HINT_ID
