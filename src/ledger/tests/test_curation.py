from datetime import datetime, timezone

import pytest

from src.config.settings import LedgerSettings
from src.core.time.frozen_time_source import FrozenTimeSource
from src.ledger.domain.exceptions import ErrorCategory, LedgerError, LedgerErrorKind
from src.ledger.events.ledger_event import BadgeAwarded, LanguageRegistered, PauseToggled
from src.ledger.services.ledger_engine import SnippetLedgerEngine

CURATOR = "0xCurator"
TREASURY = "0xTreasury"
FULFILLER = "0xFulfiller"
ALICE = "0xA11CE"
BOB = "0xB0B"


@pytest.fixture
def engine():
    return SnippetLedgerEngine(
        CURATOR, TREASURY, FULFILLER,
        time_source=FrozenTimeSource(datetime(2024, 1, 1, tzinfo=timezone.utc)),
    )


@pytest.fixture
def python_id(engine):
    return engine.language_id_for("python")


def assert_kind(kind, action):
    with pytest.raises(LedgerError) as exc:
        action()
    assert exc.value.kind is kind


# --- construction ---

def test_defaults_come_from_settings():
    engine = SnippetLedgerEngine()
    defaults = LedgerSettings()
    assert engine.config.curator == defaults.CURATOR
    assert engine.config.treasury == defaults.TREASURY
    assert engine.config.fulfiller == defaults.FULFILLER


@pytest.mark.parametrize("roles", [("", TREASURY, FULFILLER), (CURATOR, "  ", FULFILLER), (CURATOR, TREASURY, "")])
def test_empty_role_identity_rejected(roles):
    assert_kind(LedgerErrorKind.ZERO_ADDRESS, lambda: SnippetLedgerEngine(*roles))


def test_config_snapshot(engine):
    config = engine.config
    assert config.max_snippet_bytes == 2048
    assert config.max_title_bytes == 64
    assert config.min_tip == 10
    assert config.max_snippets_per_author == 64
    assert config.max_open_hints_per_user == 24
    assert config.treasury_fee_bps == 25
    assert config.bps_denominator == 10000
    assert config.badge_slots == 8
    assert config.recent_queue_size == 64
    assert config.max_tags_per_snippet == 4
    assert config.schema_version == 1


def test_custom_settings_apply():
    engine = SnippetLedgerEngine(CURATOR, TREASURY, FULFILLER, settings=LedgerSettings(MAX_SNIPPETS_PER_AUTHOR=1))
    python_id = engine.language_id_for("python")
    engine.submit_snippet(ALICE, "one", python_id)
    assert_kind(LedgerErrorKind.AUTHOR_SNIPPET_CAP, lambda: engine.submit_snippet(ALICE, "two", python_id))


def test_engines_are_independent():
    first = SnippetLedgerEngine(CURATOR, TREASURY, FULFILLER)
    second = SnippetLedgerEngine(CURATOR, TREASURY, FULFILLER)
    first.submit_snippet(ALICE, "only here", first.language_id_for("python"))

    assert second.stats().total_snippets == 0
    assert second.events() == []


# --- pause ---

def test_pause_gates_mutations(engine, python_id):
    snippet_id = engine.submit_snippet(ALICE, "live", python_id)
    engine.tip_snippet(snippet_id, BOB, 100)
    hint_id = engine.request_hint(BOB, "topic")

    engine.set_paused(True, CURATOR)
    assert engine.is_paused()
    assert engine.stats().paused

    paused = LedgerErrorKind.PAUSED
    assert_kind(paused, lambda: engine.submit_snippet(ALICE, "x", python_id))
    assert_kind(paused, lambda: engine.update_snippet(snippet_id, ALICE, "y"))
    assert_kind(paused, lambda: engine.tip_snippet(snippet_id, BOB, 100))
    assert_kind(paused, lambda: engine.request_hint(BOB, "topic"))
    assert_kind(paused, lambda: engine.fulfill_hint(hint_id, FULFILLER))
    assert_kind(paused, lambda: engine.upvote_snippet(snippet_id, BOB))
    assert_kind(paused, lambda: engine.downvote_snippet(snippet_id, BOB))

    # Not gated
    assert engine.withdraw_tips(ALICE) == 100
    engine.register_language(engine.language_id_for("go"), CURATOR)
    assert engine.get_snippet(snippet_id).content_hash
    engine.delete_snippet(snippet_id, ALICE)

    engine.set_paused(False, CURATOR)
    assert engine.submit_snippet(ALICE, "back", python_id) == 2
    assert engine.fulfill_hint(hint_id, FULFILLER).fulfilled
    assert [e.paused for e in engine.event_log.of_type(PauseToggled)] == [True, False]


def test_pause_is_curator_only(engine):
    assert_kind(LedgerErrorKind.CURATOR_ONLY, lambda: engine.set_paused(True, TREASURY))
    engine.set_paused(True, CURATOR.upper())
    assert engine.is_paused()


# --- languages ---

def test_register_language(engine):
    go_id = engine.language_id_for("go")
    engine.register_language(go_id, CURATOR)

    assert engine.is_language_registered(go_id)
    assert engine.snippet_count_by_language(go_id) == 0
    assert engine.submit_snippet(ALICE, "package main", go_id) == 1
    assert engine.snippet_count_by_language(go_id) == 1
    assert isinstance(engine.event_log.of_type(LanguageRegistered)[0], LanguageRegistered)

    assert_kind(LedgerErrorKind.LANGUAGE_ALREADY_REGISTERED, lambda: engine.register_language(go_id, CURATOR))
    assert_kind(
        LedgerErrorKind.LANGUAGE_ALREADY_REGISTERED,
        lambda: engine.register_language(engine.language_id_for("python"), CURATOR),
    )
    assert_kind(LedgerErrorKind.CURATOR_ONLY, lambda: engine.register_language("zig", ALICE))


# --- badges ---

def test_award_badge_sets_bits(engine):
    assert engine.award_badge(ALICE, 0, CURATOR)
    assert engine.award_badge(ALICE, 7, CURATOR)
    assert engine.award_badge(ALICE, 7, CURATOR)

    assert engine.badges_of(ALICE) == 0b10000001
    assert engine.has_badge(ALICE, 7)
    assert not engine.has_badge(ALICE, 3)
    assert engine.event_log.of_type(BadgeAwarded)[-1].badges == 0b10000001


def test_award_badge_out_of_range_is_noop(engine):
    assert not engine.award_badge(ALICE, 8, CURATOR)
    assert not engine.award_badge(ALICE, -1, CURATOR)
    assert engine.badges_of(ALICE) == 0
    assert engine.events() == []


def test_award_badge_curator_only(engine):
    assert_kind(LedgerErrorKind.CURATOR_ONLY, lambda: engine.award_badge(ALICE, 1, FULFILLER))


# --- errors ---

def test_error_kinds_carry_category():
    assert LedgerErrorKind.CURATOR_ONLY.category is ErrorCategory.AUTHORIZATION
    assert LedgerErrorKind.INVALID_HINT_ID.category is ErrorCategory.NOT_FOUND
    error = LedgerError(LedgerErrorKind.TIP_TOO_SMALL)
    assert error.category is ErrorCategory.INPUT_BOUNDS
    assert "tip too small" in str(error)
