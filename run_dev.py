import logging
import sys
import os

# Ensure the project root is in python path
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from src.config.settings import settings
from src.core.time.system_time_source import SystemTimeSource
from src.ledger.domain.exceptions import LedgerError
from src.ledger.events.in_memory_event_log import InMemoryEventLog
from src.ledger.services.ledger_engine import SnippetLedgerEngine


def main():
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    print("Initializing DEV ledger...")

    # 1. Infrastructure
    time_source = SystemTimeSource()
    event_log = InMemoryEventLog()

    # 2. Engine
    engine = SnippetLedgerEngine(time_source=time_source, event_log=event_log)
    curator = settings.CURATOR
    fulfiller = settings.FULFILLER
    python_id = engine.language_id_for("python")

    # 3. Activity
    alice, bob = "0xA11CE", "0xB0B"
    snippet_id = engine.submit_snippet(alice, "print('paw')", python_id, "hello paw")
    receipt = engine.tip_snippet(snippet_id, bob, 1000)
    print(f"Tip split: {receipt.to_author} to author, {receipt.fee} to treasury")

    engine.upvote_snippet(snippet_id, bob)
    hint_id = engine.request_hint(bob, engine.digester.digest_text("closures"), snippet_id)
    engine.fulfill_hint(hint_id, fulfiller)
    engine.award_badge(alice, 0, curator)

    engine.set_paused(True, curator)
    try:
        engine.submit_snippet(alice, "pass", python_id)
    except LedgerError as e:
        print(f"Rejected while paused: {e.kind.name}")
    engine.set_paused(False, curator)

    print(f"Withdrawn by author: {engine.withdraw_tips(alice)}")
    print(f"Author reputation: {engine.reputation_of(alice)}")
    print(f"Stats: {engine.stats()}")
    print(f"Events recorded: {len(event_log)}")


if __name__ == "__main__":
    main()
