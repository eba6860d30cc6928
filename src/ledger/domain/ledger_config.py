from dataclasses import dataclass

from src.config.settings import LedgerSettings


@dataclass(frozen=True)
class LedgerConfig:
    """
    Read-only snapshot of an engine's configuration, fixed at construction.
    """
    curator: str
    treasury: str
    fulfiller: str
    max_snippet_bytes: int
    max_title_bytes: int
    min_tip: int
    max_snippets_per_author: int
    max_open_hints_per_user: int
    treasury_fee_bps: int
    bps_denominator: int
    badge_slots: int
    recent_queue_size: int
    max_tags_per_snippet: int
    max_submit_batch: int
    max_tip_batch: int
    schema_version: int

    @classmethod
    def from_settings(cls, settings: LedgerSettings, curator: str, treasury: str, fulfiller: str) -> "LedgerConfig":
        return cls(
            curator=curator,
            treasury=treasury,
            fulfiller=fulfiller,
            max_snippet_bytes=settings.MAX_SNIPPET_BYTES,
            max_title_bytes=settings.MAX_TITLE_BYTES,
            min_tip=settings.MIN_TIP,
            max_snippets_per_author=settings.MAX_SNIPPETS_PER_AUTHOR,
            max_open_hints_per_user=settings.MAX_OPEN_HINTS_PER_USER,
            treasury_fee_bps=settings.TREASURY_FEE_BPS,
            bps_denominator=settings.BPS_DENOMINATOR,
            badge_slots=settings.BADGE_SLOTS,
            recent_queue_size=settings.RECENT_QUEUE_SIZE,
            max_tags_per_snippet=settings.MAX_TAGS_PER_SNIPPET,
            max_submit_batch=settings.MAX_SUBMIT_BATCH,
            max_tip_batch=settings.MAX_TIP_BATCH,
            schema_version=settings.SCHEMA_VERSION,
        )
