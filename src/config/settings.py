from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SNIPPET_LEDGER_")

    # Role identities
    CURATOR: str = "0x2F5a8C1e4B7d0A3f6C9b2E5d8a1F4c7B0e3A6d9F"
    TREASURY: str = "0x8D1f4A7c0B3e6D9a2F5c8E1b4A7d0C3f6E9a2B5"
    FULFILLER: str = "0xE3b6D9a2C5f8E1b4A7d0C3f6E9a2B5d8F1c4A7"

    # Limits
    MAX_SNIPPET_BYTES: int = 2048
    MAX_TITLE_BYTES: int = 64
    MIN_TIP: int = 10
    MAX_SNIPPETS_PER_AUTHOR: int = 64
    MAX_OPEN_HINTS_PER_USER: int = 24
    MAX_TAGS_PER_SNIPPET: int = 4
    MAX_SUBMIT_BATCH: int = 12
    MAX_TIP_BATCH: int = 16

    # Fees
    TREASURY_FEE_BPS: int = 25
    BPS_DENOMINATOR: int = 10000

    BADGE_SLOTS: int = 8
    RECENT_QUEUE_SIZE: int = 64
    SCHEMA_VERSION: int = 1


settings = LedgerSettings()
