from dataclasses import dataclass

@dataclass(frozen=True)
class LedgerStats:
    total_tips_received: int
    total_tips_withdrawn: int
    total_treasury_fees: int
    total_treasury_withdrawn: int
    total_snippets: int  # includes deleted
    total_hint_requests: int
    paused: bool

    @property
    def pending_treasury_fees(self) -> int:
        return self.total_treasury_fees - self.total_treasury_withdrawn


@dataclass(frozen=True)
class TipReceipt:
    """Split of a single tip between the author and the treasury."""
    snippet_id: int
    amount: int
    fee: int
    to_author: int
