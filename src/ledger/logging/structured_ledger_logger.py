import json
import logging
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from src.ledger.domain.exceptions import LedgerError
from src.ledger.events.ledger_event import LedgerEvent


class StructuredLedgerLogger:
    """
    JSON-lines logger for ledger mutations and rejections.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger("ledger")

    def emit(self, event_type: str, **fields: Any) -> None:
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": event_type,
        }
        payload.update(fields)
        self._logger.info(json.dumps(payload, default=str, ensure_ascii=True))

    def event(self, event: LedgerEvent) -> None:
        self.emit(event.event_type, **asdict(event))

    def rejected(self, operation: str, error: LedgerError, **fields: Any) -> None:
        self.emit(
            "OPERATION_REJECTED",
            operation=operation,
            kind=error.kind.name,
            category=error.category.value,
            **fields,
        )
