"""Event publishing seam between the ledger and any real-time transport."""

from typing import Any, Dict, Protocol

import structlog

logger = structlog.get_logger()


class EventPublisher(Protocol):
    """Anything that can deliver a ledger event to subscribers."""

    def publish(self, topic: str, payload: Dict[str, Any]) -> None:
        ...


class NullEventPublisher:
    """Publisher used when no transport is configured; only logs the event."""

    def publish(self, topic: str, payload: Dict[str, Any]) -> None:
        logger.debug("Event dropped, no publisher configured", topic=topic)

