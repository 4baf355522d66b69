"""Ledger event publishing."""

from storeledger.core.config import get_settings

from .publisher import EventPublisher, NullEventPublisher
from .websocket_manager import WebSocketManager, websocket_manager


def get_event_publisher() -> EventPublisher:
    """Dependency that provides the configured event publisher."""
    if get_settings().websocket_enabled:
        return websocket_manager
    return NullEventPublisher()


__all__ = [
    "EventPublisher",
    "NullEventPublisher",
    "WebSocketManager",
    "websocket_manager",
    "get_event_publisher",
]
