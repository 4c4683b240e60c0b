from datetime import datetime
from typing import Callable, Dict, List, NamedTuple

from budgetmill.logging_setup import get_logger

__all__ = [
    'TRANSACTION_ADDED', 'TRANSACTION_UPDATED', 'TRANSACTION_REMOVED', 'BUDGET_ALERT',
    'Event', 'EventBus', 'Handler',
]

logger = get_logger(__name__)

TRANSACTION_ADDED = "TRANSACTION_ADDED"
TRANSACTION_UPDATED = "TRANSACTION_UPDATED"
TRANSACTION_REMOVED = "TRANSACTION_REMOVED"
BUDGET_ALERT = "BUDGET_ALERT"


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


Handler = Callable[[Event, dict], object]


class EventBus:
    """Synchronous publish/subscribe; handlers run in subscription order."""

    def __init__(self):
        self._subscribers: Dict[str, List[Handler]] = {}

    def subscribe(self, name: str, handler: Handler) -> None:
        self._subscribers.setdefault(name, []).append(handler)

    def unsubscribe(self, name: str, handler: Handler) -> None:
        handlers = self._subscribers.get(name, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, name: str, payload: dict) -> List[object]:
        handlers = list(self._subscribers.get(name, ()))
        if not handlers:
            return []

        event = Event(name=name, ts=datetime.now().isoformat(), payload=payload)
        logger.debug("publishing %s to %d handler(s)", name, len(handlers))
        return [handler(event, payload) for handler in handlers]
