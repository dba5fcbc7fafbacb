"""In-process event bus for committed session transitions and balance changes"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

SESSION_TRANSITIONS = "session.transitions"
CREDIT_BALANCES = "credit.balances"

Handler = Callable[[Any], None]


class EventBus:
    """
    Observer channel the booking core publishes on after every commit.

    Subscribers may filter by key (session id for transitions, account id for
    balance changes). Delivery is synchronous on the publishing thread; a
    failing handler is logged and does not stop delivery to the others.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscribers: Dict[str, List[Tuple[Optional[str], Handler]]] = {}

    def subscribe(self, topic: str, handler: Handler, key: Optional[str] = None) -> Callable[[], None]:
        """Register handler; returns a callable that removes it again"""
        subscription = (key, handler)
        with self._lock:
            self._subscribers.setdefault(topic, []).append(subscription)

        def unsubscribe() -> None:
            with self._lock:
                handlers = self._subscribers.get(topic, [])
                if subscription in handlers:
                    handlers.remove(subscription)

        return unsubscribe

    def publish(self, topic: str, event: Any, key: Optional[str] = None) -> None:
        with self._lock:
            targets = [
                handler
                for sub_key, handler in self._subscribers.get(topic, [])
                if sub_key is None or sub_key == key
            ]

        for handler in targets:
            try:
                handler(event)
            except Exception:
                logger.exception("Event handler failed", extra={"topic": topic, "key": key})
