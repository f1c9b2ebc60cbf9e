"""
Event bus
Explicit publish/subscribe object shared by the SDK and its embedding app
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

EventHandler = Callable[[str, Any], None]

# Events published by CashClosureService
CLOSURE_SAVED = "closure.saved"
CLOSURE_DISCREPANCY = "closure.discrepancy"
SUMMARY_UNAVAILABLE = "summary.unavailable"


@dataclass(eq=False)
class Subscription:
    """Handle returned by ``EventBus.subscribe``"""
    bus: "EventBus"
    event: str
    handler: EventHandler
    active: bool = True

    def unsubscribe(self) -> None:
        if self.active:
            self.bus._remove(self)
            self.active = False


class EventBus:
    """
    Observer registry constructed once and passed to its consumers

    Handlers run synchronously in subscription order. A handler subscribed
    to ``"*"`` receives every event.

    Example:
        >>> bus = EventBus()
        >>> sub = bus.subscribe("closure.saved", lambda name, closure: print(closure.id))
        >>> sub.unsubscribe()
    """

    WILDCARD = "*"

    def __init__(self) -> None:
        self._subscriptions: Dict[str, List[Subscription]] = {}

    def subscribe(self, event: str, handler: EventHandler) -> Subscription:
        subscription = Subscription(bus=self, event=event, handler=handler)
        self._subscriptions.setdefault(event, []).append(subscription)
        return subscription

    def publish(self, event: str, payload: Any = None) -> int:
        """
        Deliver ``payload`` to the subscribers of ``event``

        Returns:
            Number of handlers invoked
        """
        targets = list(self._subscriptions.get(event, []))
        if event != self.WILDCARD:
            targets.extend(self._subscriptions.get(self.WILDCARD, []))

        for subscription in targets:
            subscription.handler(event, payload)

        logger.debug("Published %s to %d handler(s)", event, len(targets))
        return len(targets)

    def subscriber_count(self, event: str) -> int:
        return len(self._subscriptions.get(event, []))

    def clear(self) -> None:
        for subscriptions in self._subscriptions.values():
            for subscription in subscriptions:
                subscription.active = False
        self._subscriptions.clear()

    def _remove(self, subscription: Subscription) -> None:
        subscriptions = self._subscriptions.get(subscription.event, [])
        if subscription in subscriptions:
            subscriptions.remove(subscription)
        if not subscriptions:
            self._subscriptions.pop(subscription.event, None)
