"""
Observer notifications for claim lifecycle transitions.

Events are published after an operation commits. A failing subscriber is
logged and skipped; it never unwinds the operation that produced the event.
"""

import inspect
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Union

from .types import ClaimInvalidated, ClaimMinted, FundsTransferred

logger = logging.getLogger(__name__)

ClaimEvent = Union[ClaimMinted, FundsTransferred, ClaimInvalidated]
Subscriber = Callable[[ClaimEvent], Union[None, Awaitable[None]]]


class ClaimEventBus:
    """Fan-out of lifecycle events to sync or async subscribers."""

    def __init__(self):
        self._subscribers: List[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a subscriber; returns a function that removes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    async def publish(self, event: ClaimEvent) -> None:
        logger.info("Event %s for claim %s", event.name, event.claim_id)
        for callback in list(self._subscribers):
            try:
                outcome = callback(event)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception:
                logger.exception("Subscriber %r failed on %s", callback, event.name)


class AuditTrail:
    """Subscriber keeping an in-memory audit log of lifecycle events."""

    def __init__(self):
        self.entries: List[Dict[str, Any]] = []

    def __call__(self, event: ClaimEvent) -> None:
        context: Dict[str, Any] = {"event_type": event.name, "claim_id": event.claim_id}
        if isinstance(event, ClaimMinted):
            context.update(debtor=event.debtor, recipient=event.recipient)
        elif isinstance(event, FundsTransferred):
            context.update(claimant=event.claimant, amounts=event.amounts())
        elif isinstance(event, ClaimInvalidated):
            context.update(caller=event.caller)
        self.entries.append({"timestamp": datetime.now().isoformat(), "context": context})
        logger.debug("Audit %s", context)

    def for_claim(self, claim_id: int) -> List[Dict[str, Any]]:
        return [e for e in self.entries if e["context"]["claim_id"] == claim_id]


__all__ = ["ClaimEvent", "Subscriber", "ClaimEventBus", "AuditTrail"]
