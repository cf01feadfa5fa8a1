"""Snapshot subscribers and isolated broadcast"""

import asyncio
import inspect
from typing import Any, Callable, Dict
import structlog

from .errors import SubscriberDeliveryError
from .metrics import record_delivery, update_subscribers
from .models import AnalyticsSnapshot

logger = structlog.get_logger(__name__)

SnapshotCallback = Callable[[AnalyticsSnapshot], Any]


class SubscriptionDispatcher:
    """Registry of snapshot observers keyed by an opaque id.

    Delivery is best effort and at most once. A failing subscriber is logged
    and skipped; the remaining subscribers still receive the snapshot.
    Coroutine callbacks run as fire-and-forget tasks on the current loop.
    """

    def __init__(self):
        self.subscribers: Dict[str, SnapshotCallback] = {}
        self._pending: set = set()

    def subscribe(self, subscriber_id: str, callback: SnapshotCallback):
        self.subscribers[subscriber_id] = callback
        update_subscribers(len(self.subscribers))
        logger.info("Subscriber added", subscriber_id=subscriber_id)

    def unsubscribe(self, subscriber_id: str) -> bool:
        removed = self.subscribers.pop(subscriber_id, None) is not None
        update_subscribers(len(self.subscribers))
        if removed:
            logger.info("Subscriber removed", subscriber_id=subscriber_id)
        return removed

    def has_subscribers(self) -> bool:
        return bool(self.subscribers)

    def broadcast(self, snapshot: AnalyticsSnapshot) -> int:
        """Deliver a snapshot to every subscriber. Returns the number of successful hand-offs."""
        delivered = 0
        for subscriber_id, callback in list(self.subscribers.items()):
            try:
                result = callback(snapshot)
                if inspect.isawaitable(result):
                    self._dispatch_async(subscriber_id, result)
                else:
                    record_delivery("success")
                delivered += 1
            except Exception as e:
                self._delivery_failed(subscriber_id, e)
        return delivered

    def _dispatch_async(self, subscriber_id: str, awaitable):
        try:
            loop = asyncio.get_running_loop()
            task = asyncio.ensure_future(awaitable, loop=loop)
        except RuntimeError as e:
            # No running loop to drive the coroutine
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            self._delivery_failed(subscriber_id, e)
            return

        self._pending.add(task)

        def _done(t: asyncio.Future):
            self._pending.discard(t)
            if t.cancelled():
                return
            error = t.exception()
            if error is not None:
                self._delivery_failed(subscriber_id, error)
            else:
                record_delivery("success")

        task.add_done_callback(_done)

    async def drain(self):
        """Wait for in-flight coroutine deliveries"""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def cancel_pending(self):
        for task in list(self._pending):
            task.cancel()
        self._pending.clear()

    def _delivery_failed(self, subscriber_id: str, cause: BaseException):
        error = SubscriberDeliveryError(subscriber_id, cause)
        record_delivery("failed")
        logger.error("Snapshot delivery failed", subscriber_id=subscriber_id, error=str(error))
