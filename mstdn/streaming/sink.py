"""Fan-out of decoded events to independent, bounded subscriber queues.

The session is the only publisher. Each :class:`Subscription` owns a bounded
queue; when it is full the oldest undelivered event is discarded and counted
so a slow reader degrades to lossy delivery instead of stalling ingestion.
"""

from __future__ import annotations

import asyncio
import collections
import typing as typ

from mstdn.logging import get_logger, log_warning

from .errors import SubscriptionClosedError

if typ.TYPE_CHECKING:
    from .events import DomainEvent

logger = get_logger(__name__)


class Subscription:
    """A consumer's registration with a :class:`DispatchSink`.

    Read events with :meth:`next` or ``async for``. Both end once the
    subscription is closed, either explicitly or because the session stopped.
    """

    def __init__(self, sink: DispatchSink, capacity: int) -> None:
        """Initialise an empty queue bounded to ``capacity`` events."""
        self._sink = sink
        self._queue: collections.deque[DomainEvent] = collections.deque(
            maxlen=capacity
        )
        self._ready = asyncio.Event()
        self._closed = False
        self._dropped = 0

    @property
    def capacity(self) -> int:
        """Maximum number of undelivered events held for this subscriber."""
        maxlen = self._queue.maxlen
        return 0 if maxlen is None else maxlen

    @property
    def dropped_count(self) -> int:
        """Events discarded because the queue was full. Never decreases."""
        return self._dropped

    @property
    def pending(self) -> int:
        """Events queued and not yet returned by :meth:`next`."""
        return len(self._queue)

    @property
    def closed(self) -> bool:
        """Return True once the subscription no longer delivers events."""
        return self._closed

    async def next(self) -> DomainEvent:
        """Wait for and return the next event in arrival order.

        Raises
        ------
        SubscriptionClosedError
            Once the subscription is closed, including while waiting.

        """
        while not self._closed:
            if self._queue:
                return self._queue.popleft()
            self._ready.clear()
            await self._ready.wait()
        raise SubscriptionClosedError.closed()

    def close(self) -> None:
        """Release the queue and wake any blocked reader. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._queue.clear()
        self._ready.set()
        self._sink.discard(self)

    def __aiter__(self) -> typ.AsyncIterator[DomainEvent]:
        return self._iterate()

    async def _iterate(self) -> typ.AsyncIterator[DomainEvent]:
        while True:
            try:
                event = await self.next()
            except SubscriptionClosedError:
                return
            yield event

    def _push(self, event: DomainEvent) -> bool:
        """Enqueue ``event``; return True when an older event was dropped."""
        if self._closed:
            return False
        overflow = len(self._queue) == self._queue.maxlen
        if overflow:
            self._dropped += 1
        self._queue.append(event)
        self._ready.set()
        return overflow


class DispatchSink:
    """Deliver events to every live subscription in arrival order."""

    def __init__(self, queue_capacity: int) -> None:
        """Initialise a sink whose subscriptions hold ``queue_capacity`` events."""
        if queue_capacity < 1:
            msg = f"queue_capacity must be positive, got {queue_capacity}"
            raise ValueError(msg)
        self._capacity = queue_capacity
        self._subscriptions: list[Subscription] = []
        self._closed = False
        self._warned: set[int] = set()

    @property
    def closed(self) -> bool:
        """Return True once the sink has been closed."""
        return self._closed

    @property
    def subscriber_count(self) -> int:
        """Number of live subscriptions."""
        return len(self._subscriptions)

    def subscribe(self) -> Subscription:
        """Register a new subscriber with its own bounded queue.

        A subscription taken after the sink closed is returned already
        closed so its first :meth:`Subscription.next` reports the closure.
        """
        subscription = Subscription(self, self._capacity)
        if self._closed:
            subscription.close()
            return subscription
        self._subscriptions.append(subscription)
        return subscription

    def publish(self, event: DomainEvent) -> None:
        """Append ``event`` to every subscriber queue without blocking."""
        if self._closed:
            return
        for subscription in tuple(self._subscriptions):
            if subscription._push(event) and id(subscription) not in self._warned:  # noqa: SLF001
                self._warned.add(id(subscription))
                log_warning(
                    logger,
                    "Subscriber queue full (capacity=%d); dropping oldest events",
                    subscription.capacity,
                )

    def discard(self, subscription: Subscription) -> None:
        """Forget ``subscription``; called when it closes."""
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
        self._warned.discard(id(subscription))

    def close(self) -> None:
        """Close every subscription and refuse further events. Idempotent."""
        self._closed = True
        for subscription in tuple(self._subscriptions):
            subscription.close()
        self._subscriptions.clear()


__all__ = ["DispatchSink", "Subscription"]
