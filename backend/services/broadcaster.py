import asyncio
import logging
from typing import Set

from services.jobs import ProgressEvent


logger = logging.getLogger(__name__)

_CLOSED = object()


class Subscription:
    """A live endpoint fed by the broadcaster.

    Iterating yields events in publish order until the subscription is closed.
    """

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def push(self, event: ProgressEvent) -> None:
        if not self.closed:
            self._queue.put_nowait(event)

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._queue.put_nowait(_CLOSED)

    def __aiter__(self):
        return self

    async def __anext__(self) -> ProgressEvent:
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item


class ProgressBroadcaster:
    """Fans every published event out to the subscriptions attached right now.

    One instance is shared by all jobs of the application. Late subscribers get
    nothing that was published before they attached.
    """

    def __init__(self):
        self._subscriptions: Set[Subscription] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self) -> Subscription:
        subscription = Subscription()
        self._subscriptions.add(subscription)
        logger.debug("Subscriber attached (%d live)", self.subscriber_count)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        self._subscriptions.discard(subscription)
        subscription.close()
        logger.debug("Subscriber detached (%d live)", self.subscriber_count)

    def publish(self, event: ProgressEvent) -> None:
        for subscription in list(self._subscriptions):
            subscription.push(event)

    def close(self) -> None:
        for subscription in list(self._subscriptions):
            self.unsubscribe(subscription)
