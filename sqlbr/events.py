# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
SQLBR Events - Fan-out channel for operation notifications.

Each subscriber gets its own queue; publishing never blocks and never
waits on a slow consumer. Nothing is buffered for subscribers that
join later.

    sub = operation.events.subscribe(EventKind.PERCENT_COMPLETE)
    async for event in sub:
        print(event.percent)
"""

import asyncio
from typing import FrozenSet, List

from sqlbr.models import EventKind, OperationEvent

# Marks the end of a subscription's stream
_END = object()


class Subscription:
    """A single consumer's view of an EventChannel."""

    def __init__(self, channel: "EventChannel", kinds: FrozenSet[EventKind]):
        self._channel = channel
        self._kinds = kinds
        self._queue: asyncio.Queue = asyncio.Queue()
        self._finished = False

    @property
    def closed(self) -> bool:
        return self._finished

    def _offer(self, event: OperationEvent) -> None:
        if self._finished:
            return
        if self._kinds and event.kind not in self._kinds:
            return
        self._queue.put_nowait(event)

    def _finish(self) -> None:
        if not self._finished:
            self._finished = True
            self._queue.put_nowait(_END)

    def close(self) -> None:
        """Unsubscribe. Events already queued are still delivered."""
        self._channel._remove(self)
        self._finish()

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> OperationEvent:
        item = await self._queue.get()
        if item is _END:
            # Keep the marker so repeated iteration also stops
            self._queue.put_nowait(_END)
            raise StopAsyncIteration
        return item

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()


class EventChannel:
    """Broadcasts operation events to every open subscription."""

    def __init__(self) -> None:
        self._subscribers: List[Subscription] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, *kinds: EventKind) -> Subscription:
        """
        Open a subscription, optionally filtered to some event kinds.

        Subscribing to a closed channel returns an already-ended stream.
        """
        subscription = Subscription(self, frozenset(kinds))
        if self._closed:
            subscription._finish()
        else:
            self._subscribers.append(subscription)
        return subscription

    def publish(self, event: OperationEvent) -> None:
        if self._closed:
            return
        for subscription in list(self._subscribers):
            subscription._offer(event)

    def close(self) -> None:
        """End every subscription; later publishes are ignored."""
        self._closed = True
        subscribers, self._subscribers = self._subscribers, []
        for subscription in subscribers:
            subscription._finish()

    def _remove(self, subscription: Subscription) -> None:
        if subscription in self._subscribers:
            self._subscribers.remove(subscription)
