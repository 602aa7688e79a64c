"""Async in-process event bus with bounded per-subscriber queues.

Input events gathered by the surface adapter are published here under their
name (``"click"``, ``"keydown"``, ...). Every subscriber of a name gets its
own queue, so delivery is broadcast: each subscriber sees every event.

Usage example:

    bus = EventBus(default_maxsize=256)
    clicks = bus.subscribe("click")

    async def consumer():
        async for env in clicks:
            handle(env.payload)

    await bus.publish("click", event)
    await bus.close()  # consumers' loops finish

Notes
-----
- Backpressure policy is drop-oldest on publish if a subscriber queue is full.
- Subscribing is synchronous, so a subscription taken before a publish never
  misses that publish.
- Shutdown via close() signals all subscriptions to finish by sending a sentinel.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from time import monotonic
from typing import Any, AsyncIterator, Dict, List

__all__ = [
    "EventBus",
    "Subscription",
    "Envelope",
    "BusMetrics",
    "TopicStats",
]


@dataclass(slots=True)
class Envelope:
    topic: str
    ts: float
    payload: Any


@dataclass(slots=True)
class TopicStats:
    queue_len: int
    drops: int
    publishes: int
    deliveries: int


@dataclass(slots=True)
class BusMetrics:
    topics: Dict[str, TopicStats]


_Sentinel = object()


class _TopicState:
    __slots__ = ("maxsize", "subscribers", "drops", "publishes", "deliveries")

    def __init__(self, maxsize: int) -> None:
        self.maxsize: int = max(1, int(maxsize))
        self.subscribers: List[asyncio.Queue[Envelope | object]] = []
        # metrics
        self.drops: int = 0
        self.publishes: int = 0
        self.deliveries: int = 0


class EventBus:
    """Async event bus with per-topic bounded queues and drop-oldest backpressure.

    Parameters
    ----------
    default_maxsize:
        Queue size for each new subscription (min 1).
    """

    def __init__(self, *, default_maxsize: int = 1024) -> None:
        self._default_maxsize = max(1, int(default_maxsize))
        self._topics: Dict[str, _TopicState] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _state(self, topic: str) -> _TopicState:
        state = self._topics.get(topic)
        if state is None:
            state = _TopicState(self._default_maxsize)
            self._topics[topic] = state
        return state

    def subscribe(self, topic: str) -> "Subscription":
        """Create a subscription to a topic.

        Multiple subscribers per topic are supported; each gets its own queue.
        """
        if self._closed:
            raise RuntimeError("EventBus is closed")
        state = self._state(topic)
        # Unbounded at the asyncio level; publish enforces state.maxsize so the
        # close sentinel never displaces an event.
        queue: asyncio.Queue[Envelope | object] = asyncio.Queue()
        state.subscribers.append(queue)
        return Subscription(self, topic, queue)

    async def publish(self, topic: str, payload: Any) -> None:
        """Publish *payload* to every current subscriber of *topic*.

        Applies drop-oldest per subscriber queue if full.
        """
        if self._closed:
            raise RuntimeError("EventBus is closed")

        env = Envelope(topic=topic, ts=monotonic(), payload=payload)
        state = self._state(topic)
        state.publishes += 1
        # Snapshot list to tolerate unsubscribes during iteration.
        for q in list(state.subscribers):
            while q.qsize() >= state.maxsize:
                q.get_nowait()
                state.drops += 1
            q.put_nowait(env)
            state.deliveries += 1

    async def close(self) -> None:
        """Gracefully close the bus and signal subscribers to finish."""
        if self._closed:
            return
        self._closed = True
        for state in self._topics.values():
            for q in list(state.subscribers):
                q.put_nowait(_Sentinel)

    def metrics(self) -> BusMetrics:
        """Return per-topic metrics snapshot."""
        out: Dict[str, TopicStats] = {}
        for name, state in self._topics.items():
            # queue_len as max of subscriber queue sizes to reflect worst backlog
            max_qlen = max((q.qsize() for q in state.subscribers), default=0)
            out[name] = TopicStats(
                queue_len=max_qlen,
                drops=state.drops,
                publishes=state.publishes,
                deliveries=state.deliveries,
            )
        return BusMetrics(topics=out)

    def list_topics(self) -> Dict[str, int]:
        """Return mapping of topic -> active subscriber count."""
        return {name: len(state.subscribers) for name, state in self._topics.items()}

    def _remove_subscription(
        self, topic: str, queue: asyncio.Queue[Envelope | object]
    ) -> None:
        state = self._topics.get(topic)
        if state is None:
            return
        try:
            state.subscribers.remove(queue)
        except ValueError:
            return


class Subscription:
    """A subscription that yields Envelopes as an async iterator."""

    def __init__(
        self,
        bus: EventBus,
        topic: str,
        queue: asyncio.Queue[Envelope | object],
    ) -> None:
        self._bus = bus
        self._topic = topic
        self._queue: asyncio.Queue[Envelope | object] = queue
        self._closed = False

    @property
    def topic(self) -> str:
        return self._topic

    def __aiter__(self) -> AsyncIterator[Envelope]:
        return self

    async def __anext__(self) -> Envelope:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _Sentinel:
            self._closed = True
            raise StopAsyncIteration
        assert isinstance(item, Envelope)
        return item

    async def close(self) -> None:
        """Detach from the bus; a pending iteration finishes."""
        if self._closed:
            return
        self._closed = True
        self._bus._remove_subscription(self._topic, self._queue)
        self._queue.put_nowait(_Sentinel)
