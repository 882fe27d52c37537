"""Process-local pub/sub for content change events."""
import asyncio
import uuid
from types import TracebackType

import structlog
from watchdog.events import FileSystemEvent

from blog.events.normalizer import normalize_event
from blog.events.types import CONTENT_DIRS, DomainEvent

logger = structlog.get_logger()

WILDCARD = "*"
TOPICS: tuple[str, ...] = (*CONTENT_DIRS, WILDCARD)


class Subscription:
    """One subscriber's bounded queue, consumed with ``async for``.

    Use as a context manager so the subscription is removed from the bus
    when the consumer stops.

    Attributes:
        id: Subscriber id used in log lines.
        topic: Topic the subscription receives, or ``"*"`` for all.
        dropped: Events discarded because this queue was full.
    """

    def __init__(self, bus: "EventBus", topic: str, maxsize: int) -> None:
        self.id = uuid.uuid4().hex
        self.topic = topic
        self.dropped = 0
        self._bus = bus
        self._queue: asyncio.Queue[DomainEvent] = asyncio.Queue(maxsize=maxsize)

    def offer(self, event: DomainEvent) -> bool:
        """Enqueue ``event``, evicting the oldest one if the queue is full.

        Returns:
            True if an older event was dropped to make room.
        """
        evicted = False
        if self._queue.full():
            self._queue.get_nowait()
            self.dropped += 1
            evicted = True
            logger.warning("event_dropped", subscriber_id=self.id, topic=self.topic)
        self._queue.put_nowait(event)
        return evicted

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> DomainEvent:
        return await self._queue.get()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self._bus.unsubscribe(self)


class EventBus:
    """Fan content events out to per-subscriber queues.

    Publishing never blocks: a slow subscriber loses its oldest events
    instead of holding up the watcher.

    Args:
        queue_size: Capacity of each subscriber's queue.
        max_subscribers: Upper bound on live subscriptions.
    """

    def __init__(self, queue_size: int = 100, max_subscribers: int = 10) -> None:
        self._queue_size = queue_size
        self._max_subscribers = max_subscribers
        self._subscriptions: dict[str, Subscription] = {}
        self.dropped_events = 0

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, topic: str = WILDCARD) -> Subscription:
        """Register a subscriber for ``topic``.

        Raises:
            ValueError: If the topic is unknown or the bus is full.
        """
        if topic not in TOPICS:
            raise ValueError(f"Unknown topic {topic!r}, expected one of {TOPICS}")
        if len(self._subscriptions) >= self._max_subscribers:
            raise ValueError(f"Subscriber limit of {self._max_subscribers} reached")

        subscription = Subscription(self, topic, self._queue_size)
        self._subscriptions[subscription.id] = subscription
        logger.debug("subscriber_added", subscriber_id=subscription.id, topic=topic)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        if self._subscriptions.pop(subscription.id, None) is not None:
            logger.debug(
                "subscriber_removed",
                subscriber_id=subscription.id,
                dropped=subscription.dropped,
            )

    def publish(self, event: DomainEvent) -> int:
        """Deliver ``event`` to its topic's subscribers and wildcard ones.

        Returns:
            Number of subscriptions that received it.
        """
        delivered = 0
        for subscription in list(self._subscriptions.values()):
            if subscription.topic not in (event.topic, WILDCARD):
                continue
            if subscription.offer(event):
                self.dropped_events += 1
            delivered += 1
        return delivered

    async def publish_filesystem_event(self, raw_event: FileSystemEvent) -> None:
        """Watcher callback: normalize a raw event and publish the result."""
        for event in normalize_event(raw_event):
            delivered = self.publish(event)
            logger.debug(
                "event_published",
                event_type=event.type.value,
                slug=event.slug,
                delivered_to=delivered,
            )
