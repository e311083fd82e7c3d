"""Topic based publish/subscribe with per-subscriber buffering of outgoing messages."""

from __future__ import annotations

import enum
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")

# A subscriber holds at most this many undrained messages before it is drained.
MAX_MESSAGES_PER_SUBSCRIBER = 32

# The shared palette of outgoing messages holds at most this many entries.
MAX_OUTGOING_MESSAGES = 0xFFFF


class IteratorFlags(enum.IntFlag):
    """Position of a message within one subscriber's drain."""

    NONE = 0
    LAST = 1
    FIRST = 2


@dataclass(eq=False)
class Topic:
    """A named topic and the subscribers currently on it."""

    name: str
    subscribers: dict[Subscriber, None] = field(default_factory=dict)

    def __iter__(self) -> Iterator[Subscriber]:
        return iter(self.subscribers)

    def __len__(self) -> int:
        return len(self.subscribers)

    def __contains__(self, subscriber: object) -> bool:
        return subscriber in self.subscribers


@dataclass(eq=False)
class Subscriber:
    """One party that can subscribe to topics; carries arbitrary user data."""

    user: Any = None
    topics: set[Topic] = field(default_factory=set)
    _message_indices: list[int] = field(default_factory=list, repr=False)

    def needs_drainage(self) -> bool:
        """Whether published messages are waiting to be delivered to this subscriber."""
        return bool(self._message_indices)


DrainCallback = Callable[[Subscriber, Any, IteratorFlags], bool]


class TopicTree(Generic[T]):
    """Keeps topics and subscribers and buffers published messages until drained.

    The drain callback receives a subscriber, a message and its IteratorFlags;
    returning a true value stops that subscriber's drain short. It must not
    publish, subscribe or unsubscribe.
    """

    def __init__(self, callback: DrainCallback) -> None:
        self.iterating_subscriber: Subscriber | None = None
        self._callback = callback
        self._topics: dict[str, Topic] = {}
        # Most recently added subscriber is drained first.
        self._drainable: dict[Subscriber, None] = {}
        self._outgoing: list[T] = []

    def _check_iterating_subscriber(self, subscriber: Subscriber) -> None:
        if self.iterating_subscriber is subscriber:
            raise RuntimeError(
                "a subscriber must not subscribe or unsubscribe while iterating its topics"
            )

    def _drain_impl(self, subscriber: Subscriber) -> None:
        # Clear first so that a send from within the callback does not recurse.
        indices = subscriber._message_indices
        subscriber._message_indices = []
        last = len(indices) - 1
        for position, index in enumerate(indices):
            flags = IteratorFlags.NONE
            if position == last:
                flags |= IteratorFlags.LAST
            if position == 0:
                flags |= IteratorFlags.FIRST
            if self._callback(subscriber, self._outgoing[index], flags):
                break

    def lookup_topic(self, topic: str) -> Topic | None:
        """Return the topic of that name, or None if nobody is subscribed to it."""
        return self._topics.get(topic)

    def subscribe(self, subscriber: Subscriber, topic: str) -> Topic | None:
        """Subscribe to a topic, creating it if needed; None if already subscribed."""
        self._check_iterating_subscriber(subscriber)

        topic_obj = self._topics.get(topic)
        if topic_obj is None:
            topic_obj = Topic(topic)
            self._topics[topic] = topic_obj

        if topic_obj in subscriber.topics:
            return None
        subscriber.topics.add(topic_obj)
        topic_obj.subscribers[subscriber] = None
        return topic_obj

    def unsubscribe(self, subscriber: Subscriber, topic: str) -> tuple[bool, bool, int]:
        """Leave a topic.

        Returns (ok, last, new_count): whether the subscriber was on the topic,
        whether it now holds no topics, and how many remain on the topic
        (-1 when nothing was done).
        """
        self._check_iterating_subscriber(subscriber)

        topic_obj = self._topics.get(topic)
        if topic_obj is None or topic_obj not in subscriber.topics:
            return False, False, -1

        subscriber.topics.discard(topic_obj)
        topic_obj.subscribers.pop(subscriber, None)

        new_count = len(topic_obj)
        if not new_count:
            del self._topics[topic]

        return True, not subscriber.topics, new_count

    def create_subscriber(self) -> Subscriber:
        """Make a new subscriber belonging to no topic."""
        return Subscriber()

    def free_subscriber(self, subscriber: Subscriber | None) -> None:
        """Remove a subscriber from all its topics and drop its pending messages."""
        if subscriber is None:
            return

        for topic_obj in subscriber.topics:
            if len(topic_obj) == 1:
                self._topics.pop(topic_obj.name, None)
            else:
                topic_obj.subscribers.pop(subscriber, None)
        subscriber.topics.clear()

        if subscriber.needs_drainage():
            self._drainable.pop(subscriber, None)
            subscriber._message_indices = []

    def drain(self, subscriber: Subscriber | None = None) -> None:
        """Deliver pending messages to one subscriber, or to all when none is given."""
        if subscriber is not None:
            if subscriber.needs_drainage():
                self._drainable.pop(subscriber, None)
                self._drain_impl(subscriber)
                if not self._drainable:
                    self._outgoing.clear()
            return

        if not self._drainable:
            return
        for pending in reversed(list(self._drainable)):
            if pending not in self._drainable:
                continue
            del self._drainable[pending]
            if pending.needs_drainage():
                self._drain_impl(pending)
        self._drainable.clear()
        self._outgoing.clear()

    def publish_big(
        self,
        sender: Subscriber | None,
        topic: str,
        message: Any,
        callback: Callable[[Subscriber, Any], Any],
    ) -> bool:
        """Hand a message straight to every subscriber but the sender, bypassing buffering.

        Returns False when the topic does not exist.
        """
        topic_obj = self._topics.get(topic)
        if topic_obj is None:
            return False
        for subscriber in list(topic_obj):
            if subscriber is not sender:
                callback(subscriber, message)
        return True

    def publish(self, sender: Subscriber | None, topic: str, message: T) -> bool:
        """Buffer a message for every subscriber of the topic except the sender.

        Returns True if at least one subscriber will receive it.
        """
        topic_obj = self._topics.get(topic)
        if topic_obj is None:
            return False

        if len(self._outgoing) == MAX_OUTGOING_MESSAGES:
            self.drain()

        referenced = False
        for subscriber in list(topic_obj):
            if subscriber is sender:
                continue
            referenced = True

            if len(subscriber._message_indices) == MAX_MESSAGES_PER_SUBSCRIBER:
                self.drain(subscriber)

            subscriber._message_indices.append(len(self._outgoing))
            if len(subscriber._message_indices) == 1:
                self._drainable[subscriber] = None

        if referenced:
            self._outgoing.append(message)
        return referenced