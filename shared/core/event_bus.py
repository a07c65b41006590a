"""
Topic based publish/subscribe clients for asset domain events.

The bus is deliberately lossy: a message published while no subscriber
is bound is gone for that subscriber. Publishing never raises; callers
get a PublishOutcome back, log it and move on.
"""

import json
import threading
import time
from collections import deque
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple

import redis
from pydantic import ValidationError

from .events import DomainEvent
from .logging_config import event_topic_var, get_logger

logger = get_logger(__name__)

DEFAULT_CHANNEL_PREFIX = "opsmind_events"

Handler = Callable[[Dict[str, Any]], Any]


class PublishOutcome(str, Enum):
    SENT = "sent"
    SKIPPED = "skipped"   # no broker connection, nothing attempted
    FAILED = "failed"


class EventBusUnavailable(RuntimeError):
    """Raised when a process that cannot run without the broker fails to reach it"""


class EventBus:
    """Common behaviour for bus clients: envelope encoding and handler dispatch."""

    def __init__(self) -> None:
        self._handlers: Dict[str, Handler] = {}

    def publish(self, topic: str, payload: Dict[str, Any]) -> PublishOutcome:
        raise NotImplementedError

    def subscribe(self, topic: str, handler: Handler) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass

    @property
    def connected(self) -> bool:
        return True

    @staticmethod
    def encode(topic: str, payload: Dict[str, Any]) -> str:
        return DomainEvent(topic=topic, data=payload).model_dump_json()

    def dispatch(self, raw: Any) -> bool:
        """Decode one envelope and hand its data to the topic handler.

        Returns True when a handler ran to completion. Malformed envelopes
        and handler errors are logged and dropped.
        """
        try:
            event = DomainEvent.model_validate_json(raw)
        except (ValidationError, ValueError, TypeError):
            logger.warning(
                "Dropping malformed event envelope",
                extra={'extra_fields': {'raw': str(raw)[:200]}}
            )
            return False

        handler = self._handlers.get(event.topic)
        if handler is None:
            logger.debug(f"No handler bound for {event.topic}")
            return False

        token = event_topic_var.set(event.topic)
        try:
            handler(event.data)
            return True
        except Exception:
            logger.error(f"Handler for {event.topic} failed", exc_info=True)
            return False
        finally:
            event_topic_var.reset(token)


class RedisEventBus(EventBus):
    """Redis pub/sub transport. One channel per topic, named <prefix>.<topic>."""

    def __init__(
        self,
        url: str,
        channel_prefix: str = DEFAULT_CHANNEL_PREFIX,
        socket_timeout: float = 2.0,
        reconnect_delay: float = 1.0,
        max_reconnect_delay: float = 30.0,
    ):
        super().__init__()
        self.url = url
        self.channel_prefix = channel_prefix
        self.socket_timeout = socket_timeout
        self.reconnect_delay = reconnect_delay
        self.max_reconnect_delay = max_reconnect_delay
        self._client: Optional[redis.Redis] = None
        self._pubsub = None

    @property
    def connected(self) -> bool:
        return self._client is not None

    def channel(self, topic: str) -> str:
        return f"{self.channel_prefix}.{topic}"

    def connect(self, required: bool = False) -> bool:
        """Open the broker connection.

        With required=False an unreachable broker leaves the bus degraded
        (publishes become no-ops); with required=True it raises.
        """
        logger.info(f"Connecting to event broker at {self.url}")
        try:
            client = redis.from_url(
                self.url,
                decode_responses=True,
                socket_connect_timeout=self.socket_timeout,
                socket_timeout=self.socket_timeout,
            )
            client.ping()
        except redis.RedisError as e:
            self._client = None
            if required:
                raise EventBusUnavailable(f"Event broker unreachable: {e}") from e
            logger.warning(f"Event broker unreachable, publishing disabled: {e}")
            return False

        self._client = client
        logger.info("Connected to event broker")
        return True

    def publish(self, topic: str, payload: Dict[str, Any]) -> PublishOutcome:
        if self._client is None:
            logger.warning(f"Cannot publish {topic}: no broker connection")
            return PublishOutcome.SKIPPED
        try:
            receivers = self._client.publish(self.channel(topic), self.encode(topic, payload))
        except (redis.RedisError, ValueError, TypeError):
            logger.error(f"Failed to publish {topic}", exc_info=True)
            return PublishOutcome.FAILED

        logger.info(
            f"Published {topic}",
            extra={'extra_fields': {'topic': topic, 'receivers': receivers}}
        )
        return PublishOutcome.SENT

    def subscribe(self, topic: str, handler: Handler) -> None:
        if self._client is None:
            raise EventBusUnavailable(f"Cannot subscribe to {topic}: no broker connection")
        if self._pubsub is None:
            self._pubsub = self._client.pubsub(ignore_subscribe_messages=True)
        self._handlers[topic] = handler
        self._pubsub.subscribe(self.channel(topic))
        logger.info(f"Subscribed to {topic}")

    def listen(self, stop_event: threading.Event, poll_timeout: float = 1.0) -> None:
        """Consume messages until stop_event is set.

        A dropped connection, or a pubsub that silently lost its
        subscriptions, puts the bus in a disconnected state; reconnects are
        retried with exponential backoff until one succeeds.
        """
        if not self._handlers:
            raise EventBusUnavailable("listen() called before any subscribe()")

        delay = self.reconnect_delay
        while not stop_event.is_set():
            if self._pubsub is None or not self._pubsub.subscribed:
                logger.warning(f"Event broker connection lost; reconnecting in {delay:.1f}s")
                if stop_event.wait(delay):
                    break
                if self._resubscribe():
                    delay = self.reconnect_delay
                else:
                    delay = min(delay * 2, self.max_reconnect_delay)
                continue

            try:
                message = self._pubsub.get_message(timeout=poll_timeout)
            except (redis.ConnectionError, redis.TimeoutError) as e:
                logger.warning(f"Lost broker connection: {e}")
                self._drop_connection()
                continue

            if message and message.get("type") == "message":
                self.dispatch(message["data"])

    def _drop_connection(self) -> None:
        pubsub, client = self._pubsub, self._client
        self._pubsub = None
        self._client = None
        for resource in (pubsub, client):
            if resource is None:
                continue
            try:
                resource.close()
            except (redis.RedisError, OSError):
                logger.debug("Error closing stale broker connection", exc_info=True)

    def _resubscribe(self) -> bool:
        """Open a fresh connection and re-bind every handler's channel."""
        self._drop_connection()
        try:
            client = redis.from_url(
                self.url,
                decode_responses=True,
                socket_connect_timeout=self.socket_timeout,
                socket_timeout=self.socket_timeout,
            )
            client.ping()
            pubsub = client.pubsub(ignore_subscribe_messages=True)
            pubsub.subscribe(*[self.channel(topic) for topic in self._handlers])
        except redis.RedisError as e:
            logger.warning(f"Reconnect attempt failed: {e}")
            return False

        self._client = client
        self._pubsub = pubsub
        logger.info("Re-subscribed after broker reconnect")
        return True

    def close(self) -> None:
        if self._pubsub is not None:
            try:
                self._pubsub.close()
            except redis.RedisError:
                logger.warning("Error closing pubsub", exc_info=True)
            self._pubsub = None
        if self._client is not None:
            try:
                self._client.close()
            except redis.RedisError:
                logger.warning("Error closing broker connection", exc_info=True)
            self._client = None
        logger.info("Event broker connection closed")


class InMemoryEventBus(EventBus):
    """Process local bus.

    publish() only queues; handlers run when deliver_pending() is called,
    which keeps the publisher and the consumer on separate schedules.
    Setting connected=False makes publishes lossy like a broker outage.
    """

    def __init__(self) -> None:
        super().__init__()
        self.published: List[Tuple[str, Dict[str, Any]]] = []
        self._queue: Deque[str] = deque()
        self._lock = threading.Lock()
        self._connected = True

    @property
    def connected(self) -> bool:
        return self._connected

    @connected.setter
    def connected(self, value: bool) -> None:
        self._connected = value

    def publish(self, topic: str, payload: Dict[str, Any]) -> PublishOutcome:
        if not self._connected:
            logger.warning(f"Cannot publish {topic}: bus disconnected")
            return PublishOutcome.SKIPPED
        try:
            raw = self.encode(topic, payload)
        except (ValueError, TypeError):
            logger.error(f"Failed to publish {topic}", exc_info=True)
            return PublishOutcome.FAILED

        with self._lock:
            self.published.append((topic, payload))
            if topic in self._handlers:
                self._queue.append(raw)
        return PublishOutcome.SENT

    def subscribe(self, topic: str, handler: Handler) -> None:
        self._handlers[topic] = handler

    def topics(self) -> List[str]:
        return [topic for topic, _ in self.published]

    def deliver_pending(self) -> int:
        delivered = 0
        while True:
            with self._lock:
                if not self._queue:
                    return delivered
                raw = self._queue.popleft()
            if self.dispatch(raw):
                delivered += 1

    def close(self) -> None:
        self._handlers.clear()
        with self._lock:
            self._queue.clear()
        self._connected = False


def wait_for_broker(bus: RedisEventBus, max_attempts: int = 30, delay: float = 1.0) -> None:
    """Block until the broker answers or give up with EventBusUnavailable."""
    for attempt in range(1, max_attempts + 1):
        try:
            bus.connect(required=True)
            logger.info(f"Event broker ready after {attempt} attempt(s)")
            return
        except EventBusUnavailable as e:
            logger.warning(f"Event broker not ready (attempt {attempt}): {e}")
            time.sleep(delay)
    raise EventBusUnavailable("Event broker not ready after max attempts")
