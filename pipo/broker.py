"""Publishing and consuming messages through Redis streams."""

from __future__ import annotations

import threading
from typing import Any, Callable, Mapping, Protocol

import redis

MessageHandler = Callable[[bytes], None]

_FIELD = "data"


class Broker(Protocol):
    """A message broker that can publish to and consume from topics."""

    def publish(self, topic: str, message: bytes) -> None:
        """Append ``message`` to ``topic``."""
        ...

    def subscribe(self, topic: str, handler: MessageHandler) -> None:
        """Deliver every message of ``topic`` to ``handler`` until stopped."""
        ...


def _payload(fields: Mapping[Any, Any]) -> bytes:
    for key in (_FIELD.encode(), _FIELD):
        if key in fields:
            value = fields[key]
            return value if isinstance(value, bytes) else str(value).encode("utf-8")
    raise ValueError(f"stream entry has no {_FIELD!r} field")


class RedisStreamBroker:
    """A broker that keeps each topic as a Redis stream."""

    def __init__(
        self,
        client: Any,
        *,
        start_id: str = "$",
        block_ms: int = 1000,
        count: int = 100,
    ) -> None:
        self.client = client
        self.start_id = start_id
        self.block_ms = block_ms
        self.count = count
        self._closed = threading.Event()

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> "RedisStreamBroker":
        """Connect to the Redis server at ``url`` and check that it answers."""
        client = redis.Redis.from_url(url)
        client.ping()
        return cls(client, **kwargs)

    def publish(self, topic: str, message: bytes) -> None:
        """Append ``message`` to the stream named ``topic``."""
        self.client.xadd(topic, {_FIELD: message})

    def subscribe(self, topic: str, handler: MessageHandler) -> None:
        """Feed each new entry of ``topic`` to ``handler`` until the broker is closed.

        An exception raised by ``handler`` ends the subscription and propagates.
        """
        last_id = self.start_id
        while not self._closed.is_set():
            response = self.client.xread(
                {topic: last_id}, count=self.count, block=self.block_ms
            )
            for _stream, entries in response or []:
                for entry_id, fields in entries:
                    last_id = entry_id
                    handler(_payload(fields))

    def ping(self) -> None:
        """Raise if the Redis server cannot be reached."""
        self.client.ping()

    def close(self) -> None:
        """Stop any running subscription and close the connection."""
        self._closed.set()
        self.client.close()