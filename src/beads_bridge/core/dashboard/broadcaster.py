"""
Fan-out of live-state envelopes to dashboard subscribers.

Envelopes are plain dicts::

    {"type": "connected"}
    {"type": "update", "issueId": "front-e1", "data": <IssueState>}
    {"type": "error", "message": "..."}

Delivery is fire-and-forget. A subscriber whose ``send`` raises is logged
and dropped; the remaining subscribers still receive the envelope.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import threading
from collections.abc import AsyncIterator
from datetime import datetime
from typing import Any, Protocol

from pydantic import BaseModel

logger = logging.getLogger(__name__)

Envelope = dict[str, Any]

CONNECTED: Envelope = {"type": "connected"}


class Subscriber(Protocol):
    """Receives envelopes from a Broadcaster."""

    def send(self, envelope: Envelope) -> None: ...

    def close(self) -> None: ...


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def format_sse(envelope: Envelope) -> str:
    """Render an envelope as a server-sent-events frame."""
    return f"data: {json.dumps(envelope, default=_to_jsonable)}\n\n"


class Broadcaster:
    """
    Deliver envelopes to every subscriber.

    Example:
        >>> broadcaster = Broadcaster()
        >>> subscriber = QueueSubscriber()
        >>> broadcaster.subscribe(subscriber)
        >>> broadcaster.broadcast({"type": "update", "issueId": "x", "data": state})
    """

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []
        self._lock = threading.Lock()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, subscriber: Subscriber) -> None:
        """Register a subscriber and greet it with a ``connected`` envelope."""
        try:
            subscriber.send(dict(CONNECTED))
        except Exception as e:
            logger.warning("Subscriber rejected connected event: %s", e)
            return
        with self._lock:
            self._subscribers.append(subscriber)

    def unsubscribe(self, subscriber: Subscriber) -> None:
        with self._lock:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

    def broadcast(self, envelope: Envelope) -> None:
        """Send ``envelope`` to all subscribers, dropping any that fail."""
        with self._lock:
            subscribers = list(self._subscribers)
        for subscriber in subscribers:
            try:
                subscriber.send(envelope)
            except Exception as e:
                logger.warning("Dropping subscriber after failed send: %s", e)
                self.unsubscribe(subscriber)

    def close_all(self) -> None:
        """Close and forget every subscriber."""
        with self._lock:
            subscribers, self._subscribers = self._subscribers, []
        for subscriber in subscribers:
            try:
                subscriber.close()
            except Exception as e:
                logger.debug("Error closing subscriber: %s", e)


class QueueSubscriber:
    """
    Subscriber backed by a bounded ``asyncio.Queue``.

    When the consumer falls behind and the queue is full, ``send`` raises
    ``asyncio.QueueFull`` and the broadcaster drops the subscriber.
    """

    def __init__(self, maxsize: int = 100) -> None:
        self.queue: asyncio.Queue[Envelope | None] = asyncio.Queue(maxsize=maxsize)
        self.closed = False

    def send(self, envelope: Envelope) -> None:
        if self.closed:
            raise RuntimeError("Subscriber is closed")
        self.queue.put_nowait(envelope)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        # A full queue already signals a stalled consumer; it is dropped anyway.
        with contextlib.suppress(asyncio.QueueFull):
            self.queue.put_nowait(None)

    async def events(self) -> AsyncIterator[Envelope]:
        """Yield envelopes until the subscriber is closed."""
        while True:
            envelope = await self.queue.get()
            if envelope is None:
                return
            yield envelope
