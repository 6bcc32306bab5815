"""User-facing status messages."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from salvo.telemetry import get_meter

from .streams import Handler, Stream, Subscription

logger = logging.getLogger(__name__)
meter = get_meter("salvo.engine.messages")

MESSAGE_COUNTER = meter.create_counter(
    "salvo_engine_messages",
    unit="1",
    description="Status messages sent to participants",
)


class MessageStatus(Enum):
    ERROR = "error"
    WARNING = "warning"
    OK = "ok"


@dataclass(frozen=True)
class Message:
    body: str
    status: MessageStatus


class MessageService:
    """Broadcasts status messages to subscribers.

    Subscribers show messages to people; the log copy is written at debug level.
    """

    def __init__(self) -> None:
        self._stream: Stream[Message] = Stream("messages")

    def send(self, body: str, status: MessageStatus = MessageStatus.OK) -> Message:
        message = Message(body, status)
        MESSAGE_COUNTER.add(1, attributes={"status": status.value})
        logger.debug("status_message", extra={"body": body, "status": status.value})
        self._stream.publish(message)
        return message

    def error(self, body: str) -> Message:
        return self.send(body, MessageStatus.ERROR)

    def warning(self, body: str) -> Message:
        return self.send(body, MessageStatus.WARNING)

    def subscribe(self, handler: Handler) -> Subscription:
        return self._stream.subscribe(handler)

    def unsubscribe(self, subscription: Subscription) -> None:
        self._stream.unsubscribe(subscription)
