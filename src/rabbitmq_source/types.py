"""Transport types passed into and out of the transcoder."""

import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from rabbitmq_source.schemas.catalog import (
    FIELD_ENVELOPE_DELIVERYTAG,
    FIELD_ENVELOPE_ROUTINGKEY,
    Schema,
)
from rabbitmq_source.schemas.models import MessageKey, MessageValue

__all__ = [
    "Clock",
    "system_clock",
    "epoch_millis",
    "Envelope",
    "PropertyBag",
    "Delivery",
    "OutboundRecord",
]

# Zero-argument callable returning wall-clock time in epoch milliseconds
Clock = Callable[[], int]


def system_clock() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def epoch_millis(value: datetime) -> int:
    """Milliseconds since the Unix epoch. Naive datetimes are read as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return (value - _EPOCH) // timedelta(milliseconds=1)


@dataclass(frozen=True)
class Envelope:
    """Routing envelope of a broker delivery."""

    delivery_tag: int | None
    is_redeliver: bool = False
    exchange: str | None = None
    routing_key: str | None = None


@dataclass(frozen=True)
class PropertyBag:
    """AMQP basic properties as delivered; header values are untyped."""

    content_type: str | None = None
    content_encoding: str | None = None
    headers: Mapping[str, Any] | None = None
    delivery_mode: int | None = None
    priority: int | None = None
    correlation_id: str | None = None
    reply_to: str | None = None
    expiration: str | None = None
    message_id: str | None = None
    timestamp: datetime | None = None
    type: str | None = None
    user_id: str | None = None
    app_id: str | None = None


@dataclass(frozen=True)
class Delivery:
    """One message handed over by the broker consumer."""

    consumer_tag: str | None
    envelope: Envelope
    properties: PropertyBag | None
    body: bytes


@dataclass(frozen=True)
class OutboundRecord:
    """
    Record ready for the Kafka write path.

    ``source_partition``/``source_offset`` let the host track replay position
    (routing key / delivery tag). ``partition`` is always None so the producer's
    partitioner assigns one from the key. ``timestamp`` is epoch milliseconds.
    """

    source_partition: dict[str, str]
    source_offset: dict[str, int]
    topic: str
    partition: int | None
    key_schema: Schema
    key: MessageKey
    value_schema: Schema
    value: MessageValue
    timestamp: int

    @property
    def routing_key(self) -> str:
        return self.source_partition[FIELD_ENVELOPE_ROUTINGKEY]

    @property
    def delivery_tag(self) -> int:
        return self.source_offset[FIELD_ENVELOPE_DELIVERYTAG]

    def serialize_key(self) -> bytes:
        return self.key.to_schema_json(self.key_schema).encode("utf-8")

    def serialize_value(self) -> bytes:
        return self.value.to_schema_json(self.value_schema).encode("utf-8")

    def producer_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for a Kafka producer's ``send()``."""
        return {
            "topic": self.topic,
            "key": self.serialize_key(),
            "value": self.serialize_value(),
            "partition": self.partition,
            "timestamp_ms": self.timestamp,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_partition": dict(self.source_partition),
            "source_offset": dict(self.source_offset),
            "topic": self.topic,
            "partition": self.partition,
            "key_schema": self.key_schema.to_dict(),
            "key": self.key.to_schema_dict(self.key_schema),
            "value_schema": self.value_schema.to_dict(),
            "value": self.value.to_schema_dict(self.value_schema),
            "timestamp": self.timestamp,
        }
