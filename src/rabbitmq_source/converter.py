"""
Record assembly: builds the outbound key and value records for a delivery.

All functions are pure; header tagging errors propagate unchanged.
"""

import logging

from rabbitmq_source.headers import tag_headers
from rabbitmq_source.schemas.models import (
    BasicPropertiesRecord,
    EnvelopeRecord,
    MessageKey,
    MessageValue,
)
from rabbitmq_source.types import Envelope, PropertyBag

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_BODY_ENCODING",
    "envelope",
    "basic_properties",
    "key",
    "value",
]

DEFAULT_BODY_ENCODING = "utf-8"


def envelope(source: Envelope) -> EnvelopeRecord:
    return EnvelopeRecord(
        delivery_tag=source.delivery_tag,
        is_redeliver=source.is_redeliver,
        exchange=source.exchange,
        routing_key=source.routing_key,
    )


def basic_properties(properties: PropertyBag | None) -> BasicPropertiesRecord | None:
    """Copy the property bag, tagging its headers. None when the bag is absent."""
    if properties is None:
        logger.debug("Delivery has no basic properties")
        return None

    return BasicPropertiesRecord(
        content_type=properties.content_type,
        content_encoding=properties.content_encoding,
        headers=tag_headers(properties.headers),
        delivery_mode=properties.delivery_mode,
        priority=properties.priority,
        correlation_id=properties.correlation_id,
        reply_to=properties.reply_to,
        expiration=properties.expiration,
        message_id=properties.message_id,
        timestamp=properties.timestamp,
        type=properties.type,
        user_id=properties.user_id,
        app_id=properties.app_id,
    )


def key(properties: PropertyBag | None) -> MessageKey:
    """Partitioning key: the message id, or None when unavailable."""
    message_id = properties.message_id if properties is not None else None
    return MessageKey(message_id=message_id)


def value(
    consumer_tag: str | None,
    source_envelope: Envelope,
    properties: PropertyBag | None,
    body: bytes,
    encoding: str = DEFAULT_BODY_ENCODING,
) -> MessageValue:
    """
    Build the value record for a delivery.

    The body is decoded as text; bytes that are invalid in ``encoding`` are
    replaced with U+FFFD rather than failing the delivery. No structure is
    parsed out of the body.
    """
    return MessageValue(
        body=bytes(body).decode(encoding, errors="replace"),
        consumer_tag=consumer_tag,
        envelope=envelope(source_envelope),
        basic_properties=basic_properties(properties),
    )
