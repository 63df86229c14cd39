"""
Adapters from broker client messages to transcoder transport types.

Bridges ``aio_pika`` incoming messages into ``Delivery`` so a consumer
callback can hand them straight to ``SourceRecordBuilder.build_delivery``::

    async def on_message(message: AbstractIncomingMessage) -> None:
        async with message.process():
            record = builder.build_delivery(from_incoming_message(message))
            await producer.send(**record.producer_kwargs())
"""

import logging
from typing import Any

from aio_pika.abc import AbstractIncomingMessage

from core.errors.exceptions import MalformedEnvelopeError
from rabbitmq_source.types import Delivery, Envelope, PropertyBag

logger = logging.getLogger(__name__)

__all__ = [
    "from_incoming_message",
    "expiration_to_amqp",
]


def expiration_to_amqp(expiration: Any) -> str | None:
    """
    Render an expiration back into the AMQP shortstr form (milliseconds).

    aio_pika decodes the ``expiration`` property into float seconds; the
    outbound record carries the string the publisher set.
    """
    if expiration is None:
        return None
    if isinstance(expiration, str):
        return expiration
    return str(int(round(float(expiration) * 1000)))


def _properties(message: AbstractIncomingMessage) -> PropertyBag:
    delivery_mode = message.delivery_mode
    return PropertyBag(
        content_type=message.content_type,
        content_encoding=message.content_encoding,
        headers=dict(message.headers) if message.headers else None,
        delivery_mode=int(delivery_mode) if delivery_mode is not None else None,
        priority=message.priority,
        correlation_id=message.correlation_id,
        reply_to=message.reply_to,
        expiration=expiration_to_amqp(message.expiration),
        message_id=message.message_id,
        timestamp=message.timestamp,
        type=message.type,
        user_id=message.user_id,
        app_id=message.app_id,
    )


def from_incoming_message(message: AbstractIncomingMessage) -> Delivery:
    """
    Convert an aio_pika incoming message into a Delivery.

    Args:
        message: Message received from a queue consumer (not ``basic_get``
            results without a delivery tag)

    Returns:
        Delivery with envelope, properties and raw body

    Raises:
        MalformedEnvelopeError: If the message has no delivery tag
    """
    if message.delivery_tag is None:
        raise MalformedEnvelopeError(
            "Incoming message has no delivery tag",
            context={"routing_key": message.routing_key, "message_id": message.message_id},
        )

    delivery = Delivery(
        consumer_tag=message.consumer_tag,
        envelope=Envelope(
            delivery_tag=message.delivery_tag,
            is_redeliver=bool(message.redelivered),
            exchange=message.exchange,
            routing_key=message.routing_key,
        ),
        properties=_properties(message),
        body=bytes(message.body),
    )
    logger.debug(
        "Adapted incoming message",
        extra={"message_id": message.message_id, "body_bytes": len(delivery.body)},
    )
    return delivery
