"""
Source record builder: turns one broker delivery into one outbound record.

The builder is stateless between calls and performs no I/O, so a single
instance can be shared by concurrent consumers. Failures are classified and
re-raised; deciding whether to skip, dead-letter or stop is left to the host.
"""

import logging
from types import MappingProxyType

from config.config import SourceConfig, ValueFormat
from core.errors.exceptions import MalformedEnvelopeError, PipelineError
from core.logging import DeliveryLogContext, log_exception, log_with_context
from rabbitmq_source import converter
from rabbitmq_source.schemas.catalog import (
    FIELD_ENVELOPE_DELIVERYTAG,
    FIELD_ENVELOPE_ROUTINGKEY,
    SCHEMA_KEY,
    SCHEMA_MESSAGE,
    SCHEMA_VALUE,
)
from rabbitmq_source.topic import TopicTemplate
from rabbitmq_source.types import (
    Clock,
    Delivery,
    Envelope,
    OutboundRecord,
    PropertyBag,
    epoch_millis,
    system_clock,
)

logger = logging.getLogger(__name__)

__all__ = [
    "VALUE_SCHEMAS",
    "SourceRecordBuilder",
]

VALUE_SCHEMAS = MappingProxyType(
    {
        ValueFormat.BODY: SCHEMA_VALUE,
        ValueFormat.MESSAGE: SCHEMA_MESSAGE,
    }
)


class SourceRecordBuilder:
    """
    Builds OutboundRecords from broker deliveries.

    Args:
        config: Source configuration (topic template, value format, body encoding)
        clock: Returns the current time in epoch milliseconds; used when a
            message carries no timestamp property. Defaults to the system clock.

    Raises:
        ConfigurationError: If the config fails ``SourceConfig.validate``

    Example:
        >>> builder = SourceRecordBuilder(SourceConfig(kafka_topic="events.${body}"))
        >>> record = builder.build("ctag-1", Envelope(delivery_tag=42, routing_key="orders.created"), None, b"hello")
        >>> record.topic
        'events.hello'
    """

    def __init__(self, config: SourceConfig, clock: Clock | None = None):
        config.validate()
        self.config = config
        self.clock = clock or system_clock
        self.topic_template = TopicTemplate(config.kafka_topic)
        self.value_schema = VALUE_SCHEMAS[ValueFormat(config.value_format)]

    @staticmethod
    def _check_envelope(envelope: Envelope) -> None:
        if envelope.delivery_tag is None:
            raise MalformedEnvelopeError("Envelope has no delivery tag")
        if envelope.delivery_tag < 0:
            raise MalformedEnvelopeError(
                f"Envelope has a negative delivery tag: {envelope.delivery_tag}",
                context={"delivery_tag": envelope.delivery_tag},
            )
        if envelope.routing_key is None:
            raise MalformedEnvelopeError(
                "Envelope has no routing key",
                context={"delivery_tag": envelope.delivery_tag},
            )

    def _resolve_timestamp(self, properties: PropertyBag | None) -> tuple[int, str]:
        if properties is not None and properties.timestamp is not None:
            return epoch_millis(properties.timestamp), "message"
        return self.clock(), "clock"

    def _build(
        self,
        consumer_tag: str | None,
        envelope: Envelope,
        properties: PropertyBag | None,
        body: bytes,
    ) -> OutboundRecord:
        self._check_envelope(envelope)

        key = converter.key(properties)
        value = converter.value(
            consumer_tag,
            envelope,
            properties,
            body,
            encoding=self.config.body_encoding,
        )
        topic = self.topic_template.render(value)
        timestamp, timestamp_source = self._resolve_timestamp(properties)

        log_with_context(
            logger,
            logging.DEBUG,
            "Built source record",
            topic=topic,
            message_id=key.message_id,
            header_count=len(value.headers),
            body_bytes=len(body),
            timestamp_ms=timestamp,
            timestamp_source=timestamp_source,
        )

        return OutboundRecord(
            source_partition={FIELD_ENVELOPE_ROUTINGKEY: envelope.routing_key},
            source_offset={FIELD_ENVELOPE_DELIVERYTAG: envelope.delivery_tag},
            topic=topic,
            partition=None,
            key_schema=SCHEMA_KEY,
            key=key,
            value_schema=self.value_schema,
            value=value,
            timestamp=timestamp,
        )

    def build(
        self,
        consumer_tag: str | None,
        envelope: Envelope,
        properties: PropertyBag | None,
        body: bytes,
    ) -> OutboundRecord:
        """
        Convert one delivery into an OutboundRecord.

        Args:
            consumer_tag: Consumer tag of the subscription
            envelope: Routing envelope
            properties: Basic properties, or None when the delivery has none
            body: Raw message body

        Returns:
            OutboundRecord for the write path

        Raises:
            MalformedEnvelopeError: Delivery tag or routing key missing
            UnsupportedHeaderTypeError: A header value cannot be tagged
            DataError: A header value does not fit its tagged field
            TemplateEvaluationError: The topic template cannot be resolved
        """
        with DeliveryLogContext(
            routing_key=envelope.routing_key,
            delivery_tag=envelope.delivery_tag,
            consumer_tag=consumer_tag,
            exchange=envelope.exchange,
        ):
            try:
                return self._build(consumer_tag, envelope, properties, body)
            except PipelineError as e:
                log_exception(
                    logger,
                    e,
                    "Failed to convert delivery",
                    level=logging.WARNING,
                    include_traceback=False,
                    message_id=properties.message_id if properties is not None else None,
                )
                raise

    def build_delivery(self, delivery: Delivery) -> OutboundRecord:
        """Convert a Delivery (see ``rabbitmq_source.adapters``)."""
        return self.build(
            delivery.consumer_tag,
            delivery.envelope,
            delivery.properties,
            delivery.body,
        )
