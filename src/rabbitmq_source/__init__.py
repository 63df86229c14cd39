"""
RabbitMQ source: converts broker deliveries into Kafka-ready records.

Each delivery (consumer tag, envelope, basic properties, body) becomes one
OutboundRecord carrying a typed key, a typed value, the destination topic and
the replay position. Conversion is synchronous and performs no I/O; the host
owns the broker subscription and the Kafka producer.

Modules:
    schemas        - Schema catalog, fixed-width header types, pydantic records
    headers        - Header value type tagging
    converter      - Envelope/properties/key/value assembly
    topic          - Topic template resolution
    record_builder - Per-delivery orchestration
    types          - Transport types (Envelope, PropertyBag, Delivery, OutboundRecord)
    adapters       - aio_pika message adapter

Flow:
    AbstractIncomingMessage → from_incoming_message → Delivery
        → SourceRecordBuilder.build_delivery → OutboundRecord → producer.send(**record.producer_kwargs())

Dependencies:
    - core.*: Logging, error hierarchy, JSON helpers
    - pydantic: Record models and validation
    - aio-pika: Incoming message type for the adapter
"""

from config.config import SourceConfig, ValueFormat
from rabbitmq_source.record_builder import SourceRecordBuilder
from rabbitmq_source.types import Delivery, Envelope, OutboundRecord, PropertyBag

__version__ = "0.1.0"

__all__ = [
    "SourceConfig",
    "ValueFormat",
    "SourceRecordBuilder",
    "Delivery",
    "Envelope",
    "OutboundRecord",
    "PropertyBag",
]
