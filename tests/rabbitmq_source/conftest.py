"""Shared fixtures for RabbitMQ source tests."""

from datetime import datetime, timezone

import pytest

from config.config import SourceConfig
from rabbitmq_source.schemas import Int32
from rabbitmq_source.types import Envelope, PropertyBag

FIXED_CLOCK_MS = 1_700_000_000_000


def make_properties(**overrides):
    """Create a PropertyBag with typical publisher settings."""
    values = {
        "content_type": "text/plain",
        "content_encoding": "utf-8",
        "headers": {"retry": Int32(2)},
        "delivery_mode": 2,
        "priority": 0,
        "correlation_id": "corr-1",
        "reply_to": "replies",
        "expiration": "60000",
        "message_id": "m-1",
        "timestamp": None,
        "type": "order.created",
        "user_id": "guest",
        "app_id": "orders-service",
    }
    values.update(overrides)
    return PropertyBag(**values)


@pytest.fixture
def envelope():
    return Envelope(delivery_tag=42, is_redeliver=False, exchange="orders", routing_key="orders.created")


@pytest.fixture
def properties():
    return make_properties()


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_CLOCK_MS


@pytest.fixture
def config():
    return SourceConfig(kafka_topic="events.${body}")


@pytest.fixture
def published_at():
    return datetime(2024, 12, 25, 10, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def props_factory():
    """Factory for PropertyBags; keyword arguments override the defaults."""
    return make_properties
