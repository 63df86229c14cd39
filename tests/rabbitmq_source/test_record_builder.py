"""Tests for SourceRecordBuilder."""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from config.config import SourceConfig
from core.errors.exceptions import (
    ConfigurationError,
    DataError,
    MalformedEnvelopeError,
    TemplateEvaluationError,
    UnsupportedHeaderTypeError,
    is_retryable_error,
)
from core.logging import get_delivery_context
from rabbitmq_source.record_builder import SourceRecordBuilder
from rabbitmq_source.schemas import SCHEMA_KEY, SCHEMA_MESSAGE, SCHEMA_VALUE, HeaderType, Int32
from rabbitmq_source.types import Delivery, Envelope, PropertyBag

FIXED_CLOCK_MS = 1_700_000_000_000


@pytest.fixture
def builder(config, fixed_clock):
    return SourceRecordBuilder(config, clock=fixed_clock)


class TestScenario:
    """End-to-end conversion of a typical delivery."""

    def test_orders_created(self, builder, envelope):
        properties = PropertyBag(message_id="m-1", headers={"retry": Int32(2)})

        record = builder.build("ctag-1", envelope, properties, b"hello")

        assert record.source_partition == {"routingKey": "orders.created"}
        assert record.source_offset == {"deliveryTag": 42}
        assert record.routing_key == "orders.created"
        assert record.delivery_tag == 42
        assert record.topic == "events.hello"
        assert record.partition is None
        assert record.key_schema is SCHEMA_KEY
        assert record.key.message_id == "m-1"
        assert record.value.body == "hello"
        retry = record.value.headers["retry"]
        assert retry.type == HeaderType.INT32
        assert retry.int32 == 2

    def test_unsupported_header_fails_whole_delivery(self, builder, envelope):
        properties = PropertyBag(message_id="m-1", headers={"x": Decimal("1.5")})

        with pytest.raises(UnsupportedHeaderTypeError) as exc_info:
            builder.build("ctag-1", envelope, properties, b"hello")

        assert exc_info.value.header_name == "x"


class TestValueFormat:
    """Emitted value follows the configured format."""

    def test_body_format_emits_body_only(self, builder, envelope, properties):
        record = builder.build("ctag-1", envelope, properties, b"hello")

        assert record.value_schema is SCHEMA_VALUE
        assert record.serialize_value() == b'{"body":"hello"}'

    def test_message_format_emits_metadata(self, fixed_clock, envelope, properties):
        builder = SourceRecordBuilder(
            SourceConfig(kafka_topic="events.${body}", value_format="message"), clock=fixed_clock
        )

        record = builder.build("ctag-1", envelope, properties, b"hello")

        assert record.value_schema is SCHEMA_MESSAGE
        emitted = json.loads(record.serialize_value())
        assert emitted["body"] == "hello"
        assert emitted["consumerTag"] == "ctag-1"
        assert emitted["envelope"]["deliveryTag"] == 42
        assert emitted["basicProperties"]["headers"]["retry"]["int32"] == 2

    def test_template_sees_metadata_in_body_format(self, fixed_clock, envelope, properties):
        builder = SourceRecordBuilder(
            SourceConfig(kafka_topic="rk.${envelope.routingKey}"), clock=fixed_clock
        )

        record = builder.build("ctag-1", envelope, properties, b"hello")

        assert record.topic == "rk.orders.created"
        assert record.serialize_value() == b'{"body":"hello"}'

    def test_body_encoding(self, fixed_clock, envelope):
        builder = SourceRecordBuilder(
            SourceConfig(kafka_topic="events", body_encoding="latin-1"), clock=fixed_clock
        )

        record = builder.build(None, envelope, None, "café".encode("latin-1"))

        assert record.value.body == "café"


class TestTimestamp:
    """Record timestamp resolution."""

    def test_property_timestamp(self, builder, envelope, props_factory, published_at):
        record = builder.build("ctag-1", envelope, props_factory(timestamp=published_at), b"hello")

        assert record.timestamp == int(published_at.timestamp() * 1000)

    def test_naive_timestamp_read_as_utc(self, builder, envelope, props_factory):
        naive = datetime(2024, 1, 1, 0, 0, 0)

        record = builder.build("ctag-1", envelope, props_factory(timestamp=naive), b"hello")

        assert record.timestamp == 1704067200000

    def test_clock_when_no_timestamp(self, builder, envelope, properties):
        record = builder.build("ctag-1", envelope, properties, b"hello")

        assert record.timestamp == FIXED_CLOCK_MS

    def test_clock_when_no_properties(self, builder, envelope):
        record = builder.build("ctag-1", envelope, None, b"hello")

        assert record.timestamp == FIXED_CLOCK_MS

    def test_default_clock(self, config, envelope):
        before = int(datetime.now(timezone.utc).timestamp() * 1000)

        record = SourceRecordBuilder(config).build(None, envelope, None, b"hello")

        after = int(datetime.now(timezone.utc).timestamp() * 1000)
        assert before - 1 <= record.timestamp <= after + 1


class TestNoProperties:
    """Deliveries without a property bag."""

    def test_null_key_and_empty_headers(self, builder, envelope):
        record = builder.build("ctag-1", envelope, None, b"hello")

        assert record.key.message_id is None
        assert record.value.basic_properties is None
        assert record.value.headers == {}
        assert record.serialize_key() == b'{"messageId":null}'


class TestEnvelopeChecks:
    """Protocol preconditions on the envelope."""

    def test_missing_delivery_tag(self, builder):
        with pytest.raises(MalformedEnvelopeError, match="no delivery tag"):
            builder.build("ctag-1", Envelope(delivery_tag=None, routing_key="rk"), None, b"hello")

    def test_negative_delivery_tag(self, builder):
        with pytest.raises(MalformedEnvelopeError, match="negative"):
            builder.build("ctag-1", Envelope(delivery_tag=-1, routing_key="rk"), None, b"hello")

    def test_missing_routing_key(self, builder):
        with pytest.raises(MalformedEnvelopeError, match="no routing key"):
            builder.build("ctag-1", Envelope(delivery_tag=1), None, b"hello")

    def test_empty_routing_key_is_valid(self, builder):
        record = builder.build("ctag-1", Envelope(delivery_tag=0, routing_key=""), None, b"hello")

        assert record.source_partition == {"routingKey": ""}
        assert record.source_offset == {"deliveryTag": 0}

    def test_checked_before_headers(self, builder):
        properties = PropertyBag(headers={"x": Decimal("1")})

        with pytest.raises(MalformedEnvelopeError):
            builder.build("ctag-1", Envelope(delivery_tag=None, routing_key="rk"), properties, b"hello")


class TestTopicErrors:
    """Topic resolution failures."""

    def test_unresolvable_for_message(self, builder, envelope):
        with pytest.raises(TemplateEvaluationError):
            builder.build("ctag-1", envelope, None, b"not a topic")


class TestConfiguration:
    """Bad configuration fails at construction, not per delivery."""

    def test_invalid_template(self, fixed_clock):
        with pytest.raises(ConfigurationError) as exc_info:
            SourceRecordBuilder(SourceConfig(kafka_topic="events.${nope}"), clock=fixed_clock)
        assert isinstance(exc_info.value.cause, TemplateEvaluationError)

    def test_invalid_value_format(self, fixed_clock):
        with pytest.raises(ConfigurationError, match="value_format"):
            SourceRecordBuilder(SourceConfig(kafka_topic="events", value_format="avro"), clock=fixed_clock)

    def test_unknown_body_encoding(self, fixed_clock):
        with pytest.raises(ConfigurationError, match="body_encoding") as exc_info:
            SourceRecordBuilder(SourceConfig(kafka_topic="events", body_encoding="nope"), clock=fixed_clock)
        assert isinstance(exc_info.value.cause, LookupError)
        assert is_retryable_error(exc_info.value) is False

    def test_missing_topic(self, fixed_clock):
        with pytest.raises(ConfigurationError, match="kafka_topic"):
            SourceRecordBuilder(SourceConfig(), clock=fixed_clock)


class TestHeaderErrors:
    """Header values that cannot be emitted fail the delivery."""

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_float_header(self, fixed_clock, envelope, props_factory, value):
        builder = SourceRecordBuilder(
            SourceConfig(kafka_topic="events", value_format="message"), clock=fixed_clock
        )

        with pytest.raises(DataError) as exc_info:
            builder.build("ctag-1", envelope, props_factory(headers={"r": value}), b"hello")
        assert exc_info.value.context["header_name"] == "r"
        assert is_retryable_error(exc_info.value) is False


class TestIdempotence:
    """Identical inputs give identical records."""

    def test_equal_records_and_bytes(self, builder, envelope, properties):
        first = builder.build("ctag-1", envelope, properties, b"hello")
        second = builder.build("ctag-1", envelope, properties, b"hello")

        assert first == second
        assert first.serialize_key() == second.serialize_key()
        assert first.serialize_value() == second.serialize_value()
        assert first.producer_kwargs() == second.producer_kwargs()


class TestLogging:
    """Failure logging and delivery context."""

    def test_failure_logged_with_context(self, builder, envelope, caplog):
        properties = PropertyBag(message_id="m-1", headers={"x": Decimal("1")})

        with caplog.at_level(logging.WARNING, logger="rabbitmq_source.record_builder"):
            with pytest.raises(UnsupportedHeaderTypeError):
                builder.build("ctag-1", envelope, properties, b"hello")

        record = next(r for r in caplog.records if r.name == "rabbitmq_source.record_builder")
        assert record.levelno == logging.WARNING
        assert record.header_name == "x"
        assert record.error_category == "permanent"
        assert record.message_id == "m-1"

    def test_success_logged_at_debug(self, builder, envelope, properties, caplog):
        with caplog.at_level(logging.DEBUG, logger="rabbitmq_source.record_builder"):
            builder.build("ctag-1", envelope, properties, b"hello")

        record = next(r for r in caplog.records if r.getMessage() == "Built source record")
        assert record.topic == "events.hello"
        assert record.header_count == 1
        assert record.body_bytes == 5
        assert record.timestamp_source == "clock"

    def test_delivery_context_cleared_after_build(self, builder, envelope):
        builder.build("ctag-1", envelope, None, b"hello")

        assert get_delivery_context()["delivery_tag"] == -1


class TestBuildDelivery:
    """Delivery wrapper entry point."""

    def test_same_as_build(self, builder, envelope, properties):
        delivery = Delivery(consumer_tag="ctag-1", envelope=envelope, properties=properties, body=b"hello")

        assert builder.build_delivery(delivery) == builder.build("ctag-1", envelope, properties, b"hello")
