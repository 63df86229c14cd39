"""Tests for JSON and console log formatters."""

import json
import logging
import sys

import pytest

from core.logging.context import clear_log_context, set_log_context
from core.logging.delivery_context import DeliveryLogContext, clear_delivery_context
from core.logging.formatters import ConsoleFormatter, JSONFormatter
from rabbitmq_source.schemas import HeaderType


def _make_record(
    msg="test message",
    level=logging.INFO,
    name="test.logger",
    exc_info=None,
    **extras,
):
    record = logging.LogRecord(
        name=name,
        level=level,
        pathname="test.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )
    for key, value in extras.items():
        setattr(record, key, value)
    return record


@pytest.fixture(autouse=True)
def clear_context():
    clear_log_context()
    clear_delivery_context()
    yield
    clear_log_context()
    clear_delivery_context()


class TestJSONFormatter:

    def test_formats_basic_json_with_required_fields(self):
        output = json.loads(JSONFormatter().format(_make_record()))

        assert output["level"] == "INFO"
        assert output["logger"] == "test.logger"
        assert output["message"] == "test message"
        assert output["ts"].endswith("Z")

    def test_includes_log_context(self):
        set_log_context(domain="rabbitmq", stage="source", worker_id="worker-0", trace_id="abc123")
        output = json.loads(JSONFormatter().format(_make_record()))

        assert output["domain"] == "rabbitmq"
        assert output["stage"] == "source"
        assert output["worker_id"] == "worker-0"
        assert output["trace_id"] == "abc123"

    def test_extra_field_overrides_context_trace_id(self):
        set_log_context(trace_id="from-context")
        output = json.loads(JSONFormatter().format(_make_record(trace_id="from-extra")))

        assert output["trace_id"] == "from-extra"

    def test_omits_empty_context_fields(self):
        output = json.loads(JSONFormatter().format(_make_record()))

        assert "domain" not in output
        assert "stage" not in output
        assert "worker_id" not in output

    def test_includes_delivery_context(self):
        with DeliveryLogContext(
            routing_key="orders.created", delivery_tag=42, consumer_tag="ctag-1", exchange="orders"
        ):
            output = json.loads(JSONFormatter().format(_make_record()))

        assert output["routing_key"] == "orders.created"
        assert output["delivery_tag"] == 42
        assert output["consumer_tag"] == "ctag-1"
        assert output["exchange"] == "orders"

    def test_includes_empty_routing_key(self):
        with DeliveryLogContext(routing_key="", delivery_tag=0):
            output = json.loads(JSONFormatter().format(_make_record()))

        assert output["routing_key"] == ""
        assert output["delivery_tag"] == 0

    def test_omits_delivery_context_outside_delivery(self):
        output = json.loads(JSONFormatter().format(_make_record()))

        assert "routing_key" not in output
        assert "delivery_tag" not in output

    @pytest.mark.parametrize("level", [logging.DEBUG, logging.ERROR, logging.CRITICAL])
    def test_includes_file_location(self, level):
        output = json.loads(JSONFormatter().format(_make_record(level=level)))

        assert output["file"] == "test.py:42"

    @pytest.mark.parametrize("level", [logging.INFO, logging.WARNING])
    def test_omits_file_location(self, level):
        output = json.loads(JSONFormatter().format(_make_record(level=level)))

        assert "file" not in output

    def test_extracts_extra_fields_from_record(self):
        record = _make_record(
            topic="events.hello",
            message_id="m-1",
            header_name="x",
            value_type="Decimal",
            error_category="permanent",
        )
        output = json.loads(JSONFormatter().format(record))

        assert output["topic"] == "events.hello"
        assert output["message_id"] == "m-1"
        assert output["header_name"] == "x"
        assert output["value_type"] == "Decimal"
        assert output["error_category"] == "permanent"

    def test_ignores_unknown_extra_fields(self):
        output = json.loads(JSONFormatter().format(_make_record(unrelated="x")))

        assert "unrelated" not in output

    def test_omits_none_extra_fields(self):
        output = json.loads(JSONFormatter().format(_make_record(topic=None)))

        assert "topic" not in output

    def test_ensures_int_type_for_int_fields(self):
        record = _make_record(header_count="3", body_bytes="5", timestamp_ms="1700000000000")
        output = json.loads(JSONFormatter().format(record))

        assert output["header_count"] == 3
        assert output["body_bytes"] == 5
        assert output["timestamp_ms"] == 1700000000000

    def test_ensures_float_type_for_float_fields(self):
        output = json.loads(JSONFormatter().format(_make_record(duration_ms="123.45")))

        assert output["duration_ms"] == 123.45
        assert isinstance(output["duration_ms"], float)

    def test_returns_none_for_unconvertible_numeric_fields(self):
        output = json.loads(JSONFormatter().format(_make_record(header_count="many")))

        assert output["header_count"] is None

    def test_passes_through_non_numeric_fields(self):
        assert JSONFormatter()._ensure_type("topic", "t") == "t"

    def test_serializes_enum_extras_by_value(self):
        output = json.loads(JSONFormatter().format(_make_record(value_type=HeaderType.INT32)))

        assert output["value_type"] == "int32"

    def test_includes_exception_info(self):
        try:
            raise ValueError("test error")
        except ValueError:
            exc_info = sys.exc_info()

        output = json.loads(JSONFormatter().format(_make_record(exc_info=exc_info)))

        assert output["exception"]["type"] == "ValueError"
        assert output["exception"]["message"] == "test error"
        assert "stacktrace" in output["exception"]

    def test_omits_exception_when_not_present(self):
        output = json.loads(JSONFormatter().format(_make_record()))

        assert "exception" not in output

    def test_output_is_valid_json_single_line(self):
        result = JSONFormatter().format(_make_record())

        assert "\n" not in result
        json.loads(result)

    def test_handles_unicode_messages(self):
        output = json.loads(JSONFormatter().format(_make_record(msg="Nachricht mit Umlauten: äöü")))

        assert "äöü" in output["message"]

    def test_timestamp_format_is_iso_with_milliseconds(self):
        ts = json.loads(JSONFormatter().format(_make_record()))["ts"]

        # Format: YYYY-MM-DDTHH:MM:SS.mmmZ
        assert len(ts) == 24
        assert ts[10] == "T"
        assert ts[-1] == "Z"


class TestConsoleFormatter:

    @pytest.fixture
    def formatter(self):
        formatter = ConsoleFormatter()
        formatter._use_colors = False
        return formatter

    def test_formats_basic_message(self, formatter):
        result = formatter.format(_make_record())

        assert "INFO" in result
        assert result.endswith("test message")

    def test_includes_domain_and_stage(self, formatter):
        set_log_context(domain="rabbitmq", stage="source")
        result = formatter.format(_make_record())

        assert "[rabbitmq]" in result
        assert "[source]" in result

    def test_includes_delivery_tags(self, formatter):
        with DeliveryLogContext(routing_key="orders.created", delivery_tag=42):
            result = formatter.format(_make_record())

        assert "[rk:orders.created] [tag:42] test message" in result

    def test_no_delivery_tags_outside_delivery(self, formatter):
        result = formatter.format(_make_record())

        assert "[tag:" not in result

    def test_appends_exception(self, formatter):
        try:
            raise KeyError("missing")
        except KeyError:
            exc_info = sys.exc_info()

        result = formatter.format(_make_record(exc_info=exc_info))

        assert "Traceback" in result
        assert "KeyError" in result

    def test_applies_color_codes_when_tty(self):
        formatter = ConsoleFormatter()
        formatter._use_colors = True
        result = formatter.format(_make_record(level=logging.ERROR))

        assert "\033[31m" in result  # Red
        assert "\033[0m" in result  # Reset

    def test_no_color_codes_when_not_tty(self, formatter):
        result = formatter.format(_make_record(level=logging.ERROR))

        assert "\033[" not in result

    def test_includes_datetime_prefix(self, formatter):
        parts = formatter.format(_make_record()).split(" - ")

        assert len(parts[0]) == 19  # "YYYY-MM-DD HH:MM:SS"
