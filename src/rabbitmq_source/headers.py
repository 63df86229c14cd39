"""
Header tagging: converts AMQP header tables into tagged HeaderValue records.

Header values are typed by whoever published the message, so the outbound
schema stores each one in a discriminated union. The discriminator is chosen
from the value's exact Python type; anything without an entry in
``HEADER_TYPE_LOOKUP`` fails the whole delivery.
"""

import logging
from collections.abc import Mapping
from datetime import datetime
from types import MappingProxyType
from typing import Any

from pydantic import ValidationError

from core.errors.exceptions import DataError, UnsupportedHeaderTypeError
from rabbitmq_source.schemas.catalog import HeaderType
from rabbitmq_source.schemas.header_types import Float32, Float64, Int8, Int16, Int32, Int64
from rabbitmq_source.schemas.models import HeaderValue

logger = logging.getLogger(__name__)

__all__ = [
    "HEADER_TYPE_LOOKUP",
    "LONG_STRING_TYPES",
    "tag_header",
    "tag_headers",
]

# Exact type -> discriminator. Lookups use type(value), so bool never
# resolves through int and int subclasses must be listed explicitly.
HEADER_TYPE_LOOKUP: Mapping[type, HeaderType] = MappingProxyType(
    {
        str: HeaderType.STRING,
        Int8: HeaderType.INT8,
        Int16: HeaderType.INT16,
        Int32: HeaderType.INT32,
        Int64: HeaderType.INT64,
        int: HeaderType.INT64,
        Float32: HeaderType.FLOAT32,
        Float64: HeaderType.FLOAT64,
        float: HeaderType.FLOAT64,
        bool: HeaderType.BOOLEAN,
        datetime: HeaderType.TIMESTAMP,
    }
)

# AMQP long strings arrive from the client libraries as raw bytes
LONG_STRING_TYPES = (bytes, bytearray, memoryview)


def _normalize_long_string(name: str, value: Any) -> Any:
    if not isinstance(value, LONG_STRING_TYPES):
        return value
    try:
        return bytes(value).decode("utf-8")
    except UnicodeDecodeError as e:
        raise UnsupportedHeaderTypeError(name, type(value).__name__, cause=e) from e


def tag_header(name: str, value: Any) -> HeaderValue:
    """
    Convert a single header value into a tagged HeaderValue.

    Args:
        name: Header name (used for error reporting)
        value: Header value as decoded by the broker client

    Returns:
        HeaderValue with the discriminator and its matching field set

    Raises:
        UnsupportedHeaderTypeError: If the value's type has no discriminator,
            or a long string is not valid UTF-8
        DataError: If the value does not fit its field (an int beyond 64 bits,
            or a NaN or infinite float)
    """
    value = _normalize_long_string(name, value)

    header_type = HEADER_TYPE_LOOKUP.get(type(value))
    if header_type is None:
        raise UnsupportedHeaderTypeError(name, type(value).__qualname__)

    logger.debug(
        "Storing header value",
        extra={"header_name": name, "value_type": header_type.value},
    )
    try:
        return HeaderValue.of(header_type, value)
    except ValidationError as e:
        raise DataError(
            f"Header '{name}' value does not fit the {header_type.value} field",
            cause=e,
            context={"header_name": name, "value_type": header_type.value},
        ) from e


def tag_headers(headers: Mapping[str, Any] | None) -> dict[str, HeaderValue]:
    """
    Convert a header table into tagged HeaderValues.

    Output preserves the input's iteration order. A single unsupported value
    aborts the conversion; headers are never silently dropped.

    Args:
        headers: Header table, or None when the message has no headers

    Returns:
        Dict of header name to HeaderValue (empty for None/empty input)

    Raises:
        UnsupportedHeaderTypeError: On the first header that cannot be tagged
    """
    results: dict[str, HeaderValue] = {}
    if not headers:
        return results

    for name, value in headers.items():
        results[name] = tag_header(name, value)
    return results
