"""
Schemas for records produced by the RabbitMQ source.

Modules:
    catalog       - Immutable, versioned schema descriptors
    header_types  - Fixed-width scalar types for header values
    models        - Pydantic records matching the catalog
"""

from rabbitmq_source.schemas.catalog import (
    CATALOG,
    SCHEMA_BASIC_PROPERTIES,
    SCHEMA_ENVELOPE,
    SCHEMA_HEADER_VALUE,
    SCHEMA_KEY,
    SCHEMA_MESSAGE,
    SCHEMA_VALUE,
    HeaderType,
    Schema,
    SchemaField,
    SchemaType,
    get_schema,
)
from rabbitmq_source.schemas.header_types import Float32, Float64, Int8, Int16, Int32, Int64
from rabbitmq_source.schemas.models import (
    BasicPropertiesRecord,
    EnvelopeRecord,
    HeaderValue,
    MessageKey,
    MessageValue,
)

__all__ = [
    # Catalog
    "CATALOG",
    "Schema",
    "SchemaField",
    "SchemaType",
    "HeaderType",
    "get_schema",
    "SCHEMA_ENVELOPE",
    "SCHEMA_HEADER_VALUE",
    "SCHEMA_BASIC_PROPERTIES",
    "SCHEMA_KEY",
    "SCHEMA_VALUE",
    "SCHEMA_MESSAGE",
    # Header types
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "Float32",
    "Float64",
    # Records
    "EnvelopeRecord",
    "HeaderValue",
    "BasicPropertiesRecord",
    "MessageKey",
    "MessageValue",
]
