"""
Schema catalog for the records emitted by the RabbitMQ source.

Every outbound key and value is described by an immutable, named and
versioned ``Schema``. Descriptors are module-level singletons built once at
import time and never mutated, so they are safe to share between threads.

Field names follow the AMQP client naming (camelCase) because downstream
consumers validate records against these names.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Optional

NAMESPACE = "rabbitmq_source"
SCHEMA_VERSION = 1

_PROPERTIES_DOC_URL = "https://rabbitmq.github.io/rabbitmq-java-client/api/current/com/rabbitmq/client/BasicProperties.html"
_ENVELOPE_DOC_URL = "https://rabbitmq.github.io/rabbitmq-java-client/api/current/com/rabbitmq/client/Envelope.html"


class SchemaType(str, Enum):
    """Kinds of values a schema can describe."""

    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    BOOLEAN = "boolean"
    STRING = "string"
    BYTES = "bytes"
    TIMESTAMP = "timestamp"
    ARRAY = "array"
    MAP = "map"
    STRUCT = "struct"

    @property
    def is_primitive(self) -> bool:
        return self not in (SchemaType.ARRAY, SchemaType.MAP, SchemaType.STRUCT)


class HeaderType(str, Enum):
    """
    Discriminators of the header value union.

    One member per supported header scalar. Adding a supported type means
    adding a member here and a row in ``rabbitmq_source.headers``; the union
    schema and the ``HeaderValue`` record are derived from this enumeration.
    """

    STRING = "string"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    BOOLEAN = "boolean"
    TIMESTAMP = "timestamp"

    @property
    def schema_type(self) -> SchemaType:
        return SchemaType(self.value)


@dataclass(frozen=True)
class SchemaField:
    """A named field inside a struct schema."""

    name: str
    schema: "Schema"


@dataclass(frozen=True)
class Schema:
    """
    Immutable schema descriptor.

    Attributes:
        type: Kind of value described
        name: Fully qualified name (structs only)
        version: Schema version (structs only)
        doc: Human-readable documentation
        optional: Whether the value may be null
        fields: Struct fields in declaration order
        key_schema: Map key schema
        value_schema: Map value schema
    """

    type: SchemaType
    name: Optional[str] = None
    version: Optional[int] = None
    doc: Optional[str] = None
    optional: bool = False
    fields: tuple[SchemaField, ...] = ()
    key_schema: Optional["Schema"] = None
    value_schema: Optional["Schema"] = None

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    def field(self, name: str) -> Optional[SchemaField]:
        """Return the struct field called ``name``, or None."""
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def to_dict(self) -> dict[str, Any]:
        """Render the descriptor as plain data."""
        result: dict[str, Any] = {"type": self.type.value, "optional": self.optional}
        if self.name is not None:
            result["name"] = self.name
        if self.version is not None:
            result["version"] = self.version
        if self.doc is not None:
            result["doc"] = self.doc
        if self.type == SchemaType.STRUCT:
            result["fields"] = [{"field": f.name, **f.schema.to_dict()} for f in self.fields]
        if self.type == SchemaType.MAP:
            result["keys"] = self.key_schema.to_dict()
            result["values"] = self.value_schema.to_dict()
        return result


def _primitive(schema_type: SchemaType, doc: str, optional: bool = False) -> Schema:
    return Schema(type=schema_type, doc=doc, optional=optional)


def _struct(name: str, doc: str, fields: list[tuple[str, Schema]], optional: bool = False) -> Schema:
    return Schema(
        type=SchemaType.STRUCT,
        name=f"{NAMESPACE}.{name}",
        version=SCHEMA_VERSION,
        doc=doc,
        optional=optional,
        fields=tuple(SchemaField(n, s) for n, s in fields),
    )


# =============================================================================
# Envelope
# =============================================================================

FIELD_ENVELOPE_DELIVERYTAG = "deliveryTag"
FIELD_ENVELOPE_ISREDELIVER = "isRedeliver"
FIELD_ENVELOPE_EXCHANGE = "exchange"
FIELD_ENVELOPE_ROUTINGKEY = "routingKey"

SCHEMA_ENVELOPE = _struct(
    "Envelope",
    f"Encapsulates a group of parameters used for AMQP's Basic methods. See {_ENVELOPE_DOC_URL}",
    [
        (FIELD_ENVELOPE_DELIVERYTAG, _primitive(SchemaType.INT64, "The delivery tag included in this parameter envelope.")),
        (FIELD_ENVELOPE_ISREDELIVER, _primitive(SchemaType.BOOLEAN, "The redelivery flag included in this parameter envelope.")),
        (FIELD_ENVELOPE_EXCHANGE, _primitive(SchemaType.STRING, "The name of the exchange included in this parameter envelope.", optional=True)),
        (FIELD_ENVELOPE_ROUTINGKEY, _primitive(SchemaType.STRING, "The routing key included in this parameter envelope.", optional=True)),
    ],
)

# =============================================================================
# Header value union
# =============================================================================

FIELD_HEADER_VALUE_TYPE = "type"

SCHEMA_HEADER_VALUE = _struct(
    "BasicProperties.HeaderValue",
    "Used to store the value of a header value. The `type` field stores the type of the data "
    "and the corresponding field to read the data from.",
    [
        (
            FIELD_HEADER_VALUE_TYPE,
            _primitive(
                SchemaType.STRING,
                "Used to define the type for the HeaderValue. This will define the corresponding "
                "field which will contain the value in its original type.",
            ),
        ),
    ]
    + [
        (
            header_type.value,
            _primitive(
                header_type.schema_type,
                f"Storage for when the `type` field is set to `{header_type.value}`. Null otherwise.",
                optional=True,
            ),
        )
        for header_type in HeaderType
    ],
)

# =============================================================================
# Basic properties
# =============================================================================

FIELD_BASIC_PROPERTIES_CONTENTTYPE = "contentType"
FIELD_BASIC_PROPERTIES_CONTENTENCODING = "contentEncoding"
FIELD_BASIC_PROPERTIES_HEADERS = "headers"
FIELD_BASIC_PROPERTIES_DELIVERYMODE = "deliveryMode"
FIELD_BASIC_PROPERTIES_PRIORITY = "priority"
FIELD_BASIC_PROPERTIES_CORRELATIONID = "correlationId"
FIELD_BASIC_PROPERTIES_REPLYTO = "replyTo"
FIELD_BASIC_PROPERTIES_EXPIRATION = "expiration"
FIELD_BASIC_PROPERTIES_MESSAGEID = "messageId"
FIELD_BASIC_PROPERTIES_TIMESTAMP = "timestamp"
FIELD_BASIC_PROPERTIES_TYPE = "type"
FIELD_BASIC_PROPERTIES_USERID = "userId"
FIELD_BASIC_PROPERTIES_APPID = "appId"


def _property(schema_type: SchemaType, field_name: str) -> Schema:
    return _primitive(schema_type, f"The value in the {field_name} field. See {_PROPERTIES_DOC_URL}", optional=True)


SCHEMA_BASIC_PROPERTIES = _struct(
    "BasicProperties",
    f"Corresponds to the AMQP BasicProperties. See {_PROPERTIES_DOC_URL}",
    [
        (FIELD_BASIC_PROPERTIES_CONTENTTYPE, _property(SchemaType.STRING, FIELD_BASIC_PROPERTIES_CONTENTTYPE)),
        (FIELD_BASIC_PROPERTIES_CONTENTENCODING, _property(SchemaType.STRING, FIELD_BASIC_PROPERTIES_CONTENTENCODING)),
        (
            FIELD_BASIC_PROPERTIES_HEADERS,
            Schema(
                type=SchemaType.MAP,
                doc="Message headers, each stored as a tagged HeaderValue.",
                key_schema=Schema(type=SchemaType.STRING),
                value_schema=SCHEMA_HEADER_VALUE,
            ),
        ),
        (FIELD_BASIC_PROPERTIES_DELIVERYMODE, _property(SchemaType.INT32, FIELD_BASIC_PROPERTIES_DELIVERYMODE)),
        (FIELD_BASIC_PROPERTIES_PRIORITY, _property(SchemaType.INT32, FIELD_BASIC_PROPERTIES_PRIORITY)),
        (FIELD_BASIC_PROPERTIES_CORRELATIONID, _property(SchemaType.STRING, FIELD_BASIC_PROPERTIES_CORRELATIONID)),
        (FIELD_BASIC_PROPERTIES_REPLYTO, _property(SchemaType.STRING, FIELD_BASIC_PROPERTIES_REPLYTO)),
        (FIELD_BASIC_PROPERTIES_EXPIRATION, _property(SchemaType.STRING, FIELD_BASIC_PROPERTIES_EXPIRATION)),
        (FIELD_BASIC_PROPERTIES_MESSAGEID, _property(SchemaType.STRING, FIELD_BASIC_PROPERTIES_MESSAGEID)),
        (FIELD_BASIC_PROPERTIES_TIMESTAMP, _property(SchemaType.TIMESTAMP, FIELD_BASIC_PROPERTIES_TIMESTAMP)),
        (FIELD_BASIC_PROPERTIES_TYPE, _property(SchemaType.STRING, FIELD_BASIC_PROPERTIES_TYPE)),
        (FIELD_BASIC_PROPERTIES_USERID, _property(SchemaType.STRING, FIELD_BASIC_PROPERTIES_USERID)),
        (FIELD_BASIC_PROPERTIES_APPID, _property(SchemaType.STRING, FIELD_BASIC_PROPERTIES_APPID)),
    ],
    optional=True,
)

# =============================================================================
# Key and value
# =============================================================================

SCHEMA_KEY = _struct(
    "MessageKey",
    "Key used for partition assignment in Kafka.",
    [(FIELD_BASIC_PROPERTIES_MESSAGEID, _property(SchemaType.STRING, FIELD_BASIC_PROPERTIES_MESSAGEID))],
)

FIELD_MESSAGE_BODY = "body"
FIELD_MESSAGE_CONSUMERTAG = "consumerTag"
FIELD_MESSAGE_ENVELOPE = "envelope"
FIELD_MESSAGE_BASICPROPERTIES = "basicProperties"

_BODY_SCHEMA = _primitive(SchemaType.STRING, "The message body decoded as text.")

SCHEMA_VALUE = _struct(
    "Message",
    "Message body as it is delivered to the RabbitMQ consumer.",
    [(FIELD_MESSAGE_BODY, _BODY_SCHEMA)],
)

SCHEMA_MESSAGE = _struct(
    "MessageWithMetadata",
    "Message as it is delivered to the RabbitMQ consumer, with its envelope and properties.",
    [
        (FIELD_MESSAGE_BODY, _BODY_SCHEMA),
        (FIELD_MESSAGE_CONSUMERTAG, _primitive(SchemaType.STRING, "The consumer tag associated with the consumer.", optional=True)),
        (FIELD_MESSAGE_ENVELOPE, SCHEMA_ENVELOPE),
        (FIELD_MESSAGE_BASICPROPERTIES, SCHEMA_BASIC_PROPERTIES),
    ],
)

CATALOG = MappingProxyType(
    {
        schema.name: schema
        for schema in (
            SCHEMA_ENVELOPE,
            SCHEMA_HEADER_VALUE,
            SCHEMA_BASIC_PROPERTIES,
            SCHEMA_KEY,
            SCHEMA_VALUE,
            SCHEMA_MESSAGE,
        )
    }
)


def get_schema(name: str) -> Schema:
    """Look up a catalog schema by its fully qualified name."""
    try:
        return CATALOG[name]
    except KeyError:
        raise KeyError(f"Unknown schema: {name}") from None
