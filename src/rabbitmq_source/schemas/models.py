"""
Pydantic records for the RabbitMQ source's outbound keys and values.

Each record mirrors a descriptor from ``catalog`` (exposed as ``SCHEMA``):
field aliases are the catalog field names and declaration order is the
catalog field order, so ``model_dump(by_alias=True)`` always produces the same
layout for every message shape. Records are frozen once built.
"""

from datetime import datetime
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, model_validator

from rabbitmq_source.schemas.catalog import (
    SCHEMA_BASIC_PROPERTIES,
    SCHEMA_ENVELOPE,
    SCHEMA_HEADER_VALUE,
    SCHEMA_KEY,
    SCHEMA_MESSAGE,
    HeaderType,
    Schema,
)


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    SCHEMA: ClassVar[Schema]

    @classmethod
    def attribute_name(cls, alias: str) -> str:
        """Python attribute name of the field serialized as ``alias``."""
        for name, info in cls.model_fields.items():
            if (info.alias or name) == alias:
                return name
        raise KeyError(f"{cls.__name__} has no field '{alias}'")

    @classmethod
    def field_names_for(cls, schema: Schema) -> set[str]:
        """Attribute names of the fields ``schema`` declares."""
        return {cls.attribute_name(alias) for alias in schema.field_names}

    def to_schema_dict(self, schema: Schema | None = None) -> dict[str, Any]:
        """JSON-compatible dict restricted to the fields of ``schema``."""
        include = self.field_names_for(schema or self.SCHEMA)
        return self.model_dump(by_alias=True, mode="json", include=include)

    def to_schema_json(self, schema: Schema | None = None) -> str:
        """JSON text restricted to the fields of ``schema``."""
        include = self.field_names_for(schema or self.SCHEMA)
        return self.model_dump_json(by_alias=True, include=include)


class EnvelopeRecord(_Record):
    """Routing envelope of a delivery."""

    SCHEMA: ClassVar[Schema] = SCHEMA_ENVELOPE

    delivery_tag: int = Field(..., alias="deliveryTag", ge=0, description="Delivery tag (replay offset)")
    is_redeliver: bool = Field(False, alias="isRedeliver", description="Redelivery flag")
    exchange: str | None = Field(default=None, description="Exchange the message was published to")
    routing_key: str | None = Field(default=None, alias="routingKey", description="Routing key")


class HeaderValue(_Record):
    """
    Tagged header value.

    Exactly one storage field is populated and ``type`` names it; every other
    storage field is None. Build instances with ``HeaderValue.of``.

    Example:
        >>> hv = HeaderValue.of(HeaderType.INT32, 2)
        >>> hv.type, hv.int32, hv.string
        (<HeaderType.INT32: 'int32'>, 2, None)
    """

    SCHEMA: ClassVar[Schema] = SCHEMA_HEADER_VALUE

    type: HeaderType
    string: str | None = None
    int8: int | None = Field(default=None, ge=-(2**7), le=2**7 - 1)
    int16: int | None = Field(default=None, ge=-(2**15), le=2**15 - 1)
    int32: int | None = Field(default=None, ge=-(2**31), le=2**31 - 1)
    int64: int | None = Field(default=None, ge=-(2**63), le=2**63 - 1)
    float32: float | None = Field(default=None, allow_inf_nan=False)
    float64: float | None = Field(default=None, allow_inf_nan=False)
    boolean: bool | None = None
    timestamp: datetime | None = None

    @model_validator(mode="after")
    def _check_single_arm(self) -> "HeaderValue":
        populated = [t.value for t in HeaderType if getattr(self, t.value) is not None]
        if populated != [self.type.value]:
            raise ValueError(
                f"HeaderValue of type '{self.type.value}' must populate exactly the "
                f"'{self.type.value}' field, got {populated or 'none'}"
            )
        return self

    @classmethod
    def of(cls, header_type: HeaderType, value: Any) -> "HeaderValue":
        return cls(type=header_type, **{header_type.value: value})

    @property
    def value(self) -> Any:
        """The populated storage field."""
        return getattr(self, self.type.value)


class BasicPropertiesRecord(_Record):
    """AMQP basic properties with headers converted to tagged values."""

    SCHEMA: ClassVar[Schema] = SCHEMA_BASIC_PROPERTIES

    content_type: str | None = Field(default=None, alias="contentType")
    content_encoding: str | None = Field(default=None, alias="contentEncoding")
    headers: dict[str, HeaderValue] = Field(default_factory=dict)
    delivery_mode: int | None = Field(default=None, alias="deliveryMode")
    priority: int | None = None
    correlation_id: str | None = Field(default=None, alias="correlationId")
    reply_to: str | None = Field(default=None, alias="replyTo")
    expiration: str | None = None
    message_id: str | None = Field(default=None, alias="messageId")
    timestamp: datetime | None = None
    type: str | None = None
    user_id: str | None = Field(default=None, alias="userId")
    app_id: str | None = Field(default=None, alias="appId")


class MessageKey(_Record):
    """Key used for partition assignment in Kafka."""

    SCHEMA: ClassVar[Schema] = SCHEMA_KEY

    message_id: str | None = Field(default=None, alias="messageId")


class MessageValue(_Record):
    """
    Converted delivery.

    Carries the decoded body and the delivery metadata. Which of these fields
    are emitted is decided by the value schema chosen in configuration; topic
    templates can always reference all of them.
    """

    SCHEMA: ClassVar[Schema] = SCHEMA_MESSAGE

    body: str
    consumer_tag: str | None = Field(default=None, alias="consumerTag")
    envelope: EnvelopeRecord
    basic_properties: BasicPropertiesRecord | None = Field(default=None, alias="basicProperties")

    @property
    def headers(self) -> dict[str, HeaderValue]:
        """Tagged headers, empty when the delivery had no properties."""
        if self.basic_properties is None:
            return {}
        return self.basic_properties.headers


__all__ = [
    "EnvelopeRecord",
    "HeaderValue",
    "BasicPropertiesRecord",
    "MessageKey",
    "MessageValue",
]
