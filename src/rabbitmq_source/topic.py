"""
Topic name resolution from a configured template.

Templates reference fields of the converted message with ``${...}``
placeholders, using the outbound field names::

    events.${body}
    rabbit.${envelope.exchange}.${envelope.routingKey}
    tenant-${basicProperties.headers.tenant}

``$$`` renders a literal ``$``. Placeholders are checked against the message
schema when the template is built. A placeholder that cannot be resolved for
a particular message fails that message; there is no fallback topic.
"""

import logging
import re
from datetime import datetime
from typing import Any

from core.errors.exceptions import TemplateEvaluationError
from rabbitmq_source.schemas.catalog import SCHEMA_MESSAGE, Schema, SchemaType
from rabbitmq_source.schemas.models import HeaderValue, MessageValue
from rabbitmq_source.types import epoch_millis

logger = logging.getLogger(__name__)

__all__ = [
    "MAX_TOPIC_LENGTH",
    "TopicTemplate",
    "is_valid_topic_name",
]

MAX_TOPIC_LENGTH = 249

_TOKEN_PATTERN = re.compile(r"\$\$|\$\{(?P<path>[^}]*)\}|\$\{")
_LEGAL_TOPIC_PATTERN = re.compile(r"^[a-zA-Z0-9._-]+$")


def is_valid_topic_name(name: str) -> bool:
    """Check a name against Kafka's topic naming rules."""
    if name in (".", ".."):
        return False
    return 0 < len(name) <= MAX_TOPIC_LENGTH and bool(_LEGAL_TOPIC_PATTERN.match(name))


def _format_scalar(value: Any) -> str:
    if isinstance(value, HeaderValue):
        value = value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return str(epoch_millis(value))
    return str(value)


class TopicTemplate:
    """
    Compiled topic template.

    Args:
        template: Template text, e.g. ``"events.${body}"``
        schema: Schema the placeholders are resolved against

    Raises:
        TemplateEvaluationError: If a placeholder is malformed or names a
            field the schema does not have
    """

    def __init__(self, template: str, schema: Schema = SCHEMA_MESSAGE):
        self.template = template
        self.schema = schema
        self._parts: list[str | tuple[str, ...]] = self._compile(template)

    def __repr__(self) -> str:
        return f"TopicTemplate({self.template!r})"

    @property
    def placeholders(self) -> list[str]:
        return [".".join(part) for part in self._parts if isinstance(part, tuple)]

    def _compile(self, template: str) -> list[str | tuple[str, ...]]:
        parts: list[str | tuple[str, ...]] = []
        literal: list[str] = []
        pos = 0
        for match in _TOKEN_PATTERN.finditer(template):
            literal.append(template[pos : match.start()])
            pos = match.end()
            token = match.group(0)
            if token == "$$":
                literal.append("$")
                continue
            path_text = match.group("path")
            if path_text is None:
                raise TemplateEvaluationError(
                    f"Unterminated placeholder at position {match.start()} in topic template '{template}'",
                    template=template,
                )
            path = tuple(path_text.strip().split("."))
            self._validate_path(path)
            text = "".join(literal)
            if text:
                parts.append(text)
            literal = []
            parts.append(path)
        text = "".join(literal) + template[pos:]
        if text:
            parts.append(text)
        return parts

    def _validate_path(self, path: tuple[str, ...]) -> None:
        field_ref = ".".join(path)
        if any(not segment for segment in path):
            raise TemplateEvaluationError(
                f"Empty field reference '${{{field_ref}}}' in topic template '{self.template}'",
                template=self.template,
                field=field_ref,
            )

        schema = self.schema
        for index, segment in enumerate(path):
            if schema.type == SchemaType.MAP:
                # Remaining segments form the map key
                return
            if schema.type != SchemaType.STRUCT:
                raise TemplateEvaluationError(
                    f"Field '{'.'.join(path[:index])}' has no subfield '{segment}' "
                    f"in topic template '{self.template}'",
                    template=self.template,
                    field=field_ref,
                )
            schema_field = schema.field(segment)
            if schema_field is None:
                raise TemplateEvaluationError(
                    f"Unknown field '{field_ref}' in topic template '{self.template}'. "
                    f"Valid fields at this level: {', '.join(schema.field_names)}",
                    template=self.template,
                    field=field_ref,
                )
            schema = schema_field.schema

        if not schema.type.is_primitive:
            raise TemplateEvaluationError(
                f"Field '{field_ref}' is a {schema.type.value}, not a scalar, "
                f"in topic template '{self.template}'",
                template=self.template,
                field=field_ref,
            )

    def _resolve(self, value: MessageValue, path: tuple[str, ...]) -> Any:
        field_ref = ".".join(path)
        current: Any = value
        schema = self.schema
        for index, segment in enumerate(path):
            if schema.type == SchemaType.MAP:
                map_key = ".".join(path[index:])
                if map_key not in current:
                    raise TemplateEvaluationError(
                        f"Topic template '{self.template}' references '{field_ref}' "
                        f"but the message has no '{map_key}' entry",
                        template=self.template,
                        field=field_ref,
                    )
                return current[map_key]
            current = getattr(current, type(current).attribute_name(segment))
            schema = schema.field(segment).schema
            if current is None:
                raise TemplateEvaluationError(
                    f"Topic template '{self.template}' references '{field_ref}' "
                    f"which is null for this message",
                    template=self.template,
                    field=field_ref,
                )
        return current

    def render(self, value: MessageValue) -> str:
        """
        Evaluate the template against a converted message.

        Args:
            value: Converted message

        Returns:
            Destination topic name

        Raises:
            TemplateEvaluationError: If a referenced field is null or absent,
                or the result is not a legal topic name
        """
        pieces = []
        for part in self._parts:
            if isinstance(part, str):
                pieces.append(part)
            else:
                pieces.append(_format_scalar(self._resolve(value, part)))
        topic = "".join(pieces)

        if not is_valid_topic_name(topic):
            raise TemplateEvaluationError(
                f"Topic template '{self.template}' produced an invalid topic name '{topic[:300]}'",
                template=self.template,
            )

        logger.debug("Resolved destination topic", extra={"topic": topic, "template": self.template})
        return topic
