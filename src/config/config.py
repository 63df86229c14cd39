"""RabbitMQ source configuration from YAML file.

Loads from config/config.yaml under a ``rabbitmq_source:`` section:
- Destination topic template
- Emitted value format
- Body text encoding

Environment variables ARE supported using ${VAR_NAME} syntax in YAML files.
Only upper-case names are expanded, so topic placeholders such as
``${body}`` or ``${envelope.routingKey}`` pass through untouched.
"""

import codecs
import json
import logging
import os
import re
import sys
from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from core.errors.exceptions import ConfigurationError, TemplateEvaluationError

# Configure module logger
logger = logging.getLogger(__name__)

CONFIG_SECTION = "rabbitmq_source"

_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")


class ValueFormat(str, Enum):
    """What the emitted record value carries."""

    BODY = "body"
    MESSAGE = "message"


def load_yaml(path: Path) -> Dict[str, Any]:
    """Load YAML file and return dict."""
    if not path.exists():
        return {}
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand ${VAR_NAME} and ${VAR_NAME:-default} environment variables in config data."""
    if isinstance(data, dict):
        return {key: _expand_env_vars(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    elif isinstance(data, str):

        def replacer(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else match.group(0)
            return os.getenv(var_name, default_value)

        return _ENV_VAR_PATTERN.sub(replacer, data)
    else:
        return data


# Default config file: config/config.yaml in src/ directory
DEFAULT_CONFIG_FILE = Path(__file__).parent / "config.yaml"


@dataclass
class SourceConfig:
    """RabbitMQ source configuration.

    Configuration structure:
        rabbitmq_source:
          kafka_topic: "events.${body}"   # Topic template (required)
          value_format: body              # body | message
          body_encoding: utf-8            # Codec for decoding message bodies
    """

    kafka_topic: str = ""
    value_format: str = ValueFormat.BODY.value
    body_encoding: str = "utf-8"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ConfigurationError: If a value is missing or unusable
        """
        if not self.kafka_topic:
            raise ConfigurationError(
                "kafka_topic is required in rabbitmq_source section",
                context={"field": "kafka_topic"},
            )

        valid_formats = [f.value for f in ValueFormat]
        if self.value_format not in valid_formats:
            raise ConfigurationError(
                f"Invalid value for value_format: '{self.value_format}'. "
                f"Must be one of: {', '.join(valid_formats)}",
                context={"field": "value_format"},
            )

        try:
            codecs.lookup(self.body_encoding)
        except LookupError as e:
            raise ConfigurationError(
                f"Unknown body_encoding: '{self.body_encoding}'",
                cause=e,
                context={"field": "body_encoding"},
            ) from e

        # Deferred: rabbitmq_source imports this module
        from rabbitmq_source.topic import TopicTemplate

        try:
            TopicTemplate(self.kafka_topic)
        except TemplateEvaluationError as e:
            raise ConfigurationError(
                f"Invalid kafka_topic template: {e.message}",
                cause=e,
                context={"field": "kafka_topic", "template": self.kafka_topic},
            ) from e


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> SourceConfig:
    """Load source configuration from config.yaml file.

    Environment variables ARE supported using ${VAR_NAME} syntax in YAML files.

    Raises:
        FileNotFoundError: If the config file does not exist
        ConfigurationError: If the file lacks the section or fails validation
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_FILE

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    logger.info(f"Loading configuration from file: {config_path}", extra={"config_path": str(config_path)})
    yaml_data = load_yaml(config_path)
    yaml_data = _expand_env_vars(yaml_data)

    if CONFIG_SECTION not in yaml_data:
        raise ConfigurationError(
            f"Invalid config file: missing '{CONFIG_SECTION}:' section",
            context={"config_path": str(config_path)},
        )

    section = dict(yaml_data[CONFIG_SECTION] or {})

    if overrides:
        logger.debug(f"Applying overrides: {list(overrides.keys())}")
        section.update(overrides)

    config = SourceConfig(
        kafka_topic=str(section.get("kafka_topic", "")),
        value_format=str(section.get("value_format", ValueFormat.BODY.value)),
        body_encoding=str(section.get("body_encoding", "utf-8")),
    )

    logger.debug(f"  - Topic template: {config.kafka_topic}")
    logger.debug(f"  - Value format: {config.value_format}")

    config.validate()
    logger.debug("Configuration validation passed")

    return config


_source_config: Optional[SourceConfig] = None


def get_config() -> SourceConfig:
    """Get or load the singleton source config instance."""
    global _source_config
    if _source_config is None:
        _source_config = load_config()
    return _source_config


def set_config(config: SourceConfig) -> None:
    """Set the singleton source config instance (useful for testing)."""
    global _source_config
    _source_config = config


def reset_config() -> None:
    """Reset the singleton config instance (forces reload on next get_config() call)."""
    global _source_config
    _source_config = None


def _cli_main(argv: Optional[list] = None) -> int:
    """CLI entry point for config validation."""
    import argparse

    parser = argparse.ArgumentParser(description="RabbitMQ source configuration tool")
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config.yaml file (default: src/config/config.yaml)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output in JSON format instead of human-readable",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    try:
        config = load_config(config_path=args.config)
    except (FileNotFoundError, ConfigurationError) as e:
        if args.json:
            print(json.dumps({"valid": False, "error": str(e)}))
        else:
            print(f"✗ Error: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps({"valid": True, "config": config.to_dict()}, indent=2))
    else:
        print("✓ Configuration validation passed")
        print(f"  - kafka_topic: {config.kafka_topic}")
        print(f"  - value_format: {config.value_format}")
        print(f"  - body_encoding: {config.body_encoding}")
    return 0


if __name__ == "__main__":
    sys.exit(_cli_main())
