"""Configuration loading for the RabbitMQ source.

Configuration is loaded from a single YAML file (default: src/config/config.yaml)
under the ``rabbitmq_source:`` section.

Main Functions
--------------

    - load_config(): Load and validate source configuration from YAML
    - get_config(): Get or load singleton config instance
    - set_config(): Replace singleton config instance (tests)
    - reset_config(): Reset singleton config instance

Usage Examples
--------------

    >>> from config import load_config
    >>> config = load_config()
    >>> config.kafka_topic
    'rabbitmq.${envelope.routingKey}'

Custom config path:
    >>> from pathlib import Path
    >>> config = load_config(config_path=Path("/custom/path/config.yaml"))

Configuration Priority
---------------------

1. ``overrides`` passed to load_config()
2. YAML configuration file (with ${VAR_NAME} expansion)
3. Dataclass defaults

Validate from the command line:
    python -m config.config --config /path/to/config.yaml --json
"""

from config.config import (
    SourceConfig,
    ValueFormat,
    get_config,
    load_config,
    reset_config,
    set_config,
)

__all__ = [
    "load_config",
    "get_config",
    "set_config",
    "reset_config",
    "SourceConfig",
    "ValueFormat",
]
