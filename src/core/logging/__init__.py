"""
Structured logging module.

Provides JSON logging with process-wide and per-delivery context propagation.
"""

from core.logging.context import (
    clear_log_context,
    get_log_context,
    set_log_context,
)
from core.logging.delivery_context import (
    DeliveryLogContext,
    clear_delivery_context,
    get_delivery_context,
    set_delivery_context,
)
from core.logging.formatters import ConsoleFormatter, JSONFormatter
from core.logging.setup import (
    get_log_file_path,
    get_logger,
    setup_logging,
)
from core.logging.utilities import log_exception, log_with_context

__all__ = [
    # Setup
    "setup_logging",
    "get_logger",
    "get_log_file_path",
    # Formatters
    "JSONFormatter",
    "ConsoleFormatter",
    # Context
    "set_log_context",
    "get_log_context",
    "clear_log_context",
    # Delivery Context
    "set_delivery_context",
    "get_delivery_context",
    "clear_delivery_context",
    "DeliveryLogContext",
    # Utilities
    "log_with_context",
    "log_exception",
]
