"""
Core library: Reusable, infrastructure-agnostic components.

Shared by the RabbitMQ source transcoder and anything hosting it.

Modules:
    logging     - Structured JSON logging with per-delivery context
    errors      - Error classification and exception hierarchy
    utils       - JSON serialization helpers

Design Principles:
    - No dependencies on the broker client or the Kafka producer
    - All modules are independently testable
    - Type hints throughout
"""

from .types import ErrorCategory

__version__ = "0.1.0"

__all__ = [
    "ErrorCategory",
]
