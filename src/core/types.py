"""
Core types shared across modules.

Kept separate from core.errors so that enums have a single canonical
definition (comparing members of duplicated enums always returns False).
"""

from enum import Enum


class ErrorCategory(Enum):
    """
    Classification of error types for handling decisions.

    The transcoder only classifies failures; the host runtime reads the
    category to decide between skip, dead-letter and halting the task.

    Categories:
        TRANSIENT: Temporary failures that should retry with backoff
                   (e.g., broker connection resets, timeouts)
        PERMANENT: Non-retriable failures that won't succeed on retry
                   (e.g., unsupported header types, bad topic templates)
        UNKNOWN: Unclassified errors, may retry conservatively
    """

    TRANSIENT = "transient"
    PERMANENT = "permanent"
    UNKNOWN = "unknown"


__all__ = [
    "ErrorCategory",
]
