"""
Error classification and exception hierarchy.

Provides:
- ErrorCategory enum for classifying errors
- PipelineError hierarchy for typed exceptions
- Transcoding failures (header, template, envelope)
- Classification utilities for error handling
"""

from core.errors.exceptions import (
    ConfigurationError,
    DataError,
    # Enums
    ErrorCategory,
    MalformedEnvelopeError,
    PermanentError,
    # Base classes
    PipelineError,
    TemplateEvaluationError,
    TransientError,
    # Transcoding errors
    UnsupportedHeaderTypeError,
    # Classification utilities
    classify_exception,
    is_retryable_error,
    is_transient_error,
    wrap_exception,
)

__all__ = [
    # Enums
    "ErrorCategory",
    # Base classes
    "PipelineError",
    "TransientError",
    "PermanentError",
    "ConfigurationError",
    # Transcoding errors
    "DataError",
    "UnsupportedHeaderTypeError",
    "TemplateEvaluationError",
    "MalformedEnvelopeError",
    # Classification utilities
    "classify_exception",
    "is_transient_error",
    "is_retryable_error",
    "wrap_exception",
]
