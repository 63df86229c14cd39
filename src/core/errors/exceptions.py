"""
Unified exception hierarchy for the RabbitMQ source transcoder.

Provides typed exceptions with retry classification so the host runtime can
decide per failure whether to skip, dead-letter or halt the task.
"""


# Import ErrorCategory from canonical source to avoid duplicate enum issues
# (comparing enums from different classes always returns False)
from core.types import ErrorCategory


class PipelineError(Exception):
    """
    Base exception for all transcoder errors.

    Attributes:
        message: Human-readable error description
        category: Error classification for retry decisions
        cause: Original exception if wrapping
        context: Additional context dict for debugging
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        self.message = message
        self.cause = cause
        self.context = context or {}
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        return self.category in (
            ErrorCategory.TRANSIENT,
            ErrorCategory.UNKNOWN,
        )

    def __str__(self) -> str:
        parts = [self.message]
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)


# =============================================================================
# Transient Errors
# =============================================================================


class TransientError(PipelineError):
    """Base class for transient/retriable errors."""

    category = ErrorCategory.TRANSIENT


# =============================================================================
# Permanent Errors (Don't Retry)
# =============================================================================


class PermanentError(PipelineError):
    """Base class for permanent/non-retriable errors."""

    category = ErrorCategory.PERMANENT


class ConfigurationError(PermanentError):
    """Invalid or missing configuration."""

    pass


# =============================================================================
# Domain-Specific Errors
# =============================================================================


class DataError(PermanentError):
    """Delivery content cannot be represented in the outbound schema."""

    pass


class UnsupportedHeaderTypeError(DataError):
    """A header value has no discriminator in the header value union."""

    def __init__(
        self,
        header_name: str,
        value_type: str,
        cause: Exception | None = None,
    ):
        message = f"Could not determine the type for header '{header_name}' type '{value_type}'"
        super().__init__(
            message,
            cause,
            {"header_name": header_name, "value_type": value_type},
        )
        self.header_name = header_name
        self.value_type = value_type


class TemplateEvaluationError(PermanentError):
    """Topic template references an unknown or unresolvable field."""

    def __init__(
        self,
        message: str,
        template: str,
        field: str | None = None,
        cause: Exception | None = None,
    ):
        context = {"template": template}
        if field is not None:
            context["field"] = field
        super().__init__(message, cause, context)
        self.template = template
        self.field = field


class MalformedEnvelopeError(PermanentError):
    """Envelope is missing data the AMQP protocol guarantees."""

    pass


# =============================================================================
# Error Classification Utilities
# =============================================================================

# Markers for string-based detection (fallback for non-PipelineError exceptions)
TRANSIENT_ERROR_MARKERS = frozenset(
    {
        "timeout",
        "connection",
        "channel closed",
        "connection reset",
        "broken pipe",
        "temporarily unavailable",
        "service unavailable",
    }
)


def classify_exception(exc: Exception) -> ErrorCategory:
    """Classify an exception into error category."""
    # Already classified
    if isinstance(exc, PipelineError):
        return exc.category

    exc_type = type(exc).__name__.lower()
    exc_str = str(exc).lower()

    if isinstance(exc, (TimeoutError, ConnectionError)):
        return ErrorCategory.TRANSIENT

    if any(m in exc_type or m in exc_str for m in TRANSIENT_ERROR_MARKERS):
        return ErrorCategory.TRANSIENT

    # Programming/data errors raised outside the typed hierarchy
    if isinstance(exc, (TypeError, ValueError, UnicodeError)):
        return ErrorCategory.PERMANENT

    return ErrorCategory.UNKNOWN


def is_transient_error(exc: Exception) -> bool:
    """
    Check if exception is transient (retriable).

    Returns True if this is a transient error that may succeed on retry.
    """
    return classify_exception(exc) == ErrorCategory.TRANSIENT


def is_retryable_error(exc: Exception) -> bool:
    """
    Check if exception should be retried.

    Retryable errors include:
    - Transient errors (connection, timeout)
    - Unknown errors (conservative retry)

    Non-retryable:
    - Permanent errors (unsupported headers, template and envelope errors)
    """
    if isinstance(exc, PipelineError):
        return exc.is_retryable

    return classify_exception(exc) in (
        ErrorCategory.TRANSIENT,
        ErrorCategory.UNKNOWN,
    )


def wrap_exception(
    exc: Exception,
    default_class: type = PipelineError,
    context: dict | None = None,
) -> PipelineError:
    """Wrap a generic exception in appropriate PipelineError subclass."""
    if isinstance(exc, PipelineError):
        if context:
            exc.context.update(context)
        return exc

    category = classify_exception(exc)
    context = context or {}
    context.setdefault("error_type", type(exc).__name__)

    if category == ErrorCategory.TRANSIENT:
        return TransientError(str(exc), cause=exc, context=context)

    if category == ErrorCategory.PERMANENT:
        return PermanentError(str(exc), cause=exc, context=context)

    return default_class(str(exc), cause=exc, context=context)
