"""Broker delivery context variables for structured logging."""

from contextvars import ContextVar
from typing import Any, Dict, Optional

_routing_key: ContextVar[Optional[str]] = ContextVar("delivery_routing_key", default=None)
_delivery_tag: ContextVar[int] = ContextVar("delivery_tag", default=-1)
_consumer_tag: ContextVar[str] = ContextVar("delivery_consumer_tag", default="")
_exchange: ContextVar[str] = ContextVar("delivery_exchange", default="")


def set_delivery_context(
    routing_key: Optional[str] = None,
    delivery_tag: Optional[int] = None,
    consumer_tag: Optional[str] = None,
    exchange: Optional[str] = None,
) -> None:
    """
    Set broker delivery context variables for structured logging.

    Args:
        routing_key: AMQP routing key (source partition)
        delivery_tag: AMQP delivery tag (source offset)
        consumer_tag: Consumer tag of the subscription
        exchange: Exchange the message was published to
    """
    if routing_key is not None:
        _routing_key.set(routing_key)
    if delivery_tag is not None:
        _delivery_tag.set(delivery_tag)
    if consumer_tag is not None:
        _consumer_tag.set(consumer_tag)
    if exchange is not None:
        _exchange.set(exchange)


def get_delivery_context() -> Dict[str, Any]:
    """
    Get current broker delivery logging context.

    Returns:
        Dictionary with routing_key and delivery_tag, plus consumer_tag and
        exchange when they are set. The empty routing key is a legal value
        and is reported as such.
    """
    context: Dict[str, Any] = {
        "routing_key": _routing_key.get(),
        "delivery_tag": _delivery_tag.get(),
    }

    consumer_tag = _consumer_tag.get()
    if consumer_tag:
        context["consumer_tag"] = consumer_tag

    exchange = _exchange.get()
    if exchange:
        context["exchange"] = exchange

    return context


def clear_delivery_context() -> None:
    """Clear all delivery logging context variables."""
    _routing_key.set(None)
    _delivery_tag.set(-1)
    _consumer_tag.set("")
    _exchange.set("")


class DeliveryLogContext:
    """
    Context manager for delivery conversion with automatic context setting.

    Usage:
        with DeliveryLogContext(routing_key="orders.created", delivery_tag=42):
            # All logs in this block will include delivery context
            build_record()
    """

    def __init__(
        self,
        routing_key: Optional[str] = None,
        delivery_tag: Optional[int] = None,
        consumer_tag: Optional[str] = None,
        exchange: Optional[str] = None,
    ):
        self.new_context = {
            "routing_key": routing_key,
            "delivery_tag": delivery_tag,
            "consumer_tag": consumer_tag,
            "exchange": exchange,
        }
        self._tokens: list = []

    def __enter__(self) -> "DeliveryLogContext":
        variables = {
            "routing_key": _routing_key,
            "delivery_tag": _delivery_tag,
            "consumer_tag": _consumer_tag,
            "exchange": _exchange,
        }
        for key, value in self.new_context.items():
            if value is not None:
                self._tokens.append((variables[key], variables[key].set(value)))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        # Restore in reverse order so nested sets unwind cleanly
        while self._tokens:
            var, token = self._tokens.pop()
            var.reset(token)
        return False
