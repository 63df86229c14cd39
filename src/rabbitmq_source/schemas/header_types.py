"""
Fixed-width scalar types for AMQP header values.

Python has a single unbounded ``int`` and a single double-precision
``float``, so a header's wire width cannot be recovered from the value alone.
These subclasses let a caller state the width explicitly; they behave like
the builtin they extend and are range-checked on construction. Plain ``int``
and ``float`` values are treated as 64-bit.

Example:
    >>> headers = {"retry": Int32(2), "ratio": Float32(0.5), "count": 7}
"""

import struct


class _FixedWidthInt(int):
    """Signed integer constrained to ``bits`` bits."""

    bits: int = 64

    def __new__(cls, value: int = 0):
        if isinstance(value, bool):
            raise TypeError(f"{cls.__name__} does not accept bool values")
        obj = super().__new__(cls, value)
        low = -(1 << (cls.bits - 1))
        high = (1 << (cls.bits - 1)) - 1
        if not low <= obj <= high:
            raise ValueError(f"{cls.__name__} value {int(obj)} out of range [{low}, {high}]")
        return obj

    def __repr__(self) -> str:
        return f"{type(self).__name__}({int(self)})"

    def __str__(self) -> str:
        return int.__repr__(self)


class Int8(_FixedWidthInt):
    """8-bit signed integer (AMQP short-short-int)."""

    bits = 8


class Int16(_FixedWidthInt):
    """16-bit signed integer (AMQP short-int)."""

    bits = 16


class Int32(_FixedWidthInt):
    """32-bit signed integer (AMQP long-int)."""

    bits = 32


class Int64(_FixedWidthInt):
    """64-bit signed integer (AMQP long-long-int)."""

    bits = 64


class Float32(float):
    """Single-precision float; the value is rounded to the nearest float32."""

    def __new__(cls, value: float = 0.0):
        try:
            (rounded,) = struct.unpack("<f", struct.pack("<f", float(value)))
        except OverflowError as e:
            raise ValueError(f"Float32 value {value!r} out of range") from e
        return super().__new__(cls, rounded)

    def __repr__(self) -> str:
        return f"Float32({float(self)!r})"

    def __str__(self) -> str:
        return float.__repr__(self)


class Float64(float):
    """Double-precision float."""

    def __repr__(self) -> str:
        return f"Float64({float(self)!r})"

    def __str__(self) -> str:
        return float.__repr__(self)


__all__ = [
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "Float32",
    "Float64",
]
