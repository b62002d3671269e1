"""Fixed-width unsigned integers and the size rules shared by all bitfield types."""

from __future__ import annotations

import operator
from functools import lru_cache
from typing import Any

MAX_STRUCT_BIT_SIZE = 128
"""Largest bit size a bitfield struct (and an unsigned integer type) may declare."""

MAX_ENUM_BIT_SIZE = 64
"""Largest bit size a bitfield enum may declare."""


class BitsError(ValueError):
    """Raised when a bit pattern does not describe a valid value of a type."""

    def __init__(self, message: str = "unable to parse bit pattern") -> None:
        super().__init__(message)

    def __repr__(self) -> str:
        return "BitsError"


class DefinitionError(Exception):
    """Raised when a bitfield type is declared in a way that cannot work."""


class UInt:
    """An unsigned integer of a fixed number of bits.

    Concrete widths are made with :func:`uint`; ``uint(4)(9)`` is a 4-bit nine.
    """

    __slots__ = ("_value",)

    BITS: int = 0
    MAX: int = 0

    def __init__(self, value: Any) -> None:
        cls = type(self)
        if cls is UInt:
            raise TypeError("UInt has no width; create a type with uint(bits)")
        if isinstance(value, bool):
            raise TypeError(f"{cls.__name__} cannot be made from a bool")
        number = operator.index(value)
        if not 0 <= number <= cls.MAX:
            raise ValueError(f"value {number} does not fit into {cls.__name__} (0..={cls.MAX})")
        self._value = number

    @property
    def value(self) -> int:
        """The integer held."""
        return self._value

    def __int__(self) -> int:
        return self._value

    def __index__(self) -> int:
        return self._value

    def __eq__(self, other: object) -> bool:
        if isinstance(other, UInt):
            return type(other) is type(self) and other._value == self._value
        if isinstance(other, int) and not isinstance(other, bool):
            return other == self._value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)

    def __repr__(self) -> str:
        return str(self._value)

    def __format__(self, spec: str) -> str:
        return format(self._value, spec)


def check_bitsize(bits: Any, limit: int = MAX_STRUCT_BIT_SIZE) -> int:
    """Validate a declared bit size: an integer from 1 to ``limit``."""
    if isinstance(bits, bool) or not isinstance(bits, int):
        raise DefinitionError(
            "attribute value is not a number; you need to define the size like this: bitsize(32)"
        )
    if not 0 < bits <= limit:
        raise DefinitionError(
            f"attribute value is not a valid number; currently, numbers from 1 to {limit} are allowed"
        )
    return bits


@lru_cache(maxsize=None)
def uint(bits: int) -> type[UInt]:
    """Return the unsigned integer type of ``bits`` bits, e.g. ``uint(7)`` is ``u7``."""
    check_bitsize(bits, MAX_STRUCT_BIT_SIZE)
    namespace = {
        "__slots__": (),
        "__module__": __name__,
        "__qualname__": f"u{bits}",
        "BITS": bits,
        "MAX": (1 << bits) - 1,
    }
    return type(f"u{bits}", (UInt,), namespace)


def bitsize_of(tp: Any) -> int:
    """Number of bits a single-value type occupies."""
    if tp is bool:
        return 1
    if isinstance(tp, type) and issubclass(tp, UInt):
        if tp is UInt:
            raise TypeError("UInt has no width; create a type with uint(bits)")
        return tp.BITS
    bits = getattr(tp, "BITS", None)
    if isinstance(bits, int) and not isinstance(bits, bool) and bits > 0:
        return bits
    raise TypeError(f"{tp!r} is not a bitsized type")


def max_value(tp: Any) -> int:
    """The largest raw value that fits into the bits of ``tp``."""
    return (1 << bitsize_of(tp)) - 1


def to_raw(tp: Any, value: Any) -> int:
    """The raw bit pattern of ``value``, which must be a value of type ``tp``."""
    if tp is bool:
        if not isinstance(value, bool):
            raise TypeError(f"expected a bool, got {value!r}")
        return int(value)
    if isinstance(tp, type) and issubclass(tp, UInt):
        if isinstance(value, UInt):
            if type(value) is not tp:
                raise TypeError(f"expected {tp.__name__}, got {type(value).__name__}")
            return value.value
        return tp(value).value
    if not isinstance(value, tp):
        raise TypeError(f"expected {getattr(tp, '__name__', tp)!r}, got {value!r}")
    raw = int(value.to_bits())
    if not 0 <= raw <= max_value(tp):
        raise ValueError(f"bit pattern {raw} does not fit into {bitsize_of(tp)} bits")
    return raw


def from_raw(tp: Any, raw: int) -> Any:
    """Build a value of type ``tp`` from its raw bit pattern.

    Raises :class:`BitsError` when the pattern is not a valid value of ``tp``.
    """
    number = operator.index(raw)
    limit = max_value(tp)
    if not 0 <= number <= limit:
        raise ValueError(f"bit pattern {number} does not fit into {bitsize_of(tp)} bits")
    if tp is bool:
        return bool(number)
    if isinstance(tp, type) and issubclass(tp, UInt):
        return tp(number)
    return tp.try_from_bits(number)


def bitsize_from_type_name(name: str) -> int | None:
    """The bit size encoded in a type name of the form ``uN`` or ``bool``."""
    if name == "bool":
        return 1
    if not name.startswith("u"):
        return None
    suffix = name[1:]
    if not (suffix.isascii() and suffix.isdigit()):
        return None
    bits = int(suffix)
    if bits > MAX_STRUCT_BIT_SIZE:
        return None
    return bits


def enum_fills_bitsize(bitsize: int, variants_count: int) -> bool:
    """Whether ``variants_count`` variants use every pattern of ``bitsize`` bits.

    Raises :class:`DefinitionError` if there are more variants than patterns.
    """
    max_variants_count = 1 << bitsize
    if variants_count > max_variants_count:
        raise DefinitionError(
            "enum overflows its bitsize; there should only be at most "
            f"{max_variants_count} variants defined"
        )
    return variants_count == max_variants_count