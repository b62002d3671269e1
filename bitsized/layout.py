"""Bit layout of field types: sizes, masks, packing and unpacking.

A field type is one of:

* ``bool`` or an unsigned integer type made with :func:`~bitsized.uint.uint`,
* a bit enum or bitfield struct, meaning any class with ``BITS``, ``to_bits()``
  and ``try_from_bits()``,
* a :class:`Tuple` of field types,
* an :class:`Array` of one field type.

Every layout puts its first part in the least significant bits. Tuple values
are Python tuples, and array values are lists, nested the same way the arrays
are nested.
"""

from __future__ import annotations

import operator
from dataclasses import dataclass
from typing import Any, Iterator, Sequence

from .uint import BitsError, DefinitionError, UInt, bitsize_of, from_raw, to_raw


class Tuple:
    """A field type made of several field types, laid out one after another."""

    __slots__ = ("elements",)

    def __init__(self, *elements: Any) -> None:
        for element in elements:
            field_bitsize(element)
        self.elements: tuple[Any, ...] = tuple(elements)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.elements)

    def __len__(self) -> int:
        return len(self.elements)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Tuple):
            return self.elements == other.elements
        return NotImplemented

    def __hash__(self) -> int:
        return hash(("Tuple", self.elements))

    def __repr__(self) -> str:
        inner = ", ".join(_type_name(element) for element in self.elements)
        return f"Tuple({inner})"


@dataclass(frozen=True)
class Array:
    """A field type holding ``length`` values of ``element``, back to back."""

    element: Any
    length: int

    def __post_init__(self) -> None:
        if isinstance(self.length, bool) or not isinstance(self.length, int):
            raise DefinitionError(f"array length {self.length!r} is not a number")
        if self.length < 0:
            raise DefinitionError(f"array length {self.length} is negative")
        field_bitsize(self.element)

    def __repr__(self) -> str:
        return f"Array({_type_name(self.element)}, {self.length})"


def _type_name(tp: Any) -> str:
    if isinstance(tp, (Tuple, Array)):
        return repr(tp)
    return getattr(tp, "__name__", repr(tp))


def field_bitsize(tp: Any) -> int:
    """Number of bits a field of type ``tp`` occupies."""
    if isinstance(tp, Tuple):
        return sum(field_bitsize(element) for element in tp.elements)
    if isinstance(tp, Array):
        return field_bitsize(tp.element) * tp.length
    return bitsize_of(tp)


def field_mask(tp: Any) -> int:
    """A mask with every bit of a field of type ``tp`` set."""
    return (1 << field_bitsize(tp)) - 1


def flatten_array(tp: Any) -> tuple[int, Any]:
    """Fold nested arrays ``[[T; N]; M]`` into their element count and type: ``(N * M, T)``."""
    if not isinstance(tp, Array):
        raise TypeError(f"{_type_name(tp)} is not an array type")
    if isinstance(tp.element, Array):
        child_length, child_type = flatten_array(tp.element)
        return tp.length * child_length, child_type
    return tp.length, tp.element


def _check_sequence(tp: Any, value: Any, length: int) -> Sequence[Any]:
    if isinstance(value, (str, bytes, bytearray)) or not isinstance(value, Sequence):
        raise TypeError(f"expected a sequence for {_type_name(tp)}, got {value!r}")
    if len(value) != length:
        raise ValueError(f"{_type_name(tp)} needs {length} values, got {len(value)}")
    return value


def pack(tp: Any, value: Any) -> int:
    """The raw bit pattern of ``value``, a value of field type ``tp``."""
    if isinstance(tp, Tuple):
        items = _check_sequence(tp, value, len(tp.elements))
        raw = 0
        offset = 0
        for element, item in zip(tp.elements, items):
            raw |= pack(element, item) << offset
            offset += field_bitsize(element)
        return raw
    if isinstance(tp, Array):
        items = _check_sequence(tp, value, tp.length)
        size = field_bitsize(tp.element)
        raw = 0
        for position, item in enumerate(items):
            raw |= pack(tp.element, item) << (position * size)
        return raw
    return to_raw(tp, value)


def _check_raw(tp: Any, raw: Any) -> int:
    number = operator.index(raw)
    if not 0 <= number <= field_mask(tp):
        raise ValueError(f"bit pattern {number} does not fit into {field_bitsize(tp)} bits")
    return number


def _unpack(tp: Any, raw: int) -> Any:
    if isinstance(tp, Tuple):
        values = []
        for element in tp.elements:
            values.append(_unpack(element, raw & field_mask(element)))
            raw >>= field_bitsize(element)
        return tuple(values)
    if isinstance(tp, Array):
        size = field_bitsize(tp.element)
        mask = field_mask(tp.element)
        return [_unpack(tp.element, (raw >> (position * size)) & mask) for position in range(tp.length)]
    return from_raw(tp, raw)


def unpack(tp: Any, raw: Any) -> Any:
    """The value of field type ``tp`` held in the bit pattern ``raw``.

    Raises :class:`~bitsized.uint.BitsError` if a part of the pattern is not a
    valid value of its type.
    """
    return _unpack(tp, _check_raw(tp, raw))


def _is_always_filled(tp: Any) -> bool:
    return tp is bool or (isinstance(tp, type) and issubclass(tp, UInt))


def _is_valid(tp: Any, raw: int) -> bool:
    if isinstance(tp, Tuple):
        for element in tp.elements:
            if not _is_valid(element, raw & field_mask(element)):
                return False
            raw >>= field_bitsize(element)
        return True
    if isinstance(tp, Array):
        size = field_bitsize(tp.element)
        mask = field_mask(tp.element)
        return all(_is_valid(tp.element, (raw >> (position * size)) & mask) for position in range(tp.length))
    if _is_always_filled(tp):
        return True
    try:
        from_raw(tp, raw)
    except BitsError:
        return False
    return True


def is_valid(tp: Any, raw: Any) -> bool:
    """Whether every part of the bit pattern ``raw`` is a valid value of its type."""
    return _is_valid(tp, _check_raw(tp, raw))


def default_raw(tp: Any) -> int:
    """The bit pattern of the default value of field type ``tp``.

    ``bool`` defaults to ``False`` and integers to zero; any other type must
    provide a ``default()`` class method.
    """
    if isinstance(tp, Tuple):
        raw = 0
        offset = 0
        for element in tp.elements:
            raw |= default_raw(element) << offset
            offset += field_bitsize(element)
        return raw
    if isinstance(tp, Array):
        size = field_bitsize(tp.element)
        element_raw = default_raw(tp.element)
        raw = 0
        for position in range(tp.length):
            raw |= element_raw << (position * size)
        return raw
    if _is_always_filled(tp):
        bitsize_of(tp)
        return 0
    make_default = getattr(tp, "default", None)
    if not callable(make_default):
        raise TypeError(f"{_type_name(tp)} has no default value")
    return to_raw(tp, make_default())