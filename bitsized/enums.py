"""Enumerations stored in a fixed number of bits.

A bit enum is declared by subclassing :class:`BitEnum` with a ``bits`` keyword.
Each public class attribute holding an integer or ``...`` is a variant. An
integer sets the variant's discriminant, and ``...`` takes the value after the
previous variant. :func:`fallback` marks the variant that catches every bit
pattern no other variant claims::

    class Subclass(BitEnum, bits=32):
        MOUSE = ...
        KEYBOARD = ...
        SPEAKERS = ...
        RESERVED = fallback(with_value=True)

With ``try_from=True`` the enum may leave bit patterns unused. It is then
converted only with :meth:`BitEnum.try_from_bits`, which raises
:class:`~bitsized.uint.BitsError` for a pattern without a variant.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import Any, Iterable

from .uint import (
    MAX_ENUM_BIT_SIZE,
    MAX_STRUCT_BIT_SIZE,
    BitsError,
    DefinitionError,
    UInt,
    check_bitsize,
    enum_fills_bitsize,
    to_raw,
    uint,
)

_RESERVED_NAMES = frozenset({"BITS", "MAX"})


@dataclass(frozen=True)
class _FallbackMarker:
    with_value: bool = False


def fallback(with_value: bool = False) -> _FallbackMarker:
    """Mark a variant as the fallback for unclaimed bit patterns.

    A unit fallback (``with_value=False``) loses the pattern it caught. A value
    fallback keeps it and must be the last variant.
    """
    return _FallbackMarker(bool(with_value))


def assign_discriminants(declared: Iterable[Any], bitsize: int) -> list[int]:
    """Give every variant its discriminant.

    ``declared`` holds an explicit integer, or ``None`` for "one more than the
    previous variant" (the first variant defaults to zero).
    """
    max_value = (1 << bitsize) - 1
    next_expected = 0
    assigned: list[int] = []
    seen: set[int] = set()
    for value in declared:
        if value is None:
            value = next_expected
        elif isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise DefinitionError(
                f"variant discriminant {value!r} is not a number; "
                "only literal non-negative integers are supported"
            )
        if value > max_value:
            raise DefinitionError("Value of variant exceeds the given number of bits")
        if value in seen:
            raise DefinitionError(f"discriminant value `{value}` assigned more than once")
        seen.add(value)
        assigned.append(value)
        next_expected = value + 1
    return assigned


def _is_declaration(name: str, value: Any) -> bool:
    if name.startswith("_") or name in _RESERVED_NAMES:
        return False
    return value is Ellipsis or isinstance(value, (_FallbackMarker, int))


def _format_bits(obj: Any, spec: str) -> str:
    if spec == "":
        return str(obj)
    raw = int(obj.to_bits())
    if spec == "b":
        return format(raw, f"0{obj.BITS}b")
    return format(raw, spec)


def _restore_variant(owner: type, ordinal: int) -> Any:
    """The unit variant of ``owner`` with discriminant ``ordinal``."""
    member = owner._members.get(ordinal)
    if member is not None:
        return member
    return owner._fallback


class FallbackValue:
    """Base of a fallback variant that carries the bit pattern it caught.

    The variant itself is a class: ``Subclass.RESERVED(42)`` is a value.
    """

    def __new__(cls, number: Any) -> Any:
        tp = getattr(cls, "_uint", None)
        if tp is None or not issubclass(cls, BitEnum):
            raise TypeError(f"{cls.__name__} is not a fallback variant of a bit enum")
        obj = object.__new__(cls)
        obj.name = cls.__name__
        obj._ordinal = cls._ordinal
        obj._number = tp(to_raw(tp, number))
        return obj

    @property
    def number(self) -> UInt:
        """The bit pattern this value carries."""
        return self._number

    def to_bits(self) -> UInt:
        """The carried bit pattern, unchanged."""
        return self._number

    def __format__(self, spec: str) -> str:
        return _format_bits(self, spec)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FallbackValue):
            return type(other) is type(self) and other._number == self._number
        return NotImplemented

    def __hash__(self) -> int:
        return hash((type(self), self._number.value))

    def __repr__(self) -> str:
        return f"{self._owner.__name__}.{self.name}({self._number!r})"

    def __reduce__(self) -> Any:
        return (type(self), (self._number.value,))


class BitEnum:
    """Base class of enumerations with a declared bit size."""

    BITS: int = 0

    def __new__(cls, *args: Any, **kwargs: Any) -> Any:
        raise TypeError(f"the variants of {cls.__name__} are its class attributes")

    def __init_subclass__(cls, bits: int | None = None, try_from: bool = False, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if issubclass(cls, FallbackValue):
            return
        if bits is None:
            raise DefinitionError(
                "missing attribute value; you need to define the size like this: "
                f"class {cls.__name__}(BitEnum, bits=32)"
            )
        check_bitsize(bits, MAX_STRUCT_BIT_SIZE)
        if bits > MAX_ENUM_BIT_SIZE:
            raise DefinitionError(f"enum bitsize is limited to {MAX_ENUM_BIT_SIZE}")

        declarations = [(name, value) for name, value in vars(cls).items() if _is_declaration(name, value)]
        if not declarations:
            raise DefinitionError("empty enums are not supported")

        fallbacks = [
            (index, name, value)
            for index, (name, value) in enumerate(declarations)
            if isinstance(value, _FallbackMarker)
        ]
        if len(fallbacks) > 1:
            raise DefinitionError("only one enum variant may be a fallback")
        if fallbacks and try_from:
            raise DefinitionError("fallback is not allowed with try_from; remove try_from or the fallback")
        if fallbacks:
            index, name, marker = fallbacks[0]
            if marker.with_value and index != len(declarations) - 1:
                raise DefinitionError(
                    f"value fallback {name} is not the last variant; "
                    "a fallback variant with value must be the last variant of the enum"
                )

        filled = enum_fills_bitsize(bits, len(declarations))
        if not try_from:
            if not filled and not fallbacks:
                raise DefinitionError(
                    "enum doesn't fill its bitsize; use try_from=True instead, "
                    "or specify one of the variants as fallback()"
                )
            if filled and fallbacks:
                raise DefinitionError(
                    f"enum already has {len(declarations)} variants; remove the fallback"
                )
        elif filled:
            warnings.warn(
                f"enum {cls.__name__} fills its bitsize; try_from=True is not needed",
                stacklevel=2,
            )

        discriminants = assign_discriminants(
            [value if isinstance(value, int) else None for _, value in declarations],
            bits,
        )

        cls.BITS = bits
        cls._uint = uint(bits)
        cls.MAX = cls._uint(cls._uint.MAX)
        cls._owner = cls
        cls._try_from = bool(try_from)
        cls._fallback = None
        members: dict[int, BitEnum] = {}
        variants: list[Any] = []
        for (name, value), ordinal in zip(declarations, discriminants):
            if isinstance(value, _FallbackMarker) and value.with_value:
                member: Any = type(
                    name,
                    (FallbackValue, cls),
                    {
                        "__module__": cls.__module__,
                        "__qualname__": f"{cls.__qualname__}.{name}",
                        "_ordinal": ordinal,
                    },
                )
            else:
                member = object.__new__(cls)
                member.name = name
                member._ordinal = ordinal
            if isinstance(value, _FallbackMarker):
                cls._fallback = member
            else:
                members[ordinal] = member
            variants.append(member)
            setattr(cls, name, member)
        cls._members = members
        cls._variants = tuple(variants)

    @classmethod
    def _enum(cls) -> type[BitEnum]:
        owner = getattr(cls, "_owner", None)
        if owner is None:
            raise TypeError(f"{cls.__name__} declares no variants")
        return owner

    @classmethod
    def _lookup(cls, number: Any) -> Any:
        owner = cls._enum()
        raw = to_raw(owner._uint, number)
        member = owner._members.get(raw)
        if member is not None:
            return member
        caught = owner._fallback
        if caught is None:
            raise BitsError()
        if isinstance(caught, type):
            return caught(raw)
        return caught

    @classmethod
    def from_bits(cls, number: Any) -> Any:
        """The variant for a bit pattern; every pattern has one."""
        owner = cls._enum()
        if owner._try_from:
            raise TypeError(f"{owner.__name__} does not fill its bitsize; use try_from_bits")
        return owner._lookup(number)

    @classmethod
    def try_from_bits(cls, number: Any) -> Any:
        """The variant for a bit pattern, raising :class:`BitsError` if there is none."""
        return cls._lookup(number)

    def to_bits(self) -> UInt:
        """The variant's discriminant as an unsigned integer of the enum's width."""
        return self._uint(self._ordinal)

    def __format__(self, spec: str) -> str:
        return _format_bits(self, spec)

    def __int__(self) -> int:
        return self.to_bits().value

    def __repr__(self) -> str:
        return f"{self._owner.__name__}.{self.name}"

    def __reduce__(self) -> Any:
        return (_restore_variant, (self._owner, self._ordinal))

    def __copy__(self) -> Any:
        return self

    def __deepcopy__(self, memo: Any) -> Any:
        return self