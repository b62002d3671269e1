# bitsized

Work with packed binary values, such as hardware registers and packet header
fields, using exact bit widths.

The package has three modules:

- `bitsized.uint`: unsigned integer types of a fixed number of bits, and the
  size rules shared by everything else.
- `bitsized.enums`: enumerations stored in a declared number of bits, with
  optional fallback variants.
- `bitsized.layout`: sizes, masks, packing and unpacking for `bool`,
  integers, enums, `Tuple`s and `Array`s.

Every layout puts its first part in the least significant bits.

## Installation

```
pip install bitsized
```

There are no runtime dependencies. Python 3.10 or later is required.

## Integers (`bitsized.uint`)

`uint(bits)` returns the integer type of that width, from 1 to 128 bits. The
type is cached, so `uint(4) is uint(4)`.

```python
from bitsized.uint import uint

u4 = uint(4)
x = u4(0b1010)
int(x)            # 10
x == 10           # True
format(x, "b")    # '1010'
u4.MAX            # 15
u4(16)            # ValueError: value 16 does not fit into u4 (0..=15)
```

A `UInt` compares equal to a plain `int` with the same value. Two `UInt`s of
different widths are never equal.

The module also provides these helpers:

- `bitsize_of(tp)` and `max_value(tp)` give the width of a single-value type
  and the largest raw value it can hold. A type is `bool`, a `uint(...)` type,
  or any class with a positive integer `BITS`.
- `to_raw(tp, value)` gives the bit pattern of a value.
- `from_raw(tp, raw)` builds a value from its pattern. For enum types it calls
  `try_from_bits`.
- `check_bitsize(bits, limit)` validates a declared size.
- `bitsize_from_type_name(name)` reads the width out of names such as `"u12"`
  or `"bool"`.
- `enum_fills_bitsize(bitsize, variants_count)` tells whether a number of
  variants uses every pattern of a width.

## Enums (`bitsized.enums`)

To declare an enum, subclass `BitEnum` with a `bits` keyword (at most 64).
Each public class attribute is a variant:

- An integer sets that variant's discriminant.
- `...` means "one more than the previous variant". The first variant
  defaults to 0.

```python
from bitsized.enums import BitEnum, fallback


class Code(BitEnum, bits=2):
    SUCCESS = ...
    ERROR = ...
    IO_ERROR = ...
    GOOD_EXAMPLE = ...


Code.from_bits(2)            # Code.IO_ERROR
Code.ERROR.to_bits()         # 1 (a uint(2))
format(Code.ERROR, "b")      # '01'
```

Which conversion an enum supports depends on whether its variants fill the
width:

- **Fills its width.** Declare it as above. `from_bits` and `try_from_bits`
  both work.
- **Leaves patterns unused.** Declare it with `try_from=True`. Only
  `try_from_bits` works, and it raises `BitsError` for a pattern without a
  variant. `from_bits` raises `TypeError`.
- **Has a fallback variant.** A variant marked with `fallback()` catches
  every unclaimed pattern, and then `from_bits` accepts any pattern:
  - A unit fallback loses the pattern it caught. Converting back gives the
    fallback's own discriminant.
  - `fallback(with_value=True)` keeps the pattern. It must be the last
    variant. It is a class, called with the number it holds.

```python
class Subclass(BitEnum, bits=32):
    MOUSE = ...
    KEYBOARD = ...
    SPEAKERS = ...
    RESERVED = fallback()


Subclass.from_bits(42)               # Subclass.RESERVED
Subclass.from_bits(42).to_bits()     # 3


class Subclass2(BitEnum, bits=32):
    MOUSE = ...
    KEYBOARD = ...
    SPEAKERS = ...
    RESERVED = fallback(with_value=True)


Subclass2.from_bits(42)              # Subclass2.RESERVED(42)
Subclass2.from_bits(42).to_bits()    # 42
Subclass2.RESERVED(42) == Subclass2.from_bits(42)   # True


class Activity(BitEnum, bits=2, try_from=True):
    RESTAURANT = ...
    SKATING = ...
    MOVIES = ...


Activity.try_from_bits(3)            # raises BitsError
```

Declaring `try_from=True` on an enum that fills its width gives a warning.

`assign_discriminants(declared, bitsize)` shows the discriminants that a
list of values resolves to, with `None` standing for "next". For example,
`assign_discriminants([1, None, 5, None], 8)` is `[1, 2, 5, 6]`.

## Layouts (`bitsized.layout`)

A field type is one of:

- `bool` or a `uint(...)` type;
- a bit enum, or any class with `BITS`, `to_bits()` and `try_from_bits()`;
- `Tuple(*types)`;
- `Array(element, length)`.

Tuple values are Python tuples. Array values are lists, nested the same way
the arrays are nested.

```python
from bitsized.layout import Array, Tuple, field_bitsize, pack, unpack, is_valid
from bitsized.uint import uint

u2, u4 = uint(2), uint(4)

field_bitsize(Array(Tuple(u2, bool), 2))    # 6
pack(Tuple(u2, bool), (u2(3), True))        # 7
unpack(Array(u4, 2), 0x21)                  # [1, 2]
is_valid(Activity, 3)                       # False
```

The module provides these functions:

- `field_mask(tp)` gives a mask with all of a type's bits set.
- `flatten_array(tp)` folds nested arrays into `(total_length, element_type)`.
- `unpack` raises `BitsError` when any part of the pattern is not a valid
  value of its type. `is_valid` answers the same question without raising.
- `default_raw(tp)` gives the pattern of a type's default value. `bool`
  defaults to `False` and integers to zero. Other types must provide a
  `default()` class method; `BitEnum` does not provide one itself.

## Errors

- `BitsError` (a `ValueError`) is raised when a bit pattern cannot be
  decoded into a value of its type.
- `DefinitionError` is raised when a declaration cannot work. Examples:
  - a size is out of range;
  - an enum is empty, or has more variants than patterns;
  - a discriminant is out of range or used twice;
  - there is more than one fallback, or a fallback is combined with
    `try_from=True`;
  - an enum without a fallback does not fill its width.

## What the package does not do

There are no bitfield record classes in this package. You cannot declare a
class with named fields that packs itself into a single value and generates
accessors and a constructor. Instead, combine `Tuple` and `Array` with
`pack`, `unpack` and `is_valid` on raw integers.

There is also no conversion of packed values to or from dictionaries or
other plain data.

## Running the tests

```
pip install -e ".[test]"
pytest
```