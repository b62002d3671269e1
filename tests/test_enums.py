import copy
import pickle

import pytest

from bitsized.enums import BitEnum, FallbackValue, assign_discriminants, fallback
from bitsized.uint import BitsError, DefinitionError, uint

u1, u2, u5, u7, u8, u10, u11 = (uint(n) for n in (1, 2, 5, 7, 8, 10, 11))


class Date(BitEnum, bits=1):
    NO = ...
    YES = ...


class Activity(BitEnum, bits=2, try_from=True):
    RESTAURANT = ...
    SKATING = ...
    MOVIES = ...


class BestPet(BitEnum, bits=11):
    CAT = ...
    DOG = ...
    PARROT = fallback(with_value=True)


class NonDef(BitEnum, bits=8):
    A = 1
    B = 3
    C = 5
    D = fallback()


class UnitFoo(BitEnum, bits=5):
    FOO = fallback()
    BAR = ...
    BAZ = ...


class UnitBar(BitEnum, bits=5):
    FOO = ...
    BAR = fallback()
    BAZ = ...


class UnitBaz(BitEnum, bits=5):
    FOO = ...
    BAR = ...
    BAZ = fallback()


class UnitFallback(BitEnum, bits=7):
    FIRST = ...
    SECOND = ...
    THIRD = ...
    RESERVED = fallback()


class FallbackWithValue(BitEnum, bits=7):
    FIRST = ...
    SECOND = ...
    THIRD = ...
    RESERVED = fallback(with_value=True)


class Bangers(BitEnum, bits=10):
    ITALIAN = ...
    BRATWURST = ...
    CHORIZO = fallback(with_value=True)


class Mash(BitEnum, bits=2):
    POTATOES = ...
    PEAS = fallback()


class FillsU32(BitEnum, bits=32, try_from=True):
    FOO = 0xDEADBEEF


class ChildEnum(BitEnum, bits=2):
    A = 0b000
    B = 0x001
    C = ...
    D = 0o003


def test_conversions_both_ways():
    assert Date.NO.to_bits() == u1(0)
    assert Date.YES.to_bits() == u1(1)
    assert Date.from_bits(u1(0)) is Date.NO
    assert Date.from_bits(u1(1)) is Date.YES


def test_try_from_conversions():
    expected = {0: Activity.RESTAURANT, 1: Activity.SKATING, 2: Activity.MOVIES}
    for raw in range(4):
        value = u2(raw)
        if raw in expected:
            activity = Activity.try_from_bits(value)
            assert activity is expected[raw]
            assert activity.to_bits() == value
        else:
            with pytest.raises(BitsError) as info:
                Activity.try_from_bits(value)
            assert repr(info.value) == "BitsError"


def test_from_bits_refused_for_unfilled_enum():
    with pytest.raises(TypeError):
        Activity.from_bits(u2(0))


def test_try_from_bits_on_filled_enum_always_succeeds():
    assert Date.try_from_bits(uint(1)(1)) is Date.YES
    assert Date.try_from_bits(1) is Date.YES


def test_fallback_value_is_preserved():
    assert BestPet.MAX.value == 2047
    for raw in range(BestPet.MAX.value):
        original = u11(raw)
        assert BestPet.from_bits(original).to_bits() == original


def test_non_default_ordinals():
    assert NonDef.from_bits(0) is NonDef.D
    assert NonDef.from_bits(5) is NonDef.C
    assert NonDef.D.to_bits() == u8(6)


def test_different_unit_fallback_positions():
    value = u5(4)
    assert UnitFoo.from_bits(value) is UnitFoo.FOO
    assert UnitFoo.FOO.to_bits() == u5(0)
    assert UnitBar.from_bits(value) is UnitBar.BAR
    assert UnitBar.BAR.to_bits() == u5(1)
    assert UnitBaz.from_bits(value) is UnitBaz.BAZ
    assert UnitBaz.BAZ.to_bits() == u5(2)


def test_unit_fallback_discards_value():
    converted = UnitFallback.from_bits(u7(7))
    assert converted is UnitFallback.RESERVED
    assert converted.to_bits() == u7(3)


def test_value_fallback_keeps_value():
    for raw in (3, 9):
        converted = FallbackWithValue.from_bits(u7(raw))
        assert isinstance(converted, FallbackWithValue.RESERVED)
        assert isinstance(converted, FallbackValue)
        assert isinstance(converted, FallbackWithValue)
        assert converted.to_bits() == u7(raw)


def test_value_fallback_equality_and_repr():
    caught = FallbackWithValue.from_bits(uint(7)(42))
    assert caught == FallbackWithValue.RESERVED(42)
    assert caught != FallbackWithValue.RESERVED(43)
    assert repr(FallbackWithValue.RESERVED(42)) == "FallbackWithValue.RESERVED(42)"
    assert repr(UnitFallback.RESERVED) == "UnitFallback.RESERVED"


def test_value_fallback_rejects_out_of_range():
    assert FallbackWithValue.RESERVED(127).to_bits() == uint(7)(127)
    with pytest.raises(ValueError):
        FallbackWithValue.RESERVED(128)


def test_binary_format_of_value_fallback():
    bang = Bangers.from_bits(u10(0b1100110011))
    assert f"0b{bang:b}" == "0b1100110011"
    assert format(bang, "b") == format(0b1100110011, "b")


def test_binary_format_respects_padding():
    assert Mash.from_bits(uint(2)(0)) is Mash.POTATOES
    assert f"0b{Mash.POTATOES:b}" == "0b00"
    assert format(Date.YES, "b") == "1"
    assert format(Bangers.BRATWURST, "b") == "0000000001"


def test_single_filled_enum():
    assert FillsU32.try_from_bits(uint(32)(0xDEADBEEF)) is FillsU32.FOO
    with pytest.raises(BitsError):
        FillsU32.try_from_bits(uint(32)(0))


def test_mixed_literal_discriminants():
    expected = assign_discriminants([0, 1, None, 3], 2)
    assert expected == [0, 1, 2, 3]
    members = (ChildEnum.A, ChildEnum.B, ChildEnum.C, ChildEnum.D)
    assert [member.to_bits().value for member in members] == expected


def test_out_of_range_and_wrong_width_inputs():
    with pytest.raises(ValueError):
        Date.from_bits(2)
    with pytest.raises(TypeError):
        Date.from_bits(u2(0))


def test_variants_cannot_be_constructed():
    with pytest.raises(TypeError):
        BitEnum()
    with pytest.raises(TypeError):
        Date()


def test_copy_keeps_identity():
    variant = Date.from_bits(uint(1)(1))
    assert copy.deepcopy(variant) is Date.YES
    assert copy.copy(variant) is Date.YES


def test_pickle_round_trip_keeps_identity():
    assert pickle.loads(pickle.dumps(Date.from_bits(uint(1)(0)))) is Date.NO
    caught = UnitFallback.from_bits(uint(7)(100))
    assert pickle.loads(pickle.dumps(caught)) is UnitFallback.RESERVED


def test_assign_discriminants():
    assert assign_discriminants([0, 1, None, 3], 2) == [0, 1, 2, 3]
    assert assign_discriminants([None, 2, None], 2) == [0, 2, 3]
    assert assign_discriminants([1, 3, 5, None], 8) == [1, 3, 5, 6]


def test_assign_discriminants_errors():
    with pytest.raises(DefinitionError):
        assign_discriminants([1, 2], 1)
    with pytest.raises(DefinitionError):
        assign_discriminants([1, 0, None], 2)
    with pytest.raises(DefinitionError):
        assign_discriminants([-1], 2)


def test_unfilled_from_bits_enum_is_rejected():
    assert assign_discriminants([None, None], 4) == [0, 1]
    with pytest.raises(DefinitionError):
        class A(BitEnum, bits=4):
            B = ...
            C = ...


def test_filled_enum_with_fallback_is_rejected():
    with pytest.raises(DefinitionError):
        class F(BitEnum, bits=2):
            B = ...
            C = ...
            D = ...
            E = fallback()


def test_fallback_with_try_from_is_rejected():
    with pytest.raises(DefinitionError):
        class L(BitEnum, bits=2, try_from=True):
            I = ...
            K = ...
            E = fallback(with_value=True)


def test_multiple_fallbacks_are_rejected():
    with pytest.raises(DefinitionError):
        class Testing(BitEnum, bits=15):
            A = fallback()
            B = ...
            C = fallback()
            D = ...


def test_value_fallback_must_be_last():
    with pytest.raises(DefinitionError):
        class Testing(BitEnum, bits=9):
            A = fallback(with_value=True)
            B = ...


def test_discriminant_exceeding_bits_is_rejected():
    with pytest.raises(DefinitionError):
        assign_discriminants([1, 2], 1)
    with pytest.raises(DefinitionError):
        class C(BitEnum, bits=1):
            NINE_NINE = 1
            PLUS_PLUS = 2


def test_overflowing_enum_is_rejected():
    with pytest.raises(DefinitionError):
        class D(BitEnum, bits=1):
            NINE_NINE = 0
            SHARP = 1
            PLUS_PLUS = fallback()


def test_empty_enum_is_rejected():
    assert assign_discriminants([], 1) == []
    with pytest.raises(DefinitionError):
        class B(BitEnum, bits=1):
            pass


@pytest.mark.parametrize("bits", [0, 65, 129])
def test_invalid_bitsize_is_rejected(bits):
    assert assign_discriminants([None], 1) == [0]
    with pytest.raises(DefinitionError):
        class Test(BitEnum, bits=bits):
            A = ...


def test_missing_bitsize_is_rejected():
    assert assign_discriminants([None], 1) == [0]
    with pytest.raises(DefinitionError):
        class Test(BitEnum):
            A = ...


def test_try_from_enum_that_fills_warns():
    assert assign_discriminants([None, None], 1) == [0, 1]
    with pytest.warns(UserWarning):
        class Filled(BitEnum, bits=1, try_from=True):
            A = ...
            B = ...
    assert Filled.try_from_bits(1) is Filled.B