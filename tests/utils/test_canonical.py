"""Tests for canonical encoding."""

import dataclasses
import enum
from collections import OrderedDict, namedtuple

import pytest

from partcount.utils.canonical import _length, canonicalize
from partcount.utils.errors import UnserializableInputError


class Color(enum.Enum):
    RED = 1
    BLUE = 2


@dataclasses.dataclass
class User:
    name: str
    age: int


@dataclasses.dataclass
class Account:
    name: str
    age: int


class TestScalars:
    """Exact encodings of scalar values."""

    def test_none_and_bools(self) -> None:
        assert canonicalize(None) == b"N"
        assert canonicalize(True) == b"T"
        assert canonicalize(False) == b"F"

    def test_ints_are_signed_big_endian_with_length(self) -> None:
        assert canonicalize(0) == b"I\x00\x00\x00\x01\x00"
        assert canonicalize(1) == b"I\x00\x00\x00\x01\x01"
        assert canonicalize(-1) == b"I\x00\x00\x00\x01\xff"
        assert canonicalize(128) == b"I\x00\x00\x00\x02\x00\x80"

    def test_huge_ints_are_supported(self) -> None:
        assert canonicalize(2 ** 200) != canonicalize(2 ** 200 + 1)

    def test_strings_are_utf8_with_length(self) -> None:
        assert canonicalize("a") == b"S\x00\x00\x00\x01a"
        assert canonicalize("é") == b"S\x00\x00\x00\x02\xc3\xa9"

    def test_bytes_like_values_encode_the_same(self) -> None:
        expected = b"B\x00\x00\x00\x03abc"
        assert canonicalize(b"abc") == expected
        assert canonicalize(bytearray(b"abc")) == expected
        assert canonicalize(memoryview(b"abc")) == expected

    def test_negative_zero_matches_zero(self) -> None:
        assert canonicalize(-0.0) == canonicalize(0.0)


class TestTypeSeparation:
    """Values of different types never share an encoding."""

    @pytest.mark.parametrize(
        "left,right",
        [
            (1, 1.0),
            (1, True),
            (0, False),
            ("1", 1),
            ("abc", b"abc"),
            ((1, 2), [1, 2]),
            (None, ""),
            (Color.RED, 1),
        ],
    )
    def test_distinct(self, left, right) -> None:
        assert canonicalize(left) != canonicalize(right)

    def test_container_boundaries_are_unambiguous(self) -> None:
        assert canonicalize(["ab", "c"]) != canonicalize(["a", "bc"])
        assert canonicalize([[1], 2]) != canonicalize([1, [2]])

    def test_dataclasses_with_same_fields_differ_by_class(self) -> None:
        assert canonicalize(User("ann", 3)) != canonicalize(Account("ann", 3))


class TestComposites:
    """Order rules for composite values."""

    def test_mapping_order_does_not_matter(self) -> None:
        a = {"x": 1, "y": [1, 2], 3: None}
        b = OrderedDict([(3, None), ("y", [1, 2]), ("x", 1)])
        assert canonicalize(a) == canonicalize(b)

    def test_set_order_does_not_matter(self) -> None:
        assert canonicalize({3, 1, 2}) == canonicalize({2, 3, 1})
        assert canonicalize({"a", "b"}) == canonicalize(frozenset(["b", "a"]))

    def test_sequence_order_matters(self) -> None:
        assert canonicalize([1, 2]) != canonicalize([2, 1])

    def test_named_tuple_encodes_as_tuple(self) -> None:
        Point = namedtuple("Point", "x y")
        assert canonicalize(Point(1, 2)) == canonicalize((1, 2))

    def test_dataclass_uses_field_values(self) -> None:
        assert canonicalize(User("ann", 3)) == canonicalize(User("ann", 3))
        assert canonicalize(User("ann", 3)) != canonicalize(User("ann", 4))

    def test_enum_members(self) -> None:
        assert canonicalize(Color.RED) == canonicalize(Color.RED)
        assert canonicalize(Color.RED) != canonicalize(Color.BLUE)


class TestRejections:
    """Values without a canonical form raise UnserializableInputError."""

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_floats(self, value) -> None:
        with pytest.raises(UnserializableInputError):
            canonicalize(value)

    def test_unsupported_type(self) -> None:
        with pytest.raises(UnserializableInputError) as excinfo:
            canonicalize(object())
        assert "unsupported type" in str(excinfo.value)

    def test_unsupported_type_nested(self) -> None:
        with pytest.raises(UnserializableInputError):
            canonicalize({"key": [1, 2, object()]})

    def test_lone_surrogate(self) -> None:
        with pytest.raises(UnserializableInputError):
            canonicalize("\ud800")

    def test_self_referencing_list(self) -> None:
        loop = [1]
        loop.append(loop)
        with pytest.raises(UnserializableInputError):
            canonicalize(loop)

    def test_shared_references_are_fine(self) -> None:
        shared = [1]
        assert canonicalize([shared, shared]) == canonicalize([[1], [1]])

    def test_max_depth(self) -> None:
        value = 0
        for _ in range(10):
            value = [value]
        assert canonicalize(value, max_depth=10)
        with pytest.raises(UnserializableInputError):
            canonicalize(value, max_depth=9)

    def test_error_is_a_type_error(self) -> None:
        with pytest.raises(TypeError):
            canonicalize(object())

    def test_oversized_length_reports_the_value(self) -> None:
        payload = "too long"
        with pytest.raises(UnserializableInputError) as excinfo:
            _length(2**32, payload)
        assert excinfo.value.item == payload
