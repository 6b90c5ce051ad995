"""
Canonical byte encoding for hash input.

Every supported value is written as a one-byte type tag followed by its
payload, so logically equal values always produce identical bytes and values
of different types never collide:

    None            N
    bool            T / F
    int             I <len> <signed big-endian bytes>
    float           D <IEEE-754 big-endian double>   (-0.0 -> 0.0, NaN/inf rejected)
    str             S <len> <UTF-8>
    bytes-like      B <len> <raw bytes>
    tuple           U <count> <items...>
    list            L <count> <items...>
    mapping         M <count> <key, value pairs sorted by encoded key>
    set/frozenset   E <count> <items sorted by encoded bytes>
    Enum member     V <qualified class name> <value>
    dataclass       R <qualified class name> <count> <field name, value...>

Lengths and counts are 4-byte unsigned big-endian. Dataclass fields are
written in declaration order.
"""

import dataclasses
import enum
import math
import struct
from collections.abc import Mapping, Set

from .errors import UnserializableInputError


DEFAULT_MAX_DEPTH = 64

_U32 = struct.Struct('>I')
_F64 = struct.Struct('>d')


def canonicalize(item, max_depth=DEFAULT_MAX_DEPTH):
    """Convert a value to its canonical byte sequence.

    Args:
        item: Value to encode
        max_depth: Maximum container nesting depth

    Returns:
        bytes

    Raises:
        UnserializableInputError: unsupported type, NaN/inf float, lone
            surrogate in a string, too deep, or self-referencing container
    """
    out = bytearray()
    _encode(item, out, max_depth, set())
    return bytes(out)


def _length(n, item):
    if n > 0xFFFFFFFF:
        raise UnserializableInputError(item, "length does not fit in 32 bits")
    return _U32.pack(n)


def _text(value, item):
    try:
        data = value.encode('utf-8')
    except UnicodeEncodeError:
        raise UnserializableInputError(item, "string contains surrogate code points") from None
    return _length(len(data), item) + data


def _type_name(cls):
    return f"{cls.__module__}.{cls.__qualname__}"


def _encode(item, out, depth, active):
    if item is None:
        out += b'N'
    elif item is True:
        out += b'T'
    elif item is False:
        out += b'F'
    elif isinstance(item, enum.Enum):
        out += b'V'
        out += _text(_type_name(type(item)), item)
        _nested(item.value, item, out, depth, active)
    elif isinstance(item, int):
        data = item.to_bytes((item.bit_length() + 8) // 8, 'big', signed=True)
        out += b'I'
        out += _length(len(data), item)
        out += data
    elif isinstance(item, float):
        if math.isnan(item) or math.isinf(item):
            raise UnserializableInputError(item, "NaN and infinite floats have no canonical form")
        # -0.0 == 0.0
        out += b'D'
        out += _F64.pack(item if item != 0.0 else 0.0)
    elif isinstance(item, str):
        out += b'S'
        out += _text(item, item)
    elif isinstance(item, (bytes, bytearray, memoryview)):
        data = bytes(item)
        out += b'B'
        out += _length(len(data), item)
        out += data
    elif isinstance(item, tuple):
        out += b'U'
        out += _length(len(item), item)
        for element in item:
            _nested(element, item, out, depth, active)
    elif isinstance(item, list):
        out += b'L'
        out += _length(len(item), item)
        for element in item:
            _nested(element, item, out, depth, active)
    elif isinstance(item, Mapping):
        pairs = []
        for key, value in item.items():
            key_bytes = bytearray()
            value_bytes = bytearray()
            _nested(key, item, key_bytes, depth, active)
            _nested(value, item, value_bytes, depth, active)
            pairs.append((bytes(key_bytes), bytes(value_bytes)))
        pairs.sort()
        out += b'M'
        out += _length(len(pairs), item)
        for key_bytes, value_bytes in pairs:
            out += key_bytes
            out += value_bytes
    elif isinstance(item, Set):
        encoded = []
        for element in item:
            element_bytes = bytearray()
            _nested(element, item, element_bytes, depth, active)
            encoded.append(bytes(element_bytes))
        encoded.sort()
        out += b'E'
        out += _length(len(encoded), item)
        for element_bytes in encoded:
            out += element_bytes
    elif dataclasses.is_dataclass(item) and not isinstance(item, type):
        fields = dataclasses.fields(item)
        out += b'R'
        out += _text(_type_name(type(item)), item)
        out += _length(len(fields), item)
        for field in fields:
            out += _text(field.name, item)
            _nested(getattr(item, field.name), item, out, depth, active)
    else:
        raise UnserializableInputError(item, "unsupported type")


def _nested(child, parent, out, depth, active):
    """Encode a child value, tracking depth and reference cycles."""
    if depth <= 0:
        raise UnserializableInputError(parent, "nesting exceeds maximum depth")

    marker = id(parent)
    if marker in active:
        raise UnserializableInputError(parent, "container references itself")

    active.add(marker)
    try:
        _encode(child, out, depth - 1, active)
    finally:
        active.discard(marker)
