"""Byte-level wire primitives.

This module provides the schema-independent half of the codec: LEB128 varints,
zigzag mapping, tag composition, fixed-width little-endian values and
length-delimited framing. It knows nothing about message types.
"""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple, Union

MAX_FIELD_NUMBER = (1 << 29) - 1
MAX_VARINT_BYTES = 10

_UINT32_MAX = (1 << 32) - 1
_UINT64_MAX = (1 << 64) - 1
_INT32_MIN, _INT32_MAX = -(1 << 31), (1 << 31) - 1
_INT64_MIN, _INT64_MAX = -(1 << 63), (1 << 63) - 1


class WireType(enum.IntEnum):
    """Three-bit framing code carried in the low bits of every tag."""

    VARINT = 0
    FIXED64 = 1
    LENGTH_DELIMITED = 2
    FIXED32 = 5


def encode_varint(value: int) -> bytes:
    """Encode an unsigned integer as a LEB128 varint.

    Args:
        value: Integer in the range [0, 2**64 - 1]

    Returns:
        Varint bytes, 7 payload bits per byte, continuation bit on all but the last

    Raises:
        ValueError: If value is negative or wider than 64 bits
    """
    if value < 0:
        raise ValueError(f"varint requires a non-negative value, got {value}")
    if value > _UINT64_MAX:
        raise ValueError(f"varint value {value} exceeds 64 bits")

    result = bytearray()
    while value > 0x7F:
        result.append((value & 0x7F) | 0x80)
        value >>= 7
    result.append(value)
    return bytes(result)


def varint_size(value: int) -> int:
    """Return the number of bytes encode_varint() produces for value."""
    if value < 0:
        raise ValueError(f"varint requires a non-negative value, got {value}")
    size = 1
    while value > 0x7F:
        value >>= 7
        size += 1
    return size


def decode_varint(data: Union[bytes, bytearray, memoryview], offset: int = 0) -> Tuple[int, int]:
    """Decode a varint starting at offset.

    Args:
        data: Buffer to read from
        offset: Position of the first varint byte

    Returns:
        Tuple of (value, offset just past the varint)

    Raises:
        IndexError: If the buffer ends before the final varint byte
        ValueError: If the varint is longer than 10 bytes or wider than 64 bits
    """
    result = 0
    shift = 0
    position = offset
    while True:
        if position >= len(data):
            raise IndexError("Truncated varint")
        byte = data[position]
        position += 1
        if position - offset > MAX_VARINT_BYTES:
            raise ValueError(f"varint longer than {MAX_VARINT_BYTES} bytes")
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            break
        shift += 7

    if result > _UINT64_MAX:
        raise ValueError("varint exceeds 64 bits")
    return result, position


def zigzag_encode(value: int, bits: int = 64) -> int:
    """Map a signed integer onto an unsigned one so small magnitudes stay small.

    0 -> 0, -1 -> 1, 1 -> 2, -2 -> 3, ...
    """
    return ((value << 1) ^ (value >> (bits - 1))) & ((1 << bits) - 1)


def zigzag_decode(value: int) -> int:
    """Invert zigzag_encode()."""
    return (value >> 1) ^ -(value & 1)


def to_signed(value: int, bits: int) -> int:
    """Reinterpret the low ``bits`` bits of value as a two's complement integer."""
    value &= (1 << bits) - 1
    if value >> (bits - 1):
        value -= 1 << bits
    return value


def make_tag(field_number: int, wire_type: WireType) -> int:
    """Compose a tag from field number and wire type.

    Raises:
        ValueError: If field_number is outside [1, 2**29 - 1]
    """
    if not 1 <= field_number <= MAX_FIELD_NUMBER:
        raise ValueError(f"field number must be 1-{MAX_FIELD_NUMBER}, got {field_number}")
    return (field_number << 3) | int(wire_type)


def split_tag(tag: int) -> Tuple[int, WireType]:
    """Split a tag into field number and wire type.

    Raises:
        ValueError: If the field number is out of range or the wire type is
            not one of the four supported framings (groups are rejected)
    """
    field_number = tag >> 3
    if not 1 <= field_number <= MAX_FIELD_NUMBER:
        raise ValueError(f"invalid field number {field_number} in tag {tag:#x}")
    try:
        return field_number, WireType(tag & 0x07)
    except ValueError:
        raise ValueError(f"unsupported wire type {tag & 0x07} in tag {tag:#x}") from None


def _check_int(value: object, low: int, high: int, type_name: str) -> int:
    if not isinstance(value, int):
        raise TypeError(f"{type_name} requires an int, got {type(value).__name__}")
    if value < low or value > high:
        raise ValueError(f"value {value} out of range for {type_name} [{low}, {high}]")
    return int(value)


def _check_float(value: object, type_name: str) -> float:
    if not isinstance(value, (int, float)):
        raise TypeError(f"{type_name} requires a float, got {type(value).__name__}")
    return float(value)


@dataclass(frozen=True)
class WireRecord:
    """One field occurrence read from the wire.

    Attributes:
        field_number: Field number from the tag
        wire_type: Framing from the tag
        value: Unsigned int for VARINT/FIXED32/FIXED64, raw payload bytes for
            LENGTH_DELIMITED
    """

    field_number: int
    wire_type: WireType
    value: Union[int, bytes]


class WireWriter:
    """Write-only accumulator for wire-format bytes.

    Every write appends to the underlying buffer. Typed writers validate the
    value against the declared scalar range and raise ValueError/TypeError
    before anything is appended.

    Example:
        >>> writer = WireWriter()
        >>> writer.write_tag(1, WireType.VARINT)
        >>> writer.write_int32(123)
        >>> writer.to_bytes()
        b'\\x08{'
    """

    def __init__(self, buffer: Optional[bytearray] = None) -> None:
        """Initialize a writer.

        Args:
            buffer: Optional caller-owned bytearray to append to. Bytes already
                present are left untouched and are not part of to_bytes().
        """
        self._buffer = buffer if buffer is not None else bytearray()
        self._start = len(self._buffer)

    def __len__(self) -> int:
        return len(self._buffer) - self._start

    def write_raw(self, data: Union[bytes, bytearray, memoryview]) -> None:
        """Append bytes verbatim."""
        self._buffer += data

    def write_varint(self, value: int) -> None:
        """Append an unsigned 64-bit varint."""
        self._buffer += encode_varint(value)

    def write_tag(self, field_number: int, wire_type: WireType) -> None:
        """Append the varint tag for a field occurrence."""
        self.write_varint(make_tag(field_number, wire_type))

    def write_length_delimited(self, payload: Union[bytes, bytearray, memoryview]) -> None:
        """Append a varint byte length followed by the payload."""
        self.write_varint(len(payload))
        self._buffer += payload

    # Varint scalars

    def write_int32(self, value: int) -> None:
        """Append an int32; negatives take the full 10-byte 64-bit form."""
        value = _check_int(value, _INT32_MIN, _INT32_MAX, "int32")
        self.write_varint(value & _UINT64_MAX)

    def write_int64(self, value: int) -> None:
        value = _check_int(value, _INT64_MIN, _INT64_MAX, "int64")
        self.write_varint(value & _UINT64_MAX)

    def write_uint32(self, value: int) -> None:
        self.write_varint(_check_int(value, 0, _UINT32_MAX, "uint32"))

    def write_uint64(self, value: int) -> None:
        self.write_varint(_check_int(value, 0, _UINT64_MAX, "uint64"))

    def write_sint32(self, value: int) -> None:
        value = _check_int(value, _INT32_MIN, _INT32_MAX, "sint32")
        self.write_varint(zigzag_encode(value, 32))

    def write_sint64(self, value: int) -> None:
        value = _check_int(value, _INT64_MIN, _INT64_MAX, "sint64")
        self.write_varint(zigzag_encode(value, 64))

    def write_bool(self, value: bool) -> None:
        self.write_varint(1 if value else 0)

    # Fixed-width scalars

    def write_fixed32(self, value: int) -> None:
        self._buffer += struct.pack("<I", _check_int(value, 0, _UINT32_MAX, "fixed32"))

    def write_sfixed32(self, value: int) -> None:
        self._buffer += struct.pack("<i", _check_int(value, _INT32_MIN, _INT32_MAX, "sfixed32"))

    def write_fixed64(self, value: int) -> None:
        self._buffer += struct.pack("<Q", _check_int(value, 0, _UINT64_MAX, "fixed64"))

    def write_sfixed64(self, value: int) -> None:
        self._buffer += struct.pack("<q", _check_int(value, _INT64_MIN, _INT64_MAX, "sfixed64"))

    def write_float(self, value: float) -> None:
        """Append an IEEE 754 single; raises OverflowError for finite values beyond float32."""
        self._buffer += struct.pack("<f", _check_float(value, "float"))

    def write_double(self, value: float) -> None:
        self._buffer += struct.pack("<d", _check_float(value, "double"))

    # Length-delimited scalars

    def write_string(self, value: str) -> None:
        """Append a UTF-8 string with its byte length prefix."""
        if not isinstance(value, str):
            raise TypeError(f"string requires a str, got {type(value).__name__}")
        self.write_length_delimited(value.encode("utf-8"))

    def write_bytes(self, value: Union[bytes, bytearray, memoryview]) -> None:
        """Append arbitrary octets with their length prefix."""
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise TypeError(f"bytes requires a bytes-like value, got {type(value).__name__}")
        self.write_length_delimited(bytes(value))

    def to_bytes(self) -> bytes:
        """Return everything written through this writer."""
        return bytes(self._buffer[self._start :])


class WireReader:
    """Forward-only cursor over wire-format bytes.

    Iterating a reader yields one WireRecord per field occurrence until the
    input is exhausted. Payloads of every supported wire type can be read or
    skipped without knowing the message schema.

    Example:
        >>> reader = WireReader(b"\\x08{")
        >>> list(reader)
        [WireRecord(field_number=1, wire_type=<WireType.VARINT: 0>, value=123)]
    """

    def __init__(self, data: Union[bytes, bytearray, memoryview]) -> None:
        self._data = bytes(data)
        self._position = 0

    @property
    def position(self) -> int:
        """Current read offset in bytes."""
        return self._position

    def at_end(self) -> bool:
        return self._position >= len(self._data)

    def remaining(self) -> int:
        return len(self._data) - self._position

    def _take(self, num_bytes: int) -> bytes:
        if self._position + num_bytes > len(self._data):
            raise IndexError(
                f"Not enough bytes: need {num_bytes}, have {len(self._data) - self._position}"
            )
        chunk = self._data[self._position : self._position + num_bytes]
        self._position += num_bytes
        return chunk

    def read_varint(self) -> int:
        value, self._position = decode_varint(self._data, self._position)
        return value

    def read_tag(self) -> Tuple[int, WireType]:
        return split_tag(self.read_varint())

    def read_fixed32(self) -> int:
        """Read 4 little-endian bytes as an unsigned integer."""
        return int.from_bytes(self._take(4), "little")

    def read_fixed64(self) -> int:
        """Read 8 little-endian bytes as an unsigned integer."""
        return int.from_bytes(self._take(8), "little")

    def read_length_delimited(self) -> bytes:
        """Read a varint length and then that many bytes."""
        return self._take(self.read_varint())

    def read_value(self, wire_type: WireType) -> Union[int, bytes]:
        """Read the payload that follows a tag of the given wire type."""
        if wire_type is WireType.VARINT:
            return self.read_varint()
        if wire_type is WireType.FIXED64:
            return self.read_fixed64()
        if wire_type is WireType.LENGTH_DELIMITED:
            return self.read_length_delimited()
        if wire_type is WireType.FIXED32:
            return self.read_fixed32()
        raise ValueError(f"unsupported wire type {wire_type}")

    def skip(self, wire_type: WireType) -> None:
        """Advance past one payload of the given wire type."""
        self.read_value(wire_type)

    def read_field(self) -> WireRecord:
        """Read one tag and its payload.

        Raises:
            IndexError: If the input ends inside the record
            ValueError: If the tag or a varint is malformed
        """
        field_number, wire_type = self.read_tag()
        return WireRecord(field_number, wire_type, self.read_value(wire_type))

    def __iter__(self) -> Iterator[WireRecord]:
        while not self.at_end():
            yield self.read_field()
