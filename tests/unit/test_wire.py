"""Unit tests for wire-format primitives."""

from __future__ import annotations

import pytest

from pbcodec.codec.wire import (
    WireReader,
    WireRecord,
    WireType,
    WireWriter,
    decode_varint,
    encode_varint,
    make_tag,
    split_tag,
    to_signed,
    varint_size,
    zigzag_decode,
    zigzag_encode,
)


class TestVarint:
    """Test LEB128 varint encoding."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (0, b"\x00"),
            (1, b"\x01"),
            (127, b"\x7f"),
            (128, b"\x80\x01"),
            (300, b"\xac\x02"),
            (2**64 - 1, b"\xff\xff\xff\xff\xff\xff\xff\xff\xff\x01"),
        ],
    )
    def test_known_encodings(self, value: int, expected: bytes) -> None:
        """Test varint bytes for well-known values."""
        assert encode_varint(value) == expected
        assert varint_size(value) == len(expected)
        assert decode_varint(expected) == (value, len(expected))

    def test_decode_at_offset(self) -> None:
        """Test decoding a varint in the middle of a buffer."""
        assert decode_varint(b"\xff\xac\x02\x00", 1) == (300, 3)

    def test_negative_rejected(self) -> None:
        """Test negative values cannot be varint-encoded."""
        with pytest.raises(ValueError, match="non-negative"):
            encode_varint(-1)

    def test_too_wide_rejected(self) -> None:
        """Test values above 64 bits are rejected."""
        with pytest.raises(ValueError, match="64 bits"):
            encode_varint(2**64)

    def test_truncated(self) -> None:
        """Test a varint whose continuation bit runs off the end."""
        with pytest.raises(IndexError):
            decode_varint(b"\x80\x80")

    def test_overlong(self) -> None:
        """Test an 11-byte varint is malformed."""
        with pytest.raises(ValueError, match="longer than 10 bytes"):
            decode_varint(b"\x80" * 10 + b"\x01")

    def test_overflow_in_tenth_byte(self) -> None:
        """Test a 10-byte varint carrying more than 64 bits."""
        with pytest.raises(ValueError, match="64 bits"):
            decode_varint(b"\xff" * 9 + b"\x7f")


class TestZigzag:
    """Test zigzag mapping of signed integers."""

    @pytest.mark.parametrize(
        "signed,unsigned",
        [(0, 0), (-1, 1), (1, 2), (-2, 3), (2147483647, 4294967294), (-2147483648, 4294967295)],
    )
    def test_mapping(self, signed: int, unsigned: int) -> None:
        """Test the canonical zigzag table."""
        assert zigzag_encode(signed, 32) == unsigned
        assert zigzag_decode(unsigned) == signed

    def test_64_bit_extremes(self) -> None:
        """Test the 64-bit range boundaries."""
        assert zigzag_encode(-(2**63)) == 2**64 - 1
        assert zigzag_encode(2**63 - 1) == 2**64 - 2

    def test_to_signed(self) -> None:
        """Test two's complement reinterpretation."""
        assert to_signed(0xFFFFFFFF, 32) == -1
        assert to_signed(2**64 - 1, 64) == -1
        assert to_signed(0x7FFFFFFF, 32) == 2**31 - 1
        # Upper bits beyond the width are discarded
        assert to_signed(0x1_0000_0005, 32) == 5


class TestTags:
    """Test tag composition."""

    def test_make_tag(self) -> None:
        """Test tag = number << 3 | wire type."""
        assert make_tag(1, WireType.VARINT) == 0x08
        assert make_tag(1, WireType.LENGTH_DELIMITED) == 0x0A
        assert make_tag(2, WireType.FIXED32) == 0x15

    def test_field_number_range(self) -> None:
        """Test field numbers outside 1..2**29-1 are rejected."""
        with pytest.raises(ValueError):
            make_tag(0, WireType.VARINT)
        with pytest.raises(ValueError):
            make_tag(2**29, WireType.VARINT)

    def test_split_tag(self) -> None:
        """Test splitting a tag back into its parts."""
        assert split_tag(0x0A) == (1, WireType.LENGTH_DELIMITED)
        assert split_tag(make_tag(2**29 - 1, WireType.FIXED64)) == (2**29 - 1, WireType.FIXED64)

    @pytest.mark.parametrize("wire_type", [3, 4, 6, 7])
    def test_unsupported_wire_types(self, wire_type: int) -> None:
        """Test group and undefined wire types are rejected."""
        with pytest.raises(ValueError, match="unsupported wire type"):
            split_tag((1 << 3) | wire_type)


class TestWireWriter:
    """Test typed writers."""

    def test_int32_negative_is_ten_bytes(self) -> None:
        """Test negative int32 uses the 64-bit two's complement form."""
        writer = WireWriter()
        writer.write_int32(-1)
        assert writer.to_bytes() == b"\xff" * 9 + b"\x01"

    def test_sint32_negative_is_short(self) -> None:
        """Test sint32 zigzags small negatives into one byte."""
        writer = WireWriter()
        writer.write_sint32(-1)
        assert writer.to_bytes() == b"\x01"

    def test_fixed_widths_little_endian(self) -> None:
        """Test fixed-width integers are little-endian."""
        writer = WireWriter()
        writer.write_fixed32(1)
        writer.write_sfixed64(-2)
        assert writer.to_bytes() == b"\x01\x00\x00\x00" + b"\xfe" + b"\xff" * 7

    def test_float_and_double(self) -> None:
        """Test IEEE 754 encodings."""
        writer = WireWriter()
        writer.write_float(1.0)
        writer.write_double(-2.0)
        assert writer.to_bytes() == b"\x00\x00\x80\x3f" + b"\x00" * 7 + b"\xc0"

    def test_string_is_utf8_with_length(self) -> None:
        """Test strings are UTF-8 with a varint byte length."""
        writer = WireWriter()
        writer.write_string("hé")
        assert writer.to_bytes() == b"\x03h\xc3\xa9"

    @pytest.mark.parametrize(
        "method,value",
        [
            ("write_int32", 2**31),
            ("write_int32", -(2**31) - 1),
            ("write_uint32", -1),
            ("write_uint32", 2**32),
            ("write_sint64", 2**63),
            ("write_fixed32", 2**32),
            ("write_uint64", 2**64),
        ],
    )
    def test_out_of_range(self, method: str, value: int) -> None:
        """Test each integer writer checks its declared range."""
        writer = WireWriter()
        with pytest.raises(ValueError, match="out of range"):
            getattr(writer, method)(value)
        assert len(writer) == 0

    def test_wrong_python_type(self) -> None:
        """Test type checks in writers."""
        writer = WireWriter()
        with pytest.raises(TypeError):
            writer.write_int64("12")
        with pytest.raises(TypeError):
            writer.write_string(b"bytes")
        with pytest.raises(TypeError):
            writer.write_bytes("text")

    def test_float_overflow(self) -> None:
        """Test finite doubles beyond the float32 range."""
        writer = WireWriter()
        with pytest.raises(OverflowError):
            writer.write_float(1e300)

    def test_appends_to_existing_buffer(self) -> None:
        """Test writing into a caller-owned bytearray."""
        buffer = bytearray(b"\xaa")
        writer = WireWriter(buffer)
        writer.write_tag(1, WireType.VARINT)
        writer.write_uint32(123)
        assert buffer == bytearray(b"\xaa\x08\x7b")
        assert writer.to_bytes() == b"\x08\x7b"
        assert len(writer) == 2

    def test_raw_and_length_delimited(self) -> None:
        """Test raw bytes are copied verbatim and frames carry a length."""
        writer = WireWriter()
        writer.write_raw(b"\x08\x01")
        writer.write_tag(2, WireType.LENGTH_DELIMITED)
        writer.write_length_delimited(memoryview(b"xyz"))
        assert writer.to_bytes() == b"\x08\x01\x12\x03xyz"


class TestWireReader:
    """Test the forward-only record reader."""

    def test_records(self) -> None:
        """Test reading one record of each wire type."""
        data = (
            b"\x08\x96\x01"  # 1: varint 150
            + b"\x11" + (7).to_bytes(8, "little")  # 2: fixed64 7
            + b"\x1a\x03abc"  # 3: length-delimited
            + b"\x25" + (9).to_bytes(4, "little")  # 4: fixed32 9
        )
        assert list(WireReader(data)) == [
            WireRecord(1, WireType.VARINT, 150),
            WireRecord(2, WireType.FIXED64, 7),
            WireRecord(3, WireType.LENGTH_DELIMITED, b"abc"),
            WireRecord(4, WireType.FIXED32, 9),
        ]

    def test_skip_and_position(self) -> None:
        """Test skipping payloads advances the cursor."""
        reader = WireReader(b"\x0a\x02\xff\xff\x10\x01")
        assert reader.read_tag() == (1, WireType.LENGTH_DELIMITED)
        reader.skip(WireType.LENGTH_DELIMITED)
        assert reader.position == 4
        assert reader.read_field() == WireRecord(2, WireType.VARINT, 1)
        assert reader.at_end()
        assert reader.remaining() == 0

    def test_truncated_length_delimited(self) -> None:
        """Test a length prefix longer than the remaining data."""
        reader = WireReader(b"\x0a\x05ab")
        with pytest.raises(IndexError, match="Not enough bytes"):
            reader.read_field()

    def test_truncated_fixed32(self) -> None:
        """Test a fixed32 payload cut short."""
        with pytest.raises(IndexError):
            list(WireReader(b"\x0d\x01\x02"))

    def test_group_wire_type_rejected(self) -> None:
        """Test start-group tags are not parseable."""
        with pytest.raises(ValueError):
            list(WireReader(b"\x0b"))
