"""Schema-less payload inspection CLI command."""

from __future__ import annotations

from typing import Iterator, List

from ..codec.wire import WireReader, WireRecord, WireType, to_signed, zigzag_decode

_MAX_NESTING = 32


def _try_parse(payload: bytes) -> List[WireRecord] | None:
    """Parse payload as a message, or return None if it is not one."""
    if not payload:
        return None
    try:
        return list(WireReader(payload))
    except (IndexError, ValueError):
        return None


def _describe_scalar(record: WireRecord) -> str:
    value = record.value
    if record.wire_type is WireType.VARINT:
        return f"varint {value} (int64 {to_signed(value, 64)}, sint64 {zigzag_decode(value)})"
    if record.wire_type is WireType.FIXED32:
        return f"fixed32 {value} (sfixed32 {to_signed(value, 32)})"
    if record.wire_type is WireType.FIXED64:
        return f"fixed64 {value} (sfixed64 {to_signed(value, 64)})"
    try:
        text = value.decode("utf-8")
    except UnicodeDecodeError:
        return f"bytes[{len(value)}] {value.hex()}"
    return f"bytes[{len(value)}] {text!r}"


def iter_record_lines(data: bytes, indent: str = "  ", depth: int = 0) -> Iterator[str]:
    """Yield one line per record, descending into payloads that parse as messages.

    Raises:
        IndexError, ValueError: If the top-level data is not valid wire format
    """
    for record in WireReader(data):
        prefix = f"{indent * depth}{record.field_number}:"
        if record.wire_type is WireType.LENGTH_DELIMITED and depth < _MAX_NESTING:
            nested = _try_parse(record.value)
            if nested is not None:
                yield f"{prefix} message[{len(record.value)}] {{"
                yield from iter_record_lines(record.value, indent, depth + 1)
                yield f"{indent * depth}}}"
                continue
        yield f"{prefix} {_describe_scalar(record)}"


def inspect_hex(hex_string: str) -> None:
    """Print the records of a hex-encoded payload.

    Args:
        hex_string: Payload as hex, whitespace allowed

    Raises:
        ValueError: If hex_string is not valid hex or the payload is malformed
    """
    data = bytes.fromhex("".join(hex_string.split()))
    try:
        lines = list(iter_record_lines(data))
    except IndexError as err:
        raise ValueError(f"Truncated payload: {err}") from err
    print(f"{len(data)} bytes")
    for line in lines:
        print(line)
