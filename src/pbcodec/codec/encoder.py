"""Wire-format encoder for pydantic messages.

This module provides encode() and encode_into(), which walk a message's
descriptor table in declaration order and emit tag/value pairs through a
WireWriter.
"""

from __future__ import annotations

import logging
import struct
from typing import Any, Callable, Dict

from pydantic import BaseModel

from ..exceptions import EncodeError, InvalidValueError, RequiredFieldNotSetError
from .schema import FieldDescriptor, MessageSchema, ScalarType, coerce_enum, is_present
from .wire import WireType, WireWriter

logger = logging.getLogger(__name__)

_SCALAR_WRITERS: Dict[ScalarType, Callable[[WireWriter, Any], None]] = {
    ScalarType.INT32: WireWriter.write_int32,
    ScalarType.UINT32: WireWriter.write_uint32,
    ScalarType.SINT32: WireWriter.write_sint32,
    ScalarType.FIXED32: WireWriter.write_fixed32,
    ScalarType.SFIXED32: WireWriter.write_sfixed32,
    ScalarType.INT64: WireWriter.write_int64,
    ScalarType.UINT64: WireWriter.write_uint64,
    ScalarType.SINT64: WireWriter.write_sint64,
    ScalarType.FIXED64: WireWriter.write_fixed64,
    ScalarType.SFIXED64: WireWriter.write_sfixed64,
    ScalarType.BOOL: WireWriter.write_bool,
    ScalarType.FLOAT: WireWriter.write_float,
    ScalarType.DOUBLE: WireWriter.write_double,
    ScalarType.STRING: WireWriter.write_string,
    ScalarType.BYTES: WireWriter.write_bytes,
}


def encode(message: BaseModel) -> bytes:
    """Encode a message to wire-format bytes.

    Fields are emitted in declaration order. Unset optional fields and empty
    repeated fields produce no bytes at all.

    Args:
        message: Message instance to encode

    Returns:
        Encoded bytes

    Raises:
        RequiredFieldNotSetError: If a required field is unset, at any depth
        InvalidValueError: If an enum field holds a value outside its enum
        EncodeError: If a value is out of range or of the wrong type, or the
            result exceeds the class's wire_max_bytes

    Example:
        >>> class Reading(BaseMessage):
        ...     value: Annotated[Optional[int], Wire(1, "int32")] = None
        >>> encode(Reading(value=123)).hex()
        '087b'
    """
    writer = WireWriter()
    _write_message(writer, message, type(message).__name__)
    _check_max_bytes(message, len(writer))
    return writer.to_bytes()


def encode_into(message: BaseModel, out: bytearray) -> int:
    """Encode a message by appending to a caller-owned buffer.

    On failure the buffer is truncated back to its original length, so it
    never holds a partial message.

    Args:
        message: Message instance to encode
        out: Buffer to append to

    Returns:
        Number of bytes appended

    Raises:
        Same as encode()
    """
    start = len(out)
    writer = WireWriter(out)
    try:
        _write_message(writer, message, type(message).__name__)
        _check_max_bytes(message, len(writer))
    except Exception:
        del out[start:]
        raise
    return len(writer)


def _check_max_bytes(message: BaseModel, size: int) -> None:
    max_bytes = getattr(type(message), "wire_max_bytes", None)
    if max_bytes is not None and size > max_bytes:
        raise EncodeError(
            f"Encoded message size ({size} bytes) exceeds wire_max_bytes={max_bytes}"
        )


def _write_message(writer: WireWriter, message: BaseModel, path: str) -> None:
    schema = MessageSchema.from_model(type(message))
    for descriptor in schema.fields:
        write_field(writer, message, descriptor, path)


def write_field(writer: WireWriter, message: BaseModel, descriptor: FieldDescriptor, path: str) -> None:
    """Emit one field of message, dispatching on its label.

    Args:
        writer: Destination writer
        message: Message owning the field
        descriptor: Field to write
        path: Dotted path of message, used in error messages
    """
    field_path = f"{path}.{descriptor.name}"

    if not is_present(message, descriptor):
        if descriptor.is_required:
            raise RequiredFieldNotSetError(field_path)
        return

    value = getattr(message, descriptor.name)

    if not descriptor.is_repeated:
        writer.write_tag(descriptor.number, descriptor.wire_type)
        _write_value(writer, descriptor, value, field_path)
        return

    if descriptor.packed:
        payload = WireWriter()
        for index, item in enumerate(value):
            _write_value(payload, descriptor, item, f"{field_path}[{index}]")
        writer.write_tag(descriptor.number, WireType.LENGTH_DELIMITED)
        writer.write_length_delimited(payload.to_bytes())
        logger.debug("Packed %d values for %s into %d bytes", len(value), field_path, len(payload))
        return

    for index, item in enumerate(value):
        writer.write_tag(descriptor.number, descriptor.wire_type)
        _write_value(writer, descriptor, item, f"{field_path}[{index}]")


def _write_value(writer: WireWriter, descriptor: FieldDescriptor, value: Any, path: str) -> None:
    """Emit a single value (no tag) of the field's element type."""
    message_type = descriptor.message_type
    if message_type is not None:
        if not isinstance(value, message_type):
            raise EncodeError(
                f"Field {path}: expected {message_type.__name__}, got {type(value).__name__}"
            )
        child = WireWriter()
        _write_message(child, value, path)
        writer.write_length_delimited(child.to_bytes())
        return

    enum_type = descriptor.enum_type
    if enum_type is not None:
        try:
            member = coerce_enum(enum_type, value)
        except ValueError:
            raise InvalidValueError(
                f"Field {path}: {value!r} is not a valid {enum_type.__name__}",
                value=value,
                enum_type=enum_type,
            ) from None
        except TypeError as err:
            raise EncodeError(f"Field {path}: {err}") from err
        value = int(member)
        scalar = ScalarType.INT32
    else:
        scalar = descriptor.scalar_type

    if scalar is ScalarType.BOOL and not isinstance(value, bool):
        raise EncodeError(f"Field {path}: expected bool, got {type(value).__name__}")

    try:
        _SCALAR_WRITERS[scalar](writer, value)
    except (TypeError, ValueError, OverflowError, struct.error) as err:
        raise EncodeError(f"Field {path}: {err}") from err
