"""Wire-format decoder for pydantic messages.

This module provides the decode() function that parses wire-format bytes into
a new message instance, or merges them into an existing one.
"""

from __future__ import annotations

import enum
import logging
import struct
from typing import Any, List, Optional, TypeVar, Union

from pydantic import BaseModel, ValidationError

from ..exceptions import DecodeError, InvalidValueError, RequiredFieldNotSetError, WrongTypeError
from .schema import FieldDescriptor, MessageSchema, ScalarType, coerce_enum, is_present, missing_required
from .wire import WireReader, WireRecord, WireType, to_signed, zigzag_decode

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

DEFAULT_MAX_DEPTH = 100

_UINT32_MASK = 0xFFFFFFFF


def decode(
    message_class: type[T],
    data: Union[bytes, bytearray, memoryview],
    into: Optional[T] = None,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> T:
    """Decode wire-format bytes into a message.

    Unknown field numbers are skipped. For singular fields the last
    occurrence wins; nested messages that occur more than once are merged;
    repeated fields accumulate in wire order. Required fields are checked once
    the whole input has been consumed.

    Args:
        message_class: Message class to decode to
        data: Encoded bytes
        into: Optional existing instance of message_class to merge into. It is
            updated in place and returned, and left untouched if decoding fails.
        max_depth: Maximum nested message depth

    Returns:
        The decoded message (``into`` itself when given)

    Raises:
        TypeError: If into is not an instance of message_class
        DecodeError: If data is truncated or malformed, or nests too deeply
        WrongTypeError: If a known field arrives with the wrong wire type
        InvalidValueError: If an enum field carries a value outside its enum
        RequiredFieldNotSetError: If a required field is unset after decoding

    Example:
        >>> decode(Reading, bytes.fromhex("087b")).value
        123
        >>> reading = Reading(value=1)
        >>> decode(Reading, bytes.fromhex("0802"), into=reading) is reading
        True
    """
    if into is not None and type(into) is not message_class:
        raise TypeError(
            f"into must be a {message_class.__name__} instance, got {type(into).__name__}"
        )

    # Work on a copy so a failed merge leaves the caller's instance unchanged
    target = into.model_copy(deep=True) if into is not None else message_class()
    root = message_class.__name__
    _merge_from(target, data, root, depth=0, max_depth=max_depth)

    missing = missing_required(target, root)
    if missing is not None:
        raise RequiredFieldNotSetError(missing)

    if into is None:
        return target
    _adopt(into, target)
    return into


def _merge_from(
    message: BaseModel,
    data: Union[bytes, bytearray, memoryview],
    path: str,
    depth: int,
    max_depth: int,
) -> None:
    if depth > max_depth:
        raise DecodeError(f"{path}: message nesting exceeds max_depth={max_depth}")

    schema = MessageSchema.from_model(type(message))
    reader = WireReader(data)
    while not reader.at_end():
        offset = reader.position
        try:
            record = reader.read_field()
        except IndexError as err:
            raise DecodeError(f"{path}: truncated field at byte {offset}: {err}") from err
        except ValueError as err:
            raise DecodeError(f"{path}: malformed field at byte {offset}: {err}") from err

        descriptor = schema.field_by_number(record.field_number)
        if descriptor is None:
            logger.debug(
                "Skipping unknown field %d (%s) in %s",
                record.field_number,
                record.wire_type.name,
                path,
            )
            continue
        _apply_record(message, descriptor, record, path, depth, max_depth)


def _apply_record(
    message: BaseModel,
    descriptor: FieldDescriptor,
    record: WireRecord,
    path: str,
    depth: int,
    max_depth: int,
) -> None:
    field_path = f"{path}.{descriptor.name}"

    if descriptor.is_repeated:
        items = getattr(message, descriptor.name)
        if record.wire_type is WireType.LENGTH_DELIMITED and descriptor.packable:
            items.extend(_unpack(descriptor, record.value, field_path, len(items)))
            return
        _check_wire_type(descriptor, record, field_path)
        items.append(
            _decode_value(
                descriptor, record.value, f"{field_path}[{len(items)}]", depth, max_depth
            )
        )
        return

    _check_wire_type(descriptor, record, field_path)

    if descriptor.message_type is not None and is_present(message, descriptor):
        existing = getattr(message, descriptor.name)
        logger.debug("Merging repeated occurrence of %s", field_path)
        _merge_from(existing, record.value, field_path, depth + 1, max_depth)
        return

    value = _decode_value(descriptor, record.value, field_path, depth, max_depth)
    try:
        setattr(message, descriptor.name, value)
    except ValidationError as err:
        raise DecodeError(f"Field {field_path}: decoded value rejected: {err}") from err


def _check_wire_type(descriptor: FieldDescriptor, record: WireRecord, path: str) -> None:
    if record.wire_type is not descriptor.wire_type:
        raise WrongTypeError(
            f"Field {path}: expected wire type {descriptor.wire_type.name} for "
            f"{descriptor.type_name}, got {record.wire_type.name}",
            field_path=path,
        )


def _unpack(descriptor: FieldDescriptor, payload: bytes, path: str, start_index: int) -> List[Any]:
    """Split a packed frame into element values."""
    reader = WireReader(payload)
    wire_type = descriptor.wire_type
    raw_values: List[int] = []
    while not reader.at_end():
        try:
            raw_values.append(reader.read_value(wire_type))
        except IndexError as err:
            raise DecodeError(f"Field {path}: truncated packed element: {err}") from err
        except ValueError as err:
            raise DecodeError(f"Field {path}: malformed packed element: {err}") from err

    logger.debug("Unpacked %d values for %s", len(raw_values), path)
    enum_type = descriptor.enum_type
    values = []
    for index, raw in enumerate(raw_values, start_index):
        element_path = f"{path}[{index}]"
        if enum_type is not None:
            values.append(_enum_from_wire(enum_type, raw, element_path))
        else:
            values.append(_scalar_from_wire(descriptor.scalar_type, raw, element_path))
    return values


def _decode_value(
    descriptor: FieldDescriptor,
    raw: Union[int, bytes],
    path: str,
    depth: int,
    max_depth: int,
) -> Any:
    """Convert one raw wire value to the field's Python value."""
    message_type = descriptor.message_type
    if message_type is not None:
        child = message_type()
        _merge_from(child, raw, path, depth + 1, max_depth)
        return child

    enum_type = descriptor.enum_type
    if enum_type is not None:
        return _enum_from_wire(enum_type, raw, path)

    return _scalar_from_wire(descriptor.scalar_type, raw, path)


def _enum_from_wire(enum_type: type[enum.IntEnum], raw: int, path: str) -> enum.IntEnum:
    value = to_signed(raw, 32)
    try:
        return coerce_enum(enum_type, value)
    except ValueError:
        raise InvalidValueError(
            f"Field {path}: {value} is not a valid {enum_type.__name__}",
            value=value,
            enum_type=enum_type,
        ) from None


def _scalar_from_wire(scalar: Optional[ScalarType], raw: Any, path: str) -> Any:
    # Integers are truncated to the declared width
    if scalar is ScalarType.INT32 or scalar is ScalarType.SFIXED32:
        return to_signed(raw, 32)
    if scalar is ScalarType.INT64 or scalar is ScalarType.SFIXED64:
        return to_signed(raw, 64)
    if scalar is ScalarType.UINT32 or scalar is ScalarType.FIXED32:
        return raw & _UINT32_MASK
    if scalar is ScalarType.UINT64 or scalar is ScalarType.FIXED64:
        return raw
    if scalar is ScalarType.SINT32:
        return zigzag_decode(raw & _UINT32_MASK)
    if scalar is ScalarType.SINT64:
        return zigzag_decode(raw)
    if scalar is ScalarType.BOOL:
        return raw != 0
    if scalar is ScalarType.FLOAT:
        return struct.unpack("<f", raw.to_bytes(4, "little"))[0]
    if scalar is ScalarType.DOUBLE:
        return struct.unpack("<d", raw.to_bytes(8, "little"))[0]
    if scalar is ScalarType.STRING:
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as err:
            raise DecodeError(f"Field {path}: invalid UTF-8 in string: {err}") from err
    if scalar is ScalarType.BYTES:
        return bytes(raw)
    raise DecodeError(f"Field {path}: unsupported scalar type {scalar}")


def _adopt(target: BaseModel, source: BaseModel) -> None:
    """Copy the outcome of a merge from source back into target in place.

    source started as a deep copy of target, so repeated fields only ever grew
    at the tail and nested messages present in both can be adopted recursively.
    """
    schema = MessageSchema.from_model(type(target))
    for descriptor in schema.fields:
        name = descriptor.name
        if descriptor.is_repeated:
            current = getattr(target, name)
            current.extend(getattr(source, name)[len(current) :])
            continue

        if name not in source.model_fields_set:
            continue

        value = getattr(source, name)
        # An unset default child was replaced on the copy, not merged into
        if descriptor.message_type is not None and is_present(target, descriptor) and value is not None:
            _adopt(getattr(target, name), value)
        else:
            setattr(target, name, value)
