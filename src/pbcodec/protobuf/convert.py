"""Protobuf schema generation.

This module renders pbcodec descriptor tables as proto2 ``.proto`` text, so
message types declared in Python can be shared with protoc and with
Protobuf implementations in other languages. The wire formats are identical.
"""

from __future__ import annotations

import enum
from typing import Any, List

from pydantic import BaseModel

from ..codec.schema import FieldDescriptor, MessageSchema, ScalarType


def to_proto_schema(message_class: type[BaseModel], *, package: str = "") -> str:
    """Generate a proto2 .proto schema from a message class.

    Enums and nested message types referenced by the class are emitted as
    top-level definitions before the types that use them.

    Args:
        message_class: Message class to convert
        package: Optional Protobuf package name

    Returns:
        .proto schema as a string

    Raises:
        SchemaError: If the message declaration is invalid

    Example:
        >>> print(to_proto_schema(Reading, package="sensors"))
        syntax = "proto2";
        package sensors;
        <BLANKLINE>
        message Reading {
          optional int32 value = 1;
        }
    """
    messages: List[type[BaseModel]] = []
    enums: List[type[enum.IntEnum]] = []
    _collect_types(message_class, messages, enums)

    lines = ['syntax = "proto2";']
    if package:
        lines.append(f"package {package};")

    for enum_type in enums:
        lines.append("")
        lines.extend(_enum_to_proto(enum_type))

    for message_type in messages:
        lines.append("")
        lines.extend(_message_to_proto(message_type))

    return "\n".join(lines) + "\n"


def _collect_types(
    message_class: type[BaseModel],
    messages: List[type[BaseModel]],
    enums: List[type[enum.IntEnum]],
) -> None:
    """Depth-first walk appending each type after its dependencies."""
    if message_class in messages:
        return
    for field in MessageSchema.from_model(message_class).fields:
        if field.enum_type is not None and field.enum_type not in enums:
            enums.append(field.enum_type)
        elif field.message_type is not None:
            _collect_types(field.message_type, messages, enums)
    messages.append(message_class)


def _message_to_proto(message_class: type[BaseModel]) -> List[str]:
    lines = [f"message {message_class.__name__} {{"]
    for field in MessageSchema.from_model(message_class).fields:
        lines.append(f"  {_field_to_proto(field)}")
    lines.append("}")
    return lines


def _field_to_proto(field: FieldDescriptor) -> str:
    options = []
    if field.packed:
        options.append("packed = true")
    if not field.is_repeated and field.default is not None:
        options.append(f"default = {_format_default(field, field.default)}")

    line = f"{field.label.value} {field.type_name} {field.name} = {field.number}"
    if options:
        line += f" [{', '.join(options)}]"
    return line + ";"


def _format_default(field: FieldDescriptor, value: Any) -> str:
    if field.enum_type is not None:
        return field.enum_type(value).name
    scalar = field.scalar_type
    if scalar is ScalarType.BOOL:
        return "true" if value else "false"
    if scalar is ScalarType.STRING:
        return _quote(value.encode("utf-8"))
    if scalar is ScalarType.BYTES:
        return _quote(bytes(value))
    if scalar is ScalarType.FLOAT or scalar is ScalarType.DOUBLE:
        value = float(value)
        if value != value:
            return "nan"
        if value in (float("inf"), float("-inf")):
            return "inf" if value > 0 else "-inf"
        return repr(value)
    return str(int(value))


def _quote(data: bytes) -> str:
    """Render bytes as a proto string literal with C-style escapes."""
    out = []
    for byte in data:
        char = chr(byte)
        if char in ('"', "\\"):
            out.append("\\" + char)
        elif 0x20 <= byte < 0x7F:
            out.append(char)
        else:
            out.append(f"\\{byte:03o}")
    return '"' + "".join(out) + '"'


def _enum_to_proto(enum_type: type[enum.IntEnum]) -> List[str]:
    """Convert an IntEnum to a Protobuf enum definition, keeping member values."""
    lines = [f"enum {enum_type.__name__} {{"]
    for member in enum_type:
        lines.append(f"  {member.name} = {int(member)};")
    lines.append("}")
    return lines
