"""Field descriptor tables for pydantic message types.

This module turns the ``Wire(...)`` markers on a message class into an
immutable, ordered descriptor table. A table is built once per class, when
the class is created, and kept in a registry for every later encode/decode.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple, Type, Union, get_args, get_origin

from pydantic import BaseModel
from pydantic.fields import FieldInfo

from ..exceptions import SchemaError
from .wire import MAX_FIELD_NUMBER, WireType


class ScalarType(str, enum.Enum):
    """Scalar value types and their wire encodings."""

    INT32 = "int32"
    UINT32 = "uint32"
    SINT32 = "sint32"
    FIXED32 = "fixed32"
    SFIXED32 = "sfixed32"
    INT64 = "int64"
    UINT64 = "uint64"
    SINT64 = "sint64"
    FIXED64 = "fixed64"
    SFIXED64 = "sfixed64"
    BOOL = "bool"
    FLOAT = "float"
    DOUBLE = "double"
    STRING = "string"
    BYTES = "bytes"

    @property
    def wire_type(self) -> WireType:
        return _SCALAR_WIRE_TYPES[self]

    @property
    def packable(self) -> bool:
        """Whether repeated values of this type may share one packed frame."""
        return self.wire_type is not WireType.LENGTH_DELIMITED


_SCALAR_WIRE_TYPES: Dict[ScalarType, WireType] = {
    ScalarType.INT32: WireType.VARINT,
    ScalarType.UINT32: WireType.VARINT,
    ScalarType.SINT32: WireType.VARINT,
    ScalarType.INT64: WireType.VARINT,
    ScalarType.UINT64: WireType.VARINT,
    ScalarType.SINT64: WireType.VARINT,
    ScalarType.BOOL: WireType.VARINT,
    ScalarType.FIXED32: WireType.FIXED32,
    ScalarType.SFIXED32: WireType.FIXED32,
    ScalarType.FLOAT: WireType.FIXED32,
    ScalarType.FIXED64: WireType.FIXED64,
    ScalarType.SFIXED64: WireType.FIXED64,
    ScalarType.DOUBLE: WireType.FIXED64,
    ScalarType.STRING: WireType.LENGTH_DELIMITED,
    ScalarType.BYTES: WireType.LENGTH_DELIMITED,
}


class Label(str, enum.Enum):
    """Field cardinality."""

    REQUIRED = "required"
    OPTIONAL = "optional"
    REPEATED = "repeated"


FieldType = Union[ScalarType, Type[enum.IntEnum], Type[BaseModel]]


@dataclass(frozen=True)
class Wire:
    """Wire declaration attached to a message field via ``Annotated``.

    Attributes:
        number: Field number, 1 to 2**29 - 1, unique within the message
        type: Scalar type name (``"int32"``, ``ScalarType.STRING``, ...), an
            ``enum.IntEnum`` subclass, or a nested message class
        label: ``"required"``, ``"optional"`` (default) or ``"repeated"``
        packed: Use a single length-delimited frame for a repeated numeric field

    Example:
        >>> class Point(BaseMessage):
        ...     x: Annotated[Optional[int], Wire(1, "sint32", "required")] = None
        ...     tags: Annotated[List[int], Wire(2, "uint32", "repeated", packed=True)] = []
    """

    number: int
    type: Union[ScalarType, str, type]
    label: Union[Label, str] = Label.OPTIONAL
    packed: bool = False


@dataclass(frozen=True)
class FieldDescriptor:
    """Resolved, immutable metadata for one declared field.

    Attributes:
        name: Attribute name on the message class
        number: Field number
        type: ScalarType, IntEnum subclass, or nested message class
        label: Cardinality
        packed: Packed framing for a repeated numeric field
        default: Declared default for singular fields, None when there is none
    """

    name: str
    number: int
    type: FieldType
    label: Label
    packed: bool = False
    default: Any = None

    @property
    def is_required(self) -> bool:
        return self.label is Label.REQUIRED

    @property
    def is_repeated(self) -> bool:
        return self.label is Label.REPEATED

    @property
    def scalar_type(self) -> Optional[ScalarType]:
        return self.type if isinstance(self.type, ScalarType) else None

    @property
    def enum_type(self) -> Optional[Type[enum.IntEnum]]:
        if isinstance(self.type, type) and issubclass(self.type, enum.IntEnum):
            return self.type
        return None

    @property
    def message_type(self) -> Optional[Type[BaseModel]]:
        if isinstance(self.type, type) and issubclass(self.type, BaseModel):
            return self.type
        return None

    @property
    def wire_type(self) -> WireType:
        """Wire type of a single (unpacked) value of this field."""
        if self.scalar_type is not None:
            return self.scalar_type.wire_type
        if self.enum_type is not None:
            return WireType.VARINT
        return WireType.LENGTH_DELIMITED

    @property
    def packable(self) -> bool:
        """Whether a packed frame is legal for this field's element type."""
        if self.scalar_type is not None:
            return self.scalar_type.packable
        return self.enum_type is not None

    @property
    def type_name(self) -> str:
        if self.scalar_type is not None:
            return self.scalar_type.value
        return self.type.__name__  # type: ignore[union-attr]


# Built tables, keyed by message class
_SCHEMA_REGISTRY: Dict[type, MessageSchema] = {}


class MessageSchema:
    """Descriptor table for one message type.

    Fields are kept in declaration order, which is also the encode order.

    Example:
        >>> schema = MessageSchema.from_model(Point)
        >>> [(f.number, f.name, f.type_name) for f in schema.fields]
        [(1, 'x', 'sint32'), (2, 'tags', 'uint32')]
    """

    def __init__(self, model_class: Type[BaseModel]) -> None:
        """Build the table from a pydantic model's field metadata.

        Args:
            model_class: Message class to introspect

        Raises:
            SchemaError: If any field declaration is invalid
        """
        self.model_class = model_class
        self.fields: Tuple[FieldDescriptor, ...] = ()
        self._by_number: Dict[int, FieldDescriptor] = {}
        self._by_name: Dict[str, FieldDescriptor] = {}
        self._introspect()

    @classmethod
    def from_model(cls, model_class: Type[BaseModel]) -> MessageSchema:
        """Return the registered table for model_class, building it on first use."""
        schema = _SCHEMA_REGISTRY.get(model_class)
        if schema is None:
            schema = cls(model_class)
            _SCHEMA_REGISTRY[model_class] = schema
        return schema

    def __iter__(self) -> Iterator[FieldDescriptor]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def field_by_number(self, number: int) -> Optional[FieldDescriptor]:
        return self._by_number.get(number)

    def field_by_name(self, name: str) -> FieldDescriptor:
        try:
            return self._by_name[name]
        except KeyError:
            raise KeyError(f"{self.model_class.__name__} has no field {name!r}") from None

    def _introspect(self) -> None:
        fields: List[FieldDescriptor] = []
        for field_name, field_info in self.model_class.model_fields.items():
            descriptor = self._extract_descriptor(field_name, field_info)
            existing = self._by_number.get(descriptor.number)
            if existing is not None:
                raise SchemaError(
                    f"{self.model_class.__name__}: fields {existing.name} and {field_name} "
                    f"both use number {descriptor.number}"
                )
            self._by_number[descriptor.number] = descriptor
            self._by_name[field_name] = descriptor
            fields.append(descriptor)
        self.fields = tuple(fields)

    def _extract_descriptor(self, name: str, field_info: FieldInfo) -> FieldDescriptor:
        marker = None
        for item in field_info.metadata:
            if isinstance(item, Wire):
                marker = item
        if marker is None:
            raise SchemaError(
                f"Field {name} has no Wire(...) marker; declare it as "
                f"Annotated[<type>, Wire(number, type)]"
            )

        number = marker.number
        if isinstance(number, bool) or not isinstance(number, int):
            raise SchemaError(f"Field {name}: field number must be an int, got {number!r}")
        if not 1 <= number <= MAX_FIELD_NUMBER:
            raise SchemaError(f"Field {name}: field number {number} outside 1-{MAX_FIELD_NUMBER}")

        try:
            label = Label(marker.label)
        except ValueError:
            raise SchemaError(f"Field {name}: unknown label {marker.label!r}") from None

        field_type = _resolve_type(name, marker.type)
        is_list = _is_list_annotation(field_info.annotation)

        if label is Label.REPEATED and not is_list:
            raise SchemaError(f"Field {name}: repeated fields must be annotated as a list")
        if label is Label.REPEATED and _unwrap_optional(field_info.annotation)[1]:
            raise SchemaError(
                f"Field {name}: repeated fields cannot be Optional; "
                f"annotate as List[...] with default []"
            )
        if label is not Label.REPEATED and is_list:
            raise SchemaError(f"Field {name}: list annotation requires label 'repeated'")

        descriptor = FieldDescriptor(
            name=name,
            number=number,
            type=field_type,
            label=label,
            packed=bool(marker.packed),
        )

        if descriptor.packed and not (descriptor.is_repeated and descriptor.packable):
            raise SchemaError(
                f"Field {name}: packed is only allowed on repeated numeric fields, "
                f"not {label.value} {descriptor.type_name}"
            )

        if field_info.is_required():
            hint = "[]" if label is Label.REPEATED else "None"
            raise SchemaError(
                f"Field {name}: declare a default (e.g. = {hint}); required fields "
                f"are checked at encode time, not at construction"
            )

        default = (
            field_info.default_factory()  # type: ignore[call-arg]
            if field_info.default_factory is not None
            else field_info.default
        )
        if label is Label.REPEATED:
            if not isinstance(default, list):
                raise SchemaError(f"Field {name}: repeated fields must default to [], got {default!r}")
            return descriptor

        enum_type = descriptor.enum_type
        if default is not None and enum_type is not None and not _enum_contains(enum_type, default):
            raise SchemaError(f"Field {name}: default {default!r} is not a member of {enum_type.__name__}")

        return FieldDescriptor(
            name=name,
            number=number,
            type=field_type,
            label=label,
            packed=False,
            default=default,
        )


def _resolve_type(name: str, declared: Any) -> FieldType:
    if isinstance(declared, ScalarType):
        return declared
    if isinstance(declared, str):
        try:
            return ScalarType(declared)
        except ValueError:
            raise SchemaError(f"Field {name}: unknown scalar type {declared!r}") from None
    if isinstance(declared, type) and issubclass(declared, enum.Enum):
        if not issubclass(declared, enum.IntEnum):
            raise SchemaError(f"Field {name}: enum {declared.__name__} must be an enum.IntEnum")
        if len(declared) == 0:
            raise SchemaError(f"Field {name}: enum {declared.__name__} has no values")
        return declared
    if isinstance(declared, type) and issubclass(declared, BaseModel):
        return declared
    raise SchemaError(
        f"Field {name}: unsupported type {declared!r}. "
        f"Supported: scalar type names, enum.IntEnum subclasses, message classes."
    )


def _unwrap_optional(annotation: Any) -> Tuple[Any, bool]:
    """Split Optional[X] into (X, True); anything else is (annotation, False)."""
    if get_origin(annotation) is Union:
        args = get_args(annotation)
        non_none = [arg for arg in args if arg is not type(None)]
        if len(non_none) == 1 and len(args) == 2:
            return non_none[0], True
    return annotation, False


def _is_list_annotation(annotation: Any) -> bool:
    annotation, _ = _unwrap_optional(annotation)
    return annotation is list or get_origin(annotation) is list


def _enum_contains(enum_type: Type[enum.IntEnum], value: Any) -> bool:
    try:
        coerce_enum(enum_type, value)
    except (TypeError, ValueError):
        return False
    return True


def coerce_enum(enum_type: Type[enum.IntEnum], value: Any) -> enum.IntEnum:
    """Return the member of enum_type whose value equals value.

    Raises:
        TypeError: If value is not an integer
        ValueError: If value is not a member of the constant set
    """
    if isinstance(value, enum_type):
        return value
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{enum_type.__name__} value must be an int, got {type(value).__name__}")
    return enum_type(int(value))


def is_present(message: BaseModel, descriptor: FieldDescriptor) -> bool:
    """Whether a field holds a value that will be encoded.

    Singular fields are present once explicitly assigned a non-None value, so
    an unset field that reads back its declared default is not present, while
    a field set to zero is. Repeated fields are present when non-empty.
    """
    value = getattr(message, descriptor.name, None)
    if descriptor.is_repeated:
        return bool(value)
    return value is not None and descriptor.name in message.model_fields_set


def missing_required(message: BaseModel, path: str) -> Optional[str]:
    """Return the dotted path of the first unset required field, or None.

    Walks nested messages depth-first in declaration order, including every
    element of repeated message fields.
    """
    schema = MessageSchema.from_model(type(message))
    for descriptor in schema.fields:
        field_path = f"{path}.{descriptor.name}"
        if descriptor.is_repeated:
            if descriptor.message_type is not None:
                for index, item in enumerate(getattr(message, descriptor.name)):
                    missing = missing_required(item, f"{field_path}[{index}]")
                    if missing is not None:
                        return missing
            continue

        if not is_present(message, descriptor):
            if descriptor.is_required:
                return field_path
            continue

        if descriptor.message_type is not None:
            missing = missing_required(getattr(message, descriptor.name), field_path)
            if missing is not None:
                return missing
    return None
