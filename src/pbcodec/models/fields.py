"""Field declaration helpers.

This module provides shorthand constructors for the ``Wire`` marker that
every message field carries inside ``Annotated``.
"""

from __future__ import annotations

from typing import Union

from ..codec.schema import Label, ScalarType, Wire

FieldTypeSpec = Union[ScalarType, str, type]


def required_field(number: int, type: FieldTypeSpec) -> Wire:
    """Declare a required field.

    Encoding a message whose required field is unset raises
    RequiredFieldNotSetError; so does decoding data that never sets it.

    Args:
        number: Field number (1 to 2**29 - 1)
        type: Scalar type name, IntEnum subclass or nested message class

    Returns:
        Wire marker for use inside ``Annotated``.

    Example:
        >>> class Message(BaseMessage):
        ...     id: Annotated[Optional[int], required_field(1, "uint32")] = None
    """
    return Wire(number, type, Label.REQUIRED)


def optional_field(number: int, type: FieldTypeSpec) -> Wire:
    """Declare an optional field.

    Example:
        >>> class Message(BaseMessage):
        ...     name: Annotated[Optional[str], optional_field(2, "string")] = "anonymous"
    """
    return Wire(number, type, Label.OPTIONAL)


def repeated_field(number: int, type: FieldTypeSpec, *, packed: bool = False) -> Wire:
    """Declare a repeated field.

    Args:
        number: Field number (1 to 2**29 - 1)
        type: Element type
        packed: Write all elements in one length-delimited frame. Only valid
            for numeric scalars and enums.

    Returns:
        Wire marker for use inside ``Annotated``.

    Example:
        >>> class Message(BaseMessage):
        ...     samples: Annotated[List[int], repeated_field(3, "sint32", packed=True)] = []
    """
    return Wire(number, type, Label.REPEATED, packed)
