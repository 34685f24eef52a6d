"""Message size calculation utilities.

Wire-format sizes depend on field values (varints, strings, repeated
elements), so these functions take message instances rather than classes.
"""

from __future__ import annotations

from pydantic import BaseModel

from ..codec.encoder import write_field
from ..codec.schema import MessageSchema
from ..codec.wire import WireWriter


def encoded_size(message: BaseModel) -> int:
    """Calculate the encoded size of a message in bytes.

    The wire_max_bytes limit is not applied, so this can be used to find out
    by how much a message overshoots it.

    Args:
        message: Message instance to measure

    Returns:
        Size in bytes, tags and length prefixes included

    Raises:
        RequiredFieldNotSetError, InvalidValueError, EncodeError: As encode()

    Example:
        >>> encoded_size(Reading(value=123))
        2
    """
    return sum(field_sizes(message).values())


def field_sizes(message: BaseModel) -> dict[str, int]:
    """Get the encoded size in bytes of each field in a message.

    Args:
        message: Message instance to analyze

    Returns:
        Dictionary mapping field names, in declaration order, to the bytes
        they contribute (0 for unset fields)

    Example:
        >>> field_sizes(Reading(value=123))
        {'value': 2}
        >>> field_sizes(Reading())
        {'value': 0}
    """
    path = type(message).__name__
    sizes = {}
    for descriptor in MessageSchema.from_model(type(message)).fields:
        writer = WireWriter()
        write_field(writer, message, descriptor, path)
        sizes[descriptor.name] = len(writer)
    return sizes
