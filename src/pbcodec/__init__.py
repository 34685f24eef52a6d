"""pbcodec: Protocol Buffer wire-format codec

A Python library for encoding and decoding the Protocol Buffers (proto2)
binary wire format, with message types declared as Pydantic models.

Key Features:
- Pydantic-based message modeling with per-field Wire(...) markers
- varint, zigzag, fixed-width and length-delimited encodings
- required/optional/repeated fields, packed repeated numerics
- Closed-set enum validation and declared defaults
- Merge-on-decode into an existing instance
- Pure Python implementation

Quick Start:
    >>> from typing import Annotated, List, Optional
    >>> from pbcodec import BaseMessage, Wire, encode, decode
    >>>
    >>> class Reading(BaseMessage):
    ...     sensor: Annotated[Optional[int], Wire(1, "uint32", "required")] = None
    ...     samples: Annotated[List[int], Wire(2, "sint32", "repeated", packed=True)] = []
    >>>
    >>> msg = Reading(sensor=7, samples=[-1, 0, 1])
    >>> data = encode(msg)
    >>> decoded = decode(Reading, data)
"""

from __future__ import annotations

from .codec import (
    DEFAULT_MAX_DEPTH,
    FieldDescriptor,
    Label,
    MessageSchema,
    ScalarType,
    WireReader,
    WireRecord,
    WireType,
    WireWriter,
    decode,
    encode,
    encode_into,
)
from .exceptions import (
    DecodeError,
    EncodeError,
    InvalidValueError,
    PbcodecError,
    RequiredFieldNotSetError,
    SchemaError,
    WrongTypeError,
)
from .models import BaseMessage, Wire, optional_field, repeated_field, required_field
from .protobuf import to_proto_schema
from .utils import encoded_size, field_sizes

__version__ = "0.1.0"

__all__ = [
    # Core API
    "BaseMessage",
    "encode",
    "encode_into",
    "decode",
    "DEFAULT_MAX_DEPTH",
    # Field declaration
    "Wire",
    "ScalarType",
    "Label",
    "required_field",
    "optional_field",
    "repeated_field",
    # Descriptors and wire primitives
    "MessageSchema",
    "FieldDescriptor",
    "WireType",
    "WireReader",
    "WireWriter",
    "WireRecord",
    # Exceptions
    "PbcodecError",
    "SchemaError",
    "EncodeError",
    "DecodeError",
    "WrongTypeError",
    "RequiredFieldNotSetError",
    "InvalidValueError",
    # Sizing
    "encoded_size",
    "field_sizes",
    # Protobuf
    "to_proto_schema",
    # Version
    "__version__",
]
