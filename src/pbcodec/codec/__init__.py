"""Wire-format codec for pbcodec.

This module provides encoding and decoding of Protocol-Buffer-style wire
format, driven by per-message descriptor tables.
"""

from __future__ import annotations

from .decoder import DEFAULT_MAX_DEPTH, decode
from .encoder import encode, encode_into
from .schema import FieldDescriptor, Label, MessageSchema, ScalarType, Wire
from .wire import WireReader, WireRecord, WireType, WireWriter

__all__ = [
    "encode",
    "encode_into",
    "decode",
    "DEFAULT_MAX_DEPTH",
    "MessageSchema",
    "FieldDescriptor",
    "ScalarType",
    "Label",
    "Wire",
    "WireType",
    "WireReader",
    "WireWriter",
    "WireRecord",
]
