"""Protobuf interoperability for pbcodec.

This module provides generation of .proto schemas from pbcodec message types.
"""

from __future__ import annotations

from .convert import to_proto_schema

__all__ = [
    "to_proto_schema",
]
