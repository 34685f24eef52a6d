"""Exception hierarchy for pbcodec.

This module defines all custom exceptions used throughout the package.
All exceptions inherit from PbcodecError for easy catching of any pbcodec-specific error.
"""

from __future__ import annotations

from typing import Any


class PbcodecError(Exception):
    """Base exception for all pbcodec errors."""

    pass


class SchemaError(PbcodecError):
    """Raised when a message type declaration is invalid.

    Examples:
        - Field missing its Wire(...) marker
        - Duplicate or out-of-range field number
        - packed=True on a string, bytes, enum or message field
        - Repeated field not annotated as a list
    """

    pass


class EncodeError(PbcodecError):
    """Raised when encoding a message fails.

    Examples:
        - Integer outside the range of its scalar type
        - Field value of the wrong Python type
        - Message exceeds wire_max_bytes
    """

    pass


class DecodeError(PbcodecError):
    """Raised when decoding binary data fails.

    Examples:
        - Truncated data (insufficient bytes)
        - Malformed varint
        - Invalid UTF-8 in a string field
        - Unsupported wire type (groups)
    """

    pass


class WrongTypeError(DecodeError):
    """Raised when the wire type of a known field does not match its declaration.

    For example a length-delimited payload arriving for an int32 field.
    """

    def __init__(self, message: str, *, field_path: str = "") -> None:
        super().__init__(message)
        self.field_path = field_path


class RequiredFieldNotSetError(PbcodecError):
    """Raised when a required field lacks a value.

    Raised at encode time, or once the outermost decode has consumed its
    input. ``path`` names the first missing field, e.g. ``Outer.inner.a``.
    """

    def __init__(self, path: str) -> None:
        super().__init__(f"Required field {path} is not set")
        self.path = path


class InvalidValueError(PbcodecError):
    """Raised when an enum field holds a value outside its constant set."""

    def __init__(self, message: str, *, value: Any = None, enum_type: Any = None) -> None:
        super().__init__(message)
        self.value = value
        self.enum_type = enum_type
