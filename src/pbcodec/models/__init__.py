"""Pydantic message modeling for pbcodec.

This module provides the BaseMessage class and field utilities for declaring
wire-format messages using Pydantic.
"""

from __future__ import annotations

from .base import BaseMessage
from .fields import Wire, optional_field, repeated_field, required_field

__all__ = [
    "BaseMessage",
    "Wire",
    "required_field",
    "optional_field",
    "repeated_field",
]
