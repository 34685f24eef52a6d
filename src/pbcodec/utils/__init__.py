"""Utility functions for pbcodec.

This module provides size calculation helpers.
"""

from __future__ import annotations

from .sizing import encoded_size, field_sizes

__all__ = [
    "encoded_size",
    "field_sizes",
]
