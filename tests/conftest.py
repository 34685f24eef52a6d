"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import pytest


@pytest.fixture
def single_int32_payload() -> bytes:
    """Field 1 (varint) = 123."""
    return bytes([0x08, 0x7B])


@pytest.fixture
def nested_int32_payload() -> bytes:
    """Field 1 (length-delimited, 2 bytes) wrapping field 1 (varint) = 123."""
    return bytes([0x0A, 0x02, 0x08, 0x7B])


@pytest.fixture
def packed_payload() -> bytes:
    """Field 1 packed frame holding the varints 1 through 5."""
    return bytes([0x0A, 0x05, 0x01, 0x02, 0x03, 0x04, 0x05])
