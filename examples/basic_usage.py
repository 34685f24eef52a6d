#!/usr/bin/env python3
"""Basic usage example for pbcodec.

This example demonstrates:
1. Declaring a message with Pydantic and Wire markers
2. Encoding to Protocol Buffers wire format
3. Decoding back to a Pydantic model, and merging updates
4. Calculating message sizes
5. Printing the equivalent .proto schema
"""

from __future__ import annotations

import enum
from typing import Annotated, List, Optional

from pbcodec import (
    BaseMessage,
    RequiredFieldNotSetError,
    Wire,
    decode,
    encode,
    encoded_size,
    field_sizes,
    to_proto_schema,
)


class Phase(enum.IntEnum):
    """Mission phase."""

    STARTUP = 0
    SURVEY = 1
    RETURN = 2


# Define message classes
class Position(BaseMessage):
    """Latitude/longitude in degrees."""

    lat: Annotated[Optional[float], Wire(1, "double", "required")] = None
    lon: Annotated[Optional[float], Wire(2, "double", "required")] = None


class StatusReport(BaseMessage):
    """Vehicle status report."""

    vehicle_id: Annotated[Optional[int], Wire(1, "uint32", "required")] = None
    phase: Annotated[Optional[int], Wire(2, Phase)] = Phase.STARTUP
    depth_cm: Annotated[Optional[int], Wire(3, "sint32")] = None
    position: Annotated[Optional[Position], Wire(4, Position)] = None
    battery_log: Annotated[List[int], Wire(5, "uint32", "repeated", packed=True)] = []


def main() -> None:
    """Run the basic usage example."""
    print("=" * 60)
    print("pbcodec Basic Usage Example")
    print("=" * 60)
    print()

    # Create a message instance
    print("1. Creating a status report message...")
    msg = StatusReport(
        vehicle_id=42,
        phase=Phase.SURVEY,
        depth_cm=-150,
        position=Position(lat=44.6488, lon=-63.5752),
        battery_log=[97, 96, 96, 95],
    )
    print(f"   {msg!r}")
    print()

    # Analyze field sizes
    print("2. Analyzing field sizes...")
    for field_name, size in field_sizes(msg).items():
        print(f"   {field_name}: {size} bytes")
    print(f"   Total: {encoded_size(msg)} bytes")
    print()

    # Encode the message
    print("3. Encoding to wire format...")
    encoded_data = encode(msg)
    print(f"   Encoded size: {len(encoded_data)} bytes")
    print(f"   Hex: {encoded_data.hex(' ')}")
    print()

    # Decode the message
    print("4. Decoding from binary...")
    decoded_msg = decode(StatusReport, encoded_data)
    print(f"   {decoded_msg!r}")
    if decoded_msg.model_dump() == msg.model_dump():
        print("   ✓ Round-trip successful! Messages match.")
    else:
        print("   ✗ Round-trip failed! Messages don't match.")
    print()

    # Merge a later update into the decoded message
    print("5. Merging an update...")
    update = StatusReport(vehicle_id=42, phase=Phase.RETURN, battery_log=[94])
    decode(StatusReport, encode(update), into=decoded_msg)
    print(f"   Phase: {Phase(decoded_msg.phase).name}")
    print(f"   Battery log: {decoded_msg.battery_log}")
    print()

    # Required fields are checked at encode time
    print("6. Encoding without a required field...")
    try:
        encode(StatusReport(depth_cm=10))
    except RequiredFieldNotSetError as e:
        print(f"   ✓ Rejected: {e}")
    print()

    print("7. Equivalent .proto schema:")
    print(to_proto_schema(StatusReport, package="fleet"))

    print("=" * 60)
    print("Example complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
