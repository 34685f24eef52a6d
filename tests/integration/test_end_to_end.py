"""End-to-end integration tests."""

from __future__ import annotations

import enum
from typing import Annotated, ClassVar, List, Optional

import pytest

from pbcodec import (
    BaseMessage,
    DecodeError,
    Wire,
    WireReader,
    decode,
    encode,
    encode_into,
    encoded_size,
    field_sizes,
    to_proto_schema,
)


class MissionPhase(enum.IntEnum):
    """Mission phase enum."""

    STARTUP = 1
    TRANSIT = 2
    SURVEY = 3
    RETURN = 4
    SHUTDOWN = 5


class Position(BaseMessage):
    """Geographic position."""

    lat: Annotated[Optional[float], Wire(1, "double", "required")] = None
    lon: Annotated[Optional[float], Wire(2, "double", "required")] = None


class StatusReport(BaseMessage):
    """Vehicle status report."""

    vehicle_id: Annotated[Optional[int], Wire(1, "uint32", "required")] = None
    mission_phase: Annotated[Optional[int], Wire(2, MissionPhase)] = MissionPhase.STARTUP
    depth_cm: Annotated[Optional[int], Wire(3, "sint32")] = None
    battery_pct: Annotated[Optional[int], Wire(4, "uint32")] = None
    emergency: Annotated[Optional[bool], Wire(5, "bool")] = False
    position: Annotated[Optional[Position], Wire(6, Position)] = None
    depth_log: Annotated[List[int], Wire(7, "sint32", "repeated", packed=True)] = []

    wire_max_bytes: ClassVar[Optional[int]] = 64


class StatusReportV2(BaseMessage):
    """Later revision of StatusReport with an extra field."""

    vehicle_id: Annotated[Optional[int], Wire(1, "uint32", "required")] = None
    mission_phase: Annotated[Optional[int], Wire(2, MissionPhase)] = MissionPhase.STARTUP
    depth_cm: Annotated[Optional[int], Wire(3, "sint32")] = None
    heading_deg: Annotated[Optional[float], Wire(8, "float")] = None


class Waypoints(BaseMessage):
    """Command carrying a route."""

    route_id: Annotated[Optional[int], Wire(1, "uint32")] = None
    points: Annotated[List[Position], Wire(2, Position, "repeated")] = []
    abort: Annotated[Optional[bool], Wire(3, "bool")] = False


def _status() -> StatusReport:
    return StatusReport(
        vehicle_id=42,
        mission_phase=MissionPhase.SURVEY,
        depth_cm=2500,
        battery_pct=87,
        emergency=False,
        position=Position(lat=44.6488, lon=-63.5752),
    )


class TestEndToEndWorkflow:
    """Test complete end-to-end workflows."""

    def test_status_report_workflow(self) -> None:
        """Test complete status report workflow."""
        status = _status()

        # Size before encoding
        size = encoded_size(status)
        assert size <= StatusReport.wire_max_bytes

        sizes = field_sizes(status)
        assert sizes == {
            "vehicle_id": 2,
            "mission_phase": 2,
            "depth_cm": 3,  # zigzag(2500) = 5000 needs two varint bytes
            "battery_pct": 2,
            "emergency": 2,
            "position": 20,  # tag + length + two tagged doubles
            "depth_log": 0,
        }

        encoded = encode(status)
        assert len(encoded) == size == 31

        decoded = decode(StatusReport, encoded)
        assert decoded.vehicle_id == 42
        assert decoded.mission_phase == MissionPhase.SURVEY
        assert decoded.depth_cm == 2500
        assert decoded.battery_pct == 87
        assert decoded.emergency is False
        assert decoded.position.lat == 44.6488
        assert decoded.position.lon == -63.5752
        assert decoded.model_dump() == status.model_dump()

    def test_depth_log_accumulates_across_reports(self) -> None:
        """Test merging successive reports into one running record."""
        running = StatusReport(vehicle_id=42)
        for depths in ([100, 120], [150], [-5, 0]):
            update = StatusReport(vehicle_id=42, depth_log=depths, depth_cm=depths[-1])
            decode(StatusReport, encode(update), into=running)

        assert running.depth_log == [100, 120, 150, -5, 0]
        assert running.depth_cm == 0

    def test_stream_of_messages_in_one_buffer(self) -> None:
        """Test several messages written back to back into one buffer."""
        out = bytearray()
        offsets = [0]
        for vehicle_id in (1, 2, 3):
            encode_into(StatusReport(vehicle_id=vehicle_id), out)
            offsets.append(len(out))

        decoded = [
            decode(StatusReport, bytes(out[start:end]))
            for start, end in zip(offsets, offsets[1:])
        ]
        assert [msg.vehicle_id for msg in decoded] == [1, 2, 3]

    def test_waypoint_command(self) -> None:
        """Test repeated nested messages keep their order."""
        cmd = Waypoints(
            route_id=7,
            points=[Position(lat=float(i), lon=-float(i)) for i in range(4)],
        )
        decoded = decode(Waypoints, encode(cmd))
        assert [(p.lat, p.lon) for p in decoded.points] == [(0.0, -0.0), (1.0, -1.0), (2.0, -2.0), (3.0, -3.0)]
        assert decoded.abort is False
        assert not decoded.has_field("abort")

    def test_proto_schema_generation(self) -> None:
        """Test Protobuf schema generation."""
        proto = to_proto_schema(StatusReport, package="fleet.messages")

        assert 'syntax = "proto2";' in proto
        assert "package fleet.messages;" in proto
        assert "enum MissionPhase {" in proto
        assert "message Position {" in proto
        assert "message StatusReport {" in proto
        assert "optional MissionPhase mission_phase = 2 [default = STARTUP];" in proto
        assert "repeated sint32 depth_log = 7 [packed = true];" in proto


class TestSchemaEvolution:
    """Test old and new message revisions interoperate."""

    def test_old_reader_skips_new_fields(self) -> None:
        """Test a reader without heading_deg ignores it."""
        newer = StatusReportV2(vehicle_id=9, depth_cm=-30, heading_deg=90.0)
        decoded = decode(StatusReport, encode(newer))
        assert decoded.vehicle_id == 9
        assert decoded.depth_cm == -30

    def test_new_reader_defaults_missing_fields(self) -> None:
        """Test a newer reader sees defaults for fields an old writer never sent."""
        decoded = decode(StatusReportV2, encode(StatusReport(vehicle_id=9)))
        assert decoded.heading_deg is None
        assert decoded.mission_phase == MissionPhase.STARTUP
        assert not decoded.has_field("mission_phase")

    def test_records_visible_without_schema(self) -> None:
        """Test the raw record stream of an encoded report."""
        records = list(WireReader(encode(_status())))
        assert [record.field_number for record in records] == [1, 2, 3, 4, 5, 6]


class TestErrorRecovery:
    """Test error handling and recovery."""

    def test_truncated_message_detection(self) -> None:
        """Test detection of truncated messages."""
        encoded = encode(_status())

        with pytest.raises(DecodeError, match="[Tt]runcated"):
            decode(StatusReport, encoded[:-2])

    def test_corrupted_length_detection(self) -> None:
        """Test a corrupted length prefix is caught."""
        corrupted = bytearray(encode(_status()))
        # Position length prefix follows the field 6 tag
        index = corrupted.index(0x32)
        corrupted[index + 1] = 0x7F

        with pytest.raises(DecodeError):
            decode(StatusReport, bytes(corrupted))
