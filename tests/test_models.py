"""Tests for proctrack data models."""

import pytest

from proctrack.models import Enumeration, ProcessRecord, ProcessSnapshot, SampleGeneration


def make_record(pid: int = 1, cpu_time: float = 0.5) -> ProcessRecord:
    return ProcessRecord(
        pid=pid,
        name="init",
        owner="root",
        resident_memory=10000,
        cpu_time=cpu_time,
        sampled_at=12.0,
    )


def test_process_snapshot_creation():
    """Test ProcessSnapshot dataclass creation."""
    snapshot = ProcessSnapshot(
        pid=123,
        name="test_process",
        owner="testuser",
        cpu_percent=50.0,
        memory_percent=25.0,
        resident_memory=1024000,
    )

    assert snapshot.pid == 123
    assert snapshot.name == "test_process"
    assert snapshot.owner == "testuser"
    assert snapshot.cpu_percent == 50.0
    assert snapshot.memory_percent == 25.0
    assert snapshot.resident_memory == 1024000


def test_process_snapshot_is_frozen():
    """Test that ProcessSnapshot is immutable (frozen)."""
    snapshot = ProcessSnapshot(
        pid=1,
        name="init",
        owner="root",
        cpu_percent=0.1,
        memory_percent=0.5,
        resident_memory=10000,
    )

    with pytest.raises(AttributeError):
        snapshot.pid = 999


def test_process_record_uses_slots():
    """Slots-based dataclasses don't have __dict__."""
    assert not hasattr(make_record(), "__dict__")


def test_generation_keys_records_by_pid():
    """Test SampleGeneration.from_enumeration indexes records by pid."""
    enumeration = Enumeration(
        records=[make_record(pid=7), make_record(pid=3)],
        total_memory=4096,
        core_count=2,
    )

    generation = SampleGeneration.from_enumeration(5.0, enumeration)

    assert generation.timestamp == 5.0
    assert sorted(generation.records) == [3, 7]
    assert generation.records[7].pid == 7
    assert generation.total_memory == 4096
    assert generation.core_count == 2


def test_generation_records_are_read_only():
    """Published generations cannot be edited through their records mapping."""
    enumeration = Enumeration(records=[make_record(pid=1)], total_memory=1, core_count=1)
    generation = SampleGeneration.from_enumeration(0.0, enumeration)

    with pytest.raises(TypeError):
        generation.records[2] = make_record(pid=2)
