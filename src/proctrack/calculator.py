"""CPU and memory percentage calculations."""

from proctrack.models import ProcessSnapshot, SampleGeneration


def cpu_percent(
    pid: int,
    current: SampleGeneration,
    previous: SampleGeneration | None,
    core_count: int,
) -> float:
    """
    Compute CPU utilization of a process between two generations.

    The result is ``100 * delta_cpu / delta_wall`` and is not normalized by
    ``core_count``: a process saturating N cores reports up to ``100 * N``.

    Returns 0.0 for a process seen for the first time, for a pid whose
    cumulative CPU time went backwards (the pid was reused), and when no
    wall time elapsed between the two samples.
    """
    if previous is None:
        return 0.0
    before = previous.records.get(pid)
    after = current.records.get(pid)
    if before is None or after is None:
        return 0.0
    if after.cpu_time < before.cpu_time:
        return 0.0

    delta_wall = after.sampled_at - before.sampled_at
    if delta_wall <= 0:
        return 0.0
    return 100.0 * (after.cpu_time - before.cpu_time) / delta_wall


def memory_percent(resident: int, total: int) -> float:
    """Resident memory as a percentage of total physical memory, within [0, 100]."""
    if total <= 0:
        return 0.0
    percent = 100.0 * resident / total
    return min(max(percent, 0.0), 100.0)


def build_snapshot(
    current: SampleGeneration,
    previous: SampleGeneration | None,
) -> tuple[ProcessSnapshot, ...]:
    """Derive the display-ready snapshot for every process in ``current``, ordered by pid."""
    return tuple(
        ProcessSnapshot(
            pid=record.pid,
            name=record.name,
            owner=record.owner,
            cpu_percent=cpu_percent(record.pid, current, previous, current.core_count),
            memory_percent=memory_percent(record.resident_memory, current.total_memory),
            resident_memory=record.resident_memory,
        )
        for _, record in sorted(current.records.items())
    )
