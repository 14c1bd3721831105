"""Derived values computed from raw kernel snapshots"""
import threading
from typing import Optional

from procfs_exporter.metrics.models import (
    CpuTimes,
    CpuUsage,
    MemoryInfo,
    MemoryUsage,
    ReadResult,
)
from .procfs import ProcReader


def kb_to_mb(kb: float) -> float:
    """Convert kilobytes to megabytes"""
    return kb / 1024.0


def memory_usage_percent(total: float, free: float) -> Optional[float]:
    """Share of total memory in use, None when total is not positive"""
    if total <= 0:
        return None
    return (total - free) / total * 100.0


def memory_used(total: float, free: float) -> float:
    return total - free


def memory_fragmentation_percent(available: float, free: Optional[float]) -> Optional[float]:
    """Share of available memory that is reclaimable rather than actually free"""
    if free is None or available <= 0:
        return None
    return (available - free) / available * 100.0


def derive_memory_usage(info: MemoryInfo) -> Optional[MemoryUsage]:
    """Turn one meminfo read into the published memory values"""
    total_mb = kb_to_mb(info.total_kb)
    available_mb = kb_to_mb(info.available_kb)
    percent = memory_usage_percent(total_mb, available_mb)
    if percent is None:
        return None

    free_mb = kb_to_mb(info.free_kb) if info.free_kb is not None else None
    return MemoryUsage(
        percent=percent,
        total_mb=total_mb,
        used_mb=memory_used(total_mb, available_mb),
        available_mb=available_mb,
        fragmentation_percent=memory_fragmentation_percent(available_mb, free_mb)
    )


def compute_cpu_percent(previous: CpuTimes, current: CpuTimes) -> Optional[float]:
    """Busy share of the ticks elapsed between two samples.

    Returns None when no ticks elapsed, either because the two samples are
    identical or because the counters were read faster than the kernel
    updates them.
    """
    total_delta = current.total - previous.total
    idle_delta = current.idle_total - previous.idle_total
    if total_delta <= 0:
        return None
    return (total_delta - idle_delta) / total_delta * 100.0


class CpuUsageCalculator:
    """Two-sample CPU usage with the previous reading kept as baseline.

    The baseline starts empty, so the first sample after start only primes
    it and reports unavailable. Reading and updating the baseline happen
    under one lock so overlapping samples cannot corrupt the delta.
    """

    def __init__(self, reader: ProcReader):
        self.reader = reader
        self._previous: Optional[CpuTimes] = None
        self._lock = threading.Lock()

    @property
    def previous(self) -> Optional[CpuTimes]:
        return self._previous

    def sample(self) -> ReadResult:
        with self._lock:
            result = self.reader.read_cpu_times()
            if not result.is_success:
                return result

            previous, current = self._previous, result.data
            # Baseline moves on every successful read
            self._previous = current

        if previous is None:
            return ReadResult.unavailable("No CPU baseline yet, first sample primes it")

        percent = compute_cpu_percent(previous, current)
        if percent is None:
            return ReadResult.unavailable("No CPU ticks elapsed since previous sample")
        return ReadResult.success(CpuUsage(percent=percent))
