"""Readers for the /proc counter sources"""
import logging
from pathlib import Path
from typing import List, Optional, Union

from procfs_exporter.metrics.models import (
    ContextSwitches,
    CpuTimes,
    DiskUsage,
    MemoryInfo,
    NetworkUsage,
    ReadResult,
    RunningProcesses,
)

logger = logging.getLogger(__name__)

CPU_FIELD_COUNT = 8

# Zero-based positions after splitting a /proc/diskstats line on whitespace
DISKSTATS_FIELDS = {
    "read_time_ms": 6,
    "write_time_ms": 10,
    "io_in_progress": 11,
    "io_time_ms": 12,
}

# Zero-based positions after the "iface:" prefix of a /proc/net/dev line
NETDEV_FIELDS = {
    "rx_bytes": 0,
    "rx_errors": 2,
    "rx_dropped": 3,
    "tx_bytes": 8,
    "tx_errors": 10,
    "tx_dropped": 11,
}


class ProcReader:
    """Parse kernel pseudo-files into typed snapshots.

    Every read returns a ReadResult. A source that cannot be opened, or
    lacks the expected line, is UNAVAILABLE; a source whose line has the
    wrong shape is MALFORMED. Readers hold no state between calls.
    """

    def __init__(self, proc_root: Union[str, Path] = "/proc", disk_device: str = "sda"):
        self.proc_root = Path(proc_root)
        self.disk_device = disk_device

    def read_cpu_times(self) -> ReadResult:
        """Aggregate cpu line of /proc/stat"""
        content = self._safe_read_file("stat")
        if content is None:
            return ReadResult.unavailable(f"Could not read {self.proc_root / 'stat'}")

        for line in content.splitlines():
            parts = line.split()
            if not parts or parts[0] != "cpu":
                continue
            values = parts[1:]
            if len(values) < CPU_FIELD_COUNT:
                return ReadResult.malformed(
                    f"cpu line has {len(values)} fields, expected {CPU_FIELD_COUNT}"
                )
            try:
                return ReadResult.success(CpuTimes(*(int(v) for v in values[:CPU_FIELD_COUNT])))
            except ValueError:
                return ReadResult.malformed("Could not parse cpu line of /proc/stat")

        return ReadResult.unavailable("No aggregate cpu line in /proc/stat")

    def read_meminfo(self) -> ReadResult:
        """MemTotal, MemAvailable and MemFree from a single read of /proc/meminfo.

        A zero MemTotal or MemAvailable cannot be told apart from a missing
        label and is reported as unavailable.
        """
        content = self._safe_read_file("meminfo")
        if content is None:
            return ReadResult.unavailable(f"Could not read {self.proc_root / 'meminfo'}")

        values = {}
        for line in content.splitlines():
            if ":" not in line:
                continue
            key, value = line.split(":", 1)
            key = key.strip()
            if key not in ("MemTotal", "MemAvailable", "MemFree"):
                continue
            try:
                values[key] = int(value.split()[0])
            except (ValueError, IndexError):
                return ReadResult.malformed(f"Could not parse {key} from /proc/meminfo")

        for required in ("MemTotal", "MemAvailable"):
            if not values.get(required):
                return ReadResult.unavailable(f"{required} not found in /proc/meminfo")

        return ReadResult.success(MemoryInfo(
            total_kb=values["MemTotal"],
            available_kb=values["MemAvailable"],
            free_kb=values.get("MemFree")
        ))

    def read_disk(self) -> ReadResult:
        """I/O timing counters for the configured device from /proc/diskstats"""
        content = self._safe_read_file("diskstats")
        if content is None:
            return ReadResult.unavailable(f"Could not read {self.proc_root / 'diskstats'}")

        for line in content.splitlines():
            parts = line.split()
            if len(parts) < 3 or self.disk_device not in parts[2]:
                continue
            try:
                values = {key: int(parts[index]) for key, index in DISKSTATS_FIELDS.items()}
            except (ValueError, IndexError):
                return ReadResult.malformed(f"Could not parse diskstats line for {parts[2]}")
            return ReadResult.success(DiskUsage(device=parts[2], **values))

        return ReadResult.unavailable(f"Device {self.disk_device} not found in /proc/diskstats")

    def read_network(self) -> ReadResult:
        """Per-interface receive and transmit counters from /proc/net/dev"""
        content = self._safe_read_file("net/dev")
        if content is None:
            return ReadResult.unavailable(f"Could not read {self.proc_root / 'net/dev'}")

        interfaces: List[NetworkUsage] = []
        errors: List[str] = []
        # Skip the two header lines
        for line in content.splitlines()[2:]:
            if ":" not in line:
                continue
            name, stats = line.split(":", 1)
            name = name.strip()
            stats = stats.split()
            try:
                values = {key: int(stats[index]) for key, index in NETDEV_FIELDS.items()}
            except (ValueError, IndexError):
                errors.append(f"Could not parse interface {name}")
                continue
            interfaces.append(NetworkUsage(interface=name, **values))

        if not interfaces:
            if errors:
                return ReadResult.malformed("; ".join(errors))
            return ReadResult.unavailable("No interfaces found in /proc/net/dev")
        return ReadResult.success(interfaces, errors)

    def read_running_processes(self) -> ReadResult:
        """procs_running line of /proc/stat; zero is reported as unavailable"""
        result = self._read_stat_counter("procs_running")
        if not result.is_success:
            return result
        if result.data == 0:
            return ReadResult.unavailable("procs_running is zero in /proc/stat")
        return ReadResult.success(RunningProcesses(count=result.data))

    def read_context_switches(self) -> ReadResult:
        """ctxt line of /proc/stat"""
        result = self._read_stat_counter("ctxt")
        if not result.is_success:
            return result
        return ReadResult.success(ContextSwitches(count=result.data))

    def _read_stat_counter(self, label: str) -> ReadResult:
        """Trailing integer of the /proc/stat line starting with label"""
        content = self._safe_read_file("stat")
        if content is None:
            return ReadResult.unavailable(f"Could not read {self.proc_root / 'stat'}")

        for line in content.splitlines():
            parts = line.split()
            if parts and parts[0] == label:
                try:
                    return ReadResult.success(int(parts[1]))
                except (ValueError, IndexError):
                    return ReadResult.malformed(f"Could not parse {label} from /proc/stat")

        return ReadResult.unavailable(f"{label} not found in /proc/stat")

    def _safe_read_file(self, relative_path: str) -> Optional[str]:
        """Safely read a proc file, returning None on error"""
        file_path = self.proc_root / relative_path
        try:
            with open(file_path, 'r') as f:
                return f.read()
        except OSError as e:
            logger.debug(f"Error reading {file_path}: {e}")
            return None
