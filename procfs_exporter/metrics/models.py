"""Metric data models"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class AllocatorPolicy(Enum):
    """Placement strategies exercised by the allocator benchmark"""
    FIRST_FIT = "First_Fit"
    BEST_FIT = "Best_Fit"
    WORST_FIT = "Worst_Fit"

    @property
    def token(self) -> str:
        """Command-line argument selecting this policy in the benchmark binary"""
        return _POLICY_TOKENS[self]


_POLICY_TOKENS = {
    AllocatorPolicy.FIRST_FIT: "0",
    AllocatorPolicy.BEST_FIT: "1",
    AllocatorPolicy.WORST_FIT: "2",
}


class MetricKind(Enum):
    """Metric names accepted in the configuration file"""
    CPU_USAGE = "cpu_usage"
    MEMORY_USAGE = "memory_usage"
    DISK_USAGE = "disk_usage"
    NETWORK_USAGE = "network_usage"
    RUNNING_PROCESSES = "running_processes"
    CONTEXT_SWITCHES = "context_switches"
    FIRST_FIT = "First_Fit"
    BEST_FIT = "Best_Fit"
    WORST_FIT = "Worst_Fit"

    @classmethod
    def from_name(cls, name: str) -> Optional["MetricKind"]:
        """Decode a configured metric name, None if it is not recognised"""
        try:
            return cls(name)
        except ValueError:
            return None

    @property
    def policy(self) -> Optional[AllocatorPolicy]:
        """Allocator policy for benchmark kinds, None for kernel metrics"""
        try:
            return AllocatorPolicy(self.value)
        except ValueError:
            return None


# Order in which a tick samples the enabled kinds
SAMPLING_ORDER = list(MetricKind)


@dataclass
class MetricValue:
    """Represents a single gauge sample"""
    name: str
    value: float
    help_text: str
    labels: Dict[str, str] = field(default_factory=dict)


class ReadStatus(Enum):
    """Outcome of reading a kernel source"""
    SUCCESS = "success"
    UNAVAILABLE = "unavailable"
    MALFORMED = "malformed"


@dataclass
class ReadResult:
    """Result of a reader call: a snapshot plus a success/failure indicator"""
    status: ReadStatus
    data: Any = None
    errors: List[str] = field(default_factory=list)

    @property
    def is_success(self) -> bool:
        return self.status == ReadStatus.SUCCESS

    @classmethod
    def success(cls, data: Any, errors: Optional[List[str]] = None) -> "ReadResult":
        return cls(status=ReadStatus.SUCCESS, data=data, errors=errors or [])

    @classmethod
    def unavailable(cls, reason: str) -> "ReadResult":
        return cls(status=ReadStatus.UNAVAILABLE, errors=[reason])

    @classmethod
    def malformed(cls, reason: str) -> "ReadResult":
        return cls(status=ReadStatus.MALFORMED, errors=[reason])


@dataclass(frozen=True)
class CpuTimes:
    """Cumulative tick counts from the aggregate cpu line of /proc/stat"""
    user: int
    nice: int
    system: int
    idle: int
    iowait: int
    irq: int
    softirq: int
    steal: int

    @property
    def idle_total(self) -> int:
        return self.idle + self.iowait

    @property
    def non_idle(self) -> int:
        return self.user + self.nice + self.system + self.irq + self.softirq + self.steal

    @property
    def total(self) -> int:
        return self.idle_total + self.non_idle


@dataclass(frozen=True)
class CpuUsage:
    percent: float


@dataclass(frozen=True)
class MemoryInfo:
    """Raw /proc/meminfo values in kB, taken from a single read"""
    total_kb: int
    available_kb: int
    free_kb: Optional[int] = None


@dataclass(frozen=True)
class MemoryUsage:
    percent: float
    total_mb: float
    used_mb: float
    available_mb: float
    fragmentation_percent: Optional[float] = None


@dataclass(frozen=True)
class DiskUsage:
    device: str
    read_time_ms: int
    write_time_ms: int
    io_in_progress: int
    io_time_ms: int


@dataclass(frozen=True)
class NetworkUsage:
    interface: str
    rx_bytes: int
    tx_bytes: int
    rx_errors: int
    tx_errors: int
    rx_dropped: int
    tx_dropped: int


@dataclass(frozen=True)
class RunningProcesses:
    count: int


@dataclass(frozen=True)
class ContextSwitches:
    count: int


@dataclass(frozen=True)
class AllocatorRun:
    """One result record written by the allocator benchmark"""
    policy: str
    iterations: int
    time_taken: float
    total_allocated: int
    freed_blocks: int
    free_blocks: int
    free_size: int
    avg_fragmentation: float
    external_fragmentation: float
