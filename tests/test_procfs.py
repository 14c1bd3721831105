"""Tests for the /proc readers"""
import pytest

from procfs_exporter.collectors.procfs import ProcReader
from procfs_exporter.metrics.models import (
    ContextSwitches,
    CpuTimes,
    DiskUsage,
    MemoryInfo,
    ReadStatus,
    RunningProcesses,
)
from helpers import NET_DEV, write_proc_files


class TestCpuTimes:
    """Test the aggregate cpu line of /proc/stat"""

    def test_read_cpu_times(self, proc_root):
        result = ProcReader(proc_root).read_cpu_times()

        assert result.is_success
        assert result.data == CpuTimes(100, 0, 50, 800, 50, 0, 0, 0)
        assert result.data.total == 1000
        assert result.data.idle_total == 850

    def test_short_cpu_line_is_malformed(self, proc_root):
        write_proc_files(proc_root, {"stat": "cpu  100 0 50 800 50\nctxt 10\n"})

        result = ProcReader(proc_root).read_cpu_times()

        assert result.status == ReadStatus.MALFORMED
        assert result.data is None

    def test_non_numeric_cpu_line_is_malformed(self, proc_root):
        write_proc_files(proc_root, {"stat": "cpu  100 0 fifty 800 50 0 0 0\n"})

        assert ProcReader(proc_root).read_cpu_times().status == ReadStatus.MALFORMED

    def test_per_cpu_lines_are_not_aggregate(self, proc_root):
        write_proc_files(proc_root, {"stat": "cpu0 100 0 50 800 50 0 0 0\n"})

        assert ProcReader(proc_root).read_cpu_times().status == ReadStatus.UNAVAILABLE

    def test_missing_stat_is_unavailable(self, tmp_path):
        result = ProcReader(tmp_path / "missing").read_cpu_times()

        assert result.status == ReadStatus.UNAVAILABLE
        assert result.errors


class TestMeminfo:
    """Test /proc/meminfo parsing"""

    def test_read_meminfo(self, proc_root):
        result = ProcReader(proc_root).read_meminfo()

        assert result.is_success
        assert result.data == MemoryInfo(total_kb=16384000, available_kb=8192000, free_kb=4096000)

    def test_memfree_is_optional(self, proc_root):
        write_proc_files(proc_root, {"meminfo": "MemTotal: 2048 kB\nMemAvailable: 1024 kB\n"})

        result = ProcReader(proc_root).read_meminfo()

        assert result.is_success
        assert result.data.free_kb is None

    def test_zero_total_is_unavailable(self, proc_root):
        write_proc_files(proc_root, {"meminfo": "MemTotal: 0 kB\nMemAvailable: 1024 kB\n"})

        assert ProcReader(proc_root).read_meminfo().status == ReadStatus.UNAVAILABLE

    def test_missing_available_is_unavailable(self, proc_root):
        write_proc_files(proc_root, {"meminfo": "MemTotal: 2048 kB\nMemFree: 1024 kB\n"})

        result = ProcReader(proc_root).read_meminfo()

        assert result.status == ReadStatus.UNAVAILABLE
        assert "MemAvailable" in result.errors[0]

    def test_unparseable_value_is_malformed(self, proc_root):
        write_proc_files(proc_root, {"meminfo": "MemTotal: lots kB\nMemAvailable: 1024 kB\n"})

        assert ProcReader(proc_root).read_meminfo().status == ReadStatus.MALFORMED


class TestDiskstats:
    """Test /proc/diskstats parsing"""

    def test_read_disk(self, proc_root):
        result = ProcReader(proc_root, "sda").read_disk()

        assert result.is_success
        assert result.data == DiskUsage(
            device="sda",
            read_time_ms=345,
            write_time_ms=678,
            io_in_progress=2,
            io_time_ms=900
        )

    def test_device_is_matched_by_substring(self, proc_root):
        write_proc_files(proc_root, {
            "diskstats": " 259       0 nvme0n1 10 0 80 5 20 0 160 7 1 12 13\n"
        })

        result = ProcReader(proc_root, "nvme").read_disk()

        assert result.is_success
        assert result.data.device == "nvme0n1"
        assert result.data.io_time_ms == 12

    def test_missing_device_is_unavailable(self, proc_root):
        result = ProcReader(proc_root, "vdb").read_disk()

        assert result.status == ReadStatus.UNAVAILABLE
        assert result.data is None
        assert result.errors == ["Device vdb not found in /proc/diskstats"]

    def test_short_line_is_malformed(self, proc_root):
        write_proc_files(proc_root, {"diskstats": "   8       0 sda 1000 10 20000\n"})

        assert ProcReader(proc_root, "sda").read_disk().status == ReadStatus.MALFORMED


class TestNetDev:
    """Test /proc/net/dev parsing"""

    def test_read_network(self, proc_root):
        result = ProcReader(proc_root).read_network()

        assert result.is_success
        assert [iface.interface for iface in result.data] == ["lo", "eth0"]

        eth0 = result.data[1]
        assert eth0.rx_bytes == 5000
        assert eth0.rx_errors == 1
        assert eth0.rx_dropped == 2
        assert eth0.tx_bytes == 7000
        assert eth0.tx_errors == 3
        assert eth0.tx_dropped == 4

    def test_malformed_interface_is_skipped(self, proc_root):
        write_proc_files(proc_root, {"net/dev": NET_DEV + "  bad0: 1 2\n"})

        result = ProcReader(proc_root).read_network()

        assert result.is_success
        assert len(result.data) == 2
        assert len(result.errors) == 1

    def test_headers_only_is_unavailable(self, proc_root):
        headers = "".join(NET_DEV.splitlines(keepends=True)[:2])
        write_proc_files(proc_root, {"net/dev": headers})

        assert ProcReader(proc_root).read_network().status == ReadStatus.UNAVAILABLE

    def test_only_malformed_interfaces_is_malformed(self, proc_root):
        headers = "".join(NET_DEV.splitlines(keepends=True)[:2])
        write_proc_files(proc_root, {"net/dev": headers + "  bad0: 1 2\n"})

        assert ProcReader(proc_root).read_network().status == ReadStatus.MALFORMED


class TestStatCounters:
    """Test the procs_running and ctxt lines of /proc/stat"""

    def test_read_running_processes(self, proc_root):
        result = ProcReader(proc_root).read_running_processes()

        assert result.is_success
        assert result.data == RunningProcesses(count=3)

    @pytest.mark.parametrize("content", [
        "procs_running 0\nctxt 5\n",
        "ctxt 5\n",
    ])
    def test_zero_or_missing_running_processes_is_unavailable(self, proc_root, content):
        write_proc_files(proc_root, {"stat": content})

        assert ProcReader(proc_root).read_running_processes().status == ReadStatus.UNAVAILABLE

    def test_read_context_switches(self, proc_root):
        result = ProcReader(proc_root).read_context_switches()

        assert result.is_success
        assert result.data == ContextSwitches(count=987654)

    def test_unparseable_context_switches_is_malformed(self, proc_root):
        write_proc_files(proc_root, {"stat": "ctxt many\n"})

        assert ProcReader(proc_root).read_context_switches().status == ReadStatus.MALFORMED
