"""Tests for the allocator benchmark bridge"""
import os
import signal
import stat
import sys
import textwrap
from unittest.mock import patch

import pytest

from procfs_exporter.metrics.models import AllocatorPolicy
from procfs_exporter.utils.allocator_bridge import (
    AllocatorBridge,
    BridgeLaunchError,
    BridgeMalformedPayloadError,
    BridgePipeError,
    parse_payload,
)


GOOD_RECORD = "{policy} 1000 0.25 65536 900 12 4096 0.3 0.1\n"


def write_benchmark(path, body):
    """Write an executable script standing in for the benchmark binary"""
    path.write_text(f"#!{sys.executable}\n" + textwrap.dedent(body))
    path.chmod(0o755)
    return path


def record_writer(path, fifo, record):
    return write_benchmark(path, f"""
        import sys
        names = {{"0": "First_Fit", "1": "Best_Fit", "2": "Worst_Fit"}}
        with open({str(fifo)!r}, "w") as fifo:
            fifo.write({record!r}.format(policy=names[sys.argv[1]]))
    """)


class TestParsePayload:
    """Test parsing of benchmark records"""

    def test_parse_payload(self):
        run = parse_payload(GOOD_RECORD.format(policy="First_Fit"))

        assert run.policy == "First_Fit"
        assert run.iterations == 1000
        assert run.time_taken == pytest.approx(0.25)
        assert run.total_allocated == 65536
        assert run.freed_blocks == 900
        assert run.free_blocks == 12
        assert run.free_size == 4096
        assert run.avg_fragmentation == pytest.approx(0.3)
        assert run.external_fragmentation == pytest.approx(0.1)

    @pytest.mark.parametrize("payload", [
        "",
        "First_Fit 1000 0.25 65536",
        "First_Fit 1000 0.25 65536 900 12 4096 0.3 0.1 extra",
        "First_Fit many 0.25 65536 900 12 4096 0.3 0.1",
        "First_Fit 1000 0.25 -1 900 12 4096 0.3 0.1",
        "First_Fit 1000 0.25 65536 900 12 -4096 0.3 0.1",
    ])
    def test_invalid_payload(self, payload):
        with pytest.raises(BridgeMalformedPayloadError):
            parse_payload(payload)


class TestAllocatorBridge:
    """Run the bridge against generated benchmark scripts"""

    def setup_method(self):
        self.bridge = None

    def teardown_method(self):
        if self.bridge is not None:
            self.bridge.close()

    def make_bridge(self, tmp_path, binary, timeout=10.0):
        self.bridge = AllocatorBridge(binary, tmp_path / "fifo", timeout=timeout)
        return self.bridge

    def test_run_stores_record(self, tmp_path):
        binary = record_writer(tmp_path / "benchmark", tmp_path / "fifo", GOOD_RECORD)
        bridge = self.make_bridge(tmp_path, binary)

        record = bridge.run(AllocatorPolicy.BEST_FIT)

        assert record.policy == "Best_Fit"
        assert record.iterations == 1000
        assert bridge.records[AllocatorPolicy.BEST_FIT] == record
        assert stat.S_ISFIFO(os.stat(tmp_path / "fifo").st_mode)

    def test_policy_mismatch_is_stored_under_requested_policy(self, tmp_path):
        binary = record_writer(tmp_path / "benchmark", tmp_path / "fifo",
                               "Worst_Fit 1 0.5 10 1 1 10 0.0 0.0\n")
        bridge = self.make_bridge(tmp_path, binary)

        record = bridge.run(AllocatorPolicy.FIRST_FIT)

        assert record.policy == "Worst_Fit"
        assert bridge.records == {AllocatorPolicy.FIRST_FIT: record}

    def test_malformed_payload_keeps_previous_record(self, tmp_path):
        good = record_writer(tmp_path / "good", tmp_path / "fifo", GOOD_RECORD)
        bad = record_writer(tmp_path / "bad", tmp_path / "fifo", "{policy} 1000 not-a-record\n")
        bridge = self.make_bridge(tmp_path, good)
        previous = bridge.run(AllocatorPolicy.FIRST_FIT)

        bridge.binary = bad
        with pytest.raises(BridgeMalformedPayloadError):
            bridge.run(AllocatorPolicy.FIRST_FIT)

        assert bridge.records[AllocatorPolicy.FIRST_FIT] == previous

    def test_missing_binary_raises_launch_error(self, tmp_path):
        bridge = self.make_bridge(tmp_path, tmp_path / "does-not-exist")

        with pytest.raises(BridgeLaunchError):
            bridge.run(AllocatorPolicy.FIRST_FIT)

        assert bridge.records == {}

    def test_exit_without_record_raises_pipe_error(self, tmp_path):
        binary = write_benchmark(tmp_path / "benchmark", """
            import sys
            sys.exit(3)
        """)
        bridge = self.make_bridge(tmp_path, binary)

        with pytest.raises(BridgePipeError):
            bridge.run(AllocatorPolicy.FIRST_FIT)

    def test_hung_benchmark_times_out(self, tmp_path):
        binary = write_benchmark(tmp_path / "benchmark", """
            import time
            time.sleep(30)
        """)
        bridge = self.make_bridge(tmp_path, binary, timeout=0.5)

        with pytest.raises(BridgePipeError, match="within"):
            bridge.run(AllocatorPolicy.FIRST_FIT)

    def test_reader_blocked_by_inherited_writer_is_abandoned(self, tmp_path):
        pid_file = tmp_path / "holder.pid"
        binary = write_benchmark(tmp_path / "benchmark", f"""
            import os
            import subprocess
            import sys
            fd = os.open({str(tmp_path / "fifo")!r}, os.O_WRONLY)
            holder = subprocess.Popen([sys.executable, "-c", "import time; time.sleep(30)"], pass_fds=[fd])
            with open({str(pid_file)!r}, "w") as f:
                f.write(str(holder.pid))
        """)
        bridge = self.make_bridge(tmp_path, binary)
        stuck_executor = bridge._executor

        try:
            with patch("procfs_exporter.utils.allocator_bridge.REAP_TIMEOUT", 0.5), \
                    patch("procfs_exporter.utils.allocator_bridge.logger") as mock_logger:
                with pytest.raises(BridgePipeError, match="without writing a record"):
                    bridge.run(AllocatorPolicy.FIRST_FIT)

            assert bridge._executor is not stuck_executor
            assert mock_logger.warning.call_args[1]["event_type"] == "allocator_reader_leak"
        finally:
            if pid_file.exists():
                os.kill(int(pid_file.read_text()), signal.SIGKILL)

    def test_bridge_usable_after_failure(self, tmp_path):
        binary = write_benchmark(tmp_path / "benchmark", """
            import sys
            sys.exit(1)
        """)
        bridge = self.make_bridge(tmp_path, binary)
        with pytest.raises(BridgePipeError):
            bridge.run(AllocatorPolicy.WORST_FIT)

        bridge.binary = record_writer(tmp_path / "good", tmp_path / "fifo", GOOD_RECORD)
        record = bridge.run(AllocatorPolicy.WORST_FIT)

        assert record.policy == "Worst_Fit"

    def test_fifo_path_that_is_not_a_fifo(self, tmp_path):
        (tmp_path / "fifo").write_text("regular file")
        bridge = self.make_bridge(tmp_path, tmp_path / "benchmark")

        with pytest.raises(BridgePipeError):
            bridge.run(AllocatorPolicy.FIRST_FIT)
