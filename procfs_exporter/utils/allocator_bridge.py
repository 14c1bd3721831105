"""Bridge to the external allocator benchmark.

The benchmark is a separate program. It is started with a single argument
selecting the placement policy and writes one whitespace-separated record
to a well-known FIFO:

    <policy_name> <iterations> <time_taken> <total_allocated> <freed_blocks>
    <free_blocks> <free_size> <avg_fragmentation> <external_fragmentation>

Every run forks a process and blocks on the FIFO, so a run is slow and is
only ever made from the sampling thread. The optional timeout bounds how
long a hung benchmark can stall that thread.
"""
import os
import stat
import subprocess
import threading
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from pathlib import Path
from typing import Dict, Optional, Union

from procfs_exporter.metrics.models import AllocatorPolicy, AllocatorRun
from procfs_exporter.logging_config import get_logger, log_allocator_run


logger = get_logger(__name__)

PAYLOAD_FIELD_COUNT = 9
POLL_INTERVAL = 0.1
REAP_TIMEOUT = 10.0


class BridgeError(Exception):
    """Base error for allocator benchmark runs"""


class BridgeLaunchError(BridgeError):
    """The benchmark process could not be started"""


class BridgePipeError(BridgeError):
    """The FIFO could not be created or opened, or no record arrived in time"""


class BridgeMalformedPayloadError(BridgeError):
    """The FIFO payload is not a valid nine-field record"""


def parse_payload(payload: str) -> AllocatorRun:
    """Parse one benchmark record"""
    fields = payload.split()
    if len(fields) != PAYLOAD_FIELD_COUNT:
        raise BridgeMalformedPayloadError(
            f"Expected {PAYLOAD_FIELD_COUNT} fields, got {len(fields)}: {payload.strip()!r}"
        )

    try:
        run = AllocatorRun(
            policy=fields[0],
            iterations=int(fields[1]),
            time_taken=float(fields[2]),
            total_allocated=int(fields[3]),
            freed_blocks=int(fields[4]),
            free_blocks=int(fields[5]),
            free_size=int(fields[6]),
            avg_fragmentation=float(fields[7]),
            external_fragmentation=float(fields[8])
        )
    except ValueError as e:
        raise BridgeMalformedPayloadError(f"Could not parse record {payload.strip()!r}: {e}") from e

    if run.total_allocated < 0 or run.free_size < 0:
        raise BridgeMalformedPayloadError(f"Negative byte count in record {payload.strip()!r}")
    return run


class AllocatorBridge:
    """Run the benchmark for a policy and collect its result record"""

    def __init__(self, binary: Union[str, Path], fifo_path: Union[str, Path] = "/tmp/my_fifo",
                 timeout: Optional[float] = 60.0):
        self.binary = Path(binary)
        self.fifo_path = Path(fifo_path)
        self.timeout = timeout
        self.records: Dict[AllocatorPolicy, AllocatorRun] = {}
        # The FIFO is shared, so only one run may be in flight
        self._lock = threading.Lock()
        self._executor = self._new_executor()

    def run(self, policy: AllocatorPolicy) -> AllocatorRun:
        """Run the benchmark once; the previous record is kept on any failure"""
        with self._lock:
            self._ensure_fifo()
            start_time = time.monotonic()

            try:
                process = subprocess.Popen(
                    [str(self.binary), policy.token],
                    stdin=subprocess.DEVNULL
                )
            except OSError as e:
                raise BridgeLaunchError(f"Could not start {self.binary}: {e}") from e

            try:
                payload = self._read_record(process)
            except BridgeError:
                self._kill(process)
                raise
            self._reap(process, policy)

            record = parse_payload(payload)
            if record.policy != policy.value:
                logger.warning(
                    "Benchmark reported a different policy",
                    requested=policy.value,
                    reported=record.policy,
                    event_type="allocator_policy_mismatch"
                )

            self.records[policy] = record
            log_allocator_run(logger, policy.value, record, time.monotonic() - start_time)
            return record

    def close(self):
        """Stop the FIFO reader thread"""
        self._executor.shutdown(wait=False)

    def _ensure_fifo(self):
        try:
            mode = os.stat(self.fifo_path).st_mode
        except FileNotFoundError:
            try:
                os.mkfifo(self.fifo_path, 0o666)
            except OSError as e:
                raise BridgePipeError(f"Could not create FIFO {self.fifo_path}: {e}") from e
            return
        except OSError as e:
            raise BridgePipeError(f"Could not stat FIFO {self.fifo_path}: {e}") from e

        if not stat.S_ISFIFO(mode):
            raise BridgePipeError(f"{self.fifo_path} exists and is not a FIFO")

    def _read_fifo(self) -> str:
        # Blocks until the benchmark opens the write end, then reads to EOF
        with open(self.fifo_path, "r") as fifo:
            return fifo.read()

    def _read_record(self, process: subprocess.Popen) -> str:
        future = self._executor.submit(self._read_fifo)
        deadline = None if self.timeout is None else time.monotonic() + self.timeout

        while True:
            try:
                return future.result(timeout=POLL_INTERVAL)
            except FuturesTimeoutError:
                pass
            except OSError as e:
                raise BridgePipeError(f"Could not read FIFO {self.fifo_path}: {e}") from e

            if process.poll() is not None:
                # Benchmark is gone; the reader sees EOF once nothing holds the write end
                payload = self._drain_reader(future)
                if not payload:
                    raise BridgePipeError(
                        f"Benchmark exited with code {process.returncode} without writing a record"
                    )
                return payload

            if deadline is not None and time.monotonic() >= deadline:
                self._kill(process)
                self._drain_reader(future)
                raise BridgePipeError(f"No record on {self.fifo_path} within {self.timeout}s")

    def _drain_reader(self, future) -> Optional[str]:
        """Release the reader thread and return whatever it read, None if it never finished.

        A reader still blocked after REAP_TIMEOUT, typically because another
        process inherited the write end, is abandoned together with its
        executor so later runs get a fresh worker.
        """
        give_up = time.monotonic() + REAP_TIMEOUT
        while time.monotonic() < give_up:
            self._release_reader()
            try:
                return future.result(timeout=POLL_INTERVAL)
            except FuturesTimeoutError:
                continue
            except OSError as e:
                raise BridgePipeError(f"Could not read FIFO {self.fifo_path}: {e}") from e

        logger.warning(
            "FIFO reader still blocked, abandoning it",
            fifo=str(self.fifo_path),
            wait_seconds=REAP_TIMEOUT,
            event_type="allocator_reader_leak"
        )
        self._executor.shutdown(wait=False)
        self._executor = self._new_executor()
        return None

    @staticmethod
    def _new_executor() -> ThreadPoolExecutor:
        return ThreadPoolExecutor(max_workers=1, thread_name_prefix="allocator_fifo")

    def _release_reader(self):
        """Unblock a reader stuck in open() by briefly holding the write end"""
        try:
            fd = os.open(self.fifo_path, os.O_WRONLY | os.O_NONBLOCK)
        except OSError:
            # No reader waiting
            return
        os.close(fd)

    def _reap(self, process: subprocess.Popen, policy: AllocatorPolicy):
        try:
            returncode = process.wait(timeout=REAP_TIMEOUT)
        except subprocess.TimeoutExpired:
            logger.warning(
                "Benchmark still running after writing its record, killing it",
                policy=policy.value,
                pid=process.pid,
                event_type="allocator_kill"
            )
            self._kill(process)
            return

        if returncode != 0:
            logger.warning(
                "Benchmark exited with non-zero status",
                policy=policy.value,
                returncode=returncode,
                event_type="allocator_exit_status"
            )

    def _kill(self, process: subprocess.Popen):
        if process.poll() is None:
            process.kill()
        process.wait()
