"""Fixture /proc trees for reader, collector and server tests"""
from pathlib import Path
from typing import Dict

PROC_STAT = """cpu  100 0 50 800 50 0 0 0 0 0
cpu0 50 0 25 400 25 0 0 0 0 0
intr 12345 0 0 0
ctxt 987654
btime 1700000000
processes 4321
procs_running 3
procs_blocked 0
"""

# Ticks from the first snapshot advanced by 50, 30 of them idle
PROC_STAT_NEXT = PROC_STAT.replace(
    "cpu  100 0 50 800 50 0 0 0 0 0",
    "cpu  110 0 60 820 60 0 0 0 0 0"
)

MEMINFO = """MemTotal:       16384000 kB
MemFree:         4096000 kB
MemAvailable:    8192000 kB
Buffers:          512000 kB
Cached:          3072000 kB
"""

DISKSTATS = """   7       0 loop0 50 0 400 12 0 0 0 0 0 20 12 0 0 0 0
   8       0 sda 1000 10 20000 345 2000 20 40000 678 2 900 1100 0 0 0 0
   8       1 sda1 900 10 18000 300 1900 20 38000 600 0 800 950 0 0 0 0
"""

NET_DEV = """Inter-|   Receive                                                |  Transmit
 face |bytes    packets errs drop fifo frame compressed multicast|bytes    packets errs drop fifo colls carrier compressed
    lo:    1000      10    0    0    0     0          0         0     1000      10    0    0    0     0       0          0
  eth0:    5000      50    1    2    0     0          0         0     7000      70    3    4    0     0       0          0
"""


def write_proc_files(root: Path, files: Dict[str, str]) -> Path:
    """Write proc-relative files under root"""
    for relative_path, content in files.items():
        path = root / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return root


def make_proc_tree(root: Path) -> Path:
    """Write a complete fixture /proc tree under root"""
    return write_proc_files(root, {
        "stat": PROC_STAT,
        "meminfo": MEMINFO,
        "diskstats": DISKSTATS,
        "net/dev": NET_DEV,
    })
