"""
Shared fixtures for resmon tests - literal tool outputs and fake collaborators.
"""
import pytest

from resmon._config import ENV_KEY_SETTINGS
from resmon.core.models import GpuReading, OsStats
from resmon.utils import settings


# Two frames from procps-ng top; the second frame is the one that counts.
TOP_OUTPUT = """\
top - 10:15:01 up 3 days,  2:11,  1 user,  load average: 0.52, 0.41, 0.38
Tasks: 312 total,   1 running, 311 sleeping,   0 stopped,   0 zombie
%Cpu(s):  6.1 us,  1.9 sy,  0.0 ni, 91.6 id,  0.3 wa,  0.0 hi,  0.1 si,  0.0 st
MiB Mem :  31842.7 total,  12011.3 free,   9020.4 used,  10811.0 buff/cache
MiB Swap:   2048.0 total,   1536.0 free,    512.0 used.  22105.6 avail Mem

    PID USER      PR  NI    VIRT    RES    SHR S  %CPU  %MEM     TIME+ COMMAND
   1234 alice     20   0 5123456 812344  65432 S  12.5   2.5  10:01.22 python

top - 10:15:02 up 3 days,  2:11,  1 user,  load average: 0.52, 0.41, 0.38
Tasks: 312 total,   2 running, 310 sleeping,   0 stopped,   0 zombie
%Cpu(s): 12.2 us,  2.5 sy,  0.0 ni, 85.3 id,  0.0 wa,  0.0 hi,  0.0 si,  0.0 st
MiB Mem :  31842.7 total,  11000.0 free,  10000.0 used,  10842.7 buff/cache
MiB Swap:   2048.0 total,   1024.0 free,   1024.0 used.  21000.0 avail Mem

    PID USER      PR  NI    VIRT    RES    SHR S  %CPU  %MEM     TIME+ COMMAND
   1234 alice     20   0 5123456 812344  65432 R  99.7   2.5  10:02.22 python
"""

# procps 3.2 style (CentOS 6 era)
TOP_OUTPUT_LEGACY = """\
top - 09:00:00 up 10 days,  1:00,  2 users,  load average: 0.00, 0.01, 0.05
Tasks: 150 total,   1 running, 149 sleeping,   0 stopped,   0 zombie
Cpu(s):  3.2%us,  1.0%sy,  0.0%ni, 95.1%id,  0.7%wa,  0.0%hi,  0.0%si,  0.0%st
Mem:  16303740k total,  4075935k used, 12227805k free,   302340k buffers
Swap:  8388604k total,        0k used,  8388604k free,  2018384k cached
"""

GPU_OUTPUT = """\
0, 45, 60, 72
1, [Not Supported], 10, 55
"""

GPU_LIST_OUTPUT = """\
GPU 0: NVIDIA A100-SXM4-40GB (UUID: GPU-5e0c4a3b-1111-2222-3333-444455556666)
GPU 1: NVIDIA A100-SXM4-40GB (UUID: GPU-9a8b7c6d-1111-2222-3333-444455556666)
"""


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point the settings file at a path that does not exist."""
    monkeypatch.setenv(ENV_KEY_SETTINGS, str(tmp_path / "missing.yaml"))
    settings.reload_settings()
    yield
    settings.reload_settings()


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeSampler:
    """Stands in for ``Sampler``; each ``sample`` costs *cost* seconds on the clock."""

    def __init__(self, clock=None, cost: float = 0.0, gpu_indices=(0, 1), os_stats=None, gpus=None):
        self.clock = clock
        self.cost = cost
        self.gpu_indices = gpu_indices
        self.os_stats = os_stats or OsStats(85.3, 1000.0, 250.0, 0.0, 0.0)
        self.gpus = gpus if gpus is not None else [
            GpuReading(0, 45.0, 60.0, 72.0),
            GpuReading(1, None, 10.0, 55.0),
        ]
        self.delays = []

    def list_gpus(self) -> str:
        return "".join(f"GPU {i}: Fake GPU (UUID: GPU-{i})\n" for i in self.gpu_indices)

    def sample(self, top_delay: float):
        self.delays.append(top_delay)
        if self.clock is not None:
            self.clock.now += self.cost
        return self.os_stats, list(self.gpus)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def fake_sampler(clock):
    return FakeSampler(clock=clock, cost=0.3)
