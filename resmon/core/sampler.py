"""
Sampler - runs ``top`` and ``nvidia-smi`` once per cycle and captures their
raw text.  psutil can stand in for ``top`` (``os_source`` setting).

A tool that is missing, fails, or times out degrades to empty output for that
cycle; the failure is logged once per distinct reason.
"""
import os
import shutil
import signal
import subprocess
from typing import List, Optional, Sequence, Tuple

import psutil

from resmon._config import (
    TOP_COMMAND, GPU_COMMAND, TOP_FRAMES, GPU_QUERY_FIELDS, GPU_FORMAT, OS_SOURCES,
)
from resmon.core.errors import DataSourceUnavailable
from resmon.core.models import GpuReading, OsStats
from resmon.core.parser import parse_gpu, parse_os
from resmon.utils import get_logger, WarnOnce

logger = get_logger(__name__)

_STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def _prepare_env():
    """Child environment with the C locale so numbers print with ``.`` decimals."""
    env = os.environ.copy()
    env["LC_ALL"] = "C"
    env["LANG"] = "C"
    return env


class Sampler:
    def __init__(
        self,
        top_command: str = TOP_COMMAND,
        gpu_command: str = GPU_COMMAND,
        os_source: str = "top",
        timeout: Optional[float] = None,
    ):
        if os_source not in OS_SOURCES:
            raise ValueError(f"os_source must be one of {OS_SOURCES}, got {os_source!r}")
        if os_source == "auto":
            os_source = "top" if shutil.which(top_command) else "psutil"
            logger.info("OS source resolved to %s", os_source)
        self.top_command = top_command
        self.gpu_command = gpu_command
        self.os_source = os_source
        self.timeout = timeout
        self._warn = WarnOnce(logger)

    # ── Commands ─────────────────────────────────────────────

    def top_args(self, top_delay: float) -> List[str]:
        return [self.top_command, "-b", "-n", str(TOP_FRAMES), "-d", f"{top_delay:.2f}"]

    def gpu_args(self) -> List[str]:
        return [self.gpu_command, f"--query-gpu={GPU_QUERY_FIELDS}", f"--format={GPU_FORMAT}"]

    def gpu_list_args(self) -> List[str]:
        return [self.gpu_command, "-L"]

    def _run(self, args: Sequence[str]) -> str:
        """Run *args* and return stdout; raise ``DataSourceUnavailable`` on any failure."""
        tool = args[0]
        try:
            proc = subprocess.run(
                list(args),
                capture_output=True,
                text=True,
                env=_prepare_env(),
                timeout=self.timeout,
            )
        except FileNotFoundError:
            raise DataSourceUnavailable(tool, "not found")
        except subprocess.TimeoutExpired:
            raise DataSourceUnavailable(tool, f"timed out after {self.timeout}s")
        except OSError as exc:
            raise DataSourceUnavailable(tool, str(exc))
        if proc.returncode < 0 and -proc.returncode in _STOP_SIGNALS:
            name = signal.Signals(-proc.returncode).name
            raise DataSourceUnavailable(tool, f"killed by {name}", interrupted=True)
        if proc.returncode != 0:
            detail = (proc.stderr or proc.stdout or "").strip().splitlines()
            reason = f"exit code {proc.returncode}"
            if detail:
                reason += f" ({detail[0]})"
            raise DataSourceUnavailable(tool, reason)
        return proc.stdout

    def _run_or_empty(self, args: Sequence[str]) -> str:
        try:
            return self._run(args)
        except DataSourceUnavailable as exc:
            if exc.interrupted:
                logger.debug("%s; stopping", exc)
                return ""
            self._warn(str(exc), "Data source unavailable, reporting NA: %s", exc)
            return ""

    # ── Public API ───────────────────────────────────────────

    def collect(self, top_delay: float) -> Tuple[str, str]:
        """Return ``(raw_os_text, raw_gpu_text)``; blocks for about *top_delay* seconds."""
        raw_os = self._run_or_empty(self.top_args(top_delay))
        raw_gpu = self._run_or_empty(self.gpu_args())
        return raw_os, raw_gpu

    def list_gpus(self) -> str:
        """Raw ``nvidia-smi -L`` output, empty when the tool is unavailable."""
        return self._run_or_empty(self.gpu_list_args())

    def read_psutil(self, top_delay: float) -> OsStats:
        cpu = psutil.cpu_times_percent(interval=top_delay if top_delay > 0 else None)
        mem = psutil.virtual_memory()
        swap = psutil.swap_memory()
        return OsStats(
            cpu_idle_pct=cpu.idle,
            ram_total=mem.total,
            ram_used=mem.used,
            swap_total=swap.total,
            swap_used=swap.used,
        )

    def sample(self, top_delay: float) -> Tuple[OsStats, List[GpuReading]]:
        """Collect and parse one cycle's OS and GPU figures."""
        if self.os_source == "psutil":
            os_stats = self.read_psutil(top_delay)
            raw_gpu = self._run_or_empty(self.gpu_args())
        else:
            raw_os, raw_gpu = self.collect(top_delay)
            os_stats = parse_os(raw_os)
        return os_stats, parse_gpu(raw_gpu)
