"""
Parsers for ``top`` batch output and ``nvidia-smi`` CSV output.

Both tools print for humans first, so extraction is best-effort: a field that
cannot be found becomes ``None`` (rendered ``NA``) and never aborts a cycle.
"""
import re
from typing import List, Optional, Pattern

from resmon.core.errors import ParseMiscompare
from resmon.core.models import GpuReading, OsStats
from resmon.utils import WarnOnce, get_logger

logger = get_logger(__name__)
_warn = WarnOnce(logger)


# ═══════════════════════════════════════════════════════════════
#  OS monitor (top)
# ═══════════════════════════════════════════════════════════════

# "%Cpu(s):  2.3 us, ..." (procps-ng) or "Cpu(s):  2.3%us, ..." (older procps)
_CPU_LINE = re.compile(r"^\s*%?Cpu\(s\)\s*:")
# "MiB Mem :  15895.3 total, ..." or "Mem:  16303740k total, ..."
_MEM_LINE = re.compile(r"^\s*(?:[KMGTPE]i?B\s+)?Mem\s*:")
_SWAP_LINE = re.compile(r"^\s*(?:[KMGTPE]i?B\s+)?Swap\s*:")

_NUMBER = r"(\d+(?:\.\d+)?)"


def _suffix_pattern(suffix: str) -> Pattern:
    # number, optional "+" overflow marker, optional unit marker, then the suffix word
    return re.compile(_NUMBER + r"(\+?)[%kKmMgG]?\s*" + re.escape(suffix) + r"\b")


_IDLE = _suffix_pattern("id")
_TOTAL = _suffix_pattern("total")
_USED = _suffix_pattern("used")


def _last_line(lines: List[str], pattern: Pattern, what: str) -> str:
    """Return the last line matching *pattern* (the most recent frame)."""
    for line in reversed(lines):
        if pattern.search(line):
            return line
    raise ParseMiscompare(f"no {what} line in top output")


def _number_before(line: str, pattern: Pattern, what: str) -> float:
    match = pattern.search(line)
    if not match:
        raise ParseMiscompare(f"no {what} figure in {line.strip()!r}")
    if match.group(2):
        # procps-ng 3.3 in KiB mode cuts figures that overflow their column
        # and appends "+"; the leading digits alone are not the value.
        _warn(
            f"truncated:{what}",
            "top truncated the %s figure (%r); reporting NA. "
            "Set os_source: psutil in the settings file on hosts this large.",
            what, match.group(0),
        )
        return None
    return float(match.group(1))


def _extract(lines: List[str], line_pattern: Pattern, value_pattern: Pattern, what: str) -> Optional[float]:
    try:
        line = _last_line(lines, line_pattern, what.split()[0])
        return _number_before(line, value_pattern, what)
    except ParseMiscompare as exc:
        logger.debug("parse miss: %s", exc)
        return None


def parse_os(raw_text: str) -> OsStats:
    """Extract CPU idle%, RAM and swap total/used from ``top -b`` output."""
    lines = (raw_text or "").splitlines()
    return OsStats(
        cpu_idle_pct=_extract(lines, _CPU_LINE, _IDLE, "cpu idle"),
        ram_total=_extract(lines, _MEM_LINE, _TOTAL, "mem total"),
        ram_used=_extract(lines, _MEM_LINE, _USED, "mem used"),
        swap_total=_extract(lines, _SWAP_LINE, _TOTAL, "swap total"),
        swap_used=_extract(lines, _SWAP_LINE, _USED, "swap used"),
    )


# ═══════════════════════════════════════════════════════════════
#  GPU tool (nvidia-smi)
# ═══════════════════════════════════════════════════════════════

_UNSUPPORTED = {"", "notsupported", "n/a", "na", "unknownerror"}

_GPU_LIST_LINE = re.compile(r"^\s*GPU\s+(\d+)\s*:")


def parse_gpu_value(token: str) -> Optional[float]:
    """Convert one CSV token; vendor markers like ``[Not Supported]`` give ``None``."""
    token = token.strip()
    marker = token.strip("[]").replace(" ", "").lower()
    if marker in _UNSUPPORTED:
        return None
    try:
        return float(token)
    except ValueError:
        logger.debug("unexpected GPU value %r", token)
        return None


def parse_gpu(raw_text: str) -> List[GpuReading]:
    """Parse ``index, util, mem, temp`` lines (index optional) in tool order."""
    readings: List[GpuReading] = []
    for line in (raw_text or "").splitlines():
        if not line.strip():
            continue
        parts = [x.strip() for x in line.split(",")]
        position = len(readings)
        if len(parts) >= 4:
            try:
                index = int(parts[0])
            except ValueError:
                index = position
            values = parts[1:4]
        elif len(parts) == 3:
            index = position
            values = parts
        else:
            logger.debug("skipping malformed GPU line %r", line)
            continue
        util, mem, temp = (parse_gpu_value(v) for v in values)
        readings.append(GpuReading(index, util, mem, temp))
    return readings


def parse_gpu_list(raw_text: str) -> List[int]:
    """Return GPU indices from ``nvidia-smi -L`` in enumeration order.

    ``GPU <n>:`` lines give their own index. Any other non-blank line that
    starts in the first column is a device numbered by its position. Indented
    MIG device lines belong to their parent GPU and are skipped.
    """
    indices: List[int] = []
    for line in (raw_text or "").splitlines():
        if not line.strip():
            continue
        match = _GPU_LIST_LINE.match(line)
        if match:
            indices.append(int(match.group(1)))
        elif line[0].isspace():
            logger.debug("ignoring GPU list line %r", line)
        else:
            indices.append(len(indices))
    return indices
