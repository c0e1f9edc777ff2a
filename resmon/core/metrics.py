"""
Derived percentages and ``Sample`` assembly.

Arithmetic is done in ``Decimal`` so ``100 - 85.3`` is exactly ``14.7``;
rounding is half-up to one decimal.
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Iterable, Optional

from resmon.core.models import GpuReading, OsStats, Sample, Schema

_ONE_DECIMAL = Decimal("0.1")
_HUNDRED = Decimal(100)


def _dec(value: float) -> Decimal:
    return Decimal(str(value))


def round_half_up(value: Decimal) -> float:
    return float(value.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


def cpu_usage_pct(idle_pct: Optional[float]) -> Optional[float]:
    if idle_pct is None:
        return None
    return round_half_up(_HUNDRED - _dec(idle_pct))


def usage_pct(used: Optional[float], total: Optional[float]) -> Optional[float]:
    """``100 * used / total`` to one decimal; ``None`` when unknown or total is zero."""
    if used is None or total is None:
        return None
    try:
        return round_half_up(_HUNDRED * _dec(used) / _dec(total))
    except (ZeroDivisionError, InvalidOperation):
        return None


def align_gpus(readings: Iterable[GpuReading], schema: Schema) -> tuple:
    """Order readings by the schema's GPU indices.

    GPUs missing from this cycle's output become all-NA readings; GPUs that
    were not present at startup are dropped.
    """
    by_index = {}
    for reading in readings:
        by_index.setdefault(reading.gpu_index, reading)
    return tuple(by_index.get(idx, GpuReading(idx)) for idx in schema.gpu_indices)


def build_sample(timestamp: float, os_stats: OsStats, gpus: Iterable[GpuReading], schema: Schema) -> Sample:
    return Sample(
        timestamp=timestamp,
        cpu_usage_pct=cpu_usage_pct(os_stats.cpu_idle_pct),
        ram_usage_pct=usage_pct(os_stats.ram_used, os_stats.ram_total),
        swap_usage_pct=usage_pct(os_stats.swap_used, os_stats.swap_total),
        gpus=align_gpus(gpus, schema),
    )
