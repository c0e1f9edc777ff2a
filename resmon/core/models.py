"""
Data model shared by the sampling pipeline.

``RunConfig`` and ``Schema`` are built once before the loop; a ``Sample``
lives for exactly one cycle.
"""
from dataclasses import dataclass, field, fields
from typing import List, Optional, Tuple

from resmon._config import DEFAULT_INTERVAL, GPU_METRICS


@dataclass(frozen=True)
class GpuReading:
    gpu_index: int
    utilization_pct: Optional[float] = None
    memory_pct: Optional[float] = None
    temperature_celsius: Optional[float] = None

    def values(self) -> Tuple[Optional[float], Optional[float], Optional[float]]:
        return (self.utilization_pct, self.memory_pct, self.temperature_celsius)


@dataclass(frozen=True)
class OsStats:
    """Raw figures scraped from the OS monitor; ``None`` means not found."""
    cpu_idle_pct: Optional[float] = None
    ram_total: Optional[float] = None
    ram_used: Optional[float] = None
    swap_total: Optional[float] = None
    swap_used: Optional[float] = None

    def missing(self) -> List[str]:
        return [f.name for f in fields(self) if getattr(self, f.name) is None]


@dataclass(frozen=True)
class Sample:
    timestamp: float
    cpu_usage_pct: Optional[float]
    ram_usage_pct: Optional[float]
    swap_usage_pct: Optional[float]
    gpus: Tuple[GpuReading, ...] = ()


@dataclass(frozen=True)
class Schema:
    """Column layout, fixed for the whole run.

    One date column, CPU/RAM/Swap, then a util/mem/temp group per GPU in
    enumeration order.
    """
    date_column_label: str
    gpu_indices: Tuple[int, ...] = ()
    labels: Tuple[str, ...] = field(init=False)

    def __post_init__(self):
        labels = [self.date_column_label, "cpu", "ram", "swap"]
        for idx in self.gpu_indices:
            labels.extend(f"gpu{idx}_{metric}" for metric in GPU_METRICS)
        object.__setattr__(self, "labels", tuple(labels))

    @property
    def gpu_count(self) -> int:
        return len(self.gpu_indices)

    @property
    def column_count(self) -> int:
        return len(self.labels)


@dataclass(frozen=True)
class RunConfig:
    interval_seconds: float = DEFAULT_INTERVAL
    max_iterations: Optional[int] = None    # None runs until interrupted
    header_enabled: bool = True
    output_mode: str = "tabular"            # csv | tabular
    date_mode: str = "seconds"              # seconds | iso | custom
    date_format: Optional[str] = None
    destination: Optional[str] = None       # None writes to stdout

    def __post_init__(self):
        if self.max_iterations is not None and self.max_iterations <= 0:
            object.__setattr__(self, "max_iterations", None)

    @property
    def unbounded(self) -> bool:
        return self.max_iterations is None
