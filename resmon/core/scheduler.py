"""
Scheduler - drives the sample → format → emit cycle at a target interval.

``top`` itself blocks for ``top_delay`` seconds between its two frames, so the
delay is derived from the interval minus a fixed overhead estimate; whatever
time is left after emitting is slept off.  A cycle that overruns is followed
immediately by the next one.
"""
import signal
import threading
import time
from typing import Callable, Optional, TextIO

from resmon._config import TOP_DELAY_SCALE, TOP_OVERHEAD, TOP_DELAY_MAX
from resmon.core.metrics import build_sample
from resmon.core.models import RunConfig, Schema
from resmon.utils import get_logger, WarnOnce

logger = get_logger(__name__)

IDLE = "idle"
RUNNING = "running"
STOPPED = "stopped"
INTERRUPTED = "interrupted"


def compute_top_delay(
    interval: float,
    scale: float = TOP_DELAY_SCALE,
    overhead: float = TOP_OVERHEAD,
    upper: float = TOP_DELAY_MAX,
) -> float:
    """``clamp(interval * scale - overhead, 0, upper)``."""
    return min(max(interval * scale - overhead, 0.0), upper)


class Scheduler:
    def __init__(
        self,
        config: RunConfig,
        schema: Schema,
        sampler,
        formatter,
        sink: TextIO,
        top_overhead: float = TOP_OVERHEAD,
        top_delay_max: float = TOP_DELAY_MAX,
        clock: Callable[[], float] = time.time,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.config = config
        self.schema = schema
        self.sampler = sampler
        self.formatter = formatter
        self.sink = sink
        self.top_overhead = top_overhead
        self.top_delay_max = top_delay_max
        self.state = IDLE
        self.iterations = 0
        self._clock = clock
        self._stop = threading.Event()
        self._sleep = sleep or self._stop.wait
        self._warn = WarnOnce(logger)

    @property
    def top_delay(self) -> float:
        return compute_top_delay(
            self.config.interval_seconds,
            overhead=self.top_overhead,
            upper=self.top_delay_max,
        )

    def request_stop(self, *_args) -> None:
        """Ask the loop to finish; safe to call from a signal handler."""
        self._stop.set()

    @property
    def stop_requested(self) -> bool:
        return self._stop.is_set()

    def _emit(self, text: str) -> None:
        self.sink.write(text)
        self.sink.flush()

    def _report_missing(self, os_stats) -> None:
        for name in os_stats.missing():
            self._warn(name, "OS monitor gave no %s; reporting NA", name)

    def run_once(self, started: float) -> bool:
        """Take, render and emit one sample.  Returns False if it was discarded."""
        os_stats, gpus = self.sampler.sample(self.top_delay)
        if self.stop_requested:
            logger.debug("Stop requested mid-cycle; discarding sample")
            return False
        self._report_missing(os_stats)
        sample = build_sample(started, os_stats, gpus, self.schema)
        self._emit(self.formatter.render_row(sample, self.schema))
        return True

    def _loop(self) -> None:
        if self.config.header_enabled:
            self._emit(self.formatter.render_header(self.schema))

        interval = self.config.interval_seconds
        limit = self.config.max_iterations
        while not self.stop_requested:
            started = self._clock()
            if not self.run_once(started):
                break
            self.iterations += 1
            if limit is not None and self.iterations >= limit:
                self.state = STOPPED
                return
            remaining = interval - (self._clock() - started)
            if remaining > 0:
                self._sleep(remaining)
        self.state = INTERRUPTED

    def _install_signal_handlers(self):
        if threading.current_thread() is not threading.main_thread():
            return {}
        previous = {}
        for sig in (signal.SIGINT, signal.SIGTERM):
            previous[sig] = signal.signal(sig, self.request_stop)
        return previous

    def run(self) -> int:
        """Run until the iteration limit or an interrupt.  Returns the exit code."""
        self.state = RUNNING
        logger.info(
            "Sampling every %.3gs (top delay %.2fs), %s",
            self.config.interval_seconds,
            self.top_delay,
            "unbounded" if self.config.unbounded else f"{self.config.max_iterations} iteration(s)",
        )
        previous = self._install_signal_handlers()
        try:
            self._loop()
        except KeyboardInterrupt:
            self.state = INTERRUPTED
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler if handler is not None else signal.SIG_DFL)
            self.sink.flush()
        logger.info("Finished after %d sample(s): %s", self.iterations, self.state)
        return 0
