"""
Time utilities - unified timestamp rendering for sample rows.
"""
import datetime
import time
from typing import Optional

from resmon._config import DATE_MODES


class TimestampFormat:
    """Render epoch timestamps in one of three modes, fixed for a run.

    - ``seconds``: epoch seconds with a millisecond fraction (``1760000000.123``)
    - ``iso``: local ISO-8601 with UTC offset, second precision
    - ``custom``: ``strftime`` with a caller-supplied format; a leading ``+``
      (as written for ``date +FORMAT``) is ignored
    """

    def __init__(self, mode: str = "seconds", fmt: Optional[str] = None):
        if mode not in DATE_MODES:
            raise ValueError(f"Unknown date mode: {mode!r}")
        if mode == "custom":
            if not fmt:
                raise ValueError("A custom date mode needs a format string")
            if fmt.startswith("+"):
                fmt = fmt[1:]
        self.mode = mode
        self.fmt = fmt

    @property
    def label(self) -> str:
        return "time" if self.mode == "seconds" else "date"

    def render(self, ts: float) -> str:
        if self.mode == "seconds":
            return f"{ts:.3f}"
        dt = datetime.datetime.fromtimestamp(ts).astimezone()
        if self.mode == "iso":
            return dt.isoformat(timespec="seconds")
        return dt.strftime(self.fmt)

    def widest(self) -> int:
        """Longest rendering over sample dates that cover every weekday and month."""
        if self.mode == "seconds":
            return len(self.render(time.time()))
        year = datetime.date.today().year
        # days 22-28 pair every weekday name with every month name
        dates = [
            datetime.datetime(year, month, day, hour, 59, 59)
            for month in range(1, 13)
            for day in (1, 22, 23, 24, 25, 26, 27, 28)
            for hour in (9, 23)
        ]
        return max(len(self.render(dt.timestamp())) for dt in dates)

    def __repr__(self):
        return f"TimestampFormat(mode={self.mode!r}, fmt={self.fmt!r})"
