"""
Formatters - render the header and sample rows as CSV or as a fixed-width
table, given the run's ``Schema``.
"""
import csv
import io
from typing import List, Optional

from resmon._config import NA, OUTPUT_MODES, TABLE_SEPARATOR, TABLE_MIN_WIDTH
from resmon.core.models import Sample, Schema
from resmon.utils import TimestampFormat


def format_pct(value: Optional[float]) -> str:
    return NA if value is None else f"{value:.1f}"


def format_gpu_value(value: Optional[float]) -> str:
    if value is None:
        return NA
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


def row_values(sample: Sample, schema: Schema, stamp: TimestampFormat) -> List[str]:
    values = [
        stamp.render(sample.timestamp),
        format_pct(sample.cpu_usage_pct),
        format_pct(sample.ram_usage_pct),
        format_pct(sample.swap_usage_pct),
    ]
    for gpu in sample.gpus:
        values.extend(format_gpu_value(v) for v in gpu.values())
    return values


class CsvFormatter:
    """Comma-separated, unpadded, one newline-terminated line per call."""

    mode = "csv"

    def __init__(self, stamp: TimestampFormat):
        self.stamp = stamp

    def _line(self, values: List[str]) -> str:
        output = io.StringIO()
        csv.writer(output, lineterminator="\n").writerow(values)
        return output.getvalue()

    def render_header(self, schema: Schema) -> str:
        return self._line(list(schema.labels))

    def render_row(self, sample: Sample, schema: Schema) -> str:
        return self._line(row_values(sample, schema, self.stamp))


class TabularFormatter:
    """Pipe-delimited fixed-width columns for terminal viewing.

    The header is followed by a rule of dashes, one group per column.
    Widths are measured once per schema so every row lines up.
    """

    mode = "tabular"

    def __init__(self, stamp: TimestampFormat):
        self.stamp = stamp
        self._widths = {}

    def widths(self, schema: Schema) -> List[int]:
        if schema not in self._widths:
            date_width = max(len(schema.date_column_label), self.stamp.widest())
            self._widths[schema] = [date_width] + [
                max(len(label), TABLE_MIN_WIDTH) for label in schema.labels[1:]
            ]
        return self._widths[schema]

    def _line(self, values: List[str], widths: List[int]) -> str:
        cells = [values[0].ljust(widths[0])]
        cells += [v.rjust(w) for v, w in zip(values[1:], widths[1:])]
        return TABLE_SEPARATOR.join(cells) + "\n"

    def render_header(self, schema: Schema) -> str:
        widths = self.widths(schema)
        header = self._line([label.upper() for label in schema.labels], widths)
        return header + self._line(["-" * w for w in widths], widths)

    def render_row(self, sample: Sample, schema: Schema) -> str:
        return self._line(row_values(sample, schema, self.stamp), self.widths(schema))


def make_formatter(output_mode: str, stamp: TimestampFormat):
    if output_mode == "csv":
        return CsvFormatter(stamp)
    if output_mode == "tabular":
        return TabularFormatter(stamp)
    raise ValueError(f"output_mode must be one of {OUTPUT_MODES}, got {output_mode!r}")
