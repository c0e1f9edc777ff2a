"""
Tests for resmon.core.formatter, resmon.core.schema and timestamp rendering.
"""
import csv
import datetime
import io

import pytest

from resmon.core.formatter import (
    CsvFormatter, TabularFormatter, format_gpu_value, format_pct, make_formatter,
)
from resmon.core.metrics import build_sample
from resmon.core.models import OsStats, Schema
from resmon.core.parser import parse_gpu
from resmon.core.schema import SchemaBuilder
from resmon.utils import TimestampFormat

from conftest import FakeSampler, GPU_OUTPUT

TS = 1700000000.25


def _sample(schema, gpu_text=GPU_OUTPUT):
    stats = OsStats(cpu_idle_pct=85.3, ram_total=1000, ram_used=250, swap_total=0, swap_used=0)
    return build_sample(TS, stats, parse_gpu(gpu_text), schema)


# ═══════════════════════════════════════════════════════════════
#  Schema
# ═══════════════════════════════════════════════════════════════

class TestSchema:
    @pytest.mark.parametrize("indices", [(), (0,), (0, 1, 2)])
    def test_column_count(self, indices):
        schema = Schema("time", indices)
        assert schema.gpu_count == len(indices)
        assert schema.column_count == 4 + 3 * len(indices)

    def test_labels(self):
        schema = Schema("date", (0, 1))
        assert schema.labels == (
            "date", "cpu", "ram", "swap",
            "gpu0_util", "gpu0_mem", "gpu0_temp",
            "gpu1_util", "gpu1_mem", "gpu1_temp",
        )

    def test_builder_uses_gpu_enumeration(self):
        schema = SchemaBuilder(FakeSampler(gpu_indices=(0, 1, 2)), "date").build()
        assert schema.gpu_indices == (0, 1, 2)
        assert schema.date_column_label == "date"

    def test_builder_without_gpus(self):
        schema = SchemaBuilder(FakeSampler(gpu_indices=())).build()
        assert schema.gpu_count == 0
        assert schema.labels == ("time", "cpu", "ram", "swap")


# ═══════════════════════════════════════════════════════════════
#  Timestamps
# ═══════════════════════════════════════════════════════════════

class TestTimestampFormat:
    def test_seconds_has_milliseconds(self):
        stamp = TimestampFormat()
        assert stamp.render(TS) == "1700000000.250"
        assert stamp.label == "time"

    def test_iso(self):
        stamp = TimestampFormat("iso")
        text = stamp.render(TS)
        parsed = datetime.datetime.fromisoformat(text)
        assert parsed.utcoffset() is not None
        assert parsed.timestamp() == int(TS)
        assert stamp.label == "date"

    def test_custom_strips_date_plus(self):
        stamp = TimestampFormat("custom", "+%Y")
        expected = datetime.datetime.fromtimestamp(TS).strftime("%Y")
        assert stamp.render(TS) == expected

    def test_custom_requires_format(self):
        with pytest.raises(ValueError):
            TimestampFormat("custom")

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            TimestampFormat("weekly")


# ═══════════════════════════════════════════════════════════════
#  Values
# ═══════════════════════════════════════════════════════════════

def test_value_formatting():
    assert format_pct(None) == "NA"
    assert format_pct(25.0) == "25.0"
    assert format_pct(14.7) == "14.7"
    assert format_gpu_value(None) == "NA"
    assert format_gpu_value(45.0) == "45"
    assert format_gpu_value(12.5) == "12.5"


# ═══════════════════════════════════════════════════════════════
#  CSV
# ═══════════════════════════════════════════════════════════════

class TestCsvFormatter:
    @pytest.mark.parametrize("indices", [(), (0,), (0, 1, 2, 3)])
    def test_header_column_count(self, indices):
        schema = Schema("time", indices)
        header = CsvFormatter(TimestampFormat()).render_header(schema)
        assert header.endswith("\n")
        assert header.count("\n") == 1
        assert len(header.rstrip("\n").split(",")) == 4 + 3 * len(indices)

    def test_row(self):
        schema = Schema("time", (0, 1))
        row = CsvFormatter(TimestampFormat()).render_row(_sample(schema), schema)
        assert row == "1700000000.250,14.7,25.0,NA,45,60,72,NA,10,55\n"

    def test_no_gpus(self):
        schema = Schema("time")
        row = CsvFormatter(TimestampFormat()).render_row(_sample(schema, ""), schema)
        assert row == "1700000000.250,14.7,25.0,NA\n"

    def test_no_rule_lines(self):
        schema = Schema("time", (0,))
        fmt = CsvFormatter(TimestampFormat())
        text = fmt.render_header(schema) + fmt.render_row(_sample(schema), schema)
        assert "---" not in text
        assert "|" not in text

    def test_custom_date_with_comma_stays_one_column(self):
        schema = Schema("date", (0, 1))
        fmt = CsvFormatter(TimestampFormat("custom", "%d,%m,%Y"))
        row = fmt.render_row(_sample(schema), schema)
        fields = next(csv.reader(io.StringIO(row)))
        assert len(fields) == schema.column_count
        assert fields[1:4] == ["14.7", "25.0", "NA"]


# ═══════════════════════════════════════════════════════════════
#  Tabular
# ═══════════════════════════════════════════════════════════════

class TestTabularFormatter:
    @pytest.mark.parametrize("indices", [(), (0,), (0, 1, 2)])
    def test_header_and_rule(self, indices):
        schema = Schema("time", indices)
        header, rule = TabularFormatter(TimestampFormat()).render_header(schema).splitlines()
        assert len(header.split("|")) == 4 + 3 * len(indices)
        groups = [g.strip() for g in rule.split("|")]
        assert len(groups) == 4 + 3 * len(indices)
        assert all(g and set(g) == {"-"} for g in groups)

    def test_rows_line_up_with_header(self):
        schema = Schema("time", (0, 1))
        fmt = TabularFormatter(TimestampFormat())
        header, rule = fmt.render_header(schema).splitlines()
        row = fmt.render_row(_sample(schema), schema).rstrip("\n")
        assert len(row) == len(header) == len(rule)
        cells = [c.strip() for c in row.split("|")]
        assert cells == ["1700000000.250", "14.7", "25.0", "NA", "45", "60", "72", "NA", "10", "55"]

    def test_iso_date_column_wider_than_seconds(self):
        schema = Schema("date", (0,))
        iso = TabularFormatter(TimestampFormat("iso")).widths(schema)[0]
        secs = TabularFormatter(TimestampFormat()).widths(schema)[0]
        assert iso > secs

    def test_weekday_names_keep_rows_aligned(self):
        schema = Schema("date", (0, 1))
        fmt = TabularFormatter(TimestampFormat("custom", "%A %B %-d"))
        stats = OsStats(cpu_idle_pct=85.3, ram_total=1000, ram_used=250, swap_total=0, swap_used=0)
        monday = datetime.datetime(2024, 1, 1, 12).timestamp()
        wednesday = datetime.datetime(2024, 9, 25, 12).timestamp()
        header = fmt.render_header(schema).splitlines()[0]
        rows = [
            fmt.render_row(build_sample(ts, stats, parse_gpu(GPU_OUTPUT), schema), schema).rstrip("\n")
            for ts in (monday, wednesday)
        ]
        assert len(rows[0]) == len(rows[1]) == len(header)
        assert rows[0].startswith("Monday January 1 ")
        assert rows[1].startswith("Wednesday September 25 |")


def test_make_formatter():
    stamp = TimestampFormat()
    assert isinstance(make_formatter("csv", stamp), CsvFormatter)
    assert isinstance(make_formatter("tabular", stamp), TabularFormatter)
    with pytest.raises(ValueError):
        make_formatter("json", stamp)
