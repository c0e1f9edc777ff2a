"""
CLI entry point - ``resmon [options] [FILE]``.
"""

import sys
import textwrap
from typing import List, Optional

from . import __version__ as _VERSION
from ._config import DEFAULT_INTERVAL, OS_SOURCES
from .core.errors import ConfigurationError
from .core.formatter import make_formatter
from .core.models import RunConfig
from .core.sampler import Sampler
from .core.scheduler import Scheduler
from .core.schema import SchemaBuilder
from .utils import get_logger, TimestampFormat
from .utils import settings

logger = get_logger(__name__)

# ─── Help text ────────────────────────────────────────────────

_HELP = textwrap.dedent(
    f"""
resmon v{_VERSION}

Sample CPU, RAM, swap and GPU usage at a fixed interval.

USAGE
    resmon [options] [FILE]

    Without FILE, a table is printed to stdout.  With FILE, CSV rows are
    appended to it.

OPTIONS
    -h, --help              Show this help and exit
    -v, --version           Show the version and exit
    -l, --loop SECONDS      Sampling interval (default {DEFAULT_INTERVAL:g})
    -n, --niter COUNT       Stop after COUNT samples (<= 0: run until Ctrl-C)
    -H, --no-header         Do not print the header
        --header            Print the header (default)
    -c, --csv               CSV output (default when FILE is given)
    -t, --tabular           Table output (default on stdout)
    -s, --date-seconds      Epoch seconds with milliseconds (default)
    -I, --date-iso          ISO-8601 timestamps
    -d, --date FORMAT       Custom strftime format, e.g. '%Y-%m-%d %H:%M:%S'

EXAMPLES
    $ resmon -l 2
    $ resmon -l 10 -I train_usage.csv
    $ resmon -n 3 --csv
    """.strip()
)


def _print_help():
    print(_HELP)
    sys.exit(0)


def _print_version():
    print(f"resmon {_VERSION}")
    sys.exit(0)


# ─── Argument parsing ─────────────────────────────────────────

_VALUE_FLAGS = {
    "-l": "loop", "--loop": "loop",
    "-n": "niter", "--niter": "niter",
    "-d": "date", "--date": "date",
}


def _parse_interval(value: str) -> float:
    try:
        interval = float(value)
    except ValueError:
        raise ConfigurationError(f"invalid interval: {value!r}")
    if not interval > 0 or interval == float("inf"):
        raise ConfigurationError(f"interval must be a positive number of seconds: {value!r}")
    return interval


def _parse_count(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"invalid iteration count: {value!r}")


def parse_args(argv: List[str]) -> RunConfig:
    """Resolve command-line arguments into a ``RunConfig``.

    Raises ``ConfigurationError`` for unknown flags, missing or malformed
    option arguments and extra positionals.  ``--help`` and ``--version``
    print and exit.
    """
    interval = DEFAULT_INTERVAL
    max_iterations = None
    header = True
    mode = None
    date_mode = "seconds"
    date_format = None
    destination = None

    args = list(argv)
    only_positionals = False
    i = 0
    while i < len(args):
        arg = args[i]
        i += 1

        if only_positionals or arg == "-" or not arg.startswith("-"):
            if destination is not None:
                raise ConfigurationError(f"unexpected extra argument: {arg!r}")
            destination = arg
            continue
        if arg == "--":
            only_positionals = True
            continue

        # ── Options taking a value (also --opt=value) ──
        flag, sep, inline = arg.partition("=")
        if flag in _VALUE_FLAGS and (sep == "" or flag.startswith("--")):
            if sep:
                value = inline
            elif i < len(args):
                value = args[i]
                i += 1
            else:
                raise ConfigurationError(f"option {flag} requires an argument")
            key = _VALUE_FLAGS[flag]
            if key == "loop":
                interval = _parse_interval(value)
            elif key == "niter":
                max_iterations = _parse_count(value)
            else:
                if not value:
                    raise ConfigurationError("option --date requires a non-empty format")
                date_mode, date_format = "custom", value
            continue

        if arg in ("-h", "--help"):
            _print_help()
        elif arg in ("-v", "--version"):
            _print_version()
        elif arg in ("-H", "--no-header"):
            header = False
        elif arg == "--header":
            header = True
        elif arg in ("-c", "--csv"):
            mode = "csv"
        elif arg in ("-t", "--tabular"):
            mode = "tabular"
        elif arg in ("-I", "--date-iso"):
            date_mode, date_format = "iso", None
        elif arg in ("-s", "--date-seconds"):
            date_mode, date_format = "seconds", None
        else:
            raise ConfigurationError(f"unknown option: {arg}")

    if destination == "-":
        destination = None
    if mode is None:
        mode = "csv" if destination else "tabular"

    return RunConfig(
        interval_seconds=interval,
        max_iterations=max_iterations,
        header_enabled=header,
        output_mode=mode,
        date_mode=date_mode,
        date_format=date_format,
        destination=destination,
    )


# ─── Run ──────────────────────────────────────────────────────


def _numeric_setting(key: str, allow_none: bool = False, positive: bool = False) -> Optional[float]:
    """Read a numeric setting; ``ConfigurationError`` when it is not a usable number."""
    value = settings.get(key)
    if value is None and allow_none:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"settings: {key} must be a number, got {value!r}")
    if isinstance(value, bool) or not number >= 0 or (positive and number == 0):
        bound = "a positive number" if positive else "a non-negative number"
        raise ConfigurationError(f"settings: {key} must be {bound}, got {value!r}")
    return number


def build_sampler() -> Sampler:
    """Create the sampler from the user settings file."""
    os_source = settings.get("os_source")
    if os_source not in OS_SOURCES:
        raise ConfigurationError(f"settings: os_source must be one of {OS_SOURCES}, got {os_source!r}")
    return Sampler(
        top_command=settings.get("top_command"),
        gpu_command=settings.get("gpu_command"),
        os_source=os_source,
        timeout=_numeric_setting("tool_timeout", allow_none=True, positive=True),
    )


def run(config: RunConfig, sampler: Optional[Sampler] = None, sink=None) -> int:
    """Build the schema once, then hand over to the scheduler."""
    # settings are checked before nvidia-smi is asked for the GPU list
    top_overhead = _numeric_setting("top_overhead")
    top_delay_max = _numeric_setting("top_delay_max")
    stamp = TimestampFormat(config.date_mode, config.date_format)
    sampler = sampler or build_sampler()
    schema = SchemaBuilder(sampler, stamp.label).build()
    formatter = make_formatter(config.output_mode, stamp)

    def _schedule(out) -> int:
        return Scheduler(
            config, schema, sampler, formatter, out,
            top_overhead=top_overhead,
            top_delay_max=top_delay_max,
        ).run()

    if sink is not None:
        return _schedule(sink)
    if config.destination is None:
        return _schedule(sys.stdout)

    try:
        out = open(config.destination, "a", encoding="utf-8", newline="")
    except OSError as exc:
        print(f"resmon: cannot open {config.destination}: {exc.strerror or exc}", file=sys.stderr)
        return 1
    logger.info("Appending %s rows to %s", config.output_mode, config.destination)
    with out:
        return _schedule(out)


# ─── Main entry ───────────────────────────────────────────────


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    try:
        config = parse_args(argv)
        return run(config)
    except ConfigurationError as exc:
        print(f"resmon: {exc}", file=sys.stderr)
        print("Try 'resmon --help' for more information.", file=sys.stderr)
        return 2


def resmon():
    """``resmon`` console script."""
    sys.exit(main())


if __name__ == "__main__":
    resmon()
