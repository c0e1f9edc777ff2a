"""
Internal configuration constants for resmon.

Environment variable names, external tool invocations, timing constants and
output tokens are defined here.  Changing a constant in this file propagates
everywhere automatically.
"""
import os

# ═══════════════════════════════════════════════════════════════
#  Environment Variable Names
# ═══════════════════════════════════════════════════════════════
ENV_KEY_SETTINGS = "__RESMON_SETTINGS__"   # path to the YAML settings file

# ═══════════════════════════════════════════════════════════════
#  Files
# ═══════════════════════════════════════════════════════════════
SETTINGS_FILENAME = ".resmon.yaml"
DEFAULT_SETTINGS_PATH = os.path.join(os.path.expanduser("~"), SETTINGS_FILENAME)

# ═══════════════════════════════════════════════════════════════
#  External Tools
# ═══════════════════════════════════════════════════════════════
TOP_COMMAND = "top"
GPU_COMMAND = "nvidia-smi"
TOP_FRAMES = 2                       # second frame gives a real CPU average
GPU_QUERY_FIELDS = "index,utilization.gpu,utilization.memory,temperature.gpu"
GPU_FORMAT = "csv,noheader,nounits"
OS_SOURCES = ["top", "psutil", "auto"]

# ═══════════════════════════════════════════════════════════════
#  Timing
# ═══════════════════════════════════════════════════════════════
DEFAULT_INTERVAL = 1.0
TOP_DELAY_SCALE = 0.95
TOP_OVERHEAD = 0.28                  # seconds spent outside top per cycle
TOP_DELAY_MAX = 5.0

# ═══════════════════════════════════════════════════════════════
#  Output
# ═══════════════════════════════════════════════════════════════
OUTPUT_MODES = ["csv", "tabular"]
DATE_MODES = ["seconds", "iso", "custom"]
NA = "NA"
TABLE_SEPARATOR = " | "
TABLE_MIN_WIDTH = 5                  # fits "100.0"
GPU_METRICS = ("util", "mem", "temp")
