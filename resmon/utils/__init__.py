from .log_utils import get_logger, WarnOnce  # noqa: F401
from .time_utils import TimestampFormat  # noqa: F401
