"""
Exception taxonomy.

Only ``ConfigurationError`` ever reaches the user as a failure; the data
source errors are degraded to ``NA`` fields by the sampler and parser.
"""


class ResmonError(Exception):
    """Base class for resmon errors."""


class ConfigurationError(ResmonError):
    """Bad command-line option or settings value."""


class DataSourceUnavailable(ResmonError):
    """An external tool is missing, failed, or timed out."""

    def __init__(self, tool: str, reason: str, interrupted: bool = False):
        super().__init__(f"{tool}: {reason}")
        self.tool = tool
        self.reason = reason
        # killed by SIGINT/SIGTERM along with the rest of the process group
        self.interrupted = interrupted


class ParseMiscompare(ResmonError):
    """An expected line or token was not found in tool output."""
