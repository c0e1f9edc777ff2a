"""resmon - periodic CPU, RAM, swap and GPU usage logger."""
from importlib.metadata import version, PackageNotFoundError
try:
    __version__ = version("resmon")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"
