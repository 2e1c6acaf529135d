"""repodoctor — audit a repository against project standards."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("repodoctor")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"
