"""localssd-e2e - Node local SSD end-to-end check."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("localssd-e2e")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"  # Fallback for editable installs without metadata

from .main import main

__all__ = ["main", "__version__"]
