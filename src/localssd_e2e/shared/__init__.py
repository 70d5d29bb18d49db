"""Shared modules for localssd-e2e."""

from .logging import bind_workload, configure_logging, get_logger, scenario_context
from .paths import CONFIG_FILE, LOCALSSD_DIR

__all__ = [
    # Paths
    "LOCALSSD_DIR",
    "CONFIG_FILE",
    # Logging
    "configure_logging",
    "get_logger",
    "scenario_context",
    "bind_workload",
]
