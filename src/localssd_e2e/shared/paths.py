"""Path management for localssd-e2e."""

from pathlib import Path

# Base directory for local settings
LOCALSSD_DIR = Path.home() / ".localssd-e2e"

CONFIG_FILE = LOCALSSD_DIR / "config.yaml"
