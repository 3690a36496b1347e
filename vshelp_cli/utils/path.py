"""
Utilities for locating the configuration and cache directories.
"""

import os
from pathlib import Path


def create_dir(directory_path: Path) -> None:
    """Creates a directory if it does not already exist."""
    directory_path.mkdir(parents=True, exist_ok=True)


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "vshelp-cli"


def default_cache_directory() -> Path:
    """The cache location offered when none is configured."""
    return Path.home() / "Downloads" / "MSDN Library"
