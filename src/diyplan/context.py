"""Options given to the CLI callback that commands and the loader read later.

The loader consults this when it looks for diyplan_config.yaml.
"""

from __future__ import annotations

from pathlib import Path


class _Context:
    """Holds the --config path for the current process."""

    def __init__(self) -> None:
        self.config_path: Path | None = None


_context = _Context()


def get_config_path() -> Path | None:
    """Get the config path given with ``--config``."""
    return _context.config_path


def set_config_path(path: Path | None) -> None:
    """Set the config path given with ``--config``."""
    _context.config_path = path
