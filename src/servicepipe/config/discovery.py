"""Config file discovery.

``servicepipe.toml`` (or the hidden ``.servicepipe.toml``) is found by
walking up from the working directory, the way git finds ``.git/``.
``SERVICEPIPE_CONFIG`` and ``--config`` name a file explicitly.

Relative paths inside the file, such as ``[plugins] local_dir``, are
relative to the file itself, not to the directory servicepipe runs in.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAMES = ("servicepipe.toml", ".servicepipe.toml")
CONFIG_FILENAME = CONFIG_FILENAMES[0]
CONFIG_ENV_VAR = "SERVICEPIPE_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Return the config file governing *start* (default: cwd), or None.

    ``SERVICEPIPE_CONFIG`` wins when set; a path there that does not exist
    means "no config" rather than falling back to the walk-up. Within one
    directory the visible name beats the hidden one.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path).expanduser()
        return p if p.is_file() else None

    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        for filename in CONFIG_FILENAMES:
            candidate = directory / filename
            if candidate.is_file():
                return candidate
    return None


def resolve_config_path(path: Path, config_path: Path | None) -> Path:
    """Anchor a path read from settings to the directory of *config_path*."""
    path = path.expanduser()
    if path.is_absolute() or config_path is None:
        return path
    return config_path.parent / path
