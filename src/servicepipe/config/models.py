"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, servicepipe.toml only contains
overrides.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel


class TelemetryConfig(BaseModel):
    """[telemetry] section."""

    model_config = {"frozen": True}

    enabled: bool = False


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    local_dir: Path | None = None  # relative to the config file
