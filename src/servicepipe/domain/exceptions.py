"""Exception hierarchy for servicepipe.

Declaration misuse is fatal and synchronous. Rule violations are never
exceptions: they travel back to the caller inside a ``CommandResult``.
"""

from __future__ import annotations


class ServicePipeError(Exception):
    """Base class for all servicepipe errors."""


class ConfigurationError(ServicePipeError, ValueError):
    """A command or service declaration is missing or malformed."""


class PipelineError(ServicePipeError, RuntimeError):
    """A command pipeline was driven incorrectly (e.g. ``done`` called twice)."""
