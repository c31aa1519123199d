"""servicepipe — business service operations as three-phase command pipelines."""

from servicepipe.domain.exceptions import ConfigurationError, PipelineError, ServicePipeError
from servicepipe.domain.rules import RuleViolation
from servicepipe.services.base import BusinessService, ServiceBuilder, create_command
from servicepipe.services.command import Command
from servicepipe.services.result import CommandResult

__version__ = "0.1.0"

__all__ = [
    "BusinessService",
    "Command",
    "CommandResult",
    "ConfigurationError",
    "PipelineError",
    "RuleViolation",
    "ServiceBuilder",
    "ServicePipeError",
    "__version__",
    "create_command",
]
