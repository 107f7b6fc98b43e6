"""Core domain types and logic."""

from .config import ConfigError, ProjectConfig, load_config
from .context import DeploymentContext
from .errors import ErrorCode
from .project import Project, ProjectError, detect_project
from .result import Err, Ok, Result

__all__ = [
    # config
    "ConfigError",
    "ProjectConfig",
    "load_config",
    # context
    "DeploymentContext",
    # errors
    "ErrorCode",
    # project
    "Project",
    "ProjectError",
    "detect_project",
    # result
    "Err",
    "Ok",
    "Result",
]
