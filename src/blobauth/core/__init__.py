"""Core infrastructure: logging, cloud environments, local paths."""

from blobauth.core.environment import (
    PUBLIC_CLOUD,
    CloudEnvironment,
    EnvironmentSettings,
    cloud_environment,
    scope_for_resource,
)
from blobauth.core.logging import configure_logging, get_logger

__all__ = [
    "PUBLIC_CLOUD",
    "CloudEnvironment",
    "EnvironmentSettings",
    "cloud_environment",
    "configure_logging",
    "get_logger",
    "scope_for_resource",
]
