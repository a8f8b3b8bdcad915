"""Exceptions raised while loading and resolving deploy configs."""

from typing import Any


class DeployConfigError(Exception):
    """Base exception for deploy-config."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigLoadError(DeployConfigError):
    """Config or catalog file could not be read."""


class VolumeResolutionError(DeployConfigError):
    """A volume declaration could not be materialized."""

    def __init__(self, message: str, service: str | None = None):
        details = {}
        if service is not None:
            details["service"] = service
        super().__init__(message, details)
        self.service = service


class VolumeFetchError(VolumeResolutionError):
    """Remote volume source could not be downloaded."""

    def __init__(self, url: str, message: str):
        super().__init__(message)
        self.details["url"] = url
        self.url = url


class VolumeSizeExceededError(VolumeFetchError):
    """Remote volume source is larger than allowed."""

    def __init__(self, url: str, max_size: int):
        super().__init__(
            url,
            f"Response size exceeds the maximum limit of {max_size} bytes",
        )
        self.max_size = max_size
