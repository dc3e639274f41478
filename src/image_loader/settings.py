"""
Settings and configuration for the image loader.

Centralizes configuration values and provides validation with fail-fast behavior.
Loads settings from environment variables at store construction time.
"""
from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Optional

__all__ = ["Settings", "create_settings_from_env", "DEFAULT_DOCKER_HOST"]

DEFAULT_DOCKER_HOST = "unix:///var/run/docker.sock"


@dataclass(frozen=True)
class Settings:
    """
    Configuration settings for the image loader.

    Store Settings:
        docker_host: Engine address (unix://, tcp://, http(s)://)
        api_version: Engine API version prefix (e.g. "v1.41"); empty for unversioned paths
        timeout_s: Default deadline for a whole load workflow, in seconds

    Load Settings:
        max_load_response_bytes: Upper bound on the buffered load response;
            None (the default) reads the whole body, however large
    """
    docker_host: str = DEFAULT_DOCKER_HOST
    api_version: str = "v1.41"
    timeout_s: float = 300.0
    max_load_response_bytes: Optional[int] = None

    def __post_init__(self):
        """Validate settings on construction."""
        if not self.docker_host:
            raise ValueError("docker_host is required")

        host_pattern = r"^(unix|tcp|https?)://.+$"
        if not re.match(host_pattern, self.docker_host):
            raise ValueError(f"Invalid docker_host format: {self.docker_host}")

        if self.api_version and not re.match(r"^v\d+\.\d+$", self.api_version):
            raise ValueError(f"Invalid api_version format: {self.api_version}. Expected e.g. 'v1.41'")

        if self.timeout_s <= 0:
            raise ValueError(f"timeout_s must be positive, got {self.timeout_s}")

        if self.max_load_response_bytes is not None and self.max_load_response_bytes <= 0:
            raise ValueError(
                f"max_load_response_bytes must be positive, got {self.max_load_response_bytes}"
            )


def create_settings_from_env() -> Settings:
    """
    Load settings from environment variables.

    Environment Variables:
        - DOCKER_HOST (default: unix:///var/run/docker.sock)
        - IMAGE_LOADER_API_VERSION (default: v1.41)
        - IMAGE_LOADER_TIMEOUT (default: 300.0)
        - IMAGE_LOADER_MAX_LOAD_RESPONSE_BYTES (optional)

    Returns:
        Settings object with validated configuration

    Raises:
        ValueError: If configuration is invalid

    Note:
        Creates a fresh Settings instance every time (no caching).
    """
    def get_float(key: str, default: float) -> float:
        value = os.getenv(key)
        try:
            return float(value) if value else default
        except ValueError as e:
            raise ValueError(f"{key} must be a number, got {value!r}") from e

    def get_optional_int(key: str) -> Optional[int]:
        value = os.getenv(key)
        try:
            return int(value) if value else None
        except ValueError as e:
            raise ValueError(f"{key} must be an integer, got {value!r}") from e

    return Settings(
        docker_host=os.getenv("DOCKER_HOST") or DEFAULT_DOCKER_HOST,
        api_version=os.getenv("IMAGE_LOADER_API_VERSION", "v1.41"),
        timeout_s=get_float("IMAGE_LOADER_TIMEOUT", 300.0),
        max_load_response_bytes=get_optional_int("IMAGE_LOADER_MAX_LOAD_RESPONSE_BYTES"),
    )
