"""
Data models for desired image state and store-reported image descriptors.

These Pydantic models give the loose OCI config JSON a typed shape. Every
runtime config field is optional so that "absent", "empty" and "present"
stay distinguishable after parsing; the comparator decides which of those
are equivalent.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigReadError

__all__ = [
    "RuntimeConfig",
    "OciImageConfig",
    "DesiredImage",
    "ImageDescriptor",
    "load_desired_image",
]


class RuntimeConfig(BaseModel):
    """
    The execution parameters block of an image config.

    Both the OCI image config (`config` key) and the Docker engine inspect
    payload (`Config` key) use these capitalized field names. Fields this
    tool does not compare (ExposedPorts, Volumes, StopSignal, ...) are
    dropped on parse.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    env: Optional[List[str]] = Field(default=None, alias="Env")
    entrypoint: Optional[List[str]] = Field(default=None, alias="Entrypoint")
    cmd: Optional[List[str]] = Field(default=None, alias="Cmd")
    working_dir: Optional[str] = Field(default=None, alias="WorkingDir")
    user: Optional[str] = Field(default=None, alias="User")
    labels: Optional[Dict[str, str]] = Field(default=None, alias="Labels")


class OciImageConfig(BaseModel):
    """OCI image config document (the blob referenced by manifest.config)."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    architecture: Optional[str] = None
    os: Optional[str] = None
    config: Optional[RuntimeConfig] = None


class DesiredImage(BaseModel):
    """
    What the build wants the store to contain.

    Constructed once per invocation from build output and never mutated.
    `repo_tags` keeps input order and duplicates.
    """
    model_config = ConfigDict(frozen=True)

    digest: str = Field(..., min_length=1, description="Content address of the image config")
    config: OciImageConfig = Field(..., description="OCI image config of the built image")
    repo_tags: Tuple[str, ...] = Field(default=(), description="Desired name:tag aliases, in order")

    @field_validator("repo_tags")
    @classmethod
    def validate_repo_tags(cls, v):
        """Reject blank tags; they would make the store's tag call ambiguous."""
        for tag in v:
            if not tag or not tag.strip():
                raise ValueError("repo tags must be non-empty strings")
        return v


class ImageDescriptor(BaseModel):
    """
    The store's view of one image.

    Built from the engine's inspect or list payloads. Descriptors are never
    cached: the store is shared with other processes and may change between
    any two calls.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(..., alias="Id")
    repo_tags: Tuple[str, ...] = Field(default=(), alias="RepoTags")
    architecture: str = Field(default="", alias="Architecture")
    os: str = Field(default="", alias="Os")
    config: Optional[RuntimeConfig] = Field(default=None, alias="Config")

    @field_validator("repo_tags", mode="before")
    @classmethod
    def null_tags_to_empty(cls, v):
        # Dangling images report RepoTags as null
        return () if v is None else v

    @field_validator("architecture", "os", mode="before")
    @classmethod
    def null_to_empty(cls, v):
        return "" if v is None else v


def load_desired_image(
    digest: str,
    config_path: Union[str, Path],
    repo_tags: Sequence[str],
) -> DesiredImage:
    """
    Read an OCI config file and build the desired state for one invocation.

    Args:
        digest: Content address the loaded image is expected to have
        config_path: Path to the OCI image config JSON
        repo_tags: Desired repo tags, in order

    Returns:
        Validated DesiredImage

    Raises:
        ConfigReadError: If the file is missing, not JSON, or not an image config
    """
    path = Path(config_path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigReadError(f"failed to read config {path}: {e}") from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ConfigReadError(f"config {path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigReadError(f"config {path} must be a JSON object, got {type(data).__name__}")

    try:
        return DesiredImage(
            digest=digest,
            config=OciImageConfig.model_validate(data),
            repo_tags=tuple(repo_tags),
        )
    except ValidationError as e:
        raise ConfigReadError(f"invalid desired image state: {e}") from e
