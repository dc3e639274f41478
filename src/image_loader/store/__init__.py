"""Image store interface and implementations."""
from .base import ImageStore
from .docker import DockerEngineStore

__all__ = ["ImageStore", "DockerEngineStore"]
