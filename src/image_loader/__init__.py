"""Idempotent loading of locally built container images into an image store."""

__version__ = "0.1.0"

from .action import LoadAction
from .archive import ArchiveLoader
from .compare import configs_equal
from .deadline import Deadline
from .errors import (
    ArchiveLoadError,
    ConfigReadError,
    ImageNotFound,
    ImageVanishedError,
    LoaderError,
    StoreTimeout,
    StoreTransportError,
    TagApplicationError,
)
from .models import DesiredImage, ImageDescriptor, OciImageConfig, RuntimeConfig, load_desired_image
from .reconcile import LookupResult, ReconciliationEngine

__all__ = [
    "LoadAction",
    "ArchiveLoader",
    "configs_equal",
    "Deadline",
    "DesiredImage",
    "ImageDescriptor",
    "OciImageConfig",
    "RuntimeConfig",
    "load_desired_image",
    "LookupResult",
    "ReconciliationEngine",
    "LoaderError",
    "ImageNotFound",
    "StoreTransportError",
    "StoreTimeout",
    "ConfigReadError",
    "TagApplicationError",
    "ArchiveLoadError",
    "ImageVanishedError",
]
