"""
Image loader error classes.

Provides the taxonomy of errors raised while probing, loading and tagging
images. Store adapters map transport failures (HTTP status codes, socket
errors, timeouts) onto these classes so the reconciliation engine can branch
on them without knowing which store it is talking to.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .action import LoadAction


class LoaderError(Exception):
    """Base class for all image loader errors."""
    pass


class ImageNotFound(LoaderError):
    """
    The store has no image for the requested reference.

    This is a control-flow signal: the reconciliation engine uses it to move
    from the strict probe to the loose probe, and from the loose probe to a
    full load. It is never reported to the user as a failure.
    """

    def __init__(self, ref: str):
        super().__init__(f"No such image: {ref}")
        self.ref = ref


class StoreTransportError(LoaderError):
    """
    The image store was unreachable or returned a malformed response.

    Raised when:
    - The daemon socket cannot be opened
    - The store answers with an unexpected HTTP status
    - A response body is not the JSON document the store promised
    """
    pass


class StoreTimeout(StoreTransportError):
    """The caller-supplied deadline expired before or during a store call."""
    pass


class ConfigReadError(LoaderError):
    """
    Desired-state input is malformed or unreadable.

    Always raised before any mutation is attempted against the store.
    """
    pass


class TagApplicationError(LoaderError):
    """
    Applying a repo tag failed midway through tag reconciliation.

    The partial ledger records the tags processed before the failure. Callers
    must not treat it as a final state: the store may or may not have applied
    the failing tag.
    """

    def __init__(self, message: str, tag: str, partial_action: Optional["LoadAction"] = None):
        super().__init__(message)
        self.tag = tag
        self.partial_action = partial_action


class ArchiveLoadError(LoaderError):
    """
    The store reported a failure inside an otherwise successful load response.

    The message is the store's own error text, passed through verbatim.
    """
    pass


class ImageVanishedError(LoaderError):
    """
    The image selected for tag reconciliation is not in the store.

    Happens when another process removes the image between lookup and
    tagging, or when a load did not produce the expected digest.
    """

    def __init__(self, image_id: str):
        super().__init__(f"Image {image_id} is not present in the store")
        self.image_id = image_id


__all__ = [
    "LoaderError",
    "ImageNotFound",
    "StoreTransportError",
    "StoreTimeout",
    "ConfigReadError",
    "TagApplicationError",
    "ArchiveLoadError",
    "ImageVanishedError",
]
