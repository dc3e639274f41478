"""
Image store protocol definition.

Defines the capability surface the reconciliation engine needs from a
mutable, content-addressed image store (the local Docker engine in
production, an in-memory fake in tests).
"""
from __future__ import annotations

from typing import BinaryIO, List, Protocol, runtime_checkable

from ..deadline import Deadline
from ..models import ImageDescriptor

__all__ = ["ImageStore"]


@runtime_checkable
class ImageStore(Protocol):
    """
    Capabilities of a local image store.

    Every call is a blocking operation that must honor the supplied
    deadline. Implementations must not cache descriptors between calls.
    """

    def inspect(self, ref: str, deadline: Deadline) -> ImageDescriptor:
        """
        Look up an image by id, digest or repo tag.

        Args:
            ref: Image id ("sha256:..."), or "name:tag"
            deadline: Deadline for the call

        Returns:
            The store's current descriptor for the image

        Raises:
            ImageNotFound: If no image matches the reference
            StoreTransportError: If the store is unreachable or misbehaves
            StoreTimeout: If the deadline expired
        """
        ...

    def list_images(self, deadline: Deadline) -> List[ImageDescriptor]:
        """
        List every image in the store.

        Descriptors from listing carry id and repo tags; architecture, os
        and config may be empty.

        Raises:
            StoreTransportError: If the store is unreachable or misbehaves
            StoreTimeout: If the deadline expired
        """
        ...

    def tag(self, image_id: str, repo_tag: str, deadline: Deadline) -> None:
        """
        Bind `repo_tag` ("name:tag") to the image.

        Raises:
            ImageNotFound: If the image does not exist
            StoreTransportError: If the store rejects the tag
            StoreTimeout: If the deadline expired
        """
        ...

    def load_archive(self, stream: BinaryIO, deadline: Deadline) -> bytes:
        """
        Stream an image archive into the store.

        Returns the complete response body. A store may report a failed load
        inside that body while the call itself succeeds; interpreting the
        body is the caller's job (see ArchiveLoader).

        Raises:
            StoreTransportError: If the transfer itself fails
            StoreTimeout: If the deadline expired
        """
        ...
