"""
Fake image store implementation for testing.

This implementation explicitly subclasses ImageStore to ensure interface
changes break CI immediately, preventing silent drift.
"""
from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from typing import BinaryIO, Dict, List, Optional, Set

from ...deadline import Deadline
from ...errors import ImageNotFound, StoreTransportError
from ...models import ImageDescriptor, OciImageConfig, RuntimeConfig
from ..base import ImageStore

__all__ = ["FakeImageStore", "StoredImage"]


@dataclass
class StoredImage:
    """One image held by the fake store."""
    id: str
    architecture: str = ""
    os: str = ""
    config: Optional[RuntimeConfig] = None
    repo_tags: List[str] = field(default_factory=list)

    def descriptor(self) -> ImageDescriptor:
        return ImageDescriptor(
            id=self.id,
            repo_tags=tuple(self.repo_tags),
            architecture=self.architecture,
            os=self.os,
            config=self.config,
        )


class FakeImageStore(ImageStore):
    """
    In-memory image store for testing.

    This is a test double; not for production use. Images are keyed by id;
    a repo tag belongs to at most one image, and re-tagging moves it, like
    the Docker engine does.

    Failure injection:
    - `fail_tags`: tags whose tag() call raises StoreTransportError
    - `inspect_errors`: refs whose inspect() raises the mapped exception
    - `load_response`: body returned by load_archive() (default: success line)
    - `load_result`: image registered when load_archive() is called
    """

    def __init__(self) -> None:
        self._images: Dict[str, StoredImage] = {}
        self.fail_tags: Set[str] = set()
        self.inspect_errors: Dict[str, Exception] = {}
        self.load_response: Optional[bytes] = None
        self.load_result: Optional[StoredImage] = None
        self.calls: List[tuple] = []
        self.loaded_bytes: List[bytes] = []

    def add_image(
        self,
        image_id: str,
        *,
        config: Optional[OciImageConfig] = None,
        repo_tags: Optional[List[str]] = None,
    ) -> StoredImage:
        """Seed an image (test utility)."""
        image = StoredImage(id=image_id)
        if config is not None:
            image.architecture = config.architecture or ""
            image.os = config.os or ""
            image.config = config.config
        self._images[image_id] = image
        for tag in repo_tags or []:
            self._bind(image_id, tag)
        return image

    def _bind(self, image_id: str, repo_tag: str) -> None:
        for other in self._images.values():
            if repo_tag in other.repo_tags:
                other.repo_tags.remove(repo_tag)
        self._images[image_id].repo_tags.append(repo_tag)

    def _resolve(self, ref: str) -> Optional[StoredImage]:
        if ref in self._images:
            return self._images[ref]
        for image in self._images.values():
            if ref in image.repo_tags:
                return image
        return None

    def inspect(self, ref: str, deadline: Deadline) -> ImageDescriptor:
        deadline.check(f"inspect {ref}")
        self.calls.append(("inspect", ref))
        if ref in self.inspect_errors:
            raise self.inspect_errors[ref]
        image = self._resolve(ref)
        if image is None:
            raise ImageNotFound(ref)
        return image.descriptor()

    def list_images(self, deadline: Deadline) -> List[ImageDescriptor]:
        deadline.check("list images")
        self.calls.append(("list_images",))
        return [
            ImageDescriptor(id=image.id, repo_tags=tuple(image.repo_tags))
            for image in self._images.values()
        ]

    def tag(self, image_id: str, repo_tag: str, deadline: Deadline) -> None:
        deadline.check(f"tag {image_id} as {repo_tag}")
        self.calls.append(("tag", image_id, repo_tag))
        if repo_tag in self.fail_tags:
            raise StoreTransportError(f"tag {repo_tag} rejected by fake store")
        if image_id not in self._images:
            raise ImageNotFound(image_id)
        self._bind(image_id, repo_tag)

    def load_archive(self, stream: BinaryIO, deadline: Deadline) -> bytes:
        deadline.check("load archive")
        self.calls.append(("load_archive",))
        self.loaded_bytes.append(stream.read())

        if self.load_response is not None:
            body = self.load_response
        elif self.load_result is not None:
            body = json.dumps({"stream": f"Loaded image ID: {self.load_result.id}\n"}).encode()
        else:
            body = b""

        # Mirror the engine: an error body means nothing was loaded
        if self.load_result is not None and b"errorDetail" not in body:
            loaded = copy.deepcopy(self.load_result)
            tags = loaded.repo_tags
            loaded.repo_tags = []
            self._images[loaded.id] = loaded
            for tag in tags:
                self._bind(loaded.id, tag)
        return body

    def tags_of(self, image_id: str) -> List[str]:
        """Current tags of an image (test utility)."""
        return list(self._images[image_id].repo_tags)

    def has_image(self, image_id: str) -> bool:
        return image_id in self._images

    def clear(self) -> None:
        """Clear all stored data (test utility)."""
        self._images.clear()
        self.calls.clear()
        self.loaded_bytes.clear()
