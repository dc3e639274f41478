"""
Docker Engine image store.

Speaks the Docker Engine HTTP API (over the daemon's unix socket or TCP) to
inspect, list, tag and load images. HTTP status codes and transport
failures are mapped onto the image loader error taxonomy.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import BinaryIO, Iterator, List, Optional, Tuple
from urllib.parse import urlparse

import httpx
from pydantic import ValidationError

from ..deadline import Deadline
from ..errors import ImageNotFound, StoreTimeout, StoreTransportError
from ..models import ImageDescriptor
from ..settings import Settings
from .base import ImageStore

logger = logging.getLogger(__name__)

__all__ = ["DockerEngineStore", "EngineAddress", "parse_docker_host", "split_repo_tag"]

# Archive upload chunk size
CHUNK_SIZE = 1024 * 1024  # 1 MiB


@dataclass(frozen=True)
class EngineAddress:
    """Where the engine listens: a base URL plus an optional unix socket path."""
    base_url: str
    uds: Optional[str] = None


def parse_docker_host(docker_host: str) -> EngineAddress:
    """
    Translate a DOCKER_HOST value into an httpx-usable address.

    Supports:
    - "unix:///var/run/docker.sock" -> unix socket
    - "tcp://127.0.0.1:2375" -> http://127.0.0.1:2375
    - "http://..." / "https://..." -> used as-is

    Raises:
        ValueError: For unsupported schemes
    """
    parsed = urlparse(docker_host)
    if parsed.scheme == "unix":
        if not parsed.path:
            raise ValueError(f"unix DOCKER_HOST needs a socket path: {docker_host}")
        # Host part is ignored when talking over a unix socket
        return EngineAddress(base_url="http://docker", uds=parsed.path)
    if parsed.scheme == "tcp":
        if not parsed.netloc:
            raise ValueError(f"tcp DOCKER_HOST needs host:port: {docker_host}")
        return EngineAddress(base_url=f"http://{parsed.netloc}")
    if parsed.scheme in ("http", "https"):
        return EngineAddress(base_url=docker_host.rstrip("/"))
    raise ValueError(f"Unsupported DOCKER_HOST scheme: {docker_host}")


def split_repo_tag(repo_tag: str) -> Tuple[str, str]:
    """
    Split "name:tag" into repository and tag.

    Only a colon after the last slash separates the tag, so registry ports
    survive: "localhost:5000/app:v1" -> ("localhost:5000/app", "v1").
    A reference without a tag gets "latest".
    """
    slash = repo_tag.rfind("/")
    colon = repo_tag.rfind(":")
    if colon > slash:
        repo, tag = repo_tag[:colon], repo_tag[colon + 1:]
        return repo, tag or "latest"
    return repo_tag, "latest"


def _error_message(response: httpx.Response) -> str:
    """Pull the engine's {"message": ...} out of an error response."""
    try:
        data = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return response.text.strip() or response.reason_phrase
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return response.reason_phrase


class DockerEngineStore(ImageStore):
    """
    ImageStore backed by a Docker Engine daemon.

    The httpx client has no default timeout; every request is bounded by
    the deadline passed to the call instead.
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.BaseTransport] = None):
        """
        Initialize the engine client.

        Args:
            settings: Loader settings (engine address, API version, limits)
            transport: Optional httpx transport override (tests use MockTransport)
        """
        self.settings = settings
        self.address = parse_docker_host(settings.docker_host)

        if transport is None and self.address.uds is not None:
            transport = httpx.HTTPTransport(uds=self.address.uds)

        self.client = httpx.Client(
            base_url=self.address.base_url,
            transport=transport,
            timeout=None,
            headers={"User-Agent": "image-loader/0.1.0"},
        )
        self._prefix = f"/{settings.api_version}" if settings.api_version else ""
        logger.debug(f"Docker engine store at {settings.docker_host} (api {settings.api_version or 'default'})")

    def _path(self, path: str) -> str:
        return f"{self._prefix}{path}"

    def _request(self, method: str, path: str, deadline: Deadline, what: str, **kwargs) -> httpx.Response:
        """Issue one request bounded by the deadline and raise for HTTP errors."""
        deadline.check(what)
        try:
            response = self.client.request(method, self._path(path), timeout=deadline.timeout(), **kwargs)
        except httpx.TimeoutException as e:
            raise StoreTimeout(f"{what}: timed out: {e}") from e
        except httpx.RequestError as e:
            raise StoreTransportError(f"{what}: cannot reach Docker engine: {e}") from e
        response.raise_for_status()
        return response

    def inspect(self, ref: str, deadline: Deadline) -> ImageDescriptor:
        what = f"inspect {ref}"
        try:
            response = self._request("GET", f"/images/{ref}/json", deadline, what)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise ImageNotFound(ref) from e
            raise StoreTransportError(
                f"{what}: engine error {e.response.status_code}: {_error_message(e.response)}"
            ) from e

        try:
            return ImageDescriptor.model_validate(response.json())
        except (json.JSONDecodeError, ValidationError) as e:
            raise StoreTransportError(f"{what}: malformed inspect response: {e}") from e

    def list_images(self, deadline: Deadline) -> List[ImageDescriptor]:
        what = "list images"
        try:
            response = self._request("GET", "/images/json", deadline, what)
        except httpx.HTTPStatusError as e:
            raise StoreTransportError(
                f"{what}: engine error {e.response.status_code}: {_error_message(e.response)}"
            ) from e

        try:
            data = response.json()
            if not isinstance(data, list):
                raise StoreTransportError(f"{what}: expected a JSON array, got {type(data).__name__}")
            return [ImageDescriptor.model_validate(item) for item in data]
        except (json.JSONDecodeError, ValidationError) as e:
            raise StoreTransportError(f"{what}: malformed list response: {e}") from e

    def tag(self, image_id: str, repo_tag: str, deadline: Deadline) -> None:
        what = f"tag {image_id} as {repo_tag}"
        repo, tag = split_repo_tag(repo_tag)
        try:
            self._request("POST", f"/images/{image_id}/tag", deadline, what, params={"repo": repo, "tag": tag})
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise ImageNotFound(image_id) from e
            raise StoreTransportError(
                f"{what}: engine error {e.response.status_code}: {_error_message(e.response)}"
            ) from e

    def load_archive(self, stream: BinaryIO, deadline: Deadline) -> bytes:
        what = "load archive"
        deadline.check(what)
        limit = self.settings.max_load_response_bytes

        def chunks() -> Iterator[bytes]:
            while True:
                # Per-request httpx timeouts bound single writes, not the whole upload
                deadline.check(what)
                chunk = stream.read(CHUNK_SIZE)
                if not chunk:
                    break
                yield chunk

        try:
            with self.client.stream(
                "POST",
                self._path("/images/load"),
                params={"quiet": "1"},
                content=chunks(),
                headers={"Content-Type": "application/x-tar"},
                timeout=deadline.timeout(),
            ) as response:
                if response.is_error:
                    response.read()
                    raise StoreTransportError(
                        f"{what}: engine error {response.status_code}: {_error_message(response)}"
                    )

                body = bytearray()
                for part in response.iter_bytes():
                    deadline.check(what)
                    body.extend(part)
                    if limit is not None and len(body) > limit:
                        raise StoreTransportError(
                            f"{what}: response exceeded {limit} bytes"
                        )
                return bytes(body)
        except httpx.TimeoutException as e:
            raise StoreTimeout(f"{what}: timed out: {e}") from e
        except httpx.RequestError as e:
            raise StoreTransportError(f"{what}: cannot reach Docker engine: {e}") from e

    def close(self) -> None:
        """Close HTTP client."""
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
