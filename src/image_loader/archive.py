"""
Archive loading.

Streams an image archive into the store and interprets the store's reply.
The Docker engine answers a load with HTTP 200 even when the load failed;
the real outcome is a JSON message inside the response body.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from .deadline import Deadline
from .errors import ArchiveLoadError, ConfigReadError
from .store.base import ImageStore

logger = logging.getLogger(__name__)

__all__ = ["ArchiveLoader", "parse_load_messages", "embedded_error"]

_LOADED_PREFIXES = ("Loaded image ID:", "Loaded image:")


def parse_load_messages(body: bytes) -> List[Dict[str, Any]]:
    """
    Decode a load response body into its JSON messages.

    The engine streams newline-delimited JSON objects; older engines send a
    single object. Lines that are not JSON objects are skipped.
    """
    text = body.decode("utf-8", errors="replace").strip()
    if not text:
        return []

    try:
        whole = json.loads(text)
    except json.JSONDecodeError:
        whole = None
    if isinstance(whole, dict):
        return [whole]

    messages = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            message = json.loads(line)
        except json.JSONDecodeError:
            logger.debug(f"Ignoring non-JSON load response line: {line[:200]}")
            continue
        if isinstance(message, dict):
            messages.append(message)
    return messages


def embedded_error(messages: List[Dict[str, Any]]) -> Optional[str]:
    """Return the first non-empty error message carried by the load response."""
    for message in messages:
        detail = message.get("errorDetail")
        if isinstance(detail, dict) and detail.get("message"):
            return str(detail["message"])
        if message.get("error"):
            return str(message["error"])
    return None


def _loaded_lines(messages: List[Dict[str, Any]]) -> Iterator[str]:
    for message in messages:
        stream = message.get("stream")
        if isinstance(stream, str) and stream.strip().startswith(_LOADED_PREFIXES):
            yield stream.strip()


class ArchiveLoader:
    """Loads image archives into an ImageStore."""

    def __init__(self, store: ImageStore):
        self.store = store

    def load(self, archive_path: Union[str, Path], deadline: Deadline) -> List[Dict[str, Any]]:
        """
        Stream the archive at `archive_path` into the store.

        The archive is opened for the duration of the call only and is
        closed on every exit path.

        Args:
            archive_path: Path to the image tarball
            deadline: Deadline for the load

        Returns:
            Decoded messages from the store's response

        Raises:
            ConfigReadError: If the archive cannot be opened
            ArchiveLoadError: If the store reported a failed load in its response
            StoreTransportError: If the transfer failed
            StoreTimeout: If the deadline expired
        """
        path = Path(archive_path)
        try:
            archive = open(path, "rb")
        except OSError as e:
            raise ConfigReadError(f"error opening archive ({path}): {e}") from e

        with archive:
            logger.debug(f"Loading archive {path} into image store")
            body = self.store.load_archive(archive, deadline)

        messages = parse_load_messages(body)
        error = embedded_error(messages)
        if error:
            logger.error(f"Load error: {error}")
            raise ArchiveLoadError(error)

        for line in _loaded_lines(messages):
            logger.info(line)
        return messages
