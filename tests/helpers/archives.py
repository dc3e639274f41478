"""
Docker image archive helpers for tests.

Writes minimal `docker save`-format tarballs: one empty layer, one config
blob, and a manifest.json. The image ID the engine assigns on load is the
sha256 of the config blob, which these helpers return.
"""
from __future__ import annotations

import hashlib
import io
import json
import tarfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple


def _empty_layer() -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w"):
        pass
    return buf.getvalue()


def _add(tar: tarfile.TarFile, name: str, data: bytes) -> None:
    info = tarfile.TarInfo(name)
    info.size = len(data)
    tar.addfile(info, fileobj=io.BytesIO(data))


def build_docker_archive(
    path: Path,
    *,
    runtime_config: Optional[Dict[str, Any]] = None,
    repo_tags: Optional[List[str]] = None,
    architecture: str = "amd64",
) -> Tuple[str, Dict[str, Any]]:
    """
    Write a loadable image archive to `path`.

    Returns:
        (image_id, config_document) where image_id is "sha256:<hex>"
    """
    layer = _empty_layer()
    layer_hex = hashlib.sha256(layer).hexdigest()

    config: Dict[str, Any] = {
        "architecture": architecture,
        "os": "linux",
        "config": runtime_config if runtime_config is not None else {"Cmd": ["/bin/true"]},
        "rootfs": {"type": "layers", "diff_ids": [f"sha256:{layer_hex}"]},
        "history": [{"created_by": "image-loader tests", "empty_layer": False}],
    }
    config_bytes = json.dumps(config, sort_keys=True, separators=(",", ":")).encode()
    config_hex = hashlib.sha256(config_bytes).hexdigest()

    manifest = [{
        "Config": f"blobs/sha256/{config_hex}",
        "RepoTags": repo_tags or [],
        "Layers": [f"blobs/sha256/{layer_hex}"],
    }]

    with tarfile.open(path, "w") as tar:
        _add(tar, f"blobs/sha256/{layer_hex}", layer)
        _add(tar, f"blobs/sha256/{config_hex}", config_bytes)
        _add(tar, "manifest.json", json.dumps(manifest).encode())

    return f"sha256:{config_hex}", config
