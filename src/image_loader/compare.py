"""
Semantic comparison of a desired OCI config against a stored image.

Rebuilding an image can change its digest without changing its behavior
(timestamps, layer ordering in the tarball, history entries). The loose
probe uses this comparison to decide that an image already in the store is
"the same image" even though the digests differ.
"""
from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from .models import ImageDescriptor, OciImageConfig, RuntimeConfig

__all__ = ["configs_equal", "describe_config_mismatch"]


def _seq(value: Optional[Sequence[str]]) -> List[str]:
    # Absent and empty are equivalent
    return list(value) if value else []


def _str(value: Optional[str]) -> str:
    return value if value is not None else ""


def _labels(value: Optional[Dict[str, str]]) -> Dict[str, str]:
    return dict(value) if value else {}


def _labels_equal(desired: Dict[str, str], actual: Dict[str, str]) -> bool:
    # Size and value match; an extra label on either side is a mismatch
    if len(desired) != len(actual):
        return False
    for key, value in desired.items():
        if key not in actual or actual[key] != value:
            return False
    return True


def _mismatches(desired: OciImageConfig, actual: ImageDescriptor) -> List[str]:
    fields: List[str] = []

    if desired.architecture != actual.architecture:
        fields.append("architecture")
    if desired.os != actual.os:
        fields.append("os")

    wanted: Optional[RuntimeConfig] = desired.config
    if wanted is None:
        fields.append("config")
        return fields
    have = actual.config or RuntimeConfig()

    if _seq(wanted.env) != _seq(have.env):
        fields.append("Env")
    if _seq(wanted.entrypoint) != _seq(have.entrypoint):
        fields.append("Entrypoint")
    if _seq(wanted.cmd) != _seq(have.cmd):
        fields.append("Cmd")
    if _str(wanted.working_dir) != _str(have.working_dir):
        fields.append("WorkingDir")
    if _str(wanted.user) != _str(have.user):
        fields.append("User")
    if not _labels_equal(_labels(wanted.labels), _labels(have.labels)):
        fields.append("Labels")

    return fields


def describe_config_mismatch(desired: OciImageConfig, actual: ImageDescriptor) -> List[str]:
    """
    Name the compared fields that differ between desired and actual.

    Returns:
        Field names in comparison order; empty when the configs are equal.
        Malformed input yields ["<malformed>"].
    """
    try:
        return _mismatches(desired, actual)
    except (AttributeError, TypeError, ValueError):
        return ["<malformed>"]


def configs_equal(desired: OciImageConfig, actual: ImageDescriptor) -> bool:
    """
    Decide whether a stored image is behaviorally identical to the desired config.

    Rules:
    - architecture and os must match exactly
    - Env, Entrypoint and Cmd match element-wise in order; absent == empty
    - WorkingDir and User match as strings; absent == ""
    - Labels match only if both sides have the same number of entries and
      every desired key maps to the same value in actual

    A desired config without a runtime config block never matches.

    This function performs no I/O and never raises; anything it cannot
    interpret compares as not equal.

    Args:
        desired: OCI config of the image the build produced
        actual: Descriptor the store reports for the candidate image

    Returns:
        True if the stored image can stand in for the desired one
    """
    try:
        return not _mismatches(desired, actual)
    except (AttributeError, TypeError, ValueError):
        return False
