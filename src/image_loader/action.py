"""
The load action ledger.

A LoadAction records exactly which mutations one reconciliation performed.
It is a value: every step returns a new LoadAction instead of mutating the
one it was given, and the workflow stamps the elapsed time once, right
before handing the ledger back.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, replace
from datetime import timedelta
from typing import Any, Dict, Optional, Tuple

__all__ = ["LoadAction", "format_duration"]


@dataclass(frozen=True)
class LoadAction:
    """
    Summary of what was done to bring an image into the store.

    When already_loaded is True, tags_added and
    tags_already_present are disjoint and together cover every desired tag.
    """
    digest: str
    already_loaded: bool = False
    tags_added: Tuple[str, ...] = ()
    tags_already_present: Tuple[str, ...] = ()
    load_time: Optional[timedelta] = None

    def mark_loaded(self, digest: str) -> LoadAction:
        """Record that the store already holds the image under `digest`."""
        return replace(self, digest=digest, already_loaded=True)

    def with_tag_added(self, tag: str) -> LoadAction:
        return replace(self, tags_added=self.tags_added + (tag,))

    def with_tag_present(self, tag: str) -> LoadAction:
        return replace(self, tags_already_present=self.tags_already_present + (tag,))

    def finalize(self, elapsed: timedelta) -> LoadAction:
        """Stamp the elapsed time. The returned ledger is the final result."""
        return replace(self, load_time=elapsed)

    def to_dict(self) -> Dict[str, Any]:
        """Stable field-named record for build-system consumption."""
        return {
            "digest": self.digest,
            "alreadyLoaded": self.already_loaded,
            "tagsAdded": list(self.tags_added),
            "tagsAlreadyPresent": list(self.tags_already_present),
            "loadTime": format_duration(self.load_time) if self.load_time is not None else "",
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


def _format_fraction(value: float, unit: str) -> str:
    text = f"{value:.9f}".rstrip("0").rstrip(".")
    return f"{text}{unit}"


def format_duration(delta: timedelta) -> str:
    """
    Render a duration the way build tooling logs expect ("1.5s", "250ms", "2m3.5s").

    Sub-second durations use the largest unit that keeps the value >= 1
    (ms, µs, ns); longer ones use h/m/s components.
    """
    total_ns = int(round(delta.total_seconds() * 1e9))
    if total_ns == 0:
        return "0s"

    sign = "-" if total_ns < 0 else ""
    ns = abs(total_ns)

    if ns < 1_000:
        return f"{sign}{ns}ns"
    if ns < 1_000_000:
        return sign + _format_fraction(ns / 1_000, "µs")
    if ns < 1_000_000_000:
        return sign + _format_fraction(ns / 1_000_000, "ms")

    hours, rem = divmod(ns, 3_600 * 1_000_000_000)
    minutes, rem = divmod(rem, 60 * 1_000_000_000)
    seconds = _format_fraction(rem / 1_000_000_000, "s")

    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}"
    if minutes:
        return f"{sign}{minutes}m{seconds}"
    return sign + seconds
