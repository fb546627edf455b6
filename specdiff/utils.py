"""Utility functions for SpecDiff engine."""

from __future__ import annotations

import json
from typing import Any, Iterable, Optional


HTTP_METHODS = frozenset({
    "get", "put", "post", "delete", "options", "head", "patch", "trace",
})


def get_json_size_mb(obj: Any) -> float:
    """Get the approximate size of a JSON object in megabytes."""
    json_str = json.dumps(obj, default=str)
    return len(json_str.encode('utf-8')) / (1024 * 1024)


def split_lines(text: str) -> list[str]:
    """
    Split serialized text into lines.

    The empty string has no lines; otherwise ``"\\n".join(result) == text``.
    """
    if not text:
        return []
    return text.split('\n')


def is_http_method(key: Any) -> bool:
    """Check if a path-item key is an HTTP operation."""
    return isinstance(key, str) and key.lower() in HTTP_METHODS


def nearest_version(requested: int, available: Iterable[int]) -> Optional[int]:
    """
    Find the available version closest to the requested one.

    Ties resolve to the lower version.

    Args:
        requested: The version number asked for
        available: Version numbers that exist

    Returns:
        The nearest version, or None if nothing is available
    """
    candidates = sorted(set(available))
    if not candidates:
        return None
    return min(candidates, key=lambda v: (abs(v - requested), v))


def latest_before(version: int, available: Iterable[int]) -> Optional[int]:
    """Greatest available version strictly lower than ``version``."""
    earlier = [v for v in available if v < version]
    return max(earlier) if earlier else None


def pluralize(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"
