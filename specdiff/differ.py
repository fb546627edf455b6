"""Line-level diffing of serialized specification documents."""

from __future__ import annotations

import json
import logging
from typing import Any

from .models import LineDiffPart, LineStatus, RenderedLine, Side
from .utils import split_lines

logger = logging.getLogger(__name__)


def serialize_document(document: Any, indent: int = 2) -> str:
    """
    Pretty-print a spec document with one logical element per line.

    Key order is preserved, so equal documents always serialize identically.
    """
    return json.dumps(document, indent=indent, ensure_ascii=False, default=str)


class LineDiffer:
    """
    Computes a minimal edit script between two line sequences.

    Implements Myers' O(N*D) greedy algorithm on the region left over after
    trimming the common prefix and suffix. Output parts are maximal runs of
    a single status; inside a change hunk removed lines come before added
    lines.
    """

    def diff(self, old_text: str, new_text: str) -> list[LineDiffPart]:
        """
        Diff two serialized documents line by line.

        Args:
            old_text: The previous document text
            new_text: The current document text

        Returns:
            Ordered list of LineDiffPart
        """
        return self.diff_sequences(split_lines(old_text), split_lines(new_text))

    def diff_sequences(self, old: list[str], new: list[str]) -> list[LineDiffPart]:
        """Diff two already-split line sequences."""
        prefix = _common_prefix(old, new)
        suffix = _common_suffix(old, new, prefix)

        ops = [(LineStatus.UNCHANGED, line) for line in old[:prefix]]
        ops.extend(self._edit_script(
            old[prefix:len(old) - suffix],
            new[prefix:len(new) - suffix],
        ))
        ops.extend((LineStatus.UNCHANGED, line) for line in old[len(old) - suffix:])

        parts = _group(ops)
        logger.debug(
            "Diffed %d vs %d lines: prefix=%d suffix=%d parts=%d",
            len(old), len(new), prefix, suffix, len(parts)
        )
        return parts

    def _edit_script(self, a: list[str], b: list[str]) -> list[tuple[LineStatus, str]]:
        """Shortest edit script between a and b as (status, line) pairs."""
        n, m = len(a), len(b)
        if n == 0:
            return [(LineStatus.ADDED, line) for line in b]
        if m == 0:
            return [(LineStatus.REMOVED, line) for line in a]

        max_d = n + m
        offset = max_d + 1
        v = [0] * (2 * max_d + 3)
        # trace[d] holds v[-d-1 .. d+1] as it was before round d
        trace: list[list[int]] = []

        for d in range(max_d + 1):
            trace.append(v[offset - d - 1:offset + d + 2])
            for k in range(-d, d + 1, 2):
                if k == -d or (k != d and v[offset + k - 1] < v[offset + k + 1]):
                    x = v[offset + k + 1]
                else:
                    x = v[offset + k - 1] + 1
                y = x - k
                while x < n and y < m and a[x] == b[y]:
                    x += 1
                    y += 1
                v[offset + k] = x
                if x >= n and y >= m:
                    return self._backtrack(trace, a, b)

        # Unreachable: d == n + m always reaches the end.
        raise RuntimeError("edit script search did not terminate")

    def _backtrack(
        self,
        trace: list[list[int]],
        a: list[str],
        b: list[str]
    ) -> list[tuple[LineStatus, str]]:
        """Walk the saved frontiers back from (n, m) to (0, 0)."""
        x, y = len(a), len(b)
        ops: list[tuple[LineStatus, str]] = []

        for d in range(len(trace) - 1, -1, -1):
            frontier = trace[d]
            k = x - y
            if k == -d or (k != d and frontier[k - 1 + d + 1] < frontier[k + 1 + d + 1]):
                prev_k = k + 1
            else:
                prev_k = k - 1
            prev_x = frontier[prev_k + d + 1]
            prev_y = prev_x - prev_k

            while x > prev_x and y > prev_y:
                ops.append((LineStatus.UNCHANGED, a[x - 1]))
                x -= 1
                y -= 1

            if d > 0:
                if x == prev_x:
                    ops.append((LineStatus.ADDED, b[prev_y]))
                else:
                    ops.append((LineStatus.REMOVED, a[prev_x]))
            x, y = prev_x, prev_y

        ops.reverse()
        return ops


def _common_prefix(a: list[str], b: list[str]) -> int:
    limit = min(len(a), len(b))
    i = 0
    while i < limit and a[i] == b[i]:
        i += 1
    return i


def _common_suffix(a: list[str], b: list[str], prefix: int) -> int:
    limit = min(len(a), len(b)) - prefix
    i = 0
    while i < limit and a[-1 - i] == b[-1 - i]:
        i += 1
    return i


def _group(ops: list[tuple[LineStatus, str]]) -> list[LineDiffPart]:
    """Collapse an op list into maximal single-status parts."""
    parts: list[LineDiffPart] = []
    unchanged: list[str] = []
    removed: list[str] = []
    added: list[str] = []

    def flush_changes():
        if removed:
            parts.append(LineDiffPart(LineStatus.REMOVED, tuple(removed)))
            removed.clear()
        if added:
            parts.append(LineDiffPart(LineStatus.ADDED, tuple(added)))
            added.clear()

    for status, line in ops:
        if status is LineStatus.UNCHANGED:
            flush_changes()
            unchanged.append(line)
        else:
            if unchanged:
                parts.append(LineDiffPart(LineStatus.UNCHANGED, tuple(unchanged)))
                unchanged.clear()
            if status is LineStatus.REMOVED:
                removed.append(line)
            else:
                added.append(line)

    if unchanged:
        parts.append(LineDiffPart(LineStatus.UNCHANGED, tuple(unchanged)))
    flush_changes()
    return parts


def diff_lines(old_text: str, new_text: str) -> list[LineDiffPart]:
    """Convenience function to diff two serialized documents."""
    return LineDiffer().diff(old_text, new_text)


def flatten(parts: list[LineDiffPart]) -> list[RenderedLine]:
    """
    Flatten diff parts into absolutely indexed lines.

    Each line carries its 1-based number in the previous and/or current
    document (None on the side where it does not exist).
    """
    lines: list[RenderedLine] = []
    old_number = 0
    new_number = 0

    for part in parts:
        for text in part.lines:
            old_no = new_no = None
            if part.status is not LineStatus.ADDED:
                old_number += 1
                old_no = old_number
            if part.status is not LineStatus.REMOVED:
                new_number += 1
                new_no = new_number
            lines.append(RenderedLine(
                index=len(lines),
                text=text,
                status=part.status,
                old_number=old_no,
                new_number=new_no,
            ))

    return lines


def reconstruct(parts: list[LineDiffPart], side: Side) -> list[str]:
    """Rebuild the previous or current document's lines from a diff."""
    skipped = LineStatus.ADDED if side is Side.PREVIOUS else LineStatus.REMOVED
    result: list[str] = []
    for part in parts:
        if part.status is not skipped:
            result.extend(part.lines)
    return result


def diff_stats(parts: list[LineDiffPart]) -> dict[str, int]:
    """Count lines per status."""
    stats = {status.value: 0 for status in LineStatus}
    for part in parts:
        stats[part.status.value] += len(part.lines)
    return stats
