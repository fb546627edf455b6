"""Sequential navigation over the changed lines of a diff."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from .models import LineDiffPart, LineStatus


def build_index(parts: Sequence[LineDiffPart]) -> list[int]:
    """
    Absolute indices of every added or removed line.

    Lines are numbered from 0 across all parts in order.
    """
    index = []
    position = 0
    for part in parts:
        count = len(part.lines)
        if part.status is not LineStatus.UNCHANGED:
            index.extend(range(position, position + count))
        position += count
    return index


def next_change(index: Sequence[int], current: int) -> int:
    """Advance the pointer with wrap-around; no-op on an empty index."""
    if not index:
        return current
    return (current + 1) % len(index)


def previous_change(index: Sequence[int], current: int) -> int:
    """Step the pointer back with wrap-around; no-op on an empty index."""
    if not index:
        return current
    return (current - 1) % len(index)


@dataclass(frozen=True)
class ChangeNavigator:
    """Immutable (index, pointer) pair; moves return new navigators."""
    index: tuple = ()
    current: int = 0

    @classmethod
    def from_parts(cls, parts: Sequence[LineDiffPart]) -> 'ChangeNavigator':
        return cls(index=tuple(build_index(parts)), current=0)

    def next(self) -> 'ChangeNavigator':
        return ChangeNavigator(self.index, next_change(self.index, self.current))

    def previous(self) -> 'ChangeNavigator':
        return ChangeNavigator(self.index, previous_change(self.index, self.current))

    @property
    def total(self) -> int:
        return len(self.index)

    @property
    def current_line(self) -> Optional[int]:
        """Absolute line index to bring into view, if there are changes."""
        if not self.index:
            return None
        return self.index[self.current % len(self.index)]

    def position_label(self) -> str:
        if not self.index:
            return "no changes"
        return f"change {self.current % len(self.index) + 1} of {len(self.index)}"
