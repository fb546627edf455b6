"""Section boundaries and collapse state over rendered diff lines."""

from __future__ import annotations

import re
from typing import AbstractSet, Iterable, Sequence, Union

from .models import DEFAULT_SECTION_KEYS, RenderedLine, Section

PATH_KEY_PATTERN = re.compile(r'^\s*"(/[^"]*)"\s*:')

LineLike = Union[RenderedLine, str]


class SectionIndexer:
    """
    Finds structural boundaries by matching line text.

    A boundary is either a quoted key starting with ``/`` (a path entry, at
    any depth) or one of the configured top-level keys at the top-level
    indentation. No parsing is involved, so the same rules work on any mix
    of added, removed and unchanged lines.
    """

    def __init__(self, section_keys: Iterable[str] = DEFAULT_SECTION_KEYS, indent: int = 2):
        keys = "|".join(re.escape(k) for k in section_keys)
        self._top_level = re.compile(r'^ {%d}"(%s)"\s*:' % (indent, keys)) if keys else None

    def boundary_name(self, text: str):
        """Section name if the line starts a section, else None."""
        match = PATH_KEY_PATTERN.match(text)
        if match:
            return match.group(1)
        if self._top_level is not None:
            match = self._top_level.match(text)
            if match:
                return match.group(1)
        return None

    def index_sections(self, lines: Sequence[LineLike]) -> list[Section]:
        """
        Scan the full flattened line sequence for section boundaries.

        Args:
            lines: Every rendered line of the diff, in order

        Returns:
            Sections ordered by start line index
        """
        sections = []
        for position, line in enumerate(lines):
            text = line.text if isinstance(line, RenderedLine) else line
            name = self.boundary_name(text)
            if name is not None:
                sections.append(Section(name=name, start_line_index=position))
        return sections


def toggle(collapsed: AbstractSet[str], name: str) -> frozenset:
    """Return a new collapsed set with ``name`` flipped."""
    return frozenset(collapsed) ^ {name}


def hidden_indices(
    sections: Sequence[Section],
    collapsed: AbstractSet[str],
    total_lines: int
) -> set[int]:
    """
    Line indices hidden by the collapsed sections.

    A collapsed section hides every line after its boundary up to, but not
    including, the next boundary. The last section runs to the end.
    """
    hidden: set[int] = set()
    if not collapsed:
        return hidden

    for i, section in enumerate(sections):
        if section.name not in collapsed:
            continue
        end = sections[i + 1].start_line_index if i + 1 < len(sections) else total_lines
        hidden.update(range(section.start_line_index + 1, end))
    return hidden


def visible_lines(
    lines: Sequence[RenderedLine],
    sections: Sequence[Section],
    collapsed: AbstractSet[str]
) -> list[RenderedLine]:
    """Lines that remain visible under the given collapse state."""
    hidden = hidden_indices(sections, collapsed, len(lines))
    return [line for line in lines if line.index not in hidden]


def index_sections(lines: Sequence[LineLike]) -> list[Section]:
    """Convenience function using the default section keys."""
    return SectionIndexer().index_sections(lines)
