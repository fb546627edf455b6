"""Unified, split and changelog projections over computed diffs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import AbstractSet, Any, Optional, Sequence

from .models import (
    ClassifiedDiff,
    LineDiffPart,
    LineStatus,
    RenderedLine,
    Section,
    Segment,
    Side,
)
from .differ import flatten, reconstruct, serialize_document
from .sections import SectionIndexer, hidden_indices
from .navigator import build_index, ChangeNavigator
from .highlighter import highlight, count_matches, matching_line_indices
from .classifier import ChangeClassifier, format_change
from .exceptions import ValidationError
from .utils import pluralize

MARKERS = {
    LineStatus.ADDED: "+",
    LineStatus.REMOVED: "-",
    LineStatus.UNCHANGED: " ",
}


def _segments_to_text(segments: Sequence[Segment], open_mark: str, close_mark: str) -> str:
    return "".join(
        f"{open_mark}{s.text}{close_mark}" if s.matched else s.text
        for s in segments
    )


def _number(value: Optional[int], width: int = 5) -> str:
    return str(value).rjust(width) if value is not None else " " * width


@dataclass(frozen=True)
class UnifiedRow:
    """One visible line of the unified view."""
    line: RenderedLine
    marker: str
    segments: tuple
    section: Optional[str] = None
    collapsed: bool = False
    hidden_below: int = 0
    focused: bool = False


@dataclass
class UnifiedView:
    rows: list[UnifiedRow] = field(default_factory=list)
    position: str = "no changes"
    focused_line: Optional[int] = None
    total_changes: int = 0
    match_count: int = 0
    match_lines: list[int] = field(default_factory=list)
    hidden_count: int = 0


class UnifiedPresenter:
    """
    Single-column projection in diff order.

    Flattened lines, sections and the change index are derived once per
    diff; ``present`` only applies the transient view state (search query,
    collapsed sections, navigation pointer).
    """

    def __init__(
        self,
        parts: Sequence[LineDiffPart],
        indexer: Optional[SectionIndexer] = None,
        lines: Optional[list[RenderedLine]] = None,
        sections: Optional[list[Section]] = None,
        change_index: Optional[list[int]] = None
    ):
        self.parts = list(parts)
        self.lines = lines if lines is not None else flatten(self.parts)
        if sections is None:
            sections = (indexer or SectionIndexer()).index_sections(self.lines)
        self.sections = sections
        self.change_index = change_index if change_index is not None else build_index(self.parts)
        self._section_at = {s.start_line_index: s for s in self.sections}

    def present(
        self,
        query: Any = "",
        collapsed: AbstractSet[str] = frozenset(),
        current: int = 0
    ) -> UnifiedView:
        """
        Build the visible rows for the given view state.

        Args:
            query: Search text (empty for no highlighting)
            collapsed: Names of collapsed sections
            current: Pointer into the change index

        Returns:
            UnifiedView with rows, position indicator and search stats
        """
        navigator = ChangeNavigator(tuple(self.change_index), current)
        focused = navigator.current_line
        hidden = hidden_indices(self.sections, collapsed, len(self.lines))

        rows = []
        for position, line in enumerate(self.lines):
            if line.index in hidden:
                continue
            section = self._section_at.get(position)
            is_collapsed = section is not None and section.name in collapsed
            hidden_below = 0
            if is_collapsed:
                hidden_below = self._section_length(section) - 1
            rows.append(UnifiedRow(
                line=line,
                marker=MARKERS[line.status],
                segments=tuple(highlight(line.text, query)),
                section=section.name if section else None,
                collapsed=is_collapsed,
                hidden_below=hidden_below,
                focused=line.index == focused,
            ))

        return UnifiedView(
            rows=rows,
            position=navigator.position_label(),
            focused_line=focused,
            total_changes=navigator.total,
            match_count=count_matches((line.text for line in self.lines), query),
            match_lines=matching_line_indices([line.text for line in self.lines], query),
            hidden_count=len(hidden),
        )

    def _section_length(self, section: Section) -> int:
        following = [s.start_line_index for s in self.sections
                     if s.start_line_index > section.start_line_index]
        end = following[0] if following else len(self.lines)
        return end - section.start_line_index

    def render_text(
        self,
        view: UnifiedView,
        context_lines: Optional[int] = None,
        match_marks: tuple[str, str] = ("[", "]")
    ) -> str:
        """
        Render a view for a terminal.

        With ``context_lines`` set, unchanged runs further than that from any
        change are folded into a single ``...`` line.
        """
        out = [f"-- {view.position} --"]
        keep = self._context_filter(view.rows, context_lines)
        skipped = 0

        for i, row in enumerate(view.rows):
            if not keep[i]:
                skipped += 1
                continue
            if skipped:
                out.append(f"{'':>13}... {pluralize(skipped, 'unchanged line')} ...")
                skipped = 0

            pointer = "=>" if row.focused else "  "
            text = _segments_to_text(row.segments, *match_marks)
            line = (f"{pointer}{_number(row.line.old_number)} "
                    f"{_number(row.line.new_number)} {row.marker} {text}")
            if row.collapsed:
                line += f"  ... ({pluralize(row.hidden_below, 'line')} collapsed)"
            out.append(line)

        if skipped:
            out.append(f"{'':>13}... {pluralize(skipped, 'unchanged line')} ...")
        return "\n".join(out)

    def _context_filter(self, rows: Sequence[UnifiedRow], context_lines: Optional[int]) -> list[bool]:
        if context_lines is None:
            return [True] * len(rows)

        keep = [False] * len(rows)
        for i, row in enumerate(rows):
            if row.line.status is not LineStatus.UNCHANGED or row.section or row.focused:
                start = max(0, i - context_lines)
                end = min(len(rows), i + context_lines + 1)
                for j in range(start, end):
                    keep[j] = True
        return keep


@dataclass(frozen=True)
class SplitRow:
    number: int
    text: str
    changed: bool
    segments: tuple


@dataclass
class SplitView:
    previous: list[SplitRow] = field(default_factory=list)
    current: list[SplitRow] = field(default_factory=list)
    match_count: int = 0


class SplitPresenter:
    """
    Two-column projection: previous document left, current document right.

    Each column is rebuilt from the diff and highlighted from its own map:
    ``removed`` is keyed by previous-column line index, ``added`` by
    current-column line index.
    """

    def __init__(self, parts: Sequence[LineDiffPart]):
        self.parts = list(parts)
        self.previous_lines = reconstruct(self.parts, Side.PREVIOUS)
        self.current_lines = reconstruct(self.parts, Side.CURRENT)
        self.removed: dict[int, LineStatus] = {}
        self.added: dict[int, LineStatus] = {}

        previous_index = 0
        current_index = 0
        for part in self.parts:
            for _ in part.lines:
                if part.status is LineStatus.REMOVED:
                    self.removed[previous_index] = LineStatus.REMOVED
                    previous_index += 1
                elif part.status is LineStatus.ADDED:
                    self.added[current_index] = LineStatus.ADDED
                    current_index += 1
                else:
                    previous_index += 1
                    current_index += 1

    def present(self, query: Any = "") -> SplitView:
        previous = [
            SplitRow(i + 1, text, i in self.removed, tuple(highlight(text, query)))
            for i, text in enumerate(self.previous_lines)
        ]
        current = [
            SplitRow(i + 1, text, i in self.added, tuple(highlight(text, query)))
            for i, text in enumerate(self.current_lines)
        ]
        matches = (count_matches(self.previous_lines, query)
                   + count_matches(self.current_lines, query))
        return SplitView(previous=previous, current=current, match_count=matches)

    def render_text(
        self,
        view: SplitView,
        width: int = 60,
        match_marks: tuple[str, str] = ("[", "]")
    ) -> str:
        """Render both columns side by side, each cut to ``width`` characters."""
        out = [f"{'PREVIOUS VERSION':<{width + 9}} | CURRENT VERSION"]
        for i in range(max(len(view.previous), len(view.current))):
            left = self._cell(view.previous, i, "-", width, match_marks)
            right = self._cell(view.current, i, "+", width, match_marks)
            out.append(f"{left} | {right}".rstrip())
        return "\n".join(out)

    def _cell(self, rows, i, marker, width, match_marks) -> str:
        if i >= len(rows):
            return " " * (width + 9)
        row = rows[i]
        text = _segments_to_text(row.segments, *match_marks)[:width]
        return f"{_number(row.number)} {marker if row.changed else ' '} {text:<{width}}"


@dataclass
class ChangelogView:
    """Per-version change summary."""
    version_label: str = ""
    summary: Optional[str] = None
    is_breaking: bool = False
    badge: str = ""
    toggle_label: str = ""
    expanded: bool = False
    breaking: list[str] = field(default_factory=list)
    non_breaking: list[str] = field(default_factory=list)
    raw: Optional[str] = None


class ChangelogPresenter:
    """Breaking/non-breaking changelog for one version's classified changes."""

    def __init__(self, classifier: Optional[ChangeClassifier] = None):
        self.classifier = classifier or ChangeClassifier()

    def present(
        self,
        diff: Any,
        summary: Optional[str] = None,
        version_label: str = "",
        expanded: bool = False
    ) -> Optional[ChangelogView]:
        """
        Build a changelog view.

        Args:
            diff: A ClassifiedDiff or a raw backend diff payload
            summary: Optional natural-language summary shown first
            version_label: Label such as ``v4``
            expanded: Whether the change lists are shown

        Returns:
            ChangelogView, or None when there is nothing to show
        """
        if diff is None:
            return None

        if not isinstance(diff, ClassifiedDiff):
            try:
                diff = self.classifier.classify_payload(diff)
            except ValidationError:
                return ChangelogView(
                    version_label=version_label,
                    summary=summary,
                    raw=serialize_document(diff),
                )

        if not diff.changes:
            return None

        count = len(diff.changes)
        return ChangelogView(
            version_label=version_label,
            summary=summary,
            is_breaking=diff.is_breaking,
            badge="Breaking Changes" if diff.is_breaking else "Non-Breaking",
            toggle_label=f"{'Hide' if expanded else 'Show'} {pluralize(count, 'change')}",
            expanded=expanded,
            breaking=[format_change(c) for c in diff.breaking_changes] if expanded else [],
            non_breaking=[format_change(c) for c in diff.non_breaking_changes] if expanded else [],
        )

    def render_text(self, view: Optional[ChangelogView]) -> str:
        if view is None:
            return "No changes"

        out = []
        if view.version_label:
            out.append(f"Version {view.version_label}")
        if view.summary:
            out.append(f"Summary: {view.summary}")
        if view.raw is not None:
            out.append(view.raw)
            return "\n".join(out)

        out.append(f"[{view.badge}] {view.toggle_label}")
        if view.breaking:
            out.append("Breaking Changes:")
            out.extend(f"  {line}" for line in view.breaking)
        if view.non_breaking:
            out.append("Non-Breaking Changes:")
            out.extend(f"  {line}" for line in view.non_breaking)
        return "\n".join(out)
