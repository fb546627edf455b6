"""Session-scoped view state for comparing two spec versions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Union

from .models import (
    ComparisonPayload,
    ComparisonStatus,
    EngineConfig,
    ErrorResponse,
    FullSchemaReport,
    ViewMode,
)
from .engine import SpecDiffEngine
from .navigator import next_change, previous_change
from .sections import toggle
from .presenter import (
    UnifiedPresenter,
    SplitPresenter,
    ChangelogPresenter,
    ChangelogView,
    UnifiedView,
    SplitView,
)
from .exceptions import BackendError, InvalidSelectionError, MissingArtifactError
from .utils import nearest_version, latest_before

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchTicket:
    """Identifies one outstanding fetch for a version pair."""
    sequence: int
    pair: tuple


@dataclass
class StatusView:
    """Shown instead of a diff when no comparison is ready."""
    status: ComparisonStatus
    message: str = ""
    fallback_action: Optional[str] = None
    changelog: Optional[ChangelogView] = None


class ComparisonSession:
    """
    Owns the view state for one comparison screen.

    Derived artifacts (report, presenters) are replaced wholesale whenever
    the version pair changes. Search, collapse, navigation and view mode are
    plain state transitions that never recompute the diff.
    """

    def __init__(self, engine: Optional[SpecDiffEngine] = None, config: Optional[EngineConfig] = None):
        self.engine = engine or SpecDiffEngine(config)
        self.changelog_presenter = ChangelogPresenter(self.engine.classifier)

        self.available_versions: tuple = ()
        self.selected: Optional[tuple] = None
        self.status = ComparisonStatus.IDLE
        self.message = ""
        self.notices: list[str] = []

        self.view_mode = ViewMode.UNIFIED
        self.search_query: Any = ""
        self.collapsed: frozenset = frozenset()
        self.current = 0

        self.report: Optional[FullSchemaReport] = None
        self.error: Optional[ErrorResponse] = None
        self.fallback: Optional[ChangelogView] = None
        self._unified: Optional[UnifiedPresenter] = None
        self._split: Optional[SplitPresenter] = None
        self._sequence = 0

    # -------- Version selection --------
    def set_available_versions(self, versions: Iterable[int]):
        self.available_versions = tuple(sorted(set(int(v) for v in versions)))

    def select_versions(self, from_version: Optional[int], to_version: int) -> Optional[FetchTicket]:
        """
        Select a version pair, substituting valid versions where needed.

        Args:
            from_version: Older version (None for the one right before ``to_version``)
            to_version: Newer version

        Returns:
            A ticket for the fetch to perform, or None when no pair is possible
        """
        self.notices = []
        self._clear_artifacts()

        try:
            from_version, to_version = self._resolve_pair(from_version, to_version)
        except InvalidSelectionError as e:
            self.selected = None
            self._set_status(ComparisonStatus.UNAVAILABLE, str(e))
            return None

        self._sequence += 1
        self.selected = (from_version, to_version)
        self._set_status(ComparisonStatus.LOADING, f"Loading v{from_version} -> v{to_version}")
        return FetchTicket(self._sequence, self.selected)

    def _resolve_pair(self, from_version: Optional[int], to_version: int) -> tuple:
        """Map a requested pair onto available versions, recording notices."""
        available = self.available_versions
        if not available:
            if from_version is None:
                from_version = to_version - 1
            return from_version, to_version

        if to_version not in available:
            substitute = nearest_version(to_version, available)
            self._notice(f"Version {to_version} is not available; showing v{substitute}")
            to_version = substitute

        if from_version is not None and from_version not in available:
            substitute = nearest_version(from_version, available)
            self._notice(f"Version {from_version} is not available; comparing with v{substitute}")
            from_version = substitute

        if from_version is None or from_version >= to_version:
            earlier = latest_before(to_version, available)
            if earlier is None:
                raise InvalidSelectionError((from_version, to_version), list(available))
            if from_version is not None:
                self._notice(f"Comparing v{earlier} -> v{to_version} instead")
            from_version = earlier

        return from_version, to_version

    def is_current(self, ticket: FetchTicket) -> bool:
        return ticket.sequence == self._sequence and ticket.pair == self.selected

    # -------- Fetch results --------
    def resolve(self, ticket: FetchTicket, payload: Union[ComparisonPayload, dict]) -> bool:
        """
        Commit fetched documents if the ticket is still current.

        Returns:
            True if the payload was committed, False if it was stale
        """
        if not self.is_current(ticket):
            logger.debug("Discarding stale comparison for %s (selected %s)", ticket.pair, self.selected)
            return False

        if isinstance(payload, dict):
            payload = ComparisonPayload.from_dict(payload)

        result = self.engine.compare(payload.previous_spec, payload.current_spec)
        if isinstance(result, ErrorResponse):
            self.error = result
            if result.code == "MISSING_ARTIFACT":
                self._set_status(ComparisonStatus.UNAVAILABLE, self._unavailable_message())
            else:
                self._set_status(ComparisonStatus.ERROR, result.error["message"])
            return True

        self.report = result
        self._unified = UnifiedPresenter(
            result.parts,
            lines=result.lines,
            sections=result.sections,
            change_index=result.change_index,
        )
        self._split = SplitPresenter(result.parts)
        self.current = 0
        self._set_status(ComparisonStatus.READY, self._ready_message())
        return True

    def fail(self, ticket: FetchTicket, error: Exception) -> bool:
        """Record a failed fetch if the ticket is still current."""
        if not self.is_current(ticket):
            logger.debug("Discarding stale failure for %s: %s", ticket.pair, error)
            return False

        if isinstance(error, MissingArtifactError):
            self._set_status(ComparisonStatus.UNAVAILABLE, self._unavailable_message())
        else:
            self._set_status(ComparisonStatus.ERROR, f"Failed to load comparison: {error}")
        return True

    def attach_fallback(self, diff: Any, summary: Optional[str] = None):
        """Provide the classified-change view for an unavailable comparison."""
        label = f"v{self.selected[1]}" if self.selected else ""
        self.fallback = self.changelog_presenter.present(
            diff, summary=summary, version_label=label, expanded=True
        )

    # -------- View state transitions --------
    def set_search(self, query: Any):
        self.search_query = query

    def toggle_section(self, name: str):
        self.collapsed = toggle(self.collapsed, name)

    def next_change(self) -> Optional[int]:
        """Move to the next change; returns the absolute line to bring into view."""
        index = self.change_index
        self.current = next_change(index, self.current)
        return index[self.current] if index else None

    def previous_change(self) -> Optional[int]:
        """Move to the previous change; returns the absolute line to bring into view."""
        index = self.change_index
        self.current = previous_change(index, self.current)
        return index[self.current] if index else None

    def set_view_mode(self, mode: Union[ViewMode, str]):
        try:
            self.view_mode = ViewMode(mode)
        except ValueError:
            logger.warning("Unknown view mode %r; keeping %s", mode, self.view_mode.value)

    @property
    def change_index(self) -> list[int]:
        return self.report.change_index if self.report else []

    # -------- Rendering --------
    def render(self) -> Union[UnifiedView, SplitView, StatusView]:
        """Current view model for the active mode, or a status view."""
        if self.status is not ComparisonStatus.READY:
            fallback_action = "classified" if self.status is ComparisonStatus.UNAVAILABLE else None
            return StatusView(
                status=self.status,
                message=self.message,
                fallback_action=fallback_action,
                changelog=self.fallback,
            )

        if self.view_mode is ViewMode.SPLIT:
            return self._split.present(self.search_query)
        return self._unified.present(self.search_query, self.collapsed, self.current)

    def render_text(self, context_lines: Optional[int] = None) -> str:
        view = self.render()
        if isinstance(view, StatusView):
            text = f"[{view.status.value}] {view.message}"
            if view.changelog is not None:
                text += "\n" + self.changelog_presenter.render_text(view.changelog)
            return text
        if isinstance(view, SplitView):
            return self._split.render_text(view)
        return self._unified.render_text(view, context_lines)

    # -------- Backend convenience --------
    def load(self, client, spec_id: str, from_version: Optional[int], to_version: int) -> ComparisonStatus:
        """
        Fetch and commit a comparison synchronously.

        Backend failures end up in ``status``/``message``; nothing is raised.
        """
        if not self.available_versions:
            try:
                self.set_available_versions(v.version for v in client.get_spec_versions(spec_id))
            except BackendError as e:
                self._set_status(ComparisonStatus.ERROR, f"Failed to load versions: {e}")
                return self.status

        ticket = self.select_versions(from_version, to_version)
        if ticket is None:
            return self.status

        previous, current = ticket.pair
        try:
            payload = client.compare_versions(spec_id, current, previous)
        except MissingArtifactError as e:
            self.fail(ticket, e)
            self._load_fallback(client, spec_id, current)
            return self.status
        except BackendError as e:
            self.fail(ticket, e)
            return self.status

        self.resolve(ticket, payload)
        return self.status

    def _load_fallback(self, client, spec_id: str, version: int):
        try:
            version_diff = client.get_version_diff(spec_id, version)
        except BackendError as e:
            logger.warning("Classified changes unavailable for v%s: %s", version, e)
            return
        self.attach_fallback(version_diff.diff, version_diff.summary)

    # -------- Internals --------
    def _clear_artifacts(self):
        self.report = None
        self.error = None
        self.fallback = None
        self._unified = None
        self._split = None
        self.current = 0

    def _set_status(self, status: ComparisonStatus, message: str = ""):
        self.status = status
        self.message = message
        logger.info("Comparison %s: %s", status.value, message)

    def _notice(self, message: str):
        logger.warning(message)
        self.notices.append(message)

    def _unavailable_message(self) -> str:
        pair = self.selected or ("?", "?")
        return (f"Full schema comparison is not available for v{pair[0]} -> v{pair[1]}; "
                f"these versions predate full-schema storage. Showing classified changes instead.")

    def _ready_message(self) -> str:
        summary = self.report.summary
        return f"+{summary.lines_added} -{summary.lines_removed} lines"
