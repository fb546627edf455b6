"""Breaking/non-breaking classification of structured spec changes."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from .models import (
    AtomicChange,
    ClassifiedDiff,
    ChangeKind,
    BREAKING_KINDS,
    KNOWN_KINDS,
)
from .exceptions import ValidationError

logger = logging.getLogger(__name__)


class ChangeClassifier:
    """
    Labels a version as breaking or non-breaking.

    Classification is a membership test of each change kind against the
    closed BREAKING_KINDS set, done once when the diff is built. Kinds that
    are not recognised count as non-breaking and are reported through the
    log so a new upstream kind does not go unnoticed.
    """

    def __init__(self, breaking_kinds: Optional[Iterable[str]] = None):
        self.breaking_kinds = frozenset(breaking_kinds) if breaking_kinds is not None else BREAKING_KINDS

    def classify(self, changes: Iterable[AtomicChange]) -> ClassifiedDiff:
        """
        Classify an ordered list of atomic changes.

        Args:
            changes: Changes in detection order (may be empty)

        Returns:
            ClassifiedDiff with changes in input order and both partitions
        """
        ordered = tuple(changes)
        breaking = []
        non_breaking = []

        for change in ordered:
            if change.kind not in KNOWN_KINDS:
                logger.warning("Unrecognised change kind %r at %s; treating as non-breaking",
                               change.kind, change.path)
            elif not change.is_well_formed():
                logger.warning("Change %s at %s has unexpected method/field presence",
                               change.kind, change.path)

            if change.kind in self.breaking_kinds:
                breaking.append(change)
            else:
                non_breaking.append(change)

        return ClassifiedDiff(
            is_breaking=bool(breaking),
            changes=ordered,
            breaking_changes=tuple(breaking),
            non_breaking_changes=tuple(non_breaking),
        )

    def classify_payload(self, payload: Any) -> ClassifiedDiff:
        """
        Classify a backend diff payload.

        Accepts ``{"breaking": bool, "changes": [...]}`` as well as the older
        ``{"endpoints_added": [...], "endpoints_removed": [...]}`` shape.

        Raises:
            ValidationError: If the payload has neither shape
        """
        changes = parse_changes(payload)
        result = self.classify(changes)

        upstream = payload.get('breaking') if isinstance(payload, dict) else None
        if upstream is not None and bool(upstream) != result.is_breaking:
            logger.warning("Upstream breaking flag (%s) disagrees with classification (%s)",
                           upstream, result.is_breaking)
        return result


def parse_changes(payload: Any) -> list[AtomicChange]:
    """Extract the ordered AtomicChange list from a backend diff payload."""
    if not isinstance(payload, dict):
        raise ValidationError(
            "Diff payload must be an object",
            {"type": type(payload).__name__}
        )

    if 'changes' in payload:
        raw = payload.get('changes') or []
        if not isinstance(raw, list):
            raise ValidationError("'changes' must be a list", {"type": type(raw).__name__})
        return [AtomicChange.from_dict(item) for item in raw if isinstance(item, dict)]

    if 'endpoints_added' in payload or 'endpoints_removed' in payload:
        changes = []
        for item in payload.get('endpoints_removed') or []:
            changes.append(_legacy_change(item, removed=True))
        for item in payload.get('endpoints_added') or []:
            changes.append(_legacy_change(item, removed=False))
        return changes

    raise ValidationError(
        "Diff payload has no structured changes",
        {"keys": sorted(payload.keys())}
    )


def _legacy_change(item: Any, removed: bool) -> AtomicChange:
    """Map an old-style endpoint entry (string or dict) to an AtomicChange."""
    if isinstance(item, str):
        method, _, path = item.partition(' ')
        if path.startswith('/'):
            return AtomicChange(
                kind=(ChangeKind.METHOD_REMOVED if removed else ChangeKind.METHOD_ADDED).value,
                path=path,
                method=method.upper(),
            )
        return AtomicChange(
            kind=(ChangeKind.ENDPOINT_REMOVED if removed else ChangeKind.ENDPOINT_ADDED).value,
            path=item,
        )

    path = str(item.get('path') or item.get('endpoint') or '')
    method = item.get('method')
    if method:
        kind = ChangeKind.METHOD_REMOVED if removed else ChangeKind.METHOD_ADDED
        return AtomicChange(kind=kind.value, path=path, method=str(method).upper())
    kind = ChangeKind.ENDPOINT_REMOVED if removed else ChangeKind.ENDPOINT_ADDED
    return AtomicChange(kind=kind.value, path=path)


def format_change(change: AtomicChange) -> str:
    """One-line description of a change for changelog output."""
    kind, path, method, field_name = change.kind, change.path, change.method, change.field

    if kind == ChangeKind.ENDPOINT_ADDED.value:
        return f"+ Added endpoint: {path}"
    if kind == ChangeKind.ENDPOINT_REMOVED.value:
        return f"- Removed endpoint: {path}"
    if kind == ChangeKind.METHOD_ADDED.value:
        return f"+ Added method: {method} {path}"
    if kind == ChangeKind.METHOD_REMOVED.value:
        return f"- Removed method: {method} {path}"
    if kind == ChangeKind.REQUIRED_REQUEST_FIELD_ADDED.value:
        return f"+ Required request field: {method} {path} -> {field_name}"
    if kind == ChangeKind.REQUIRED_REQUEST_FIELD_REMOVED.value:
        return f"- Removed required request field: {method} {path} -> {field_name}"
    if kind == ChangeKind.REQUIRED_RESPONSE_FIELD_ADDED.value:
        return f"+ Required response field: {method} {path} -> {field_name}"
    if kind == ChangeKind.REQUIRED_RESPONSE_FIELD_REMOVED.value:
        return f"- Removed required response field: {method} {path} -> {field_name}"
    return f"{kind}: {path}"


def classify(changes: Iterable[AtomicChange]) -> ClassifiedDiff:
    """Convenience function to classify a change list."""
    return ChangeClassifier().classify(changes)
