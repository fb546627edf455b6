"""Data models for SpecDiff engine."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class LogLevel(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"

    @property
    def level(self) -> int:
        """Matching standard library logging level."""
        if self is LogLevel.WARN:
            return logging.WARNING
        return getattr(logging, self.value)


class ChangeKind(Enum):
    ENDPOINT_ADDED = "endpoint_added"
    ENDPOINT_REMOVED = "endpoint_removed"
    METHOD_ADDED = "method_added"
    METHOD_REMOVED = "method_removed"
    REQUIRED_REQUEST_FIELD_ADDED = "required_request_field_added"
    REQUIRED_REQUEST_FIELD_REMOVED = "required_request_field_removed"
    REQUIRED_RESPONSE_FIELD_ADDED = "required_response_field_added"
    REQUIRED_RESPONSE_FIELD_REMOVED = "required_response_field_removed"


# Closed set. New breaking kinds must be added here explicitly.
BREAKING_KINDS = frozenset({
    ChangeKind.ENDPOINT_REMOVED.value,
    ChangeKind.METHOD_REMOVED.value,
    ChangeKind.REQUIRED_REQUEST_FIELD_ADDED.value,
    ChangeKind.REQUIRED_RESPONSE_FIELD_REMOVED.value,
})

FIELD_LEVEL_KINDS = frozenset({
    ChangeKind.REQUIRED_REQUEST_FIELD_ADDED.value,
    ChangeKind.REQUIRED_REQUEST_FIELD_REMOVED.value,
    ChangeKind.REQUIRED_RESPONSE_FIELD_ADDED.value,
    ChangeKind.REQUIRED_RESPONSE_FIELD_REMOVED.value,
})

METHOD_LEVEL_KINDS = frozenset({
    ChangeKind.METHOD_ADDED.value,
    ChangeKind.METHOD_REMOVED.value,
}) | FIELD_LEVEL_KINDS

KNOWN_KINDS = frozenset(k.value for k in ChangeKind)


class LineStatus(Enum):
    ADDED = "added"
    REMOVED = "removed"
    UNCHANGED = "unchanged"


class Side(Enum):
    PREVIOUS = "previous"
    CURRENT = "current"


class ViewMode(Enum):
    UNIFIED = "unified"
    SPLIT = "split"


class ComparisonStatus(Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    UNAVAILABLE = "unavailable"
    ERROR = "error"


DEFAULT_SECTION_KEYS = (
    "openapi",
    "swagger",
    "info",
    "servers",
    "paths",
    "webhooks",
    "components",
    "definitions",
    "security",
    "tags",
    "externalDocs",
)


@dataclass
class EngineConfig:
    """Global configuration for the comparison engine."""
    indent: int = 2
    max_payload_size_mb: float = 50
    detect_changes: bool = True
    section_keys: tuple = DEFAULT_SECTION_KEYS
    context_lines: Optional[int] = None
    collect_statistics: bool = True
    log_level: LogLevel = LogLevel.INFO

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> 'EngineConfig':
        """Build a config from a plain mapping, ignoring unknown keys."""
        if not data:
            return cls()

        config = cls()
        if 'indent' in data:
            config.indent = int(data['indent'])
        if 'max_payload_size_mb' in data:
            config.max_payload_size_mb = float(data['max_payload_size_mb'])
        if 'detect_changes' in data:
            config.detect_changes = bool(data['detect_changes'])
        if data.get('section_keys'):
            config.section_keys = tuple(data['section_keys'])
        if data.get('context_lines') is not None:
            config.context_lines = int(data['context_lines'])
        if 'collect_statistics' in data:
            config.collect_statistics = bool(data['collect_statistics'])
        level = str(data.get('log_level', '')).upper()
        if level in [lv.value for lv in LogLevel]:
            config.log_level = LogLevel(level)
        return config


@dataclass
class ClientConfig:
    """Connection settings for the specs backend."""
    base_url: str = "http://localhost:8000"
    tenant_id: str = ""
    timeout_s: int = 30
    max_retries: int = 3

    @classmethod
    def from_env(cls) -> 'ClientConfig':
        return cls(
            base_url=os.getenv("SPECDIFF_API_BASE_URL", "http://localhost:8000").rstrip('/'),
            tenant_id=os.getenv("SPECDIFF_TENANT_ID", ""),
            timeout_s=int(os.getenv("SPECDIFF_HTTP_TIMEOUT_S", "30")),
            max_retries=int(os.getenv("SPECDIFF_HTTP_RETRIES", "3")),
        )


@dataclass(frozen=True)
class AtomicChange:
    """A single structural change between two spec versions."""
    kind: str
    path: str
    method: Optional[str] = None
    field: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> 'AtomicChange':
        """Build from a backend change record (``type`` or ``kind`` key)."""
        kind = data.get('kind') or data.get('type') or ''
        if isinstance(kind, ChangeKind):
            kind = kind.value
        return cls(
            kind=str(kind),
            path=str(data.get('path') or data.get('endpoint') or ''),
            method=data.get('method'),
            field=data.get('field'),
        )

    def is_well_formed(self) -> bool:
        """Check the method/field presence rules for known kinds."""
        if self.kind not in KNOWN_KINDS:
            return True
        has_method = self.method is not None
        has_field = self.field is not None
        return (
            has_field == (self.kind in FIELD_LEVEL_KINDS)
            and has_method == (self.kind in METHOD_LEVEL_KINDS)
        )

    def to_dict(self) -> dict:
        result = {"kind": self.kind, "path": self.path}
        if self.method is not None:
            result["method"] = self.method
        if self.field is not None:
            result["field"] = self.field
        return result


@dataclass(frozen=True)
class ClassifiedDiff:
    """Breaking/non-breaking classification of an ordered change list."""
    is_breaking: bool
    changes: tuple = ()
    breaking_changes: tuple = ()
    non_breaking_changes: tuple = ()

    def to_dict(self) -> dict:
        return {
            "breaking": self.is_breaking,
            "changes": [c.to_dict() for c in self.changes],
            "breaking_count": len(self.breaking_changes),
            "non_breaking_count": len(self.non_breaking_changes),
        }


@dataclass(frozen=True)
class LineDiffPart:
    """A maximal run of lines sharing one diff status."""
    status: LineStatus
    lines: tuple = ()

    def to_dict(self) -> dict:
        return {"status": self.status.value, "lines": list(self.lines)}


@dataclass(frozen=True)
class RenderedLine:
    """One line of a flattened diff with its position in both documents."""
    index: int
    text: str
    status: LineStatus
    old_number: Optional[int] = None
    new_number: Optional[int] = None


@dataclass(frozen=True)
class Section:
    name: str
    start_line_index: int

    def to_dict(self) -> dict:
        return {"name": self.name, "start_line_index": self.start_line_index}


@dataclass(frozen=True)
class Segment:
    text: str
    matched: bool = False


@dataclass
class ExecutionInfo:
    """Execution metadata."""
    duration_ms: int
    timestamp: str
    engine_version: str = "1.0.0"

    def to_dict(self) -> dict:
        return {
            "duration_ms": self.duration_ms,
            "timestamp": self.timestamp,
            "engine_version": self.engine_version,
        }


@dataclass
class Summary:
    """Summary statistics of a full-document comparison."""
    lines_added: int = 0
    lines_removed: int = 0
    lines_unchanged: int = 0
    changed_lines: int = 0
    sections: int = 0

    def to_dict(self) -> dict:
        return {
            "lines_added": self.lines_added,
            "lines_removed": self.lines_removed,
            "lines_unchanged": self.lines_unchanged,
            "changed_lines": self.changed_lines,
            "sections": self.sections,
        }


@dataclass
class FullSchemaReport:
    """Complete full-document comparison report."""
    execution: ExecutionInfo
    summary: Summary
    parts: list[LineDiffPart] = field(default_factory=list)
    lines: list[RenderedLine] = field(default_factory=list)
    change_index: list[int] = field(default_factory=list)
    sections: list[Section] = field(default_factory=list)
    classification: Optional[ClassifiedDiff] = None

    @property
    def is_identical(self) -> bool:
        return not self.change_index

    def to_dict(self) -> dict:
        result = {
            "identical": self.is_identical,
            "execution": self.execution.to_dict(),
            "summary": self.summary.to_dict(),
            "parts": [p.to_dict() for p in self.parts],
            "change_index": list(self.change_index),
            "sections": [s.to_dict() for s in self.sections],
        }
        if self.classification is not None:
            result["classification"] = self.classification.to_dict()
        return result


@dataclass
class ErrorResponse:
    """Error response structure."""
    success: bool = False
    error: Optional[dict] = None

    @property
    def code(self) -> Optional[str]:
        return self.error.get("code") if self.error else None

    def to_dict(self) -> dict:
        result = {"success": self.success}
        if self.error:
            result["error"] = self.error
        return result


@dataclass
class SpecVersion:
    """A stored specification version as listed by the backend."""
    version: int
    created_at: str = ""
    label: Optional[str] = None
    changelog: Optional[str] = None
    diff: Any = None
    summary: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> 'SpecVersion':
        return cls(
            version=int(data['version']),
            created_at=data.get('created_at', ''),
            label=data.get('label'),
            changelog=data.get('changelog'),
            diff=data.get('diff'),
            summary=data.get('summary'),
        )


@dataclass
class VersionDiff:
    """Pre-classified change payload for one version."""
    version: int
    diff: Any = None
    summary: Optional[str] = None
    created_at: str = ""
    version_id: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict) -> 'VersionDiff':
        return cls(
            version=int(data.get('version', 0)),
            diff=data.get('diff'),
            summary=data.get('summary'),
            created_at=data.get('created_at', ''),
            version_id=data.get('version_id'),
        )


@dataclass
class ComparisonPayload:
    """Two full documents handed over by the backend for one version pair."""
    previous_version: int
    current_version: int
    previous_spec: Any = None
    current_spec: Any = None

    @classmethod
    def from_dict(cls, data: dict) -> 'ComparisonPayload':
        return cls(
            previous_version=int(data.get('previous_version', 0)),
            current_version=int(data.get('current_version', 0)),
            previous_spec=data.get('previous_spec'),
            current_spec=data.get('current_spec'),
        )

    @property
    def pair(self) -> tuple[int, int]:
        return (self.previous_version, self.current_version)

    @property
    def missing_versions(self) -> list[int]:
        missing = []
        if self.previous_spec is None:
            missing.append(self.previous_version)
        if self.current_spec is None:
            missing.append(self.current_version)
        return missing
