"""
SpecDiff - Version Diff Engine for API Specifications

Compares two versions of an OpenAPI/Swagger document line by line,
classifies structural changes as breaking or non-breaking, and projects
the result into unified, split and changelog views with section folding,
change navigation and search highlighting.
"""

from .engine import SpecDiffEngine, compare
from .models import (
    EngineConfig,
    ClientConfig,
    LogLevel,
    ChangeKind,
    AtomicChange,
    ClassifiedDiff,
    LineDiffPart,
    LineStatus,
    RenderedLine,
    Section,
    Segment,
    Side,
    ViewMode,
    ComparisonStatus,
    FullSchemaReport,
    ErrorResponse,
)
from .classifier import ChangeClassifier, classify, format_change
from .differ import LineDiffer, diff_lines, flatten, reconstruct
from .sections import SectionIndexer, index_sections, toggle, visible_lines
from .navigator import ChangeNavigator, build_index, next_change, previous_change
from .highlighter import highlight, count_matches
from .detector import ChangeDetector, detect_changes
from .presenter import (
    UnifiedPresenter,
    SplitPresenter,
    ChangelogPresenter,
)
from .session import ComparisonSession, FetchTicket
from .client import SpecsApiClient
from .runner import (
    SpecDiffRunner,
    compare_files,
    load_config,
    load_document,
)

__version__ = "1.0.0"
__all__ = [
    # Engine
    "SpecDiffEngine",
    "EngineConfig",
    "compare",
    # Models
    "LogLevel",
    "ChangeKind",
    "AtomicChange",
    "ClassifiedDiff",
    "LineDiffPart",
    "LineStatus",
    "RenderedLine",
    "Section",
    "Segment",
    "Side",
    "ViewMode",
    "ComparisonStatus",
    "FullSchemaReport",
    "ErrorResponse",
    # Classification
    "ChangeClassifier",
    "ChangeDetector",
    "classify",
    "detect_changes",
    "format_change",
    # Line diff
    "LineDiffer",
    "diff_lines",
    "flatten",
    "reconstruct",
    # Sections, navigation, search
    "SectionIndexer",
    "index_sections",
    "toggle",
    "visible_lines",
    "ChangeNavigator",
    "build_index",
    "next_change",
    "previous_change",
    "highlight",
    "count_matches",
    # Presenters
    "UnifiedPresenter",
    "SplitPresenter",
    "ChangelogPresenter",
    # Session
    "ComparisonSession",
    "FetchTicket",
    "SpecsApiClient",
    "ClientConfig",
    # Simple Runner
    "SpecDiffRunner",
    "compare_files",
    "load_config",
    "load_document",
]
