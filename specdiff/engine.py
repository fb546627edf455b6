"""Main comparison engine for SpecDiff."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from .models import (
    EngineConfig,
    FullSchemaReport,
    ExecutionInfo,
    Summary,
    ErrorResponse,
    ClassifiedDiff,
    AtomicChange,
)
from .differ import LineDiffer, serialize_document, flatten, diff_stats
from .sections import SectionIndexer
from .navigator import build_index
from .classifier import ChangeClassifier
from .detector import ChangeDetector
from .exceptions import (
    ValidationError,
    MissingArtifactError,
    PayloadSizeError,
)
from .utils import get_json_size_mb

logger = logging.getLogger(__name__)


class SpecDiffEngine:
    """
    Main comparison engine that orchestrates the pipeline:

    1. Validation: both documents present and within size limits
    2. Serialization: stable pretty-printed JSON, one element per line
    3. Line Diffing: minimal edit script between the two texts
    4. Indexing: change index and section boundaries over the flattened diff
    5. Classification: structured changes detected and labelled breaking or not
    """

    VERSION = "1.0.0"

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Initialize the engine.

        Args:
            config: Engine configuration (uses defaults if not provided)
        """
        self.config = config or EngineConfig()
        self.differ = LineDiffer()
        self.indexer = SectionIndexer(self.config.section_keys, self.config.indent)
        self.classifier = ChangeClassifier()
        self.detector = ChangeDetector()

    def compare(
        self,
        previous_spec: Any,
        current_spec: Any
    ) -> FullSchemaReport | ErrorResponse:
        """
        Compare two full specification documents.

        Args:
            previous_spec: The older document (None when not stored upstream)
            current_spec: The newer document (None when not stored upstream)

        Returns:
            FullSchemaReport on success, ErrorResponse on validation/processing errors
        """
        start_time = time.time()

        try:
            self._validate_inputs(previous_spec, current_spec)

            previous_text = serialize_document(previous_spec, self.config.indent)
            current_text = serialize_document(current_spec, self.config.indent)
            logger.info("Comparing documents: %d vs %d chars",
                        len(previous_text), len(current_text))

            parts = self.differ.diff(previous_text, current_text)
            lines = flatten(parts)
            change_index = build_index(parts)
            sections = self.indexer.index_sections(lines)

            classification = None
            if self.config.detect_changes and isinstance(previous_spec, dict) \
                    and isinstance(current_spec, dict):
                classification = self.classifier.classify(
                    self.detector.detect(previous_spec, current_spec)
                )

            summary = Summary()
            if self.config.collect_statistics:
                stats = diff_stats(parts)
                summary = Summary(
                    lines_added=stats["added"],
                    lines_removed=stats["removed"],
                    lines_unchanged=stats["unchanged"],
                    changed_lines=len(change_index),
                    sections=len(sections),
                )

            duration_ms = int((time.time() - start_time) * 1000)
            logger.info("Comparison complete in %dms: %d changed lines, %d sections",
                        duration_ms, len(change_index), len(sections))

            return FullSchemaReport(
                execution=ExecutionInfo(
                    duration_ms=duration_ms,
                    timestamp=datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
                    engine_version=self.VERSION
                ),
                summary=summary,
                parts=parts,
                lines=lines,
                change_index=change_index,
                sections=sections,
                classification=classification,
            )

        except MissingArtifactError as e:
            return self._create_error_response(
                "MISSING_ARTIFACT",
                e.message,
                {"versions": e.versions, "sides": e.sides}
            )
        except ValidationError as e:
            return self._create_error_response(
                "VALIDATION_ERROR",
                e.message,
                e.details
            )
        except PayloadSizeError as e:
            return self._create_error_response(
                "PAYLOAD_SIZE_ERROR",
                str(e),
                {"size_mb": e.size_mb, "limit_mb": e.limit_mb}
            )
        except Exception as e:
            logger.error("Comparison failed: %s", e, exc_info=True)
            return self._create_error_response(
                "COMPUTATION_ERROR",
                str(e),
                {"type": type(e).__name__}
            )

    def classify(self, changes: Iterable[AtomicChange]) -> ClassifiedDiff:
        """Classify a pre-computed change list."""
        return self.classifier.classify(changes)

    def classify_payload(self, payload: Any) -> ClassifiedDiff | ErrorResponse:
        """Classify a backend diff payload, reporting bad payloads as errors."""
        try:
            return self.classifier.classify_payload(payload)
        except ValidationError as e:
            return self._create_error_response("VALIDATION_ERROR", e.message, e.details)

    def _validate_inputs(self, previous_spec: Any, current_spec: Any):
        """Validate input documents."""
        missing = [
            label for label, doc in (("previous", previous_spec), ("current", current_spec))
            if doc is None
        ]
        if missing:
            raise MissingArtifactError(
                f"Full document unavailable for: {', '.join(missing)}",
                sides=missing
            )

        for doc in (previous_spec, current_spec):
            size = get_json_size_mb(doc)
            if size > self.config.max_payload_size_mb:
                raise PayloadSizeError(size, self.config.max_payload_size_mb)

    def _create_error_response(
        self,
        code: str,
        message: str,
        details: dict
    ) -> ErrorResponse:
        """Create an error response."""
        logger.warning("Comparison error %s: %s", code, message)
        return ErrorResponse(
            success=False,
            error={
                "code": code,
                "message": message,
                "details": details
            }
        )


def compare(
    previous_spec: Any,
    current_spec: Any,
    config: Optional[EngineConfig] = None
) -> FullSchemaReport | ErrorResponse:
    """
    Convenience function to compare two specification documents.

    Args:
        previous_spec: The older document
        current_spec: The newer document
        config: Optional engine configuration

    Returns:
        FullSchemaReport on success, ErrorResponse on errors
    """
    engine = SpecDiffEngine(config)
    return engine.compare(previous_spec, current_spec)
