"""Simple runner that compares two spec files from disk."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Optional

import yaml

from .engine import SpecDiffEngine
from .models import EngineConfig, ErrorResponse, FullSchemaReport, ViewMode
from .presenter import UnifiedPresenter, SplitPresenter, ChangelogPresenter
from .exceptions import ValidationError

logger = logging.getLogger(__name__)


def load_document(path: str) -> Any:
    """
    Load a spec document from a YAML or JSON file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValidationError: If the file cannot be parsed
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Spec file not found: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        content = f.read()

    # JSON is valid YAML
    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ValidationError(f"Failed to parse spec file {path}: {e}", {"path": str(path)})


def load_config(path: Optional[str]) -> EngineConfig:
    """Load an EngineConfig from a YAML file (defaults when path is None)."""
    if path is None:
        return EngineConfig()

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValidationError(f"Failed to parse config file {path}: {e}", {"path": str(path)})

    if data is not None and not isinstance(data, dict):
        raise ValidationError(f"Config file {path} must contain a mapping", {"path": str(path)})
    return EngineConfig.from_dict(data)


class SpecDiffRunner:
    """
    Runner that loads two spec files and compares them.

    Usage:
        runner = SpecDiffRunner("v1.yaml", "v2.yaml")
        report = runner.run()
        print(runner.render(report))

    Or as a one-liner:
        report = SpecDiffRunner.compare_files("v1.yaml", "v2.yaml")
    """

    def __init__(
        self,
        previous_path: str,
        current_path: str,
        engine_config: Optional[EngineConfig] = None
    ):
        """
        Initialize the runner.

        Args:
            previous_path: Path to the older YAML/JSON spec
            current_path: Path to the newer YAML/JSON spec
            engine_config: Optional engine configuration
        """
        self.previous_path = Path(previous_path)
        self.current_path = Path(current_path)
        self.engine_config = engine_config or EngineConfig()
        self.engine = SpecDiffEngine(self.engine_config)

    def run(self) -> FullSchemaReport | ErrorResponse:
        """Load both documents and compare them."""
        try:
            previous = load_document(str(self.previous_path))
            current = load_document(str(self.current_path))
        except ValidationError as e:
            logger.warning("Could not load spec: %s", e.message)
            return ErrorResponse(
                success=False,
                error={"code": "VALIDATION_ERROR", "message": e.message, "details": e.details}
            )

        logger.info("Comparing %s -> %s", self.previous_path, self.current_path)
        return self.engine.compare(previous, current)

    def render(
        self,
        report: FullSchemaReport | ErrorResponse,
        mode: ViewMode = ViewMode.UNIFIED,
        query: str = "",
        collapsed: Iterable[str] = (),
        changes_only: bool = False
    ) -> str:
        """
        Render a report as terminal text.

        Args:
            report: Result of ``run``
            mode: Unified or split layout
            query: Search text to highlight
            collapsed: Section names to collapse (unified only)
            changes_only: Print only the classified changelog
        """
        if isinstance(report, ErrorResponse):
            return f"Error [{report.code}]: {report.error['message']}"

        changelog = ChangelogPresenter(self.engine.classifier)
        if changes_only:
            if report.classification is None:
                return "No classified changes"
            return changelog.render_text(changelog.present(
                report.classification,
                version_label=self.current_path.name,
                expanded=True,
            ))

        if report.is_identical:
            return "Documents are identical"

        if mode is ViewMode.SPLIT:
            presenter = SplitPresenter(report.parts)
            return presenter.render_text(presenter.present(query))

        presenter = UnifiedPresenter(
            report.parts,
            lines=report.lines,
            sections=report.sections,
            change_index=report.change_index,
        )
        view = presenter.present(query, frozenset(collapsed))
        text = presenter.render_text(view, self.engine_config.context_lines)
        if query:
            text += f"\n{view.match_count} match(es) for {query!r}"
        return text

    @classmethod
    def compare_files(
        cls,
        previous_path: str,
        current_path: str,
        engine_config: Optional[EngineConfig] = None
    ) -> FullSchemaReport | ErrorResponse:
        """
        Convenience class method to compare two files in one call.

        Example:
            report = SpecDiffRunner.compare_files("v1.yaml", "v2.yaml")
        """
        return cls(previous_path, current_path, engine_config).run()


def compare_files(
    previous_path: str,
    current_path: str,
    config_path: Optional[str] = None
) -> FullSchemaReport | ErrorResponse:
    """
    Compare two spec files, optionally with a YAML engine config.

        from specdiff.runner import compare_files
        report = compare_files("v1.yaml", "v2.yaml")
    """
    return SpecDiffRunner.compare_files(previous_path, current_path, load_config(config_path))
