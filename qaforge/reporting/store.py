"""Persistence of generated suites and quality reports."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Sequence, Union

from ..core.models import ApiTestCase, CoverageAnalysis, GuiTestCase, QualityScore

logger = logging.getLogger(__name__)

SUITE_KINDS = ("gui", "api")
TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"


def _timestamp(now: Optional[datetime] = None) -> str:
    return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)


def _free_path(path: Path) -> Path:
    """Add a numeric suffix when a snapshot with the same timestamp exists."""
    candidate = path
    counter = 1
    while candidate.exists():
        candidate = path.with_name(f"{path.stem}-{counter}{path.suffix}")
        counter += 1
    return candidate


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(data, f, indent=2, default=str)


class SuiteStore:
    """Writes suites as JSON snapshots.

    Each kind keeps ``latest.json`` plus one timestamped snapshot per run::

        tests/gui/latest.json
        tests/gui/gui-tests-20250101-120000.json
    """

    def __init__(self, tests_dir: str = "./tests", reports_dir: str = "./reports"):
        self.tests_dir = Path(tests_dir)
        self.reports_dir = Path(reports_dir)

    def suite_dir(self, kind: str) -> Path:
        if kind not in SUITE_KINDS:
            raise ValueError(f"Unknown suite kind: {kind}")
        return self.tests_dir / kind

    def save_suite(
        self,
        kind: str,
        cases: Sequence[Union[GuiTestCase, ApiTestCase]],
        now: Optional[datetime] = None
    ) -> Path:
        """Save a suite as the latest and as a timestamped snapshot.

        Args:
            kind: "gui" or "api".
            cases: Validated test cases.
            now: Snapshot time. Defaults to the current time.

        Returns:
            Path of the timestamped snapshot.
        """
        directory = self.suite_dir(kind)
        data = [case.to_dict() for case in cases]

        snapshot = _free_path(directory / f"{kind}-tests-{_timestamp(now)}.json")
        _write_json(snapshot, data)
        _write_json(directory / "latest.json", data)

        logger.info(f"Saved {len(data)} {kind.upper()} test cases to {snapshot}")
        return snapshot

    def load_suite(self, kind: str, path: Optional[str] = None) -> list[Union[GuiTestCase, ApiTestCase]]:
        """Load a saved suite, the latest one by default.

        Raises:
            FileNotFoundError: If the suite file does not exist.
        """
        suite_path = Path(path) if path else self.suite_dir(kind) / "latest.json"
        with open(suite_path, "r") as f:
            data = json.load(f)

        model = GuiTestCase if kind == "gui" else ApiTestCase
        return [model.model_validate(item) for item in data]

    def save_quality_report(
        self,
        gui_score: Optional[QualityScore],
        api_score: Optional[QualityScore],
        coverage: Optional[CoverageAnalysis],
        now: Optional[datetime] = None
    ) -> Path:
        """Save quality scores and coverage as one JSON report.

        Returns:
            Path of the timestamped report.
        """
        now = now or datetime.now()
        report = {
            "generatedAt": now.isoformat(),
            "gui": gui_score.to_dict() if gui_score else None,
            "api": api_score.to_dict() if api_score else None,
            "coverage": coverage.to_dict() if coverage else None,
        }

        path = _free_path(self.reports_dir / f"quality-report-{_timestamp(now)}.json")
        _write_json(path, report)
        _write_json(self.reports_dir / "quality-latest.json", report)

        logger.info(f"Saved quality report to {path}")
        return path


def format_quality_summary(score: QualityScore, title: str = "Test Quality") -> str:
    """Render a QualityScore as plain text."""
    categories = score.categories
    lines = [
        title,
        "=" * len(title),
        f"Overall:         {score.overall}/100",
        f"Completeness:    {categories.completeness}",
        f"Maintainability: {categories.maintainability}",
        f"Reliability:     {categories.reliability}",
        f"Coverage:        {categories.coverage}",
        f"Performance:     {categories.performance}",
    ]

    if score.issues:
        lines.append(f"\nIssues ({len(score.issues)}):")
        for issue in score.issues[:10]:
            lines.append(f"  [{issue.severity.value.upper()}] {issue.test_id}: {issue.message}")
        if len(score.issues) > 10:
            lines.append(f"  ... and {len(score.issues) - 10} more")

    if score.suggestions:
        lines.append("\nSuggestions:")
        lines.extend(f"  - {suggestion}" for suggestion in score.suggestions)

    return "\n".join(lines)


def format_coverage_summary(coverage: CoverageAnalysis) -> str:
    """Render a CoverageAnalysis as plain text."""
    return "\n".join([
        "Coverage",
        "========",
        f"Functional:    {coverage.functional_coverage}%",
        f"Error:         {coverage.error_coverage}%",
        f"Edge cases:    {coverage.edge_case_coverage}%",
        f"Security:      {coverage.security_coverage}%",
        f"Performance:   {coverage.performance_coverage}%",
        f"Accessibility: {coverage.accessibility_coverage}%",
    ])
