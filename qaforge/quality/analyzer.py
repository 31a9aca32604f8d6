"""Static quality scoring of generated test suites."""

import logging
import math
import re
from typing import Sequence

from ..core.models import (
    SEVERITY_RANK,
    ApiAssertionType,
    ApiTestCase,
    CoverageAnalysis,
    GuiTestCase,
    HttpMethod,
    Priority,
    QualityCategories,
    QualityIssue,
    QualityScore,
    Severity,
    StepAction,
)

logger = logging.getLogger(__name__)

SUITE_ID = "suite"
INDEXED_SELECTOR = re.compile(r":\d")
ESSENTIAL_GUI_CATEGORIES = ("form", "navigation", "error")
CRUD_METHODS = (HttpMethod.GET, HttpMethod.POST, HttpMethod.PUT, HttpMethod.DELETE)
WRITE_METHODS = (HttpMethod.POST, HttpMethod.PUT, HttpMethod.PATCH)
RETRYABLE_ACTIONS = (StepAction.CLICK, StepAction.FILL, StepAction.SELECT)
WAITING_ACTIONS = (StepAction.CLICK, StepAction.GOTO)
GUI_FUNCTIONAL_CATEGORIES = ("form", "navigation", "authentication")
API_FUNCTIONAL_CATEGORIES = ("crud", "authentication", "validation")


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def percentage(count: int, total: int) -> int:
    """Rounded share of ``count`` in ``total``; 0 for an empty total."""
    if total == 0:
        return 0
    return round_half_up(100 * count / total)


def sort_issues(issues: list[QualityIssue]) -> list[QualityIssue]:
    """Order issues by severity, then category name. Stable."""
    return sorted(issues, key=lambda issue: (SEVERITY_RANK[issue.severity], issue.category))


def _is_brittle(selector: str) -> bool:
    return "nth-child" in selector or "nth-of-type" in selector or bool(INDEXED_SELECTOR.search(selector))


class _Findings:
    """Issue accumulator for a single analysis run."""

    def __init__(self):
        self.issues: list[QualityIssue] = []

    def add(self, severity: Severity, category: str, test_id: str, message: str, suggestion: str):
        self.issues.append(QualityIssue(
            severity=severity,
            category=category,
            test_id=test_id,
            message=message,
            suggestion=suggestion,
        ))

    def serious_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity in (Severity.CRITICAL, Severity.HIGH))


class QualityAnalyzer:
    """Scores GUI and API suites on five categories and reports issues.

    Each category starts at 100 and loses a fixed penalty per violated rule,
    with a floor of 0. Coverage starts from a diversity-based base instead
    and is clamped to [0, 100]. Analysis never modifies the cases it reads.
    """

    # --- GUI ----------------------------------------------------------------

    def analyze_gui_test_quality(self, cases: Sequence[GuiTestCase]) -> QualityScore:
        """Score a GUI suite.

        Args:
            cases: Validated GUI test cases.

        Returns:
            QualityScore with sorted issues and suggestions.
        """
        findings = _Findings()
        categories = QualityCategories(
            completeness=self._gui_completeness(cases, findings),
            maintainability=self._gui_maintainability(cases, findings),
            reliability=self._gui_reliability(cases, findings),
            coverage=self._gui_coverage(cases, findings),
            performance=self._gui_performance(cases, findings),
        )
        return self._score(categories, findings, self._gui_suggestions(cases, findings))

    def _gui_completeness(self, cases: Sequence[GuiTestCase], findings: _Findings) -> int:
        score = 100
        for case in cases:
            if len(case.description) < 10:
                findings.add(
                    Severity.MEDIUM, "completeness", case.id,
                    "Test description is missing or too brief",
                    "Add detailed description explaining what this test validates",
                )
                score -= 5

            if not case.assertions:
                findings.add(
                    Severity.HIGH, "completeness", case.id,
                    "Test has no assertions",
                    "Add assertions to verify expected behavior",
                )
                score -= 15

            fills = any(step.action == StepAction.FILL for step in case.steps)
            if fills and (case.test_data is None or case.test_data.inputs is None):
                findings.add(
                    Severity.MEDIUM, "completeness", case.id,
                    "Test uses form filling but has no test data defined",
                    "Define test data inputs for form fields",
                )
                score -= 5

            if case.category == "authentication" and not case.cleanup:
                findings.add(
                    Severity.MEDIUM, "completeness", case.id,
                    "Authentication test should include cleanup steps",
                    "Add logout or session cleanup steps",
                )
                score -= 3
        return max(0, score)

    def _gui_maintainability(self, cases: Sequence[GuiTestCase], findings: _Findings) -> int:
        score = 100
        for case in cases:
            brittle = [step.selector for step in case.steps if step.selector and _is_brittle(step.selector)]
            if brittle:
                findings.add(
                    Severity.HIGH, "maintainability", case.id,
                    f"Test uses brittle selectors: {', '.join(brittle)}",
                    "Use data-testid, aria-labels, or semantic selectors instead",
                )
                score -= 10

            fixed_waits = [
                step for step in case.steps
                if step.action == StepAction.WAIT and step.options.timeout and not step.selector
            ]
            if len(fixed_waits) > 2:
                findings.add(
                    Severity.MEDIUM, "maintainability", case.id,
                    "Test has too many hardcoded waits",
                    "Use element-based waits or page load events instead",
                )
                score -= 5

            if len(case.tags) < 2:
                findings.add(
                    Severity.LOW, "maintainability", case.id,
                    "Test has insufficient tags for organization",
                    "Add descriptive tags like smoke, regression, feature-name",
                )
                score -= 2
        return max(0, score)

    def _gui_reliability(self, cases: Sequence[GuiTestCase], findings: _Findings) -> int:
        score = 100
        for case in cases:
            retryable = [step for step in case.steps if step.action in RETRYABLE_ACTIONS]
            without_retry = [step for step in retryable if not step.retry]
            if len(without_retry) > len(retryable) * 0.5:
                findings.add(
                    Severity.MEDIUM, "reliability", case.id,
                    "Many critical steps lack retry configuration",
                    "Add retry: true for click, fill, and select actions",
                )
                score -= 5

            if any(step.action in WAITING_ACTIONS and step.wait_for is None for step in case.steps):
                findings.add(
                    Severity.MEDIUM, "reliability", case.id,
                    "Navigation and click actions should specify wait conditions",
                    'Add waitFor: "networkidle" or "domcontentloaded" to ensure stability',
                )
                score -= 3

            if any(step.options.timeout > 30000 for step in case.steps):
                findings.add(
                    Severity.LOW, "reliability", case.id,
                    "Some steps have very long timeouts (>30s)",
                    "Review if such long timeouts are necessary",
                )
                score -= 2
        return max(0, score)

    def _gui_coverage(self, cases: Sequence[GuiTestCase], findings: _Findings) -> int:
        categories = {case.category for case in cases}
        score = 15 * len(categories)

        missing = [category for category in ESSENTIAL_GUI_CATEGORIES if category not in categories]
        if missing:
            findings.add(
                Severity.MEDIUM, "coverage", SUITE_ID,
                f"Missing essential test categories: {', '.join(missing)}",
                "Add tests for core user interactions and error scenarios",
            )
            score -= 10 * len(missing)

        critical = sum(1 for case in cases if case.priority == Priority.CRITICAL)
        high = sum(1 for case in cases if case.priority == Priority.HIGH)
        if critical == 0 and high < len(cases) * 0.3:
            findings.add(
                Severity.MEDIUM, "coverage", SUITE_ID,
                "Test suite lacks high-priority tests",
                "Ensure critical user flows are marked as high or critical priority",
            )
            score -= 15

        return min(100, max(0, score))

    def _gui_performance(self, cases: Sequence[GuiTestCase], findings: _Findings) -> int:
        score = 100
        performance_cases = [
            case for case in cases
            if "performance" in case.tags or case.category == "performance"
        ]
        if not performance_cases and len(cases) > 5:
            findings.add(
                Severity.LOW, "performance", SUITE_ID,
                "No performance-focused tests detected",
                "Consider adding tests that validate page load times or UI responsiveness",
            )
            score -= 10

        screenshots = sum(
            1 for case in cases for step in case.steps if step.action == StepAction.SCREENSHOT
        )
        if screenshots > len(cases) * 2:
            findings.add(
                Severity.LOW, "performance", SUITE_ID,
                "Excessive use of screenshots may slow down test execution",
                "Use screenshots selectively for important validations",
            )
            score -= 5
        return max(0, score)

    def _gui_suggestions(self, cases: Sequence[GuiTestCase], findings: _Findings) -> list[str]:
        suggestions = []
        serious = findings.serious_count()
        if serious:
            suggestions.append(f"Address {serious} critical/high priority issues first")
        if len(cases) < 5:
            suggestions.append("Consider generating more test cases for better coverage")

        categories = {case.category for case in cases}
        if "accessibility" not in categories:
            suggestions.append("Add accessibility tests using aria-labels and keyboard navigation")
        if "error" not in categories:
            suggestions.append("Add error handling tests for invalid inputs and edge cases")
        return suggestions

    # --- API ----------------------------------------------------------------

    def analyze_api_test_quality(self, cases: Sequence[ApiTestCase]) -> QualityScore:
        """Score an API suite.

        Args:
            cases: Validated API test cases.

        Returns:
            QualityScore with sorted issues and suggestions.
        """
        findings = _Findings()
        categories = QualityCategories(
            completeness=self._api_completeness(cases, findings),
            maintainability=self._api_maintainability(cases, findings),
            reliability=self._api_reliability(cases, findings),
            coverage=self._api_coverage(cases, findings),
            performance=self._api_performance(cases, findings),
        )
        return self._score(categories, findings, self._api_suggestions(cases, findings))

    def _api_completeness(self, cases: Sequence[ApiTestCase], findings: _Findings) -> int:
        score = 100
        for case in cases:
            types = {assertion.type for assertion in case.assertions}
            if not case.assertions:
                findings.add(
                    Severity.HIGH, "completeness", case.id,
                    "API test has no assertions",
                    "Add assertions to validate response status, headers, and body",
                )
                score -= 15

            if ApiAssertionType.STATUS not in types:
                findings.add(
                    Severity.MEDIUM, "completeness", case.id,
                    "API test missing status code assertion",
                    "Always validate HTTP status code",
                )
                score -= 5

            if case.method in WRITE_METHODS and ApiAssertionType.BODY not in types:
                findings.add(
                    Severity.MEDIUM, "completeness", case.id,
                    "POST/PUT request should validate response body",
                    "Add body assertions to verify created/updated data",
                )
                score -= 5

            if case.method == HttpMethod.POST and case.category == "crud" and case.data_cleanup is None:
                findings.add(
                    Severity.LOW, "completeness", case.id,
                    "Create operation should include data cleanup",
                    "Add dataCleanup to remove test data after execution",
                )
                score -= 3
        return max(0, score)

    def _api_maintainability(self, cases: Sequence[ApiTestCase], findings: _Findings) -> int:
        score = 100
        for case in cases:
            if "localhost" in case.endpoint or "http" in case.endpoint:
                findings.add(
                    Severity.MEDIUM, "maintainability", case.id,
                    "Test contains hardcoded URLs",
                    "Use baseUrl configuration or environment variables",
                )
                score -= 5

            literal_auth = [
                name for name, value in case.headers.items()
                if "auth" in name.lower() and "{{" not in value
            ]
            if literal_auth:
                findings.add(
                    Severity.HIGH, "maintainability", case.id,
                    "Test contains hardcoded authentication values",
                    "Use variable extraction or environment variables for auth tokens",
                )
                score -= 10

            if case.method == HttpMethod.POST and case.body and case.variable_extraction is None:
                findings.add(
                    Severity.LOW, "maintainability", case.id,
                    "Create operation should extract variables for reuse",
                    "Add variableExtraction to capture created resource IDs",
                )
                score -= 2
        return max(0, score)

    def _api_reliability(self, cases: Sequence[ApiTestCase], findings: _Findings) -> int:
        score = 100
        for case in cases:
            has_performance = any(a.type == ApiAssertionType.PERFORMANCE for a in case.assertions)
            if not has_performance and case.category != "performance":
                if any(a.timeout and a.timeout > 10000 for a in case.assertions):
                    findings.add(
                        Severity.LOW, "reliability", case.id,
                        "Test has long timeout without performance assertions",
                        "Add performance assertions or reduce timeout values",
                    )
                    score -= 2

            if case.dependencies and not case.data_setup:
                findings.add(
                    Severity.MEDIUM, "reliability", case.id,
                    "Test has dependencies but no data setup",
                    "Add dataSetup to create required test data",
                )
                score -= 5

            if case.expected_status >= 400 and len(case.assertions) == 1:
                findings.add(
                    Severity.LOW, "reliability", case.id,
                    "Error test should validate error response structure",
                    "Add assertions to validate error message format and content",
                )
                score -= 2
        return max(0, score)

    def _api_coverage(self, cases: Sequence[ApiTestCase], findings: _Findings) -> int:
        methods = {case.method for case in cases}
        score = 20 * len(methods)

        missing = [method.value for method in CRUD_METHODS if method not in methods]
        if missing and len(cases) > 3:
            findings.add(
                Severity.MEDIUM, "coverage", SUITE_ID,
                f"Missing CRUD operations: {', '.join(missing)}",
                "Ensure complete CRUD coverage for main resources",
            )
            score -= 10 * len(missing)

        errors = sum(1 for case in cases if case.expected_status >= 400)
        if errors < len(cases) * 0.2:
            findings.add(
                Severity.MEDIUM, "coverage", SUITE_ID,
                "Insufficient error scenario coverage",
                "Add more tests for 4xx and 5xx error conditions",
            )
            score -= 15

        return min(100, max(0, score))

    def _api_performance(self, cases: Sequence[ApiTestCase], findings: _Findings) -> int:
        score = 100
        performance_assertions = sum(
            1 for case in cases for a in case.assertions if a.type == ApiAssertionType.PERFORMANCE
        )
        if performance_assertions == 0 and len(cases) > 3:
            findings.add(
                Severity.LOW, "performance", SUITE_ID,
                "No performance assertions found",
                "Add response time validation for critical endpoints",
            )
            score -= 10
        return max(0, score)

    def _api_suggestions(self, cases: Sequence[ApiTestCase], findings: _Findings) -> list[str]:
        suggestions = []
        serious = findings.serious_count()
        if serious:
            suggestions.append(f"Address {serious} critical/high priority issues first")
        if len({case.method for case in cases}) < 3:
            suggestions.append("Add tests for more HTTP methods (GET, POST, PUT, DELETE)")
        if not any(case.category == "security" for case in cases):
            suggestions.append("Add security tests for input validation and authentication")
        if not any(a.type == ApiAssertionType.PERFORMANCE for case in cases for a in case.assertions):
            suggestions.append("Add performance assertions to validate response times")
        return suggestions

    # --- Shared -------------------------------------------------------------

    @staticmethod
    def _score(categories: QualityCategories, findings: _Findings, suggestions: list[str]) -> QualityScore:
        values = list(categories.model_dump().values())
        overall = round_half_up(sum(values) / len(values))
        logger.debug(f"Quality score {overall} with {len(findings.issues)} issues")
        return QualityScore(
            overall=overall,
            categories=categories,
            issues=sort_issues(findings.issues),
            suggestions=suggestions,
        )

    def analyze_coverage_gaps(
        self,
        gui_cases: Sequence[GuiTestCase],
        api_cases: Sequence[ApiTestCase]
    ) -> CoverageAnalysis:
        """Share of the combined suites falling into each semantic category.

        Accessibility coverage is measured over the GUI suite only. Empty
        suites yield zero everywhere.
        """
        total = len(gui_cases) + len(api_cases)

        def count(gui_match, api_match) -> int:
            return sum(1 for case in gui_cases if gui_match(case)) + sum(1 for case in api_cases if api_match(case))

        def tagged(name: str):
            return lambda case: name in case.tags or case.category == name

        functional = count(
            lambda case: case.category in GUI_FUNCTIONAL_CATEGORIES,
            lambda case: case.category in API_FUNCTIONAL_CATEGORIES,
        )
        errors = count(lambda case: case.category == "error", lambda case: case.expected_status >= 400)
        edge = count(lambda case: "edge-case" in case.tags, lambda case: "edge-case" in case.tags)
        security = count(tagged("security"), tagged("security"))
        performance = count(
            tagged("performance"),
            lambda case: any(a.type == ApiAssertionType.PERFORMANCE for a in case.assertions),
        )
        accessibility = sum(1 for case in gui_cases if tagged("accessibility")(case))

        return CoverageAnalysis(
            functional_coverage=percentage(functional, total),
            error_coverage=percentage(errors, total),
            edge_case_coverage=percentage(edge, total),
            security_coverage=percentage(security, total),
            performance_coverage=percentage(performance, total),
            accessibility_coverage=percentage(accessibility, len(gui_cases)),
        )
