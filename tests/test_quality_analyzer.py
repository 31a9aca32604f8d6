"""Tests for static quality scoring."""

import pytest

from qaforge.core.models import (
    SEVERITY_RANK,
    ApiAssertion,
    ApiAssertionType,
    AssertionType,
    Assertion,
    CaseData,
    HttpMethod,
    Priority,
    Severity,
    Step,
    StepAction,
    StepOptions,
    WaitCondition,
)
from qaforge.quality.analyzer import QualityAnalyzer, percentage, round_half_up


def _visible():
    return Assertion(type=AssertionType.VISIBLE, selector="body", expected=True, description="Body visible")


def _goto():
    return Step(action=StepAction.GOTO, value="https://app.test", wait_for=WaitCondition.NETWORKIDLE, description="Open")


@pytest.fixture
def analyzer():
    return QualityAnalyzer()


class TestRounding:
    """Tests for score rounding helpers."""

    @pytest.mark.parametrize("value,expected", [(2.5, 3), (2.4, 2), (80.0, 80), (0.5, 1)])
    def test_round_half_up(self, value, expected):
        """Test halves round up."""
        assert round_half_up(value) == expected

    @pytest.mark.parametrize("count,total,expected", [(1, 3, 33), (2, 3, 67), (1, 8, 13), (0, 0, 0), (4, 4, 100)])
    def test_percentage(self, count, total, expected):
        """Test rounded shares with an empty total."""
        assert percentage(count, total) == expected


class TestGuiQuality:
    """Tests for GUI suite scoring."""

    def test_well_formed_single_case(self, analyzer, gui_case):
        """Test a clean case loses points on suite coverage only."""
        case = gui_case(
            "login",
            Priority.HIGH,
            "form",
            tags=["auth", "smoke"],
            test_data=CaseData(inputs={"email": "ada@example.com"}),
            steps=[
                _goto(),
                Step(action=StepAction.FILL, selector="#email", value="ada@example.com", retry=True, description="Fill"),
            ],
            assertions=[_visible()],
        )

        score = analyzer.analyze_gui_test_quality([case])

        assert score.categories.completeness == 100
        assert score.categories.maintainability == 100
        assert score.categories.reliability == 100
        assert score.categories.coverage == 0
        assert score.categories.performance == 100
        assert score.overall == 80
        assert [issue.message for issue in score.issues] == [
            "Missing essential test categories: navigation, error",
        ]
        assert score.suggestions == [
            "Consider generating more test cases for better coverage",
            "Add accessibility tests using aria-labels and keyboard navigation",
            "Add error handling tests for invalid inputs and edge cases",
        ]

    def test_empty_suite(self, analyzer):
        """Test an empty suite scores within bounds."""
        score = analyzer.analyze_gui_test_quality([])

        assert score.categories.coverage == 0
        assert score.overall == 80
        assert len(score.issues) == 1

    def test_fill_without_test_data(self, analyzer, gui_case):
        """Test form filling needs test data inputs."""
        case = gui_case(
            "fill",
            tags=["a", "b"],
            steps=[_goto(), Step(action=StepAction.FILL, selector="#q", value="x", retry=True, description="Fill")],
            assertions=[_visible()],
        )
        score = analyzer.analyze_gui_test_quality([case])

        issue = next(i for i in score.issues if i.message == "Test uses form filling but has no test data defined")
        assert issue.severity == Severity.MEDIUM
        assert issue.test_id == "fill"
        assert score.categories.completeness == 95

    def test_brittle_selectors(self, analyzer, gui_case):
        """Test positional selectors cost maintainability."""
        case = gui_case(
            "brittle",
            tags=["a", "b"],
            steps=[
                _goto(),
                Step(action=StepAction.HOVER, selector="ul li:nth-child(2)", description="Hover"),
                Step(action=StepAction.HOVER, selector="div:eq:3", description="Hover"),
            ],
            assertions=[_visible()],
        )
        score = analyzer.analyze_gui_test_quality([case])

        issue = next(i for i in score.issues if i.category == "maintainability")
        assert issue.severity == Severity.HIGH
        assert "ul li:nth-child(2)" in issue.message
        assert "div:eq:3" in issue.message
        assert score.categories.maintainability == 90

    def test_reliability_rules(self, analyzer, gui_case):
        """Test missing retries, wait conditions and long timeouts."""
        case = gui_case(
            "flaky",
            tags=["a", "b"],
            steps=[
                Step(action=StepAction.GOTO, value="/", options=StepOptions(timeout=60000), description="Open"),
                Step(action=StepAction.CLICK, selector="#go", description="Click"),
            ],
            assertions=[_visible()],
        )
        score = analyzer.analyze_gui_test_quality([case])
        assert score.categories.reliability == 100 - 5 - 3 - 2

    def test_zero_assertions_is_high_severity(self, analyzer, gui_case):
        """Test a case without assertions is flagged high."""
        score = analyzer.analyze_gui_test_quality([gui_case("bare", tags=["a", "b"])])

        issue = next(i for i in score.issues if i.test_id == "bare" and i.category == "completeness")
        assert issue.severity == Severity.HIGH
        assert score.suggestions[0] == "Address 1 critical/high priority issues first"

    def test_scores_stay_in_bounds(self, analyzer, gui_case):
        """Test heavy penalties floor at zero."""
        cases = [
            gui_case(f"bad-{i}", category="authentication", description="x",
                     steps=[Step(action=StepAction.CLICK, selector="li:nth-child(1)", description="Click")])
            for i in range(10)
        ]
        score = analyzer.analyze_gui_test_quality(cases)

        values = score.categories.model_dump().values()
        assert all(0 <= value <= 100 for value in values)
        assert 0 <= score.overall <= 100
        assert score.categories.completeness == 0
        assert score.categories.maintainability == 0

    def test_issues_sorted_by_severity(self, analyzer, gui_case):
        """Test issues are ordered by severity rank."""
        cases = [
            gui_case("a", description="x", steps=[Step(action=StepAction.CLICK, selector="li:nth-child(1)", description="c")]),
            gui_case("b", tags=["one"]),
        ]
        score = analyzer.analyze_gui_test_quality(cases)

        ranks = [SEVERITY_RANK[issue.severity] for issue in score.issues]
        assert ranks == sorted(ranks)

    def test_does_not_mutate_cases(self, analyzer, gui_case):
        """Test analysis leaves the suite untouched."""
        cases = [gui_case("a"), gui_case("b", Priority.LOW, "error")]
        before = [case.to_dict() for case in cases]

        analyzer.analyze_gui_test_quality(cases)

        assert [case.to_dict() for case in cases] == before


def _issue(score, message):
    return next((issue for issue in score.issues if issue.message == message), None)


class TestGuiRules:
    """Tests for individual GUI penalty rules."""

    @pytest.mark.parametrize("waits,selector,expected", [
        (2, None, 100),
        (3, None, 95),
        (3, "#spinner", 100),
    ])
    def test_hardcoded_waits(self, analyzer, gui_case, waits, selector, expected):
        """Test more than two selector-less waits cost maintainability."""
        steps = [_goto()] + [
            Step(action=StepAction.WAIT, selector=selector, options=StepOptions(timeout=1000), description="Wait")
            for _ in range(waits)
        ]
        score = analyzer.analyze_gui_test_quality([gui_case("waits", tags=["a", "b"], steps=steps)])

        assert score.categories.maintainability == expected
        issue = _issue(score, "Test has too many hardcoded waits")
        if expected == 100:
            assert issue is None
        else:
            assert issue.severity == Severity.MEDIUM
            assert issue.test_id == "waits"

    @pytest.mark.parametrize("cleanup,expected", [
        (None, 97),
        ([Step(action=StepAction.CLICK, selector="#logout", description="Log out")], 100),
    ])
    def test_authentication_cleanup(self, analyzer, gui_case, cleanup, expected):
        """Test authentication cases need cleanup steps."""
        case = gui_case("auth", category="authentication", tags=["a", "b"], assertions=[_visible()], cleanup=cleanup)
        score = analyzer.analyze_gui_test_quality([case])

        assert score.categories.completeness == expected
        issue = _issue(score, "Authentication test should include cleanup steps")
        if cleanup:
            assert issue is None
        else:
            assert issue.severity == Severity.MEDIUM

    @pytest.mark.parametrize("priorities,expected", [
        ([Priority.MEDIUM] * 4, 45),
        ([Priority.CRITICAL] + [Priority.MEDIUM] * 3, 60),
        ([Priority.HIGH] + [Priority.MEDIUM] * 3, 45),
        ([Priority.HIGH] * 2 + [Priority.MEDIUM] * 2, 60),
    ])
    def test_high_priority_share(self, analyzer, gui_case, priorities, expected):
        """Test suites without critical cases need at least 30% high priority."""
        categories = ["form", "navigation", "error", "accessibility"]
        cases = [
            gui_case(f"c{i}", priority, category)
            for i, (priority, category) in enumerate(zip(priorities, categories))
        ]
        score = analyzer.analyze_gui_test_quality(cases)

        assert score.categories.coverage == expected
        issue = _issue(score, "Test suite lacks high-priority tests")
        if expected == 45:
            assert issue.severity == Severity.MEDIUM
            assert issue.test_id == "suite"
        else:
            assert issue is None

    @pytest.mark.parametrize("count,tagged,expected", [
        (5, False, 100),
        (6, False, 90),
        (6, True, 100),
    ])
    def test_performance_tests_in_larger_suites(self, analyzer, gui_case, count, tagged, expected):
        """Test suites over five cases need a performance case."""
        cases = [gui_case(f"c{i}") for i in range(count)]
        if tagged:
            cases[0] = gui_case("perf", tags=["performance"])
        score = analyzer.analyze_gui_test_quality(cases)

        assert score.categories.performance == expected
        issue = _issue(score, "No performance-focused tests detected")
        if expected == 90:
            assert issue.severity == Severity.LOW
        else:
            assert issue is None

    @pytest.mark.parametrize("screenshots,expected", [(2, 100), (3, 95)])
    def test_excessive_screenshots(self, analyzer, gui_case, screenshots, expected):
        """Test more than two screenshots per case cost performance."""
        steps = [_goto()] + [
            Step(action=StepAction.SCREENSHOT, description="Capture") for _ in range(screenshots)
        ]
        score = analyzer.analyze_gui_test_quality([gui_case("shots", steps=steps)])

        assert score.categories.performance == expected
        issue = _issue(score, "Excessive use of screenshots may slow down test execution")
        if expected == 95:
            assert issue.severity == Severity.LOW
        else:
            assert issue is None


class TestApiQuality:
    """Tests for API suite scoring."""

    def test_single_get_case(self, analyzer, api_case):
        """Test a lone GET case loses points on coverage only."""
        score = analyzer.analyze_api_test_quality([api_case("list")])

        assert score.categories.completeness == 100
        assert score.categories.maintainability == 100
        assert score.categories.reliability == 100
        assert score.categories.coverage == 5
        assert score.categories.performance == 100
        assert score.overall == 81

    def test_create_without_cleanup(self, analyzer, api_case):
        """Test crud creates need cleanup, body checks and extraction."""
        case = api_case("create", category="crud", method=HttpMethod.POST, expected_status=201, body={"name": "x"})
        score = analyzer.analyze_api_test_quality([case])

        messages = {issue.message: issue.severity for issue in score.issues}
        assert messages["Create operation should include data cleanup"] == Severity.LOW
        assert messages["POST/PUT request should validate response body"] == Severity.MEDIUM
        assert messages["Create operation should extract variables for reuse"] == Severity.LOW
        assert score.categories.completeness == 100 - 5 - 3
        assert score.categories.maintainability == 98

    @pytest.mark.parametrize("headers,flagged", [
        ({"Authorization": "Bearer abc123"}, True),
        ({"X-Auth-Token": "secret"}, True),
        ({"Authorization": "Bearer {{token}}"}, False),
        ({"Accept": "application/json"}, False),
    ])
    def test_hardcoded_auth(self, analyzer, api_case, headers, flagged):
        """Test literal auth header values are flagged."""
        score = analyzer.analyze_api_test_quality([api_case("auth", headers=headers)])
        found = any(i.message == "Test contains hardcoded authentication values" for i in score.issues)
        assert found is flagged

    def test_hardcoded_url(self, analyzer, api_case):
        """Test absolute endpoints are flagged."""
        score = analyzer.analyze_api_test_quality([api_case("abs", endpoint="http://localhost:3000/api")])
        assert score.categories.maintainability == 95

    def test_reliability_rules(self, analyzer, api_case):
        """Test dependencies without setup and thin error checks."""
        case = api_case(
            "missing",
            expected_status=404,
            dependencies=["create"],
            assertions=[
                ApiAssertion(type=ApiAssertionType.STATUS, expected=404, timeout=20000, description="Not found"),
            ],
        )
        score = analyzer.analyze_api_test_quality([case])
        assert score.categories.reliability == 100 - 2 - 5 - 2

    def test_coverage_penalties(self, analyzer, api_case):
        """Test missing CRUD methods and error cases."""
        cases = [api_case(f"get-{i}") for i in range(4)]
        score = analyzer.analyze_api_test_quality(cases)

        # 20 for one method, -30 for POST/PUT/DELETE, -15 for no error cases
        assert score.categories.coverage == 0
        assert score.categories.performance == 90
        assert "Missing CRUD operations: POST, PUT, DELETE" in [i.message for i in score.issues]

    def test_full_crud_coverage(self, analyzer, api_case):
        """Test four methods with an error case reach full coverage."""
        cases = [
            api_case("get", method=HttpMethod.GET),
            api_case("post", method=HttpMethod.POST, expected_status=201),
            api_case("put", method=HttpMethod.PUT),
            api_case("delete", method=HttpMethod.DELETE, expected_status=404),
            api_case("patch", method=HttpMethod.PATCH),
        ]
        assert analyzer.analyze_api_test_quality(cases).categories.coverage == 100

    def test_suggestions(self, analyzer, api_case):
        """Test suggestions follow rule order."""
        score = analyzer.analyze_api_test_quality([api_case("list")])
        assert score.suggestions == [
            "Add tests for more HTTP methods (GET, POST, PUT, DELETE)",
            "Add security tests for input validation and authentication",
            "Add performance assertions to validate response times",
        ]


class TestCoverageGaps:
    """Tests for combined coverage analysis."""

    def test_empty_suites(self, analyzer):
        """Test empty input yields zero coverage everywhere."""
        coverage = analyzer.analyze_coverage_gaps([], [])
        assert all(value == 0 for value in coverage.model_dump().values())

    def test_mixed_suites(self, analyzer, gui_case, api_case):
        """Test shares over the combined suites."""
        gui_cases = [
            gui_case("a11y", category="accessibility", tags=["edge-case"]),
            gui_case("form", category="form"),
        ]
        api_cases = [
            api_case("missing", expected_status=404),
            api_case("inject", category="security", assertions=[
                ApiAssertion(type=ApiAssertionType.STATUS, expected=200, description="OK"),
                ApiAssertion(type=ApiAssertionType.PERFORMANCE, expected=500, description="Fast"),
            ]),
        ]

        coverage = analyzer.analyze_coverage_gaps(gui_cases, api_cases)

        assert coverage.functional_coverage == 25
        assert coverage.error_coverage == 25
        assert coverage.edge_case_coverage == 25
        assert coverage.security_coverage == 25
        assert coverage.performance_coverage == 25
        assert coverage.accessibility_coverage == 50

    def test_accessibility_without_gui_cases(self, analyzer, api_case):
        """Test accessibility coverage is zero without GUI cases."""
        coverage = analyzer.analyze_coverage_gaps([], [api_case("a", category="accessibility")])
        assert coverage.accessibility_coverage == 0
