"""Tests for the GUI and API generation pipelines."""

from qaforge.core.config import GenerationConfig
from qaforge.core.models import PRIORITY_RANK, HttpMethod, UserJourney
from qaforge.generation.api_generator import ApiTestGenerator
from qaforge.generation.fallback import build_api_fallback, build_gui_fallback
from qaforge.generation.gui_generator import GuiTestGenerator
from qaforge.llm.engine import LLMProviderError

NO_EDGE_CASES = GenerationConfig(include_edge_cases=False)


class TestGuiTestGenerator:
    """Tests for GuiTestGenerator."""

    def test_uses_validated_llm_cases(self, stub_llm, raw_gui_cases, page_info, app_url):
        """Test LLM cases are validated and prioritized."""
        llm = stub_llm(raw_gui_cases)
        cases = GuiTestGenerator(llm, NO_EDGE_CASES).generate(page_info, app_url)

        assert [case.id for case in cases] == ["login-valid", "about-link"]
        assert "GUI test cases" in llm.prompts[0]
        assert "API test" not in llm.prompts[0]

    def test_malformed_response_uses_fallback(self, stub_llm, page_info, app_url):
        """Test a non-array response yields the fallback suite."""
        cases = GuiTestGenerator(stub_llm({"not": "an array"}), NO_EDGE_CASES).generate(page_info, app_url)

        assert [case.id for case in cases] == ["gui-basic-load"]
        assert cases[0].steps[0].value == app_url

    def test_llm_failure_uses_fallback(self, failing_llm, page_info, app_url):
        """Test provider failure does not abort generation."""
        cases = GuiTestGenerator(failing_llm, NO_EDGE_CASES).generate(page_info, app_url)
        assert [case.id for case in cases] == ["gui-basic-load"]

    def test_provider_error_uses_fallback(self, stub_llm, app_url):
        """Test a misconfigured provider falls back as well."""
        cases = GuiTestGenerator(stub_llm(LLMProviderError("no key")), NO_EDGE_CASES).generate(None, app_url)
        assert [case.id for case in cases] == ["gui-basic-load"]

    def test_all_rejected_uses_fallback(self, stub_llm, page_info, app_url):
        """Test a batch with no valid case is treated as unusable."""
        cases = GuiTestGenerator(stub_llm([{"id": "x"}, "junk"]), NO_EDGE_CASES).generate(page_info, app_url)
        assert [case.id for case in cases] == ["gui-basic-load"]

    def test_wrapped_list_is_unwrapped(self, stub_llm, raw_gui_cases, page_info, app_url):
        """Test responses wrapped under tests are accepted."""
        cases = GuiTestGenerator(stub_llm({"tests": raw_gui_cases}), NO_EDGE_CASES).generate(page_info, app_url)
        assert len(cases) == 2

    def test_respects_max_gui_tests(self, stub_llm, page_info, app_url):
        """Test the configured cap applies to LLM output."""
        raw = [{"id": f"t{i}", "name": f"T{i}", "steps": [{"action": "click"}]} for i in range(5)]
        config = GenerationConfig(include_edge_cases=False, max_gui_tests=2)
        assert len(GuiTestGenerator(stub_llm(raw), config).generate(page_info, app_url)) == 2

    def test_edge_cases_are_merged_with_unique_ids(self, stub_llm, page_info, app_url):
        """Test edge cases colliding with LLM ids are renamed."""
        raw = [{"id": "gui-edge-keyboard-nav", "name": "Tab order", "steps": [{"action": "press", "value": "Tab"}]}]
        cases = GuiTestGenerator(stub_llm(raw)).generate(page_info, app_url)
        ids = [case.id for case in cases]

        assert len(ids) == len(set(ids))
        assert "gui-edge-keyboard-nav" in ids
        assert "gui-edge-keyboard-nav-1" in ids
        assert "gui-edge-empty-form-0" in ids

    def test_output_is_prioritized(self, stub_llm, page_info, app_url):
        """Test the suite comes out ordered by priority."""
        cases = GuiTestGenerator(stub_llm({"not": "an array"})).generate(page_info, app_url)
        ranks = [PRIORITY_RANK[case.priority] for case in cases]
        assert ranks == sorted(ranks)


class TestApiTestGenerator:
    """Tests for ApiTestGenerator."""

    def test_uses_validated_llm_cases(self, stub_llm, raw_api_cases, discovered_apis):
        """Test LLM cases are validated and prioritized."""
        llm = stub_llm(raw_api_cases)
        cases = ApiTestGenerator(llm, NO_EDGE_CASES).generate(discovered_apis)

        assert [case.id for case in cases] == ["create-user", "list-users"]
        assert "API test cases" in llm.prompts[0]

    def test_malformed_response_uses_smoke_test(self, stub_llm):
        """Test a non-array response with nothing discovered yields the smoke test."""
        cases = ApiTestGenerator(stub_llm({"not": "an array"}), NO_EDGE_CASES).generate([])

        assert [case.id for case in cases] == ["api-smoke"]
        assert cases[0].expected_status == 200
        assert cases[0].assertions[0].expected == 200

    def test_minimal_fallback_uses_first_endpoint(self, failing_llm, discovered_apis):
        """Test the minimal fallback covers one discovered endpoint."""
        cases = ApiTestGenerator(failing_llm, NO_EDGE_CASES).generate(discovered_apis)

        assert [case.id for case in cases] == ["api-0-happy"]
        assert cases[0].endpoint == "/api/users"

    def test_expanded_fallback(self, failing_llm, discovered_apis):
        """Test the expanded fallback covers every endpoint."""
        config = GenerationConfig(include_edge_cases=False, expanded_fallback=True)
        cases = ApiTestGenerator(failing_llm, config).generate(discovered_apis)

        assert [case.id for case in cases] == ["api-0-happy", "api-1-happy", "api-1-invalid"]
        assert cases[1].method == HttpMethod.POST
        assert cases[1].expected_status == 201
        assert cases[2].expected_status == 400

    def test_edge_cases_are_added(self, stub_llm, raw_api_cases, discovered_apis):
        """Test rule-based API cases join the suite."""
        cases = ApiTestGenerator(stub_llm(raw_api_cases)).generate(discovered_apis)
        ids = [case.id for case in cases]

        assert "api-edge-sql-injection-0" in ids
        assert len(ids) == len(set(ids))
        assert cases[0].id == "api-edge-sql-injection-0"


class TestFallbackSuites:
    """Tests for the deterministic fallback suites."""

    def test_minimal_gui_suite(self, page_info, app_url):
        """Test the minimal GUI suite is a single smoke test."""
        cases = build_gui_fallback(page_info, app_url)

        assert [case.id for case in cases] == ["gui-basic-load"]
        assert cases[0].assertions[1].expected == "Login"

    def test_expanded_gui_suite(self, page_info, app_url):
        """Test forms, labelled buttons and web links get cases."""
        cases = build_gui_fallback(page_info, app_url, expanded=True)

        assert [case.id for case in cases] == ["gui-basic-load", "gui-form-0", "gui-button-0", "gui-link-0"]
        form = cases[1]
        assert form.test_data.inputs == {"username": "Test Value", "email": "test@example.com"}
        assert form.steps[-1].selector == 'input[type="submit"]'

    def test_gui_suite_without_page(self, app_url):
        """Test the smoke test needs no page structure."""
        cases = build_gui_fallback(None, app_url, expanded=True)
        assert [case.id for case in cases] == ["gui-basic-load"]

    def test_journey_endpoints(self):
        """Test journey calls become API cases."""
        journey = UserJourney.model_validate({
            "id": "j",
            "title": "Checkout",
            "description": "Buy a thing",
            "apiEndpoints": [{"method": "POST", "path": "/api/orders", "statusCode": 201}],
        })
        cases = build_api_fallback([], journey, expanded=True)

        assert [case.id for case in cases] == ["journey-api-0"]
        assert cases[0].expected_status == 201
        assert cases[0].category == "functional"
