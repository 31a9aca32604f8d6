"""Tests for end-to-end orchestration."""

import pytest

from qaforge.agent import QAForgeAgent
from qaforge.core.config import AppConfig, OutputConfig, QAForgeConfig


@pytest.fixture
def config(tmp_path, app_url):
    return QAForgeConfig(
        app=AppConfig(base_url=app_url),
        output=OutputConfig(tests_dir=str(tmp_path / "suites"), reports_dir=str(tmp_path / "reports")),
    )


@pytest.fixture
def llm(stub_llm, raw_gui_cases, raw_api_cases):
    return stub_llm(lambda prompt: raw_api_cases if "API test" in prompt else raw_gui_cases)


@pytest.fixture
def agent(config, llm, stub_inspector, page_info, discovered_apis):
    return QAForgeAgent(config, llm_engine=llm, inspector=stub_inspector(page_info, discovered_apis))


class TestQAForgeAgent:
    """Tests for QAForgeAgent."""

    def test_generate_both_suites(self, agent, app_url, tmp_path):
        """Test a full run generates, scores and saves both suites."""
        result = agent.generate()

        assert agent.inspector.urls == [app_url]
        assert {"login-valid", "about-link"} <= {case.id for case in result.gui_cases}
        assert {"create-user", "list-users"} <= {case.id for case in result.api_cases}
        assert 0 <= result.gui_quality.overall <= 100
        assert 0 <= result.api_quality.overall <= 100
        assert result.coverage.edge_case_coverage > 0

        assert len(result.saved_paths) == 3
        assert all(path.exists() for path in result.saved_paths)
        assert (tmp_path / "suites" / "gui" / "latest.json").exists()
        assert (tmp_path / "suites" / "api" / "latest.json").exists()

    def test_gui_only(self, agent, llm):
        """Test disabling the API suite skips its generation."""
        result = agent.generate(api=False, save=False)

        assert result.api_cases == []
        assert result.api_quality is None
        assert result.saved_paths == []
        assert len(llm.prompts) == 1

    def test_url_override(self, agent):
        """Test an explicit URL is inspected instead of the base URL."""
        result = agent.generate(url="https://other.test/login", api=False, save=False)

        assert agent.inspector.urls == ["https://other.test/login"]
        navigate = next(case for case in result.gui_cases if case.id == "about-link").steps[0]
        assert navigate.value == "https://other.test/login"

    def test_journey_is_loaded(self, agent, llm, tmp_path):
        """Test journey context reaches the prompts."""
        journey = tmp_path / "journey.json"
        journey.write_text('{"title": "Password reset", "steps": [{"action": "Request reset link"}]}')

        agent.generate(journey_path=str(journey), save=False)

        assert all("Password reset" in prompt for prompt in llm.prompts)

    def test_analyze_saved(self, agent):
        """Test saved suites can be scored again."""
        generated = agent.generate()
        analyzed = agent.analyze_saved()

        assert [case.id for case in analyzed.gui_cases] == [case.id for case in generated.gui_cases]
        assert analyzed.gui_quality == generated.gui_quality
        assert analyzed.coverage == generated.coverage

    def test_analyze_without_saved_suites(self, agent):
        """Test missing suites count as empty."""
        result = agent.analyze_saved()

        assert result.gui_cases == []
        assert result.gui_quality is None
        assert result.coverage.functional_coverage == 0
