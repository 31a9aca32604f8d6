"""LLM-powered GUI test generation from discovered page structure."""

import logging
from typing import Optional

from ..core.config import GenerationConfig
from ..core.models import EdgeCaseConfig, GenerationOptions, GuiTestCase, PageInfo, UserJourney
from ..llm.engine import AllProvidersFailedError, LLMEngine, LLMProviderError
from .dedup import merge_unique
from .edge_cases import EdgeCaseGenerator
from .fallback import build_gui_fallback
from .prompts import build_gui_prompt
from .prioritizer import prioritize_gui_test_cases
from .validators import extract_case_list, validate_gui_test_cases

logger = logging.getLogger(__name__)


class GuiTestGenerator:
    """Generates GUI test suites for a page.

    Pipeline: prompt, LLM, validation, fallback when the response is
    unusable, rule-based edge cases, prioritization.
    """

    def __init__(
        self,
        llm_engine: LLMEngine,
        config: Optional[GenerationConfig] = None,
        edge_case_config: Optional[EdgeCaseConfig] = None
    ):
        """Initialize the GUI test generator.

        Args:
            llm_engine: LLM engine for generation.
            config: Generation settings.
            edge_case_config: Which edge cases to synthesize.
        """
        self.llm = llm_engine
        self.config = config or GenerationConfig()
        self.edge_cases = EdgeCaseGenerator(edge_case_config)

    def generate(
        self,
        page_info: Optional[PageInfo],
        app_url: str,
        journey: Optional[UserJourney] = None
    ) -> list[GuiTestCase]:
        """Generate a prioritized GUI suite.

        Args:
            page_info: Discovered page structure.
            app_url: Application URL used by navigation steps.
            journey: Optional user journey for context.

        Returns:
            Prioritized test cases with unique ids.
        """
        cases = self._generate_from_llm(page_info, app_url, journey)
        if not cases:
            logger.warning("No usable GUI test cases from LLM, using fallback suite")
            cases = build_gui_fallback(page_info, app_url, expanded=self.config.expanded_fallback)

        if self.config.include_edge_cases:
            edge_cases = self.edge_cases.generate_gui_edge_cases(page_info, app_url)
            cases = merge_unique(cases, edge_cases)

        logger.info(f"Generated {len(cases)} GUI test cases")
        return prioritize_gui_test_cases(cases)

    def _generate_from_llm(
        self,
        page_info: Optional[PageInfo],
        app_url: str,
        journey: Optional[UserJourney]
    ) -> list[GuiTestCase]:
        prompt = build_gui_prompt(page_info, journey, self.config.complexity, self.config.focus)

        try:
            response = self.llm.generate_json(prompt)
        except (LLMProviderError, AllProvidersFailedError) as e:
            logger.error(f"GUI test generation failed: {e}")
            return []

        raw_cases = extract_case_list(response)
        if raw_cases is None:
            logger.warning(f"LLM returned {type(response).__name__} instead of a list of GUI test cases")
            return []

        options = GenerationOptions(app_url=app_url, max_test_cases=self.config.max_gui_tests)
        return validate_gui_test_cases(raw_cases, options)
