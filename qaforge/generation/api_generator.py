"""LLM-powered API test generation from discovered endpoints."""

import logging
from typing import Optional, Sequence

from ..core.config import GenerationConfig
from ..core.models import ApiTestCase, DiscoveredAPI, EdgeCaseConfig, GenerationOptions, UserJourney
from ..llm.engine import AllProvidersFailedError, LLMEngine, LLMProviderError
from .dedup import merge_unique
from .edge_cases import EdgeCaseGenerator
from .fallback import build_api_fallback
from .prompts import build_api_prompt
from .prioritizer import prioritize_api_test_cases
from .validators import extract_case_list, validate_api_test_cases

logger = logging.getLogger(__name__)


class ApiTestGenerator:
    """Generates API test suites for discovered endpoints."""

    def __init__(
        self,
        llm_engine: LLMEngine,
        config: Optional[GenerationConfig] = None,
        edge_case_config: Optional[EdgeCaseConfig] = None
    ):
        self.llm = llm_engine
        self.config = config or GenerationConfig()
        self.edge_cases = EdgeCaseGenerator(edge_case_config)

    def generate(
        self,
        discovered_apis: Optional[Sequence[DiscoveredAPI]] = None,
        journey: Optional[UserJourney] = None
    ) -> list[ApiTestCase]:
        """Generate a prioritized API suite.

        Args:
            discovered_apis: API calls observed on the application.
            journey: Optional user journey for context.

        Returns:
            Prioritized test cases with unique ids.
        """
        discovered_apis = list(discovered_apis or [])

        cases = self._generate_from_llm(discovered_apis, journey)
        if not cases:
            logger.warning("No usable API test cases from LLM, using fallback suite")
            cases = build_api_fallback(discovered_apis, journey, expanded=self.config.expanded_fallback)

        if self.config.include_edge_cases:
            edge_cases = self.edge_cases.generate_api_edge_cases(discovered_apis)
            cases = merge_unique(cases, edge_cases)

        logger.info(f"Generated {len(cases)} API test cases")
        return prioritize_api_test_cases(cases)

    def _generate_from_llm(
        self,
        discovered_apis: list[DiscoveredAPI],
        journey: Optional[UserJourney]
    ) -> list[ApiTestCase]:
        prompt = build_api_prompt(discovered_apis, journey, self.config.complexity, self.config.focus)

        try:
            response = self.llm.generate_json(prompt)
        except (LLMProviderError, AllProvidersFailedError) as e:
            logger.error(f"API test generation failed: {e}")
            return []

        raw_cases = extract_case_list(response)
        if raw_cases is None:
            logger.warning(f"LLM returned {type(response).__name__} instead of a list of API test cases")
            return []

        options = GenerationOptions(max_test_cases=self.config.max_api_tests)
        return validate_api_test_cases(raw_cases, options)
