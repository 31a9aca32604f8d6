"""End-to-end orchestration: inspect, generate, analyze, save."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .core.config import QAForgeConfig
from .core.models import (
    ApiTestCase,
    CoverageAnalysis,
    DiscoveredAPI,
    GuiTestCase,
    PageInfo,
    QualityScore,
    UserJourney,
)
from .exploration.inspector import PageInspector
from .generation.api_generator import ApiTestGenerator
from .generation.gui_generator import GuiTestGenerator
from .llm.engine import LLMEngine
from .parsing.journey import JourneyParser
from .quality.analyzer import QualityAnalyzer
from .reporting.store import SuiteStore

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Suites and quality findings of one generation run."""
    gui_cases: list[GuiTestCase] = field(default_factory=list)
    api_cases: list[ApiTestCase] = field(default_factory=list)
    gui_quality: Optional[QualityScore] = None
    api_quality: Optional[QualityScore] = None
    coverage: Optional[CoverageAnalysis] = None
    saved_paths: list[Path] = field(default_factory=list)


class QAForgeAgent:
    """Runs the generation pipeline for one application.

    Collaborators are created from the configuration unless given, so tests
    can substitute a stub LLM engine or inspector.
    """

    def __init__(
        self,
        config: QAForgeConfig,
        llm_engine: Optional[LLMEngine] = None,
        inspector: Optional[PageInspector] = None,
        store: Optional[SuiteStore] = None
    ):
        self.config = config
        self.llm = llm_engine or LLMEngine(config.llm)
        self.inspector = inspector or PageInspector()
        self.store = store or SuiteStore(config.output.tests_dir, config.output.reports_dir)
        self.analyzer = QualityAnalyzer()

    def generate(
        self,
        url: Optional[str] = None,
        journey_path: Optional[str] = None,
        gui: bool = True,
        api: bool = True,
        save: bool = True
    ) -> GenerationResult:
        """Generate, analyze and optionally save GUI and API suites.

        Args:
            url: Page to inspect. Defaults to the configured base URL.
            journey_path: Optional user journey file.
            gui: Generate the GUI suite.
            api: Generate the API suite.
            save: Write suites and the quality report to disk.

        Returns:
            The generated suites and their quality scores.
        """
        url = url or self.config.app.base_url
        journey = self._load_journey(journey_path)

        logger.info(f"Inspecting {url}")
        page_info, discovered_apis = self.inspector.inspect(url)

        result = GenerationResult()
        if gui:
            result.gui_cases = self.generate_gui(page_info, url, journey)
            result.gui_quality = self.analyzer.analyze_gui_test_quality(result.gui_cases)
        if api:
            result.api_cases = self.generate_api(discovered_apis, journey)
            result.api_quality = self.analyzer.analyze_api_test_quality(result.api_cases)
        result.coverage = self.analyzer.analyze_coverage_gaps(result.gui_cases, result.api_cases)

        if save:
            if gui:
                result.saved_paths.append(self.store.save_suite("gui", result.gui_cases))
            if api:
                result.saved_paths.append(self.store.save_suite("api", result.api_cases))
            result.saved_paths.append(
                self.store.save_quality_report(result.gui_quality, result.api_quality, result.coverage)
            )

        return result

    def generate_gui(
        self,
        page_info: Optional[PageInfo],
        app_url: str,
        journey: Optional[UserJourney] = None
    ) -> list[GuiTestCase]:
        generator = GuiTestGenerator(self.llm, self.config.generation, self.config.edge_cases)
        return generator.generate(page_info, app_url, journey)

    def generate_api(
        self,
        discovered_apis: list[DiscoveredAPI],
        journey: Optional[UserJourney] = None
    ) -> list[ApiTestCase]:
        generator = ApiTestGenerator(self.llm, self.config.generation, self.config.edge_cases)
        return generator.generate(discovered_apis, journey)

    def analyze_saved(self) -> GenerationResult:
        """Score the latest saved suites without generating anything.

        Missing suites are treated as empty.
        """
        result = GenerationResult()
        for kind in ("gui", "api"):
            try:
                cases = self.store.load_suite(kind)
            except FileNotFoundError:
                logger.warning(f"No saved {kind.upper()} suite found")
                continue
            if kind == "gui":
                result.gui_cases = cases
                result.gui_quality = self.analyzer.analyze_gui_test_quality(cases)
            else:
                result.api_cases = cases
                result.api_quality = self.analyzer.analyze_api_test_quality(cases)

        result.coverage = self.analyzer.analyze_coverage_gaps(result.gui_cases, result.api_cases)
        return result

    def _load_journey(self, journey_path: Optional[str]) -> Optional[UserJourney]:
        if not journey_path:
            return None
        journey = JourneyParser(self.llm).parse_file(journey_path)
        logger.info(f"Loaded journey '{journey.title}' with {len(journey.steps)} steps")
        return journey
