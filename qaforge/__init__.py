"""QAForge - LLM-Powered GUI and API Test Generation.

Modules:
    core        - Data models, configuration and errors
    exploration - Page inspection and API discovery
    llm         - LLM engine integration and JSON extraction
    generation  - Prompting, validation, edge cases and prioritization
    parsing     - User journey parsing
    quality     - Test quality scoring and coverage gaps
    reporting   - Suite and report persistence
"""

__version__ = "0.1.0"
__author__ = "QAForge Team"

from .core.config import QAForgeConfig
from .core.models import (
    ApiTestCase,
    Assertion,
    AssertionType,
    GuiTestCase,
    PageInfo,
    Step,
    StepAction,
    UserJourney,
)
from .agent import GenerationResult, QAForgeAgent
from .generation.api_generator import ApiTestGenerator
from .generation.gui_generator import GuiTestGenerator
from .quality.analyzer import QualityAnalyzer

__all__ = [
    # Config
    "QAForgeConfig",
    # Models
    "ApiTestCase",
    "Assertion",
    "AssertionType",
    "GuiTestCase",
    "PageInfo",
    "Step",
    "StepAction",
    "UserJourney",
    # Core classes
    "GenerationResult",
    "QAForgeAgent",
    "ApiTestGenerator",
    "GuiTestGenerator",
    "QualityAnalyzer",
]
