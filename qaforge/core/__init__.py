"""Core data models, configuration and errors for QAForge."""

from .models import (
    GuiTestCase,
    ApiTestCase,
    Step,
    Assertion,
    ApiAssertion,
    PageInfo,
    DiscoveredAPI,
    UserJourney,
    QualityScore,
    CoverageAnalysis,
    EdgeCaseConfig,
)
from .config import QAForgeConfig, load_config
from .errors import QAForgeError, ConfigError, JSONExtractionError, JourneyParseError

__all__ = [
    "GuiTestCase",
    "ApiTestCase",
    "Step",
    "Assertion",
    "ApiAssertion",
    "PageInfo",
    "DiscoveredAPI",
    "UserJourney",
    "QualityScore",
    "CoverageAnalysis",
    "EdgeCaseConfig",
    "QAForgeConfig",
    "load_config",
    "QAForgeError",
    "ConfigError",
    "JSONExtractionError",
    "JourneyParseError",
]
