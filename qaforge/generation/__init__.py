"""Test case generation for QAForge."""

from .edge_cases import EdgeCaseGenerator
from .gui_generator import GuiTestGenerator
from .api_generator import ApiTestGenerator
from .validators import validate_gui_test_cases, validate_api_test_cases

__all__ = [
    "EdgeCaseGenerator",
    "GuiTestGenerator",
    "ApiTestGenerator",
    "validate_gui_test_cases",
    "validate_api_test_cases",
]
