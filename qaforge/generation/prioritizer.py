"""Deterministic ordering of finished test collections."""

from ..core.models import PRIORITY_RANK, ApiTestCase, GuiTestCase

GUI_CATEGORY_RANK = {
    "authentication": 0,
    "form": 1,
    "navigation": 2,
    "error": 3,
    "accessibility": 4,
}
GUI_DEFAULT_RANK = 5

API_CATEGORY_RANK = {
    "authentication": 0,
    "crud": 1,
    "validation": 2,
    "security": 3,
    "performance": 4,
    "error": 5,
}
API_DEFAULT_RANK = 6


def gui_sort_key(case: GuiTestCase) -> tuple[int, int]:
    """Sort key of a GUI case: (priority rank, category rank)."""
    return (
        PRIORITY_RANK[case.priority],
        GUI_CATEGORY_RANK.get(case.category, GUI_DEFAULT_RANK),
    )


def api_sort_key(case: ApiTestCase) -> tuple[int, int]:
    """Sort key of an API case: (priority rank, category rank)."""
    return (
        PRIORITY_RANK[case.priority],
        API_CATEGORY_RANK.get(case.category, API_DEFAULT_RANK),
    )


def prioritize_gui_test_cases(cases: list[GuiTestCase]) -> list[GuiTestCase]:
    """Order GUI cases by priority, then category.

    ``sorted`` is stable, so cases with equal keys keep their input order
    and sorting an already sorted suite returns the same order.
    """
    return sorted(cases, key=gui_sort_key)


def prioritize_api_test_cases(cases: list[ApiTestCase]) -> list[ApiTestCase]:
    """Order API cases by priority, then category."""
    return sorted(cases, key=api_sort_key)
