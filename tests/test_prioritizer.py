"""Tests for deterministic suite ordering."""

from qaforge.core.models import Priority
from qaforge.generation.prioritizer import (
    api_sort_key,
    gui_sort_key,
    prioritize_api_test_cases,
    prioritize_gui_test_cases,
)


class TestGuiPrioritization:
    """Tests for GUI ordering."""

    def test_orders_by_priority_then_category(self, gui_case):
        """Test priority wins over category."""
        cases = [
            gui_case("low-auth", Priority.LOW, "authentication"),
            gui_case("high-nav", Priority.HIGH, "navigation"),
            gui_case("high-custom", Priority.HIGH, "checkout"),
            gui_case("critical-a11y", Priority.CRITICAL, "accessibility"),
            gui_case("high-auth", Priority.HIGH, "authentication"),
        ]

        ordered = prioritize_gui_test_cases(cases)

        assert [case.id for case in ordered] == [
            "critical-a11y", "high-auth", "high-nav", "high-custom", "low-auth",
        ]

    def test_equal_keys_keep_input_order(self, gui_case):
        """Test the sort is stable."""
        cases = [gui_case(f"form-{i}", Priority.MEDIUM, "form") for i in range(5)]
        assert prioritize_gui_test_cases(cases) == cases

    def test_sorting_is_idempotent(self, gui_case):
        """Test sorting a sorted suite is a no-op."""
        cases = [
            gui_case("a", Priority.LOW, "error"),
            gui_case("b", Priority.HIGH, "form"),
            gui_case("c", Priority.LOW, "error"),
        ]
        once = prioritize_gui_test_cases(cases)
        assert prioritize_gui_test_cases(once) == once

    def test_returns_new_list(self, gui_case):
        """Test the input list keeps its order."""
        cases = [gui_case("a", Priority.LOW), gui_case("b", Priority.CRITICAL)]
        prioritize_gui_test_cases(cases)
        assert [case.id for case in cases] == ["a", "b"]

    def test_unknown_category_ranks_last(self, gui_case):
        """Test open categories sort after known ones."""
        assert gui_sort_key(gui_case("x", Priority.MEDIUM, "whatever")) == (2, 5)


class TestApiPrioritization:
    """Tests for API ordering."""

    def test_orders_by_priority_then_category(self, api_case):
        """Test API category ranks."""
        cases = [
            api_case("perf", Priority.MEDIUM, "performance"),
            api_case("crud", Priority.MEDIUM, "crud"),
            api_case("other", Priority.MEDIUM, "reporting"),
            api_case("error", Priority.MEDIUM, "error"),
            api_case("auth", Priority.MEDIUM, "authentication"),
        ]

        ordered = prioritize_api_test_cases(cases)

        assert [case.id for case in ordered] == ["auth", "crud", "perf", "error", "other"]

    def test_unknown_category_ranks_last(self, api_case):
        """Test open categories sort after known ones."""
        assert api_sort_key(api_case("x", Priority.LOW, "misc")) == (3, 6)
