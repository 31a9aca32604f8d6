"""Persistence of generated suites and quality reports."""

from .store import SuiteStore, format_quality_summary, format_coverage_summary

__all__ = ["SuiteStore", "format_quality_summary", "format_coverage_summary"]
