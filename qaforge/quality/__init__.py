"""Test quality analysis and coverage gaps."""

from .analyzer import QualityAnalyzer

__all__ = ["QualityAnalyzer"]
